"""
In-process sweep scheduler
Runs the periodic sweeps (reminders, subscription expiry) on an asyncio task.
Only one process may run it; the arq worker is the alternative deployment.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..config import REMINDER_CHECK_INTERVAL_SECONDS
from ..database import SessionLocal
from ..shared.clock import Clock, now
from .notification_service import NotificationDispatcher
from .reminder_service import send_due_reminders
from .subscription_expiry import expire_subscriptions

logger = logging.getLogger(__name__)

SweepJob = Callable[[Session, datetime], dict]


def default_jobs(dispatcher: NotificationDispatcher) -> dict[str, SweepJob]:
    return {
        "reminders": lambda db, current: send_due_reminders(db, current, dispatcher),
        "subscription_expiry": expire_subscriptions,
    }


class SweepScheduler:
    """Calls every job once per interval with the clock's current time"""

    def __init__(
        self,
        jobs: dict[str, SweepJob],
        interval_seconds: float = REMINDER_CHECK_INTERVAL_SECONDS,
        clock: Clock = now,
        session_factory: Callable[[], Session] = SessionLocal,
    ):
        self.jobs = jobs
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.session_factory = session_factory
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> dict:
        """Run every job in its own session; one failing job does not stop the others"""
        current = self.clock()
        summary = {}
        for name, job in self.jobs.items():
            db = self.session_factory()
            try:
                summary[name] = job(db, current)
            except Exception as e:
                db.rollback()
                logger.error(f"❌ Sweep '{name}' failed: {str(e)}")
                summary[name] = {"error": str(e)}
            finally:
                db.close()
        return summary

    async def _loop(self):
        while True:
            await asyncio.to_thread(self.run_once)
            await asyncio.sleep(self.interval_seconds)

    def start(self):
        if self.running:
            return
        logger.info(
            f"🕐 Starting sweep scheduler: jobs={list(self.jobs)}, interval={self.interval_seconds}s"
        )
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("🛑 Sweep scheduler stopped")
