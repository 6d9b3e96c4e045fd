"""
ARQ Background Worker
Runs the periodic sweeps when the API process does not (BACKGROUND_SWEEPS_ENABLED=false)
"""

import asyncio
import logging
import os

from arq.connections import RedisSettings
from arq.cron import cron

from .database import SessionLocal
from .services.notification_service import get_notification_dispatcher
from .services.reminder_service import send_due_reminders
from .services.subscription_expiry import expire_subscriptions
from .shared.clock import now

logger = logging.getLogger(__name__)


def get_redis_settings() -> RedisSettings:
    """Redis for the sweep queue: REDIS_URL wins over the discrete REDIS_* variables"""
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        return RedisSettings.from_dsn(redis_url)
    return RedisSettings(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=int(os.getenv("REDIS_PORT", "6379")),
        password=os.getenv("REDIS_PASSWORD"),
        ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
        conn_timeout=15,
    )


async def session_reminders_task(ctx):
    """Every minute: remind participants of sessions starting soon"""
    db = SessionLocal()
    try:
        summary = await asyncio.to_thread(
            send_due_reminders, db, now(), get_notification_dispatcher()
        )
        if summary["reminders_sent"]:
            logger.info(f"Reminder sweep complete: {summary}")
        return summary
    except Exception as e:
        logger.error(f"❌ Reminder sweep failed: {str(e)}")
        raise
    finally:
        db.close()


async def subscription_expiry_task(ctx):
    """Daily: expire subscriptions past their expiry date"""
    db = SessionLocal()
    try:
        return await asyncio.to_thread(expire_subscriptions, db, now())
    except Exception as e:
        logger.error(f"❌ Subscription expiry failed: {str(e)}")
        raise
    finally:
        db.close()


class WorkerSettings:
    """ARQ Worker Settings"""

    functions = [session_reminders_task, subscription_expiry_task]
    redis_settings = get_redis_settings()

    max_jobs = int(os.getenv("ARQ_MAX_JOBS", "10"))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "120"))
    keep_result = int(os.getenv("ARQ_KEEP_RESULT", "3600"))

    health_check_interval = 60

    cron_jobs = [
        cron(session_reminders_task, second=0, unique=True),  # every minute
        cron(subscription_expiry_task, hour=0, minute=5, unique=True),  # 12:05 AM
    ]
