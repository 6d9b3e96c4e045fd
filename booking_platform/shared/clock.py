"""Wall clock for scheduling decisions, swappable in tests through ``get_clock``"""

from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from ..config import SCHEDULING_TIMEZONE

Clock = Callable[[], datetime]


def now() -> datetime:
    """Current naive local time in the scheduling timezone"""
    return datetime.now(ZoneInfo(SCHEDULING_TIMEZONE)).replace(tzinfo=None)


def get_clock() -> Clock:
    """Dependency injection for the scheduling clock"""
    return now
