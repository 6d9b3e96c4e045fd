"""Availability service - Recurring weekly schedules for providers"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from ...shared.exceptions import ValidationError
from ...shared.validators import format_time, parse_time
from ..scheduling.conflicts import Interval
from .repository import AvailabilityRepository

logger = logging.getLogger(__name__)

# Canonical order of a stored week
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

TimeRange = Interval


@dataclass
class DayAvailability:
    day: str
    is_open: bool = False
    time_ranges: list[TimeRange] = field(default_factory=list)

    @property
    def bookable(self) -> bool:
        return self.is_open and bool(self.time_ranges)

    def describe_ranges(self) -> str:
        """Human-readable ranges, e.g. ``09:00 - 12:00, 14:00 - 17:00``"""
        return ", ".join(f"{format_time(r.start)} - {format_time(r.end)}" for r in self.time_ranges)

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "isOpen": self.is_open,
            "timeRanges": [
                {"startTime": format_time(r.start), "endTime": format_time(r.end)}
                for r in self.time_ranges
            ],
        }


def weekday_name(on_date: date) -> str:
    """Day name for a calendar date (``date.weekday()`` counts from Monday)"""
    return DAY_NAMES[(on_date.weekday() + 1) % 7]


def default_week() -> list[DayAvailability]:
    return [DayAvailability(day=name) for name in DAY_NAMES]


def _field(entry: Any, name: str, default=None):
    if isinstance(entry, dict):
        return entry.get(name, default)
    return getattr(entry, name, default)


def parse_week(windows: list) -> list[DayAvailability]:
    """
    Validate a full week and convert it to DayAvailability entries.

    Args:
        windows: 7 entries ordered Sunday→Saturday, each with ``day``, ``isOpen``
            and ``timeRanges`` (``[{"startTime": "HH:MM", "endTime": "HH:MM"}]``)

    Raises:
        ValidationError: wrong size or order, open day without ranges,
            unparsable time, or a range that ends before it starts
    """
    if not isinstance(windows, (list, tuple)) or len(windows) != len(DAY_NAMES):
        raise ValidationError(
            "Invalid availability data. Must contain exactly 7 days (Sunday through Saturday)."
        )

    week = []
    for position, entry in enumerate(windows):
        expected = DAY_NAMES[position]
        day = _field(entry, "day")
        if day != expected:
            raise ValidationError(
                f"Days must be ordered Sunday through Saturday: expected {expected} at position "
                f"{position + 1}, got {day}"
            )

        is_open = _field(entry, "isOpen", False)
        if not isinstance(is_open, bool):
            raise ValidationError(f"isOpen for {day} must be true or false")

        raw_ranges = _field(entry, "timeRanges", None) or []
        ranges = []
        for raw in raw_ranges:
            start = parse_time(_field(raw, "startTime"))
            end = parse_time(_field(raw, "endTime"))
            if end <= start:
                raise ValidationError(
                    f"Invalid time range for {day}: end time must be after start time"
                )
            ranges.append(TimeRange(start, end))

        if is_open and not ranges:
            raise ValidationError(f"Day {day} is marked as open but has no time ranges")

        ranges.sort(key=lambda r: r.start)
        week.append(DayAvailability(day=day, is_open=is_open, time_ranges=ranges))

    return week


class AvailabilityStore:
    """Holds each provider's recurring weekly schedule"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    def get_windows(self, provider_id: int) -> list[DayAvailability]:
        """The provider's week; an all-closed week when nothing was ever saved"""
        window = self.repo.get_for_provider(self.db, provider_id)
        if window is None:
            return default_week()
        # Stored weeks were validated on write
        return parse_week(window.days)

    def get_day(self, provider_id: int, on_date: date) -> DayAvailability:
        """Availability for the weekday of a calendar date"""
        week = self.get_windows(provider_id)
        return week[DAY_NAMES.index(weekday_name(on_date))]

    def set_windows(self, provider_id: int, windows: list) -> list[DayAvailability]:
        """Validate and replace the whole week at once"""
        week = parse_week(windows)
        self.repo.replace_week(self.db, provider_id, [day.to_dict() for day in week])
        open_days = [day.day for day in week if day.is_open]
        logger.info(f"📅 Availability updated for provider {provider_id}: open on {open_days}")
        return week
