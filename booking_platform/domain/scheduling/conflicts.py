"""
Conflict Detection

The one overlap predicate used by slot generation, booking creation,
rescheduling and group-session fan-out. Intervals are half-open
``[start, end)`` in minutes from midnight, so touching endpoints
(09:30-10:00 and 10:00-10:30) do not conflict.
"""

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class Interval:
    start: int
    end: int
    # Booking the interval came from, when there is one
    ref: Optional[int] = None

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(f"Interval end ({self.end}) must be after start ({self.start})")

    @property
    def length(self) -> int:
        return self.end - self.start


def overlaps(candidate: Interval, existing: Interval) -> bool:
    """True when the two half-open intervals share at least one minute"""
    return candidate.start < existing.end and candidate.end > existing.start


def find_conflict(candidate: Interval, existing: Iterable[Interval]) -> Optional[Interval]:
    """Return the first existing interval that overlaps ``candidate``, or None"""
    for interval in existing:
        if overlaps(candidate, interval):
            return interval
    return None


def contains(outer: Interval, inner: Interval) -> bool:
    """True when ``inner`` lies fully inside ``outer``"""
    return outer.start <= inner.start and inner.end <= outer.end


def find_containing_range(ranges: Iterable[Interval], candidate: Interval) -> Optional[Interval]:
    for time_range in ranges:
        if contains(time_range, candidate):
            return time_range
    return None
