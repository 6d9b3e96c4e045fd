"""
Slot Generation Service

Generates discrete bookable start times for a provider on one date from:
- the weekday's availability ranges
- existing pending/confirmed bookings (through the shared overlap predicate)
"""

import logging
from datetime import date
from typing import Iterator

from sqlalchemy.orm import Session

from ...config import SLOT_DURATION_MINUTES
from ...shared.validators import format_time
from ..availability.service import AvailabilityStore
from ..bookings.repository import BookingRepository
from .conflicts import Interval, contains, find_conflict

logger = logging.getLogger(__name__)


class SlotGenerator:
    """Produces candidate start times for a provider/date"""

    def __init__(self, db: Session, availability: AvailabilityStore = None):
        self.db = db
        self.availability = availability or AvailabilityStore(db)
        self.bookings = BookingRepository()

    def iter_slots(
        self, provider_id: int, on_date: date, slot_duration: int = SLOT_DURATION_MINUTES
    ) -> Iterator[Interval]:
        """
        Yield free slot intervals in ascending start order.

        Algorithm:
            1. Resolve the weekday of ``on_date``; closed or no ranges → nothing
            2. For each range, step by ``slot_duration`` from the range start
            3. Keep ``[t, t + slot_duration)`` only if it fits inside the range
               and overlaps no active booking
        """
        if slot_duration <= 0:
            raise ValueError("slot_duration must be positive")

        day = self.availability.get_day(provider_id, on_date)
        if not day.bookable:
            return

        booked = self.bookings.get_active_intervals(self.db, provider_id, on_date)
        seen = set()

        for time_range in sorted(day.time_ranges, key=lambda r: r.start):
            current = time_range.start
            while current + slot_duration <= time_range.end:
                slot = Interval(current, current + slot_duration)
                if (
                    contains(time_range, slot)
                    and slot.start not in seen
                    and find_conflict(slot, booked) is None
                ):
                    seen.add(slot.start)
                    yield slot
                current += slot_duration

    def generate_slots(
        self, provider_id: int, on_date: date, slot_duration: int = SLOT_DURATION_MINUTES
    ) -> list[str]:
        """Free slot start times as ``HH:MM`` strings, sorted ascending"""
        slots = sorted(self.iter_slots(provider_id, on_date, slot_duration), key=lambda s: s.start)
        logger.debug(f"🗓️ {len(slots)} free slots for provider {provider_id} on {on_date}")
        return [format_time(slot.start) for slot in slots]
