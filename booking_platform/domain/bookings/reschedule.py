"""Reschedule service - Moves an existing booking to a new date/time"""

import logging
from datetime import date
from typing import Union

from sqlalchemy.orm import Session

from ...models import Booking
from ...services.notification_service import BOOKING_RESCHEDULED, NotificationDispatcher
from ...shared.clock import Clock, now
from ...shared.exceptions import AuthorizationError, NotFoundError, ValidationError
from ...shared.validators import format_time, parse_date, parse_time, validate_duration
from ..accounts.repository import AccountRepository
from ..availability.service import AvailabilityStore
from .repository import BookingRepository
from .service import (
    booking_summary,
    build_interval,
    ensure_no_conflict,
    ensure_within_availability,
)

logger = logging.getLogger(__name__)

NON_RESCHEDULABLE_STATUSES = ("cancelled", "completed", "rejected")


class RescheduleService:
    """Service layer for client-initiated reschedules"""

    def __init__(
        self,
        db: Session,
        notifier: NotificationDispatcher,
        clock: Clock = now,
        availability: AvailabilityStore = None,
    ):
        self.db = db
        self.notifier = notifier
        self.clock = clock
        self.availability = availability or AvailabilityStore(db)
        self.repo = BookingRepository()
        self.accounts = AccountRepository()

    def reschedule(
        self,
        booking_id: int,
        requester_id: int,
        new_date: Union[date, str],
        new_start_time: str,
        new_duration: int,
    ) -> Booking:
        """
        Move a booking and send it back to ``pending`` for the provider to confirm.

        The booking's own current interval never counts as a conflict.

        Raises:
            NotFoundError: booking does not exist
            AuthorizationError: requester is not the booking's client
            ValidationError: terminal status, bad duration, past date/time,
                outside availability (message lists the day's ranges)
            ConflictError: overlaps another active booking of the provider
        """
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        if booking.client_id != requester_id:
            raise AuthorizationError("You do not have permission to reschedule this booking")

        if booking.status in NON_RESCHEDULABLE_STATUSES:
            raise ValidationError(f"Cannot reschedule a {booking.status} booking")

        if booking.group_session_id:
            raise ValidationError("Group session bookings cannot be rescheduled individually")

        validate_duration(new_duration)
        on_date = parse_date(new_date)
        start_minute = parse_time(new_start_time)

        current = self.clock()
        if on_date < current.date():
            raise ValidationError("Cannot reschedule to a past date")
        if on_date == current.date() and start_minute < current.hour * 60 + current.minute:
            raise ValidationError("Cannot reschedule to a time in the past")

        candidate = build_interval(start_minute, new_duration)

        try:
            if self.accounts.lock_provider(self.db, booking.provider_id) is None:
                raise NotFoundError("Provider not found")

            # Re-read under lock; a cancel may have committed since the first read
            self.db.refresh(booking, with_for_update=True)
            if booking.status in NON_RESCHEDULABLE_STATUSES:
                raise ValidationError(f"Cannot reschedule a {booking.status} booking")

            existing = self.repo.get_active_intervals(
                self.db, booking.provider_id, on_date, exclude_booking_id=booking.id
            )
            ensure_no_conflict(
                candidate,
                existing,
                "The selected time slot is already booked. Please choose another time.",
            )
            ensure_within_availability(
                self.availability.get_day(booking.provider_id, on_date), candidate, list_ranges=True
            )

            previous = f"{booking.session_date} {format_time(booking.start_minute)}"
            booking.session_date = on_date
            booking.start_minute = candidate.start
            booking.end_minute = candidate.end
            booking.duration = new_duration
            booking.status = "pending"
            booking.cancelled_by = None
            booking.cancellation_reason = None
            booking.client_reminder_sent_at = None
            booking.provider_reminder_sent_at = None
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(
            f"🔁 Booking {booking.id} rescheduled from {previous} to "
            f"{on_date} {format_time(booking.start_minute)}; awaiting provider confirmation"
        )

        self.notifier.notify(booking.provider_id, BOOKING_RESCHEDULED, booking_summary(booking))
        return booking
