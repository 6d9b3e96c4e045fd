"""Booking service - Business logic for creating and updating bookings"""

import logging
from datetime import date
from typing import Optional, Union

from sqlalchemy.orm import Session

from ...models import (
    BOOKING_STATUSES,
    CONSULTATION_METHODS,
    SESSION_TYPES,
    Account,
    Booking,
)
from ...services.notification_service import (
    BOOKING_CREATED,
    BOOKING_STATUS_CHANGED,
    NotificationDispatcher,
)
from ...shared.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ...shared.validators import (
    MINUTES_PER_DAY,
    clean_text,
    format_time,
    parse_date,
    parse_time,
    round_half_up,
    validate_duration,
)
from ..accounts.repository import AccountRepository
from ..availability.service import AvailabilityStore, DayAvailability
from ..scheduling.conflicts import Interval, find_conflict, find_containing_range
from .repository import BookingRepository

logger = logging.getLogger(__name__)

# Manual transitions; re-applying the current status is always a no-op
ALLOWED_TRANSITIONS = {
    "pending": {"confirmed", "rejected", "cancelled"},
    "confirmed": {"completed", "cancelled"},
    "cancelled": set(),
    "completed": set(),
    "rejected": set(),
}
PROVIDER_ONLY_STATUSES = {"confirmed", "rejected", "completed"}

NOTES_MAX_LENGTH = 1000
CANCELLATION_REASON_MAX_LENGTH = 500


# ============================================================================
# VALIDATION PRIMITIVES (shared with reschedule and group sessions)
# ============================================================================


def validate_consultation_method(consultation_method: str) -> str:
    if consultation_method not in CONSULTATION_METHODS:
        raise ValidationError(
            f"Invalid consultation method. Must be one of: {', '.join(CONSULTATION_METHODS)}"
        )
    return consultation_method


def validate_session_type(session_type: str) -> str:
    if session_type not in SESSION_TYPES:
        raise ValidationError(f"Invalid session type. Must be one of: {', '.join(SESSION_TYPES)}")
    return session_type


def validate_offering(
    provider: Account, consultation_method: str, session_type: Optional[str] = None
) -> None:
    """The provider must offer the method/session type (an empty list means anything goes)"""
    methods = provider.consultation_methods or []
    if methods and consultation_method not in methods:
        raise ValidationError(f"Provider does not offer {consultation_method} consultations")

    if session_type is not None:
        session_types = provider.session_types or []
        if session_types and session_type not in session_types:
            raise ValidationError(f"Provider does not offer {session_type} sessions")


def compute_end(start_minute: int, duration: int) -> int:
    return start_minute + duration


def build_interval(start_minute: int, duration: int) -> Interval:
    end_minute = compute_end(start_minute, duration)
    if end_minute > MINUTES_PER_DAY:
        raise ValidationError("Session must end on the same day it starts")
    return Interval(start_minute, end_minute)


def ensure_no_conflict(candidate: Interval, existing: list[Interval], message: str) -> None:
    conflict = find_conflict(candidate, existing)
    if conflict is not None:
        logger.info(
            f"⛔ Conflict: {format_time(candidate.start)}-{format_time(candidate.end)} overlaps "
            f"booking {conflict.ref} ({format_time(conflict.start)}-{format_time(conflict.end)})"
        )
        raise ConflictError(message)


def ensure_within_availability(
    day: DayAvailability, candidate: Interval, list_ranges: bool = False
) -> None:
    """The candidate must fit inside one of the day's ranges"""
    if not day.bookable:
        raise ValidationError(f"Provider is not available on {day.day}")

    if find_containing_range(day.time_ranges, candidate) is None:
        if list_ranges:
            raise ValidationError(
                f"The selected time is outside the provider's available hours on {day.day} "
                f"({day.describe_ranges()})"
            )
        raise ValidationError("Requested time is outside the provider's available hours")


def booking_price(hourly_rate: Optional[float], duration: int) -> float:
    return round_half_up((hourly_rate or 0) * duration / 60)


def booking_summary(booking: Booking) -> dict:
    """Payload sent along with booking notifications"""
    return {
        "bookingId": booking.id,
        "clientId": booking.client_id,
        "providerId": booking.provider_id,
        "sessionDate": booking.session_date,
        "startTime": format_time(booking.start_minute),
        "endTime": format_time(booking.end_minute),
        "consultationMethod": booking.consultation_method,
        "sessionType": booking.session_type,
        "status": booking.status,
    }


class BookingService:
    """Service layer for booking business logic"""

    def __init__(
        self,
        db: Session,
        notifier: NotificationDispatcher,
        availability: AvailabilityStore = None,
    ):
        self.db = db
        self.notifier = notifier
        self.availability = availability or AvailabilityStore(db)
        self.repo = BookingRepository()
        self.accounts = AccountRepository()

    def create(
        self,
        provider_id: int,
        client_id: int,
        session_date: Union[date, str],
        start_time: str,
        duration: int,
        consultation_method: str,
        session_type: str,
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Create a pending booking.

        The conflict check and the insert happen in one transaction while the
        provider row is locked, so two requests for the same slot cannot both
        succeed.

        Raises:
            ValidationError: bad input, unsupported offering, outside availability
            NotFoundError: provider does not exist
            ConflictError: overlaps an existing pending/confirmed booking
        """
        validate_duration(duration)
        validate_consultation_method(consultation_method)
        validate_session_type(session_type)
        on_date = parse_date(session_date)
        start_minute = parse_time(start_time)
        notes = clean_text(notes, NOTES_MAX_LENGTH)

        if provider_id == client_id:
            raise ValidationError("You cannot book a session with yourself")

        try:
            provider = self.accounts.lock_provider(self.db, provider_id)
            if provider is None:
                raise NotFoundError("Provider not found")

            validate_offering(provider, consultation_method, session_type)
            candidate = build_interval(start_minute, duration)

            existing = self.repo.get_active_intervals(self.db, provider_id, on_date)
            ensure_no_conflict(
                candidate,
                existing,
                "This time slot is already booked. Please select another time.",
            )
            ensure_within_availability(self.availability.get_day(provider_id, on_date), candidate)

            booking = Booking(
                client_id=client_id,
                provider_id=provider_id,
                session_date=on_date,
                start_minute=candidate.start,
                end_minute=candidate.end,
                duration=duration,
                consultation_method=consultation_method,
                session_type=session_type,
                price=booking_price(provider.hourly_rate, duration),
                notes=notes,
                status="pending",
            )
            self.db.add(booking)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(
            f"✅ Booking {booking.id} created: provider={provider_id}, client={client_id}, "
            f"{on_date} {format_time(booking.start_minute)}-{format_time(booking.end_minute)}"
        )

        payload = booking_summary(booking)
        self.notifier.notify(provider_id, BOOKING_CREATED, payload)
        self.notifier.notify(client_id, BOOKING_CREATED, payload)
        return booking

    def get_booking(self, booking_id: int, requester_id: int) -> Booking:
        """Get a booking visible to one of its participants"""
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        if requester_id not in (booking.client_id, booking.provider_id):
            raise AuthorizationError("You do not have permission to access this booking")
        return booking

    def update_status(
        self,
        booking_id: int,
        requester_id: int,
        new_status: str,
        cancellation_reason: Optional[str] = None,
    ) -> Booking:
        """
        Move a booking to a new status.

        Either participant may cancel; confirming, rejecting and completing are
        provider actions. Repeating the current status changes nothing.

        The transition is validated against the row as it stands under lock, so
        a concurrent status change is never overwritten.
        """
        reason = clean_text(cancellation_reason, CANCELLATION_REASON_MAX_LENGTH)

        try:
            booking = self.repo.lock_booking(self.db, booking_id)
            if not booking:
                raise NotFoundError("Booking not found")

            is_client = booking.client_id == requester_id
            is_provider = booking.provider_id == requester_id
            if not is_client and not is_provider:
                raise AuthorizationError("You do not have permission to update this booking")

            if new_status not in BOOKING_STATUSES:
                raise ValidationError(
                    f"Invalid status. Must be one of: {', '.join(BOOKING_STATUSES)}"
                )

            if new_status == booking.status:
                logger.debug(f"Booking {booking.id} already {new_status}; nothing to do")
                self.db.rollback()
                return booking

            if new_status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
                raise ValidationError(f"Cannot change a {booking.status} booking to {new_status}")

            if new_status in PROVIDER_ONLY_STATUSES and not is_provider:
                raise AuthorizationError(f"Only the provider can mark a booking as {new_status}")

            previous = booking.status
            booking.status = new_status
            if new_status == "cancelled":
                booking.cancelled_by = "client" if is_client else "provider"
                if reason:
                    booking.cancellation_reason = reason
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking.id} transitioned: {previous} → {new_status}")

        counterpart = booking.provider_id if is_client else booking.client_id
        payload = booking_summary(booking)
        payload["cancellationReason"] = booking.cancellation_reason
        self.notifier.notify(counterpart, BOOKING_STATUS_CHANGED, payload)
        return booking

    def list_for_client(
        self, client_id: int, status: Optional[str] = None, page: int = 1, limit: int = 10
    ) -> tuple[list[Booking], int]:
        return self.repo.list_bookings(self.db, client_id=client_id, status=status, page=page, limit=limit)

    def list_for_provider(
        self, provider_id: int, status: Optional[str] = None, page: int = 1, limit: int = 10
    ) -> tuple[list[Booking], int]:
        return self.repo.list_bookings(
            self.db, provider_id=provider_id, status=status, page=page, limit=limit
        )
