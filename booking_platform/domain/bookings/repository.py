"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import ACTIVE_BOOKING_STATUSES, Booking
from ..scheduling.conflicts import Interval


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def lock_booking(db: Session, booking_id: int) -> Optional[Booking]:
        """Fresh copy of the booking, row-locked until the transaction ends"""
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_active_bookings(
        db: Session,
        provider_id: int,
        on_date: date,
        exclude_booking_id: Optional[int] = None,
    ) -> list[Booking]:
        """Pending/confirmed bookings occupying the provider's calendar on a date"""
        query = db.query(Booking).filter(
            Booking.provider_id == provider_id,
            Booking.session_date == on_date,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.order_by(Booking.start_minute.asc()).all()

    @classmethod
    def get_active_intervals(
        cls,
        db: Session,
        provider_id: int,
        on_date: date,
        exclude_booking_id: Optional[int] = None,
    ) -> list[Interval]:
        return [
            Interval(b.start_minute, b.end_minute, ref=b.id)
            for b in cls.get_active_bookings(db, provider_id, on_date, exclude_booking_id)
        ]

    @staticmethod
    def list_bookings(
        db: Session,
        client_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Booking], int]:
        """Paginated bookings for one participant, soonest first"""
        query = db.query(Booking)
        if client_id is not None:
            query = query.filter(Booking.client_id == client_id)
        if provider_id is not None:
            query = query.filter(Booking.provider_id == provider_id)
        if status:
            query = query.filter(Booking.status == status)

        total = query.count()
        items = (
            query.order_by(Booking.session_date.asc(), Booking.start_minute.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def get_reminder_candidates(db: Session, first_date: date, last_date: date) -> list[Booking]:
        """Confirmed bookings in a date range still missing at least one reminder"""
        return (
            db.query(Booking)
            .filter(
                Booking.status == "confirmed",
                Booking.session_date >= first_date,
                Booking.session_date <= last_date,
                or_(
                    Booking.client_reminder_sent_at.is_(None),
                    Booking.provider_reminder_sent_at.is_(None),
                ),
            )
            .all()
        )
