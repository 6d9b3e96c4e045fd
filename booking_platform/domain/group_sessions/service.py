"""Group session service - One confirmed booking per active subscriber"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from sqlalchemy.orm import Session

from ...models import Booking, Plan, Subscription
from ...services.notification_service import GROUP_SESSION_SCHEDULED, NotificationDispatcher
from ...shared.exceptions import AuthorizationError, NotFoundError, ValidationError
from ...shared.validators import (
    clean_text,
    format_time,
    parse_date,
    parse_time,
    round_half_up,
    validate_duration,
)
from ..accounts.repository import AccountRepository
from ..bookings.repository import BookingRepository
from ..bookings.service import (
    NOTES_MAX_LENGTH,
    booking_summary,
    build_interval,
    ensure_no_conflict,
    validate_consultation_method,
    validate_offering,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupSessionResult:
    group_session_id: str
    count: int


def price_per_session(plan: Plan) -> float:
    if plan.monthly_price and plan.classes_per_month:
        return round_half_up(plan.monthly_price / plan.classes_per_month, 2)
    return 0


class GroupSessionRepository:
    """Queries backing group session fan-out"""

    @staticmethod
    def get_plan(db: Session, plan_id: int) -> Optional[Plan]:
        return db.query(Plan).filter(Plan.id == plan_id).first()

    @staticmethod
    def get_eligible_subscriptions(
        db: Session, provider_id: int, plan_id: int, on_date: date
    ) -> list[Subscription]:
        """Active subscriptions with sessions left whose validity covers the date"""
        return (
            db.query(Subscription)
            .filter(
                Subscription.provider_id == provider_id,
                Subscription.plan_id == plan_id,
                Subscription.status == "active",
                Subscription.sessions_remaining > 0,
                Subscription.start_date <= on_date,
                Subscription.expiry_date >= on_date,
            )
            .order_by(Subscription.id.asc())
            .all()
        )


class GroupSessionFanout:
    """Schedules one-to-many sessions for monthly subscription plans"""

    def __init__(self, db: Session, notifier: NotificationDispatcher):
        self.db = db
        self.notifier = notifier
        self.repo = GroupSessionRepository()
        self.bookings = BookingRepository()
        self.accounts = AccountRepository()

    def schedule(
        self,
        provider_id: int,
        plan_id: int,
        session_date: Union[date, str],
        start_time: str,
        duration: int,
        consultation_method: str,
        notes: Optional[str] = None,
    ) -> GroupSessionResult:
        """
        Create one confirmed booking for every eligible subscriber of a plan.

        All bookings share a ``group_session_id`` and a live-session channel.
        Either every booking is written or none is.

        Raises:
            NotFoundError: plan or provider does not exist
            AuthorizationError: plan belongs to another provider
            ValidationError: not a monthly one-to-many plan, bad input,
                or no eligible subscribers
            ConflictError: the provider already has an overlapping active booking
        """
        plan = self.repo.get_plan(self.db, plan_id)
        if not plan:
            raise NotFoundError("Plan not found")

        if plan.provider_id != provider_id:
            raise AuthorizationError("You do not have permission to schedule sessions for this plan")

        if plan.type != "monthly":
            raise ValidationError("Group sessions are currently supported only for monthly plans")
        if plan.session_format != "one-to-many":
            raise ValidationError("This plan is not configured as a one-to-many (group) plan")

        validate_duration(duration)
        validate_consultation_method(consultation_method)
        on_date = parse_date(session_date)
        candidate = build_interval(parse_time(start_time), duration)
        notes = clean_text(notes, NOTES_MAX_LENGTH)

        try:
            provider = self.accounts.lock_provider(self.db, provider_id)
            if provider is None:
                raise NotFoundError("Provider not found")
            validate_offering(provider, consultation_method)

            ensure_no_conflict(
                candidate,
                self.bookings.get_active_intervals(self.db, provider_id, on_date),
                "You already have a session booked at this time",
            )

            subscriptions = self.repo.get_eligible_subscriptions(self.db, provider_id, plan.id, on_date)
            if not subscriptions:
                raise ValidationError("No active subscribers found for this plan at the selected time")

            group_session_id = uuid.uuid4().hex
            channel_name = f"group_{group_session_id}"
            price = price_per_session(plan)

            bookings = [
                Booking(
                    client_id=subscription.client_id,
                    provider_id=provider_id,
                    session_date=on_date,
                    start_minute=candidate.start,
                    end_minute=candidate.end,
                    duration=duration,
                    consultation_method=consultation_method,
                    session_type="one-to-many",
                    price=price,
                    notes=notes,
                    status="confirmed",
                    group_session_id=group_session_id,
                    channel_name=channel_name,
                    plan_id=plan.id,
                    plan_instance_id=subscription.plan_instance_id,
                )
                for subscription in subscriptions
            ]
            self.db.add_all(bookings)
            self.db.flush()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"👥 Group session {group_session_id} scheduled for plan {plan.id}: "
            f"{len(bookings)} subscribers on {on_date} at {format_time(candidate.start)}"
        )

        for booking in bookings:
            payload = booking_summary(booking)
            payload["groupSessionId"] = group_session_id
            payload["planName"] = plan.name
            self.notifier.notify(booking.client_id, GROUP_SESSION_SCHEDULED, payload)

        return GroupSessionResult(group_session_id=group_session_id, count=len(bookings))
