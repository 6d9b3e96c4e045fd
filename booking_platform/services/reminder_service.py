"""
Session reminders
Notifies both participants of a confirmed booking shortly before it starts
Each participant is reminded at most once per booking
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ..config import JOIN_WINDOW_MINUTES, REMINDER_CHECK_INTERVAL_SECONDS, SESSION_REMINDER_MINUTES
from ..domain.bookings.access import AccessWindowPolicy
from ..domain.bookings.repository import BookingRepository
from ..domain.bookings.service import booking_summary
from ..models import Booking
from .notification_service import SESSION_REMINDER, NotificationDispatcher

logger = logging.getLogger(__name__)

# (recipient attribute, marker attribute)
PARTICIPANTS = (
    ("client_id", "client_reminder_sent_at"),
    ("provider_id", "provider_reminder_sent_at"),
)


def _remind_participants(booking: Booking, now: datetime, dispatcher: NotificationDispatcher) -> int:
    sent = 0
    payload = booking_summary(booking)
    payload["leadMinutes"] = SESSION_REMINDER_MINUTES
    payload["joinWindowMinutes"] = JOIN_WINDOW_MINUTES

    for recipient_attr, marker_attr in PARTICIPANTS:
        if getattr(booking, marker_attr) is not None:
            continue
        if dispatcher.notify(getattr(booking, recipient_attr), SESSION_REMINDER, payload):
            setattr(booking, marker_attr, now)
            sent += 1
    return sent


def send_due_reminders(
    db: Session,
    now: datetime,
    dispatcher: NotificationDispatcher,
    lead_minutes: int = SESSION_REMINDER_MINUTES,
    interval_seconds: int = REMINDER_CHECK_INTERVAL_SECONDS,
) -> dict:
    """
    Send reminders for confirmed bookings starting in about ``lead_minutes``.

    A booking is due when its start falls within
    ``[now + lead - interval, now + lead + interval]``, so consecutive runs
    overlap and no booking slips between two ticks. Markers make reruns safe.

    Returns:
        dict: Summary of the run
    """
    summary = {"checked": 0, "reminders_sent": 0, "failed": 0}

    lead = timedelta(minutes=lead_minutes)
    slack = timedelta(seconds=interval_seconds)
    window_start = now + lead - slack
    window_end = now + lead + slack

    candidates = BookingRepository.get_reminder_candidates(db, window_start.date(), window_end.date())

    for booking in candidates:
        start, _ = AccessWindowPolicy.session_bounds(booking)
        if not window_start <= start <= window_end:
            continue

        summary["checked"] += 1
        try:
            sent = _remind_participants(booking, now, dispatcher)
            if sent:
                db.commit()
                summary["reminders_sent"] += sent
                logger.info(f"⏰ Sent {sent} reminder(s) for booking {booking.id} starting {start}")
        except Exception as e:
            db.rollback()
            summary["failed"] += 1
            logger.error(f"❌ Failed to send reminders for booking {booking.id}: {str(e)}")
            continue

    return summary
