"""Reminder and subscription expiry sweeps"""

from datetime import date, datetime

from conftest import BookingFactory, SubscriptionFactory

from booking_platform.models import Subscription
from booking_platform.services.notification_service import SESSION_REMINDER
from booking_platform.services.reminder_service import send_due_reminders
from booking_platform.services.scheduler import SweepScheduler, default_jobs
from booking_platform.services.subscription_expiry import expire_subscriptions

# Session at Monday 10:00; with a 10 minute lead it is due around 09:50
DUE = datetime(2030, 1, 7, 9, 50)


def test_both_participants_reminded_once(db, notifier):
    booking = BookingFactory(start_minute=600)

    first = send_due_reminders(db, DUE, notifier, lead_minutes=10, interval_seconds=60)
    second = send_due_reminders(db, DUE, notifier, lead_minutes=10, interval_seconds=60)

    assert first["reminders_sent"] == 2
    assert second["reminders_sent"] == 0
    recipients = [event[0] for event in notifier.of_type(SESSION_REMINDER)]
    assert sorted(recipients) == sorted([booking.client_id, booking.provider_id])
    db.refresh(booking)
    assert booking.client_reminder_sent_at == DUE
    assert booking.provider_reminder_sent_at == DUE


def test_window_edges(db, notifier):
    BookingFactory(start_minute=600)

    early = send_due_reminders(db, datetime(2030, 1, 7, 9, 48), notifier, 10, 60)
    assert early["reminders_sent"] == 0

    edge = send_due_reminders(db, datetime(2030, 1, 7, 9, 49), notifier, 10, 60)
    assert edge["reminders_sent"] == 2


def test_only_confirmed_bookings_reminded(db, notifier):
    BookingFactory(start_minute=600, status="pending")
    BookingFactory(start_minute=600, status="cancelled")
    assert send_due_reminders(db, DUE, notifier, 10, 60)["reminders_sent"] == 0


def test_failed_delivery_retried_next_run(db, notifier):
    booking = BookingFactory(start_minute=600)
    notifier.fail = True
    assert send_due_reminders(db, DUE, notifier, 10, 60)["reminders_sent"] == 0

    notifier.fail = False
    assert send_due_reminders(db, DUE, notifier, 10, 60)["reminders_sent"] == 2
    db.refresh(booking)
    assert booking.client_reminder_sent_at is not None


def test_reminder_window_across_midnight(db, notifier):
    booking = BookingFactory(session_date=date(2030, 1, 8), start_minute=5)
    summary = send_due_reminders(db, datetime(2030, 1, 7, 23, 55), notifier, 10, 60)
    assert summary["reminders_sent"] == 2
    assert notifier.events[0][2]["bookingId"] == booking.id


def test_expire_subscriptions(db):
    stale = SubscriptionFactory(expiry_date=date(2030, 1, 31))
    current = SubscriptionFactory(plan=stale.plan, expiry_date=date(2030, 2, 1))
    cancelled = SubscriptionFactory(plan=stale.plan, expiry_date=date(2030, 1, 1), status="cancelled")

    summary = expire_subscriptions(db, datetime(2030, 2, 1, 0, 5))

    assert summary == {"expired": 1, "failed": 0}
    assert db.get(Subscription, stale.id).status == "expired"
    assert db.get(Subscription, stale.id).auto_renewal is False
    assert db.get(Subscription, current.id).status == "active"
    assert db.get(Subscription, cancelled.id).status == "cancelled"


def test_expiry_is_idempotent(db):
    SubscriptionFactory(expiry_date=date(2030, 1, 10))
    assert expire_subscriptions(db, datetime(2030, 1, 20))["expired"] == 1
    assert expire_subscriptions(db, datetime(2030, 1, 20))["expired"] == 0


def test_scheduler_run_once_uses_clock(db, notifier, clock):
    BookingFactory(start_minute=600)
    SubscriptionFactory(expiry_date=date(2029, 12, 31))
    clock.current = DUE

    scheduler = SweepScheduler(default_jobs(notifier), clock=clock, session_factory=lambda: db)
    summary = scheduler.run_once()

    assert summary["reminders"]["reminders_sent"] == 2
    assert summary["subscription_expiry"]["expired"] == 1


def test_scheduler_isolates_failing_job(db, clock):
    def broken(session, current):
        raise RuntimeError("boom")

    calls = []
    scheduler = SweepScheduler(
        {"broken": broken, "ok": lambda session, current: calls.append(current) or {"ran": True}},
        clock=clock,
        session_factory=lambda: db,
    )
    summary = scheduler.run_once()

    assert summary["broken"] == {"error": "boom"}
    assert summary["ok"] == {"ran": True}
    assert calls == [clock.current]
