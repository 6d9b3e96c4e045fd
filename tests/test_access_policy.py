"""Join window policy and join token issuing"""

import asyncio
from datetime import datetime

import pytest
from conftest import BookingFactory, PlanFactory

from booking_platform.domain.bookings.access import AccessWindowPolicy, JoinTokenService
from booking_platform.shared.exceptions import ServiceUnavailableError, ValidationError


@pytest.fixture
def booking(db):
    """Confirmed video session Monday 10:00-11:00"""
    return BookingFactory(start_minute=600, duration=60)


@pytest.mark.parametrize(
    "current, allowed",
    [
        (datetime(2030, 1, 7, 9, 57), False),
        (datetime(2030, 1, 7, 9, 58), True),
        (datetime(2030, 1, 7, 10, 30), True),
        (datetime(2030, 1, 7, 11, 0), True),
        (datetime(2030, 1, 7, 11, 1), False),
        (datetime(2030, 1, 6, 10, 30), False),
    ],
)
def test_join_window_bounds(booking, current, allowed):
    assert AccessWindowPolicy(join_window_minutes=2).can_join_now(booking, current) is allowed


def test_unconfirmed_booking_cannot_join(db, booking):
    booking.status = "pending"
    db.commit()
    policy = AccessWindowPolicy()
    assert not policy.can_join_now(booking, datetime(2030, 1, 7, 10, 30))
    assert policy.explain(booking, datetime(2030, 1, 7, 10, 30)) == "Cannot join a pending session"


def test_explain_mentions_join_time(booking):
    reason = AccessWindowPolicy(join_window_minutes=2).explain(booking, datetime(2030, 1, 7, 9, 0))
    assert "2 minutes before 2030-01-07 10:00" in reason


def test_issue_assigns_channel_and_mints_token(db, booking, token_provider, clock):
    clock.current = datetime(2030, 1, 7, 9, 59)
    service = JoinTokenService(db, token_provider, clock, ttl_seconds=3600)

    result = asyncio.run(service.issue(booking, booking.client_id))

    assert result["channelName"] == f"booking_{booking.id}"
    assert result["role"] == "publisher"
    assert result["uid"] == booking.client_id
    assert result["expiresAt"] == datetime(2030, 1, 7, 10, 59)
    assert token_provider.calls == [(f"booking_{booking.id}", booking.client_id, "publisher", 3600)]
    db.refresh(booking)
    assert booking.channel_name == f"booking_{booking.id}"


def test_group_session_clients_subscribe(db, token_provider, clock):
    plan = PlanFactory()
    booking = BookingFactory(
        provider=plan.provider,
        session_type="one-to-many",
        group_session_id="g1",
        channel_name="group_g1",
    )
    clock.current = datetime(2030, 1, 7, 10, 0)
    service = JoinTokenService(db, token_provider, clock)

    client_token = asyncio.run(service.issue(booking, booking.client_id))
    provider_token = asyncio.run(service.issue(booking, booking.provider_id))

    assert client_token["channelName"] == "group_g1"
    assert client_token["role"] == "subscriber"
    assert provider_token["role"] == "publisher"


def test_outside_window_refused(db, booking, token_provider, clock):
    clock.current = datetime(2030, 1, 7, 9, 0)
    with pytest.raises(ValidationError, match="not started yet"):
        asyncio.run(JoinTokenService(db, token_provider, clock).issue(booking, booking.client_id))
    assert token_provider.calls == []


def test_non_live_method_refused(db, token_provider, clock):
    booking = BookingFactory(consultation_method="chat")
    clock.current = datetime(2030, 1, 7, 10, 0)
    with pytest.raises(ValidationError, match="live video or audio"):
        asyncio.run(JoinTokenService(db, token_provider, clock).issue(booking, booking.client_id))


def test_unconfigured_provider_is_unavailable(db, booking, clock):
    clock.current = datetime(2030, 1, 7, 10, 0)
    with pytest.raises(ServiceUnavailableError):
        asyncio.run(JoinTokenService(db, None, clock).issue(booking, booking.client_id))


def test_token_failure_is_unavailable(db, booking, token_provider, clock):
    token_provider.fail = True
    clock.current = datetime(2030, 1, 7, 10, 0)
    with pytest.raises(ServiceUnavailableError):
        asyncio.run(JoinTokenService(db, token_provider, clock).issue(booking, booking.client_id))
