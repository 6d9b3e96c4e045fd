"""
Booking Platform Test Configuration - pytest fixtures and factories

This module provides:
- an in-memory SQLite database, rebuilt for every test
- factory_boy factories for accounts, plans, subscriptions and bookings
- a recording notification dispatcher and a settable clock
- a FastAPI TestClient with auth, database, clock and collaborators overridden

Dates: 2030-01-06 is a Sunday, 2030-01-07 a Monday.
"""

from datetime import date, datetime

import factory
import pytest
from factory.alchemy import SQLAlchemyModelFactory
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from booking_platform.auth import get_current_account
from booking_platform.database import Base, get_db
from booking_platform.domain.availability.service import DAY_NAMES, AvailabilityStore
from booking_platform.main import app
from booking_platform.models import ROLE_CLIENT, ROLE_PROVIDER, Account, Booking, Plan, Subscription
from booking_platform.services.notification_service import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from booking_platform.services.realtime_service import (
    RealtimeTokenError,
    RealtimeTokenProvider,
    get_realtime_token_provider,
)
from booking_platform.shared.clock import get_clock

MONDAY = date(2030, 1, 7)
SUNDAY = date(2030, 1, 6)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = scoped_session(sessionmaker(autocommit=False, autoflush=False, bind=engine))


# ============================================================================
# FACTORIES
# ============================================================================


class AccountFactory(SQLAlchemyModelFactory):
    class Meta:
        model = Account
        sqlalchemy_session = TestSession
        sqlalchemy_session_persistence = "commit"

    external_uid = factory.Sequence(lambda n: f"uid-{n}")
    email = factory.Sequence(lambda n: f"account{n}@example.com")
    full_name = factory.Sequence(lambda n: f"Account {n}")
    role = ROLE_CLIENT
    is_active = True


class ProviderFactory(AccountFactory):
    role = ROLE_PROVIDER
    hourly_rate = 60.0
    consultation_methods = factory.LazyFunction(list)
    session_types = factory.LazyFunction(list)


class PlanFactory(SQLAlchemyModelFactory):
    class Meta:
        model = Plan
        sqlalchemy_session = TestSession
        sqlalchemy_session_persistence = "commit"

    provider = factory.SubFactory(ProviderFactory)
    name = "Monthly Group Yoga"
    type = "monthly"
    session_format = "one-to-many"
    price = 100.0
    duration = 60
    classes_per_month = 3
    monthly_price = 100.0


class SubscriptionFactory(SQLAlchemyModelFactory):
    class Meta:
        model = Subscription
        sqlalchemy_session = TestSession
        sqlalchemy_session_persistence = "commit"

    plan = factory.SubFactory(PlanFactory)
    provider_id = factory.SelfAttribute("plan.provider_id")
    client_id = factory.LazyFunction(lambda: AccountFactory().id)
    plan_instance_id = factory.Sequence(lambda n: f"instance-{n}")
    status = "active"
    total_sessions = 3
    sessions_remaining = 3
    start_date = date(2030, 1, 1)
    expiry_date = date(2030, 1, 31)
    auto_renewal = True


class BookingFactory(SQLAlchemyModelFactory):
    class Meta:
        model = Booking
        sqlalchemy_session = TestSession
        sqlalchemy_session_persistence = "commit"

    client = factory.SubFactory(AccountFactory)
    provider = factory.SubFactory(ProviderFactory)
    session_date = MONDAY
    start_minute = 10 * 60
    end_minute = factory.LazyAttribute(lambda o: o.start_minute + o.duration)
    duration = 60
    consultation_method = "video"
    session_type = "one-on-one"
    price = 60.0
    status = "confirmed"


# ============================================================================
# COLLABORATOR DOUBLES
# ============================================================================


class RecordingNotifier(NotificationDispatcher):
    """Keeps every delivered event; can be told to fail"""

    def __init__(self):
        self.events = []
        self.fail = False

    def deliver(self, recipient_id, event_type, payload):
        if self.fail:
            raise RuntimeError("delivery service down")
        self.events.append((recipient_id, event_type, payload))

    def of_type(self, event_type):
        return [e for e in self.events if e[1] == event_type]


class FixedClock:
    def __init__(self, current: datetime):
        self.current = current

    def __call__(self) -> datetime:
        return self.current


class FakeTokenProvider(RealtimeTokenProvider):
    def __init__(self):
        self.calls = []
        self.fail = False

    async def mint_join_token(self, channel_name, participant_id, role, ttl_seconds):
        if self.fail:
            raise RealtimeTokenError("Failed to mint join token")
        self.calls.append((channel_name, participant_id, role, ttl_seconds))
        return {"token": f"token-{channel_name}-{participant_id}", "uid": participant_id}


def week(**open_days):
    """A Sunday→Saturday week; e.g. ``week(Monday=[("09:00", "12:00")])``"""
    return [
        {
            "day": name,
            "isOpen": bool(open_days.get(name)),
            "timeRanges": [
                {"startTime": start, "endTime": end} for start, end in open_days.get(name, [])
            ],
        }
        for name in DAY_NAMES
    ]


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestSession()
    try:
        yield session
    finally:
        TestSession.remove()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return FixedClock(datetime(2030, 1, 1, 8, 0))


@pytest.fixture
def token_provider():
    return FakeTokenProvider()


@pytest.fixture
def client_account(db):
    return AccountFactory()


@pytest.fixture
def provider(db):
    """Provider open Monday 09:00-12:00 and 14:00-17:00"""
    account = ProviderFactory()
    AvailabilityStore(db).set_windows(
        account.id, week(Monday=[("09:00", "12:00"), ("14:00", "17:00")])
    )
    return account


class AuthState:
    def __init__(self):
        self.account = None

    def login(self, account):
        self.account = account


@pytest.fixture
def auth():
    return AuthState()


@pytest.fixture
def api(db, notifier, clock, token_provider, auth):
    """TestClient with every external dependency replaced"""

    def override_get_db():
        yield db

    def override_current_account():
        if auth.account is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return auth.account

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_account] = override_current_account
    app.dependency_overrides[get_notification_dispatcher] = lambda: notifier
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_realtime_token_provider] = lambda: token_provider
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
