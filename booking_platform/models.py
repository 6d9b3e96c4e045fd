from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

ROLE_CLIENT = "client"
ROLE_PROVIDER = "provider"

CONSULTATION_METHODS = ("video", "audio", "chat", "in-person")
LIVE_CONSULTATION_METHODS = ("video", "audio")
SESSION_TYPES = ("one-on-one", "one-to-many")

BOOKING_STATUSES = ("pending", "confirmed", "completed", "cancelled", "rejected")
# Bookings in these states occupy the provider's calendar
ACTIVE_BOOKING_STATUSES = ("pending", "confirmed")

PLAN_TYPES = ("single", "monthly")
SUBSCRIPTION_STATUSES = ("active", "expired", "cancelled")


class Account(Base):
    """A client or provider. Providers carry the scheduling profile fields."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    external_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_CLIENT, index=True)  # client, provider
    is_active = Column(Boolean, default=True, nullable=False)

    # Provider profile (unused for clients)
    hourly_rate = Column(Float, nullable=True)
    consultation_methods = Column(JSON, default=list, nullable=True)  # empty = no restriction
    session_types = Column(JSON, default=list, nullable=True)  # empty = no restriction

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    availability = relationship(
        "AvailabilityWindow", back_populates="provider", uselist=False
    )
    plans = relationship("Plan", back_populates="provider")

    @property
    def is_provider(self) -> bool:
        return self.role == ROLE_PROVIDER


class AvailabilityWindow(Base):
    """Recurring weekly schedule, one row per provider, always replaced wholesale"""

    __tablename__ = "availability_windows"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("accounts.id"), unique=True, nullable=False)
    # Exactly 7 entries, Sunday through Saturday:
    # {"day": "Monday", "isOpen": true, "timeRanges": [{"startTime": "09:00", "endTime": "12:00"}]}
    days = Column(JSON, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Account", back_populates="availability")


class Plan(Base):
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False)  # single, monthly
    session_format = Column(String(20), nullable=True)  # one-on-one, one-to-many
    price = Column(Float, nullable=False, default=0)
    duration = Column(Integer, nullable=True)  # minutes
    # Monthly subscriptions
    classes_per_month = Column(Integer, nullable=True)
    monthly_price = Column(Float, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Account", back_populates="plans")


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=False, index=True)
    plan_instance_id = Column(String(64), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    total_sessions = Column(Integer, nullable=False, default=1)
    sessions_remaining = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=False)
    auto_renewal = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    plan = relationship("Plan")


class Booking(Base):
    """One reserved session between a client and a provider.

    Times are minutes from midnight on ``session_date``; ``end_minute`` is always
    ``start_minute + duration``. Rows are never deleted, only moved between statuses.
    """

    __tablename__ = "bookings"
    __table_args__ = (Index("ix_bookings_provider_date", "provider_id", "session_date"),)

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)

    session_date = Column(Date, nullable=False)
    start_minute = Column(Integer, nullable=False)
    end_minute = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)

    consultation_method = Column(String(20), nullable=False)
    session_type = Column(String(20), nullable=False)
    price = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True)

    # Status workflow: pending → confirmed → completed, with cancelled/rejected as exits
    status = Column(String(20), nullable=False, default="pending", index=True)
    cancelled_by = Column(String(20), nullable=True)  # client, provider
    cancellation_reason = Column(String(500), nullable=True)

    # Group sessions share one id and one live-session channel
    group_session_id = Column(String(64), nullable=True, index=True)
    channel_name = Column(String(128), nullable=True, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=True)
    plan_instance_id = Column(String(64), nullable=True)

    # Reminder sweep markers
    client_reminder_sent_at = Column(DateTime, nullable=True)
    provider_reminder_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Account", foreign_keys=[client_id])
    provider = relationship("Account", foreign_keys=[provider_id])
