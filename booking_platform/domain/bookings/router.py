"""Booking router - FastAPI endpoints for booking operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_account, get_current_provider
from ...database import get_db
from ...models import Account
from ...services.notification_service import NotificationDispatcher, get_request_notifier
from ...services.realtime_service import RealtimeTokenProvider, get_realtime_token_provider
from ...shared.clock import Clock, get_clock
from .access import JoinTokenService
from .reschedule import RescheduleService
from .schemas import (
    BookingCreate,
    BookingEnvelope,
    BookingListResponse,
    JoinTokenResponse,
    RescheduleRequest,
    StatusUpdate,
    paginate,
    serialize_booking,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_request_notifier),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, notifier)


def get_reschedule_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_request_notifier),
    clock: Clock = Depends(get_clock),
) -> RescheduleService:
    return RescheduleService(db, notifier, clock)


def get_join_token_service(
    db: Session = Depends(get_db),
    token_provider: Optional[RealtimeTokenProvider] = Depends(get_realtime_token_provider),
    clock: Clock = Depends(get_clock),
) -> JoinTokenService:
    return JoinTokenService(db, token_provider, clock)


# ============================================================================
# CORE OPERATIONS
# ============================================================================


@router.post("", response_model=BookingEnvelope, status_code=201)
async def create_booking(
    data: BookingCreate,
    current_account: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    """Book a session with a provider; the booking starts out pending"""
    booking = service.create(
        provider_id=data.providerId,
        client_id=current_account.id,
        session_date=data.sessionDate,
        start_time=data.startTime,
        duration=data.duration,
        consultation_method=data.consultationMethod,
        session_type=data.sessionType,
        notes=data.notes,
    )
    return BookingEnvelope(booking=serialize_booking(booking))


@router.get("/client", response_model=BookingListResponse)
async def get_client_bookings(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_account: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings the current account made as a client"""
    bookings, total = service.list_for_client(current_account.id, status, page, limit)
    return paginate(bookings, total, page, limit)


@router.get("/provider", response_model=BookingListResponse)
async def get_provider_bookings(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_provider: Account = Depends(get_current_provider),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings on the current provider's calendar"""
    bookings, total = service.list_for_provider(current_provider.id, status, page, limit)
    return paginate(bookings, total, page, limit)


@router.get("/{booking_id}", response_model=BookingEnvelope)
async def get_booking(
    booking_id: int,
    current_account: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_id, current_account.id)
    return BookingEnvelope(booking=serialize_booking(booking))


@router.patch("/{booking_id}/status", response_model=BookingEnvelope)
async def update_booking_status(
    booking_id: int,
    data: StatusUpdate,
    current_account: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm, reject, complete or cancel a booking"""
    booking = service.update_status(
        booking_id, current_account.id, data.status, data.cancellationReason
    )
    return BookingEnvelope(booking=serialize_booking(booking))


@router.patch("/{booking_id}/reschedule", response_model=BookingEnvelope)
async def reschedule_booking(
    booking_id: int,
    data: RescheduleRequest,
    current_account: Account = Depends(get_current_account),
    service: RescheduleService = Depends(get_reschedule_service),
):
    """Move a booking to a new date/time (client only)"""
    booking = service.reschedule(
        booking_id, current_account.id, data.sessionDate, data.startTime, data.duration
    )
    return BookingEnvelope(booking=serialize_booking(booking))


# ============================================================================
# LIVE SESSION ACCESS
# ============================================================================


@router.get("/{booking_id}/join-token", response_model=JoinTokenResponse)
async def get_join_token(
    booking_id: int,
    current_account: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
    tokens: JoinTokenService = Depends(get_join_token_service),
):
    """Join token for the booking's live session, only inside the join window"""
    booking = service.get_booking(booking_id, current_account.id)
    return await tokens.issue(booking, current_account.id)
