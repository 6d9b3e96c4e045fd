"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel

from ...models import Booking
from ...shared.validators import format_time


class BookingCreate(BaseModel):
    """Schema for requesting a new booking"""

    providerId: int
    sessionDate: str
    startTime: str
    duration: int
    consultationMethod: str
    sessionType: str = "one-on-one"
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str
    cancellationReason: Optional[str] = None


class RescheduleRequest(BaseModel):
    sessionDate: str
    startTime: str
    duration: int


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: int
    clientId: int
    providerId: int
    sessionDate: date
    startTime: str
    endTime: str
    duration: int
    consultationMethod: str
    sessionType: str
    price: float
    notes: Optional[str] = None
    status: str
    cancelledBy: Optional[str] = None
    cancellationReason: Optional[str] = None
    groupSessionId: Optional[str] = None
    channelName: Optional[str] = None
    planId: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingEnvelope(BaseModel):
    booking: BookingResponse


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    pagination: Pagination


class JoinTokenResponse(BaseModel):
    channelName: str
    token: str
    uid: Union[int, str]
    role: str
    expiresAt: datetime


def serialize_booking(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        clientId=booking.client_id,
        providerId=booking.provider_id,
        sessionDate=booking.session_date,
        startTime=format_time(booking.start_minute),
        endTime=format_time(booking.end_minute),
        duration=booking.duration,
        consultationMethod=booking.consultation_method,
        sessionType=booking.session_type,
        price=booking.price or 0,
        notes=booking.notes,
        status=booking.status,
        cancelledBy=booking.cancelled_by,
        cancellationReason=booking.cancellation_reason,
        groupSessionId=booking.group_session_id,
        channelName=booking.channel_name,
        planId=booking.plan_id,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


def paginate(bookings: list[Booking], total: int, page: int, limit: int) -> BookingListResponse:
    return BookingListResponse(
        bookings=[serialize_booking(b) for b in bookings],
        pagination=Pagination(page=page, limit=limit, total=total, pages=(total + limit - 1) // limit),
    )
