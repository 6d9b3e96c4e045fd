"""Availability router - Weekly schedules and free slots"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ...auth import get_current_provider
from ...database import get_db
from ...models import Account
from ...shared.exceptions import NotFoundError
from ...shared.validators import parse_date
from ..accounts.repository import AccountRepository
from ..scheduling.slots import SlotGenerator
from .schemas import AvailabilityResponse, AvailabilityUpdate, SlotsResponse
from .service import AvailabilityStore, weekday_name

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Availability"])


def get_availability_store(db: Session = Depends(get_db)) -> AvailabilityStore:
    """Dependency injection for AvailabilityStore"""
    return AvailabilityStore(db)


def get_slot_generator(
    db: Session = Depends(get_db),
    store: AvailabilityStore = Depends(get_availability_store),
) -> SlotGenerator:
    """Dependency injection for SlotGenerator"""
    return SlotGenerator(db, store)


@router.get("/availability/{provider_id}", response_model=SlotsResponse, response_model_exclude_none=True)
async def get_available_slots(
    provider_id: int,
    date: str = Query(..., description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
    slots: SlotGenerator = Depends(get_slot_generator),
):
    """Free start times for a provider on one date (public)"""
    on_date = parse_date(date)
    if AccountRepository.get_provider(db, provider_id) is None:
        raise NotFoundError("Provider not found")

    day = slots.availability.get_day(provider_id, on_date)
    if not day.bookable:
        return SlotsResponse(
            availableSlots=[],
            date=on_date.isoformat(),
            dayOfWeek=weekday_name(on_date),
            message=f"Provider is not available on {day.day}",
        )

    return SlotsResponse(
        availableSlots=slots.generate_slots(provider_id, on_date),
        date=on_date.isoformat(),
        dayOfWeek=weekday_name(on_date),
    )


@router.get("/providers/me/availability", response_model=AvailabilityResponse)
async def get_my_availability(
    current_provider: Account = Depends(get_current_provider),
    store: AvailabilityStore = Depends(get_availability_store),
):
    """The current provider's weekly schedule"""
    week = store.get_windows(current_provider.id)
    return {"availability": [day.to_dict() for day in week]}


@router.put("/providers/me/availability", response_model=AvailabilityResponse)
async def update_my_availability(
    data: AvailabilityUpdate,
    current_provider: Account = Depends(get_current_provider),
    store: AvailabilityStore = Depends(get_availability_store),
):
    """Replace the current provider's weekly schedule"""
    week = store.set_windows(current_provider.id, jsonable_encoder(data.availability))
    return {"availability": [day.to_dict() for day in week]}
