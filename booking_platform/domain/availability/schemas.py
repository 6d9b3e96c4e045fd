"""Availability domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel


class TimeRangeSchema(BaseModel):
    startTime: str
    endTime: str


class DayWindowSchema(BaseModel):
    """One day of the weekly schedule"""

    day: str
    isOpen: bool = False
    timeRanges: list[TimeRangeSchema] = []


class AvailabilityUpdate(BaseModel):
    """Schema for replacing the whole week (Sunday through Saturday)"""

    availability: list[DayWindowSchema]


class AvailabilityResponse(BaseModel):
    availability: list[DayWindowSchema]


class SlotsResponse(BaseModel):
    availableSlots: list[str]
    date: str
    dayOfWeek: str
    message: Optional[str] = None
