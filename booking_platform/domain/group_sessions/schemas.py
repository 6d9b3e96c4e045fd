"""Group session schemas"""

from typing import Optional

from pydantic import BaseModel


class GroupSessionCreate(BaseModel):
    planId: int
    sessionDate: str
    startTime: str
    duration: int
    consultationMethod: str
    notes: Optional[str] = None


class GroupSessionResponse(BaseModel):
    groupSessionId: str
    appointmentsCreated: int
