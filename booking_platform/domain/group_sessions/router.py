"""Group session router"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_provider
from ...database import get_db
from ...models import Account
from ...services.notification_service import NotificationDispatcher, get_request_notifier
from ...shared.exceptions import AuthorizationError
from .schemas import GroupSessionCreate, GroupSessionResponse
from .service import GroupSessionFanout

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Group Sessions"])


def get_group_session_fanout(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_request_notifier),
) -> GroupSessionFanout:
    """Dependency injection for GroupSessionFanout"""
    return GroupSessionFanout(db, notifier)


@router.post("/{provider_id}/group-sessions", response_model=GroupSessionResponse, status_code=201)
async def create_group_session(
    provider_id: int,
    data: GroupSessionCreate,
    current_provider: Account = Depends(get_current_provider),
    fanout: GroupSessionFanout = Depends(get_group_session_fanout),
):
    """Schedule a group session for every active subscriber of a monthly plan"""
    if provider_id != current_provider.id:
        raise AuthorizationError("You can only schedule group sessions for your own plans")

    result = fanout.schedule(
        provider_id=provider_id,
        plan_id=data.planId,
        session_date=data.sessionDate,
        start_time=data.startTime,
        duration=data.duration,
        consultation_method=data.consultationMethod,
        notes=data.notes,
    )
    return GroupSessionResponse(groupSessionId=result.group_session_id, appointmentsCreated=result.count)
