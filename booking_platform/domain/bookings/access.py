"""
Live session access

AccessWindowPolicy decides whether a confirmed booking may join its live session
right now; JoinTokenService gates token minting on that decision.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...config import JOIN_TOKEN_TTL_SECONDS, JOIN_WINDOW_MINUTES
from ...models import LIVE_CONSULTATION_METHODS, Booking
from ...services.realtime_service import RealtimeTokenError, RealtimeTokenProvider
from ...shared.clock import Clock, now
from ...shared.exceptions import ServiceUnavailableError, ValidationError

logger = logging.getLogger(__name__)


class AccessWindowPolicy:
    """Join is allowed from ``join_window_minutes`` before the start until the end"""

    def __init__(self, join_window_minutes: int = JOIN_WINDOW_MINUTES):
        self.join_window_minutes = join_window_minutes

    @staticmethod
    def session_bounds(booking: Booking) -> tuple[datetime, datetime]:
        midnight = datetime.combine(booking.session_date, datetime.min.time())
        return (
            midnight + timedelta(minutes=booking.start_minute),
            midnight + timedelta(minutes=booking.end_minute),
        )

    def opens_at(self, booking: Booking) -> datetime:
        start, _ = self.session_bounds(booking)
        return start - timedelta(minutes=self.join_window_minutes)

    def explain(self, booking: Booking, current: datetime) -> Optional[str]:
        """Reason access is denied, or None when the booking may join now"""
        if booking.status != "confirmed":
            return f"Cannot join a {booking.status} session"

        start, end = self.session_bounds(booking)
        if current < self.opens_at(booking):
            return (
                f"Session has not started yet. You can join {self.join_window_minutes} "
                f"minutes before {start:%Y-%m-%d %H:%M}"
            )
        if current > end:
            return "Session has already ended"
        return None

    def can_join_now(self, booking: Booking, current: datetime) -> bool:
        return self.explain(booking, current) is None


class JoinTokenService:
    """Issues live-session join tokens to booking participants"""

    def __init__(
        self,
        db: Session,
        token_provider: Optional[RealtimeTokenProvider],
        clock: Clock = now,
        policy: AccessWindowPolicy = None,
        ttl_seconds: int = JOIN_TOKEN_TTL_SECONDS,
    ):
        self.db = db
        self.token_provider = token_provider
        self.clock = clock
        self.policy = policy or AccessWindowPolicy()
        self.ttl_seconds = ttl_seconds

    async def issue(self, booking: Booking, requester_id: int) -> dict[str, Any]:
        """
        Mint a join token for one participant of ``booking``.

        The caller must already have checked that the requester participates.
        The provider joins as ``publisher``; clients join as ``subscriber`` on
        one-to-many sessions and ``publisher`` otherwise.
        """
        if booking.consultation_method not in LIVE_CONSULTATION_METHODS:
            raise ValidationError("This booking does not have a live video or audio session")

        current = self.clock()
        reason = self.policy.explain(booking, current)
        if reason:
            raise ValidationError(reason)

        if self.token_provider is None:
            raise ServiceUnavailableError("Live sessions are not configured")

        if not booking.channel_name:
            booking.channel_name = f"booking_{booking.id}"
            self.db.commit()

        is_provider = booking.provider_id == requester_id
        role = "publisher" if is_provider or booking.session_type != "one-to-many" else "subscriber"

        try:
            minted = await self.token_provider.mint_join_token(
                booking.channel_name, requester_id, role, self.ttl_seconds
            )
        except RealtimeTokenError as e:
            raise ServiceUnavailableError(str(e)) from e

        logger.info(f"🎥 Join token issued for booking {booking.id} ({role}, account {requester_id})")
        return {
            "channelName": booking.channel_name,
            "token": minted["token"],
            "uid": minted["uid"],
            "role": role,
            "expiresAt": current + timedelta(seconds=self.ttl_seconds),
        }
