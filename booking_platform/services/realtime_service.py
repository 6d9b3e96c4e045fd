"""
Realtime Session Token Provider

Mints join tokens for live video/audio sessions through the external
real-time communication service. Only called after the access window check.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from ..config import REALTIME_API_KEY, REALTIME_TOKEN_URL

logger = logging.getLogger(__name__)


class RealtimeTokenError(Exception):
    """Token minting failed or is not configured"""


class RealtimeTokenProvider(ABC):
    """Interface every token provider implements"""

    @abstractmethod
    async def mint_join_token(
        self, channel_name: str, participant_id: int, role: str, ttl_seconds: int
    ) -> dict[str, Any]:
        """
        Mint a token for one participant.

        Returns:
            dict: {"token": str, "uid": int | str}

        Raises:
            RealtimeTokenError: if the provider rejects the request
        """


class HttpRealtimeTokenProvider(RealtimeTokenProvider):
    def __init__(self, url: str, api_key: Optional[str] = None, timeout: float = 10.0):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    async def mint_join_token(
        self, channel_name: str, participant_id: int, role: str, ttl_seconds: int
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        body = {
            "channelName": channel_name,
            "participantId": str(participant_id),
            "role": role,
            "ttlSeconds": ttl_seconds,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"❌ Realtime token request failed for channel {channel_name}: {e}")
            raise RealtimeTokenError("Realtime service unavailable") from e

        if response.status_code != 200:
            logger.error(f"❌ Realtime token request rejected: HTTP {response.status_code}")
            raise RealtimeTokenError("Failed to mint join token")

        data = response.json()
        if not data.get("token"):
            raise RealtimeTokenError("Realtime service returned no token")
        return {"token": data["token"], "uid": data.get("uid", participant_id)}


def get_realtime_token_provider() -> Optional[RealtimeTokenProvider]:
    """Dependency injection for the token provider; None when not configured"""
    if not REALTIME_TOKEN_URL:
        return None
    return HttpRealtimeTokenProvider(REALTIME_TOKEN_URL, REALTIME_API_KEY)
