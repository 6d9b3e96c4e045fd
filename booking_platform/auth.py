import logging
from typing import Optional

import httpx
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import IDENTITY_VERIFY_URL
from .database import get_db
from .domain.accounts.repository import AccountRepository
from .models import Account

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def verify_identity_token(token: str) -> dict:
    """
    Verify a bearer token with the external identity service.

    The service answers ``200 {"uid": ..., "email": ...}`` for valid tokens.
    """
    if not IDENTITY_VERIFY_URL:
        logger.error("❌ IDENTITY_VERIFY_URL not configured")
        raise HTTPException(status_code=500, detail="Identity verification not configured")

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(IDENTITY_VERIFY_URL, json={"token": token})
    except httpx.HTTPError as e:
        logger.error(f"❌ Identity service unreachable: {str(e)}")
        raise HTTPException(status_code=503, detail="Identity service unavailable") from e

    if response.status_code in (401, 403):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if response.status_code != 200:
        logger.error(f"❌ Identity service returned HTTP {response.status_code}")
        raise HTTPException(status_code=401, detail="Token verification failed")

    claims = response.json()
    logger.debug(f"✅ Token verified for {claims.get('email')}")
    return claims


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Account:
    """Resolve the bearer token to an active account"""

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    claims = await verify_identity_token(credentials.credentials)

    external_uid: Optional[str] = claims.get("uid") or claims.get("sub")
    if not external_uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    account = AccountRepository.get_by_external_uid(db, external_uid)
    if not account:
        logger.warning(f"⚠️ No active account for uid {external_uid}")
        raise HTTPException(status_code=401, detail="Account not found")

    return account


async def get_current_provider(account: Account = Depends(get_current_account)) -> Account:
    if not account.is_provider:
        raise HTTPException(status_code=403, detail="Only providers can perform this action")
    return account
