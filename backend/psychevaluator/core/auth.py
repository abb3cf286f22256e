"""
FastAPI authentication dependencies for the admin session.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from psychevaluator.models import get_db, RevokedAdminToken
from .security import ADMIN_TOKEN_TYPE, decode_token, verify_token_type
from .error_responses import ErrorMessages, raise_unauthorized

# HTTP Bearer token scheme
security = HTTPBearer()
# HTTP Bearer token scheme that doesn't fail on missing auth
security_optional = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminSession:
    """An authenticated admin session decoded from a bearer token."""

    username: str
    jti: str
    expires_at: datetime


async def _resolve_admin_session(token: str, db: AsyncSession) -> AdminSession:
    """
    Decode an admin token and check it has not been revoked.

    Raises:
        HTTPException: 401 if the token is invalid, expired, of the wrong
            type, or revoked by logout
    """
    payload = decode_token(token)
    if payload is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    if not verify_token_type(payload, ADMIN_TOKEN_TYPE):
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_TYPE)

    username = payload.get("sub")
    jti = payload.get("jti")
    exp = payload.get("exp")
    if not username or not jti or exp is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    revoked = await db.scalar(
        select(RevokedAdminToken.jti).where(RevokedAdminToken.jti == jti)
    )
    if revoked is not None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    return AdminSession(
        username=username,
        jti=jti,
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
    )


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> AdminSession:
    """
    Get the current admin session from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or revoked
    """
    return await _resolve_admin_session(credentials.credentials, db)


async def get_current_admin_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
    db: AsyncSession = Depends(get_db),
) -> Optional[AdminSession]:
    """
    Get the admin session if a valid admin token is provided.

    Used by respondent endpoints that must refuse an authenticated admin.
    Returns None when no token is present or the token is not a valid
    admin session.
    """
    if credentials is None:
        return None

    payload = decode_token(credentials.credentials)
    if payload is None or not verify_token_type(payload, ADMIN_TOKEN_TYPE):
        return None
    revoked = await db.scalar(
        select(RevokedAdminToken.jti).where(RevokedAdminToken.jti == payload.get("jti"))
    )
    if revoked is not None or not payload.get("sub"):
        return None
    return AdminSession(
        username=payload["sub"],
        jti=payload.get("jti", ""),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
