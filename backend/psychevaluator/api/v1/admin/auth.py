"""
Admin session endpoints: login, logout, and the current session.
"""
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from psychevaluator.core.auth import AdminSession, get_current_admin
from psychevaluator.core.config import settings
from psychevaluator.core.datetime_utils import utc_now
from psychevaluator.core.db_error_handling import handle_db_error
from psychevaluator.core.error_responses import (
    ErrorMessages,
    raise_service_unavailable,
    raise_unauthorized,
)
from psychevaluator.core.security import authenticate_admin, create_admin_token
from psychevaluator.models import RevokedAdminToken, get_db
from psychevaluator.schemas import AdminLoginRequest, AdminMeResponse, AdminTokenResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=AdminTokenResponse)
async def login(credentials: AdminLoginRequest):
    """
    Exchange admin credentials for a signed, expiring session token.

    Raises:
        HTTPException: 503 if no admin password is configured, 401 if the
            credentials are wrong
    """
    if not settings.ADMIN_PASSWORD_HASH:
        raise_service_unavailable(ErrorMessages.ADMIN_LOGIN_NOT_CONFIGURED)

    if not authenticate_admin(credentials.username, credentials.password):
        logger.warning(
            "Failed admin login attempt",
            extra={"user_identifier": credentials.username},
        )
        raise_unauthorized(ErrorMessages.INVALID_CREDENTIALS)

    token, expires_at = create_admin_token(credentials.username)
    logger.info("Admin logged in", extra={"user_identifier": credentials.username})
    return AdminTokenResponse(access_token=token, expires_at=expires_at)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    admin: AdminSession = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Revoke the current admin session token.

    Revocations whose tokens have expired anyway are purged at the same time.
    """
    async with handle_db_error(db, "log out"):
        await db.execute(
            delete(RevokedAdminToken).where(RevokedAdminToken.expires_at < utc_now())
        )
        db.add(RevokedAdminToken(jti=admin.jti, expires_at=admin.expires_at))
        await db.commit()
        logger.info("Admin logged out", extra={"user_identifier": admin.username})
        return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=AdminMeResponse)
async def me(admin: AdminSession = Depends(get_current_admin)):
    """Return the current admin session."""
    return AdminMeResponse(username=admin.username, expires_at=admin.expires_at)
