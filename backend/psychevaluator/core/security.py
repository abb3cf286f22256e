"""
Security utilities for admin password checks and admin session tokens.

An admin session is a signed JWT of type "admin" carrying the admin
username, an expiry, and a JTI so that logout can revoke it server-side.
"""
from datetime import datetime, timedelta
import secrets
import uuid

from psychevaluator.core.datetime_utils import utc_now
from typing import Optional, Dict, Any, Tuple
import bcrypt
from jose import JWTError, jwt
from psychevaluator.core.config import settings

ADMIN_TOKEN_TYPE = "admin"


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Returns False for an empty or malformed hash instead of raising.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        return False


def authenticate_admin(username: str, password: str) -> bool:
    """
    Check admin credentials against ADMIN_USERNAME and ADMIN_PASSWORD_HASH.

    The password hash is always checked, even when the username does not
    match, so response time does not reveal which half was wrong.
    """
    username_ok = secrets.compare_digest(
        username.encode("utf-8"), settings.ADMIN_USERNAME.encode("utf-8")
    )
    password_ok = verify_password(password, settings.ADMIN_PASSWORD_HASH)
    return username_ok and password_ok


def create_admin_token(
    username: str, expires_delta: Optional[timedelta] = None
) -> Tuple[str, datetime]:
    """
    Create a signed admin session token.

    Args:
        username: Admin identity to embed as the subject
        expires_delta: Optional custom lifetime; defaults to
            ADMIN_SESSION_EXPIRE_MINUTES

    Returns:
        Tuple of (encoded token, expiry datetime)
    """
    now = utc_now()
    expire = now + (
        expires_delta or timedelta(minutes=settings.ADMIN_SESSION_EXPIRE_MINUTES)
    )
    to_encode = {
        "sub": username,
        "exp": expire,
        "iat": now,
        "type": ADMIN_TOKEN_TYPE,
        "jti": str(uuid.uuid4()),
    }
    token = jwt.encode(
        to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )
    return token, expire


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload if valid and unexpired, None otherwise
    """
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None


def verify_token_type(payload: Dict[str, Any], expected_type: str) -> bool:
    """Verify that a token payload has the expected type."""
    return payload.get("type") == expected_type
