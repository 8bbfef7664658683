"""
Security utilities for the Second Brain API.

This module provides password hashing (bcrypt), bearer token signing and
verification (JWT via python-jose), share-token generation, and record id
generation.
"""

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from second_brain.config import settings
from second_brain.exceptions import AuthenticationError
from second_brain.managers.logging_manager import get_logger

logger = get_logger(prefix="[Security]")

SHARE_TOKEN_BYTES = 32  # 256 bits, hex-encoded to 64 characters
BCRYPT_MAX_BYTES = 72


def new_id(prefix: str) -> str:
    """Return a prefixed random id such as `brn_3f9a0c1d2e4b`."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def generate_share_token() -> str:
    return secrets.token_hex(SHARE_TOKEN_BYTES)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    """Check a plain-text password against a bcrypt hash; a missing hash never matches."""
    encoded = password.encode("utf-8")
    if not hashed_password or len(encoded) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a bearer token carrying the user id in the `sub` claim.

    Args:
        user_id (str): The authenticated user's id.
        expires_delta (Optional[timedelta]): Lifetime; defaults to `ACCESS_TOKEN_EXPIRE_MINUTES`.

    Returns:
        str: The encoded JWT.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload: Dict[str, Any] = {"sub": user_id, "iat": now, "exp": expire, "type": "access"}
    return jwt.encode(payload, settings.SECRET_KEY.get_secret_value(), algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Verify a bearer token and return the user id it carries.

    Raises:
        AuthenticationError: If the token is malformed, badly signed, expired, or has no subject.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY.get_secret_value(), algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except JWTError as e:
        logger.debug("Rejected bearer token: %s", e)
        raise AuthenticationError("Invalid authentication token")

    user_id = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise AuthenticationError("Invalid authentication token")
    return user_id
