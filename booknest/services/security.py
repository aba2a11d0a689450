"""
Security Service

JWT session tokens for members who signed in through Google or GitHub.

Token Pair:
===========
1. Access token: short-lived, sent as "Authorization: Bearer <token>"
2. Refresh token: long-lived, exchanged at /auth/refresh for a new pair

Both carry the member id in "sub" and their kind in "type", so a refresh
token can never be used as an access token and vice versa.

Usage:
    from booknest.services.security import create_access_token, verify_token_type

    token = create_access_token({"sub": str(user.id)})
    payload = verify_token_type(token, "access")
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from booknest.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

ALGORITHM = "HS256"
ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def _encode(data: dict, token_type: str, lifetime: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(UTC) + lifetime, "type": token_type})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode in the token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token({"sub": "1"})
        >>> token.count(".") == 2  # header.payload.signature
        True
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(data, ACCESS_TOKEN, lifetime)


def create_refresh_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT refresh token (longer-lived than the access token)."""
    lifetime = expires_delta or timedelta(days=settings.refresh_token_expire_days)
    return _encode(data, REFRESH_TOKEN, lifetime)


def create_token_pair(user_id: int) -> dict[str, str]:
    """Access and refresh token for one member."""
    data = {"sub": str(user_id)}
    return {
        "access_token": create_access_token(data),
        "refresh_token": create_refresh_token(data),
    }


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def verify_token_type(token: str, expected_type: str) -> dict | None:
    """
    Decode a token and verify its type.

    Args:
        token: The JWT token string
        expected_type: "access" or "refresh"

    Returns:
        Decoded payload if valid and of the expected type, None otherwise
    """
    payload = decode_token(token)

    if payload is None:
        return None

    if payload.get("type") != expected_type:
        logger.warning(f"Token type mismatch: expected {expected_type}")
        return None

    return payload
