"""Session token utilities (JWT)."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from apps.api.config import get_settings

# =============================================================================
# JWT Session Tokens
# =============================================================================


def create_access_token(
    external_id: int,
    username: str,
    name: str,
    access: list[str] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a session token as issued by the SSO gateway."""
    settings = get_settings()
    now = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expiration_minutes)

    payload = {
        "id": external_id,
        "username": username,
        "name": name,
        "access": access or [],
        "iss": settings.jwt_issuer,
        "iat": now,
        "exp": now + expires_delta,
        "jti": secrets.token_hex(16),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a session token.

    Returns:
        Token payload dict if valid, None if invalid/expired.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
