"""Helpers for signing and validating access tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from app.config import get_settings

settings = get_settings()


class TokenValidationError(Exception):
    """Raised when an access token cannot be decoded or has expired."""

    def __init__(self, detail: str, *, expired: bool = False) -> None:
        super().__init__(detail)
        self.detail = detail
        self.expired = expired


def create_access_token(data: Dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a signed JWT access token with an expiration time."""

    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta is not None else timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(
    token: str,
    *,
    secret: str | None = None,
    algorithm: str | None = None,
) -> Dict[str, Any]:
    """Decode and validate a JWT access token."""

    try:
        return jwt.decode(
            token,
            secret or settings.jwt_secret_key,
            algorithms=[algorithm or settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenValidationError("Token has expired", expired=True) from exc
    except jwt.InvalidTokenError as exc:
        raise TokenValidationError("Could not validate credentials") from exc


def token_subject(payload: Dict[str, Any]) -> str | None:
    """Return the user id carried by a decoded token.

    Tokens minted by the legacy Node API carry the id in ``id`` rather than
    the standard ``sub`` claim.
    """

    subject = payload.get("sub") or payload.get("id")
    if subject is None:
        return None
    subject = str(subject).strip()
    return subject or None
