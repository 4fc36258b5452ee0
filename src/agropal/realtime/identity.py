"""Handshake credential verification for realtime connections."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from app.core.security import TokenValidationError, decode_access_token, token_subject
from app.monitoring.metrics import realtime_handshake_rejections_total

from .errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Identity:
    user_id: str
    email: str | None = None


class IdentityVerifier:
    """Turns a bearer token into an :class:`Identity` or raises.

    Verification fails closed: a credential that cannot be checked (lookup
    error, timeout) is treated the same as an invalid one.
    """

    def __init__(
        self,
        user_store,
        *,
        secret: str,
        algorithm: str = "HS256",
        timeout_seconds: float = 5.0,
    ) -> None:
        self.users = user_store
        self._secret = secret
        self._algorithm = algorithm
        self._timeout = timeout_seconds

    @staticmethod
    def extract_token(query_params: Mapping[str, str], headers: Mapping[str, str]) -> str | None:
        token = query_params.get("token")
        if token:
            return token
        auth_header = headers.get("authorization")
        if auth_header and auth_header.lower().startswith("bearer "):
            return auth_header.split(" ", 1)[1].strip() or None
        return None

    async def verify(self, token: str | None) -> Identity:
        try:
            return await self.resolve(token)
        except AuthenticationError as exc:
            realtime_handshake_rejections_total.labels(exc.reason).inc()
            raise

    async def resolve(self, token: str | None) -> Identity:
        """Verify *token* without recording a handshake rejection."""

        if not token:
            raise AuthenticationError("missing_token")

        try:
            payload = decode_access_token(token, secret=self._secret, algorithm=self._algorithm)
        except TokenValidationError as exc:
            raise AuthenticationError("token_expired" if exc.expired else "invalid_token") from exc

        user_id = token_subject(payload)
        if user_id is None:
            raise AuthenticationError("invalid_token")

        user = await self._lookup(user_id)
        if user is None:
            raise AuthenticationError("user_not_found")
        if not user.get("is_active", True):
            raise AuthenticationError("inactive_user")

        return Identity(user_id=str(user.get("user_id", user_id)), email=user.get("email"))

    async def _lookup(self, user_id: str) -> dict[str, Any] | None:
        try:
            return await asyncio.wait_for(self.users.find_by_id(user_id), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("User lookup for %s timed out after %ss", user_id, self._timeout)
            raise AuthenticationError("timeout") from exc
        except Exception as exc:
            logger.warning("User lookup for %s failed: %s", user_id, exc)
            raise AuthenticationError("lookup_failed") from exc
