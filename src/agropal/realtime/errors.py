"""Exceptions raised by the realtime layer."""

from __future__ import annotations


class AuthenticationError(Exception):
    """Raised when a connection handshake presents an unusable credential.

    ``reason`` is a short machine readable code (``missing_token``,
    ``token_expired``, ``invalid_token``, ``user_not_found``,
    ``inactive_user``, ``lookup_failed``, ``timeout``).
    """

    def __init__(self, reason: str, message: str = "Authentication error") -> None:
        super().__init__(message)
        self.reason = reason
