"""Core utilities for the Agropal backend."""

from .security import TokenValidationError, create_access_token, decode_access_token, token_subject

__all__ = ["TokenValidationError", "create_access_token", "decode_access_token", "token_subject"]
