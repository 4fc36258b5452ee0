"""Tracks which users currently hold a live connection."""

from __future__ import annotations

import logging

from .connection import Connection

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """Maps a user id to the single connection that currently represents it.

    A newer connection for the same user replaces the older one; the older
    socket stays open but no longer receives direct events. All methods are
    synchronous so every mutation is atomic on the event loop.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Connection] = {}

    def register_connection(self, user_id: str, connection: Connection) -> Connection | None:
        previous = self._entries.get(user_id)
        self._entries[user_id] = connection
        if previous is not None and previous is not connection:
            logger.info("User %s reconnected, replacing connection %s", user_id, previous.id)
            return previous
        return None

    def unregister_connection(self, user_id: str, connection: Connection | None = None) -> bool:
        """Drop the entry for *user_id*.

        When *connection* is given the entry is only removed if it still points
        at that connection, so a late disconnect of a replaced socket does not
        evict its successor.
        """

        current = self._entries.get(user_id)
        if current is None:
            return False
        if connection is not None and current is not connection:
            return False
        del self._entries[user_id]
        return True

    def lookup(self, user_id: str) -> Connection | None:
        return self._entries.get(str(user_id))

    def is_online(self, user_id: str) -> bool:
        return str(user_id) in self._entries

    def list_online(self) -> set[str]:
        return set(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
