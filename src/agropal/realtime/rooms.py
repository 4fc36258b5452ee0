"""Room membership for community and ad hoc rooms."""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from .connection import Connection

COMMUNITY_ROOM_PREFIX = "community_"


def room_for_community(community_id: Any) -> str | None:
    if community_id is None or isinstance(community_id, bool):
        return None
    if not isinstance(community_id, (str, int)):
        return None
    value = str(community_id).strip()
    if not value:
        return None
    return f"{COMMUNITY_ROOM_PREFIX}{value}"


def is_community_room(room_id: str) -> bool:
    return room_id.startswith(COMMUNITY_ROOM_PREFIX)


class RoomMembership:
    """Two-way index between rooms and the connections inside them.

    Membership belongs to a connection, not a user: a user with a fresh
    socket has to join again.
    """

    def __init__(self) -> None:
        self._members: dict[str, dict[str, Connection]] = defaultdict(dict)
        self._rooms: dict[str, set[str]] = defaultdict(set)

    def join(self, connection: Connection, room_id: str) -> bool:
        """Add *connection* to *room_id*. Returns False if it was already there."""

        if not room_id:
            return False
        members = self._members[room_id]
        if connection.id in members:
            return False
        members[connection.id] = connection
        self._rooms[connection.id].add(room_id)
        return True

    def leave(self, connection: Connection, room_id: str) -> bool:
        members = self._members.get(room_id)
        if not members or connection.id not in members:
            return False
        del members[connection.id]
        if not members:
            del self._members[room_id]
        rooms = self._rooms.get(connection.id)
        if rooms is not None:
            rooms.discard(room_id)
            if not rooms:
                del self._rooms[connection.id]
        return True

    def leave_all(self, connection: Connection) -> set[str]:
        """Remove *connection* from every room and return the rooms it left."""

        rooms = self._rooms.pop(connection.id, set())
        for room_id in rooms:
            members = self._members.get(room_id)
            if members is None:
                continue
            members.pop(connection.id, None)
            if not members:
                del self._members[room_id]
        return rooms

    def members(self, room_id: str) -> list[Connection]:
        members = self._members.get(room_id)
        if not members:
            return []
        return list(members.values())

    def rooms_of(self, connection: Connection) -> set[str]:
        return set(self._rooms.get(connection.id, ()))

    def is_member(self, connection: Connection, room_id: str) -> bool:
        members = self._members.get(room_id)
        return bool(members) and connection.id in members
