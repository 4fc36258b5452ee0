"""Read-only access to user documents."""

from __future__ import annotations

from typing import Any


class UserStore:
    """Looks up users by their public ``user_id``.

    User documents are owned by the account service; the realtime layer only
    needs to confirm that a token's subject still exists.
    """

    def __init__(self, collection) -> None:
        self._collection = collection

    async def find_by_id(self, user_id: str) -> dict[str, Any] | None:
        return await self._collection.find_one({"user_id": str(user_id)}, {"_id": 0})
