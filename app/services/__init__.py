"""Application service helpers."""

from .notifications import NotificationPage, NotificationStore, PersistenceError
from .users import UserStore

__all__ = [
    "NotificationPage",
    "NotificationStore",
    "PersistenceError",
    "UserStore",
]
