"""Notification state storage module."""

from .db import StateStore, MemoryStateStore, FileStateStore, SQLiteStateStore, create_state_store
from .models import NotificationState

__all__ = [
    "StateStore",
    "MemoryStateStore",
    "FileStateStore",
    "SQLiteStateStore",
    "create_state_store",
    "NotificationState"
]
