"""
Warden - Database Module
========================

SQLite persistence for reports and platform entities.
"""

from warden.core.database.manager import DatabaseManager, get_db
from warden.core.database.models import AccountRecord, MessageRecord, RoomRecord

__all__ = [
    "DatabaseManager",
    "get_db",
    "AccountRecord",
    "MessageRecord",
    "RoomRecord",
]
