"""
Warden - Database Type Definitions
==================================

TypedDict definitions for platform records.
"""

from typing import Optional, TypedDict


class AccountRecord(TypedDict, total=False):
    """Type for account records."""
    id: str
    username: Optional[str]
    created_at: float
    suspended: int


class RoomRecord(TypedDict, total=False):
    """Type for room records."""
    id: str
    group_id: Optional[str]
    name: Optional[str]


class MessageRecord(TypedDict, total=False):
    """Type for message records. Virtual columns are NULL for native messages."""
    id: str
    room_id: str
    author_id: str
    text: str
    sent_at: float
    virtual_provider: Optional[str]
    virtual_external_id: Optional[str]


__all__ = [
    "AccountRecord",
    "RoomRecord",
    "MessageRecord",
]
