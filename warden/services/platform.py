"""
Warden - SQLite Platform Adapters
=================================

Default MessageStore, RoomStore and AccountDirectory implementations over
the local database, plus the constant weight policy.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from warden.core.clock import from_timestamp
from warden.core.database.models import MessageRecord
from warden.core.errors import NotFoundError
from warden.core.logger import logger
from warden.core.models import Account, Message, Room, VirtualTarget

if TYPE_CHECKING:
    from warden.core.database.manager import DatabaseManager


def _resolve_db(db: Optional["DatabaseManager"]) -> "DatabaseManager":
    if db is not None:
        return db
    from warden.core.database import get_db
    return get_db()


def _record_to_message(record: MessageRecord) -> Message:
    virtual = None
    if record.get("virtual_provider"):
        virtual = VirtualTarget(
            provider=record["virtual_provider"],
            external_id=record["virtual_external_id"],
        )
    return Message(
        id=record["id"],
        room_id=record["room_id"],
        author_id=record["author_id"],
        text=record["text"],
        sent_at=from_timestamp(record["sent_at"]),
        virtual_identity=virtual,
    )


# =============================================================================
# Message Store
# =============================================================================

class SqliteMessageStore:
    """MessageStore backed by the messages table."""

    def __init__(self, db: Optional["DatabaseManager"] = None) -> None:
        self.db = _resolve_db(db)

    async def find_by_id(self, message_id: str) -> Optional[Message]:
        record = self.db.get_message(message_id)
        return _record_to_message(record) if record else None

    async def find_earliest_message_for_virtual_identity(
        self, identity: VirtualTarget
    ) -> Optional[Message]:
        record = self.db.get_earliest_virtual_message(identity.provider, identity.external_id)
        return _record_to_message(record) if record else None

    async def delete(self, room: Room, message: Message) -> None:
        removed = self.db.delete_message(room.id, message.id)
        logger.tree("Message Removed", [
            ("Room", room.id),
            ("Message", message.id),
            ("Result", "Deleted" if removed else "Already gone"),
        ], emoji="🗑️")

    async def delete_all_by_account(self, account_id: str) -> None:
        self.db.delete_messages_by_author(account_id)

    async def delete_all_by_virtual_identity(self, identity: VirtualTarget) -> None:
        self.db.delete_messages_by_virtual_identity(identity.provider, identity.external_id)


# =============================================================================
# Room Store
# =============================================================================

class SqliteRoomStore:
    """RoomStore backed by the rooms table."""

    def __init__(self, db: Optional["DatabaseManager"] = None) -> None:
        self.db = _resolve_db(db)

    async def find_by_id(self, room_id: str) -> Optional[Room]:
        record = self.db.get_room(room_id)
        if not record:
            return None
        return Room(id=record["id"], group_id=record["group_id"], name=record["name"])


# =============================================================================
# Account Directory
# =============================================================================

class SqliteAccountDirectory:
    """AccountDirectory backed by the accounts table."""

    def __init__(self, db: Optional["DatabaseManager"] = None) -> None:
        self.db = _resolve_db(db)

    async def find_by_id(self, account_id: str) -> Optional[Account]:
        record = self.db.get_account(account_id)
        if not record:
            return None
        return Account(
            id=record["id"],
            created_at=from_timestamp(record["created_at"]),
            suspended=bool(record["suspended"]),
            username=record["username"],
        )

    async def set_suspended(self, account_id: str, suspended: bool) -> None:
        if not self.db.set_account_suspended(account_id, suspended):
            raise NotFoundError(f"Account {account_id} not found", resource="account")

    async def creation_timestamp(self, account_id: str) -> datetime:
        record = self.db.get_account(account_id)
        if not record:
            raise NotFoundError(f"Account {account_id} not found", resource="account")
        return from_timestamp(record["created_at"])


# =============================================================================
# Weight Policy
# =============================================================================

class ConstantWeightPolicy:
    """Every report carries the same weight."""

    def __init__(self, weight: Optional[float] = None) -> None:
        if weight is None:
            from warden.core.config import get_config
            weight = get_config().default_report_weight
        if weight < 0:
            raise ValueError(f"Report weight must be >= 0, got {weight}")
        self.weight = weight

    async def compute(self, reporter_id: str, room: Room, message: Message) -> float:
        return self.weight


__all__ = [
    "SqliteMessageStore",
    "SqliteRoomStore",
    "SqliteAccountDirectory",
    "ConstantWeightPolicy",
]
