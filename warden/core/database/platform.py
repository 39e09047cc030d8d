"""
Warden - Database Platform Operations Module
============================================

Accounts, rooms, messages and bridged room mappings.

These tables back the default SQLite collaborators so the service can run
standalone; a deployment embedded in a larger chat backend replaces them.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from warden.core.clock import to_timestamp
from warden.core.database.models import AccountRecord, MessageRecord, RoomRecord
from warden.core.logger import logger

if TYPE_CHECKING:
    from warden.core.database.manager import DatabaseManager


class PlatformMixin:
    """Mixin for platform entity operations."""

    # =========================================================================
    # Accounts
    # =========================================================================

    def save_account(
        self: "DatabaseManager",
        account_id: str,
        created_at: datetime,
        username: Optional[str] = None,
    ) -> None:
        """Insert an account, or refresh its username if it exists."""
        self.execute(
            """INSERT INTO accounts (id, username, created_at)
               VALUES (?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET username = excluded.username""",
            (account_id, username, to_timestamp(created_at))
        )

    def get_account(self: "DatabaseManager", account_id: str) -> Optional[AccountRecord]:
        """Get an account record."""
        row = self.fetchone(
            "SELECT id, username, created_at, suspended FROM accounts WHERE id = ?",
            (account_id,)
        )
        return dict(row) if row else None

    def set_account_suspended(
        self: "DatabaseManager",
        account_id: str,
        suspended: bool,
    ) -> bool:
        """
        Set the suspended flag on an account.

        Returns:
            True if the account exists.
        """
        cursor = self.execute(
            "UPDATE accounts SET suspended = ? WHERE id = ?",
            (1 if suspended else 0, account_id)
        )
        return cursor.rowcount > 0

    # =========================================================================
    # Rooms
    # =========================================================================

    def save_room(
        self: "DatabaseManager",
        room_id: str,
        group_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> None:
        """Insert or update a room."""
        self.execute(
            """INSERT INTO rooms (id, group_id, name) VALUES (?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET group_id = excluded.group_id, name = excluded.name""",
            (room_id, group_id, name)
        )

    def get_room(self: "DatabaseManager", room_id: str) -> Optional[RoomRecord]:
        """Get a room record."""
        row = self.fetchone("SELECT id, group_id, name FROM rooms WHERE id = ?", (room_id,))
        return dict(row) if row else None

    # =========================================================================
    # Messages
    # =========================================================================

    def save_message(
        self: "DatabaseManager",
        message_id: str,
        room_id: str,
        author_id: str,
        text: str,
        sent_at: datetime,
        virtual_provider: Optional[str] = None,
        virtual_external_id: Optional[str] = None,
    ) -> None:
        """Insert or replace a message."""
        self.execute(
            """INSERT OR REPLACE INTO messages
               (id, room_id, author_id, text, sent_at, virtual_provider, virtual_external_id)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (message_id, room_id, author_id, text, to_timestamp(sent_at),
             virtual_provider, virtual_external_id)
        )

    def get_message(self: "DatabaseManager", message_id: str) -> Optional[MessageRecord]:
        """Get a message record."""
        row = self.fetchone(
            """SELECT id, room_id, author_id, text, sent_at, virtual_provider, virtual_external_id
               FROM messages WHERE id = ?""",
            (message_id,)
        )
        return dict(row) if row else None

    def get_earliest_virtual_message(
        self: "DatabaseManager",
        provider: str,
        external_id: str,
    ) -> Optional[MessageRecord]:
        """Oldest stored message relayed for a virtual identity."""
        row = self.fetchone(
            """SELECT id, room_id, author_id, text, sent_at, virtual_provider, virtual_external_id
               FROM messages
               WHERE virtual_provider = ? AND virtual_external_id = ?
               ORDER BY sent_at ASC LIMIT 1""",
            (provider, external_id)
        )
        return dict(row) if row else None

    def delete_message(self: "DatabaseManager", room_id: str, message_id: str) -> bool:
        """
        Delete one message from a room.

        Returns:
            True if a row was removed (False on repeat deletes).
        """
        cursor = self.execute(
            "DELETE FROM messages WHERE id = ? AND room_id = ?",
            (message_id, room_id)
        )
        return cursor.rowcount > 0

    def delete_messages_by_author(self: "DatabaseManager", account_id: str) -> int:
        """Delete every native message an account authored. Returns count."""
        cursor = self.execute(
            "DELETE FROM messages WHERE author_id = ? AND virtual_provider IS NULL",
            (account_id,)
        )
        if cursor.rowcount:
            logger.tree("Account Messages Purged", [
                ("Account", account_id),
                ("Deleted", str(cursor.rowcount)),
            ], emoji="🧹")
        return cursor.rowcount

    def delete_messages_by_virtual_identity(
        self: "DatabaseManager",
        provider: str,
        external_id: str,
    ) -> int:
        """Delete every message relayed for a virtual identity. Returns count."""
        cursor = self.execute(
            "DELETE FROM messages WHERE virtual_provider = ? AND virtual_external_id = ?",
            (provider, external_id)
        )
        if cursor.rowcount:
            logger.tree("Virtual Identity Messages Purged", [
                ("Identity", f"{provider}:{external_id}"),
                ("Deleted", str(cursor.rowcount)),
            ], emoji="🧹")
        return cursor.rowcount

    # =========================================================================
    # Bridged Rooms
    # =========================================================================

    def save_bridged_room(self: "DatabaseManager", room_id: str, external_room_id: str) -> None:
        """Map a local room to its external room handle."""
        self.execute(
            """INSERT INTO bridged_rooms (room_id, external_room_id) VALUES (?, ?)
               ON CONFLICT(room_id) DO UPDATE SET external_room_id = excluded.external_room_id""",
            (room_id, external_room_id)
        )

    def get_bridged_room(self: "DatabaseManager", room_id: str) -> Optional[str]:
        """External room handle for a local room, if it is bridged."""
        row = self.fetchone(
            "SELECT external_room_id FROM bridged_rooms WHERE room_id = ?",
            (room_id,)
        )
        return row["external_room_id"] if row else None


__all__ = ["PlatformMixin"]
