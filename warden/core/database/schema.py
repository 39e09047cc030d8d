"""
Database Schema Module
======================

Table definitions and indexes.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from warden.core.database.manager import DatabaseManager


class SchemaMixin:
    """Mixin for database schema initialization."""

    def _init_tables(self: "DatabaseManager") -> None:
        """
        Initialize all database tables.

        DESIGN: Tables are created if not exist, allowing safe restarts.
        Indexes cover the windowed score queries.
        """
        conn = self._ensure_connection()
        cursor = conn.cursor()

        # -----------------------------------------------------------------
        # Reports Table
        # DESIGN: One row per (reporter, message). Virtual columns are both
        # NULL for reports against native accounts.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS reports (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                reporter_id TEXT NOT NULL,
                message_id TEXT NOT NULL,
                target_account_id TEXT NOT NULL,
                virtual_provider TEXT,
                virtual_external_id TEXT,
                weight REAL NOT NULL,
                submitted_at REAL NOT NULL,
                snapshot_text TEXT NOT NULL DEFAULT '',
                UNIQUE(reporter_id, message_id)
            )
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_reports_account
            ON reports(target_account_id, submitted_at)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_reports_virtual
            ON reports(virtual_provider, virtual_external_id, submitted_at)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_reports_message
            ON reports(message_id, submitted_at)
        """)

        # -----------------------------------------------------------------
        # Accounts Table
        # DESIGN: Only creation time and the suspended flag matter here
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS accounts (
                id TEXT PRIMARY KEY,
                username TEXT,
                created_at REAL NOT NULL,
                suspended INTEGER NOT NULL DEFAULT 0
            )
        """)

        # -----------------------------------------------------------------
        # Rooms Table
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS rooms (
                id TEXT PRIMARY KEY,
                group_id TEXT,
                name TEXT
            )
        """)

        # -----------------------------------------------------------------
        # Messages Table
        # DESIGN: Bridged messages carry the virtual identity they were
        # relayed for; author_id is then the bridge account.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                room_id TEXT NOT NULL,
                author_id TEXT NOT NULL,
                text TEXT NOT NULL DEFAULT '',
                sent_at REAL NOT NULL,
                virtual_provider TEXT,
                virtual_external_id TEXT
            )
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_messages_author
            ON messages(author_id)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_messages_virtual
            ON messages(virtual_provider, virtual_external_id, sent_at)
        """)

        # -----------------------------------------------------------------
        # Bridged Rooms Table
        # DESIGN: Maps a local room to the external room handle the bridge
        # uses for bans
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS bridged_rooms (
                room_id TEXT PRIMARY KEY,
                external_room_id TEXT NOT NULL
            )
        """)

        conn.commit()


__all__ = ["SchemaMixin"]
