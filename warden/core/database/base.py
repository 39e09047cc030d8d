"""
Warden - Database Base Module
=============================

Connection handling for the moderation store: one shared SQLite
connection guarded by a lock, opened in WAL mode.
"""

import sqlite3
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from warden.core.constants import DB_CONNECTION_TIMEOUT, SQLITE_BUSY_TIMEOUT
from warden.core.logger import logger


# =============================================================================
# Base Database Class
# =============================================================================

class DatabaseBase:
    """
    Process-wide SQLite handle shared by every storage mixin.

    Statements are serialized through ``_db_lock``.
    """

    _instance: Optional["DatabaseBase"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls, *args, **kwargs) -> "DatabaseBase":
        """Return the shared instance, creating it on first use."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def _init_base(self, db_path: Path) -> None:
        """Create the parent directory and open ``db_path``."""
        self._db_lock: threading.Lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None
        self.db_path: Path = db_path

        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connect()

    # =========================================================================
    # Connection Management
    # =========================================================================

    def _connect(self) -> None:
        """
        Open the connection and apply pragmas.

        Score reads run concurrently with report inserts under WAL.
        """
        try:
            self._conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                timeout=DB_CONNECTION_TIMEOUT,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
            self._conn.execute("PRAGMA cache_size=-16000")  # 16MB cache
            self._conn.execute("PRAGMA temp_store=MEMORY")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT}")
            self._conn.row_factory = sqlite3.Row
        except sqlite3.Error as e:
            logger.error("Database Connection Failed", [
                ("Path", str(self.db_path)),
                ("Error", str(e)),
            ])
            raise

    def _ensure_connection(self) -> sqlite3.Connection:
        """Return a live connection, reopening it after a failed probe."""
        if self._conn is None:
            self._connect()
        try:
            self._conn.execute("SELECT 1")
        except sqlite3.Error:
            self._connect()
        return self._conn

    def execute(
        self,
        query: str,
        params: Tuple = (),
        commit: bool = True,
    ) -> sqlite3.Cursor:
        """
        Run one statement under the connection lock.

        A failing statement rolls back the implicit transaction before the
        error is re-raised, so the connection stays usable.
        """
        with self._db_lock:
            conn = self._ensure_connection()
            cursor = conn.cursor()
            try:
                cursor.execute(query, params)
                if commit:
                    conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise
            return cursor

    def fetchone(self, query: str, params: Tuple = ()) -> Optional[sqlite3.Row]:
        """Run a read and return its first row, if any."""
        cursor = self.execute(query, params, commit=False)
        return cursor.fetchone()

    def fetchall(self, query: str, params: Tuple = ()) -> List[sqlite3.Row]:
        """Run a read and return every row."""
        cursor = self.execute(query, params, commit=False)
        return cursor.fetchall()

    def close(self) -> None:
        """Close the shared connection; later calls reconnect lazily."""
        with self._db_lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                logger.info("Database Connection Closed")


__all__ = ["DatabaseBase"]
