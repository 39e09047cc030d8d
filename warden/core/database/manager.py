"""
Warden - Database Manager
=========================

Central SQLite database manager for reports and platform data.
"""

from pathlib import Path
from typing import Optional

from warden.core.database.base import DatabaseBase
from warden.core.database.platform import PlatformMixin
from warden.core.database.reports import ReportsMixin
from warden.core.database.schema import SchemaMixin
from warden.core.logger import logger


# =============================================================================
# Database Manager (Singleton)
# =============================================================================

class DatabaseManager(
    SchemaMixin,
    ReportsMixin,
    PlatformMixin,
    DatabaseBase,
):
    """
    Centralized database manager with thread-safe operations.

    DESIGN: Singleton pattern ensures single database connection.
    The first construction decides the file; later calls return the same
    instance regardless of arguments. Tests reset _instance.
    """

    def __init__(self, db_path: Optional[Path] = None) -> None:
        """
        Initialize database connection and tables.

        Args:
            db_path: SQLite file. Defaults to the configured WARDEN_DB_PATH.
        """
        if self._initialized:
            return

        if db_path is None:
            from warden.core.config import get_config
            db_path = get_config().db_path

        self._init_base(Path(db_path))
        self._init_tables()
        self._initialized = True

        logger.tree("Database Manager Initialized", [
            ("Path", str(self.db_path)),
            ("WAL Mode", "Enabled"),
            ("Reports", str(self.count_reports())),
        ], emoji="🗄️")


# =============================================================================
# Global Instance
# =============================================================================

def get_db() -> DatabaseManager:
    """Get the global database manager instance."""
    return DatabaseManager()


__all__ = ["DatabaseManager", "get_db"]
