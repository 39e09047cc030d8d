"""
Warden - Logger Module
======================

Custom tree-style logging with configurable timezone and daily rotation.

DESIGN:
    This logger provides structured, hierarchical output that's easy to scan
    visually. Every moderation decision is written as a titled tree of
    key/value pairs so a single report can be followed through ingestion,
    scoring and actuation.

    Key features:
    - Tree-style formatting for structured data visualization
    - Daily log rotation in dated folders
    - 7-day log retention with automatic cleanup
    - Session tracking with unique run IDs
    - Webhook integration for error alerts
"""

import asyncio
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

import aiohttp


# =============================================================================
# Constants
# =============================================================================

LOGS_DIR = Path(os.getenv("WARDEN_LOGS_DIR", "logs"))
"""Directory for all log files, organized by date."""

LOG_RETENTION_DAYS = 7
"""Number of days to retain log directories before cleanup."""

LOG_TZ = ZoneInfo(os.getenv("WARDEN_LOG_TZ", "UTC"))
"""Timezone used for log timestamps."""

Details = List[Tuple[str, str]]


# =============================================================================
# Tree Logger Class
# =============================================================================

class TreeLogger:
    """
    Custom logger with tree-style formatting.

    DESIGN:
        Uses tree-style output (├─ └─) for visual hierarchy.
        Separate error log file for quick troubleshooting.
        Optional webhook notifications for errors with details.

    Attributes:
        run_id: Unique identifier for this process session.
        log_file: Path to the main log file.
        error_file: Path to the error-only log file.
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self, logs_dir: Path = LOGS_DIR) -> None:
        """
        Initialize logger with run ID and daily log file.

        Args:
            logs_dir: Root directory for dated log folders.
        """
        self.run_id: str = str(uuid.uuid4())[:8]
        self._webhook_url: Optional[str] = None
        self._logs_dir = logs_dir

        today = datetime.now(LOG_TZ).strftime("%Y-%m-%d")
        self.log_dir = logs_dir / today
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.log_file = self.log_dir / f"Warden-{today}.log"
        self.error_file = self.log_dir / f"Warden-Errors-{today}.log"

        self._cleanup_old_logs()
        self._write_session_header()

    def set_webhook(self, url: Optional[str]) -> None:
        """
        Set webhook URL for error notifications.

        Args:
            url: Webhook URL receiving JSON error alerts.
        """
        self._webhook_url = url

    # =========================================================================
    # Log Cleanup
    # =========================================================================

    def _cleanup_old_logs(self) -> None:
        """Remove dated log directories older than the retention period."""
        if not self._logs_dir.exists():
            return

        now = datetime.now()
        deleted = 0

        for item in self._logs_dir.iterdir():
            if not item.is_dir():
                continue
            try:
                dir_date = datetime.strptime(item.name, "%Y-%m-%d")
            except ValueError:
                continue  # not a dated log folder
            if (now - dir_date).days > LOG_RETENTION_DAYS:
                for f in item.iterdir():
                    f.unlink()
                item.rmdir()
                deleted += 1

        if deleted > 0:
            print(f"[LOG CLEANUP] Removed {deleted} old log directories")

    def _write_session_header(self) -> None:
        """Write session start marker to log file."""
        header = f"""
============================================================
NEW SESSION - RUN ID: {self.run_id}
[{datetime.now(LOG_TZ).strftime("%I:%M:%S %p %Z")}]
============================================================
"""
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(header)

    # =========================================================================
    # Core Logging
    # =========================================================================

    def _get_timestamp(self) -> str:
        """Formatted timestamp string like "[02:30:45 PM UTC]"."""
        return datetime.now(LOG_TZ).strftime("[%I:%M:%S %p %Z]")

    def _write(
        self,
        message: str,
        emoji: str = "",
        include_timestamp: bool = True,
        is_error: bool = False,
    ) -> None:
        """
        Write log message to console and file.

        Args:
            message: Log message content.
            emoji: Optional emoji prefix.
            include_timestamp: Whether to prepend timestamp.
            is_error: Whether to also write to error log.
        """
        if include_timestamp:
            timestamp = self._get_timestamp()
            full_message = f"{timestamp} {emoji} {message}" if emoji else f"{timestamp} {message}"
        else:
            full_message = f"{emoji} {message}" if emoji else message

        print(full_message)

        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(f"{full_message}\n")

        if is_error:
            with open(self.error_file, "a", encoding="utf-8") as f:
                f.write(f"{full_message}\n")

    def _write_items(self, items: Details, is_error: bool = False) -> None:
        """Write (key, value) pairs with tree connectors."""
        for i, (key, value) in enumerate(items):
            prefix = "└─" if i == len(items) - 1 else "├─"
            self._write(f"  {prefix} {key}: {value}", include_timestamp=False, is_error=is_error)

    # =========================================================================
    # Tree Formatting
    # =========================================================================

    def tree(
        self,
        title: str,
        items: Details,
        emoji: str = "📦",
    ) -> None:
        """
        Log structured data in tree format.

        Args:
            title: Main heading for the tree.
            items: List of (key, value) tuples to display.
            emoji: Emoji prefix for the title.

        Example output:
            [02:30:45 PM UTC] 🚩 Report Created
              ├─ Reporter: 5f1c...
              ├─ Message: 5f1d...
              └─ Weight: 1.0
        """
        self._write(title, emoji=emoji)
        self._write_items(items)

    # =========================================================================
    # Log Levels
    # =========================================================================

    def debug(self, msg: str, details: Optional[Details] = None) -> None:
        """Log debug message (only if DEBUG env var set)."""
        if os.getenv("DEBUG"):
            self._write(msg, "🔍")
            if details:
                self._write_items(details)

    def info(self, msg: str, details: Optional[Details] = None) -> None:
        """Log informational message."""
        self._write(msg, "ℹ️")
        if details:
            self._write_items(details)

    def success(self, msg: str) -> None:
        """Log success message."""
        self._write(msg, "✅")

    def warning(self, msg: str, details: Optional[Details] = None) -> None:
        """Log warning message with optional structured details."""
        self._write(msg, "⚠️")
        if details:
            self._write_items(details)

    def error(self, msg: str, details: Optional[Details] = None) -> None:
        """
        Log error message with optional structured details.

        DESIGN:
            Errors with details are also sent to the webhook if one is
            configured and an event loop is running.

        Args:
            msg: Error message or title.
            details: Optional list of (key, value) detail tuples.
        """
        self._write(msg, "❌", is_error=True)
        if not details:
            return

        self._write_items(details, is_error=True)

        if self._webhook_url:
            try:
                asyncio.get_running_loop().create_task(self._send_webhook_error(msg, details))
            except RuntimeError:
                pass  # no running loop (startup / sync context)

    def critical(self, msg: str) -> None:
        """Log critical error message."""
        self._write(msg, "🚨", is_error=True)

    # =========================================================================
    # Webhook Integration
    # =========================================================================

    async def _send_webhook_error(self, title: str, details: Details) -> None:
        """
        Send error notification to the configured webhook.

        Args:
            title: Error title.
            details: List of (key, value) detail tuples.
        """
        if not self._webhook_url:
            return

        payload = {
            "title": f"❌ {title}",
            "details": {k: v for k, v in details},
            "timestamp": datetime.now(LOG_TZ).isoformat(),
            "run_id": self.run_id,
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self._webhook_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=10),
                ) as resp:
                    if resp.status >= 300:
                        print(f"Webhook error: {resp.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            print(f"Failed to send webhook: {e}")


# =============================================================================
# Global Instance
# =============================================================================

logger = TreeLogger()
"""Global logger instance shared by every module."""


__all__ = [
    "logger",
    "TreeLogger",
]
