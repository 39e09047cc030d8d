"""
Warden - Database Report Operations Module
==========================================

Report persistence: insert-if-absent, windowed queries and admin listing.
"""

import sqlite3
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

from warden.core.clock import from_timestamp, to_timestamp
from warden.core.constants import (
    MAX_INSERT_ATTEMPTS,
    REPORT_LIST_DEFAULT_LIMIT,
    REPORT_LIST_MAX_LIMIT,
)
from warden.core.errors import ConflictError, UpstreamError
from warden.core.logger import logger
from warden.core.models import ModerationTarget, NativeTarget, Report, VirtualTarget

if TYPE_CHECKING:
    from warden.core.database.manager import DatabaseManager


_REPORT_COLUMNS = (
    "id, reporter_id, message_id, target_account_id, virtual_provider, "
    "virtual_external_id, weight, submitted_at, snapshot_text"
)


def _row_to_report(row: sqlite3.Row) -> Report:
    """Build a Report from a reports table row."""
    virtual = None
    if row["virtual_provider"] is not None:
        virtual = VirtualTarget(
            provider=row["virtual_provider"],
            external_id=row["virtual_external_id"],
        )
    return Report(
        id=row["id"],
        reporter_id=row["reporter_id"],
        message_id=row["message_id"],
        target_account_id=row["target_account_id"],
        target_virtual=virtual,
        weight=row["weight"],
        submitted_at=from_timestamp(row["submitted_at"]),
        snapshot_text=row["snapshot_text"],
    )


class ReportsMixin:
    """Mixin for report database operations."""

    # =========================================================================
    # Insert
    # =========================================================================

    def insert_report_if_absent(
        self: "DatabaseManager",
        reporter_id: str,
        message_id: str,
        target_account_id: str,
        target_virtual: Optional[VirtualTarget],
        weight: float,
        submitted_at: datetime,
        snapshot_text: str,
    ) -> Tuple[Report, bool]:
        """
        Store a report unless one already exists for (reporter, message).

        DESIGN:
            A concurrent writer can insert the same key between our lookup
            and our insert. The unique constraint rejects the loser, which
            then retries; the second lookup finds the winner's row. After
            MAX_INSERT_ATTEMPTS the conflict is surfaced.

        Args:
            reporter_id: Account submitting the report.
            message_id: Reported message.
            target_account_id: Author account of the message.
            target_virtual: Virtual identity for bridged messages.
            weight: Severity computed by the weight policy.
            submitted_at: Submission time.
            snapshot_text: Message text at submission time.

        Returns:
            (report, created) where created is False if the report already
            existed. An existing report is returned unchanged.

        Raises:
            ConflictError: If every attempt lost a uniqueness race.
            UpstreamError: On any other storage failure.
        """
        provider = target_virtual.provider if target_virtual else None
        external_id = target_virtual.external_id if target_virtual else None
        submitted_ts = to_timestamp(submitted_at)

        for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
            existing = self.get_report_for(reporter_id, message_id)
            if existing is not None:
                return existing, False

            try:
                cursor = self.execute(
                    """INSERT INTO reports
                       (reporter_id, message_id, target_account_id, virtual_provider,
                        virtual_external_id, weight, submitted_at, snapshot_text)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (reporter_id, message_id, target_account_id, provider,
                     external_id, weight, submitted_ts, snapshot_text)
                )
            except sqlite3.IntegrityError:
                logger.warning("Report Insert Conflict", [
                    ("Reporter", reporter_id),
                    ("Message", message_id),
                    ("Attempt", f"{attempt}/{MAX_INSERT_ATTEMPTS}"),
                ])
                continue
            except sqlite3.Error as e:
                raise UpstreamError(f"Failed to store report: {e}", resource="reports") from e

            report = Report(
                id=cursor.lastrowid,
                reporter_id=reporter_id,
                message_id=message_id,
                target_account_id=target_account_id,
                target_virtual=target_virtual,
                weight=weight,
                submitted_at=from_timestamp(submitted_ts),
                snapshot_text=snapshot_text,
            )
            return report, True

        raise ConflictError(
            f"Report by {reporter_id} on {message_id} could not be stored "
            f"after {MAX_INSERT_ATTEMPTS} attempts",
            resource="reports",
        )

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_report(self: "DatabaseManager", report_id: int) -> Optional[Report]:
        """Get a report by id."""
        row = self.fetchone(
            f"SELECT {_REPORT_COLUMNS} FROM reports WHERE id = ?",
            (report_id,)
        )
        return _row_to_report(row) if row else None

    def get_report_for(
        self: "DatabaseManager",
        reporter_id: str,
        message_id: str,
    ) -> Optional[Report]:
        """Get the report a reporter filed against a message, if any."""
        row = self.fetchone(
            f"SELECT {_REPORT_COLUMNS} FROM reports WHERE reporter_id = ? AND message_id = ?",
            (reporter_id, message_id)
        )
        return _row_to_report(row) if row else None

    def find_reports_by_ids(self: "DatabaseManager", report_ids: Iterable[int]) -> List[Report]:
        """
        Get several reports by id, newest first.

        Unknown ids are skipped.
        """
        ids = list(dict.fromkeys(report_ids))
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        rows = self.fetchall(
            f"SELECT {_REPORT_COLUMNS} FROM reports WHERE id IN ({placeholders}) "
            f"ORDER BY id DESC",
            tuple(ids)
        )
        return [_row_to_report(row) for row in rows]

    # =========================================================================
    # Windowed Queries
    # =========================================================================

    def find_reports_for_target(
        self: "DatabaseManager",
        target: ModerationTarget,
        since: datetime,
    ) -> List[Report]:
        """
        Reports against a moderation target submitted at or after `since`.

        DESIGN:
            Native targets only match reports with no virtual identity;
            the bridge account authors every virtual identity's messages,
            so its own score must not absorb theirs.

        Raises:
            TypeError: If target is not a NativeTarget or VirtualTarget.
        """
        since_ts = to_timestamp(since)

        if isinstance(target, NativeTarget):
            rows = self.fetchall(
                f"""SELECT {_REPORT_COLUMNS} FROM reports
                    WHERE target_account_id = ?
                      AND virtual_provider IS NULL
                      AND submitted_at >= ?""",
                (target.account_id, since_ts)
            )
        elif isinstance(target, VirtualTarget):
            rows = self.fetchall(
                f"""SELECT {_REPORT_COLUMNS} FROM reports
                    WHERE virtual_provider = ?
                      AND virtual_external_id = ?
                      AND submitted_at >= ?""",
                (target.provider, target.external_id, since_ts)
            )
        else:
            raise TypeError(f"Unsupported moderation target: {target!r}")

        return [_row_to_report(row) for row in rows]

    def find_reports_for_message(
        self: "DatabaseManager",
        message_id: str,
        since: datetime,
    ) -> List[Report]:
        """Reports against a message submitted at or after `since`."""
        rows = self.fetchall(
            f"""SELECT {_REPORT_COLUMNS} FROM reports
                WHERE message_id = ? AND submitted_at >= ?""",
            (message_id, to_timestamp(since))
        )
        return [_row_to_report(row) for row in rows]

    # =========================================================================
    # Listing
    # =========================================================================

    def list_reports(
        self: "DatabaseManager",
        limit: int = REPORT_LIST_DEFAULT_LIMIT,
        before_id: Optional[int] = None,
        after_id: Optional[int] = None,
    ) -> List[Report]:
        """
        List reports newest first with id cursors.

        Args:
            limit: Page size, clamped to 1..REPORT_LIST_MAX_LIMIT.
            before_id: Only reports with a smaller id.
            after_id: Only reports with a larger id.

        Returns:
            Reports ordered by id descending.
        """
        limit = max(1, min(limit, REPORT_LIST_MAX_LIMIT))

        conditions = []
        params: list = []
        if before_id is not None:
            conditions.append("id < ?")
            params.append(before_id)
        if after_id is not None:
            conditions.append("id > ?")
            params.append(after_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(limit)

        rows = self.fetchall(
            f"SELECT {_REPORT_COLUMNS} FROM reports {where} ORDER BY id DESC LIMIT ?",
            tuple(params)
        )
        return [_row_to_report(row) for row in rows]

    def count_reports(self: "DatabaseManager") -> int:
        """Total number of stored reports."""
        row = self.fetchone("SELECT COUNT(*) as count FROM reports")
        return row["count"] if row else 0


__all__ = ["ReportsMixin"]
