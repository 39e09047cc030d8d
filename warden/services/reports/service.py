"""
Warden - Report Ingestion Service
=================================

Validates, weighs and stores abuse reports, then runs both threshold
evaluations.

DESIGN:
    Validation and weighing happen before anything is written, so a
    rejected report leaves no trace. Storage is insert-if-absent on
    (reporter, message): a repeat submission returns the stored report and
    does nothing else. Only a genuinely new report emits telemetry and
    fans out to the actuator; the account and message evaluations run
    concurrently and both are awaited before the first failure, if any,
    is re-raised.
"""

import math
from typing import TYPE_CHECKING, Iterable, List, Optional

from warden.core.clock import Clock, SystemClock
from warden.core.constants import REPORT_LIST_DEFAULT_LIMIT
from warden.core.errors import ForbiddenError, ModerationError, NotFoundError, UpstreamError
from warden.core.logger import logger
from warden.core.models import Report, describe_target, target_for_message
from warden.services.interfaces import MessageStore, RoomStore, WeightPolicy
from warden.services.reports.actuator import ModerationActuator
from warden.services.telemetry import EVENT_REPORT_CREATED, Telemetry
from warden.utils.async_utils import gather_with_logging, raise_first_failure

if TYPE_CHECKING:
    from warden.core.database.manager import DatabaseManager


class ReportIngestionService:
    """Entry point for user-submitted abuse reports."""

    def __init__(
        self,
        messages: MessageStore,
        rooms: RoomStore,
        weight_policy: WeightPolicy,
        actuator: ModerationActuator,
        telemetry: Optional[Telemetry] = None,
        db: Optional["DatabaseManager"] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        if db is None:
            from warden.core.database import get_db
            db = get_db()
        self.messages = messages
        self.rooms = rooms
        self.weight_policy = weight_policy
        self.actuator = actuator
        self.telemetry = telemetry or Telemetry()
        self.db = db
        self.clock = clock or SystemClock()

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit_report(self, reporter_id: str, message_id: str) -> Report:
        """
        Report a message.

        Args:
            reporter_id: Account submitting the report.
            message_id: Message being reported.

        Returns:
            The stored report (the existing one on resubmission).

        Raises:
            NotFoundError: The message or its room does not exist.
            ForbiddenError: The reporter wrote the message.
            UpstreamError: The weight policy or storage failed.
            ConflictError: The report could not be stored after retries.
        """
        message = await self.messages.find_by_id(message_id)
        if message is None:
            raise NotFoundError(f"Message {message_id} not found", resource="message")

        if message.author_id == reporter_id:
            raise ForbiddenError("You cannot report your own message", resource="message")

        room = await self.rooms.find_by_id(message.room_id)
        if room is None:
            raise NotFoundError(f"Room {message.room_id} not found", resource="room")

        weight = await self._compute_weight(reporter_id, room, message)

        target = target_for_message(message)
        report, created = self.db.insert_report_if_absent(
            reporter_id=reporter_id,
            message_id=message.id,
            target_account_id=message.author_id,
            target_virtual=message.virtual_identity,
            weight=weight,
            submitted_at=self.clock.now(),
            snapshot_text=message.text,
        )

        if not created:
            logger.debug("Duplicate Report Ignored", [
                ("Report ID", str(report.id)),
                ("Reporter", reporter_id),
                ("Message", message_id),
            ])
            return report

        logger.tree("Report Created", [
            ("Report ID", str(report.id)),
            ("Reporter", reporter_id),
            ("Message", message.id),
            ("Room", room.id),
            ("Target", describe_target(target)),
            ("Weight", f"{weight:g}"),
        ], emoji="🚩")

        self.telemetry.emit(EVENT_REPORT_CREATED, {
            "report_id": report.id,
            "reporter_id": reporter_id,
            "message_id": message.id,
            "room_id": room.id,
            "account_id": message.author_id,
            "weight": weight,
        })

        results = await gather_with_logging(
            ("Account Threshold", self.actuator.check_account_threshold(report, message, room)),
            ("Message Threshold", self.actuator.check_message_threshold(report, message, room)),
            context=f"Report {report.id}",
        )
        raise_first_failure(results)

        return report

    async def _compute_weight(self, reporter_id: str, room, message) -> float:
        try:
            weight = await self.weight_policy.compute(reporter_id, room, message)
        except ModerationError:
            raise
        except Exception as e:
            logger.error("Weight Policy Failed", [
                ("Reporter", reporter_id),
                ("Message", message.id),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            raise UpstreamError(f"Weight policy failed: {e}", resource="weight_policy") from e

        if weight is None or not math.isfinite(weight) or weight < 0:
            raise UpstreamError(f"Weight policy returned invalid weight {weight!r}",
                                resource="weight_policy")
        return float(weight)

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_report(self, report_id: int) -> Report:
        """
        Raises:
            NotFoundError: No report with that id.
        """
        report = self.db.get_report(report_id)
        if report is None:
            raise NotFoundError(f"Report {report_id} not found", resource="report")
        return report

    async def find_by_ids(self, report_ids: Iterable[int]) -> List[Report]:
        return self.db.find_reports_by_ids(report_ids)

    async def list_reports(
        self,
        limit: int = REPORT_LIST_DEFAULT_LIMIT,
        before_id: Optional[int] = None,
        after_id: Optional[int] = None,
    ) -> List[Report]:
        """Newest reports first; see ReportsMixin.list_reports for cursors."""
        return self.db.list_reports(limit=limit, before_id=before_id, after_id=after_id)


__all__ = ["ReportIngestionService"]
