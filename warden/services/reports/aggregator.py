"""
Warden - Score Aggregator
=========================

Read-side scoring over the report store.

DESIGN:
    A report counts while now - submitted_at <= sum_period. The window is
    applied in SQL; expired rows stay stored.

    Target scores keep only the largest weight per reporter, so one person
    reporting every message an account posted counts once. Message scores
    are a plain sum (a reporter can only report a message once anyway).
"""

from datetime import datetime
from typing import TYPE_CHECKING, Dict, Iterable, Optional

from warden.core.clock import Clock, SystemClock
from warden.core.config import ModerationSettings
from warden.core.models import ModerationTarget, Report

if TYPE_CHECKING:
    from warden.core.database.manager import DatabaseManager


def reporter_weight_map(reports: Iterable[Report]) -> Dict[str, float]:
    """Largest weight each reporter assigned across the given reports."""
    weights: Dict[str, float] = {}
    for report in reports:
        current = weights.get(report.reporter_id)
        if current is None or report.weight > current:
            weights[report.reporter_id] = report.weight
    return weights


class ScoreAggregator:
    """Computes windowed report scores as of the injected clock's now."""

    def __init__(
        self,
        db: Optional["DatabaseManager"] = None,
        settings: Optional[ModerationSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        if db is None:
            from warden.core.database import get_db
            db = get_db()
        if settings is None:
            from warden.core.config import get_config
            settings = get_config().moderation
        self.db = db
        self.settings = settings
        self.clock = clock or SystemClock()

    def window_start(self) -> datetime:
        """Oldest submission time still inside the score window."""
        return self.clock.now() - self.settings.sum_period

    async def sum_for_target(self, target: ModerationTarget) -> float:
        """Sum of per-reporter maximum weights against a target."""
        reports = self.db.find_reports_for_target(target, self.window_start())
        return float(sum(reporter_weight_map(reports).values()))

    async def sum_for_message(self, message_id: str) -> float:
        """Raw sum of all weights against a message."""
        reports = self.db.find_reports_for_message(message_id, self.window_start())
        return float(sum(report.weight for report in reports))


__all__ = ["ScoreAggregator", "reporter_weight_map"]
