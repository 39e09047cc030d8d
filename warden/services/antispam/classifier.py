"""
Warden - Spam Classifier
========================

Screens messages from new accounts and suspends spammers on the spot.

DESIGN:
    Accounts move through three states derived from the suspended flag and
    account age:

        SUSPENDED    -> always spam, no detectors run
        PROBATION    -> age < probation_period, detectors run
        ESTABLISHED  -> age >= probation_period, never spam

    During probation the duplicate and pattern detectors run concurrently
    and the verdict is their OR. Both always run, since the duplicate
    detector records every message it sees. A positive verdict suspends
    the account without purging its history.
"""

import asyncio
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from warden.core.clock import Clock, SystemClock
from warden.core.config import ModerationSettings
from warden.core.logger import logger
from warden.core.models import Account, Message, Room
from warden.services.interfaces import DuplicateContentDetector
from warden.services.reports.actuator import ModerationActuator
from warden.services.telemetry import (
    EVENT_SPAM_DUPLICATE,
    EVENT_SPAM_PATTERN,
    EVENT_SPAM_SUSPENDED,
    Telemetry,
)

from .detectors import PatternDetector


class ProbationState(Enum):
    """Where an account stands with respect to spam screening."""
    SUSPENDED = "suspended"
    PROBATION = "probation"
    ESTABLISHED = "established"


def probation_state(account: Account, now: datetime, probation_period: timedelta) -> ProbationState:
    """Derive an account's screening state as of `now`."""
    if account.suspended:
        return ProbationState.SUSPENDED
    if now - account.created_at < probation_period:
        return ProbationState.PROBATION
    return ProbationState.ESTABLISHED


class SpamClassifier:
    """Per-message spam screening for accounts still on probation."""

    def __init__(
        self,
        actuator: ModerationActuator,
        duplicate_detector: DuplicateContentDetector,
        pattern_detector: Optional[PatternDetector] = None,
        settings: Optional[ModerationSettings] = None,
        clock: Optional[Clock] = None,
        telemetry: Optional[Telemetry] = None,
    ) -> None:
        if settings is None:
            from warden.core.config import get_config
            settings = get_config().moderation
        self.actuator = actuator
        self.duplicate_detector = duplicate_detector
        self.pattern_detector = pattern_detector or PatternDetector(settings.pattern_denylist_groups)
        self.settings = settings
        self.clock = clock or SystemClock()
        self.telemetry = telemetry or Telemetry()

    async def classify(self, room: Room, account: Account, message: Message) -> bool:
        """
        Decide whether a message is spam, suspending the author if so.

        Args:
            room: Room the message was posted in.
            account: Author account.
            message: The new message.

        Returns:
            True if the author is a spammer.
        """
        state = probation_state(account, self.clock.now(), self.settings.probation_period)

        if state is ProbationState.SUSPENDED:
            return True
        if state is ProbationState.ESTABLISHED:
            return False

        is_duplicate, is_pattern = await self._run_detectors(room, account, message)

        if is_duplicate:
            self.telemetry.emit(EVENT_SPAM_DUPLICATE, {"account_id": account.id, "room_id": room.id})
        if is_pattern:
            self.telemetry.emit(EVENT_SPAM_PATTERN, {"account_id": account.id, "room_id": room.id})

        if not (is_duplicate or is_pattern):
            return False

        logger.tree("Spammer Detected", [
            ("Account", account.id),
            ("Username", account.username or "Unknown"),
            ("Room", room.id),
            ("Duplicate", "Yes" if is_duplicate else "No"),
            ("Pattern", "Yes" if is_pattern else "No"),
            ("Text", message.text[:50]),
        ], emoji="🛑")

        self.telemetry.emit(EVENT_SPAM_SUSPENDED, {"account_id": account.id})
        await self.actuator.suspend_account(account.id)
        return True

    async def _run_detectors(self, room: Room, account: Account, message: Message):
        results = await asyncio.gather(
            self.duplicate_detector.detect(account.id, message.text),
            self.pattern_detector.detect(room, message.text),
            return_exceptions=True,
        )
        names = ("Duplicate", "Pattern")
        return tuple(
            self._apply_failure_policy(name, result, account)
            for name, result in zip(names, results)
        )

    def _apply_failure_policy(self, name: str, result, account: Account) -> bool:
        if not isinstance(result, Exception):
            return bool(result)

        details = [
            ("Detector", name),
            ("Account", account.id),
            ("Error Type", type(result).__name__),
            ("Error", str(result)[:100]),
        ]
        if self.settings.detector_fail_closed:
            logger.error("Spam Detector Failed (treating as spam)", details)
            return True
        logger.warning("Spam Detector Failed (ignored)", details)
        return False


__all__ = ["SpamClassifier", "ProbationState", "probation_state"]
