"""
Warden - Anti-Spam Detectors
============================

Content signals consulted by the spam classifier.
"""

import re
from collections import deque
from datetime import datetime, timedelta
from difflib import SequenceMatcher
from typing import Deque, Dict, Iterable, Optional, Pattern, Tuple

from warden.core.clock import Clock, SystemClock
from warden.core.models import Room

from .constants import (
    DUPLICATE_HISTORY_SIZE,
    DUPLICATE_LIMIT,
    DUPLICATE_MIN_LENGTH,
    DUPLICATE_SIMILARITY_THRESHOLD,
    DUPLICATE_TIME_WINDOW,
    ETHEREUM_ADDRESS_PATTERN,
)


# =============================================================================
# Compiled Regex Patterns
# =============================================================================

ETHEREUM_ADDRESS_REGEX: Pattern = re.compile(ETHEREUM_ADDRESS_PATTERN, re.IGNORECASE)


# =============================================================================
# Content Analysis
# =============================================================================

def is_ethereum_address(text: str) -> bool:
    """True only when the entire text is one address; substrings never match."""
    if not text:
        return False
    return ETHEREUM_ADDRESS_REGEX.fullmatch(text) is not None


def is_similar(text1: str, text2: str) -> bool:
    """Check if two texts are similar using fuzzy matching."""
    if not text1 or not text2:
        return False
    if text1 == text2:
        return True
    ratio = SequenceMatcher(None, text1, text2).ratio()
    return ratio >= DUPLICATE_SIMILARITY_THRESHOLD


# =============================================================================
# Pattern Detector
# =============================================================================

class PatternDetector:
    """
    Flags bare wallet addresses posted in denylisted communities.

    The detector is inactive for rooms whose group is not in the denylist,
    including rooms that belong to no group.
    """

    def __init__(self, denylist_groups: Iterable[str] = ()) -> None:
        self.denylist_groups = frozenset(denylist_groups)

    def is_active(self, room: Room) -> bool:
        return room.group_id is not None and room.group_id in self.denylist_groups

    async def detect(self, room: Room, text: str) -> bool:
        return self.is_active(room) and is_ethereum_address(text)


# =============================================================================
# Duplicate Detector
# =============================================================================

class RecentDuplicateDetector:
    """
    In-memory DuplicateContentDetector.

    DESIGN:
        Keeps a bounded history of recent texts per account. A message is a
        duplicate when at least DUPLICATE_LIMIT - 1 earlier messages inside
        the window are identical or similar to it. Short texts are recorded
        but never flagged. History lives in process memory and is lost on
        restart.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        limit: int = DUPLICATE_LIMIT,
        window: timedelta = timedelta(seconds=DUPLICATE_TIME_WINDOW),
        min_length: int = DUPLICATE_MIN_LENGTH,
    ) -> None:
        self.clock = clock or SystemClock()
        self.limit = limit
        self.window = window
        self.min_length = min_length
        self._history: Dict[str, Deque[Tuple[str, datetime]]] = {}

    def _forget_stale(self, now: datetime) -> None:
        """Drop accounts whose newest recorded message has left the window."""
        stale = [
            account_id for account_id, history in self._history.items()
            if not history or now - history[-1][1] > self.window
        ]
        for account_id in stale:
            del self._history[account_id]

    async def detect(self, account_id: str, text: str) -> bool:
        now = self.clock.now()
        self._forget_stale(now)
        history = self._history.setdefault(account_id, deque(maxlen=DUPLICATE_HISTORY_SIZE))

        while history and now - history[0][1] > self.window:
            history.popleft()

        if not text or len(text) < self.min_length:
            history.append((text, now))
            return False

        similar_count = sum(1 for previous, _ in history if is_similar(previous, text))
        history.append((text, now))
        return similar_count >= self.limit - 1


__all__ = [
    "ETHEREUM_ADDRESS_REGEX",
    "is_ethereum_address",
    "is_similar",
    "PatternDetector",
    "RecentDuplicateDetector",
]
