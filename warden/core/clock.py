"""
Warden - Clock
==============

Time source for window and probation checks.

DESIGN:
    Services never call datetime.now() directly; they receive a Clock so
    boundary tests (sum period, probation period) can pin "now".
"""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime:
        """Current timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def to_timestamp(value: datetime) -> float:
    """Epoch seconds for a datetime (naive values are treated as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def from_timestamp(value: float) -> datetime:
    """UTC datetime for epoch seconds."""
    return datetime.fromtimestamp(value, tz=timezone.utc)


__all__ = ["Clock", "SystemClock", "to_timestamp", "from_timestamp"]
