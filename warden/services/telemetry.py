"""
Warden - Telemetry
==================

Fire-and-forget event emission for moderation decisions.

DESIGN:
    Services hold a Telemetry observer and call emit() synchronously.
    Each sink is invoked inside a guard: a raising sink is logged and
    skipped, an async sink is scheduled with create_safe_task. Nothing a
    sink does can fail or delay the moderation path.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Dict, Iterable, List, Set

from warden.core.logger import logger
from warden.services.interfaces import TelemetrySink
from warden.utils.async_utils import create_safe_task


# =============================================================================
# Event Names
# =============================================================================

EVENT_REPORT_CREATED = "report.created"
EVENT_BAD_ACCOUNT = "moderation.bad_account"
EVENT_BAD_MESSAGE = "moderation.bad_message"
EVENT_SPAM_DUPLICATE = "spam.duplicate_detected"
EVENT_SPAM_PATTERN = "spam.pattern_detected"
EVENT_SPAM_SUSPENDED = "spam.auto_suspend"


# =============================================================================
# Observer
# =============================================================================

class Telemetry:
    """Fans events out to every registered sink."""

    def __init__(self, sinks: Iterable[TelemetrySink] = ()) -> None:
        self._sinks: List[TelemetrySink] = list(sinks)
        self._pending: Set[asyncio.Task] = set()

    def add_sink(self, sink: TelemetrySink) -> None:
        self._sinks.append(sink)

    def emit(self, event_name: str, payload: Dict[str, Any]) -> None:
        """Deliver an event to every sink. Never raises."""
        for sink in self._sinks:
            try:
                result = sink.emit(event_name, dict(payload))
            except Exception as e:
                logger.warning("Telemetry Sink Failed", [
                    ("Event", event_name),
                    ("Sink", type(sink).__name__),
                    ("Error", str(e)[:100]),
                ])
                continue

            if inspect.isawaitable(result):
                self._schedule(event_name, result)

    def _schedule(self, event_name: str, awaitable: Awaitable[None]) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Telemetry Dropped", [
                ("Event", event_name),
                ("Reason", "No running event loop"),
            ])
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        async def deliver() -> None:
            await awaitable

        task = create_safe_task(deliver(), name=f"Telemetry {event_name}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush(self) -> None:
        """Wait for background deliveries still in flight."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


# =============================================================================
# Sinks
# =============================================================================

class LoggingTelemetrySink:
    """Writes every event to the tree logger."""

    def emit(self, event_name: str, payload: Dict[str, Any]) -> None:
        items = [(key.replace("_", " ").title(), str(value)) for key, value in payload.items()]
        logger.tree(f"Telemetry: {event_name}", items, emoji="📡")


__all__ = [
    "Telemetry",
    "LoggingTelemetrySink",
    "EVENT_REPORT_CREATED",
    "EVENT_BAD_ACCOUNT",
    "EVENT_BAD_MESSAGE",
    "EVENT_SPAM_DUPLICATE",
    "EVENT_SPAM_PATTERN",
    "EVENT_SPAM_SUSPENDED",
]
