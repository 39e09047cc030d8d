"""
Warden - Async Utilities
========================

Concurrent fan-out for moderation side effects.

The report pipeline evaluates the account-level and message-level
thresholds side by side. Both must finish before the caller hears
about a failure, so results are collected first and failures
re-raised afterwards:

    results = await gather_with_logging(
        ("Account Threshold", check_account()),
        ("Message Threshold", check_message()),
        context="Report 42",
    )
    raise_first_failure(results)
"""

import asyncio
from typing import Any, Coroutine, List, Optional, Tuple

from warden.core.logger import logger


async def gather_with_logging(
    *operations: Tuple[str, Coroutine[Any, Any, Any]],
    context: Optional[str] = None,
) -> List[Any]:
    """
    Await every labelled coroutine and log the ones that failed.

    Args:
        *operations: (label, coroutine) pairs.
        context: Extra label prepended to each failure log.

    Returns:
        One entry per operation, in order. Failed operations leave
        their exception in place of a result.
    """
    labels = [label for label, _ in operations]
    results = await asyncio.gather(
        *(coro for _, coro in operations),
        return_exceptions=True,
    )

    for label, outcome in zip(labels, results):
        if not isinstance(outcome, Exception):
            continue
        details = [
            ("Operation", label),
            ("Error Type", type(outcome).__name__),
            ("Error", str(outcome)[:100]),
        ]
        if context:
            details = [("Context", context)] + details
        logger.warning("Moderation Step Failed", details)

    return results


def raise_first_failure(results: List[Any]) -> None:
    """Re-raise the earliest exception from gather_with_logging output."""
    failure = next((r for r in results if isinstance(r, BaseException)), None)
    if failure is not None:
        raise failure


# =============================================================================
# Background Tasks
# =============================================================================

def create_safe_task(
    coro: Coroutine[Any, Any, Any],
    name: str = "Background Task",
) -> asyncio.Task:
    """
    Schedule a coroutine whose failure is logged instead of lost.

    Used for telemetry deliveries that must never reach the caller.
    """
    async def guarded() -> None:
        try:
            await coro
        except asyncio.CancelledError:
            pass  # loop shutting down
        except Exception as e:
            logger.error("Background Task Failed", [
                ("Task", name),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:200]),
            ])

    return asyncio.create_task(guarded())


__all__ = [
    "gather_with_logging",
    "raise_first_failure",
    "create_safe_task",
]
