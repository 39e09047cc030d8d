"""
Warden - Utilities
==================
"""

from warden.utils.async_utils import create_safe_task, gather_with_logging, raise_first_failure
from warden.utils.retry import retry_async

__all__ = [
    "create_safe_task",
    "gather_with_logging",
    "raise_first_failure",
    "retry_async",
]
