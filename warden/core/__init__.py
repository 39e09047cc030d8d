"""
Warden - Core Module
====================

Configuration, logging, domain models and persistence.
"""

from warden.core.config import Config, ModerationSettings, get_config
from warden.core.errors import (
    ConflictError,
    ForbiddenError,
    ModerationError,
    NotFoundError,
    UpstreamError,
)
from warden.core.logger import logger

__all__ = [
    "Config",
    "ModerationSettings",
    "get_config",
    "logger",
    "ModerationError",
    "NotFoundError",
    "ForbiddenError",
    "ConflictError",
    "UpstreamError",
]
