"""
Warden - Configuration Module
=============================

Centralized configuration management with environment variable validation.

DESIGN:
    This module provides a single source of truth for all configuration,
    loaded from environment variables at startup. Moderation thresholds
    and windows are grouped in ModerationSettings so services can be
    constructed with an explicit settings object (tests build their own).

    Key patterns:
    - Singleton pattern via get_config() ensures one Config instance
    - Validation happens once at load time, not on every access
    - Out-of-range tunables are clamped with a logged warning
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import FrozenSet, Optional

from warden.core.constants import (
    DEFAULT_API_HOST,
    DEFAULT_API_PORT,
    DEFAULT_BAD_MESSAGE_THRESHOLD,
    DEFAULT_BAD_USER_THRESHOLD,
    DEFAULT_BAN_REASON,
    DEFAULT_NEW_ACCOUNT_CLEAR_DAYS,
    DEFAULT_PROBATION_DAYS,
    DEFAULT_REPORT_WEIGHT,
    DEFAULT_SUM_PERIOD_DAYS,
)


# =============================================================================
# Configuration Dataclasses
# =============================================================================

@dataclass(frozen=True)
class ModerationSettings:
    """
    Tunable constants for scoring, actuation and spam classification.

    Attributes:
        bad_user_threshold: Target-level score that suspends/bans the target.
        bad_message_threshold: Message-level score that removes the message.
        sum_period: How long a report keeps contributing to scores.
        new_account_clear_window: Accounts younger than this get their
            history purged when they cross the user threshold.
        probation_period: Accounts younger than this are screened by the
            spam classifier.
        pattern_denylist_groups: Group ids where the address pattern
            detector is active.
        detector_fail_closed: Treat a failing detector as a spam verdict
            instead of logging and ignoring it.
    """

    bad_user_threshold: float = DEFAULT_BAD_USER_THRESHOLD
    bad_message_threshold: float = DEFAULT_BAD_MESSAGE_THRESHOLD
    sum_period: timedelta = timedelta(days=DEFAULT_SUM_PERIOD_DAYS)
    new_account_clear_window: timedelta = timedelta(days=DEFAULT_NEW_ACCOUNT_CLEAR_DAYS)
    probation_period: timedelta = timedelta(days=DEFAULT_PROBATION_DAYS)
    pattern_denylist_groups: FrozenSet[str] = frozenset()
    detector_fail_closed: bool = False


@dataclass
class Config:
    """
    Service configuration loaded from environment variables.

    DESIGN:
        Nothing is strictly required: a bare environment runs with the
        default thresholds, a local SQLite file and the bridge disabled.
        Invalid moderation values raise ConfigValidationError.

    Attributes:
        moderation: Thresholds, windows and detector settings.
        default_report_weight: Weight assigned by ConstantWeightPolicy.
        db_path: SQLite database file.
        error_webhook_url: Optional webhook for error alerts.
        bridge_homeserver_url: Base URL of the federation homeserver.
        bridge_as_token: Application-service token for bridge calls.
        bridge_ban_reason: Reason attached to external bans.
        api_host: HTTP bind address.
        api_port: HTTP port.
        api_debug: Expose OpenAPI docs and error details.
        api_token: Bearer token required by the HTTP API (open if unset).
    """

    moderation: ModerationSettings = field(default_factory=ModerationSettings)
    default_report_weight: float = DEFAULT_REPORT_WEIGHT
    db_path: Path = Path("data") / "warden.db"

    # -------------------------------------------------------------------------
    # Optional: Webhooks
    # -------------------------------------------------------------------------

    error_webhook_url: Optional[str] = None

    # -------------------------------------------------------------------------
    # Optional: Federation Bridge
    # -------------------------------------------------------------------------

    bridge_homeserver_url: Optional[str] = None
    bridge_as_token: Optional[str] = None
    bridge_ban_reason: str = DEFAULT_BAN_REASON

    # -------------------------------------------------------------------------
    # Optional: HTTP API
    # -------------------------------------------------------------------------

    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT
    api_debug: bool = False
    api_token: Optional[str] = None

    @property
    def bridge_enabled(self) -> bool:
        """Whether external bans can be issued."""
        return bool(self.bridge_homeserver_url and self.bridge_as_token)


# =============================================================================
# Validation
# =============================================================================

class ConfigValidationError(Exception):
    """
    Raised when configuration is missing or invalid.

    DESIGN:
        Custom exception type allows callers to distinguish config
        errors from other startup failures.
    """
    pass


def _parse_positive_float(value: Optional[str], default: float, name: str) -> float:
    """
    Parse a strictly positive float, falling back to default when unset.

    Args:
        value: String value from environment variable.
        default: Value used when the variable is unset or empty.
        name: Variable name for error messages.

    Returns:
        Parsed float.

    Raises:
        ConfigValidationError: If value is not a number or is not positive.
    """
    if not value:
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise ConfigValidationError(f"Invalid number for {name}: {value}")
    if parsed <= 0:
        raise ConfigValidationError(f"{name} must be positive, got {value}")
    return parsed


def _parse_int_with_default(
    value: Optional[str],
    default: int,
    name: str,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
) -> int:
    """
    Parse optional integer with default and range validation.

    Args:
        value: String value from environment variable.
        default: Default value if not set or invalid.
        name: Variable name for warning messages.
        min_val: Minimum allowed value (inclusive).
        max_val: Maximum allowed value (inclusive).

    Returns:
        Parsed integer within valid range, or default.
    """
    if not value:
        return default
    try:
        parsed = int(value)
        if min_val is not None and parsed < min_val:
            from warden.core.logger import logger
            logger.warning(f"Config {name}={parsed} below min {min_val}, using {min_val}")
            return min_val
        if max_val is not None and parsed > max_val:
            from warden.core.logger import logger
            logger.warning(f"Config {name}={parsed} above max {max_val}, using {max_val}")
            return max_val
        return parsed
    except ValueError:
        from warden.core.logger import logger
        logger.warning(f"Config {name}='{value}' invalid, using default {default}")
        return default


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse a boolean flag ("1", "true", "yes", "on")."""
    if not value:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_str_set(value: Optional[str]) -> FrozenSet[str]:
    """
    Parse comma-separated string to a frozen set of non-empty strings.

    Args:
        value: Comma-separated string (e.g., "group-a, group-b").

    Returns:
        Frozen set of stripped entries, empty if input is None or empty.
    """
    if not value:
        return frozenset()
    return frozenset(part.strip() for part in value.split(",") if part.strip())


def _validate_url(value: Optional[str], name: str) -> Optional[str]:
    """
    Validate URL format for webhooks and the bridge homeserver.

    Args:
        value: URL string to validate.
        name: Variable name for warning messages.

    Returns:
        URL without trailing slash if valid, None if invalid or empty.
    """
    if not value:
        return None
    if not value.startswith(("https://", "http://")):
        from warden.core.logger import logger
        logger.warning(f"Config {name} invalid URL format, ignoring")
        return None
    return value.rstrip("/")


# =============================================================================
# Configuration Loading
# =============================================================================

def load_moderation_settings() -> ModerationSettings:
    """
    Load moderation thresholds and windows from environment variables.

    Raises:
        ConfigValidationError: If any threshold or window is invalid.
    """
    return ModerationSettings(
        bad_user_threshold=_parse_positive_float(
            os.getenv("WARDEN_BAD_USER_THRESHOLD"), DEFAULT_BAD_USER_THRESHOLD,
            "WARDEN_BAD_USER_THRESHOLD",
        ),
        bad_message_threshold=_parse_positive_float(
            os.getenv("WARDEN_BAD_MESSAGE_THRESHOLD"), DEFAULT_BAD_MESSAGE_THRESHOLD,
            "WARDEN_BAD_MESSAGE_THRESHOLD",
        ),
        sum_period=timedelta(days=_parse_positive_float(
            os.getenv("WARDEN_SUM_PERIOD_DAYS"), DEFAULT_SUM_PERIOD_DAYS,
            "WARDEN_SUM_PERIOD_DAYS",
        )),
        new_account_clear_window=timedelta(days=_parse_positive_float(
            os.getenv("WARDEN_NEW_ACCOUNT_CLEAR_DAYS"), DEFAULT_NEW_ACCOUNT_CLEAR_DAYS,
            "WARDEN_NEW_ACCOUNT_CLEAR_DAYS",
        )),
        probation_period=timedelta(days=_parse_positive_float(
            os.getenv("WARDEN_PROBATION_DAYS"), DEFAULT_PROBATION_DAYS,
            "WARDEN_PROBATION_DAYS",
        )),
        pattern_denylist_groups=_parse_str_set(os.getenv("WARDEN_PATTERN_DENYLIST_GROUPS")),
        detector_fail_closed=_parse_bool(os.getenv("WARDEN_DETECTOR_FAIL_CLOSED")),
    )


def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    DESIGN:
        Validates everything upfront before creating the Config object,
        so a bad threshold fails startup instead of the first report.

    Returns:
        Validated Config object with all settings.

    Raises:
        ConfigValidationError: If any variable is invalid.
    """
    moderation = load_moderation_settings()

    default_report_weight = _parse_positive_float(
        os.getenv("WARDEN_DEFAULT_REPORT_WEIGHT"), DEFAULT_REPORT_WEIGHT,
        "WARDEN_DEFAULT_REPORT_WEIGHT",
    )

    db_path_str = os.getenv("WARDEN_DB_PATH")
    db_path = Path(db_path_str) if db_path_str else Path("data") / "warden.db"

    return Config(
        moderation=moderation,
        default_report_weight=default_report_weight,
        db_path=db_path,
        error_webhook_url=_validate_url(
            os.getenv("WARDEN_ERROR_WEBHOOK_URL"), "WARDEN_ERROR_WEBHOOK_URL"
        ),
        bridge_homeserver_url=_validate_url(
            os.getenv("BRIDGE_HOMESERVER_URL"), "BRIDGE_HOMESERVER_URL"
        ),
        bridge_as_token=os.getenv("BRIDGE_AS_TOKEN") or None,
        bridge_ban_reason=os.getenv("BRIDGE_BAN_REASON", DEFAULT_BAN_REASON),
        api_host=os.getenv("WARDEN_API_HOST", DEFAULT_API_HOST),
        api_port=_parse_int_with_default(
            os.getenv("WARDEN_API_PORT"), DEFAULT_API_PORT, "WARDEN_API_PORT",
            min_val=1, max_val=65535,
        ),
        api_debug=_parse_bool(os.getenv("WARDEN_API_DEBUG")),
        api_token=os.getenv("WARDEN_API_TOKEN") or None,
    )


# =============================================================================
# Global Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance, loading if needed.

    Returns:
        The global Config instance.

    Raises:
        ConfigValidationError: On first call if config is invalid.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def validate_and_log_config() -> Config:
    """
    Validate configuration and log a summary at startup.

    Raises:
        ConfigValidationError: If configuration is invalid.
    """
    from warden.core.logger import logger

    config = get_config()
    settings = config.moderation

    logger.tree("Configuration Loaded", [
        ("Bad User Threshold", str(settings.bad_user_threshold)),
        ("Bad Message Threshold", str(settings.bad_message_threshold)),
        ("Sum Period", str(settings.sum_period)),
        ("New Account Clear Window", str(settings.new_account_clear_window)),
        ("Probation Period", str(settings.probation_period)),
        ("Denylisted Groups", str(len(settings.pattern_denylist_groups))),
        ("Detector Policy", "fail-closed" if settings.detector_fail_closed else "fail-open"),
        ("Bridge", "Enabled" if config.bridge_enabled else "Disabled"),
        ("Database", str(config.db_path)),
    ], emoji="⚙️")

    return config


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "Config",
    "ConfigValidationError",
    "ModerationSettings",
    "get_config",
    "load_config",
    "load_moderation_settings",
    "validate_and_log_config",
]
