"""
Warden - Centralized Constants
==============================

All magic numbers and default values are defined here for maintainability.
Import from this module instead of hardcoding values.
"""

# =============================================================================
# Time Constants (in seconds)
# =============================================================================

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

# =============================================================================
# Moderation Defaults
# =============================================================================

DEFAULT_BAD_USER_THRESHOLD = 5.0
DEFAULT_BAD_MESSAGE_THRESHOLD = 2.0
DEFAULT_SUM_PERIOD_DAYS = 5.0
DEFAULT_NEW_ACCOUNT_CLEAR_DAYS = 3.0
DEFAULT_PROBATION_DAYS = 14.0
DEFAULT_REPORT_WEIGHT = 1.0

# =============================================================================
# Persistence
# =============================================================================

MAX_INSERT_ATTEMPTS = 2               # insert-if-absent attempts before ConflictError
DB_CONNECTION_TIMEOUT = 30.0
SQLITE_BUSY_TIMEOUT = 5000            # ms

# Report listing (admin view)
REPORT_LIST_DEFAULT_LIMIT = 50
REPORT_LIST_MAX_LIMIT = 100

# =============================================================================
# Bridge
# =============================================================================

BRIDGE_REQUEST_TIMEOUT = 10           # seconds per HTTP request
BRIDGE_MAX_RETRIES = 2
BRIDGE_RETRY_BASE_DELAY = 0.5
DEFAULT_BAN_REASON = "Reported by the community"

# =============================================================================
# Network
# =============================================================================

DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8090
