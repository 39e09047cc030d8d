"""
Anti-Spam Constants
===================

Thresholds and patterns for the spam classifier's detectors.
"""

# =============================================================================
# Pattern Detection
# =============================================================================

# A bare Ethereum address and nothing else
ETHEREUM_ADDRESS_PATTERN = r'0x[0-9a-f]{40}'

# =============================================================================
# Duplicate Detection
# =============================================================================

DUPLICATE_LIMIT = 3  # 3 similar messages = spam
DUPLICATE_TIME_WINDOW = 60 * 60  # seconds
DUPLICATE_SIMILARITY_THRESHOLD = 0.85  # 85% similar = duplicate
DUPLICATE_MIN_LENGTH = 10  # ignore short/casual repeated messages
DUPLICATE_HISTORY_SIZE = 50  # messages kept per account
