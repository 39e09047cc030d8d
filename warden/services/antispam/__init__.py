"""
Anti-Spam Package
=================

Spam screening for accounts on probation.
"""

from .classifier import ProbationState, SpamClassifier, probation_state
from .detectors import PatternDetector, RecentDuplicateDetector, is_ethereum_address

__all__ = [
    "SpamClassifier",
    "ProbationState",
    "probation_state",
    "PatternDetector",
    "RecentDuplicateDetector",
    "is_ethereum_address",
]
