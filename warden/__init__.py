"""
Warden
======

Trust-and-safety core for a chat platform: abuse report ingestion,
windowed score aggregation, threshold-triggered moderation and spam
screening for new accounts.
"""

__version__ = "1.0.0"
