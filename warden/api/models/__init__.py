"""
Warden - API Models
===================
"""

from .base import APIResponse, CursorMeta, CursorPage, HealthStatus, SystemHealth
from .reports import (
    ClassifyRequest,
    ClassifyResult,
    ReportCreate,
    ReportOut,
    ScoreOut,
    VirtualIdentityOut,
)

__all__ = [
    "APIResponse",
    "CursorMeta",
    "CursorPage",
    "HealthStatus",
    "SystemHealth",
    "ReportCreate",
    "ClassifyRequest",
    "ReportOut",
    "VirtualIdentityOut",
    "ScoreOut",
    "ClassifyResult",
]
