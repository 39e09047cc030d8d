"""
Warden - Base API Models
========================

Common response models.
"""

from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field


# =============================================================================
# Generic Type Variables
# =============================================================================

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Base Response Models
# =============================================================================

class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class CursorMeta(BaseModel):
    """Cursor pagination metadata for id-ordered listings."""

    limit: int = Field(ge=1, le=100, description="Requested page size")
    count: int = Field(ge=0, description="Items in this page")
    next_before_id: Optional[int] = Field(None, description="Pass as before_id for the next (older) page")
    prev_after_id: Optional[int] = Field(None, description="Pass as after_id for the previous (newer) page")


class CursorPage(BaseModel, Generic[T]):
    """Cursor-paginated list response."""

    success: bool = True
    data: List[T]
    pagination: CursorMeta
    timestamp: datetime = Field(default_factory=_utcnow)


class HealthStatus(BaseModel):
    """Health check payload."""

    status: str = "healthy"
    service: str = "warden"
    run_id: Optional[str] = None
    db_connected: bool = True
    bridge_enabled: bool = False
    reports: int = 0


class SystemHealth(HealthStatus):
    """Detailed health including process resources."""

    uptime_seconds: int
    memory_mb: float
    cpu_percent: float
    db_size_mb: Optional[float] = None


__all__ = [
    "APIResponse",
    "CursorMeta",
    "CursorPage",
    "HealthStatus",
    "SystemHealth",
]
