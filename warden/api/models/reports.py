"""
Warden - Report API Models
==========================

Request and response models for reports, scores and spam checks.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from warden.core.models import Report


# =============================================================================
# Requests
# =============================================================================

class ReportCreate(BaseModel):
    """Body of POST /reports."""

    reporter_id: str = Field(min_length=1, description="Account submitting the report")
    message_id: str = Field(min_length=1, description="Message being reported")


class ClassifyRequest(BaseModel):
    """Body of POST /spam/classify."""

    room_id: str = Field(min_length=1)
    account_id: str = Field(min_length=1)
    message_id: str = Field(min_length=1)


# =============================================================================
# Responses
# =============================================================================

class VirtualIdentityOut(BaseModel):
    provider: str
    external_id: str


class ReportOut(BaseModel):
    """A stored report."""

    id: int
    reporter_id: str
    message_id: str
    target_account_id: str
    target_virtual: Optional[VirtualIdentityOut] = None
    weight: float
    submitted_at: datetime
    snapshot_text: str

    @classmethod
    def from_report(cls, report: Report) -> "ReportOut":
        virtual = None
        if report.target_virtual is not None:
            virtual = VirtualIdentityOut(
                provider=report.target_virtual.provider,
                external_id=report.target_virtual.external_id,
            )
        return cls(
            id=report.id,
            reporter_id=report.reporter_id,
            message_id=report.message_id,
            target_account_id=report.target_account_id,
            target_virtual=virtual,
            weight=report.weight,
            submitted_at=report.submitted_at,
            snapshot_text=report.snapshot_text,
        )


class ScoreOut(BaseModel):
    """Current windowed score and the threshold it is compared against."""

    subject: str
    score: float
    threshold: float
    over_threshold: bool


class ClassifyResult(BaseModel):
    """Spam verdict for one message."""

    account_id: str
    message_id: str
    is_spam: bool


__all__ = [
    "ReportCreate",
    "ClassifyRequest",
    "ReportOut",
    "VirtualIdentityOut",
    "ScoreOut",
    "ClassifyResult",
]
