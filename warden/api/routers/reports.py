"""
Warden - Reports Router
=======================

Report submission and admin listing.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from warden.api.dependencies import get_engine, require_token
from warden.api.models.base import APIResponse, CursorMeta, CursorPage
from warden.api.models.reports import ReportCreate, ReportOut
from warden.core.constants import REPORT_LIST_DEFAULT_LIMIT, REPORT_LIST_MAX_LIMIT
from warden.engine import ModerationEngine


router = APIRouter(prefix="/reports", tags=["Reports"], dependencies=[Depends(require_token)])


@router.post("", response_model=APIResponse[ReportOut], status_code=HTTP_201_CREATED)
async def submit_report(
    body: ReportCreate,
    engine: ModerationEngine = Depends(get_engine),
) -> APIResponse[ReportOut]:
    """
    Report a message.

    Resubmitting the same (reporter, message) pair returns the original
    report and triggers nothing.
    """
    report = await engine.reports.submit_report(body.reporter_id, body.message_id)
    return APIResponse(data=ReportOut.from_report(report))


@router.get("", response_model=CursorPage[ReportOut])
async def list_reports(
    limit: int = Query(REPORT_LIST_DEFAULT_LIMIT, ge=1, le=REPORT_LIST_MAX_LIMIT),
    before_id: Optional[int] = Query(None, ge=1),
    after_id: Optional[int] = Query(None, ge=0),
    engine: ModerationEngine = Depends(get_engine),
) -> CursorPage[ReportOut]:
    """List reports newest first, paging by report id."""
    reports = await engine.reports.list_reports(limit=limit, before_id=before_id, after_id=after_id)
    items = [ReportOut.from_report(r) for r in reports]

    return CursorPage(
        data=items,
        pagination=CursorMeta(
            limit=limit,
            count=len(items),
            next_before_id=items[-1].id if len(items) == limit else None,
            prev_after_id=items[0].id if items else None,
        ),
    )


@router.get("/{report_id}", response_model=APIResponse[ReportOut])
async def get_report(
    report_id: int,
    engine: ModerationEngine = Depends(get_engine),
) -> APIResponse[ReportOut]:
    """Get a single report."""
    report = await engine.reports.get_report(report_id)
    return APIResponse(data=ReportOut.from_report(report))


__all__ = ["router"]
