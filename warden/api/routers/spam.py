"""
Warden - Spam Router
====================

On-demand spam classification for newly posted messages.
"""

from fastapi import APIRouter, Depends

from warden.api.dependencies import get_engine, require_token
from warden.api.models.base import APIResponse
from warden.api.models.reports import ClassifyRequest, ClassifyResult
from warden.engine import ModerationEngine


router = APIRouter(prefix="/spam", tags=["Spam"], dependencies=[Depends(require_token)])


@router.post("/classify", response_model=APIResponse[ClassifyResult])
async def classify(
    body: ClassifyRequest,
    engine: ModerationEngine = Depends(get_engine),
) -> APIResponse[ClassifyResult]:
    """
    Classify a message. A spam verdict suspends the author before the
    response is returned.
    """
    is_spam = await engine.classify_message(body.room_id, body.account_id, body.message_id)
    return APIResponse(data=ClassifyResult(
        account_id=body.account_id,
        message_id=body.message_id,
        is_spam=is_spam,
    ))


__all__ = ["router"]
