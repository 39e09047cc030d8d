"""
Warden - Scores Router
======================

Read-only access to current windowed scores.
"""

from fastapi import APIRouter, Depends

from warden.api.dependencies import get_engine, require_token
from warden.api.models.base import APIResponse
from warden.api.models.reports import ScoreOut
from warden.core.models import NativeTarget, VirtualTarget, describe_target
from warden.engine import ModerationEngine


router = APIRouter(prefix="/scores", tags=["Scores"], dependencies=[Depends(require_token)])


def _score(subject: str, score: float, threshold: float) -> ScoreOut:
    return ScoreOut(subject=subject, score=score, threshold=threshold, over_threshold=score >= threshold)


@router.get("/accounts/{account_id}", response_model=APIResponse[ScoreOut])
async def account_score(
    account_id: str,
    engine: ModerationEngine = Depends(get_engine),
) -> APIResponse[ScoreOut]:
    """Score of a native account (reports against its virtual identities excluded)."""
    target = NativeTarget(account_id=account_id)
    score = await engine.aggregator.sum_for_target(target)
    return APIResponse(data=_score(
        describe_target(target), score, engine.config.moderation.bad_user_threshold,
    ))


@router.get("/virtual/{provider}/{external_id}", response_model=APIResponse[ScoreOut])
async def virtual_identity_score(
    provider: str,
    external_id: str,
    engine: ModerationEngine = Depends(get_engine),
) -> APIResponse[ScoreOut]:
    """Score of a bridged virtual identity."""
    target = VirtualTarget(provider=provider, external_id=external_id)
    score = await engine.aggregator.sum_for_target(target)
    return APIResponse(data=_score(
        describe_target(target), score, engine.config.moderation.bad_user_threshold,
    ))


@router.get("/messages/{message_id}", response_model=APIResponse[ScoreOut])
async def message_score(
    message_id: str,
    engine: ModerationEngine = Depends(get_engine),
) -> APIResponse[ScoreOut]:
    """Score of a single message."""
    score = await engine.aggregator.sum_for_message(message_id)
    return APIResponse(data=_score(
        message_id, score, engine.config.moderation.bad_message_threshold,
    ))


__all__ = ["router"]
