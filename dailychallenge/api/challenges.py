from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from dailychallenge.api.deps import get_assigner, parse_today
from dailychallenge.core.config import settings
from dailychallenge.core.errors import AppError
from dailychallenge.features.challenges.service import DailyChallengeAssigner

router = APIRouter(prefix="/v1/challenges", tags=["challenges"])


class ToggleRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    challenge_id: str = Field(..., min_length=1)


def _detail_or_error(assigner: DailyChallengeAssigner, challenge_id: str):
    detail = assigner.get_challenge(challenge_id)
    if detail is None:
        raise AppError("Failed to retrieve challenge", code="internal_error")
    return detail


@router.get("/today")
def get_today_challenge(
    user_id: str = Query(..., min_length=1),
    today: Optional[str] = Query(None, description="Fixed date for deterministic testing (YYYY-MM-DD)"),
    assigner: DailyChallengeAssigner = Depends(get_assigner),
):
    """Get today's challenge for a user, assigning one on first request."""
    challenge_id = assigner.get_or_create_today(user_id, parse_today(today))
    return _detail_or_error(assigner, challenge_id).model_dump(mode="json")


@router.get("/upcoming")
def get_upcoming_challenges(
    user_id: str = Query(..., min_length=1),
    days: int = Query(settings.UPCOMING_DAYS_DEFAULT, ge=0, le=31),
    today: Optional[str] = Query(None, description="Fixed start date for deterministic testing (YYYY-MM-DD)"),
    assigner: DailyChallengeAssigner = Depends(get_assigner),
):
    """Assign and return the next ``days`` challenges starting today."""
    ids = assigner.generate_upcoming(user_id, days=days, start=parse_today(today))
    challenges = [_detail_or_error(assigner, cid).model_dump(mode="json") for cid in ids]
    return {"challenges": challenges, "count": len(challenges)}


@router.post("/complete")
def complete_challenge(
    req: ToggleRequest,
    assigner: DailyChallengeAssigner = Depends(get_assigner),
):
    """Mark a challenge as completed."""
    detail = assigner.complete(user_id=req.user_id, challenge_id=req.challenge_id)
    return detail.model_dump(mode="json")


@router.delete("/complete")
def uncomplete_challenge(
    req: ToggleRequest,
    assigner: DailyChallengeAssigner = Depends(get_assigner),
):
    """Unmark a completed challenge."""
    detail = assigner.uncomplete(user_id=req.user_id, challenge_id=req.challenge_id)
    return detail.model_dump(mode="json")


@router.get("/history")
def get_challenge_history(
    user_id: str = Query(..., min_length=1),
    page: int = Query(1),
    limit: int = Query(20),
    completed: Optional[bool] = Query(None),
    assigner: DailyChallengeAssigner = Depends(get_assigner),
):
    """Paginated challenge history, most recent first."""
    return assigner.history(user_id, page=page, limit=limit, completed=completed).model_dump(mode="json")
