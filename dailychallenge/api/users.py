from typing import Optional

from fastapi import APIRouter, Depends, Query

from dailychallenge.api.deps import get_statistics, get_store, parse_today
from dailychallenge.features.challenges.store import ChallengeStore
from dailychallenge.features.statistics.service import StatisticsEngine
from dailychallenge.features.users.service import delete_user

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.get("/stats")
def get_user_stats(
    user_id: str = Query(..., min_length=1),
    today: Optional[str] = Query(None, description="Fixed date for deterministic testing (YYYY-MM-DD)"),
    engine: StatisticsEngine = Depends(get_statistics),
):
    """Streaks and completion rate for a user."""
    stats = engine.get_user_stats(user_id, parse_today(today))
    return {"stats": stats.model_dump()}


@router.delete("/{user_id}")
def delete_user_data(user_id: str, store: ChallengeStore = Depends(get_store)):
    """Cascade hook for the auth layer: drop all of a user's assignments."""
    return {"user_id": user_id, "deleted_assignments": delete_user(store, user_id)}
