from datetime import date
from typing import Optional

from fastapi import Depends, Request

from dailychallenge.features.challenges.service import DailyChallengeAssigner
from dailychallenge.features.challenges.store import ChallengeStore
from dailychallenge.features.statistics.service import StatisticsEngine
from dailychallenge.models.dates import parse_date_key


def get_store(request: Request) -> ChallengeStore:
    """Store created by the application lifespan."""
    return request.app.state.store


def get_assigner(store: ChallengeStore = Depends(get_store)) -> DailyChallengeAssigner:
    return DailyChallengeAssigner(store)


def get_statistics(store: ChallengeStore = Depends(get_store)) -> StatisticsEngine:
    return StatisticsEngine(store)


def parse_today(today: Optional[str]) -> Optional[date]:
    return parse_date_key(today) if today else None
