from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional, Sequence

from dailychallenge.core.config import settings
from dailychallenge.core.errors import (
    ConfigurationError,
    NotFoundError,
    PermissionError,
    UniqueConstraintViolation,
    ValidationError,
)
from dailychallenge.core.logging import log_event
from dailychallenge.features.challenges.selector import select_index
from dailychallenge.features.challenges.store import ChallengeStore
from dailychallenge.models.challenge import (
    Category,
    ChallengeDetail,
    ChallengeHistoryPage,
    Pagination,
    RecentAssignment,
)
from dailychallenge.models.dates import local_today, parse_date_key, to_date_key


class DailyChallengeAssigner:
    """Deterministic daily challenge assignment and lifecycle management."""

    def __init__(
        self,
        store: ChallengeStore,
        *,
        recent_window: Optional[int] = None,
        min_history: Optional[int] = None,
        timezone_name: Optional[str] = None,
        history_limit_max: Optional[int] = None,
    ):
        self._store = store
        self._recent_window = recent_window if recent_window is not None else settings.RECENT_WINDOW_SIZE
        self._min_history = min_history if min_history is not None else settings.ANTI_REPEAT_MIN_HISTORY
        self._timezone_name = timezone_name or settings.CHALLENGE_TIMEZONE
        self._history_limit_max = history_limit_max or settings.HISTORY_PAGE_LIMIT_MAX

    def get_or_create(self, user_id: str, date_key: str) -> str:
        """
        Return the id of the user's assignment for ``date_key``, creating it
        on first request (idempotent).
        """
        parse_date_key(date_key)

        existing = self._store.fetch_assignment(user_id, date_key)
        if existing:
            return existing.id

        recent = self._store.fetch_recent_assignments(user_id, self._recent_window)

        categories = self._store.fetch_all_categories()
        if not categories:
            log_event("error", "challenge.catalog_empty", user_id=user_id, error_code="configuration_error")
            raise ConfigurationError("No categories found in the challenge catalog")

        category = self._select_category(categories, recent, date_key, self._min_history)
        if category.id != categories[select_index(date_key, len(categories))].id:
            log_event(
                "info",
                "challenge.category_redirected",
                user_id=user_id,
                event_type="challenge.anti_repetition",
                extra={"date_key": date_key, "category_id": category.id},
            )

        templates = self._store.fetch_templates_for_category(category.id)
        if not templates:
            log_event(
                "error",
                "challenge.templates_empty",
                user_id=user_id,
                error_code="configuration_error",
                extra={"category_id": category.id},
            )
            raise ConfigurationError(f"No challenge templates found for category: {category.name}")

        template = templates[select_index(date_key + category.id, len(templates))]

        try:
            assignment = self._store.insert_assignment(user_id, template.id, date_key)
        except UniqueConstraintViolation:
            # A concurrent request created the row first
            winner = self._store.fetch_assignment(user_id, date_key)
            if winner is None:
                raise
            log_event(
                "info",
                "challenge.assignment_conflict_recovered",
                user_id=user_id,
                event_type="challenge.assigned",
                extra={"date_key": date_key, "assignment_id": winner.id},
            )
            return winner.id

        log_event(
            "info",
            "challenge.assigned",
            user_id=user_id,
            event_type="challenge.assigned",
            extra={"date_key": date_key, "assignment_id": assignment.id, "template_id": template.id},
        )
        return assignment.id

    def get_or_create_today(self, user_id: str, today: Optional[date] = None) -> str:
        current = today or local_today(self._timezone_name)
        return self.get_or_create(user_id, to_date_key(current))

    def generate_upcoming(self, user_id: str, days: int = 7, start: Optional[date] = None) -> List[str]:
        """Assign the next ``days`` days (starting at ``start``) in ascending date order."""
        if days < 0:
            raise ValidationError("days must not be negative")
        first = start or local_today(self._timezone_name)
        return [
            self.get_or_create(user_id, to_date_key(first + timedelta(days=offset)))
            for offset in range(days)
        ]

    def get_challenge(self, assignment_id: str) -> Optional[ChallengeDetail]:
        return self._store.fetch_challenge_detail(assignment_id)

    def complete(self, *, user_id: str, challenge_id: str) -> ChallengeDetail:
        """Mark challenge as completed (idempotent)."""
        return self._set_completed(user_id, challenge_id, True)

    def uncomplete(self, *, user_id: str, challenge_id: str) -> ChallengeDetail:
        """Clear completion (idempotent)."""
        return self._set_completed(user_id, challenge_id, False)

    def history(
        self,
        user_id: str,
        *,
        page: int = 1,
        limit: int = 20,
        completed: Optional[bool] = None,
    ) -> ChallengeHistoryPage:
        page = max(1, page)
        limit = min(self._history_limit_max, max(1, limit))
        offset = (page - 1) * limit

        challenges = self._store.fetch_challenge_details(user_id, limit, offset=offset, completed=completed)
        total = self._store.count_assignments(user_id, completed=completed)
        total_pages = -(-total // limit)

        return ChallengeHistoryPage(
            challenges=challenges,
            pagination=Pagination(page=page, limit=limit, total=total, has_more=page < total_pages),
        )

    # Internal helpers -------------------------------------------------
    @staticmethod
    def _select_category(
        categories: Sequence[Category],
        recent: Sequence[RecentAssignment],
        date_key: str,
        min_history: int = 3,
    ) -> Category:
        """
        Date-hashed category, moved to the next category (wrapping) that is
        absent from the recent window when the hashed one was used recently.
        Falls back to the hashed category when every category is recent.
        """
        base_index = select_index(date_key, len(categories))
        recent_ids = {r.category_id for r in recent}

        if len(recent) >= min_history and categories[base_index].id in recent_ids:
            for step in range(1, len(categories)):
                candidate = categories[(base_index + step) % len(categories)]
                if candidate.id not in recent_ids:
                    return candidate

        return categories[base_index]

    def _set_completed(self, user_id: str, challenge_id: str, completed: bool) -> ChallengeDetail:
        assignment = self._store.fetch_assignment_by_id(challenge_id)
        if assignment is None:
            raise NotFoundError(f"Challenge {challenge_id} not found")
        if assignment.user_id != user_id:
            raise PermissionError("Challenge does not belong to this user")

        if self._store.set_completed(challenge_id, completed) is None:
            raise NotFoundError(f"Challenge {challenge_id} not found")

        log_event(
            "info",
            "challenge.completed" if completed else "challenge.uncompleted",
            user_id=user_id,
            event_type="challenge.toggle",
            extra={"assignment_id": challenge_id},
        )
        detail = self._store.fetch_challenge_detail(challenge_id)
        if detail is None:
            raise NotFoundError(f"Challenge {challenge_id} not found")
        return detail
