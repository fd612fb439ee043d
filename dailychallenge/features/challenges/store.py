"""
Challenge store contract and in-memory implementation.

The assigner and statistics engine only talk to a ``ChallengeStore``; the
caller decides which implementation backs it and owns its lifecycle.
``InMemoryChallengeStore`` is used for tests and when DATABASE_URL is unset;
``SqlChallengeStore`` (store_sql.py) keeps the identical interface on top of
SQLAlchemy.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Tuple
from uuid import uuid4

from dailychallenge.core.errors import UniqueConstraintViolation
from dailychallenge.models.challenge import (
    Assignment,
    Category,
    ChallengeDetail,
    ChallengeTemplate,
    RecentAssignment,
)


class ChallengeStore(Protocol):
    """
    Persistence collaborator for the challenge core.

    Implementations must enforce uniqueness of (user_id, date_key) and apply
    ``completed``/``completed_at`` in a single atomic write.
    """

    def fetch_assignment(self, user_id: str, date_key: str) -> Optional[Assignment]:
        ...

    def fetch_assignment_by_id(self, assignment_id: str) -> Optional[Assignment]:
        ...

    def fetch_recent_assignments(self, user_id: str, limit: int) -> List[RecentAssignment]:
        """Most recent assignments first, each with its template's category id."""
        ...

    def fetch_all_categories(self) -> List[Category]:
        """All categories ordered by name, then id."""
        ...

    def fetch_templates_for_category(self, category_id: str) -> List[ChallengeTemplate]:
        """Templates of one category ordered by title, then id."""
        ...

    def insert_assignment(self, user_id: str, template_id: str, date_key: str) -> Assignment:
        """
        Raises:
            UniqueConstraintViolation: an assignment already exists for (user_id, date_key)
        """
        ...

    def set_completed(self, assignment_id: str, completed: bool) -> Optional[Assignment]:
        ...

    def fetch_assignments_for_user(
        self,
        user_id: str,
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
        completed: Optional[bool] = None,
    ) -> List[Assignment]:
        ...

    def count_assignments(self, user_id: str, completed: Optional[bool] = None) -> int:
        ...

    def fetch_challenge_detail(self, assignment_id: str) -> Optional[ChallengeDetail]:
        ...

    def fetch_challenge_details(
        self,
        user_id: str,
        limit: int,
        offset: int = 0,
        completed: Optional[bool] = None,
    ) -> List[ChallengeDetail]:
        """Assignments joined with template and category, most recent first."""
        ...

    def add_category(self, category: Category) -> bool:
        """Insert a category; False if one with the same name exists."""
        ...

    def add_template(self, template: ChallengeTemplate) -> None:
        ...

    def delete_user_assignments(self, user_id: str) -> int:
        ...


class InMemoryChallengeStore:
    """
    Dictionary-backed store.

    Every method holds the lock while it touches the dictionaries, readers
    included, because FastAPI runs sync endpoints on a thread pool. Readers
    copy what they need under the lock and filter or sort afterwards.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._categories: Dict[str, Category] = {}
        self._templates: Dict[str, ChallengeTemplate] = {}
        self._assignments: Dict[str, Assignment] = {}
        self._by_user_date: Dict[Tuple[str, str], str] = {}

    # Catalog -----------------------------------------------------------
    def add_category(self, category: Category) -> bool:
        with self._lock:
            if any(c.name == category.name for c in self._categories.values()):
                return False
            self._categories[category.id] = category
            return True

    def add_template(self, template: ChallengeTemplate) -> None:
        with self._lock:
            if template.category_id not in self._categories:
                raise ValueError(f"Unknown category {template.category_id}")
            if template.created_at is None:
                template = template.model_copy(update={"created_at": datetime.now(timezone.utc)})
            self._templates[template.id] = template

    def fetch_all_categories(self) -> List[Category]:
        with self._lock:
            rows = list(self._categories.values())
        return sorted(rows, key=lambda c: (c.name, c.id))

    def fetch_templates_for_category(self, category_id: str) -> List[ChallengeTemplate]:
        with self._lock:
            rows = [t for t in self._templates.values() if t.category_id == category_id]
        return sorted(rows, key=lambda t: (t.title, t.id))

    # Assignments -------------------------------------------------------
    def fetch_assignment(self, user_id: str, date_key: str) -> Optional[Assignment]:
        with self._lock:
            assignment_id = self._by_user_date.get((user_id, date_key))
            return self._assignments.get(assignment_id) if assignment_id else None

    def fetch_assignment_by_id(self, assignment_id: str) -> Optional[Assignment]:
        with self._lock:
            return self._assignments.get(assignment_id)

    def fetch_recent_assignments(self, user_id: str, limit: int) -> List[RecentAssignment]:
        with self._lock:
            recent = self._rows_for_user(user_id, descending=True, limit=limit)
            return [
                RecentAssignment(
                    id=a.id,
                    date_key=a.date_key,
                    category_id=self._templates[a.template_id].category_id,
                )
                for a in recent
            ]

    def insert_assignment(self, user_id: str, template_id: str, date_key: str) -> Assignment:
        with self._lock:
            if (user_id, date_key) in self._by_user_date:
                raise UniqueConstraintViolation(
                    f"Assignment already exists for user {user_id} on {date_key}"
                )
            assignment = Assignment(
                id=str(uuid4()),
                user_id=user_id,
                date_key=date_key,
                template_id=template_id,
                completed=False,
                created_at=datetime.now(timezone.utc),
            )
            self._assignments[assignment.id] = assignment
            self._by_user_date[(user_id, date_key)] = assignment.id
            return assignment

    def set_completed(self, assignment_id: str, completed: bool) -> Optional[Assignment]:
        with self._lock:
            current = self._assignments.get(assignment_id)
            if current is None:
                return None
            updated = current.model_copy(
                update={
                    "completed": completed,
                    "completed_at": datetime.now(timezone.utc) if completed else None,
                }
            )
            self._assignments[assignment_id] = updated
            return updated

    def fetch_assignments_for_user(
        self,
        user_id: str,
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
        completed: Optional[bool] = None,
    ) -> List[Assignment]:
        with self._lock:
            return self._rows_for_user(user_id, descending, limit, offset, completed)

    def count_assignments(self, user_id: str, completed: Optional[bool] = None) -> int:
        with self._lock:
            rows = list(self._assignments.values())
        return sum(
            1 for a in rows
            if a.user_id == user_id and (completed is None or a.completed == completed)
        )

    def fetch_challenge_detail(self, assignment_id: str) -> Optional[ChallengeDetail]:
        with self._lock:
            assignment = self._assignments.get(assignment_id)
            return self._to_detail(assignment) if assignment else None

    def fetch_challenge_details(
        self,
        user_id: str,
        limit: int,
        offset: int = 0,
        completed: Optional[bool] = None,
    ) -> List[ChallengeDetail]:
        with self._lock:
            rows = self._rows_for_user(user_id, True, limit, offset, completed)
            return [self._to_detail(a) for a in rows]

    def delete_user_assignments(self, user_id: str) -> int:
        with self._lock:
            doomed = [a for a in self._assignments.values() if a.user_id == user_id]
            for a in doomed:
                del self._assignments[a.id]
                del self._by_user_date[(a.user_id, a.date_key)]
            return len(doomed)

    # Internal helpers (caller holds the lock) --------------------------
    def _rows_for_user(
        self,
        user_id: str,
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
        completed: Optional[bool] = None,
    ) -> List[Assignment]:
        rows = [
            a for a in self._assignments.values()
            if a.user_id == user_id and (completed is None or a.completed == completed)
        ]
        rows.sort(key=lambda a: a.date_key, reverse=descending)
        end = offset + limit if limit is not None else None
        return rows[offset:end]

    def _to_detail(self, assignment: Assignment) -> ChallengeDetail:
        template = self._templates[assignment.template_id]
        category = self._categories[template.category_id]
        return ChallengeDetail(
            id=assignment.id,
            date=assignment.date_key,
            title=template.title,
            description=template.description,
            completed=assignment.completed,
            completed_at=assignment.completed_at,
            created_at=assignment.created_at,
            category=category,
        )
