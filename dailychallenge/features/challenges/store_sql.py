"""
SQLAlchemy-backed challenge store.

Maintains the identical interface to InMemoryChallengeStore. Uniqueness of
(user_id, date) comes from the ``uq_user_challenges_user_date`` constraint;
the completion toggle is a single UPDATE so readers never see a half-applied
change.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker

from dailychallenge.core.database import (
    categories,
    challenge_templates,
    session_scope,
    user_challenges,
)
from dailychallenge.core.errors import StoreUnavailable, UniqueConstraintViolation
from dailychallenge.models.challenge import (
    Assignment,
    Category,
    ChallengeDetail,
    ChallengeTemplate,
    RecentAssignment,
)

USER_DATE_CONSTRAINT = "uq_user_challenges_user_date"

_ASSIGNMENT_COLUMNS = (
    user_challenges.c.id,
    user_challenges.c.user_id,
    user_challenges.c.date,
    user_challenges.c.template_id,
    user_challenges.c.completed,
    user_challenges.c.completed_at,
    user_challenges.c.created_at,
)

_DETAIL_COLUMNS = (
    user_challenges.c.id,
    user_challenges.c.date,
    user_challenges.c.completed,
    user_challenges.c.completed_at,
    user_challenges.c.created_at,
    challenge_templates.c.title,
    challenge_templates.c.description,
    categories.c.id.label("category_id"),
    categories.c.name.label("category_name"),
    categories.c.color.label("category_color"),
    categories.c.icon.label("category_icon"),
)


class SqlChallengeStore:
    """Store bound to an engine owned by the caller."""

    def __init__(self, engine: Engine):
        self._engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _session(self):
        try:
            with session_scope(self._session_factory) as session:
                yield session
        except OperationalError as exc:
            raise StoreUnavailable(f"Challenge store unavailable: {exc.orig}") from exc

    # Catalog -----------------------------------------------------------
    def add_category(self, category: Category) -> bool:
        try:
            with self._session() as session:
                session.execute(insert(categories).values(**category.model_dump()))
            return True
        except IntegrityError:
            return False

    def add_template(self, template: ChallengeTemplate) -> None:
        values = template.model_dump()
        values["created_at"] = template.created_at or datetime.now(timezone.utc)
        with self._session() as session:
            session.execute(insert(challenge_templates).values(**values))

    def fetch_all_categories(self) -> List[Category]:
        with self._session() as session:
            rows = session.execute(
                select(categories).order_by(categories.c.name.asc(), categories.c.id.asc())
            ).all()
        return [Category(id=r.id, name=r.name, color=r.color, icon=r.icon) for r in rows]

    def fetch_templates_for_category(self, category_id: str) -> List[ChallengeTemplate]:
        with self._session() as session:
            rows = session.execute(
                select(challenge_templates)
                .where(challenge_templates.c.category_id == category_id)
                .order_by(challenge_templates.c.title.asc(), challenge_templates.c.id.asc())
            ).all()
        return [
            ChallengeTemplate(
                id=r.id,
                title=r.title,
                description=r.description,
                category_id=r.category_id,
                created_at=r.created_at,
            )
            for r in rows
        ]

    # Assignments -------------------------------------------------------
    def fetch_assignment(self, user_id: str, date_key: str) -> Optional[Assignment]:
        with self._session() as session:
            row = session.execute(
                select(*_ASSIGNMENT_COLUMNS).where(
                    and_(user_challenges.c.user_id == user_id, user_challenges.c.date == date_key)
                )
            ).first()
        return _to_assignment(row) if row else None

    def fetch_assignment_by_id(self, assignment_id: str) -> Optional[Assignment]:
        with self._session() as session:
            row = session.execute(
                select(*_ASSIGNMENT_COLUMNS).where(user_challenges.c.id == assignment_id)
            ).first()
        return _to_assignment(row) if row else None

    def fetch_recent_assignments(self, user_id: str, limit: int) -> List[RecentAssignment]:
        with self._session() as session:
            rows = session.execute(
                select(user_challenges.c.id, user_challenges.c.date, challenge_templates.c.category_id)
                .join(challenge_templates, user_challenges.c.template_id == challenge_templates.c.id)
                .where(user_challenges.c.user_id == user_id)
                .order_by(user_challenges.c.date.desc())
                .limit(limit)
            ).all()
        return [RecentAssignment(id=r.id, date_key=r.date, category_id=r.category_id) for r in rows]

    def insert_assignment(self, user_id: str, template_id: str, date_key: str) -> Assignment:
        assignment = Assignment(
            id=str(uuid4()),
            user_id=user_id,
            date_key=date_key,
            template_id=template_id,
            completed=False,
            created_at=datetime.now(timezone.utc),
        )
        try:
            with self._session() as session:
                session.execute(
                    insert(user_challenges).values(
                        id=assignment.id,
                        user_id=user_id,
                        template_id=template_id,
                        date=date_key,
                        completed=False,
                        created_at=assignment.created_at,
                    )
                )
        except IntegrityError as exc:
            if not _is_user_date_conflict(exc):
                raise
            raise UniqueConstraintViolation(
                f"Assignment already exists for user {user_id} on {date_key}"
            ) from exc
        return assignment

    def set_completed(self, assignment_id: str, completed: bool) -> Optional[Assignment]:
        completed_at = datetime.now(timezone.utc) if completed else None
        with self._session() as session:
            result = session.execute(
                update(user_challenges)
                .where(user_challenges.c.id == assignment_id)
                .values(completed=completed, completed_at=completed_at)
            )
            if result.rowcount == 0:
                return None
            row = session.execute(
                select(*_ASSIGNMENT_COLUMNS).where(user_challenges.c.id == assignment_id)
            ).first()
        return _to_assignment(row)

    def fetch_assignments_for_user(
        self,
        user_id: str,
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
        completed: Optional[bool] = None,
    ) -> List[Assignment]:
        order = user_challenges.c.date.desc() if descending else user_challenges.c.date.asc()
        query = select(*_ASSIGNMENT_COLUMNS).where(user_challenges.c.user_id == user_id)
        if completed is not None:
            query = query.where(user_challenges.c.completed == completed)
        query = query.order_by(order)
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        with self._session() as session:
            rows = session.execute(query).all()
        return [_to_assignment(r) for r in rows]

    def count_assignments(self, user_id: str, completed: Optional[bool] = None) -> int:
        query = select(func.count()).select_from(user_challenges).where(user_challenges.c.user_id == user_id)
        if completed is not None:
            query = query.where(user_challenges.c.completed == completed)
        with self._session() as session:
            return session.execute(query).scalar_one()

    def fetch_challenge_detail(self, assignment_id: str) -> Optional[ChallengeDetail]:
        with self._session() as session:
            row = session.execute(
                _detail_query().where(user_challenges.c.id == assignment_id)
            ).first()
        return _to_detail(row) if row else None

    def fetch_challenge_details(
        self,
        user_id: str,
        limit: int,
        offset: int = 0,
        completed: Optional[bool] = None,
    ) -> List[ChallengeDetail]:
        query = _detail_query().where(user_challenges.c.user_id == user_id)
        if completed is not None:
            query = query.where(user_challenges.c.completed == completed)
        query = query.order_by(user_challenges.c.date.desc()).limit(limit).offset(offset)
        with self._session() as session:
            rows = session.execute(query).all()
        return [_to_detail(r) for r in rows]

    def delete_user_assignments(self, user_id: str) -> int:
        with self._session() as session:
            result = session.execute(delete(user_challenges).where(user_challenges.c.user_id == user_id))
            return result.rowcount


def _is_user_date_conflict(exc: IntegrityError) -> bool:
    """True when ``exc`` comes from the (user_id, date) unique constraint."""
    diag = getattr(exc.orig, "diag", None)
    if diag is not None and getattr(diag, "constraint_name", None):
        return diag.constraint_name == USER_DATE_CONSTRAINT
    message = str(exc.orig)
    # SQLite names the columns rather than the constraint
    return (
        USER_DATE_CONSTRAINT in message
        or "UNIQUE constraint failed: user_challenges.user_id, user_challenges.date" in message
    )


def _detail_query():
    return (
        select(*_DETAIL_COLUMNS)
        .select_from(user_challenges)
        .join(challenge_templates, user_challenges.c.template_id == challenge_templates.c.id)
        .join(categories, challenge_templates.c.category_id == categories.c.id)
    )


def _to_assignment(row) -> Assignment:
    return Assignment(
        id=row.id,
        user_id=row.user_id,
        date_key=row.date,
        template_id=row.template_id,
        completed=bool(row.completed),
        completed_at=row.completed_at,
        created_at=row.created_at,
    )


def _to_detail(row) -> ChallengeDetail:
    return ChallengeDetail(
        id=row.id,
        date=row.date,
        title=row.title,
        description=row.description,
        completed=bool(row.completed),
        completed_at=row.completed_at if row.completed else None,
        created_at=row.created_at,
        category=Category(
            id=row.category_id,
            name=row.category_name,
            color=row.category_color,
            icon=row.category_icon,
        ),
    )
