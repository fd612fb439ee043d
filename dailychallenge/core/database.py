"""
Engine construction, session scope and the challenge schema.

Tables are SQLAlchemy Core ``Table`` objects on one shared ``MetaData``. The
engine is built by the caller (app lifespan, seed script, tests) and passed
down; nothing here holds a module-level engine.
"""
import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, MetaData, Table, Column, String, DateTime, Boolean, Text, Index, ForeignKey, UniqueConstraint, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.sql import func

from dailychallenge.core.config import settings
from dailychallenge.core.logging import LOGGER_NAME


metadata = MetaData()

# Pool sizing for server databases
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # seconds

logger = logging.getLogger(LOGGER_NAME)


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url)


def init_engine(database_url: Optional[str] = None) -> Engine:
    """
    Build an engine for ``database_url`` (falls back to DATABASE_URL).

    The caller owns the engine and must dispose it.
    """
    url = database_url or settings.DATABASE_URL
    if not url:
        raise ValueError("DATABASE_URL is not set; pass a URL or configure it in the environment")

    if _is_memory_sqlite(url):
        # One shared connection, otherwise every checkout sees an empty database
        return create_engine(url, poolclass=StaticPool, connect_args={"check_same_thread": False})

    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        pool_recycle=POOL_RECYCLE,
        pool_pre_ping=True,
    )


@contextmanager
def session_scope(session_factory: sessionmaker):
    """Yield a session; commit on success, roll back on any error."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables(engine: Engine) -> None:
    """Create missing tables. Existing tables are left untouched."""
    metadata.create_all(bind=engine)


def drop_all_tables(engine: Engine) -> None:
    """Drop every challenge table, including all assignments."""
    metadata.drop_all(bind=engine)


def reset_database(engine: Engine) -> None:
    drop_all_tables(engine)
    create_all_tables(engine)


def check_connection(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning(f"Database connection check failed: {exc}")
        return False
    return True


categories = Table(
    'categories',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('name', String(100), unique=True, nullable=False),
    Column('color', String(20), nullable=False),
    Column('icon', String(50), nullable=False),
)

challenge_templates = Table(
    'challenge_templates',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('title', Text, nullable=False),
    Column('description', Text, nullable=False),
    Column('category_id', String(100), ForeignKey('categories.id'), nullable=False),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Index('idx_challenge_templates_category_id', 'category_id'),
)

# One row per (user, calendar date); date is a YYYY-MM-DD string
user_challenges = Table(
    'user_challenges',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('user_id', String(100), nullable=False),
    Column('template_id', String(100), ForeignKey('challenge_templates.id'), nullable=False),
    Column('date', String(10), nullable=False),
    Column('completed', Boolean, nullable=False, server_default='0'),
    Column('completed_at', DateTime(timezone=True), nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    UniqueConstraint('user_id', 'date', name='uq_user_challenges_user_date'),
    Index('idx_user_challenges_user_id', 'user_id'),
    Index('idx_user_challenges_date', 'date'),
)

REQUIRED_TABLES = ["categories", "challenge_templates", "user_challenges"]
