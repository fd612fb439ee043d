# dailychallenge/conftest.py
import sys
from datetime import date
from pathlib import Path

import pytest

# Add repo root to PYTHONPATH
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def memory_store():
    """In-memory store with the standard catalog seeded."""
    from dailychallenge.features.challenges.catalog import seed_catalog
    from dailychallenge.features.challenges.store import InMemoryChallengeStore

    store = InMemoryChallengeStore()
    seed_catalog(store)
    return store


@pytest.fixture
def empty_store():
    from dailychallenge.features.challenges.store import InMemoryChallengeStore

    return InMemoryChallengeStore()


@pytest.fixture
def sql_engine():
    """
    Private in-memory SQLite database per test.

    Disposed after the test so no state leaks between tests.
    """
    from dailychallenge.core.database import create_all_tables, init_engine

    engine = init_engine("sqlite://")
    create_all_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine):
    from dailychallenge.features.challenges.catalog import seed_catalog
    from dailychallenge.features.challenges.store_sql import SqlChallengeStore

    store = SqlChallengeStore(sql_engine)
    seed_catalog(store)
    return store


@pytest.fixture
def client(memory_store):
    from fastapi.testclient import TestClient

    from dailychallenge.main import create_app

    return TestClient(create_app(store=memory_store))


@pytest.fixture
def make_history():
    """
    Build a user's history from (date, completed) pairs, bypassing selection.

    Every row uses the first template of the first category.
    """

    def _make(store, user_id, rows):
        category = store.fetch_all_categories()[0]
        template = store.fetch_templates_for_category(category.id)[0]
        created = []
        for day, completed in rows:
            key = day.isoformat() if isinstance(day, date) else day
            assignment = store.insert_assignment(user_id, template.id, key)
            if completed:
                assignment = store.set_completed(assignment.id, True)
            created.append(assignment)
        return created

    return _make

