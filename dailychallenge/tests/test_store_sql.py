"""
Tests for SqlChallengeStore against in-memory SQLite.

The same assigner and statistics flows run on both store implementations.
"""

from datetime import date

import pytest
from sqlalchemy import event, inspect
from sqlalchemy.exc import IntegrityError

from dailychallenge.core.database import REQUIRED_TABLES, check_connection, create_all_tables, init_engine
from dailychallenge.core.errors import StoreUnavailable, UniqueConstraintViolation
from dailychallenge.features.challenges.catalog import CHALLENGE_CATALOG, seed_catalog
from dailychallenge.features.challenges.service import DailyChallengeAssigner
from dailychallenge.features.challenges.store_sql import SqlChallengeStore
from dailychallenge.features.statistics.service import StatisticsEngine
from dailychallenge.models.challenge import Category


def _first_template(store):
    category = store.fetch_all_categories()[0]
    return store.fetch_templates_for_category(category.id)[0]


def test_tables_created(sql_engine):
    inspector = inspect(sql_engine)
    for table in REQUIRED_TABLES:
        assert inspector.has_table(table)
    assert check_connection(sql_engine)


def test_catalog_seeded_in_stable_order(sql_store):
    categories = sql_store.fetch_all_categories()
    names = [c.name for c in categories]
    assert names == sorted(CHALLENGE_CATALOG)
    for category in categories:
        titles = [t.title for t in sql_store.fetch_templates_for_category(category.id)]
        assert titles == sorted(titles)
        assert len(titles) == len(CHALLENGE_CATALOG[category.name][2])


def test_seed_is_idempotent(sql_store):
    assert seed_catalog(sql_store) == (0, 0)
    # Forced reseed only adds missing rows
    assert seed_catalog(sql_store, force=True) == (0, 0)


def test_duplicate_category_name_rejected(sql_store):
    existing = sql_store.fetch_all_categories()[0]
    clone = Category(id="other-id", name=existing.name, color="#111111", icon="x")
    assert sql_store.add_category(clone) is False


def test_insert_enforces_user_date_uniqueness(sql_store):
    template = _first_template(sql_store)
    sql_store.insert_assignment("u1", template.id, "2024-01-01")

    with pytest.raises(UniqueConstraintViolation):
        sql_store.insert_assignment("u1", template.id, "2024-01-01")

    # Other users and other dates are unaffected
    sql_store.insert_assignment("u2", template.id, "2024-01-01")
    sql_store.insert_assignment("u1", template.id, "2024-01-02")
    assert sql_store.count_assignments("u1") == 2


def test_set_completed_updates_both_fields(sql_store):
    template = _first_template(sql_store)
    assignment = sql_store.insert_assignment("u1", template.id, "2024-01-01")

    done = sql_store.set_completed(assignment.id, True)
    assert done.completed is True
    assert done.completed_at is not None

    cleared = sql_store.set_completed(assignment.id, False)
    assert cleared.completed is False
    assert cleared.completed_at is None

    assert sql_store.set_completed("missing", True) is None


def test_assignments_ordered_and_filtered(sql_store, make_history):
    make_history(
        sql_store,
        "u1",
        [("2024-01-02", True), ("2024-01-01", False), ("2024-01-03", False)],
    )

    desc = [a.date_key for a in sql_store.fetch_assignments_for_user("u1")]
    asc = [a.date_key for a in sql_store.fetch_assignments_for_user("u1", descending=False)]
    done = sql_store.fetch_assignments_for_user("u1", completed=True)

    assert desc == ["2024-01-03", "2024-01-02", "2024-01-01"]
    assert asc == list(reversed(desc))
    assert [a.date_key for a in done] == ["2024-01-02"]
    assert sql_store.count_assignments("u1", completed=False) == 2
    assert [a.date_key for a in sql_store.fetch_assignments_for_user("u1", limit=1, offset=1)] == ["2024-01-02"]


def test_recent_assignments_carry_category(sql_store, make_history):
    make_history(sql_store, "u1", [("2024-01-01", False), ("2024-01-02", False)])
    category = sql_store.fetch_all_categories()[0]

    recent = sql_store.fetch_recent_assignments("u1", 5)

    assert [r.date_key for r in recent] == ["2024-01-02", "2024-01-01"]
    assert {r.category_id for r in recent} == {category.id}


def test_challenge_detail_joins_template_and_category(sql_store):
    template = _first_template(sql_store)
    assignment = sql_store.insert_assignment("u1", template.id, "2024-01-01")

    detail = sql_store.fetch_challenge_detail(assignment.id)

    assert detail.title == template.title
    assert detail.description == template.description
    assert detail.category.id == template.category_id
    assert detail.date == "2024-01-01"
    assert sql_store.fetch_challenge_detail("missing") is None


def test_delete_user_assignments(sql_store, make_history):
    make_history(sql_store, "gone", [("2024-01-01", True), ("2024-01-02", False)])
    make_history(sql_store, "kept", [("2024-01-01", True)])

    assert sql_store.delete_user_assignments("gone") == 2
    assert sql_store.count_assignments("gone") == 0
    assert sql_store.count_assignments("kept") == 1


def test_assigner_and_statistics_on_sql(sql_store):
    assigner = DailyChallengeAssigner(sql_store)
    ids = assigner.generate_upcoming("flow", days=3, start=date(2024, 3, 1))
    assert assigner.generate_upcoming("flow", days=3, start=date(2024, 3, 1)) == ids

    for challenge_id in ids:
        assigner.complete(user_id="flow", challenge_id=challenge_id)

    stats = StatisticsEngine(sql_store).get_user_stats("flow", today=date(2024, 3, 3))
    assert stats.current_streak == 3
    assert stats.longest_streak == 3
    assert stats.completion_rate == 100


def test_unreachable_database_raises_store_unavailable(tmp_path):
    engine = init_engine(f"sqlite:///{tmp_path}/missing-dir/db.sqlite")
    store = SqlChallengeStore(engine)
    try:
        with pytest.raises(StoreUnavailable):
            store.fetch_all_categories()
    finally:
        engine.dispose()


def test_foreign_key_failure_is_not_reported_as_conflict():
    """Only the (user_id, date) constraint maps to UniqueConstraintViolation."""
    engine = init_engine("sqlite://")

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    try:
        create_all_tables(engine)
        store = SqlChallengeStore(engine)
        seed_catalog(store)

        with pytest.raises(IntegrityError) as exc:
            store.insert_assignment("u1", "no-such-template", "2024-01-01")
        assert not isinstance(exc.value, UniqueConstraintViolation)

        template = _first_template(store)
        store.insert_assignment("u1", template.id, "2024-01-01")
        with pytest.raises(UniqueConstraintViolation):
            store.insert_assignment("u1", template.id, "2024-01-01")
    finally:
        engine.dispose()
