from dailychallenge.core.database import init_engine
from dailychallenge.features.challenges.store_sql import SqlChallengeStore
from dailychallenge.scripts.seed_db import seed_database


def test_seed_database_populates_file_db(tmp_path):
    url = f"sqlite:///{tmp_path}/seed.db"

    first = seed_database(database_url=url)
    second = seed_database(database_url=url)

    assert first["categories"] == 6
    assert first["templates"] == 60
    assert (second["categories"], second["templates"]) == (0, 0)

    engine = init_engine(url)
    try:
        assert len(SqlChallengeStore(engine).fetch_all_categories()) == 6
    finally:
        engine.dispose()


def test_reset_drops_assignments(tmp_path):
    url = f"sqlite:///{tmp_path}/reset.db"
    seed_database(database_url=url)

    engine = init_engine(url)
    try:
        store = SqlChallengeStore(engine)
        category = store.fetch_all_categories()[0]
        template = store.fetch_templates_for_category(category.id)[0]
        store.insert_assignment("u1", template.id, "2024-01-01")
    finally:
        engine.dispose()

    report = seed_database(database_url=url, reset=True)
    assert report["reset"] is True
    assert report["templates"] == 60

    engine = init_engine(url)
    try:
        assert SqlChallengeStore(engine).count_assignments("u1") == 0
    finally:
        engine.dispose()
