"""Thread-safety of the in-memory store under FastAPI's thread pool."""

import threading

from dailychallenge.features.challenges.service import DailyChallengeAssigner
from dailychallenge.features.statistics.service import StatisticsEngine


def test_reads_while_inserting_never_fail(memory_store):
    """Readers iterate the dictionaries while a writer keeps growing them."""
    category = memory_store.fetch_all_categories()[0]
    template = memory_store.fetch_templates_for_category(category.id)[0]
    done = threading.Event()
    errors = []

    def writer():
        try:
            for i in range(20000):
                memory_store.insert_assignment(f"user-{i}", template.id, "2024-01-01")
        except Exception as exc:
            errors.append(exc)
        finally:
            done.set()

    def reader():
        stats = StatisticsEngine(memory_store)
        assigner = DailyChallengeAssigner(memory_store)
        try:
            while not done.is_set():
                stats.get_user_stats("nobody")
                assigner.history("nobody")
                memory_store.fetch_recent_assignments("user-0", 5)
                memory_store.fetch_all_categories()
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert errors == []
    assert memory_store.count_assignments("user-19999") == 1


def test_recent_assignments_newest_first(memory_store, make_history):
    make_history(memory_store, "u1", [("2024-01-01", True), ("2024-01-03", False), ("2024-01-02", True)])

    recent = memory_store.fetch_recent_assignments("u1", 2)

    assert [r.date_key for r in recent] == ["2024-01-03", "2024-01-02"]


def test_concurrent_first_requests_share_one_row(memory_store):
    assigner = DailyChallengeAssigner(memory_store)
    results = []

    def request():
        results.append(assigner.get_or_create("racer", "2024-02-02"))

    threads = [threading.Thread(target=request) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(set(results)) == 1
    assert memory_store.count_assignments("racer") == 1
