"""HTTP surface tests against an in-memory store."""

from fastapi.testclient import TestClient

from dailychallenge.features.challenges.store import InMemoryChallengeStore
from dailychallenge.main import create_app


def _today(client, user_id="api-user", today="2024-05-01"):
    resp = client.get("/v1/challenges/today", params={"user_id": user_id, "today": today})
    assert resp.status_code == 200
    return resp.json()


def test_today_is_stable(client):
    first = _today(client)
    second = _today(client)
    assert first["id"] == second["id"]
    assert first["date"] == "2024-05-01"
    assert first["completed"] is False
    assert set(first["category"]) == {"id", "name", "color", "icon"}


def test_complete_then_stats(client):
    challenge = _today(client)

    resp = client.post(
        "/v1/challenges/complete",
        json={"user_id": "api-user", "challenge_id": challenge["id"]},
    )
    assert resp.status_code == 200
    assert resp.json()["completed"] is True
    assert resp.json()["completed_at"]

    stats = client.get("/v1/users/stats", params={"user_id": "api-user", "today": "2024-05-01"}).json()["stats"]
    assert stats == {
        "total_challenges": 1,
        "completed_challenges": 1,
        "current_streak": 1,
        "longest_streak": 1,
        "completion_rate": 100,
    }


def test_uncomplete_with_delete(client):
    challenge = _today(client)
    payload = {"user_id": "api-user", "challenge_id": challenge["id"]}
    client.post("/v1/challenges/complete", json=payload)

    resp = client.request("DELETE", "/v1/challenges/complete", json=payload)

    assert resp.status_code == 200
    assert resp.json()["completed"] is False
    assert resp.json()["completed_at"] is None


def test_upcoming_returns_ordered_days(client):
    resp = client.get(
        "/v1/challenges/upcoming",
        params={"user_id": "planner", "days": 3, "today": "2024-12-30"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 3
    assert [c["date"] for c in body["challenges"]] == ["2024-12-30", "2024-12-31", "2025-01-01"]


def test_history_pagination(client):
    client.get("/v1/challenges/upcoming", params={"user_id": "hist", "days": 5, "today": "2024-01-01"})

    body = client.get("/v1/challenges/history", params={"user_id": "hist", "page": 1, "limit": 2}).json()

    assert [c["date"] for c in body["challenges"]] == ["2024-01-05", "2024-01-04"]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 5, "has_more": True}


def test_complete_other_users_challenge_forbidden(client):
    challenge = _today(client, user_id="owner")
    resp = client.post(
        "/v1/challenges/complete",
        json={"user_id": "someone-else", "challenge_id": challenge["id"]},
    )
    assert resp.status_code == 403
    body = resp.json()
    assert body["error"]["code"] == "forbidden"
    assert body["error"]["request_id"] == resp.headers.get("x-request-id")


def test_complete_unknown_challenge_not_found(client):
    resp = client.post("/v1/challenges/complete", json={"user_id": "u", "challenge_id": "nope"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


def test_invalid_date_is_validation_error(client):
    resp = client.get("/v1/challenges/today", params={"user_id": "u", "today": "01/05/2024"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "validation_error"
    assert body["error"]["request_id"] == resp.headers.get("x-request-id")


def test_missing_user_id_is_validation_error(client):
    resp = client.get("/v1/challenges/today")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"
    assert "user_id" in resp.json()["error"]["message"]


def test_unknown_route_normalized(client):
    resp = client.get("/v1/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


def test_empty_catalog_is_configuration_error():
    client = TestClient(create_app(store=InMemoryChallengeStore()))
    resp = client.get("/v1/challenges/today", params={"user_id": "u", "today": "2024-01-01"})
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "configuration_error"


def test_delete_user_cascades(client, memory_store):
    client.get("/v1/challenges/upcoming", params={"user_id": "leaver", "days": 2, "today": "2024-01-01"})

    resp = client.delete("/v1/users/leaver")

    assert resp.status_code == 200
    assert resp.json() == {"user_id": "leaver", "deleted_assignments": 2}
    assert memory_store.count_assignments("leaver") == 0


def test_health_and_readiness(client):
    assert client.get("/healthz").json() == {"status": "ok"}
    ready = client.get("/readyz")
    assert ready.status_code == 200
    assert ready.json() == {"status": "ok", "store": "InMemoryChallengeStore"}


def test_readiness_fails_without_catalog():
    client = TestClient(create_app(store=InMemoryChallengeStore()))
    resp = client.get("/readyz")
    assert resp.status_code == 503
