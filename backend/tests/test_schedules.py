"""
Tests for schedule generation and editing through the API:
- One round robin per level, round 1 on the Thursday after start_date
- Byes stored with a null second player and shown as BYE
- Match keys "<schedule_id>-<index>" address matches for edits
- Players in saved matches cannot be deleted until the schedule is
"""

import logging
from collections import Counter
from datetime import date

from fastapi.testclient import TestClient

START = "2026-10-19"  # Monday


def _add_players(client: TestClient, names, level=1):
    ids = []
    for name in names:
        response = client.post("/api/players", json={"name": name, "level": level})
        assert response.status_code == 201
        ids.append(response.json()["id"])
    return ids


def _generate(client: TestClient, start_date: str = START) -> dict:
    response = client.post("/api/schedules", json={"start_date": start_date})
    assert response.status_code == 201
    return response.json()


def test_generate_three_player_schedule(client: TestClient):
    _add_players(client, ["Alice", "Bob", "Cara"])
    schedule = _generate(client)

    matches = schedule["matches"]
    assert len(matches) == 6
    assert Counter(m["date"] for m in matches) == {"2026-10-22": 2, "2026-10-29": 2, "2026-11-05": 2}

    byes = [m for m in matches if m["is_bye"]]
    assert len(byes) == 3
    assert sorted(m["player1"] for m in byes) == ["Alice", "Bob", "Cara"]
    for m in byes:
        assert m["player2"] == "BYE"
        assert m["player2_id"] is None

    for m in matches:
        assert m["status"] == "scheduled"
        assert m["result"] is None
        assert m["notes"] == ""
        assert m["match_key"].startswith(f"{schedule['id']}-")

    assert len({m["match_key"] for m in matches}) == 6


def test_generate_orders_by_date_then_level(client: TestClient):
    _add_players(client, ["Xavi", "Yara"], level=2)
    _add_players(client, ["Alice", "Bob", "Cara", "Dan"], level=1)
    matches = _generate(client)["matches"]

    assert len(matches) == 1 + 6
    keys = [(m["date"], m["level"]) for m in matches]
    assert keys == sorted(keys)
    assert matches[0]["level"] == 1
    assert {m["date"] for m in matches if m["level"] == 2} == {"2026-10-22"}


def test_generate_with_no_players_is_empty(client: TestClient):
    schedule = _generate(client)
    assert schedule["matches"] == []


def test_generate_without_body_uses_today(client: TestClient):
    _add_players(client, ["Alice", "Bob"])
    response = client.post("/api/schedules")
    assert response.status_code == 201
    match_date = date.fromisoformat(response.json()["matches"][0]["date"])
    assert match_date.weekday() == 3
    assert 1 <= (match_date - date.today()).days <= 7


def test_list_and_get_schedules(client: TestClient):
    _add_players(client, ["Alice", "Bob"])
    first = _generate(client)
    second = _generate(client, "2026-11-02")

    listing = client.get("/api/schedules").json()
    assert [s["id"] for s in listing] == [first["id"], second["id"]]
    assert all(s["created_at"] == date.today().isoformat() for s in listing)

    fetched = client.get(f"/api/schedules/{second['id']}").json()
    assert fetched == second
    assert fetched["matches"][0]["date"] == "2026-11-05"


def test_get_unknown_schedule(client: TestClient):
    assert client.get("/api/schedules/999").status_code == 404


def test_update_schedule_matches(client: TestClient):
    alice, bob, cara, dan = _add_players(client, ["Alice", "Bob", "Cara", "Dan"])
    schedule = _generate(client)
    target = schedule["matches"][0]

    response = client.put(
        f"/api/schedules/{schedule['id']}",
        json={
            "matches": [
                {
                    "match_key": target["match_key"],
                    "date": "2026-10-23",
                    "status": "played",
                    "result": "1-0",
                    "notes": "moved to Friday",
                },
                {"status": "ignored without key"},
                {"match_key": "nope", "status": "ignored"},
            ]
        },
    )
    assert response.status_code == 200
    updated = next(m for m in response.json()["matches"] if m["match_key"] == target["match_key"])
    assert updated["date"] == "2026-10-23"
    assert updated["status"] == "played"
    assert updated["result"] == "1-0"
    assert updated["notes"] == "moved to Friday"
    assert updated["player1_id"] == target["player1_id"]

    untouched = [m for m in response.json()["matches"] if m["match_key"] != target["match_key"]]
    assert all(m["status"] == "scheduled" for m in untouched)


def test_update_keeps_fields_but_overwrites_result(client: TestClient):
    _add_players(client, ["Alice", "Bob"])
    schedule = _generate(client)
    key = schedule["matches"][0]["match_key"]

    client.put(f"/api/schedules/{schedule['id']}", json={"matches": [{"match_key": key, "result": "0-1"}]})
    response = client.put(f"/api/schedules/{schedule['id']}", json={"matches": [{"match_key": key, "notes": "x"}]})
    match = response.json()["matches"][0]
    assert match["result"] is None
    assert match["notes"] == "x"
    assert match["date"] == "2026-10-22"


def test_update_swaps_player(client: TestClient):
    alice, bob = _add_players(client, ["Alice", "Bob"])
    (carl,) = _add_players(client, ["Carl"], level=2)
    schedule = _generate(client)
    match = schedule["matches"][0]

    response = client.put(
        f"/api/schedules/{schedule['id']}",
        json={"matches": [{"match_key": match["match_key"], "player2_id": carl}]},
    )
    assert response.status_code == 200
    updated = response.json()["matches"][0]
    assert updated["player2_id"] == carl
    assert updated["player2"] == "Carl"


def test_update_with_unknown_player_rejected(client: TestClient):
    _add_players(client, ["Alice", "Bob"])
    schedule = _generate(client)
    key = schedule["matches"][0]["match_key"]

    response = client.put(
        f"/api/schedules/{schedule['id']}",
        json={"matches": [{"match_key": key, "player1_id": 999, "status": "played"}]},
    )
    assert response.status_code == 400

    stored = client.get(f"/api/schedules/{schedule['id']}").json()["matches"][0]
    assert stored["status"] == "scheduled"


def test_update_requires_matches_list(client: TestClient):
    _add_players(client, ["Alice", "Bob"])
    schedule = _generate(client)
    response = client.put(f"/api/schedules/{schedule['id']}", json={})
    assert response.status_code == 422


def test_update_unknown_schedule(client: TestClient):
    response = client.put("/api/schedules/999", json={"matches": []})
    assert response.status_code == 404


def test_delete_schedule_releases_players(client: TestClient):
    alice, bob = _add_players(client, ["Alice", "Bob"])
    schedule = _generate(client)

    assert client.delete(f"/api/players/{alice}").status_code == 409

    assert client.delete(f"/api/schedules/{schedule['id']}").status_code == 204
    assert client.get(f"/api/schedules/{schedule['id']}").status_code == 404
    assert client.get("/api/schedules").json() == []

    assert client.delete(f"/api/players/{alice}").status_code == 204


def test_delete_unknown_schedule(client: TestClient):
    assert client.delete("/api/schedules/999").status_code == 404


def test_delete_schedule_database_failure(client: TestClient, fail_commits, caplog):
    _add_players(client, ["Alice", "Bob"])
    schedule = _generate(client)
    fail_commits()
    with caplog.at_level(logging.ERROR):
        response = client.delete(f"/api/schedules/{schedule['id']}")

    assert response.status_code == 500
    assert response.json() == {"detail": "Server error"}
    assert any(r.levelno == logging.ERROR and "DELETE /schedules" in r.getMessage() for r in caplog.records)
    assert client.get(f"/api/schedules/{schedule['id']}").json() == schedule


def test_bye_player_can_be_deleted_after_schedule_removed(client: TestClient):
    ids = _add_players(client, ["Alice", "Bob", "Cara"])
    schedule = _generate(client)
    for pid in ids:
        assert client.delete(f"/api/players/{pid}").status_code == 409
    client.delete(f"/api/schedules/{schedule['id']}")
    for pid in ids:
        assert client.delete(f"/api/players/{pid}").status_code == 204


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_db_test(client: TestClient):
    response = client.get("/api/db-test")
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_root_points_at_api(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["api"] == "/api"
    assert "frontend" not in response.json()["message"]
