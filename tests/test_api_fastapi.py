from __future__ import annotations

from fastapi.testclient import TestClient

from api.main import create_app
from core.storage import InMemoryDataSource


def _client() -> TestClient:
    source = InMemoryDataSource(
        athletes=[
            {"id": "1", "name": "Samuel Johnson", "status": "cleared", "phase_end_date": "2025-02-01"},
            {"id": "2", "name": "Ava Torres", "status": "not cleared"},
            {"id": "3", "name": "Marcus Lee", "status": "injured"},
        ],
        programs=[
            {"id": "p1", "athlete_id": "1", "start_date": "2025-01-01", "end_date": "2025-01-20"},
        ],
    )
    return TestClient(create_app(source))


def _open(client: TestClient, **body) -> dict:
    payload = {"athlete_id": "1", "start_date": "2025-01-06"}
    payload.update(body)
    resp = client.post("/api/v1/builder", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health_and_request_id_header():
    client = _client()
    resp = client.get("/api/v1/health", headers={"X-Request-ID": "trace-42"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Request-ID"] == "trace-42"
    generated = client.get("/api/v1/health").headers["X-Request-ID"]
    assert len(generated) == 32


def test_suggested_start_skips_existing_program():
    client = _client()
    resp = client.get("/api/v1/athletes/1/suggested-start", params={"today": "2025-01-10"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["start_date"] == "2025-01-21"
    assert body["end_date"] == "2025-03-03"
    assert body["suggested_build_type"] == "standard"

    injured = client.get("/api/v1/athletes/3/suggested-start", params={"today": "2025-01-10"}).json()
    assert injured["start_date"] == "2025-01-10"
    assert injured["suggested_build_type"] == "intervention"

    assert client.get("/api/v1/athletes/99/suggested-start").status_code == 404


def test_open_builder_returns_default_blocks():
    client = _client()
    body = _open(client)
    assert body["athlete_id"] == "1"
    assert body["end_date"] == "2025-02-16"
    assert [b["start_date"] for b in body["blocks"]] == ["2025-01-06", "2025-02-03", "2025-03-03", "2025-03-31"]
    assert body["blocks"][0]["name"] == "Block 1"
    assert body["blocks"][0]["training_days"] == 24
    assert body["days_off"] == [0]


def test_open_builder_validation():
    client = _client()
    assert client.post("/api/v1/builder", json={"athlete_id": "404", "start_date": "2025-01-06"}).status_code == 404
    bad = client.post("/api/v1/builder", json={"start_date": "2025-01-06", "routine_types": ["juggling"]})
    assert bad.status_code == 422
    assert client.post("/api/v1/builder", json={"start_date": "2025-01-06", "block_count": 0}).status_code == 422


def test_weeks_and_days_navigation():
    client = _client()
    sid = _open(client, training_split="3")["session_id"]
    weeks = client.get(f"/api/v1/builder/{sid}/blocks/1/weeks").json()
    assert len(weeks) == 4
    assert weeks[0]["title"] == "Week 1"
    assert weeks[0]["start_date"] == "2025-02-03"

    days = client.get(f"/api/v1/builder/{sid}/blocks/1/weeks/0/days").json()
    assert [d["day_of_week"] for d in days] == [1, 2, 3, 4, 5, 6, 0]
    assert [d["name"] for d in days if not d["is_rest"]] == ["Monday", "Wednesday", "Friday"]

    assert client.get(f"/api/v1/builder/{sid}/blocks/1/weeks/9/days").status_code == 404
    assert client.get(f"/api/v1/builder/{sid}/blocks/8/weeks").status_code == 404


def test_block_edit_and_auto_fix():
    client = _client()
    sid = _open(client)["session_id"]
    resp = client.patch(f"/api/v1/builder/{sid}/blocks/0", json={"end_date": "2025-02-05"})
    assert resp.status_code == 200
    assert resp.json()["duration_weeks"] == 4

    report = client.get(f"/api/v1/builder/{sid}/issues").json()
    assert report["can_advance"] is False
    overlap = report["blocking"][0]
    assert overlap["category"] == "Block Overlap"
    assert overlap["action"] == "Auto-fix Dates"

    fixed = client.post(f"/api/v1/builder/{sid}/blocks/auto-fix").json()
    assert fixed["moved"] == [1, 2, 3]
    assert fixed["blocks"][1]["start_date"] == "2025-02-06"

    report = client.get(f"/api/v1/builder/{sid}/issues").json()
    assert report["blocking"] == []
    assert [w["category"] for w in report["warnings"]] == ["Phase Boundary"]
    assert report["can_advance"] is True


def test_block_edit_rejects_empty_body():
    client = _client()
    sid = _open(client)["session_id"]
    assert client.patch(f"/api/v1/builder/{sid}/blocks/0", json={}).status_code == 422
    assert client.patch(f"/api/v1/builder/{sid}/blocks/7", json={"duration_weeks": 2}).status_code == 404


def test_settings_override_flow():
    client = _client()
    sid = _open(client)["session_id"]
    url = f"/api/v1/builder/{sid}/settings"

    applied = client.put(url, json={"routine": "lifting", "field": "scheme", "value": "wave", "block_index": 1})
    assert applied.json()["status"] == "applied"

    day = client.put(url, json={
        "routine": "lifting", "field": "scheme", "value": "pyramid",
        "block_index": 1, "week_index": 0, "day_index": 1, "level": "day",
    })
    assert day.status_code == 200
    assert day.json()["level"] == "day"

    params = {"routine": "lifting", "field": "scheme", "block_index": 1, "week_index": 0}
    assert client.get(url, params={**params, "day_index": 1}).json()["value"] == "pyramid"
    assert client.get(url, params={**params, "day_index": 2}).json()["value"] == "wave"

    badge = client.get(f"/api/v1/builder/{sid}/overrides/badge", params={"routine": "lifting", "field": "scheme", "block_index": 1})
    assert badge.json()["has_overrides"] is True

    staged = client.put(url, json={"routine": "lifting", "field": "scheme", "value": "cluster", "block_index": 1}).json()
    assert staged["status"] == "awaiting-confirmation"
    assert staged["affected_count"] == 1
    assert client.get(url, params={**params, "day_index": 1}).json()["value"] == "pyramid"

    confirmed = client.post(f"/api/v1/builder/{sid}/pending/{staged['token']}/confirm").json()
    assert confirmed["status"] == "applied"
    assert confirmed["cleared_overrides"] == 1
    assert client.get(url, params={**params, "day_index": 1}).json()["value"] == "cluster"

    again = client.post(f"/api/v1/builder/{sid}/pending/{staged['token']}/discard")
    assert again.status_code == 409


def test_discard_keeps_overrides():
    client = _client()
    sid = _open(client)["session_id"]
    url = f"/api/v1/builder/{sid}/settings"
    client.put(url, json={"routine": "movement", "field": "volume", "value": "low", "block_index": 0, "week_index": 2, "level": "week"})
    staged = client.put(url, json={"routine": "movement", "field": "volume", "value": "high", "block_index": 0}).json()
    discarded = client.post(f"/api/v1/builder/{sid}/pending/{staged['token']}/discard").json()
    assert discarded["status"] == "discarded"
    value = client.get(url, params={"routine": "movement", "field": "volume", "block_index": 0, "week_index": 2}).json()
    assert value["value"] == "low"


def test_settings_errors():
    client = _client()
    sid = _open(client)["session_id"]
    url = f"/api/v1/builder/{sid}/settings"
    unknown_field = client.put(url, json={"routine": "lifting", "field": "tempo", "value": "x", "block_index": 0})
    assert unknown_field.status_code == 422
    missing_week = client.put(url, json={"routine": "lifting", "field": "scheme", "value": "x", "block_index": 0, "level": "week"})
    assert missing_week.status_code == 422
    outside = client.put(url, json={"routine": "lifting", "field": "scheme", "value": "x", "block_index": 0, "week_index": 12, "level": "week"})
    assert outside.status_code == 422
    read_unknown = client.get(url, params={"routine": "xrole", "field": "catcher", "block_index": 0})
    assert read_unknown.status_code == 422


def test_not_cleared_athlete_cannot_advance():
    client = _client()
    sid = _open(client, athlete_id="2")["session_id"]
    report = client.get(f"/api/v1/builder/{sid}/issues").json()
    assert [i["category"] for i in report["blocking"]] == ["Athlete Status"]


def test_close_builder():
    client = _client()
    sid = _open(client)["session_id"]
    assert client.delete(f"/api/v1/builder/{sid}").json() == {"status": "closed"}
    assert client.get(f"/api/v1/builder/{sid}/blocks").status_code == 404
    assert client.delete(f"/api/v1/builder/{sid}").status_code == 404


def test_duration_edit_reports_requested_weeks():
    client = _client()
    sid = _open(client)["session_id"]
    resized = client.patch(f"/api/v1/builder/{sid}/blocks/3", json={"duration_weeks": 4}).json()
    assert resized["duration_weeks"] == 4
    assert resized["end_date"] == "2025-04-28"

    one_week = client.patch(f"/api/v1/builder/{sid}/blocks/3", json={"duration_weeks": 1}).json()
    assert one_week["duration_weeks"] == 1
    categories = [i["category"] for i in client.get(f"/api/v1/builder/{sid}/issues").json()["blocking"]]
    assert "Block Duration" not in categories


def test_day_off_toggle_flows_into_days_and_block_counts():
    client = _client()
    opened = _open(client, training_split="3")
    sid = opened["session_id"]
    assert opened["days_off"] == [0, 2, 4, 6]
    assert opened["blocks"][0]["training_days"] == 12

    toggled = client.patch(f"/api/v1/builder/{sid}/days-off", json={"day_of_week": 6})
    assert toggled.status_code == 200
    assert toggled.json()["days_off"] == [0, 2, 4]
    assert toggled.json()["blocks"][0]["training_days"] == 16

    days = client.get(f"/api/v1/builder/{sid}/blocks/0/weeks/0/days").json()
    assert [d["name"] for d in days if not d["is_rest"]] == ["Monday", "Wednesday", "Friday", "Saturday"]

    assert client.patch(f"/api/v1/builder/{sid}/days-off", json={"day_of_week": 7}).status_code == 422


def test_pending_change_lookup():
    client = _client()
    sid = _open(client)["session_id"]
    url = f"/api/v1/builder/{sid}/settings"
    client.put(url, json={"routine": "throwing", "field": "phase", "value": "build", "block_index": 2, "week_index": 1, "level": "week"})
    staged = client.put(url, json={"routine": "throwing", "field": "phase", "value": "peak", "block_index": 2}).json()

    found = client.get(f"/api/v1/builder/{sid}/pending/{staged['token']}")
    assert found.status_code == 200
    assert found.json()["status"] == "awaiting-confirmation"
    assert found.json()["affected_count"] == 1

    client.post(f"/api/v1/builder/{sid}/pending/{staged['token']}/discard")
    assert client.get(f"/api/v1/builder/{sid}/pending/{staged['token']}").status_code == 404
