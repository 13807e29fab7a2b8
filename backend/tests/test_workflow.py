from __future__ import annotations

import math

import pytest
from fastapi.testclient import TestClient


def _set_shift(client: TestClient, start: str = "2024-01-01T09:00", end: str = "2024-01-01T17:00") -> dict:
    resp = client.patch("/shift/standard", json={"start_time": start, "end_time": end, "hourly_rate": 20})
    assert resp.status_code == 200
    return resp.json()


def test_healthz(client: TestClient):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_geometry_endpoint(client: TestClient):
    data = client.get("/geometry").json()
    assert data["start_point"] == {"x": 30.0, "y": 170.0}
    assert data["end_point"] == {"x": 170.0, "y": 170.0}
    assert data["gap_angle"] == pytest.approx(2 * math.asin(70 / 90))


def test_initial_standard_view(client: TestClient):
    data = client.get("/shift/standard").json()
    assert data["start_time"] is None
    assert data["breaks"] == []
    assert data["errors"] == {"_errors": []}
    progress = data["progress"]
    assert progress["now"] is None
    assert progress["elapsed_ms"] is None
    assert progress["progress"] == 0.0
    assert progress["earnings"] == 0.0
    assert progress["timer"]["is_running"] is False


def test_start_pause_flow_reports_progress(client: TestClient, clock):
    _set_shift(client)

    start_resp = client.post("/shift/standard/toggle")
    assert start_resp.status_code == 200
    assert start_resp.json()["progress"]["timer"]["is_running"] is True

    clock.advance(hours=2)
    pause_resp = client.post("/shift/standard/toggle")
    data = pause_resp.json()["progress"]
    assert data["timer"]["is_running"] is False
    assert data["elapsed_ms"] == 2 * 3_600_000
    assert data["progress"] == pytest.approx(0.25)
    assert data["earnings"] == 40.0
    assert data["total_duration_ms"] == 8 * 3_600_000
    assert data["progress_segment"]["major_arc"] is False

    clock.advance(hours=1)
    resumed = client.post("/shift/standard/toggle").json()["progress"]
    assert resumed["timer"]["accumulated_pause_ms"] == 3_600_000
    assert resumed["elapsed_ms"] == 2 * 3_600_000


def test_invalid_edit_returns_error_tree(client: TestClient):
    _set_shift(client)
    resp = client.patch("/shift/standard", json={"end_time": "2024-01-01T08:00"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["end_time"] == "2024-01-01T17:00:00"
    assert data["errors"]["end_time"]["_errors"] == ["Shift ends before it begins"]


def test_break_lifecycle(client: TestClient):
    _set_shift(client)
    created = client.post("/shift/standard/breaks")
    assert created.status_code == 201
    assert created.json()["breaks"] == [{"break_start": None, "break_end": None}]

    updated = client.patch(
        "/shift/standard/breaks/0",
        json={"break_start": "2024-01-01T12:00", "break_end": "2024-01-01T13:00"},
    ).json()
    segment = updated["progress"]["breaks"][0]
    assert segment["start_fraction"] == pytest.approx(3 / 8)
    assert segment["span_fraction"] == pytest.approx(1 / 8)
    assert segment["is_flipped"] is False

    outside = client.patch("/shift/standard/breaks/0", json={"break_end": "2024-01-01T18:00"}).json()
    assert outside["errors"]["breaks"]["0"]["break_end"]["_errors"] == ["Break outside shift hours"]
    assert outside["breaks"][0]["break_end"] == "2024-01-01T13:00:00"

    assert client.patch("/shift/standard/breaks/5", json={"break_end": ""}).status_code == 404

    removed = client.delete("/shift/standard/breaks/0").json()
    assert removed["breaks"] == []
    assert removed["progress"]["breaks"] == []


def test_countdown_before_start(client: TestClient):
    _set_shift(client, start="2024-01-01T10:01:01", end="2024-01-01T18:00")
    data = client.post("/shift/standard/toggle").json()["progress"]
    assert data["elapsed_ms"] == -(3_600_000 + 61_000)
    assert data["time_to_shift_start"] == "1h 1m 1s"
    assert data["progress"] == 0.0


def test_standard_reset(client: TestClient):
    _set_shift(client)
    client.post("/shift/standard/toggle")
    data = client.post("/shift/standard/reset").json()
    assert data["start_time"] is None
    assert data["hourly_rate"] is None
    assert data["progress"]["timer"]["is_running"] is False
    assert data["progress"]["now"] is None


def test_flexible_flow(client: TestClient, clock):
    missing = client.post("/shift/flexible/toggle").json()
    assert missing["errors"]["duration_hours"]["_errors"] == ["Duration must be set"]
    assert missing["start_time"] is None

    edited = client.patch("/shift/flexible", json={"duration_hours": 1, "hourly_rate": 12}).json()
    assert edited["duration_hours"] == 1
    assert edited["errors"] == {"_errors": []}

    started = client.post("/shift/flexible/toggle").json()
    assert started["start_time"] == "2024-01-01T09:00:00"
    assert started["end_time"] == "2024-01-01T10:00:00"

    clock.advance(minutes=30)
    paused = client.post("/shift/flexible/toggle").json()["progress"]
    assert paused["progress"] == pytest.approx(0.5)
    assert paused["earnings"] == 6.0

    bad = client.patch("/shift/flexible", json={"duration_minutes": 60}).json()
    assert bad["duration_minutes"] is None
    assert bad["errors"]["duration_minutes"]["_errors"]

    reset = client.post("/shift/flexible/reset").json()
    assert reset["duration_hours"] is None
    assert reset["start_time"] is None


def test_break_countdown_in_progress(client: TestClient, clock):
    _set_shift(client)
    client.post("/shift/standard/breaks")
    idle = client.patch(
        "/shift/standard/breaks/0",
        json={"break_start": "2024-01-01T12:00", "break_end": "2024-01-01T13:00"},
    ).json()["progress"]["breaks"][0]
    assert idle["countdown_ms"] is None
    assert idle["countdown"] is None

    upcoming = client.post("/shift/standard/toggle").json()["progress"]["breaks"][0]
    assert upcoming["countdown_ms"] == -3 * 3_600_000
    assert upcoming["countdown"] == "-3h 0m 0s"

    clock.advance(hours=3, minutes=30)
    inside = client.post("/shift/standard/toggle").json()["progress"]["breaks"][0]
    assert inside["countdown_ms"] == 30 * 60_000
    assert inside["countdown"] == "0h 30m 0s"
