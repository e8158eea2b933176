import pytest
from fastapi.testclient import TestClient
from nostr_sdk import PublicKey

from conftest import AUTHOR_A, AUTHOR_B
from workout_league.db import get_session
from workout_league.main import app

ADMIN = {"Authorization": "Bearer test-admin"}
NPUB_A = PublicKey.parse(AUTHOR_A).to_bech32()

@pytest.fixture
def client(session_factory):
    def _session():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_session] = _session
    yield TestClient(app)
    app.dependency_overrides.clear()

def _submission(**overrides):
    body = {
        "event_id": "f" * 64,
        "npub": NPUB_A,
        "activity_type": "running",
        "distance_meters": 5000,
        "duration_seconds": 1500,
        "calories": 320,
        "created_at": "2026-01-10T07:00:00Z",
        "raw_event": {"kind": 1301},
        "source": "app",
    }
    body.update(overrides)
    return body

def _create_competition(client, **overrides):
    body = {
        "external_id": "jan-2026",
        "name": "January distance",
        "activity_type": "running",
        "scoring_method": "total_distance",
        "start_date": "2026-01-01T00:00:00Z",
        "end_date": "2026-01-31T23:59:59Z",
    }
    body.update(overrides)
    return client.post("/competitions", json=body, headers=ADMIN)

def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}

def test_submit_is_idempotent(client):
    first = client.post("/workouts/submit", json=_submission())
    assert first.status_code == 200
    assert first.json()["success"] is True
    assert first.json()["duplicate"] is False

    second = client.post("/workouts/submit", json=_submission())
    assert second.status_code == 200
    assert second.json()["duplicate"] is True

def test_flagged_submission_reports_reason(client):
    r = client.post("/workouts/submit", json=_submission(distance_meters=10000, duration_seconds=600))
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is False
    assert body["flagged"] is True
    assert body["reason"] == "superhuman_pace"

def test_malformed_submission_is_rejected(client):
    assert client.post("/workouts/submit", json={"event_id": "x"}).status_code == 422
    assert client.post("/workouts/submit", json=_submission(created_at="not a date")).status_code == 422
    assert client.post("/workouts/submit", json=_submission(npub="author-a")).status_code == 422

def test_competition_lifecycle(client):
    assert _create_competition(client).status_code == 201
    assert _create_competition(client).status_code == 409

    got = client.get("/competitions/jan-2026").json()
    assert got["start_at"] == 1767225600

    for author in (NPUB_A, AUTHOR_B):
        r = client.post("/competitions/jan-2026/participants", json={"npub": author})
        assert r.json() == {"ok": True, "joined": True}
    again = client.post("/competitions/jan-2026/participants", json={"author": AUTHOR_A})
    assert again.json()["joined"] is False

    client.post("/workouts/submit", json=_submission())
    board = client.get("/competitions/jan-2026/leaderboard").json()
    assert board["scoring_method"] == "total_distance"
    assert [(r["author"], r["score"], r["rank"]) for r in board["rows"]] == [
        (AUTHOR_A, 5000, 1),
        (AUTHOR_B, 0, 2),
    ]

def test_unknown_competition(client):
    assert client.get("/competitions/nope/leaderboard").status_code == 404

def test_admin_endpoints_need_token(client):
    assert _create_competition(client, external_id="x").status_code == 201
    r = client.post(
        "/competitions", json={"external_id": "y", "activity_type": "running",
                               "start_date": "2026-01-01T00:00:00Z", "end_date": "2026-01-02T00:00:00Z"},
        headers={"Authorization": "Bearer wrong"},
    )
    assert r.status_code == 401
    assert client.get("/admin/flagged").status_code == 401

def test_end_before_start_is_rejected(client):
    r = _create_competition(client, start_date="2026-02-01T00:00:00Z", end_date="2026-01-01T00:00:00Z")
    assert r.status_code == 422

def test_overturned_flag_starts_scoring(client):
    _create_competition(client, scoring_method="workout_count")
    client.post("/competitions/jan-2026/participants", json={"npub": NPUB_A})
    # 2:30/km: flagged by default limits, plausible for this athlete on appeal
    client.post("/workouts/submit", json=_submission(distance_meters=10000, duration_seconds=1000))

    flagged = client.get("/admin/flagged", params={"status": "pending"}, headers=ADMIN).json()
    assert [f["reason"] for f in flagged] == ["superhuman_pace"]

    board = client.get("/competitions/jan-2026/leaderboard").json()
    assert board["rows"][0]["score"] == 0

    r = client.post(f"/admin/flagged/{'f' * 64}/review", json={"status": "overturned"}, headers=ADMIN)
    assert r.json()["review_status"] == "overturned"
    board = client.get("/competitions/jan-2026/leaderboard").json()
    assert board["rows"][0]["score"] == 1
    assert client.get("/admin/flagged", params={"status": "pending"}, headers=ADMIN).json() == []

def test_baseline_endpoint(client):
    _create_competition(client, scoring_method="workout_count")
    r = client.post(
        "/admin/baseline/jan-2026",
        json={"timestamp": "2026-01-02T00:00:00Z", "totals": {AUTHOR_A: {"distance_km": 20, "workout_count": 4}}},
        headers=ADMIN,
    )
    assert r.json()["rows_written"] == 1
    board = client.get("/competitions/jan-2026/leaderboard").json()
    assert board["rows"] == [{"rank": 1, "author": AUTHOR_A, "score": 4, "workout_count": 4}]
