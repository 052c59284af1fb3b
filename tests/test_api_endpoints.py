import pytest
from fastapi.testclient import TestClient

from voting_node.voting_api import create_app
from voting_node.voting_runtime.service import ProposalService

HOUR = 3600.0


@pytest.fixture
def client(store, cfg, clock):
    service = ProposalService(store, cfg, clock=clock)
    app = create_app(cfg, service=service)
    with TestClient(app) as c:
        yield c


def _create(client, clock, **overrides):
    body = {
        "creator": "alice",
        "title": "Treasury allocation",
        "description": "Where should the funds go?",
        "choices": ["A", "B", "C"],
        "expires_at": clock() + HOUR,
    }
    body.update(overrides)
    return client.post("/api/voting", json=body)


def test_health(client):
    assert client.get("/health").json()["ok"]


def test_create_and_get(client, clock):
    resp = _create(client, clock)
    assert resp.status_code == 200
    created = resp.json()["proposal"]
    assert created["status"] == "open"
    assert created["vote_counts"] == [0, 0, 0]

    got = client.get(f"/api/voting/{created['id']}").json()["proposal"]
    assert got["id"] == created["id"]
    assert got["total_votes"] == 0
    assert [r["choice"] for r in got["results"]] == ["A", "B", "C"]


def test_list(client, clock):
    _create(client, clock, title="one")
    _create(client, clock, title="two")
    titles = {p["title"] for p in client.get("/api/voting").json()["proposals"]}
    assert titles == {"one", "two"}


def test_vote_and_finalize_flow(client, clock):
    pid = _create(client, clock).json()["proposal"]["id"]

    r = client.post(f"/api/voting/{pid}/vote", json={"voter": "w1", "choice_index": 1})
    assert r.status_code == 200
    assert r.json()["proposal"]["vote_counts"] == [0, 1, 0]

    clock.advance(HOUR)
    assert client.get(f"/api/voting/{pid}").json()["proposal"]["status"] == "expired"

    r = client.post(f"/api/voting/{pid}/finalize")
    assert r.status_code == 200
    body = r.json()["proposal"]
    assert body["status"] == "finalized"
    assert body["winner"] == {"index": 1, "choice": "B", "votes": 1}

    # idempotent
    again = client.post(f"/api/voting/{pid}/finalize", json={})
    assert again.status_code == 200
    assert again.json()["proposal"]["winner_index"] == 1


@pytest.mark.parametrize(
    "setup, vote, status, code",
    [
        ({}, {"voter": "w1", "choice_index": 99}, 400, "invalid_choice"),
        ({"allowed_voters": ["V1"]}, {"voter": "V3", "choice_index": 0}, 403, "not_eligible"),
    ],
)
def test_vote_errors_map_to_codes(client, clock, setup, vote, status, code):
    pid = _create(client, clock, **setup).json()["proposal"]["id"]
    r = client.post(f"/api/voting/{pid}/vote", json=vote)
    assert r.status_code == status
    assert r.json()["detail"]["error"] == code


def test_duplicate_vote_is_conflict(client, clock):
    pid = _create(client, clock).json()["proposal"]["id"]
    client.post(f"/api/voting/{pid}/vote", json={"voter": "w1", "choice_index": 0})
    r = client.post(f"/api/voting/{pid}/vote", json={"voter": "w1", "choice_index": 0})
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "already_voted"


def test_vote_after_expiry_is_closed(client, clock):
    pid = _create(client, clock).json()["proposal"]["id"]
    clock.advance(HOUR + 1)
    r = client.post(f"/api/voting/{pid}/vote", json={"voter": "w1", "choice_index": 0})
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "voting_closed"


def test_unknown_proposal_is_404(client):
    for r in (
        client.get("/api/voting/nope"),
        client.post("/api/voting/nope/vote", json={"voter": "w1", "choice_index": 0}),
        client.post("/api/voting/nope/finalize"),
    ):
        assert r.status_code == 404
        assert r.json()["detail"]["error"] == "not_found"


def test_invalid_create_is_400(client, clock):
    r = _create(client, clock, choices=["lonely"])
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "invalid_input"


def test_early_finalize_rules(client, clock):
    pid = _create(client, clock).json()["proposal"]["id"]

    r = client.post(f"/api/voting/{pid}/finalize", json={"caller": "mallory"})
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "not_yet_expired"

    r = client.post(f"/api/voting/{pid}/finalize", json={"caller": "alice"})
    assert r.status_code == 200
    assert r.json()["proposal"]["winner_index"] == 0


def test_non_integer_choice_is_rejected_by_validation(client, clock):
    pid = _create(client, clock).json()["proposal"]["id"]
    r = client.post(f"/api/voting/{pid}/vote", json={"voter": "w1", "choice_index": "1"})
    assert r.status_code == 422


def test_lifespan_starts_and_stops_sweeper(store, cfg, clock):
    cfg["finalization"]["sweep_enabled"] = True
    cfg["finalization"]["sweep_interval_sec"] = 0.05
    app = create_app(cfg, service=ProposalService(store, cfg, clock=clock))

    with TestClient(app):
        assert app.state.sweeper.is_running()
    assert not app.state.sweeper.is_running()
