"""Tests for the split-testing HTTP API."""
import pytest
from src.api.app import create_app
from src.split_testing.config import EngineConfig
from src.split_testing.manager import ExperimentManager

PAYLOAD = {
    "name": "Headline test",
    "content_id": "post-1",
    "primary_metric": "clicks",
    "variants": [
        {"id": "a", "name": "A", "changes": {"headline": "Old"}},
        {"id": "b", "name": "B", "changes": {"headline": "New"}},
    ],
}


@pytest.fixture
def client():
    app = create_app(manager=ExperimentManager(config=EngineConfig(random_seed=5)))
    app.config["TESTING"] = True
    return app.test_client()


def _create(client, **overrides):
    resp = client.post("/experiments", json={**PAYLOAD, **overrides})
    assert resp.status_code == 201
    return resp.get_json()["id"]


def test_ping(client):
    """Health check."""
    assert client.get("/ping").data == b"pong"


def test_lifecycle(client):
    """Create -> start -> route -> record -> read back."""
    exp_id = _create(client)
    assert client.get(f"/experiments/{exp_id}/variant").get_json() == {"variant_id": None}

    resp = client.post(f"/experiments/{exp_id}/start")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "running"

    variant_id = client.get(f"/experiments/{exp_id}/variant").get_json()["variant_id"]
    assert variant_id in ("a", "b")

    resp = client.post(f"/experiments/{exp_id}/events", json={"variant_id": variant_id, "event": "impression"})
    assert resp.status_code == 202

    body = client.get(f"/experiments/{exp_id}").get_json()
    assert body["metrics"]["current_sample_size"] == 1
    assert [e["id"] for e in client.get("/experiments").get_json()] == [exp_id]


def test_unknown_variant_event_accepted(client):
    """Events for unknown variants are accepted and ignored."""
    exp_id = _create(client)
    client.post(f"/experiments/{exp_id}/start")
    resp = client.post(f"/experiments/{exp_id}/events", json={"variant_id": "ghost", "event": "click"})
    assert resp.status_code == 202


def test_not_found(client):
    """Unknown experiment ids return 404."""
    assert client.get("/experiments/missing").status_code == 404
    assert client.post("/experiments/missing/start").status_code == 404
    assert client.get("/experiments/missing/variant").status_code == 404
    resp = client.post("/experiments/missing/events", json={"variant_id": "a", "event": "click"})
    assert resp.status_code == 404


def test_bad_requests(client):
    """Invalid payloads return 400."""
    assert client.post("/experiments", json={}).status_code == 400
    assert client.post("/experiments", json={**PAYLOAD, "traffic_split": [90, 20]}).status_code == 400
    assert client.post("/experiments", json={**PAYLOAD, "variants": ["a", "b"]}).status_code == 400
    assert client.post("/experiments", json={**PAYLOAD, "minimum_sample_size": "lots"}).status_code == 400
    nan_split = (
        '{"name": "t", "content_id": "c", "primary_metric": "clicks", '
        '"variants": [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}], "traffic_split": [NaN, 100]}'
    )
    resp = client.post("/experiments", data=nan_split, content_type="application/json")
    assert resp.status_code == 400
    assert client.get("/experiments").get_json() == []
    exp_id = _create(client)
    client.post(f"/experiments/{exp_id}/start")
    resp = client.post(f"/experiments/{exp_id}/events", json={"variant_id": "a", "event": "share"})
    assert resp.status_code == 400


def test_state_conflict(client):
    """Starting twice returns 409."""
    exp_id = _create(client)
    client.post(f"/experiments/{exp_id}/start")
    assert client.post(f"/experiments/{exp_id}/start").status_code == 409


def test_stop_evaluate_and_analysis(client):
    """Stop pauses; evaluate abstains; analysis is served."""
    exp_id = _create(client)
    client.post(f"/experiments/{exp_id}/start")
    assert client.post(f"/experiments/{exp_id}/evaluate").get_json() == {"result": None}
    assert client.post(f"/experiments/{exp_id}/stop").get_json()["status"] == "paused"
    analysis = client.get(f"/experiments/{exp_id}/analysis").get_json()
    assert analysis["recommendation"] == "hold"


def test_malformed_variant_id_event_accepted(client):
    """A non-string variant id is ignored, not a server error."""
    exp_id = _create(client)
    client.post(f"/experiments/{exp_id}/start")
    resp = client.post(f"/experiments/{exp_id}/events", json={"variant_id": ["a"], "event": "click"})
    assert resp.status_code == 202
    body = client.get(f"/experiments/{exp_id}").get_json()
    assert body["metrics"]["current_sample_size"] == 0
