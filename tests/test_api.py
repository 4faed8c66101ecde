"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from conftest import StaticSource
from transfer.api.main import app
from transfer.api.storage import transfer_storage


@pytest.fixture
def client(static_adapters):
    transfer_storage.clear()
    yield TestClient(app)
    transfer_storage.clear()


@pytest.fixture
def payload(tmp_path):
    return {
        "name": "api",
        "source": {"type": "static", "options": {"users": 2}},
        "destination": {"type": "local", "options": {"path": str(tmp_path / "out")}},
        "resources": ["Users"],
    }


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestTransfers:
    def test_check(self, client, payload):
        response = client.post("/api/transfers/check", json=payload)

        assert response.status_code == 200
        assert response.json() == {"ready": True, "problems": {"Users": []}}

    def test_start_runs_in_background(self, client, payload, tmp_path):
        response = client.post("/api/transfers", json=payload)

        assert response.status_code == 202
        transfer_id = response.json()["id"]

        # The test client finishes background tasks before returning.
        run = client.get(f"/api/transfers/{transfer_id}").json()
        assert run["status"] == "completed"
        assert run["progress"]["Users"]["current"] == 2
        assert (tmp_path / "out" / "backup.json").exists()

    def test_list(self, client, payload):
        client.post("/api/transfers", json=payload)

        response = client.get("/api/transfers")

        assert response.json()["total"] == 1

    def test_unknown_transfer(self, client):
        assert client.get("/api/transfers/nope").status_code == 404

    def test_unknown_adapter(self, client, payload):
        payload["source"]["type"] = "firebase"
        assert client.post("/api/transfers", json=payload).status_code == 400

    def test_unknown_resource(self, client, payload):
        payload["resources"] = ["Teams"]
        assert client.post("/api/transfers/check", json=payload).status_code == 400

    def test_invalid_batch_size(self, client, payload):
        payload["batch_size"] = 0
        assert client.post("/api/transfers", json=payload).status_code == 422

    def test_sources_are_closed(self, client, payload, monkeypatch):
        closed = []
        monkeypatch.setattr(StaticSource, "close", lambda self: closed.append(self), raising=False)

        client.post("/api/transfers/check", json=payload)
        assert len(closed) == 1

        client.post("/api/transfers", json=payload)
        # One for the up-front validation and one for the background run.
        assert len(closed) == 3
