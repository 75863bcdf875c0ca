"""HTTP tests for the relay API."""

from __future__ import annotations

import json
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from conftest import RECIPIENT, SENDER
from relay import main
from relay.api import messages as messages_api
from relay.core import records, retention
from relay.models.participant import Participant
from relay.models.record import Record

MESSAGE = {
    "senderKey": SENDER,
    "recipientKey": RECIPIENT,
    "encryptedData": "hello",
    "timestamp": "2024-02-15T09:02:46.206Z",
}


@pytest.fixture(autouse=True)
def no_random_trim(monkeypatch):
    """Keep the retention coin flip out of the way unless a test wants it."""
    monkeypatch.setattr(retention, "trim_due", lambda rng=None: False)


def test_health_reports_online(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "online"
    assert body["timestamp"].endswith("Z")


def test_health_fails_when_database_is_down(client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(main, "check_connection", lambda: False)

    response = client.get("/api/health")

    assert response.status_code == 500
    assert response.json() == {"error": "Database unavailable"}


def test_send_then_fetch_round_trip(client: TestClient) -> None:
    sent = client.post("/api/message", json=MESSAGE)

    assert sent.status_code == 200
    body = sent.json()
    assert body["success"] is True
    assert isinstance(body["messageId"], int)

    fetched = client.get(f"/api/messages/{SENDER}")
    assert fetched.status_code == 200
    assert fetched.json() == [
        {
            "id": body["messageId"],
            "senderKey": SENDER,
            "recipientKey": RECIPIENT,
            "encryptedData": "hello",
            "timestamp": "2024-02-15T09:02:46",
        }
    ]


def test_short_sender_key_is_rejected_without_side_effects(client: TestClient, db) -> None:
    response = client.post("/api/message", json={**MESSAGE, "senderKey": "111111111111111"})

    assert response.status_code == 400
    assert "Invalid key format" in response.json()["error"]
    assert records.count(db) == 0
    assert db.query(Participant).count() == 0


@pytest.mark.parametrize("missing", ["senderKey", "recipientKey", "encryptedData"])
def test_missing_fields_are_rejected(client: TestClient, missing: str) -> None:
    body = {k: v for k, v in MESSAGE.items() if k != missing}

    response = client.post("/api/message", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_malformed_body_is_a_bad_request(client: TestClient) -> None:
    response = client.post(
        "/api/message",
        content="not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.parametrize("token", ["123456789012345", "12345678901234ab"])
def test_bad_tokens_rejected_on_get_and_delete(client: TestClient, token: str) -> None:
    assert client.get(f"/api/messages/{token}").status_code == 400
    response = client.delete(f"/api/messages/{token}")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid device key"}


def test_delete_purges_conversation(client: TestClient) -> None:
    client.post("/api/message", json={**MESSAGE, "encryptedData": "secret"})

    response = client.delete(f"/api/messages/{SENDER}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Messages deleted"}
    assert client.get(f"/api/messages/{SENDER}").json() == []
    assert client.get(f"/api/messages/{RECIPIENT}").json() == []


def test_node_count_after_two_conversations(client: TestClient) -> None:
    client.post("/api/message", json=MESSAGE)
    client.post(
        "/api/message",
        json={**MESSAGE, "senderKey": "3333333333333333", "recipientKey": "4444444444444444"},
    )

    response = client.get("/api/nodes/count")

    assert response.status_code == 200
    assert response.json() == {"activeNodes": 4}


def test_unencodable_payload_is_a_clean_bad_request(client: TestClient, db) -> None:
    body = json.dumps({**MESSAGE, "encryptedData": "\ud800"})

    response = client.post("/api/message", content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid message encoding"}
    assert db.query(Participant).count() == 0


def test_out_of_range_timestamp_is_a_bad_request(client: TestClient) -> None:
    response = client.post("/api/message", json={**MESSAGE, "timestamp": "0001-01-01T00:00:00+01:00"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid timestamp"}


def test_unexpected_errors_keep_error_shape(monkeypatch) -> None:
    def broken(db, token):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(messages_api, "fetch_messages", broken)
    client = TestClient(main.app, raise_server_exceptions=False)

    response = client.get(f"/api/messages/{SENDER}")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_storage_failure_returns_generic_500(client: TestClient, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("secret connection detail"))

    monkeypatch.setattr(records, "recent_for", broken)

    response = client.get(f"/api/messages/{SENDER}")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to retrieve messages"}


def test_due_trim_runs_after_response(client: TestClient, db, monkeypatch) -> None:
    """A triggered trim leaves at most the retention cap behind."""
    older = datetime(2024, 2, 15, 9, 0, 0)
    db.add_all(
        Record(sender=SENDER, recipient=RECIPIENT, envelope="env", padding="", instant=older)
        for _ in range(retention.RETENTION_CAP + 4)
    )
    db.commit()
    monkeypatch.setattr(retention, "trim_due", lambda rng=None: True)

    response = client.post("/api/message", json=MESSAGE)

    assert response.status_code == 200
    assert records.count(db) == retention.RETENTION_CAP
    newest = client.get(f"/api/messages/{SENDER}").json()[0]
    assert newest["id"] == response.json()["messageId"]
