"""
Test Web Application Module
===========================

API tests for the FastAPI web UI.
"""

import random
import pytest
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

from core.config import Config
from rules.models import PARITY_ERROR
from services.chat import ChatService
from ui.web.app import create_app


@pytest.fixture
def client():
    config = Config()
    app = create_app(config=config, chat_service=ChatService(config, rng=random.Random(3)))
    return TestClient(app)


def start(client, **body):
    response = client.post("/api/sessions", json=body or None)
    assert response.status_code == 201
    return response.json()


class TestPages:
    """Tests for HTML pages."""

    def test_chat_page(self, client):
        """Test the chat page renders."""
        response = client.get("/")
        assert response.status_code == 200
        assert "ELIZA" in response.text


class TestAPI:
    """Tests for the JSON API."""

    def test_health(self, client):
        """Test health endpoint."""
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "sessions": 0}

    def test_languages(self, client):
        """Test language listing."""
        data = client.get("/api/languages").json()
        assert data["languages"] == ["fr", "us"]
        assert data["default"] == "us"

    def test_start_session_default_language(self, client):
        """Test session starts without a body."""
        data = start(client)
        assert data["language"] == "us"
        assert data["greeting"]
        assert data["prompt"] == "You:"
        assert data["terminated"] is False

    def test_start_session_french(self, client):
        """Test session starts in a requested language."""
        assert start(client, language="fr")["prompt"] == "Vous :"

    def test_start_session_unknown_language(self, client):
        """Test unsupported language is a client error."""
        response = client.post("/api/sessions", json={"language": "de"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    def test_send_message(self, client):
        """Test a normal turn."""
        session_id = start(client)["session_id"]
        response = client.post(f"/api/sessions/{session_id}/messages",
                               json={"text": "I am tired"})
        assert response.status_code == 200
        data = response.json()
        assert data["reply"] == "How long have you been tired?"
        assert data["terminated"] is False
        assert data["crash"] == []

    def test_message_too_long(self, client):
        """Test oversized input is rejected by validation."""
        session_id = start(client)["session_id"]
        response = client.post(f"/api/sessions/{session_id}/messages",
                               json={"text": "a" * 1001})
        assert response.status_code == 422

    def test_parity_error_flow(self, client):
        """Test insults crash the session and reset recovers it."""
        session_id = start(client)["session_id"]
        url = f"/api/sessions/{session_id}/messages"

        for text in ("stupid", "idiot", "dumb"):
            assert client.post(url, json={"text": text}).json()["terminated"] is False

        data = client.post(url, json={"text": "shut up"}).json()
        assert data["reply"] == PARITY_ERROR
        assert data["terminated"] is True
        assert data["crash"]

        response = client.post(url, json={"text": "hello"})
        assert response.status_code == 409
        assert response.json()["reason"] == "parity_error"

        reset = client.post(f"/api/sessions/{session_id}/reset")
        assert reset.status_code == 200
        assert reset.json()["terminated"] is False
        assert client.post(url, json={"text": "hello"}).status_code == 200

    def test_quit(self, client):
        """Test quit word ends the conversation."""
        session_id = start(client)["session_id"]
        url = f"/api/sessions/{session_id}/messages"

        data = client.post(url, json={"text": "bye"}).json()
        assert data["ended"] is True
        assert data["terminated"] is False

        response = client.post(url, json={"text": "hello"})
        assert response.status_code == 409
        assert response.json()["reason"] == "quit"

    def test_get_session(self, client):
        """Test session state lookup."""
        session_id = start(client)["session_id"]
        client.post(f"/api/sessions/{session_id}/messages", json={"text": "hello"})

        data = client.get(f"/api/sessions/{session_id}").json()
        assert data["session_id"] == session_id
        assert data["turns"] == 1

    def test_unknown_session(self, client):
        """Test unknown session ids return 404."""
        response = client.post("/api/sessions/nope/messages", json={"text": "hi"})
        assert response.status_code == 404
        assert response.json()["error"] == "session_not_found"

    def test_delete_session(self, client):
        """Test deleting a session."""
        session_id = start(client)["session_id"]
        assert client.delete(f"/api/sessions/{session_id}").status_code == 204
        assert client.get(f"/api/sessions/{session_id}").status_code == 404
