"""Tests for the HTTP shell: routing, status codes and response bodies."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from booking_hub.app import create_app
from booking_hub.errors import InviteGenerationFailed
from booking_hub.orchestrator import BookingOrchestrator

VALID = {"email": "a.b@x.com", "interview_date": "21-05-2025", "interview_time": "14:30"}


class FakeSettings:
    def __init__(self, require_signature=False, hmac_secret=""):
        self.require_signature = require_signature
        self.hmac_secret = hmac_secret


@pytest.fixture
def collaborators():
    invites = MagicMock()
    invites.request_invite = AsyncMock(return_value="BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n")
    mailer = MagicMock()
    mailer.send_confirmation = AsyncMock(return_value=None)
    notifier = MagicMock()
    notifier.notify = AsyncMock(return_value=False)
    return invites, mailer, notifier


@pytest.fixture
def client(collaborators):
    app = create_app(BookingOrchestrator(*collaborators))
    with TestClient(app) as test_client:
        yield test_client


class TestBookEmail:
    def test_success(self, client, collaborators):
        resp = client.post("/book-email", json=VALID)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Booking confirmed and email sent."}

    def test_missing_fields_is_400(self, client, collaborators):
        resp = client.post("/book-email", json={"email": "a.b@x.com"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Missing required fields: interview_date, interview_time"
        assert "message" not in body

    def test_malformed_json_is_400(self, client):
        resp = client.post(
            "/book-email", content=b"{oops", headers={"content-type": "application/json"}
        )
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Invalid JSON payload"}

    def test_bad_time_is_400(self, client):
        resp = client.post("/book-email", json={**VALID, "interview_time": "2:30"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid date or time format."

    def test_downstream_failure_is_500(self, client, collaborators):
        invites, mailer, _ = collaborators
        invites.request_invite.side_effect = InviteGenerationFailed(
            "ApyHub returned status 500 - stack trace here", status=500, body="stack trace here"
        )
        resp = client.post("/book-email", json=VALID)
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert "stack trace" not in body["error"]
        mailer.send_confirmation.assert_not_awaited()


class TestRouting:
    def test_get_is_405(self, client):
        resp = client.get("/book-email")
        assert resp.status_code == 405
        assert resp.text == "Method Not Allowed"

    def test_get_unknown_path_is_405(self, client):
        """Method is checked before path."""
        assert client.get("/nope").status_code == 405

    def test_put_is_405(self, client):
        assert client.put("/book-email", json=VALID).status_code == 405

    def test_unknown_post_path_is_404(self, client):
        resp = client.post("/book-sms", json=VALID)
        assert resp.status_code == 404
        assert resp.text == "Not Found"


class TestSignatureEnforcement:
    def test_rejects_unsigned_when_required(self, client, collaborators, monkeypatch):
        monkeypatch.setattr(
            "booking_hub.auth.settings", FakeSettings(require_signature=True, hmac_secret="s3cret")
        )
        resp = client.post("/book-email", json=VALID)
        assert resp.status_code == 401
        assert resp.json()["success"] is False
        collaborators[0].request_invite.assert_not_awaited()

    def test_accepts_signed_when_required(self, client, monkeypatch):
        from booking_hub.auth import compute_signature

        monkeypatch.setattr(
            "booking_hub.auth.settings", FakeSettings(require_signature=True, hmac_secret="s3cret")
        )
        body = json.dumps(VALID).encode()
        resp = client.post(
            "/book-email",
            content=body,
            headers={
                "content-type": "application/json",
                "x-signature": "sha256=" + compute_signature("s3cret", body),
            },
        )
        assert resp.status_code == 200
