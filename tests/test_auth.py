"""Tests for webhook signature verification."""

import hashlib
import hmac

import pytest

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from booking_hub.auth import compute_signature, require_webhook_signature, verify_signature

BODY = b'{"email":"a.b@x.com"}'


class FakeSettings:
    def __init__(self, require_signature=False, hmac_secret=""):
        self.require_signature = require_signature
        self.hmac_secret = hmac_secret


class FakeRequest:
    def __init__(self, body: bytes, headers: dict):
        self._body = body
        self.headers = headers

    async def body(self) -> bytes:
        return self._body


# ── Tests: signature math ─────────────────────────────────────────


class TestVerifySignature:
    def test_compute_matches_hmac_sha256(self):
        expected = hmac.new(b"secret", BODY, hashlib.sha256).hexdigest()
        assert compute_signature("secret", BODY) == expected

    def test_accepts_bare_hex(self):
        assert verify_signature("secret", BODY, compute_signature("secret", BODY))

    def test_accepts_prefixed_uppercase(self):
        sig = "sha256=" + compute_signature("secret", BODY).upper()
        assert verify_signature("secret", BODY, sig)

    def test_rejects_wrong_secret(self):
        assert not verify_signature("secret", BODY, compute_signature("other", BODY))

    def test_rejects_tampered_body(self):
        sig = compute_signature("secret", BODY)
        assert not verify_signature("secret", BODY + b" ", sig)

    def test_rejects_missing_header(self):
        assert not verify_signature("secret", BODY, None)

    def test_rejects_empty_secret(self):
        assert not verify_signature("", BODY, compute_signature("", BODY))


# ── Tests: FastAPI dependency ─────────────────────────────────────


class TestRequireWebhookSignature:
    async def test_allows_when_not_required(self, monkeypatch):
        monkeypatch.setattr("booking_hub.auth.settings", FakeSettings(require_signature=False))
        await require_webhook_signature(FakeRequest(BODY, {}))

    async def test_rejects_missing_signature(self, monkeypatch):
        monkeypatch.setattr(
            "booking_hub.auth.settings", FakeSettings(require_signature=True, hmac_secret="secret")
        )
        from fastapi import HTTPException
        with pytest.raises(HTTPException) as exc_info:
            await require_webhook_signature(FakeRequest(BODY, {}))
        assert exc_info.value.status_code == 401

    async def test_allows_valid_signature(self, monkeypatch):
        monkeypatch.setattr(
            "booking_hub.auth.settings", FakeSettings(require_signature=True, hmac_secret="secret")
        )
        headers = {"x-signature": compute_signature("secret", BODY)}
        await require_webhook_signature(FakeRequest(BODY, headers))
