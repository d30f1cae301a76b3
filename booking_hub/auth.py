"""HMAC signature check for inbound webhook calls.

The caller signs the raw request body with the shared ``HMAC_SECRET``
(HMAC-SHA256, hex digest) and sends it as ``X-Signature``, optionally
prefixed with ``sha256=``.

Behavior matrix:
  REQUIRE_SIGNATURE=false                  → allow (gap logged at startup)
  REQUIRE_SIGNATURE=true + valid signature → allow
  REQUIRE_SIGNATURE=true + wrong/missing   → 401 Unauthorized
"""

from __future__ import annotations

import hashlib
import hmac
import logging

from fastapi import HTTPException, Request, status

from booking_hub.config import settings

log = logging.getLogger("booking_hub.auth")

SIGNATURE_HEADER = "x-signature"


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, header_value: str | None) -> bool:
    if not secret or not header_value:
        return False
    provided = header_value.strip()
    if provided.startswith("sha256="):
        provided = provided[len("sha256="):]
    return hmac.compare_digest(provided.lower(), compute_signature(secret, body))


async def require_webhook_signature(request: Request) -> None:
    """FastAPI dependency: reject unsigned webhook calls when enforcement is on."""
    if not settings.require_signature:
        return

    body = await request.body()
    if not verify_signature(settings.hmac_secret, body, request.headers.get(SIGNATURE_HEADER)):
        log.warning("Rejected webhook call with missing or invalid signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing request signature.",
        )
