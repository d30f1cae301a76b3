"""Helpers for keeping PII and secrets out of log lines."""

from __future__ import annotations


def redact_pii(value: str | None) -> str:
    """Mask PII for logging, showing first 3 and last 2 chars only."""
    if not value or len(value) <= 5:
        return "***"
    return value[:3] + "***" + value[-2:]


def mask_webhook_url(url: str | None) -> str:
    """Keep a Slack webhook URL recognisable without logging its secret path."""
    if not url:
        return "<unset>"
    marker = "services/"
    idx = url.find(marker)
    if idx == -1:
        return "<invalid webhook url>"
    return url[: idx + len(marker)] + "..."
