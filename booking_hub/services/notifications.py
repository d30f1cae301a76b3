"""Best-effort Slack notifications for booking outcomes.

Delivery never raises.  Every problem (unset destination, non-2xx status,
unexpected body, network error) is logged and reported as ``False``.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from booking_hub.config import Settings, settings
from booking_hub.errors import NotificationDeliveryFailed
from booking_hub.models.notification import NotificationEvent, NotificationKind
from booking_hub.redact import mask_webhook_url

log = logging.getLogger("booking_hub.services.notifications")


def build_blocks(event: NotificationEvent) -> list[dict]:
    """Render a notification as Slack blocks."""
    if event.kind is NotificationKind.BOOKING_SUCCEEDED:
        header = "✅ *New Interview Booked!*"
        fields = [
            f"*Applicant:* {event.applicant_name or 'N/A'}",
            f"*Email:* {event.applicant_email or 'N/A'}",
            f"*Time (PT):* {event.display_time_local or 'N/A'}",
            "*Calendar Invite:* Sent Successfully!",
        ]
    else:
        header = "❌ *Interview Booking Failed!*"
        fields = [
            f"*Applicant Email:* {event.applicant_email or 'N/A'}",
            f"*Error Details:* {event.error_message or 'Unknown internal error'}",
        ]

    return [
        {"type": "section", "text": {"type": "mrkdwn", "text": header}},
        {"type": "divider"},
        {
            "type": "section",
            "fields": [{"type": "mrkdwn", "text": text} for text in fields],
        },
    ]


class NotificationDispatcher:
    """Routes each event kind to its own webhook destination."""

    def __init__(
        self,
        bookings_url: str = "",
        errors_url: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._destinations = {
            NotificationKind.BOOKING_SUCCEEDED: bookings_url,
            NotificationKind.BOOKING_FAILED: errors_url,
        }
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, cfg: Settings = settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "NotificationDispatcher":
        return cls(
            bookings_url=cfg.slack_bookings_url,
            errors_url=cfg.slack_errors_url,
            timeout=cfg.http_timeout_seconds,
            transport=transport,
        )

    def destination_for(self, kind: NotificationKind) -> str:
        return self._destinations.get(kind, "")

    async def notify(self, event: NotificationEvent) -> bool:
        """Deliver ``event``; True only when Slack answered ``ok``."""
        url = self.destination_for(event.kind)
        if not url:
            log.warning("No destination configured for %s. Skipping notification.", event.kind.value)
            return False

        try:
            await self._post(url, {"blocks": build_blocks(event)})
        except NotificationDeliveryFailed as exc:
            log.error("Failed to send %s notification: %s", event.kind.value, exc)
            return False

        log.info("%s notification sent", event.kind.value)
        return True

    async def _post(self, url: str, payload: dict) -> None:
        log.info("Sending Slack message to: %s", mask_webhook_url(url))
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            raise NotificationDeliveryFailed(f"network error: {exc}") from exc

        if not resp.is_success:
            raise NotificationDeliveryFailed(f"Slack API error ({resp.status_code}): {resp.text}")
        if resp.text.strip().lower() != "ok":
            raise NotificationDeliveryFailed(f"unexpected Slack response: {resp.text!r}")
