"""Calendar invite generation via the ApyHub iCal API.

The remote service receives wall-clock components in the display zone plus
the zone name.  Absolute timestamps are deliberately left out of the request
so the service has exactly one way to interpret the meeting time.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from booking_hub.config import Settings, settings
from booking_hub.errors import InviteGenerationFailed
from booking_hub.models.booking import BookingDetails, InviteContent
from booking_hub.redact import redact_pii
from booking_hub.timeconv import add_minutes, format_for_display

log = logging.getLogger("booking_hub.services.invite")


class InviteRequester:
    """Turn a resolved booking into ICS text."""

    def __init__(
        self,
        api_token: str,
        url: str,
        organizer_email: str,
        organizer_name: str,
        position_title: str,
        duration_minutes: int = 30,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_token = api_token
        self._url = url
        self._organizer_email = organizer_email
        self._organizer_name = organizer_name
        self._position_title = position_title
        self._duration_minutes = duration_minutes
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, cfg: Settings = settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "InviteRequester":
        return cls(
            api_token=cfg.apy_token,
            url=cfg.apyhub_ical_url,
            organizer_email=cfg.organizer_email,
            organizer_name=cfg.organizer_name,
            position_title=cfg.position_title,
            duration_minutes=cfg.meeting_duration_minutes,
            timeout=cfg.http_timeout_seconds,
            transport=transport,
        )

    def build_payload(self, details: BookingDetails, display_zone: str) -> dict:
        start = details.start_instant
        end = add_minutes(start, self._duration_minutes)
        return {
            "summary": f"Interview: {details.name}",
            "description": (
                f"{self._position_title} Interview Slot for {details.name}. "
                "Please be ready!"
            ),
            "organizer_email": self._organizer_email,
            "attendees_emails": [details.email],
            "time_zone": display_zone,
            "meeting_date": format_for_display(start, display_zone, "dd-MM-yyyy"),
            "start_time": format_for_display(start, display_zone, "HH:mm"),
            "end_time": format_for_display(end, display_zone, "HH:mm"),
            "organizer_name": self._organizer_name,
        }

    async def request_invite(self, details: BookingDetails, display_zone: str) -> InviteContent:
        """POST the invite request and return the raw ICS body."""
        payload = self.build_payload(details, display_zone)
        log.info(
            "Requesting invite for %s: date=%s start=%s end=%s tz=%s",
            redact_pii(details.email),
            payload["meeting_date"],
            payload["start_time"],
            payload["end_time"],
            display_zone,
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self._url,
                    json=payload,
                    headers={"apy-token": self._api_token},
                )
        except httpx.HTTPError as exc:
            log.error("ApyHub request failed: %s", exc)
            raise InviteGenerationFailed(
                f"Failed to generate ICS: network error calling ApyHub ({exc})",
                network=True,
            ) from exc

        if not resp.is_success:
            log.error("ApyHub API error (%d): %s", resp.status_code, resp.text)
            raise InviteGenerationFailed(
                f"Failed to generate ICS: ApyHub returned status {resp.status_code} - {resp.text}",
                status=resp.status_code,
                body=resp.text,
            )

        log.info("Generated ICS content (%d bytes)", len(resp.content))
        return resp.text
