"""Confirmation email with the ICS attachment, sent through SendGrid v3."""

from __future__ import annotations

import base64
import html
import logging
from datetime import datetime
from typing import Optional, Union

import httpx

from booking_hub.config import Settings, settings
from booking_hub.errors import EmailSendFailed
from booking_hub.models.booking import InviteContent
from booking_hub.redact import redact_pii
from booking_hub.timeconv import DISPLAY_PATTERN, format_for_display, parse_iso_utc, to_iso_utc

log = logging.getLogger("booking_hub.services.mailer")

ATTACHMENT_FILENAME = "invite.ics"
ATTACHMENT_TYPE = "text/calendar; method=REQUEST"


class EmailDispatcher:
    """Send the interview confirmation to the applicant with a fixed CC."""

    def __init__(
        self,
        api_key: str,
        url: str,
        sender_email: str,
        sender_name: str,
        cc_email: str,
        position_title: str,
        display_zone: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._sender_email = sender_email
        self._sender_name = sender_name
        self._cc_email = cc_email
        self._position_title = position_title
        self._display_zone = display_zone
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, cfg: Settings = settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "EmailDispatcher":
        return cls(
            api_key=cfg.sendgrid_key,
            url=cfg.sendgrid_api_url,
            sender_email=cfg.sender_email,
            sender_name=cfg.sender_name,
            cc_email=cfg.cc_email,
            position_title=cfg.position_title,
            display_zone=cfg.display_timezone,
            timeout=cfg.http_timeout_seconds,
            transport=transport,
        )

    def build_message(
        self,
        to_email: str,
        to_name: str,
        start_instant: Union[str, datetime],
        invite_content: InviteContent,
    ) -> dict:
        if isinstance(start_instant, str):
            start_instant = parse_iso_utc(start_instant)
        display_time = format_for_display(start_instant, self._display_zone, DISPLAY_PATTERN)
        raw_utc = to_iso_utc(start_instant)

        text = (
            f"Hi {to_name},\n\n"
            f"Your interview is confirmed for {display_time}.\n\n"
            "Please find the calendar invite attached.\n\n"
            f"Best regards,\n{self._sender_name}\n\n"
            f"(Raw UTC Time: {raw_utc})"
        )
        rich = (
            f"<p>Hi {html.escape(to_name)},</p>"
            f"<p>Your interview is confirmed for <strong>{display_time}</strong>.</p>"
            "<p>Please find the calendar invite attached.</p>"
            f"<p>Best regards,<br/>{html.escape(self._sender_name)}</p>"
            f"<p><small>(Raw UTC Time: {raw_utc})</small></p>"
        )

        personalization: dict = {"to": [{"email": to_email, "name": to_name}]}
        # SendGrid rejects a request that lists the same address twice
        if self._cc_email and self._cc_email.lower() != to_email.lower():
            personalization["cc"] = [{"email": self._cc_email}]

        return {
            "personalizations": [personalization],
            "from": {"email": self._sender_email, "name": self._sender_name},
            "subject": f"Interview Confirmation - {self._position_title} - {to_name}",
            "content": [
                {"type": "text/plain", "value": text},
                {"type": "text/html", "value": rich},
            ],
            "attachments": [
                {
                    "content": base64.b64encode(invite_content.encode("utf-8")).decode("ascii"),
                    "filename": ATTACHMENT_FILENAME,
                    "type": ATTACHMENT_TYPE,
                    "disposition": "attachment",
                }
            ],
        }

    async def send_confirmation(
        self,
        to_email: str,
        to_name: str,
        start_instant: Union[str, datetime],
        invite_content: InviteContent,
    ) -> None:
        """Send the message.  Raises EmailSendFailed on any non-2xx outcome."""
        message = self.build_message(to_email, to_name, start_instant, invite_content)
        log.info(
            "Sending confirmation to %s (cc: %s)",
            redact_pii(to_email),
            "yes" if "cc" in message["personalizations"][0] else "no",
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self._url,
                    json=message,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as exc:
            log.error("SendGrid request failed: %s", exc)
            raise EmailSendFailed(
                f"Failed to send confirmation email via SendGrid: {exc}",
                details=str(exc),
            ) from exc

        if not resp.is_success:
            log.error("SendGrid API error (%d): %s", resp.status_code, resp.text)
            raise EmailSendFailed(
                f"Failed to send confirmation email via SendGrid: status {resp.status_code}",
                details=resp.text,
            )

        log.info("SendGrid accepted message (status %d)", resp.status_code)
