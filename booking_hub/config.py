"""Application configuration via environment variables."""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings

log = logging.getLogger("booking_hub.config")


class Settings(BaseSettings):
    # Credentials
    apy_token: str = ""
    sendgrid_key: str = ""
    hmac_secret: str = ""

    # Slack incoming webhooks
    slack_bookings_url: str = ""
    slack_errors_url: str = ""

    # Scheduling
    display_timezone: str = "America/Los_Angeles"
    meeting_duration_minutes: int = 30

    # Outbound HTTP
    http_timeout_seconds: float = 10.0
    apyhub_ical_url: str = "https://api.apyhub.com/generate/ical/file?output=invite.ics"
    sendgrid_api_url: str = "https://api.sendgrid.com/v3/mail/send"

    # Identities used in invites and email
    sender_email: str = "hello@debtcat.com"
    sender_name: str = "Bland AI Recruiting"
    cc_email: str = "lyori6@gmail.com"
    organizer_email: str = "hello@debtcat.com"
    organizer_name: str = "Bland AI Recruiting"
    position_title: str = "Bland AI Support Engineer"

    # Notifications for requests rejected before time resolution
    notify_validation_failures: bool = False

    # Inbound auth
    require_signature: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []

        try:
            ZoneInfo(self.display_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(
                f"DISPLAY_TIMEZONE {self.display_timezone!r} is not a known IANA zone."
            )

        if self.require_signature and not self.hmac_secret:
            raise ValueError(
                "REQUIRE_SIGNATURE is enabled but HMAC_SECRET is empty. "
                "Set HMAC_SECRET in .env or disable signature checks."
            )

        if not self.apy_token:
            warnings.append("APY_TOKEN not set. Invite generation will be rejected upstream.")
        if not self.sendgrid_key:
            warnings.append("SENDGRID_KEY not set. Confirmation emails will fail.")
        if not self.slack_bookings_url:
            warnings.append("SLACK_BOOKINGS_URL not set. Success notifications are skipped.")
        if not self.slack_errors_url:
            warnings.append("SLACK_ERRORS_URL not set. Failure notifications are skipped.")
        if not self.require_signature:
            warnings.append(
                "Inbound signature verification is off. /book-email accepts unsigned requests."
            )

        return warnings


settings = Settings()
