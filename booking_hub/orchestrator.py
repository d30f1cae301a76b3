"""Per-request booking pipeline.

States, in order:

    received -> validated -> time_resolved -> invite_generated -> email_sent -> completed

Any stage may instead end in ``failed``; the first failure short-circuits
everything after it.  Each invocation produces one outcome notification
(success or failure).  It runs as a detached asyncio task, so the HTTP
response never waits on Slack and is never changed by it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

import pydantic

from booking_hub.config import Settings, settings
from booking_hub.errors import BookingError, ValidationError
from booking_hub.models.booking import (
    BookingDetails,
    BookingRequest,
    BookingResponse,
    derive_name,
)
from booking_hub.models.notification import NotificationEvent, NotificationKind
from booking_hub.redact import redact_pii
from booking_hub.services import EmailDispatcher, InviteRequester, NotificationDispatcher
from booking_hub.timeconv import DISPLAY_PATTERN, format_for_display, to_absolute_instant, to_iso_utc

log = logging.getLogger("booking_hub.orchestrator")

SUCCESS_MESSAGE = "Booking confirmed and email sent."


class BookingState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    TIME_RESOLVED = "time_resolved"
    INVITE_GENERATED = "invite_generated"
    EMAIL_SENT = "email_sent"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class BookingOutcome:
    """What the HTTP layer needs to answer the caller."""

    state: BookingState
    status_code: int
    response: BookingResponse
    failed_stage: Optional[str] = None
    notification: Optional[asyncio.Task] = field(default=None, repr=False)


@dataclass
class _Attempt:
    """Data gathered so far; used to fill the failure notification."""

    state: BookingState = BookingState.RECEIVED
    name: Optional[str] = None
    email: Optional[str] = None

    def advance(self, state: BookingState) -> None:
        log.debug("Booking for %s: %s -> %s", redact_pii(self.email), self.state.value, state.value)
        self.state = state


class BookingOrchestrator:
    """Drives validation, time resolution, invite generation and email delivery."""

    def __init__(
        self,
        invite_requester: InviteRequester,
        email_dispatcher: EmailDispatcher,
        notifier: NotificationDispatcher,
        display_zone: str = "America/Los_Angeles",
        notify_validation_failures: bool = False,
    ) -> None:
        self._invites = invite_requester
        self._email = email_dispatcher
        self._notifier = notifier
        self._display_zone = display_zone
        self._notify_validation_failures = notify_validation_failures
        self._pending: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "BookingOrchestrator":
        return cls(
            invite_requester=InviteRequester.from_settings(cfg),
            email_dispatcher=EmailDispatcher.from_settings(cfg),
            notifier=NotificationDispatcher.from_settings(cfg),
            display_zone=cfg.display_timezone,
            notify_validation_failures=cfg.notify_validation_failures,
        )

    @property
    def pending_notifications(self) -> int:
        return len(self._pending)

    # ── Pipeline ──────────────────────────────────────────────────

    async def handle(self, body: Union[bytes, str, dict, Any]) -> BookingOutcome:
        """Run one booking attempt.  Never raises for pipeline failures."""
        attempt = _Attempt()
        try:
            request = self._parse(body, attempt)
            attempt.advance(BookingState.VALIDATED)

            details = self._resolve(request, attempt)
            attempt.advance(BookingState.TIME_RESOLVED)

            invite = await self._invites.request_invite(details, self._display_zone)
            attempt.advance(BookingState.INVITE_GENERATED)

            await self._email.send_confirmation(
                details.email, details.name, details.start_instant_utc, invite
            )
            attempt.advance(BookingState.EMAIL_SENT)
        except BookingError as exc:
            return self._fail(exc, attempt)
        except Exception as exc:
            log.exception("Unexpected error processing booking")
            return self._fail(BookingError(f"Unexpected error: {exc}"), attempt)

        attempt.advance(BookingState.COMPLETED)
        log.info("Successfully processed booking for %s", redact_pii(details.email))

        display_time = format_for_display(details.start_instant, self._display_zone, DISPLAY_PATTERN)
        task = self.dispatch_detached(
            NotificationEvent(
                kind=NotificationKind.BOOKING_SUCCEEDED,
                applicant_name=details.name,
                applicant_email=details.email,
                display_time_local=display_time,
            )
        )
        return BookingOutcome(
            state=attempt.state,
            status_code=200,
            response=BookingResponse(success=True, message=SUCCESS_MESSAGE),
            notification=task,
        )

    def _parse(self, body: Any, attempt: _Attempt) -> BookingRequest:
        payload = body
        if isinstance(body, (bytes, str)):
            try:
                payload = json.loads(body)
            except (UnicodeDecodeError, json.JSONDecodeError):
                raise ValidationError("Invalid JSON payload")
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        if isinstance(payload.get("email"), str) and payload["email"]:
            attempt.email = payload["email"]
            attempt.name = derive_name(payload["email"])

        try:
            request = BookingRequest.model_validate(payload)
        except pydantic.ValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            raise ValidationError(f"Invalid field types: {', '.join(fields)}")

        log.info(
            "Received booking request: email=%s date=%s time=%s",
            redact_pii(request.email),
            request.interview_date,
            request.interview_time,
        )
        missing = request.missing_fields()
        if missing:
            log.error("Validation error: missing fields - %s", ", ".join(missing))
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", missing_fields=missing
            )
        return request

    def _resolve(self, request: BookingRequest, attempt: _Attempt) -> BookingDetails:
        instant = to_absolute_instant(
            request.interview_date, request.interview_time, self._display_zone
        )
        details = BookingDetails(
            name=derive_name(request.email, fallback="Valued Candidate"),
            email=request.email,
            start_instant_utc=to_iso_utc(instant),
        )
        attempt.name = details.name
        log.info(
            "Resolved %s %s (%s) to %s",
            request.interview_date,
            request.interview_time,
            self._display_zone,
            details.start_instant_utc,
        )
        return details

    def _fail(self, exc: BookingError, attempt: _Attempt) -> BookingOutcome:
        stage = exc.stage
        log.error("Booking failed at %s (state=%s): %s", stage, attempt.state.value, exc.detail)
        attempt.advance(BookingState.FAILED)

        task = None
        if self._notify_validation_failures or not isinstance(exc, ValidationError):
            task = self.dispatch_detached(
                NotificationEvent(
                    kind=NotificationKind.BOOKING_FAILED,
                    applicant_name=attempt.name,
                    applicant_email=attempt.email,
                    error_message=exc.detail,
                )
            )

        return BookingOutcome(
            state=attempt.state,
            status_code=exc.status_code,
            response=BookingResponse(success=False, error=exc.public_message),
            failed_stage=stage,
            notification=task,
        )

    # ── Detached notification ──────────────────────────────────────

    def dispatch_detached(self, event: NotificationEvent) -> asyncio.Task:
        """Start delivery without awaiting it.  The task result is the delivered flag."""
        task = asyncio.create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(self, event: NotificationEvent) -> bool:
        try:
            delivered = await self._notifier.notify(event)
        except Exception:
            log.exception("Notification dispatch crashed for %s", event.kind.value)
            return False
        if not delivered:
            log.warning("%s notification not delivered", event.kind.value)
        return delivered
