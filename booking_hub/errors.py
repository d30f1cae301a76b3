"""Error taxonomy for the booking pipeline.

Every pipeline failure carries two messages:
  detail          full diagnostic text (logged and sent to the errors channel)
  public_message  what the HTTP caller is allowed to see

Validation and time errors describe the caller's own input, so both messages
are the same.  Downstream failures hide upstream status codes and bodies from
the caller.
"""

from __future__ import annotations

from typing import Optional


class BookingError(Exception):
    """Base class for failures that abort a booking attempt."""

    stage = "unknown"
    status_code = 500
    default_public_message = "Failed to process booking due to an internal error."

    def __init__(self, detail: str, public_message: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.public_message = public_message or self.default_public_message


class ValidationError(BookingError):
    stage = "validate"
    status_code = 400

    def __init__(self, detail: str, missing_fields: Optional[list[str]] = None) -> None:
        super().__init__(detail, public_message=detail)
        self.missing_fields = list(missing_fields or [])


class TimeResolutionError(BookingError):
    """A local date/time could not be turned into an absolute instant."""

    stage = "resolve_time"
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail, public_message=detail)


# Name used by the time converter contract.
InvalidDateTime = TimeResolutionError


class InviteGenerationFailed(BookingError):
    stage = "generate_invite"
    default_public_message = "Could not generate the calendar invite. Please try again later."

    def __init__(
        self,
        detail: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
        network: bool = False,
    ) -> None:
        super().__init__(detail)
        self.status = status
        self.body = body
        self.network = network


class EmailSendFailed(BookingError):
    stage = "send_email"
    default_public_message = "Could not send the confirmation email. Please try again later."

    def __init__(self, detail: str, details: Optional[str] = None) -> None:
        super().__init__(detail)
        self.details = details


class NotificationDeliveryFailed(Exception):
    """Raised inside the notification dispatcher only; never reaches callers."""
