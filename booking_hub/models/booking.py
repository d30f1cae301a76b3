"""Pydantic models for booking requests and derived booking details."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from booking_hub.errors import TimeResolutionError
from booking_hub.timeconv import parse_iso_utc

REQUIRED_FIELDS = ("email", "interview_date", "interview_time")

# Raw calendar invite text (ICS).  Held in memory for a single request only.
InviteContent = str


class BookingRequest(BaseModel):
    """Payload posted by the voice agent webhook."""

    email: Optional[str] = None
    interview_date: Optional[str] = None  # DD-MM-YYYY
    interview_time: Optional[str] = None  # HH:MM, display-zone wall clock

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]


class BookingDetails(BaseModel):
    """Booking resolved to an absolute start instant."""

    name: str
    email: str
    start_instant_utc: str  # ISO-8601 with explicit offset

    @field_validator("start_instant_utc")
    @classmethod
    def _require_offset(cls, value: str) -> str:
        try:
            parse_iso_utc(value)
        except TimeResolutionError as exc:
            raise ValueError(exc.detail)
        return value

    @property
    def start_instant(self) -> datetime:
        return parse_iso_utc(self.start_instant_utc)


def derive_name(email: str, fallback: str = "Candidate") -> str:
    """Applicant name defaults to the local part of the email address."""
    return email.split("@")[0] or fallback


class BookingResponse(BaseModel):
    """Body returned to the HTTP caller."""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
