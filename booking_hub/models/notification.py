"""Pydantic model for booking outcome notifications."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class NotificationKind(str, Enum):
    BOOKING_SUCCEEDED = "booking_succeeded"
    BOOKING_FAILED = "booking_failed"


class NotificationEvent(BaseModel):
    """One per terminal outcome of a booking attempt.

    Fields are filled from whatever the pipeline derived before it finished,
    so everything except ``kind`` may be missing on the failure path.
    """

    kind: NotificationKind
    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    display_time_local: Optional[str] = None
    error_message: Optional[str] = None
