"""Data models for the booking pipeline."""

from .booking import BookingDetails, BookingRequest, BookingResponse, InviteContent
from .notification import NotificationEvent, NotificationKind

__all__ = [
    "BookingDetails",
    "BookingRequest",
    "BookingResponse",
    "InviteContent",
    "NotificationEvent",
    "NotificationKind",
]
