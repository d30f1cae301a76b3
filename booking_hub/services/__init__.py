"""Outbound collaborators: invite generation, email delivery, notifications."""

from .invite import InviteRequester
from .mailer import EmailDispatcher
from .notifications import NotificationDispatcher

__all__ = ["EmailDispatcher", "InviteRequester", "NotificationDispatcher"]
