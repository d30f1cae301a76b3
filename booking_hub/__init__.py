"""Booking webhook hub: calendar invite by email plus Slack status notifications."""
