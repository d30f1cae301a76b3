"""Conversion between local civil date/time in a named zone and UTC instants.

Inputs are canonicalised to an aware UTC ``datetime`` as soon as they are
parsed.  All arithmetic happens on that instant, and local strings are only
produced again at output boundaries via :func:`format_for_display`.  Offsets
always come from the zone's transition rules for the date in question, never
from a constant.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking_hub.errors import InvalidDateTime

DATE_PATTERN = re.compile(r"([0-9]{2})-([0-9]{2})-([0-9]{4})")  # DD-MM-YYYY, ASCII digits
TIME_PATTERN = re.compile(r"([0-9]{2}):([0-9]{2})")  # HH:MM, ASCII digits

# date-fns style tokens -> strftime directives; quoted text is literal.
# "a" is rendered from the hour, not %p, which follows the locale.
_TOKEN_RE = re.compile(r"'[^']*'|yyyy|zzz|MM|dd|HH|hh|mm|ss|a")
_TOKENS = {
    "yyyy": "%Y",
    "MM": "%m",
    "dd": "%d",
    "HH": "%H",
    "hh": "%I",
    "mm": "%M",
    "ss": "%S",
    "zzz": "%Z",
}

DISPLAY_PATTERN = "MM/dd/yyyy, hh:mm:ss a zzz"


def _zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidDateTime(f"Unknown time zone: {name}")


def to_absolute_instant(date_local: str, time_local: str, zone: str) -> datetime:
    """Interpret ``DD-MM-YYYY`` + ``HH:MM`` as wall-clock time in ``zone``.

    Returns an aware datetime in UTC.  Wall-clock times that fall in a
    spring-forward gap are read with the offset in force before the
    transition; repeated times in a fall-back overlap resolve to the first
    occurrence.
    """
    date_match = DATE_PATTERN.fullmatch(date_local or "")
    time_match = TIME_PATTERN.fullmatch(time_local or "")
    if not date_match or not time_match:
        raise InvalidDateTime("Invalid date or time format.")

    day, month, year = (int(p) for p in date_match.groups())
    hour, minute = (int(p) for p in time_match.groups())
    tz = _zone(zone)

    try:
        local = datetime(year, month, day, hour, minute, tzinfo=tz)
        # the UTC instant can fall outside datetime's range near year 1 or 9999
        return local.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        raise InvalidDateTime(f"Could not resolve {date_local} {time_local} in {zone}.")


def format_for_display(instant: datetime, zone: str, pattern: str = DISPLAY_PATTERN) -> str:
    """Render ``instant`` as wall-clock text in ``zone``.

    Recognised tokens: ``dd MM yyyy HH hh mm ss a zzz``.  Every unquoted
    occurrence of a token is replaced, including a lone ``a`` inside a word,
    so literal text containing letters must be wrapped in single quotes
    (``"dd 'Mar' yyyy"``).  Other characters pass through as-is.  The ``a``
    token always renders ``AM``/``PM`` regardless of the process locale.
    """
    if instant.tzinfo is None:
        raise InvalidDateTime("Cannot format a naive datetime; an absolute instant is required.")
    local = instant.astimezone(_zone(zone))

    def render(match: re.Match) -> str:
        token = match.group(0)
        if token.startswith("'"):
            return token[1:-1]
        if token == "a":
            return "AM" if local.hour < 12 else "PM"
        return local.strftime(_TOKENS[token])

    return _TOKEN_RE.sub(render, pattern)


def add_minutes(instant: datetime, minutes: int) -> datetime:
    """Offset an instant by elapsed minutes (absolute time, not wall-clock)."""
    if instant.tzinfo is None:
        raise InvalidDateTime("Cannot offset a naive datetime; an absolute instant is required.")
    return instant.astimezone(timezone.utc) + timedelta(minutes=minutes)


def to_iso_utc(instant: datetime) -> str:
    """ISO-8601 UTC string with millisecond precision and ``Z`` suffix."""
    utc = instant.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_iso_utc(value: str) -> datetime:
    """Parse an ISO-8601 timestamp carrying an explicit offset or ``Z``."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise InvalidDateTime(f"Not an ISO-8601 timestamp: {value!r}")
    if parsed.tzinfo is None:
        raise InvalidDateTime(f"Timestamp has no offset: {value!r}")
    return parsed.astimezone(timezone.utc)
