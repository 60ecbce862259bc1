"""Timestamp and duration helpers."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

# Tag written on resources whose API exposes no creation time
FIRST_SEEN_TAG_KEY = "awsnuke-first-seen"

FIRST_SEEN_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
LEGACY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_DURATION_PART = re.compile(r"(\d+)([smhdw])")
_DURATION_UNITS = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return a timezone-aware datetime, treating naive values as UTC."""
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339, legacy (YYYY-MM-DD HH:MM:SS) or date-only timestamp.

    Raises:
        ValueError: If the value matches none of the supported formats
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        pass

    for fmt in (LEGACY_TIME_FORMAT, "%Y-%m-%d"):
        try:
            return datetime.strptime(value.strip(), fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    raise ValueError(f"Unrecognized timestamp: {value!r}")


def format_timestamp(value: datetime) -> str:
    return ensure_utc(value).strftime(FIRST_SEEN_TIME_FORMAT)


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as '30m', '24h', '7d' or '1h30m'.

    Raises:
        ValueError: If the value is empty or malformed
    """
    text = value.strip().lower()
    if not text:
        raise ValueError("Empty duration")

    position = 0
    kwargs = {unit: 0 for unit in _DURATION_UNITS.values()}
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        kwargs[_DURATION_UNITS[match.group(2)]] += int(match.group(1))
        position = match.end()

    if position != len(text):
        raise ValueError(f"Invalid duration: {value!r} (use e.g. 30m, 24h, 7d, 1h30m)")

    return timedelta(**kwargs)
