from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

# Timestamps are stored as naive UTC. Sale, acquisition and payout dates
# are plain calendar dates.


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return utcnow().date()


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    ISO-8601 string -> naive UTC datetime.

    Offsets (including a trailing "Z") are converted to UTC; a value
    without an offset is taken to be UTC already. Blank input gives None.
    """
    if _blank(value):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    "YYYY-MM-DD" -> date. A full datetime is also accepted and reduced to
    its UTC calendar day, since the checkout screen may send either.
    """
    if _blank(value):
        return None
    text = value.strip()
    if len(text) == len("YYYY-MM-DD"):
        return date.fromisoformat(text)
    return parse_iso_datetime(text).date()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Whole-second ISO-8601 with a "Z" suffix; naive values are read as UTC."""
    if dt is None:
        return None
    aware = dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)
    return aware.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def to_iso_date(d: Optional[date]) -> Optional[str]:
    return None if d is None else d.isoformat()
