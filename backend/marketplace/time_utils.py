# Overview: UTC time helpers; stored documents keep naive-UTC ISO strings, API responses use a Z suffix.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC 'now'; every stored timestamp is produced here."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Read a stored or client-supplied ISO-8601 string back as naive UTC.

    Blank input gives None. Offsets (including a trailing Z) are converted;
    strings without one are taken as UTC already.
    """
    if not value or not value.strip():
        return None
    text = value.strip()
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def to_storage(dt: Optional[datetime]) -> Optional[str]:
    """
    Serialize a datetime for a stored document.

    Keeps microseconds so stored values sort in creation order.
    """
    if dt is None:
        return None
    return _as_naive_utc(dt).isoformat(timespec="microseconds")


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Whole-second ISO-8601 with a trailing Z, for responses."""
    if dt is None:
        return None
    return _as_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"
