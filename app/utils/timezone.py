"""
app/utils/timezone.py — UTC time helpers
"""
from __future__ import annotations

from datetime import datetime

import pytz

UTC = pytz.utc


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def utc_iso(dt: datetime) -> str:
    """ISO-8601 string for a datetime, assuming UTC when naive."""
    if dt.tzinfo is None:
        dt = UTC.localize(dt)
    return dt.astimezone(UTC).isoformat()
