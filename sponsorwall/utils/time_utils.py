"""
Time and date utilities.

Provider payloads carry timestamps as ISO-8601 strings (GitHub, Patreon,
OpenCollective, Polar) or Unix seconds (Afdian). Everything is normalised to
timezone-aware UTC ``datetime`` objects here.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def parse_timestamp(value: Union[str, int, float, None]) -> Optional[datetime]:
    """Parse an ISO-8601 string or Unix seconds into an aware UTC datetime.

    A trailing ``Z`` is accepted. Naive values are assumed to be UTC.
    ``None`` and empty strings map to ``None``.

    Raises:
        ValueError: If a string cannot be parsed as ISO-8601.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def month_difference(start: datetime, end: datetime) -> int:
    """Whole calendar months from ``start`` to ``end``, ignoring the day.

    ``2024-01-31 → 2024-02-01`` is one month; ``2024-03-01 → 2024-03-31`` is zero.
    """
    return (end.year - start.year) * 12 + (end.month - start.month)


def first_day_of_month(moment: datetime) -> datetime:
    """Midnight UTC on the first day of ``moment``'s month."""
    return datetime(moment.year, moment.month, 1, tzinfo=timezone.utc)


def same_month(a: datetime, b: datetime) -> bool:
    return a.year == b.year and a.month == b.month
