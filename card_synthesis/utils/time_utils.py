"""
Time helpers for card evaluation timestamps.

Key concepts:
  - Every ``as_of`` handled by the engine is timezone-aware UTC.  Naive
    datetimes coming from producers are interpreted as UTC, never as local time.
  - A composite is only as fresh as its stalest input, so the composite
    ``as_of`` is the *earliest* contributing timestamp.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def earliest(values: Iterable[datetime]) -> Optional[datetime]:
    """Return the earliest of ``values`` (UTC-normalized), or ``None`` if empty."""
    normalized = [ensure_utc(v) for v in values]
    return min(normalized) if normalized else None


def age_hours(value: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    """Hours elapsed between ``value`` and ``now`` (default: current UTC time).

    Args:
        value: Timestamp to measure; ``None`` yields ``None``.
        now:   Reference time; defaults to ``utcnow()``.

    Returns:
        Non-negative float hours, or ``None`` when ``value`` is unknown.
    """
    if value is None:
        return None
    reference = ensure_utc(now) if now is not None else utcnow()
    delta = (reference - ensure_utc(value)).total_seconds() / 3600.0
    return max(delta, 0.0)
