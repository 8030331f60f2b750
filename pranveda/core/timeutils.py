# pranveda/core/timeutils.py
from datetime import date, datetime, time, timedelta, timezone
from typing import Literal

Period = Literal["7d", "30d", "90d", "1y", "all"]

PERIOD_DAYS: dict[str, int | None] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
    "all": None,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Normalize a datetime read back from the store.

    Postgres `timestamp` columns and SQLite both hand back naive values;
    everything we write is UTC, so a naive value is tagged as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def period_start(period: str, now: datetime | None = None) -> datetime | None:
    """Return the inclusive lower bound for a period, or None for "all"."""
    days = PERIOD_DAYS[period]
    if days is None:
        return None
    return (now or utcnow()) - timedelta(days=days)


def day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def day_end(value: date) -> datetime:
    """Exclusive upper bound covering the whole of `value`."""
    return day_start(value) + timedelta(days=1)
