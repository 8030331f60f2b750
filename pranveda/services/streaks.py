# pranveda/services/streaks.py
from datetime import date, datetime, timedelta
from typing import Iterable

from pranveda.core.timeutils import as_utc, utcnow

STREAK_MILESTONES = [3, 7, 14, 30, 60, 100, 200, 365]


def activity_dates(timestamps: Iterable[datetime]) -> set[date]:
    """Distinct UTC calendar days on which an activity happened."""
    return {as_utc(ts).date() for ts in timestamps if ts is not None}


def calculate_streak(days: Iterable[date], today: date | None = None) -> dict:
    """
    Current and longest run of consecutive activity days.

    The current streak is alive while the latest activity is today or
    yesterday; otherwise it is 0.
    """
    today = today or utcnow().date()
    unique = sorted(set(days))
    if not unique:
        return {
            "current": 0,
            "longest": 0,
            "last_activity_date": None,
            "next_milestone": STREAK_MILESTONES[0],
        }

    longest = run = 1
    for prev, cur in zip(unique, unique[1:]):
        run = run + 1 if cur - prev == timedelta(days=1) else 1
        longest = max(longest, run)

    last = unique[-1]
    current = 0
    if today - last <= timedelta(days=1):
        current = 1
        expected = last - timedelta(days=1)
        for day in reversed(unique[:-1]):
            if day != expected:
                break
            current += 1
            expected -= timedelta(days=1)

    return {
        "current": current,
        "longest": longest,
        "last_activity_date": last,
        "next_milestone": next((m for m in STREAK_MILESTONES if m > current), None),
    }
