"""Helper functions for due-status calculations."""

import math
from datetime import date, datetime, time
from typing import Optional, Union

from .status import Status

SECONDS_PER_DAY = 24 * 60 * 60


def as_datetime(now: Union[date, datetime]) -> datetime:
    """Treat a bare date as its midnight."""
    if isinstance(now, datetime):
        return now
    return datetime.combine(now, time())


def calc_days_until(due_date: Union[str, date], now: Union[date, datetime]) -> int:
    """
    Whole days from now until the due date, rounded up.

    The due date is anchored at its midnight (in now's timezone), so any
    moment of the due day itself gives 0 and the day after gives -1.
    """
    if isinstance(due_date, str):
        due_date = date.fromisoformat(due_date)
    now = as_datetime(now)
    due = datetime.combine(due_date, time(), tzinfo=now.tzinfo)
    return math.ceil((due - now).total_seconds() / SECONDS_PER_DAY)


def calc_km_until(due_km: Optional[int], current_km: Optional[int]) -> Optional[int]:
    """Distance left until the due odometer reading, negative once passed."""
    if due_km is None or current_km is None:
        return None
    return due_km - current_km


def check_days(days_until: int, notify_days_before: int) -> Status:
    """Status from the date criterion; the notify window is inclusive."""
    if days_until < 0:
        return Status.OVERDUE
    if days_until <= notify_days_before:
        return Status.IMMINENT
    return Status.NONE


def check_km(km_until: int, imminent_km: float) -> Status:
    """Status from the odometer criterion; the threshold is inclusive."""
    if km_until < 0:
        return Status.OVERDUE
    if km_until <= imminent_km:
        return Status.IMMINENT
    return Status.NONE


def plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def date_reason(days_until: int) -> str:
    """Human-readable reason for a contributing date criterion."""
    if days_until < 0:
        return f"overdue by {plural(-days_until, 'day')}"
    if days_until == 0:
        return "due today"
    return f"due in {plural(days_until, 'day')}"


def km_reason(km_until: int) -> str:
    """Human-readable reason for a contributing odometer criterion."""
    if km_until < 0:
        return f"exceeded by {-km_until:,} km"
    return f"{km_until:,} km remaining"


def calc_urgency(
    days_until: Optional[float], km_until: Optional[float], km_per_day: float
) -> float:
    """
    Single ranking value mixing both criteria: min(days, km / km_per_day).

    A missing criterion counts as infinitely far away.
    """
    days = math.inf if days_until is None else days_until
    km_days = math.inf if km_until is None else km_until / km_per_day
    return min(days, km_days)
