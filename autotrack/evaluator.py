"""
Due-status evaluation for a single maintenance record.

This is the one place that decides whether a record is due. The CLI, the
web API and the background notifier all call evaluate() (directly or via
the aggregator), so the date and odometer rules cannot drift apart.
"""

import math
from datetime import date, datetime
from typing import List, Optional, Union

from .calculations import (
    calc_days_until,
    calc_km_until,
    check_days,
    check_km,
    date_reason,
    km_reason,
)
from .due_status import DueStatus
from .maintenance import MaintenanceRecord
from .settings import Settings
from .status import Status

REASON_SEPARATOR = " | "


def evaluate(
    record: MaintenanceRecord,
    current_km: Optional[int],
    now: Union[date, datetime],
    settings: Optional[Settings] = None,
) -> DueStatus:
    """
    Evaluate whether a record is due, given the vehicle odometer and now.

    Logic:
    - Date criterion (needs due_date): overdue when past, imminent within
      notify_days_before days (inclusive), else nothing
    - Odometer criterion (needs due_km and current_km): overdue when passed,
      imminent within settings.imminent_km (inclusive), else nothing
    - Overdue wins over imminent; reasons are joined, date first

    Missing inputs switch the matching criterion off instead of raising.
    The completed flag is not consulted here; aggregate() filters those.
    """
    if not record.has_due_criteria:
        return DueStatus()

    settings = settings or Settings()
    statuses: List[Status] = []
    reasons: List[str] = []

    days_until = math.inf
    if record.due_date is not None:
        days_until = calc_days_until(record.due_date, now)
        date_status = check_days(days_until, record.notify_days_before)
        if date_status != Status.NONE:
            statuses.append(date_status)
            reasons.append(date_reason(days_until))

    km_until = calc_km_until(record.due_km, current_km)
    if km_until is not None:
        km_status = check_km(km_until, settings.imminent_km)
        if km_status != Status.NONE:
            statuses.append(km_status)
            reasons.append(km_reason(km_until))

    if not statuses:
        return DueStatus(days_until=days_until, km_until=km_until)

    return DueStatus(
        is_due=True,
        status=min(statuses, key=lambda s: s.rank),
        days_until=days_until,
        km_until=km_until,
        reason=REASON_SEPARATOR.join(reasons),
    )
