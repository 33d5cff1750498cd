"""Background maintenance notifications.

A check cycle reads one snapshot of the store, ranks the due records and
sends at most one notification per record per day. Cycles run on an
APScheduler interval job; how a notification is finally shown is up to the
notifier object passed in.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler

from .aggregator import Alert, aggregate
from .dedup import SentLog
from .settings import Settings
from .status import Status
from .store import YamlStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """A message ready for delivery."""

    title: str
    body: str
    tag: str
    require_interaction: bool
    vehicle_id: int
    record_id: int


def build_notification(alert: Alert) -> Notification:
    """Turn an alert into a notification; overdue ones ask for interaction."""
    overdue = alert.due.status == Status.OVERDUE
    title = "Maintenance overdue!" if overdue else "Maintenance due soon"
    body = f"{alert.record.type} - {alert.vehicle.name}\n{alert.due.reason}"
    return Notification(
        title=title,
        body=body,
        tag=f"maintenance-{alert.record.id}",
        require_interaction=overdue,
        vehicle_id=alert.vehicle.id,
        record_id=alert.record.id,
    )


class LogNotifier:
    """Delivers notifications as log records."""

    def __init__(self, logger_name: str = "autotrack.notifications"):
        self.log = logging.getLogger(logger_name)

    def deliver(self, notification: Notification) -> None:
        level = logging.WARNING if notification.require_interaction else logging.INFO
        self.log.log(
            level, "%s %s", notification.title, notification.body.replace("\n", ": ")
        )


def run_check(
    store: YamlStore,
    sent_log: SentLog,
    notifier,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> int:
    """
    Run one notification cycle and return the number of notifications sent.

    If the store cannot be read the cycle is skipped; the next one retries.
    A record whose delivery fails is left unmarked so it is retried too.
    """
    now = now or datetime.now()
    try:
        vehicles, records = store.snapshot()
    except Exception:
        logger.exception("Could not read vehicles and maintenances; skipping check")
        return 0

    sent = 0
    for alert in aggregate(vehicles, records, now, settings):
        if not sent_log.should_notify(alert.record.id, now):
            continue
        try:
            notifier.deliver(build_notification(alert))
        except Exception:
            logger.exception("Failed to deliver notification for maintenance %d", alert.record.id)
            continue
        sent_log.mark_sent(alert.record.id, now)
        sent += 1

    logger.info("Maintenance check complete: %d notifications sent", sent)
    return sent


def start_scheduler(
    cycle: Callable[[], object], minutes: int, blocking: bool = False
) -> Union[BackgroundScheduler, BlockingScheduler]:
    """
    Create and start a scheduler running `cycle` now and every `minutes`.

    A background scheduler is returned running so the caller can shut it
    down. A blocking scheduler only returns once it has been shut down.
    """
    scheduler = BlockingScheduler() if blocking else BackgroundScheduler(daemon=True)
    scheduler.add_job(
        cycle,
        trigger="interval",
        minutes=minutes,
        next_run_time=datetime.now(),
        id="maintenance_check",
        name="Check maintenances and send notifications",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info("Maintenance checks scheduled every %d minutes", minutes)
    scheduler.start()
    return scheduler
