#!/usr/bin/env python3
"""Tests for notification building and check cycles."""

import logging
from datetime import datetime

import pytest

from autotrack import SentLog, Status, YamlStore, aggregate
from autotrack.notifier import LogNotifier, build_notification, run_check, start_scheduler

NOW = datetime(2025, 6, 10, 9, 30)
NEXT_DAY = datetime(2025, 6, 11, 9, 30)


class CollectingNotifier:
    def __init__(self, fail_for=()):
        self.delivered = []
        self.fail_for = set(fail_for)

    def deliver(self, notification):
        if notification.record_id in self.fail_for:
            raise RuntimeError("delivery failed")
        self.delivered.append(notification)


class BrokenStore:
    def snapshot(self):
        raise OSError("disk unavailable")


@pytest.fixture
def store(tmp_path):
    store = YamlStore(tmp_path / "data.yaml")
    panda = store.add_vehicle("Fiat", "Panda", "AB123CD", 2019, 50000)
    store.add_record(panda.id, "Oil change", due_km=49500)
    store.add_record(panda.id, "Insurance", due_date="2025-06-13")
    store.add_record(panda.id, "Timing belt", due_km=90000)
    return store


class TestBuildNotification:
    """Tests for build_notification."""

    def test_overdue(self, store):
        vehicles, records = store.snapshot()
        alert = aggregate(vehicles, records, NOW)[0]
        assert alert.due.status == Status.OVERDUE
        notification = build_notification(alert)
        assert notification.title == "Maintenance overdue!"
        assert notification.body == "Oil change - Fiat Panda\nexceeded by 500 km"
        assert notification.tag == "maintenance-1"
        assert notification.require_interaction is True
        assert notification.vehicle_id == 1
        assert notification.record_id == 1

    def test_imminent(self, store):
        vehicles, records = store.snapshot()
        alert = aggregate(vehicles, records, NOW)[1]
        notification = build_notification(alert)
        assert notification.title == "Maintenance due soon"
        assert notification.body == "Insurance - Fiat Panda\ndue in 3 days"
        assert notification.require_interaction is False


class TestRunCheck:
    """Tests for run_check."""

    def test_sends_each_due_record_once_per_day(self, store):
        notifier = CollectingNotifier()
        sent_log = SentLog()

        assert run_check(store, sent_log, notifier, NOW) == 2
        assert [n.record_id for n in notifier.delivered] == [1, 2]

        assert run_check(store, sent_log, notifier, NOW) == 0
        assert run_check(store, sent_log, notifier, NEXT_DAY) == 2

    def test_completed_records_are_not_sent(self, store):
        store.set_completed(1, True)
        notifier = CollectingNotifier()
        run_check(store, SentLog(), notifier, NOW)
        assert [n.record_id for n in notifier.delivered] == [2]

    def test_unreadable_store_skips_cycle(self):
        notifier = CollectingNotifier()
        assert run_check(BrokenStore(), SentLog(), notifier, NOW) == 0
        assert notifier.delivered == []

    def test_failed_delivery_is_retried_next_cycle(self, store):
        sent_log = SentLog()
        failing = CollectingNotifier(fail_for={1})
        assert run_check(store, sent_log, failing, NOW) == 1
        assert sent_log.should_notify(1, NOW) is True

        working = CollectingNotifier()
        assert run_check(store, sent_log, working, NOW) == 1
        assert [n.record_id for n in working.delivered] == [1]


class TestLogNotifier:
    """Tests for LogNotifier."""

    def test_overdue_logged_as_warning(self, store, caplog):
        vehicles, records = store.snapshot()
        alert = aggregate(vehicles, records, NOW)[0]
        with caplog.at_level(logging.INFO, logger="autotrack.notifications"):
            LogNotifier().deliver(build_notification(alert))
        assert caplog.records[-1].levelno == logging.WARNING
        assert "Oil change - Fiat Panda: exceeded by 500 km" in caplog.text


class TestStartScheduler:
    """Tests for start_scheduler."""

    def test_background_job_registered(self):
        scheduler = start_scheduler(lambda: None, minutes=15)
        try:
            job = scheduler.get_job("maintenance_check")
            assert job is not None
            assert job.trigger.interval.total_seconds() == 15 * 60
        finally:
            scheduler.shutdown(wait=False)
