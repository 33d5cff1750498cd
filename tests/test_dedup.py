#!/usr/bin/env python3
"""Tests for SentLog notification de-duplication."""

from datetime import date, datetime

import yaml

from autotrack import SentLog

DAY = datetime(2025, 6, 10, 9, 30)
LATER_SAME_DAY = datetime(2025, 6, 10, 21, 0)
NEXT_DAY = datetime(2025, 6, 11, 8, 0)


class TestSentLogInMemory:
    """Tests without a backing file."""

    def test_fresh_log_notifies(self):
        assert SentLog().should_notify(1, DAY) is True

    def test_same_day_suppressed(self):
        log = SentLog()
        log.mark_sent(1, DAY)
        assert log.should_notify(1, DAY) is False
        assert log.should_notify(1, LATER_SAME_DAY) is False

    def test_next_day_allowed(self):
        log = SentLog()
        log.mark_sent(1, DAY)
        assert log.should_notify(1, NEXT_DAY) is True

    def test_records_are_independent(self):
        log = SentLog()
        log.mark_sent(1, DAY)
        assert log.should_notify(2, DAY) is True

    def test_day_change_drops_previous_day(self):
        log = SentLog()
        log.mark_sent(1, DAY)
        log.mark_sent(2, NEXT_DAY)
        assert log.should_notify(1, NEXT_DAY) is True
        # Going back to the old day does not resurrect its keys
        assert log.should_notify(1, DAY) is True

    def test_accepts_dates(self):
        log = SentLog()
        log.mark_sent(1, date(2025, 6, 10))
        assert log.should_notify(1, DAY) is False


class TestSentLogPersistence:
    """Tests with a YAML backing file."""

    def test_survives_restart_same_day(self, tmp_path):
        path = tmp_path / "sent.yaml"
        SentLog(path).mark_sent(7, DAY)
        assert SentLog(path).should_notify(7, LATER_SAME_DAY) is False

    def test_file_contents(self, tmp_path):
        path = tmp_path / "sent.yaml"
        log = SentLog(path)
        log.mark_sent(7, DAY)
        log.mark_sent(3, DAY)
        data = yaml.safe_load(path.read_text())
        assert data == {"date": "2025-06-10", "notifications": ["3-2025-06-10", "7-2025-06-10"]}

    def test_stale_file_is_ignored_next_day(self, tmp_path):
        path = tmp_path / "sent.yaml"
        SentLog(path).mark_sent(7, DAY)
        assert SentLog(path).should_notify(7, NEXT_DAY) is True

    def test_missing_file_is_empty(self, tmp_path):
        assert SentLog(tmp_path / "nope.yaml").should_notify(1, DAY) is True

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "sent.yaml"
        path.write_text("date: [unclosed\n")
        log = SentLog(path)
        assert log.should_notify(1, DAY) is True

    def test_unwritable_path_does_not_raise(self, tmp_path):
        """A directory in place of the file: nothing is saved, nothing breaks."""
        path = tmp_path / "sent.yaml"
        path.mkdir()
        log = SentLog(path)
        log.mark_sent(1, DAY)
        assert log.should_notify(1, DAY) is False
