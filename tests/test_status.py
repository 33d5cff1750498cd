#!/usr/bin/env python3
"""Tests for Status enum."""

from autotrack import Status


class TestStatus:
    """Tests for Status values and urgency ordering."""

    def test_values_match_wire_names(self):
        assert Status.OVERDUE.value == "overdue"
        assert Status.IMMINENT.value == "imminent"
        assert Status.NONE.value == "none"

    def test_urgency_ordering(self):
        """Lower rank = more urgent."""
        assert Status.OVERDUE.rank < Status.IMMINENT.rank
        assert Status.IMMINENT.rank < Status.NONE.rank
