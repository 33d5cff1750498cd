#!/usr/bin/env python3
"""Tests for Vehicle and MaintenanceRecord."""

from datetime import date, datetime

from autotrack import MaintenanceRecord, Vehicle


class TestVehicle:
    """Tests for Vehicle."""

    def test_plate_is_uppercased(self):
        assert Vehicle(1, "Fiat", "Panda", "ab123cd").plate == "AB123CD"

    def test_name(self):
        assert Vehicle(1, "Fiat", "Panda", "AB123CD").name == "Fiat Panda"

    def test_odometer_defaults_to_zero(self):
        assert Vehicle(1, "Fiat", "Panda", "AB123CD", current_km=None).current_km == 0

    def test_dict_round_trip_uses_camel_case(self):
        vehicle = Vehicle(3, "Fiat", "Panda", "AB123CD", 2019, 48000, "2025-01-01T10:00:00")
        data = vehicle.to_dict()
        assert data["currentKm"] == 48000
        assert data["createdAt"] == "2025-01-01T10:00:00"
        again = Vehicle.from_dict(data)
        assert again.to_dict() == data


class TestMaintenanceRecord:
    """Tests for MaintenanceRecord."""

    def test_defaults(self):
        record = MaintenanceRecord(1, 2, "Oil change")
        assert record.notify_days_before == 7
        assert record.completed is False
        assert record.completed_at is None
        assert record.has_due_criteria is False

    def test_none_notify_days_uses_default(self):
        assert MaintenanceRecord(1, 2, "Oil", notify_days_before=None).notify_days_before == 7

    def test_unquoted_yaml_dates_are_normalized(self):
        record = MaintenanceRecord.from_dict(
            {"id": 1, "vehicleId": 2, "type": "Oil", "dueDate": date(2025, 6, 10)}
        )
        assert record.due_date == "2025-06-10"
        assert record.has_due_criteria is True

    def test_complete_stamps_timestamp(self):
        record = MaintenanceRecord(1, 2, "Oil", due_km=50000)
        record.set_completed(True, datetime(2025, 6, 10, 9, 30, 15, 123))
        assert record.completed is True
        assert record.completed_at == "2025-06-10T09:30:15"

    def test_complete_again_keeps_first_timestamp(self):
        record = MaintenanceRecord(1, 2, "Oil", due_km=50000)
        record.set_completed(True, datetime(2025, 6, 10, 9, 30))
        record.set_completed(True, datetime(2025, 7, 1, 9, 30))
        assert record.completed_at == "2025-06-10T09:30:00"

    def test_reopen_clears_timestamp(self):
        record = MaintenanceRecord(1, 2, "Oil", due_km=50000)
        record.set_completed(True, datetime(2025, 6, 10, 9, 30))
        record.set_completed(False)
        assert record.completed is False
        assert record.completed_at is None

    def test_dict_round_trip_uses_camel_case(self):
        record = MaintenanceRecord(
            4, 2, "Oil", "2025-06-10", 50000, 10, "synthetic", False, None, "2025-01-01T10:00:00"
        )
        data = record.to_dict()
        assert data["vehicleId"] == 2
        assert data["dueDate"] == "2025-06-10"
        assert data["dueKm"] == 50000
        assert data["notifyDaysBefore"] == 10
        assert MaintenanceRecord.from_dict(data).to_dict() == data
