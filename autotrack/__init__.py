"""
Vehicle maintenance due-date tracking.

This package provides:
- Status: due state of a record (OVERDUE, IMMINENT, NONE)
- Vehicle, MaintenanceRecord: tracked data
- evaluate: due status of one record from its due date and due odometer
- aggregate: ranked alerts across all vehicles
- SentLog: once-a-day notification de-duplication
- YamlStore: YAML-file storage with cascade delete
"""

from .status import Status
from .errors import (
    AutoTrackError,
    NotFoundError,
    DuplicatePlateError,
    InvalidInputError,
    DataFileError,
)
from .vehicle import Vehicle
from .maintenance import MaintenanceRecord
from .due_status import DueStatus
from .calculations import calc_days_until, calc_km_until, calc_urgency
from .settings import Settings, load_settings, load_maintenance_types
from .evaluator import evaluate
from .aggregator import Alert, aggregate, sort_vehicle_records
from .dedup import SentLog
from .store import YamlStore

__all__ = [
    "Status",
    "AutoTrackError",
    "NotFoundError",
    "DuplicatePlateError",
    "InvalidInputError",
    "DataFileError",
    "Vehicle",
    "MaintenanceRecord",
    "DueStatus",
    "calc_days_until",
    "calc_km_until",
    "calc_urgency",
    "Settings",
    "load_settings",
    "load_maintenance_types",
    "evaluate",
    "Alert",
    "aggregate",
    "sort_vehicle_records",
    "SentLog",
    "YamlStore",
]
