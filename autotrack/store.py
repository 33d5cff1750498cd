"""YAML-file backed store for vehicles and their maintenance records."""

import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .errors import DataFileError, DuplicatePlateError, InvalidInputError, NotFoundError
from .maintenance import DEFAULT_NOTIFY_DAYS, MaintenanceRecord
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

VEHICLE_FIELDS = {"brand", "model", "plate", "year", "current_km"}
RECORD_FIELDS = {"type", "due_date", "due_km", "notify_days_before", "notes"}


def _timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).isoformat(timespec="seconds")


def _clean(dct: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values for cleaner YAML."""
    return {k: v for k, v in dct.items() if v is not None}


def _next_id(items: List[Dict[str, Any]]) -> int:
    return max((item["id"] for item in items), default=0) + 1


class YamlStore:
    """
    Vehicles and maintenance records kept in a single YAML file.

    File layout:
        vehicles:      [{id, brand, model, plate, year, currentKm, createdAt}]
        maintenances:  [{id, vehicleId, type, dueDate, dueKm, ...}]

    Every write rewrites the whole file through a temporary file and an
    atomic rename, so readers see either the old or the new state. Deleting
    a vehicle and its records is a single write. Writes through one store
    instance are serialized, so threaded servers do not lose updates.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Raw file access
    # -------------------------------------------------------------------------

    def _read(self) -> Dict[str, List[Dict[str, Any]]]:
        if not self.path.exists():
            return {"vehicles": [], "maintenances": []}
        try:
            with open(self.path, "r") as fp:
                data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        except yaml.YAMLError as e:
            raise DataFileError(f"{self.path}: invalid YAML: {e}")
        if not isinstance(data, dict):
            raise DataFileError(f"{self.path}: expected a mapping at the top level")
        for key in ("vehicles", "maintenances"):
            if data.get(key) is None:
                data[key] = []
            elif not isinstance(data[key], list):
                raise DataFileError(f"{self.path}: {key} must be a list")
        return data

    def _write(self, data: Dict[str, List[Dict[str, Any]]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as fp:
                yaml.dump(
                    data,
                    fp,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=120,
                )
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise

    @staticmethod
    def _find(items: List[Dict[str, Any]], item_id: int, what: str) -> Dict[str, Any]:
        for item in items:
            if item["id"] == item_id:
                return item
        raise NotFoundError(f"{what} {item_id} not found")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def snapshot(self) -> Tuple[List[Vehicle], List[MaintenanceRecord]]:
        """All vehicles and records from a single read of the file."""
        data = self._read()
        vehicles = [Vehicle.from_dict(v) for v in data["vehicles"]]
        records = [MaintenanceRecord.from_dict(m) for m in data["maintenances"]]
        return vehicles, records

    def list_vehicles(self) -> List[Vehicle]:
        return [Vehicle.from_dict(v) for v in self._read()["vehicles"]]

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        data = self._read()
        return Vehicle.from_dict(self._find(data["vehicles"], vehicle_id, "Vehicle"))

    def list_records(self, vehicle_id: Optional[int] = None) -> List[MaintenanceRecord]:
        """All records, or one vehicle's records (the vehicle must exist)."""
        data = self._read()
        items = data["maintenances"]
        if vehicle_id is not None:
            self._find(data["vehicles"], vehicle_id, "Vehicle")
            items = [m for m in items if m["vehicleId"] == vehicle_id]
        return [MaintenanceRecord.from_dict(m) for m in items]

    def get_record(self, record_id: int) -> MaintenanceRecord:
        data = self._read()
        return MaintenanceRecord.from_dict(
            self._find(data["maintenances"], record_id, "Maintenance")
        )

    # -------------------------------------------------------------------------
    # Vehicle writes
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_plate(data, plate: str, vehicle_id: Optional[int] = None) -> None:
        for v in data["vehicles"]:
            if str(v["plate"]).upper() == plate and v["id"] != vehicle_id:
                raise DuplicatePlateError(f"Plate {plate} already exists")

    def add_vehicle(
        self,
        brand: str,
        model: str,
        plate: str,
        year: Optional[int] = None,
        current_km: int = 0,
        now: Optional[datetime] = None,
    ) -> Vehicle:
        """Create a vehicle. Plates are stored uppercase and must be unique."""
        with self._lock:
            data = self._read()
            vehicle = Vehicle(
                _next_id(data["vehicles"]),
                brand,
                model,
                plate,
                year,
                current_km,
                _timestamp(now),
            )
            self._check_plate(data, vehicle.plate)
            data["vehicles"].append(_clean(vehicle.to_dict()))
            self._write(data)
        logger.info("Added vehicle %d (%s)", vehicle.id, vehicle.plate)
        return vehicle

    def update_vehicle(self, vehicle_id: int, **changes: Any) -> Vehicle:
        """Update the given fields (brand, model, plate, year, current_km)."""
        unknown = set(changes) - VEHICLE_FIELDS
        if unknown:
            raise InvalidInputError(f"Unknown vehicle fields: {', '.join(sorted(unknown))}")

        with self._lock:
            data = self._read()
            raw = self._find(data["vehicles"], vehicle_id, "Vehicle")
            vehicle = Vehicle.from_dict(raw)
            for name, value in changes.items():
                setattr(vehicle, name, value)
            vehicle.plate = vehicle.plate.upper()
            self._check_plate(data, vehicle.plate, vehicle_id)

            raw.clear()
            raw.update(_clean(vehicle.to_dict()))
            self._write(data)
        return vehicle

    def update_odometer(self, vehicle_id: int, km: int) -> Vehicle:
        return self.update_vehicle(vehicle_id, current_km=km)

    def delete_vehicle(self, vehicle_id: int) -> int:
        """
        Delete a vehicle together with its maintenance records.

        Returns the number of records removed with it.
        """
        with self._lock:
            data = self._read()
            self._find(data["vehicles"], vehicle_id, "Vehicle")
            data["vehicles"] = [v for v in data["vehicles"] if v["id"] != vehicle_id]
            kept = [m for m in data["maintenances"] if m["vehicleId"] != vehicle_id]
            removed = len(data["maintenances"]) - len(kept)
            data["maintenances"] = kept
            self._write(data)
        logger.info("Deleted vehicle %d and %d maintenance records", vehicle_id, removed)
        return removed

    # -------------------------------------------------------------------------
    # Maintenance record writes
    # -------------------------------------------------------------------------

    def add_record(
        self,
        vehicle_id: int,
        type: str,
        due_date: Optional[str] = None,
        due_km: Optional[int] = None,
        notify_days_before: int = DEFAULT_NOTIFY_DAYS,
        notes: Optional[str] = None,
        completed: bool = False,
        now: Optional[datetime] = None,
    ) -> MaintenanceRecord:
        """Create a maintenance record under an existing vehicle."""
        with self._lock:
            data = self._read()
            self._find(data["vehicles"], vehicle_id, "Vehicle")
            record = MaintenanceRecord(
                _next_id(data["maintenances"]),
                vehicle_id,
                type,
                due_date,
                due_km,
                notify_days_before,
                notes,
                created_at=_timestamp(now),
            )
            if completed:
                record.set_completed(True, now)
            data["maintenances"].append(_clean(record.to_dict()))
            self._write(data)
        return record

    def _update_record(self, record_id: int, apply) -> MaintenanceRecord:
        with self._lock:
            data = self._read()
            raw = self._find(data["maintenances"], record_id, "Maintenance")
            record = MaintenanceRecord.from_dict(raw)
            apply(record)
            raw.clear()
            raw.update(_clean(record.to_dict()))
            self._write(data)
        return record

    def update_record(self, record_id: int, **changes: Any) -> MaintenanceRecord:
        """
        Update the given fields (type, due_date, due_km, notify_days_before,
        notes). Passing None clears an optional field. The owning vehicle
        cannot be changed.
        """
        unknown = set(changes) - RECORD_FIELDS
        if unknown:
            raise InvalidInputError(
                f"Unknown maintenance fields: {', '.join(sorted(unknown))}"
            )

        def apply(record: MaintenanceRecord) -> None:
            for name, value in changes.items():
                setattr(record, name, value)
            if record.notify_days_before is None:
                record.notify_days_before = DEFAULT_NOTIFY_DAYS

        return self._update_record(record_id, apply)

    def set_completed(
        self, record_id: int, completed: bool, now: Optional[datetime] = None
    ) -> MaintenanceRecord:
        """Mark a record done (stamping completed_at) or reopen it."""
        return self._update_record(
            record_id, lambda record: record.set_completed(completed, now)
        )

    def delete_record(self, record_id: int) -> None:
        with self._lock:
            data = self._read()
            self._find(data["maintenances"], record_id, "Maintenance")
            data["maintenances"] = [m for m in data["maintenances"] if m["id"] != record_id]
            self._write(data)
