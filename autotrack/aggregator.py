"""Alert aggregation and ranking across all vehicles."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .calculations import calc_urgency
from .due_status import DueStatus
from .evaluator import evaluate
from .maintenance import MaintenanceRecord
from .settings import Settings
from .vehicle import Vehicle


@dataclass(frozen=True)
class Alert:
    """A due maintenance record paired with its vehicle."""

    vehicle: Vehicle
    record: MaintenanceRecord
    due: DueStatus

    def to_dict(self) -> dict:
        return {
            "vehicle": self.vehicle.to_dict(),
            "maintenance": self.record.to_dict(),
            **self.due.to_dict(),
        }


def due_sort_key(due: DueStatus, km_per_day: float) -> Tuple[int, float]:
    """Overdue before imminent, then the nearest (in days or km/day) first."""
    return (due.status.rank, calc_urgency(due.days_until, due.km_until, km_per_day))


def aggregate(
    vehicles: Iterable[Vehicle],
    records: Iterable[MaintenanceRecord],
    now: Union[date, datetime],
    settings: Optional[Settings] = None,
) -> List[Alert]:
    """
    Evaluate every pending record against its vehicle and rank the due ones.

    Completed records are skipped here and nowhere else. Records whose
    vehicle is not in `vehicles` are ignored.
    """
    settings = settings or Settings()
    by_vehicle: Dict[int, List[MaintenanceRecord]] = {}
    for record in records:
        by_vehicle.setdefault(record.vehicle_id, []).append(record)

    alerts = []
    for vehicle in vehicles:
        for record in by_vehicle.get(vehicle.id, []):
            if record.completed:
                continue
            due = evaluate(record, vehicle.current_km, now, settings)
            if due.is_due:
                alerts.append(Alert(vehicle, record, due))

    alerts.sort(key=lambda a: due_sort_key(a.due, settings.km_per_day))
    return alerts


def sort_vehicle_records(
    records: Iterable[MaintenanceRecord],
    current_km: Optional[int],
    now: Union[date, datetime],
    settings: Optional[Settings] = None,
) -> List[Tuple[MaintenanceRecord, Optional[DueStatus]]]:
    """
    Order one vehicle's records for a detail listing.

    Pending records come first, most urgent first, each with its DueStatus.
    Completed records follow, most recently completed first, with no status.
    """
    settings = settings or Settings()
    pending = []
    completed = []
    for record in records:
        if record.completed:
            completed.append((record, None))
        else:
            pending.append((record, evaluate(record, current_km, now, settings)))

    pending.sort(key=lambda pair: due_sort_key(pair[1], settings.km_per_day))
    completed.sort(key=lambda pair: pair[0].completed_at or "", reverse=True)
    return pending + completed
