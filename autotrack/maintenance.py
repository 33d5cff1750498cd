"""MaintenanceRecord class for scheduled maintenance items."""

from datetime import date, datetime
from typing import Any, Dict, Optional

DEFAULT_NOTIFY_DAYS = 7


def as_iso(value: Any) -> Optional[str]:
    """Normalize a date/datetime (as parsed from unquoted YAML) to ISO text."""
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class MaintenanceRecord:
    """A maintenance item scheduled for a vehicle, due by date and/or odometer."""

    def __init__(
        self,
        id: int,
        vehicle_id: int,
        type: str,
        due_date: Optional[str] = None,
        due_km: Optional[int] = None,
        notify_days_before: Optional[int] = DEFAULT_NOTIFY_DAYS,
        notes: Optional[str] = None,
        completed: bool = False,
        completed_at: Optional[str] = None,
        created_at: Optional[str] = None,
    ):
        self.id = id
        self._vehicle_id = vehicle_id
        self.type = type
        self.due_date = as_iso(due_date)
        self.due_km = due_km
        if notify_days_before is None:
            notify_days_before = DEFAULT_NOTIFY_DAYS
        self.notify_days_before = notify_days_before
        self.notes = notes
        self.completed = bool(completed)
        self.completed_at = as_iso(completed_at)
        self.created_at = as_iso(created_at)

    @property
    def vehicle_id(self) -> int:
        """Owning vehicle; fixed at creation."""
        return self._vehicle_id

    @property
    def has_due_criteria(self) -> bool:
        return self.due_date is not None or self.due_km is not None

    def set_completed(self, completed: bool, now: Optional[datetime] = None) -> None:
        """
        Toggle completion.

        Completing stamps completed_at (an existing stamp is kept);
        reopening clears it.
        """
        if completed:
            if self.completed_at is None:
                now = now or datetime.now()
                self.completed_at = now.isoformat(timespec="seconds")
            self.completed = True
        else:
            self.completed = False
            self.completed_at = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase dict format."""
        return {
            "id": self.id,
            "vehicleId": self.vehicle_id,
            "type": self.type,
            "dueDate": self.due_date,
            "dueKm": self.due_km,
            "notifyDaysBefore": self.notify_days_before,
            "notes": self.notes,
            "completed": self.completed,
            "completedAt": self.completed_at,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, dct: Dict[str, Any]) -> "MaintenanceRecord":
        return cls(
            dct["id"],
            dct["vehicleId"],
            dct["type"],
            dct.get("dueDate"),
            dct.get("dueKm"),
            dct.get("notifyDaysBefore"),
            dct.get("notes"),
            dct.get("completed") or False,
            dct.get("completedAt"),
            dct.get("createdAt"),
        )
