"""
Validation of raw user input into store-ready field dicts.

Input comes from the web API (JSON bodies, camelCase keys) and from the
CLI (which builds the same dicts). Everything that reaches the store or
the evaluator has been through here, so the core can trust its inputs.
"""

from datetime import date
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidInputError
from .maintenance import DEFAULT_NOTIFY_DAYS
from .vehicle import Vehicle


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _text(raw: Mapping[str, Any], key: str, required: bool) -> Optional[str]:
    value = raw.get(key)
    if _blank(value):
        if required:
            raise InvalidInputError(f"{key} is required")
        return None
    return str(value).strip()


def _int(raw: Mapping[str, Any], key: str, minimum: Optional[int] = 0) -> Optional[int]:
    value = raw.get(key)
    if _blank(value):
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"{key} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{key} must be a whole number, got {value!r}")
    if isinstance(value, float) and value != number:
        raise InvalidInputError(f"{key} must be a whole number, got {value!r}")
    if minimum is not None and number < minimum:
        raise InvalidInputError(f"{key} must be at least {minimum}")
    return number


def parse_date(value: Any, key: str = "dueDate") -> Optional[str]:
    """Validate a YYYY-MM-DD date, returning it in ISO form."""
    if _blank(value):
        return None
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(str(value).strip()).isoformat()
    except ValueError:
        raise InvalidInputError(f"{key} must be a date in YYYY-MM-DD format")


def parse_vehicle_input(raw: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Parse vehicle fields: brand, model, plate, year, currentKm.

    With partial=True only the keys present in raw are returned, for edits.
    """
    fields: Dict[str, Any] = {}
    for key in ("brand", "model", "plate"):
        if not partial or key in raw:
            fields[key] = _text(raw, key, required=True)
    if "plate" in fields:
        fields["plate"] = fields["plate"].upper()
    if not partial or "year" in raw:
        fields["year"] = _int(raw, "year", minimum=None)
    if not partial or "currentKm" in raw:
        km = _int(raw, "currentKm")
        fields["current_km"] = km if km is not None else 0
    return fields


def parse_record_input(
    raw: Mapping[str, Any], default_notify_days: int = DEFAULT_NOTIFY_DAYS
) -> Dict[str, Any]:
    """
    Parse maintenance fields: type, dueDate, dueKm, notifyDaysBefore, notes.

    A record needs a due date or a due odometer reading (or both); without
    either it could never become due.
    """
    fields = {
        "type": _text(raw, "type", required=True),
        "due_date": parse_date(raw.get("dueDate")),
        "due_km": _int(raw, "dueKm"),
        "notify_days_before": _int(raw, "notifyDaysBefore"),
        "notes": _text(raw, "notes", required=False),
    }
    if fields["notify_days_before"] is None:
        fields["notify_days_before"] = default_notify_days
    if fields["due_date"] is None and fields["due_km"] is None:
        raise InvalidInputError("Set a due date, a due odometer reading, or both")
    return fields


def parse_completed(raw: Mapping[str, Any]) -> Optional[bool]:
    """The completed flag if present, accepting JSON booleans and 0/1."""
    if "completed" not in raw or raw["completed"] is None:
        return None
    value = raw["completed"]
    if isinstance(value, bool):
        return value
    if value in (0, 1, "0", "1"):
        return bool(int(value))
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise InvalidInputError("completed must be true or false")


def check_odometer_update(vehicle: Vehicle, new_km: int) -> None:
    """Reject a manual odometer update that would go backwards."""
    if new_km < vehicle.current_km:
        raise InvalidInputError(
            f"New reading {new_km:,} km is below the current {vehicle.current_km:,} km; "
            "edit the vehicle to correct it"
        )
