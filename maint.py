#!/usr/bin/env python3
"""
Unified CLI for vehicle maintenance tracking.

Commands:
  alerts          - Show ranked overdue and upcoming maintenance
  vehicles        - List vehicles with their alert counts
  add-vehicle     - Add a vehicle
  edit-vehicle    - Change vehicle details
  update-km       - Record a new odometer reading
  delete-vehicle  - Delete a vehicle and its maintenances
  maintenances    - List one vehicle's maintenances
  add             - Schedule a maintenance
  complete/reopen - Mark a maintenance done or pending again
  delete          - Delete a maintenance
  types           - List suggested maintenance types
  notify          - Send notifications for due maintenances
"""

import argparse
import logging
import math
import sys
from datetime import date, datetime, time
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional, Tuple

from autotrack import (
    Alert,
    AutoTrackError,
    DueStatus,
    MaintenanceRecord,
    SentLog,
    Settings,
    Status,
    Vehicle,
    YamlStore,
    aggregate,
    load_maintenance_types,
    load_settings,
    sort_vehicle_records,
)
from autotrack.forms import (
    check_odometer_update,
    parse_date,
    parse_record_input,
    parse_vehicle_input,
)
from autotrack.notifier import LogNotifier, run_check, start_scheduler

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[float]) -> str:
    """Format an odometer reading for display."""
    return f"{km:,.0f}" if km is not None else "-"


def format_km_until(km_until: Optional[int]) -> str:
    """Format remaining distance for display (negative once exceeded)."""
    if km_until is None:
        return "-"
    if km_until < 0:
        return f"-{abs(km_until):,}"
    return f"{km_until:,}"


def format_days(days_until: float) -> str:
    """Format remaining days for display (e.g., 'today', '3d', '-2d')."""
    if math.isinf(days_until):
        return "-"
    if days_until == 0:
        return "today"
    return f"{days_until}d"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def status_label(status: Status) -> str:
    return status.value.upper()


def parse_as_of(value: Optional[str]) -> datetime:
    """Reference instant: midnight of --as-of, or the current time."""
    if not value:
        return datetime.now()
    return datetime.combine(date.fromisoformat(parse_date(value, "--as-of")), time())


# =============================================================================
# Alerts command
# =============================================================================


def make_alert_table(alerts: List[Alert]) -> List[List[str]]:
    """Convert ranked alerts to table rows."""
    rows = []
    for alert in alerts:
        rows.append(
            [
                status_label(alert.due.status),
                alert.vehicle.name,
                alert.vehicle.plate,
                alert.record.type,
                alert.record.due_date or "-",
                format_km(alert.record.due_km),
                format_days(alert.due.days_until),
                format_km_until(alert.due.km_until),
                alert.due.reason,
            ]
        )
    return rows


def cmd_alerts(args, settings: Settings):
    """Show overdue and upcoming maintenance across all vehicles."""
    store = YamlStore(args.data_file)
    now = parse_as_of(args.as_of)
    vehicles, records = store.snapshot()
    alerts = aggregate(vehicles, records, now, settings)

    overdue = sum(1 for a in alerts if a.due.status == Status.OVERDUE)
    print(f"Vehicles: {len(vehicles)}")
    print(f"As of: {now.date().isoformat()}")
    print(f"Alerts: {len(alerts)} ({overdue} overdue)")
    print()

    if not alerts:
        print("Nothing due. All maintenances are up to date.")
        return 0

    headers = [
        "Status",
        "Vehicle",
        "Plate",
        "Maintenance",
        "Due (date)",
        "Due (km)",
        "Days left",
        "Km left",
        "Reason",
    ]
    print(tabulate(make_alert_table(alerts), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Vehicle commands
# =============================================================================


def make_vehicle_table(vehicles: List[Vehicle], alerts: List[Alert]) -> List[List[str]]:
    """Convert vehicles to table rows with per-vehicle alert counts."""
    rows = []
    for vehicle in vehicles:
        mine = [a for a in alerts if a.vehicle.id == vehicle.id]
        overdue = sum(1 for a in mine if a.due.status == Status.OVERDUE)
        rows.append(
            [
                str(vehicle.id),
                vehicle.name,
                vehicle.plate,
                str(vehicle.year) if vehicle.year is not None else "-",
                format_km(vehicle.current_km),
                str(overdue),
                str(len(mine) - overdue),
            ]
        )
    return rows


def cmd_vehicles(args, settings: Settings):
    """List vehicles."""
    store = YamlStore(args.data_file)
    vehicles, records = store.snapshot()

    if not vehicles:
        print("No vehicles yet. Add one with add-vehicle.")
        return 0

    alerts = aggregate(vehicles, records, datetime.now(), settings)
    headers = ["ID", "Vehicle", "Plate", "Year", "Odometer (km)", "Overdue", "Due soon"]
    print(tabulate(make_vehicle_table(vehicles, alerts), headers=headers, tablefmt="simple"))
    return 0


def cmd_add_vehicle(args, settings: Settings):
    """Add a vehicle."""
    fields = parse_vehicle_input(
        {
            "brand": args.brand,
            "model": args.model,
            "plate": args.plate,
            "year": args.year,
            "currentKm": args.km,
        }
    )
    vehicle = YamlStore(args.data_file).add_vehicle(**fields)
    print(f"Added vehicle {vehicle.id}: {vehicle.name} ({vehicle.plate})")
    return 0


def cmd_edit_vehicle(args, settings: Settings):
    """Change vehicle details; only the given options are updated."""
    raw = {}
    for key, value in (
        ("brand", args.brand),
        ("model", args.model),
        ("plate", args.plate),
        ("year", args.year),
        ("currentKm", args.km),
    ):
        if value is not None:
            raw[key] = value
    if not raw:
        print("Error: nothing to change")
        return 1

    vehicle = YamlStore(args.data_file).update_vehicle(
        args.vehicle_id, **parse_vehicle_input(raw, partial=True)
    )
    print(f"Updated vehicle {vehicle.id}: {vehicle.name} ({vehicle.plate})")
    return 0


def cmd_update_km(args, settings: Settings):
    """Record a new odometer reading."""
    store = YamlStore(args.data_file)
    vehicle = store.get_vehicle(args.vehicle_id)
    new_km = parse_vehicle_input({"currentKm": args.km}, partial=True)["current_km"]
    check_odometer_update(vehicle, new_km)

    print(f"Vehicle: {vehicle.name} ({vehicle.plate})")
    print(f"Current odometer: {vehicle.current_km:,} km")
    print(f"New odometer:     {new_km:,} km")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.update_odometer(vehicle.id, new_km)
    print("Odometer updated.")
    return 0


def cmd_delete_vehicle(args, settings: Settings):
    """Delete a vehicle and all of its maintenances."""
    store = YamlStore(args.data_file)
    vehicle = store.get_vehicle(args.vehicle_id)
    removed = store.delete_vehicle(vehicle.id)
    print(f"Deleted {vehicle.name} ({vehicle.plate}) and {removed} maintenances.")
    return 0


# =============================================================================
# Maintenance commands
# =============================================================================


def make_record_table(
    pairs: List[Tuple[MaintenanceRecord, Optional[DueStatus]]]
) -> List[List[str]]:
    """Convert (record, status) pairs to table rows; completed have no status."""
    rows = []
    for record, due in pairs:
        if due is None:
            state = "DONE"
            detail = f"completed {record.completed_at or '-'}"
        else:
            state = status_label(due.status) if due.is_due else "OK"
            detail = due.reason or "-"
        rows.append(
            [
                str(record.id),
                record.type,
                record.due_date or "-",
                format_km(record.due_km),
                state,
                detail,
                truncate(record.notes),
            ]
        )
    return rows


def cmd_maintenances(args, settings: Settings):
    """List one vehicle's maintenances, most urgent first."""
    store = YamlStore(args.data_file)
    vehicle = store.get_vehicle(args.vehicle_id)
    records = store.list_records(vehicle.id)
    now = parse_as_of(args.as_of)

    completed = sum(1 for r in records if r.completed)
    print(f"Vehicle: {vehicle.name} ({vehicle.plate})")
    print(f"Current odometer: {vehicle.current_km:,} km")
    print(f"Maintenances: {len(records)} ({completed} completed)")
    print()

    if not records:
        print("No maintenances for this vehicle.")
        return 0

    pairs = sort_vehicle_records(records, vehicle.current_km, now, settings)
    headers = ["ID", "Maintenance", "Due (date)", "Due (km)", "Status", "Detail", "Notes"]
    print(tabulate(make_record_table(pairs), headers=headers, tablefmt="simple"))
    return 0


def cmd_add(args, settings: Settings):
    """Schedule a maintenance for a vehicle."""
    fields = parse_record_input(
        {
            "type": args.type,
            "dueDate": args.due_date,
            "dueKm": args.due_km,
            "notifyDaysBefore": args.notify_days,
            "notes": args.notes,
        },
        default_notify_days=settings.default_notify_days,
    )
    store = YamlStore(args.data_file)
    vehicle = store.get_vehicle(args.vehicle_id)

    print(f"Adding maintenance to {vehicle.name} ({vehicle.plate}):")
    print(f"  Type:      {fields['type']}")
    if fields["due_date"]:
        print(f"  Due date:  {fields['due_date']}")
    if fields["due_km"] is not None:
        print(f"  Due km:    {fields['due_km']:,}")
    print(f"  Notify:    {fields['notify_days_before']} days before")
    if fields["notes"]:
        print(f"  Notes:     {fields['notes']}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    record = store.add_record(vehicle.id, **fields)
    print(f"Maintenance {record.id} saved.")
    return 0


def cmd_complete(args, settings: Settings):
    """Mark a maintenance completed, or pending again with reopen."""
    completed = args.command == "complete"
    record = YamlStore(args.data_file).set_completed(args.record_id, completed)
    if completed:
        print(f"Maintenance {record.id} ({record.type}) completed at {record.completed_at}.")
    else:
        print(f"Maintenance {record.id} ({record.type}) reopened.")
    return 0


def cmd_delete(args, settings: Settings):
    """Delete a maintenance."""
    store = YamlStore(args.data_file)
    record = store.get_record(args.record_id)
    store.delete_record(record.id)
    print(f"Deleted maintenance {record.id} ({record.type}).")
    return 0


def cmd_types(args, settings: Settings):
    """List suggested maintenance types."""
    for name in load_maintenance_types(settings.types_file):
        print(name)
    return 0


# =============================================================================
# Notify command
# =============================================================================


def cmd_notify(args, settings: Settings):
    """Send notifications for due maintenances, once or periodically."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = YamlStore(args.data_file)
    sent_log = SentLog(settings.sent_log_file)
    notifier = LogNotifier()

    def cycle():
        return run_check(store, sent_log, notifier, settings=settings)

    if not args.watch:
        sent = cycle()
        print(f"Notifications sent: {sent}")
        return 0

    try:
        start_scheduler(cycle, args.every or settings.check_minutes, blocking=True)
    except (KeyboardInterrupt, SystemExit):
        print("Stopped.")
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vehicle maintenance tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s add-vehicle Fiat Panda ab123cd --year 2019 --km 48000
  %(prog)s add 1 "Oil change" --due-km 50000 --due-date 2026-03-01
  %(prog)s alerts
  %(prog)s alerts --as-of 2026-02-25
  %(prog)s update-km 1 49200
  %(prog)s maintenances 1
  %(prog)s complete 3
  %(prog)s notify --watch --every 30
""",
    )
    parser.add_argument(
        "--data-file",
        type=Path,
        default=settings.data_file,
        help=f"Path to the data YAML file (default: {settings.data_file})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Alerts subcommand
    alerts_parser = subparsers.add_parser(
        "alerts", help="Show ranked overdue and upcoming maintenance"
    )
    alerts_parser.add_argument(
        "--as-of",
        type=str,
        help="Evaluate as of midnight on this date (YYYY-MM-DD, default: now)",
    )

    # Vehicles subcommand
    subparsers.add_parser("vehicles", help="List vehicles")

    # Add vehicle subcommand
    add_vehicle_parser = subparsers.add_parser("add-vehicle", help="Add a vehicle")
    add_vehicle_parser.add_argument("brand", type=str, help="Brand (e.g., 'Fiat')")
    add_vehicle_parser.add_argument("model", type=str, help="Model (e.g., 'Panda')")
    add_vehicle_parser.add_argument("plate", type=str, help="License plate")
    add_vehicle_parser.add_argument("--year", type=int, help="Model year")
    add_vehicle_parser.add_argument("--km", type=int, help="Current odometer (default: 0)")

    # Edit vehicle subcommand
    edit_vehicle_parser = subparsers.add_parser(
        "edit-vehicle", help="Change vehicle details"
    )
    edit_vehicle_parser.add_argument("vehicle_id", type=int, help="Vehicle ID")
    edit_vehicle_parser.add_argument("--brand", type=str, help="Brand")
    edit_vehicle_parser.add_argument("--model", type=str, help="Model")
    edit_vehicle_parser.add_argument("--plate", type=str, help="License plate")
    edit_vehicle_parser.add_argument("--year", type=int, help="Model year")
    edit_vehicle_parser.add_argument(
        "--km", type=int, help="Odometer reading (may be lowered to fix mistakes)"
    )

    # Update km subcommand
    update_km_parser = subparsers.add_parser(
        "update-km", help="Record a new odometer reading"
    )
    update_km_parser.add_argument("vehicle_id", type=int, help="Vehicle ID")
    update_km_parser.add_argument("km", type=int, help="Current odometer reading")
    update_km_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without saving",
    )

    # Delete vehicle subcommand
    delete_vehicle_parser = subparsers.add_parser(
        "delete-vehicle", help="Delete a vehicle and its maintenances"
    )
    delete_vehicle_parser.add_argument("vehicle_id", type=int, help="Vehicle ID")

    # Maintenances subcommand
    maintenances_parser = subparsers.add_parser(
        "maintenances", help="List one vehicle's maintenances"
    )
    maintenances_parser.add_argument("vehicle_id", type=int, help="Vehicle ID")
    maintenances_parser.add_argument(
        "--as-of",
        type=str,
        help="Evaluate as of midnight on this date (YYYY-MM-DD, default: now)",
    )

    # Add maintenance subcommand
    add_parser = subparsers.add_parser("add", help="Schedule a maintenance")
    add_parser.add_argument("vehicle_id", type=int, help="Vehicle ID")
    add_parser.add_argument("type", type=str, help="Maintenance type (see 'types')")
    add_parser.add_argument("--due-date", type=str, help="Due date (YYYY-MM-DD)")
    add_parser.add_argument("--due-km", type=int, help="Due odometer reading")
    add_parser.add_argument(
        "--notify-days",
        type=int,
        help=f"Days before the due date to start alerting (default: {settings.default_notify_days})",
    )
    add_parser.add_argument("--notes", type=str, help="Notes")
    add_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    # Complete / reopen subcommands
    for name, help_text in (
        ("complete", "Mark a maintenance completed"),
        ("reopen", "Mark a completed maintenance pending again"),
    ):
        toggle_parser = subparsers.add_parser(name, help=help_text)
        toggle_parser.add_argument("record_id", type=int, help="Maintenance ID")

    # Delete maintenance subcommand
    delete_parser = subparsers.add_parser("delete", help="Delete a maintenance")
    delete_parser.add_argument("record_id", type=int, help="Maintenance ID")

    # Types subcommand
    subparsers.add_parser("types", help="List suggested maintenance types")

    # Notify subcommand
    notify_parser = subparsers.add_parser(
        "notify", help="Send notifications for due maintenances"
    )
    notify_parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running and check periodically",
    )
    notify_parser.add_argument(
        "--every",
        type=int,
        help=f"Minutes between checks with --watch (default: {settings.check_minutes})",
    )

    return parser


COMMANDS = {
    "alerts": cmd_alerts,
    "vehicles": cmd_vehicles,
    "add-vehicle": cmd_add_vehicle,
    "edit-vehicle": cmd_edit_vehicle,
    "update-km": cmd_update_km,
    "delete-vehicle": cmd_delete_vehicle,
    "maintenances": cmd_maintenances,
    "add": cmd_add,
    "complete": cmd_complete,
    "reopen": cmd_complete,
    "delete": cmd_delete,
    "types": cmd_types,
    "notify": cmd_notify,
}


def main(argv=None):
    try:
        settings = load_settings()
    except AutoTrackError as e:
        print(f"Error: {e}")
        return 1

    args = build_parser(settings).parse_args(argv)

    # Dispatch to command handler
    try:
        return COMMANDS[args.command](args, settings)
    except AutoTrackError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
