"""Flask web application exposing vehicles, maintenances and alerts as JSON."""

import os
from datetime import date, datetime, time
from typing import Optional

from flask import Flask, jsonify, request

from autotrack import (
    DataFileError,
    DuplicatePlateError,
    InvalidInputError,
    NotFoundError,
    Settings,
    Status,
    YamlStore,
    aggregate,
    load_maintenance_types,
    load_settings,
)
from autotrack.forms import parse_completed, parse_date, parse_record_input, parse_vehicle_input


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise InvalidInputError("Request body must be a JSON object")
    return body


def _reference_time() -> datetime:
    """Midnight of ?date=YYYY-MM-DD when given, otherwise now."""
    value = parse_date(request.args.get("date"), "date")
    if value is None:
        return datetime.now()
    return datetime.combine(date.fromisoformat(value), time())


def create_app(
    store: Optional[YamlStore] = None, settings: Optional[Settings] = None
) -> Flask:
    """Build the app around an explicitly provided store and settings."""
    settings = settings or load_settings()
    store = store or YamlStore(settings.data_file)

    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")
    app.config["STORE"] = store
    app.config["SETTINGS"] = settings

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(NotFoundError)
    def handle_not_found(exc):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(DuplicatePlateError)
    def handle_duplicate_plate(exc):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(InvalidInputError)
    def handle_invalid_input(exc):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(DataFileError)
    def handle_data_file(exc):
        return jsonify({"error": str(exc)}), 500

    # -------------------------------------------------------------------------
    # Vehicles
    # -------------------------------------------------------------------------

    @app.route("/api/vehicles", methods=["GET"])
    def list_vehicles():
        return jsonify([v.to_dict() for v in store.list_vehicles()])

    @app.route("/api/vehicles", methods=["POST"])
    def create_vehicle():
        vehicle = store.add_vehicle(**parse_vehicle_input(_json_body()))
        return jsonify(vehicle.to_dict()), 201

    @app.route("/api/vehicles/<int:vehicle_id>", methods=["PUT"])
    def update_vehicle(vehicle_id: int):
        """Replace vehicle details, including the odometer reading."""
        vehicle = store.update_vehicle(vehicle_id, **parse_vehicle_input(_json_body()))
        return jsonify(vehicle.to_dict())

    @app.route("/api/vehicles/<int:vehicle_id>", methods=["DELETE"])
    def delete_vehicle(vehicle_id: int):
        """Delete a vehicle and its maintenances."""
        store.delete_vehicle(vehicle_id)
        return "", 204

    @app.route("/api/vehicles/<int:vehicle_id>/maintenances", methods=["GET"])
    def list_vehicle_maintenances(vehicle_id: int):
        return jsonify([m.to_dict() for m in store.list_records(vehicle_id)])

    @app.route("/api/vehicles/<int:vehicle_id>/maintenances", methods=["POST"])
    def create_vehicle_maintenance(vehicle_id: int):
        return _create_maintenance(vehicle_id, _json_body())

    # -------------------------------------------------------------------------
    # Maintenances
    # -------------------------------------------------------------------------

    def _create_maintenance(vehicle_id, body: dict):
        fields = parse_record_input(body, settings.default_notify_days)
        record = store.add_record(
            vehicle_id, completed=bool(parse_completed(body)), **fields
        )
        return jsonify(record.to_dict()), 201

    @app.route("/api/maintenances", methods=["GET"])
    def list_maintenances():
        return jsonify([m.to_dict() for m in store.list_records()])

    @app.route("/api/maintenances", methods=["POST"])
    def create_maintenance():
        body = _json_body()
        vehicle_id = body.get("vehicleId")
        if vehicle_id is None:
            raise InvalidInputError("vehicleId is required")
        try:
            vehicle_id = int(vehicle_id)
        except (TypeError, ValueError):
            raise InvalidInputError("vehicleId must be a whole number")
        return _create_maintenance(vehicle_id, body)

    @app.route("/api/maintenances/<int:record_id>", methods=["PUT"])
    def update_maintenance(record_id: int):
        """Replace maintenance details; a `completed` key toggles completion."""
        body = _json_body()
        fields = parse_record_input(body, settings.default_notify_days)
        completed = parse_completed(body)
        record = store.update_record(record_id, **fields)
        if completed is not None:
            record = store.set_completed(record_id, completed)
        return jsonify(record.to_dict())

    @app.route("/api/maintenances/<int:record_id>", methods=["DELETE"])
    def delete_maintenance(record_id: int):
        store.delete_record(record_id)
        return "", 204

    @app.route("/api/maintenance-types", methods=["GET"])
    def maintenance_types():
        return jsonify({"types": load_maintenance_types(settings.types_file)})

    # -------------------------------------------------------------------------
    # Alerts
    # -------------------------------------------------------------------------

    @app.route("/api/alerts", methods=["GET"])
    def alerts():
        """Ranked due maintenances; ?date=YYYY-MM-DD evaluates as of that day."""
        now = _reference_time()
        vehicles, records = store.snapshot()
        return jsonify([a.to_dict() for a in aggregate(vehicles, records, now, settings)])

    @app.route("/api/summary", methods=["GET"])
    def summary():
        now = _reference_time()
        vehicles, records = store.snapshot()
        alerts = aggregate(vehicles, records, now, settings)
        return jsonify(
            {
                "vehicles": len(vehicles),
                "maintenances": len(records),
                "completed": sum(1 for r in records if r.completed),
                "alerts": len(alerts),
                "overdue": sum(1 for a in alerts if a.due.status == Status.OVERDUE),
            }
        )

    return app


if __name__ == "__main__":
    # Run with debug mode for development
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    create_app().run(debug=True, host="0.0.0.0", port=5001)
