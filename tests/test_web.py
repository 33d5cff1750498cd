#!/usr/bin/env python3
"""Tests for the JSON web API."""

import pytest

from autotrack import Settings, YamlStore
from web.app import create_app


@pytest.fixture
def store(tmp_path):
    return YamlStore(tmp_path / "data.yaml")


@pytest.fixture
def client(tmp_path, store):
    types_file = tmp_path / "types.yaml"
    types_file.write_text("types:\n  - Tyres\n  - Oil change\n")
    app = create_app(store=store, settings=Settings(types_file=types_file))
    app.config["TESTING"] = True
    return app.test_client()


def add_panda(client, km=50000):
    response = client.post(
        "/api/vehicles",
        json={"brand": "Fiat", "model": "Panda", "plate": "ab123cd", "currentKm": km},
    )
    assert response.status_code == 201
    return response.get_json()


class TestVehicles:
    """Tests for vehicle endpoints."""

    def test_create_and_list(self, client):
        created = add_panda(client)
        assert created["id"] == 1
        assert created["plate"] == "AB123CD"
        assert created["currentKm"] == 50000

        listed = client.get("/api/vehicles").get_json()
        assert [v["plate"] for v in listed] == ["AB123CD"]

    def test_duplicate_plate_rejected(self, client):
        add_panda(client)
        response = client.post(
            "/api/vehicles", json={"brand": "Fiat", "model": "Uno", "plate": "AB123CD"}
        )
        assert response.status_code == 400
        assert "already exists" in response.get_json()["error"]

    def test_missing_field_rejected(self, client):
        response = client.post("/api/vehicles", json={"brand": "Fiat", "model": "Panda"})
        assert response.status_code == 400
        assert "plate" in response.get_json()["error"]

    def test_non_object_body_rejected(self, client):
        response = client.post("/api/vehicles", data="nope", content_type="text/plain")
        assert response.status_code == 400

    def test_update_can_lower_odometer(self, client):
        add_panda(client)
        response = client.put(
            "/api/vehicles/1",
            json={"brand": "Fiat", "model": "Panda", "plate": "AB123CD", "currentKm": 100},
        )
        assert response.status_code == 200
        assert response.get_json()["currentKm"] == 100

    def test_malformed_data_file(self, client, store):
        store.path.write_text("- a\n- b\n")
        response = client.get("/api/vehicles")
        assert response.status_code == 500
        assert "expected a mapping" in response.get_json()["error"]

    def test_unknown_vehicle(self, client):
        assert client.get("/api/vehicles/9/maintenances").status_code == 404
        assert client.delete("/api/vehicles/9").status_code == 404

    def test_delete_cascades(self, client, store):
        add_panda(client)
        client.post("/api/vehicles/1/maintenances", json={"type": "Tyres", "dueKm": 60000})
        assert client.delete("/api/vehicles/1").status_code == 204
        assert store.snapshot() == ([], [])


class TestMaintenances:
    """Tests for maintenance endpoints."""

    def test_create_with_default_notify_days(self, client):
        add_panda(client)
        response = client.post(
            "/api/vehicles/1/maintenances", json={"type": "Insurance", "dueDate": "2025-06-13"}
        )
        assert response.status_code == 201
        body = response.get_json()
        assert body["vehicleId"] == 1
        assert body["notifyDaysBefore"] == 7
        assert body["completed"] is False

    def test_create_requires_due_criterion(self, client):
        add_panda(client)
        response = client.post("/api/vehicles/1/maintenances", json={"type": "Tyres"})
        assert response.status_code == 400

    def test_create_requires_vehicle_id(self, client):
        response = client.post("/api/maintenances", json={"type": "Tyres", "dueKm": 1000})
        assert response.status_code == 400

    def test_create_for_unknown_vehicle(self, client):
        response = client.post(
            "/api/maintenances", json={"vehicleId": 5, "type": "Tyres", "dueKm": 1000}
        )
        assert response.status_code == 404

    def test_bad_date_rejected(self, client):
        add_panda(client)
        response = client.post(
            "/api/vehicles/1/maintenances", json={"type": "Tyres", "dueDate": "13/06/2025"}
        )
        assert response.status_code == 400

    def test_completed_toggle(self, client):
        add_panda(client)
        client.post("/api/vehicles/1/maintenances", json={"type": "Tyres", "dueKm": 60000})

        done = client.put(
            "/api/maintenances/1", json={"type": "Tyres", "dueKm": 60000, "completed": True}
        ).get_json()
        assert done["completed"] is True
        assert done["completedAt"] is not None

        reopened = client.put(
            "/api/maintenances/1", json={"type": "Tyres", "dueKm": 60000, "completed": False}
        ).get_json()
        assert reopened["completed"] is False
        assert reopened["completedAt"] is None

    def test_delete(self, client, store):
        add_panda(client)
        client.post("/api/vehicles/1/maintenances", json={"type": "Tyres", "dueKm": 60000})
        assert client.delete("/api/maintenances/1").status_code == 204
        assert client.delete("/api/maintenances/1").status_code == 404
        assert store.list_records() == []

    def test_types(self, client):
        assert client.get("/api/maintenance-types").get_json() == {
            "types": ["Oil change", "Tyres"]
        }


class TestAlerts:
    """Tests for alert and summary endpoints."""

    @pytest.fixture
    def populated(self, client):
        add_panda(client)
        for body in (
            {"type": "Insurance", "dueDate": "2025-06-13"},
            {"type": "Oil change", "dueKm": 49800},
            {"type": "Timing belt", "dueKm": 90000},
            {"type": "Tax", "dueDate": "2025-06-01"},
        ):
            client.post("/api/vehicles/1/maintenances", json=body)
        client.put(
            "/api/maintenances/4",
            json={"type": "Tax", "dueDate": "2025-06-01", "completed": True},
        )
        return client

    def test_alerts_ranked(self, populated):
        alerts = populated.get("/api/alerts?date=2025-06-10").get_json()
        assert [a["maintenance"]["type"] for a in alerts] == ["Oil change", "Insurance"]
        assert alerts[0]["status"] == "overdue"
        assert alerts[0]["kmUntil"] == -200
        assert alerts[0]["daysUntil"] is None
        assert alerts[1]["status"] == "imminent"
        assert alerts[1]["daysUntil"] == 3
        assert alerts[1]["vehicle"]["plate"] == "AB123CD"

    def test_alerts_bad_date(self, populated):
        assert populated.get("/api/alerts?date=tomorrow").status_code == 400

    def test_summary(self, populated):
        summary = populated.get("/api/summary?date=2025-06-10").get_json()
        assert summary == {
            "vehicles": 1,
            "maintenances": 4,
            "completed": 1,
            "alerts": 2,
            "overdue": 1,
        }
