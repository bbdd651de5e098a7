"""
Tests for reservation booking and the double-booking guard.

Covers the availability check, 409 on overlapping bookings, open-ended
rentals, editing a reservation against itself, cancel-then-rebook, the
same-day turnover setting, status changes syncing the vehicle and the
activity trail.
"""

import uuid
from datetime import date

import pytest
from httpx import AsyncClient

from rentdesk.config import settings
from rentdesk.reservations.service import find_conflicts
from tests.factories import CustomerFactory, DriverFactory, VehicleFactory, make_reservation

D = date


# ---------------------------------------------------------------------------
# Availability check
# ---------------------------------------------------------------------------

class TestCheckAvailability:
    """GET /api/reservations/check-availability"""

    async def test_returns_conflicting_reservation(
        self, client: AsyncClient, sample_vehicle: dict, sample_reservation: dict
    ):
        resp = await client.get(
            "/api/reservations/check-availability",
            params={"vehicle_id": sample_vehicle["id"], "start_date": "2024-01-05", "end_date": "2024-01-10"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert [r["id"] for r in body] == [sample_reservation["id"]]

    async def test_adjacent_range_is_free(
        self, client: AsyncClient, sample_vehicle: dict, sample_reservation: dict
    ):
        resp = await client.get(
            "/api/reservations/check-availability",
            params={"vehicle_id": sample_vehicle["id"], "start_date": "2024-01-06", "end_date": "2024-01-10"},
        )
        assert resp.json() == []

    async def test_other_vehicle_is_free(self, client: AsyncClient, sample_reservation: dict):
        other = (await client.post("/api/vehicles", json=VehicleFactory())).json()
        resp = await client.get(
            "/api/reservations/check-availability",
            params={"vehicle_id": other["id"], "start_date": "2024-01-01", "end_date": "2024-01-05"},
        )
        assert resp.json() == []

    async def test_exclude_id_skips_reservation_being_edited(
        self, client: AsyncClient, sample_vehicle: dict, sample_reservation: dict
    ):
        resp = await client.get(
            "/api/reservations/check-availability",
            params={
                "vehicle_id": sample_vehicle["id"],
                "start_date": "2024-01-02",
                "end_date": "2024-01-03",
                "exclude_id": sample_reservation["id"],
            },
        )
        assert resp.json() == []

    async def test_inverted_range_rejected(self, client: AsyncClient, sample_vehicle: dict):
        resp = await client.get(
            "/api/reservations/check-availability",
            params={"vehicle_id": sample_vehicle["id"], "start_date": "2024-01-10", "end_date": "2024-01-01"},
        )
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

class TestCreateReservation:
    """POST /api/reservations"""

    async def test_create_reservation(self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict):
        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2024, 2, 1), D(2024, 2, 3))
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "pending"
        assert body["created_by"] == "tester"

    async def test_overlap_is_rejected(
        self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict, sample_reservation: dict
    ):
        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2024, 1, 5), D(2024, 1, 8))
        assert resp.status_code == 409
        assert "already reserved" in resp.json()["detail"]

    async def test_cancelled_reservation_frees_the_dates(
        self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict, sample_reservation: dict
    ):
        resp = await client.patch(
            f"/api/reservations/{sample_reservation['id']}/status", json={"status": "cancelled"}
        )
        assert resp.status_code == 200

        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2024, 1, 3), D(2024, 1, 4))
        assert resp.status_code == 201

    async def test_open_ended_reservation_blocks_later_dates(
        self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict
    ):
        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2024, 6, 1), None)
        assert resp.status_code == 201

        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2025, 1, 1), D(2025, 1, 2))
        assert resp.status_code == 409

        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2024, 5, 1), D(2024, 5, 31))
        assert resp.status_code == 201

    async def test_end_before_start_rejected(
        self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict
    ):
        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2024, 2, 5), D(2024, 2, 1))
        assert resp.status_code == 422

    async def test_unknown_vehicle(self, client: AsyncClient, sample_customer: dict):
        ghost = {"id": "00000000-0000-0000-0000-000000000000"}
        resp = await make_reservation(client, ghost, sample_customer, D(2024, 2, 1), D(2024, 2, 2))
        assert resp.status_code == 404

    async def test_driver_must_belong_to_customer(
        self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict
    ):
        other = (await client.post("/api/customers", json=CustomerFactory())).json()
        driver = (await client.post(f"/api/customers/{other['id']}/drivers", json=DriverFactory())).json()

        resp = await make_reservation(
            client, sample_vehicle, sample_customer, D(2024, 2, 1), D(2024, 2, 2), driver_id=driver["id"]
        )
        assert resp.status_code == 404


class TestSameDayTurnoverSetting:
    async def test_turnover_day_conflicts_by_default(
        self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict, sample_reservation: dict
    ):
        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2024, 1, 5), D(2024, 1, 9))
        assert resp.status_code == 409

    async def test_turnover_day_allowed_when_configured(
        self,
        client: AsyncClient,
        sample_vehicle: dict,
        sample_customer: dict,
        sample_reservation: dict,
        monkeypatch: pytest.MonkeyPatch,
    ):
        monkeypatch.setattr(settings, "same_day_turnover_is_conflict", False)
        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2024, 1, 5), D(2024, 1, 9))
        assert resp.status_code == 201

        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2024, 1, 4), D(2024, 1, 4))
        assert resp.status_code == 409


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

class TestUpdateReservation:
    """PUT /api/reservations/{id}"""

    async def test_editing_does_not_conflict_with_itself(self, client: AsyncClient, sample_reservation: dict):
        resp = await client.put(
            f"/api/reservations/{sample_reservation['id']}",
            json={"start_date": "2024-01-02", "end_date": "2024-01-06"},
        )
        assert resp.status_code == 200
        assert resp.json()["end_date"] == "2024-01-06"

    async def test_moving_onto_other_booking_conflicts(
        self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict, sample_reservation: dict
    ):
        later = (
            await make_reservation(client, sample_vehicle, sample_customer, D(2024, 1, 10), D(2024, 1, 12))
        ).json()
        resp = await client.put(f"/api/reservations/{later['id']}", json={"start_date": "2024-01-04"})
        assert resp.status_code == 409

    async def test_update_with_end_before_start(self, client: AsyncClient, sample_reservation: dict):
        resp = await client.put(f"/api/reservations/{sample_reservation['id']}", json={"end_date": "2023-12-01"})
        assert resp.status_code == 400

    async def test_null_start_date_rejected(self, client: AsyncClient, sample_reservation: dict):
        resp = await client.put(f"/api/reservations/{sample_reservation['id']}", json={"start_date": None})
        assert resp.status_code == 422

        resp = await client.get(f"/api/reservations/{sample_reservation['id']}")
        assert resp.json()["start_date"] == "2024-01-01"

    async def test_null_end_date_makes_it_open_ended(self, client: AsyncClient, sample_reservation: dict):
        resp = await client.put(f"/api/reservations/{sample_reservation['id']}", json={"end_date": None})
        assert resp.status_code == 200
        assert resp.json()["end_date"] is None


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------

class TestReservationStatus:
    """PATCH /api/reservations/{id}/status"""

    async def test_pickup_and_return_sync_vehicle(
        self, client: AsyncClient, sample_vehicle: dict, sample_reservation: dict
    ):
        url = f"/api/reservations/{sample_reservation['id']}/status"

        assert (await client.patch(url, json={"status": "picked_up"})).status_code == 200
        vehicle = (await client.get(f"/api/vehicles/{sample_vehicle['id']}")).json()
        assert vehicle["availability_status"] == "rented"

        assert (await client.patch(url, json={"status": "returned"})).status_code == 200
        vehicle = (await client.get(f"/api/vehicles/{sample_vehicle['id']}")).json()
        assert vehicle["availability_status"] == "available"

    async def test_reviving_cancelled_booking_rechecks_conflicts(
        self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict, sample_reservation: dict
    ):
        url = f"/api/reservations/{sample_reservation['id']}/status"
        await client.patch(url, json={"status": "cancelled"})
        resp = await make_reservation(client, sample_vehicle, sample_customer, D(2024, 1, 2), D(2024, 1, 3))
        assert resp.status_code == 201

        resp = await client.patch(url, json={"status": "booked"})
        assert resp.status_code == 409

    async def test_status_change_is_recorded(self, client: AsyncClient, sample_reservation: dict):
        await client.patch(f"/api/reservations/{sample_reservation['id']}/status", json={"status": "confirmed"})

        resp = await client.get(f"/api/reservations/{sample_reservation['id']}/activity")
        assert resp.status_code == 200
        actions = [entry["action"] for entry in resp.json()]
        assert sorted(actions) == ["create", "status_change"]
        assert all(entry["actor"] == "tester" for entry in resp.json())


# ---------------------------------------------------------------------------
# Listing and service layer
# ---------------------------------------------------------------------------

class TestListReservations:
    """GET /api/reservations and /available-vehicles"""

    async def test_window_filter(self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict):
        await make_reservation(client, sample_vehicle, sample_customer, D(2024, 1, 1), D(2024, 1, 5))
        await make_reservation(client, sample_vehicle, sample_customer, D(2024, 3, 1), D(2024, 3, 5))

        resp = await client.get("/api/reservations", params={"start_date": "2024-01-04", "end_date": "2024-02-01"})
        body = resp.json()
        assert body["total"] == 1
        assert body["items"][0]["start_date"] == "2024-01-01"

    async def test_available_vehicles_excludes_booked(
        self, client: AsyncClient, sample_vehicle: dict, sample_reservation: dict
    ):
        free = (await client.post("/api/vehicles", json=VehicleFactory())).json()
        await client.post("/api/vehicles", json=VehicleFactory(availability_status="maintenance"))

        resp = await client.get(
            "/api/reservations/available-vehicles", params={"start_date": "2024-01-03", "end_date": "2024-01-04"}
        )
        assert [v["id"] for v in resp.json()] == [free["id"]]

    async def test_upcoming_skips_past_and_cancelled(
        self, client: AsyncClient, sample_vehicle: dict, sample_customer: dict, sample_reservation: dict
    ):
        later = (await make_reservation(client, sample_vehicle, sample_customer, D(2024, 3, 1), D(2024, 3, 5))).json()
        soon = (await make_reservation(client, sample_vehicle, sample_customer, D(2024, 2, 1), D(2024, 2, 5))).json()
        cancelled = (
            await make_reservation(client, sample_vehicle, sample_customer, D(2024, 1, 20), D(2024, 1, 22))
        ).json()
        await client.patch(f"/api/reservations/{cancelled['id']}/status", json={"status": "cancelled"})

        resp = await client.get("/api/reservations/upcoming", params={"as_of": "2024-01-10"})
        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()] == [soon["id"], later["id"]]

        resp = await client.get("/api/reservations/upcoming", params={"as_of": "2024-01-10", "limit": 1})
        assert [r["id"] for r in resp.json()] == [soon["id"]]

    async def test_upcoming_includes_start_today(self, client: AsyncClient, sample_reservation: dict):
        resp = await client.get("/api/reservations/upcoming", params={"as_of": "2024-01-01"})
        assert [r["id"] for r in resp.json()] == [sample_reservation["id"]]


class TestFindConflicts:
    async def test_policy_override(self, db_session, sample_vehicle: dict, sample_reservation: dict):
        vehicle_id = uuid.UUID(sample_vehicle["id"])
        inclusive = await find_conflicts(db_session, vehicle_id, D(2024, 1, 5), D(2024, 1, 7), inclusive=True)
        turnover = await find_conflicts(db_session, vehicle_id, D(2024, 1, 5), D(2024, 1, 7), inclusive=False)
        assert len(inclusive) == 1
        assert turnover == []
