"""
Integration tests for the REST API endpoints.

Runs the real application factory with test zones over httpx
``ASGITransport``; no network or external services are involved.
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from fastcar.api.app import create_app
from fastcar.config import Settings
from fastcar.domain.distance import haversine_km
from tests.conftest import TRIP_PAYLOAD

pytestmark = pytest.mark.asyncio


async def _create(client, **overrides):
    return await client.post("/api/v1/trips", json={**TRIP_PAYLOAD, **overrides})


class TestMeta:
    async def test_health(self, client):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_default_pricing(self, client):
        resp = await client.get("/api/v1/pricing")
        assert resp.json() == {"base_fare": 900, "per_km": 120, "per_min": 20}

    async def test_zones_in_resolution_order(self, client):
        resp = await client.get("/api/v1/zones")
        assert resp.json() == [{"id": 1, "name": "Centre"}, {"id": 2, "name": "Airport"}]


class TestEstimate:
    async def test_scenario_a(self, client):
        resp = await client.post(
            "/api/v1/estimate",
            json={"pickup_lat": 2, "pickup_lng": 2, "distance_km": 5, "duration_min": 10},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["zone"] == {"id": 1, "name": "Centre"}
        assert body["tariff"] == {"base_fare": 900, "per_km": 120, "per_min": 20}
        assert body["price"] == 1700

    async def test_scenario_b(self, client):
        resp = await client.post(
            "/api/v1/estimate",
            json={"pickup_lat": -20, "pickup_lng": -20, "distance_km": 5, "duration_min": 10},
        )
        body = resp.json()
        assert body["zone"] is None
        assert body["price"] == 1700

    async def test_non_numeric_field(self, client):
        resp = await client.post(
            "/api/v1/estimate",
            json={"pickup_lat": "north", "pickup_lng": 2, "distance_km": 5, "duration_min": 10},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"
        assert "pickup_lat" in resp.json()["fields"]

    async def test_missing_pickup(self, client):
        resp = await client.post(
            "/api/v1/estimate", json={"distance_km": 5, "duration_min": 10}
        )
        assert resp.status_code == 400
        assert resp.json()["fields"] == ["pickup_lat", "pickup_lng"]

    async def test_missing_distance_without_dropoff(self, client):
        resp = await client.post(
            "/api/v1/estimate", json={"pickup_lat": 2, "pickup_lng": 2, "duration_min": 10}
        )
        assert resp.status_code == 400
        assert resp.json()["fields"] == ["distance_km"]

    async def test_route_fallback_from_dropoff(self, client):
        resp = await client.post(
            "/api/v1/estimate",
            json={"pickup_lat": 2, "pickup_lng": 2, "dropoff_lat": 2.1, "dropoff_lng": 2},
        )
        assert resp.status_code == 200
        body = resp.json()
        distance = haversine_km(2, 2, 2.1, 2)
        duration = distance / 30 * 60 + 3
        assert body["distance_km"] == pytest.approx(distance)
        assert body["duration_min"] == pytest.approx(duration)
        assert body["price"] == int(900 + 120 * distance + 20 * duration + 0.5)

    async def test_explicit_values_win_over_fallback(self, client):
        resp = await client.post(
            "/api/v1/estimate",
            json={
                "pickup_lat": 2,
                "pickup_lng": 2,
                "dropoff_lat": 9,
                "dropoff_lng": 9,
                "distance_km": 5,
            },
        )
        body = resp.json()
        assert body["distance_km"] == 5
        assert body["duration_min"] > 3

    @pytest.mark.parametrize("value", ["5", True])
    async def test_numbers_are_not_coerced(self, client, value):
        resp = await client.post(
            "/api/v1/estimate",
            json={"pickup_lat": 2, "pickup_lng": 2, "distance_km": value, "duration_min": 10},
        )
        assert resp.status_code == 400
        assert resp.json()["fields"] == ["distance_km"]

    async def test_total_beyond_float_range(self, client):
        resp = await client.post(
            "/api/v1/estimate",
            json={"pickup_lat": 2, "pickup_lng": 2, "distance_km": 1e308, "duration_min": 10},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"
        assert "distance_km" in resp.json()["fields"]


class TestTrips:
    async def test_create_trip(self, client):
        resp = await _create(client)
        assert resp.status_code == 201
        body = resp.json()
        assert body["id"] == 1
        assert body["status"] == "searching"
        assert body["price"] == 1700
        assert body["zone_name"] == "Centre"
        assert body["pickup"] == {"latitude": 2.0, "longitude": 2.0, "address": "Market"}
        assert body["assigned_driver_id"] is None

    async def test_create_outside_zones_uses_default_label(self, client):
        body = (await _create(client, pickup_lat=-20, pickup_lng=-20)).json()
        assert body["zone_id"] is None
        assert body["zone_name"] == "default"

    @pytest.mark.parametrize(
        "field", ["customer_name", "customer_phone", "pickup_lat", "dropoff_lng", "duration_min"]
    )
    async def test_create_missing_field(self, client, field):
        payload = {k: v for k, v in TRIP_PAYLOAD.items() if k != field}
        resp = await client.post("/api/v1/trips", json=payload)
        assert resp.status_code == 400
        assert field in resp.json()["fields"]
        assert (await client.get("/api/v1/trips")).json() == []

    async def test_create_empty_name(self, client):
        resp = await _create(client, customer_name="")
        assert resp.status_code == 400
        assert resp.json()["fields"] == ["customer_name"]

    @pytest.mark.parametrize(
        "field, value",
        [("pickup_lat", "2"), ("duration_min", False), ("customer_name", 42)],
    )
    async def test_create_rejects_wrong_types(self, client, field, value):
        resp = await _create(client, **{field: value})
        assert resp.status_code == 400
        assert resp.json()["fields"] == [field]
        assert (await client.get("/api/v1/trips")).json() == []

    async def test_create_total_beyond_float_range(self, client):
        resp = await _create(client, distance_km=1e308)
        assert resp.status_code == 400
        assert (await client.get("/api/v1/trips")).json() == []

    async def test_list_newest_first(self, client):
        await _create(client, customer_name="First")
        await _create(client, customer_name="Second")
        names = [t["customer_name"] for t in (await client.get("/api/v1/trips")).json()]
        assert names == ["Second", "First"]

    async def test_get_trip(self, client):
        created = (await _create(client)).json()
        resp = await client.get(f"/api/v1/trips/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == created

    async def test_get_missing_trip(self, client):
        resp = await client.get("/api/v1/trips/999")
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"


class TestTransitions:
    async def _patch(self, client, trip_id, **body):
        return await client.patch(f"/api/v1/trips/{trip_id}", json=body)

    async def test_lifecycle(self, client):
        trip = (await _create(client)).json()
        resp = await self._patch(client, trip["id"], action="accept", driver_id=1)
        assert resp.status_code == 200
        assert resp.json()["status"] == "accepted"
        assert resp.json()["assigned_driver_id"] == "1"

        for action, status in [("start", "started"), ("complete", "completed")]:
            resp = await self._patch(client, trip["id"], action=action)
            assert resp.json()["status"] == status
        assert resp.json()["updated_at"] is not None

    async def test_second_accept_conflicts(self, client):
        trip = (await _create(client)).json()
        await self._patch(client, trip["id"], action="accept", driver_id="D1")
        resp = await self._patch(client, trip["id"], action="accept", driver_id="D2")
        assert resp.status_code == 409
        assert resp.json()["error"] == "invalid_transition"

    async def test_complete_before_start_conflicts(self, client):
        trip = (await _create(client)).json()
        await self._patch(client, trip["id"], action="accept", driver_id="D1")
        resp = await self._patch(client, trip["id"], action="complete")
        assert resp.status_code == 409

    async def test_accept_without_driver(self, client):
        trip = (await _create(client)).json()
        resp = await self._patch(client, trip["id"], action="accept")
        assert resp.status_code == 400
        assert resp.json()["fields"] == ["driver_id"]

    async def test_unknown_action(self, client):
        trip = (await _create(client)).json()
        resp = await self._patch(client, trip["id"], action="teleport")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_action"

    async def test_missing_trip(self, client):
        resp = await self._patch(client, 404, action="cancel")
        assert resp.status_code == 404

    async def test_cancel_completed_trip_conflicts(self, client):
        trip = (await _create(client)).json()
        for action in ("accept", "start", "complete"):
            await self._patch(client, trip["id"], action=action, driver_id="D1")
        resp = await self._patch(client, trip["id"], action="cancel")
        assert resp.status_code == 409
        current = (await client.get(f"/api/v1/trips/{trip['id']}")).json()
        assert current["status"] == "completed"

    async def test_operator_no_driver(self, client):
        trip = (await _create(client)).json()
        resp = await self._patch(client, trip["id"], action="no_driver")
        assert resp.json()["status"] == "no_driver"


class TestAppSettings:
    """Settings passed to ``create_app`` govern that app only."""

    @staticmethod
    def _client(config, zones):
        transport = ASGITransport(app=create_app(config, zones=zones))
        return AsyncClient(transport=transport, base_url="http://test")

    async def test_rate_limit_from_config(self, zones):
        async with self._client(Settings(rate_limit="2/minute"), zones) as client:
            codes = [(await client.get("/api/v1/trips")).status_code for _ in range(3)]
            assert codes == [200, 200, 429]
            health = await client.get("/api/v1/health")
            assert health.status_code == 200

    async def test_apps_do_not_share_limits(self, zones):
        config = Settings(rate_limit="1/minute")
        async with self._client(config, zones) as first:
            assert (await first.get("/api/v1/trips")).status_code == 200
        async with self._client(config, zones) as second:
            assert (await second.get("/api/v1/trips")).status_code == 200

    async def test_route_fallback_from_config(self, zones):
        config = Settings(average_speed_kmh=60, fixed_overhead_min=0)
        async with self._client(config, zones) as client:
            resp = await client.post(
                "/api/v1/estimate",
                json={"pickup_lat": 2, "pickup_lng": 2, "dropoff_lat": 2.1, "dropoff_lng": 2},
            )
        body = resp.json()
        assert body["duration_min"] == pytest.approx(body["distance_km"])
