"""
Shared test fixtures.

Everything runs in memory: a registry with two overlapping square zones,
a recording listener joined to the dispatch group, and an httpx client
over ``ASGITransport`` for the REST API.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fastcar.api.app import create_app
from fastcar.config import Settings
from fastcar.domain.entities import Location, Tariff, Zone
from fastcar.domain.enums import Group
from fastcar.domain.geofence import GeoZoneResolver
from fastcar.domain.pricing import PricingEngine
from fastcar.infrastructure.broadcaster import EventBroadcaster
from fastcar.infrastructure.registry import TripRegistry


# ── Zones ─────────────────────────────────────────────────────────────

SCENARIO_TARIFF = Tariff(base_fare=900, per_km=120, per_min=20)

# (lng, lat) rings
CENTRE = Zone(
    id=1,
    name="Centre",
    ring=((0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0), (0.0, 0.0)),
    tariff=SCENARIO_TARIFF,
)
AIRPORT = Zone(
    id=2,
    name="Airport",
    ring=((5.0, 5.0), (5.0, 15.0), (15.0, 15.0), (15.0, 5.0)),
    tariff=Tariff(base_fare=1500, per_km=150, per_min=25),
)

INSIDE_CENTRE = Location(latitude=2.0, longitude=2.0, address="Market")
INSIDE_AIRPORT_ONLY = Location(latitude=12.0, longitude=12.0, address="Terminal")
OUTSIDE = Location(latitude=-20.0, longitude=-20.0)


class RecordingListener:
    """Synchronous listener that keeps every delivered event."""

    def __init__(self, name: str = "recorder"):
        self.name = name
        self.closed = False
        self.events = []

    def __repr__(self) -> str:
        return f"RecordingListener({self.name!r})"

    def deliver(self, event) -> None:
        self.events.append(event)

    @property
    def kinds(self) -> list[str]:
        return [e.kind.value for e in self.events]


@pytest.fixture
def zones() -> list[Zone]:
    return [CENTRE, AIRPORT]


@pytest.fixture
def pricing(zones) -> PricingEngine:
    return PricingEngine(SCENARIO_TARIFF, GeoZoneResolver(zones))


@pytest.fixture
def broadcaster() -> EventBroadcaster:
    return EventBroadcaster()


@pytest.fixture
def listener(broadcaster) -> RecordingListener:
    rec = RecordingListener()
    broadcaster.join(rec, Group.DISPATCH)
    return rec


@pytest.fixture
def registry(pricing, broadcaster, listener) -> TripRegistry:
    return TripRegistry(pricing, broadcaster)


def new_trip(registry: TripRegistry, pickup: Location = INSIDE_CENTRE, **overrides):
    fields = dict(
        customer_name="Aminetou",
        customer_phone="+222 36 00 00 00",
        pickup=pickup,
        dropoff=Location(latitude=3.0, longitude=3.0, address="Port"),
        distance_km=5,
        duration_min=10,
    )
    fields.update(overrides)
    return registry.create(**fields)


# ── API ───────────────────────────────────────────────────────────────


@pytest.fixture
def app(zones):
    config = Settings(base_fare=900, rate_per_km=120, rate_per_min=20)
    return create_app(config, zones=zones)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


TRIP_PAYLOAD = {
    "customer_name": "Aminetou",
    "customer_phone": "+222 36 00 00 00",
    "pickup_lat": 2.0,
    "pickup_lng": 2.0,
    "pickup_address": "Market",
    "dropoff_lat": 3.0,
    "dropoff_lng": 3.0,
    "dropoff_address": "Port",
    "distance_km": 5,
    "duration_min": 10,
}
