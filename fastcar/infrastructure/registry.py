"""
In-memory trip registry.

Owns every trip record for the lifetime of the process and is the only
place trips are created or change status.  Callers receive copies; the
stored records are never handed out.

Concurrency safety
------------------
* One ``threading.Lock`` guards the id counter, the trip collection and
  each status read-check-write, so ids are unique and allocated without
  gaps, and two concurrent ``accept`` calls on a searching trip yield
  exactly one success.
* Events are handed to the broadcaster while the lock is held.  Listener
  delivery is non-blocking, and this keeps each listener's event order
  equal to the order in which mutations happened.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
import threading
from typing import Any, Optional

from fastcar.domain.entities import (
    DEFAULT_TARIFF_LABEL,
    InvalidActionError,
    Location,
    NotFoundError,
    Trip,
    ValidationError,
    is_finite_number,
)
from fastcar.domain.enums import TripAction
from fastcar.domain.pricing import PricingEngine

from .broadcaster import EventBroadcaster

logger = logging.getLogger(__name__)


def _snapshot(trip: Trip) -> Trip:
    return dataclasses.replace(trip)


class TripRegistry:
    def __init__(
        self,
        pricing: PricingEngine,
        broadcaster: Optional[EventBroadcaster] = None,
    ):
        self.pricing = pricing
        self.broadcaster = broadcaster or EventBroadcaster()
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._trips: dict[int, Trip] = {}  # insertion order == creation order

    def __len__(self) -> int:
        with self._lock:
            return len(self._trips)

    # ── Commands ──────────────────────────────────────────────────────

    def create(
        self,
        customer_name: Any,
        customer_phone: Any,
        pickup: Any,
        dropoff: Any,
        distance_km: Any,
        duration_min: Any,
    ) -> Trip:
        """Validate, price and store a new trip in ``searching``."""
        _validate_new_trip(
            customer_name, customer_phone, pickup, dropoff, distance_km, duration_min
        )
        zone = self.pricing.resolver.resolve(pickup.latitude, pickup.longitude)
        price = self.pricing.calculate_price(distance_km, duration_min, zone)

        with self._lock:
            trip = Trip(
                id=next(self._ids),
                customer_name=customer_name.strip(),
                customer_phone=customer_phone.strip(),
                pickup=pickup,
                dropoff=dropoff,
                distance_km=float(distance_km),
                duration_min=float(duration_min),
                price=price,
                zone_id=zone.id if zone else None,
                zone_name=zone.name if zone else DEFAULT_TARIFF_LABEL,
            )
            self._trips[trip.id] = trip
            result = _snapshot(trip)
            self.broadcaster.publish_created(result)

        logger.info(
            "Trip %d created: price=%d zone=%s", result.id, result.price, result.zone_name
        )
        return result

    def transition(
        self, trip_id: int, action: Any, driver_id: Optional[Any] = None
    ) -> Trip:
        """Apply a lifecycle *action* to a trip and publish the update."""
        try:
            action = TripAction(action)
        except ValueError:
            raise InvalidActionError(f"Unknown action {action!r}") from None
        if driver_id is not None:
            driver_id = str(driver_id).strip()

        with self._lock:
            trip = self._trips.get(trip_id)
            if trip is None:
                raise NotFoundError(f"Trip {trip_id} not found")
            previous = trip.status
            trip.apply(action, driver_id)
            result = _snapshot(trip)
            self.broadcaster.publish_updated(result)

        logger.info(
            "Trip %d %s: %s -> %s",
            trip_id,
            action.value,
            previous.value,
            result.status.value,
        )
        return result

    def publish_snapshot(self) -> None:
        """Push the full trip list, newest first, to every listener."""
        with self._lock:
            self.broadcaster.publish_snapshot(self._ordered())

    # ── Queries ───────────────────────────────────────────────────────

    def get(self, trip_id: int) -> Trip:
        with self._lock:
            trip = self._trips.get(trip_id)
            if trip is None:
                raise NotFoundError(f"Trip {trip_id} not found")
            return _snapshot(trip)

    def list(self) -> list[Trip]:
        """All trips, most recently created first."""
        with self._lock:
            return self._ordered()

    def _ordered(self) -> list[Trip]:
        return [_snapshot(t) for t in reversed(self._trips.values())]


def _validate_new_trip(
    customer_name, customer_phone, pickup, dropoff, distance_km, duration_min
) -> None:
    bad: list[str] = []
    for name, value in (
        ("customer_name", customer_name),
        ("customer_phone", customer_phone),
    ):
        if not isinstance(value, str) or not value.strip():
            bad.append(name)
    for name, point in (("pickup", pickup), ("dropoff", dropoff)):
        if not isinstance(point, Location):
            bad.append(name)
            continue
        if not is_finite_number(point.latitude):
            bad.append(f"{name}_lat")
        if not is_finite_number(point.longitude):
            bad.append(f"{name}_lng")
    for name, value in (("distance_km", distance_km), ("duration_min", duration_min)):
        if not is_finite_number(value) or value < 0:
            bad.append(name)
    if bad:
        raise ValidationError(f"Missing or invalid fields: {', '.join(bad)}", fields=bad)
