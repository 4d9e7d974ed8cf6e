"""
Zone Pricing Engine  (Strategy Pattern)
=======================================

Formula
-------
Price = round(Base_Fare + Distance_km x Per_Km + Duration_min x Per_Min), floored at 0

* The tariff comes from the zone containing the pickup point, or from the
  process-wide default tariff when no zone matches.
* **Rounding** is half-up (``floor(x + 0.5)``).  For the non-negative
  totals produced by valid input this is round-half-away-from-zero, so
  ``1700.5 -> 1701`` and ``1700.49 -> 1700``.

Complexity: O(1) per price calculation (plus the zone lookup).
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .entities import Tariff, ValidationError, Zone, require_numbers
from .geofence import GeoZoneResolver


# ── Strategy hierarchy ────────────────────────────────────────────────


class PricingStrategy(ABC):
    @abstractmethod
    def calculate(
        self, distance_km: float, duration_min: float, tariff: Tariff
    ) -> int: ...


class TariffPricing(PricingStrategy):
    """Base fare plus distance and time components."""

    def calculate(
        self, distance_km: float, duration_min: float, tariff: Tariff
    ) -> int:
        raw = (
            tariff.base_fare
            + tariff.per_km * distance_km
            + tariff.per_min * duration_min
        )
        if not math.isfinite(raw):
            raise ValidationError(
                "price is not a finite number for this distance and duration",
                fields=["distance_km", "duration_min"],
            )
        return max(0, math.floor(raw + 0.5))


# ── Engine facade ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Estimate:
    zone: Optional[Zone]
    tariff: Tariff
    price: int


class PricingEngine:
    """High-level API used by the trip registry and the API layer."""

    def __init__(
        self,
        default_tariff: Tariff,
        resolver: Optional[GeoZoneResolver] = None,
        strategy: Optional[PricingStrategy] = None,
    ):
        self.default_tariff = default_tariff
        self.resolver = resolver or GeoZoneResolver()
        self.strategy = strategy or TariffPricing()

    def tariff_for(self, zone: Optional[Zone]) -> Tariff:
        return zone.tariff if zone is not None else self.default_tariff

    def calculate_price(
        self, distance_km: float, duration_min: float, zone: Optional[Zone] = None
    ) -> int:
        return self.strategy.calculate(distance_km, duration_min, self.tariff_for(zone))

    def estimate(
        self,
        latitude: float,
        longitude: float,
        distance_km: float,
        duration_min: float,
    ) -> Estimate:
        """Resolve the pickup zone and price a ride.  Raises ``ValidationError``."""
        require_numbers(
            pickup_lat=latitude,
            pickup_lng=longitude,
            distance_km=distance_km,
            duration_min=duration_min,
        )
        zone = self.resolver.resolve(latitude, longitude)
        tariff = self.tariff_for(zone)
        return Estimate(
            zone=zone,
            tariff=tariff,
            price=self.strategy.calculate(distance_km, duration_min, tariff),
        )
