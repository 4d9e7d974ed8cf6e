"""Centralised application settings loaded from environment / .env file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, TypeAdapter, field_validator
from pydantic_settings import BaseSettings

from fastcar.domain.entities import Tariff, Zone

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Default tariff (used outside every zone)
    base_fare: float = 900.0
    rate_per_km: float = 120.0
    rate_per_min: float = 20.0

    # Zones: JSON list of ZoneConfig; built-in demo zone when unset
    zones_file: Optional[str] = None

    # Route fallback for estimates without distance / duration
    average_speed_kmh: float = 30.0
    fixed_overhead_min: float = 3.0

    # Realtime
    listener_queue_size: int = 256

    # API
    rate_limit: str = "100/minute"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def default_tariff(self) -> Tariff:
        return Tariff(self.base_fare, self.rate_per_km, self.rate_per_min)


settings = Settings()


# ── Zone configuration ────────────────────────────────────────────────


class TariffConfig(BaseModel):
    base_fare: float = Field(..., ge=0)
    per_km: float = Field(..., ge=0)
    per_min: float = Field(..., ge=0)


class ZoneConfig(BaseModel):
    id: int
    name: str = Field(..., min_length=1)
    # [longitude, latitude] pairs
    ring: list[tuple[float, float]]
    tariff: TariffConfig

    @field_validator("ring")
    @classmethod
    def _ring_has_area(cls, ring: list[tuple[float, float]]):
        if len(set(ring)) < 3:
            raise ValueError("polygon ring needs at least three distinct vertices")
        return ring

    def to_zone(self) -> Zone:
        return Zone(
            id=self.id,
            name=self.name,
            ring=tuple(self.ring),
            tariff=Tariff(
                self.tariff.base_fare, self.tariff.per_km, self.tariff.per_min
            ),
        )


_zone_list = TypeAdapter(list[ZoneConfig])

# Demonstration rectangle around Nouakchott, priced like the default tariff.
DEMO_ZONES: list[dict] = [
    {
        "id": 1,
        "name": "Nouakchott",
        "ring": [
            [-15.999, 18.020],
            [-15.999, 18.200],
            [-15.700, 18.200],
            [-15.700, 18.020],
            [-15.999, 18.020],
        ],
        "tariff": {"base_fare": 900, "per_km": 120, "per_min": 20},
    }
]


def parse_zones(raw: list[dict]) -> list[Zone]:
    """Validate raw zone dicts and return them as ``Zone`` objects.

    The returned order is the declaration order, which is also the
    resolution order: the first zone containing a point wins.
    """
    configs = _zone_list.validate_python(raw)
    seen: set[int] = set()
    for cfg in configs:
        if cfg.id in seen:
            raise ValueError(f"duplicate zone id {cfg.id}")
        seen.add(cfg.id)
    return [cfg.to_zone() for cfg in configs]


def load_zones(path: Optional[str] = None) -> list[Zone]:
    """Load zones from *path* (JSON) or fall back to the demo zone."""
    if path is None:
        zones = parse_zones(DEMO_ZONES)
    else:
        zones = parse_zones(json.loads(Path(path).read_text(encoding="utf-8")))
    logger.info(
        "Loaded %d pricing zone(s): %s",
        len(zones),
        ", ".join(z.name for z in zones) or "-",
    )
    return zones
