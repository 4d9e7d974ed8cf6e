"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Trip``: ``Trip.apply`` enforces the lifecycle
  (searching -> accepted -> started -> completed, searching -> rejected,
  active -> cancelled, any -> no_driver) using ``TRIP_TRANSITIONS``.
- ``Zone`` and ``Tariff`` are immutable configuration values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from .enums import TERMINAL_STATUSES, TRIP_TRANSITIONS, TripAction, TripStatus

# zone_name recorded on trips priced with the process-wide tariff
DEFAULT_TARIFF_LABEL = "default"


# ── Errors ────────────────────────────────────────────────────────────


class TripError(Exception):
    """Base class for every error raised by the trip core."""

    kind = "trip_error"


class ValidationError(TripError):
    """Malformed or missing input. ``fields`` names the offending inputs."""

    kind = "validation_error"

    def __init__(self, message: str, fields: Iterable[str] = ()):
        super().__init__(message)
        self.fields = list(fields)


class NotFoundError(TripError):
    kind = "not_found"


class InvalidTransitionError(TripError):
    """Raised when an action is not legal from the trip's current status."""

    kind = "invalid_transition"


class InvalidActionError(TripError):
    kind = "invalid_action"


def is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def require_numbers(**values: Any) -> None:
    """Raise ``ValidationError`` listing every value that is not a finite number."""
    bad = [name for name, value in values.items() if not is_finite_number(value)]
    if bad:
        raise ValidationError(
            f"expected finite numbers for: {', '.join(bad)}", fields=bad
        )


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: str = ""


@dataclass(frozen=True)
class Tariff:
    base_fare: float
    per_km: float
    per_min: float


@dataclass(frozen=True)
class Zone:
    id: int
    name: str
    # (longitude, latitude) vertices; closing vertex optional
    ring: tuple[tuple[float, float], ...]
    tariff: Tariff


# ── Entities ──────────────────────────────────────────────────────────


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Trip:
    id: int
    customer_name: str
    customer_phone: str
    pickup: Location
    dropoff: Location
    distance_km: float
    duration_min: float
    price: int
    zone_id: Optional[int] = None
    zone_name: str = DEFAULT_TARIFF_LABEL
    status: TripStatus = TripStatus.SEARCHING
    assigned_driver_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def apply(self, action: TripAction, driver_id: Optional[str] = None) -> None:
        """Apply *action* if legal from the current status, else raise.

        Nothing is mutated when an error is raised.
        """
        if action is TripAction.ACCEPT and not driver_id:
            raise ValidationError("accept requires a driver id", fields=["driver_id"])

        allowed, target = TRIP_TRANSITIONS[action]
        if self.status not in allowed:
            raise InvalidTransitionError(
                f"Cannot {action.value} trip {self.id} in status {self.status.value}"
            )

        self.status = target
        if action is TripAction.ACCEPT:
            self.assigned_driver_id = driver_id
        self.updated_at = _utcnow()
