"""Pydantic request / response schemas for the REST API and websocket."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

from fastcar.domain.enums import TripStatus


# ── Requests ──────────────────────────────────────────────────────────
# Types are strict: numeric strings and booleans are rejected, not
# coerced.  Presence and finiteness are checked by the domain so that
# every missing field is reported in one ValidationError.


class EstimateRequest(BaseModel):
    model_config = {"strict": True}

    pickup_lat: Optional[float] = None
    pickup_lng: Optional[float] = None
    distance_km: Optional[float] = None
    duration_min: Optional[float] = None
    dropoff_lat: Optional[float] = Field(
        None, description="Used with dropoff_lng when distance/duration are omitted."
    )
    dropoff_lng: Optional[float] = None


class TripCreateRequest(BaseModel):
    model_config = {"strict": True}

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    pickup_lat: Optional[float] = None
    pickup_lng: Optional[float] = None
    pickup_address: Optional[str] = None
    dropoff_lat: Optional[float] = None
    dropoff_lng: Optional[float] = None
    dropoff_address: Optional[str] = None
    distance_km: Optional[float] = None
    duration_min: Optional[float] = None


class TripTransitionRequest(BaseModel):
    action: Optional[str] = None
    driver_id: Optional[Union[int, str]] = None


# ── Responses ─────────────────────────────────────────────────────────


class LocationResponse(BaseModel):
    latitude: float
    longitude: float
    address: str = ""

    model_config = {"from_attributes": True}


class TariffResponse(BaseModel):
    base_fare: float
    per_km: float
    per_min: float

    model_config = {"from_attributes": True}


class ZoneSummary(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class EstimateResponse(BaseModel):
    zone: Optional[ZoneSummary] = None
    tariff: TariffResponse
    price: int
    distance_km: float
    duration_min: float


class TripResponse(BaseModel):
    id: int
    customer_name: str
    customer_phone: str
    pickup: LocationResponse
    dropoff: LocationResponse
    distance_km: float
    duration_min: float
    price: int
    zone_id: Optional[int] = None
    zone_name: str
    status: TripStatus
    assigned_driver_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"
    time: datetime


class ErrorResponse(BaseModel):
    detail: str
    error: str
    fields: list[str] = []
