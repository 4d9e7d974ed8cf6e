"""
Trip endpoints
==============

POST  /api/v1/estimate        -- price a ride without creating it
GET   /api/v1/trips           -- all trips, newest first
POST  /api/v1/trips           -- create a trip (status ``searching``)
GET   /api/v1/trips/{trip_id} -- a single trip
PATCH /api/v1/trips/{trip_id} -- apply a lifecycle action

Domain errors propagate to the exception handlers registered in
``fastcar.api.app``.
"""

from fastapi import APIRouter, Depends

from fastcar.api.dependencies import get_pricing, get_registry, get_settings
from fastcar.api.schemas import (
    ErrorResponse,
    EstimateRequest,
    EstimateResponse,
    TariffResponse,
    TripCreateRequest,
    TripResponse,
    TripTransitionRequest,
    ZoneSummary,
)
from fastcar.config import Settings
from fastcar.domain.distance import estimate_route
from fastcar.domain.entities import Location, ValidationError, require_numbers
from fastcar.domain.pricing import PricingEngine
from fastcar.infrastructure.registry import TripRegistry

router = APIRouter(tags=["trips"])

_errors = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _location(lat, lng, address) -> Location | None:
    if lat is None and lng is None:
        return None
    return Location(latitude=lat, longitude=lng, address=(address or "").strip())


@router.post(
    "/estimate",
    response_model=EstimateResponse,
    summary="Estimate the price of a ride",
    responses={400: _errors[400]},
)
async def estimate_price(
    body: EstimateRequest,
    pricing: PricingEngine = Depends(get_pricing),
    config: Settings = Depends(get_settings),
):
    distance_km, duration_min = body.distance_km, body.duration_min
    if distance_km is None or duration_min is None:
        if body.dropoff_lat is None or body.dropoff_lng is None:
            missing = [
                name
                for name in ("distance_km", "duration_min")
                if getattr(body, name) is None
            ]
            raise ValidationError(
                f"expected finite numbers for: {', '.join(missing)}", fields=missing
            )
        require_numbers(
            pickup_lat=body.pickup_lat,
            pickup_lng=body.pickup_lng,
            dropoff_lat=body.dropoff_lat,
            dropoff_lng=body.dropoff_lng,
        )
        route_km, route_min = estimate_route(
            Location(body.pickup_lat, body.pickup_lng),
            Location(body.dropoff_lat, body.dropoff_lng),
            config.average_speed_kmh,
            config.fixed_overhead_min,
        )
        distance_km = route_km if distance_km is None else distance_km
        duration_min = route_min if duration_min is None else duration_min

    estimate = pricing.estimate(
        body.pickup_lat, body.pickup_lng, distance_km, duration_min
    )
    return EstimateResponse(
        zone=ZoneSummary.model_validate(estimate.zone) if estimate.zone else None,
        tariff=TariffResponse.model_validate(estimate.tariff),
        price=estimate.price,
        distance_km=distance_km,
        duration_min=duration_min,
    )


@router.get(
    "/trips",
    response_model=list[TripResponse],
    summary="List every trip, newest first",
)
async def list_trips(
    registry: TripRegistry = Depends(get_registry),
):
    return registry.list()


@router.post(
    "/trips",
    status_code=201,
    response_model=TripResponse,
    summary="Create a trip",
    responses={400: _errors[400]},
)
async def create_trip(
    body: TripCreateRequest,
    registry: TripRegistry = Depends(get_registry),
):
    return registry.create(
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        pickup=_location(body.pickup_lat, body.pickup_lng, body.pickup_address),
        dropoff=_location(body.dropoff_lat, body.dropoff_lng, body.dropoff_address),
        distance_km=body.distance_km,
        duration_min=body.duration_min,
    )


@router.get(
    "/trips/{trip_id}",
    response_model=TripResponse,
    summary="Get a trip",
    responses={404: _errors[404]},
)
async def get_trip(
    trip_id: int,
    registry: TripRegistry = Depends(get_registry),
):
    return registry.get(trip_id)


@router.patch(
    "/trips/{trip_id}",
    response_model=TripResponse,
    summary="Apply a lifecycle action to a trip",
    description=(
        "Actions: accept (requires driver_id), reject, start, complete, "
        "cancel, no_driver.  The updated trip is pushed to every "
        "websocket listener."
    ),
    responses=_errors,
)
async def transition_trip(
    trip_id: int,
    body: TripTransitionRequest,
    registry: TripRegistry = Depends(get_registry),
):
    return registry.transition(trip_id, body.action, body.driver_id)
