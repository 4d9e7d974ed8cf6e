"""
FastAPI application factory.

* Builds the zone resolver, pricing engine, broadcaster and trip registry
  once per app (``app.state.registry``); zones are static for the
  lifetime of the process.
* Registers trip, meta and realtime routes under ``/api/v1``.
* Maps domain errors to JSON responses and applies rate limiting.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fastcar.api.middleware import install_rate_limiting
from fastcar.api.routes import meta, realtime, trips
from fastcar.config import Settings, load_zones, settings as default_settings
from fastcar.domain.entities import (
    InvalidActionError,
    InvalidTransitionError,
    NotFoundError,
    TripError,
    ValidationError,
    Zone,
)
from fastcar.domain.geofence import GeoZoneResolver
from fastcar.domain.pricing import PricingEngine
from fastcar.infrastructure.broadcaster import EventBroadcaster
from fastcar.infrastructure.registry import TripRegistry

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[TripError], int] = {
    ValidationError: 400,
    InvalidActionError: 400,
    NotFoundError: 404,
    InvalidTransitionError: 409,
}


async def _trip_error_handler(request: Request, exc: TripError) -> JSONResponse:
    status = _STATUS_BY_ERROR.get(type(exc), 400)
    body = {"detail": str(exc), "error": exc.kind}
    if isinstance(exc, ValidationError):
        body["fields"] = exc.fields
    return JSONResponse(status_code=status, content=body)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = [str(err["loc"][-1]) for err in exc.errors() if err.get("loc")]
    return JSONResponse(
        status_code=400,
        content={
            "detail": f"Missing or invalid fields: {', '.join(fields) or 'body'}",
            "error": ValidationError.kind,
            "fields": fields,
        },
    )


def build_registry(
    config: Settings, zones: Optional[Sequence[Zone]] = None
) -> TripRegistry:
    if zones is None:
        zones = load_zones(config.zones_file)
    pricing = PricingEngine(config.default_tariff, GeoZoneResolver(zones))
    return TripRegistry(pricing, EventBroadcaster())


def create_app(
    config: Optional[Settings] = None, zones: Optional[Sequence[Zone]] = None
) -> FastAPI:
    config = config or default_settings
    logging.basicConfig(level=config.log_level.upper())

    app = FastAPI(
        title="Fast Car Dispatch API",
        description=(
            "Coordinates ride requests between a dispatch console and a "
            "pool of drivers: geofenced price estimates, a strict trip "
            "lifecycle, and realtime updates for every connected viewer."
        ),
        version="1.0.0",
    )
    app.state.settings = config
    app.state.registry = build_registry(config, zones)

    # Rate limiter
    install_rate_limiting(app, config, exempt=[meta.health])

    # Domain errors
    app.add_exception_handler(TripError, _trip_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    # Routers
    app.include_router(trips.router, prefix="/api/v1")
    app.include_router(meta.router, prefix="/api/v1")
    app.include_router(realtime.router, prefix="/api/v1")

    return app
