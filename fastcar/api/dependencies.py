"""FastAPI dependency injection helpers."""

from fastapi import Request

from fastcar.config import Settings
from fastcar.domain.pricing import PricingEngine
from fastcar.infrastructure.registry import TripRegistry


def get_registry(request: Request) -> TripRegistry:
    return request.app.state.registry


def get_pricing(request: Request) -> PricingEngine:
    return request.app.state.registry.pricing


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
