"""
Configuration / observability endpoints
=======================================

GET /api/v1/health  -- simple health check
GET /api/v1/pricing -- default tariff used outside every zone
GET /api/v1/zones   -- configured zones in resolution order
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from fastcar.api.dependencies import get_pricing
from fastcar.api.schemas import HealthResponse, TariffResponse, ZoneSummary
from fastcar.domain.pricing import PricingEngine

router = APIRouter(tags=["meta"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse(time=datetime.now(timezone.utc))


@router.get("/pricing", response_model=TariffResponse, summary="Default tariff")
async def default_pricing(
    pricing: PricingEngine = Depends(get_pricing),
):
    return TariffResponse.model_validate(pricing.default_tariff)


@router.get(
    "/zones",
    response_model=list[ZoneSummary],
    summary="Pricing zones, first match wins",
)
async def list_zones(
    pricing: PricingEngine = Depends(get_pricing),
):
    return [ZoneSummary.model_validate(z) for z in pricing.resolver.zones]
