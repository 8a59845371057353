"""Health check endpoints — Service and catalog store health."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from leap import __version__
from leap.adapters.base.store import StoreHealth
from leap.api.deps import get_engine
from leap.core.engine import LeapEngine

router = APIRouter()


class HealthResponse(BaseModel):
    """System health check response."""

    status: str = Field(description="Health status (e.g. 'healthy')")
    version: str = Field(description="Leap server version")
    service: str = Field(description="Service name ('leap')")
    store: str = Field(description="Name of the catalog store backend")
    fallback_heuristics: list[str] = Field(description="Fallback heuristics, in evaluation order")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="System Health Check",
    description="Returns overall system health, server version, and the configured store and fallback chain.",
)
async def health_check(
    engine: LeapEngine = Depends(get_engine),
) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        service="leap",
        store=engine.store.name,
        fallback_heuristics=engine.fallback.heuristics,
    )


@router.get(
    "/health/store",
    response_model=StoreHealth,
    summary="Catalog Store Health Check",
    description="Query the catalog store and report latency, item count, and diagnostic message.",
)
async def store_health(
    engine: LeapEngine = Depends(get_engine),
) -> StoreHealth:
    return await engine.store.health_check()
