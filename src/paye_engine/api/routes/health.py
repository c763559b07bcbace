"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from pydantic import BaseModel

from paye_engine.api.dependencies import AppSettings, TaxTables

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    engine_version: str
    tax_tables_source: str
    tax_tables: str
    default_tax_year_available: bool


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(settings: AppSettings, provider: TaxTables) -> HealthResponse:
    """Check API health and that tax tables can be read."""
    tables_status = "unhealthy"
    years: list[str] = []
    try:
        years = await provider.available()
        tables_status = "healthy"
    except Exception:
        logger.warning("Tax table source %s is unavailable", settings.tax_tables_source, exc_info=True)

    default_available = settings.default_tax_year in years
    healthy = tables_status == "healthy" and default_available

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        engine_version=settings.engine_version,
        tax_tables_source=settings.tax_tables_source,
        tax_tables=tables_status,
        default_tax_year_available=default_available,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check() -> dict[str, str]:
    """Readiness check for container orchestration."""
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
