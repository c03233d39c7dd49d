"""Health check endpoints.

Provides health status for container probes and monitoring.
"""

from fastapi import APIRouter

from category_engine import __version__
from category_engine.config import settings
from category_engine.infra.database import verify_db_connection
from category_engine.infra.logging import get_logger
from category_engine.schemas.common import HealthResponse
from category_engine.services.cache import RedisCategoryCache, get_category_cache

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Basic health check.

    Returns 200 if the service is running.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        checks={},
    )


@router.get("/health/ready", response_model=HealthResponse)
async def health_ready() -> HealthResponse:
    """Readiness check.

    Verifies the database answers and, when configured, that Redis does.
    """
    checks: dict[str, bool] = {"database": await verify_db_connection()}

    cache = get_category_cache()
    if isinstance(cache, RedisCategoryCache):
        checks["cache"] = await cache.is_available()

    all_healthy = all(checks.values())
    if not all_healthy:
        logger.warning("Readiness check degraded", checks=checks)

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        version=__version__,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        checks={"alive": True},
    )
