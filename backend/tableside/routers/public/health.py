"""
Health check endpoints.
Provides basic and detailed health status of the service and its dependencies.
"""

import asyncio

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from shared.config.settings import settings
from shared.infrastructure.events import check_redis_health
from shared.utils.schemas import HealthResponse
from tableside.repositories import Persistence, get_persistence

router = APIRouter(prefix="/api", tags=["health"])

# Seconds each dependency check may take
CHECK_TIMEOUT = 3.0


@router.get("/health", response_model=HealthResponse)
def health_check():
    """
    Basic health check endpoint.
    Returns service status without checking dependencies.
    """
    return {
        "status": "healthy",
        "service": "tableside",
        "environment": settings.environment,
    }


async def _check(name: str, check) -> dict:
    try:
        await asyncio.wait_for(check(), timeout=CHECK_TIMEOUT)
        return {"status": "healthy"}
    except asyncio.TimeoutError:
        return {"status": "unhealthy", "error": f"{name} check timed out"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


@router.get("/health/detailed", response_model=HealthResponse)
async def detailed_health_check(store: Persistence = Depends(get_persistence)):
    """
    Verify connectivity to the persistence backend and, when notifications
    are enabled, Redis. Returns 503 if any dependency is down.
    """
    dependencies = {
        "persistence": {
            "backend": settings.persistence_backend,
            **await _check("persistence", lambda: run_in_threadpool(store.ping)),
        },
    }
    if settings.events_enabled:
        dependencies["redis"] = await _check("redis", check_redis_health)

    all_healthy = all(dep["status"] == "healthy" for dep in dependencies.values())
    checks = {
        "status": "healthy" if all_healthy else "degraded",
        "service": "tableside",
        "environment": settings.environment,
        "dependencies": dependencies,
    }
    if not all_healthy:
        return JSONResponse(content=checks, status_code=503)
    return checks
