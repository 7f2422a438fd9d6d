"""Health check endpoints — static status, liveness and dependency readiness."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from knowledge_agent.config import get_settings
from knowledge_agent.infrastructure.dependencies import get_readiness_checker
from knowledge_agent.infrastructure.health import ReadinessChecker

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    """Returns the current application health status."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "storage_backend": settings.storage_backend,
    }


@router.get("/health/live")
async def liveness() -> dict:
    """Liveness probe: the process is up and serving requests."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
async def readiness(
    checker: ReadinessChecker = Depends(get_readiness_checker),
) -> JSONResponse:
    """Readiness probe: 503 unless the database and the chat model are reachable."""
    components = await checker.check()
    ready = all(c.healthy for c in components)
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if ready else "error",
            "details": {c.name: c.to_dict() for c in components},
        },
    )
