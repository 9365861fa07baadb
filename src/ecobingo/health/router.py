"""Liveness, readiness and version endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ecobingo.config import get_settings
from ecobingo.database import get_session
from ecobingo.redis_client import ping_redis

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    request: Request,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Database and Redis connectivity plus event pipeline counters."""
    checks: dict[str, object] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as exc:  # noqa: BLE001
        checks["database"] = f"error: {exc}"

    if get_settings().event_backend == "redis":
        checks["redis"] = await ping_redis()

    broadcaster = request.app.state.broadcaster
    all_ok = all(v == "ok" for v in checks.values())
    return {
        "status": "ready" if all_ok else "degraded",
        "checks": checks,
        "events": {
            "pending": broadcaster.pending,
            "published": broadcaster.published,
            "dropped": broadcaster.dropped,
        },
        "websocket": request.app.state.connections.get_stats(),
    }


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
