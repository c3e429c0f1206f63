from fastapi import APIRouter
from structlog import get_logger

from routemap.config import settings
from routemap.services import cache

logger = get_logger()
router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/health/ready")
async def readiness():
    details = {"status": "ok", "checks": {}}

    if not settings.CACHE_ENABLED:
        details["checks"]["redis"] = "disabled"
        return details

    try:
        pong = await cache.ping()
        details["checks"]["redis"] = "ok" if pong else "fail"
    except Exception as e:
        logger.warning("health redis fail", error=str(e))
        details["checks"]["redis"] = f"fail: {str(e)}"
        details["status"] = "degraded"

    return details
