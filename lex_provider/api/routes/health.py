from fastapi import APIRouter

from lex_provider.core.config import settings

router = APIRouter()


@router.get("/ready", tags=["health"])
def readiness_probe() -> dict[str, str]:
    """Readiness probe; reports the region lifecycle calls are sent to."""
    return {"status": "ok", "region": settings.aws_region or "-"}


@router.get("/live", tags=["health"])
def liveness_probe() -> dict[str, str]:
    """Simple liveness check."""
    return {"status": "alive"}
