"""Health check endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from pantry_rescue.config import get_settings
from pantry_rescue.services.supabase import ping_recipe_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check with the active engine limits."""
    settings = get_settings()
    return {
        "status": "healthy",
        "environment": settings.environment,
        "engine": {
            "recipe_candidate_limit": settings.recipe_candidate_limit,
            "max_augmenting_paths": settings.max_augmenting_paths,
        },
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/health/ready")
async def readiness_check():
    """
    Readiness check.

    Recommendations need the recipe store, so this returns 503 when
    a trivial recipes query fails.
    """
    try:
        latency_ms = await ping_recipe_store()
    except Exception as e:
        logger.warning(f"Recipe store unreachable: {e}")
        return JSONResponse(status_code=503, content={"ready": False, "error": str(e)})

    return {"ready": True, "recipe_store_latency_ms": round(latency_ms, 1)}


@router.get("/health/live")
async def liveness_check():
    """Returns 200 if the process is alive."""
    return {"live": True, "timestamp": datetime.utcnow().isoformat()}
