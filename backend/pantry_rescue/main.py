"""
pantry-rescue: FastAPI backend for expiry-aware recipe recommendations.

Run with: uvicorn pantry_rescue.main:app --reload

Architecture:
- Inventory and recipes live in Supabase and are read once per request
- Recommendations come from a flow network between inventory items and
  recipes, solved with Edmonds-Karp and ranked by a layered scorer
- All ranking work is synchronous and local to the request
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pantry_rescue.config import get_settings
from pantry_rescue.api import health
from pantry_rescue.api import recipes as recipes_api

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
# Matcher/network/scorer chatter is controlled separately
logging.getLogger("pantry_rescue.services").setLevel(
    getattr(logging, settings.engine_log_level.upper())
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info(
        f"Starting pantry-rescue backend ({settings.environment}, "
        f"candidate limit {settings.recipe_candidate_limit}, "
        f"path cap {settings.max_augmenting_paths})"
    )
    yield
    logger.info("Shutting down pantry-rescue backend...")


app = FastAPI(
    title="pantry-rescue",
    description="Recipe recommendations that use up expiring food first",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS - allow frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(recipes_api.router)  # /api/recipes


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "pantry-rescue",
        "version": "0.1.0",
        "description": "Expiry-aware recipe recommendation API",
        "docs": "/docs",
        "endpoints": {
            "health": "/health",
            "recipes": "/api/recipes",
            "recommended": "/api/recipes/recommended",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pantry_rescue.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=not settings.is_production,
    )
