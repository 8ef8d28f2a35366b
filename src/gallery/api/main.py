"""
Gallery API Main Application

Entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gallery.platform.config import settings
from gallery.platform.logging import configure_logging, get_logger
from gallery.api.routers import plugins, projects, themes, users
from gallery.api.database import get_postgres_adapter
from gallery.api.dependencies import (
    init_resources,
    close_resources,
    get_cache,
)

# Configure logging on import
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("api_starting", app=settings.APP_NAME, env=settings.APP_ENV)
    try:
        await init_resources()
        logger.info("resources_initialized")
    except Exception as e:
        logger.error("resource_init_failed", error=str(e))
        raise

    yield

    logger.info("api_stopping")
    await close_resources()
    logger.info("resources_closed")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Theme and plugin gallery",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(",") if settings.CORS_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# HEALTH ENDPOINTS
# =============================================================================


@app.get("/health/live", tags=["Health"])
async def liveness() -> dict:
    """Liveness check: is the service running?"""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
async def readiness() -> dict:
    """
    Readiness check: is the service ready to accept traffic?

    Only Postgres gates readiness; a degraded cache is reported but the API
    keeps serving from the store.
    """
    postgres_healthy = get_postgres_adapter().health_check()
    cache_healthy = await get_cache().health_check()

    return {
        "status": "ready" if postgres_healthy else "not_ready",
        "version": settings.VERSION,
        "checks": {
            "postgres": "healthy" if postgres_healthy else "unhealthy",
            "redis": "healthy" if cache_healthy else "degraded",
        },
    }


# =============================================================================
# API ROUTERS
# =============================================================================

app.include_router(themes.router, prefix="/api/v1/themes", tags=["Themes"])
app.include_router(plugins.router, prefix="/api/v1/plugins", tags=["Plugins"])
app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(projects.router, prefix="/api/v1/projects", tags=["Projects"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gallery.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
