"""Main FastAPI application."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adspace_backend.config import settings
from adspace_backend.routers import traffic
from adspace_backend.services.redis_client import redis_cache

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title="Ad Spaces API",
    description="Backend API for the ad space marketplace - location traffic enrichment",
    version="1.0.0",
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url="/redoc" if settings.environment == "development" else None,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.frontend_url,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(traffic.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to the Ad Spaces API",
        "version": "1.0.0",
        "docs": "/docs" if settings.environment == "development" else "disabled",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint. Redis is optional, so it never fails the check."""
    if not settings.place_details_cache_enabled:
        cache_status = "disabled"
    else:
        cache_status = "connected" if await redis_cache.ping() else "unavailable"
    return {"status": "healthy", "cache": cache_status}


def mask_key(key: str) -> str:
    """Mask API key showing only first/last chars."""
    if not key:
        return "NOT_SET"
    if len(key) < 12:
        return f"{key[:4]}...{key[-4:]}"
    return f"{key[:8]}...{key[-8:]}"


@app.get("/debug/config")
async def debug_config():
    """Debug endpoint to check configuration (development only)."""
    if settings.environment != "development":
        return {"error": "Not available in production"}

    return {
        "status": "ok",
        "google_places_configured": bool(settings.google_places_api_key),
        "google_places_api_key": mask_key(settings.google_places_api_key),
        "traffic_search_radius_meters": settings.traffic_search_radius_meters,
        "traffic_batch_limit": settings.traffic_batch_limit,
        "traffic_item_delay_seconds": settings.traffic_item_delay_seconds,
        "place_details_cache_enabled": settings.place_details_cache_enabled,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "adspace_backend.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
