"""Dependencies for FastAPI routes."""
import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from adspace_backend.config import Settings, settings
from adspace_backend.database import get_db
from adspace_backend.enrichment.traffic_loader import TrafficEnrichmentService
from adspace_backend.enrichment.traffic_scoring import ScoringRules
from adspace_backend.services.ad_space_repository import AdSpaceRepository
from adspace_backend.services.google_places import GooglePlacesClient, PlacesConfigurationError
from adspace_backend.services.redis_client import redis_cache

logger = logging.getLogger(__name__)


def build_places_client(config: Settings = settings) -> GooglePlacesClient:
    """
    Create the Google Places client from configuration.

    Raises:
        PlacesConfigurationError: If the API key is not configured
    """
    return GooglePlacesClient(
        api_key=config.google_places_api_key,
        base_url=config.google_places_base_url,
        timeout=config.google_places_timeout,
        cache=redis_cache if config.place_details_cache_enabled else None,
    )


def build_enrichment_service(
    repository: AdSpaceRepository,
    places_client: GooglePlacesClient,
    config: Settings = settings,
) -> TrafficEnrichmentService:
    """Wire the enrichment service with configured pacing and heuristics."""
    return TrafficEnrichmentService(
        locations=repository,
        directory=places_client,
        radius_meters=config.traffic_search_radius_meters,
        item_delay_seconds=config.traffic_item_delay_seconds,
        rules=ScoringRules(visitor_ratio=config.traffic_visitor_ratio),
    )


def get_places_client() -> GooglePlacesClient:
    """Google Places client, or 503 when it is not configured."""
    try:
        return build_places_client()
    except PlacesConfigurationError as exc:
        logger.error(f"Traffic enrichment unavailable: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        )


async def get_ad_space_repository(db: AsyncSession = Depends(get_db)) -> AdSpaceRepository:
    return AdSpaceRepository(db)


async def get_enrichment_service(
    repository: AdSpaceRepository = Depends(get_ad_space_repository),
    places_client: GooglePlacesClient = Depends(get_places_client),
) -> TrafficEnrichmentService:
    return build_enrichment_service(repository, places_client)
