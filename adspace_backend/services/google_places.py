"""
Google Places client
Nearby search and place details used as footfall signals for ad spaces.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from adspace_backend.services.redis_client import RedisCache

logger = logging.getLogger(__name__)

DETAIL_FIELDS = "name,rating,user_ratings_total,types,opening_hours"
OK_STATUSES = ("OK", "ZERO_RESULTS")


class TrafficEnrichmentError(Exception):
    """Base error for the traffic enrichment pipeline."""


class PlacesConfigurationError(TrafficEnrichmentError):
    """Google Places credentials or endpoint are missing."""


class PlacesAPIError(TrafficEnrichmentError):
    """A Google Places call failed or returned an error status."""

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status


class PlaceReference(BaseModel):
    place_id: str
    name: Optional[str] = None
    types: List[str] = Field(default_factory=list)


class NearbySearchResult(BaseModel):
    status: str
    places: List[PlaceReference] = Field(default_factory=list)


class PlaceDetails(BaseModel):
    place_id: str
    name: Optional[str] = None
    review_count: int = 0
    types: List[str] = Field(default_factory=list)
    opening_hours_present: bool = False


class GooglePlacesClient:
    """Async client for the Google Places web service."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://maps.googleapis.com/maps/api/place",
        timeout: float = 10.0,
        cache: Optional[RedisCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise PlacesConfigurationError("Google Maps API key not configured")
        if not base_url:
            raise PlacesConfigurationError("Google Places base URL not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache
        self._transport = transport

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/{endpoint}/json"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params={**params, "key": self.api_key})
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise PlacesAPIError(
                f"{endpoint} request failed: {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise PlacesAPIError(f"{endpoint} request failed: {e}") from e
        except ValueError as e:
            raise PlacesAPIError(f"{endpoint} returned invalid JSON") from e

    async def nearby_search(
        self, latitude: float, longitude: float, radius_meters: int
    ) -> NearbySearchResult:
        """
        Find places around a coordinate.

        Args:
            latitude: Center latitude
            longitude: Center longitude
            radius_meters: Search radius

        Returns:
            NearbySearchResult with status OK or ZERO_RESULTS

        Raises:
            PlacesAPIError: On transport errors or any other Google status
        """
        data = await self._get(
            "nearbysearch",
            {"location": f"{latitude},{longitude}", "radius": radius_meters},
        )
        status = data.get("status")
        if status not in OK_STATUSES:
            message = data.get("error_message") or "Unknown error"
            logger.warning(
                f"Google Nearby Search status {status} at ({latitude}, {longitude}): {message}"
            )
            raise PlacesAPIError(f"Google API error: {status} - {message}", status=status)

        places = [
            PlaceReference(
                place_id=result["place_id"],
                name=result.get("name"),
                types=result.get("types") or [],
            )
            for result in data.get("results") or []
            if result.get("place_id")
        ]
        return NearbySearchResult(status=status, places=places)

    async def get_place_details(self, place_id: str) -> PlaceDetails:
        """
        Get review count and category tags for a place.

        Cached in Redis when a cache is configured. Unreadable cache entries
        are treated as a miss.

        Raises:
            PlacesAPIError: On transport errors, a non-OK status or a malformed result
        """
        cache_key = f"place_details:{place_id}"
        if self.cache is not None:
            cached = await self.cache.get_json(cache_key)
            if cached is not None:
                try:
                    return PlaceDetails(**cached)
                except (TypeError, ValidationError) as e:
                    logger.warning(f"Discarding unreadable cached details for {place_id}: {e}")

        data = await self._get("details", {"place_id": place_id, "fields": DETAIL_FIELDS})
        status = data.get("status")
        result = data.get("result")
        if status != "OK" or not result:
            raise PlacesAPIError(f"Place details error: {status}", status=status)

        try:
            details = PlaceDetails(
                place_id=place_id,
                name=result.get("name"),
                review_count=result.get("user_ratings_total") or 0,
                types=result.get("types") or [],
                opening_hours_present=bool(result.get("opening_hours")),
            )
        except (AttributeError, ValidationError) as e:
            raise PlacesAPIError(f"Malformed place details for {place_id}: {e}", status=status)

        if self.cache is not None:
            await self.cache.set_json(cache_key, details.model_dump())
        return details
