"""
Pytest configuration and shared fixtures.

All fixtures are offline: Google Places is replaced by an in-process fake
and the database is an in-memory SQLite.
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from adspace_backend.database import build_session_factory, create_tables
from adspace_backend.models.traffic import (
    LocationCandidate,
    TrafficEstimate,
    TrafficLevel,
)
from adspace_backend.services.google_places import (
    NearbySearchResult,
    PlaceDetails,
    PlaceReference,
    PlacesAPIError,
)

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeDirectoryClient:
    """Stands in for GooglePlacesClient; returns canned places and details."""

    def __init__(
        self,
        nearby_count: int = 1,
        review_count: int = 0,
        types: Optional[List[str]] = None,
        nearby_error: Optional[Exception] = None,
        details_error: Optional[Exception] = None,
    ):
        self.nearby_count = nearby_count
        self.review_count = review_count
        self.types = types or []
        self.nearby_error = nearby_error
        self.details_error = details_error
        self.nearby_calls: List[tuple] = []
        self.details_calls: List[str] = []

    @property
    def call_count(self) -> int:
        return len(self.nearby_calls) + len(self.details_calls)

    async def nearby_search(self, latitude, longitude, radius_meters) -> NearbySearchResult:
        self.nearby_calls.append((latitude, longitude, radius_meters))
        if self.nearby_error is not None:
            raise self.nearby_error
        places = [PlaceReference(place_id=f"place-{i}") for i in range(self.nearby_count)]
        return NearbySearchResult(status="OK" if places else "ZERO_RESULTS", places=places)

    async def get_place_details(self, place_id: str) -> PlaceDetails:
        self.details_calls.append(place_id)
        if self.details_error is not None:
            raise self.details_error
        return PlaceDetails(
            place_id=place_id,
            review_count=self.review_count,
            types=self.types,
            opening_hours_present=True,
        )


class InMemoryLocations:
    """LocationAccessor backed by a list; records every write."""

    def __init__(self, candidates: Sequence[LocationCandidate], write_error: Optional[Exception] = None):
        self.candidates = list(candidates)
        self.write_error = write_error
        self.writes: Dict[str, List[TrafficEstimate]] = {}
        self.list_calls: List[tuple] = []

    async def list_candidates(self, ids=None, limit=10) -> List[LocationCandidate]:
        self.list_calls.append((ids, limit))
        if ids:
            return [c for c in self.candidates if c.id in set(ids)]
        return self.candidates[:limit]

    async def write_estimate(self, ad_space_id: str, estimate: TrafficEstimate) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.writes.setdefault(ad_space_id, []).append(estimate)


def make_candidate(
    ad_space_id: str,
    level: Optional[TrafficLevel] = None,
    title: Optional[str] = None,
) -> LocationCandidate:
    current = None
    if level is not None:
        current = TrafficEstimate(traffic_level=level, last_updated=FIXED_NOW)
    return LocationCandidate(
        id=ad_space_id,
        title=title if title is not None else f"Billboard {ad_space_id}",
        latitude=40.4168,
        longitude=-3.7038,
        current_estimate=current,
    )


@pytest.fixture
def directory():
    """Directory returning one busy restaurant among 25 nearby places."""
    return FakeDirectoryClient(nearby_count=25, review_count=1200, types=["restaurant", "food"])


@pytest.fixture
def failing_directory():
    return FakeDirectoryClient(nearby_error=PlacesAPIError("Google API error: REQUEST_DENIED - bad key"))


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with the ad_spaces table. Fresh per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    session_factory = build_session_factory(db_engine)
    async with session_factory() as session:
        yield session
