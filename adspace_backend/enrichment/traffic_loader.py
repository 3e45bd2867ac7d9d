"""
Traffic enrichment service for ad spaces.

For each ad space this:
- Looks up nearby points of interest in Google Places
- Reads review count and place types of the nearest one
- Scores them into a traffic estimate
- Stores the estimate on the ad space

Items are processed one at a time with a pause in between to respect the
Places rate limit. A failing item is recorded in the run report and never
stops the batch.
"""

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

from adspace_backend.enrichment.traffic_scoring import (
    DEFAULT_SCORING_RULES,
    ScoringRules,
    estimate_traffic,
    unknown_estimate,
)
from adspace_backend.models.traffic import (
    EnrichmentOutcome,
    EnrichmentRunReport,
    LocationCandidate,
    OutcomeStatus,
    TrafficEstimate,
    TrafficSignals,
)
from adspace_backend.services.google_places import (
    NearbySearchResult,
    PlaceDetails,
    PlacesAPIError,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 10
DEFAULT_RADIUS_METERS = 500
DEFAULT_ITEM_DELAY_SECONDS = 0.2

INVALID_TRAFFIC_DATA = "Invalid traffic data received"
LOOKUP_UNAVAILABLE_NOTE = "Unable to fetch traffic data from Google Places API"


class LocationAccessor(Protocol):
    async def list_candidates(
        self, ids: Optional[Sequence[str]] = None, limit: int = DEFAULT_BATCH_LIMIT
    ) -> List[LocationCandidate]:
        ...

    async def write_estimate(self, ad_space_id: str, estimate: TrafficEstimate) -> None:
        ...


class DirectoryClient(Protocol):
    async def nearby_search(
        self, latitude: float, longitude: float, radius_meters: int
    ) -> NearbySearchResult:
        ...

    async def get_place_details(self, place_id: str) -> PlaceDetails:
        ...


class TrafficEnrichmentService:
    """Bulk loader that enriches ad spaces with traffic estimates."""

    def __init__(
        self,
        locations: LocationAccessor,
        directory: DirectoryClient,
        radius_meters: int = DEFAULT_RADIUS_METERS,
        item_delay_seconds: float = DEFAULT_ITEM_DELAY_SECONDS,
        rules: ScoringRules = DEFAULT_SCORING_RULES,
    ) -> None:
        self.locations = locations
        self.directory = directory
        self.radius_meters = radius_meters
        self.item_delay_seconds = item_delay_seconds
        self.rules = rules

    async def collect_signals(
        self, latitude: float, longitude: float, radius_meters: Optional[int] = None
    ) -> TrafficSignals:
        """
        Query Google Places for the footfall signals around a coordinate.

        A failed detail lookup degrades to "no reviews, no types" with the
        same nearby count; only a failed nearby search raises.

        Raises:
            PlacesAPIError: If the nearby search fails
        """
        nearby = await self.directory.nearby_search(
            latitude, longitude, radius_meters or self.radius_meters
        )
        if not nearby.places:
            return TrafficSignals(nearby_places_count=0, place_found=False)

        nearby_count = len(nearby.places)
        top_place = nearby.places[0]
        try:
            details = await self.directory.get_place_details(top_place.place_id)
        except PlacesAPIError as e:
            logger.warning(
                f"Place details unavailable for {top_place.place_id}, scoring on nearby count only: {e}"
            )
            return TrafficSignals(nearby_places_count=nearby_count)

        return TrafficSignals(
            review_count=details.review_count,
            place_types=details.types,
            nearby_places_count=nearby_count,
        )

    async def estimate_location(
        self, latitude: float, longitude: float, radius_meters: Optional[int] = None
    ) -> TrafficEstimate:
        """Traffic estimate for a bare coordinate, without persisting it."""
        try:
            signals = await self.collect_signals(latitude, longitude, radius_meters)
        except PlacesAPIError as e:
            logger.error(f"Traffic lookup failed at ({latitude}, {longitude}): {e}")
            return unknown_estimate(note=LOOKUP_UNAVAILABLE_NOTE)
        return estimate_traffic(signals, self.rules)

    async def enrich_location(self, candidate: LocationCandidate) -> TrafficEstimate:
        """
        Compute and store a fresh estimate for one ad space.

        Raises:
            PlacesAPIError: If the nearby search fails
            ValueError: If no usable traffic data came back
            Exception: Whatever the location accessor raises on write
        """
        signals = await self.collect_signals(candidate.latitude, candidate.longitude)
        estimate = estimate_traffic(signals, self.rules)
        if not estimate.is_known:
            raise ValueError(INVALID_TRAFFIC_DATA)
        await self.locations.write_estimate(candidate.id, estimate)
        return estimate

    async def run(
        self,
        ad_space_ids: Optional[Sequence[str]] = None,
        limit: int = DEFAULT_BATCH_LIMIT,
        force: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> EnrichmentRunReport:
        """
        Enrich a batch of ad spaces.

        Args:
            ad_space_ids: Specific ad spaces to process (``limit`` is then ignored)
            limit: Number of ad spaces to process when no ids are given
            force: Recompute even when a known estimate is already stored
            cancel_event: Checked before each item; when set the run stops early

        Returns:
            EnrichmentRunReport with totals and one outcome per processed item
        """
        candidates = await self.locations.list_candidates(ad_space_ids, limit)
        report = EnrichmentRunReport(total=len(candidates))
        logger.info(f"Traffic enrichment started: {len(candidates)} ad spaces (force={force})")

        needs_pause = False
        for candidate in candidates:
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                logger.info("Traffic enrichment cancelled")
                break

            title = candidate.title or "Unknown"
            current = candidate.current_estimate
            if not force and current is not None and current.is_known:
                report.record(EnrichmentOutcome(id=candidate.id, title=title, status=OutcomeStatus.SKIPPED))
                continue

            if needs_pause and self.item_delay_seconds > 0:
                await asyncio.sleep(self.item_delay_seconds)
            needs_pause = True

            try:
                estimate = await self.enrich_location(candidate)
            except Exception as e:
                logger.error(f"Error processing ad space {candidate.id}: {e}")
                report.record(
                    EnrichmentOutcome(
                        id=candidate.id,
                        title=title,
                        status=OutcomeStatus.FAILED,
                        error=str(e) or e.__class__.__name__,
                    )
                )
                continue

            logger.info(f"Traffic data saved for ad space {candidate.id}: {estimate.traffic_level.value}")
            report.record(EnrichmentOutcome(id=candidate.id, title=title, status=OutcomeStatus.SUCCESS))

        logger.info(
            f"Traffic enrichment finished: {report.successful} successful, "
            f"{report.failed} failed, {report.skipped} skipped of {report.total}"
        )
        return report
