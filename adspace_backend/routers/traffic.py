"""Traffic router - footfall estimates for ad spaces and bare coordinates."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError

from adspace_backend.config import settings
from adspace_backend.dependencies import (
    get_ad_space_repository,
    get_enrichment_service,
)
from adspace_backend.enrichment.traffic_loader import TrafficEnrichmentService
from adspace_backend.models.traffic import (
    LoadTrafficRequest,
    LoadTrafficResponse,
    TrafficEstimate,
    TrafficUpdateRequest,
)
from adspace_backend.services.ad_space_repository import AdSpaceRepository
from adspace_backend.utils.normalizers import normalize_traffic_data, serialize_traffic_data

router = APIRouter(tags=["traffic"])
logger = logging.getLogger(__name__)


@router.get("/places/traffic", response_model=TrafficEstimate)
async def get_location_traffic(
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    lng: float = Query(..., ge=-180, le=180, description="Longitude"),
    radius: Optional[int] = Query(
        None, ge=1, le=50000, description="Search radius in meters (defaults to the configured radius)"
    ),
    service: TrafficEnrichmentService = Depends(get_enrichment_service),
):
    """
    Estimate traffic around a coordinate from Google Places.

    Nothing is stored. When Google cannot be reached the estimate comes
    back as ``unknown`` with an explanatory note.
    """
    return await service.estimate_location(lat, lng, radius)


@router.post("/ad-spaces/load-traffic", response_model=LoadTrafficResponse)
async def load_traffic(
    payload: LoadTrafficRequest,
    service: TrafficEnrichmentService = Depends(get_enrichment_service),
):
    """
    Bulk load traffic data for ad spaces.

    1. Fetches ad spaces with coordinates (optionally filtered by IDs)
    2. Fetches traffic signals for each one from Google Places
    3. Saves the estimate on the ad space
    4. Returns a summary of the run
    """
    try:
        report = await service.run(
            ad_space_ids=payload.ad_space_ids,
            limit=payload.limit or settings.traffic_batch_limit,
            force=payload.force,
        )
    except SQLAlchemyError as exc:
        logger.error(f"Error in bulk traffic load: {exc}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to fetch ad spaces", "details": str(exc)},
        )

    if report.total == 0:
        return LoadTrafficResponse(message="No ad spaces found to process", results=report)

    return LoadTrafficResponse(message=f"Processed {report.processed} ad spaces", results=report)


@router.get("/ad-spaces/{ad_space_id}/traffic", response_model=Optional[TrafficEstimate])
async def get_ad_space_traffic(
    ad_space_id: str,
    repository: AdSpaceRepository = Depends(get_ad_space_repository),
):
    """Stored traffic estimate of an ad space, or null if none was computed."""
    ad_space = await repository.get(ad_space_id)
    if ad_space is None:
        raise HTTPException(status_code=404, detail="Ad space not found")
    return normalize_traffic_data(ad_space.traffic_data)


@router.put("/ad-spaces/{ad_space_id}/traffic")
async def update_ad_space_traffic(
    ad_space_id: str,
    payload: TrafficUpdateRequest,
    repository: AdSpaceRepository = Depends(get_ad_space_repository),
):
    """Replace the traffic estimate of an ad space by hand."""
    ad_space = await repository.get(ad_space_id)
    if ad_space is None:
        raise HTTPException(status_code=404, detail="Ad space not found")

    try:
        await repository.write_estimate(ad_space_id, payload.traffic_data)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to update traffic data", "details": str(exc)},
        )

    logger.info(f"Traffic data saved for ad space {ad_space_id}")
    return {
        "success": True,
        "message": "Traffic data updated successfully",
        "data": {"id": ad_space_id, "traffic_data": serialize_traffic_data(payload.traffic_data)},
    }
