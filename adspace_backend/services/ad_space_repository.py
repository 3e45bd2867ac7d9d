"""Ad space persistence for the traffic enrichment pipeline."""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adspace_backend.models.ad_space import AdSpace
from adspace_backend.models.traffic import LocationCandidate, TrafficEstimate
from adspace_backend.utils.normalizers import normalize_traffic_data, serialize_traffic_data

logger = logging.getLogger(__name__)


class AdSpaceRepository:
    """Reads enrichment candidates and writes traffic estimates back."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_candidates(
        self, ids: Optional[Sequence[str]] = None, limit: int = 10
    ) -> List[LocationCandidate]:
        """
        Ad spaces with coordinates, oldest first.

        Args:
            ids: Restrict to these ad spaces; ``limit`` is ignored when given
            limit: Maximum number of rows when ``ids`` is empty

        Returns:
            Candidates with their current traffic estimate (if any)
        """
        query = (
            select(AdSpace)
            .where(AdSpace.latitude.is_not(None), AdSpace.longitude.is_not(None))
            .order_by(AdSpace.created_at, AdSpace.id)
        )
        if ids:
            query = query.where(AdSpace.id.in_(list(ids)))
        else:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return [
            LocationCandidate(
                id=row.id,
                title=row.title,
                latitude=row.latitude,
                longitude=row.longitude,
                current_estimate=normalize_traffic_data(row.traffic_data),
            )
            for row in result.scalars().all()
        ]

    async def get(self, ad_space_id: str) -> Optional[AdSpace]:
        return await self.session.get(AdSpace, ad_space_id)

    async def write_estimate(self, ad_space_id: str, estimate: TrafficEstimate) -> None:
        """
        Replace the stored traffic estimate of an ad space.

        Raises:
            LookupError: If the ad space does not exist
            SQLAlchemyError: If the update fails (the session is rolled back)
        """
        try:
            ad_space = await self.session.get(AdSpace, ad_space_id)
            if ad_space is None:
                raise LookupError(f"Ad space {ad_space_id} not found")
            ad_space.traffic_data = serialize_traffic_data(estimate)
            ad_space.updated_at = datetime.utcnow()
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Database update failed for ad space {ad_space_id}: {e}")
            await self.session.rollback()
            raise
