"""
Load traffic data for ad spaces from the command line.

Usage:
    load-traffic-data [--limit N] [--force] [--ids id1,id2]

Examples:
    load-traffic-data --limit 50
    load-traffic-data --ids uuid1,uuid2,uuid3 --force
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from adspace_backend.config import settings
from adspace_backend.database import AsyncSessionLocal
from adspace_backend.dependencies import build_enrichment_service, build_places_client
from adspace_backend.models.traffic import EnrichmentRunReport, OutcomeStatus
from adspace_backend.services.ad_space_repository import AdSpaceRepository
from adspace_backend.services.google_places import PlacesConfigurationError

logger = logging.getLogger(__name__)

STATUS_MARKERS = {
    OutcomeStatus.SUCCESS: "[ok]",
    OutcomeStatus.FAILED: "[failed]",
    OutcomeStatus.SKIPPED: "[skipped]",
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load traffic data for ad spaces")
    parser.add_argument(
        "--limit",
        type=int,
        default=settings.traffic_batch_limit,
        help="Load traffic for the first N ad spaces (default: %(default)s)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Reload even if traffic data exists",
    )
    parser.add_argument(
        "--ids",
        type=lambda value: [item.strip() for item in value.split(",") if item.strip()],
        default=None,
        help="Comma-separated ad space IDs",
    )
    return parser.parse_args(argv)


def print_report(report: EnrichmentRunReport) -> None:
    print("\nTraffic data load completed" + (" (cancelled)" if report.cancelled else ""))
    print("\nResults:")
    print(f"   Total: {report.total}")
    print(f"   Processed: {report.processed}")
    print(f"   Successful: {report.successful}")
    print(f"   Failed: {report.failed}")
    print(f"   Skipped: {report.skipped}")

    if report.details:
        print("\nDetails:")
        for detail in report.details:
            print(f"   {STATUS_MARKERS[detail.status]} {detail.title or detail.id}")
            if detail.error:
                print(f"      Error: {detail.error}")


async def load_traffic_data(
    limit: int, force: bool = False, ids: Optional[List[str]] = None
) -> EnrichmentRunReport:
    """Run one enrichment batch against the configured database."""
    places_client = build_places_client()
    async with AsyncSessionLocal() as session:
        service = build_enrichment_service(AdSpaceRepository(session), places_client)
        return await service.run(ad_space_ids=ids, limit=limit, force=force)


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)

    print("Starting traffic data load...")
    print(f"   Limit: {args.limit}")
    print(f"   Force: {args.force}")
    if args.ids:
        print(f"   IDs: {', '.join(args.ids)}")

    try:
        report = asyncio.run(load_traffic_data(args.limit, args.force, args.ids))
    except (PlacesConfigurationError, SQLAlchemyError) as e:
        print(f"\nError loading traffic data: {e}", file=sys.stderr)
        return 1

    print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
