"""
Enrichment Module
=================

Traffic enrichment for ad spaces.

Responsibilities:
- Scoring point-of-interest signals into traffic estimates (pure)
- Bulk loading estimates for ad spaces from Google Places

Every caller (bulk endpoint, single-coordinate endpoint, loader CLI) goes
through the same scoring functions.
"""

from .traffic_scoring import (
    DEFAULT_SCORING_RULES,
    ScoringRules,
    estimate_traffic,
    generate_peak_hours,
    generate_weekly_pattern,
    unknown_estimate,
)
from .traffic_loader import (
    DirectoryClient,
    LocationAccessor,
    TrafficEnrichmentService,
)

__all__ = [
    "DEFAULT_SCORING_RULES",
    "ScoringRules",
    "estimate_traffic",
    "generate_peak_hours",
    "generate_weekly_pattern",
    "unknown_estimate",
    "DirectoryClient",
    "LocationAccessor",
    "TrafficEnrichmentService",
]
