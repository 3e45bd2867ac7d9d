"""
Data normalizers for traffic data stored on ad spaces.

``ad_spaces.traffic_data`` has been written by several generations of loaders
and by hand through the admin console, so keys and casing vary. These helpers
turn whatever is stored into a valid TrafficEstimate.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from adspace_backend.models.traffic import (
    PeakHour,
    TrafficEstimate,
    TrafficLevel,
    WEEKDAYS,
)

logger = logging.getLogger(__name__)

# Older records used friendlier labels
LEVEL_ALIASES = {
    "medium": TrafficLevel.MODERATE,
    "very high": TrafficLevel.VERY_HIGH,
    "veryhigh": TrafficLevel.VERY_HIGH,
    "very-high": TrafficLevel.VERY_HIGH,
}


def normalize_traffic_level(raw_level: Any) -> Optional[TrafficLevel]:
    """Parse a stored level label, or None if it is not recognisable."""
    if isinstance(raw_level, TrafficLevel):
        return raw_level
    if not isinstance(raw_level, str):
        return None
    label = raw_level.strip().lower()
    if label in LEVEL_ALIASES:
        return LEVEL_ALIASES[label]
    try:
        return TrafficLevel(label)
    except ValueError:
        return None


def _normalize_peak_hours(raw_hours: Any) -> List[PeakHour]:
    peak_hours: List[PeakHour] = []
    seen = set()
    for entry in raw_hours or []:
        if not isinstance(entry, dict):
            continue
        hour = entry.get("hour")
        level = normalize_traffic_level(entry.get("traffic_level") or entry.get("level"))
        if not isinstance(hour, int) or not 0 <= hour <= 23 or level is None or hour in seen:
            continue
        seen.add(hour)
        peak_hours.append(PeakHour(hour=hour, traffic_level=level))
    return peak_hours


def _normalize_weekly_pattern(raw_pattern: Any) -> Optional[Dict[str, TrafficLevel]]:
    if not isinstance(raw_pattern, dict):
        return None
    lowered = {str(day).strip().lower(): level for day, level in raw_pattern.items()}
    pattern = {}
    for day in WEEKDAYS:
        level = normalize_traffic_level(lowered.get(day))
        if level is None:
            # A partial week is as good as none
            return None
        pattern[day] = level
    return pattern


def normalize_traffic_data(raw: Optional[Dict[str, Any]]) -> Optional[TrafficEstimate]:
    """
    Normalize stored ``traffic_data`` JSON to a TrafficEstimate.

    Returns None when nothing is stored. Records whose level cannot be read
    come back as UNKNOWN so the bulk loader picks them up again.
    """
    if not raw or not isinstance(raw, dict):
        return None

    level = normalize_traffic_level(raw.get("traffic_level"))
    nearby = raw.get("nearby_places_count")
    nearby = nearby if isinstance(nearby, int) and nearby >= 0 else 0

    source = raw.get("source")
    note = raw.get("note")
    base: Dict[str, Any] = {
        "nearby_places_count": nearby,
        "source": source if isinstance(source, str) and source else "google_places",
        "note": note if isinstance(note, str) else None,
    }
    if raw.get("last_updated"):
        base["last_updated"] = raw["last_updated"]

    if level is None or level == TrafficLevel.UNKNOWN:
        try:
            return TrafficEstimate(traffic_level=TrafficLevel.UNKNOWN, **base)
        except ValidationError:
            base.pop("last_updated", None)
            return TrafficEstimate(traffic_level=TrafficLevel.UNKNOWN, **base)

    visitors = raw.get("average_daily_visitors")
    known = {
        "traffic_level": level,
        "average_daily_visitors": visitors if isinstance(visitors, int) and visitors >= 0 else None,
        "peak_hours": _normalize_peak_hours(raw.get("peak_hours")),
        "weekly_pattern": _normalize_weekly_pattern(raw.get("weekly_pattern")),
    }
    try:
        return TrafficEstimate(**known, **base)
    except ValidationError:
        base.pop("last_updated", None)

    # Keep the level when only the timestamp was unreadable
    try:
        return TrafficEstimate(**known, **base)
    except ValidationError as e:
        logger.warning(f"Unreadable traffic_data, treating as unknown: {e}")
        return TrafficEstimate(traffic_level=TrafficLevel.UNKNOWN, **base)


def serialize_traffic_data(estimate: TrafficEstimate) -> Dict[str, Any]:
    """JSON-ready dict for the ``traffic_data`` column."""
    return estimate.model_dump(mode="json")
