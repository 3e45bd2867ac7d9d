"""
Traffic Scoring
Turns point-of-interest signals into a traffic estimate.

Everything here is pure: no I/O, no clock reads unless ``now`` is omitted.
The thresholds are undocumented product heuristics carried over as-is; tune
them through ``ScoringRules`` rather than editing the functions.
"""
import math
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from adspace_backend.models.traffic import (
    PeakHour,
    TrafficEstimate,
    TrafficLevel,
    TrafficSignals,
    WEEKDAYS,
)


# Place types that are busy by nature
HIGH_TRAFFIC_TYPES = frozenset({
    "mall",
    "shopping_mall",
    "transit_station",
    "airport",
    "train_station",
    "subway_station",
    "bus_station",
    "restaurant",
    "cafe",
    "store",
})

# (exclusive lower bound, points), checked top-down
REVIEW_COUNT_POINTS = ((1000, 3), (500, 2), (100, 1))
NEARBY_COUNT_POINTS = ((20, 2), (10, 1))
HIGH_TRAFFIC_TYPE_POINTS = 2

# (inclusive minimum score, level), checked top-down
LEVEL_THRESHOLDS = (
    (6, TrafficLevel.VERY_HIGH),
    (4, TrafficLevel.HIGH),
    (2, TrafficLevel.MODERATE),
)

VISITOR_RATIO = 0.02

# Substring families used for the hourly and weekly profiles
TRANSIT_KEYWORDS = ("station", "transit")
SHOPPING_KEYWORDS = ("shopping", "mall", "store")
DINING_KEYWORDS = ("restaurant", "food", "cafe")
RESTAURANT_KEYWORDS = ("restaurant", "food")
OFFICE_KEYWORDS = ("office", "business")

SHOPPING_WEEK = ("moderate", "moderate", "moderate", "moderate", "high", "very_high", "very_high")
RESTAURANT_WEEK = ("low", "low", "moderate", "moderate", "high", "very_high", "high")
TRANSIT_WEEK = ("very_high", "very_high", "very_high", "very_high", "very_high", "moderate", "low")
DEFAULT_WEEK = ("moderate",) * 7


class ScoringRules(BaseModel):
    """Tunable heuristics for ``estimate_traffic``."""
    model_config = ConfigDict(frozen=True)

    review_count_points: Tuple[Tuple[int, int], ...] = REVIEW_COUNT_POINTS
    nearby_count_points: Tuple[Tuple[int, int], ...] = NEARBY_COUNT_POINTS
    high_traffic_types: FrozenSet[str] = HIGH_TRAFFIC_TYPES
    high_traffic_type_points: int = HIGH_TRAFFIC_TYPE_POINTS
    level_thresholds: Tuple[Tuple[int, TrafficLevel], ...] = LEVEL_THRESHOLDS
    visitor_ratio: float = VISITOR_RATIO


DEFAULT_SCORING_RULES = ScoringRules()


def _tiered_points(value: int, tiers: Sequence[Tuple[int, int]]) -> int:
    for bound, points in tiers:
        if value > bound:
            return points
    return 0


def _matches_any(place_types: Sequence[str], keywords: Sequence[str]) -> bool:
    return any(keyword in place_type for place_type in place_types for keyword in keywords)


def score_signals(signals: TrafficSignals, rules: ScoringRules = DEFAULT_SCORING_RULES) -> int:
    """Accumulate the integer traffic score for ``signals``."""
    score = _tiered_points(signals.review_count, rules.review_count_points)
    if rules.high_traffic_types.intersection(signals.place_types):
        score += rules.high_traffic_type_points
    score += _tiered_points(signals.nearby_places_count, rules.nearby_count_points)
    return score


def classify_score(score: int, rules: ScoringRules = DEFAULT_SCORING_RULES) -> TrafficLevel:
    """Map a score to a traffic level; never returns UNKNOWN."""
    for minimum, level in rules.level_thresholds:
        if score >= minimum:
            return level
    return TrafficLevel.LOW


def estimate_daily_visitors(review_count: int, ratio: float = VISITOR_RATIO) -> Optional[int]:
    """
    Conservative daily visitor estimate from a review count.

    Rounds half up, so 25 reviews at 2% give 1 visitor rather than
    Python's banker's-rounded 0.
    """
    if review_count <= 0:
        return None
    return int(math.floor(review_count * ratio + 0.5))


def _hours(start: int, end: int, level: TrafficLevel) -> List[PeakHour]:
    return [PeakHour(hour=hour, traffic_level=level) for hour in range(start, end + 1)]


def generate_peak_hours(place_types: Sequence[str]) -> List[PeakHour]:
    """
    Hourly traffic profile by place family.

    Families are checked transit, shopping, dining, office; the first match
    wins. Unlisted hours are implicitly low.
    """
    if _matches_any(place_types, TRANSIT_KEYWORDS):
        return (
            _hours(7, 9, TrafficLevel.VERY_HIGH)
            + _hours(17, 19, TrafficLevel.VERY_HIGH)
            + _hours(10, 16, TrafficLevel.HIGH)
        )
    if _matches_any(place_types, SHOPPING_KEYWORDS):
        return [
            PeakHour(
                hour=hour,
                traffic_level=TrafficLevel.VERY_HIGH if 14 <= hour <= 18 else TrafficLevel.HIGH,
            )
            for hour in range(11, 21)
        ]
    if _matches_any(place_types, DINING_KEYWORDS):
        return _hours(12, 14, TrafficLevel.VERY_HIGH) + _hours(19, 21, TrafficLevel.VERY_HIGH)
    if _matches_any(place_types, OFFICE_KEYWORDS):
        return [
            PeakHour(
                hour=hour,
                traffic_level=TrafficLevel.VERY_HIGH if 10 <= hour <= 15 else TrafficLevel.HIGH,
            )
            for hour in range(9, 18)
        ]
    return _hours(9, 18, TrafficLevel.MODERATE)


def generate_weekly_pattern(place_types: Sequence[str]) -> Dict[str, TrafficLevel]:
    """Per-weekday traffic level; families checked shopping, restaurant, transit."""
    if _matches_any(place_types, SHOPPING_KEYWORDS):
        levels = SHOPPING_WEEK
    elif _matches_any(place_types, RESTAURANT_KEYWORDS):
        levels = RESTAURANT_WEEK
    elif _matches_any(place_types, TRANSIT_KEYWORDS):
        levels = TRANSIT_WEEK
    else:
        levels = DEFAULT_WEEK
    return {day: TrafficLevel(level) for day, level in zip(WEEKDAYS, levels)}


def unknown_estimate(
    nearby_places_count: int = 0,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TrafficEstimate:
    """Estimate for a location with no usable point-of-interest data."""
    return TrafficEstimate(
        traffic_level=TrafficLevel.UNKNOWN,
        nearby_places_count=nearby_places_count,
        last_updated=now or datetime.now(timezone.utc),
        note=note,
    )


def estimate_traffic(
    signals: TrafficSignals,
    rules: ScoringRules = DEFAULT_SCORING_RULES,
    now: Optional[datetime] = None,
) -> TrafficEstimate:
    """
    Build a traffic estimate from point-of-interest signals.

    Args:
        signals: Review count, place types and nearby count for one location
        rules: Scoring heuristics (defaults preserve the production values)
        now: Timestamp for ``last_updated``; defaults to the current UTC time

    Returns:
        A complete TrafficEstimate, or an UNKNOWN one when no place was found
    """
    if not signals.place_found:
        return unknown_estimate(signals.nearby_places_count, now=now)

    score = score_signals(signals, rules)
    return TrafficEstimate(
        traffic_level=classify_score(score, rules),
        average_daily_visitors=estimate_daily_visitors(signals.review_count, rules.visitor_ratio),
        peak_hours=generate_peak_hours(signals.place_types),
        weekly_pattern=generate_weekly_pattern(signals.place_types),
        last_updated=now or datetime.now(timezone.utc),
        nearby_places_count=signals.nearby_places_count,
    )
