"""
Unit tests for adspace_backend/enrichment/traffic_scoring.py

Pure functions only: no network, no database.
"""
import pytest
from pydantic import ValidationError

from adspace_backend.enrichment.traffic_scoring import (
    DEFAULT_SCORING_RULES,
    ScoringRules,
    classify_score,
    estimate_daily_visitors,
    estimate_traffic,
    generate_peak_hours,
    generate_weekly_pattern,
    score_signals,
    unknown_estimate,
)
from adspace_backend.models.traffic import (
    PeakHour,
    TrafficEstimate,
    TrafficLevel,
    TrafficSignals,
    WEEKDAYS,
)
from conftest import FIXED_NOW

L = TrafficLevel


def _hours(profile):
    return {entry.hour: entry.traffic_level for entry in profile}


# =============================================================================
# Score accumulation
# =============================================================================


class TestScoreSignals:

    @pytest.mark.parametrize(
        "review_count, points",
        [(0, 0), (100, 0), (101, 1), (500, 1), (501, 2), (1000, 2), (1001, 3)],
    )
    def test_review_count_boundaries(self, review_count, points):
        assert score_signals(TrafficSignals(review_count=review_count)) == points

    @pytest.mark.parametrize(
        "nearby, points",
        [(0, 0), (10, 0), (11, 1), (20, 1), (21, 2)],
    )
    def test_nearby_count_boundaries(self, nearby, points):
        assert score_signals(TrafficSignals(nearby_places_count=nearby)) == points

    @pytest.mark.parametrize(
        "place_type",
        ["mall", "shopping_mall", "transit_station", "airport", "train_station",
         "subway_station", "bus_station", "restaurant", "cafe", "store"],
    )
    def test_high_traffic_type_adds_two(self, place_type):
        assert score_signals(TrafficSignals(place_types=[place_type, "point_of_interest"])) == 2

    def test_high_traffic_match_is_exact(self):
        # Substring matching is for the hourly/weekly profiles only
        assert score_signals(TrafficSignals(place_types=["clothing_store"])) == 0

    def test_bonus_counted_once(self):
        assert score_signals(TrafficSignals(place_types=["restaurant", "cafe", "store"])) == 2

    def test_all_factors_add_up(self):
        signals = TrafficSignals(review_count=1200, place_types=["restaurant"], nearby_places_count=25)
        assert score_signals(signals) == 7


class TestClassifyScore:

    @pytest.mark.parametrize(
        "score, level",
        [(0, L.LOW), (1, L.LOW), (2, L.MODERATE), (3, L.MODERATE),
         (4, L.HIGH), (5, L.HIGH), (6, L.VERY_HIGH), (7, L.VERY_HIGH)],
    )
    def test_thresholds(self, score, level):
        assert classify_score(score) == level


class TestEstimateDailyVisitors:

    def test_zero_reviews_has_no_estimate(self):
        assert estimate_daily_visitors(0) is None

    def test_two_percent_of_reviews(self):
        assert estimate_daily_visitors(1200) == 24

    def test_rounds_half_up(self):
        assert estimate_daily_visitors(25) == 1
        assert estimate_daily_visitors(125) == 3

    def test_small_counts_round_down_to_zero(self):
        assert estimate_daily_visitors(24) == 0

    def test_custom_ratio(self):
        assert estimate_daily_visitors(1200, ratio=0.1) == 120


# =============================================================================
# Hourly and weekly profiles
# =============================================================================


class TestPeakHours:

    def test_transit_profile(self):
        hours = _hours(generate_peak_hours(["train_station", "transit_station"]))
        assert sorted(hours) == list(range(7, 20))
        for hour in (7, 8, 9, 17, 18, 19):
            assert hours[hour] == L.VERY_HIGH
        for hour in range(10, 17):
            assert hours[hour] == L.HIGH

    def test_shopping_profile(self):
        hours = _hours(generate_peak_hours(["shopping_mall"]))
        assert sorted(hours) == list(range(11, 21))
        assert all(hours[h] == L.VERY_HIGH for h in range(14, 19))
        assert all(hours[h] == L.HIGH for h in (11, 12, 13, 19, 20))

    def test_dining_profile_only_lists_peaks(self):
        hours = _hours(generate_peak_hours(["cafe"]))
        assert hours == {h: L.VERY_HIGH for h in (12, 13, 14, 19, 20, 21)}

    def test_office_profile(self):
        hours = _hours(generate_peak_hours(["office"]))
        assert sorted(hours) == list(range(9, 18))
        assert all(hours[h] == L.VERY_HIGH for h in range(10, 16))
        assert hours[9] == L.HIGH and hours[16] == L.HIGH and hours[17] == L.HIGH

    def test_default_profile(self):
        hours = _hours(generate_peak_hours(["park"]))
        assert hours == {h: L.MODERATE for h in range(9, 19)}

    def test_empty_types_use_default_profile(self):
        assert _hours(generate_peak_hours([])) == {h: L.MODERATE for h in range(9, 19)}

    def test_transit_wins_over_shopping_and_dining(self):
        assert generate_peak_hours(["restaurant", "store", "subway_station"]) == generate_peak_hours(["subway_station"])

    def test_shopping_wins_over_dining(self):
        assert generate_peak_hours(["food", "department_store"]) == generate_peak_hours(["store"])

    def test_no_duplicate_hours(self):
        for types in (["transit_station"], ["store"], ["restaurant"], ["office"], []):
            hours = [entry.hour for entry in generate_peak_hours(types)]
            assert len(hours) == len(set(hours))


class TestWeeklyPattern:

    def test_shopping_week(self):
        pattern = generate_weekly_pattern(["shopping_mall"])
        assert pattern == {
            "monday": L.MODERATE, "tuesday": L.MODERATE, "wednesday": L.MODERATE,
            "thursday": L.MODERATE, "friday": L.HIGH, "saturday": L.VERY_HIGH,
            "sunday": L.VERY_HIGH,
        }

    def test_restaurant_week(self):
        pattern = generate_weekly_pattern(["restaurant"])
        assert pattern == {
            "monday": L.LOW, "tuesday": L.LOW, "wednesday": L.MODERATE,
            "thursday": L.MODERATE, "friday": L.HIGH, "saturday": L.VERY_HIGH,
            "sunday": L.HIGH,
        }

    def test_transit_week(self):
        pattern = generate_weekly_pattern(["bus_station"])
        assert [pattern[d] for d in WEEKDAYS[:5]] == [L.VERY_HIGH] * 5
        assert pattern["saturday"] == L.MODERATE
        assert pattern["sunday"] == L.LOW

    def test_default_week(self):
        assert generate_weekly_pattern(["park"]) == {day: L.MODERATE for day in WEEKDAYS}

    def test_cafe_is_not_restaurant_for_the_week(self):
        assert generate_weekly_pattern(["cafe"]) == {day: L.MODERATE for day in WEEKDAYS}

    def test_weekly_order_differs_from_hourly_order(self):
        # Hourly checks transit first, weekly checks restaurant before transit
        types = ["restaurant", "train_station"]
        assert generate_weekly_pattern(types) == generate_weekly_pattern(["restaurant"])
        assert generate_peak_hours(types) == generate_peak_hours(["train_station"])

    def test_always_complete(self):
        for types in (["store"], ["food"], ["transit_station"], []):
            assert list(generate_weekly_pattern(types)) == list(WEEKDAYS)


# =============================================================================
# estimate_traffic
# =============================================================================


class TestEstimateTraffic:

    def test_busy_restaurant_example(self):
        signals = TrafficSignals(review_count=1200, place_types=["restaurant"], nearby_places_count=25)
        estimate = estimate_traffic(signals, now=FIXED_NOW)

        assert estimate.traffic_level == L.VERY_HIGH
        assert estimate.average_daily_visitors == 24
        assert _hours(estimate.peak_hours) == {h: L.VERY_HIGH for h in (12, 13, 14, 19, 20, 21)}
        assert estimate.weekly_pattern == {
            "monday": L.LOW, "tuesday": L.LOW, "wednesday": L.MODERATE,
            "thursday": L.MODERATE, "friday": L.HIGH, "saturday": L.VERY_HIGH,
            "sunday": L.HIGH,
        }
        assert estimate.nearby_places_count == 25
        assert estimate.last_updated == FIXED_NOW
        assert estimate.source == "google_places"

    def test_deterministic(self):
        signals = TrafficSignals(review_count=640, place_types=["store"], nearby_places_count=14)
        first = estimate_traffic(signals)
        second = estimate_traffic(signals)
        assert first.model_dump(exclude={"last_updated"}) == second.model_dump(exclude={"last_updated"})

    @pytest.mark.parametrize(
        "types, nearby",
        [([], 0), (["airport"], 30), (["office"], 15)],
    )
    def test_no_reviews_means_no_visitor_estimate(self, types, nearby):
        estimate = estimate_traffic(TrafficSignals(review_count=0, place_types=types, nearby_places_count=nearby))
        assert estimate.average_daily_visitors is None

    def test_found_place_without_signal_is_low_not_unknown(self):
        estimate = estimate_traffic(TrafficSignals(review_count=0, place_types=[], nearby_places_count=0))
        assert estimate.traffic_level == L.LOW
        assert estimate.weekly_pattern == {day: L.MODERATE for day in WEEKDAYS}

    def test_nothing_found_is_unknown(self):
        estimate = estimate_traffic(TrafficSignals(place_found=False), now=FIXED_NOW)
        assert estimate.traffic_level == L.UNKNOWN
        assert estimate.average_daily_visitors is None
        assert estimate.peak_hours == []
        assert estimate.weekly_pattern is None
        assert estimate.is_known is False

    def test_custom_rules(self):
        rules = ScoringRules(visitor_ratio=0.1, level_thresholds=((1, L.HIGH),))
        estimate = estimate_traffic(TrafficSignals(review_count=200), rules=rules)
        assert estimate.average_daily_visitors == 20
        assert estimate.traffic_level == L.HIGH

    def test_default_rules_are_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_SCORING_RULES.visitor_ratio = 0.5


class TestTrafficEstimateInvariants:

    def test_unknown_with_visitors_rejected(self):
        with pytest.raises(ValidationError):
            TrafficEstimate(traffic_level=L.UNKNOWN, average_daily_visitors=3)

    def test_unknown_with_peak_hours_rejected(self):
        with pytest.raises(ValidationError):
            TrafficEstimate(traffic_level=L.UNKNOWN, peak_hours=[PeakHour(hour=9, traffic_level=L.HIGH)])

    def test_duplicate_hours_rejected(self):
        with pytest.raises(ValidationError):
            TrafficEstimate(
                traffic_level=L.HIGH,
                peak_hours=[PeakHour(hour=9, traffic_level=L.HIGH), PeakHour(hour=9, traffic_level=L.LOW)],
            )

    def test_hour_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            PeakHour(hour=24, traffic_level=L.HIGH)

    def test_partial_week_rejected(self):
        with pytest.raises(ValidationError):
            TrafficEstimate(traffic_level=L.HIGH, weekly_pattern={"monday": L.HIGH})

    def test_unknown_estimate_helper(self):
        estimate = unknown_estimate(nearby_places_count=0, note="lookup failed", now=FIXED_NOW)
        assert estimate.traffic_level == L.UNKNOWN
        assert estimate.note == "lookup failed"
        assert estimate.last_updated == FIXED_NOW
