"""Unit tests for capability assessment (calinode/gamification/assessment.py)"""
import pytest
from datetime import datetime, timezone

from calinode.gamification.assessment import (
    PUSH_UP_BREAKPOINTS,
    build_assessed_profile,
    calculate_sub_scores,
    determine_fitness_level,
    score_exercise,
)
from calinode.models.profile import CapabilityProfile, FitnessLevel


NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Sub-score Tests
# ============================================================================

@pytest.mark.parametrize("value,expected", [
    (0, 0),
    (4, 0),
    (5, 1),
    (14, 1),
    (15, 2),
    (29, 2),
    (30, 3),
    (100, 3),
])
def test_push_up_breakpoints_are_inclusive(value, expected):
    assert score_exercise(value, PUSH_UP_BREAKPOINTS) == expected


def test_sub_scores_for_each_exercise():
    scores = calculate_sub_scores(push_ups=15, pull_ups=1, plank_seconds=120, squats=9)

    assert scores == {"push_ups": 2, "pull_ups": 1, "plank_seconds": 3, "squats": 0}


# ============================================================================
# Classification Tests
# ============================================================================

class TestDetermineFitnessLevel:
    """Average sub-score → fitness level"""

    def test_all_zero_is_beginner(self):
        assert determine_fitness_level(0, 0, 0, 0) == FitnessLevel.BEGINNER

    def test_lowest_thresholds_average_one_is_novice(self):
        # 1+1+1+1 = 4 → 1.0
        assert determine_fitness_level(5, 1, 30, 10) == FitnessLevel.NOVICE

    def test_average_exactly_half_is_novice(self):
        # 1+1+0+0 = 2 → 0.5
        assert determine_fitness_level(5, 1, 0, 0) == FitnessLevel.NOVICE

    def test_average_just_below_half_is_beginner(self):
        # 1+0+0+0 = 1 → 0.25
        assert determine_fitness_level(5, 0, 0, 0) == FitnessLevel.BEGINNER

    def test_average_one_and_half_is_intermediate(self):
        # 2+2+1+1 = 6 → 1.5
        assert determine_fitness_level(15, 3, 30, 10) == FitnessLevel.INTERMEDIATE

    def test_average_two_and_half_is_advanced(self):
        # 3+3+2+2 = 10 → 2.5
        assert determine_fitness_level(30, 10, 60, 25) == FitnessLevel.ADVANCED

    def test_maximum_scores_are_advanced(self):
        assert determine_fitness_level(30, 10, 120, 50) == FitnessLevel.ADVANCED


# ============================================================================
# Profile Construction Tests
# ============================================================================

class TestBuildAssessedProfile:
    """Assessment results replace the profile wholesale"""

    def test_stores_raw_maxima_and_timestamp(self):
        profile = build_assessed_profile(20, 5, 60, 30, assessed_at=NOW)

        assert profile.max_push_ups == 20
        assert profile.max_pull_ups == 5
        assert profile.max_plank_seconds == 60
        assert profile.max_squats == 30
        assert profile.fitness_level == FitnessLevel.INTERMEDIATE
        assert profile.last_assessment == NOW

    def test_negative_input_is_treated_as_zero(self):
        profile = build_assessed_profile(-5, -1, -30, -10, assessed_at=NOW)

        assert profile.max_push_ups == 0
        assert profile.max_plank_seconds == 0
        assert profile.fitness_level == FitnessLevel.BEGINNER

    def test_multipliers_carry_over_from_previous_profile(self):
        previous = CapabilityProfile(weekly_goal_multiplier=0.9, quest_difficulty_multiplier=1.2)

        profile = build_assessed_profile(10, 2, 40, 15, assessed_at=NOW, previous=previous)

        assert profile.weekly_goal_multiplier == 0.9
        assert profile.quest_difficulty_multiplier == 1.2

    def test_default_weekly_goal_multiplier(self):
        profile = build_assessed_profile(10, 2, 40, 15, assessed_at=NOW)

        assert profile.weekly_goal_multiplier == 0.8
