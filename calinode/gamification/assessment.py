"""
Capability Assessment

Classifies a user's fitness level from four self-reported maxima.

Each exercise scores 0-3 from fixed breakpoints (lower bound inclusive):
- Push-ups: 30+ → 3, 15+ → 2, 5+ → 1
- Pull-ups: 10+ → 3, 3+ → 2, 1+ → 1
- Plank: 120s+ → 3, 60s+ → 2, 30s+ → 1
- Squats: 50+ → 3, 25+ → 2, 10+ → 1

The average of the four scores maps to a level:
- 2.5+ → advanced
- 1.5+ → intermediate
- 0.5+ → novice
- otherwise beginner
"""

from datetime import datetime
from typing import Dict, Optional, Tuple
import logging

from calinode.models.profile import CapabilityProfile, FitnessLevel

logger = logging.getLogger(__name__)

# (threshold, score) pairs, evaluated top-down
PUSH_UP_BREAKPOINTS: Tuple[Tuple[int, int], ...] = ((30, 3), (15, 2), (5, 1))
PULL_UP_BREAKPOINTS: Tuple[Tuple[int, int], ...] = ((10, 3), (3, 2), (1, 1))
PLANK_BREAKPOINTS: Tuple[Tuple[int, int], ...] = ((120, 3), (60, 2), (30, 1))
SQUAT_BREAKPOINTS: Tuple[Tuple[int, int], ...] = ((50, 3), (25, 2), (10, 1))

LEVEL_THRESHOLDS: Tuple[Tuple[float, FitnessLevel], ...] = (
    (2.5, FitnessLevel.ADVANCED),
    (1.5, FitnessLevel.INTERMEDIATE),
    (0.5, FitnessLevel.NOVICE),
)


def score_exercise(value: int, breakpoints: Tuple[Tuple[int, int], ...]) -> int:
    """Map a raw maximum onto 0-3"""
    for threshold, score in breakpoints:
        if value >= threshold:
            return score
    return 0


def calculate_sub_scores(push_ups: int, pull_ups: int, plank_seconds: int, squats: int) -> Dict[str, int]:
    """Per-exercise scores keyed by exercise"""
    return {
        "push_ups": score_exercise(push_ups, PUSH_UP_BREAKPOINTS),
        "pull_ups": score_exercise(pull_ups, PULL_UP_BREAKPOINTS),
        "plank_seconds": score_exercise(plank_seconds, PLANK_BREAKPOINTS),
        "squats": score_exercise(squats, SQUAT_BREAKPOINTS),
    }


def determine_fitness_level(push_ups: int, pull_ups: int, plank_seconds: int, squats: int) -> FitnessLevel:
    """
    Classify fitness level from assessment maxima

    Missing or zero input simply yields the lowest tier.

    Example:
        determine_fitness_level(30, 10, 120, 50)  # FitnessLevel.ADVANCED
        determine_fitness_level(5, 1, 30, 10)     # FitnessLevel.NOVICE
    """
    scores = calculate_sub_scores(push_ups, pull_ups, plank_seconds, squats)
    average = sum(scores.values()) / 4.0

    for threshold, level in LEVEL_THRESHOLDS:
        if average >= threshold:
            return level
    return FitnessLevel.BEGINNER


def build_assessed_profile(
    push_ups: int,
    pull_ups: int,
    plank_seconds: int,
    squats: int,
    assessed_at: datetime,
    previous: Optional[CapabilityProfile] = None
) -> CapabilityProfile:
    """
    Create the profile that replaces the previous one after an assessment

    Raw values are stored wholesale; negative input is clamped to zero.
    Multipliers carry over from the previous profile.
    """
    push_ups, pull_ups, plank_seconds, squats = (
        max(0, int(v or 0)) for v in (push_ups, pull_ups, plank_seconds, squats)
    )
    level = determine_fitness_level(push_ups, pull_ups, plank_seconds, squats)

    base = previous or CapabilityProfile()
    profile = CapabilityProfile(
        max_push_ups=push_ups,
        max_pull_ups=pull_ups,
        max_plank_seconds=plank_seconds,
        max_squats=squats,
        fitness_level=level,
        quest_difficulty_multiplier=base.quest_difficulty_multiplier,
        weekly_goal_multiplier=base.weekly_goal_multiplier,
        last_assessment=assessed_at,
    )

    logger.debug(
        f"Assessment scored {push_ups}/{pull_ups}/{plank_seconds}s/{squats} as {level.value}"
    )
    return profile
