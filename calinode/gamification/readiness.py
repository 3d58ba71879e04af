"""
Skill Readiness Test Detector

Watches rolling per-exercise performance and offers a readiness test once
the user has sustained the prerequisite strength for a skill.

Muscle-up criteria (the one modeled test):
- 5+ recorded workouts for both pull-ups and diamond push-ups (dip substitute)
- mean of the last 5 entries: pull-ups ≥ 8, diamond push-ups ≥ 15
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from calinode.models.progress import (
    RECENT_PERFORMANCE_WINDOW,
    ReadinessRequirement,
    SkillReadinessTest,
    UserProgress,
)
from calinode.models.workout import ActiveWorkout

logger = logging.getLogger(__name__)

PULL_UP = "pull_up"
DIP_SUBSTITUTE = "diamond_push_up"
MUSCLE_UP = "muscle_up"

ELIGIBILITY_SAMPLE = 5


@dataclass(frozen=True)
class ReadinessCriterion:
    """Minimum rolling average for one exercise"""
    exercise_id: str
    min_average: float


@dataclass(frozen=True)
class SkillReadinessDefinition:
    """Static configuration for one gated skill"""
    skill_id: str
    skill_name: str
    test_title: str
    test_description: str
    criteria: tuple
    requirements: tuple

    def build_test(self, now: datetime) -> SkillReadinessTest:
        return SkillReadinessTest(
            target_skill_id=self.skill_id,
            target_skill_name=self.skill_name,
            test_title=self.test_title,
            test_description=self.test_description,
            requirements=list(self.requirements),
            unlock_date=now,
        )


MUSCLE_UP_READINESS = SkillReadinessDefinition(
    skill_id=MUSCLE_UP,
    skill_name="Muscle Up",
    test_title="Muscle Up Readiness Test",
    test_description=(
        "Your recent performance suggests you might be ready for a muscle up! "
        "Complete this test to unlock the muscle up skill progression."
    ),
    criteria=(
        ReadinessCriterion(exercise_id=PULL_UP, min_average=8),
        ReadinessCriterion(exercise_id=DIP_SUBSTITUTE, min_average=15),
    ),
    requirements=(
        ReadinessRequirement(
            exercise_id=PULL_UP,
            exercise_name="Pull-ups",
            target_reps=10,
            time_limit=180,
            description="Complete 10 pull-ups within 3 minutes (can be broken into sets)",
        ),
        ReadinessRequirement(
            exercise_id=DIP_SUBSTITUTE,
            exercise_name="Dips/Diamond Push-ups",
            target_reps=20,
            time_limit=180,
            description="Complete 20 dips or diamond push-ups within 3 minutes",
        ),
    ),
)

READINESS_DEFINITIONS: List[SkillReadinessDefinition] = [MUSCLE_UP_READINESS]


def update_recent_performance(progress: UserProgress, exercise_id: str, max_reps: int) -> None:
    """Append max_reps to the exercise history, keeping the last 10"""
    history = progress.recent_workout_performance.setdefault(exercise_id, [])
    history.append(max_reps)
    if len(history) > RECENT_PERFORMANCE_WINDOW:
        progress.recent_workout_performance[exercise_id] = history[-RECENT_PERFORMANCE_WINDOW:]


def record_workout_performance(progress: UserProgress, workout: ActiveWorkout) -> Dict[str, int]:
    """
    Record the best set of each exercise in the workout

    Exercises with no positive rep count are skipped.

    Returns:
        exercise id -> recorded max reps
    """
    recorded = {}
    for exercise in workout.exercises:
        max_reps = exercise.max_reps
        if max_reps > 0:
            update_recent_performance(progress, exercise.exercise_id, max_reps)
            recorded[exercise.exercise_id] = max_reps
    return recorded


def recent_average(progress: UserProgress, exercise_id: str, sample: int = ELIGIBILITY_SAMPLE) -> Optional[float]:
    """Mean of the last `sample` entries, or None with fewer entries"""
    history = progress.recent_workout_performance.get(exercise_id, [])
    if len(history) < sample:
        return None
    return sum(history[-sample:]) / float(sample)


def meets_criteria(progress: UserProgress, definition: SkillReadinessDefinition) -> bool:
    """True when every criterion's rolling average reaches its minimum"""
    for criterion in definition.criteria:
        average = recent_average(progress, criterion.exercise_id)
        if average is None or average < criterion.min_average:
            return False
    return True


def should_offer_muscle_up_test(progress: UserProgress) -> bool:
    return meets_criteria(progress, MUSCLE_UP_READINESS)


def detect_new_tests(progress: UserProgress, now: datetime) -> List[SkillReadinessTest]:
    """
    Offer each eligible skill's test once

    Skills already completed or already on offer are skipped. New tests are
    appended to progress.available_readiness_tests and returned.
    """
    offered = {t.target_skill_id for t in progress.available_readiness_tests}
    new_tests = []

    for definition in READINESS_DEFINITIONS:
        if definition.skill_id in progress.completed_readiness_tests:
            continue
        if definition.skill_id in offered:
            continue
        if not meets_criteria(progress, definition):
            continue

        test = definition.build_test(now)
        progress.available_readiness_tests.append(test)
        new_tests.append(test)
        logger.info(f"New readiness test available: {definition.skill_name}")

    return new_tests


def grade_readiness_test(test: SkillReadinessTest, results: Dict[str, int]) -> bool:
    """Pass iff every requirement's achieved count reaches its target"""
    return all(
        results.get(requirement.exercise_id, 0) >= requirement.target_reps
        for requirement in test.requirements
    )


def mark_test_passed(progress: UserProgress, test: SkillReadinessTest, results: Dict[str, int], now: datetime) -> SkillReadinessTest:
    """
    Move the test's skill from available to completed

    Returns the completed copy of the test.
    """
    completed = test.model_copy(
        update={"is_completed": True, "completion_date": now, "test_results": dict(results)}
    )
    if test.target_skill_id not in progress.completed_readiness_tests:
        progress.completed_readiness_tests.append(test.target_skill_id)
    progress.available_readiness_tests = [
        t for t in progress.available_readiness_tests
        if t.id != test.id and t.target_skill_id != test.target_skill_id
    ]
    return completed


def record_failed_attempt(progress: UserProgress, test: SkillReadinessTest, results: Dict[str, int]) -> None:
    """Keep the latest attempt's results on the still-available test"""
    for available in progress.available_readiness_tests:
        if available.id == test.id:
            available.test_results = dict(results)
