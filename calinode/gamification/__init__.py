"""
Progression rules for CaliNode

Pure rule modules with no I/O:
- Capability assessment and fitness-level classification
- Daily quest catalog and tiered generation
- Quest progress tracking and rewards
- Workout / quest streak arithmetic
- Skill readiness test detection and grading
- Daily quest archive encoding
"""

from calinode.gamification.assessment import build_assessed_profile, determine_fitness_level
from calinode.gamification.quest_catalog import generate_onboarding_quests, generate_tiered_quests
from calinode.gamification.quest_tracker import QuestUpdateResult, apply_workout, complete_quest
from calinode.gamification.streak_system import calculate_streak_from_dates, record_workout_day, record_quest_day
from calinode.gamification.readiness import detect_new_tests, grade_readiness_test

__all__ = [
    "build_assessed_profile",
    "determine_fitness_level",
    "generate_onboarding_quests",
    "generate_tiered_quests",
    "QuestUpdateResult",
    "apply_workout",
    "complete_quest",
    "calculate_streak_from_dates",
    "record_workout_day",
    "record_quest_day",
    "detect_new_tests",
    "grade_readiness_test",
]
