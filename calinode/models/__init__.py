"""Pydantic models for the progression engine"""
from calinode.models.profile import CapabilityProfile, FitnessLevel
from calinode.models.quest import Quest, QuestType, QuestDifficulty, QuestAction
from calinode.models.progress import UserProgress, SkillReadinessTest, ReadinessRequirement
from calinode.models.streak import StreakData
from calinode.models.workout import ActiveWorkout, WorkoutExercise, WorkoutSet

__all__ = [
    "CapabilityProfile",
    "FitnessLevel",
    "Quest",
    "QuestType",
    "QuestDifficulty",
    "QuestAction",
    "UserProgress",
    "SkillReadinessTest",
    "ReadinessRequirement",
    "StreakData",
    "ActiveWorkout",
    "WorkoutExercise",
    "WorkoutSet",
]
