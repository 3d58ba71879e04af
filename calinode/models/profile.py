"""Capability profile models"""
from enum import Enum
from datetime import datetime
from pydantic import BaseModel, Field

from calinode.utils.datetime_helpers import now_user_timezone


class FitnessLevel(str, Enum):
    """Fitness tier derived from the capability assessment"""
    BEGINNER = "beginner"
    NOVICE = "novice"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def display_title(self) -> str:
        return self.value.capitalize()

    @property
    def emoji(self) -> str:
        return {
            FitnessLevel.BEGINNER: "🌱",
            FitnessLevel.NOVICE: "💪",
            FitnessLevel.INTERMEDIATE: "🔥",
            FitnessLevel.ADVANCED: "⚡",
        }[self]


class CapabilityProfile(BaseModel):
    """Self-reported maxima used to scale quest difficulty"""
    max_push_ups: int = Field(default=0, ge=0)
    max_pull_ups: int = Field(default=0, ge=0)
    max_plank_seconds: int = Field(default=0, ge=0)
    max_squats: int = Field(default=0, ge=0)
    fitness_level: FitnessLevel = FitnessLevel.BEGINNER
    quest_difficulty_multiplier: float = 1.0
    weekly_goal_multiplier: float = 0.8  # quests start at 80% of max
    last_assessment: datetime = Field(default_factory=now_user_timezone)
