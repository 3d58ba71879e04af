"""Progression ledger and skill readiness models"""
from datetime import datetime
from typing import Optional
from uuid import uuid4
from pydantic import BaseModel, Field

from calinode.utils.datetime_helpers import now_user_timezone

# Per-exercise performance history length
RECENT_PERFORMANCE_WINDOW = 10


class ReadinessRequirement(BaseModel):
    """One exercise target inside a readiness test"""
    exercise_id: str
    exercise_name: str
    target_reps: int = Field(ge=0)
    time_limit: int = Field(ge=0)  # seconds
    description: str


class SkillReadinessTest(BaseModel):
    """Gating challenge that unlocks a skill progression"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    target_skill_id: str
    target_skill_name: str
    test_title: str
    test_description: str
    requirements: list[ReadinessRequirement] = Field(default_factory=list)
    unlock_date: datetime = Field(default_factory=now_user_timezone)
    is_completed: bool = False
    completion_date: Optional[datetime] = None
    test_results: dict[str, int] = Field(default_factory=dict)


class UserProgress(BaseModel):
    """Per-user mutable progression ledger"""
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_workout_date: Optional[datetime] = None
    total_xp: int = Field(default=0, ge=0)
    cali_coins: int = Field(default=0, ge=0)
    completed_quests: list[str] = Field(default_factory=list)
    quest_success_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    all_quests_completed_today: bool = False
    show_tomorrow_preview: bool = False

    # exercise id -> best reps of each recent workout, oldest first
    recent_workout_performance: dict[str, list[int]] = Field(default_factory=dict)
    available_readiness_tests: list[SkillReadinessTest] = Field(default_factory=list)
    completed_readiness_tests: list[str] = Field(default_factory=list)
