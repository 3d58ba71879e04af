"""Streak ledger model"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class StreakData(BaseModel):
    """Workout and quest-completion day-sets with derived streak counters"""
    current_workout_streak: int = Field(default=0, ge=0)
    longest_workout_streak: int = Field(default=0, ge=0)
    current_quest_streak: int = Field(default=0, ge=0)
    longest_quest_streak: int = Field(default=0, ge=0)
    last_workout_date: Optional[datetime] = None
    last_quest_completion_date: Optional[datetime] = None
    workout_dates: list[str] = Field(default_factory=list)  # yyyy-MM-dd, sorted
    quest_completion_dates: list[str] = Field(default_factory=list)  # yyyy-MM-dd, sorted
    total_workout_days: int = Field(default=0, ge=0)
    total_quest_completion_days: int = Field(default=0, ge=0)
