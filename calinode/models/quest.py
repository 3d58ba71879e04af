"""Quest models"""
from enum import Enum
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4
from pydantic import BaseModel, Field, model_validator

from calinode.utils.datetime_helpers import now_user_timezone

QUEST_LIFETIME = timedelta(days=1)


class QuestType(str, Enum):
    """How quest progress is measured"""
    WORKOUT_COMPLETION = "workout_completion"
    REPS_BASED = "reps_based"
    TIME_BASED = "time_based"
    EXPLORATION = "exploration"
    CONSISTENCY = "consistency"
    IMPROVEMENT = "improvement"

    @property
    def readable(self) -> str:
        return self.value.replace("_", " ").title()


class QuestDifficulty(str, Enum):
    """Difficulty tier driving quest scaling and presentation"""
    STARTER = "starter"
    CHALLENGER = "challenger"
    BEAST_MODE = "beast_mode"
    READINESS_TEST = "readiness_test"

    @property
    def display_title(self) -> str:
        return {
            QuestDifficulty.STARTER: "STARTER",
            QuestDifficulty.CHALLENGER: "CHALLENGER",
            QuestDifficulty.BEAST_MODE: "BEAST MODE",
            QuestDifficulty.READINESS_TEST: "READINESS TEST",
        }[self]

    @property
    def emoji(self) -> str:
        return {
            QuestDifficulty.STARTER: "🟢",
            QuestDifficulty.CHALLENGER: "🟡",
            QuestDifficulty.BEAST_MODE: "🔴",
            QuestDifficulty.READINESS_TEST: "⚡",
        }[self]

    @property
    def color(self) -> str:
        return {
            QuestDifficulty.STARTER: "green",
            QuestDifficulty.CHALLENGER: "orange",
            QuestDifficulty.BEAST_MODE: "red",
            QuestDifficulty.READINESS_TEST: "purple",
        }[self]

    @property
    def multiplier(self) -> float:
        return {
            QuestDifficulty.STARTER: 0.5,
            QuestDifficulty.CHALLENGER: 0.8,
            QuestDifficulty.BEAST_MODE: 1.2,
            QuestDifficulty.READINESS_TEST: 1.5,
        }[self]


class QuestAction(str, Enum):
    """What the client should open when the quest is tapped"""
    NONE = "none"
    START_WORKOUT = "start_workout"
    TAKE_ASSESSMENT = "take_assessment"


class Quest(BaseModel):
    """
    A one-day objective with a numeric target

    Only is_completed and progress change after creation. Progress is not
    clamped to target_value; progress_percentage is.
    """
    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    description: str
    emoji: str
    type: QuestType
    difficulty: QuestDifficulty
    target_value: int = Field(gt=0)
    xp_reward: int = Field(ge=0)
    coin_reward: int = Field(ge=0)
    action: QuestAction = QuestAction.NONE
    created_at: datetime = Field(default_factory=now_user_timezone)
    expiration_date: Optional[datetime] = None
    is_completed: bool = False
    progress: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _default_expiration(self) -> "Quest":
        if self.expiration_date is None:
            self.expiration_date = self.created_at + QUEST_LIFETIME
        return self

    @property
    def progress_percentage(self) -> float:
        if self.target_value <= 0:
            return 0.0
        return min(1.0, self.progress / self.target_value)

    @property
    def generated_at(self) -> datetime:
        """Creation time as implied by the expiration date"""
        return self.expiration_date - QUEST_LIFETIME

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or now_user_timezone()) > self.expiration_date
