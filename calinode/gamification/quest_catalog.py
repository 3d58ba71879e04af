"""
Quest Catalog & Generator

Produces the daily quest set:
- Onboarding (no assessment yet): "Start Your Journey" + "Take the Assessment"
- Assessed users: one STARTER, one CHALLENGER and one BEAST MODE quest
  scaled to the capability profile

Starter quests are drawn at random from a small pool; challenger and beast
mode targets are computed from the push-up maximum, with time-based
fallbacks when no maximum is on record.
"""

import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from calinode.models.profile import CapabilityProfile
from calinode.models.quest import Quest, QuestAction, QuestDifficulty, QuestType

logger = logging.getLogger(__name__)

# Exercise scored by reps-based and improvement quests
PUSH_UP_EXERCISE_ID = "push_up"

MIN_CHALLENGER_REPS = 5
BEAST_MODE_IMPROVEMENT = 1.1  # 10% above personal best

CHALLENGER_FALLBACK_SECONDS = 900   # 15 minutes
BEAST_MODE_FALLBACK_SECONDS = 1800  # 30 minutes

START_YOUR_JOURNEY = "Start Your Journey"
TAKE_THE_ASSESSMENT = "Take the Assessment"


@dataclass(frozen=True)
class QuestTemplate:
    """Static quest definition; a fresh Quest is minted per day"""
    title: str
    description: str
    emoji: str
    type: QuestType
    difficulty: QuestDifficulty
    target_value: int
    xp_reward: int
    coin_reward: int
    action: QuestAction = QuestAction.NONE

    def to_quest(self, now: datetime) -> Quest:
        return Quest(
            title=self.title,
            description=self.description,
            emoji=self.emoji,
            type=self.type,
            difficulty=self.difficulty,
            target_value=self.target_value,
            xp_reward=self.xp_reward,
            coin_reward=self.coin_reward,
            action=self.action,
            created_at=now,
        )


# ============================================
# Onboarding
# ============================================

ONBOARDING_TEMPLATES: List[QuestTemplate] = [
    QuestTemplate(
        title=START_YOUR_JOURNEY,
        description="Complete any workout to begin",
        emoji="🚀",
        type=QuestType.WORKOUT_COMPLETION,
        difficulty=QuestDifficulty.STARTER,
        target_value=1,
        xp_reward=50,
        coin_reward=10,
        action=QuestAction.START_WORKOUT,
    ),
    QuestTemplate(
        title=TAKE_THE_ASSESSMENT,
        description="Complete your fitness assessment",
        emoji="📊",
        type=QuestType.EXPLORATION,
        difficulty=QuestDifficulty.STARTER,
        target_value=1,
        xp_reward=100,
        coin_reward=25,
        action=QuestAction.TAKE_ASSESSMENT,
    ),
]


# ============================================
# Starter pool (basic consistency)
# ============================================

STARTER_POOL: List[QuestTemplate] = [
    QuestTemplate(
        title="Show Up Today",
        description="Complete any workout (even 5 minutes counts!)",
        emoji="🌟",
        type=QuestType.WORKOUT_COMPLETION,
        difficulty=QuestDifficulty.STARTER,
        target_value=1,
        xp_reward=50,
        coin_reward=10,
        action=QuestAction.START_WORKOUT,
    ),
    QuestTemplate(
        title="Move Your Body",
        description="Do any exercise for at least 2 minutes",
        emoji="🚶‍♀️",
        type=QuestType.TIME_BASED,
        difficulty=QuestDifficulty.STARTER,
        target_value=120,
        xp_reward=50,
        coin_reward=10,
        action=QuestAction.START_WORKOUT,
    ),
]


def generate_onboarding_quests(now: datetime) -> List[Quest]:
    """The fixed pre-assessment set"""
    return [template.to_quest(now) for template in ONBOARDING_TEMPLATES]


def is_onboarding_set(quests: List[Quest]) -> bool:
    """True when the set contains the assessment onboarding quest"""
    return any(q.action == QuestAction.TAKE_ASSESSMENT for q in quests)


def generate_starter_quest(now: datetime, rng: Optional[random.Random] = None) -> Quest:
    """Pick one starter quest from the pool"""
    template = (rng or random).choice(STARTER_POOL)
    return template.to_quest(now)


def calculate_challenger_target(profile: CapabilityProfile) -> int:
    """floor(max push-ups × weekly goal multiplier × challenger multiplier), at least 5"""
    raw = profile.max_push_ups * profile.weekly_goal_multiplier * QuestDifficulty.CHALLENGER.multiplier
    return max(math.floor(raw), MIN_CHALLENGER_REPS)


def calculate_beast_mode_target(profile: CapabilityProfile) -> int:
    """floor(max push-ups × 1.1)"""
    return math.floor(profile.max_push_ups * BEAST_MODE_IMPROVEMENT)


def generate_challenger_quest(profile: CapabilityProfile, now: datetime) -> Quest:
    """Reps quest scaled to the profile, or a 15 minute session without a maximum"""
    if profile.max_push_ups > 0:
        target = calculate_challenger_target(profile)
        return Quest(
            title="Push Your Limits",
            description=f"Complete {target} push-ups total",
            emoji="🔥",
            type=QuestType.REPS_BASED,
            difficulty=QuestDifficulty.CHALLENGER,
            target_value=target,
            xp_reward=100,
            coin_reward=20,
            action=QuestAction.START_WORKOUT,
            created_at=now,
        )

    return Quest(
        title="Workout Strong",
        description="Workout for 15+ minutes",
        emoji="⏱️",
        type=QuestType.TIME_BASED,
        difficulty=QuestDifficulty.CHALLENGER,
        target_value=CHALLENGER_FALLBACK_SECONDS,
        xp_reward=100,
        coin_reward=20,
        action=QuestAction.START_WORKOUT,
        created_at=now,
    )


def generate_beast_mode_quest(profile: CapabilityProfile, now: datetime) -> Quest:
    """Beat-your-best quest, or a 30 minute session without a maximum"""
    target = calculate_beast_mode_target(profile)
    if profile.max_push_ups > 0 and target > 0:
        return Quest(
            title="Beat Your Best",
            description=f"Do {target}+ push-ups (beat your {profile.max_push_ups} record!)",
            emoji="👑",
            type=QuestType.IMPROVEMENT,
            difficulty=QuestDifficulty.BEAST_MODE,
            target_value=target,
            xp_reward=200,
            coin_reward=50,
            action=QuestAction.START_WORKOUT,
            created_at=now,
        )

    return Quest(
        title="Epic Session",
        description="Complete a 30+ minute workout",
        emoji="🏆",
        type=QuestType.TIME_BASED,
        difficulty=QuestDifficulty.BEAST_MODE,
        target_value=BEAST_MODE_FALLBACK_SECONDS,
        xp_reward=200,
        coin_reward=50,
        action=QuestAction.START_WORKOUT,
        created_at=now,
    )


def generate_tiered_quests(
    profile: CapabilityProfile,
    now: datetime,
    rng: Optional[random.Random] = None
) -> List[Quest]:
    """One quest per tier: starter, challenger, beast mode"""
    quests = [
        generate_starter_quest(now, rng),
        generate_challenger_quest(profile, now),
        generate_beast_mode_quest(profile, now),
    ]
    logger.info(f"Generated {len(quests)} daily quests for {profile.fitness_level.value} profile")
    return quests
