"""
Quest Progress Tracker

Recomputes progress for each open quest from a completed-workout event and
handles the terminal completion transition.

Progress rules by quest type:
- workout_completion / exploration: 1 once the workout is finished
- time_based: elapsed workout seconds
- reps_based / improvement: push-up reps summed over every set
- consistency: not derived from a single workout (left untouched)

Quests whose action is TAKE_ASSESSMENT complete only through the assessment.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from calinode.config import MAX_COMPLETED_QUEST_IDS
from calinode.gamification.quest_catalog import PUSH_UP_EXERCISE_ID
from calinode.models.profile import CapabilityProfile
from calinode.models.progress import UserProgress
from calinode.models.quest import Quest, QuestAction, QuestType
from calinode.models.workout import ActiveWorkout
from calinode.resilience.metrics import record_quest_completed

logger = logging.getLogger(__name__)

SUCCESS_RATE_WINDOW = 10


@dataclass
class QuestUpdateResult:
    """Outcome of applying one workout to the day's quests"""
    completed: List[Quest] = field(default_factory=list)
    xp_awarded: int = 0
    coins_awarded: int = 0
    all_completed_now: bool = False
    personal_best_raised: bool = False


def compute_quest_progress(quest: Quest, workout: ActiveWorkout) -> Optional[int]:
    """
    Full (non-incremental) progress value for quest from workout

    Returns None when the workout does not bear on the quest.
    """
    if quest.type in (QuestType.WORKOUT_COMPLETION, QuestType.EXPLORATION):
        if quest.action == QuestAction.TAKE_ASSESSMENT:
            return None
        return 1 if workout.is_completed else None

    if quest.type == QuestType.TIME_BASED:
        return workout.duration_seconds

    if quest.type in (QuestType.REPS_BASED, QuestType.IMPROVEMENT):
        return workout.total_reps_for(PUSH_UP_EXERCISE_ID)

    # QuestType.CONSISTENCY is reserved for streak-based rules
    return None


def update_success_rate(progress: UserProgress) -> None:
    """Share of the last ten completion slots that are filled"""
    recent = progress.completed_quests[-SUCCESS_RATE_WINDOW:]
    progress.quest_success_rate = len(recent) / float(SUCCESS_RATE_WINDOW)


def complete_quest(quest: Quest, progress: UserProgress, max_ids: int = MAX_COMPLETED_QUEST_IDS) -> bool:
    """
    Mark quest completed and credit its rewards

    Terminal and idempotent: returns False (and awards nothing) if the quest
    was already completed.
    """
    if quest.is_completed:
        return False

    quest.is_completed = True
    progress.total_xp += quest.xp_reward
    progress.cali_coins += quest.coin_reward
    progress.completed_quests.append(quest.id)

    if len(progress.completed_quests) > max_ids:
        progress.completed_quests = progress.completed_quests[-max_ids:]

    update_success_rate(progress)
    record_quest_completed(quest.difficulty.value)

    logger.info(
        f"Quest completed: {quest.title} (+{quest.xp_reward} XP, +{quest.coin_reward} coins)"
    )
    return True


def check_all_completed(quests: List[Quest], progress: UserProgress) -> bool:
    """
    Flip the daily all-complete flags the first time every quest is done

    Returns True only on that first transition.
    """
    if not quests or not all(q.is_completed for q in quests):
        return False
    if progress.all_quests_completed_today:
        return False

    progress.all_quests_completed_today = True
    progress.show_tomorrow_preview = True
    logger.info("All daily quests completed, tomorrow preview unlocked")
    return True


def apply_completion(quest: Quest, quests: List[Quest], progress: UserProgress, result: QuestUpdateResult) -> None:
    """Complete quest and fold the effects into result"""
    if complete_quest(quest, progress):
        result.completed.append(quest)
        result.xp_awarded += quest.xp_reward
        result.coins_awarded += quest.coin_reward
        if check_all_completed(quests, progress):
            result.all_completed_now = True


def apply_workout(
    quests: List[Quest],
    workout: ActiveWorkout,
    progress: UserProgress,
    profile: CapabilityProfile
) -> QuestUpdateResult:
    """
    Apply a finished workout to every open quest

    Improvement quests that complete raise profile.max_push_ups when the
    achieved total beats it.
    """
    result = QuestUpdateResult()

    for quest in quests:
        if quest.is_completed:
            continue

        value = compute_quest_progress(quest, workout)
        if value is None:
            continue

        quest.progress = value
        if quest.progress < quest.target_value:
            continue

        apply_completion(quest, quests, progress, result)

        if quest.type == QuestType.IMPROVEMENT and value > profile.max_push_ups:
            logger.info(f"New push-up personal best: {profile.max_push_ups} → {value}")
            profile.max_push_ups = value
            result.personal_best_raised = True

    return result
