"""
Document codecs

Translate models to and from the camelCase document shape used in the
remote store. Decoding is lenient: missing or mistyped fields fall back to
their defaults (0, empty, lowest enum variant) instead of failing.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from calinode.models.profile import CapabilityProfile, FitnessLevel
from calinode.models.progress import ReadinessRequirement, SkillReadinessTest, UserProgress
from calinode.models.streak import StreakData

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


# ==========================================
# Field helpers
# ==========================================

def encode_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def decode_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            logger.warning(f"Ignoring malformed timestamp: {value!r}")
    return None


def get_int(data: Dict[str, Any], key: str, default: int = 0) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(0, int(value))


def get_float(data: Dict[str, Any], key: str, default: float) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def get_bool(data: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else default


def get_str_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def get_enum(data: Dict[str, Any], key: str, enum_type: Type[E], default: E) -> E:
    try:
        return enum_type(data.get(key))
    except ValueError:
        return default


# ==========================================
# Capability profile
# ==========================================

def encode_capability_profile(profile: CapabilityProfile) -> Dict[str, Any]:
    return {
        "maxPushUps": profile.max_push_ups,
        "maxPullUps": profile.max_pull_ups,
        "maxPlankSeconds": profile.max_plank_seconds,
        "maxSquats": profile.max_squats,
        "fitnessLevel": profile.fitness_level.value,
        "questDifficultyMultiplier": profile.quest_difficulty_multiplier,
        "lastAssessment": encode_timestamp(profile.last_assessment),
        "weeklyGoalMultiplier": profile.weekly_goal_multiplier,
    }


def decode_capability_profile(data: Dict[str, Any]) -> CapabilityProfile:
    profile = CapabilityProfile(
        max_push_ups=get_int(data, "maxPushUps"),
        max_pull_ups=get_int(data, "maxPullUps"),
        max_plank_seconds=get_int(data, "maxPlankSeconds"),
        max_squats=get_int(data, "maxSquats"),
        fitness_level=get_enum(data, "fitnessLevel", FitnessLevel, FitnessLevel.BEGINNER),
        quest_difficulty_multiplier=get_float(data, "questDifficultyMultiplier", 1.0),
        weekly_goal_multiplier=get_float(data, "weeklyGoalMultiplier", 0.8),
    )
    last_assessment = decode_timestamp(data.get("lastAssessment"))
    if last_assessment is not None:
        profile.last_assessment = last_assessment
    return profile


# ==========================================
# Readiness tests
# ==========================================

def encode_readiness_test(test: SkillReadinessTest) -> Dict[str, Any]:
    return {
        "id": test.id,
        "targetSkillId": test.target_skill_id,
        "targetSkillName": test.target_skill_name,
        "testTitle": test.test_title,
        "testDescription": test.test_description,
        "requirements": [
            {
                "exerciseId": r.exercise_id,
                "exerciseName": r.exercise_name,
                "targetReps": r.target_reps,
                "timeLimit": r.time_limit,
                "description": r.description,
            }
            for r in test.requirements
        ],
        "unlockDate": encode_timestamp(test.unlock_date),
        "isCompleted": test.is_completed,
        "completionDate": encode_timestamp(test.completion_date),
        "testResults": dict(test.test_results),
    }


def decode_readiness_test(data: Dict[str, Any]) -> Optional[SkillReadinessTest]:
    """Decode one test; tests without an id or skill id are dropped"""
    if not isinstance(data, dict):
        return None
    test_id = data.get("id")
    skill_id = data.get("targetSkillId")
    if not isinstance(test_id, str) or not isinstance(skill_id, str):
        logger.warning("Dropping readiness test without id or targetSkillId")
        return None

    requirements = []
    for raw in data.get("requirements") or []:
        if not isinstance(raw, dict) or not isinstance(raw.get("exerciseId"), str):
            continue
        requirements.append(ReadinessRequirement(
            exercise_id=raw["exerciseId"],
            exercise_name=str(raw.get("exerciseName", raw["exerciseId"])),
            target_reps=get_int(raw, "targetReps"),
            time_limit=get_int(raw, "timeLimit"),
            description=str(raw.get("description", "")),
        ))

    raw_results = data.get("testResults") if isinstance(data.get("testResults"), dict) else {}
    test = SkillReadinessTest(
        id=test_id,
        target_skill_id=skill_id,
        target_skill_name=str(data.get("targetSkillName", skill_id)),
        test_title=str(data.get("testTitle", "")),
        test_description=str(data.get("testDescription", "")),
        requirements=requirements,
        is_completed=get_bool(data, "isCompleted"),
        completion_date=decode_timestamp(data.get("completionDate")),
        test_results={k: get_int(raw_results, k) for k in raw_results if isinstance(k, str)},
    )
    unlock_date = decode_timestamp(data.get("unlockDate"))
    if unlock_date is not None:
        test.unlock_date = unlock_date
    return test


# ==========================================
# User progress
# ==========================================

def encode_user_progress(progress: UserProgress) -> Dict[str, Any]:
    return {
        "currentStreak": progress.current_streak,
        "longestStreak": progress.longest_streak,
        "lastWorkoutDate": encode_timestamp(progress.last_workout_date),
        "totalXP": progress.total_xp,
        "caliCoins": progress.cali_coins,
        "completedQuests": list(progress.completed_quests),
        "questSuccessRate": progress.quest_success_rate,
        "allQuestsCompletedToday": progress.all_quests_completed_today,
        "showTomorrowPreview": progress.show_tomorrow_preview,
        "recentWorkoutPerformance": {k: list(v) for k, v in progress.recent_workout_performance.items()},
        "availableReadinessTests": [encode_readiness_test(t) for t in progress.available_readiness_tests],
        "completedReadinessTests": list(progress.completed_readiness_tests),
    }


def decode_user_progress(data: Dict[str, Any]) -> UserProgress:
    performance = {}
    raw_performance = data.get("recentWorkoutPerformance")
    if isinstance(raw_performance, dict):
        for exercise_id, values in raw_performance.items():
            if isinstance(values, list):
                performance[exercise_id] = [
                    int(v) for v in values
                    if isinstance(v, (int, float)) and not isinstance(v, bool)
                ]

    tests = [
        t for t in (decode_readiness_test(raw) for raw in data.get("availableReadinessTests") or [])
        if t is not None
    ]

    rate = min(1.0, max(0.0, get_float(data, "questSuccessRate", 0.0)))

    return UserProgress(
        current_streak=get_int(data, "currentStreak"),
        longest_streak=get_int(data, "longestStreak"),
        last_workout_date=decode_timestamp(data.get("lastWorkoutDate")),
        total_xp=get_int(data, "totalXP"),
        cali_coins=get_int(data, "caliCoins"),
        completed_quests=get_str_list(data, "completedQuests"),
        quest_success_rate=rate,
        all_quests_completed_today=get_bool(data, "allQuestsCompletedToday"),
        show_tomorrow_preview=get_bool(data, "showTomorrowPreview"),
        recent_workout_performance=performance,
        available_readiness_tests=tests,
        completed_readiness_tests=get_str_list(data, "completedReadinessTests"),
    )


# ==========================================
# Streak ledger
# ==========================================

def encode_streak_data(streak: StreakData) -> Dict[str, Any]:
    return {
        "currentWorkoutStreak": streak.current_workout_streak,
        "longestWorkoutStreak": streak.longest_workout_streak,
        "currentQuestStreak": streak.current_quest_streak,
        "longestQuestStreak": streak.longest_quest_streak,
        "lastWorkoutDate": encode_timestamp(streak.last_workout_date),
        "lastQuestCompletionDate": encode_timestamp(streak.last_quest_completion_date),
        "workoutDates": list(streak.workout_dates),
        "questCompletionDates": list(streak.quest_completion_dates),
        "totalWorkoutDays": streak.total_workout_days,
        "totalQuestCompletionDays": streak.total_quest_completion_days,
    }


def decode_streak_data(data: Dict[str, Any]) -> StreakData:
    workout_dates = sorted(set(get_str_list(data, "workoutDates")))
    quest_dates = sorted(set(get_str_list(data, "questCompletionDates")))
    return StreakData(
        current_workout_streak=get_int(data, "currentWorkoutStreak"),
        longest_workout_streak=get_int(data, "longestWorkoutStreak"),
        current_quest_streak=get_int(data, "currentQuestStreak"),
        longest_quest_streak=get_int(data, "longestQuestStreak"),
        last_workout_date=decode_timestamp(data.get("lastWorkoutDate")),
        last_quest_completion_date=decode_timestamp(data.get("lastQuestCompletionDate")),
        workout_dates=workout_dates,
        quest_completion_dates=quest_dates,
        total_workout_days=get_int(data, "totalWorkoutDays", len(workout_dates)),
        total_quest_completion_days=get_int(data, "totalQuestCompletionDays", len(quest_dates)),
    )


# ==========================================
# Local (full model) payloads
# ==========================================

def dump_model(model) -> Dict[str, Any]:
    """Full JSON-safe dump for the local fallback store"""
    return model.model_dump(mode="json")


def load_model(model_type, payload: Any):
    """
    Validate a local payload, returning None when it cannot be decoded

    Missing fields take model defaults.
    """
    if not isinstance(payload, dict):
        return None
    try:
        return model_type.model_validate(payload)
    except PydanticValidationError as e:
        logger.warning(f"Could not decode local {model_type.__name__}: {e.error_count()} errors")
        return None
