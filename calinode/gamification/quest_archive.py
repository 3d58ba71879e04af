"""
Daily quest archive

Builds the denormalized, human-readable record stored per calendar day at
users/{uid}/quests/daily/history/{yyyy-MM-dd}, and decodes quests back out
of it when the day's set is reloaded.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from calinode.db.codecs import decode_timestamp, encode_timestamp, get_bool, get_enum, get_int
from calinode.models.quest import Quest, QuestAction, QuestDifficulty, QuestType
from calinode.utils.datetime_helpers import format_date_key

logger = logging.getLogger(__name__)

# Coins are weighted at 10 XP each in the per-quest total reward value
COIN_XP_VALUE = 10


def _quest_status(quest: Quest, now: datetime) -> str:
    if quest.is_completed:
        return "✅ Completed"
    if quest.is_expired(now):
        return "⏰ Expired"
    return "🔄 In Progress"


def encode_archived_quest(quest: Quest, now: datetime) -> Dict[str, Any]:
    """Per-quest archive entry"""
    return {
        "id": quest.id,
        "title": quest.title,
        "description": quest.description,
        "emoji": quest.emoji,
        "type": quest.type.value,
        "typeReadable": quest.type.readable,
        "difficulty": quest.difficulty.value,
        "difficultyReadable": quest.difficulty.display_title,
        "difficultyEmoji": quest.difficulty.emoji,
        "action": quest.action.value,
        "targetValue": quest.target_value,
        "currentProgress": quest.progress,
        "progressPercentage": int(quest.progress_percentage * 100),
        "isCompleted": quest.is_completed,
        "xpReward": quest.xp_reward,
        "coinReward": quest.coin_reward,
        "totalRewardValue": quest.xp_reward + quest.coin_reward * COIN_XP_VALUE,
        "createdAt": encode_timestamp(quest.created_at),
        "expirationDate": encode_timestamp(quest.expiration_date),
        "isExpired": quest.is_expired(now),
        "completedAt": encode_timestamp(now) if quest.is_completed else None,
        "summary": {
            "title": quest.title,
            "status": _quest_status(quest, now),
            "progress": f"{quest.progress}/{quest.target_value}",
            "reward": f"{quest.xp_reward} XP + {quest.coin_reward} coins",
        },
    }


def build_daily_archive(quests: List[Quest], now: datetime) -> Dict[str, Any]:
    """
    Archive document for the day's set

    Includes per-quest entries plus completion counts, reward totals and a
    per-difficulty breakdown.
    """
    completed = [q for q in quests if q.is_completed]
    completed_count = len(completed)
    total_count = len(quests)
    all_completed = total_count > 0 and completed_count == total_count
    completion_rate = int(completed_count / total_count * 100) if total_count else 0
    total_xp = sum(q.xp_reward for q in completed)
    total_coins = sum(q.coin_reward for q in completed)

    return {
        "date": format_date_key(now),
        "dateReadable": now.strftime("%A, %B %d, %Y"),
        "lastUpdated": encode_timestamp(now),
        "quests": [encode_archived_quest(q, now) for q in quests],
        "completedCount": completed_count,
        "totalCount": total_count,
        "allCompleted": all_completed,
        "completionRate": completion_rate,
        "totalXpEarned": total_xp,
        "totalCoinsEarned": total_coins,
        "questsByDifficulty": {
            "starter": sum(1 for q in quests if q.difficulty == QuestDifficulty.STARTER),
            "challenger": sum(1 for q in quests if q.difficulty == QuestDifficulty.CHALLENGER),
            "beastMode": sum(1 for q in quests if q.difficulty == QuestDifficulty.BEAST_MODE),
            "readinessTest": sum(1 for q in quests if q.difficulty == QuestDifficulty.READINESS_TEST),
        },
        "summary": {
            "status": (
                "🏆 All Quests Completed!" if all_completed
                else f"🎯 {completed_count}/{total_count} Completed"
            ),
            "totalRewards": f"{total_xp} XP + {total_coins} coins",
            "questTitles": [f"{q.emoji} {q.title}" for q in quests],
        },
    }


def decode_archived_quest(data: Dict[str, Any]) -> Optional[Quest]:
    """
    Rebuild a quest from an archive entry

    Entries missing identity or configuration fields are dropped; progress
    and completion default to 0/False.
    """
    if not isinstance(data, dict):
        return None

    quest_id = data.get("id")
    title = data.get("title")
    expiration = decode_timestamp(data.get("expirationDate"))
    target = get_int(data, "targetValue")
    try:
        quest_type = QuestType(data.get("type"))
        difficulty = QuestDifficulty(data.get("difficulty"))
    except ValueError:
        quest_type = difficulty = None

    if not isinstance(quest_id, str) or not isinstance(title, str) or expiration is None \
            or quest_type is None or difficulty is None or target <= 0:
        logger.warning(f"Dropping malformed archived quest: {data.get('id')!r}")
        return None

    created_at = decode_timestamp(data.get("createdAt"))
    # Archives written without createdAt imply it from the expiration
    quest = Quest(
        id=quest_id,
        title=title,
        description=str(data.get("description", "")),
        emoji=str(data.get("emoji", "")),
        type=quest_type,
        difficulty=difficulty,
        target_value=target,
        xp_reward=get_int(data, "xpReward"),
        coin_reward=get_int(data, "coinReward"),
        action=get_enum(data, "action", QuestAction, QuestAction.NONE),
        expiration_date=expiration,
        is_completed=get_bool(data, "isCompleted"),
        progress=get_int(data, "currentProgress", get_int(data, "progress")),
    )
    quest.created_at = created_at or quest.generated_at
    return quest


def decode_daily_archive(document: Optional[Dict[str, Any]]) -> List[Quest]:
    """All decodable quests of an archive document"""
    if not document or not isinstance(document.get("quests"), list):
        return []
    return [q for q in (decode_archived_quest(raw) for raw in document["quests"]) if q is not None]
