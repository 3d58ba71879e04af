"""
ProgressionRepository - persistence for the progression engine

Every save writes the local fallback copy first and then the remote
document; the outcome is returned as a PersistenceResult instead of being
raised, so the in-memory state stays authoritative whatever happens.
Loads prefer the remote store and fall back to the local copy when the
remote document is missing or the call fails.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from calinode.db.codecs import (
    decode_capability_profile,
    decode_streak_data,
    decode_user_progress,
    dump_model,
    encode_capability_profile,
    encode_streak_data,
    encode_timestamp,
    encode_user_progress,
    load_model,
)
from calinode.db.documents import DocumentStore
from calinode.db.local_store import (
    CAPABILITY_PROFILE_KEY,
    DAILY_QUESTS_KEY,
    STREAK_DATA_KEY,
    USER_PROGRESS_KEY,
    LocalKeyValueStore,
)
from calinode.gamification.quest_archive import build_daily_archive, decode_daily_archive
from calinode.models.profile import CapabilityProfile
from calinode.models.progress import UserProgress
from calinode.models.quest import Quest
from calinode.models.streak import StreakData
from calinode.resilience.fallback import FallbackStrategy, execute_with_fallbacks
from calinode.resilience.metrics import record_persistence_failure
from calinode.utils.datetime_helpers import format_date_key

logger = logging.getLogger(__name__)

QuestState = Tuple[Optional[CapabilityProfile], Optional[UserProgress]]


def user_path(user_id: str) -> str:
    return f"users/{user_id}"


def streak_path(user_id: str) -> str:
    return f"users/{user_id}/streaks/data"


def quests_root(user_id: str) -> str:
    return f"users/{user_id}/quests"


def quest_history_prefix(user_id: str) -> str:
    return f"users/{user_id}/quests/daily/history"


def quest_archive_path(user_id: str, date_key: str) -> str:
    return f"{quest_history_prefix(user_id)}/{date_key}"


@dataclass
class PersistenceResult:
    """
    Outcome of one save or delete

    remote_ok is None when no remote store is configured or the record is
    not kept remotely; local_ok is None when the record is not kept locally.
    """
    record: str
    local_ok: Optional[bool] = None
    remote_ok: Optional[bool] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.local_ok is not False and self.remote_ok is not False


class ProgressionRepository:
    """Remote-first, local-fallback access to a user's progression records"""

    def __init__(self, local: LocalKeyValueStore, remote: Optional[DocumentStore] = None):
        self.local = local
        self.remote = remote

    # ------------------------------------------
    # Write plumbing
    # ------------------------------------------

    async def _write(
        self,
        record: str,
        local_op: Optional[Callable[[], Awaitable[None]]],
        remote_op: Optional[Callable[[], Awaitable[None]]]
    ) -> PersistenceResult:
        result = PersistenceResult(record=record)

        if local_op is not None:
            try:
                await local_op()
                result.local_ok = True
            except Exception as e:
                logger.error(f"Local write of {record} failed: {e}")
                record_persistence_failure(record, "local")
                result.local_ok = False
                result.error = e

        if remote_op is not None and self.remote is not None:
            try:
                await remote_op()
                result.remote_ok = True
                logger.debug(f"{record} saved to remote store")
            except Exception as e:
                logger.error(f"Remote write of {record} failed: {e}")
                record_persistence_failure(record, "remote")
                result.remote_ok = False
                result.error = e

        return result

    # ------------------------------------------
    # Capability profile + user progress
    # ------------------------------------------

    async def _load_remote_quest_state(self, user_id: str) -> Optional[QuestState]:
        if self.remote is None:
            return None
        document = await self.remote.get(user_path(user_id))
        if document is None:
            return None

        profile = progress = None
        if isinstance(document.get("capabilityProfile"), dict):
            profile = decode_capability_profile(document["capabilityProfile"])
        if isinstance(document.get("userProgress"), dict):
            progress = decode_user_progress(document["userProgress"])
        if profile is None and progress is None:
            return None
        return profile, progress

    async def _load_local_quest_state(self, user_id: str) -> Optional[QuestState]:
        profile = load_model(CapabilityProfile, await self.local.get(user_id, CAPABILITY_PROFILE_KEY))
        progress = load_model(UserProgress, await self.local.get(user_id, USER_PROGRESS_KEY))
        if profile is None and progress is None:
            return None
        return profile, progress

    async def load_quest_state(self, user_id: str) -> QuestState:
        """
        (profile, progress) for user_id; either may be None

        A profile is only returned if the user completed an assessment.
        Never raises.
        """
        strategies = [
            FallbackStrategy("remote", self._load_remote_quest_state, priority=1),
            FallbackStrategy("local", self._load_local_quest_state, priority=2),
        ]
        try:
            state = await execute_with_fallbacks(strategies, user_id)
        except Exception as e:
            logger.error(f"Could not load quest state for {user_id}: {e}")
            state = None
        return state or (None, None)

    async def save_quest_state(
        self,
        user_id: str,
        profile: Optional[CapabilityProfile],
        progress: UserProgress,
        now: datetime
    ) -> PersistenceResult:
        """Write profile (if assessed) and progress locally and remotely"""
        async def local_op():
            if profile is not None:
                await self.local.set(user_id, CAPABILITY_PROFILE_KEY, dump_model(profile))
            await self.local.set(user_id, USER_PROGRESS_KEY, dump_model(progress))

        async def remote_op():
            data = {
                "userProgress": encode_user_progress(progress),
                "lastUpdated": encode_timestamp(now),
            }
            if profile is not None:
                data["capabilityProfile"] = encode_capability_profile(profile)
            await self.remote.set(user_path(user_id), data, merge=True)

        return await self._write("quest_state", local_op, remote_op)

    async def clear_quest_state(self, user_id: str) -> PersistenceResult:
        """Delete profile, progress and every quest archive"""
        async def local_op():
            await self.local.remove(user_id, CAPABILITY_PROFILE_KEY)
            await self.local.remove(user_id, USER_PROGRESS_KEY)
            await self.local.remove(user_id, DAILY_QUESTS_KEY)

        async def remote_op():
            await self.remote.delete_fields(user_path(user_id), ["capabilityProfile", "userProgress"])
            deleted = await self.remote.delete_prefix(quests_root(user_id))
            logger.info(f"Cleared {deleted} quest documents for {user_id}")

        return await self._write("quest_state", local_op, remote_op)

    # ------------------------------------------
    # Daily quest archive
    # ------------------------------------------

    async def save_daily_quests(self, user_id: str, quests: List[Quest], now: datetime) -> PersistenceResult:
        """
        Store the day's set under today's date

        The local copy only ever holds the latest day; the remote archive
        keeps one document per day.
        """
        if not quests:
            return PersistenceResult(record="daily_quests")

        date_key = format_date_key(now)

        async def local_op():
            await self.local.set(user_id, DAILY_QUESTS_KEY, {
                "date": date_key,
                "quests": [dump_model(q) for q in quests],
            })

        async def remote_op():
            await self.remote.set(quest_archive_path(user_id, date_key), build_daily_archive(quests, now))
            logger.info(f"Daily quests saved for {date_key}")

        return await self._write("daily_quests", local_op, remote_op)

    async def _load_remote_daily_quests(self, user_id: str, date_key: str) -> Optional[List[Quest]]:
        if self.remote is None:
            return None
        document = await self.remote.get(quest_archive_path(user_id, date_key))
        return decode_daily_archive(document) or None

    async def _load_local_daily_quests(self, user_id: str, date_key: str) -> Optional[List[Quest]]:
        payload = await self.local.get(user_id, DAILY_QUESTS_KEY)
        if not isinstance(payload, dict) or payload.get("date") != date_key:
            return None
        raw_quests = payload.get("quests")
        if not isinstance(raw_quests, list):
            return None
        quests = [q for q in (load_model(Quest, raw) for raw in raw_quests) if q is not None]
        return quests or None

    async def load_daily_quests(self, user_id: str, date_key: str) -> List[Quest]:
        """Stored quests for date_key; empty when absent everywhere"""
        strategies = [
            FallbackStrategy("remote", self._load_remote_daily_quests, priority=1),
            FallbackStrategy("local", self._load_local_daily_quests, priority=2),
        ]
        try:
            quests = await execute_with_fallbacks(strategies, user_id, date_key)
        except Exception as e:
            logger.error(f"Error loading daily quests for {date_key}: {e}")
            quests = None
        if quests:
            logger.info(f"Loaded {len(quests)} daily quests for {date_key}")
        return quests or []

    async def load_quest_history(self, user_id: str, since_key: str) -> Dict[str, bool]:
        """date key -> allCompleted for archives dated since_key or later"""
        if self.remote is None:
            return {}
        try:
            documents = await self.remote.list_documents(quest_history_prefix(user_id))
        except Exception as e:
            logger.error(f"Error loading quest history: {e}")
            return {}

        history = {}
        for _path, document in documents:
            date_key = document.get("date")
            all_completed = document.get("allCompleted")
            if isinstance(date_key, str) and isinstance(all_completed, bool) and date_key >= since_key:
                history[date_key] = all_completed
        return history

    # ------------------------------------------
    # Streak ledger
    # ------------------------------------------

    async def _load_remote_streaks(self, user_id: str) -> Optional[StreakData]:
        if self.remote is None:
            return None
        document = await self.remote.get(streak_path(user_id))
        return decode_streak_data(document) if document is not None else None

    async def _load_local_streaks(self, user_id: str) -> Optional[StreakData]:
        return load_model(StreakData, await self.local.get(user_id, STREAK_DATA_KEY))

    async def load_streak_data(self, user_id: str) -> StreakData:
        """Streak ledger, or an empty one; never raises"""
        strategies = [
            FallbackStrategy("remote", self._load_remote_streaks, priority=1),
            FallbackStrategy("local", self._load_local_streaks, priority=2),
        ]
        try:
            streak = await execute_with_fallbacks(strategies, user_id)
        except Exception as e:
            logger.error(f"Could not load streak data for {user_id}: {e}")
            streak = None
        return streak or StreakData()

    async def save_streak_data(self, user_id: str, streak: StreakData, now: datetime) -> PersistenceResult:
        async def local_op():
            await self.local.set(user_id, STREAK_DATA_KEY, dump_model(streak))

        async def remote_op():
            data = encode_streak_data(streak)
            data["lastUpdated"] = encode_timestamp(now)
            await self.remote.set(streak_path(user_id), data)

        return await self._write("streaks", local_op, remote_op)

    async def clear_streak_data(self, user_id: str) -> PersistenceResult:
        async def local_op():
            await self.local.remove(user_id, STREAK_DATA_KEY)

        async def remote_op():
            await self.remote.delete(streak_path(user_id))

        return await self._write("streaks", local_op, remote_op)
