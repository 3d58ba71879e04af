"""
StreakService - Streak Ledger Business Logic

Owns one user's StreakData, records workout and quest-completion days, and
persists the ledger after every change. Streak arithmetic lives in
calinode.gamification.streak_system.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from calinode.gamification.streak_system import (
    format_streak_display,
    get_monthly_completion_rate,
    get_quest_streak_emoji,
    get_streak_motivation_message,
    get_weekly_stats,
    get_workout_streak_emoji,
    is_streak_active,
    record_quest_day,
    record_workout_day,
    refresh_current_streaks,
)
from calinode.models.streak import StreakData
from calinode.services.progression_repository import PersistenceResult, ProgressionRepository
from calinode.utils.datetime_helpers import now_user_timezone, to_local_date

logger = logging.getLogger(__name__)


class StreakService:
    """
    Service for the workout / quest streak ledger.

    Responsibilities:
    - Recording workout days and quest-completion days
    - Streak liveness checks
    - Weekly and monthly statistics
    - Resets
    """

    def __init__(
        self,
        repository: ProgressionRepository,
        user_id: str,
        clock: Callable[[], datetime] = now_user_timezone
    ):
        """
        Initialize StreakService.

        Args:
            repository: Persistence for the ledger
            user_id: Owner of the ledger
            clock: Returns the current time (injectable for tests)
        """
        self.repository = repository
        self.user_id = user_id
        self.clock = clock
        self.streak_data = StreakData()
        self.last_save: Optional[PersistenceResult] = None
        logger.debug("StreakService initialized")

    def _today(self):
        return to_local_date(self.clock())

    async def load(self) -> StreakData:
        """Load the ledger and recompute current counters against today"""
        self.streak_data = await self.repository.load_streak_data(self.user_id)
        refresh_current_streaks(self.streak_data, self._today())
        logger.info(
            f"Streak data loaded for {self.user_id}: "
            f"workout={self.streak_data.current_workout_streak}, "
            f"quest={self.streak_data.current_quest_streak}"
        )
        return self.streak_data

    async def save(self) -> PersistenceResult:
        self.last_save = await self.repository.save_streak_data(self.user_id, self.streak_data, self.clock())
        return self.last_save

    async def record_workout_completion(self, when: Optional[datetime] = None) -> bool:
        """
        Record a workout day (defaults to now)

        Returns:
            True if the day was new and the ledger changed
        """
        changed = record_workout_day(self.streak_data, when or self.clock(), self._today())
        if changed:
            await self.save()
        return changed

    async def record_quest_completion(self, when: Optional[datetime] = None) -> bool:
        """Record a day on which every daily quest was completed"""
        changed = record_quest_day(self.streak_data, when or self.clock(), self._today())
        if changed:
            await self.save()
        return changed

    # ------------------------------------------
    # Reads
    # ------------------------------------------

    def is_workout_streak_active(self) -> bool:
        return is_streak_active(self.streak_data.last_workout_date, self._today())

    def is_quest_streak_active(self) -> bool:
        return is_streak_active(self.streak_data.last_quest_completion_date, self._today())

    def get_weekly_workout_stats(self) -> List[int]:
        """1/0 per day for the last 7 days, oldest first"""
        return get_weekly_stats(self.streak_data.workout_dates, self._today())

    def get_monthly_completion_rate(self) -> float:
        return get_monthly_completion_rate(self.streak_data.workout_dates, self._today())

    def get_workout_streak_emoji(self) -> str:
        return get_workout_streak_emoji(self.streak_data.current_workout_streak)

    def get_quest_streak_emoji(self) -> str:
        return get_quest_streak_emoji(self.streak_data.current_quest_streak)

    def get_motivation_message(self) -> str:
        return get_streak_motivation_message(
            self.streak_data.current_workout_streak,
            self.streak_data.current_quest_streak,
        )

    def format_display(self) -> str:
        return format_streak_display(self.streak_data)

    # ------------------------------------------
    # Resets
    # ------------------------------------------

    async def reset_all_streaks(self) -> PersistenceResult:
        """Wipe the ledger locally and remotely"""
        self.streak_data = StreakData()
        self.last_save = await self.repository.clear_streak_data(self.user_id)
        logger.info(f"All streaks reset for {self.user_id}")
        return self.last_save

    async def reset_workout_streak(self) -> PersistenceResult:
        self.streak_data.current_workout_streak = 0
        self.streak_data.workout_dates = []
        self.streak_data.last_workout_date = None
        self.streak_data.total_workout_days = 0
        logger.info(f"Workout streak reset for {self.user_id}")
        return await self.save()

    async def reset_quest_streak(self) -> PersistenceResult:
        self.streak_data.current_quest_streak = 0
        self.streak_data.quest_completion_dates = []
        self.streak_data.last_quest_completion_date = None
        self.streak_data.total_quest_completion_days = 0
        logger.info(f"Quest streak reset for {self.user_id}")
        return await self.save()
