"""
QuestService - Quest & Progression Business Logic

Orchestrates one user's progression state: capability assessment, the daily
quest set, workout-driven quest progress, rewards, readiness tests and the
streak ledger. Rule logic lives in calinode.gamification; this service owns
the state and decides when to persist it.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from calinode.gamification.assessment import build_assessed_profile
from calinode.gamification.quest_catalog import (
    generate_onboarding_quests,
    generate_tiered_quests,
    is_onboarding_set,
)
from calinode.gamification.quest_tracker import (
    QuestUpdateResult,
    apply_completion,
    apply_workout,
)
from calinode.gamification.readiness import (
    detect_new_tests,
    grade_readiness_test,
    mark_test_passed,
    record_failed_attempt,
    record_workout_performance,
)
from calinode.models.profile import CapabilityProfile
from calinode.models.progress import SkillReadinessTest, UserProgress
from calinode.models.quest import Quest, QuestAction
from calinode.models.workout import ActiveWorkout
from calinode.resilience.metrics import record_readiness_event
from calinode.services.progression_repository import PersistenceResult, ProgressionRepository
from calinode.services.streak_service import StreakService
from calinode.utils.datetime_helpers import format_date_key, is_same_day, now_user_timezone

logger = logging.getLogger(__name__)


class QuestService:
    """
    Service for daily quests and the progression ledger.

    Responsibilities:
    - Capability assessment and profile replacement
    - Daily quest generation and same-day reuse
    - Applying completed workouts to quests (XP, coins, personal bests)
    - Skill readiness test detection and grading
    - Keeping the streak ledger and UserProgress in step
    """

    def __init__(
        self,
        repository: ProgressionRepository,
        streak_service: StreakService,
        user_id: str,
        clock: Callable[[], datetime] = now_user_timezone,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize QuestService.

        Args:
            repository: Persistence for profile, progress and quest archives
            streak_service: Streak ledger for the same user
            user_id: Owner of the progression state
            clock: Returns the current time (injectable for tests)
            rng: Random source for starter quest selection
        """
        self.repository = repository
        self.streak_service = streak_service
        self.user_id = user_id
        self.clock = clock
        self.rng = rng or random.Random()

        self.daily_quests: List[Quest] = []
        self.profile = CapabilityProfile()
        self.progress = UserProgress()
        self.has_completed_assessment = False
        self.last_save: Optional[PersistenceResult] = None
        logger.debug("QuestService initialized")

    # ------------------------------------------
    # Loading & saving
    # ------------------------------------------

    async def load(self) -> List[Quest]:
        """
        Load profile, progress and streaks, then make sure today's quests exist

        Returns:
            Today's quest set
        """
        profile, progress = await self.repository.load_quest_state(self.user_id)
        self.has_completed_assessment = profile is not None
        self.profile = profile or CapabilityProfile()
        self.progress = progress or UserProgress()

        await self.streak_service.load()
        self._mirror_streaks()

        logger.info(
            f"Quest state loaded for {self.user_id}: "
            f"assessed={self.has_completed_assessment}, xp={self.progress.total_xp}"
        )
        return await self.generate_daily_quests()

    async def _save_state(self) -> PersistenceResult:
        self.last_save = await self.repository.save_quest_state(
            self.user_id,
            self.profile if self.has_completed_assessment else None,
            self.progress,
            self.clock(),
        )
        return self.last_save

    async def _save_daily_quests(self) -> PersistenceResult:
        return await self.repository.save_daily_quests(self.user_id, self.daily_quests, self.clock())

    def _mirror_streaks(self) -> None:
        """Copy the workout streak from the ledger into UserProgress"""
        streak = self.streak_service.streak_data
        self.progress.current_streak = streak.current_workout_streak
        self.progress.longest_streak = streak.longest_workout_streak
        self.progress.last_workout_date = streak.last_workout_date

    # ------------------------------------------
    # Assessment
    # ------------------------------------------

    async def complete_assessment(
        self,
        push_ups: int,
        pull_ups: int,
        plank_seconds: int,
        squats: int
    ) -> CapabilityProfile:
        """
        Replace the capability profile from assessment results

        Completes any open assessment quest, persists, and regenerates the
        daily set for the new tier. A same-day re-assessment rescales the
        open quests and keeps the ones already completed. Input is never
        rejected.
        """
        now = self.clock()
        was_assessed = self.has_completed_assessment
        self.profile = build_assessed_profile(
            push_ups, pull_ups, plank_seconds, squats,
            assessed_at=now,
            previous=self.profile,
        )
        self.has_completed_assessment = True
        logger.info(f"Assessment completed: {self.profile.fitness_level.value}")

        result = QuestUpdateResult()
        for quest in self.daily_quests:
            if quest.action == QuestAction.TAKE_ASSESSMENT and not quest.is_completed:
                quest.progress = quest.target_value
                apply_completion(quest, self.daily_quests, self.progress, result)

        if result.all_completed_now:
            await self.streak_service.record_quest_completion(now)
        if result.completed:
            await self._save_daily_quests()

        await self._save_state()
        if was_assessed and self._is_reusable(self.daily_quests, now):
            await self._rescale_open_quests(now)
        else:
            await self.generate_daily_quests()
        return self.profile

    async def _rescale_open_quests(self, now: datetime) -> None:
        """Replace today's open tiered quests with ones sized to the new profile"""
        completed = {q.difficulty: q for q in self.daily_quests if q.is_completed}
        fresh = generate_tiered_quests(self.profile, now, self.rng)
        self.daily_quests = [completed.get(q.difficulty, q) for q in fresh]
        logger.info(f"Rescaled {len(fresh) - len(completed)} open quests after re-assessment")

        await self._save_daily_quests()
        await self._save_state()

    # ------------------------------------------
    # Daily quests
    # ------------------------------------------

    def _is_reusable(self, quests: List[Quest], now: datetime) -> bool:
        """Non-empty, generated today, and of the kind the assessment state calls for"""
        if not quests:
            return False
        if not all(is_same_day(q.generated_at, now) for q in quests):
            return False
        return is_onboarding_set(quests) != self.has_completed_assessment

    async def generate_daily_quests(self, force: bool = False) -> List[Quest]:
        """
        Ensure today's quest set exists

        The in-memory set is kept when reusable; otherwise today's archive is
        tried; only then is a fresh set generated, persisted and the daily
        completion flags reset.
        """
        now = self.clock()

        if not force:
            if self._is_reusable(self.daily_quests, now):
                logger.debug("Reusing today's quests")
                return self.daily_quests

            archived = await self.repository.load_daily_quests(self.user_id, format_date_key(now))
            if self._is_reusable(archived, now):
                self.daily_quests = archived
                logger.info(f"Restored {len(archived)} quests from today's archive")
                return self.daily_quests

        if self.has_completed_assessment:
            self.daily_quests = generate_tiered_quests(self.profile, now, self.rng)
        else:
            self.daily_quests = generate_onboarding_quests(now)
            logger.info("Generated onboarding quests")

        self.progress.all_quests_completed_today = False
        self.progress.show_tomorrow_preview = False

        await self._save_daily_quests()
        await self._save_state()
        return self.daily_quests

    async def refresh_available_quests(self) -> List[Quest]:
        return await self.generate_daily_quests()

    @property
    def completed_quests_today(self) -> int:
        return sum(1 for q in self.daily_quests if q.is_completed)

    @property
    def total_quests_today(self) -> int:
        return len(self.daily_quests)

    async def load_quest_history(self, days: int = 30) -> Dict[str, bool]:
        """date key -> all quests completed, for the trailing `days` days"""
        since = format_date_key(self.clock() - timedelta(days=days))
        history = await self.repository.load_quest_history(self.user_id, since)
        logger.info(f"Loaded quest history for {len(history)} days")
        return history

    # ------------------------------------------
    # Workout events
    # ------------------------------------------

    async def update_quest_progress(self, workout: ActiveWorkout) -> QuestUpdateResult:
        """
        Apply one finished workout

        Readiness detection runs first; then every open quest is recomputed,
        the workout day and (if reached) the all-complete day are recorded
        in the streak ledger, and everything is persisted.
        """
        now = self.clock()
        self.check_for_readiness_tests(workout)

        result = apply_workout(self.daily_quests, workout, self.progress, self.profile)

        if result.all_completed_now:
            await self.streak_service.record_quest_completion(now)
        if workout.is_completed:
            await self.streak_service.record_workout_completion(workout.start_time)
        self._mirror_streaks()

        await self._save_daily_quests()
        await self._save_state()

        if result.completed:
            logger.info(
                f"Workout completed {len(result.completed)} quests "
                f"(+{result.xp_awarded} XP, +{result.coins_awarded} coins)"
            )
        return result

    # ------------------------------------------
    # Readiness tests
    # ------------------------------------------

    def check_for_readiness_tests(self, workout: ActiveWorkout) -> List[SkillReadinessTest]:
        """
        Record the workout's per-exercise maxima and offer newly earned tests

        Changes are persisted by the caller's next save.
        """
        record_workout_performance(self.progress, workout)
        new_tests = detect_new_tests(self.progress, self.clock())
        for test in new_tests:
            record_readiness_event(test.target_skill_id, "unlocked")
        return new_tests

    async def complete_readiness_test(self, test: SkillReadinessTest, results: Dict[str, int]) -> bool:
        """
        Grade a readiness attempt

        Returns:
            True if every requirement was met and the skill is now unlocked
        """
        passed = grade_readiness_test(test, results)

        if passed:
            completed = mark_test_passed(self.progress, test, results, self.clock())
            record_readiness_event(test.target_skill_id, "passed")
            logger.info(f"Readiness test passed: {test.target_skill_name}")
            self._schedule_skill_attempt_reminder(completed)
        else:
            record_failed_attempt(self.progress, test, results)
            record_readiness_event(test.target_skill_id, "failed")
            logger.info(f"Readiness test not passed yet: {test.target_skill_name}")

        await self._save_state()
        return passed

    def _schedule_skill_attempt_reminder(self, test: SkillReadinessTest) -> None:
        # Notification delivery is handled outside the engine
        logger.info(f"Skill attempt reminder requested for {test.target_skill_name} ({self.user_id})")

    # ------------------------------------------
    # Reset
    # ------------------------------------------

    async def reset_all_quests(self) -> PersistenceResult:
        """Wipe profile, progress and quest archives locally and remotely"""
        self.daily_quests = []
        self.profile = CapabilityProfile()
        self.progress = UserProgress()
        self.has_completed_assessment = False

        self.last_save = await self.repository.clear_quest_state(self.user_id)
        logger.info(f"All quest data reset for {self.user_id}")
        return self.last_save
