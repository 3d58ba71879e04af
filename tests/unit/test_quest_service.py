"""Unit tests for QuestService (assessment, daily quests, workouts, readiness)"""
import random
import pytest
from datetime import datetime, timezone

from calinode.gamification.quest_catalog import START_YOUR_JOURNEY, TAKE_THE_ASSESSMENT
from calinode.gamification.readiness import DIP_SUBSTITUTE, MUSCLE_UP, PULL_UP
from calinode.models.profile import FitnessLevel
from calinode.models.quest import QuestDifficulty
from calinode.services.container import ServiceContainer
from calinode.services.progression_repository import quest_archive_path, user_path


def reopen(container):
    """A fresh container over the same stores and clock (simulates an app restart)"""
    return ServiceContainer(
        user_id=container.user_id,
        local_store=container.local_store,
        remote_store=container.remote_store,
        clock=container.clock,
        rng=random.Random(7),
    )


@pytest.fixture
async def assessed_service(quest_service):
    await quest_service.load()
    await quest_service.complete_assessment(push_ups=20, pull_ups=5, plank_seconds=60, squats=30)
    return quest_service


# ============================================================================
# Onboarding Tests
# ============================================================================

class TestOnboarding:

    @pytest.mark.asyncio
    async def test_new_user_gets_onboarding_set(self, quest_service):
        quests = await quest_service.load()

        assert quest_service.has_completed_assessment is False
        assert [q.title for q in quests] == [START_YOUR_JOURNEY, TAKE_THE_ASSESSMENT]
        assert quest_service.total_quests_today == 2
        assert quest_service.completed_quests_today == 0

    @pytest.mark.asyncio
    async def test_onboarding_set_is_archived(self, quest_service, memory_store, test_user_id):
        await quest_service.load()

        archive = await memory_store.get(quest_archive_path(test_user_id, "2024-06-15"))
        assert archive["totalCount"] == 2
        assert archive["allCompleted"] is False

    @pytest.mark.asyncio
    async def test_first_workout_completes_start_your_journey(self, quest_service, make_workout):
        await quest_service.load()

        result = await quest_service.update_quest_progress(make_workout(minutes=5))

        assert [q.title for q in result.completed] == [START_YOUR_JOURNEY]
        assert result.xp_awarded == 50
        assert result.coins_awarded == 10
        assert quest_service.progress.total_xp == 50
        assert quest_service.progress.cali_coins == 10
        assessment = quest_service.daily_quests[1]
        assert assessment.is_completed is False
        assert quest_service.progress.all_quests_completed_today is False

    @pytest.mark.asyncio
    async def test_first_workout_starts_workout_streak(self, quest_service, make_workout):
        await quest_service.load()

        await quest_service.update_quest_progress(make_workout())

        streaks = quest_service.streak_service.streak_data
        assert streaks.current_workout_streak == 1
        assert streaks.current_quest_streak == 0
        assert quest_service.progress.current_streak == 1
        assert quest_service.progress.longest_streak == 1
        assert quest_service.progress.last_workout_date == streaks.last_workout_date

    @pytest.mark.asyncio
    async def test_unfinished_workout_changes_nothing(self, quest_service, make_workout):
        await quest_service.load()

        result = await quest_service.update_quest_progress(make_workout(finished=False))

        assert result.completed == []
        assert quest_service.streak_service.streak_data.workout_dates == []


# ============================================================================
# Assessment Tests
# ============================================================================

class TestAssessment:

    @pytest.mark.asyncio
    async def test_assessment_completes_onboarding_quest_and_regenerates(self, quest_service, make_workout):
        await quest_service.load()
        await quest_service.update_quest_progress(make_workout())

        profile = await quest_service.complete_assessment(20, 5, 60, 30)

        assert profile.fitness_level == FitnessLevel.INTERMEDIATE
        assert quest_service.has_completed_assessment is True
        # 50/10 from the workout + 100/25 from the assessment quest
        assert quest_service.progress.total_xp == 150
        assert quest_service.progress.cali_coins == 35
        assert quest_service.streak_service.streak_data.current_quest_streak == 1
        assert [q.difficulty for q in quest_service.daily_quests] == [
            QuestDifficulty.STARTER,
            QuestDifficulty.CHALLENGER,
            QuestDifficulty.BEAST_MODE,
        ]
        # Regeneration clears the daily completion flags
        assert quest_service.progress.all_quests_completed_today is False
        assert quest_service.progress.show_tomorrow_preview is False

    @pytest.mark.asyncio
    async def test_tiered_targets_follow_profile(self, assessed_service):
        challenger, beast = assessed_service.daily_quests[1:]

        assert challenger.target_value == 12
        assert beast.target_value == 22

    @pytest.mark.asyncio
    async def test_assessment_is_persisted(self, assessed_service, memory_store, test_user_id):
        document = await memory_store.get(user_path(test_user_id))

        assert document["capabilityProfile"]["maxPushUps"] == 20
        assert document["capabilityProfile"]["fitnessLevel"] == "intermediate"
        assert document["userProgress"]["totalXP"] == 100

    @pytest.mark.asyncio
    async def test_negative_input_is_accepted(self, quest_service):
        await quest_service.load()

        profile = await quest_service.complete_assessment(-3, 0, -10, 0)

        assert profile.max_push_ups == 0
        assert profile.fitness_level == FitnessLevel.BEGINNER
        assert [q.title for q in quest_service.daily_quests[1:]] == ["Workout Strong", "Epic Session"]

    @pytest.mark.asyncio
    async def test_reassessment_rescales_open_quests(self, assessed_service):
        starter_id = assessed_service.daily_quests[0].id

        profile = await assessed_service.complete_assessment(50, 12, 130, 60)

        assert profile.fitness_level == FitnessLevel.ADVANCED
        challenger, beast = assessed_service.daily_quests[1:]
        assert challenger.target_value == 32
        assert beast.target_value == 55
        assert assessed_service.daily_quests[0].id != starter_id

    @pytest.mark.asyncio
    async def test_reassessment_keeps_completed_quests(self, assessed_service, memory_store, test_user_id):
        challenger = assessed_service.daily_quests[1]
        challenger.progress = challenger.target_value
        challenger.is_completed = True

        await assessed_service.complete_assessment(50, 12, 130, 60)

        kept, beast = assessed_service.daily_quests[1:]
        assert kept.id == challenger.id
        assert kept.target_value == 12
        assert kept.is_completed is True
        assert beast.target_value == 55
        archive = await memory_store.get(quest_archive_path(test_user_id, "2024-06-15"))
        assert [q["targetValue"] for q in archive["quests"][1:]] == [12, 55]


# ============================================================================
# Regeneration Tests
# ============================================================================

class TestRegeneration:

    @pytest.mark.asyncio
    async def test_same_day_regeneration_reuses_set(self, assessed_service):
        first_ids = [q.id for q in assessed_service.daily_quests]

        await assessed_service.generate_daily_quests()
        await assessed_service.refresh_available_quests()

        assert [q.id for q in assessed_service.daily_quests] == first_ids

    @pytest.mark.asyncio
    async def test_next_day_generates_fresh_set(self, assessed_service, clock):
        first_ids = {q.id for q in assessed_service.daily_quests}
        assessed_service.progress.all_quests_completed_today = True
        assessed_service.progress.show_tomorrow_preview = True

        clock.advance(days=1)
        quests = await assessed_service.generate_daily_quests()

        assert len(quests) == 3
        assert first_ids.isdisjoint({q.id for q in quests})
        assert assessed_service.progress.all_quests_completed_today is False
        assert assessed_service.progress.show_tomorrow_preview is False

    @pytest.mark.asyncio
    async def test_force_regenerates(self, assessed_service):
        first_ids = {q.id for q in assessed_service.daily_quests}

        quests = await assessed_service.generate_daily_quests(force=True)

        assert first_ids.isdisjoint({q.id for q in quests})

    @pytest.mark.asyncio
    async def test_restart_restores_todays_archive(self, container, make_workout):
        service = container.quest_service
        await service.load()
        await service.update_quest_progress(make_workout())
        ids = [q.id for q in service.daily_quests]

        restarted = reopen(container).quest_service
        quests = await restarted.load()

        assert [q.id for q in quests] == ids
        assert quests[0].is_completed is True
        assert restarted.progress.total_xp == 50
        assert restarted.streak_service.streak_data.current_workout_streak == 1

    @pytest.mark.asyncio
    async def test_restart_keeps_assessment(self, container):
        await container.quest_service.load()
        await container.quest_service.complete_assessment(30, 10, 120, 50)

        restarted = reopen(container).quest_service
        await restarted.load()

        assert restarted.has_completed_assessment is True
        assert restarted.profile.fitness_level == FitnessLevel.ADVANCED
        assert len(restarted.daily_quests) == 3


# ============================================================================
# Workout Progress Tests
# ============================================================================

class TestWorkoutProgress:

    @pytest.mark.asyncio
    async def test_partial_day(self, assessed_service, make_workout):
        result = await assessed_service.update_quest_progress(make_workout(push_ups=[12]))

        # Starter (any finished 10 minute workout) and challenger (12 push-ups)
        assert len(result.completed) == 2
        assert result.xp_awarded == 150
        assert result.all_completed_now is False
        assert assessed_service.completed_quests_today == 2

    @pytest.mark.asyncio
    async def test_all_quests_in_one_workout(self, assessed_service, make_workout):
        xp_before = assessed_service.progress.total_xp

        result = await assessed_service.update_quest_progress(make_workout(push_ups=[12, 11]))

        assert len(result.completed) == 3
        assert result.all_completed_now is True
        assert result.personal_best_raised is True
        assert assessed_service.profile.max_push_ups == 23
        assert assessed_service.progress.total_xp == xp_before + 350
        assert assessed_service.progress.all_quests_completed_today is True
        assert assessed_service.progress.show_tomorrow_preview is True
        assert assessed_service.streak_service.streak_data.current_quest_streak == 1

    @pytest.mark.asyncio
    async def test_same_workout_twice_awards_once(self, assessed_service, make_workout):
        workout = make_workout(push_ups=[12, 11])

        await assessed_service.update_quest_progress(workout)
        xp = assessed_service.progress.total_xp
        coins = assessed_service.progress.cali_coins
        completed_ids = list(assessed_service.progress.completed_quests)

        result = await assessed_service.update_quest_progress(workout)

        assert result.completed == []
        assert assessed_service.progress.total_xp == xp
        assert assessed_service.progress.cali_coins == coins
        assert assessed_service.progress.completed_quests == completed_ids

    @pytest.mark.asyncio
    async def test_archive_tracks_completion(self, assessed_service, make_workout, memory_store, test_user_id):
        await assessed_service.update_quest_progress(make_workout(push_ups=[12, 11]))

        archive = await memory_store.get(quest_archive_path(test_user_id, "2024-06-15"))
        assert archive["allCompleted"] is True
        assert archive["completedCount"] == 3

        history = await assessed_service.load_quest_history(days=30)
        assert history == {"2024-06-15": True}

    @pytest.mark.asyncio
    async def test_workout_across_midnight_counts_for_start_day(self, quest_service, clock, make_workout):
        await quest_service.load()
        clock.now = datetime(2024, 6, 16, 0, 15, tzinfo=timezone.utc)

        await quest_service.update_quest_progress(
            make_workout(end=datetime(2024, 6, 16, 0, 10, tzinfo=timezone.utc), minutes=30)
        )

        assert quest_service.streak_service.streak_data.workout_dates == ["2024-06-15"]
        assert quest_service.progress.current_streak == 1

    @pytest.mark.asyncio
    async def test_load_refreshes_stale_streak_in_progress(self, container, make_workout, clock):
        service = container.quest_service
        await service.load()
        await service.update_quest_progress(make_workout())
        assert service.progress.current_streak == 1

        clock.advance(days=3)
        restarted = reopen(container).quest_service
        await restarted.load()

        assert restarted.progress.current_streak == 0
        assert restarted.progress.longest_streak == 1


# ============================================================================
# Readiness Test Tests
# ============================================================================

class TestReadiness:

    async def _train(self, service, make_workout, pull_ups=8, dips=15, times=5):
        for _ in range(times):
            await service.update_quest_progress(
                make_workout(extra={PULL_UP: [pull_ups], DIP_SUBSTITUTE: [dips]})
            )

    @pytest.mark.asyncio
    async def test_test_offered_after_five_strong_workouts(self, quest_service, make_workout):
        await quest_service.load()

        await self._train(quest_service, make_workout, times=4)
        assert quest_service.progress.available_readiness_tests == []

        await self._train(quest_service, make_workout, times=1)
        tests = quest_service.progress.available_readiness_tests
        assert [t.target_skill_id for t in tests] == [MUSCLE_UP]

    @pytest.mark.asyncio
    async def test_weak_workouts_do_not_unlock(self, quest_service, make_workout):
        await quest_service.load()

        await self._train(quest_service, make_workout, pull_ups=7)

        assert quest_service.progress.available_readiness_tests == []

    @pytest.mark.asyncio
    async def test_passing_attempt_unlocks_skill(self, quest_service, make_workout, memory_store, test_user_id):
        await quest_service.load()
        await self._train(quest_service, make_workout)
        test = quest_service.progress.available_readiness_tests[0]

        passed = await quest_service.complete_readiness_test(test, {PULL_UP: 10, DIP_SUBSTITUTE: 20})

        assert passed is True
        assert quest_service.progress.completed_readiness_tests == [MUSCLE_UP]
        assert quest_service.progress.available_readiness_tests == []
        document = await memory_store.get(user_path(test_user_id))
        assert document["userProgress"]["completedReadinessTests"] == [MUSCLE_UP]

    @pytest.mark.asyncio
    async def test_failed_attempt_keeps_test(self, quest_service, make_workout):
        await quest_service.load()
        await self._train(quest_service, make_workout)
        test = quest_service.progress.available_readiness_tests[0]

        passed = await quest_service.complete_readiness_test(test, {PULL_UP: 10})

        assert passed is False
        assert len(quest_service.progress.available_readiness_tests) == 1
        assert quest_service.progress.completed_readiness_tests == []

    @pytest.mark.asyncio
    async def test_unlocked_skill_is_not_offered_again(self, quest_service, make_workout):
        await quest_service.load()
        await self._train(quest_service, make_workout)
        test = quest_service.progress.available_readiness_tests[0]
        await quest_service.complete_readiness_test(test, {PULL_UP: 12, DIP_SUBSTITUTE: 25})

        await self._train(quest_service, make_workout)

        assert quest_service.progress.available_readiness_tests == []


# ============================================================================
# Persistence Degradation & Reset Tests
# ============================================================================

class TestDegradedPersistence:

    @pytest.mark.asyncio
    async def test_remote_outage_keeps_working_on_local(self, local_store, failing_store, clock, make_workout, test_user_id):
        container = ServiceContainer(
            user_id=test_user_id,
            local_store=local_store,
            remote_store=failing_store,
            clock=clock,
            rng=random.Random(7),
        )
        service = container.quest_service

        await service.load()
        result = await service.update_quest_progress(make_workout())

        assert result.xp_awarded == 50
        assert service.last_save.local_ok is True
        assert service.last_save.remote_ok is False

        restarted = reopen(container).quest_service
        await restarted.load()
        assert restarted.progress.total_xp == 50

    @pytest.mark.asyncio
    async def test_runs_without_remote_store(self, local_store, clock, make_workout, test_user_id):
        container = ServiceContainer(user_id=test_user_id, local_store=local_store, clock=clock)
        service = container.quest_service

        await service.load()
        await service.update_quest_progress(make_workout())

        assert service.last_save.success is True
        assert service.last_save.remote_ok is None
        assert service.progress.total_xp == 50

    @pytest.mark.asyncio
    async def test_offline_restart_does_not_pay_twice(self, local_store, clock, make_workout, test_user_id):
        container = ServiceContainer(user_id=test_user_id, local_store=local_store, clock=clock)
        service = container.quest_service
        await service.load()
        await service.update_quest_progress(make_workout())
        ids = [q.id for q in service.daily_quests]

        restarted = reopen(container).quest_service
        quests = await restarted.load()
        result = await restarted.update_quest_progress(make_workout())

        assert [q.id for q in quests] == ids
        assert result.completed == []
        assert restarted.progress.total_xp == 50

    @pytest.mark.asyncio
    async def test_outage_restart_does_not_pay_twice(self, local_store, failing_store, clock, make_workout, test_user_id):
        container = ServiceContainer(
            user_id=test_user_id,
            local_store=local_store,
            remote_store=failing_store,
            clock=clock,
            rng=random.Random(7),
        )
        service = container.quest_service
        await service.load()
        await service.update_quest_progress(make_workout())

        restarted = reopen(container).quest_service
        await restarted.load()
        await restarted.update_quest_progress(make_workout())

        assert restarted.progress.total_xp == 50
        assert restarted.daily_quests[0].is_completed is True


class TestReset:

    @pytest.mark.asyncio
    async def test_reset_all_quests(self, container, assessed_service, memory_store, test_user_id):
        result = await assessed_service.reset_all_quests()

        assert result.success is True
        assert assessed_service.daily_quests == []
        assert assessed_service.has_completed_assessment is False
        assert assessed_service.progress.total_xp == 0
        assert await memory_store.get(quest_archive_path(test_user_id, "2024-06-15")) is None

        restarted = reopen(container).quest_service
        quests = await restarted.load()
        assert restarted.has_completed_assessment is False
        assert [q.title for q in quests] == [START_YOUR_JOURNEY, TAKE_THE_ASSESSMENT]
