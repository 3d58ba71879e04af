"""Unit tests for quest progress tracking (calinode/gamification/quest_tracker.py)"""
import pytest
from datetime import datetime, timezone

from calinode.gamification.quest_catalog import generate_onboarding_quests
from calinode.gamification.quest_tracker import (
    apply_workout,
    check_all_completed,
    complete_quest,
    compute_quest_progress,
    update_success_rate,
)
from calinode.models.profile import CapabilityProfile
from calinode.models.progress import UserProgress
from calinode.models.quest import Quest, QuestDifficulty, QuestType


NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_quest(quest_type=QuestType.REPS_BASED, target=10, xp=100, coins=20, difficulty=QuestDifficulty.CHALLENGER):
    return Quest(
        title="Test quest",
        description="",
        emoji="🔥",
        type=quest_type,
        difficulty=difficulty,
        target_value=target,
        xp_reward=xp,
        coin_reward=coins,
        created_at=NOW,
    )


# ============================================================================
# Progress Computation Tests
# ============================================================================

class TestComputeQuestProgress:

    def test_workout_completion_counts_finished_workout(self, make_workout):
        quest = make_quest(QuestType.WORKOUT_COMPLETION, target=1)

        assert compute_quest_progress(quest, make_workout()) == 1

    def test_workout_completion_ignores_unfinished_workout(self, make_workout):
        quest = make_quest(QuestType.WORKOUT_COMPLETION, target=1)

        assert compute_quest_progress(quest, make_workout(finished=False)) is None

    def test_assessment_quest_is_not_completed_by_workouts(self, make_workout):
        assessment = generate_onboarding_quests(NOW)[1]

        assert compute_quest_progress(assessment, make_workout()) is None

    def test_time_based_uses_whole_seconds(self, make_workout):
        quest = make_quest(QuestType.TIME_BASED, target=900)

        assert compute_quest_progress(quest, make_workout(minutes=16)) == 960

    def test_reps_sum_push_ups_across_sets(self, make_workout):
        quest = make_quest(QuestType.REPS_BASED)
        workout = make_workout(push_ups=[5, 4, 3], extra={"pull_up": [10]})

        assert compute_quest_progress(quest, workout) == 12

    def test_consistency_is_untouched(self, make_workout):
        quest = make_quest(QuestType.CONSISTENCY, target=3)

        assert compute_quest_progress(quest, make_workout()) is None


# ============================================================================
# Completion Tests
# ============================================================================

class TestCompleteQuest:

    def test_awards_rewards_once(self):
        quest = make_quest(xp=100, coins=20)
        progress = UserProgress()

        assert complete_quest(quest, progress) is True
        assert complete_quest(quest, progress) is False

        assert progress.total_xp == 100
        assert progress.cali_coins == 20
        assert progress.completed_quests == [quest.id]
        assert quest.is_completed is True

    def test_success_rate_uses_last_ten_slots(self):
        progress = UserProgress()
        for _ in range(3):
            complete_quest(make_quest(), progress)

        assert progress.quest_success_rate == pytest.approx(0.3)

        for _ in range(12):
            complete_quest(make_quest(), progress)

        assert progress.quest_success_rate == pytest.approx(1.0)

    def test_completed_ids_are_capped(self):
        progress = UserProgress()
        quests = [make_quest() for _ in range(15)]
        for quest in quests:
            complete_quest(quest, progress, max_ids=10)

        assert len(progress.completed_quests) == 10
        assert progress.completed_quests == [q.id for q in quests[-10:]]

    def test_update_success_rate_empty(self):
        progress = UserProgress()
        update_success_rate(progress)

        assert progress.quest_success_rate == 0.0


class TestCheckAllCompleted:

    def test_flags_set_on_first_transition_only(self):
        quests = [make_quest(), make_quest()]
        progress = UserProgress()
        for quest in quests:
            quest.is_completed = True

        assert check_all_completed(quests, progress) is True
        assert progress.all_quests_completed_today is True
        assert progress.show_tomorrow_preview is True
        assert check_all_completed(quests, progress) is False

    def test_partial_set_does_nothing(self):
        quests = [make_quest(), make_quest()]
        quests[0].is_completed = True
        progress = UserProgress()

        assert check_all_completed(quests, progress) is False
        assert progress.all_quests_completed_today is False

    def test_empty_set_is_never_complete(self):
        assert check_all_completed([], UserProgress()) is False


# ============================================================================
# Workout Application Tests
# ============================================================================

class TestApplyWorkout:

    def test_partial_progress_does_not_complete(self, make_workout):
        quest = make_quest(QuestType.REPS_BASED, target=12)
        progress = UserProgress()

        result = apply_workout([quest], make_workout(push_ups=[5, 5]), progress, CapabilityProfile())

        assert quest.progress == 10
        assert quest.is_completed is False
        assert result.completed == []
        assert progress.total_xp == 0

    def test_progress_is_recomputed_not_accumulated(self, make_workout):
        quest = make_quest(QuestType.REPS_BASED, target=12)
        progress = UserProgress()

        apply_workout([quest], make_workout(push_ups=[6]), progress, CapabilityProfile())
        apply_workout([quest], make_workout(push_ups=[7]), progress, CapabilityProfile())

        assert quest.progress == 7
        assert quest.is_completed is False

    def test_completes_all_quests_in_one_workout(self, make_workout):
        quests = [
            make_quest(QuestType.WORKOUT_COMPLETION, target=1, xp=50, coins=10),
            make_quest(QuestType.REPS_BASED, target=12, xp=100, coins=20),
        ]
        progress = UserProgress()

        result = apply_workout(quests, make_workout(push_ups=[12]), progress, CapabilityProfile())

        assert len(result.completed) == 2
        assert result.xp_awarded == 150
        assert result.coins_awarded == 30
        assert result.all_completed_now is True
        assert progress.all_quests_completed_today is True

    def test_improvement_raises_personal_best(self, make_workout):
        quest = make_quest(QuestType.IMPROVEMENT, target=22, difficulty=QuestDifficulty.BEAST_MODE)
        profile = CapabilityProfile(max_push_ups=20)

        result = apply_workout([quest], make_workout(push_ups=[15, 10]), UserProgress(), profile)

        assert quest.is_completed is True
        assert profile.max_push_ups == 25
        assert result.personal_best_raised is True

    def test_completed_quests_are_skipped(self, make_workout):
        quest = make_quest(QuestType.WORKOUT_COMPLETION, target=1)
        progress = UserProgress()

        apply_workout([quest], make_workout(), progress, CapabilityProfile())
        result = apply_workout([quest], make_workout(), progress, CapabilityProfile())

        assert result.completed == []
        assert progress.total_xp == 100
