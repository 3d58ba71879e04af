"""Command-line entry point for the CaliNode progression engine"""
import argparse
import asyncio
import logging
from datetime import timedelta
from typing import List, Optional

from calinode.config import validate_config, LOG_LEVEL, ENABLE_REMOTE_STORE, DATA_PATH
from calinode.db import Database, LocalKeyValueStore, PostgresDocumentStore
from calinode.gamification.quest_catalog import PUSH_UP_EXERCISE_ID
from calinode.models.workout import ActiveWorkout, WorkoutExercise, WorkoutSet
from calinode.services.container import ServiceContainer
from calinode.utils.datetime_helpers import now_user_timezone

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="calinode", description="Calisthenics quest and streak engine")
    parser.add_argument("--user", required=True, help="User id")
    commands = parser.add_subparsers(dest="command", required=True)

    assess = commands.add_parser("assess", help="Record a capability assessment")
    assess.add_argument("--push-ups", type=int, default=0)
    assess.add_argument("--pull-ups", type=int, default=0)
    assess.add_argument("--plank", type=int, default=0, help="Plank hold in seconds")
    assess.add_argument("--squats", type=int, default=0)

    commands.add_parser("quests", help="Show today's quests")

    workout = commands.add_parser("workout", help="Log a finished push-up workout")
    workout.add_argument("--push-ups", type=int, nargs="+", default=[], help="Reps per set")
    workout.add_argument("--minutes", type=int, default=10)

    commands.add_parser("status", help="Show progress and streaks")
    commands.add_parser("reset", help="Delete all quest and streak data for the user")
    return parser


def build_workout(push_up_sets: List[int], minutes: int) -> ActiveWorkout:
    end = now_user_timezone()
    return ActiveWorkout(
        name="Logged workout",
        exercises=[
            WorkoutExercise(
                exercise_id=PUSH_UP_EXERCISE_ID,
                sets=[WorkoutSet(reps=reps, is_completed=True) for reps in push_up_sets],
            )
        ] if push_up_sets else [],
        start_time=end - timedelta(minutes=minutes),
        end_time=end,
    )


async def run(args: argparse.Namespace) -> None:
    database: Optional[Database] = None
    remote = None

    try:
        validate_config()

        if ENABLE_REMOTE_STORE:
            logger.info("Initializing database connection pool...")
            database = Database()
            await database.init_pool()
            remote = PostgresDocumentStore(database)
            await remote.ensure_schema()

        container = ServiceContainer(
            user_id=args.user,
            local_store=LocalKeyValueStore(DATA_PATH),
            remote_store=remote,
        )
        quests = container.quest_service
        streaks = container.streak_service

        if args.command == "reset":
            await quests.reset_all_quests()
            await streaks.reset_all_streaks()
            logger.info(f"Reset complete for {args.user}")
            return

        await quests.load()

        if args.command == "assess":
            profile = await quests.complete_assessment(args.push_ups, args.pull_ups, args.plank, args.squats)
            logger.info(f"Fitness level: {profile.fitness_level.emoji} {profile.fitness_level.display_title}")

        elif args.command == "workout":
            result = await quests.update_quest_progress(build_workout(args.push_ups, args.minutes))
            logger.info(
                f"Completed {len(result.completed)} quests "
                f"(+{result.xp_awarded} XP, +{result.coins_awarded} coins)"
            )

        elif args.command == "status":
            progress = quests.progress
            logger.info(f"XP: {progress.total_xp}  Coins: {progress.cali_coins}")
            logger.info(f"Quest success rate: {progress.quest_success_rate:.0%}")
            logger.info(streaks.format_display())
            for test in progress.available_readiness_tests:
                logger.info(f"Readiness test available: {test.test_title}")

        for quest in quests.daily_quests:
            mark = "x" if quest.is_completed else " "
            logger.info(
                f"[{mark}] {quest.emoji} {quest.title} ({quest.difficulty.display_title}) "
                f"{quest.progress}/{quest.target_value}"
            )
        logger.info(f"{quests.completed_quests_today}/{quests.total_quests_today} quests completed today")

    finally:
        if database is not None:
            await database.close_pool()


def main() -> None:
    """Main application entry point"""
    args = build_parser().parse_args()
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
