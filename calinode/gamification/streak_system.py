"""
Streak Tracking System

Tracks two independent day-sets:
- workout days
- quest-completion days (all daily quests finished)

Days are stored as sorted yyyy-MM-dd strings. Recording the same calendar
day twice is a no-op. The current streak counts consecutive days backward
from today; a streak is still alive if the latest day is yesterday.
"""

from typing import List, Optional
from datetime import date, datetime, timedelta
import logging

from calinode.models.streak import StreakData
from calinode.utils.datetime_helpers import (
    format_date_key,
    parse_date_key,
    start_of_month,
    to_local_date,
)

logger = logging.getLogger(__name__)

WORKOUT = "workout"
QUEST = "quest"


def calculate_streak_from_dates(date_keys: List[str], today: date) -> int:
    """
    Count consecutive days ending today (or yesterday if today is absent)

    Examples (D = today):
        {D-2, D-1, D} -> 3
        {D-5, D}      -> 1
        {D-2, D-1}    -> 2
        {D-3}         -> 0
    """
    days = {d for d in (parse_date_key(k) for k in date_keys) if d is not None}
    if not days:
        return 0

    if today in days:
        cursor = today
    elif today - timedelta(days=1) in days:
        cursor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def _record_day(streak: StreakData, kind: str, when: datetime, today: date) -> bool:
    """Insert the day for kind and recompute its counters; False if already present"""
    key = format_date_key(when)
    dates = streak.workout_dates if kind == WORKOUT else streak.quest_completion_dates

    if key in dates:
        logger.debug(f"{kind.capitalize()} already recorded for {key}")
        return False

    dates.append(key)
    dates.sort()
    current = calculate_streak_from_dates(dates, today)

    if kind == WORKOUT:
        streak.last_workout_date = when
        streak.total_workout_days = len(dates)
        streak.current_workout_streak = current
        streak.longest_workout_streak = max(streak.longest_workout_streak, current)
    else:
        streak.last_quest_completion_date = when
        streak.total_quest_completion_days = len(dates)
        streak.current_quest_streak = current
        streak.longest_quest_streak = max(streak.longest_quest_streak, current)

    logger.info(f"{kind.capitalize()} streak updated: {current} days")
    return True


def record_workout_day(streak: StreakData, when: datetime, today: date) -> bool:
    """Record a workout day; returns False if that day was already recorded"""
    return _record_day(streak, WORKOUT, when, today)


def record_quest_day(streak: StreakData, when: datetime, today: date) -> bool:
    """Record a quest-completion day; returns False if that day was already recorded"""
    return _record_day(streak, QUEST, when, today)


def refresh_current_streaks(streak: StreakData, today: date) -> None:
    """Recompute current counters against today (e.g. after loading on a later day)"""
    streak.current_workout_streak = calculate_streak_from_dates(streak.workout_dates, today)
    streak.current_quest_streak = calculate_streak_from_dates(streak.quest_completion_dates, today)


def is_streak_active(last_date: Optional[datetime], today: date) -> bool:
    """Latest recorded day is today or yesterday"""
    if last_date is None:
        return False
    return 0 <= (today - to_local_date(last_date)).days <= 1


def get_weekly_stats(date_keys: List[str], today: date) -> List[int]:
    """1/0 per day for the trailing 7 days, oldest first"""
    present = set(date_keys)
    return [
        1 if format_date_key(today - timedelta(days=offset)) in present else 0
        for offset in range(6, -1, -1)
    ]


def get_monthly_completion_rate(date_keys: List[str], today: date) -> float:
    """
    Recorded days this month over days elapsed since the 1st

    The numerator includes today; the denominator is max(elapsed, 1).
    """
    first = start_of_month(today)
    elapsed = (today - first).days
    present = set(date_keys)

    days_recorded = sum(
        1 for offset in range(elapsed + 1)
        if format_date_key(first + timedelta(days=offset)) in present
    )
    return days_recorded / float(max(elapsed, 1))


def get_workout_streak_emoji(current: int) -> str:
    """Emoji tier for the workout streak"""
    if current == 0:
        return "🌱"
    if current <= 2:
        return "🔥"
    if current <= 6:
        return "🚀"
    if current <= 13:
        return "⚡"
    if current <= 29:
        return "💎"
    if current <= 99:
        return "👑"
    return "🏆"


def get_quest_streak_emoji(current: int) -> str:
    """Emoji tier for the quest streak"""
    if current == 0:
        return "🎯"
    if current <= 2:
        return "🏹"
    if current <= 6:
        return "🎖️"
    if current <= 13:
        return "🏅"
    if current <= 29:
        return "🥇"
    if current <= 99:
        return "👑"
    return "🏆"


def get_streak_motivation_message(workout_streak: int, quest_streak: int) -> str:
    """Short encouragement based on both streaks"""
    if workout_streak == 0 and quest_streak == 0:
        return "Start your journey today! 🌟"
    if workout_streak >= 7 or quest_streak >= 7:
        return "You're on fire! Keep it up! 🔥"
    if workout_streak >= 3 or quest_streak >= 3:
        return "Great momentum! 🚀"
    return "Building habits one day at a time 💪"


def format_streak_display(streak: StreakData) -> str:
    """
    Format both streaks for display

    Returns:
        Multi-line string
    """
    lines = ["🔥 YOUR STREAKS\n"]

    workout_line = (
        f"{get_workout_streak_emoji(streak.current_workout_streak)} Workouts: "
        f"{streak.current_workout_streak} days"
    )
    if streak.longest_workout_streak > streak.current_workout_streak:
        workout_line += f" (best: {streak.longest_workout_streak})"
    lines.append(workout_line)

    quest_line = (
        f"{get_quest_streak_emoji(streak.current_quest_streak)} Quests: "
        f"{streak.current_quest_streak} days"
    )
    if streak.longest_quest_streak > streak.current_quest_streak:
        quest_line += f" (best: {streak.longest_quest_streak})"
    lines.append(quest_line)

    lines.append(get_streak_motivation_message(streak.current_workout_streak, streak.current_quest_streak))
    return "\n".join(lines)
