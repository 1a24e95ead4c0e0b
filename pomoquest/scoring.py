"""Score engine - XP, streaks, achievement detection and stats."""

import logging
import math
from dataclasses import replace
from typing import Iterable, Optional

from .achievements import (
    ACHIEVEMENTS_BY_ID,
    FOCUS_RULES,
    MANUAL_ACHIEVEMENTS,
    TASK_RULES,
    TaskAchievementContext,
    cycles_by_date,
    run_rules,
)
from .clock import Clock, default_clock
from .dates import calculate_streaks, format_date, get_week_range
from .models import (
    AchievementContext,
    DailyStat,
    Mode,
    StatsPeriod,
    StatTotals,
    Task,
    UserProgress,
)

logger = logging.getLogger(__name__)

MINUTES_PER_BASE_XP = 2.5

# (minimum streak days, multiplier), highest tier first
STREAK_MULTIPLIERS: tuple[tuple[int, float], ...] = (
    (30, 2.0),
    (14, 1.5),
    (7, 1.25),
    (3, 1.10),
)


def get_streak_multiplier(streak_days: int) -> float:
    """Return the XP multiplier for a streak length."""
    for min_days, multiplier in STREAK_MULTIPLIERS:
        if streak_days >= min_days:
            return multiplier
    return 1.0


def calculate_xp_for_focus(mode: Mode, current_streak: int) -> int:
    """XP for one completed focus phase of a mode.

    One base XP per 2.5 focus minutes, scaled by the streak multiplier.
    """
    base_xp = math.floor((mode.focus_duration / 60) / MINUTES_PER_BASE_XP)
    # round() absorbs float noise such as 3 * 1.1 = 3.3000000000000003
    return math.floor(round(base_xp * get_streak_multiplier(current_streak), 6))


def award_xp(progress: UserProgress, amount: int) -> UserProgress:
    return replace(progress, total_xp=progress.total_xp + max(0, amount))


def apply_penalty(progress: UserProgress, amount: int) -> UserProgress:
    """Subtract XP, never going below zero."""
    return replace(progress, total_xp=max(0, progress.total_xp - max(0, amount)))


class ScoreEngine:
    """Stateless calculators over caller-supplied history."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = default_clock(clock)

    calculate_xp_for_focus = staticmethod(calculate_xp_for_focus)
    get_streak_multiplier = staticmethod(get_streak_multiplier)

    def check_achievements(self, context: AchievementContext) -> list[str]:
        """Return ids of achievements that newly qualify.

        Already unlocked ids are never returned.
        """
        unlocked = run_rules(FOCUS_RULES, context, self.clock.now().date())
        for achievement_id in unlocked:
            logger.info(f"Achievement unlocked: {achievement_id}")
        return unlocked

    def check_task_achievements(
        self,
        completed_tasks: list[Task],
        completed_task: Task,
        unlocked_ids: Iterable[str],
    ) -> list[str]:
        """Return ids of task achievements that newly qualify.

        Args:
            completed_tasks: Every completed task, including the new one
            completed_task: The task that was just completed
            unlocked_ids: Already unlocked achievement ids
        """
        context = TaskAchievementContext(
            completed_tasks=completed_tasks,
            completed_task=completed_task,
            unlocked_ids=set(unlocked_ids),
        )
        unlocked = run_rules(TASK_RULES, context, self.clock.now().date())
        for achievement_id in unlocked:
            logger.info(f"Task achievement unlocked: {achievement_id}")
        return unlocked

    @staticmethod
    def unlock_manual(achievement_id: str, unlocked_ids: Iterable[str]) -> Optional[str]:
        """Unlock an achievement triggered by a user action, once.

        Raises:
            KeyError: If the id is not a manual achievement
        """
        if achievement_id not in MANUAL_ACHIEVEMENTS:
            raise KeyError(f"Not a manual achievement: {achievement_id}")
        if achievement_id in set(unlocked_ids):
            return None
        return ACHIEVEMENTS_BY_ID[achievement_id].id

    def calculate_streaks(self, daily_stats: list[DailyStat]) -> tuple[int, int]:
        """Current and best streak from the full date history."""
        active = [d for d, cycles in cycles_by_date(daily_stats).items() if cycles > 0]
        return calculate_streaks(active, self.clock.now())

    def refresh_progress(self, progress: UserProgress, daily_stats: list[DailyStat]) -> UserProgress:
        """Recompute streak fields; the best streak never decreases."""
        current, best = self.calculate_streaks(daily_stats)
        active = [d for d, cycles in cycles_by_date(daily_stats).items() if cycles > 0]
        return replace(
            progress,
            current_streak=current,
            best_streak=max(progress.best_streak, best),
            last_activity_date=max(active) if active else progress.last_activity_date,
        )

    def aggregate_stats(self, daily_stats: list[DailyStat], period: StatsPeriod) -> StatTotals:
        """Sum cycles and minutes for today, the current Monday-Sunday week or all time."""
        period = StatsPeriod(period)
        today = self.clock.now().date()

        if period == StatsPeriod.TODAY:
            key = format_date(today)
            selected = [s for s in daily_stats if s.date == key]
        elif period == StatsPeriod.WEEK:
            start, end = get_week_range(today)
            monday, sunday = format_date(start), format_date(end)
            selected = [s for s in daily_stats if monday <= s.date <= sunday]
        else:
            selected = list(daily_stats)

        return StatTotals(
            cycles=sum(s.cycles_completed for s in selected),
            minutes=sum(s.total_focus_minutes for s in selected),
        )

    @staticmethod
    def aggregate_by_mode(daily_stats: list[DailyStat]) -> dict[str, StatTotals]:
        totals: dict[str, StatTotals] = {}
        for stat in daily_stats:
            current = totals.get(stat.mode_id, StatTotals())
            totals[stat.mode_id] = StatTotals(
                cycles=current.cycles + stat.cycles_completed,
                minutes=current.minutes + stat.total_focus_minutes,
            )
        return totals
