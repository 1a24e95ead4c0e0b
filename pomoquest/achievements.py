"""Achievement catalog, unlock rules and level math."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

from .dates import calculate_streaks, format_date, is_weekend, parse_date, week_days
from .models import (
    Achievement,
    AchievementCategory as Cat,
    AchievementContext,
    DailyStat,
    EffortTier,
    Task,
)
from .modes import PRESET_IDS

ACHIEVEMENTS: tuple[Achievement, ...] = (
    # Beginner
    Achievement("first_focus", "Initiation", "Complete your first focus cycle", Cat.BEGINNER, 10),
    Achievement("five_focuses", "Daily Devotion", "Complete 5 focus cycles in one day", Cat.BEGINNER, 25),
    Achievement("ten_focuses", "Unbroken Vigil", "Complete 10 focus cycles in one day", Cat.BEGINNER, 60),
    # Consistency
    Achievement("streak_3", "Keeper of the Flame", "Keep a 3 day streak", Cat.CONSISTENCY, 30),
    Achievement("streak_7", "Protector of the Light", "Keep a 7 day streak", Cat.CONSISTENCY, 50),
    Achievement("streak_14", "Warden of the Hearth", "Keep a 14 day streak", Cat.CONSISTENCY, 100),
    Achievement(
        "streak_30", "Guardian of the Eternal Flame", "Keep a 30 day streak", Cat.CONSISTENCY, 200,
        unlocks_title="Flame Guardian",
    ),
    Achievement(
        "streak_60", "Undying Flame", "Keep a 60 day streak", Cat.CONSISTENCY, 400,
        unlocks_title="Undying",
    ),
    # Quantity
    Achievement("total_25", "Warrior in Training", "Complete 25 focus cycles", Cat.QUANTITY, 50),
    Achievement("total_100", "Veteran of the Order", "Complete 100 focus cycles", Cat.QUANTITY, 100),
    Achievement("total_250", "Seasoned Blade", "Complete 250 focus cycles", Cat.QUANTITY, 150),
    Achievement(
        "total_500", "Living Legend", "Complete 500 focus cycles", Cat.QUANTITY, 250,
        unlocks_title="Living Legend",
    ),
    Achievement(
        "total_1000", "Myth of the Order", "Complete 1000 focus cycles", Cat.QUANTITY, 500,
        unlocks_title="Myth",
    ),
    # Modes
    Achievement(
        "try_all_modes", "Versatile Master", "Use every preset mode", Cat.MODES, 30,
        unlocks_title="Versatile",
    ),
    Achievement("custom_mode", "Pathmaker", "Create a custom mode", Cat.MODES, 20),
    Achievement("mode_master", "Style Master", "Complete 50 focus cycles in one mode", Cat.MODES, 75),
    # Special
    Achievement(
        "early_bird", "Herald of Dawn", "Complete a focus cycle before 7:00", Cat.SPECIAL, 40,
        unlocks_title="Herald of Dawn",
    ),
    Achievement(
        "night_owl", "Night Sentinel", "Complete a focus cycle after 23:00", Cat.SPECIAL, 40,
        unlocks_title="Night Sentinel",
    ),
    Achievement(
        "weekend_warrior", "Tireless Warrior", "Complete 3 focus cycles on a Saturday or Sunday",
        Cat.SPECIAL, 35, unlocks_title="Tireless",
    ),
    Achievement(
        "perfect_week", "Master of Discipline", "Complete at least 2 focus cycles every day of a week",
        Cat.SPECIAL, 100, unlocks_title="Master of Discipline",
    ),
    Achievement("export_data", "Chronicler", "Export your records for the first time", Cat.SPECIAL, 15),
    # Tasks
    Achievement("first_task", "First Scroll", "Complete your first task", Cat.TASKS, 10),
    Achievement(
        "task_streak_5", "Dedicated Scribe", "Complete 5 tasks on time", Cat.TASKS, 30,
        unlocks_title="Scribe",
    ),
    Achievement("task_early", "Royal Punctuality", "Complete 3 tasks before their deadline", Cat.TASKS, 40),
    Achievement(
        "task_epic", "Epic Hunter", "Complete 10 epic tasks", Cat.TASKS, 50,
        unlocks_title="Epic Hunter",
    ),
    Achievement("task_linked", "Directed Focus", "Link 10 focus cycles to a single task", Cat.TASKS, 25),
)

ACHIEVEMENTS_BY_ID: dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}

# Unlocked by an explicit user action, never by a rule
MANUAL_ACHIEVEMENTS: frozenset[str] = frozenset({"export_data"})


# Aggregation helpers shared by the rules


def cycles_by_date(daily_stats: list[DailyStat]) -> dict[str, int]:
    totals: dict[str, int] = defaultdict(int)
    for stat in daily_stats:
        totals[stat.date] += stat.cycles_completed
    return dict(totals)


def cycles_by_mode(daily_stats: list[DailyStat]) -> dict[str, int]:
    totals: dict[str, int] = defaultdict(int)
    for stat in daily_stats:
        totals[stat.mode_id] += stat.cycles_completed
    return dict(totals)


def current_streak(daily_stats: list[DailyStat], today: date) -> int:
    active = [d for d, cycles in cycles_by_date(daily_stats).items() if cycles > 0]
    return calculate_streaks(active, today)[0]


@dataclass
class TaskAchievementContext:
    """Snapshot used to decide task achievement unlocks."""
    completed_tasks: list[Task]
    completed_task: Task
    unlocked_ids: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class AchievementRule:
    """One independent unlock condition."""
    achievement_id: str
    check: Callable[..., bool]

    def evaluate(self, context, today: date) -> Optional[str]:
        """Return the achievement id if it newly qualifies."""
        if self.achievement_id in context.unlocked_ids:
            return None
        return self.achievement_id if self.check(context, today) else None


def _cycles_today(context: AchievementContext, today: date) -> int:
    return cycles_by_date(context.daily_stats).get(format_date(today), 0)


def _streak_rule(days: int) -> AchievementRule:
    return AchievementRule(
        f"streak_{days}",
        lambda ctx, today: current_streak(ctx.daily_stats, today) >= days,
    )


def _total_rule(count: int) -> AchievementRule:
    return AchievementRule(
        f"total_{count}",
        lambda ctx, today: ctx.total_focus_cycles >= count,
    )


def _is_perfect_week(context: AchievementContext, today: date) -> bool:
    # Only decidable on the week's final day
    if today.weekday() != 6:
        return False
    per_day = cycles_by_date(context.daily_stats)
    return all(per_day.get(format_date(day), 0) >= 2 for day in week_days(today))


def _is_weekend_warrior(context: AchievementContext, today: date) -> bool:
    return any(
        cycles >= 3 and is_weekend(parse_date(day))
        for day, cycles in cycles_by_date(context.daily_stats).items()
    )


FOCUS_RULES: tuple[AchievementRule, ...] = (
    AchievementRule("first_focus", lambda ctx, today: ctx.total_focus_cycles >= 1),
    AchievementRule("five_focuses", lambda ctx, today: _cycles_today(ctx, today) >= 5),
    AchievementRule("ten_focuses", lambda ctx, today: _cycles_today(ctx, today) >= 10),
    *(_streak_rule(days) for days in (3, 7, 14, 30, 60)),
    *(_total_rule(count) for count in (25, 100, 250, 500, 1000)),
    AchievementRule("try_all_modes", lambda ctx, today: PRESET_IDS <= set(ctx.modes_used)),
    AchievementRule("custom_mode", lambda ctx, today: ctx.has_custom_mode),
    AchievementRule(
        "mode_master",
        lambda ctx, today: max(cycles_by_mode(ctx.daily_stats).values(), default=0) >= 50,
    ),
    AchievementRule(
        "early_bird",
        lambda ctx, today: ctx.completion_time is not None and ctx.completion_time.hour < 7,
    ),
    AchievementRule(
        "night_owl",
        lambda ctx, today: ctx.completion_time is not None and ctx.completion_time.hour >= 23,
    ),
    AchievementRule("weekend_warrior", _is_weekend_warrior),
    AchievementRule("perfect_week", _is_perfect_week),
)


def _with_deadline(tasks: list[Task]) -> list[tuple[date, date]]:
    return [
        (parse_date(t.completed_at), parse_date(t.deadline))
        for t in tasks
        if t.deadline and t.completed_at
    ]


TASK_RULES: tuple[AchievementRule, ...] = (
    AchievementRule("first_task", lambda ctx, today: len(ctx.completed_tasks) >= 1),
    AchievementRule(
        "task_streak_5",
        lambda ctx, today: sum(
            1 for done, due in _with_deadline(ctx.completed_tasks) if done <= due
        ) >= 5,
    ),
    AchievementRule(
        "task_early",
        lambda ctx, today: sum(
            1 for done, due in _with_deadline(ctx.completed_tasks) if done < due
        ) >= 3,
    ),
    AchievementRule(
        "task_epic",
        lambda ctx, today: sum(
            1 for t in ctx.completed_tasks
            if t.effort in (EffortTier.EPIC, EffortTier.LEGENDARY)
        ) >= 10,
    ),
    AchievementRule("task_linked", lambda ctx, today: ctx.completed_task.linked_focus_cycles >= 10),
)


def run_rules(rules: tuple[AchievementRule, ...], context, today: date) -> list[str]:
    """Evaluate every rule against the same context and collect the unlocks."""
    unlocked = []
    for rule in rules:
        achievement_id = rule.evaluate(context, today)
        if achievement_id is not None:
            unlocked.append(achievement_id)
    return unlocked


# Levels

LEVEL_XP = 100

LEVEL_TITLES: tuple[tuple[int, str], ...] = (
    (100, "Immortal"),
    (75, "Ancestral Guardian"),
    (50, "Legend"),
    (40, "Grandmaster"),
    (30, "Lord"),
    (20, "Champion"),
    (15, "Veteran Knight"),
    (10, "Knight"),
    (5, "Squire"),
    (2, "Apprentice"),
)


def calculate_level(total_xp: int) -> int:
    """Level = floor(XP / 100) + 1."""
    return max(0, total_xp) // LEVEL_XP + 1


def xp_for_next_level(total_xp: int) -> int:
    return calculate_level(total_xp) * LEVEL_XP - total_xp


def get_title_for_level(level: int) -> str:
    for threshold, title in LEVEL_TITLES:
        if level >= threshold:
            return title
    return "Novice"


def get_full_title(level: int) -> str:
    return f"Level {level} - {get_title_for_level(level)}"
