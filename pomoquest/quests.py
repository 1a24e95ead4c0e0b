"""Quest engine - daily and weekly objectives."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, TypeVar

from .clock import Clock, default_clock
from .dates import format_date, get_week_start, parse_date
from .models import DailyQuest, DailyStat, Quest, QuestUpdate, WeeklyQuest

logger = logging.getLogger(__name__)

Q = TypeVar("Q", bound=Quest)

EARLY_BIRD_HOUR = 9


@dataclass(frozen=True)
class QuestTemplate:
    id: str
    name: str
    description: str
    target: int
    xp_reward: int


DAILY_QUEST_TEMPLATES: tuple[QuestTemplate, ...] = (
    QuestTemplate("daily_3_focuses", "Daily Ritual", "Complete 3 focus cycles today", 3, 30),
    QuestTemplate("daily_100_minutes", "Marathoner", "Accumulate 100 focus minutes today", 100, 40),
    QuestTemplate("daily_early_bird", "Early Riser", "Complete a focus cycle before 9:00", 1, 25),
)

WEEKLY_QUEST_TEMPLATES: tuple[QuestTemplate, ...] = (
    QuestTemplate("weekly_20_focuses", "Warrior of the Week", "Complete 20 focus cycles this week", 20, 100),
    QuestTemplate(
        "weekly_perfect_week", "Perfect Week", "Complete at least 1 focus cycle every day this week", 7, 150
    ),
)


def generate_daily_quests(date_key: str) -> list[DailyQuest]:
    return [
        DailyQuest(
            id=t.id,
            name=t.name,
            description=t.description,
            target=t.target,
            xp_reward=t.xp_reward,
            date=date_key,
        )
        for t in DAILY_QUEST_TEMPLATES
    ]


def generate_weekly_quests(week_start: str) -> list[WeeklyQuest]:
    return [
        WeeklyQuest(
            id=t.id,
            name=t.name,
            description=t.description,
            target=t.target,
            xp_reward=t.xp_reward,
            week_start=week_start,
        )
        for t in WEEKLY_QUEST_TEMPLATES
    ]


def is_early_bird_focus(completion_time: datetime) -> bool:
    return completion_time.hour < EARLY_BIRD_HOUR


def set_quest_progress(quest: Q, value: int) -> Q:
    """Set absolute progress, clamped to [0, target]."""
    progress = min(max(0, value), quest.target)
    return replace(quest, current_progress=progress, completed=progress >= quest.target)


def update_quest_progress(quest: Q, increment: int) -> Q:
    """Add to progress. Safe to call with 0 or after completion."""
    return set_quest_progress(quest, quest.current_progress + increment)


def calculate_total_quest_xp(quests: list[Quest]) -> int:
    """Sum of rewards over completed quests, for summaries only."""
    return sum(q.xp_reward for q in quests if q.completed)


def count_active_days(daily_stats: list[DailyStat], week_start: str) -> int:
    """Distinct days of the week starting at week_start with at least one cycle."""
    monday = parse_date(week_start)
    return len({
        s.date
        for s in daily_stats
        if s.cycles_completed > 0 and 0 <= (parse_date(s.date) - monday).days < 7
    })


class QuestEngine:
    """Generates quests per period and advances their progress."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = default_clock(clock)

    generate_daily_quests = staticmethod(generate_daily_quests)
    generate_weekly_quests = staticmethod(generate_weekly_quests)
    is_early_bird_focus = staticmethod(is_early_bird_focus)
    update_quest_progress = staticmethod(update_quest_progress)
    calculate_total_quest_xp = staticmethod(calculate_total_quest_xp)

    def today_key(self) -> str:
        return format_date(self.clock.now())

    def week_key(self) -> str:
        return format_date(get_week_start(self.clock.now()))

    def ensure_daily_quests(self, existing: list[DailyQuest]) -> list[DailyQuest]:
        """Return today's quests, generating them when none exist yet."""
        key = self.today_key()
        current = [q for q in existing if q.date == key]
        if current:
            return current
        logger.info(f"Generating daily quests for {key}")
        return generate_daily_quests(key)

    def ensure_weekly_quests(self, existing: list[WeeklyQuest]) -> list[WeeklyQuest]:
        """Return this week's quests, generating them when none exist yet."""
        key = self.week_key()
        current = [q for q in existing if q.week_start == key]
        if current:
            return current
        logger.info(f"Generating weekly quests for week of {key}")
        return generate_weekly_quests(key)

    def advance_for_focus(
        self,
        daily: list[DailyQuest],
        weekly: list[WeeklyQuest],
        focus_minutes: int,
        completion_time: datetime,
        daily_stats: list[DailyStat],
    ) -> QuestUpdate:
        """Apply one completed focus cycle to the current quests.

        Args:
            daily: Current daily quests
            weekly: Current weekly quests
            focus_minutes: Minutes of the completed focus phase
            completion_time: When the phase completed
            daily_stats: History already including this completion

        Returns:
            Updated quests and the ones completed by this call
        """
        daily = self.ensure_daily_quests(daily)
        weekly = self.ensure_weekly_quests(weekly)
        update = QuestUpdate()

        for quest in daily:
            if quest.id == "daily_3_focuses":
                updated = update_quest_progress(quest, 1)
            elif quest.id == "daily_100_minutes":
                updated = update_quest_progress(quest, focus_minutes)
            elif quest.id == "daily_early_bird" and is_early_bird_focus(completion_time):
                updated = update_quest_progress(quest, 1)
            else:
                updated = quest
            self._collect(quest, updated, update)
            update.daily.append(updated)

        for quest in weekly:
            if quest.id == "weekly_20_focuses":
                updated = update_quest_progress(quest, 1)
            elif quest.id == "weekly_perfect_week":
                active_days = count_active_days(daily_stats, quest.week_start)
                updated = set_quest_progress(quest, max(quest.current_progress, active_days))
            else:
                updated = quest
            self._collect(quest, updated, update)
            update.weekly.append(updated)

        return update

    @staticmethod
    def _collect(before: Quest, after: Quest, update: QuestUpdate) -> None:
        if after.completed and not before.completed:
            logger.info(f"Quest completed: {after.name} (+{after.xp_reward} XP)")
            update.newly_completed.append(after)
