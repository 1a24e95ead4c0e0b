"""In-memory orchestrator wiring the timer to the score, quest and task engines.

FocusSession is the reference caller of the engines: it drives the timer,
keeps the history the calculators need and applies their results. The
engines never talk to each other; only this class moves values between them.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from .achievements import ACHIEVEMENTS_BY_ID
from .clock import Clock, default_clock
from .dates import format_date
from .models import (
    AchievementContext,
    CreateTaskInput,
    DailyQuest,
    DailyStat,
    FocusReward,
    Mode,
    Subtask,
    Task,
    TaskCompletion,
    TaskStatus,
    TimerSnapshot,
    UserProgress,
    WeeklyQuest,
)
from .modes import default_preset
from .quests import QuestEngine
from .scoring import ScoreEngine, apply_penalty, award_xp, calculate_xp_for_focus
from .tasks import TaskEngine, apply_penalty as penalize_task, link_focus_cycle
from .timer import TimerEngine, completed_focus

logger = logging.getLogger(__name__)


class FocusSession:
    """Single-caller orchestrator holding all state in memory."""

    def __init__(
        self,
        mode: Optional[Mode] = None,
        clock: Optional[Clock] = None,
        custom_modes: Optional[list[Mode]] = None,
    ):
        """Initialize the session.

        Args:
            mode: Starting mode (defaults to the first preset)
            clock: Time source shared by every engine
            custom_modes: Custom modes the user has created
        """
        self.clock = default_clock(clock)
        self.timer = TimerEngine(mode or default_preset(), self.clock)
        self.score = ScoreEngine(self.clock)
        self.quests = QuestEngine(self.clock)
        self.tasks_engine = TaskEngine(self.clock)

        self.custom_modes = list(custom_modes or [])
        self.daily_stats: list[DailyStat] = []
        self.progress = UserProgress()
        self.unlocked_ids: set[str] = set()
        self.daily_quests: list[DailyQuest] = []
        self.weekly_quests: list[WeeklyQuest] = []
        self.tasks: list[Task] = []
        self.subtasks: list[Subtask] = []
        self.active_task_id: Optional[str] = None
        self.rewards: list[FocusReward] = []

    # Timer

    def _drive(self, operation) -> TimerSnapshot:
        before = self.timer.state
        snapshot = operation()
        if completed_focus(before, self.timer.state):
            self.rewards.append(self.record_focus(before.mode, self.clock.now()))
        return snapshot

    def tick(self) -> TimerSnapshot:
        return self._drive(self.timer.tick)

    def skip(self) -> TimerSnapshot:
        return self._drive(self.timer.skip)

    def set_mode(self, mode: Mode) -> TimerSnapshot:
        return self.timer.set_mode(mode)

    # Focus completion

    def _record_stat(self, mode: Mode, day: str) -> None:
        minutes = mode.focus_duration // 60
        for stat in self.daily_stats:
            if stat.date == day and stat.mode_id == mode.id:
                stat.cycles_completed += 1
                stat.total_focus_minutes += minutes
                return
        self.daily_stats.append(DailyStat(day, mode.id, 1, minutes))

    def record_focus(self, mode: Mode, completion_time: datetime) -> FocusReward:
        """Apply one completed focus phase: stats, score, quests, then tasks."""
        # Streak as of now, before this completion; a gap since the last focus breaks it
        streak = self.score.calculate_streaks(self.daily_stats)[0]
        self._record_stat(mode, format_date(completion_time))

        xp = calculate_xp_for_focus(mode, streak)
        self.progress = award_xp(self.progress, xp)
        self.progress = self.score.refresh_progress(self.progress, self.daily_stats)

        context = AchievementContext(
            daily_stats=self.daily_stats,
            unlocked_ids=set(self.unlocked_ids),
            total_focus_cycles=sum(s.cycles_completed for s in self.daily_stats),
            modes_used={s.mode_id for s in self.daily_stats},
            has_custom_mode=bool(self.custom_modes),
            completion_time=completion_time,
        )
        achievements = self._unlock(self.score.check_achievements(context))

        update = self.quests.advance_for_focus(
            self.daily_quests,
            self.weekly_quests,
            mode.focus_duration // 60,
            completion_time,
            self.daily_stats,
        )
        self.daily_quests, self.weekly_quests = update.daily, update.weekly
        self.progress = award_xp(self.progress, update.xp_awarded)

        linked = None
        if self.active_task_id is not None:
            task = self.get_task(self.active_task_id)
            if task is not None and task.status != TaskStatus.COMPLETED:
                self._replace_task(link_focus_cycle(task))
                linked = task.id

        reward = FocusReward(
            xp=xp,
            streak=streak,
            achievements=achievements,
            completed_quests=update.newly_completed,
            linked_task_id=linked,
        )
        logger.info(f"Focus recorded in {mode.id}: +{reward.total_xp} XP total")
        return reward

    def _unlock(self, achievement_ids: list[str]) -> list:
        unlocked = []
        for achievement_id in achievement_ids:
            achievement = ACHIEVEMENTS_BY_ID[achievement_id]
            self.unlocked_ids.add(achievement_id)
            self.progress = award_xp(self.progress, achievement.xp)
            unlocked.append(achievement)
        return unlocked

    # Tasks

    def get_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def _replace_task(self, task: Task) -> None:
        self.tasks = [task if t.id == task.id else t for t in self.tasks]

    def add_task(self, data: CreateTaskInput) -> Task:
        task, subtasks = self.tasks_engine.create_task_with_subtasks(data)
        task = replace(task, sort_order=len(self.tasks))
        self.tasks.append(task)
        self.subtasks.extend(subtasks)
        return task

    def subtasks_for(self, task_id: str) -> list[Subtask]:
        return sorted((s for s in self.subtasks if s.task_id == task_id), key=lambda s: s.order)

    def toggle_subtask(self, subtask_id: str) -> int:
        subtask = next((s for s in self.subtasks if s.id == subtask_id), None)
        task = self.get_task(subtask.task_id) if subtask else None
        if subtask is None or task is None:
            return 0
        task, subtask, change = self.tasks_engine.toggle_subtask(task, subtask)
        self._replace_task(task)
        self.subtasks = [subtask if s.id == subtask.id else s for s in self.subtasks]
        if change >= 0:
            self.progress = award_xp(self.progress, change)
        else:
            self.progress = apply_penalty(self.progress, -change)
        return change

    def complete_task(self, task_id: str) -> Optional[TaskCompletion]:
        """Complete a task, award its XP and check task achievements."""
        task = self.get_task(task_id)
        if task is None:
            return None
        result = self.tasks_engine.complete_task(task, self.subtasks_for(task_id))
        if task.status == TaskStatus.COMPLETED:
            return result

        self._replace_task(result.task)
        finished = {s.id: s for s in result.subtasks}
        self.subtasks = [finished.get(s.id, s) for s in self.subtasks]
        self.progress = award_xp(self.progress, result.xp_gained)
        if self.active_task_id == task_id:
            self.active_task_id = None

        completed = [t for t in self.tasks if t.status == TaskStatus.COMPLETED]
        self._unlock(self.score.check_task_achievements(completed, result.task, self.unlocked_ids))
        return result

    def apply_overdue_penalties(self) -> int:
        """Penalize every task whose deadline passed, once. Returns XP removed."""
        total = 0
        for task in self.tasks_engine.get_tasks_for_penalty(self.tasks):
            task, penalty = penalize_task(task)
            self._replace_task(task)
            total += penalty
        self.progress = apply_penalty(self.progress, total)
        return total
