"""Task engine - rewards, deadline penalties and priority ordering.

Every calculation here is pure: tasks and subtasks come in, new values go
out, and "today" is read from the engine's clock.
"""

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from functools import cmp_to_key
from typing import Optional, Union

from .clock import Clock, default_clock
from .dates import parse_date
from .models import (
    CreateTaskInput,
    EffortConfig,
    EffortTier,
    Subtask,
    SubtaskProgress,
    Task,
    TaskCompletion,
    TaskFilter,
    TaskStatus,
)

logger = logging.getLogger(__name__)

# Single source for task rewards and penalties
EFFORT_CONFIG: dict[EffortTier, EffortConfig] = {
    EffortTier.TRIVIAL: EffortConfig("Trivial", xp_reward=5, xp_penalty=2),
    EffortTier.COMMON: EffortConfig("Common", xp_reward=15, xp_penalty=5),
    EffortTier.CHALLENGING: EffortConfig("Challenging", xp_reward=22, xp_penalty=8),
    EffortTier.HEROIC: EffortConfig("Heroic", xp_reward=30, xp_penalty=12),
    EffortTier.EPIC: EffortConfig("Epic", xp_reward=40, xp_penalty=16),
    EffortTier.LEGENDARY: EffortConfig("Legendary", xp_reward=50, xp_penalty=20),
}

EARLY_BONUS_TIERS: tuple[tuple[int, int], ...] = (
    (3, 50),  # days early, percent of base reward
    (1, 20),
)


def generate_id() -> str:
    return uuid.uuid4().hex


def get_effort_config(effort: Union[EffortTier, str]) -> EffortConfig:
    """Look up an effort tier.

    Raises:
        ValueError: If the tier name is unknown
    """
    return EFFORT_CONFIG[EffortTier(effort)]


def split_xp(total_xp: int, count: int) -> int:
    """Even per-subtask share; the integer-division residual is not awarded."""
    return total_xp // count if count > 0 else 0


def create_subtasks(task_id: str, titles: list[str], total_xp: int) -> list[Subtask]:
    share = split_xp(total_xp, len(titles))
    return [
        Subtask(id=generate_id(), task_id=task_id, title=title, xp_reward=share, order=index)
        for index, title in enumerate(titles)
    ]


def recalculate_subtask_xp(subtasks: list[Subtask], total_xp: int) -> list[Subtask]:
    share = split_xp(total_xp, len(subtasks))
    return [replace(s, xp_reward=share) for s in subtasks]


def calculate_progress(subtasks: list[Subtask]) -> SubtaskProgress:
    if not subtasks:
        return SubtaskProgress(0, 0, 0)
    completed = sum(1 for s in subtasks if s.completed)
    total = len(subtasks)
    # Round half up
    percentage = (completed * 200 + total) // (total * 2)
    return SubtaskProgress(completed, total, percentage)


def link_focus_cycle(task: Task) -> Task:
    return replace(task, linked_focus_cycles=task.linked_focus_cycles + 1)


def apply_penalty(task: Task) -> tuple[Task, int]:
    """Mark a task overdue and charge its penalty once.

    Returns:
        Tuple of (updated task, XP to subtract from the user)
    """
    if task.penalty_applied or task.status == TaskStatus.COMPLETED:
        return task, 0
    logger.info(f"Penalty applied to task {task.title!r}: -{task.xp_penalty} XP")
    return replace(task, status=TaskStatus.OVERDUE, penalty_applied=True), task.xp_penalty


def filter_tasks(tasks: list[Task], task_filter: TaskFilter = TaskFilter.ALL) -> list[Task]:
    """Tasks matching the filter, in manual order."""
    task_filter = TaskFilter(task_filter)
    if task_filter != TaskFilter.ALL:
        tasks = [t for t in tasks if t.status.value == task_filter.value]
    return sorted(tasks, key=lambda t: t.sort_order)


def reorder_tasks(tasks: list[Task], task_ids: list[str]) -> list[Task]:
    """Give each listed task its index as sort order; others keep theirs."""
    positions = {task_id: index for index, task_id in enumerate(task_ids)}
    return [
        replace(t, sort_order=positions[t.id]) if t.id in positions else t
        for t in tasks
    ]


def reorder_subtasks(subtasks: list[Subtask], subtask_ids: list[str]) -> list[Subtask]:
    positions = {subtask_id: index for index, subtask_id in enumerate(subtask_ids)}
    return [
        replace(s, order=positions[s.id]) if s.id in positions else s
        for s in subtasks
    ]


class TaskEngine:
    """Deadline-aware task reward calculations."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = default_clock(clock)

    create_subtasks = staticmethod(create_subtasks)
    recalculate_subtask_xp = staticmethod(recalculate_subtask_xp)
    calculate_progress = staticmethod(calculate_progress)
    get_effort_config = staticmethod(get_effort_config)

    def today(self) -> date:
        return self.clock.now().date()

    # Creation

    def create_task(self, data: CreateTaskInput) -> Task:
        """Create a pending task with XP values from its effort tier."""
        effort = EffortTier(data.effort)
        config = EFFORT_CONFIG[effort]
        return Task(
            id=generate_id(),
            title=data.title,
            description=data.description,
            effort=effort,
            xp_reward=config.xp_reward,
            xp_penalty=config.xp_penalty,
            deadline=data.deadline,
            created_at=self.clock.now().isoformat(timespec="seconds"),
        )

    def create_task_with_subtasks(self, data: CreateTaskInput) -> tuple[Task, list[Subtask]]:
        task = self.create_task(data)
        return task, create_subtasks(task.id, data.subtasks, task.xp_reward)

    # Subtasks

    def add_subtask(self, task: Task, subtasks: list[Subtask], title: str) -> list[Subtask]:
        """Append a subtask and re-split the task XP over the new set."""
        new = Subtask(id=generate_id(), task_id=task.id, title=title, order=len(subtasks))
        return recalculate_subtask_xp([*subtasks, new], task.xp_reward)

    def remove_subtask(
        self, task: Task, subtasks: list[Subtask], subtask_id: str
    ) -> tuple[Task, list[Subtask]]:
        """Drop a subtask, reclaiming its earned XP from the task."""
        removed = next((s for s in subtasks if s.id == subtask_id), None)
        if removed is None:
            return task, subtasks
        if removed.completed:
            task = replace(task, xp_earned=max(0, task.xp_earned - removed.xp_reward))
        remaining = [s for s in subtasks if s.id != subtask_id]
        return task, recalculate_subtask_xp(remaining, task.xp_reward)

    def toggle_subtask(self, task: Task, subtask: Subtask) -> tuple[Task, Subtask, int]:
        """Flip a subtask's completion and move its XP share.

        Returns:
            Tuple of (task, subtask, XP delta for the user)
        """
        if task.status == TaskStatus.COMPLETED:
            return task, subtask, 0

        completed = not subtask.completed
        change = subtask.xp_reward if completed else -subtask.xp_reward
        earned = min(task.xp_reward, max(0, task.xp_earned + change))
        subtask = replace(
            subtask,
            completed=completed,
            completed_at=self.clock.now().isoformat(timespec="seconds") if completed else None,
        )
        return replace(task, xp_earned=earned), subtask, earned - task.xp_earned

    # Deadlines

    def get_days_until_deadline(self, deadline: str) -> int:
        """Signed calendar days from today to the deadline; negative is overdue."""
        return (parse_date(deadline) - self.today()).days

    def is_overdue(self, task: Task) -> bool:
        if not task.deadline or task.status == TaskStatus.COMPLETED:
            return False
        return self.get_days_until_deadline(task.deadline) < 0

    def refresh_statuses(self, tasks: list[Task]) -> list[Task]:
        """Move pending tasks whose deadline passed to overdue."""
        return [
            replace(t, status=TaskStatus.OVERDUE)
            if t.status == TaskStatus.PENDING and self.is_overdue(t)
            else t
            for t in tasks
        ]

    def get_tasks_for_penalty(self, tasks: list[Task]) -> list[Task]:
        """Unpenalized pending or overdue tasks whose deadline has passed."""
        return [
            t for t in tasks
            if t.status in (TaskStatus.PENDING, TaskStatus.OVERDUE)
            and t.deadline
            and self.get_days_until_deadline(t.deadline) < 0
            and not t.penalty_applied
        ]

    # Completion

    @staticmethod
    def calculate_early_bonus(task: Task, completion: Union[date, datetime]) -> int:
        if not task.deadline:
            return 0
        completion_day = completion.date() if isinstance(completion, datetime) else completion
        days_early = (parse_date(task.deadline) - completion_day).days
        for min_days, percent in EARLY_BONUS_TIERS:
            if days_early >= min_days:
                return task.xp_reward * percent // 100
        return 0

    def calculate_completion_xp(self, task: Task, completion: Union[date, datetime]) -> int:
        """Remaining reward not yet paid through subtasks, plus the early bonus."""
        remaining = max(0, task.xp_reward - task.xp_earned)
        return remaining + self.calculate_early_bonus(task, completion)

    def complete_task(
        self,
        task: Task,
        subtasks: list[Subtask],
        completion: Optional[datetime] = None,
    ) -> TaskCompletion:
        """Complete a task and all of its subtasks.

        Completing an already completed task grants nothing.
        """
        if task.status == TaskStatus.COMPLETED:
            return TaskCompletion(task=task, subtasks=subtasks, xp_gained=0)

        completion = completion or self.clock.now()
        stamp = completion.isoformat(timespec="seconds")
        xp_gained = self.calculate_completion_xp(task, completion)
        done = replace(
            task,
            status=TaskStatus.COMPLETED,
            completed_at=stamp,
            xp_earned=task.xp_reward,
        )
        finished = [
            s if s.completed else replace(s, completed=True, completed_at=stamp)
            for s in subtasks
        ]
        logger.info(f"Task completed: {task.title!r} (+{xp_gained} XP)")
        return TaskCompletion(task=done, subtasks=finished, xp_gained=xp_gained)

    # Ordering

    def _compare(self, a: Task, b: Task) -> int:
        a_done = a.status == TaskStatus.COMPLETED
        b_done = b.status == TaskStatus.COMPLETED
        if a_done != b_done:
            return 1 if a_done else -1
        if a_done:
            # Most recently completed first
            return _cmp(b.completed_at or "", a.completed_at or "")

        a_days = self.get_days_until_deadline(a.deadline) if a.deadline else None
        b_days = self.get_days_until_deadline(b.deadline) if b.deadline else None
        a_late = a_days is not None and a_days < 0
        b_late = b_days is not None and b_days < 0
        if a_late != b_late:
            return -1 if a_late else 1

        if (a_days is None) != (b_days is None):
            return -1 if a_days is not None else 1
        if a_days is not None:
            # Covers the overdue case too: most overdue is the most negative
            return a_days - b_days

        # Undated: most recently created first
        return _cmp(b.created_at, a.created_at)

    def sort_by_priority(self, tasks: list[Task]) -> list[Task]:
        """Default display order. Stable for ties."""
        return sorted(tasks, key=cmp_to_key(self._compare))

    # Presentation

    def format_deadline_text(self, deadline: str) -> str:
        days = self.get_days_until_deadline(deadline)
        if days < 0:
            overdue = -days
            return "Overdue yesterday" if overdue == 1 else f"Overdue by {overdue} days"
        if days == 0:
            return "Today"
        if days == 1:
            return "Tomorrow"
        if days <= 7:
            return f"In {days} days"
        return parse_date(deadline).strftime("%d %b")

    def get_deadline_color_class(self, task: Task) -> str:
        if not task.deadline:
            return "text-muted"
        if task.status == TaskStatus.COMPLETED:
            return "text-success"
        days = self.get_days_until_deadline(task.deadline)
        if days < 0:
            return "text-error"
        if days <= 2:
            return "text-warning"
        return "text-secondary"


def _cmp(a: str, b: str) -> int:
    return (a > b) - (a < b)
