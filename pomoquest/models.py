"""Data models for Pomoquest."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class RunState(Enum):
    """Timer run-state enumeration."""
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    FINISHED = "FINISHED"


class Phase(Enum):
    """Phase of the focus cycle."""
    FOCUS = "FOCUS"
    SHORT_BREAK = "SHORT_BREAK"
    LONG_BREAK = "LONG_BREAK"


class StatsPeriod(str, Enum):
    """Aggregation window for daily stats."""
    TODAY = "today"
    WEEK = "week"
    ALL = "all"


class AchievementCategory(str, Enum):
    BEGINNER = "beginner"
    CONSISTENCY = "consistency"
    QUANTITY = "quantity"
    MODES = "modes"
    SPECIAL = "special"
    TASKS = "tasks"


class EffortTier(str, Enum):
    """Task effort tier, from smallest to largest."""
    TRIVIAL = "trivial"
    COMMON = "common"
    CHALLENGING = "challenging"
    HEROIC = "heroic"
    EPIC = "epic"
    LEGENDARY = "legendary"


class TaskStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class TaskFilter(str, Enum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class Mode:
    """A named timer configuration. Durations are in seconds."""
    id: str
    name: str
    focus_duration: int
    short_break_duration: int
    long_break_duration: int
    cycles_until_long_break: int
    is_custom: bool = False
    accent_color: str = "#7aa2f7"
    disclaimer: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Mode":
        """Create a custom Mode from a config table (durations in minutes)."""
        return cls(
            id=data.get("id") or f"custom_{data.get('name', '').strip().lower().replace(' ', '_')}",
            name=data.get("name", ""),
            focus_duration=int(data.get("focus_minutes", 25) * 60),
            short_break_duration=int(data.get("short_break_minutes", 5) * 60),
            long_break_duration=int(data.get("long_break_minutes", 15) * 60),
            cycles_until_long_break=int(data.get("cycles_until_long_break", 4)),
            is_custom=True,
            accent_color=data.get("accent_color", "#7aa2f7"),
            disclaimer=data.get("disclaimer", "Custom mode"),
        )

    def to_dict(self) -> dict:
        """Convert to a config table (durations in minutes)."""
        return {
            "id": self.id,
            "name": self.name,
            "focus_minutes": self.focus_duration // 60,
            "short_break_minutes": self.short_break_duration // 60,
            "long_break_minutes": self.long_break_duration // 60,
            "cycles_until_long_break": self.cycles_until_long_break,
            "accent_color": self.accent_color,
            "disclaimer": self.disclaimer,
        }


@dataclass(frozen=True)
class TimerState:
    """Immutable timer record passed through the transition functions."""
    mode: Mode
    run_state: RunState = RunState.IDLE
    phase: Phase = Phase.FOCUS
    remaining_seconds: int = 0
    completed_cycles: int = 0
    started_at_ms: Optional[int] = None


@dataclass(frozen=True)
class TimerSnapshot:
    """Externally visible timer state."""
    run_state: RunState
    phase: Phase
    remaining_seconds: int
    completed_cycles: int
    mode: Mode
    total_seconds: int

    @property
    def is_last_minute(self) -> bool:
        return 0 < self.remaining_seconds <= 60


@dataclass
class DailyStat:
    """Focus totals for one (date, mode) pair."""
    date: str  # YYYY-MM-DD format
    mode_id: str
    cycles_completed: int = 0
    total_focus_minutes: int = 0


@dataclass(frozen=True)
class StatTotals:
    cycles: int = 0
    minutes: int = 0


@dataclass
class UserProgress:
    """Experience and streak tracking data."""
    total_xp: int = 0
    current_streak: int = 0
    best_streak: int = 0
    last_activity_date: Optional[str] = None  # YYYY-MM-DD format


@dataclass(frozen=True)
class Achievement:
    """Static catalog entry."""
    id: str
    name: str
    description: str
    category: AchievementCategory
    xp: int
    unlocks_title: Optional[str] = None


@dataclass
class AchievementContext:
    """Snapshot of history used to decide achievement unlocks."""
    daily_stats: list[DailyStat] = field(default_factory=list)
    unlocked_ids: set[str] = field(default_factory=set)
    total_focus_cycles: int = 0
    modes_used: set[str] = field(default_factory=set)
    has_custom_mode: bool = False
    completion_time: Optional[datetime] = None


@dataclass
class Quest:
    """A periodic objective."""
    id: str
    name: str
    description: str
    target: int
    xp_reward: int
    current_progress: int = 0
    completed: bool = False

    @property
    def period_key(self) -> str:
        return ""


@dataclass
class DailyQuest(Quest):
    date: str = ""  # YYYY-MM-DD format

    @property
    def period_key(self) -> str:
        return self.date


@dataclass
class WeeklyQuest(Quest):
    week_start: str = ""  # YYYY-MM-DD, always a Monday

    @property
    def period_key(self) -> str:
        return self.week_start


@dataclass
class QuestUpdate:
    """Result of applying a focus completion to the current quests."""
    daily: list[DailyQuest] = field(default_factory=list)
    weekly: list[WeeklyQuest] = field(default_factory=list)
    newly_completed: list[Quest] = field(default_factory=list)

    @property
    def xp_awarded(self) -> int:
        return sum(q.xp_reward for q in self.newly_completed)


@dataclass(frozen=True)
class EffortConfig:
    """XP reward and late penalty for an effort tier."""
    label: str
    xp_reward: int
    xp_penalty: int


@dataclass
class Task:
    """A user-defined task with a reward and a late penalty."""
    id: str
    title: str
    effort: EffortTier
    xp_reward: int
    xp_penalty: int
    created_at: str  # ISO timestamp
    status: TaskStatus = TaskStatus.PENDING
    description: str = ""
    xp_earned: int = 0
    penalty_applied: bool = False
    deadline: Optional[str] = None  # YYYY-MM-DD format
    completed_at: Optional[str] = None  # ISO timestamp
    linked_focus_cycles: int = 0
    sort_order: int = 0


@dataclass
class Subtask:
    """A step of a task carrying an even share of the task's XP."""
    id: str
    task_id: str
    title: str
    xp_reward: int = 0
    completed: bool = False
    completed_at: Optional[str] = None
    order: int = 0


@dataclass
class CreateTaskInput:
    title: str
    effort: EffortTier = EffortTier.COMMON
    description: str = ""
    deadline: Optional[str] = None
    subtasks: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SubtaskProgress:
    completed: int = 0
    total: int = 0
    percentage: int = 0


@dataclass
class TaskCompletion:
    """Outcome of completing a task."""
    task: Task
    subtasks: list[Subtask]
    xp_gained: int


@dataclass
class FocusReward:
    """Everything granted for one completed focus cycle."""
    xp: int
    streak: int
    achievements: list[Achievement] = field(default_factory=list)
    completed_quests: list[Quest] = field(default_factory=list)
    linked_task_id: Optional[str] = None

    @property
    def total_xp(self) -> int:
        return (
            self.xp
            + sum(a.xp for a in self.achievements)
            + sum(q.xp_reward for q in self.completed_quests)
        )
