"""Tests for task rewards, subtasks, deadline penalties and ordering."""

from dataclasses import replace
from datetime import datetime

import pytest

from pomoquest.clock import ManualClock
from pomoquest.models import CreateTaskInput, EffortTier, Task, TaskFilter, TaskStatus
from pomoquest.tasks import (
    EFFORT_CONFIG,
    TaskEngine,
    apply_penalty,
    calculate_progress,
    create_subtasks,
    filter_tasks,
    get_effort_config,
    link_focus_cycle,
    recalculate_subtask_xp,
    reorder_subtasks,
    reorder_tasks,
)

NOW = datetime(2024, 3, 10, 10, 0)


@pytest.fixture
def engine() -> TaskEngine:
    return TaskEngine(ManualClock(NOW))


def new_task(engine: TaskEngine, effort=EffortTier.COMMON, deadline=None, title="Write report") -> Task:
    return engine.create_task(CreateTaskInput(title=title, effort=effort, deadline=deadline))


class TestEffortConfig:
    @pytest.mark.parametrize(
        "tier,reward,penalty",
        [
            ("trivial", 5, 2),
            ("common", 15, 5),
            ("challenging", 22, 8),
            ("heroic", 30, 12),
            ("epic", 40, 16),
            ("legendary", 50, 20),
        ],
    )
    def test_table(self, tier, reward, penalty):
        config = get_effort_config(tier)
        assert (config.xp_reward, config.xp_penalty) == (reward, penalty)

    def test_every_tier_configured(self):
        assert set(EFFORT_CONFIG) == set(EffortTier)

    def test_unknown_tier(self):
        with pytest.raises(ValueError):
            get_effort_config("mythic")


class TestCreation:
    def test_create_task(self, engine):
        task = new_task(engine, EffortTier.HEROIC, deadline="2024-03-12")
        assert task.status == TaskStatus.PENDING
        assert (task.xp_reward, task.xp_penalty) == (30, 12)
        assert task.xp_earned == 0
        assert not task.penalty_applied
        assert task.linked_focus_cycles == 0
        assert task.created_at == "2024-03-10T10:00:00"

    def test_ids_unique(self, engine):
        assert new_task(engine).id != new_task(engine).id

    def test_with_subtasks(self, engine):
        data = CreateTaskInput(title="Ship", subtasks=["plan", "build", "test", "deploy"])
        task, subtasks = engine.create_task_with_subtasks(data)
        assert [s.title for s in subtasks] == ["plan", "build", "test", "deploy"]
        assert [s.order for s in subtasks] == [0, 1, 2, 3]
        assert all(s.task_id == task.id for s in subtasks)
        # 15 // 4, residual not awarded
        assert all(s.xp_reward == 3 for s in subtasks)


class TestSubtasks:
    def test_split(self):
        subtasks = create_subtasks("t", ["a", "b", "c"], 22)
        assert [s.xp_reward for s in subtasks] == [7, 7, 7]

    def test_recalculate(self):
        subtasks = create_subtasks("t", ["a", "b"], 30)
        assert [s.xp_reward for s in recalculate_subtask_xp(subtasks, 30)[:1]] == [15]
        assert recalculate_subtask_xp(subtasks[:1], 30)[0].xp_reward == 30

    @pytest.mark.parametrize(
        "done,total,percentage",
        [(0, 0, 0), (0, 3, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (3, 3, 100)],
    )
    def test_progress(self, done, total, percentage):
        subtasks = create_subtasks("t", [str(i) for i in range(total)], 15)
        subtasks = [replace(s, completed=i < done) for i, s in enumerate(subtasks)]
        progress = calculate_progress(subtasks)
        assert (progress.completed, progress.total, progress.percentage) == (done, total, percentage)

    def test_toggle_moves_xp(self, engine):
        task, subtasks = engine.create_task_with_subtasks(CreateTaskInput(title="x", subtasks=["a", "b", "c"]))
        task, first, delta = engine.toggle_subtask(task, subtasks[0])
        assert first.completed
        assert first.completed_at == "2024-03-10T10:00:00"
        assert delta == 5
        assert task.xp_earned == 5

        task, first, delta = engine.toggle_subtask(task, first)
        assert not first.completed
        assert first.completed_at is None
        assert delta == -5
        assert task.xp_earned == 0

    def test_earned_never_exceeds_reward(self, engine):
        task, subtasks = engine.create_task_with_subtasks(CreateTaskInput(title="x", subtasks=["a"]))
        task = replace(task, xp_earned=12)
        task, _, delta = engine.toggle_subtask(task, subtasks[0])
        assert task.xp_earned == 15
        assert delta == 3

    def test_toggle_on_completed_task_is_noop(self, engine):
        task, subtasks = engine.create_task_with_subtasks(CreateTaskInput(title="x", subtasks=["a"]))
        task = replace(task, status=TaskStatus.COMPLETED)
        assert engine.toggle_subtask(task, subtasks[0]) == (task, subtasks[0], 0)

    def test_add_subtask_resplits(self, engine):
        task, subtasks = engine.create_task_with_subtasks(CreateTaskInput(title="x", subtasks=["a", "b"]))
        subtasks = engine.add_subtask(task, subtasks, "c")
        assert [s.title for s in subtasks] == ["a", "b", "c"]
        assert subtasks[-1].order == 2
        assert all(s.xp_reward == 5 for s in subtasks)

    def test_remove_completed_subtask_reclaims_xp(self, engine):
        task, subtasks = engine.create_task_with_subtasks(CreateTaskInput(title="x", subtasks=["a", "b", "c"]))
        task, done, _ = engine.toggle_subtask(task, subtasks[0])
        subtasks = [done, *subtasks[1:]]
        task, subtasks = engine.remove_subtask(task, subtasks, done.id)
        assert task.xp_earned == 0
        assert [s.xp_reward for s in subtasks] == [7, 7]

    def test_remove_unknown_subtask(self, engine):
        task, subtasks = engine.create_task_with_subtasks(CreateTaskInput(title="x", subtasks=["a"]))
        assert engine.remove_subtask(task, subtasks, "missing") == (task, subtasks)


class TestCompletion:
    def test_early_trivial_task(self, engine):
        task = new_task(engine, EffortTier.TRIVIAL, deadline="2024-03-14")
        assert engine.calculate_completion_xp(task, NOW) == 7

    def test_fully_paid_on_deadline_day(self, engine):
        task = replace(new_task(engine, deadline="2024-03-10"), xp_earned=15)
        assert engine.calculate_completion_xp(task, NOW) == 0

    @pytest.mark.parametrize(
        "deadline,bonus",
        [(None, 0), ("2024-03-09", 0), ("2024-03-10", 0), ("2024-03-11", 3), ("2024-03-12", 3), ("2024-03-13", 7)],
    )
    def test_early_bonus(self, engine, deadline, bonus):
        task = new_task(engine, deadline=deadline)
        assert engine.calculate_early_bonus(task, NOW) == bonus

    def test_complete_task(self, engine):
        task, subtasks = engine.create_task_with_subtasks(
            CreateTaskInput(title="x", effort=EffortTier.EPIC, deadline="2024-03-20", subtasks=["a", "b"])
        )
        task, first, _ = engine.toggle_subtask(task, subtasks[0])
        result = engine.complete_task(task, [first, subtasks[1]])

        assert result.task.status == TaskStatus.COMPLETED
        assert result.task.completed_at == "2024-03-10T10:00:00"
        assert result.task.xp_earned == 40
        assert all(s.completed for s in result.subtasks)
        # 20 left to pay plus the 50% early bonus
        assert result.xp_gained == 20 + 20

    def test_complete_twice_grants_nothing(self, engine):
        task = new_task(engine)
        done = engine.complete_task(task, []).task
        assert engine.complete_task(done, []).xp_gained == 0


class TestDeadlines:
    @pytest.mark.parametrize("deadline,days", [("2024-03-09", -1), ("2024-03-10", 0), ("2024-04-10", 31)])
    def test_days_until(self, engine, deadline, days):
        assert engine.get_days_until_deadline(deadline) == days

    def test_is_overdue(self, engine):
        assert engine.is_overdue(new_task(engine, deadline="2024-03-09"))
        assert not engine.is_overdue(new_task(engine, deadline="2024-03-10"))
        assert not engine.is_overdue(new_task(engine))
        done = replace(new_task(engine, deadline="2024-03-01"), status=TaskStatus.COMPLETED)
        assert not engine.is_overdue(done)

    def test_refresh_statuses(self, engine):
        late = new_task(engine, deadline="2024-03-01")
        fine = new_task(engine, deadline="2024-03-15")
        refreshed = engine.refresh_statuses([late, fine])
        assert [t.status for t in refreshed] == [TaskStatus.OVERDUE, TaskStatus.PENDING]

    def test_tasks_for_penalty(self, engine):
        late = new_task(engine, deadline="2024-03-09", title="late")
        charged = replace(new_task(engine, deadline="2024-03-01"), penalty_applied=True)
        done = replace(new_task(engine, deadline="2024-03-01"), status=TaskStatus.COMPLETED)
        future = new_task(engine, deadline="2024-03-11")
        undated = new_task(engine)
        selected = engine.get_tasks_for_penalty([late, charged, done, future, undated])
        assert [t.title for t in selected] == ["late"]

    def test_penalty_applies_once(self, engine):
        task = new_task(engine, EffortTier.HEROIC, deadline="2024-03-01")
        task, penalty = apply_penalty(task)
        assert penalty == 12
        assert task.status == TaskStatus.OVERDUE
        assert task.penalty_applied
        assert apply_penalty(task) == (task, 0)
        assert engine.get_tasks_for_penalty([task]) == []

    @pytest.mark.parametrize(
        "deadline,text",
        [
            ("2024-03-09", "Overdue yesterday"),
            ("2024-03-07", "Overdue by 3 days"),
            ("2024-03-10", "Today"),
            ("2024-03-11", "Tomorrow"),
            ("2024-03-17", "In 7 days"),
            ("2024-03-25", "25 Mar"),
        ],
    )
    def test_deadline_text(self, engine, deadline, text):
        assert engine.format_deadline_text(deadline) == text

    def test_color_classes(self, engine):
        assert engine.get_deadline_color_class(new_task(engine)) == "text-muted"
        done = replace(new_task(engine, deadline="2024-03-01"), status=TaskStatus.COMPLETED)
        assert engine.get_deadline_color_class(done) == "text-success"
        assert engine.get_deadline_color_class(new_task(engine, deadline="2024-03-09")) == "text-error"
        assert engine.get_deadline_color_class(new_task(engine, deadline="2024-03-12")) == "text-warning"
        assert engine.get_deadline_color_class(new_task(engine, deadline="2024-03-13")) == "text-secondary"


class TestOrdering:
    def test_priority_groups(self, engine):
        a = replace(new_task(engine, deadline="2024-03-08", title="A"), status=TaskStatus.OVERDUE)
        b = new_task(engine, deadline="2024-03-11", title="B")
        c = new_task(engine, title="C")
        d = replace(new_task(engine, title="D"), status=TaskStatus.COMPLETED, completed_at="2024-03-09T10:00:00")
        ordered = engine.sort_by_priority([d, c, b, a])
        assert [t.title for t in ordered] == ["A", "B", "C", "D"]

    def test_most_overdue_first(self, engine):
        slightly = new_task(engine, deadline="2024-03-09", title="slightly")
        badly = new_task(engine, deadline="2024-03-01", title="badly")
        assert [t.title for t in engine.sort_by_priority([slightly, badly])] == ["badly", "slightly"]

    def test_undated_newest_first(self, engine):
        old = replace(new_task(engine, title="old"), created_at="2024-03-01T09:00:00")
        new = replace(new_task(engine, title="new"), created_at="2024-03-09T09:00:00")
        assert [t.title for t in engine.sort_by_priority([old, new])] == ["new", "old"]

    def test_completed_most_recent_first(self, engine):
        first = replace(new_task(engine, title="first"), status=TaskStatus.COMPLETED,
                        completed_at="2024-03-02T10:00:00")
        last = replace(new_task(engine, title="last"), status=TaskStatus.COMPLETED,
                       completed_at="2024-03-08T10:00:00")
        assert [t.title for t in engine.sort_by_priority([first, last])] == ["last", "first"]

    def test_filter_and_reorder(self, engine):
        tasks = [new_task(engine, title=t) for t in ("a", "b", "c")]
        tasks[1] = replace(tasks[1], status=TaskStatus.COMPLETED)
        tasks = reorder_tasks(tasks, [tasks[2].id, tasks[0].id, tasks[1].id])
        assert [t.title for t in filter_tasks(tasks)] == ["c", "a", "b"]
        assert [t.title for t in filter_tasks(tasks, TaskFilter.PENDING)] == ["c", "a"]
        assert [t.title for t in filter_tasks(tasks, "completed")] == ["b"]

    def test_reorder_subtasks(self, engine):
        _, subtasks = engine.create_task_with_subtasks(CreateTaskInput(title="x", subtasks=["a", "b", "c"]))
        reordered = reorder_subtasks(subtasks, [subtasks[2].id, subtasks[0].id])
        assert [(s.title, s.order) for s in reordered] == [("a", 1), ("b", 1), ("c", 0)]
        assert [s.xp_reward for s in reordered] == [5, 5, 5]

    def test_link_focus_cycle(self, engine):
        task = link_focus_cycle(link_focus_cycle(new_task(engine)))
        assert task.linked_focus_cycles == 2
