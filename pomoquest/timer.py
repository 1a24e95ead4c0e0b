"""Drift-corrected focus/break timer.

The timer is an immutable TimerState record plus pure transition functions
of the form (state, now_ms) -> state. TimerEngine wraps them for callers
that want a single mutable handle driven by a clock.
"""

import logging
from dataclasses import replace
from typing import Optional

from .clock import Clock, default_clock
from .models import Mode, Phase, RunState, TimerSnapshot, TimerState

logger = logging.getLogger(__name__)

MINUTE = 60


def phase_duration(mode: Mode, phase: Phase) -> int:
    """Return the configured length of a phase in seconds."""
    if phase == Phase.FOCUS:
        return mode.focus_duration
    if phase == Phase.SHORT_BREAK:
        return mode.short_break_duration
    return mode.long_break_duration


def initial_state(mode: Mode) -> TimerState:
    """Idle focus phase with no completed cycles."""
    return TimerState(mode=mode, remaining_seconds=mode.focus_duration)


def _next_phase(phase: Phase, completed_cycles: int, mode: Mode) -> Phase:
    if phase != Phase.FOCUS:
        return Phase.FOCUS
    if completed_cycles % mode.cycles_until_long_break == 0:
        return Phase.LONG_BREAK
    return Phase.SHORT_BREAK


def _finish_phase(state: TimerState) -> TimerState:
    cycles = state.completed_cycles
    if state.phase == Phase.FOCUS:
        cycles += 1
    phase = _next_phase(state.phase, cycles, state.mode)
    logger.info(f"Phase {state.phase.value} finished, next {phase.value} (cycles={cycles})")
    return replace(
        state,
        run_state=RunState.FINISHED,
        phase=phase,
        remaining_seconds=phase_duration(state.mode, phase),
        completed_cycles=cycles,
        started_at_ms=None,
    )


def start(state: TimerState, now_ms: int) -> TimerState:
    if state.run_state not in (RunState.IDLE, RunState.FINISHED):
        return state
    return replace(state, run_state=RunState.RUNNING, started_at_ms=now_ms)


def pause(state: TimerState, now_ms: int) -> TimerState:
    """Freeze the countdown, charging the whole seconds run so far."""
    if state.run_state != RunState.RUNNING:
        return state
    remaining = state.remaining_seconds
    if state.started_at_ms is not None:
        elapsed = max(0, (now_ms - state.started_at_ms) // 1000)
        remaining = max(0, remaining - elapsed)
    return replace(
        state,
        run_state=RunState.PAUSED,
        remaining_seconds=remaining,
        started_at_ms=None,
    )


def resume(state: TimerState, now_ms: int) -> TimerState:
    if state.run_state != RunState.PAUSED:
        return state
    return replace(state, run_state=RunState.RUNNING, started_at_ms=now_ms)


def skip(state: TimerState) -> TimerState:
    """Advance to the next phase immediately.

    Skipping a focus phase counts it as a completed cycle.
    """
    if state.run_state not in (RunState.RUNNING, RunState.PAUSED):
        return state
    logger.info(f"Skipping {state.phase.value}")
    return _finish_phase(state)


def reset(state: TimerState) -> TimerState:
    """Return to IDLE at the start of the current phase."""
    return replace(
        state,
        run_state=RunState.IDLE,
        remaining_seconds=phase_duration(state.mode, state.phase),
        started_at_ms=None,
    )


def add_minute(state: TimerState) -> TimerState:
    return replace(state, remaining_seconds=state.remaining_seconds + MINUTE)


def subtract_minute(state: TimerState) -> TimerState:
    """Remove a minute, never going below one minute."""
    return replace(state, remaining_seconds=max(MINUTE, state.remaining_seconds - MINUTE))


def set_mode(state: TimerState, mode: Mode) -> TimerState:
    logger.info(f"Switching mode {state.mode.id} -> {mode.id}")
    return initial_state(mode)


def tick(state: TimerState, now_ms: int) -> TimerState:
    """Charge the whole seconds elapsed since the last timestamp.

    The timestamp is rebased by exactly the seconds charged rather than to
    now_ms, so a late or early tick only moves the sub-second remainder to
    the next call. Rebasing to now_ms would drop that remainder and lose up
    to a second per tick.
    """
    if state.run_state != RunState.RUNNING or state.started_at_ms is None:
        return state

    elapsed = max(0, (now_ms - state.started_at_ms) // 1000)
    remaining = max(0, state.remaining_seconds - elapsed)
    state = replace(
        state,
        remaining_seconds=remaining,
        started_at_ms=state.started_at_ms + elapsed * 1000,
    )

    if remaining == 0:
        return _finish_phase(state)
    return state


def snapshot(state: TimerState) -> TimerSnapshot:
    return TimerSnapshot(
        run_state=state.run_state,
        phase=state.phase,
        remaining_seconds=state.remaining_seconds,
        completed_cycles=state.completed_cycles,
        mode=state.mode,
        total_seconds=phase_duration(state.mode, state.phase),
    )


def completed_focus(before: TimerState, after: TimerState) -> bool:
    """Whether a focus phase was completed between two states of one mode."""
    return after.mode == before.mode and after.completed_cycles > before.completed_cycles


class TimerEngine:
    """Timer handle that reads its clock on every operation.

    Not safe for concurrent use; drive it from a single caller.
    """

    def __init__(self, mode: Mode, clock: Optional[Clock] = None):
        """Initialize the engine.

        Args:
            mode: Starting mode
            clock: Time source (defaults to the system clock)
        """
        self.clock = default_clock(clock)
        self._state = initial_state(mode)

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def mode(self) -> Mode:
        return self._state.mode

    def _apply(self, state: TimerState) -> TimerSnapshot:
        self._state = state
        return snapshot(state)

    def start(self) -> TimerSnapshot:
        return self._apply(start(self._state, self.clock.monotonic_ms()))

    def pause(self) -> TimerSnapshot:
        return self._apply(pause(self._state, self.clock.monotonic_ms()))

    def resume(self) -> TimerSnapshot:
        return self._apply(resume(self._state, self.clock.monotonic_ms()))

    def skip(self) -> TimerSnapshot:
        return self._apply(skip(self._state))

    def reset(self) -> TimerSnapshot:
        return self._apply(reset(self._state))

    def add_minute(self) -> TimerSnapshot:
        return self._apply(add_minute(self._state))

    def subtract_minute(self) -> TimerSnapshot:
        return self._apply(subtract_minute(self._state))

    def set_mode(self, mode: Mode) -> TimerSnapshot:
        return self._apply(set_mode(self._state, mode))

    def tick(self) -> TimerSnapshot:
        return self._apply(tick(self._state, self.clock.monotonic_ms()))

    def snapshot(self) -> TimerSnapshot:
        return snapshot(self._state)
