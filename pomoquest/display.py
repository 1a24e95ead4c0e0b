"""Display formatting for Pomoquest CLI - progress bars and status lines."""

import click

from .achievements import calculate_level, get_full_title, xp_for_next_level
from .dates import format_time
from .models import FocusReward, Mode, Phase, RunState, TimerSnapshot, UserProgress
from .modes import format_duration

PHASE_STYLE = {
    Phase.FOCUS: ("FOCUS", "red"),
    Phase.SHORT_BREAK: ("SHORT BREAK", "green"),
    Phase.LONG_BREAK: ("LONG BREAK", "cyan"),
}


def progress_bar(current: int, total: int, width: int = 20, filled: str = "█", empty: str = "░") -> str:
    """Create an ASCII progress bar.

    Args:
        current: Current value
        total: Total value
        width: Width of the bar in characters
        filled: Character for filled portion
        empty: Character for empty portion

    Returns:
        Progress bar string
    """
    if total == 0:
        return empty * width

    ratio = min(current / total, 1.0)
    filled_width = int(width * ratio)
    empty_width = width - filled_width
    return filled * filled_width + empty * empty_width


def cycle_icons(completed: int, cycles_until_long_break: int) -> str:
    """Dots for the cycles completed in the current long-break round."""
    done = completed % cycles_until_long_break
    return "●" * done + "○" * (cycles_until_long_break - done)


def print_header(text: str) -> None:
    """Print a styled header.

    Args:
        text: Header text
    """
    width = 50
    click.echo()
    click.echo("═" * width)
    click.echo(f" {text}")
    click.echo("═" * width)


def status_line(snapshot: TimerSnapshot) -> str:
    """One-line timer status suitable for redrawing in place."""
    label, _ = PHASE_STYLE[snapshot.phase]
    elapsed = snapshot.total_seconds - snapshot.remaining_seconds
    bar = progress_bar(elapsed, snapshot.total_seconds, width=30)
    state = "" if snapshot.run_state == RunState.RUNNING else f" ({snapshot.run_state.value.lower()})"
    return f"{label:<11} {format_time(snapshot.remaining_seconds)} [{bar}]{state}"


def print_timer_status(snapshot: TimerSnapshot) -> None:
    """Print current timer status.

    Args:
        snapshot: Current timer snapshot
    """
    label, color = PHASE_STYLE[snapshot.phase]
    click.secho(f"\n{label} - {snapshot.mode.name}", fg=color, bold=True)
    click.echo(f"   {status_line(snapshot)}")
    icons = cycle_icons(snapshot.completed_cycles, snapshot.mode.cycles_until_long_break)
    click.echo(f"   Cycles: {snapshot.completed_cycles} {icons}")


def print_modes(modes: list[Mode], default_id: str = "") -> None:
    print_header("Modes")
    for mode in modes:
        marker = "*" if mode.id == default_id else " "
        kind = "custom" if mode.is_custom else "preset"
        click.echo(
            f" {marker} {mode.id:<16} {mode.name:<20} "
            f"{format_duration(mode.focus_duration)}/"
            f"{format_duration(mode.short_break_duration)}/"
            f"{format_duration(mode.long_break_duration)} "
            f"x{mode.cycles_until_long_break} ({kind})"
        )


def print_reward(reward: FocusReward) -> None:
    """Print what one focus cycle earned."""
    streak = f" (streak {reward.streak}d)" if reward.streak >= 3 else ""
    click.secho(f"\n✓ Focus complete: +{reward.xp} XP{streak}", fg="green", bold=True)
    for achievement in reward.achievements:
        click.secho(f"  🏆 {achievement.name} (+{achievement.xp} XP)", fg="yellow")
    for quest in reward.completed_quests:
        click.secho(f"  📜 Quest: {quest.name} (+{quest.xp_reward} XP)", fg="cyan")
    if reward.linked_task_id:
        click.echo("  Linked to active task")


def print_progress(progress: UserProgress) -> None:
    level = calculate_level(progress.total_xp)
    click.echo(f"\n{get_full_title(level)}")
    click.echo(f"  XP: {progress.total_xp} ({xp_for_next_level(progress.total_xp)} to next level)")
    click.echo(f"  Streak: {progress.current_streak} day{'s' if progress.current_streak != 1 else ''}")
