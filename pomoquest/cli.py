"""Main CLI entry point for Pomoquest - a gamified focus timer."""

import time
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import HOME_ENV, Config, ConfigManager
from .display import (
    print_header,
    print_modes,
    print_progress,
    print_reward,
    print_timer_status,
    status_line,
)
from .logging_setup import setup_logging
from .models import CreateTaskInput, EffortTier, Mode, RunState
from .modes import create_custom_mode, validate_mode
from .scoring import calculate_xp_for_focus, get_streak_multiplier
from .session import FocusSession


def get_config(ctx: click.Context) -> Config:
    return ctx.obj["config"]


def resolve_mode(ctx: click.Context, mode_id: Optional[str]) -> Mode:
    """Look up a mode by ID, defaulting to the configured mode."""
    config = get_config(ctx)
    if mode_id is None:
        return config.default_mode()
    mode = config.find_mode(mode_id)
    if mode is None:
        raise click.BadParameter(f"Unknown mode: {mode_id}", param_hint="--mode")
    return mode


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar=HOME_ENV,
    help="Configuration directory",
)
@click.pass_context
def main(ctx: click.Context, version: bool, config_dir: Optional[Path]) -> None:
    """Pomoquest - focus timer with XP, streaks, quests and tasks.

    Use 'pomoquest run' to start focusing.
    """
    cm = ConfigManager(config_dir)
    config = cm.load()
    setup_logging(config.logging)
    ctx.obj = {"config_manager": cm, "config": config}

    if version:
        click.echo(f"pomoquest {__version__}")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============================================================================
# Mode Commands
# ============================================================================

@main.command()
@click.pass_context
def modes(ctx: click.Context) -> None:
    """List preset and custom modes."""
    config = get_config(ctx)
    print_modes(config.all_modes(), config.timer.default_mode)


@main.group()
def mode() -> None:
    """Manage custom modes."""
    pass


@mode.command(name="add")
@click.argument("name")
@click.option("--focus", default=25, type=int, help="Focus minutes")
@click.option("--short", "short_break", default=5, type=int, help="Short break minutes")
@click.option("--long", "long_break", default=15, type=int, help="Long break minutes")
@click.option("--cycles", default=4, type=int, help="Focus cycles before a long break")
@click.option("--color", default="#7aa2f7", help="Accent color (#RRGGBB)")
@click.pass_context
def mode_add(
    ctx: click.Context,
    name: str,
    focus: int,
    short_break: int,
    long_break: int,
    cycles: int,
    color: str,
) -> None:
    """Create a custom mode."""
    fields = {
        "name": name,
        "focus_duration": focus * 60,
        "short_break_duration": short_break * 60,
        "long_break_duration": long_break * 60,
        "cycles_until_long_break": cycles,
        "accent_color": color,
    }
    errors = validate_mode(fields)
    if errors:
        for error in errors:
            click.secho(f"✗ {error}", fg="red")
        ctx.exit(1)

    fields.pop("name")
    new_mode = create_custom_mode(name, **fields)

    cm: ConfigManager = ctx.obj["config_manager"]
    config = get_config(ctx)
    config.modes.append(new_mode)
    cm.save(config)
    click.secho(f"✓ Added mode {new_mode.name} ({new_mode.id})", fg="green")


# ============================================================================
# Score Commands
# ============================================================================

@main.command()
@click.option("--mode", "mode_id", help="Mode ID")
@click.option("--streak", default=0, type=click.IntRange(min=0), help="Current streak in days")
@click.pass_context
def xp(ctx: click.Context, mode_id: Optional[str], streak: int) -> None:
    """Show the XP one focus cycle is worth."""
    selected = resolve_mode(ctx, mode_id)
    gained = calculate_xp_for_focus(selected, streak)
    multiplier = get_streak_multiplier(streak)
    click.echo(f"{selected.name}: {gained} XP per focus (x{multiplier:.2f} at {streak} day streak)")


# ============================================================================
# Timer
# ============================================================================

@main.command()
@click.option("--mode", "mode_id", help="Mode ID")
@click.option("--cycles", default=1, type=click.IntRange(min=1), help="Focus cycles to complete")
@click.option("--task", "task_title", help="Link focus cycles to a new task")
@click.option(
    "--effort",
    type=click.Choice([tier.value for tier in EffortTier]),
    default=EffortTier.COMMON.value,
    help="Effort tier of the task",
)
@click.pass_context
def run(
    ctx: click.Context,
    mode_id: Optional[str],
    cycles: int,
    task_title: Optional[str],
    effort: str,
) -> None:
    """Run the timer in the foreground."""
    config = get_config(ctx)
    session = FocusSession(resolve_mode(ctx, mode_id), custom_modes=config.modes)

    if task_title:
        task = session.add_task(CreateTaskInput(title=task_title, effort=EffortTier(effort)))
        session.active_task_id = task.id
        click.echo(f"Working on: {task.title}")

    print_header(f"Pomoquest - {session.timer.mode.name}")
    print_timer_status(session.timer.start())

    interval = config.timer.tick_interval_seconds
    penalty_every_ms = config.timer.penalty_check_minutes * 60 * 1000
    last_penalty_ms = session.clock.monotonic_ms()

    try:
        while len(session.rewards) < cycles:
            time.sleep(interval)
            seen = len(session.rewards)
            snapshot = session.tick()
            click.echo(f"\r{status_line(snapshot)}", nl=False)

            if snapshot.run_state == RunState.FINISHED:
                if len(session.rewards) > seen:
                    print_reward(session.rewards[-1])
                if len(session.rewards) < cycles:
                    print_timer_status(session.timer.start())

            now_ms = session.clock.monotonic_ms()
            if now_ms - last_penalty_ms >= penalty_every_ms:
                session.apply_overdue_penalties()
                last_penalty_ms = now_ms
    except KeyboardInterrupt:
        session.timer.pause()
        click.echo("\nTimer stopped.")

    print_progress(session.progress)


if __name__ == "__main__":
    main()
