"""Tests for the click command line."""

import logging
from functools import partial

import pytest
import toml
from click.testing import CliRunner

from pomoquest import __version__, cli
from pomoquest.cli import main
from pomoquest.clock import ManualClock
from pomoquest.session import FocusSession


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    # CliRunner swaps stderr per invocation; drop the handler bound to it
    logger = logging.getLogger("pomoquest")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def invoke(runner, tmp_path, *args):
    return runner.invoke(main, ["--config-dir", str(tmp_path), *args])


def test_version(runner, tmp_path):
    result = invoke(runner, tmp_path, "--version")
    assert result.exit_code == 0
    assert f"pomoquest {__version__}" in result.output


def test_help_without_command(runner, tmp_path):
    result = invoke(runner, tmp_path)
    assert result.exit_code == 0
    assert "run" in result.output
    assert "modes" in result.output


def test_modes_lists_presets(runner, tmp_path):
    result = invoke(runner, tmp_path, "modes")
    assert result.exit_code == 0
    for mode_id in ("traditional", "sustainable", "animedoro", "mangadoro"):
        assert mode_id in result.output
    assert "25 min/5 min/15 min x4" in result.output


def test_xp(runner, tmp_path):
    result = invoke(runner, tmp_path, "xp", "--mode", "sustainable", "--streak", "7")
    assert result.exit_code == 0
    assert "Sustainable Focus: 25 XP per focus (x1.25 at 7 day streak)" in result.output


def test_xp_default_mode(runner, tmp_path):
    result = invoke(runner, tmp_path, "xp")
    assert result.exit_code == 0
    assert "Traditional: 10 XP" in result.output


def test_xp_unknown_mode(runner, tmp_path):
    result = invoke(runner, tmp_path, "xp", "--mode", "nope")
    assert result.exit_code == 2
    assert "Unknown mode: nope" in result.output


def test_mode_add(runner, tmp_path):
    result = invoke(
        runner, tmp_path, "mode", "add", "Deep Work",
        "--focus", "60", "--short", "10", "--long", "30", "--cycles", "2",
    )
    assert result.exit_code == 0
    assert "Added mode Deep Work" in result.output

    saved = toml.load(tmp_path / "config.toml")
    assert saved["modes"][0]["name"] == "Deep Work"
    assert saved["modes"][0]["focus_minutes"] == 60

    listed = invoke(runner, tmp_path, "modes")
    assert "Deep Work" in listed.output
    assert "(custom)" in listed.output


def test_mode_add_rejects_invalid(runner, tmp_path):
    result = invoke(runner, tmp_path, "mode", "add", "Broken", "--focus", "0", "--color", "red")
    assert result.exit_code == 1
    assert "Focus duration must be at least 60 seconds" in result.output
    assert "Accent color" in result.output
    assert not (tmp_path / "config.toml").exists()


@pytest.fixture
def manual_session(monkeypatch):
    """Run the foreground loop on a scripted clock, one minute per sleep."""
    clock = ManualClock()
    monkeypatch.setattr(cli, "FocusSession", partial(FocusSession, clock=clock))
    monkeypatch.setattr(cli.time, "sleep", lambda seconds: clock.advance(60))
    return clock


def test_run_one_cycle(runner, tmp_path, manual_session):
    result = invoke(runner, tmp_path, "run", "--task", "Write report", "--effort", "heroic")
    assert result.exit_code == 0
    assert "Working on: Write report" in result.output
    assert "Focus complete: +10 XP" in result.output
    assert "Initiation (+10 XP)" in result.output
    assert "Linked to active task" in result.output
    assert "Level 1 - Novice" in result.output
    assert "XP: 20 (80 to next level)" in result.output


def test_run_several_cycles(runner, tmp_path, manual_session):
    result = invoke(runner, tmp_path, "run", "--mode", "traditional", "--cycles", "2")
    assert result.exit_code == 0
    assert result.output.count("Focus complete") == 2
    assert "SHORT BREAK" in result.output


def test_run_interrupted(runner, tmp_path, monkeypatch):
    def interrupt(seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli.time, "sleep", interrupt)
    result = invoke(runner, tmp_path, "run")
    assert result.exit_code == 0
    assert "Timer stopped." in result.output
    assert "XP: 0 (100 to next level)" in result.output
