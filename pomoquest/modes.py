"""Timer mode presets and custom mode helpers."""

import re
import time
from typing import Optional

from .dates import format_minutes
from .models import Mode

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
MIN_DURATION_SECONDS = 60

PRESET_MODES: tuple[Mode, ...] = (
    Mode(
        id="traditional",
        name="Traditional",
        focus_duration=25 * 60,
        short_break_duration=5 * 60,
        long_break_duration=15 * 60,
        cycles_until_long_break=4,
        accent_color="#7aa2f7",
        disclaimer="Classic preset.",
    ),
    Mode(
        id="sustainable",
        name="Sustainable Focus",
        focus_duration=50 * 60,
        short_break_duration=10 * 60,
        long_break_duration=30 * 60,
        cycles_until_long_break=3,
        accent_color="#9ece6a",
        disclaimer="Inspired by sustainable productivity heuristics.",
    ),
    Mode(
        id="animedoro",
        name="Animedoro",
        focus_duration=40 * 60,
        short_break_duration=20 * 60,  # one episode
        long_break_duration=60 * 60,
        cycles_until_long_break=2,
        accent_color="#bb9af7",
        disclaimer="Inspired by breaks spent on short episodes.",
    ),
    Mode(
        id="mangadoro",
        name="Mangadoro",
        focus_duration=45 * 60,
        short_break_duration=15 * 60,  # a chapter or two
        long_break_duration=45 * 60,
        cycles_until_long_break=3,
        accent_color="#e0af68",
        disclaimer="Inspired by breaks spent reading comics.",
    ),
)

PRESET_IDS: frozenset[str] = frozenset(mode.id for mode in PRESET_MODES)


def get_preset(mode_id: str) -> Optional[Mode]:
    """Find a preset by ID."""
    for mode in PRESET_MODES:
        if mode.id == mode_id:
            return mode
    return None


def default_preset() -> Mode:
    return PRESET_MODES[0]


def is_preset_mode(mode_id: str) -> bool:
    return mode_id in PRESET_IDS


def validate_mode(fields: dict) -> list[str]:
    """Validate mode fields.

    Args:
        fields: Mapping with name, durations (seconds), cycle count and color

    Returns:
        List of error messages, empty when valid
    """
    errors = []

    if not str(fields.get("name") or "").strip():
        errors.append("Name is required")

    for key, label in (
        ("focus_duration", "Focus duration"),
        ("short_break_duration", "Short break duration"),
        ("long_break_duration", "Long break duration"),
    ):
        if not fields.get(key) or fields[key] < MIN_DURATION_SECONDS:
            errors.append(f"{label} must be at least 60 seconds (1 minute)")

    if not fields.get("cycles_until_long_break") or fields["cycles_until_long_break"] < 1:
        errors.append("Cycles until long break must be at least 1")

    if not HEX_COLOR.match(str(fields.get("accent_color") or "")):
        errors.append("Accent color must be a hex color (e.g. #7aa2f7)")

    return errors


def mode_fields(mode: Mode) -> dict:
    """Return the validated fields of an existing mode."""
    return {
        "name": mode.name,
        "focus_duration": mode.focus_duration,
        "short_break_duration": mode.short_break_duration,
        "long_break_duration": mode.long_break_duration,
        "cycles_until_long_break": mode.cycles_until_long_break,
        "accent_color": mode.accent_color,
    }


def create_custom_mode(name: str, **overrides) -> Mode:
    """Create a custom mode with default durations.

    Args:
        name: Display name
        **overrides: Any Mode field except id, name and is_custom

    Returns:
        New custom Mode
    """
    values = {
        "focus_duration": 25 * 60,
        "short_break_duration": 5 * 60,
        "long_break_duration": 15 * 60,
        "cycles_until_long_break": 4,
        "accent_color": "#7aa2f7",
        "disclaimer": "Custom mode",
    }
    values.update(overrides)
    return Mode(
        id=f"custom_{int(time.time() * 1000)}",
        name=name,
        is_custom=True,
        **values,
    )


def format_duration(seconds: int) -> str:
    """Format a duration in seconds, e.g. 1500 -> '25 min'."""
    return format_minutes(seconds // 60)
