"""Configuration management for Pomoquest."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import toml

from .models import Mode
from .modes import PRESET_MODES, default_preset, get_preset, mode_fields, validate_mode

logger = logging.getLogger(__name__)

HOME_ENV = "POMOQUEST_HOME"


@dataclass
class TimerConfig:
    """Timer driving settings."""
    default_mode: str = "traditional"
    tick_interval_seconds: float = 1.0
    penalty_check_minutes: int = 5


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    file: str = ""  # empty logs to stderr only


@dataclass
class Config:
    """Main application configuration."""
    timer: TimerConfig = field(default_factory=TimerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    modes: list[Mode] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        timer_data = data.get("timer", {})
        logging_data = data.get("logging", {})

        modes = []
        for entry in data.get("modes", []):
            mode = Mode.from_dict(entry)
            errors = validate_mode(mode_fields(mode))
            if errors:
                logger.warning(f"Skipping custom mode {entry.get('name')!r}: {'; '.join(errors)}")
                continue
            modes.append(mode)

        return cls(
            timer=TimerConfig(
                default_mode=timer_data.get("default_mode", "traditional"),
                tick_interval_seconds=float(timer_data.get("tick_interval_seconds", 1.0)),
                penalty_check_minutes=int(timer_data.get("penalty_check_minutes", 5)),
            ),
            logging=LoggingConfig(
                level=logging_data.get("level", "INFO"),
                file=logging_data.get("file", ""),
            ),
            modes=modes,
        )

    def to_dict(self) -> dict:
        """Convert Config to dictionary."""
        return {
            "timer": {
                "default_mode": self.timer.default_mode,
                "tick_interval_seconds": self.timer.tick_interval_seconds,
                "penalty_check_minutes": self.timer.penalty_check_minutes,
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
            },
            "modes": [mode.to_dict() for mode in self.modes],
        }

    def all_modes(self) -> list[Mode]:
        """Presets followed by custom modes."""
        return [*PRESET_MODES, *self.modes]

    def find_mode(self, mode_id: str) -> Optional[Mode]:
        preset = get_preset(mode_id)
        if preset is not None:
            return preset
        return next((m for m in self.modes if m.id == mode_id), None)

    def default_mode(self) -> Mode:
        mode = self.find_mode(self.timer.default_mode)
        if mode is None:
            logger.warning(f"Unknown default mode {self.timer.default_mode!r}, using preset")
            return default_preset()
        return mode


class ConfigManager:
    """Manages configuration file operations."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize config manager.

        Args:
            config_dir: Override config directory (for testing)
        """
        if config_dir is None:
            env_dir = os.environ.get(HOME_ENV)
            self.config_dir = Path(env_dir) if env_dir else Path.home() / ".pomoquest"
        else:
            self.config_dir = Path(config_dir)

        self.config_file = self.config_dir / "config.toml"

    def ensure_dirs(self) -> None:
        """Create config directory if it doesn't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def load(self) -> Config:
        """Load configuration from file.

        Returns:
            Config object with loaded or default values
        """
        if not self.config_file.exists():
            return Config()

        try:
            data = toml.load(self.config_file)
        except (OSError, toml.TomlDecodeError) as e:
            logger.warning(f"Failed to read {self.config_file}, using defaults: {e}")
            return Config()
        return Config.from_dict(data)

    def save(self, config: Config) -> None:
        """Save configuration to file.

        Args:
            config: Configuration to save
        """
        self.ensure_dirs()
        with open(self.config_file, "w") as f:
            toml.dump(config.to_dict(), f)

    def is_configured(self) -> bool:
        """Check if a config file has been written."""
        return self.config_file.exists()
