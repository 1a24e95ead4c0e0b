"""Tests for the toml configuration layer."""

import logging

from pomoquest.config import Config, ConfigManager, LoggingConfig, TimerConfig
from pomoquest.modes import create_custom_mode


def test_defaults_when_missing(tmp_path):
    cm = ConfigManager(tmp_path)
    config = cm.load()
    assert not cm.is_configured()
    assert config.timer == TimerConfig()
    assert config.logging == LoggingConfig()
    assert config.modes == []
    assert config.default_mode().id == "traditional"


def test_malformed_file_falls_back(tmp_path, caplog):
    (tmp_path / "config.toml").write_text("[timer\ndefault_mode = ")
    with caplog.at_level(logging.WARNING, logger="pomoquest"):
        config = ConfigManager(tmp_path).load()
    assert config.timer.default_mode == "traditional"
    assert "using defaults" in caplog.text


def test_save_and_load(tmp_path):
    cm = ConfigManager(tmp_path / "nested")
    custom = create_custom_mode("Deep Work", focus_duration=60 * 60, cycles_until_long_break=2)
    config = Config(timer=TimerConfig(default_mode=custom.id, penalty_check_minutes=10), modes=[custom])
    cm.save(config)

    loaded = cm.load()
    assert cm.is_configured()
    assert loaded.modes == [custom]
    assert loaded.timer.penalty_check_minutes == 10
    assert loaded.default_mode() == custom


def test_invalid_custom_mode_skipped(caplog):
    data = {
        "modes": [
            {"name": "Good", "focus_minutes": 30},
            {"name": "Bad", "focus_minutes": 0},
            {"name": "Ugly", "accent_color": "blue"},
        ]
    }
    with caplog.at_level(logging.WARNING, logger="pomoquest"):
        config = Config.from_dict(data)
    assert [m.name for m in config.modes] == ["Good"]
    assert config.modes[0].id == "custom_good"
    assert config.modes[0].focus_duration == 30 * 60
    assert "Bad" in caplog.text
    assert "Ugly" in caplog.text


def test_find_mode():
    custom = create_custom_mode("Deep")
    config = Config(modes=[custom])
    assert config.find_mode("animedoro").name == "Animedoro"
    assert config.find_mode(custom.id) == custom
    assert config.find_mode("missing") is None
    assert [m.id for m in config.all_modes()][-1] == custom.id


def test_unknown_default_mode_falls_back():
    config = Config(timer=TimerConfig(default_mode="gone"))
    assert config.default_mode().id == "traditional"


def test_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("POMOQUEST_HOME", str(tmp_path))
    assert ConfigManager().config_file == tmp_path / "config.toml"
