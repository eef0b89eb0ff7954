"""Tests for config: file lookup, validation and environment overrides."""

from __future__ import annotations

import json
import logging

import pytest

import config
from music_theory import Difficulty, GameMode, NotationSystem

_ENV_NAMES = (
    "STAFF_HERO_CONFIG_PATH",
    "STAFF_HERO_NOTATION",
    "STAFF_HERO_DIFFICULTY",
    "STAFF_HERO_GAME_MODE",
    "STAFF_HERO_SHOW_LABELS",
    "STAFF_HERO_NOTE_SPEED_MS",
    "STAFF_HERO_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    for env_name in _ENV_NAMES:
        monkeypatch.delenv(env_name, raising=False)
    monkeypatch.setattr(config, "_default_config_candidates", lambda: [tmp_path / "absent.json"])


def _write_config(tmp_path, payload, name="staff_hero_config.json"):
    config_path = tmp_path / name
    config_path.write_text(json.dumps(payload), encoding="utf-8")
    return config_path


def test_defaults_when_no_file_exists():
    app_config, config_path = config.load_config()
    assert config_path is None
    assert app_config.game.notation_system == "solfege"
    assert app_config.game.game_mode == "single-note"
    assert app_config.rhythm.note_speed_ms == 3000.0
    assert app_config.scoring.base_points == 10
    assert app_config.analytics.recent_sessions_cap == 20
    assert app_config.logging.level == "WARNING"


def test_file_values_are_normalized(tmp_path):
    config_path = _write_config(
        tmp_path,
        {
            "game": {"notation_system": "Letter", "difficulty": "ADVANCED", "game_mode": "Rhythm"},
            "rhythm": {"note_speed_ms": 2000, "target_line_x": 90, "hit_zone_size": 25},
            "logging": {"level": "debug"},
        },
    )
    app_config, resolved_path = config.load_config(config_path)

    assert resolved_path == config_path
    assert app_config.game.notation_system == "letter"
    assert app_config.game.difficulty == "advanced"
    assert app_config.game.game_mode == "rhythm"
    assert app_config.logging.level == "DEBUG"

    rhythm_config = config.to_rhythm_config(app_config)
    assert rhythm_config.note_speed_ms == 2000.0
    assert rhythm_config.target_line_x == 90.0
    assert rhythm_config.hit_zone_size == 25.0
    assert rhythm_config.note_interval_ms == 1000.0


def test_to_settings_builds_enum_settings(tmp_path):
    config_path = _write_config(tmp_path, {"game": {"notation_system": "letter", "game_mode": "chord"}})
    settings = config.to_settings(config.load_config(config_path)[0])
    assert settings.notation_system == NotationSystem.LETTER
    assert settings.game_mode == GameMode.CHORD
    assert settings.difficulty == Difficulty.BEGINNER


def test_explicit_path_from_environment(monkeypatch, tmp_path):
    config_path = _write_config(tmp_path, {"scoring": {"base_points": 25}}, name="custom.json")
    monkeypatch.setenv("STAFF_HERO_CONFIG_PATH", str(config_path))

    app_config, resolved_path = config.load_config()
    assert resolved_path == config_path
    assert app_config.scoring.base_points == 25


def test_environment_overrides_file(monkeypatch, tmp_path):
    config_path = _write_config(tmp_path, {"game": {"game_mode": "chord", "show_note_labels": True}})
    monkeypatch.setenv("STAFF_HERO_GAME_MODE", "sequence")
    monkeypatch.setenv("STAFF_HERO_SHOW_LABELS", "off")
    monkeypatch.setenv("STAFF_HERO_NOTE_SPEED_MS", "2500")
    monkeypatch.setenv("STAFF_HERO_LOG_LEVEL", "info")

    app_config, _resolved_path = config.load_config(config_path)
    assert app_config.game.game_mode == "sequence"
    assert app_config.game.show_note_labels is False
    assert app_config.rhythm.note_speed_ms == 2500.0
    assert app_config.logging.level == "INFO"


def test_unparseable_numeric_override_is_ignored(monkeypatch):
    monkeypatch.setenv("STAFF_HERO_NOTE_SPEED_MS", "fast")
    app_config, _resolved_path = config.load_config()
    assert app_config.rhythm.note_speed_ms == 3000.0


def test_invalid_json_raises_value_error(tmp_path):
    config_path = tmp_path / "broken.json"
    config_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        config.load_config(config_path)


def test_non_object_root_raises_value_error(tmp_path):
    config_path = _write_config(tmp_path, ["game"])
    with pytest.raises(ValueError, match="JSON object"):
        config.load_config(config_path)


@pytest.mark.parametrize(
    "payload",
    [
        {"game": {"difficulty": "expert"}},
        {"game": {"notation_system": "numbers"}},
        {"rhythm": {"note_speed_ms": 0}},
        {"rhythm": {"target_progress": 1.5}},
        {"scoring": {"base_points": -1}},
        {"analytics": {"recent_sessions_cap": 0}},
        {"logging": {"level": "LOUD"}},
    ],
)
def test_validation_failures_raise_value_error(tmp_path, payload):
    config_path = _write_config(tmp_path, payload)
    with pytest.raises(ValueError, match="Config validation failed"):
        config.load_config(config_path)


def test_unknown_environment_value_fails_validation(monkeypatch):
    monkeypatch.setenv("STAFF_HERO_DIFFICULTY", "impossible")
    with pytest.raises(ValueError, match="Config validation failed"):
        config.load_config()


def test_missing_explicit_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        config.load_config(tmp_path / "missing.json")


def test_configure_logging_uses_configured_level(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    app_config, _resolved_path = config.load_config()
    config.configure_logging(app_config)
    assert calls[0]["level"] == logging.WARNING


def test_to_json_round_trips_through_model(tmp_path):
    app_config, _resolved_path = config.load_config()
    restored = config.AppConfig.model_validate(json.loads(config.to_json(app_config)))
    assert restored == app_config
