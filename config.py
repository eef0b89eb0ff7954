"""
config.py

Typed configuration loading and validation for Staff Hero.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If STAFF_HERO_CONFIG_PATH is set, that file is used.
- Otherwise Staff Hero searches these paths in order and uses the first one that exists:
  1) ./staff_hero_config.json (current working directory)
  2) <user config dir>/StaffHero/StaffHero/staff_hero_config.json
- When no file exists the built in defaults are used.

Example config file (staff_hero_config.json)
{
  "game": {
    "notation_system": "solfege",
    "difficulty": "beginner",
    "game_mode": "single-note",
    "show_note_labels": true
  },
  "rhythm": {
    "note_speed_ms": 3000,
    "note_interval_ms": 1000,
    "target_line_x": 120,
    "hit_zone_size": 50,
    "screen_width": 390
  },
  "scoring": {
    "base_points": 10
  },
  "analytics": {
    "recent_sessions_cap": 20
  },
  "logging": {
    "level": "INFO"
  }
}
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator

from gameplay_models import GameSettings
from music_theory import (
    Difficulty,
    GameMode,
    NotationSystem,
    SettingsError,
    normalize_difficulty,
    normalize_game_mode,
    normalize_notation_system,
)
from note_scheduler import RhythmConfig


class GameDefaultsConfig(BaseModel):
    notation_system: str = Field(default=NotationSystem.SOLFEGE.value, description="letter or solfege")
    difficulty: str = Field(default=Difficulty.BEGINNER.value, description="beginner, intermediate or advanced")
    game_mode: str = Field(default=GameMode.SINGLE_NOTE.value, description="single-note, chord, sequence or rhythm")
    show_note_labels: bool = Field(default=True, description="Show note names on the staff.")
    time_limit_seconds: Optional[int] = Field(default=None, gt=0, description="Optional time limit per game.")

    @field_validator("notation_system")
    @classmethod
    def validate_notation_system(cls, value: str) -> str:
        try:
            return normalize_notation_system(value).value
        except SettingsError as exception:
            raise ValueError(str(exception)) from exception

    @field_validator("difficulty")
    @classmethod
    def validate_difficulty(cls, value: str) -> str:
        try:
            return normalize_difficulty(value).value
        except SettingsError as exception:
            raise ValueError(str(exception)) from exception

    @field_validator("game_mode")
    @classmethod
    def validate_game_mode(cls, value: str) -> str:
        try:
            return normalize_game_mode(value).value
        except SettingsError as exception:
            raise ValueError(str(exception)) from exception


class RhythmConfigModel(BaseModel):
    note_speed_ms: float = Field(default=3000.0, gt=0, description="Time for a note to cross the screen.")
    note_interval_ms: float = Field(default=1000.0, gt=0, description="Time between note spawns.")
    target_line_x: float = Field(default=120.0, description="X position of the target line.")
    hit_zone_size: float = Field(default=50.0, gt=0, description="Half width of the hit zone in pixels.")
    max_timing_tolerance_ms: float = Field(default=500.0, gt=0, description="Timing window for time based checks.")
    target_progress: float = Field(default=0.6, gt=0, le=1, description="Fraction of the transit at the ideal hit.")
    screen_width: float = Field(default=390.0, gt=0, description="Logical screen width used by the harness.")


class ScoringConfig(BaseModel):
    base_points: int = Field(default=10, ge=0, description="Points for a correct answer before streak bonus.")


class AnalyticsConfig(BaseModel):
    recent_sessions_cap: int = Field(default=20, ge=1, description="Number of sessions kept in the recent log.")


class LoggingConfig(BaseModel):
    level: str = Field(default="WARNING", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        normalized = (value or "").strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError("level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return normalized


class AppConfig(BaseModel):
    game: GameDefaultsConfig = Field(default_factory=GameDefaultsConfig)
    rhythm: RhythmConfigModel = Field(default_factory=RhythmConfigModel)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("StaffHero", "StaffHero"))
    return [
        Path.cwd() / "staff_hero_config.json",
        config_directory / "staff_hero_config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("STAFF_HERO_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - STAFF_HERO_NOTATION
    - STAFF_HERO_DIFFICULTY
    - STAFF_HERO_GAME_MODE
    - STAFF_HERO_SHOW_LABELS
    - STAFF_HERO_NOTE_SPEED_MS
    - STAFF_HERO_LOG_LEVEL
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            section = dict(section)
        else:
            section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    game_section = ensure_nested(updated_config, "game")
    rhythm_section = ensure_nested(updated_config, "rhythm")
    logging_section = ensure_nested(updated_config, "logging")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            return

    def override_bool(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip().lower()
        if not value_text:
            return
        truthy = {"1", "true", "yes", "on"}
        falsy = {"0", "false", "no", "off"}
        if value_text in truthy:
            target_dict[key_name] = True
        elif value_text in falsy:
            target_dict[key_name] = False

    override_string("STAFF_HERO_NOTATION", game_section, "notation_system")
    override_string("STAFF_HERO_DIFFICULTY", game_section, "difficulty")
    override_string("STAFF_HERO_GAME_MODE", game_section, "game_mode")
    override_bool("STAFF_HERO_SHOW_LABELS", game_section, "show_note_labels")

    override_float("STAFF_HERO_NOTE_SPEED_MS", rhythm_section, "note_speed_ms")

    override_string("STAFF_HERO_LOG_LEVEL", logging_section, "level")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict = _read_json_file_utf8(resolved_path) if resolved_path is not None else {}
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source = str(resolved_path) if resolved_path is not None else "defaults and environment"
        raise ValueError(f"Config validation failed for {source}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def to_settings(config: AppConfig) -> GameSettings:
    return GameSettings.create(
        notation_system=config.game.notation_system,
        difficulty=config.game.difficulty,
        game_mode=config.game.game_mode,
        show_note_labels=config.game.show_note_labels,
        time_limit_seconds=config.game.time_limit_seconds,
    )


def to_rhythm_config(config: AppConfig) -> RhythmConfig:
    rhythm = config.rhythm
    return RhythmConfig(
        note_speed_ms=float(rhythm.note_speed_ms),
        note_interval_ms=float(rhythm.note_interval_ms),
        target_line_x=float(rhythm.target_line_x),
        hit_zone_size=float(rhythm.hit_zone_size),
        max_timing_tolerance_ms=float(rhythm.max_timing_tolerance_ms),
        target_progress=float(rhythm.target_progress),
    )


def configure_logging(config: AppConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.logging.level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def to_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": json.loads(to_json(config)),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
