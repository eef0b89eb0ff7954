# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core gameplay data models for the game-round engine.
# - Defines settings, questions, per-session game state, rhythm notes, session snapshots and achievements.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No UI usage. These are plain dataclasses.
# - Values are frozen and replaced per round, except RhythmNote (hit once) and Achievement (unlocked once).
#
########################
# Interfaces:
# Public exceptions:
# - class InvariantError(ValueError)
#
# Public dataclasses:
# - GameSettings(notation_system, difficulty, game_mode, show_note_labels, time_limit_seconds)
#   - create(...) -> GameSettings
#   - validated() -> GameSettings
# - Question(id, notes, correct_answer, options, answered, is_correct, user_answer)
#   - empty() -> Question
# - GameState(score, streak, max_streak, total_questions, correct_answers, current_question,
#             is_game_active, started_at)
#   - check_invariants() -> GameState
# - RhythmNote(id, note, display_name, start_time, target_time, hit, accuracy)
#   - try_mark_hit(accuracy: float) -> bool
# - GameSession(id, timestamp, game_mode, difficulty, notation_system, score, streak, max_streak,
#               total_questions, correct_answers, accuracy, duration)
#   - to_payload() -> dict
# - Achievement(id, title, description, is_unlocked, unlocked_at)
#
# Inputs/Outputs:
# - These types are exchanged between question_generator, answer_validator, scoring,
#   note_scheduler, judge, game_engine and analytics.
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import threading
from typing import Any, Dict, Optional, Tuple

from music_theory import (
    Difficulty,
    GameMode,
    NotationSystem,
    Note,
    SettingsError,
    normalize_difficulty,
    normalize_game_mode,
    normalize_notation_system,
)


class InvariantError(ValueError):
    """Raised when a caller hands the engine a state that breaks its invariants."""


@dataclass(frozen=True)
class GameSettings:
    notation_system: NotationSystem = NotationSystem.SOLFEGE
    difficulty: Difficulty = Difficulty.BEGINNER
    game_mode: GameMode = GameMode.SINGLE_NOTE
    show_note_labels: bool = True
    time_limit_seconds: Optional[int] = None

    @classmethod
    def create(
        cls,
        *,
        notation_system: Any = NotationSystem.SOLFEGE,
        difficulty: Any = Difficulty.BEGINNER,
        game_mode: Any = GameMode.SINGLE_NOTE,
        show_note_labels: bool = True,
        time_limit_seconds: Optional[int] = None,
    ) -> "GameSettings":
        return cls(
            notation_system=normalize_notation_system(notation_system),
            difficulty=normalize_difficulty(difficulty),
            game_mode=normalize_game_mode(game_mode),
            show_note_labels=bool(show_note_labels),
            time_limit_seconds=None if time_limit_seconds is None else int(time_limit_seconds),
        )

    def validated(self) -> "GameSettings":
        """Return these settings with enum fields normalized. Unknown values raise SettingsError."""
        if self.time_limit_seconds is not None and int(self.time_limit_seconds) <= 0:
            raise SettingsError(f"time_limit_seconds must be positive, got {self.time_limit_seconds!r}")
        if (
            isinstance(self.notation_system, NotationSystem)
            and isinstance(self.difficulty, Difficulty)
            and isinstance(self.game_mode, GameMode)
        ):
            return self
        # Built directly with raw strings; str enums compare equal to their values, so rebuild.
        return GameSettings.create(
            notation_system=self.notation_system,
            difficulty=self.difficulty,
            game_mode=self.game_mode,
            show_note_labels=self.show_note_labels,
            time_limit_seconds=self.time_limit_seconds,
        )


@dataclass(frozen=True)
class Question:
    id: str
    notes: Tuple[Note, ...]
    correct_answer: Tuple[str, ...]
    options: Tuple[str, ...]
    answered: bool = False
    is_correct: Optional[bool] = None
    user_answer: Optional[Tuple[str, ...]] = None

    @classmethod
    def empty(cls) -> "Question":
        return cls(id="", notes=(), correct_answer=(), options=())

    @property
    def is_empty(self) -> bool:
        return not self.notes


@dataclass(frozen=True)
class GameState:
    score: int = 0
    streak: int = 0
    max_streak: int = 0
    total_questions: int = 0
    correct_answers: int = 0
    current_question: Question = field(default_factory=Question.empty)
    is_game_active: bool = False
    started_at: Optional[float] = None

    def check_invariants(self) -> "GameState":
        counters = {
            "score": self.score,
            "streak": self.streak,
            "max_streak": self.max_streak,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
        }
        for counter_name, value in counters.items():
            if int(value) < 0:
                raise InvariantError(f"{counter_name} must be non-negative, got {value}")
        if self.correct_answers > self.total_questions:
            raise InvariantError(
                f"correct_answers ({self.correct_answers}) exceeds total_questions ({self.total_questions})"
            )
        if self.streak > self.max_streak:
            raise InvariantError(f"streak ({self.streak}) exceeds max_streak ({self.max_streak})")
        return self


@dataclass(eq=False)
class RhythmNote:
    id: str
    note: Note
    display_name: str
    start_time: float
    target_time: float
    hit: bool = False
    accuracy: Optional[float] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def try_mark_hit(self, accuracy: float) -> bool:
        """Compare-and-set the hit flag. Returns False when the note was already hit."""
        with self._lock:
            if self.hit:
                return False
            self.hit = True
            self.accuracy = float(accuracy)
            return True


@dataclass(frozen=True)
class GameSession:
    id: str
    timestamp: str
    game_mode: GameMode
    difficulty: Difficulty
    notation_system: NotationSystem
    score: int
    streak: int
    max_streak: int
    total_questions: int
    correct_answers: int
    accuracy: int
    duration: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "game_mode": self.game_mode.value,
            "difficulty": self.difficulty.value,
            "notation_system": self.notation_system.value,
            "score": int(self.score),
            "streak": int(self.streak),
            "max_streak": int(self.max_streak),
            "total_questions": int(self.total_questions),
            "correct_answers": int(self.correct_answers),
            "accuracy": int(self.accuracy),
            "duration": int(self.duration),
        }


@dataclass
class Achievement:
    id: str
    title: str
    description: str
    is_unlocked: bool = False
    unlocked_at: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "is_unlocked": bool(self.is_unlocked),
            "unlocked_at": self.unlocked_at,
        }

