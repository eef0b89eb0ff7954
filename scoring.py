# -*- coding: utf-8 -*-
########################
# scoring.py
########################
# Purpose:
# - Points, streak and feedback signals for answered questions.
# - Applies one answer to a GameState and returns the next GameState.
#
# Design notes:
# - No UI usage. Pure gameplay logic; no haptics or sound, only the signal to trigger.
# - Points use the streak held before the answer is applied.
# - Rounding is half up so 12.5 becomes 13 on every platform.
# - Caller bugs (negative counts, accuracy outside 0..100) raise; wrong answers never do.
#
########################
# Interfaces:
# Public enums:
# - class FeedbackSignal(str, enum.Enum): SUCCESS | MEDIUM | LIGHT | ERROR
#
# Public dataclasses:
# - AnswerOutcome(points: int, state: GameState)
#
# Public functions:
# - round_half_up(value: float) -> int
# - calculate_points(streak: int, base_points: int = 10, accuracy: float = 100) -> int
# - calculate_accuracy(correct_answers: int, total_questions: int) -> int
# - score_answer(state, is_correct, accuracy=None, base_points=10) -> AnswerOutcome
# - apply_answer(state, is_correct, accuracy=None, base_points=10) -> GameState
# - streak_level(streak: int) -> int
# - auto_advance_delay_ms(game_mode, is_correct: bool) -> int
# - feedback_signal(is_correct: bool, accuracy: Optional[float] = None) -> FeedbackSignal
#
########################

from __future__ import annotations

from dataclasses import dataclass, replace
import enum
import math
from typing import Optional

from gameplay_models import GameState, InvariantError
from music_theory import GameMode

DEFAULT_BASE_POINTS = 10
STREAK_BONUS_PER_STEP = 2

FAST_ADVANCE_DELAY_MS = 500
REMEDIATION_DELAY_MS = 3000
DEFAULT_ADVANCE_DELAY_MS = 2000


class FeedbackSignal(str, enum.Enum):
    SUCCESS = "success"
    MEDIUM = "medium"
    LIGHT = "light"
    ERROR = "error"


@dataclass(frozen=True)
class AnswerOutcome:
    points: int
    state: GameState


def round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def _check_accuracy(accuracy: float) -> float:
    value = float(accuracy)
    if value < 0.0 or value > 100.0:
        raise InvariantError(f"accuracy must be within 0..100, got {accuracy}")
    return value


def calculate_points(streak: int, base_points: int = DEFAULT_BASE_POINTS, accuracy: float = 100) -> int:
    if int(streak) < 0:
        raise InvariantError(f"streak must be non-negative, got {streak}")
    if int(base_points) < 0:
        raise InvariantError(f"base_points must be non-negative, got {base_points}")
    multiplier = _check_accuracy(accuracy) / 100.0
    return round_half_up((int(base_points) + int(streak) * STREAK_BONUS_PER_STEP) * multiplier)


def calculate_accuracy(correct_answers: int, total_questions: int) -> int:
    if int(total_questions) <= 0:
        return 0
    return round_half_up(int(correct_answers) / int(total_questions) * 100)


def score_answer(
    state: GameState,
    is_correct: bool,
    accuracy: Optional[float] = None,
    base_points: int = DEFAULT_BASE_POINTS,
) -> AnswerOutcome:
    state.check_invariants()

    if is_correct:
        points = calculate_points(state.streak, base_points, 100 if accuracy is None else accuracy)
        new_streak = state.streak + 1
    else:
        points = 0
        new_streak = 0

    new_state = replace(
        state,
        score=state.score + points,
        streak=new_streak,
        max_streak=max(state.max_streak, new_streak),
        total_questions=state.total_questions + 1,
        correct_answers=state.correct_answers + (1 if is_correct else 0),
    )
    return AnswerOutcome(points=points, state=new_state.check_invariants())


def apply_answer(
    state: GameState,
    is_correct: bool,
    accuracy: Optional[float] = None,
    base_points: int = DEFAULT_BASE_POINTS,
) -> GameState:
    return score_answer(state, is_correct, accuracy, base_points).state


def streak_level(streak: int) -> int:
    value = int(streak)
    if value < 0:
        raise InvariantError(f"streak must be non-negative, got {streak}")
    if value == 0:
        return 0
    if value < 5:
        return 1
    if value < 10:
        return 2
    return 3


def auto_advance_delay_ms(game_mode: GameMode, is_correct: bool) -> int:
    if game_mode == GameMode.SINGLE_NOTE:
        return FAST_ADVANCE_DELAY_MS if is_correct else REMEDIATION_DELAY_MS
    return DEFAULT_ADVANCE_DELAY_MS


def feedback_signal(is_correct: bool, accuracy: Optional[float] = None) -> FeedbackSignal:
    if not is_correct:
        return FeedbackSignal.ERROR
    if accuracy is None or float(accuracy) > 80:
        return FeedbackSignal.SUCCESS
    if float(accuracy) > 50:
        return FeedbackSignal.MEDIUM
    return FeedbackSignal.LIGHT


def _run_unit_tests() -> None:
    assert calculate_points(3, 10, 80) == 13
    assert calculate_points(0) == 10

    state = GameState(is_game_active=True)
    for _ in range(4):
        state = apply_answer(state, True)
    assert state.streak == 4 and state.max_streak == 4
    assert state.score == 10 + 12 + 14 + 16

    state = apply_answer(state, False)
    assert state.streak == 0 and state.max_streak == 4
    assert state.total_questions == 5 and state.correct_answers == 4

    assert [streak_level(value) for value in (0, 1, 4, 5, 9, 10)] == [0, 1, 1, 2, 2, 3]
    assert auto_advance_delay_ms(GameMode.SINGLE_NOTE, False) == 3000
    assert feedback_signal(True, 60) == FeedbackSignal.MEDIUM
    assert calculate_accuracy(1, 8) == 13


if __name__ == "__main__":
    _run_unit_tests()
    print("scoring.py: ok")
