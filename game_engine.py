# -*- coding: utf-8 -*-
########################
# game_engine.py
########################
# Purpose:
# - Game session state transitions and the controller that drives one game.
# - Wires question generation, answer validation, rhythm judging, scoring and session snapshots.
#
# Design notes:
# - apply_action is a pure reducer over tagged action dataclasses.
# - The session start time lives on GameState.started_at; there is no module level clock state.
# - GameController owns the only mutable GameState and the injected randomness and clock.
# - Persistence and challenge hooks are opaque callables. Their failures are logged and never
#   roll back in memory state.
#
########################
# Interfaces:
# Public enums:
# - class ChallengeType(str, enum.Enum): DOMINATE_NOTES | SCORE_POINTS | BATTLE_COUNT
#
# Public dataclasses (actions):
# - StartGame(started_at: float)
# - EndGame()
# - SubmitAnswer(answer: tuple[str, ...], accuracy: Optional[float])
# - NextQuestion()
# - ResetStreak()
# - SetQuestion(question: Question)
#
# Public dataclasses:
# - AnswerResult(is_correct, points, state, streak_level, auto_advance_delay_ms, feedback,
#                sequence_feedback, rhythm_score)
#
# Public functions:
# - initial_game_state() -> GameState
# - evaluate_answer(settings, question, answer) -> bool
# - apply_action(state, action, settings, base_points=10) -> GameState
# - build_session(state, settings, ended_at) -> Optional[GameSession]
#
# Public classes:
# - class GameController
#   - state() -> GameState
#   - settings() -> GameSettings
#   - update_settings(**changes) -> GameSettings
#   - start_game(now=None) -> GameState
#   - generate_new_question() -> Question
#   - submit_answer(answer, accuracy=None) -> AnswerResult
#   - next_question() -> GameState
#   - advance_to_next_question() -> Question
#   - reset_streak() -> GameState
#   - start_rhythm_round(now_ms=None) -> JudgeEngine
#   - rhythm_hit(display_name, now_ms=None) -> RhythmHitResult
#   - finish_rhythm_round() -> AnswerResult
#   - end_game(now=None) -> Optional[GameSession]
#
# Inputs:
# - GameSettings, player answers, caller supplied timestamps, random.Random.
#
# Outputs:
# - GameState updates, AnswerResult feedback, GameSession snapshots via save_session.
#
########################

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
import enum
import logging
import math
import random
import time
import uuid
from typing import Callable, Optional, Sequence, Tuple, Union

from answer_validator import SequenceFeedback, normalize_answer, sequence_feedback, unordered_match, validate_answer
from gameplay_models import GameSession, GameSettings, GameState, InvariantError, Question
from judge import JudgeEngine, RhythmHitResult, RhythmScore
from music_theory import GameMode
from note_scheduler import NoteScheduler, RhythmConfig, default_rhythm_config
from question_generator import generate_question
from scoring import (
    DEFAULT_BASE_POINTS,
    FeedbackSignal,
    auto_advance_delay_ms,
    calculate_accuracy,
    feedback_signal,
    score_answer,
    streak_level,
)

logger = logging.getLogger(__name__)

DEFAULT_SCREEN_WIDTH = 390.0


class ChallengeType(str, enum.Enum):
    DOMINATE_NOTES = "dominate_notes"
    SCORE_POINTS = "score_points"
    BATTLE_COUNT = "battle_count"


SaveSessionHook = Callable[[GameSession], None]
ChallengeProgressHook = Callable[[ChallengeType, int], None]


@dataclass(frozen=True)
class StartGame:
    started_at: float


@dataclass(frozen=True)
class EndGame:
    pass


@dataclass(frozen=True)
class SubmitAnswer:
    answer: Tuple[str, ...]
    accuracy: Optional[float] = None


@dataclass(frozen=True)
class NextQuestion:
    pass


@dataclass(frozen=True)
class ResetStreak:
    pass


@dataclass(frozen=True)
class SetQuestion:
    question: Question


GameAction = Union[StartGame, EndGame, SubmitAnswer, NextQuestion, ResetStreak, SetQuestion]


@dataclass(frozen=True)
class AnswerResult:
    is_correct: bool
    points: int
    state: GameState
    streak_level: int
    auto_advance_delay_ms: int
    feedback: FeedbackSignal
    sequence_feedback: Optional[SequenceFeedback] = None
    rhythm_score: Optional[RhythmScore] = None


def initial_game_state() -> GameState:
    return GameState()


def evaluate_answer(settings: GameSettings, question: Question, answer: Sequence[str]) -> bool:
    if settings.game_mode == GameMode.RHYTHM:
        # A rhythm round counts as correct when every scheduled note was hit.
        return unordered_match(answer, question.correct_answer)
    return validate_answer(settings.game_mode, answer, question.correct_answer)


def apply_action(
    state: GameState,
    action: GameAction,
    settings: GameSettings,
    base_points: int = DEFAULT_BASE_POINTS,
) -> GameState:
    if isinstance(action, StartGame):
        return GameState(is_game_active=True, started_at=float(action.started_at))

    if isinstance(action, EndGame):
        return replace(state, is_game_active=False, current_question=Question.empty())

    if isinstance(action, SubmitAnswer):
        question = state.current_question
        if question.is_empty:
            raise InvariantError("Cannot submit an answer without a current question")
        if question.answered:
            raise InvariantError(f"Question {question.id} was already answered")
        answer = tuple(normalize_answer(action.answer))
        is_correct = evaluate_answer(settings, question, answer)
        scored = score_answer(state, is_correct, action.accuracy, base_points).state
        answered_question = replace(question, answered=True, is_correct=is_correct, user_answer=answer)
        return replace(scored, current_question=answered_question)

    if isinstance(action, NextQuestion):
        return replace(state, current_question=Question.empty())

    if isinstance(action, SetQuestion):
        return replace(state, current_question=action.question)

    if isinstance(action, ResetStreak):
        return replace(state, streak=0)

    raise TypeError(f"Unknown game action: {action!r}")


def _iso_timestamp(epoch_seconds: float) -> str:
    return datetime.fromtimestamp(float(epoch_seconds), tz=timezone.utc).isoformat()


def build_session(state: GameState, settings: GameSettings, ended_at: float) -> Optional[GameSession]:
    if not state.is_game_active or state.started_at is None:
        return None
    duration = max(0, int(math.floor(float(ended_at) - float(state.started_at))))
    return GameSession(
        id=f"session_{uuid.uuid4().hex}",
        timestamp=_iso_timestamp(ended_at),
        game_mode=settings.game_mode,
        difficulty=settings.difficulty,
        notation_system=settings.notation_system,
        score=state.score,
        streak=state.streak,
        max_streak=state.max_streak,
        total_questions=state.total_questions,
        correct_answers=state.correct_answers,
        accuracy=calculate_accuracy(state.correct_answers, state.total_questions),
        duration=duration,
    )


class GameController:
    """
    Drives one player's games.

    The controller is the seam between the pure engine and the app shell:
      - it owns the current GameState and applies actions to it
      - it generates questions with the injected random.Random
      - it reports challenge progress and finished sessions through injected hooks
    """

    def __init__(
        self,
        settings: GameSettings,
        *,
        rng: Optional[random.Random] = None,
        save_session: Optional[SaveSessionHook] = None,
        update_challenge_progress: Optional[ChallengeProgressHook] = None,
        clock: Callable[[], float] = time.time,
        base_points: int = DEFAULT_BASE_POINTS,
        rhythm_config: Optional[RhythmConfig] = None,
        screen_width: float = DEFAULT_SCREEN_WIDTH,
    ) -> None:
        self._settings = settings.validated()
        self._rng = rng if rng is not None else random.Random()
        self._save_session = save_session
        self._update_challenge_progress = update_challenge_progress
        self._clock = clock
        self._base_points = int(base_points)
        self._rhythm_config = rhythm_config if rhythm_config is not None else default_rhythm_config()
        self._screen_width = float(screen_width)
        self._state = initial_game_state()
        self._judge: Optional[JudgeEngine] = None

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def state(self) -> GameState:
        return self._state

    def settings(self) -> GameSettings:
        return self._settings

    def rhythm_config(self) -> RhythmConfig:
        return self._rhythm_config

    def judge(self) -> Optional[JudgeEngine]:
        return self._judge

    def update_settings(self, **changes) -> GameSettings:
        merged = {
            "notation_system": self._settings.notation_system,
            "difficulty": self._settings.difficulty,
            "game_mode": self._settings.game_mode,
            "show_note_labels": self._settings.show_note_labels,
            "time_limit_seconds": self._settings.time_limit_seconds,
        }
        merged.update(changes)
        self._settings = GameSettings.create(**merged)
        return self._settings

    def dispatch(self, action: GameAction) -> GameState:
        self._state = apply_action(self._state, action, self._settings, self._base_points)
        return self._state

    # ------------------------------------------------------------------
    # Game lifecycle
    # ------------------------------------------------------------------

    def start_game(self, now: Optional[float] = None) -> GameState:
        started_at = float(now) if now is not None else float(self._clock())
        logger.info(
            "Game started: notation=%s difficulty=%s mode=%s",
            self._settings.notation_system.value,
            self._settings.difficulty.value,
            self._settings.game_mode.value,
        )
        self._judge = None
        self.dispatch(StartGame(started_at=started_at))
        self._report_challenge_progress(ChallengeType.BATTLE_COUNT, 1)
        return self._state

    def generate_new_question(self) -> Question:
        question = generate_question(self._settings, self._rng)
        self._judge = None
        self.dispatch(SetQuestion(question=question))
        self._report_challenge_progress(ChallengeType.DOMINATE_NOTES, 1)
        return question

    def submit_answer(self, answer: Union[str, Sequence[str]], accuracy: Optional[float] = None) -> AnswerResult:
        previous_score = self._state.score
        question = self._state.current_question
        new_state = self.dispatch(SubmitAnswer(answer=tuple(normalize_answer(answer)), accuracy=accuracy))
        is_correct = bool(new_state.current_question.is_correct)
        points = new_state.score - previous_score

        logger.debug(
            "Answer for %s: expected=%s given=%s correct=%s points=%d streak=%d",
            question.id,
            list(question.correct_answer),
            list(new_state.current_question.user_answer or ()),
            is_correct,
            points,
            new_state.streak,
        )

        if is_correct and points > 0:
            self._report_challenge_progress(ChallengeType.SCORE_POINTS, points)

        feedback_detail = None
        if self._settings.game_mode == GameMode.SEQUENCE:
            feedback_detail = sequence_feedback(new_state.current_question.user_answer or (), question.correct_answer)

        return AnswerResult(
            is_correct=is_correct,
            points=points,
            state=new_state,
            streak_level=streak_level(new_state.streak),
            auto_advance_delay_ms=auto_advance_delay_ms(self._settings.game_mode, is_correct),
            feedback=feedback_signal(is_correct, accuracy),
            sequence_feedback=feedback_detail,
        )

    def next_question(self) -> GameState:
        self._judge = None
        return self.dispatch(NextQuestion())

    def advance_to_next_question(self) -> Question:
        self.next_question()
        return self.generate_new_question()

    def reset_streak(self) -> GameState:
        return self.dispatch(ResetStreak())

    def end_game(self, now: Optional[float] = None) -> Optional[GameSession]:
        ended_at = float(now) if now is not None else float(self._clock())
        session = build_session(self._state, self._settings, ended_at)
        self._judge = None
        self.dispatch(EndGame())

        if session is None:
            return None

        logger.info(
            "Game ended: score=%d accuracy=%d%% max_streak=%d duration=%ds",
            session.score,
            session.accuracy,
            session.max_streak,
            session.duration,
        )
        if self._save_session is not None:
            try:
                self._save_session(session)
            except Exception:
                logger.exception("Error saving game session %s", session.id)
        return session

    # ------------------------------------------------------------------
    # Rhythm mode
    # ------------------------------------------------------------------

    def start_rhythm_round(self, now_ms: Optional[float] = None) -> JudgeEngine:
        question = self._state.current_question
        if question.is_empty:
            raise InvariantError("Cannot start a rhythm round without a current question")
        start_time_ms = float(now_ms) if now_ms is not None else float(self._clock()) * 1000.0
        scheduler = NoteScheduler(
            question.notes,
            start_time_ms=start_time_ms,
            config=self._rhythm_config,
            notation_system=self._settings.notation_system,
        )
        self._judge = JudgeEngine(scheduler, self._screen_width)
        return self._judge

    def rhythm_hit(self, display_name: str, now_ms: Optional[float] = None) -> RhythmHitResult:
        if self._judge is None:
            raise InvariantError("No rhythm round in progress")
        current_time_ms = float(now_ms) if now_ms is not None else float(self._clock()) * 1000.0
        return self._judge.on_input(display_name, current_time_ms)

    def finish_rhythm_round(self) -> AnswerResult:
        if self._judge is None:
            raise InvariantError("No rhythm round in progress")
        judge_engine = self._judge
        rhythm_score = judge_engine.score()
        accuracy = float(rhythm_score.average_accuracy) if rhythm_score.hit_count else None
        result = self.submit_answer(judge_engine.hit_display_names(), accuracy=accuracy)
        judge_engine.note_scheduler().discard()
        self._judge = None
        return replace(result, rhythm_score=rhythm_score)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _report_challenge_progress(self, challenge_type: ChallengeType, amount: int) -> None:
        if self._update_challenge_progress is None:
            return
        try:
            self._update_challenge_progress(challenge_type, int(amount))
        except Exception:
            logger.exception("Error updating challenge progress for %s", challenge_type.value)


def _run_unit_tests() -> None:
    from music_theory import position_to_note

    settings = GameSettings.create(notation_system="letter", difficulty="beginner", game_mode="sequence")
    state = apply_action(initial_game_state(), StartGame(started_at=100.0), settings)
    question = Question(
        id="q1",
        notes=(position_to_note(-1), position_to_note(0), position_to_note(-6)),
        correct_answer=("A", "B", "C"),
        options=("A", "B", "C", "D"),
    )
    state = apply_action(state, SetQuestion(question=question), settings)
    state = apply_action(state, SubmitAnswer(answer=("A", "B", "C")), settings)
    assert state.current_question.is_correct and state.score == 10 and state.streak == 1

    session = build_session(state, settings, ended_at=142.7)
    assert session is not None and session.duration == 42 and session.accuracy == 100

    reports = []

    def failing_save(_session: GameSession) -> None:
        raise OSError("disk full")

    controller = GameController(
        settings,
        rng=random.Random(5),
        save_session=failing_save,
        update_challenge_progress=lambda kind, amount: reports.append((kind, amount)),
    )
    controller.start_game(now=0.0)
    generated = controller.generate_new_question()
    result = controller.submit_answer(list(generated.correct_answer))
    assert result.is_correct and result.sequence_feedback is not None
    ended = controller.end_game(now=30.0)
    assert ended is not None and not controller.state().is_game_active
    assert (ChallengeType.BATTLE_COUNT, 1) in reports and (ChallengeType.SCORE_POINTS, 10) in reports


if __name__ == "__main__":
    _run_unit_tests()
    print("game_engine.py: ok")
