"""
staff_hero.py

Command line entrypoint that plays a simulated Staff Hero game and prints the result as JSON.

Integration
- Loads config (file, environment, then command line overrides)
- Configures logging once
- Drives GameController for the requested number of rounds
- Rhythm rounds press each scheduled note near its target time with a seeded jitter
- Folds the finished session into a fresh UserAnalytics

All times are simulated; nothing sleeps, so a run is deterministic for a given --seed.
"""

from __future__ import annotations

import argparse
import json
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from analytics import add_session, new_user_analytics
from config import AppConfig, configure_logging, load_config, to_json, to_rhythm_config, to_settings
from game_engine import AnswerResult, GameController
from gameplay_models import GameSession, GameSettings, Question
from music_theory import Difficulty, GameMode, NotationSystem
from note_scheduler import time_at_position

logger = logging.getLogger("staff_hero")

THINK_TIME_SECONDS = 1.5
RHYTHM_JITTER_MS = 80.0


@dataclass
class _SimulationClock:
    seconds: float = 0.0

    def advance(self, seconds: float) -> None:
        self.seconds += float(seconds)


@dataclass
class _RoundLog:
    entries: List[Dict[str, Any]] = field(default_factory=list)

    def record(self, question: Question, result: AnswerResult) -> None:
        self.entries.append(
            {
                "question_id": question.id,
                "notes": [note.label for note in question.notes],
                "correct_answer": list(question.correct_answer),
                "given": list(result.state.current_question.user_answer or ()),
                "is_correct": result.is_correct,
                "points": result.points,
                "streak": result.state.streak,
            }
        )


def _probability(value_text: str) -> float:
    value = float(value_text)
    if value < 0.0 or value > 1.0:
        raise argparse.ArgumentTypeError("must be between 0 and 1")
    return value


def _positive_int(value_text: str) -> int:
    value = int(value_text)
    if value < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return value


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Staff Hero simulated game")
    parser.add_argument("--mode", choices=[mode.value for mode in GameMode], default=None, help="Game mode.")
    parser.add_argument(
        "--difficulty",
        choices=[difficulty.value for difficulty in Difficulty],
        default=None,
        help="Staff range difficulty.",
    )
    parser.add_argument(
        "--notation",
        choices=[system.value for system in NotationSystem],
        default=None,
        help="Note naming system.",
    )
    parser.add_argument("--rounds", type=_positive_int, default=10, help="Number of questions to play.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for question generation and the player.")
    parser.add_argument(
        "--skill",
        type=_probability,
        default=0.8,
        help="Probability that the simulated player answers a question correctly.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to a staff_hero_config.json file.")
    parser.add_argument("--show-config", action="store_true", help="Print the resolved config and exit.")
    return parser


def _resolve_settings(config: AppConfig, parsed_args: argparse.Namespace) -> GameSettings:
    defaults = to_settings(config)
    return GameSettings.create(
        notation_system=parsed_args.notation or defaults.notation_system,
        difficulty=parsed_args.difficulty or defaults.difficulty,
        game_mode=parsed_args.mode or defaults.game_mode,
        show_note_labels=defaults.show_note_labels,
        time_limit_seconds=defaults.time_limit_seconds,
    )


def _wrong_answer(question: Question, player_rng: random.Random) -> List[str]:
    correct = list(question.correct_answer)
    alternatives = [option for option in question.options if option != correct[0]]
    if not alternatives:
        return correct[:-1]
    wrong = list(correct)
    wrong[0] = player_rng.choice(alternatives)
    return wrong


def _play_choice_round(
    controller: GameController,
    question: Question,
    skill: float,
    player_rng: random.Random,
    clock: _SimulationClock,
) -> AnswerResult:
    clock.advance(THINK_TIME_SECONDS)
    if player_rng.random() < skill:
        answer: Sequence[str] = list(question.correct_answer)
    else:
        answer = _wrong_answer(question, player_rng)
    result = controller.submit_answer(answer)
    clock.advance(result.auto_advance_delay_ms / 1000.0)
    return result


def _play_rhythm_round(
    controller: GameController,
    skill: float,
    screen_width: float,
    player_rng: random.Random,
    clock: _SimulationClock,
) -> AnswerResult:
    round_start_ms = clock.seconds * 1000.0
    judge_engine = controller.start_rhythm_round(now_ms=round_start_ms)
    scheduler = judge_engine.note_scheduler()
    rhythm_config = scheduler.config()

    for note in scheduler.notes():
        if player_rng.random() >= skill:
            continue
        ideal_ms = time_at_position(note, rhythm_config.target_line_x, rhythm_config, screen_width)
        press_ms = ideal_ms + player_rng.uniform(-RHYTHM_JITTER_MS, RHYTHM_JITTER_MS)
        controller.rhythm_hit(note.display_name, now_ms=press_ms)

    clock.seconds = scheduler.round_end_time() / 1000.0
    result = controller.finish_rhythm_round()
    clock.advance(result.auto_advance_delay_ms / 1000.0)
    return result


def play_simulated_game(
    config: AppConfig,
    settings: GameSettings,
    *,
    rounds: int,
    skill: float,
    seed: Optional[int],
) -> Dict[str, Any]:
    question_rng = random.Random(seed)
    player_rng = random.Random(None if seed is None else seed + 1)
    clock = _SimulationClock()
    saved_sessions: List[GameSession] = []
    challenge_progress: Dict[str, int] = {}

    def save_session(session: GameSession) -> None:
        saved_sessions.append(session)

    def update_challenge_progress(challenge_type, amount: int) -> None:
        challenge_progress[challenge_type.value] = challenge_progress.get(challenge_type.value, 0) + int(amount)

    controller = GameController(
        settings,
        rng=question_rng,
        save_session=save_session,
        update_challenge_progress=update_challenge_progress,
        clock=lambda: clock.seconds,
        base_points=config.scoring.base_points,
        rhythm_config=to_rhythm_config(config),
        screen_width=config.rhythm.screen_width,
    )

    round_log = _RoundLog()
    controller.start_game()
    for _round_index in range(int(rounds)):
        question = controller.advance_to_next_question()
        if settings.game_mode == GameMode.RHYTHM:
            result = _play_rhythm_round(controller, skill, config.rhythm.screen_width, player_rng, clock)
        else:
            result = _play_choice_round(controller, question, skill, player_rng, clock)
        round_log.record(question, result)

    session = controller.end_game()
    if session is None:
        raise RuntimeError("Game ended without an active session")

    analytics, unlocked = add_session(
        new_user_analytics(),
        session,
        recent_sessions_cap=config.analytics.recent_sessions_cap,
    )

    return {
        "ok": True,
        "settings": {
            "notation_system": settings.notation_system.value,
            "difficulty": settings.difficulty.value,
            "game_mode": settings.game_mode.value,
        },
        "rounds": round_log.entries,
        "session": session.to_payload(),
        "challenge_progress": challenge_progress,
        "analytics": analytics.to_payload(),
        "unlocked": [achievement.to_payload() for achievement in unlocked],
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    parsed_args = build_argument_parser().parse_args(argv)

    try:
        app_config, config_path = load_config(parsed_args.config)
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    configure_logging(app_config)

    if parsed_args.show_config:
        output_payload = {
            "ok": True,
            "config_path": str(config_path) if config_path is not None else None,
            "config": json.loads(to_json(app_config)),
        }
        print(json.dumps(output_payload, ensure_ascii=False, indent=2))
        return 0

    try:
        settings = _resolve_settings(app_config, parsed_args)
        output_payload = play_simulated_game(
            app_config,
            settings,
            rounds=parsed_args.rounds,
            skill=parsed_args.skill,
            seed=parsed_args.seed,
        )
    except (RuntimeError, ValueError) as exception:
        logger.error("Simulated game failed: %s", exception)
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
