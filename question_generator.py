# -*- coding: utf-8 -*-
########################
# question_generator.py
########################
# Purpose:
# - Procedurally generate note identification questions from GameSettings.
# - Produces the notes, the ordered correct answer and a shuffled multiple choice option set.
#
# Design notes:
# - Randomness is injected as a random.Random so tests can seed it.
# - Settings are validated before any sampling; unknown values fail fast.
# - Distractor sampling is bounded and never loops forever.
# - options is a set: no duplicate display names, always a superset of correct_answer.
#
########################
# Interfaces:
# Public constants:
# - DISTRACTOR_TARGET_COUNT: int
# - DISTRACTOR_MAX_ATTEMPTS: int
# - NOTE_COUNT_RANGES: dict[GameMode, tuple[int, int]]
#
# Public functions:
# - note_count_for_mode(game_mode, rng) -> int
# - generate_random_note(difficulty, rng) -> Note
# - generate_random_notes(count, difficulty, rng) -> list[Note]
# - pick_distractors(correct_answer, notation_system, rng, target_count) -> list[str]
# - generate_question(settings: GameSettings, rng: Optional[random.Random]) -> Question
#
# Inputs:
# - GameSettings and an optional random.Random.
#
# Outputs:
# - Question values consumed by game_engine.py and note_scheduler.py.
#
########################

from __future__ import annotations

import logging
import random
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from gameplay_models import GameSettings, Question
from music_theory import (
    PITCH_ORDER,
    Difficulty,
    GameMode,
    NotationSystem,
    Note,
    display_name,
    position_to_note,
    staff_positions_for_difficulty,
)

logger = logging.getLogger(__name__)

DISTRACTOR_TARGET_COUNT = 3
DISTRACTOR_MAX_ATTEMPTS = 32

# Inclusive note count bounds per mode.
NOTE_COUNT_RANGES: Dict[GameMode, Tuple[int, int]] = {
    GameMode.SINGLE_NOTE: (1, 1),
    GameMode.CHORD: (2, 4),
    GameMode.SEQUENCE: (2, 5),
    GameMode.RHYTHM: (3, 6),
}


def note_count_for_mode(game_mode: GameMode, rng: random.Random) -> int:
    low, high = NOTE_COUNT_RANGES[game_mode]
    if low == high:
        return low
    return rng.randint(low, high)


def generate_random_note(difficulty: Difficulty, rng: random.Random) -> Note:
    positions = staff_positions_for_difficulty(difficulty)
    return position_to_note(rng.choice(positions))


def generate_random_notes(count: int, difficulty: Difficulty, rng: random.Random) -> List[Note]:
    if int(count) < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    return [generate_random_note(difficulty, rng) for _ in range(int(count))]


def pick_distractors(
    correct_answer: Sequence[str],
    notation_system: NotationSystem,
    rng: random.Random,
    target_count: int = DISTRACTOR_TARGET_COUNT,
) -> List[str]:
    """
    Choose wrong options that are neither correct nor already chosen.

    Random draws are capped at DISTRACTOR_MAX_ATTEMPTS. Past the cap the remaining
    unused names are taken in pitch order. When fewer unused names exist than
    target_count, fewer distractors are returned.
    """
    excluded = set(correct_answer)
    distractors: List[str] = []

    for _attempt in range(DISTRACTOR_MAX_ATTEMPTS):
        if len(distractors) >= target_count:
            return distractors
        candidate = display_name(rng.choice(PITCH_ORDER), notation_system)
        if candidate in excluded:
            continue
        excluded.add(candidate)
        distractors.append(candidate)

    if len(distractors) < target_count:
        logger.debug(
            "Distractor sampling hit %d attempts with %d/%d chosen; filling in pitch order",
            DISTRACTOR_MAX_ATTEMPTS,
            len(distractors),
            target_count,
        )
        for name in PITCH_ORDER:
            if len(distractors) >= target_count:
                break
            candidate = display_name(name, notation_system)
            if candidate in excluded:
                continue
            excluded.add(candidate)
            distractors.append(candidate)

    return distractors


def _dedupe(items: Sequence[str]) -> List[str]:
    seen = set()
    unique: List[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        unique.append(item)
    return unique


def generate_question(settings: GameSettings, rng: Optional[random.Random] = None) -> Question:
    settings = settings.validated()
    random_generator = rng if rng is not None else random.Random()

    note_count = note_count_for_mode(settings.game_mode, random_generator)
    notes = generate_random_notes(note_count, settings.difficulty, random_generator)
    correct_answer = [display_name(note.name, settings.notation_system) for note in notes]

    distractors = pick_distractors(correct_answer, settings.notation_system, random_generator)
    options = _dedupe(correct_answer) + distractors
    # random.Random.shuffle is an in-place Fisher-Yates shuffle.
    random_generator.shuffle(options)

    question = Question(
        id=f"question_{uuid.uuid4().hex}",
        notes=tuple(notes),
        correct_answer=tuple(correct_answer),
        options=tuple(options),
    )
    logger.debug(
        "Generated %s for mode=%s difficulty=%s: notes=%s options=%s",
        question.id,
        settings.game_mode.value,
        settings.difficulty.value,
        [note.label for note in notes],
        list(question.options),
    )
    return question


def _run_unit_tests() -> None:
    rng = random.Random(3)
    settings = GameSettings.create(notation_system="letter", difficulty="beginner", game_mode="single-note")
    question = generate_question(settings, rng)
    assert len(question.notes) == 1
    assert len(question.options) == 4
    assert question.correct_answer[0] in question.options

    sequence_settings = GameSettings.create(notation_system="solfege", difficulty="advanced", game_mode="sequence")
    for _ in range(50):
        sequence_question = generate_question(sequence_settings, rng)
        assert 2 <= len(sequence_question.notes) <= 5
        assert len(set(sequence_question.options)) == len(sequence_question.options)
        assert set(sequence_question.correct_answer) <= set(sequence_question.options)

    full_pool = pick_distractors(["C", "D", "E", "F", "G", "A"], NotationSystem.LETTER, rng)
    assert full_pool == ["B"]


if __name__ == "__main__":
    _run_unit_tests()
    print("question_generator.py: ok")
