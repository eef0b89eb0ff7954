"""Tests for question_generator: note counts, staff ranges and distractor sampling."""

from __future__ import annotations

import random

import pytest

from gameplay_models import GameSettings
from music_theory import (
    DIFFICULTY_POSITION_RANGES,
    Difficulty,
    GameMode,
    NotationSystem,
    SettingsError,
    all_display_names,
    display_name,
)
from question_generator import (
    DISTRACTOR_TARGET_COUNT,
    NOTE_COUNT_RANGES,
    generate_question,
    generate_random_notes,
    note_count_for_mode,
    pick_distractors,
)


class _StuckRandom(random.Random):
    """Always draws the first element, so sampling never finds anything new."""

    def choice(self, seq):
        return seq[0]


def test_single_note_letter_beginner_question():
    settings = GameSettings.create(notation_system="letter", difficulty="beginner", game_mode="single-note")
    question = generate_question(settings, random.Random(1))

    assert len(question.notes) == 1
    assert len(question.options) == 4
    assert question.correct_answer[0] in question.options
    assert question.id.startswith("question_")
    assert not question.answered
    assert question.is_correct is None


@pytest.mark.parametrize("game_mode", list(GameMode))
@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_generated_questions_stay_within_bounds(game_mode, difficulty):
    rng = random.Random(42)
    settings = GameSettings.create(notation_system="solfege", difficulty=difficulty, game_mode=game_mode)
    low_count, high_count = NOTE_COUNT_RANGES[game_mode]
    low_position, high_position = DIFFICULTY_POSITION_RANGES[difficulty]
    solfege_names = set(all_display_names(NotationSystem.SOLFEGE))

    for _ in range(40):
        question = generate_question(settings, rng)
        assert low_count <= len(question.notes) <= high_count
        assert all(low_position <= note.staff_position <= high_position for note in question.notes)
        assert list(question.correct_answer) == [
            display_name(note.name, NotationSystem.SOLFEGE) for note in question.notes
        ]

        unique_correct = set(question.correct_answer)
        assert len(set(question.options)) == len(question.options)
        assert unique_correct <= set(question.options)
        assert set(question.options) <= solfege_names
        expected_size = len(unique_correct) + min(DISTRACTOR_TARGET_COUNT, 7 - len(unique_correct))
        assert len(question.options) == expected_size


def test_seeded_generation_is_reproducible():
    settings = GameSettings.create(notation_system="letter", difficulty="advanced", game_mode="sequence")
    first = generate_question(settings, random.Random(9))
    second = generate_question(settings, random.Random(9))
    assert first.notes == second.notes
    assert first.options == second.options
    assert first.id != second.id


def test_note_count_for_mode_is_fixed_for_single_note():
    rng = random.Random(0)
    assert {note_count_for_mode(GameMode.SINGLE_NOTE, rng) for _ in range(20)} == {1}


def test_generate_random_notes_rejects_negative_count():
    with pytest.raises(ValueError):
        generate_random_notes(-1, Difficulty.BEGINNER, random.Random(0))
    assert generate_random_notes(0, Difficulty.BEGINNER, random.Random(0)) == []


def test_distractors_fill_in_pitch_order_when_sampling_stalls():
    distractors = pick_distractors(["C"], NotationSystem.LETTER, _StuckRandom())
    assert distractors == ["D", "E", "F"]


def test_distractors_shrink_when_pool_is_exhausted():
    rng = random.Random(5)
    assert pick_distractors(["C", "D", "E", "F", "G", "A"], NotationSystem.LETTER, rng) == ["B"]
    assert pick_distractors(all_display_names("letter"), NotationSystem.LETTER, rng) == []


def test_distractors_never_repeat_or_collide_with_correct():
    rng = random.Random(11)
    for _ in range(100):
        distractors = pick_distractors(["Do", "Mi"], NotationSystem.SOLFEGE, rng)
        assert len(distractors) == DISTRACTOR_TARGET_COUNT
        assert len(set(distractors)) == len(distractors)
        assert not {"Do", "Mi"} & set(distractors)


def test_raw_string_settings_are_normalized():
    raw_settings = GameSettings(notation_system="Letter", difficulty="beginner", game_mode="sequence")
    normalized = raw_settings.validated()
    assert normalized.notation_system is NotationSystem.LETTER
    assert normalized.difficulty is Difficulty.BEGINNER
    assert normalized.game_mode is GameMode.SEQUENCE

    question = generate_question(raw_settings, random.Random(0))
    low_count, high_count = NOTE_COUNT_RANGES[GameMode.SEQUENCE]
    assert low_count <= len(question.notes) <= high_count
    assert set(question.options) <= set(all_display_names(NotationSystem.LETTER))


def test_enum_settings_validate_to_themselves():
    settings = GameSettings.create(notation_system="solfege", difficulty="advanced", game_mode="chord")
    assert settings.validated() is settings


@pytest.mark.parametrize(
    "kwargs",
    [
        {"game_mode": "karaoke"},
        {"difficulty": "expert"},
        {"notation_system": "numbers"},
        {"time_limit_seconds": 0},
    ],
)
def test_unknown_settings_fail_before_sampling(kwargs):
    with pytest.raises(SettingsError):
        generate_question(GameSettings(**kwargs), random.Random(0))
