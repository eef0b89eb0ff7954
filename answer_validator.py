# -*- coding: utf-8 -*-
########################
# answer_validator.py
########################
# Purpose:
# - Validate player answers for the note identification modes.
# - Unordered multiset match (single note, chord), ordered match (sequence),
#   and per-position sequence feedback for partial visual hints.
#
# Design notes:
# - Comparisons are exact and case sensitive. Inputs are never mutated.
# - Rhythm answers are judged by judge.py against time, not here.
# - Wrong answers are ordinary results, never exceptions.
#
########################
# Interfaces:
# Public dataclasses:
# - SequenceFeedback(is_correct: bool, correct_positions: list[int], wrong_positions: list[int],
#                    missed_notes: list[str])
# - SequenceState(user_sequence: tuple[str, ...], current_note_index: int, is_complete: bool)
#
# Public functions:
# - normalize_answer(answer: str | Sequence[str]) -> list[str]
# - unordered_match(user_answer, correct_answer) -> bool
# - ordered_match(user_sequence, correct_sequence) -> bool
# - sequence_feedback(user_sequence, correct_sequence) -> SequenceFeedback
# - validate_answer(game_mode, user_answer, correct_answer) -> bool
# - reset_sequence() -> SequenceState
# - add_note_to_sequence(state, note_name, total_notes) -> SequenceState
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple, Union

from music_theory import GameMode


@dataclass(frozen=True)
class SequenceFeedback:
    is_correct: bool
    correct_positions: List[int] = field(default_factory=list)
    wrong_positions: List[int] = field(default_factory=list)
    missed_notes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SequenceState:
    user_sequence: Tuple[str, ...] = ()
    current_note_index: int = 0
    is_complete: bool = False


def normalize_answer(answer: Union[str, Sequence[str]]) -> List[str]:
    if isinstance(answer, str):
        return [answer]
    return [str(item) for item in answer]


def unordered_match(user_answer: Sequence[str], correct_answer: Sequence[str]) -> bool:
    return sorted(user_answer) == sorted(correct_answer)


def ordered_match(user_sequence: Sequence[str], correct_sequence: Sequence[str]) -> bool:
    if len(user_sequence) != len(correct_sequence):
        return False
    return all(user == correct for user, correct in zip(user_sequence, correct_sequence))


def sequence_feedback(user_sequence: Sequence[str], correct_sequence: Sequence[str]) -> SequenceFeedback:
    correct_positions: List[int] = []
    wrong_positions: List[int] = []
    missed_notes: List[str] = []

    for index, note in enumerate(user_sequence):
        if index < len(correct_sequence) and note == correct_sequence[index]:
            correct_positions.append(index)
        else:
            wrong_positions.append(index)

    for index, note in enumerate(correct_sequence):
        if index >= len(user_sequence) or user_sequence[index] != note:
            if note not in missed_notes:
                missed_notes.append(note)

    return SequenceFeedback(
        is_correct=len(user_sequence) == len(correct_sequence) and not wrong_positions,
        correct_positions=correct_positions,
        wrong_positions=wrong_positions,
        missed_notes=missed_notes,
    )


def validate_answer(
    game_mode: GameMode,
    user_answer: Union[str, Sequence[str]],
    correct_answer: Sequence[str],
) -> bool:
    answer = normalize_answer(user_answer)
    if game_mode == GameMode.SEQUENCE:
        return ordered_match(answer, correct_answer)
    if game_mode in (GameMode.SINGLE_NOTE, GameMode.CHORD):
        return unordered_match(answer, correct_answer)
    raise ValueError(f"{game_mode!r} answers are judged by timing, not by validate_answer")


def reset_sequence() -> SequenceState:
    return SequenceState()


def add_note_to_sequence(state: SequenceState, note_name: str, total_notes: int) -> SequenceState:
    new_sequence = state.user_sequence + (str(note_name),)
    return SequenceState(
        user_sequence=new_sequence,
        current_note_index=state.current_note_index + 1,
        is_complete=len(new_sequence) == int(total_notes),
    )


def _run_unit_tests() -> None:
    assert unordered_match(["G", "C", "E"], ["C", "E", "G"])
    assert not unordered_match(["c"], ["C"])
    assert not unordered_match(["C", "C"], ["C"])

    assert ordered_match(["A", "B", "C"], ["A", "B", "C"])
    assert not ordered_match(["C", "B", "A"], ["A", "B", "C"])

    feedback = sequence_feedback(["A", "C", "C"], ["A", "B", "C"])
    assert not feedback.is_correct
    assert feedback.correct_positions == [0, 2]
    assert feedback.wrong_positions == [1]
    assert feedback.missed_notes == ["B"]

    state = add_note_to_sequence(reset_sequence(), "Do", total_notes=2)
    state = add_note_to_sequence(state, "Re", total_notes=2)
    assert state.is_complete and state.user_sequence == ("Do", "Re")


if __name__ == "__main__":
    _run_unit_tests()
    print("answer_validator.py: ok")
