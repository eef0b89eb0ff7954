# -*- coding: utf-8 -*-
########################
# note_states.py
########################
# Purpose:
# - Visual state machine for notes shown on the staff (idle, highlighted, correct, incorrect, destroying).
# - Pure transition table any rendering layer can drive.
#
# Design notes:
# - No UI usage and no callbacks. Animation kinds are plain tags a renderer maps to its own effects.
# - Transitions not listed in TRANSITIONS are rejected instead of ignored.
# - List helpers return new DisplayNote tuples; inputs are never mutated.
#
########################
# Interfaces:
# Public exceptions:
# - class InvalidTransitionError(ValueError)
#
# Public enums:
# - class NoteVisualState(str, enum.Enum): IDLE | HIGHLIGHTED | CORRECT | INCORRECT | DESTROYING
# - class NoteAnimationKind(str, enum.Enum): CREATION | DESTRUCTION | FEEDBACK
# - class NoteEvent(str, enum.Enum): SHOW | HIGHLIGHT | MARK_CORRECT | MARK_INCORRECT | DESTROY | RESET
#
# Public dataclasses:
# - DisplayNote(note: Note, note_id: str, state: NoteVisualState, animation: Optional[NoteAnimationKind],
#               animation_correct: Optional[bool])
#
# Public functions:
# - transition(state, event) -> NoteVisualState
# - create_note_id(note, index) -> str
# - prepare_notes_for_display(notes) -> list[DisplayNote]
# - trigger_creation(display_notes) -> list[DisplayNote]
# - trigger_destruction(display_notes, is_correct) -> list[DisplayNote]
# - trigger_sequence_feedback(display_notes, user_answer, correct_answer) -> list[DisplayNote]
# - highlight_note(display_notes, note_index) -> list[DisplayNote]
# - reset_notes_to_idle(display_notes) -> list[DisplayNote]
# - are_notes_animating(display_notes) -> bool
#
########################

from __future__ import annotations

from dataclasses import dataclass, replace
import enum
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from music_theory import Note


class InvalidTransitionError(ValueError):
    """Raised when a note receives an event its current state does not accept."""


class NoteVisualState(str, enum.Enum):
    IDLE = "idle"
    HIGHLIGHTED = "highlighted"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    DESTROYING = "destroying"


class NoteAnimationKind(str, enum.Enum):
    CREATION = "creation"
    DESTRUCTION = "destruction"
    FEEDBACK = "feedback"


class NoteEvent(str, enum.Enum):
    SHOW = "show"
    HIGHLIGHT = "highlight"
    MARK_CORRECT = "mark_correct"
    MARK_INCORRECT = "mark_incorrect"
    DESTROY = "destroy"
    RESET = "reset"


_S = NoteVisualState
_E = NoteEvent

TRANSITIONS: Dict[Tuple[NoteVisualState, NoteEvent], NoteVisualState] = {
    (_S.IDLE, _E.SHOW): _S.IDLE,
    (_S.IDLE, _E.HIGHLIGHT): _S.HIGHLIGHTED,
    (_S.IDLE, _E.MARK_CORRECT): _S.CORRECT,
    (_S.IDLE, _E.MARK_INCORRECT): _S.INCORRECT,
    (_S.IDLE, _E.DESTROY): _S.DESTROYING,
    (_S.IDLE, _E.RESET): _S.IDLE,
    (_S.HIGHLIGHTED, _E.HIGHLIGHT): _S.HIGHLIGHTED,
    (_S.HIGHLIGHTED, _E.MARK_CORRECT): _S.CORRECT,
    (_S.HIGHLIGHTED, _E.MARK_INCORRECT): _S.INCORRECT,
    (_S.HIGHLIGHTED, _E.DESTROY): _S.DESTROYING,
    (_S.HIGHLIGHTED, _E.RESET): _S.IDLE,
    (_S.CORRECT, _E.DESTROY): _S.DESTROYING,
    (_S.CORRECT, _E.RESET): _S.IDLE,
    (_S.INCORRECT, _E.DESTROY): _S.DESTROYING,
    (_S.INCORRECT, _E.RESET): _S.IDLE,
    (_S.DESTROYING, _E.DESTROY): _S.DESTROYING,
    (_S.DESTROYING, _E.RESET): _S.IDLE,
}


def transition(state: NoteVisualState, event: NoteEvent) -> NoteVisualState:
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransitionError(f"Note in state {state.value!r} cannot handle {event.value!r}") from None


@dataclass(frozen=True)
class DisplayNote:
    note: Note
    note_id: str
    state: NoteVisualState = NoteVisualState.IDLE
    animation: Optional[NoteAnimationKind] = None
    animation_correct: Optional[bool] = None


def create_note_id(note: Note, index: int) -> str:
    return f"{note.label}_{note.staff_position}_{int(index)}_{uuid.uuid4().hex[:8]}"


def prepare_notes_for_display(notes: Sequence[Note]) -> List[DisplayNote]:
    return [DisplayNote(note=note, note_id=create_note_id(note, index)) for index, note in enumerate(notes)]


def _apply(display_note: DisplayNote, event: NoteEvent, **changes) -> DisplayNote:
    return replace(display_note, state=transition(display_note.state, event), **changes)


def trigger_creation(display_notes: Sequence[DisplayNote]) -> List[DisplayNote]:
    return [
        _apply(item, NoteEvent.SHOW, animation=NoteAnimationKind.CREATION, animation_correct=None)
        for item in display_notes
    ]


def trigger_destruction(display_notes: Sequence[DisplayNote], is_correct: bool) -> List[DisplayNote]:
    return [
        _apply(item, NoteEvent.DESTROY, animation=NoteAnimationKind.DESTRUCTION, animation_correct=bool(is_correct))
        for item in display_notes
    ]


def trigger_sequence_feedback(
    display_notes: Sequence[DisplayNote],
    user_answer: Sequence[str],
    correct_answer: Sequence[str],
) -> List[DisplayNote]:
    updated: List[DisplayNote] = []
    for index, item in enumerate(display_notes):
        user_note = user_answer[index] if index < len(user_answer) else None
        correct_note = correct_answer[index] if index < len(correct_answer) else None
        is_note_correct = user_note is not None and user_note == correct_note
        event = NoteEvent.MARK_CORRECT if is_note_correct else NoteEvent.MARK_INCORRECT
        updated.append(
            _apply(item, event, animation=NoteAnimationKind.FEEDBACK, animation_correct=is_note_correct)
        )
    return updated


def highlight_note(display_notes: Sequence[DisplayNote], note_index: int) -> List[DisplayNote]:
    updated: List[DisplayNote] = []
    for index, item in enumerate(display_notes):
        event = NoteEvent.HIGHLIGHT if index == int(note_index) else NoteEvent.RESET
        updated.append(_apply(item, event))
    return updated


def reset_notes_to_idle(display_notes: Sequence[DisplayNote]) -> List[DisplayNote]:
    return [_apply(item, NoteEvent.RESET, animation=None, animation_correct=None) for item in display_notes]


def are_notes_animating(display_notes: Sequence[DisplayNote]) -> bool:
    return any(
        item.state == NoteVisualState.DESTROYING
        or item.animation in (NoteAnimationKind.DESTRUCTION, NoteAnimationKind.FEEDBACK)
        for item in display_notes
    )


def _run_unit_tests() -> None:
    from music_theory import position_to_note

    notes = prepare_notes_for_display([position_to_note(0), position_to_note(1)])
    assert all(item.state == NoteVisualState.IDLE for item in notes)

    highlighted = highlight_note(notes, 1)
    assert [item.state for item in highlighted] == [NoteVisualState.IDLE, NoteVisualState.HIGHLIGHTED]

    feedback = trigger_sequence_feedback(highlighted, ["B", "D"], ["B", "C"])
    assert [item.state for item in feedback] == [NoteVisualState.CORRECT, NoteVisualState.INCORRECT]
    assert are_notes_animating(feedback)

    try:
        transition(NoteVisualState.CORRECT, NoteEvent.HIGHLIGHT)
    except InvalidTransitionError:
        pass
    else:
        raise AssertionError("Expected InvalidTransitionError")

    assert not are_notes_animating(reset_notes_to_idle(trigger_destruction(feedback, True)))


if __name__ == "__main__":
    _run_unit_tests()
    print("note_states.py: ok")
