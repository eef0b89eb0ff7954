"""Tests for note_states: the visual transition table and list helpers."""

from __future__ import annotations

import pytest

from music_theory import position_to_note
from note_states import (
    TRANSITIONS,
    InvalidTransitionError,
    NoteAnimationKind,
    NoteEvent,
    NoteVisualState,
    are_notes_animating,
    highlight_note,
    prepare_notes_for_display,
    reset_notes_to_idle,
    transition,
    trigger_creation,
    trigger_destruction,
    trigger_sequence_feedback,
)


def _display_notes(count: int = 3):
    return prepare_notes_for_display([position_to_note(position) for position in range(count)])


@pytest.mark.parametrize("state", list(NoteVisualState))
@pytest.mark.parametrize("event", list(NoteEvent))
def test_transition_follows_table_or_raises(state, event):
    if (state, event) in TRANSITIONS:
        assert transition(state, event) == TRANSITIONS[(state, event)]
    else:
        with pytest.raises(InvalidTransitionError):
            transition(state, event)


def test_reset_is_accepted_from_every_state():
    for state in NoteVisualState:
        assert transition(state, NoteEvent.RESET) == NoteVisualState.IDLE


def test_prepared_notes_start_idle_with_unique_ids():
    display_notes = _display_notes(5)
    assert all(item.state == NoteVisualState.IDLE for item in display_notes)
    assert all(item.animation is None for item in display_notes)
    assert len({item.note_id for item in display_notes}) == 5


def test_creation_then_destruction():
    created = trigger_creation(_display_notes())
    assert all(item.animation == NoteAnimationKind.CREATION for item in created)
    assert not are_notes_animating(created)

    destroyed = trigger_destruction(created, is_correct=False)
    assert all(item.state == NoteVisualState.DESTROYING for item in destroyed)
    assert all(item.animation_correct is False for item in destroyed)
    assert are_notes_animating(destroyed)


def test_highlight_moves_between_notes():
    display_notes = highlight_note(_display_notes(), 0)
    assert [item.state for item in display_notes] == [
        NoteVisualState.HIGHLIGHTED,
        NoteVisualState.IDLE,
        NoteVisualState.IDLE,
    ]
    display_notes = highlight_note(display_notes, 2)
    assert [item.state for item in display_notes] == [
        NoteVisualState.IDLE,
        NoteVisualState.IDLE,
        NoteVisualState.HIGHLIGHTED,
    ]


def test_sequence_feedback_marks_each_position():
    display_notes = trigger_sequence_feedback(_display_notes(), ["B", "D"], ["B", "C", "D"])
    assert [item.state for item in display_notes] == [
        NoteVisualState.CORRECT,
        NoteVisualState.INCORRECT,
        NoteVisualState.INCORRECT,
    ]
    assert [item.animation_correct for item in display_notes] == [True, False, False]
    assert are_notes_animating(display_notes)


def test_marked_notes_cannot_be_highlighted_until_reset():
    marked = trigger_sequence_feedback(_display_notes(2), ["B", "C"], ["B", "C"])
    with pytest.raises(InvalidTransitionError):
        highlight_note(marked, 0)

    reset = reset_notes_to_idle(marked)
    assert not are_notes_animating(reset)
    assert highlight_note(reset, 0)[0].state == NoteVisualState.HIGHLIGHTED


def test_helpers_do_not_mutate_inputs():
    display_notes = _display_notes()
    trigger_destruction(display_notes, is_correct=True)
    assert all(item.state == NoteVisualState.IDLE for item in display_notes)
