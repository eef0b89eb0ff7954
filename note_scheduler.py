# -*- coding: utf-8 -*-
########################
# note_scheduler.py
########################
# Purpose:
# - Turn a question's notes into time scheduled RhythmNote values for rhythm mode.
# - Compute where a note is on screen at a given time and whether it sits in the hit zone.
# - Own the in-flight notes of one rhythm round and answer queries about them.
#
# Design notes:
# - No UI usage. Pure gameplay logic.
# - Time is always supplied by the caller in milliseconds; nothing here reads a clock.
# - Schedule order is deterministic: note i starts at t0 + i * note_interval_ms.
# - Notes travel linearly from screen_width + 50 to -100 over note_speed_ms.
# - RhythmConfig rejects non-positive speed, interval, zone and tolerance values with InvariantError.
#
########################
# Interfaces:
# Public dataclasses:
# - RhythmConfig(note_speed_ms, note_interval_ms, target_line_x, hit_zone_size,
#                max_timing_tolerance_ms, target_progress)
#
# Public functions:
# - default_rhythm_config() -> RhythmConfig
# - create_rhythm_note(note, index, start_time_ms, config, notation_system) -> RhythmNote
# - schedule_rhythm_notes(notes, start_time_ms, config, notation_system) -> list[RhythmNote]
# - calculate_note_progress(note, current_time_ms, config) -> float
# - calculate_note_position(note, current_time_ms, config, screen_width) -> float
# - time_at_position(note, x, config, screen_width) -> float
# - is_note_in_hit_zone(note_x, target_line_x, hit_zone_size) -> bool
# - is_rhythm_timing_valid(current_time_ms, target_time_ms, tolerance_ms) -> bool
# - calculate_timing_accuracy(timing_diff_ms, max_allowed_diff_ms) -> float
# - chunk_note_statuses(items, size) -> list[list]
#
# Public classes:
# - class NoteScheduler
#   - __init__(notes, *, start_time_ms, config, notation_system)
#   - notes() -> list[RhythmNote]
#   - spawned_notes(current_time_ms) -> list[RhythmNote]
#   - visible_notes(current_time_ms) -> list[RhythmNote]
#   - unhit_notes_past_target(current_time_ms, screen_width) -> list[RhythmNote]
#   - round_end_time() -> float
#   - is_round_over(current_time_ms) -> bool
#   - discard() -> None
#
# Inputs:
# - Notes from a Question, the round start time and RhythmConfig.
#
# Outputs:
# - RhythmNote lists consumed by judge.py and by rendering layers.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import uuid
from typing import List, Sequence, TypeVar

from gameplay_models import InvariantError, RhythmNote
from music_theory import NotationSystem, Note, display_name

SPAWN_OFFSET_X = 50.0
EXIT_OVERSHOOT_X = 150.0
ROUND_TAIL_MS = 1000.0


@dataclass(frozen=True)
class RhythmConfig:
    note_speed_ms: float = 3000.0
    note_interval_ms: float = 1000.0
    target_line_x: float = 120.0
    hit_zone_size: float = 50.0
    max_timing_tolerance_ms: float = 500.0
    target_progress: float = 0.6

    def __post_init__(self) -> None:
        positive_fields = {
            "note_speed_ms": self.note_speed_ms,
            "note_interval_ms": self.note_interval_ms,
            "hit_zone_size": self.hit_zone_size,
            "max_timing_tolerance_ms": self.max_timing_tolerance_ms,
        }
        for field_name, value in positive_fields.items():
            if float(value) <= 0.0:
                raise InvariantError(f"RhythmConfig.{field_name} must be positive, got {value!r}")
        if not 0.0 < float(self.target_progress) <= 1.0:
            raise InvariantError(f"RhythmConfig.target_progress must be within (0, 1], got {self.target_progress!r}")


def default_rhythm_config() -> RhythmConfig:
    return RhythmConfig()


def create_rhythm_note(
    note: Note,
    index: int,
    start_time_ms: float,
    config: RhythmConfig,
    notation_system: NotationSystem,
) -> RhythmNote:
    note_start = float(start_time_ms) + int(index) * float(config.note_interval_ms)
    return RhythmNote(
        id=f"{note.label}_{int(index)}_{uuid.uuid4().hex[:12]}",
        note=note,
        display_name=display_name(note.name, notation_system),
        start_time=note_start,
        target_time=note_start + float(config.note_speed_ms) * float(config.target_progress),
    )


def schedule_rhythm_notes(
    notes: Sequence[Note],
    start_time_ms: float,
    config: RhythmConfig,
    notation_system: NotationSystem,
) -> List[RhythmNote]:
    return [
        create_rhythm_note(note, index, start_time_ms, config, notation_system)
        for index, note in enumerate(notes)
    ]


def calculate_note_progress(note: RhythmNote, current_time_ms: float, config: RhythmConfig) -> float:
    elapsed = float(current_time_ms) - float(note.start_time)
    progress = elapsed / float(config.note_speed_ms)
    return min(1.0, max(0.0, progress))


def calculate_note_position(
    note: RhythmNote,
    current_time_ms: float,
    config: RhythmConfig,
    screen_width: float,
) -> float:
    progress = calculate_note_progress(note, current_time_ms, config)
    width = float(screen_width)
    return width + SPAWN_OFFSET_X - progress * (width + EXIT_OVERSHOOT_X)


def time_at_position(note: RhythmNote, x: float, config: RhythmConfig, screen_width: float) -> float:
    """Inverse of calculate_note_position for x inside the travel range."""
    width = float(screen_width)
    progress = (width + SPAWN_OFFSET_X - float(x)) / (width + EXIT_OVERSHOOT_X)
    return float(note.start_time) + progress * float(config.note_speed_ms)


def is_note_in_hit_zone(note_x: float, target_line_x: float, hit_zone_size: float) -> bool:
    return abs(float(note_x) - float(target_line_x)) <= float(hit_zone_size)


def is_rhythm_timing_valid(current_time_ms: float, target_time_ms: float, tolerance_ms: float) -> bool:
    return abs(float(current_time_ms) - float(target_time_ms)) <= float(tolerance_ms)


def calculate_timing_accuracy(timing_diff_ms: float, max_allowed_diff_ms: float) -> float:
    return max(0.0, 100.0 - (abs(float(timing_diff_ms)) / float(max_allowed_diff_ms)) * 100.0)


_ItemT = TypeVar("_ItemT")


def chunk_note_statuses(items: Sequence[_ItemT], size: int) -> List[List[_ItemT]]:
    if int(size) <= 0:
        raise ValueError("chunk size must be greater than zero")
    return [list(items[index:index + int(size)]) for index in range(0, len(items), int(size))]


class NoteScheduler:
    def __init__(
        self,
        notes: Sequence[Note],
        *,
        start_time_ms: float,
        config: RhythmConfig,
        notation_system: NotationSystem,
    ) -> None:
        self._config = config
        self._start_time_ms = float(start_time_ms)
        self._rhythm_notes = schedule_rhythm_notes(notes, start_time_ms, config, notation_system)

    def config(self) -> RhythmConfig:
        return self._config

    def start_time_ms(self) -> float:
        return self._start_time_ms

    def notes(self) -> List[RhythmNote]:
        return list(self._rhythm_notes)

    def spawned_notes(self, current_time_ms: float) -> List[RhythmNote]:
        now = float(current_time_ms)
        return [note for note in self._rhythm_notes if note.start_time <= now]

    def visible_notes(self, current_time_ms: float) -> List[RhythmNote]:
        now = float(current_time_ms)
        speed = float(self._config.note_speed_ms)
        return [note for note in self._rhythm_notes if note.start_time <= now < note.start_time + speed]

    def unhit_notes_past_target(self, current_time_ms: float, screen_width: float) -> List[RhythmNote]:
        trailing_edge = float(self._config.target_line_x) - float(self._config.hit_zone_size)
        passed: List[RhythmNote] = []
        for note in self.spawned_notes(current_time_ms):
            if note.hit:
                continue
            if calculate_note_position(note, current_time_ms, self._config, screen_width) < trailing_edge:
                passed.append(note)
        return passed

    def round_end_time(self) -> float:
        if not self._rhythm_notes:
            return self._start_time_ms
        last_start = max(note.start_time for note in self._rhythm_notes)
        return last_start + float(self._config.note_speed_ms) + ROUND_TAIL_MS

    def is_round_over(self, current_time_ms: float) -> bool:
        return float(current_time_ms) >= self.round_end_time()

    def discard(self) -> None:
        self._rhythm_notes = []


def _run_unit_tests() -> None:
    from music_theory import position_to_note

    config = default_rhythm_config()
    scheduler = NoteScheduler(
        [position_to_note(0), position_to_note(2)],
        start_time_ms=1000.0,
        config=config,
        notation_system=NotationSystem.LETTER,
    )
    first, second = scheduler.notes()
    assert first.start_time == 1000.0 and second.start_time == 2000.0
    assert abs(first.target_time - 2800.0) < 1e-9
    assert first.display_name == "B" and second.display_name == "D"

    assert calculate_note_position(first, first.start_time, config, 320) == 370.0
    assert calculate_note_position(first, first.start_time + config.note_speed_ms, config, 320) == -100.0
    assert calculate_note_position(first, first.start_time - 500, config, 320) == 370.0

    assert [note.id for note in scheduler.visible_notes(1500.0)] == [first.id]
    assert scheduler.round_end_time() == 2000.0 + 3000.0 + 1000.0
    assert chunk_note_statuses([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]


if __name__ == "__main__":
    _run_unit_tests()
    print("note_scheduler.py: ok")
