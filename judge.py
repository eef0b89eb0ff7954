# -*- coding: utf-8 -*-
########################
# judge.py
########################
# Purpose:
# - Rhythm hit judgement and end of round scoring.
# - Matches a pressed pitch to the closest unhit RhythmNote inside the hit zone.
#
# Design notes:
# - No UI usage. Pure gameplay logic.
# - Strict inputs: consume only the pressed display name and the caller supplied time.
# - Candidates are sorted by (distance to target line, start time, id) so ties break deterministically.
# - A note is marked through RhythmNote.try_mark_hit, so two simultaneous inputs never hit it twice.
# - A miss returns hit=False and never mutates a note.
# - Only spawned notes are hittable, even when the spawn edge falls inside the hit zone.
# - There is no re-arm: a restarted round builds a new NoteScheduler.
#
########################
# Interfaces:
# Public dataclasses:
# - RhythmHitResult(hit: bool, accuracy: float, hit_note: Optional[RhythmNote], distance: Optional[float])
# - RhythmScore(total_score: int, hit_count: int, average_accuracy: int, perfect_hits: int)
#
# Public functions:
# - hit_accuracy(distance: float, hit_zone_size: float) -> float
# - process_rhythm_hit(display_name, current_time_ms, notes, config, screen_width) -> RhythmHitResult
# - calculate_rhythm_score(notes) -> RhythmScore
#
# Public classes:
# - class JudgeEngine
#   - __init__(note_scheduler: NoteScheduler, screen_width: float)
#   - on_input(display_name: str, current_time_ms: float) -> RhythmHitResult
#   - score() -> RhythmScore
#   - recent_results() -> list[RhythmHitResult]
#   - hit_display_names() -> list[str]
#
# Inputs:
# - Pressed display name and current time in milliseconds.
#
# Outputs:
# - RhythmHitResult for feedback and RhythmScore for the round summary.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import List, Optional, Sequence, Tuple

from gameplay_models import RhythmNote
from note_scheduler import (
    NoteScheduler,
    RhythmConfig,
    calculate_note_position,
    is_note_in_hit_zone,
)
from scoring import round_half_up

logger = logging.getLogger(__name__)

PERFECT_ACCURACY_THRESHOLD = 90.0


@dataclass(frozen=True)
class RhythmHitResult:
    hit: bool
    accuracy: float
    hit_note: Optional[RhythmNote] = None
    distance: Optional[float] = None


@dataclass(frozen=True)
class RhythmScore:
    total_score: int = 0
    hit_count: int = 0
    average_accuracy: int = 0
    perfect_hits: int = 0


MISS = RhythmHitResult(hit=False, accuracy=0.0)


def hit_accuracy(distance: float, hit_zone_size: float) -> float:
    return max(0.0, 100.0 - (float(distance) / float(hit_zone_size)) * 100.0)


def _hittable_candidates(
    display_name: str,
    current_time_ms: float,
    notes: Sequence[RhythmNote],
    config: RhythmConfig,
    screen_width: float,
) -> List[Tuple[float, RhythmNote]]:
    candidates: List[Tuple[float, RhythmNote]] = []
    for note in notes:
        if note.hit or note.display_name != display_name:
            continue
        # Not spawned yet.
        if note.start_time > current_time_ms:
            continue
        note_x = calculate_note_position(note, current_time_ms, config, screen_width)
        if not is_note_in_hit_zone(note_x, config.target_line_x, config.hit_zone_size):
            continue
        candidates.append((abs(note_x - float(config.target_line_x)), note))
    candidates.sort(key=lambda item: (item[0], item[1].start_time, item[1].id))
    return candidates


def process_rhythm_hit(
    display_name: str,
    current_time_ms: float,
    notes: Sequence[RhythmNote],
    config: RhythmConfig,
    screen_width: float,
) -> RhythmHitResult:
    candidates = _hittable_candidates(display_name, float(current_time_ms), notes, config, screen_width)
    for distance, note in candidates:
        accuracy = hit_accuracy(distance, config.hit_zone_size)
        if note.try_mark_hit(accuracy):
            return RhythmHitResult(hit=True, accuracy=accuracy, hit_note=note, distance=distance)
        # Another input won the race for this note; try the next closest.
    return MISS


def calculate_rhythm_score(notes: Sequence[RhythmNote]) -> RhythmScore:
    hit_notes = [note for note in notes if note.hit]
    if not hit_notes:
        return RhythmScore()
    accuracies = [float(note.accuracy or 0.0) for note in hit_notes]
    return RhythmScore(
        total_score=sum(round_half_up(value) for value in accuracies),
        hit_count=len(hit_notes),
        average_accuracy=round_half_up(sum(accuracies) / len(accuracies)),
        perfect_hits=sum(1 for value in accuracies if value > PERFECT_ACCURACY_THRESHOLD),
    )


class JudgeEngine:
    def __init__(self, note_scheduler_obj: NoteScheduler, screen_width: float) -> None:
        self._note_scheduler = note_scheduler_obj
        self._screen_width = float(screen_width)
        self._recent_results: List[RhythmHitResult] = []

    def note_scheduler(self) -> NoteScheduler:
        return self._note_scheduler

    def screen_width(self) -> float:
        return self._screen_width

    def on_input(self, display_name: str, current_time_ms: float) -> RhythmHitResult:
        result = process_rhythm_hit(
            display_name,
            current_time_ms,
            self._note_scheduler.notes(),
            self._note_scheduler.config(),
            self._screen_width,
        )
        if result.hit:
            logger.debug(
                "Rhythm hit %s at %.1fms accuracy=%.1f",
                result.hit_note.id if result.hit_note else "?",
                float(current_time_ms),
                result.accuracy,
            )
        else:
            logger.debug("Rhythm miss for %r at %.1fms", display_name, float(current_time_ms))
        self._recent_results.append(result)
        return result

    def score(self) -> RhythmScore:
        return calculate_rhythm_score(self._note_scheduler.notes())

    def recent_results(self) -> List[RhythmHitResult]:
        return list(self._recent_results)

    def hit_display_names(self) -> List[str]:
        return [note.display_name for note in self._note_scheduler.notes() if note.hit]


def _run_unit_tests() -> None:
    from music_theory import NotationSystem, position_to_note
    from note_scheduler import default_rhythm_config, time_at_position

    config = default_rhythm_config()
    scheduler = NoteScheduler(
        [position_to_note(0)],
        start_time_ms=0.0,
        config=config,
        notation_system=NotationSystem.LETTER,
    )
    engine = JudgeEngine(scheduler, screen_width=320)
    note = scheduler.notes()[0]

    early = engine.on_input("B", 0.0)
    assert not early.hit and not note.hit

    wrong_pitch = engine.on_input("C", time_at_position(note, config.target_line_x, config, 320))
    assert not wrong_pitch.hit

    perfect = engine.on_input("B", time_at_position(note, config.target_line_x, config, 320))
    assert perfect.hit and abs(perfect.accuracy - 100.0) < 1e-6
    assert note.hit and note.accuracy is not None

    again = engine.on_input("B", time_at_position(note, config.target_line_x, config, 320))
    assert not again.hit

    score = engine.score()
    assert score.hit_count == 1 and score.perfect_hits == 1 and score.total_score == 100


if __name__ == "__main__":
    _run_unit_tests()
    print("judge.py: ok")
