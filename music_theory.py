# -*- coding: utf-8 -*-
########################
# music_theory.py
########################
# Purpose:
# - Static music theory tables for the treble clef.
# - Maps note identity (name + octave) to staff position, display names and ledger line needs.
#
# Design notes:
# - Pure data and pure functions. No randomness, no clock.
# - Staff position is the signed diatonic distance from the middle staff line (B4 = 0).
#   Staff lines sit at -4, -2, 0, 2, 4 (E4 G4 B4 D5 F5).
# - Settings enums are normalized here so every caller fails fast on unknown values.
#
########################
# Interfaces:
# Public exceptions:
# - class SettingsError(ValueError)
#
# Public enums:
# - class NoteName(str, enum.Enum): C | D | E | F | G | A | B
# - class NotationSystem(str, enum.Enum): LETTER | SOLFEGE
# - class Difficulty(str, enum.Enum): BEGINNER | INTERMEDIATE | ADVANCED
# - class GameMode(str, enum.Enum): SINGLE_NOTE | CHORD | SEQUENCE | RHYTHM
#
# Public dataclasses:
# - Note(name: NoteName, octave: int, staff_position: int, requires_ledger_line: bool, symbol_id: str)
#
# Public functions:
# - normalize_notation_system(value) -> NotationSystem
# - normalize_difficulty(value) -> Difficulty
# - normalize_game_mode(value) -> GameMode
# - requires_ledger_lines(staff_position: int) -> bool
# - note_to_position(name, octave: int) -> int
# - position_to_note(staff_position: int) -> Note
# - staff_positions_for_difficulty(difficulty) -> list[int]
# - display_name(name, notation_system) -> str
# - note_from_display_name(display: str, notation_system) -> Optional[NoteName]
# - convert_display_names_to_notes(display_names, notation_system) -> list[NoteName]
# - all_display_names(notation_system) -> list[str]
#
# Inputs:
# - Note names, octaves, staff positions and settings values.
#
# Outputs:
# - Note values consumed by question_generator.py, note_scheduler.py and answer_validator.py.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Dict, Iterable, List, Optional, Tuple, Type, TypeVar, Union


class SettingsError(ValueError):
    """Raised when a game setting holds a value outside its recognized set."""


class NoteName(str, enum.Enum):
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"
    A = "A"
    B = "B"


class NotationSystem(str, enum.Enum):
    LETTER = "letter"
    SOLFEGE = "solfege"


class Difficulty(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class GameMode(str, enum.Enum):
    SINGLE_NOTE = "single-note"
    CHORD = "chord"
    SEQUENCE = "sequence"
    RHYTHM = "rhythm"


DEFAULT_SYMBOL_ID = "semibreve"

# Pitch order inside one octave. Index arithmetic below depends on this order.
PITCH_ORDER: Tuple[NoteName, ...] = (
    NoteName.C,
    NoteName.D,
    NoteName.E,
    NoteName.F,
    NoteName.G,
    NoteName.A,
    NoteName.B,
)

NOTATION_MAPPINGS: Dict[NotationSystem, Dict[NoteName, str]] = {
    NotationSystem.LETTER: {
        NoteName.C: "C",
        NoteName.D: "D",
        NoteName.E: "E",
        NoteName.F: "F",
        NoteName.G: "G",
        NoteName.A: "A",
        NoteName.B: "B",
    },
    NotationSystem.SOLFEGE: {
        NoteName.C: "Do",
        NoteName.D: "Re",
        NoteName.E: "Mi",
        NoteName.F: "Fa",
        NoteName.G: "Sol",
        NoteName.A: "La",
        NoteName.B: "Si",
    },
}

# Inclusive staff position ranges.
# beginner: E4..F5 (on the staff), intermediate: C4..A5, advanced: F3..C6.
DIFFICULTY_POSITION_RANGES: Dict[Difficulty, Tuple[int, int]] = {
    Difficulty.BEGINNER: (-4, 4),
    Difficulty.INTERMEDIATE: (-6, 6),
    Difficulty.ADVANCED: (-10, 8),
}

LEDGER_LINE_THRESHOLD = 4

_MIDDLE_LINE_NAME = NoteName.B
_MIDDLE_LINE_OCTAVE = 4


@dataclass(frozen=True)
class Note:
    name: NoteName
    octave: int
    staff_position: int
    requires_ledger_line: bool
    symbol_id: str = DEFAULT_SYMBOL_ID

    @property
    def label(self) -> str:
        return f"{self.name.value}{self.octave}"


_EnumT = TypeVar("_EnumT", bound=enum.Enum)


def _normalize_enum(value: Union[str, enum.Enum], enum_type: Type[_EnumT], setting_name: str) -> _EnumT:
    if isinstance(value, enum_type):
        return value
    text = str(value.value if isinstance(value, enum.Enum) else value or "").strip().lower()
    for member in enum_type:
        if member.value == text:
            return member
    allowed = ", ".join(member.value for member in enum_type)
    raise SettingsError(f"Unknown {setting_name} {value!r}. Expected one of: {allowed}")


def normalize_notation_system(value: Union[str, NotationSystem]) -> NotationSystem:
    return _normalize_enum(value, NotationSystem, "notation system")


def normalize_difficulty(value: Union[str, Difficulty]) -> Difficulty:
    return _normalize_enum(value, Difficulty, "difficulty")


def normalize_game_mode(value: Union[str, GameMode]) -> GameMode:
    return _normalize_enum(value, GameMode, "game mode")


def normalize_note_name(value: Union[str, NoteName]) -> NoteName:
    if isinstance(value, NoteName):
        return value
    text = str(value or "").strip().upper()
    try:
        return NoteName(text)
    except ValueError:
        raise SettingsError(f"Unknown note name {value!r}. Expected one of: C, D, E, F, G, A, B") from None


def requires_ledger_lines(staff_position: int) -> bool:
    return abs(int(staff_position)) > LEDGER_LINE_THRESHOLD


def _diatonic_index(name: NoteName, octave: int) -> int:
    return int(octave) * len(PITCH_ORDER) + PITCH_ORDER.index(name)


_MIDDLE_LINE_INDEX = _diatonic_index(_MIDDLE_LINE_NAME, _MIDDLE_LINE_OCTAVE)


def note_to_position(name: Union[str, NoteName], octave: int) -> int:
    return _diatonic_index(normalize_note_name(name), int(octave)) - _MIDDLE_LINE_INDEX


def position_to_note(staff_position: int, *, symbol_id: str = DEFAULT_SYMBOL_ID) -> Note:
    position = int(staff_position)
    index = _MIDDLE_LINE_INDEX + position
    octave, pitch_index = divmod(index, len(PITCH_ORDER))
    return Note(
        name=PITCH_ORDER[pitch_index],
        octave=octave,
        staff_position=position,
        requires_ledger_line=requires_ledger_lines(position),
        symbol_id=str(symbol_id),
    )


def staff_positions_for_difficulty(difficulty: Union[str, Difficulty]) -> List[int]:
    low, high = DIFFICULTY_POSITION_RANGES[normalize_difficulty(difficulty)]
    return list(range(low, high + 1))


def display_name(name: Union[str, NoteName], notation_system: Union[str, NotationSystem]) -> str:
    return NOTATION_MAPPINGS[normalize_notation_system(notation_system)][normalize_note_name(name)]


def note_from_display_name(display: str, notation_system: Union[str, NotationSystem]) -> Optional[NoteName]:
    mapping = NOTATION_MAPPINGS[normalize_notation_system(notation_system)]
    for name, text in mapping.items():
        if text == display:
            return name
    return None


def convert_display_names_to_notes(
    display_names: Iterable[str],
    notation_system: Union[str, NotationSystem],
) -> List[NoteName]:
    converted: List[NoteName] = []
    for display in display_names:
        name = note_from_display_name(display, notation_system)
        if name is not None:
            converted.append(name)
    return converted


def all_display_names(notation_system: Union[str, NotationSystem]) -> List[str]:
    mapping = NOTATION_MAPPINGS[normalize_notation_system(notation_system)]
    return [mapping[name] for name in PITCH_ORDER]


def _run_unit_tests() -> None:
    middle = position_to_note(0)
    assert (middle.name, middle.octave) == (NoteName.B, 4)
    assert not middle.requires_ledger_line

    middle_c = position_to_note(-6)
    assert (middle_c.name, middle_c.octave) == (NoteName.C, 4)
    assert middle_c.requires_ledger_line

    for position in range(-12, 13):
        note = position_to_note(position)
        assert note_to_position(note.name, note.octave) == position

    assert staff_positions_for_difficulty("beginner") == list(range(-4, 5))
    assert display_name("G", "solfege") == "Sol"
    assert note_from_display_name("Sol", NotationSystem.SOLFEGE) == NoteName.G
    assert note_from_display_name("sol", NotationSystem.SOLFEGE) is None
    assert convert_display_names_to_notes(["Do", "??", "Si"], "solfege") == [NoteName.C, NoteName.B]

    try:
        normalize_game_mode("karaoke")
    except SettingsError:
        pass
    else:
        raise AssertionError("Expected SettingsError for unknown game mode")


if __name__ == "__main__":
    _run_unit_tests()
    print("music_theory.py: ok")
