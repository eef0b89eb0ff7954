# -*- coding: utf-8 -*-
########################
# analytics.py
########################
# Purpose:
# - Fold completed GameSession snapshots into cumulative player statistics.
# - Unlock achievements by threshold rules after every session.
#
# Design notes:
# - add_session never mutates its input; it returns a new UserAnalytics.
# - recent_sessions is most recent first and capped (default 20).
# - Achievement unlock is one way: an unlocked achievement keeps its first unlocked_at.
# - Persistence is a caller concern. to_payload gives a JSON friendly view.
#
########################
# Interfaces:
# Public constants:
# - RECENT_SESSIONS_CAP: int
# - ACHIEVEMENT_DEFINITIONS: tuple[tuple[str, str, str], ...]
#
# Public dataclasses:
# - UserAnalytics(total_games_played, total_score, best_streak, average_accuracy, total_play_time,
#                 favorite_game_mode, favorite_notation, favorite_difficulty, games_per_mode,
#                 games_per_notation, games_per_difficulty, recent_sessions, achievements)
#   - achievement(achievement_id) -> Optional[Achievement]
#   - to_payload() -> dict
#
# Public functions:
# - default_achievements() -> list[Achievement]
# - new_user_analytics() -> UserAnalytics
# - merge_achievement_definitions(analytics) -> UserAnalytics
# - unlock_achievement(analytics, achievement_id, unlocked_at) -> bool
# - add_session(analytics, session, now=None, recent_sessions_cap=RECENT_SESSIONS_CAP)
#     -> tuple[UserAnalytics, list[Achievement]]
# - format_play_time(seconds: int) -> str
#
########################

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
import enum
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from gameplay_models import Achievement, GameSession
from music_theory import Difficulty, GameMode, NotationSystem

RECENT_SESSIONS_CAP = 20
DEDICATED_PLAYER_GAMES = 50

ACHIEVEMENT_DEFINITIONS: Tuple[Tuple[str, str, str], ...] = (
    ("first_game", "First Steps", "Complete your first game"),
    ("streak_5", "Hot Streak", "Get a 5-note streak"),
    ("streak_10", "Blazing Notes", "Get a 10-note streak"),
    ("perfect_game", "Perfect Pitch", "Complete a game with 100% accuracy"),
    ("notation_master", "Notation Master", "Play games in both notation systems"),
    ("dedicated_player", "Dedicated Player", f"Play {DEDICATED_PLAYER_GAMES} games"),
)


def default_achievements() -> List[Achievement]:
    return [
        Achievement(id=achievement_id, title=title, description=description)
        for achievement_id, title, description in ACHIEVEMENT_DEFINITIONS
    ]


_EnumT = TypeVar("_EnumT", bound=enum.Enum)


def _zero_counts(enum_type: type) -> Dict[Any, int]:
    return {member: 0 for member in enum_type}


@dataclass
class UserAnalytics:
    total_games_played: int = 0
    total_score: int = 0
    best_streak: int = 0
    average_accuracy: float = 0.0
    total_play_time: int = 0
    favorite_game_mode: GameMode = GameMode.SINGLE_NOTE
    favorite_notation: NotationSystem = NotationSystem.LETTER
    favorite_difficulty: Difficulty = Difficulty.BEGINNER
    games_per_mode: Dict[GameMode, int] = field(default_factory=lambda: _zero_counts(GameMode))
    games_per_notation: Dict[NotationSystem, int] = field(default_factory=lambda: _zero_counts(NotationSystem))
    games_per_difficulty: Dict[Difficulty, int] = field(default_factory=lambda: _zero_counts(Difficulty))
    recent_sessions: List[GameSession] = field(default_factory=list)
    achievements: List[Achievement] = field(default_factory=default_achievements)

    def achievement(self, achievement_id: str) -> Optional[Achievement]:
        for item in self.achievements:
            if item.id == achievement_id:
                return item
        return None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "total_games_played": self.total_games_played,
            "total_score": self.total_score,
            "best_streak": self.best_streak,
            "average_accuracy": self.average_accuracy,
            "total_play_time": self.total_play_time,
            "favorite_game_mode": self.favorite_game_mode.value,
            "favorite_notation": self.favorite_notation.value,
            "favorite_difficulty": self.favorite_difficulty.value,
            "games_per_mode": {key.value: value for key, value in self.games_per_mode.items()},
            "games_per_notation": {key.value: value for key, value in self.games_per_notation.items()},
            "games_per_difficulty": {key.value: value for key, value in self.games_per_difficulty.items()},
            "recent_sessions": [session.to_payload() for session in self.recent_sessions],
            "achievements": [item.to_payload() for item in self.achievements],
        }


def new_user_analytics() -> UserAnalytics:
    return UserAnalytics()


def merge_achievement_definitions(analytics: UserAnalytics) -> UserAnalytics:
    """Return a copy whose achievement list follows ACHIEVEMENT_DEFINITIONS, keeping known unlock state."""
    merged = copy.deepcopy(analytics)
    existing = {item.id: item for item in merged.achievements}
    merged.achievements = [existing.get(item.id, item) for item in default_achievements()]
    return merged


def unlock_achievement(analytics: UserAnalytics, achievement_id: str, unlocked_at: str) -> bool:
    achievement = analytics.achievement(achievement_id)
    if achievement is None or achievement.is_unlocked:
        return False
    achievement.is_unlocked = True
    achievement.unlocked_at = str(unlocked_at)
    return True


def _most_played(counts: Dict[_EnumT, int], fallback: _EnumT) -> _EnumT:
    # Ties go to the later key.
    best_key = fallback
    best_count = None
    for key, count in counts.items():
        if best_count is None or count >= best_count:
            best_key = key
            best_count = count
    return best_key


AchievementRule = Callable[[UserAnalytics, GameSession], bool]

ACHIEVEMENT_RULES: Tuple[Tuple[str, AchievementRule], ...] = (
    ("first_game", lambda analytics, session: analytics.total_games_played == 1),
    ("streak_5", lambda analytics, session: session.max_streak >= 5),
    ("streak_10", lambda analytics, session: session.max_streak >= 10),
    ("perfect_game", lambda analytics, session: session.accuracy == 100),
    (
        "notation_master",
        lambda analytics, session: all(analytics.games_per_notation.get(system, 0) > 0 for system in NotationSystem),
    ),
    ("dedicated_player", lambda analytics, session: analytics.total_games_played >= DEDICATED_PLAYER_GAMES),
)


def add_session(
    analytics: UserAnalytics,
    session: GameSession,
    now: Optional[str] = None,
    recent_sessions_cap: int = RECENT_SESSIONS_CAP,
) -> Tuple[UserAnalytics, List[Achievement]]:
    if int(recent_sessions_cap) < 1:
        raise ValueError(f"recent_sessions_cap must be at least 1, got {recent_sessions_cap}")

    updated = merge_achievement_definitions(analytics)
    unlocked_at = now if now is not None else datetime.now(timezone.utc).isoformat()

    updated.total_games_played += 1
    updated.total_score += int(session.score)
    updated.best_streak = max(updated.best_streak, int(session.max_streak))
    updated.total_play_time += int(session.duration)

    updated.games_per_mode[session.game_mode] = updated.games_per_mode.get(session.game_mode, 0) + 1
    updated.games_per_notation[session.notation_system] = updated.games_per_notation.get(session.notation_system, 0) + 1
    updated.games_per_difficulty[session.difficulty] = updated.games_per_difficulty.get(session.difficulty, 0) + 1

    games = updated.total_games_played
    updated.average_accuracy = (updated.average_accuracy * (games - 1) + float(session.accuracy)) / games

    updated.favorite_game_mode = _most_played(updated.games_per_mode, GameMode.SINGLE_NOTE)
    updated.favorite_notation = _most_played(updated.games_per_notation, NotationSystem.LETTER)
    updated.favorite_difficulty = _most_played(updated.games_per_difficulty, Difficulty.BEGINNER)

    updated.recent_sessions.insert(0, session)
    del updated.recent_sessions[int(recent_sessions_cap):]

    newly_unlocked: List[Achievement] = []
    for achievement_id, rule in ACHIEVEMENT_RULES:
        if rule(updated, session) and unlock_achievement(updated, achievement_id, unlocked_at):
            newly_unlocked.append(updated.achievement(achievement_id))

    return updated, newly_unlocked


def format_play_time(seconds: int) -> str:
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _run_unit_tests() -> None:
    def make_session(index: int, accuracy: int, notation: NotationSystem) -> GameSession:
        return GameSession(
            id=f"session_{index}",
            timestamp="2026-01-01T00:00:00+00:00",
            game_mode=GameMode.SINGLE_NOTE,
            difficulty=Difficulty.BEGINNER,
            notation_system=notation,
            score=100,
            streak=2,
            max_streak=6,
            total_questions=10,
            correct_answers=accuracy // 10,
            accuracy=accuracy,
            duration=60,
        )

    analytics = new_user_analytics()
    analytics, unlocked = add_session(analytics, make_session(1, 100, NotationSystem.LETTER), now="t1")
    assert {item.id for item in unlocked} == {"first_game", "streak_5", "perfect_game"}
    assert analytics.achievement("perfect_game").unlocked_at == "t1"

    analytics, unlocked = add_session(analytics, make_session(2, 100, NotationSystem.SOLFEGE), now="t2")
    assert [item.id for item in unlocked] == ["notation_master"]
    assert analytics.achievement("perfect_game").unlocked_at == "t1"
    assert analytics.recent_sessions[0].id == "session_2"

    for index in range(3, 30):
        analytics, _unlocked = add_session(analytics, make_session(index, 50, NotationSystem.LETTER), now="t")
    assert len(analytics.recent_sessions) == RECENT_SESSIONS_CAP
    assert format_play_time(3900) == "1h 5m"


if __name__ == "__main__":
    _run_unit_tests()
    print("analytics.py: ok")
