"""Tests for analytics: session aggregation, favorites and achievement unlocks."""

from __future__ import annotations

import pytest

from analytics import (
    ACHIEVEMENT_DEFINITIONS,
    DEDICATED_PLAYER_GAMES,
    RECENT_SESSIONS_CAP,
    UserAnalytics,
    add_session,
    format_play_time,
    merge_achievement_definitions,
    new_user_analytics,
    unlock_achievement,
)
from gameplay_models import Achievement, GameSession
from music_theory import Difficulty, GameMode, NotationSystem


def _session(
    index: int = 1,
    *,
    accuracy: int = 100,
    max_streak: int = 3,
    game_mode: GameMode = GameMode.SINGLE_NOTE,
    notation_system: NotationSystem = NotationSystem.LETTER,
    difficulty: Difficulty = Difficulty.BEGINNER,
    duration: int = 120,
) -> GameSession:
    return GameSession(
        id=f"session_{index}",
        timestamp="2026-03-01T10:00:00+00:00",
        game_mode=game_mode,
        difficulty=difficulty,
        notation_system=notation_system,
        score=50,
        streak=1,
        max_streak=max_streak,
        total_questions=10,
        correct_answers=accuracy // 10,
        accuracy=accuracy,
        duration=duration,
    )


def test_perfect_game_unlock_keeps_first_timestamp():
    analytics, unlocked = add_session(new_user_analytics(), _session(1), now="2026-03-01T10:00:00")
    assert "perfect_game" in {item.id for item in unlocked}
    first_unlock = analytics.achievement("perfect_game").unlocked_at
    assert first_unlock == "2026-03-01T10:00:00"

    analytics, unlocked = add_session(analytics, _session(2), now="2026-03-02T10:00:00")
    assert "perfect_game" not in {item.id for item in unlocked}
    assert analytics.achievement("perfect_game").unlocked_at == first_unlock


def test_unlock_twice_is_a_no_op():
    analytics = new_user_analytics()
    assert unlock_achievement(analytics, "streak_5", "first")
    assert not unlock_achievement(analytics, "streak_5", "second")
    assert analytics.achievement("streak_5").unlocked_at == "first"
    assert not unlock_achievement(analytics, "no_such_achievement", "first")


def test_add_session_does_not_mutate_input():
    original = new_user_analytics()
    updated, _unlocked = add_session(original, _session(1), now="t")
    assert original.total_games_played == 0
    assert original.recent_sessions == []
    assert not original.achievement("first_game").is_unlocked
    assert updated.total_games_played == 1


def test_counters_and_running_average():
    analytics = new_user_analytics()
    for index, accuracy in enumerate((100, 50, 80), start=1):
        analytics, _unlocked = add_session(
            analytics, _session(index, accuracy=accuracy, max_streak=index * 2), now="t"
        )

    assert analytics.total_games_played == 3
    assert analytics.total_score == 150
    assert analytics.best_streak == 6
    assert analytics.total_play_time == 360
    assert analytics.average_accuracy == pytest.approx((100 + 50 + 80) / 3)
    assert analytics.games_per_mode[GameMode.SINGLE_NOTE] == 3


def test_recent_sessions_are_newest_first_and_capped():
    analytics = new_user_analytics()
    for index in range(1, RECENT_SESSIONS_CAP + 6):
        analytics, _unlocked = add_session(analytics, _session(index), now="t")

    assert len(analytics.recent_sessions) == RECENT_SESSIONS_CAP
    assert analytics.recent_sessions[0].id == f"session_{RECENT_SESSIONS_CAP + 5}"
    assert analytics.recent_sessions[-1].id == "session_6"


def test_custom_recent_sessions_cap():
    analytics = new_user_analytics()
    for index in range(1, 5):
        analytics, _unlocked = add_session(analytics, _session(index), now="t", recent_sessions_cap=2)
    assert [session.id for session in analytics.recent_sessions] == ["session_4", "session_3"]

    with pytest.raises(ValueError):
        add_session(analytics, _session(9), recent_sessions_cap=0)


def test_favorites_track_most_played_with_ties_to_later_key():
    analytics, _unlocked = add_session(new_user_analytics(), _session(1, game_mode=GameMode.RHYTHM), now="t")
    assert analytics.favorite_game_mode == GameMode.RHYTHM

    analytics, _unlocked = add_session(
        analytics, _session(2, game_mode=GameMode.CHORD, notation_system=NotationSystem.SOLFEGE), now="t"
    )
    assert analytics.favorite_game_mode == GameMode.RHYTHM
    assert analytics.favorite_notation == NotationSystem.SOLFEGE

    analytics, _unlocked = add_session(
        analytics, _session(3, game_mode=GameMode.CHORD, difficulty=Difficulty.ADVANCED), now="t"
    )
    assert analytics.favorite_game_mode == GameMode.CHORD
    assert analytics.favorite_notation == NotationSystem.LETTER
    assert analytics.favorite_difficulty == Difficulty.BEGINNER


def test_streak_and_notation_achievements():
    analytics, unlocked = add_session(new_user_analytics(), _session(1, accuracy=70, max_streak=12), now="t")
    assert {item.id for item in unlocked} == {"first_game", "streak_5", "streak_10"}

    analytics, unlocked = add_session(
        analytics, _session(2, accuracy=70, notation_system=NotationSystem.SOLFEGE), now="t"
    )
    assert [item.id for item in unlocked] == ["notation_master"]


def test_dedicated_player_unlocks_on_threshold():
    analytics = new_user_analytics()
    for index in range(1, DEDICATED_PLAYER_GAMES):
        analytics, _unlocked = add_session(analytics, _session(index, accuracy=40), now="t")
    assert not analytics.achievement("dedicated_player").is_unlocked

    analytics, unlocked = add_session(analytics, _session(DEDICATED_PLAYER_GAMES, accuracy=40), now="final")
    assert [item.id for item in unlocked] == ["dedicated_player"]
    assert analytics.achievement("dedicated_player").unlocked_at == "final"


def test_merge_restores_missing_definitions():
    legacy = UserAnalytics(
        achievements=[Achievement(id="first_game", title="Old", description="Old", is_unlocked=True, unlocked_at="x")]
    )
    merged = merge_achievement_definitions(legacy)

    assert [item.id for item in merged.achievements] == [item[0] for item in ACHIEVEMENT_DEFINITIONS]
    assert merged.achievement("first_game").is_unlocked
    assert merged.achievement("first_game").unlocked_at == "x"
    assert len(legacy.achievements) == 1


def test_payload_uses_plain_values():
    analytics, _unlocked = add_session(new_user_analytics(), _session(1), now="t")
    payload = analytics.to_payload()
    assert payload["favorite_game_mode"] == "single-note"
    assert payload["games_per_notation"] == {"letter": 1, "solfege": 0}
    assert payload["recent_sessions"][0]["id"] == "session_1"


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0m"), (59, "0m"), (2520, "42m"), (3900, "1h 5m"), (7200, "2h 0m"), (-5, "0m")],
)
def test_format_play_time(seconds, expected):
    assert format_play_time(seconds) == expected
