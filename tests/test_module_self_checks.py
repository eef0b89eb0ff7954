"""Runs the in-module self checks each engine module ships with."""

from __future__ import annotations

import importlib

import pytest


@pytest.mark.parametrize(
    "module_name",
    [
        "music_theory",
        "question_generator",
        "answer_validator",
        "scoring",
        "note_scheduler",
        "judge",
        "note_states",
        "analytics",
        "game_engine",
    ],
)
def test_module_self_checks(module_name):
    module = importlib.import_module(module_name)
    module._run_unit_tests()
