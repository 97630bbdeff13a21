# tests/unit/config/test_unit_personalities.py — v1
"""Tests for config/personalities.py."""

from __future__ import annotations

from diarygate.config.personalities import JINNAI, PERSONALITIES, PHILOSOPHER, get_personality


class TestPersonalities:
    def test_registry(self):
        assert set(PERSONALITIES) == {"philosopher", "jinnai"}

    def test_lookup(self):
        assert get_personality("jinnai") is JINNAI
        assert get_personality("philosopher") is PHILOSOPHER

    def test_unknown_falls_back_to_philosopher(self):
        assert get_personality("pirate") is PHILOSOPHER

    def test_presets_have_text(self):
        for preset in PERSONALITIES.values():
            assert preset.system_instruction
            assert preset.chat_goal.startswith("Goal:")
