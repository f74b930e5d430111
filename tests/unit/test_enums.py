"""Unit tests for boundary validation of modes, variants and limits."""

from __future__ import annotations

import pytest

from beatguess.games.enums import GameMode, GameVariant, check_limit, parse_game_mode, parse_variant


class TestEnumParsing:
    @pytest.mark.parametrize("value", ["background", "audio", "skin"])
    def test_known_modes(self, value):
        assert parse_game_mode(value).value == value

    def test_enum_passthrough(self):
        assert parse_variant(GameVariant.DEATH) is GameVariant.DEATH
        assert parse_game_mode(GameMode.SKIN) is GameMode.SKIN

    @pytest.mark.parametrize("value", ["Background", "beatmap", "", "classic"])
    def test_unknown_modes_rejected(self, value):
        with pytest.raises(ValueError, match="Unknown game mode"):
            parse_game_mode(value)

    @pytest.mark.parametrize("value", ["Classic", "survival", ""])
    def test_unknown_variants_rejected(self, value):
        with pytest.raises(ValueError, match="Unknown game variant"):
            parse_variant(value)


class TestCheckLimit:
    @pytest.mark.parametrize("limit", [1, 10, 100])
    def test_in_range(self, limit):
        assert check_limit(limit) == limit

    @pytest.mark.parametrize("limit", [0, 101, -5])
    def test_out_of_range_rejected_not_clamped(self, limit):
        with pytest.raises(ValueError, match="limit must be between 1 and 100"):
            check_limit(limit)

    def test_non_integer_rejected(self):
        with pytest.raises(ValueError):
            check_limit(True)
