"""Closed enumerations for game modes and variants.

Every value that reaches a query is parsed through these first; anything
outside the set is rejected rather than defaulted.
"""

from __future__ import annotations

from enum import Enum


class GameMode(str, Enum):
    BACKGROUND = "background"
    AUDIO = "audio"
    SKIN = "skin"


class GameVariant(str, Enum):
    CLASSIC = "classic"
    DEATH = "death"


GAME_MODES: tuple[GameMode, ...] = tuple(GameMode)
GAME_VARIANTS: tuple[GameVariant, ...] = tuple(GameVariant)


def parse_game_mode(value: GameMode | str) -> GameMode:
    """Return the GameMode for ``value``.

    Raises:
        ValueError: If ``value`` is not a known game mode.
    """
    try:
        return GameMode(value)
    except ValueError:
        msg = f"Unknown game mode: {value!r}"
        raise ValueError(msg) from None


def parse_variant(value: GameVariant | str) -> GameVariant:
    """Return the GameVariant for ``value``.

    Raises:
        ValueError: If ``value`` is not a known variant.
    """
    try:
        return GameVariant(value)
    except ValueError:
        msg = f"Unknown game variant: {value!r}"
        raise ValueError(msg) from None


def check_limit(limit: int, *, low: int = 1, high: int = 100) -> int:
    """Reject (never clamp) a page size outside ``[low, high]``."""
    if isinstance(limit, bool) or not isinstance(limit, int) or not low <= limit <= high:
        msg = f"limit must be between {low} and {high}, got {limit!r}"
        raise ValueError(msg)
    return limit
