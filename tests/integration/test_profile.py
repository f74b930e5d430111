"""Profile assembly."""

from __future__ import annotations

import pytest

from beatguess.stats.profile import get_profile
from tests.factories import make_user, play

pytestmark = pytest.mark.asyncio


async def test_missing_user_returns_none(db_session):
    assert await get_profile(db_session, 404) is None


async def test_profile_carries_identity_achievements_and_ranks(db_session):
    await make_user(db_session, 7, "cookiezi")
    await make_user(db_session, 8, "rafis")
    await play(db_session, 7, "background", "classic", points=40, streak=4)
    await play(db_session, 7, "audio", "death", streak=9)
    await play(db_session, 8, "background", "classic", points=90)

    profile = await get_profile(db_session, 7)

    assert profile["bancho_id"] == 7
    assert profile["username"] == "cookiezi"
    assert [(a.game_mode, a.variant) for a in profile["achievements"]] == [
        ("audio", "death"),
        ("background", "classic"),
    ]
    assert profile["ranks"]["mode_ranks"]["background"]["classic"] == 2
    assert profile["ranks"]["mode_ranks"]["audio"]["death"] == 1
    assert profile["ranks"]["global_rank"] == {"classic": 2, "death": 1}


async def test_unplayed_modes_still_ranked(db_session):
    await make_user(db_session, 1)
    await make_user(db_session, 2)
    await play(db_session, 2, "skin", "classic", points=10)

    profile = await get_profile(db_session, 1)

    assert profile["achievements"] == []
    # nobody else has played skin/death either, so 0 ties at the top
    assert profile["ranks"]["mode_ranks"]["skin"] == {"classic": 2, "death": 1}
