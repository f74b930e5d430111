"""Leaderboards and global highlights."""

from __future__ import annotations

import pytest

from beatguess.stats.leaderboard import get_highest_stats, get_top_players, iter_top_players
from tests.factories import make_user, play

pytestmark = pytest.mark.asyncio


async def _seed_classic(db):
    totals = {1: 150, 2: 80, 3: 80, 4: 300, 5: 10}
    for uid, points in totals.items():
        await make_user(db, uid)
        await play(db, uid, "background", "classic", points=points, streak=uid)
    return totals


class TestTopPlayers:
    async def test_classic_ordered_by_total_score(self, db_session):
        await _seed_classic(db_session)
        board = await get_top_players(db_session, "background", "classic", 10)

        assert [e["bancho_id"] for e in board] == [4, 1, 2, 3, 5]
        scores = [e["total_score"] for e in board]
        assert scores == sorted(scores, reverse=True)

    async def test_ties_broken_by_user_id_and_share_rank(self, db_session):
        await _seed_classic(db_session)
        board = await get_top_players(db_session, "background", "classic", 10)

        assert [e["rank"] for e in board] == [1, 2, 3, 3, 5]
        assert board[2]["bancho_id"] == 2
        assert board[3]["bancho_id"] == 3

    async def test_limit_caps_entries(self, db_session):
        await _seed_classic(db_session)
        board = await get_top_players(db_session, "background", "classic", 2)
        assert len(board) == 2
        assert board[0]["bancho_id"] == 4

    @pytest.mark.parametrize("limit", [0, 101])
    async def test_limit_out_of_range_rejected(self, db_session, limit):
        with pytest.raises(ValueError, match="limit must be between 1 and 100"):
            await get_top_players(db_session, "background", "classic", limit)

    async def test_unknown_mode_rejected(self, db_session):
        with pytest.raises(ValueError, match="Unknown game mode"):
            await get_top_players(db_session, "lyrics", "classic", 10)

    async def test_death_orders_by_streak_and_zeroes_scores(self, db_session):
        for uid in (1, 2, 3):
            await make_user(db_session, uid)
        await play(db_session, 1, "audio", "death", points=999, streak=4)
        await play(db_session, 2, "audio", "death", points=5, streak=11)
        await play(db_session, 3, "audio", "death", points=0, streak=7)

        board = await get_top_players(db_session, "audio", "death", 10)
        assert [e["bancho_id"] for e in board] == [2, 3, 1]
        assert [e["highest_streak"] for e in board] == [11, 7, 4]
        assert all(e["total_score"] == 0 and e["highest_score"] == 0 for e in board)
        assert all(e["variant"] == "death" for e in board)

    async def test_only_requested_mode_and_variant(self, db_session):
        await make_user(db_session, 1)
        await make_user(db_session, 2)
        await play(db_session, 1, "skin", "classic", points=10)
        await play(db_session, 2, "skin", "death", streak=10)

        board = await get_top_players(db_session, "skin", "classic", 10)
        assert [e["bancho_id"] for e in board] == [1]
        assert await get_top_players(db_session, "audio", "classic", 10) == []

    async def test_stream_matches_collected(self, db_session):
        await _seed_classic(db_session)
        streamed = [e async for e in iter_top_players(db_session, "background", "classic", 3)]
        assert streamed == await get_top_players(db_session, "background", "classic", 3)


class TestHighestStats:
    async def test_classic_and_death(self, db_session):
        for uid in (1, 2):
            await make_user(db_session, uid)
        await play(db_session, 1, "background", "classic", points=120, streak=3)
        await play(db_session, 2, "audio", "classic", points=75, streak=9)
        await play(db_session, 2, "skin", "death", points=0, streak=21)

        classic = await get_highest_stats(db_session, "classic")
        assert classic == {"total_users": 2, "total_games": 2, "highest_points": 120}

        death = await get_highest_stats(db_session, "death")
        assert death == {"total_users": 2, "total_games": 1, "highest_points": 21}

    async def test_empty_log(self, db_session):
        stats = await get_highest_stats(db_session, "death")
        assert stats == {"total_users": 0, "total_games": 0, "highest_points": 0}
