"""Game recording, incremental rollups and rebuilds."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from beatguess.db.models import Game
from beatguess.stats.aggregator import (
    aggregate_results,
    get_user_achievements,
    rebuild_achievements,
    record_game,
)
from beatguess.stats.history import get_latest_games, get_top_games
from tests.factories import make_user, play

pytestmark = pytest.mark.asyncio


def _snapshot(rows):
    return {
        (r.user_id, r.game_mode, r.variant): (r.total_score, r.games_played, r.highest_streak, r.highest_score)
        for r in rows
    }


async def _seed_mixed(db):
    await make_user(db, 1)
    await make_user(db, 2)
    await play(db, 1, "background", "classic", points=100, streak=3, minutes=1)
    await play(db, 1, "background", "classic", points=50, streak=7, minutes=2)
    await play(db, 1, "audio", "death", points=0, streak=12, minutes=3)
    await play(db, 2, "background", "classic", points=80, streak=2, minutes=4)
    await play(db, 2, "skin", "death", points=0, streak=4, minutes=5)


class TestRecordGame:
    async def test_rollup_tracks_log(self, db_session):
        await _seed_mixed(db_session)

        rows = await get_user_achievements(db_session, 1)
        assert _snapshot(rows) == {
            (1, "audio", "death"): (0, 1, 12, 0),
            (1, "background", "classic"): (150, 2, 7, 100),
        }

    async def test_incremental_matches_replay(self, db_session):
        await _seed_mixed(db_session)
        games = list((await db_session.execute(select(Game))).scalars())
        replayed = {
            (k[0], k[1].value, k[2].value): (t.total_score, t.games_played, t.highest_streak, t.highest_score)
            for k, t in aggregate_results(games).items()
        }

        stored = {}
        for uid in (1, 2):
            stored.update(_snapshot(await get_user_achievements(db_session, uid)))
        assert stored == replayed

    async def test_unknown_user(self, db_session):
        with pytest.raises(LookupError):
            await record_game(db_session, 404, "background", "classic", 10, 1)

    @pytest.mark.parametrize(("points", "streak"), [(-1, 0), (0, -5)])
    async def test_negative_values_rejected(self, db_session, points, streak):
        await make_user(db_session, 1)
        with pytest.raises(ValueError, match="non-negative"):
            await record_game(db_session, 1, "background", "classic", points, streak)

    async def test_unknown_mode_rejected(self, db_session):
        await make_user(db_session, 1)
        with pytest.raises(ValueError, match="Unknown game mode"):
            await record_game(db_session, 1, "lyrics", "classic", 1, 1)

    async def test_ended_at_normalized_to_utc(self, db_session):
        await make_user(db_session, 1)
        plus_five = timezone(timedelta(hours=5))
        await record_game(db_session, 1, "skin", "classic", 5, 1, datetime(2026, 3, 1, 13, 0, tzinfo=plus_five))
        await record_game(db_session, 1, "skin", "classic", 7, 1, datetime(2026, 3, 1, 9, 0))
        await db_session.commit()

        [row] = await get_user_achievements(db_session, 1)
        # 13:00+05:00 is 08:00 UTC; the naive 09:00 is read as UTC and is later
        assert row.last_played.replace(tzinfo=None) == datetime(2026, 3, 1, 9, 0)
        games = await get_latest_games(db_session, 1)
        assert [g.points for g in games] == [7, 5]

    async def test_store_rejects_unknown_mode(self, db_session):
        await make_user(db_session, 1)
        db_session.add(
            Game(
                user_id=1,
                game_mode="lyrics",
                variant="classic",
                points=1,
                streak=0,
                ended_at=datetime.now(timezone.utc),
            )
        )
        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()


class TestRebuild:
    async def test_rebuild_all_is_identical(self, db_session):
        await _seed_mixed(db_session)
        before = {}
        for uid in (1, 2):
            before.update(_snapshot(await get_user_achievements(db_session, uid)))

        rebuilt = await rebuild_achievements(db_session)
        await db_session.commit()

        after = {}
        for uid in (1, 2):
            after.update(_snapshot(await get_user_achievements(db_session, uid)))
        assert rebuilt == 4
        assert after == before

    async def test_rebuild_single_user(self, db_session):
        await _seed_mixed(db_session)

        assert await rebuild_achievements(db_session, 2) == 2
        await db_session.commit()

        assert len(await get_user_achievements(db_session, 1)) == 2
        assert len(await get_user_achievements(db_session, 2)) == 2


class TestHistory:
    async def test_latest_first(self, db_session):
        await _seed_mixed(db_session)
        games = await get_latest_games(db_session, 1, variant="classic")
        assert [g.points for g in games] == [50, 100]

    async def test_top_by_points_then_streak(self, db_session):
        await _seed_mixed(db_session)
        classic = await get_top_games(db_session, 1, "background", "classic")
        assert [g.points for g in classic] == [100, 50]

        death = await get_top_games(db_session, 1, variant="death")
        assert [g.streak for g in death] == [12]

    async def test_limit_checked(self, db_session):
        with pytest.raises(ValueError, match="limit"):
            await get_latest_games(db_session, 1, limit=0)
