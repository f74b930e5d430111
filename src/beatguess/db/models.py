"""ORM models matching the Alembic baseline schema.

``games`` is the append-only event log; ``user_achievements`` is the
materialized rollup derived from it and can always be rebuilt from it.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from beatguess.db.base import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
_BigIntPK = BigInteger().with_variant(Integer, "sqlite")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Player identity, owned by the game-server login flow."""

    __tablename__ = "users"

    bancho_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    username: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    avatar_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    special_badge: Mapped[str | None] = mapped_column(String(64), nullable=True)
    special_badge_color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


# ---------------------------------------------------------------------------
# Game log
# ---------------------------------------------------------------------------


class Game(Base):
    """One finished game. Rows are inserted once and never updated."""

    __tablename__ = "games"
    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_games_points_non_negative"),
        CheckConstraint("streak >= 0", name="ck_games_streak_non_negative"),
        CheckConstraint("game_mode IN ('background', 'audio', 'skin')", name="ck_games_game_mode"),
        CheckConstraint("variant IN ('classic', 'death')", name="ck_games_variant"),
        Index("idx_games_user_mode_variant", "user_id", "game_mode", "variant"),
        Index("idx_games_user_ended", "user_id", "ended_at"),
    )

    id: Mapped[int] = mapped_column(_BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.bancho_id", ondelete="CASCADE"), nullable=False,
    )
    game_mode: Mapped[str] = mapped_column(String(16), nullable=False)
    variant: Mapped[str] = mapped_column(String(16), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ended_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class UserAchievement(Base):
    """Per (user, mode, variant) rollup of the game log."""

    __tablename__ = "user_achievements"
    __table_args__ = (
        Index("idx_user_achievements_mode_variant_score", "game_mode", "variant", "total_score"),
        Index("idx_user_achievements_mode_variant_streak", "game_mode", "variant", "highest_streak"),
    )

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.bancho_id", ondelete="CASCADE"), primary_key=True,
    )
    game_mode: Mapped[str] = mapped_column(String(16), primary_key=True)
    variant: Mapped[str] = mapped_column(String(16), primary_key=True)
    total_score: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    highest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    highest_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_played: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Auth: API Keys
# ---------------------------------------------------------------------------


class ApiKey(Base):
    """API key for programmatic access (search, game ingestion, admin)."""

    __tablename__ = "api_keys"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    key_prefix: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    key_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    permissions: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=lambda: ["read"])
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
