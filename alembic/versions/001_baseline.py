"""Baseline schema: users, games log, achievement rollups and API keys.

``user_achievements`` is derived from ``games`` and can be rebuilt from it
at any time (POST /api/v1/games/achievements/rebuild).

Revision ID: 001_baseline
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            bancho_id BIGINT PRIMARY KEY,
            username VARCHAR(64) NOT NULL,
            avatar_url TEXT NOT NULL DEFAULT '',
            special_badge VARCHAR(64),
            special_badge_color VARCHAR(32),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_users_username ON users(username)")

    # --- Game log (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS games (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(bancho_id) ON DELETE CASCADE,
            game_mode VARCHAR(16) NOT NULL,
            variant VARCHAR(16) NOT NULL,
            points INTEGER NOT NULL DEFAULT 0,
            streak INTEGER NOT NULL DEFAULT 0,
            ended_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_games_points_non_negative CHECK (points >= 0),
            CONSTRAINT ck_games_streak_non_negative CHECK (streak >= 0),
            CONSTRAINT ck_games_game_mode CHECK (game_mode IN ('background', 'audio', 'skin')),
            CONSTRAINT ck_games_variant CHECK (variant IN ('classic', 'death'))
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_games_user_mode_variant
        ON games(user_id, game_mode, variant)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_games_user_ended
        ON games(user_id, ended_at)
    """)

    # --- Achievement rollups ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            user_id BIGINT NOT NULL REFERENCES users(bancho_id) ON DELETE CASCADE,
            game_mode VARCHAR(16) NOT NULL,
            variant VARCHAR(16) NOT NULL,
            total_score BIGINT NOT NULL DEFAULT 0,
            games_played INTEGER NOT NULL DEFAULT 0,
            highest_streak INTEGER NOT NULL DEFAULT 0,
            highest_score INTEGER NOT NULL DEFAULT 0,
            last_played TIMESTAMPTZ NOT NULL,
            PRIMARY KEY (user_id, game_mode, variant)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_achievements_mode_variant_score
        ON user_achievements(game_mode, variant, total_score)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_achievements_mode_variant_streak
        ON user_achievements(game_mode, variant, highest_streak)
    """)

    # --- API keys ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS api_keys (
            id VARCHAR(36) PRIMARY KEY,
            key_prefix VARCHAR(16) NOT NULL,
            key_hash VARCHAR(256) NOT NULL,
            name VARCHAR(128) NOT NULL,
            permissions JSON NOT NULL DEFAULT '["read"]',
            last_used_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            expires_at TIMESTAMPTZ,
            is_revoked BOOLEAN NOT NULL DEFAULT FALSE,
            revoked_at TIMESTAMPTZ
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_api_keys_key_prefix ON api_keys(key_prefix)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS api_keys CASCADE")
    op.execute("DROP TABLE IF EXISTS user_achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS games CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
