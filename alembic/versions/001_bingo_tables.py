"""Bingo catalog and game tables.

Creates bingo_items and bingo_games. The users table is owned by the
identity service; it is created here only if missing so a standalone
database (local development, CI) has the profile columns to read.

Revision ID: 001_bingo_tables
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_bingo_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users (identity projection) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(64) PRIMARY KEY,
            first_name VARCHAR(50),
            last_name VARCHAR(50),
            username VARCHAR(30),
            profile_picture TEXT,
            city VARCHAR(100),
            state VARCHAR(100),
            company VARCHAR(100),
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # --- Bingo Items ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS bingo_items (
            id VARCHAR(36) PRIMARY KEY,
            text VARCHAR(200) NOT NULL,
            category VARCHAR(16) NOT NULL DEFAULT 'GENERAL',
            points INTEGER NOT NULL DEFAULT 10 CHECK (points >= 0),
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_by VARCHAR(64) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_bingo_items_category_active
        ON bingo_items(category, is_active)
    """)

    # --- Bingo Games ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS bingo_games (
            user_id VARCHAR(64) PRIMARY KEY,
            board JSONB NOT NULL DEFAULT '[]',
            completed_items JSONB NOT NULL DEFAULT '[]',
            bingos_achieved JSONB NOT NULL DEFAULT '[]',
            total_points INTEGER NOT NULL DEFAULT 0,
            completed_count INTEGER NOT NULL DEFAULT 0,
            bingo_count INTEGER NOT NULL DEFAULT 0,
            is_completed BOOLEAN NOT NULL DEFAULT FALSE,
            game_started_at TIMESTAMPTZ NOT NULL,
            game_completed_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_bingo_games_leaderboard
        ON bingo_games(total_points DESC, bingo_count DESC, completed_count DESC, updated_at ASC)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bingo_games")
    op.execute("DROP TABLE IF EXISTS bingo_items")
