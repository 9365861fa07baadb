"""ORM models for the bingo tables.

The ``users`` table belongs to the identity service; this service only reads
profile columns from it for leaderboard enrichment and board refreshes.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from ecobingo.bingo.catalog import MAX_TEXT_LENGTH
from ecobingo.db.base import Base


# ---------------------------------------------------------------------------
# Identity projection (read-only)
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the identity service's 'users' table."""

    __tablename__ = "users"
    __table_args__ = {"extend_existing": True}  # noqa: RUF012

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    first_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    username: Mapped[str | None] = mapped_column(String(30), nullable=True)
    profile_picture: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    company: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Bingo
# ---------------------------------------------------------------------------


class BingoItemRow(Base):
    """Catalog item. Retired with is_active=false, never deleted."""

    __tablename__ = "bingo_items"
    __table_args__ = (
        Index("idx_bingo_items_category_active", "category", "is_active"),
        {"extend_existing": True},
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    text: Mapped[str] = mapped_column(String(MAX_TEXT_LENGTH), nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False, server_default="GENERAL")
    points: Mapped[int] = mapped_column(Integer, nullable=False, server_default="10")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BingoGameRow(Base):
    """One game per user. Board, completions and patterns are stored as JSONB.

    completed_count and bingo_count are denormalized for leaderboard ordering.
    """

    __tablename__ = "bingo_games"
    __table_args__ = (
        Index("idx_bingo_games_leaderboard", "total_points", "bingo_count", "completed_count", "updated_at"),
        {"extend_existing": True},
    )

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    board: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, server_default="[]")
    completed_items: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, server_default="[]")
    bingos_achieved: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, server_default="[]")
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    completed_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    bingo_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    game_started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    game_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
