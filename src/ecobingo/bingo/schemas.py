"""Pydantic schemas for bingo API requests, responses and event payloads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ecobingo.bingo.catalog import MAX_TEXT_LENGTH
from ecobingo.bingo.leaderboard import LeaderboardEntry
from ecobingo.bingo.types import (
    BingoAchieved,
    BingoEvent,
    BingoGame,
    BingoItem,
    BingoPattern,
    Category,
    GameStats,
    GameUpdated,
    ItemCompleted,
    PatternType,
)


# --- Catalog ---


class BingoItemResponse(BaseModel):
    id: str
    text: str
    category: Category
    points: int
    is_active: bool
    created_by: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_item(cls, item: BingoItem) -> BingoItemResponse:
        return cls(
            id=item.id,
            text=item.text,
            category=item.category,
            points=item.points,
            is_active=item.is_active,
            created_by=item.created_by,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class BingoItemCreateRequest(BaseModel):
    text: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)
    category: Category = Category.GENERAL
    points: int = Field(default=10, ge=0)
    is_active: bool = True

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            msg = "Bingo item text cannot be empty"
            raise ValueError(msg)
        return stripped


class BingoItemUpdateRequest(BaseModel):
    text: str | None = Field(default=None, min_length=1, max_length=MAX_TEXT_LENGTH)
    category: Category | None = None
    points: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class CatalogRefreshResponse(BaseModel):
    items: list[BingoItemResponse]
    retired: int


class BoardRefreshResponse(BaseModel):
    boards_refreshed: int


# --- Game ---


class BoardEntryResponse(BaseModel):
    item_id: str
    position: int
    item: BingoItemResponse | None = None


class CompletedItemResponse(BaseModel):
    item_id: str
    position: int
    completed_at: datetime
    item: BingoItemResponse | None = None


class BingoPatternResponse(BaseModel):
    type: PatternType
    positions: list[int]
    achieved_at: datetime
    points_awarded: int

    @classmethod
    def from_pattern(cls, pattern: BingoPattern) -> BingoPatternResponse:
        return cls(
            type=pattern.type,
            positions=list(pattern.positions),
            achieved_at=pattern.achieved_at,
            points_awarded=pattern.points_awarded,
        )


class BingoGameResponse(BaseModel):
    user_id: str
    board: list[BoardEntryResponse]
    completed_items: list[CompletedItemResponse]
    bingos_achieved: list[BingoPatternResponse]
    total_points: int
    is_completed: bool
    game_started_at: datetime
    game_completed_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_game(
        cls,
        game: BingoGame,
        items: Mapping[str, BingoItem] | None = None,
    ) -> BingoGameResponse:
        """Build a response, resolving item ids against ``items`` when given."""
        items = items or {}

        def _item(item_id: str) -> BingoItemResponse | None:
            item = items.get(item_id)
            return BingoItemResponse.from_item(item) if item else None

        return cls(
            user_id=game.user_id,
            board=[
                BoardEntryResponse(item_id=e.item_id, position=e.position, item=_item(e.item_id))
                for e in sorted(game.board, key=lambda e: e.position)
            ],
            completed_items=[
                CompletedItemResponse(
                    item_id=c.item_id,
                    position=c.position,
                    completed_at=c.completed_at,
                    item=_item(c.item_id),
                )
                for c in game.completed_items
            ],
            bingos_achieved=[BingoPatternResponse.from_pattern(b) for b in game.bingos_achieved],
            total_points=game.total_points,
            is_completed=game.is_completed,
            game_started_at=game.game_started_at,
            game_completed_at=game.game_completed_at,
            updated_at=game.updated_at,
        )


class EasyCompletionResponse(BaseModel):
    game: BingoGameResponse
    completed_item: BingoItemResponse
    message: str


# --- Leaderboard & stats ---


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: str
    full_name: str
    profile_picture: str | None = None
    location: str | None = None
    company: str | None = None
    total_points: int
    completed_items_count: int
    bingos_count: int
    is_completed: bool
    game_completed_at: datetime | None = None

    @classmethod
    def from_entry(cls, entry: LeaderboardEntry) -> LeaderboardEntryResponse:
        game = entry.game
        return cls(
            rank=entry.rank,
            user_id=game.user_id,
            full_name=entry.full_name,
            profile_picture=entry.profile_picture,
            location=entry.location,
            company=entry.company,
            total_points=game.total_points,
            completed_items_count=len(game.completed_items),
            bingos_count=len(game.bingos_achieved),
            is_completed=game.is_completed,
            game_completed_at=game.game_completed_at,
        )


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryResponse]


class BingoStatsResponse(BaseModel):
    total_games: int
    completed_games: int
    total_bingos: int
    average_completion_rate: float

    @classmethod
    def from_stats(cls, stats: GameStats) -> BingoStatsResponse:
        return cls(
            total_games=stats.total_games,
            completed_games=stats.completed_games,
            total_bingos=stats.total_bingos,
            average_completion_rate=round(stats.average_completion_rate, 2),
        )


# --- Event payloads ---


def event_payload(event: BingoEvent) -> dict[str, Any]:
    """JSON-ready payload for a domain event. Always carries the acting user_id."""
    if isinstance(event, ItemCompleted):
        return {
            "user_id": event.user_id,
            "item_id": event.item.id,
            "position": event.position,
            "completed_at": event.completed_at.isoformat(),
            "item": BingoItemResponse.from_item(event.item).model_dump(mode="json"),
        }
    if isinstance(event, BingoAchieved):
        return {
            "user_id": event.user_id,
            "bingo": BingoPatternResponse.from_pattern(event.pattern).model_dump(mode="json"),
            "total_points": event.total_points,
            "bingo_count": event.bingo_count,
        }
    if isinstance(event, GameUpdated):
        return {
            "user_id": event.user_id,
            "game": BingoGameResponse.from_game(event.game).model_dump(mode="json"),
        }
    msg = f"Unknown event type: {type(event).__name__}"
    raise TypeError(msg)
