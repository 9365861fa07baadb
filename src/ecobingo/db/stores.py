"""PostgreSQL-backed implementations of the bingo store contracts."""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone
from typing import Any, ParamSpec, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from ecobingo.bingo.board import is_valid_board
from ecobingo.bingo.errors import TransientStoreError
from ecobingo.bingo.types import (
    BOARD_SIZE,
    BingoGame,
    BingoItem,
    BingoPattern,
    BoardEntry,
    Category,
    CompletedItem,
    GameStats,
    PatternType,
    Profile,
)
from ecobingo.db.models import BingoGameRow, BingoItemRow, User

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def translate_store_errors(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Re-raise connection and timeout failures as TransientStoreError."""

    @functools.wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await fn(*args, **kwargs)
        except (OperationalError, InterfaceError, PoolTimeoutError, TimeoutError) as exc:
            logger.warning("Store call %s failed: %s", fn.__qualname__, exc)
            raise TransientStoreError from exc

    return wrapper


# ---------------------------------------------------------------------------
# Row <-> snapshot conversion
# ---------------------------------------------------------------------------


def item_from_row(row: BingoItemRow) -> BingoItem:
    return BingoItem(
        id=row.id,
        text=row.text,
        category=Category(row.category),
        points=row.points,
        is_active=row.is_active,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def game_from_row(row: BingoGameRow) -> BingoGame:
    """Rebuild the snapshot. A stored board that is not a full 4x4 grid is rejected."""
    board = tuple(BoardEntry(item_id=e["item_id"], position=int(e["position"])) for e in row.board)
    if not is_valid_board(board):
        msg = f"Stored bingo board for user {row.user_id} is malformed"
        raise ValueError(msg)
    return BingoGame(
        user_id=row.user_id,
        board=board,
        completed_items=tuple(
            CompletedItem(
                item_id=c["item_id"],
                position=int(c["position"]),
                completed_at=datetime.fromisoformat(c["completed_at"]),
            )
            for c in row.completed_items
        ),
        bingos_achieved=tuple(
            BingoPattern(
                type=PatternType(b["type"]),
                positions=tuple(int(p) for p in b["positions"]),
                achieved_at=datetime.fromisoformat(b["achieved_at"]),
                points_awarded=int(b["points_awarded"]),
            )
            for b in row.bingos_achieved
        ),
        total_points=row.total_points,
        is_completed=row.is_completed,
        game_started_at=row.game_started_at,
        game_completed_at=row.game_completed_at,
        updated_at=row.updated_at,
    )


def game_to_values(game: BingoGame) -> dict[str, Any]:
    return {
        "user_id": game.user_id,
        "board": [{"item_id": e.item_id, "position": e.position} for e in game.board],
        "completed_items": [
            {"item_id": c.item_id, "position": c.position, "completed_at": c.completed_at.isoformat()}
            for c in game.completed_items
        ],
        "bingos_achieved": [
            {
                "type": b.type.value,
                "positions": list(b.positions),
                "achieved_at": b.achieved_at.isoformat(),
                "points_awarded": b.points_awarded,
            }
            for b in game.bingos_achieved
        ],
        "total_points": game.total_points,
        "completed_count": len(game.completed_items),
        "bingo_count": len(game.bingos_achieved),
        "is_completed": game.is_completed,
        "game_started_at": game.game_started_at,
        "game_completed_at": game.game_completed_at,
        "updated_at": game.updated_at or datetime.now(timezone.utc),
    }


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class SqlCatalogStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @translate_store_errors
    async def list_active(self) -> list[BingoItem]:
        result = await self.db.execute(
            select(BingoItemRow)
            .where(BingoItemRow.is_active.is_(True))
            .order_by(BingoItemRow.created_at, BingoItemRow.id)
        )
        return [item_from_row(r) for r in result.scalars()]

    @translate_store_errors
    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(BingoItemRow))
        return result.scalar_one() or 0

    @translate_store_errors
    async def get(self, item_id: str) -> BingoItem | None:
        row = await self.db.get(BingoItemRow, item_id)
        return item_from_row(row) if row else None

    @translate_store_errors
    async def get_many(self, item_ids: Iterable[str]) -> dict[str, BingoItem]:
        ids = list(set(item_ids))
        if not ids:
            return {}
        result = await self.db.execute(select(BingoItemRow).where(BingoItemRow.id.in_(ids)))
        return {r.id: item_from_row(r) for r in result.scalars()}

    @translate_store_errors
    async def add_many(self, items: list[BingoItem]) -> list[BingoItem]:
        now = datetime.now(timezone.utc)
        rows = [
            BingoItemRow(
                id=item.id,
                text=item.text,
                category=item.category.value,
                points=item.points,
                is_active=item.is_active,
                created_by=item.created_by,
                created_at=item.created_at or now,
                updated_at=item.updated_at or now,
            )
            for item in items
        ]
        self.db.add_all(rows)
        await self.db.commit()
        return [item_from_row(r) for r in rows]

    @translate_store_errors
    async def update(self, item: BingoItem) -> BingoItem:
        row = await self.db.get(BingoItemRow, item.id)
        if row is None:
            msg = f"Bingo item {item.id} vanished during update"
            raise LookupError(msg)
        row.text = item.text
        row.category = item.category.value
        row.points = item.points
        row.is_active = item.is_active
        row.updated_at = item.updated_at or datetime.now(timezone.utc)
        await self.db.commit()
        return item_from_row(row)

    @translate_store_errors
    async def deactivate_all(self) -> int:
        result = await self.db.execute(
            update(BingoItemRow)
            .where(BingoItemRow.is_active.is_(True))
            .values(is_active=False, updated_at=datetime.now(timezone.utc))
        )
        await self.db.flush()
        return result.rowcount or 0


class SqlGameStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @translate_store_errors
    async def get(self, user_id: str, *, for_update: bool = False) -> BingoGame | None:
        stmt = select(BingoGameRow).where(BingoGameRow.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        row = result.scalar_one_or_none()
        return game_from_row(row) if row else None

    @translate_store_errors
    async def save(self, game: BingoGame) -> None:
        values = game_to_values(game)
        stmt = insert(BingoGameRow).values(**values).on_conflict_do_update(
            index_elements=[BingoGameRow.user_id],
            set_={k: v for k, v in values.items() if k != "user_id"},
        )
        await self.db.execute(stmt)
        await self.db.commit()

    @translate_store_errors
    async def insert_if_absent(self, game: BingoGame) -> BingoGame:
        stmt = insert(BingoGameRow).values(**game_to_values(game)).on_conflict_do_nothing(
            index_elements=[BingoGameRow.user_id],
        )
        await self.db.execute(stmt)
        await self.db.commit()
        stored = await self.get(game.user_id)
        return stored or game

    async def rollback(self) -> None:
        await self.db.rollback()

    @translate_store_errors
    async def list_user_ids(self) -> list[str]:
        result = await self.db.execute(select(BingoGameRow.user_id))
        return list(result.scalars())

    @translate_store_errors
    async def top(self, limit: int) -> list[BingoGame]:
        result = await self.db.execute(
            select(BingoGameRow)
            .order_by(
                BingoGameRow.total_points.desc(),
                BingoGameRow.bingo_count.desc(),
                BingoGameRow.completed_count.desc(),
                BingoGameRow.updated_at.asc(),
            )
            .limit(limit)
        )
        return [game_from_row(r) for r in result.scalars()]

    @translate_store_errors
    async def stats(self) -> GameStats:
        result = await self.db.execute(
            select(
                func.count().label("total"),
                func.count().filter(BingoGameRow.is_completed.is_(True)).label("completed"),
                func.coalesce(func.sum(BingoGameRow.bingo_count), 0).label("bingos"),
                func.avg(BingoGameRow.completed_count * 100.0 / BOARD_SIZE).label("avg_rate"),
            )
        )
        row = result.one()
        return GameStats(
            total_games=int(row.total or 0),
            completed_games=int(row.completed or 0),
            total_bingos=int(row.bingos or 0),
            average_completion_rate=float(row.avg_rate or 0.0),
        )


class SqlProfileDirectory:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @translate_store_errors
    async def get_profile(self, user_id: str) -> Profile | None:
        user = await self.db.get(User, user_id)
        if user is None:
            return None
        return Profile(
            user_id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_picture=user.profile_picture,
            city=user.city,
            state=user.state,
            company=user.company,
        )

    @translate_store_errors
    async def list_user_ids(self) -> list[str]:
        result = await self.db.execute(select(User.id))
        return list(result.scalars())
