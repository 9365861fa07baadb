"""Shared test fixtures.

Stores are in-memory fakes of the storage contracts so the suite runs
without PostgreSQL or Redis.
"""

from __future__ import annotations

import os
import random
from collections.abc import AsyncGenerator, Callable, Iterable
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import pytest
import pytest_asyncio

os.environ.setdefault("ECOBINGO_EVENT_BACKEND", "memory")
os.environ.setdefault("ECOBINGO_LOG_FORMAT", "console")
os.environ.setdefault("ECOBINGO_JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")

from ecobingo.bingo.easy_policy import EasyItemPolicy  # noqa: E402
from ecobingo.bingo.leaderboard import sort_key  # noqa: E402
from ecobingo.bingo.locks import UserLocks  # noqa: E402
from ecobingo.bingo.service import GameService  # noqa: E402
from ecobingo.bingo.types import (  # noqa: E402
    BOARD_SIZE,
    BingoGame,
    BingoItem,
    BoardEntry,
    Category,
    GameStats,
    Profile,
    Topic,
)
from ecobingo.config import get_settings  # noqa: E402
from ecobingo.events.broadcaster import EventBroadcaster  # noqa: E402
from ecobingo.events.bus import InMemoryEventBus  # noqa: E402

T0 = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------


class FakeCatalogStore:
    def __init__(self, items: Iterable[BingoItem] = ()) -> None:
        self.items: dict[str, BingoItem] = {i.id: i for i in items}

    async def list_active(self) -> list[BingoItem]:
        return [i for i in self.items.values() if i.is_active]

    async def count(self) -> int:
        return len(self.items)

    async def get(self, item_id: str) -> BingoItem | None:
        return self.items.get(item_id)

    async def get_many(self, item_ids: Iterable[str]) -> dict[str, BingoItem]:
        return {i: self.items[i] for i in item_ids if i in self.items}

    async def add_many(self, items: list[BingoItem]) -> list[BingoItem]:
        for item in items:
            self.items[item.id] = item
        return list(items)

    async def update(self, item: BingoItem) -> BingoItem:
        self.items[item.id] = item
        return item

    async def deactivate_all(self) -> int:
        active = [i for i in self.items.values() if i.is_active]
        for item in active:
            self.items[item.id] = replace(item, is_active=False)
        return len(active)


class FakeGameStore:
    def __init__(self) -> None:
        self.games: dict[str, BingoGame] = {}
        self.saves = 0
        self.rollbacks = 0

    async def get(self, user_id: str, *, for_update: bool = False) -> BingoGame | None:
        return self.games.get(user_id)

    async def save(self, game: BingoGame) -> None:
        self.games[game.user_id] = game
        self.saves += 1

    async def insert_if_absent(self, game: BingoGame) -> BingoGame:
        return self.games.setdefault(game.user_id, game)

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def list_user_ids(self) -> list[str]:
        return list(self.games)

    async def top(self, limit: int) -> list[BingoGame]:
        return sorted(self.games.values(), key=sort_key)[:limit]

    async def stats(self) -> GameStats:
        games = list(self.games.values())
        if not games:
            return GameStats()
        return GameStats(
            total_games=len(games),
            completed_games=sum(1 for g in games if g.is_completed),
            total_bingos=sum(len(g.bingos_achieved) for g in games),
            average_completion_rate=sum(len(g.completed_items) / BOARD_SIZE * 100 for g in games) / len(games),
        )


class FakeProfileDirectory:
    def __init__(self, profiles: Iterable[Profile] = (), failing: Iterable[str] = ()) -> None:
        self.profiles = {p.user_id: p for p in profiles}
        self.failing = set(failing)

    async def get_profile(self, user_id: str) -> Profile | None:
        if user_id in self.failing:
            msg = f"profile lookup for {user_id} timed out"
            raise TimeoutError(msg)
        return self.profiles.get(user_id)

    async def list_user_ids(self) -> list[str]:
        return list(self.profiles)


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class EventRecorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    async def __call__(self, topic: str, payload: dict[str, Any]) -> None:
        self.events.append((topic, payload))

    @property
    def topics(self) -> list[str]:
        return [topic for topic, _ in self.events]

    def clear(self) -> None:
        self.events.clear()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_items(count: int = 20, category: Category = Category.GENERAL) -> list[BingoItem]:
    """Catalog items ``item-00``.. with the given category and 10 points each."""
    return [
        BingoItem(
            id=f"item-{n:02d}",
            text=f"Sustainable action {n}",
            category=category,
            points=10,
            created_at=T0,
            updated_at=T0,
        )
        for n in range(count)
    ]


def ordered_board(items: list[BingoItem]) -> tuple[BoardEntry, ...]:
    """Board with items[i] on position i."""
    return tuple(BoardEntry(item_id=item.id, position=pos) for pos, item in enumerate(items[:BOARD_SIZE]))


def make_token(
    sub: str = "user-1",
    *,
    role: str = "USER",
    email_verified: bool = True,
    expires_in: timedelta = timedelta(minutes=15),
    **claims: Any,
) -> str:
    settings = get_settings()
    payload = {
        "sub": sub,
        "role": role,
        "email_verified": email_verified,
        "type": "access",
        "exp": datetime.now(timezone.utc) + expires_in,
        **claims,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def items() -> list[BingoItem]:
    return make_items()


@pytest.fixture
def catalog_store(items: list[BingoItem]) -> FakeCatalogStore:
    return FakeCatalogStore(items)


@pytest.fixture
def game_store() -> FakeGameStore:
    return FakeGameStore()


@pytest.fixture
def directory() -> FakeProfileDirectory:
    return FakeProfileDirectory()


@pytest.fixture
def policy() -> EasyItemPolicy:
    return EasyItemPolicy.build("test", ["DIGITAL", "ENERGY"], ["digital", "online"])


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest_asyncio.fixture
async def broadcaster(recorder: EventRecorder) -> AsyncGenerator[EventBroadcaster, None]:
    """Running broadcaster over an in-memory bus; every topic goes to ``recorder``."""
    bus = InMemoryEventBus()
    for topic in Topic:
        bus.subscribe(topic.value, recorder)
    b = EventBroadcaster(bus, maxsize=1000)
    await b.start()
    yield b
    await b.stop()


@pytest.fixture
def service(
    catalog_store: FakeCatalogStore,
    game_store: FakeGameStore,
    directory: FakeProfileDirectory,
    broadcaster: EventBroadcaster,
    policy: EasyItemPolicy,
    clock: StepClock,
) -> GameService:
    return GameService(
        catalog=catalog_store,
        games=game_store,
        broadcaster=broadcaster,
        locks=UserLocks(),
        policy=policy,
        directory=directory,
        rng=random.Random(1234),
        clock=clock,
    )


@pytest.fixture
def place_game(game_store: FakeGameStore, items: list[BingoItem]) -> Callable[..., BingoGame]:
    """Store a zero-state game for ``user_id`` with items[i] on position i."""

    def _place(user_id: str = "user-1", board_items: list[BingoItem] | None = None) -> BingoGame:
        game = BingoGame(
            user_id=user_id,
            board=ordered_board(board_items or items),
            game_started_at=T0,
            updated_at=T0,
        )
        game_store.games[user_id] = game
        return game

    return _place


@pytest.fixture
def token_factory() -> Callable[..., str]:
    return make_token

