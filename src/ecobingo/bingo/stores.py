"""Storage contracts the bingo services depend on.

Implementations must raise ``TransientStoreError`` for timeouts and lost
connections so callers can decide whether to retry.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from ecobingo.bingo.types import BingoGame, BingoItem, GameStats, Profile


class CatalogStore(Protocol):
    async def list_active(self) -> list[BingoItem]: ...

    async def count(self) -> int: ...

    async def get(self, item_id: str) -> BingoItem | None: ...

    async def get_many(self, item_ids: Iterable[str]) -> dict[str, BingoItem]: ...

    async def add_many(self, items: list[BingoItem]) -> list[BingoItem]: ...

    async def update(self, item: BingoItem) -> BingoItem: ...

    async def deactivate_all(self) -> int: ...


class GameStore(Protocol):
    async def get(self, user_id: str, *, for_update: bool = False) -> BingoGame | None:
        """Load a game. ``for_update`` holds a row lock until save or rollback."""
        ...

    async def save(self, game: BingoGame) -> None:
        """Insert or replace the game and commit."""
        ...

    async def insert_if_absent(self, game: BingoGame) -> BingoGame:
        """Insert ``game`` unless the user already has one; return the stored game."""
        ...

    async def rollback(self) -> None: ...

    async def list_user_ids(self) -> list[str]: ...

    async def top(self, limit: int) -> list[BingoGame]:
        """Highest-ranked games in leaderboard order."""
        ...

    async def stats(self) -> GameStats: ...


class ProfileDirectory(Protocol):
    async def get_profile(self, user_id: str) -> Profile | None: ...

    async def list_user_ids(self) -> list[str]: ...
