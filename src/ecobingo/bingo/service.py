"""Game state manager: atomic per-player operations over the game store.

Every mutation runs under the player's in-process lock and inside a store
transaction that holds the player's row lock, so two requests for the same
user never interleave their read-modify-write. Events are handed to the
broadcaster only after the new state has been committed.
"""

from __future__ import annotations

import random
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from ecobingo.bingo import board, engine
from ecobingo.bingo.easy_policy import EasyItemPolicy
from ecobingo.bingo.errors import (
    GameAlreadyComplete,
    GameNotFound,
    InsufficientCatalog,
    ItemNotFound,
    NoEasyItemAvailable,
)
from ecobingo.bingo.locks import UserLocks
from ecobingo.bingo.stores import CatalogStore, GameStore, ProfileDirectory
from ecobingo.bingo.types import BOARD_SIZE, BingoGame, BingoItem, BingoPattern, GameStats, Transition
from ecobingo.events.broadcaster import EventBroadcaster

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EasyCompletion:
    game: BingoGame
    item: BingoItem
    message: str


class GameService:
    def __init__(
        self,
        catalog: CatalogStore,
        games: GameStore,
        broadcaster: EventBroadcaster,
        locks: UserLocks,
        policy: EasyItemPolicy,
        directory: ProfileDirectory | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.catalog = catalog
        self.games = games
        self.broadcaster = broadcaster
        self.locks = locks
        self.policy = policy
        self.directory = directory
        self.rng = rng or random.Random()
        self.clock = clock

    @asynccontextmanager
    async def _exclusive(self, user_id: str) -> AsyncIterator[None]:
        """Hold the user's lock; release the row lock on failure."""
        async with self.locks.hold(user_id):
            try:
                yield
            except BaseException:
                await self.games.rollback()
                raise

    async def _create(self, user_id: str) -> BingoGame:
        active = await self.catalog.list_active()
        game = engine.new_game(user_id, board.generate(active, self.rng), self.clock())
        stored = await self.games.insert_if_absent(game)
        if stored == game:
            logger.info("bingo_game_created", user_id=user_id)
        return stored

    async def _load_for_update(self, user_id: str) -> BingoGame:
        game = await self.games.get(user_id, for_update=True)
        if game is None:
            await self._create(user_id)
            game = await self.games.get(user_id, for_update=True)
            if game is None:
                raise GameNotFound
        return game

    async def _commit(self, transition: Transition) -> BingoGame:
        await self.games.save(transition.game)
        self.broadcaster.emit(transition.events)
        return transition.game

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_or_create_game(self, user_id: str) -> BingoGame:
        game = await self.games.get(user_id)
        if game is not None:
            return game
        async with self._exclusive(user_id):
            return await self._create(user_id)

    async def game_items(self, game: BingoGame) -> dict[str, BingoItem]:
        """Catalog items referenced by the board, retired ones included."""
        return await self.catalog.get_many(e.item_id for e in game.board)

    async def easy_items(self, user_id: str, limit: int = 3) -> list[BingoItem]:
        """Easiest items the player could still complete.

        Without a game yet, candidates come from the active catalog.
        """
        game = await self.games.get(user_id)
        if game is not None:
            items = await self.game_items(game)
            return engine.easy_candidates(game, items, self.policy)[:limit]
        active = [i for i in await self.catalog.list_active() if self.policy.matches(i)]
        active.sort(key=lambda i: i.points)
        return active[:limit]

    async def stats(self) -> GameStats:
        return await self.games.stats()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def toggle_item(self, user_id: str, item_id: str) -> BingoGame:
        item = await self.catalog.get(item_id)
        if item is None:
            raise ItemNotFound(item_id)

        async with self._exclusive(user_id):
            game = await self._load_for_update(user_id)
            transition = engine.toggle_item(game, item, self.clock())
            updated = await self._commit(transition)

        logger.info(
            "bingo_item_toggled",
            user_id=user_id,
            item_id=item_id,
            completed=updated.is_item_completed(item_id),
            total_points=updated.total_points,
        )
        self._log_new_bingos(game, updated)
        return updated

    async def complete_easy_item(self, user_id: str) -> EasyCompletion:
        async with self._exclusive(user_id):
            game = await self._load_for_update(user_id)
            if game.is_completed:
                raise GameAlreadyComplete
            candidates = engine.easy_candidates(game, await self.game_items(game), self.policy)
            if not candidates:
                raise NoEasyItemAvailable
            item = candidates[0]
            updated = await self._commit(engine.complete_item(game, item, self.clock()))

        logger.info("bingo_easy_item_completed", user_id=user_id, item_id=item.id)
        self._log_new_bingos(game, updated)
        return EasyCompletion(
            game=updated,
            item=item,
            message=f"Completed easy action: {item.text}",
        )

    async def reset_game(self, user_id: str) -> BingoGame:
        async with self._exclusive(user_id):
            game = await self.games.get(user_id, for_update=True)
            if game is None:
                raise GameNotFound
            updated = await self._commit(engine.reset(game, self.clock()))

        logger.info("bingo_game_reset", user_id=user_id)
        return updated

    async def refresh_all_boards(self) -> int:
        """Give every known player a new board and a fresh game state.

        Players come from the profile directory and from existing games, so
        users who never played get a board too. Returns how many boards were
        written.
        """
        active = await self.catalog.list_active()
        if len(active) < BOARD_SIZE:
            raise InsufficientCatalog(len(active), BOARD_SIZE)

        user_ids = set(await self.games.list_user_ids())
        if self.directory is not None:
            user_ids.update(await self.directory.list_user_ids())

        refreshed = 0
        for user_id in sorted(user_ids):
            new_board = board.generate(active, self.rng)
            async with self._exclusive(user_id):
                now = self.clock()
                game = await self.games.get(user_id, for_update=True)
                if game is None:
                    await self.games.save(engine.new_game(user_id, new_board, now))
                else:
                    await self._commit(engine.replace_board(game, new_board, now))
            refreshed += 1

        logger.info("bingo_boards_refreshed", count=refreshed)
        return refreshed

    @staticmethod
    def _log_new_bingos(before: BingoGame, after: BingoGame) -> None:
        for pattern in _new_patterns(before, after.bingos_achieved):
            logger.info(
                "bingo_achieved",
                user_id=after.user_id,
                pattern=pattern.type.value,
                positions=list(pattern.positions),
                total_points=after.total_points,
            )


def _new_patterns(before: BingoGame, patterns: Iterable[BingoPattern]) -> list[BingoPattern]:
    known = before.achieved_keys
    return [p for p in patterns if p.key not in known]
