"""Shared FastAPI dependencies.

Stores are built per request on the request's database session. Process-wide
collaborators (locks, broadcaster, WebSocket connections) live on
``app.state`` and are owned by the application lifespan.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ecobingo.bingo.catalog import CatalogService
from ecobingo.bingo.easy_policy import EasyItemPolicy
from ecobingo.bingo.leaderboard import Leaderboard
from ecobingo.bingo.locks import UserLocks
from ecobingo.bingo.service import GameService
from ecobingo.bingo.stores import CatalogStore, GameStore, ProfileDirectory
from ecobingo.config import get_settings
from ecobingo.database import get_session
from ecobingo.db.stores import SqlCatalogStore, SqlGameStore, SqlProfileDirectory
from ecobingo.events.broadcaster import EventBroadcaster

get_db = get_session


def get_catalog_store(db: AsyncSession = Depends(get_db)) -> CatalogStore:  # noqa: B008
    return SqlCatalogStore(db)


def get_game_store(db: AsyncSession = Depends(get_db)) -> GameStore:  # noqa: B008
    return SqlGameStore(db)


def get_profile_directory(db: AsyncSession = Depends(get_db)) -> ProfileDirectory:  # noqa: B008
    return SqlProfileDirectory(db)


def get_broadcaster(request: Request) -> EventBroadcaster:
    return request.app.state.broadcaster


def get_user_locks(request: Request) -> UserLocks:
    return request.app.state.user_locks


def get_easy_policy() -> EasyItemPolicy:
    return EasyItemPolicy.from_settings(get_settings())


def get_catalog_service(store: CatalogStore = Depends(get_catalog_store)) -> CatalogService:  # noqa: B008
    return CatalogService(store)


def get_game_service(
    catalog: CatalogStore = Depends(get_catalog_store),  # noqa: B008
    games: GameStore = Depends(get_game_store),  # noqa: B008
    directory: ProfileDirectory = Depends(get_profile_directory),  # noqa: B008
    broadcaster: EventBroadcaster = Depends(get_broadcaster),  # noqa: B008
    locks: UserLocks = Depends(get_user_locks),  # noqa: B008
    policy: EasyItemPolicy = Depends(get_easy_policy),  # noqa: B008
) -> GameService:
    return GameService(
        catalog=catalog,
        games=games,
        broadcaster=broadcaster,
        locks=locks,
        policy=policy,
        directory=directory,
    )


def get_leaderboard(
    games: GameStore = Depends(get_game_store),  # noqa: B008
    directory: ProfileDirectory = Depends(get_profile_directory),  # noqa: B008
) -> Leaderboard:
    return Leaderboard(games, directory)
