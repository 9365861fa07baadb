"""Bingo API: catalog, player game, leaderboard and admin endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status

from ecobingo.auth.dependencies import get_admin_user, get_verified_user
from ecobingo.bingo.catalog import CatalogService
from ecobingo.bingo.leaderboard import Leaderboard
from ecobingo.bingo.schemas import (
    BingoGameResponse,
    BingoItemCreateRequest,
    BingoItemResponse,
    BingoItemUpdateRequest,
    BingoStatsResponse,
    BoardRefreshResponse,
    CatalogRefreshResponse,
    EasyCompletionResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
)
from ecobingo.bingo.service import GameService
from ecobingo.bingo.types import AuthUser, BingoGame
from ecobingo.config import get_settings
from ecobingo.dependencies import get_catalog_service, get_game_service, get_leaderboard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bingo", tags=["Bingo"])


async def _game_response(service: GameService, game: BingoGame) -> BingoGameResponse:
    return BingoGameResponse.from_game(game, await service.game_items(game))


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------


@router.get("/items", response_model=list[BingoItemResponse])
async def list_items(
    catalog: CatalogService = Depends(get_catalog_service),  # noqa: B008
) -> list[BingoItemResponse]:
    """Active catalog items."""
    return [BingoItemResponse.from_item(i) for i in await catalog.list_active()]


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    limit: int | None = Query(default=None, ge=1, le=100),  # noqa: B008
    board: Leaderboard = Depends(get_leaderboard),  # noqa: B008
) -> LeaderboardResponse:
    settings = get_settings()
    limit = min(limit or settings.leaderboard_default_limit, settings.leaderboard_max_limit)
    entries = await board.top(limit)
    return LeaderboardResponse(entries=[LeaderboardEntryResponse.from_entry(e) for e in entries])


@router.get("/stats", response_model=BingoStatsResponse)
async def stats(
    service: GameService = Depends(get_game_service),  # noqa: B008
) -> BingoStatsResponse:
    return BingoStatsResponse.from_stats(await service.stats())


# ---------------------------------------------------------------------------
# Player
# ---------------------------------------------------------------------------


@router.get("/game", response_model=BingoGameResponse)
async def get_game(
    user: AuthUser = Depends(get_verified_user),  # noqa: B008
    service: GameService = Depends(get_game_service),  # noqa: B008
) -> BingoGameResponse:
    """The caller's game, created on first access."""
    game = await service.get_or_create_game(user.user_id)
    return await _game_response(service, game)


@router.get("/easy-items", response_model=list[BingoItemResponse])
async def easy_items(
    user: AuthUser = Depends(get_verified_user),  # noqa: B008
    service: GameService = Depends(get_game_service),  # noqa: B008
) -> list[BingoItemResponse]:
    items = await service.easy_items(user.user_id, limit=get_settings().easy_items_limit)
    return [BingoItemResponse.from_item(i) for i in items]


@router.post("/items/{item_id}/toggle", response_model=BingoGameResponse)
async def toggle_item(
    item_id: str,
    user: AuthUser = Depends(get_verified_user),  # noqa: B008
    service: GameService = Depends(get_game_service),  # noqa: B008
) -> BingoGameResponse:
    game = await service.toggle_item(user.user_id, item_id)
    return await _game_response(service, game)


@router.post("/easy-items/complete", response_model=EasyCompletionResponse)
async def complete_easy_item(
    user: AuthUser = Depends(get_verified_user),  # noqa: B008
    service: GameService = Depends(get_game_service),  # noqa: B008
) -> EasyCompletionResponse:
    """Complete the easiest item left on the caller's board."""
    result = await service.complete_easy_item(user.user_id)
    return EasyCompletionResponse(
        game=await _game_response(service, result.game),
        completed_item=BingoItemResponse.from_item(result.item),
        message=result.message,
    )


@router.post("/game/reset", response_model=BingoGameResponse)
async def reset_game(
    user: AuthUser = Depends(get_verified_user),  # noqa: B008
    service: GameService = Depends(get_game_service),  # noqa: B008
) -> BingoGameResponse:
    game = await service.reset_game(user.user_id)
    return await _game_response(service, game)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.post("/admin/items", response_model=BingoItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    body: BingoItemCreateRequest,
    admin: AuthUser = Depends(get_admin_user),  # noqa: B008
    catalog: CatalogService = Depends(get_catalog_service),  # noqa: B008
) -> BingoItemResponse:
    item = await catalog.create_item(
        created_by=admin.user_id,
        text=body.text,
        category=body.category,
        points=body.points,
        is_active=body.is_active,
    )
    return BingoItemResponse.from_item(item)


@router.patch("/admin/items/{item_id}", response_model=BingoItemResponse)
async def update_item(
    item_id: str,
    body: BingoItemUpdateRequest,
    _admin: AuthUser = Depends(get_admin_user),  # noqa: B008
    catalog: CatalogService = Depends(get_catalog_service),  # noqa: B008
) -> BingoItemResponse:
    item = await catalog.update_item(
        item_id,
        text=body.text,
        category=body.category,
        points=body.points,
        is_active=body.is_active,
    )
    return BingoItemResponse.from_item(item)


@router.post("/admin/items/refresh", response_model=CatalogRefreshResponse)
async def refresh_catalog(
    admin: AuthUser = Depends(get_admin_user),  # noqa: B008
    catalog: CatalogService = Depends(get_catalog_service),  # noqa: B008
) -> CatalogRefreshResponse:
    """Retire the active catalog and activate a default set."""
    created, retired = await catalog.refresh(created_by=admin.user_id)
    return CatalogRefreshResponse(
        items=[BingoItemResponse.from_item(i) for i in created],
        retired=retired,
    )


@router.post("/admin/boards/refresh", response_model=BoardRefreshResponse)
async def refresh_boards(
    admin: AuthUser = Depends(get_admin_user),  # noqa: B008
    service: GameService = Depends(get_game_service),  # noqa: B008
) -> BoardRefreshResponse:
    count = await service.refresh_all_boards()
    logger.info("Admin %s refreshed %d bingo boards", admin.user_id, count)
    return BoardRefreshResponse(boards_refreshed=count)
