"""Game state transitions.

Every function here is pure: it takes a ``BingoGame`` snapshot and returns a
``Transition`` holding the next snapshot and the events to publish, in the
order they must reach subscribers. Persistence and locking live in
``ecobingo.bingo.service``.

Bingos are permanent once achieved. Un-completing an item removes it from
``completed_items`` and drops its 10 points, but patterns already credited
stay in ``bingos_achieved`` together with their 200 points.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime

from ecobingo.bingo import patterns
from ecobingo.bingo.easy_policy import EasyItemPolicy
from ecobingo.bingo.errors import ItemNotOnBoard
from ecobingo.bingo.types import (
    POINTS_PER_ITEM,
    BingoAchieved,
    BingoEvent,
    BingoGame,
    BingoItem,
    BingoPattern,
    BoardEntry,
    CompletedItem,
    GameUpdated,
    ItemCompleted,
    Transition,
)


def compute_total_points(
    completed_items: Iterable[CompletedItem],
    bingos_achieved: Iterable[BingoPattern],
) -> int:
    """10 points per completed item plus each pattern's awarded points."""
    item_points = sum(POINTS_PER_ITEM for _ in completed_items)
    return item_points + sum(b.points_awarded for b in bingos_achieved)


def new_game(user_id: str, board: tuple[BoardEntry, ...], now: datetime) -> BingoGame:
    """Zero-state game on a freshly generated board."""
    return BingoGame(
        user_id=user_id,
        board=board,
        game_started_at=now,
        updated_at=now,
    )


def complete_item(game: BingoGame, item: BingoItem, now: datetime) -> Transition:
    """Mark ``item`` completed, credit any new patterns and emit events.

    The completed position is copied from the board entry and never
    recomputed afterwards.
    """
    entry = game.board_entry(item.id)
    if entry is None:
        raise ItemNotOnBoard(item.id)
    if game.is_item_completed(item.id):
        return Transition(game=game, events=(GameUpdated(user_id=game.user_id, game=game),))

    completed = (*game.completed_items, CompletedItem(item_id=item.id, position=entry.position, completed_at=now))
    new_bingos = patterns.detect(
        {c.position for c in completed},
        game.achieved_keys,
        now=now,
    )
    bingos = (*game.bingos_achieved, *new_bingos)
    is_completed = game.is_completed or bool(bingos)
    completed_at = game.game_completed_at
    if is_completed and completed_at is None:
        completed_at = now

    updated = replace(
        game,
        completed_items=completed,
        bingos_achieved=bingos,
        total_points=compute_total_points(completed, bingos),
        is_completed=is_completed,
        game_completed_at=completed_at,
        updated_at=now,
    )

    events: list[BingoEvent] = [
        ItemCompleted(user_id=game.user_id, item=item, position=entry.position, completed_at=now),
    ]
    for index, pattern in enumerate(new_bingos, start=1):
        events.append(BingoAchieved(
            user_id=game.user_id,
            pattern=pattern,
            total_points=updated.total_points,
            bingo_count=len(game.bingos_achieved) + index,
        ))
    events.append(GameUpdated(user_id=game.user_id, game=updated))
    return Transition(game=updated, events=tuple(events))


def uncomplete_item(game: BingoGame, item_id: str, now: datetime) -> Transition:
    """Remove ``item_id`` from the completed set without retracting bingos."""
    completed = tuple(c for c in game.completed_items if c.item_id != item_id)
    updated = replace(
        game,
        completed_items=completed,
        total_points=compute_total_points(completed, game.bingos_achieved),
        updated_at=now,
    )
    return Transition(game=updated, events=(GameUpdated(user_id=game.user_id, game=updated),))


def toggle_item(game: BingoGame, item: BingoItem, now: datetime) -> Transition:
    if game.board_entry(item.id) is None:
        raise ItemNotOnBoard(item.id)
    if game.is_item_completed(item.id):
        return uncomplete_item(game, item.id, now)
    return complete_item(game, item, now)


def reset(game: BingoGame, now: datetime) -> Transition:
    """Clear all progress, keep the board and restart the clock."""
    updated = replace(
        game,
        completed_items=(),
        bingos_achieved=(),
        total_points=0,
        is_completed=False,
        game_started_at=now,
        game_completed_at=None,
        updated_at=now,
    )
    return Transition(game=updated, events=(GameUpdated(user_id=game.user_id, game=updated),))


def replace_board(game: BingoGame, board: tuple[BoardEntry, ...], now: datetime) -> Transition:
    """Start over on a new board. Completions against the old board are dropped."""
    updated = replace(reset(game, now).game, board=board)
    return Transition(game=updated, events=(GameUpdated(user_id=game.user_id, game=updated),))


def easy_candidates(
    game: BingoGame,
    items_by_id: Mapping[str, BingoItem],
    policy: EasyItemPolicy,
) -> list[BingoItem]:
    """Uncompleted board items the policy accepts, easiest first.

    Ordered by point value, then by board position.
    """
    candidates: list[tuple[int, int, BingoItem]] = []
    for entry in game.board:
        item = items_by_id.get(entry.item_id)
        if item is None or game.is_item_completed(item.id):
            continue
        if policy.matches(item):
            candidates.append((item.points, entry.position, item))
    candidates.sort(key=lambda c: (c[0], c[1]))
    return [item for _, _, item in candidates]
