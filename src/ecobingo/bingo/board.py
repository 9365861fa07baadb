"""Board generation: uniform random draw of 16 distinct catalog items."""

from __future__ import annotations

import random
from collections.abc import Sequence

from ecobingo.bingo.errors import InsufficientCatalog
from ecobingo.bingo.types import BOARD_SIZE, BingoItem, BoardEntry


def generate(active_items: Sequence[BingoItem], rng: random.Random | None = None) -> tuple[BoardEntry, ...]:
    """Draw a fresh board from the active catalog.

    Items are sampled without replacement and laid out on positions 0..15
    in the sampled order. Inactive items in the input are ignored.
    """
    pool = [item for item in active_items if item.is_active]
    if len(pool) < BOARD_SIZE:
        raise InsufficientCatalog(available=len(pool), required=BOARD_SIZE)

    picked = (rng or random).sample(pool, BOARD_SIZE)
    return tuple(
        BoardEntry(item_id=item.id, position=position)
        for position, item in enumerate(picked)
    )


def is_valid_board(board: Sequence[BoardEntry]) -> bool:
    """True if the board covers every position exactly once with distinct items."""
    positions = [entry.position for entry in board]
    item_ids = {entry.item_id for entry in board}
    return sorted(positions) == list(range(BOARD_SIZE)) and len(item_ids) == BOARD_SIZE
