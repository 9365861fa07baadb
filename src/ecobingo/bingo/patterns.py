"""Win-pattern detection for the 4x4 board.

Positions are numbered row-major::

     0  1  2  3
     4  5  6  7
     8  9 10 11
    12 13 14 15
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from datetime import datetime, timezone

from ecobingo.bingo.types import GRID_WIDTH, POINTS_PER_BINGO, BingoPattern, PatternType


def _winning_lines() -> tuple[tuple[PatternType, tuple[int, ...]], ...]:
    lines: list[tuple[PatternType, tuple[int, ...]]] = []
    for row in range(GRID_WIDTH):
        lines.append((PatternType.ROW, tuple(row * GRID_WIDTH + i for i in range(GRID_WIDTH))))
    for col in range(GRID_WIDTH):
        lines.append((PatternType.COLUMN, tuple(col + i * GRID_WIDTH for i in range(GRID_WIDTH))))
    lines.append((PatternType.DIAGONAL, tuple(i * (GRID_WIDTH + 1) for i in range(GRID_WIDTH))))
    lines.append((PatternType.DIAGONAL, tuple((i + 1) * (GRID_WIDTH - 1) for i in range(GRID_WIDTH))))
    return tuple(lines)


# Rows, then columns, then the main diagonal, then the anti-diagonal.
# Event emission order follows this order.
WINNING_LINES = _winning_lines()


def normalize(positions: Iterable[int]) -> frozenset[int]:
    """Order-independent key for a pattern's positions."""
    return frozenset(positions)


def detect(
    completed_positions: Collection[int],
    already_achieved: Collection[frozenset[int]],
    now: datetime | None = None,
) -> list[BingoPattern]:
    """Return patterns that are fully completed and not yet credited."""
    completed = set(completed_positions)
    achieved = {normalize(p) for p in already_achieved}
    achieved_at = now or datetime.now(timezone.utc)

    found: list[BingoPattern] = []
    for pattern_type, positions in WINNING_LINES:
        if not completed.issuperset(positions):
            continue
        if normalize(positions) in achieved:
            continue
        found.append(BingoPattern(
            type=pattern_type,
            positions=positions,
            achieved_at=achieved_at,
            points_awarded=POINTS_PER_BINGO,
        ))
    return found
