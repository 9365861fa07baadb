"""Immutable domain snapshots for the bingo engine.

Services never mutate these in place. Every transition builds a new
``BingoGame`` with ``dataclasses.replace`` so that a snapshot loaded from the
store can be compared against the one written back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

BOARD_SIZE = 16
GRID_WIDTH = 4
POINTS_PER_ITEM = 10
POINTS_PER_BINGO = 200


class Category(str, Enum):
    TRANSPORT = "TRANSPORT"
    ENERGY = "ENERGY"
    WASTE = "WASTE"
    WATER = "WATER"
    FOOD = "FOOD"
    COMMUNITY = "COMMUNITY"
    DIGITAL = "DIGITAL"
    GENERAL = "GENERAL"


class PatternType(str, Enum):
    ROW = "ROW"
    COLUMN = "COLUMN"
    DIAGONAL = "DIAGONAL"


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class BingoItem:
    """A catalog entry that can be placed on a board."""

    id: str
    text: str
    category: Category = Category.GENERAL
    points: int = 10
    is_active: bool = True
    created_by: str = "system"
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class BoardEntry:
    item_id: str
    position: int


@dataclass(frozen=True)
class CompletedItem:
    item_id: str
    position: int
    completed_at: datetime


@dataclass(frozen=True)
class BingoPattern:
    type: PatternType
    positions: tuple[int, ...]
    achieved_at: datetime
    points_awarded: int = POINTS_PER_BINGO

    @property
    def key(self) -> frozenset[int]:
        """Order-independent identity used to prevent duplicate credit."""
        return frozenset(self.positions)


@dataclass(frozen=True)
class BingoGame:
    """One player's game record."""

    user_id: str
    board: tuple[BoardEntry, ...]
    game_started_at: datetime
    completed_items: tuple[CompletedItem, ...] = ()
    bingos_achieved: tuple[BingoPattern, ...] = ()
    total_points: int = 0
    is_completed: bool = False
    game_completed_at: datetime | None = None
    updated_at: datetime | None = None

    def board_entry(self, item_id: str) -> BoardEntry | None:
        for entry in self.board:
            if entry.item_id == item_id:
                return entry
        return None

    def is_item_completed(self, item_id: str) -> bool:
        return any(c.item_id == item_id for c in self.completed_items)

    @property
    def completed_positions(self) -> frozenset[int]:
        return frozenset(c.position for c in self.completed_items)

    @property
    def achieved_keys(self) -> frozenset[frozenset[int]]:
        return frozenset(b.key for b in self.bingos_achieved)


@dataclass(frozen=True)
class AuthUser:
    """Authenticated caller as asserted by the identity service."""

    user_id: str
    role: Role = Role.USER
    is_email_verified: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class Profile:
    """Display fields pulled from the identity service's user records."""

    user_id: str
    first_name: str | None = None
    last_name: str | None = None
    profile_picture: str | None = None
    city: str | None = None
    state: str | None = None
    company: str | None = None


@dataclass(frozen=True)
class GameStats:
    total_games: int = 0
    completed_games: int = 0
    total_bingos: int = 0
    average_completion_rate: float = 0.0


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class Topic(str, Enum):
    ITEM_COMPLETED = "bingo_item_completed"
    BINGO_ACHIEVED = "bingo_achieved"
    GAME_UPDATED = "bingo_game_updated"


@dataclass(frozen=True)
class ItemCompleted:
    user_id: str
    item: BingoItem
    position: int
    completed_at: datetime
    topic: Topic = field(default=Topic.ITEM_COMPLETED, init=False)


@dataclass(frozen=True)
class BingoAchieved:
    user_id: str
    pattern: BingoPattern
    total_points: int
    bingo_count: int
    topic: Topic = field(default=Topic.BINGO_ACHIEVED, init=False)


@dataclass(frozen=True)
class GameUpdated:
    user_id: str
    game: BingoGame
    topic: Topic = field(default=Topic.GAME_UPDATED, init=False)


BingoEvent = ItemCompleted | BingoAchieved | GameUpdated


@dataclass(frozen=True)
class Transition:
    """Result of applying one operation to a game snapshot."""

    game: BingoGame
    events: tuple[BingoEvent, ...] = ()
