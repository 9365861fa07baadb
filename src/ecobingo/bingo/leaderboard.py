"""Leaderboard ranking and profile enrichment."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from ecobingo.bingo.stores import GameStore, ProfileDirectory
from ecobingo.bingo.types import BingoGame, Profile

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"

_far_future = datetime.max.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    game: BingoGame
    full_name: str = UNKNOWN_USER
    profile_picture: str | None = None
    location: str | None = None
    company: str | None = None


def sort_key(game: BingoGame) -> tuple[int, int, int, datetime]:
    """Points, then bingos, then completions, all descending; earlier update wins ties."""
    return (
        -game.total_points,
        -len(game.bingos_achieved),
        -len(game.completed_items),
        game.updated_at or _far_future,
    )


def rank_games(games: Iterable[BingoGame]) -> list[tuple[int, BingoGame]]:
    """1-based ranks in leaderboard order. Ties never share a rank."""
    return list(enumerate(sorted(games, key=sort_key), start=1))


def format_location(city: str | None, state: str | None) -> str | None:
    parts = [p for p in (city, state) if p]
    return ", ".join(parts) or None


def display_fields(profile: Profile | None) -> dict[str, str | None]:
    if profile is None:
        return {"full_name": UNKNOWN_USER}
    name = " ".join(p for p in (profile.first_name, profile.last_name) if p)
    return {
        "full_name": name or UNKNOWN_USER,
        "profile_picture": profile.profile_picture,
        "location": format_location(profile.city, profile.state),
        "company": profile.company,
    }


class Leaderboard:
    def __init__(self, games: GameStore, directory: ProfileDirectory) -> None:
        self.games = games
        self.directory = directory

    async def top(self, limit: int) -> list[LeaderboardEntry]:
        ranked = rank_games(await self.games.top(limit))
        entries = []
        for rank, game in ranked[:limit]:
            try:
                profile = await self.directory.get_profile(game.user_id)
            except Exception:
                logger.warning("Profile lookup failed for %s", game.user_id, exc_info=True)
                profile = None
            entries.append(LeaderboardEntry(rank=rank, game=game, **display_fields(profile)))
        return entries
