"""Versioned policy deciding which items count as "easy" actions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ecobingo.bingo.types import BingoItem, Category
from ecobingo.config import Settings


@dataclass(frozen=True)
class EasyItemPolicy:
    """An item is easy if its category qualifies or its text contains a keyword.

    Keyword matching is a case-insensitive substring match.
    """

    version: str
    categories: frozenset[Category]
    keywords: tuple[str, ...]

    @classmethod
    def build(cls, version: str, categories: Iterable[str | Category], keywords: Iterable[str]) -> EasyItemPolicy:
        return cls(
            version=version,
            categories=frozenset(Category(c) for c in categories),
            keywords=tuple(k.lower() for k in keywords if k),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> EasyItemPolicy:
        return cls.build(settings.easy_policy_version, settings.easy_categories, settings.easy_keywords)

    def matches(self, item: BingoItem) -> bool:
        if item.category in self.categories:
            return True
        text = item.text.lower()
        return any(keyword in text for keyword in self.keywords)
