"""Catalog management: listing, admin edits, seeding and refresh."""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from ecobingo.bingo.defaults import DEFAULT_SETS, PRIMARY_ITEMS, DefaultItem
from ecobingo.bingo.errors import ItemNotFound, ValidationError
from ecobingo.bingo.stores import CatalogStore
from ecobingo.bingo.types import BingoItem, Category

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 200


def validate_item_fields(
    text: str | None = None,
    category: str | Category | None = None,
    points: int | None = None,
) -> None:
    """Reject malformed catalog fields before anything is written."""
    if text is not None:
        if not text.strip():
            raise ValidationError("Bingo item text cannot be empty")
        if len(text) > MAX_TEXT_LENGTH:
            raise ValidationError(f"Bingo item text cannot exceed {MAX_TEXT_LENGTH} characters")
    if category is not None:
        try:
            Category(category)
        except ValueError:
            raise ValidationError("Category must be one of the allowed values") from None
    if points is not None and points < 0:
        raise ValidationError("Points must be at least 0")


def _materialize(defaults: tuple[DefaultItem, ...], created_by: str, now: datetime) -> list[BingoItem]:
    return [
        BingoItem(
            id=str(uuid.uuid4()),
            text=text,
            category=category,
            points=points,
            is_active=True,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        for text, category, points in defaults
    ]


class CatalogService:
    def __init__(self, store: CatalogStore, rng: random.Random | None = None) -> None:
        self.store = store
        self.rng = rng or random.Random()

    async def list_active(self) -> list[BingoItem]:
        """Active items. An empty catalog is seeded with the primary default set."""
        items = await self.store.list_active()
        if not items and await self.store.count() == 0:
            items = await self.seed_defaults()
        return items

    async def seed_defaults(self) -> list[BingoItem]:
        created = await self.store.add_many(_materialize(PRIMARY_ITEMS, "system", datetime.now(timezone.utc)))
        logger.info("Seeded %d default bingo items", len(created))
        return created

    async def create_item(
        self,
        created_by: str,
        text: str,
        category: Category = Category.GENERAL,
        points: int = 10,
        is_active: bool = True,
    ) -> BingoItem:
        validate_item_fields(text=text, category=category, points=points)
        now = datetime.now(timezone.utc)
        item = BingoItem(
            id=str(uuid.uuid4()),
            text=text.strip(),
            category=Category(category),
            points=points,
            is_active=is_active,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        (created,) = await self.store.add_many([item])
        logger.info("Bingo item %s created by %s", created.id, created_by)
        return created

    async def update_item(
        self,
        item_id: str,
        text: str | None = None,
        category: Category | None = None,
        points: int | None = None,
        is_active: bool | None = None,
    ) -> BingoItem:
        validate_item_fields(text=text, category=category, points=points)
        item = await self.store.get(item_id)
        if item is None:
            raise ItemNotFound(item_id)

        changes: dict[str, object] = {"updated_at": datetime.now(timezone.utc)}
        if text is not None:
            changes["text"] = text.strip()
        if category is not None:
            changes["category"] = Category(category)
        if points is not None:
            changes["points"] = points
        if is_active is not None:
            changes["is_active"] = is_active
        return await self.store.update(replace(item, **changes))

    async def refresh(self, created_by: str) -> tuple[list[BingoItem], int]:
        """Retire every active item and activate one default set picked at random.

        Retired items stay in the store so existing boards still resolve them.
        Returns the new items and how many were retired.
        """
        defaults = self.rng.choice(DEFAULT_SETS)
        retired = await self.store.deactivate_all()
        created = await self.store.add_many(_materialize(defaults, created_by, datetime.now(timezone.utc)))
        logger.info("Bingo catalog refreshed: %d retired, %d created", retired, len(created))
        return created, retired
