"""
Preferences Service

Favorites and hidden items keyed by (source_id, item_type, item_id). Item ids
are the opaque channel/group identifiers produced by the playlist parser.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from iptv_guide.models import Favorite, HiddenItem


logger = logging.getLogger(__name__)

ItemType = Literal["channel", "group"]

# Rows per statement for bulk hide/show
BULK_CHUNK_SIZE = 200


@dataclass(frozen=True, slots=True)
class ItemRef:
    """Reference to a playlist channel or group within a source."""
    source_id: str
    item_type: ItemType
    item_id: str


async def list_favorites(
    db: AsyncSession,
    source_id: str | None = None,
    item_type: ItemType | None = None
) -> list[Favorite]:
    """
    List favorites, optionally filtered by source and item type

    Returns:
        Favorites ordered by creation
    """
    stmt = select(Favorite).order_by(Favorite.id)
    if source_id is not None:
        stmt = stmt.where(Favorite.source_id == source_id)
    if item_type is not None:
        stmt = stmt.where(Favorite.item_type == item_type)

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def add_favorite(db: AsyncSession, item: ItemRef) -> None:
    """Mark an item as favorite; adding an existing favorite is a no-op"""
    stmt = sqlite_insert(Favorite).values(
        source_id=item.source_id,
        item_type=item.item_type,
        item_id=item.item_id,
    ).on_conflict_do_nothing(index_elements=["source_id", "item_type", "item_id"])
    await db.execute(stmt)
    await db.commit()
    logger.info("Added favorite %s/%s/%s", item.source_id, item.item_type, item.item_id)


async def remove_favorite(db: AsyncSession, item: ItemRef) -> None:
    """Remove a favorite; removing an unknown favorite is a no-op"""
    await db.execute(
        delete(Favorite).where(
            Favorite.source_id == item.source_id,
            Favorite.item_type == item.item_type,
            Favorite.item_id == item.item_id,
        )
    )
    await db.commit()
    logger.info("Removed favorite %s/%s/%s", item.source_id, item.item_type, item.item_id)


async def is_favorite(db: AsyncSession, item: ItemRef) -> bool:
    """Check whether an item is marked as favorite"""
    result = await db.execute(
        select(Favorite.id).where(
            Favorite.source_id == item.source_id,
            Favorite.item_type == item.item_type,
            Favorite.item_id == item.item_id,
        )
    )
    return result.first() is not None


async def list_hidden_items(db: AsyncSession, source_id: str | None = None) -> list[HiddenItem]:
    """List hidden items, optionally filtered by source"""
    stmt = select(HiddenItem).order_by(HiddenItem.id)
    if source_id is not None:
        stmt = stmt.where(HiddenItem.source_id == source_id)

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def hide_item(db: AsyncSession, item: ItemRef) -> None:
    """Hide a channel or group"""
    await bulk_hide_items(db, [item])


async def show_item(db: AsyncSession, item: ItemRef) -> None:
    """Unhide a channel or group"""
    await bulk_show_items(db, [item])


async def is_hidden(db: AsyncSession, item: ItemRef) -> bool:
    """Check whether a channel or group is hidden"""
    result = await db.execute(
        select(HiddenItem.id).where(
            HiddenItem.source_id == item.source_id,
            HiddenItem.item_type == item.item_type,
            HiddenItem.item_id == item.item_id,
        )
    )
    return result.first() is not None


async def bulk_hide_items(db: AsyncSession, items: Sequence[ItemRef]) -> int:
    """
    Hide several items in one transaction

    Items are inserted in chunks of BULK_CHUNK_SIZE to keep the number of
    bound parameters per statement within SQLite limits.

    Args:
        db: Database session
        items: Items to hide; already hidden items are ignored

    Returns:
        Number of items submitted
    """
    if not items:
        logger.debug("No items to hide")
        return 0

    payload = [
        {"source_id": item.source_id, "item_type": item.item_type, "item_id": item.item_id}
        for item in items
    ]

    for start_index in range(0, len(payload), BULK_CHUNK_SIZE):
        chunk = payload[start_index:start_index + BULK_CHUNK_SIZE]
        stmt = sqlite_insert(HiddenItem).values(chunk).on_conflict_do_nothing(
            index_elements=["source_id", "item_type", "item_id"]
        )
        await db.execute(stmt)
    await db.commit()

    logger.info("Hid %s item(s)", len(payload))
    return len(payload)


async def bulk_show_items(db: AsyncSession, items: Sequence[ItemRef]) -> int:
    """
    Unhide several items in one transaction

    Deletes run in chunks of BULK_CHUNK_SIZE (SQLite caps expression depth
    at 1000).

    Returns:
        Number of items submitted
    """
    if not items:
        logger.debug("No items to show")
        return 0

    for start_index in range(0, len(items), BULK_CHUNK_SIZE):
        chunk = items[start_index:start_index + BULK_CHUNK_SIZE]
        conditions = [
            and_(
                HiddenItem.source_id == item.source_id,
                HiddenItem.item_type == item.item_type,
                HiddenItem.item_id == item.item_id,
            )
            for item in chunk
        ]
        await db.execute(delete(HiddenItem).where(or_(*conditions)))
    await db.commit()

    logger.info("Unhid %s item(s)", len(items))
    return len(items)
