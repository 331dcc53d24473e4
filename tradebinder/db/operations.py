"""
Database CRUD operations.

Provides async functions for creating, reading, updating, and deleting
inventory cards, plus conversion to the domain model.
"""

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tradebinder.models.db import CardFinishDB, InventoryCardDB
from tradebinder.models.inventory import CatalogSnapshot, FinishEntry, InventoryRecord


async def get_card(session: AsyncSession, card_id: str) -> InventoryCardDB | None:
    """
    Get a card by its "<set>:<number>" key.

    Returns None if the card is not in the inventory.
    """
    result = await session.execute(
        select(InventoryCardDB)
        .where(InventoryCardDB.card_id == card_id)
        .options(selectinload(InventoryCardDB.finishes))
    )
    return result.scalar_one_or_none()


async def list_cards(session: AsyncSession) -> list[InventoryCardDB]:
    """Get every card in the inventory, ordered by key."""
    result = await session.execute(
        select(InventoryCardDB)
        .options(selectinload(InventoryCardDB.finishes))
        .order_by(InventoryCardDB.card_id)
    )
    return list(result.scalars().all())


async def upsert_card(session: AsyncSession, record: InventoryRecord) -> InventoryCardDB:
    """
    Insert or overwrite a card with the record's state.

    Finish rows are matched by name: existing rows are updated in place,
    rows for finishes no longer present are deleted, new finishes are added.
    """
    card = await get_card(session, record.key)
    if card is None:
        card = InventoryCardDB(
            card_id=record.key,
            set_code=record.set_code,
            card_number=record.card_number,
            finishes=[],
        )
        session.add(card)

    card.catalog = record.catalog.data if record.catalog else None
    card.catalog_expires_at = record.catalog_expires_at

    rows = {row.finish: row for row in card.finishes}
    wanted = {entry.finish for entry in record.finishes}

    for row in list(card.finishes):
        if row.finish not in wanted:
            card.finishes.remove(row)

    for position, entry in enumerate(record.finishes):
        row = rows.get(entry.finish)
        if row is None:
            card.finishes.append(
                CardFinishDB(
                    finish=entry.finish,
                    quantity=entry.quantity,
                    notes=entry.notes,
                    position=position,
                )
            )
        else:
            row.quantity = entry.quantity
            row.notes = entry.notes
            row.position = position

    await session.flush()
    return card


async def delete_card(session: AsyncSession, card_id: str) -> bool:
    """
    Delete a card and its finishes.

    Returns True if deleted, False if not found.
    """
    card = await get_card(session, card_id)
    if not card:
        return False

    await session.delete(card)
    await session.flush()
    return True


def _as_utc(moment: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; stored values are always UTC
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=UTC)


def card_to_record(card: InventoryCardDB) -> InventoryRecord:
    """Convert a database card to a domain record."""
    finishes = tuple(
        FinishEntry(finish=row.finish, quantity=row.quantity, notes=row.notes or "")
        for row in sorted(card.finishes, key=lambda row: row.position)
    )
    catalog = CatalogSnapshot.from_payload(card.catalog) if card.catalog is not None else None
    return InventoryRecord(
        set_code=card.set_code,
        card_number=card.card_number,
        finishes=finishes,
        catalog=catalog,
        catalog_expires_at=_as_utc(card.catalog_expires_at),
    )
