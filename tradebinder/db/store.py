"""
Inventory store.

The lifecycle manager only talks to storage through the Store protocol:
single-key get/put/delete and a full scan. No cross-key transactions are
assumed; every put and delete is committed on its own, so one failed write
never undoes another.
"""

import logging
from typing import Annotated, Protocol

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tradebinder.db.database import get_session
from tradebinder.db.operations import (
    card_to_record,
    delete_card,
    get_card,
    list_cards,
    upsert_card,
)
from tradebinder.models.failure import StorageError
from tradebinder.models.inventory import InventoryRecord

logger = logging.getLogger(__name__)


class Store(Protocol):
    """Durable key-value storage of inventory records."""

    async def get(self, key: str) -> InventoryRecord | None: ...

    async def put(self, record: InventoryRecord) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def scan(self) -> list[InventoryRecord]: ...


class SqlCardStore:
    """Store backed by the SQLAlchemy ORM models."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, key: str) -> InventoryRecord | None:
        try:
            card = await get_card(self.session, key)
        except SQLAlchemyError as e:
            raise await self._failed("get", key, e) from e
        return card_to_record(card) if card else None

    async def put(self, record: InventoryRecord) -> None:
        try:
            await upsert_card(self.session, record)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._failed("put", record.key, e) from e

    async def delete(self, key: str) -> None:
        try:
            await delete_card(self.session, key)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._failed("delete", key, e) from e

    async def scan(self) -> list[InventoryRecord]:
        try:
            cards = await list_cards(self.session)
        except SQLAlchemyError as e:
            raise await self._failed("scan", "*", e) from e
        return [card_to_record(card) for card in cards]

    async def _failed(self, action: str, key: str, error: SQLAlchemyError) -> StorageError:
        logger.error("Store %s failed for %s: %s", action, key, error)
        await self.session.rollback()
        return StorageError(f"{action} failed for {key}: {type(error).__name__}")


async def get_store(session: Annotated[AsyncSession, Depends(get_session)]) -> Store:
    """Dependency that provides a Store bound to the request's session."""
    return SqlCardStore(session)
