"""Tests for database CRUD operations and the SQL-backed store."""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tests.conftest import START
from tradebinder.db.operations import (
    card_to_record,
    delete_card,
    get_card,
    list_cards,
    upsert_card,
)
from tradebinder.db.store import SqlCardStore
from tradebinder.models.db import InventoryCardDB
from tradebinder.models.failure import StorageError
from tradebinder.models.inventory import CatalogSnapshot, FinishEntry, InventoryRecord

SNAPSHOT = CatalogSnapshot.from_payload(
    {"name": "Goldspan Dragon", "finishes": ["nonfoil", "foil"]}
)


def _record(
    *finishes: FinishEntry, set_code: str = "khm", number: str = "123"
) -> InventoryRecord:
    return InventoryRecord(
        set_code=set_code,
        card_number=number,
        finishes=finishes,
        catalog=SNAPSHOT,
        catalog_expires_at=START + timedelta(hours=24),
    )


class TestCardOperations:
    async def test_upsert_creates_card(self, session: AsyncSession) -> None:
        """Can insert a new card with its finishes."""
        card = await upsert_card(session, _record(FinishEntry("nonfoil", 2, "bought")))
        await session.commit()

        assert card.card_id == "khm:123"
        assert card.set_code == "khm"
        assert [(row.finish, row.quantity) for row in card.finishes] == [("nonfoil", 2)]

    async def test_get_card(self, session: AsyncSession) -> None:
        await upsert_card(session, _record(FinishEntry("foil", 1)))
        await session.commit()

        card = await get_card(session, "khm:123")

        assert card is not None
        assert card.catalog == {"name": "Goldspan Dragon", "finishes": ["nonfoil", "foil"]}

    async def test_get_card_not_found(self, session: AsyncSession) -> None:
        """Returns None for a card not in the inventory."""
        assert await get_card(session, "khm:999") is None

    async def test_upsert_updates_in_place(self, session: AsyncSession) -> None:
        await upsert_card(session, _record(FinishEntry("nonfoil", 2)))
        await session.commit()

        card = await upsert_card(
            session, _record(FinishEntry("nonfoil", 5, "more"), FinishEntry("foil", 1))
        )
        await session.commit()

        assert [(row.finish, row.quantity, row.notes) for row in card.finishes] == [
            ("nonfoil", 5, "more"),
            ("foil", 1, ""),
        ]

    async def test_upsert_removes_dropped_finishes(self, session: AsyncSession) -> None:
        await upsert_card(session, _record(FinishEntry("nonfoil", 2), FinishEntry("foil", 1)))
        await session.commit()

        await upsert_card(session, _record(FinishEntry("foil", 3)))
        await session.commit()

        card = await get_card(session, "khm:123")
        assert card is not None
        assert [row.finish for row in card.finishes] == ["foil"]

    async def test_list_cards_ordered_by_key(self, session: AsyncSession) -> None:
        await upsert_card(session, _record(FinishEntry("nonfoil", 1), set_code="neo", number="1"))
        await upsert_card(session, _record(FinishEntry("nonfoil", 1)))
        await session.commit()

        cards = await list_cards(session)

        assert [card.card_id for card in cards] == ["khm:123", "neo:1"]

    async def test_delete_card(self, session: AsyncSession) -> None:
        await upsert_card(session, _record(FinishEntry("nonfoil", 1)))
        await session.commit()

        assert await delete_card(session, "khm:123") is True
        await session.commit()

        assert await get_card(session, "khm:123") is None

    async def test_delete_card_not_found(self, session: AsyncSession) -> None:
        """Returns False when there is nothing to delete."""
        assert await delete_card(session, "khm:999") is False


class TestCardToRecord:
    async def test_round_trip(self, session: AsyncSession) -> None:
        record = _record(FinishEntry("foil", 1, "gift"), FinishEntry("nonfoil", 3))
        await upsert_card(session, record)
        await session.commit()
        session.expunge_all()

        card = await get_card(session, "khm:123")
        assert card is not None
        loaded = card_to_record(card)

        assert loaded.key == "khm:123"
        assert loaded.finishes == record.finishes
        assert loaded.catalog == record.catalog
        assert loaded.catalog is not None
        assert loaded.catalog.allowed_finishes == {"nonfoil", "foil"}

    async def test_expiry_is_timezone_aware(self, session: AsyncSession) -> None:
        await upsert_card(session, _record(FinishEntry("foil", 1)))
        await session.commit()
        session.expunge_all()

        card = await get_card(session, "khm:123")
        assert card is not None
        loaded = card_to_record(card)

        assert loaded.catalog_expires_at == START + timedelta(hours=24)
        assert loaded.catalog_expires_at is not None
        assert loaded.catalog_expires_at.tzinfo is not None

    def test_missing_catalog(self) -> None:
        card = InventoryCardDB(card_id="khm:123", set_code="khm", card_number="123", finishes=[])

        record = card_to_record(card)

        assert record.catalog is None
        assert record.catalog_expires_at is None
        assert record.finishes == ()


class TestSqlCardStore:
    @pytest.fixture
    def store(self, session: AsyncSession) -> SqlCardStore:
        return SqlCardStore(session)

    async def test_put_then_get(self, store: SqlCardStore) -> None:
        record = _record(FinishEntry("nonfoil", 2, "2024-05-01 12:30 bought"))

        await store.put(record)

        assert await store.get("khm:123") == record

    async def test_get_missing(self, store: SqlCardStore) -> None:
        assert await store.get("khm:123") is None

    async def test_put_commits(self, store: SqlCardStore, async_engine) -> None:
        """A put is visible from an independent session."""
        await store.put(_record(FinishEntry("nonfoil", 2)))

        other = async_sessionmaker(async_engine, class_=AsyncSession)
        async with other() as session:
            assert await get_card(session, "khm:123") is not None

    async def test_delete(self, store: SqlCardStore) -> None:
        await store.put(_record(FinishEntry("nonfoil", 2)))

        await store.delete("khm:123")

        assert await store.get("khm:123") is None

    async def test_delete_missing_is_noop(self, store: SqlCardStore) -> None:
        await store.delete("khm:999")

    async def test_scan(self, store: SqlCardStore) -> None:
        await store.put(_record(FinishEntry("nonfoil", 1), set_code="neo", number="1"))
        await store.put(_record(FinishEntry("foil", 1)))

        records = await store.scan()

        assert [record.key for record in records] == ["khm:123", "neo:1"]

    async def test_database_error_becomes_storage_error(
        self, store: SqlCardStore, session: AsyncSession, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def fail(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(session, "flush", fail)

        with pytest.raises(StorageError) as exc_info:
            await store.put(_record(FinishEntry("nonfoil", 1)))

        assert exc_info.value.status_code == 500
        assert "OperationalError" in (exc_info.value.detail or "")
