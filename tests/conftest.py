from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tradebinder.models.db import Base
from tradebinder.models.failure import (
    CatalogNotFoundError,
    CatalogUnavailableError,
    StorageError,
)
from tradebinder.models.inventory import CatalogSnapshot, InventoryRecord, card_key
from tradebinder.services.catalog import CatalogCache
from tradebinder.services.inventory import InventoryManager

START = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)

EDITOR_HEADERS = {
    "X-Authenticated-User": "alice",
    "X-Authenticated-Permissions": "CARD_EDITOR",
}


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FakeCatalog:
    """In-memory CatalogSource that records every lookup."""

    def __init__(self, cards: dict[str, list[str]]) -> None:
        self.cards = {key: list(finishes) for key, finishes in cards.items()}
        self.calls: list[str] = []
        self.unavailable = False

    def payload(self, key: str) -> dict[str, Any]:
        set_code, number = key.split(":", 1)
        return {
            "object": "card",
            "name": f"Card {key}",
            "set": set_code,
            "collector_number": number,
            "finishes": list(self.cards[key]),
        }

    async def raw_lookup(self, set_code: str, card_number: str) -> dict[str, Any]:
        key = card_key(set_code, card_number)
        self.calls.append(key)
        if self.unavailable:
            raise CatalogUnavailableError(set_code, card_number, "Catalog is down")
        if key not in self.cards:
            raise CatalogNotFoundError(set_code, card_number)
        return self.payload(key)

    async def lookup(self, set_code: str, card_number: str) -> CatalogSnapshot:
        return CatalogSnapshot.from_payload(await self.raw_lookup(set_code, card_number))

    async def aclose(self) -> None:
        pass


class InMemoryStore:
    """Store backed by a dict. Keys in `broken_keys` fail on write."""

    def __init__(self) -> None:
        self.records: dict[str, InventoryRecord] = {}
        self.puts: list[str] = []
        self.deletes: list[str] = []
        self.broken_keys: set[str] = set()

    async def get(self, key: str) -> InventoryRecord | None:
        return self.records.get(key)

    async def put(self, record: InventoryRecord) -> None:
        if record.key in self.broken_keys:
            raise StorageError(f"put failed for {record.key}")
        self.puts.append(record.key)
        self.records[record.key] = record

    async def delete(self, key: str) -> None:
        if key in self.broken_keys:
            raise StorageError(f"delete failed for {key}")
        self.deletes.append(key)
        self.records.pop(key, None)

    async def scan(self) -> list[InventoryRecord]:
        return [self.records[key] for key in sorted(self.records)]


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(
        {
            "khm:123": ["nonfoil", "foil"],
            "khm:124": ["nonfoil", "foil", "etched"],
            "neo:1": ["nonfoil"],
        }
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def cache(catalog: FakeCatalog, clock: FrozenClock) -> CatalogCache:
    return CatalogCache(catalog, ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def manager(store: InMemoryStore, cache: CatalogCache, clock: FrozenClock) -> InventoryManager:
    return InventoryManager(store, cache, clock=clock)


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session
