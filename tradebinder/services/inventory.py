"""
Inventory record lifecycle.

Each key moves through ABSENT -> EXISTS -> ABSENT. Create merges
additively and always leaves a non-empty record; update merges absolutely
and deletes the record once no finishes remain; delete removes it outright.

Every operation builds its view from the store and the catalog afresh.
Concurrent writers to the same key are last-writer-wins.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from tradebinder.config import MAX_SET_CODE_LENGTH
from tradebinder.db.store import Store
from tradebinder.models.failure import (
    CardNotFoundError,
    CatalogUnavailableError,
    InvalidCardReferenceError,
    UnknownOperationError,
)
from tradebinder.models.inventory import (
    InventoryRecord,
    MergePolicy,
    PendingChange,
    RecordOutcome,
    card_key,
    normalize_set_code,
)
from tradebinder.services.catalog import CatalogCache, Clock, utcnow
from tradebinder.services.finish_ledger import merge, parse_changes, validate

logger = logging.getLogger(__name__)


class OperationKind(str, Enum):
    """Mutations a caller can request for one card."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class RecordResult:
    """Outcome of a mutation. `record` is None once the card is deleted."""

    outcome: RecordOutcome
    record: InventoryRecord | None

    @property
    def status_code(self) -> int:
        return self.outcome.status_code


def check_card_ref(set_code: str, card_number: str) -> None:
    """
    Reject set codes and card numbers that cannot name a printing.

    Raises:
        InvalidCardReferenceError: If either part is empty or the set code is too long
    """
    normalized = normalize_set_code(set_code)
    if not normalized or len(normalized) > MAX_SET_CODE_LENGTH:
        raise InvalidCardReferenceError("set_code", set_code)
    if not card_number or not card_number.strip():
        raise InvalidCardReferenceError("card_number", card_number)


class InventoryManager:
    """Create/read/update/delete of inventory records."""

    def __init__(self, store: Store, cache: CatalogCache, clock: Clock = utcnow) -> None:
        self.store = store
        self.cache = cache
        self.clock = clock

    async def create_or_increment(
        self,
        set_code: str,
        card_number: str,
        changes: Sequence[PendingChange],
    ) -> RecordResult:
        """
        Add copies of a card, creating the record if needed.

        Returns CREATED if the record did not exist, UPDATED otherwise.

        Raises:
            CatalogUnavailableError: If catalog data is needed and unavailable
            ValidationError: If a finish is unknown or an amount is not positive
        """
        key = card_key(set_code, card_number)
        existing = await self.store.get(key)

        fetched = await self.cache.fetch(set_code, card_number, existing)
        base = existing or InventoryRecord(set_code=set_code, card_number=card_number)
        validate(
            changes,
            fetched.snapshot.allowed_finishes,
            allow_zero=False,
            key=key,
            existing=base.finishes,
        )

        finishes = merge(base.finishes, changes, MergePolicy.ADDITIVE, self.clock())
        record = base.with_finishes(finishes).with_catalog(fetched.snapshot, fetched.expires_at)

        await self.store.put(record)

        outcome = RecordOutcome.UPDATED if existing else RecordOutcome.CREATED
        logger.info("Card %s %s (%d copies)", key, outcome.value, record.total_quantity())
        return RecordResult(outcome=outcome, record=record)

    async def update(
        self,
        set_code: str,
        card_number: str,
        changes: Sequence[PendingChange],
    ) -> RecordResult:
        """
        Set owned quantities for finishes of an existing card.

        An amount of 0 removes the finish. If no finishes remain the record
        is deleted and DELETED is returned.

        Raises:
            CardNotFoundError: If the card is not in the inventory
            CatalogUnavailableError: If the snapshot is stale and cannot be refreshed
            ValidationError: If a finish is unknown or an amount is negative
        """
        key = card_key(set_code, card_number)
        existing = await self.store.get(key)
        if existing is None:
            raise CardNotFoundError(key)

        fetched = await self.cache.fetch(set_code, card_number, existing)
        validate(changes, fetched.snapshot.allowed_finishes, allow_zero=True, key=key)

        finishes = merge(existing.finishes, changes, MergePolicy.ABSOLUTE, self.clock())
        if not finishes:
            await self.store.delete(key)
            logger.info("Card %s deleted (no finishes left)", key)
            return RecordResult(outcome=RecordOutcome.DELETED, record=None)

        record = existing.with_finishes(finishes).with_catalog(
            fetched.snapshot, fetched.expires_at
        )
        await self.store.put(record)
        logger.info("Card %s updated (%d copies)", key, record.total_quantity())
        return RecordResult(outcome=RecordOutcome.UPDATED, record=record)

    async def delete(self, set_code: str, card_number: str) -> RecordResult:
        """
        Remove a card from the inventory.

        Raises:
            CardNotFoundError: If the card is not in the inventory
        """
        key = card_key(set_code, card_number)
        if await self.store.get(key) is None:
            raise CardNotFoundError(key)

        await self.store.delete(key)
        logger.info("Card %s deleted", key)
        return RecordResult(outcome=RecordOutcome.DELETED, record=None)

    async def get(self, set_code: str, card_number: str) -> InventoryRecord:
        """
        Read a card, refreshing and saving its catalog snapshot if stale.

        If the refresh fails the stored record is returned as-is.

        Raises:
            CardNotFoundError: If the card is not in the inventory
        """
        key = card_key(set_code, card_number)
        record = await self.store.get(key)
        if record is None:
            raise CardNotFoundError(key)

        if not self.cache.is_expired(record):
            return record

        try:
            fetched = await self.cache.fetch(set_code, card_number, record)
        except CatalogUnavailableError as e:
            logger.warning("Serving %s with stale catalog data: %s", key, e.detail)
            return record

        refreshed = record.with_catalog(fetched.snapshot, fetched.expires_at)
        await self.store.put(refreshed)
        return refreshed

    async def list_all(self) -> dict[str, InventoryRecord]:
        """Every record, keyed by "<set>:<number>". Not paginated."""
        return {record.key: record for record in await self.store.scan()}

    async def apply(
        self,
        kind: str,
        set_code: str,
        card_number: str,
        finishes: Sequence[Mapping[str, Any]] | None = None,
    ) -> RecordResult:
        """
        Run one mutation described by plain request data.

        Shared by the single-card routes and the batch processor.

        Raises:
            UnknownOperationError: If `kind` is not create, update or delete
            KnownError: Whatever the chosen operation raises
        """
        try:
            operation = OperationKind(kind.lower())
        except ValueError as e:
            raise UnknownOperationError(kind) from e

        check_card_ref(set_code, card_number)
        key = card_key(set_code, card_number)

        if operation is OperationKind.DELETE:
            return await self.delete(set_code, card_number)

        changes = parse_changes(finishes or [], key)
        if operation is OperationKind.CREATE:
            return await self.create_or_increment(set_code, card_number, changes)
        return await self.update(set_code, card_number, changes)
