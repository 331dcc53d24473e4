"""
Inventory domain models.

One InventoryRecord exists per (set code, card number). Each record holds
the finishes owned for that printing, plus the catalog snapshot used to
validate them and the moment that snapshot goes stale.

INVARIANTS:
- Set codes are stored lowercase; the record key is "<set>:<number>"
- Finish names are unique within a record
- Quantities are never negative
- A persisted record always has at least one finish with quantity > 0
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


def normalize_set_code(set_code: str) -> str:
    """Set codes are case-insensitive; store them lowercase."""
    return set_code.strip().lower()


def card_key(set_code: str, card_number: str) -> str:
    """Identity key for a record, e.g. 'khm:123'."""
    return f"{normalize_set_code(set_code)}:{card_number}"


class MergePolicy(str, Enum):
    """How submitted amounts combine with owned quantities."""

    ADDITIVE = "additive"  # create: increment
    ABSOLUTE = "absolute"  # update: replace, 0 removes


class RecordOutcome(str, Enum):
    """What a lifecycle operation did to the record."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"

    @property
    def status_code(self) -> int:
        return _OUTCOME_STATUS[self]


_OUTCOME_STATUS = {
    RecordOutcome.CREATED: 201,
    RecordOutcome.UPDATED: 200,
    RecordOutcome.DELETED: 204,
}


@dataclass(frozen=True, slots=True)
class FinishEntry:
    """
    Owned copies of one finish of a card.

    Attributes:
        finish: Finish name (e.g. "nonfoil", "foil", "etched")
        quantity: Copies owned
        notes: Newline-separated "<timestamp> <text>" lines, oldest first
    """

    finish: str
    quantity: int
    notes: str = ""


@dataclass(frozen=True, slots=True)
class PendingChange:
    """
    A caller-submitted delta for one finish.

    `amount` is an increment on create and an absolute quantity on update.
    `note` is appended to the finish's notes, never replacing them.
    """

    finish: str
    amount: int
    note: str | None = None


@dataclass(frozen=True, slots=True)
class CatalogSnapshot:
    """
    Catalog metadata for one card, as last fetched.

    Only `allowed_finishes` matters to inventory logic; `data` is the
    raw catalog payload, kept for display.
    """

    allowed_finishes: frozenset[str]
    data: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CatalogSnapshot":
        """Build a snapshot from a catalog card payload."""
        finishes = payload.get("finishes")
        if not isinstance(finishes, list):
            finishes = []
        allowed = frozenset(f for f in finishes if isinstance(f, str))
        return cls(allowed_finishes=allowed, data=dict(payload))


@dataclass(frozen=True, slots=True)
class InventoryRecord:
    """The owned finishes of one printing plus its cached catalog data."""

    set_code: str
    card_number: str
    finishes: tuple[FinishEntry, ...] = ()
    catalog: CatalogSnapshot | None = None
    catalog_expires_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "set_code", normalize_set_code(self.set_code))

    @property
    def key(self) -> str:
        return card_key(self.set_code, self.card_number)

    def finish(self, name: str) -> FinishEntry | None:
        """Get the entry for a finish, or None if not owned."""
        for entry in self.finishes:
            if entry.finish == name:
                return entry
        return None

    def total_quantity(self) -> int:
        """Copies owned across all finishes."""
        return sum(entry.quantity for entry in self.finishes)

    def with_finishes(self, finishes: tuple[FinishEntry, ...]) -> "InventoryRecord":
        return replace(self, finishes=finishes)

    def with_catalog(self, snapshot: CatalogSnapshot, expires_at: datetime) -> "InventoryRecord":
        return replace(self, catalog=snapshot, catalog_expires_at=expires_at)
