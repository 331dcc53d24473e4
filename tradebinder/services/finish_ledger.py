"""
Finish ledger: validation and merging of submitted finish changes.

Two merge policies exist:
- ADDITIVE (create): submitted amounts are added to owned quantities
- ABSOLUTE (update): submitted amounts replace owned quantities, and a
  finish whose quantity ends at 0 is removed

Validation is all-or-nothing. A request is checked completely before
merge() runs, so a rejected request never leaves a partially merged record.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from tradebinder.config import MAX_QUANTITY
from tradebinder.models.failure import (
    InvalidQuantityError,
    UnknownFinishError,
    ValidationError,
)
from tradebinder.models.inventory import FinishEntry, MergePolicy, PendingChange

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


def format_timestamp(moment: datetime) -> str:
    """Minute-granularity timestamp used to prefix note lines."""
    return moment.strftime(TIMESTAMP_FORMAT)


def coerce_amount(value: Any) -> int | None:
    """
    Convert a submitted amount to an int.

    Accepts ints, integral floats and integer strings ("3", " 2 ").
    Returns None for anything else, including booleans.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_changes(items: Sequence[Mapping[str, Any]], key: str) -> list[PendingChange]:
    """
    Turn raw finish items ({"finish", "amount", "notes"}) into PendingChanges.

    Only checks structure: a finish name must be present and the amount must
    be an integer. Range checks belong to validate().

    Raises:
        ValidationError: If no items were submitted
        UnknownFinishError: If an item has no finish name
        InvalidQuantityError: If an amount is not an integer
    """
    if not items:
        raise ValidationError("finishes array required", field="finishes")

    changes: list[PendingChange] = []
    for index, item in enumerate(items):
        finish = item.get("finish")
        if not isinstance(finish, str) or not finish.strip():
            raise UnknownFinishError(finish, key, index)

        amount = coerce_amount(item.get("amount"))
        if amount is None:
            raise InvalidQuantityError(finish, item.get("amount"), index)

        note = item.get("notes")
        changes.append(PendingChange(finish=finish, amount=amount, note=note or None))

    return changes


def validate(
    changes: Sequence[PendingChange],
    allowed_finishes: Iterable[str],
    *,
    allow_zero: bool,
    key: str,
    existing: Iterable[FinishEntry] | None = None,
) -> None:
    """
    Check every change against the catalog's finishes and the amount rules.

    Negative amounts are always rejected. Zero is only accepted when
    `allow_zero` is set (updates, where 0 removes a finish); creation needs
    a positive starting quantity. No amount may exceed MAX_QUANTITY.

    When `existing` is given (even empty) the amounts are increments, and a
    change is also rejected if it would push the running total for its finish
    past MAX_QUANTITY.

    Raises:
        ValidationError: If no changes were submitted
        UnknownFinishError: For the first finish the catalog does not offer
        InvalidQuantityError: For the first amount out of range
    """
    if not changes:
        raise ValidationError("finishes array required", field="finishes")

    allowed = frozenset(allowed_finishes)
    minimum = 0 if allow_zero else 1
    additive = existing is not None
    totals = {entry.finish: entry.quantity for entry in existing or ()}

    for index, change in enumerate(changes):
        if change.finish not in allowed:
            raise UnknownFinishError(change.finish, key, index)
        if change.amount < minimum or change.amount > MAX_QUANTITY:
            raise InvalidQuantityError(change.finish, change.amount, index)
        if additive:
            total = totals.get(change.finish, 0) + change.amount
            if total > MAX_QUANTITY:
                raise InvalidQuantityError(change.finish, change.amount, index)
            totals[change.finish] = total


def _append_note(notes: str, stamp: str, note: str | None) -> str:
    text = " ".join(note.split()) if note else ""
    if not text:
        return notes
    line = f"{stamp} {text}"
    return f"{notes}\n{line}" if notes else line


def merge(
    existing: Iterable[FinishEntry],
    changes: Sequence[PendingChange],
    policy: MergePolicy,
    timestamp: datetime,
) -> tuple[FinishEntry, ...]:
    """
    Merge validated changes into a record's finishes.

    Finishes not named in `changes` are carried over unchanged. Existing
    finishes keep their order; new finishes follow in submission order.
    Notes from several changes to the same finish are appended in
    submission order.

    Args:
        existing: Current finishes of the record (may be empty)
        changes: Validated changes
        policy: ADDITIVE increments, ABSOLUTE replaces and drops zeros
        timestamp: Moment used to prefix appended notes

    Returns:
        The new finishes. May be empty under ABSOLUTE.
    """
    stamp = format_timestamp(timestamp)
    by_finish: dict[str, FinishEntry] = {entry.finish: entry for entry in existing}

    for change in changes:
        current = by_finish.get(change.finish)
        if current is None:
            by_finish[change.finish] = FinishEntry(
                finish=change.finish,
                quantity=change.amount,
                notes=_append_note("", stamp, change.note),
            )
            continue

        if policy is MergePolicy.ADDITIVE:
            quantity = current.quantity + change.amount
        else:
            quantity = change.amount

        by_finish[change.finish] = FinishEntry(
            finish=current.finish,
            quantity=quantity,
            notes=_append_note(current.notes, stamp, change.note),
        )

    merged = tuple(by_finish.values())
    if policy is MergePolicy.ABSOLUTE:
        removed = [entry.finish for entry in merged if entry.quantity == 0]
        if removed:
            logger.debug("Removing finishes set to zero: %s", ", ".join(removed))
        merged = tuple(entry for entry in merged if entry.quantity != 0)

    return merged
