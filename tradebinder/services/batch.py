"""
Batch processing of card operations.

Operations run one at a time, in the order submitted. Each one succeeds or
fails on its own: a failure is recorded and the next operation still runs,
and nothing already applied is rolled back. There is no atomicity across a
batch.

If the surrounding task is cancelled, the operation in flight is abandoned
and no later operation starts. Operations that already committed stay.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from tradebinder.models.failure import FailureDetail, KnownError
from tradebinder.models.inventory import InventoryRecord, card_key
from tradebinder.services.inventory import InventoryManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchOperation:
    """One requested mutation within a batch."""

    kind: str
    set_code: str
    card_number: str
    finishes: list[dict[str, Any]] = field(default_factory=list)

    @property
    def key(self) -> str:
        return card_key(self.set_code, self.card_number)


@dataclass(frozen=True, slots=True)
class BatchItemResult:
    """Outcome of one batch operation."""

    index: int
    kind: str
    key: str
    status: str
    """created, updated, deleted, or failed"""
    status_code: int
    record: InventoryRecord | None = None
    error: FailureDetail | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class BatchSummary:
    """Counts over a batch's results."""

    total: int
    succeeded: int
    failed: int


def summarize(results: Iterable[BatchItemResult]) -> BatchSummary:
    """Count succeeded and failed operations."""
    results = list(results)
    succeeded = sum(1 for result in results if result.ok)
    return BatchSummary(total=len(results), succeeded=succeeded, failed=len(results) - succeeded)


class BatchProcessor:
    """Applies an ordered list of operations with per-operation isolation."""

    def __init__(self, manager: InventoryManager) -> None:
        self.manager = manager

    async def apply(self, operations: Iterable[BatchOperation]) -> list[BatchItemResult]:
        """
        Run every operation in order and report each outcome.

        Known errors (validation, not found, catalog, storage, unknown kind)
        are captured per operation. Anything else propagates.
        """
        results: list[BatchItemResult] = []

        for index, operation in enumerate(operations):
            try:
                outcome = await self.manager.apply(
                    operation.kind,
                    operation.set_code,
                    operation.card_number,
                    operation.finishes,
                )
            except KnownError as e:
                logger.warning(
                    "Batch operation %d (%s %s) failed: %s",
                    index,
                    operation.kind,
                    operation.key,
                    e.message,
                )
                results.append(
                    BatchItemResult(
                        index=index,
                        kind=operation.kind,
                        key=operation.key,
                        status="failed",
                        status_code=e.status_code,
                        error=e.to_detail(),
                    )
                )
                continue

            results.append(
                BatchItemResult(
                    index=index,
                    kind=operation.kind,
                    key=operation.key,
                    status=outcome.outcome.value,
                    status_code=outcome.status_code,
                    record=outcome.record,
                )
            )

        summary = summarize(results)
        logger.info(
            "Batch finished: %d operations, %d succeeded, %d failed",
            summary.total,
            summary.succeeded,
            summary.failed,
        )
        return results
