"""
TradeBinder services.

Business logic for inventory reconciliation and catalog caching.
"""

from tradebinder.services.batch import (
    BatchItemResult,
    BatchOperation,
    BatchProcessor,
    BatchSummary,
    summarize,
)
from tradebinder.services.catalog import (
    CatalogCache,
    CatalogFetch,
    CatalogSource,
    ScryfallCatalog,
    get_catalog_source,
    utcnow,
)
from tradebinder.services.finish_ledger import (
    coerce_amount,
    format_timestamp,
    merge,
    parse_changes,
    validate,
)
from tradebinder.services.inventory import (
    InventoryManager,
    OperationKind,
    RecordResult,
    check_card_ref,
)

__all__ = [
    "BatchItemResult",
    "BatchOperation",
    "BatchProcessor",
    "BatchSummary",
    "CatalogCache",
    "CatalogFetch",
    "CatalogSource",
    "InventoryManager",
    "OperationKind",
    "RecordResult",
    "ScryfallCatalog",
    "check_card_ref",
    "coerce_amount",
    "format_timestamp",
    "get_catalog_source",
    "merge",
    "parse_changes",
    "summarize",
    "utcnow",
    "validate",
]
