from tradebinder.models.failure import (
    CardNotFoundError,
    CatalogNotFoundError,
    CatalogUnavailableError,
    FailureDetail,
    FailureKind,
    InvalidQuantityError,
    KnownError,
    StorageError,
    UnknownFinishError,
    UnknownOperationError,
    ValidationError,
)
from tradebinder.models.inventory import (
    CatalogSnapshot,
    FinishEntry,
    InventoryRecord,
    MergePolicy,
    PendingChange,
    RecordOutcome,
    card_key,
    normalize_set_code,
)

__all__ = [
    "CardNotFoundError",
    "CatalogNotFoundError",
    "CatalogSnapshot",
    "CatalogUnavailableError",
    "FailureDetail",
    "FailureKind",
    "FinishEntry",
    "InvalidQuantityError",
    "InventoryRecord",
    "KnownError",
    "MergePolicy",
    "PendingChange",
    "RecordOutcome",
    "StorageError",
    "UnknownFinishError",
    "UnknownOperationError",
    "ValidationError",
    "card_key",
    "normalize_set_code",
]
