"""
Failure classification for inventory operations.

Every error the core raises on purpose is a KnownError. It knows its
classification, the HTTP status it maps to, and (for validation failures)
which field of the request was at fault, so callers can correct their input.

Error kinds:
- NOT_FOUND: record absent on read/update/delete
- VALIDATION_FAILED: finish or quantity rejected
- INVALID_INPUT: set code or card number that cannot name a printing
- CATALOG_UNAVAILABLE: catalog unreachable, timed out, or returned nothing
- UNKNOWN_OPERATION: batch item with an unrecognized kind
- STORAGE_ERROR: underlying store failure (reported opaquely)

Anything else is an unknown failure and is left to propagate.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    INVALID_INPUT = "invalid_input"
    CATALOG_UNAVAILABLE = "catalog_unavailable"
    UNKNOWN_OPERATION = "unknown_operation"
    STORAGE_ERROR = "storage_error"
    UNKNOWN = "unknown"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="Explanation of what went wrong",
    )
    field: str | None = Field(
        default=None,
        description="Offending request field, e.g. 'finishes[1].amount'",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        field: str | None = None,
        detail: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.field = field
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            field=self.field,
            detail=self.detail,
        )


class CardNotFoundError(KnownError):
    """Raised when no inventory record exists for a key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message="Card not found",
            detail=f"No inventory record for {key}",
            status_code=404,
        )


class ValidationError(KnownError):
    """Raised when submitted finishes or quantities are rejected."""

    def __init__(self, message: str, field: str | None = None, detail: str | None = None):
        super().__init__(
            kind=FailureKind.VALIDATION_FAILED,
            message=message,
            field=field,
            detail=detail,
            status_code=400,
        )


class UnknownFinishError(ValidationError):
    """A submitted finish is not offered for this card."""

    def __init__(self, finish: str | None, key: str, index: int | None = None):
        self.finish = finish
        field = "finishes" if index is None else f"finishes[{index}].finish"
        super().__init__(
            message=f'The finish "{finish}" does not exist for card {key}',
            field=field,
        )


class InvalidQuantityError(ValidationError):
    """A submitted amount is not an acceptable integer."""

    def __init__(self, finish: str | None, amount: object, index: int | None = None):
        self.finish = finish
        self.amount = amount
        field = "finishes" if index is None else f"finishes[{index}].amount"
        super().__init__(
            message=f'Invalid amount for finish "{finish}"',
            field=field,
            detail=f"Got {amount!r}",
        )


class InvalidCardReferenceError(KnownError):
    """The set code or card number in the path cannot name a printing."""

    def __init__(self, field: str, value: str):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=f"Invalid {field}",
            field=field,
            detail=f"Got {value!r}",
            status_code=400,
        )


class CatalogUnavailableError(KnownError):
    """The catalog could not supply metadata for a card."""

    def __init__(
        self,
        set_code: str,
        card_number: str,
        reason: str,
        status_code: int = 503,
    ):
        self.set_code = set_code
        self.card_number = card_number
        super().__init__(
            kind=FailureKind.CATALOG_UNAVAILABLE,
            message=f"Catalog data unavailable for card {set_code}:{card_number}",
            detail=reason,
            status_code=status_code,
        )


class CatalogNotFoundError(CatalogUnavailableError):
    """The catalog answered, but has no such card."""

    def __init__(self, set_code: str, card_number: str):
        super().__init__(
            set_code,
            card_number,
            reason="Catalog has no card with this set code and number",
            status_code=404,
        )


class UnknownOperationError(KnownError):
    """A batch item named an operation kind we do not support."""

    def __init__(self, kind: str):
        self.operation = kind
        super().__init__(
            kind=FailureKind.UNKNOWN_OPERATION,
            message=f'Unknown operation "{kind}"',
            field="kind",
            detail="Expected one of: create, update, delete",
            status_code=400,
        )


class StorageError(KnownError):
    """The underlying store failed. Details stay server-side."""

    def __init__(self, reason: str):
        super().__init__(
            kind=FailureKind.STORAGE_ERROR,
            message="Storage error",
            detail=reason,
            status_code=500,
        )
