"""
Card inventory API endpoints.

Reads are public. Mutations need the editor permission (see api.auth).
The single-card routes and the batch route share InventoryManager.apply,
so a batch item behaves exactly like the equivalent single request.
"""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field, model_validator

from tradebinder.api.auth import Principal, require_editor
from tradebinder.api.dependencies import get_batch_processor, get_inventory_manager
from tradebinder.config import MAX_BATCH_OPERATIONS
from tradebinder.models.failure import FailureDetail
from tradebinder.models.inventory import InventoryRecord
from tradebinder.services.batch import BatchItemResult, BatchOperation, BatchProcessor, summarize
from tradebinder.services.inventory import InventoryManager, RecordResult, OperationKind

router = APIRouter(prefix="/cards", tags=["cards"])


class FinishChangeRequest(BaseModel):
    """One finish in a create or update request."""

    finish: str | None = Field(
        default=None,
        description='Finish name, e.g. "nonfoil", "foil", "etched", "glossy"',
    )
    amount: Any = Field(
        default=None,
        description="Copies to add (POST) or the new owned count (PATCH, 0 removes)",
        examples=[2],
    )
    notes: str | None = Field(
        default=None,
        description="Note appended to this finish's history",
    )


class CardChangeRequest(BaseModel):
    """Request body for POST and PATCH on a card."""

    finishes: list[FinishChangeRequest] = Field(
        default_factory=list,
        description="At least one finish change",
        examples=[[{"finish": "nonfoil", "amount": 2, "notes": "from trade"}]],
    )

    def raw_finishes(self) -> list[dict[str, Any]]:
        return [item.model_dump() for item in self.finishes]


class FinishResponse(BaseModel):
    finish: str
    amount: int
    notes: str = ""


class CardResponse(BaseModel):
    """An inventory record."""

    card_id: str
    set_code: str
    card_number: str
    finishes: list[FinishResponse] = Field(default_factory=list)
    catalog: dict[str, Any] | None = None
    catalog_expires_at: datetime | None = None

    @classmethod
    def from_record(cls, record: InventoryRecord) -> "CardResponse":
        return cls(
            card_id=record.key,
            set_code=record.set_code,
            card_number=record.card_number,
            finishes=[
                FinishResponse(finish=entry.finish, amount=entry.quantity, notes=entry.notes)
                for entry in record.finishes
            ],
            catalog=record.catalog.data if record.catalog else None,
            catalog_expires_at=record.catalog_expires_at,
        )


class BatchOperationRequest(BaseModel):
    """
    One operation in a batch.

    Identify the card either with set_code + card_number or with
    key ("khm:123").
    """

    kind: str = Field(..., description="create, update or delete", examples=["update"])
    key: str | None = None
    set_code: str | None = None
    card_number: str | None = None
    finishes: list[FinishChangeRequest] = Field(default_factory=list)

    @model_validator(mode="after")
    def _resolve_card(self) -> "BatchOperationRequest":
        if self.set_code and self.card_number:
            return self
        if self.key and ":" in self.key:
            set_code, card_number = self.key.split(":", 1)
            self.set_code = self.set_code or set_code
            self.card_number = self.card_number or card_number
            return self
        raise ValueError("Each operation needs set_code and card_number, or key")

    def to_operation(self) -> BatchOperation:
        return BatchOperation(
            kind=self.kind,
            set_code=self.set_code or "",
            card_number=self.card_number or "",
            finishes=[item.model_dump() for item in self.finishes],
        )


class BatchRequest(BaseModel):
    operations: list[BatchOperationRequest]


class BatchItemResponse(BaseModel):
    index: int
    kind: str
    key: str
    status: str
    status_code: int
    card: CardResponse | None = None
    error: FailureDetail | None = None

    @classmethod
    def from_result(cls, result: BatchItemResult) -> "BatchItemResponse":
        return cls(
            index=result.index,
            kind=result.kind,
            key=result.key,
            status=result.status,
            status_code=result.status_code,
            card=CardResponse.from_record(result.record) if result.record else None,
            error=result.error,
        )


class BatchResponse(BaseModel):
    results: list[BatchItemResponse]
    total: int
    succeeded: int
    failed: int


def _card_or_no_content(result: RecordResult) -> CardResponse | Response:
    if result.record is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return CardResponse.from_record(result.record)


@router.get("", response_model=dict[str, CardResponse])
async def list_cards(
    manager: Annotated[InventoryManager, Depends(get_inventory_manager)],
) -> dict[str, CardResponse]:
    """
    Get every card in the inventory.

    Keys are "<setcode>:<cardnumber>", e.g. "khm:123".
    """
    records = await manager.list_all()
    return {key: CardResponse.from_record(record) for key, record in records.items()}


@router.post("/batch", response_model=BatchResponse)
async def apply_batch(
    request: BatchRequest,
    processor: Annotated[BatchProcessor, Depends(get_batch_processor)],
    _editor: Annotated[Principal, Depends(require_editor)],
) -> BatchResponse:
    """
    Apply create/update/delete operations in order.

    Each operation succeeds or fails on its own; failures do not stop later
    operations or undo earlier ones. Always 200 unless the batch itself is
    malformed.
    """
    if not request.operations:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="operations array required",
        )
    if len(request.operations) > MAX_BATCH_OPERATIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Batch exceeds maximum of {MAX_BATCH_OPERATIONS} operations",
        )

    results = await processor.apply(op.to_operation() for op in request.operations)
    summary = summarize(results)
    return BatchResponse(
        results=[BatchItemResponse.from_result(result) for result in results],
        total=summary.total,
        succeeded=summary.succeeded,
        failed=summary.failed,
    )


@router.get("/{set_code}/{card_number}", response_model=CardResponse)
async def get_card(
    set_code: str,
    card_number: str,
    manager: Annotated[InventoryManager, Depends(get_inventory_manager)],
) -> CardResponse:
    """
    Get one card.

    Refreshes the cached catalog data first if it has expired.
    """
    record = await manager.get(set_code, card_number)
    return CardResponse.from_record(record)


@router.post(
    "/{set_code}/{card_number}",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": CardResponse, "description": "Card updated"}},
)
async def create_card(
    set_code: str,
    card_number: str,
    request: CardChangeRequest,
    response: Response,
    manager: Annotated[InventoryManager, Depends(get_inventory_manager)],
    _editor: Annotated[Principal, Depends(require_editor)],
) -> CardResponse | Response:
    """
    Add copies of a card, creating it if needed.

    Amounts are added to the owned count of each finish. Every finish must
    exist for the card in the catalog; if any is rejected nothing changes.
    Returns 201 for a new card, 200 when an existing card was incremented.
    """
    result = await manager.apply(
        OperationKind.CREATE.value, set_code, card_number, request.raw_finishes()
    )
    response.status_code = result.status_code
    return _card_or_no_content(result)


@router.patch(
    "/{set_code}/{card_number}",
    response_model=CardResponse,
    responses={204: {"description": "Card deleted (no finishes left)"}},
)
async def update_card(
    set_code: str,
    card_number: str,
    request: CardChangeRequest,
    manager: Annotated[InventoryManager, Depends(get_inventory_manager)],
    _editor: Annotated[Principal, Depends(require_editor)],
) -> CardResponse | Response:
    """
    Set the owned count of finishes of an existing card.

    An amount of 0 removes that finish. If no finishes remain, the card is
    deleted and 204 is returned.
    """
    result = await manager.apply(
        OperationKind.UPDATE.value, set_code, card_number, request.raw_finishes()
    )
    return _card_or_no_content(result)


@router.delete("/{set_code}/{card_number}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(
    set_code: str,
    card_number: str,
    manager: Annotated[InventoryManager, Depends(get_inventory_manager)],
    _editor: Annotated[Principal, Depends(require_editor)],
) -> Response:
    """Remove a card and all its finishes."""
    await manager.apply(OperationKind.DELETE.value, set_code, card_number)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
