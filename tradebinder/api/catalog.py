"""
Catalog pass-through endpoint.

Lets clients look up a printing in the catalog (which finishes it exists in,
images, prices) before adding it to the inventory. Nothing is cached or
stored.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from tradebinder.services.catalog import ScryfallCatalog, get_catalog_source
from tradebinder.services.inventory import check_card_ref

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/{set_code}/{card_number}")
async def lookup_catalog_card(
    set_code: str,
    card_number: str,
    source: Annotated[ScryfallCatalog, Depends(get_catalog_source)],
) -> dict[str, Any]:
    """
    Get the raw catalog entry for a printing.

    404 if the catalog has no such card, 503 if the catalog is unreachable.
    """
    check_card_ref(set_code, card_number)
    return await source.raw_lookup(set_code, card_number)
