"""Shared FastAPI dependencies wiring the inventory services together."""

from datetime import timedelta
from typing import Annotated

from fastapi import Depends

from tradebinder.config import settings
from tradebinder.db.store import Store, get_store
from tradebinder.services.batch import BatchProcessor
from tradebinder.services.catalog import CatalogCache, CatalogSource, get_catalog_source
from tradebinder.services.inventory import InventoryManager


async def get_catalog_cache(
    source: Annotated[CatalogSource, Depends(get_catalog_source)],
) -> CatalogCache:
    return CatalogCache(source, ttl=timedelta(hours=settings.catalog_ttl_hours))


async def get_inventory_manager(
    store: Annotated[Store, Depends(get_store)],
    cache: Annotated[CatalogCache, Depends(get_catalog_cache)],
) -> InventoryManager:
    return InventoryManager(store, cache)


async def get_batch_processor(
    manager: Annotated[InventoryManager, Depends(get_inventory_manager)],
) -> BatchProcessor:
    return BatchProcessor(manager)
