from tradebinder.api.cards import router as cards_router
from tradebinder.api.catalog import router as catalog_router
from tradebinder.api.health import router as health_router

__all__ = [
    "cards_router",
    "catalog_router",
    "health_router",
]
