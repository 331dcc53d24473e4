from tradebinder.db.database import get_session, init_db, session_scope
from tradebinder.db.operations import (
    card_to_record,
    delete_card,
    get_card,
    list_cards,
    upsert_card,
)
from tradebinder.db.store import SqlCardStore, Store, get_store

__all__ = [
    "SqlCardStore",
    "Store",
    "card_to_record",
    "delete_card",
    "get_card",
    "get_session",
    "get_store",
    "init_db",
    "list_cards",
    "session_scope",
    "upsert_card",
]
