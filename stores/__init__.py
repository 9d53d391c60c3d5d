# stores/__init__.py
import os

from core.errors import InventoryError

from .base import DocumentStore
from .firestore import FirestoreStore
from .memory import MemoryStore
from .sqlite import SqliteStore

STORE = os.getenv("INVENTORY_STORE", "firestore").strip().lower()

STORES = {
    "firestore": FirestoreStore,
    "sqlite": SqliteStore,
    "memory": MemoryStore,
}


def open_store(name: str = STORE, **kwargs) -> DocumentStore:
    factory = STORES.get(name.strip().lower())
    if not factory:
        raise InventoryError(
            f"Unknown store '{name}'; expected one of {', '.join(STORES)}."
        )
    return factory(**kwargs)
