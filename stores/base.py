# stores/base.py
import abc
import os
from typing import Any, Dict, List, Optional, Tuple

COLLECTION = os.getenv("INVENTORY_COLLECTION", "inventory")

Fields = Dict[str, Any]


class DocumentStore(abc.ABC):
    """
    Keyed document collection used as the widget's only persistence.

    Keys are item names; documents are flat ``{"quantity", "price"}`` mappings.
    ``set`` replaces the whole document and creates it when missing.
    Implementations raise ``StoreError`` for any failure other than a missing key.
    """

    collection: str = COLLECTION

    @abc.abstractmethod
    def get(self, key: str) -> Optional[Fields]:
        """Return the document stored under ``key``, or None if there is none."""

    @abc.abstractmethod
    def list_all(self) -> List[Tuple[str, Fields]]:
        """Return every ``(key, document)`` pair in the store's enumeration order."""

    @abc.abstractmethod
    def set(self, key: str, fields: Fields) -> None:
        """Replace (or create) the document under ``key``."""

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Delete the document under ``key``. Deleting a missing key is not an error."""

    def close(self) -> None:
        pass
