# stores/memory.py
from typing import Dict, List, Optional, Tuple

from core.logger import get_logger

from .base import DocumentStore, Fields

logger = get_logger(__name__)


class MemoryStore(DocumentStore):
    """Process-local store. Enumerates documents in insertion order."""

    def __init__(self, initial: Optional[Dict[str, Fields]] = None):
        self._docs: Dict[str, Fields] = {}
        for key, fields in (initial or {}).items():
            self._docs[key] = dict(fields)

    def get(self, key: str) -> Optional[Fields]:
        doc = self._docs.get(key)
        return dict(doc) if doc is not None else None

    def list_all(self) -> List[Tuple[str, Fields]]:
        return [(key, dict(doc)) for key, doc in self._docs.items()]

    def set(self, key: str, fields: Fields) -> None:
        logger.debug("memory set %s=%s", key, fields)
        self._docs[key] = dict(fields)

    def delete(self, key: str) -> None:
        logger.debug("memory delete %s", key)
        self._docs.pop(key, None)
