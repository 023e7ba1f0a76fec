"""In-memory document database.

Suitable for tests and local development. Data is lost on restart.
"""

import copy
import threading
from typing import Any, Dict, List, Mapping, Optional

from .base import Document, DocumentDatabase, join_document


class MemoryDatabase(DocumentDatabase):
    """Dict-backed implementation of DocumentDatabase.

    Collections keep insertion order, like a freshly listed Firestore
    collection ordered by creation.
    """

    def __init__(self, collections: Optional[Mapping[str, List[Document]]] = None):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()
        for name, documents in (collections or {}).items():
            self._data.setdefault(name, {})
            for document in documents:
                fields = {k: v for k, v in document.items() if k != "id"}
                self._data[name][str(document["id"])] = copy.deepcopy(fields)

    def list_documents(self, collection: str) -> List[Document]:
        with self._lock:
            docs = self._data.get(collection, {})
            return [join_document(doc_id, copy.deepcopy(f)) for doc_id, f in docs.items()]

    def list_collection_names(self) -> List[str]:
        with self._lock:
            return [name for name, docs in self._data.items() if docs]

    def write_document(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            self._data.setdefault(collection, {})[doc_id] = copy.deepcopy(dict(fields))

    def get_document(self, collection: str, doc_id: str) -> Optional[Document]:
        """Read a single document (None if missing)"""
        with self._lock:
            fields = self._data.get(collection, {}).get(doc_id)
            if fields is None:
                return None
            return join_document(doc_id, copy.deepcopy(fields))

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
