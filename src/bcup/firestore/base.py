"""Document database capability

Every backend (native SDK, REST, in-memory) exposes the same three
operations. Documents are plain dicts carrying their id under ``"id"``;
the id is never stored as a field.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple

Document = Dict[str, Any]


def split_document(document: Mapping[str, Any]) -> Optional[Tuple[str, Dict[str, Any]]]:
    """Separate a document's id from its stored fields.

    Returns:
        (id, fields), or None when the document has no usable id
    """
    doc_id = document.get("id")
    if doc_id is None or doc_id == "":
        return None
    fields = {k: v for k, v in document.items() if k != "id"}
    return str(doc_id), fields


def join_document(doc_id: str, fields: Mapping[str, Any]) -> Document:
    """Reattach an id to stored fields."""
    return {"id": doc_id, **{k: v for k, v in fields.items() if k != "id"}}


class DocumentDatabase(ABC):
    """Abstract base class for document database backends"""

    @abstractmethod
    def list_documents(self, collection: str) -> List[Document]:
        """
        Read every document in a collection

        Raises:
            UpstreamFailureError: If the database call fails
        """
        pass

    @abstractmethod
    def list_collection_names(self) -> List[str]:
        """
        List top-level collection names

        Raises:
            UpstreamFailureError: If the database call fails
        """
        pass

    @abstractmethod
    def write_document(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """
        Create or fully replace a document

        Raises:
            UpstreamFailureError: If the database call fails
        """
        pass

    def close(self) -> None:
        """Release network resources (no-op by default)"""
        pass
