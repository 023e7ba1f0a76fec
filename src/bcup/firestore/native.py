"""Firestore backend using the google-cloud-firestore client library."""

import base64
import datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional

from google.api_core.exceptions import GoogleAPIError
from google.cloud import firestore

from bcup.exceptions import UpstreamFailureError
from bcup.logger import get_logger

from .base import Document, DocumentDatabase, join_document

logger = get_logger("bcup-firestore")


def to_plain(value: Any) -> Any:
    """Convert SDK values (timestamps, geo-points, references, bytes) to JSON values."""
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, firestore.GeoPoint):
        return {"latitude": value.latitude, "longitude": value.longitude}
    if isinstance(value, firestore.DocumentReference):
        return value.path
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


class NativeFirestoreDatabase(DocumentDatabase):
    """DocumentDatabase backed by ``google.cloud.firestore.Client``.

    Use exactly one of:
    - ``project_id`` with Application Default Credentials
    - ``service_account_path`` pointing at a JSON key file
    Or pass a ready ``client``.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        service_account_path: Optional[Path] = None,
        database: str = "(default)",
        client: Optional[firestore.Client] = None,
    ):
        if client is not None:
            self._client = client
        elif service_account_path is not None:
            self._client = firestore.Client.from_service_account_json(
                str(service_account_path), database=database
            )
        else:
            self._client = firestore.Client(project=project_id, database=database)
        logger.info("Native Firestore client ready", project=self._client.project)

    def list_documents(self, collection: str) -> List[Document]:
        try:
            snapshots = self._client.collection(collection).stream()
            return [join_document(s.id, to_plain(s.to_dict() or {})) for s in snapshots]
        except GoogleAPIError as e:
            raise UpstreamFailureError(
                f"Failed to read collection {collection}: {e}", collection=collection, cause=e
            ) from e

    def list_collection_names(self) -> List[str]:
        try:
            return [c.id for c in self._client.collections()]
        except GoogleAPIError as e:
            raise UpstreamFailureError(f"Failed to list collections: {e}", cause=e) from e

    def write_document(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        # The SDK rejects unaddressable paths (ids containing "/") with ValueError before any RPC
        try:
            self._client.collection(collection).document(doc_id).set(dict(fields))
        except (GoogleAPIError, ValueError, TypeError) as e:
            raise UpstreamFailureError(
                f"Failed to write document {doc_id}: {e}",
                collection=collection,
                document_id=doc_id,
                cause=e,
            ) from e

    def close(self) -> None:
        self._client.close()
