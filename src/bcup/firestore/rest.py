"""Firestore backend over the REST API (v1) using httpx.

Documents travel in the typed wire format and are translated with
``bcup.firestore.values``.
"""

from typing import Any, Dict, Iterator, List, Mapping, Optional
from urllib.parse import quote

import httpx

from bcup.exceptions import UpstreamFailureError
from bcup.logger import get_logger

from .base import Document, DocumentDatabase, join_document
from .tokens import TokenProvider
from .values import decode_fields, encode_fields

logger = get_logger("bcup-firestore")

FIRESTORE_API = "https://firestore.googleapis.com/v1"


class RestFirestoreDatabase(DocumentDatabase):
    """DocumentDatabase backed by the Firestore REST API."""

    def __init__(
        self,
        project_id: str,
        token_provider: TokenProvider,
        database: str = "(default)",
        http_client: Optional[httpx.Client] = None,
        page_size: int = 300,
        api_base: str = FIRESTORE_API,
    ):
        self._tokens = token_provider
        self._http = http_client or httpx.Client(timeout=60.0)
        self._page_size = page_size
        self.documents_url = f"{api_base}/projects/{project_id}/databases/{database}/documents"

    def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Send an authorized request, renewing the token once on 401."""
        response = self._send(method, url, **kwargs)
        if response.status_code == 401:
            self._tokens.invalidate()
            response = self._send(method, url, **kwargs)
        response.raise_for_status()
        return response.json() if response.content else {}

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._tokens.get_token()}"}
        return self._http.request(method, url, headers=headers, **kwargs)

    def _iter_pages(self, method: str, url: str, **kwargs: Any) -> Iterator[Dict[str, Any]]:
        # GET pages through query parameters, POST through the JSON body
        page_token: Optional[str] = None
        while True:
            paging: Dict[str, Any] = {"pageSize": self._page_size}
            if page_token:
                paging["pageToken"] = page_token
            if method == "GET":
                page = self._request(method, url, params=paging, **kwargs)
            else:
                page = self._request(method, url, json=paging, **kwargs)
            yield page
            page_token = page.get("nextPageToken")
            if not page_token:
                break

    def list_documents(self, collection: str) -> List[Document]:
        documents: List[Document] = []
        url = f"{self.documents_url}/{quote(collection, safe='')}"
        try:
            for page in self._iter_pages("GET", url):
                for raw in page.get("documents", []):
                    doc_id = raw["name"].rsplit("/", 1)[-1]
                    documents.append(join_document(doc_id, decode_fields(raw.get("fields", {}))))
        except httpx.HTTPError as e:
            raise UpstreamFailureError(
                f"Failed to read collection {collection}: {e}", collection=collection, cause=e
            ) from e
        logger.debug("Collection read", collection=collection, documents=len(documents))
        return documents

    def list_collection_names(self) -> List[str]:
        names: List[str] = []
        try:
            for page in self._iter_pages("POST", f"{self.documents_url}:listCollectionIds"):
                names.extend(page.get("collectionIds", []))
        except httpx.HTTPError as e:
            raise UpstreamFailureError(f"Failed to list collections: {e}", cause=e) from e
        return names

    def write_document(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        # PATCH without an update mask replaces the whole document
        url = f"{self.documents_url}/{quote(collection, safe='')}/{quote(doc_id, safe='')}"
        try:
            self._request("PATCH", url, json={"fields": encode_fields(fields)})
        except httpx.HTTPError as e:
            raise UpstreamFailureError(
                f"Failed to write document {doc_id}: {e}",
                collection=collection,
                document_id=doc_id,
                cause=e,
            ) from e

    def close(self) -> None:
        self._http.close()
