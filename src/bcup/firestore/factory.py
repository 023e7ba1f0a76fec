"""Factory for document database backends.

Selects the backend named in ``FirestoreSettings.backend``:

- none:   no server-side database; the browser's client SDK reads and
          writes documents and only exchanges files with the API
- memory: in-process MemoryDatabase
- native: google-cloud-firestore client
- rest:   Firestore REST API with a service-account token provider
"""

import json
from pathlib import Path
from typing import Optional

import httpx

from bcup.config import FirestoreSettings
from bcup.exceptions import ConfigurationError

from .base import DocumentDatabase
from .memory import MemoryDatabase


def create_database(
    settings: FirestoreSettings,
    http_client: Optional[httpx.Client] = None,
) -> Optional[DocumentDatabase]:
    """Create the configured database backend.

    Args:
        settings: Firestore connection settings
        http_client: Optional httpx client shared by the REST backend and
            its token provider

    Returns:
        A DocumentDatabase, or None for the "none" backend

    Raises:
        ConfigurationError: If the backend is misconfigured
    """
    backend = settings.backend

    if backend == "none":
        return None

    if backend == "memory":
        return MemoryDatabase()

    if backend == "native":
        from .native import NativeFirestoreDatabase

        return NativeFirestoreDatabase(
            project_id=settings.project_id,
            service_account_path=settings.service_account_path,
            database=settings.database,
        )

    if backend == "rest":
        from .rest import RestFirestoreDatabase
        from .tokens import ServiceAccountTokenProvider

        if settings.service_account_path is None:
            raise ConfigurationError("REST backend requires a service account key file")

        provider = ServiceAccountTokenProvider.from_file(
            settings.service_account_path, http_client=http_client
        )
        project_id = settings.project_id or _project_from_key(settings.service_account_path)
        return RestFirestoreDatabase(
            project_id=project_id,
            token_provider=provider,
            database=settings.database,
            http_client=http_client,
        )

    raise ConfigurationError(f"Unknown Firestore backend: {backend}")


def _project_from_key(key_path: Path) -> str:
    try:
        project_id = json.loads(key_path.read_text()).get("project_id")
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read service account key: {e}") from e
    if not project_id:
        raise ConfigurationError("No Firestore project id configured")
    return project_id
