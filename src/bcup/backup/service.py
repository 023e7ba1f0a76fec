"""Backup service

Coordinates the file store, the codec and an optional document database:

- list, create, delete, load and download backups in per-project directories
- the per-collection backup job with count-based retention
- server-side restore into the configured database, tolerating partial
  failure
- restore of the newest backup of one collection

Without a database (the client-side SDK deployment) the service only
exchanges files: ``create_backup`` takes the collections posted by the
client and ``load_backup`` hands decoded collections back for the client to
write.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from bcup.exceptions import (
    BackupFileNotFoundError,
    BcupError,
    ConfigurationError,
    MissingInputError,
    UpstreamFailureError,
)
from bcup.firestore import DocumentDatabase, split_document
from bcup.logger import Logger, get_logger
from bcup.storage import FileBackupStore, safe_file_name

from .codec import (
    BackupMetadata,
    CanonicalBackup,
    DecodedBackup,
    encode_backup,
    load_backup,
    read_backup_metadata,
)
from .config import BackupConfig
from .housekeeping import BackupHousekeeping
from .naming import BACKUP_GLOB, backup_file_name, collection_glob


@dataclass
class ItemFailure:
    """One collection or document that could not be processed"""

    collection: str
    error: str
    document_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"collection": self.collection, "error": self.error}
        if self.document_id is not None:
            data["id"] = self.document_id
        return data


@dataclass
class RestoreReport:
    """Outcome of writing a backup's documents back to the database

    A report with failures is a partial result, not an error.
    """

    file: str
    collections: List[str] = field(default_factory=list)
    restored: int = 0
    failed: int = 0
    skipped: int = 0
    failures: List[ItemFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "collections": self.collections,
            "restored": self.restored,
            "failed": self.failed,
            "skipped": self.skipped,
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass
class CreateResult:
    """Outcome of creating one multi-collection backup"""

    file: Optional[str]
    collections: List[str] = field(default_factory=list)
    documents: int = 0
    failures: List[ItemFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.file is not None and not self.failures

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"collections": self.collections, "file": self.file}
        if self.failures:
            data["failures"] = [f.to_dict() for f in self.failures]
        return data


@dataclass
class CollectionBackupResult:
    collection: str
    file: Optional[str] = None
    documents: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"collection": self.collection}
        if self.error is None:
            data["file"] = self.file
            data["documents"] = self.documents
        else:
            data["error"] = self.error
        return data


@dataclass
class BackupJobReport:
    """Outcome of the per-collection backup job"""

    results: List[CollectionBackupResult] = field(default_factory=list)
    removed: int = 0

    @property
    def success(self) -> bool:
        return all(r.error is None for r in self.results)

    @property
    def errors(self) -> List[str]:
        return [f"{r.collection}: {r.error}" for r in self.results if r.error is not None]

    def to_dict(self) -> Dict[str, Any]:
        return {"results": [r.to_dict() for r in self.results], "removed": self.removed}


class BackupService:
    """Backup and restore operations over a per-project file store"""

    def __init__(
        self,
        store: FileBackupStore,
        database: Optional[DocumentDatabase] = None,
        config: Optional[BackupConfig] = None,
        logger: Optional[Logger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            store: Root store; each project gets a subdirectory
            database: Server-side database, or None when clients read and
                write documents themselves
            config: Backup configuration (defaults apply when omitted)
            logger: Logger (default: "bcup-backup")
            clock: Source of the current local time for names and stamps
        """
        self.store = store
        self.database = database
        self.config = config or BackupConfig()
        self.logger = logger or get_logger("bcup-backup")
        self.clock = clock

    @property
    def has_database(self) -> bool:
        return self.database is not None

    def project_store(self, project: Optional[str]) -> FileBackupStore:
        """Store for a project's directory (raises InvalidNameError when blank)"""
        return self.store.for_project(project)

    def _require_database(self) -> DocumentDatabase:
        if self.database is None:
            raise ConfigurationError(
                "No Firestore backend configured",
                details={"hint": "set BCUP_FIRESTORE_BACKEND to native, rest or memory"},
            )
        return self.database

    def database_collections(self) -> List[str]:
        """Names of every top-level collection in the configured database

        Raises:
            ConfigurationError: If no database is configured
            UpstreamFailureError: If the database cannot list collections
        """
        return self._require_database().list_collection_names()

    def _now(self) -> datetime:
        return self.clock()

    def _write_backup(
        self,
        store: FileBackupStore,
        prefix: str,
        canonical: CanonicalBackup,
    ) -> str:
        now = self._now()
        name = backup_file_name(prefix, now, self.config.timestamp_format)
        if store.exists(name):
            self.logger.warning("Overwriting backup with the same timestamp", file=name)
        data = encode_backup(
            canonical,
            created_at=now.astimezone(),
            compression_level=self.config.compression_level,
        )
        store.write(name, data)
        return name

    # -- listing -------------------------------------------------------------

    def list_backups(self, project: Optional[str]) -> List[BackupMetadata]:
        """List a project's backups with best-effort collection and document counts"""
        store = self.project_store(project)
        return [
            read_backup_metadata(store, name, self.config.metadata_read_limit)
            for name in store.list(BACKUP_GLOB)
        ]

    # -- create --------------------------------------------------------------

    def create_backup(
        self,
        project: Optional[str],
        collections: Optional[Mapping[str, Any]] = None,
        collection_names: Optional[Iterable[str]] = None,
        project_ref: Optional[Any] = None,
    ) -> CreateResult:
        """Write one unified backup file for a project.

        Documents come either from ``collections`` (already read by the
        client) or are fetched from the database for each name in
        ``collection_names``. A collection that fails to fetch is reported
        and left out; the file holds the rest.

        Raises:
            MissingInputError: If neither source yields any collection
            ConfigurationError: If names are given but no database is configured
        """
        store = self.project_store(project)
        failures: List[ItemFailure] = []

        if collections:
            if not isinstance(collections, Mapping):
                raise MissingInputError("Missing collections data")
            data = dict(collections)
        elif collection_names:
            data = {}
            database = self._require_database()
            for name in collection_names:
                try:
                    data[name] = database.list_documents(name)
                except UpstreamFailureError as e:
                    self.logger.error("Failed to back up collection", collection=name, error=str(e))
                    failures.append(ItemFailure(collection=name, error=e.message))
            if not data:
                return CreateResult(file=None, failures=failures)
        else:
            raise MissingInputError("Missing collections data")

        canonical = CanonicalBackup(collections=data, project=project_ref)
        name = self._write_backup(store, self.config.unified_prefix, canonical)
        self.logger.info(
            "Backup created",
            project=store.root.name,
            file=name,
            collections=len(data),
            documents=canonical.document_count,
        )
        return CreateResult(
            file=name,
            collections=canonical.collection_names,
            documents=canonical.document_count,
            failures=failures,
        )

    def backup_collections_job(
        self,
        project: Optional[str],
        collections: Optional[Iterable[str]] = None,
    ) -> BackupJobReport:
        """Back up each collection to its own file, then apply retention.

        Files are named ``<collection>_<timestamp>.json.gz``. After the run,
        the oldest backups in the project directory beyond ``max_count`` are
        deleted.
        """
        database = self._require_database()
        store = self.project_store(project)
        names = list(collections) if collections else list(self.config.default_collections)
        report = BackupJobReport()

        self.logger.info("Backup job started", project=store.root.name, collections=names)
        for name in names:
            try:
                documents = database.list_documents(name)
                canonical = CanonicalBackup(collections={name: documents})
                file_name = self._write_backup(store, name, canonical)
            except BcupError as e:
                self.logger.error("Failed to back up collection", collection=name, error=str(e))
                report.results.append(CollectionBackupResult(collection=name, error=e.message))
                continue
            self.logger.info("Backup saved", file=file_name, documents=len(documents))
            report.results.append(
                CollectionBackupResult(collection=name, file=file_name, documents=len(documents))
            )

        report.removed = BackupHousekeeping(store, self.logger).cleanup_by_count(
            self.config.max_count
        )
        self.logger.info(
            "Backup job completed",
            saved=sum(1 for r in report.results if r.error is None),
            failed=len(report.errors),
            removed=report.removed,
        )
        return report

    # -- delete / read -------------------------------------------------------

    def delete_backup(self, project: Optional[str], file: Optional[str]) -> str:
        """Delete a backup file.

        Raises:
            MissingInputError: If no file name was given
            BackupFileNotFoundError: If the file does not exist
        """
        if not file:
            raise MissingInputError("File not specified")
        store = self.project_store(project)
        name = safe_file_name(file)
        if not store.delete(name):
            raise BackupFileNotFoundError("File not found", details={"file": name})
        return name

    def backup_path(self, project: Optional[str], file: Optional[str]) -> Path:
        """Filesystem path of a backup, for streaming downloads"""
        if not file:
            raise MissingInputError("File not specified")
        return self.project_store(project).path_of(file)

    def load_backup(self, project: Optional[str], file: Optional[str]) -> DecodedBackup:
        """Read and decode a stored backup.

        Raises:
            MissingInputError: If no file name was given
            BackupFileNotFoundError: If the file does not exist
            InvalidBackupDataError: If the file is not a readable backup
        """
        if not file:
            raise MissingInputError("File not specified")
        store = self.project_store(project)
        name = safe_file_name(file)
        return load_backup(store.read(name), name)

    # -- restore -------------------------------------------------------------

    def restore_backup(
        self,
        project: Optional[str],
        file: Optional[str],
        collections: Optional[Iterable[str]] = None,
    ) -> RestoreReport:
        """Write a backup's documents into the configured database.

        Documents are written one at a time. Failed writes are counted and
        listed in the report; the remaining documents are still written.
        Documents without an ``id`` are skipped.

        Args:
            project: Project whose directory holds the file
            file: Backup file name
            collections: Optional subset of collections to restore
        """
        database = self._require_database()
        decoded = self.load_backup(project, file)
        canonical = decoded.to_canonical()
        wanted = set(collections) if collections else None

        report = RestoreReport(file=safe_file_name(file or ""))
        self.logger.info("Restore started", file=report.file, format=decoded.format.value)

        for name, documents in canonical.collections.items():
            if wanted is not None and name not in wanted:
                continue
            report.collections.append(name)
            if not isinstance(documents, list):
                self.logger.warning("Collection is not a document list", collection=name)
                continue
            self._restore_collection(database, name, documents, report)

        log = self.logger.warning if report.failed else self.logger.info
        log(
            "Restore completed",
            file=report.file,
            restored=report.restored,
            failed=report.failed,
            skipped=report.skipped,
        )
        return report

    def _restore_collection(
        self,
        database: DocumentDatabase,
        collection: str,
        documents: List[Any],
        report: RestoreReport,
    ) -> None:
        for document in documents:
            parts = split_document(document) if isinstance(document, dict) else None
            if parts is None:
                report.skipped += 1
                continue
            doc_id, fields = parts
            try:
                database.write_document(collection, doc_id, fields)
            except BcupError as e:
                report.failed += 1
                report.failures.append(
                    ItemFailure(collection=collection, document_id=doc_id, error=e.message)
                )
                self.logger.error(
                    "Failed to restore document",
                    collection=collection,
                    id=doc_id,
                    error=str(e),
                )
            else:
                report.restored += 1

    def restore_latest(self, project: Optional[str], collection: str) -> RestoreReport:
        """Restore the most recently modified backup of one collection.

        Raises:
            BackupFileNotFoundError: If the collection has no backups
        """
        store = self.project_store(project)
        latest = BackupHousekeeping(store, self.logger).latest(collection_glob(collection))
        if latest is None:
            raise BackupFileNotFoundError(
                "No backup files found", details={"collection": collection}
            )
        return self.restore_backup(project, latest.filename)

    def stats(self, project: Optional[str]) -> Dict[str, Any]:
        """Count and size statistics for a project's backups"""
        return BackupHousekeeping(self.project_store(project), self.logger).get_stats()
