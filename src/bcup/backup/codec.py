"""Backup file codec

Backup files are gzip-compressed JSON in one of three historical shapes:

    legacy             [doc, doc, ...]
    single collection  {"collection": "orders", "documents": [...], "project": ...}
    unified            {"collections": {"orders": [...], ...}, "project": ..., "createdAt": ...}

``parse_backup`` is the only place that decides which shape a payload has;
it returns one of three typed variants. Every variant converts to the same
``CanonicalBackup``. ``encode_backup`` always writes the unified shape, so
old files stay readable while new files use the newest format.
"""

import gzip
import json
import zlib
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, BinaryIO, Dict, List, Optional, Union

from bcup.exceptions import InvalidBackupDataError, ValidationError
from bcup.storage.base import BackupStore

from .naming import collection_from_file_name

READ_CHUNK_SIZE = 8192


class BackupFormat(str, Enum):
    LEGACY = "legacy"
    SINGLE_COLLECTION = "single_collection"
    UNIFIED = "unified"


def _count(documents: Any) -> int:
    # Non-list collection values are kept but hold no countable documents
    return len(documents) if isinstance(documents, list) else 0


@dataclass
class CanonicalBackup:
    """Format-independent backup contents

    Attributes:
        collections: Collection name -> list of documents, in file order
        project: Opaque project reference ({name, firebaseConfig}) or None
    """

    collections: Dict[str, Any] = field(default_factory=dict)
    project: Optional[Any] = None

    @property
    def document_count(self) -> int:
        return sum(_count(docs) for docs in self.collections.values())

    @property
    def collection_names(self) -> List[str]:
        return list(self.collections.keys())


@dataclass(frozen=True)
class LegacyBackup:
    """Bare document list; the collection comes from the file name"""

    collection: str
    documents: List[Any]
    format: BackupFormat = field(default=BackupFormat.LEGACY, init=False)

    def to_canonical(self) -> CanonicalBackup:
        return CanonicalBackup(collections={self.collection: self.documents})


@dataclass(frozen=True)
class SingleCollectionBackup:
    """One named collection with optional project metadata"""

    collection: str
    documents: List[Any]
    project: Optional[Any] = None
    created_at: Optional[str] = None
    format: BackupFormat = field(default=BackupFormat.SINGLE_COLLECTION, init=False)

    def to_canonical(self) -> CanonicalBackup:
        return CanonicalBackup(collections={self.collection: self.documents}, project=self.project)


@dataclass(frozen=True)
class UnifiedBackup:
    """Any number of collections with optional project metadata"""

    collections: Dict[str, Any]
    project: Optional[Any] = None
    created_at: Optional[str] = None
    format: BackupFormat = field(default=BackupFormat.UNIFIED, init=False)

    def to_canonical(self) -> CanonicalBackup:
        return CanonicalBackup(collections=dict(self.collections), project=self.project)


DecodedBackup = Union[LegacyBackup, SingleCollectionBackup, UnifiedBackup]


def parse_backup(data: Any, file_name: str) -> DecodedBackup:
    """Detect the shape of parsed JSON and wrap it in its variant.

    Detection order (first match wins): ``collections`` object, then
    ``documents`` list, then a top-level list.

    Args:
        data: Parsed JSON value
        file_name: Backup file name, used when the payload names no collection

    Raises:
        InvalidBackupDataError: If no shape matches
    """
    if isinstance(data, dict):
        collections = data.get("collections")
        # Empty PHP arrays serialize as [], so an empty list counts as no collections
        if isinstance(collections, dict) or collections == []:
            return UnifiedBackup(
                collections=dict(collections or {}),
                project=data.get("project"),
                created_at=data.get("createdAt"),
            )

        documents = data.get("documents")
        if isinstance(documents, list):
            name = data.get("collection")
            return SingleCollectionBackup(
                collection=str(name) if name is not None else collection_from_file_name(file_name),
                documents=documents,
                project=data.get("project"),
                created_at=data.get("createdAt"),
            )

        raise InvalidBackupDataError(
            "Invalid backup data: unrecognized backup format",
            details={"file": file_name, "keys": sorted(str(k) for k in data.keys())[:20]},
        )

    if isinstance(data, list):
        return LegacyBackup(collection=collection_from_file_name(file_name), documents=data)

    raise InvalidBackupDataError(
        "Invalid backup data: expected a JSON object or array",
        details={"file": file_name, "type": type(data).__name__},
    )


def decode_backup(raw: bytes, file_name: str) -> DecodedBackup:
    """Parse decompressed backup bytes.

    Raises:
        InvalidBackupDataError: If the bytes are not JSON or match no shape
    """
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as e:
        raise InvalidBackupDataError(
            "Invalid backup data: not valid JSON", details={"file": file_name, "error": str(e)}
        ) from e
    return parse_backup(data, file_name)


def decompress(data: bytes) -> bytes:
    """Gunzip backup file bytes.

    Raises:
        InvalidBackupDataError: If the bytes are not a valid gzip stream
    """
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise InvalidBackupDataError(
            "Invalid backup data: not a gzip file", details={"error": str(e)}
        ) from e


def load_backup(compressed: bytes, file_name: str) -> DecodedBackup:
    """Decompress and decode a stored backup file."""
    return decode_backup(decompress(compressed), file_name)


def serialize_backup(
    backup: CanonicalBackup, created_at: Optional[datetime] = None
) -> Dict[str, Any]:
    """Build the unified JSON payload for a canonical backup."""
    payload: Dict[str, Any] = {"collections": backup.collections}
    if backup.project is not None:
        payload["project"] = backup.project
    stamp = created_at or datetime.now().astimezone()
    payload["createdAt"] = stamp.isoformat(timespec="seconds")
    return payload


def encode_backup(
    backup: CanonicalBackup,
    created_at: Optional[datetime] = None,
    compression_level: int = 9,
) -> bytes:
    """Serialize a canonical backup to gzip-compressed unified JSON.

    Raises:
        ValidationError: If a document holds a value JSON cannot represent
    """
    try:
        text = json.dumps(serialize_backup(backup, created_at), indent=4)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Backup contains values that cannot be serialized: {e}", code="UNSERIALIZABLE"
        ) from e
    return gzip.compress(text.encode("utf-8"), compresslevel=compression_level)


@dataclass
class BackupMetadata:
    """Listing entry for one backup file

    ``documents`` is None when the file could not be read or decoded
    within the read limit.
    """

    file: str
    timestamp: int
    size: int
    collections: List[str] = field(default_factory=list)
    documents: Optional[int] = None
    format: Optional[BackupFormat] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "timestamp": self.timestamp,
            "collections": self.collections,
            "documents": self.documents,
            "size": self.size,
        }


def read_limited(stream: BinaryIO, limit: int) -> bytes:
    """Decompress a gzip stream, stopping once more than ``limit`` bytes are read.

    A stream cut off at the limit yields a truncated (usually unparsable)
    payload rather than an error.
    """
    buffer = bytearray()
    with gzip.GzipFile(fileobj=stream, mode="rb") as gz:
        while True:
            chunk = gz.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            buffer.extend(chunk)
            if len(buffer) > limit:
                break
    return bytes(buffer)


def read_backup_metadata(store: BackupStore, name: str, limit: int) -> BackupMetadata:
    """Describe a stored backup for listings.

    Never raises for unreadable content: a corrupt, truncated or oversized
    file yields ``documents=None`` and no collections. Missing files still
    raise ``BackupFileNotFoundError``.
    """
    stat = store.stat(name)
    meta = BackupMetadata(file=name, timestamp=int(stat.mtime), size=stat.size)

    try:
        with store.open(name) as stream:
            decoded = decode_backup(read_limited(stream, limit), name)
    except (InvalidBackupDataError, OSError, EOFError, zlib.error):
        return meta

    canonical = decoded.to_canonical()
    meta.collections = canonical.collection_names
    meta.documents = canonical.document_count
    meta.format = decoded.format
    return meta
