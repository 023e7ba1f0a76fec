"""Backup file naming.

    <collection>_<YYYY-MM-DD_HH-MM-SS>.json.gz   per-collection backups
    backup_<YYYY-MM-DD_HH-MM-SS>.json.gz         multi-collection backups

Timestamps have one-second resolution: two backups with the same prefix in
the same second share a name and the later one replaces the earlier.
"""

from datetime import datetime
from typing import Optional

BACKUP_SUFFIX = ".json.gz"
BACKUP_GLOB = "*" + BACKUP_SUFFIX
DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def backup_file_name(
    prefix: str,
    when: Optional[datetime] = None,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> str:
    """Build a backup file name for a prefix and time."""
    stamp = (when or datetime.now()).strftime(timestamp_format)
    return f"{prefix}_{stamp}{BACKUP_SUFFIX}"


def collection_from_file_name(file_name: str) -> str:
    """Infer a collection name from a backup file name.

    Splits on the first underscore only, so a collection named ``a_b``
    comes back as ``a``. Legacy files carry no other record of their
    collection, so the loss cannot be recovered.
    """
    return file_name.split("_", 1)[0]


def collection_glob(collection: str) -> str:
    """Glob matching the per-collection backups of one collection."""
    return f"{collection}_*{BACKUP_SUFFIX}"
