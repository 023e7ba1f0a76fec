"""Storage module for bcup

Compressed backup file store with per-project directories.
"""

from .base import BackupStore, FileStat
from .exceptions import InvalidNameError, StorageError
from .file_storage import FileBackupStore, safe_file_name, sanitize_project_name

__all__ = [
    "BackupStore",
    "FileStat",
    "FileBackupStore",
    "StorageError",
    "InvalidNameError",
    "safe_file_name",
    "sanitize_project_name",
]
