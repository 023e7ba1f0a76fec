"""File-based backup store

Stores each backup as a file in a directory, one subdirectory per project.
Writes go through a temporary file that is fsynced and renamed into place, so
a crash mid-write never leaves a truncated backup under the final name.
"""

import fnmatch
import os
import re
import tempfile
from pathlib import Path
from typing import BinaryIO, List, Optional

from bcup.exceptions import BackupFileNotFoundError
from bcup.logger import get_logger

from .base import BackupStore, FileStat
from .exceptions import InvalidNameError, StorageError

logger = get_logger("bcup-storage")

_UNSAFE_PROJECT_CHARS = re.compile(r"[^a-zA-Z0-9_\-]")


def sanitize_project_name(project: Optional[str]) -> Optional[str]:
    """Turn a project identifier into a safe directory name.

    Returns None for missing or blank names. Every character outside
    ``[A-Za-z0-9_-]`` becomes ``_``.
    """
    if project is None or not project.strip():
        return None
    return _UNSAFE_PROJECT_CHARS.sub("_", project.strip())


def safe_file_name(name: Optional[str]) -> str:
    """Strip directory components from a client-supplied file name.

    Raises:
        InvalidNameError: If nothing usable remains
    """
    base = os.path.basename((name or "").replace("\\", "/"))
    if not base or base in (".", ".."):
        raise InvalidNameError(f"Invalid file name: {name!r}")
    return base


class FileBackupStore(BackupStore):
    """Backup store rooted at a directory on the local filesystem"""

    def __init__(self, root: str | Path):
        """
        Args:
            root: Directory holding the backup files (created if missing)
        """
        self.root = Path(root)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to create backup directory: {e}", details={"path": str(self.root)}
            ) from e
        logger.debug("FileBackupStore initialized", root=str(self.root))

    def for_project(self, project: Optional[str]) -> "FileBackupStore":
        """Get the store for a project's subdirectory.

        Raises:
            InvalidNameError: If no project name was given
        """
        safe = sanitize_project_name(project)
        if safe is None:
            raise InvalidNameError("No project specified")
        return FileBackupStore(self.root / safe)

    def _path(self, name: str) -> Path:
        return self.root / safe_file_name(name)

    def write(self, name: str, data: bytes) -> None:
        target = self._path(name)
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, target)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error("Failed to write backup file", file=target.name, error=str(e))
            raise StorageError(
                f"Failed to write backup file: {e}", details={"file": target.name}
            ) from e
        logger.debug("Backup file written", file=target.name, size=len(data))

    def read(self, name: str) -> bytes:
        path = self._path(name)
        if not path.is_file():
            raise BackupFileNotFoundError("Backup file not found", details={"file": path.name})
        return path.read_bytes()

    def open(self, name: str) -> BinaryIO:
        path = self._path(name)
        if not path.is_file():
            raise BackupFileNotFoundError("Backup file not found", details={"file": path.name})
        return open(path, "rb")

    def list(self, pattern: str = "*.json.gz") -> List[str]:
        return sorted(
            p.name
            for p in self.root.iterdir()
            if p.is_file() and fnmatch.fnmatch(p.name, pattern)
        )

    def delete(self, name: str) -> bool:
        path = self._path(name)
        if not path.is_file():
            return False
        path.unlink()
        logger.info("Backup file deleted", file=path.name)
        return True

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    def stat(self, name: str) -> FileStat:
        path = self._path(name)
        if not path.is_file():
            raise BackupFileNotFoundError("Backup file not found", details={"file": path.name})
        st = path.stat()
        return FileStat(size=st.st_size, mtime=st.st_mtime)

    def path_of(self, name: str) -> Path:
        """Absolute path of a stored file (used for streaming downloads)"""
        path = self._path(name)
        if not path.is_file():
            raise BackupFileNotFoundError("Backup file not found", details={"file": path.name})
        return path
