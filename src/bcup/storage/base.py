"""Base storage interface

Defines the contract for the compressed backup file store. Identifiers are
plain file names; implementations decide where the bytes live.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, List


@dataclass(frozen=True)
class FileStat:
    """Size and modification time of a stored file"""

    size: int
    mtime: float


class BackupStore(ABC):
    """Abstract base class for backup file stores"""

    @abstractmethod
    def write(self, name: str, data: bytes) -> None:
        """
        Store bytes under a file name, replacing any existing file

        Args:
            name: File name (no directory components)
            data: Compressed backup bytes

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def read(self, name: str) -> bytes:
        """
        Read a stored file

        Raises:
            BackupFileNotFoundError: If the file does not exist
        """
        pass

    @abstractmethod
    def open(self, name: str) -> BinaryIO:
        """
        Open a stored file for streaming reads

        Raises:
            BackupFileNotFoundError: If the file does not exist
        """
        pass

    @abstractmethod
    def list(self, pattern: str = "*.json.gz") -> List[str]:
        """
        List stored file names matching a glob pattern, sorted by name
        """
        pass

    @abstractmethod
    def delete(self, name: str) -> bool:
        """
        Delete a stored file

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check if a file exists"""
        pass

    @abstractmethod
    def stat(self, name: str) -> FileStat:
        """
        Get size and modification time

        Raises:
            BackupFileNotFoundError: If the file does not exist
        """
        pass
