"""
Logger interface for bcup.

Every component logs through this contract so the backing implementation
(text, JSON, file) can be swapped without touching call sites.
"""

from abc import ABC, abstractmethod
from typing import Any


class Logger(ABC):
    """Abstract base class for logging.

    Keyword arguments passed to any level method are attached to the record
    as structured fields, e.g. ``logger.info("Backup saved", file=name)``.
    """

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message."""
        pass

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""
        pass

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error message."""
        pass

    @abstractmethod
    def get_session_id(self) -> str:
        """Get the identifier shared by all records from this logger."""
        pass
