"""Base exception classes for bcup.

Every bcup exception carries structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context (collection, document, file name, ...)
"""

from typing import Any, Dict, Optional


class BcupError(Exception):
    """Base exception for all bcup errors.

    Attributes:
        code: Machine-readable error code (e.g., "INVALID_BACKUP_DATA")
        message: Human-readable error message
        details: Optional additional context for debugging
    """

    default_code: str = "BCUP_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.code}: {self.message} (details: {self.details})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(BcupError):
    """Input data failed validation rules."""

    default_code = "VALIDATION_ERROR"


class ResourceNotFoundError(BcupError):
    """A requested resource doesn't exist."""

    default_code = "NOT_FOUND"


class ConfigurationError(BcupError):
    """System configuration is invalid or incomplete."""

    default_code = "CONFIGURATION_ERROR"


class InvalidBackupDataError(ValidationError):
    """Decompressed backup content is not JSON or matches no known shape."""

    default_code = "INVALID_BACKUP_DATA"


class MissingInputError(ValidationError):
    """Required create/restore parameters are absent."""

    default_code = "MISSING_INPUT"


class BackupFileNotFoundError(ResourceNotFoundError):
    """Referenced backup file does not exist at the resolved path."""

    default_code = "FILE_NOT_FOUND"


class UpstreamFailureError(BcupError):
    """The document database raised an error (network, auth, quota).

    The originating collection and document, when known, are kept in
    ``details`` so the failure can be traced back.
    """

    default_code = "UPSTREAM_FAILURE"

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        document_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        details: Dict[str, Any] = {}
        if collection is not None:
            details["collection"] = collection
        if document_id is not None:
            details["document_id"] = document_id
        if cause is not None:
            details["cause"] = repr(cause)
        super().__init__(message, details=details)
        self.collection = collection
        self.document_id = document_id
        self.cause = cause
