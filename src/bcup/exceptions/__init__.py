"""Common exceptions for bcup.

All exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery

Usage:
    from bcup.exceptions import (
        BcupError,
        InvalidBackupDataError,
        BackupFileNotFoundError,
    )
"""

from bcup.exceptions.base import (
    BackupFileNotFoundError,
    BcupError,
    ConfigurationError,
    InvalidBackupDataError,
    MissingInputError,
    ResourceNotFoundError,
    UpstreamFailureError,
    ValidationError,
)

__all__ = [
    # Base exceptions
    "BcupError",
    "ValidationError",
    "ResourceNotFoundError",
    "ConfigurationError",
    # Backup taxonomy
    "InvalidBackupDataError",
    "MissingInputError",
    "BackupFileNotFoundError",
    "UpstreamFailureError",
]
