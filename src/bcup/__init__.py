"""bcup - Firestore backup and restore.

This package provides:
- backup: Backup file codec (legacy, single-collection and unified formats),
  retention and the backup/restore service
- firestore: Document database backends (native SDK, REST, in-memory) and
  REST typed-value translation
- storage: Per-project compressed backup file store
- web: HTTP action surface with CORS, security headers and rate limiting
- config: Typed settings from environment variables and .env files
- logger: Structured logging with session tracking and JSON support
- exceptions: Exception classes with structured error info
"""

__version__ = "1.0.0"

# Re-export commonly used items for convenience
from bcup.logger import (
    Logger,
    StructuredLogger,
    get_logger,
    create_logger,
)

from bcup.config import (
    Settings,
    ServerSettings,
    StorageSettings,
    FirestoreSettings,
    SecuritySettings,
    LogSettings,
    get_settings,
    reset_settings,
)

from bcup.exceptions import (
    BcupError,
    ValidationError,
    ResourceNotFoundError,
    ConfigurationError,
    InvalidBackupDataError,
    MissingInputError,
    BackupFileNotFoundError,
    UpstreamFailureError,
)

from bcup.backup import (
    BackupConfig,
    BackupService,
    CanonicalBackup,
    decode_backup,
    encode_backup,
)

__all__ = [
    "__version__",
    # Logger
    "Logger",
    "StructuredLogger",
    "get_logger",
    "create_logger",
    # Config
    "Settings",
    "ServerSettings",
    "StorageSettings",
    "FirestoreSettings",
    "SecuritySettings",
    "LogSettings",
    "get_settings",
    "reset_settings",
    # Exceptions
    "BcupError",
    "ValidationError",
    "ResourceNotFoundError",
    "ConfigurationError",
    "InvalidBackupDataError",
    "MissingInputError",
    "BackupFileNotFoundError",
    "UpstreamFailureError",
    # Backup
    "BackupConfig",
    "BackupService",
    "CanonicalBackup",
    "decode_backup",
    "encode_backup",
]
