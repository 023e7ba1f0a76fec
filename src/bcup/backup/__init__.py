"""bcup Backup Module

Backup file codec, naming, retention and the backup/restore service.

Usage:
    from bcup.backup import BackupService, BackupConfig
    from bcup.storage import FileBackupStore

    service = BackupService(FileBackupStore("backups"), database=db)
    service.create_backup("my-project", collection_names=["orders"])
"""

from bcup.backup.codec import (
    BackupFormat,
    BackupMetadata,
    CanonicalBackup,
    DecodedBackup,
    LegacyBackup,
    SingleCollectionBackup,
    UnifiedBackup,
    decode_backup,
    encode_backup,
    load_backup,
    parse_backup,
    read_backup_metadata,
)
from bcup.backup.config import BackupConfig
from bcup.backup.housekeeping import BackupHousekeeping, BackupInfo
from bcup.backup.naming import backup_file_name, collection_from_file_name
from bcup.backup.service import (
    BackupJobReport,
    BackupService,
    CreateResult,
    ItemFailure,
    RestoreReport,
)

__all__ = [
    "BackupConfig",
    "BackupService",
    "BackupHousekeeping",
    "BackupInfo",
    "BackupFormat",
    "BackupMetadata",
    "CanonicalBackup",
    "DecodedBackup",
    "LegacyBackup",
    "SingleCollectionBackup",
    "UnifiedBackup",
    "decode_backup",
    "encode_backup",
    "load_backup",
    "parse_backup",
    "read_backup_metadata",
    "backup_file_name",
    "collection_from_file_name",
    "BackupJobReport",
    "CreateResult",
    "ItemFailure",
    "RestoreReport",
]
