"""Backup housekeeping and retention management

Handles count-based cleanup of old backups in one project directory.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from bcup.logger import Logger, get_logger
from bcup.storage import BackupStore

from .naming import BACKUP_GLOB


@dataclass
class BackupInfo:
    """Information about a backup file"""

    filename: str
    timestamp: datetime
    size_bytes: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class BackupHousekeeping:
    """Manages backup retention and cleanup for one store"""

    def __init__(self, store: BackupStore, logger: Optional[Logger] = None):
        self.store = store
        self.logger = logger or get_logger("bcup-housekeeping")

    def scan_backups(self, pattern: str = BACKUP_GLOB) -> List[BackupInfo]:
        """List backups matching a pattern, newest first (by modification time)"""
        backups = []
        for name in self.store.list(pattern):
            stat = self.store.stat(name)
            backups.append(
                BackupInfo(
                    filename=name,
                    timestamp=datetime.fromtimestamp(stat.mtime),
                    size_bytes=stat.size,
                )
            )
        # Name as tie-breaker keeps same-second files in a stable order
        return sorted(backups, key=lambda b: (b.timestamp, b.filename), reverse=True)

    def latest(self, pattern: str = BACKUP_GLOB) -> Optional[BackupInfo]:
        """Most recently modified backup matching a pattern"""
        backups = self.scan_backups(pattern)
        return backups[0] if backups else None

    def cleanup_by_count(self, max_count: int, pattern: str = BACKUP_GLOB) -> int:
        """Keep only the most recent max_count backups, evicting oldest first"""
        backups = self.scan_backups(pattern)

        if len(backups) <= max_count:
            return 0

        removed_count = 0
        for backup in backups[max_count:]:
            if self.store.delete(backup.filename):
                removed_count += 1
                self.logger.info("Removed excess backup", file=backup.filename)

        return removed_count

    def get_stats(self) -> Dict[str, Any]:
        """Get backup statistics"""
        backups = self.scan_backups()

        if not backups:
            return {
                "total_backups": 0,
                "total_size_bytes": 0,
                "total_size_mb": 0,
                "oldest_backup": None,
                "newest_backup": None,
            }

        total_size = sum(b.size_bytes for b in backups)
        return {
            "total_backups": len(backups),
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "oldest_backup": backups[-1].timestamp.isoformat(),
            "newest_backup": backups[0].timestamp.isoformat(),
        }
