"""Backup configuration

Tunables for backup creation, retention and metadata reads, with
environment variable overrides under a configurable prefix.
"""

import os
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_COLLECTIONS = ["parts", "orders", "users"]


class BackupConfig(BaseModel):
    """Backup service configuration with environment variable overrides"""

    default_collections: List[str] = Field(
        default_factory=lambda: list(DEFAULT_COLLECTIONS),
        description="Collections backed up by the scheduled per-collection job",
    )

    max_count: int = Field(
        default=30,
        description="Maximum number of backups kept per project by the retention pass",
        ge=1,
    )

    compression_level: int = Field(
        default=9,
        description="gzip compression level (1-9)",
        ge=1,
        le=9,
    )

    metadata_read_limit: int = Field(
        default=5_000_000,
        description="Max decompressed bytes read when enriching listings",
        ge=1,
    )

    timestamp_format: str = Field(
        default="%Y-%m-%d_%H-%M-%S",
        description="Timestamp format for backup filenames (one-second resolution)",
    )

    unified_prefix: str = Field(
        default="backup",
        description="File name prefix for multi-collection backups",
    )

    @field_validator("default_collections")
    @classmethod
    def validate_collections(cls, v: List[str]) -> List[str]:
        """Drop blanks and duplicates, keep order"""
        seen: List[str] = []
        for name in (c.strip() for c in v):
            if name and name not in seen:
                seen.append(name)
        return seen

    @classmethod
    def from_env(
        cls,
        prefix: str = "BCUP",
        env: Optional[Mapping[str, str]] = None,
    ) -> "BackupConfig":
        """Create configuration from environment variables

        Environment variables:
            {prefix}_COLLECTIONS: Comma-separated default collections
            {prefix}_MAX_COUNT: Retention count
            {prefix}_COMPRESSION_LEVEL: gzip level
            {prefix}_METADATA_READ_LIMIT: Listing read cap in bytes
            {prefix}_TIMESTAMP_FORMAT: strftime format for file names
        """
        values = os.environ if env is None else env
        prefix = prefix.rstrip("_")

        collections_env = values.get(f"{prefix}_COLLECTIONS", "")
        collections = (
            collections_env.split(",") if collections_env else list(DEFAULT_COLLECTIONS)
        )

        return cls(
            default_collections=collections,
            max_count=int(values.get(f"{prefix}_MAX_COUNT", "30")),
            compression_level=int(values.get(f"{prefix}_COMPRESSION_LEVEL", "9")),
            metadata_read_limit=int(values.get(f"{prefix}_METADATA_READ_LIMIT", "5000000")),
            timestamp_format=values.get(f"{prefix}_TIMESTAMP_FORMAT", "%Y-%m-%d_%H-%M-%S"),
        )
