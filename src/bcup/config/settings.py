"""Dataclass-based settings for bcup

Typed configuration with environment variable support. Every settings class
reads ``{prefix}_*`` variables from a mapping (``os.environ`` by default, or
the output of ``EnvLoader.load()`` to include a ``.env`` file).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from bcup.exceptions import ConfigurationError

FIRESTORE_BACKENDS = ("none", "native", "rest", "memory")


def _env(env: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if env is None else env


@dataclass
class ServerSettings:
    """Network server configuration

    Attributes:
        host: Server bind address (default: 0.0.0.0)
        port: HTTP API port
    """

    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(
        cls, prefix: str = "BCUP", env: Optional[Mapping[str, str]] = None
    ) -> "ServerSettings":
        """Environment variables: {prefix}_HOST, {prefix}_PORT"""
        values = _env(env)
        return cls(
            host=values.get(f"{prefix}_HOST", "0.0.0.0"),
            port=int(values.get(f"{prefix}_PORT", "8000")),
        )


@dataclass
class StorageSettings:
    """Backup file location

    Attributes:
        backup_dir: Root directory; each project gets a subdirectory
    """

    backup_dir: Path = field(default_factory=lambda: Path.cwd() / "backups")

    @classmethod
    def from_env(
        cls, prefix: str = "BCUP", env: Optional[Mapping[str, str]] = None
    ) -> "StorageSettings":
        """Environment variables: {prefix}_BACKUP_DIR"""
        values = _env(env)
        backup_dir = values.get(f"{prefix}_BACKUP_DIR")
        return cls(backup_dir=Path(backup_dir) if backup_dir else Path.cwd() / "backups")

    def ensure_directories(self) -> None:
        self.backup_dir.mkdir(parents=True, exist_ok=True)


@dataclass
class FirestoreSettings:
    """Document database connection

    Attributes:
        backend: "none" (client-side SDK pushes documents), "native",
                 "rest" or "memory"
        project_id: Google Cloud project id
        service_account_path: Service account JSON key file
        database: Firestore database id
    """

    backend: str = "none"
    project_id: Optional[str] = None
    service_account_path: Optional[Path] = None
    database: str = "(default)"

    def __post_init__(self):
        self.backend = self.backend.lower()
        if self.backend not in FIRESTORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown Firestore backend '{self.backend}'. "
                f"Expected one of: {', '.join(FIRESTORE_BACKENDS)}"
            )
        if isinstance(self.service_account_path, str):
            self.service_account_path = Path(self.service_account_path)

    @classmethod
    def from_env(
        cls, prefix: str = "BCUP", env: Optional[Mapping[str, str]] = None
    ) -> "FirestoreSettings":
        """Environment variables:
            {prefix}_FIRESTORE_BACKEND, {prefix}_FIRESTORE_PROJECT_ID,
            {prefix}_SERVICE_ACCOUNT_PATH, {prefix}_FIRESTORE_DATABASE
        """
        values = _env(env)
        sa_path = values.get(f"{prefix}_SERVICE_ACCOUNT_PATH")
        return cls(
            backend=values.get(f"{prefix}_FIRESTORE_BACKEND", "none"),
            project_id=values.get(f"{prefix}_FIRESTORE_PROJECT_ID"),
            service_account_path=Path(sa_path) if sa_path else None,
            database=values.get(f"{prefix}_FIRESTORE_DATABASE", "(default)"),
        )


@dataclass
class SecuritySettings:
    """HTTP hardening

    Attributes:
        rate_limit: Max requests per client address per window
        rate_window_seconds: Rate-limit window length
        cors_origins: Allowed origins ("*" for all)
    """

    rate_limit: int = 100
    rate_window_seconds: int = 3600
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(
        cls, prefix: str = "BCUP", env: Optional[Mapping[str, str]] = None
    ) -> "SecuritySettings":
        """Environment variables:
            {prefix}_RATE_LIMIT, {prefix}_RATE_WINDOW_SECONDS, {prefix}_CORS_ORIGINS
        """
        values = _env(env)
        origins = values.get(f"{prefix}_CORS_ORIGINS", "*")
        return cls(
            rate_limit=int(values.get(f"{prefix}_RATE_LIMIT", "100")),
            rate_window_seconds=int(values.get(f"{prefix}_RATE_WINDOW_SECONDS", "3600")),
            cors_origins=["*"] if origins == "*" else [
                o.strip() for o in origins.split(",") if o.strip()
            ],
        )


@dataclass
class LogSettings:
    """Logging configuration

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Log format (console or json)
    """

    level: str = "INFO"
    format: str = "console"

    @classmethod
    def from_env(
        cls, prefix: str = "BCUP", env: Optional[Mapping[str, str]] = None
    ) -> "LogSettings":
        """Environment variables: {prefix}_LOG_LEVEL, {prefix}_LOG_FORMAT"""
        values = _env(env)
        return cls(
            level=values.get(f"{prefix}_LOG_LEVEL", "INFO").upper(),
            format=values.get(f"{prefix}_LOG_FORMAT", "console").lower(),
        )


@dataclass
class Settings:
    """Complete application settings

    Attributes:
        server: Network server settings
        storage: Backup file location
        firestore: Document database connection
        security: Rate limiting and CORS
        log: Logging settings
        prefix: Environment variable prefix used
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    firestore: FirestoreSettings = field(default_factory=FirestoreSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    log: LogSettings = field(default_factory=LogSettings)
    prefix: str = "BCUP"

    @classmethod
    def from_env(
        cls, prefix: str = "BCUP", env: Optional[Mapping[str, str]] = None
    ) -> "Settings":
        """Load complete settings from environment variables

        Args:
            prefix: Environment variable prefix (default: BCUP)
            env: Mapping to read from (default: os.environ)
        """
        return cls(
            server=ServerSettings.from_env(prefix, env),
            storage=StorageSettings.from_env(prefix, env),
            firestore=FirestoreSettings.from_env(prefix, env),
            security=SecuritySettings.from_env(prefix, env),
            log=LogSettings.from_env(prefix, env),
            prefix=prefix,
        )

    def validate(self) -> None:
        """Check cross-field consistency.

        Raises:
            ConfigurationError: If the selected backend lacks what it needs
        """
        if self.firestore.backend == "rest" and not self.firestore.service_account_path:
            raise ConfigurationError(
                f"REST backend requires {self.prefix}_SERVICE_ACCOUNT_PATH"
            )
        if self.firestore.backend in ("native", "rest") and not (
            self.firestore.project_id or self.firestore.service_account_path
        ):
            raise ConfigurationError(
                f"{self.firestore.backend} backend requires {self.prefix}_FIRESTORE_PROJECT_ID "
                f"or {self.prefix}_SERVICE_ACCOUNT_PATH"
            )


# Global settings storage per prefix
_global_settings: dict[str, Settings] = {}


def get_settings(
    prefix: str = "BCUP",
    reload: bool = False,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Get or create the settings instance for a prefix

    Args:
        prefix: Environment variable prefix
        reload: If True, reload settings from environment
        env: Mapping to read from (default: os.environ)
    """
    if prefix not in _global_settings or reload:
        settings = Settings.from_env(prefix=prefix, env=env)
        settings.validate()
        _global_settings[prefix] = settings

    return _global_settings[prefix]


def reset_settings(prefix: Optional[str] = None) -> None:
    """Reset cached settings (primarily for testing)"""
    if prefix:
        _global_settings.pop(prefix, None)
    else:
        _global_settings.clear()
