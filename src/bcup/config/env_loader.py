"""Environment loader with optional .env support.

Values are merged in deterministic order, later sources winning:
1) .env file (explicit path, else ./.env when present)
2) OS environment variables
3) Explicit overrides
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, MutableMapping, Optional

from dotenv import dotenv_values

if TYPE_CHECKING:
    from bcup.config.settings import Settings


class EnvLoader:
    """Load bcup configuration from a .env file and the process environment."""

    def __init__(self, env_file: Optional[Path | str] = None, prefix: str = "BCUP") -> None:
        self.env_file = Path(env_file) if env_file else None
        self.prefix = prefix

    def _file_values(self) -> Mapping[str, str]:
        env_path = self.env_file or Path.cwd() / ".env"
        if not env_path.exists():
            return {}
        return {k: v for k, v in dotenv_values(env_path).items() if v is not None}

    def load(self, overrides: Optional[Mapping[str, str]] = None) -> MutableMapping[str, str]:
        """Return the merged mapping of all variables."""
        data: MutableMapping[str, str] = dict(self._file_values())
        data.update(os.environ)
        if overrides:
            data.update({k: str(v) for k, v in overrides.items()})
        return data

    def load_prefixed(
        self, overrides: Optional[Mapping[str, str]] = None
    ) -> MutableMapping[str, str]:
        """Return only the variables starting with ``{prefix}_``."""
        marker = f"{self.prefix}_"
        return {k: v for k, v in self.load(overrides).items() if k.startswith(marker)}

    def settings(self, overrides: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build validated Settings from the merged mapping."""
        from bcup.config.settings import Settings

        settings = Settings.from_env(prefix=self.prefix, env=self.load_prefixed(overrides))
        settings.validate()
        return settings


__all__ = ["EnvLoader"]
