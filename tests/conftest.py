"""Shared fixtures for bcup tests."""

import gzip
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from bcup.backup import BackupConfig, BackupService
from bcup.firestore import MemoryDatabase
from bcup.storage import FileBackupStore


@pytest.fixture
def backup_root(tmp_path: Path) -> Path:
    return tmp_path / "backups"


@pytest.fixture
def store(backup_root: Path) -> FileBackupStore:
    return FileBackupStore(backup_root)


@pytest.fixture
def write_backup(store: FileBackupStore) -> Callable[..., Path]:
    """Write a gzip JSON file into a project's directory.

    ``mtime`` (epoch seconds) pins the modification time so ordering
    tests do not depend on the clock.
    """

    def _write(project: str, name: str, payload: Any, mtime: Optional[float] = None) -> Path:
        project_store = store.for_project(project)
        raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        project_store.write(name, gzip.compress(raw))
        path = project_store.root / name
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _write


class FixedClock:
    """Clock returning a settable time, advanced by one second per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current.replace(second=(current.second + 1) % 60)
        return current


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def database() -> MemoryDatabase:
    return MemoryDatabase(
        {
            "parts": [{"id": "p1", "name": "bolt"}, {"id": "p2", "name": "nut"}],
            "orders": [{"id": "o1", "total": 12.5, "items": ["p1", "p2"]}],
            "users": [{"id": "u1", "email": "a@example.com"}],
        }
    )


@pytest.fixture
def service(store: FileBackupStore, database: MemoryDatabase, clock: FixedClock) -> BackupService:
    return BackupService(store, database=database, config=BackupConfig(), clock=clock)


@pytest.fixture
def offline_service(store: FileBackupStore, clock: FixedClock) -> BackupService:
    """Service without a server-side database (client-side SDK deployment)"""
    return BackupService(store, database=None, config=BackupConfig(), clock=clock)
