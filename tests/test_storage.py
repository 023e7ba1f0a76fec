"""Tests for bcup.storage"""

import os
from pathlib import Path

import pytest

from bcup.exceptions import BackupFileNotFoundError
from bcup.storage import (
    BackupStore,
    FileBackupStore,
    InvalidNameError,
    StorageError,
    safe_file_name,
    sanitize_project_name,
)


class TestSanitizeProjectName:
    """Tests for project directory name sanitizing"""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_is_none(self, value):
        """Test that missing or blank names yield None"""
        assert sanitize_project_name(value) is None

    def test_safe_characters_kept(self):
        """Test that letters, digits, dash and underscore are kept"""
        assert sanitize_project_name("my-project_01") == "my-project_01"

    def test_unsafe_characters_replaced(self):
        """Test that other characters become underscores"""
        assert sanitize_project_name("../etc/passwd") == "___etc_passwd"
        assert sanitize_project_name("a b.c") == "a_b_c"

    def test_surrounding_whitespace_trimmed(self):
        """Test that the name is trimmed before sanitizing"""
        assert sanitize_project_name("  demo  ") == "demo"


class TestSafeFileName:
    """Tests for client-supplied file names"""

    def test_plain_name(self):
        """Test that a plain name passes through"""
        assert safe_file_name("backup_2024.json.gz") == "backup_2024.json.gz"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("../../secret.json.gz", "secret.json.gz"),
            ("/abs/path/x.json.gz", "x.json.gz"),
            ("..\\win\\y.json.gz", "y.json.gz"),
        ],
    )
    def test_directory_components_stripped(self, value, expected):
        """Test that only the base name survives"""
        assert safe_file_name(value) == expected

    @pytest.mark.parametrize("value", [None, "", "..", "dir/"])
    def test_unusable_names_raise(self, value):
        """Test that nothing-left names raise InvalidNameError"""
        with pytest.raises(InvalidNameError):
            safe_file_name(value)


class TestFileBackupStore:
    """Tests for FileBackupStore"""

    def test_is_backup_store(self, store):
        """Test that FileBackupStore implements the interface"""
        assert isinstance(store, BackupStore)

    def test_creates_root(self, tmp_path):
        """Test that the root directory is created"""
        FileBackupStore(tmp_path / "a" / "b")
        assert (tmp_path / "a" / "b").is_dir()

    def test_root_creation_failure(self, tmp_path):
        """Test that an unusable root raises StorageError"""
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(StorageError):
            FileBackupStore(blocker / "sub")

    def test_write_read_roundtrip(self, store):
        """Test basic write and read"""
        store.write("a.json.gz", b"payload")
        assert store.read("a.json.gz") == b"payload"
        assert store.exists("a.json.gz")

    def test_write_replaces(self, store):
        """Test that writing the same name replaces the content"""
        store.write("a.json.gz", b"one")
        store.write("a.json.gz", b"two")
        assert store.read("a.json.gz") == b"two"

    def test_write_leaves_no_temp_files(self, store):
        """Test that the atomic write cleans up its temporary file"""
        store.write("a.json.gz", b"payload")
        assert sorted(os.listdir(store.root)) == ["a.json.gz"]

    def test_write_failure_raises_storage_error(self, store, monkeypatch):
        """Test that a failed rename surfaces as StorageError without leftovers"""

        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", fail)
        with pytest.raises(StorageError):
            store.write("a.json.gz", b"payload")
        assert os.listdir(store.root) == []

    def test_read_missing_raises(self, store):
        """Test that reading a missing file raises BackupFileNotFoundError"""
        with pytest.raises(BackupFileNotFoundError) as exc_info:
            store.read("missing.json.gz")
        assert exc_info.value.details["file"] == "missing.json.gz"

    def test_open_streams_bytes(self, store):
        """Test that open returns a readable binary stream"""
        store.write("a.json.gz", b"payload")
        with store.open("a.json.gz") as f:
            assert f.read() == b"payload"

    def test_open_missing_raises(self, store):
        """Test that opening a missing file raises BackupFileNotFoundError"""
        with pytest.raises(BackupFileNotFoundError):
            store.open("missing.json.gz")

    def test_list_matches_pattern_sorted(self, store):
        """Test that list filters by glob and sorts names"""
        store.write("b.json.gz", b"1")
        store.write("a.json.gz", b"1")
        store.write("notes.txt", b"1")
        (store.root / "sub.json.gz").mkdir()

        assert store.list() == ["a.json.gz", "b.json.gz"]
        assert store.list("*.txt") == ["notes.txt"]

    def test_delete(self, store):
        """Test delete returns whether a file was removed"""
        store.write("a.json.gz", b"1")
        assert store.delete("a.json.gz") is True
        assert store.delete("a.json.gz") is False
        assert not store.exists("a.json.gz")

    def test_stat(self, store):
        """Test size and modification time"""
        path = store.root / "a.json.gz"
        store.write("a.json.gz", b"12345")
        os.utime(path, (1_700_000_000, 1_700_000_000))

        stat = store.stat("a.json.gz")
        assert stat.size == 5
        assert stat.mtime == 1_700_000_000

    def test_stat_missing_raises(self, store):
        """Test that stat on a missing file raises BackupFileNotFoundError"""
        with pytest.raises(BackupFileNotFoundError):
            store.stat("missing.json.gz")

    def test_path_traversal_is_confined(self, store, tmp_path):
        """Test that names with directory parts stay inside the root"""
        store.write("../escape.json.gz", b"1")
        assert (store.root / "escape.json.gz").exists()
        assert not (Path(store.root).parent / "escape.json.gz").exists()

    def test_path_of(self, store):
        """Test path_of returns the file path"""
        store.write("a.json.gz", b"1")
        assert store.path_of("a.json.gz") == store.root / "a.json.gz"
        with pytest.raises(BackupFileNotFoundError):
            store.path_of("missing.json.gz")


class TestProjectStores:
    """Tests for per-project subdirectories"""

    def test_for_project_creates_sanitized_dir(self, store):
        """Test that each project gets its own sanitized directory"""
        project_store = store.for_project("my project")
        assert project_store.root == store.root / "my_project"
        assert project_store.root.is_dir()

    def test_projects_are_isolated(self, store):
        """Test that files in one project are invisible to another"""
        store.for_project("a").write("x.json.gz", b"1")
        assert store.for_project("b").list() == []
        assert store.for_project("a").list() == ["x.json.gz"]

    @pytest.mark.parametrize("project", [None, "", "  "])
    def test_missing_project_raises(self, store, project):
        """Test that a blank project raises InvalidNameError"""
        with pytest.raises(InvalidNameError, match="No project specified"):
            store.for_project(project)
