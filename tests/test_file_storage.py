"""Tests for the file-based state storage adapter."""

import pytest

from parish.adapters.file_storage import FileStateStorage
from parish.errors import CorruptStateError


@pytest.fixture
def storage(tmp_path):
    return FileStateStorage(tmp_path / "data")


class TestFileStateStorage:
    def test_creates_directory(self, storage):
        assert storage.data_dir.is_dir()

    def test_missing_namespace(self, storage):
        assert storage.load("journal") is None
        assert storage.exists("journal") is False

    def test_save_and_load(self, storage):
        storage.save("settings", {"reminder_hour": 6})
        assert storage.load("settings") == {"reminder_hour": 6}
        assert storage.exists("settings")
        assert not list(storage.data_dir.glob("*.tmp"))

    def test_save_replaces(self, storage):
        storage.save("session", {"day": "2025-01-14"})
        storage.save("session", {"day": "2025-01-15"})
        assert storage.load("session") == {"day": "2025-01-15"}

    def test_corrupt_file(self, storage):
        (storage.data_dir / "journal.json").write_text("{oops")
        with pytest.raises(CorruptStateError):
            storage.load("journal")

    def test_non_object(self, storage):
        (storage.data_dir / "journal.json").write_text("[1, 2]")
        with pytest.raises(CorruptStateError):
            storage.load("journal")
