"""Tests for storage adapters."""

import json
from pathlib import Path

import pytest

from finance_tracker.errors import StorageError
from finance_tracker.storage import JsonFileStorage, MemoryStorage


class TestMemoryStorage:
    """Tests for MemoryStorage."""

    def test_get_missing_key(self) -> None:
        assert MemoryStorage().get("transactions") is None

    def test_set_then_get(self) -> None:
        storage = MemoryStorage()
        storage.set("transactions", "[]")
        assert storage.get("transactions") == "[]"
        assert storage.keys() == ["transactions"]

    def test_initial_data_is_copied(self) -> None:
        """Test that the initial mapping is not aliased."""
        initial = {"transactions": "[]"}
        storage = MemoryStorage(initial)
        storage.set("transactions", "[1]")
        assert initial["transactions"] == "[]"

    def test_name(self) -> None:
        assert MemoryStorage().name == "MemoryStorage"


class TestJsonFileStorage:
    """Tests for JsonFileStorage."""

    def test_missing_file_reads_as_empty(self, tmp_path: Path) -> None:
        """Test that a store without a file has no keys."""
        storage = JsonFileStorage(tmp_path / "data.json")
        assert storage.get("transactions") is None
        assert not (tmp_path / "data.json").exists()

    def test_set_creates_file_and_directories(self, tmp_path: Path) -> None:
        """Test the on-disk layout after a write."""
        path = tmp_path / "nested" / "dir" / "data.json"
        storage = JsonFileStorage(path)

        storage.set("transactions", '[{"id": 1}]')

        assert json.loads(path.read_text(encoding="utf-8")) == {"transactions": '[{"id": 1}]'}

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        """Test that a second instance reads what the first wrote."""
        path = tmp_path / "data.json"
        JsonFileStorage(path).set("transactions", "[]")
        JsonFileStorage(path).set("other", "x")

        storage = JsonFileStorage(path)

        assert storage.get("transactions") == "[]"
        assert storage.get("other") == "x"

    def test_no_temporary_files_left(self, tmp_path: Path) -> None:
        """Test that atomic writes clean up after themselves."""
        storage = JsonFileStorage(tmp_path / "data.json")
        storage.set("a", "1")
        storage.set("b", "2")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["data.json"]

    def test_empty_file_reads_as_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "data.json"
        path.write_text("   \n", encoding="utf-8")
        assert JsonFileStorage(path).get("transactions") is None

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        """Test that a corrupt document raises StorageError."""
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError, match="not valid JSON"):
            JsonFileStorage(path).get("transactions")

    def test_non_object_raises(self, tmp_path: Path) -> None:
        """Test that a document that is not an object raises StorageError."""
        path = tmp_path / "data.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(StorageError, match="JSON object"):
            JsonFileStorage(path).get("transactions")
