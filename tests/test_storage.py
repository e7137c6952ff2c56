"""Unit tests for auth/storage.py -- the JSON file and in-memory backends."""

from __future__ import annotations

import json
import warnings
from pathlib import Path

import pytest

from auth.errors import StorageError
from auth.storage import JsonFileStorage, MemoryStorage


class TestJsonFileStorage:
    def test_first_load_creates_empty_document(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "users.json"
        storage = JsonFileStorage(path)
        assert storage.load() == []
        assert json.loads(path.read_text()) == {"users": []}

    def test_save_replaces_whole_document(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "users.json")
        storage.save([{"id": "user_1", "name": "Ann"}])
        storage.save([{"id": "user_2", "name": "Bob"}])
        assert storage.load() == [{"id": "user_2", "name": "Bob"}]

    def test_no_temp_files_left_behind(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "users.json")
        storage.save([{"id": "user_1", "name": "Ann"}])
        assert [p.name for p in tmp_path.iterdir()] == ["users.json"]

    def test_retry_policy_builds_without_deprecation_warnings(self, tmp_path: Path) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            storage = JsonFileStorage(tmp_path / "users.json")
            assert storage.load() == []

    def test_survives_new_instance(self, tmp_path: Path) -> None:
        path = tmp_path / "users.json"
        JsonFileStorage(path).save([{"id": "user_1", "name": "Ann"}])
        assert JsonFileStorage(path).load() == [{"id": "user_1", "name": "Ann"}]

    def test_document_without_users_key_loads_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "users.json"
        path.write_text("{}")
        assert JsonFileStorage(path).load() == []

    @pytest.mark.parametrize("content", ["{not json", "[]", '{"users": {"id": 1}}', '{"users": null}'])
    def test_corrupt_or_unexpected_document(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "users.json"
        path.write_text(content)
        with pytest.raises(StorageError):
            JsonFileStorage(path).load()

    def test_transient_read_error_is_retried(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "users.json"
        storage = JsonFileStorage(path, retry_attempts=3)
        storage.save([{"id": "user_1", "name": "Ann"}])

        real_read_text = Path.read_text
        calls = {"n": 0}

        def flaky_read_text(self, *args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OSError("resource temporarily unavailable")
            return real_read_text(self, *args, **kwargs)

        monkeypatch.setattr(Path, "read_text", flaky_read_text)
        assert storage.load() == [{"id": "user_1", "name": "Ann"}]
        assert calls["n"] == 2

    def test_persistent_read_error_becomes_storage_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "users.json"
        storage = JsonFileStorage(path, retry_attempts=2)
        storage.save([])

        calls = {"n": 0}

        def broken_read_text(self, *args, **kwargs):
            calls["n"] += 1
            raise OSError("disk on fire")

        monkeypatch.setattr(Path, "read_text", broken_read_text)
        with pytest.raises(StorageError):
            storage.load()
        assert calls["n"] == 2

    def test_write_failure_becomes_storage_error(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        storage = JsonFileStorage(tmp_path / "users.json")
        storage.load()

        def failing_replace(src, dst):
            raise OSError("read-only file system")

        monkeypatch.setattr("auth.storage.os.replace", failing_replace)
        with pytest.raises(StorageError):
            storage.save([{"id": "user_1", "name": "Ann"}])
        assert [p.name for p in tmp_path.iterdir()] == ["users.json"]


class TestMemoryStorage:
    def test_round_trip(self) -> None:
        storage = MemoryStorage()
        storage.save([{"id": "user_1", "name": "Ann"}])
        assert storage.load() == [{"id": "user_1", "name": "Ann"}]

    def test_load_returns_copies(self) -> None:
        storage = MemoryStorage([{"id": "user_1", "name": "Ann"}])
        storage.load()[0]["name"] = "Mallory"
        assert storage.load()[0]["name"] == "Ann"
