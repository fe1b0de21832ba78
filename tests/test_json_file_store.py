"""Tests for file-backed key/value storage."""

import pytest

from recallchat.infrastructure.storage.json_file_store import JsonFileStorage


@pytest.fixture
def file_storage(tmp_path) -> JsonFileStorage:
    return JsonFileStorage(str(tmp_path / "data"))


def test_round_trip_utf8(file_storage) -> None:
    file_storage.set("conversations", '{"title": "Türkçe sohbet"}')
    assert file_storage.get("conversations") == '{"title": "Türkçe sohbet"}'


def test_missing_key_is_none(file_storage) -> None:
    assert file_storage.get("active_conversation") is None


def test_overwrite(file_storage) -> None:
    file_storage.set("ui_theme", "dark")
    file_storage.set("ui_theme", "light")
    assert file_storage.get("ui_theme") == "light"


def test_delete(file_storage) -> None:
    file_storage.set("ui_theme", "dark")
    file_storage.delete("ui_theme")
    file_storage.delete("ui_theme")
    assert file_storage.get("ui_theme") is None


@pytest.mark.parametrize("key", ["../escape", "a/b", "", "with space"])
def test_invalid_keys_rejected(file_storage, key) -> None:
    with pytest.raises(ValueError):
        file_storage.set(key, "x")


def test_no_temporary_files_left(file_storage, tmp_path) -> None:
    file_storage.set("conversations", "{}")
    files = sorted(p.name for p in (tmp_path / "data").iterdir())
    assert files == ["conversations.json"]
