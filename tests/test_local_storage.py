"""Tests for the local file storage backend."""

from __future__ import annotations

from io import BytesIO

import pytest

from storage.local_storage import LocalStorage


def test_save_exists_and_delete(tmp_path):
    storage = LocalStorage(str(tmp_path / "uploads"))

    name = storage.save(BytesIO(b"data"), "poster.png")

    assert name == "poster.png"
    assert storage.exists(name)
    assert storage.delete(name) is True
    assert not storage.exists(name)
    assert storage.delete(name) is False


def test_paths_outside_the_directory_are_ignored(tmp_path):
    outside = tmp_path / "secret.txt"
    outside.write_text("keep me")
    storage = LocalStorage(str(tmp_path / "uploads"))

    assert storage.exists("../secret.txt") is False
    assert storage.delete("../secret.txt") is False
    assert outside.read_text() == "keep me"


def test_unique_name_keeps_lowercased_extension():
    first = LocalStorage.unique_name("Poster.JPG")
    second = LocalStorage.unique_name("Poster.JPG")

    assert first.endswith(".jpg")
    assert first != second


def test_save_rejects_unusable_filename(tmp_path):
    storage = LocalStorage(str(tmp_path / "uploads"))
    with pytest.raises(ValueError):
        storage.save(BytesIO(b"x"), "../")
