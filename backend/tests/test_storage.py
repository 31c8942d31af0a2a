"""Tests for the local blob store."""

from pathlib import Path

import pytest

from files_manager.files.storage import BlobStore


def test_write_creates_root_and_returns_path_under_it(tmp_path) -> None:
    """Root directory is created on first write (recursively)."""
    root = tmp_path / "a" / "b"
    store = BlobStore(root)
    path = store.write(b"hello")
    assert root.is_dir()
    assert Path(path).parent == root
    assert store.read(path) == b"hello"


def test_write_twice_gives_distinct_paths(tmp_path) -> None:
    store = BlobStore(tmp_path)
    assert store.write(b"x") != store.write(b"x")


def test_write_leaves_no_temp_files(tmp_path) -> None:
    store = BlobStore(tmp_path)
    path = store.write(b"data")
    assert [p.name for p in tmp_path.iterdir()] == [Path(path).name]


def test_read_missing_raises(tmp_path) -> None:
    store = BlobStore(tmp_path)
    with pytest.raises(FileNotFoundError):
        store.read(str(tmp_path / "missing"))


def test_exists(tmp_path) -> None:
    store = BlobStore(tmp_path)
    path = store.write(b"1")
    assert store.exists(path) is True
    assert store.exists(str(tmp_path / "nope")) is False


def test_paths_outside_root_are_not_found(tmp_path) -> None:
    """A tampered local_path pointing outside the root is treated as missing."""
    outside = tmp_path / "secret.txt"
    outside.write_text("secret")
    store = BlobStore(tmp_path / "blobs")
    assert store.exists(str(outside)) is False
    with pytest.raises(FileNotFoundError):
        store.read(str(outside))
    with pytest.raises(FileNotFoundError):
        store.read(str(tmp_path / "blobs" / ".." / "secret.txt"))


def test_write_derived(tmp_path) -> None:
    """Derived blobs sit next to their source with a _<suffix>."""
    store = BlobStore(tmp_path)
    path = store.write(b"image")
    derived = store.write_derived(path, "250", b"thumb")
    assert derived == f"{path}_250"
    assert store.read(derived) == b"thumb"
