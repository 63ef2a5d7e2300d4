"""Tests for the shared and downloads directories."""

import pytest


def test_directories_created(make_storage):
    storage = make_storage("alice")
    assert storage.shared_dir.is_dir()
    assert storage.downloads_dir.is_dir()


def test_list_shared_files_ignores_directories(make_storage):
    storage = make_storage("alice")
    (storage.shared_dir / "b.txt").write_text("b")
    (storage.shared_dir / "a.txt").write_text("a")
    (storage.shared_dir / "nested").mkdir()

    assert storage.list_shared_files() == ["a.txt", "b.txt"]


def test_resolve_shared_file(make_storage):
    storage = make_storage("alice")
    (storage.shared_dir / "a.txt").write_text("a")

    assert storage.resolve_shared_file("a.txt") == (storage.shared_dir / "a.txt").resolve()
    assert storage.resolve_shared_file("missing.txt") is None


@pytest.mark.parametrize("name", ["", ".", "..", "../secret.txt", "nested/a.txt", "..\\secret.txt"])
def test_resolve_refuses_escapes(make_storage, name):
    storage = make_storage("alice")
    (storage.shared_dir.parent / "secret.txt").write_text("secret")
    assert storage.resolve_shared_file(name) is None


def test_resolve_refuses_directories(make_storage):
    storage = make_storage("alice")
    (storage.shared_dir / "folder").mkdir()
    assert storage.resolve_shared_file("folder") is None


def test_add_file_copies_into_shared(make_storage, sample_file):
    storage = make_storage("alice")
    name = storage.add_file(sample_file)

    assert name == "notes.txt"
    assert (storage.shared_dir / "notes.txt").read_text() == sample_file.read_text()
    assert sample_file.exists()


def test_add_file_already_in_shared(make_storage):
    storage = make_storage("alice")
    path = storage.shared_dir / "a.txt"
    path.write_text("a")
    assert storage.add_file(path) == "a.txt"
    assert path.read_text() == "a"


def test_add_missing_file(make_storage, tmp_path):
    storage = make_storage("alice")
    with pytest.raises(FileNotFoundError):
        storage.add_file(tmp_path / "nope.txt")


def test_read_streaming_in_pieces(make_storage):
    storage = make_storage("alice")
    path = storage.shared_dir / "data.bin"
    path.write_bytes(b"x" * 25)

    pieces = list(storage.read_streaming(path, piece_size=10))
    assert [len(p) for p in pieces] == [10, 10, 5]


def test_download_path(make_storage):
    storage = make_storage("bob")
    assert storage.download_path("a.txt") == (storage.downloads_dir / "a.txt").resolve()
    with pytest.raises(ValueError):
        storage.download_path("../a.txt")
