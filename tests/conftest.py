"""Shared pytest fixtures for all tests."""

from pathlib import Path

import pytest

from cli.config import Config
from peer.shared_storage import SharedStorage
from tracker.database import init_database
from tracker.locks import PeerLockRegistry
from tracker.repositories.file_repository import FileRepository
from tracker.repositories.peer_repository import PeerRepository
from tracker.services.tracker_service import TrackerService


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_path(tmp_path) -> str:
    """
    Create and initialize a temporary tracker database.

    Returns:
        Path to the SQLite file as a string
    """
    path = str(tmp_path / "tracker.db")
    init_database(path)
    return path


@pytest.fixture
def peer_repo(db_path):
    return PeerRepository(db_path)


@pytest.fixture
def file_repo(db_path):
    return FileRepository(db_path)


@pytest.fixture
def locks():
    return PeerLockRegistry()


@pytest.fixture
def service(peer_repo, file_repo, locks, clock):
    return TrackerService(peer_repo, file_repo, locks=locks, staleness_seconds=60, clock=clock)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .peerlink directory
    """
    config_dir = tmp_path / '.peerlink'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def make_storage(tmp_path):
    """Factory for per-peer shared/downloads directories under tmp_path."""
    def _make(name: str) -> SharedStorage:
        root = tmp_path / name
        return SharedStorage(root / "shared", root / "downloads")
    return _make


@pytest.fixture
def sample_file(tmp_path) -> Path:
    """
    Create a sample file outside any shared directory.

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'notes.txt'
    file_path.write_text('Sample content for testing')
    return file_path
