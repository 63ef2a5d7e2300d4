"""Repository layer for data access."""

from tracker.repositories.peer_repository import Account, Peer, PeerRepository
from tracker.repositories.file_repository import FileRepository

__all__ = [
    "Account",
    "Peer",
    "PeerRepository",
    "FileRepository",
]
