"""Tracker operations: registration, presence, publishing and discovery."""

import asyncio
import time
from typing import Callable, Iterable, List, Optional

from common.logging_config import get_logger
from common.types import FileAdvertisement, PeerAddress
from tracker.exceptions import PeerNotFoundError, ValidationError
from tracker.locks import PeerLockRegistry
from tracker.repositories.file_repository import FileRepository
from tracker.repositories.peer_repository import Peer, PeerRepository

logger = get_logger(__name__)


def validate_filenames(filenames: Iterable[str]) -> List[str]:
    """
    Reject names that are empty or that could address anything outside a
    peer's shared directory.

    Raises:
        ValidationError: On the first invalid name
    """
    names = list(filenames)
    for name in names:
        if not name or not name.strip():
            raise ValidationError("Filenames must not be empty")
        if "/" in name or "\\" in name or name in (".", ".."):
            raise ValidationError(f"Invalid filename: {name!r}")
        if "\n" in name or "\r" in name or "\x00" in name:
            raise ValidationError(f"Invalid filename: {name!r}")
    return names


class TrackerService:
    """
    System-of-record boundary composing the peer directory and file index.

    All mutations for one username run under that username's lock from
    ``locks``; the liveness sweep uses the same registry.
    """

    def __init__(
        self,
        peer_repository: PeerRepository,
        file_repository: FileRepository,
        locks: Optional[PeerLockRegistry] = None,
        staleness_seconds: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.peers = peer_repository
        self.files = file_repository
        self.locks = locks or PeerLockRegistry()
        self.staleness_seconds = staleness_seconds
        self.clock = clock

    async def register(self, username: str, password: str, address: PeerAddress) -> Peer:
        logger.info(f"Register request: {username} @ {address}")
        async with self.locks.hold(username):
            return await asyncio.to_thread(
                self.peers.register, username, password, address, self.clock()
            )

    async def login(self, username: str, password: str, address: PeerAddress) -> str:
        logger.info(f"Login attempt: {username} @ {address}")
        async with self.locks.hold(username):
            await asyncio.to_thread(self.peers.authenticate, username, password)
            previous = self.peers.get(username)
            self.peers.touch_login(username, address, self.clock())
            if previous is not None and previous.address != address:
                self._realign_advertisements(username, address)
        logger.info(f"Login successful: {username}")
        return username

    async def heartbeat(self, username: str, address: PeerAddress) -> Peer:
        async with self.locks.hold(username):
            previous = self.peers.get(username)
            peer = self.peers.touch_heartbeat(username, address, self.clock())
            if previous is not None and previous.address != address:
                self._realign_advertisements(username, address)
        logger.debug(f"Heartbeat updated: {username} @ {address}")
        return peer

    async def disconnect(self, username: str) -> bool:
        """
        Drop the peer's advertisements, then its presence record.

        Returns:
            True if a presence record was removed, False if it was already absent
        """
        async with self.locks.hold(username):
            removed_files = self.files.remove_all(username)
            try:
                self.peers.remove(username)
            except PeerNotFoundError:
                logger.info(f"Disconnect for absent peer {username}, nothing to remove")
                return False
        logger.info(f"Peer disconnected: {username} ({removed_files} advertisement(s) dropped)")
        return True

    async def publish(self, username: str, filenames: Iterable[str], address: PeerAddress) -> int:
        """
        Replace the peer's entire advertisement set.

        Raises:
            ValidationError: Invalid filename, or address is not the peer's current one
            PeerNotFoundError: The peer is not logged in
        """
        names = validate_filenames(filenames)
        async with self.locks.hold(username):
            peer = self.peers.get(username)
            if peer is None:
                logger.warning(f"Publish rejected: {username} has no active presence record")
                raise PeerNotFoundError(f"Peer '{username}' not found")
            if peer.address != address:
                logger.warning(f"Publish rejected: {username} is at {peer.address}, not {address}")
                raise ValidationError(
                    f"Address {address} does not match the current address of '{username}'"
                )
            ads = self.files.replace_advertisements(username, names, address, self.clock())
        return len(ads)

    async def query(self, filename: str = "", username: str = "") -> List[FileAdvertisement]:
        """
        Find advertisements from live peers. Liveness is evaluated now, not
        taken from the last sweep. Search is this same call with filters.
        """
        live = self.peers.live_usernames(self.clock(), self.staleness_seconds)
        results = self.files.search(filename or "", username or "", live)
        logger.debug(
            f"Query filename={filename!r} username={username!r}: "
            f"{len(results)} result(s) from {len(live)} live peer(s)"
        )
        return results

    search = query

    async def list_live_peers(self) -> List[Peer]:
        now = self.clock()
        return [
            peer for peer in self.peers.list_peers()
            if now - peer.last_heartbeat <= self.staleness_seconds
        ]

    def _realign_advertisements(self, username: str, address: PeerAddress) -> None:
        """Re-issue the current advertisement set at the peer's new address."""
        current = self.files.list_for(username)
        if not current:
            return
        self.files.replace_advertisements(
            username, [ad.filename for ad in current], address, self.clock()
        )
        logger.info(f"Advertisements for {username} moved to {address}")
