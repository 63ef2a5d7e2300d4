"""
Peer session lifecycle.

A PeerNode owns the transfer listener, the tracker client and the heartbeat
service for one local user. Logging in starts the listener (if needed),
authenticates with the tracker, publishes the shared directory and starts
heartbeats; stopping undoes all of it in reverse order.
"""

from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from common.logging_config import get_logger
from common.types import FileAdvertisement, PeerAddress
from peer import config
from peer.exceptions import NoSourceError, PeerError, RemoteFileNotFoundError, TransportError
from peer.heartbeat_service import HeartbeatService
from peer.network import get_local_ip
from peer.shared_storage import SharedStorage
from peer.tracker_client import TrackerClient
from peer.transfer_client import ProgressCallback, TransferClient
from peer.transfer_listener import TransferListener
from peer.transfer_session import TransferResult

logger = get_logger(__name__)

HeartbeatFactory = Callable[[str, PeerAddress], HeartbeatService]


class PeerNode:
    """A single user's presence in the network plus its file server."""

    def __init__(
        self,
        tracker_client: TrackerClient,
        storage: SharedStorage,
        listen_host: str = config.LISTEN_HOST,
        listen_port: int = config.LISTEN_PORT,
        advertise_ip: Optional[str] = config.ADVERTISE_IP,
        heartbeat_interval: float = config.HEARTBEAT_INTERVAL,
        heartbeat_factory: Optional[HeartbeatFactory] = None,
        transfer_client: Optional[TransferClient] = None,
    ):
        self.tracker = tracker_client
        self.storage = storage
        self.listener = TransferListener(
            storage,
            host=listen_host,
            port=listen_port,
            read_timeout=config.READ_TIMEOUT,
        )
        self.transfers = transfer_client or TransferClient(
            storage,
            connect_timeout=config.CONNECT_TIMEOUT,
            read_timeout=config.READ_TIMEOUT,
        )
        self.advertise_ip = advertise_ip or get_local_ip()
        self.heartbeat_interval = heartbeat_interval
        self._heartbeat_factory = heartbeat_factory or self._default_heartbeat
        self.heartbeat: Optional[HeartbeatService] = None
        self.username: Optional[str] = None

    @classmethod
    def from_config(cls, tracker_url: str = config.TRACKER_URL) -> "PeerNode":
        """Build a node from environment configuration."""
        return cls(
            tracker_client=TrackerClient(tracker_url),
            storage=SharedStorage(config.SHARED_DIR, config.DOWNLOADS_DIR),
        )

    def _default_heartbeat(self, username: str, address: PeerAddress) -> HeartbeatService:
        return HeartbeatService(
            self.tracker.base_url,
            username,
            address,
            interval=self.heartbeat_interval,
        )

    @property
    def address(self) -> PeerAddress:
        return self.listener.address(self.advertise_ip)

    @property
    def logged_in(self) -> bool:
        return self.username is not None

    async def start_listener(self) -> PeerAddress:
        if not self.listener.is_serving:
            await self.listener.start()
        return self.address

    async def register(self, username: str, password: str) -> PeerAddress:
        """
        Create an account on the tracker. The tracker also records this peer
        as present at the returned address.
        """
        address = await self.start_listener()
        await self.tracker.register(username, password, address)
        logger.info(f"Registered {username} at {address}")
        return address

    async def login(self, username: str, password: str) -> int:
        """
        Log in, publish the shared directory and start heartbeats.

        Returns:
            Number of files published

        Raises:
            TrackerRequestError: Unknown user or wrong password
            TrackerUnavailableError: Tracker unreachable
        """
        if self.logged_in and self.username != username:
            await self.logout()

        address = await self.start_listener()
        self.username = await self.tracker.login(username, password, address)
        logger.info(f"Logged in as {self.username} at {address}")

        count = await self.publish_shared()

        if self.heartbeat is not None:
            await self.heartbeat.stop()
        self.heartbeat = self._heartbeat_factory(self.username, address)
        await self.heartbeat.start()
        return count

    async def publish_shared(self) -> int:
        """Advertise exactly the files currently in the shared directory."""
        username = self._require_login()
        filenames = self.storage.list_shared_files()
        count = await self.tracker.publish(username, filenames, self.address)
        logger.info(f"Published {count} shared file(s) for {username}")
        return count

    async def share(self, paths: Iterable[Union[str, Path]]) -> List[str]:
        """
        Copy local files into the shared directory and republish the whole set.

        Returns:
            Names under which the files are now shared

        Raises:
            FileNotFoundError: If a path is not an existing file
        """
        self._require_login()
        names = [self.storage.add_file(path) for path in paths]
        await self.publish_shared()
        return names

    async def search(self, filename: str = "", username: str = "") -> List[FileAdvertisement]:
        return await self.tracker.query(filename, username)

    async def list_peers(self) -> List[dict]:
        return await self.tracker.list_peers()

    async def download(
        self,
        filename: str,
        owner: Optional[str] = None,
        output_name: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransferResult:
        """
        Look up live holders of filename and fetch it from the first one that
        answers. Holders are tried in tracker order; a holder that is
        unreachable or no longer has the file is skipped.

        Raises:
            NoSourceError: No live peer advertises filename
            TransferError: Every holder failed; the last failure is raised
        """
        candidates = [
            ad for ad in await self.tracker.query(filename, owner or "")
            if ad.filename == filename
            and (owner is None or ad.owner == owner)
            and ad.owner != self.username
        ]
        if not candidates:
            raise NoSourceError(f"No live peer is sharing '{filename}'")

        last_error: Optional[PeerError] = None
        for ad in candidates:
            logger.info(f"Fetching {filename} from {ad.owner} at {ad.address}")
            try:
                return await self.transfers.fetch(
                    ad.address.ip,
                    ad.address.port,
                    filename,
                    output_name=output_name,
                    on_progress=on_progress,
                )
            except (TransportError, RemoteFileNotFoundError) as e:
                logger.warning(f"Download of {filename} from {ad.owner} failed: {e}")
                last_error = e
        raise last_error

    async def logout(self) -> None:
        """Stop heartbeats and remove this peer's presence from the tracker."""
        if self.heartbeat is not None:
            await self.heartbeat.stop()
            self.heartbeat = None

        if self.username is None:
            return
        username, self.username = self.username, None
        try:
            await self.tracker.disconnect(username)
            logger.info(f"Disconnected {username}")
        except PeerError as e:
            logger.warning(f"Disconnect for {username} failed, tracker will evict it: {e}")

    async def stop(self) -> None:
        await self.logout()
        await self.listener.stop()
        await self.tracker.close()

    def _require_login(self) -> str:
        if self.username is None:
            raise PeerError("Not logged in. Please run: login <username> <password>")
        return self.username
