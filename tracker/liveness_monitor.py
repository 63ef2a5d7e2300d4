"""Background sweep evicting peers that stopped sending heartbeats."""

import asyncio
import time
from typing import Callable, List, Optional

from common.logging_config import get_logger
from tracker.exceptions import PeerNotFoundError
from tracker.locks import PeerLockRegistry
from tracker.repositories.file_repository import FileRepository
from tracker.repositories.peer_repository import PeerRepository

logger = get_logger(__name__)


class LivenessMonitor:
    """
    Evicts peers (and their advertisements) whose last heartbeat is older
    than the staleness window. Eviction is routine and never raised.
    """

    def __init__(
        self,
        peer_repository: PeerRepository,
        file_repository: FileRepository,
        locks: PeerLockRegistry,
        staleness_seconds: float = 60,
        sweep_interval: float = 30,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            peer_repository: Directory of active peers
            file_repository: Advertisement index
            locks: Lock registry shared with the tracker service
            staleness_seconds: Seconds without heartbeat before eviction (default: 60)
            sweep_interval: Seconds between sweeps (default: 30)
            clock: Time source returning epoch seconds
        """
        self.peers = peer_repository
        self.files = file_repository
        self.locks = locks
        self.staleness_seconds = staleness_seconds
        self.sweep_interval = sweep_interval
        self.clock = clock
        self._running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the background sweep."""
        if self._running:
            logger.warning("Liveness monitor already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(
            f"Liveness monitor started (interval={self.sweep_interval}s, "
            f"staleness={self.staleness_seconds}s)"
        )

    async def stop(self) -> None:
        """Stop the background sweep and wait for it to exit."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Liveness monitor stopped")

    @property
    def running(self) -> bool:
        return self._running

    async def _run(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.sweep_interval)
                if not self._running:
                    break
                await self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in liveness sweep: {e}", exc_info=True)

    async def sweep_once(self, now: Optional[float] = None) -> List[str]:
        """
        Run one eviction pass.

        Returns:
            Usernames evicted in this pass
        """
        if now is None:
            now = self.clock()

        evicted = []
        for username in self.peers.stale_usernames(now, self.staleness_seconds):
            async with self.locks.hold(username):
                # a heartbeat may have landed while we waited for the lock
                if self.peers.is_live(username, now, self.staleness_seconds):
                    continue

                removed_files = self.files.remove_all(username)
                try:
                    self.peers.remove(username)
                except PeerNotFoundError:
                    continue
                evicted.append(username)
                logger.info(f"Evicted stale peer {username} ({removed_files} advertisement(s) dropped)")

        if evicted:
            logger.info(f"Liveness sweep evicted {len(evicted)} peer(s)")
        else:
            logger.debug("Liveness sweep found no stale peers")
        return evicted
