"""Heartbeat service keeping a logged-in peer's presence record fresh."""

import asyncio
from typing import Optional

import aiohttp

from common.logging_config import get_logger
from common.types import PeerAddress

logger = get_logger(__name__)


class HeartbeatService:
    """
    Sends a heartbeat to the tracker on a fixed schedule.

    A failed heartbeat is logged and otherwise ignored; the next one still
    fires on schedule. The tracker evicts peers silently, so a 404 here means
    this peer must log in again.
    """

    def __init__(
        self,
        tracker_url: str,
        username: str,
        address: PeerAddress,
        interval: float = 30,
        timeout: float = 3,
    ):
        self.tracker_url = tracker_url.rstrip("/")
        self.username = username
        self.address = address
        self.interval = interval
        self.timeout = timeout
        self.sent = 0
        self.failures = 0
        self.last_status: Optional[int] = None
        self._running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start heartbeat background task"""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._heartbeat_loop())
        logger.info(f"Heartbeat service started - username={self.username}, addr={self.address}, interval={self.interval}s")

    async def stop(self) -> None:
        """Stop heartbeat background task"""
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
        logger.info("Heartbeat service stopped")

    @property
    def running(self) -> bool:
        return self._running

    async def _heartbeat_loop(self) -> None:
        """Send periodic heartbeat to the tracker"""
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while self._running:
            try:
                await self.send_heartbeat()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failures += 1
                logger.error(f"Heartbeat failed: {e}")

            next_tick += self.interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))

    async def send_heartbeat(self) -> bool:
        """
        Send a single heartbeat.

        Returns:
            True on success, False on failure
        """
        payload = {
            "username": self.username,
            "ip": self.address.ip,
            "port": self.address.port,
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{self.tracker_url}/heartbeat",
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as resp:
                    self.last_status = resp.status
                    if resp.status == 200:
                        self.sent += 1
                        logger.debug(f"Heartbeat sent for {self.username}")
                        return True
                    if resp.status == 404:
                        logger.warning(
                            f"Tracker no longer knows {self.username}; log in again to restore presence"
                        )
                    else:
                        logger.warning(f"Heartbeat returned {resp.status}")
                    self.failures += 1
                    return False

        except asyncio.TimeoutError:
            logger.warning(f"Heartbeat to {self.tracker_url} timed out")
        except aiohttp.ClientError as e:
            logger.warning(f"Heartbeat to {self.tracker_url} failed: {e}")

        self.failures += 1
        return False
