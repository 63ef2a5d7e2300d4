"""Entry point for a headless peer node.
Logs in with credentials from the environment, serves the shared directory
and keeps the presence record alive until interrupted.
"""

import asyncio
import os
import signal
import sys

from common.logging_config import setup_logging
from peer.exceptions import PeerError, TrackerRequestError
from peer.node import PeerNode

logger = setup_logging('peer')


async def serve(node: PeerNode, username: str, password: str, register: bool = False) -> None:
    """
    Run the node until SIGINT/SIGTERM.

    Args:
        node: Configured PeerNode
        username: Account to log in as
        password: Account password
        register: Create the account first (an existing account is not an error)
    """
    stop_event = asyncio.Event()

    if register:
        try:
            await node.register(username, password)
        except TrackerRequestError as e:
            if e.code != "PEER_ALREADY_EXISTS":
                raise
            logger.info(f"Account {username} already exists, logging in")

    count = await node.login(username, password)
    logger.info(f"Peer {username} serving {count} file(s) at {node.address}")

    if sys.platform != 'win32':
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down...")
        await node.stop()
        logger.info("Peer stopped")


def main() -> None:
    """Bootstrap a peer node."""
    username = os.environ.get("PEERLINK_USERNAME")
    password = os.environ.get("PEERLINK_PASSWORD")
    if not username or not password:
        logger.error("PEERLINK_USERNAME and PEERLINK_PASSWORD must be set")
        sys.exit(2)

    register = os.environ.get("PEERLINK_REGISTER", "").lower() in ("1", "true", "yes")
    node = PeerNode.from_config()

    try:
        asyncio.run(serve(node, username, password, register=register))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except PeerError as e:
        logger.error(f"Peer failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
