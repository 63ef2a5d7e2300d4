"""Command handler functions for CLI operations."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.config import Config
from cli.models import (
    DownloadCommand,
    ListCommand,
    LoginCommand,
    LogoutCommand,
    PeersCommand,
    RegisterCommand,
    SearchCommand,
    ShareCommand,
)
from cli.utils import DownloadProgress, format_file_size, format_rate
from peer.exceptions import (
    NoSourceError,
    PeerError,
    ProtocolError,
    RemoteFileNotFoundError,
    TrackerRequestError,
    TrackerUnavailableError,
    TransportError,
    TruncatedTransferError,
)
from peer.node import PeerNode
from peer.shared_storage import SharedStorage
from peer.tracker_client import TrackerClient

logger = get_logger(__name__)

CONFIG_PATH = Path.home() / '.peerlink' / 'config.json'

ERROR_MESSAGES = {
    'PEER_ALREADY_EXISTS': 'Username already taken. Try logging in or choose a different username.',
    'PEER_NOT_FOUND': 'Unknown user. Register first, or log in again if your session expired.',
    'INVALID_CREDENTIALS': 'Invalid username or password.',
    'VALIDATION_ERROR': 'The tracker rejected the request',
}

_node: Optional[PeerNode] = None


def get_node() -> PeerNode:
    """
    Get or create global PeerNode instance.

    Returns:
        PeerNode instance
    """
    global _node
    if _node is None:
        logger.debug("Creating new PeerNode instance")
        config = Config(CONFIG_PATH)
        retry = config.get_retry_config()
        tracker = TrackerClient(
            config.get_base_url(),
            timeout=config.get_timeout(),
            max_retries=retry['max_retries'],
            retry_backoff_multiplier=retry['retry_backoff_multiplier'],
        )
        storage = SharedStorage(config.get_shared_dir(), config.get_downloads_dir())
        _node = PeerNode(tracker, storage)
    return _node


async def shutdown_node() -> None:
    """Log out and release the global node, if one was created."""
    global _node
    if _node is not None:
        await _node.stop()
        _node = None


def format_error(error: PeerError) -> str:
    """
    Map peer-side failures to user-friendly messages.

    Args:
        error: Exception raised by the node

    Returns:
        User-friendly error message
    """
    if isinstance(error, TrackerRequestError):
        message = ERROR_MESSAGES.get(error.code)
        if message is None:
            return f"Tracker error: {error} (Code: {error.code})"
        if error.code == 'VALIDATION_ERROR':
            return f"{message}: {error}"
        return message
    if isinstance(error, TrackerUnavailableError):
        return str(error)
    if isinstance(error, NoSourceError):
        return f"{error}. Try 'search' to see what is available."
    if isinstance(error, RemoteFileNotFoundError):
        return "The peer no longer has that file."
    if isinstance(error, TruncatedTransferError):
        return (
            f"Download incomplete: received {format_file_size(error.received)} "
            f"of {format_file_size(error.expected)}. Partial file removed."
        )
    if isinstance(error, (TransportError, ProtocolError)):
        return f"Transfer failed: {error}"
    return str(error)


async def handle_register(cmd: RegisterCommand, node: Optional[PeerNode] = None) -> str:
    """
    Handle 'register' command.

    Args:
        cmd: RegisterCommand with username and password
        node: Optional PeerNode for dependency injection (testing)

    Returns:
        Success or error message
    """
    if node is None:
        node = get_node()
    logger.info(f"Attempting to register user: {cmd.username}")
    try:
        address = await node.register(cmd.username, cmd.password)
    except PeerError as e:
        logger.warning(f"Registration failed for user: {cmd.username}: {e}")
        return f"Registration failed: {format_error(e)}"
    return f"Registration successful!\nListening at {address}. Run: login {cmd.username} <password>"


async def handle_login(
    cmd: LoginCommand,
    node: Optional[PeerNode] = None,
    config: Optional[Config] = None,
) -> str:
    """
    Handle 'login' command.

    Args:
        cmd: LoginCommand with username and password
        node: Optional PeerNode for dependency injection (testing)
        config: Optional Config where the username is remembered

    Returns:
        Success or error message
    """
    if node is None:
        node = get_node()
    logger.info(f"Attempting to login user: {cmd.username}")
    try:
        count = await node.login(cmd.username, cmd.password)
    except PeerError as e:
        logger.warning(f"Login failed for user: {cmd.username}: {e}")
        return f"Login failed: {format_error(e)}"

    if config is None:
        config = Config(CONFIG_PATH)
    config.set_last_username(cmd.username)
    return f"Login successful!\nSharing {count} file(s) from {node.storage.shared_dir} at {node.address}"


async def handle_share(cmd: ShareCommand, node: Optional[PeerNode] = None) -> str:
    """
    Handle 'share' command.

    Returns:
        Names of shared files or error message
    """
    if node is None:
        node = get_node()
    try:
        names = await node.share(cmd.paths)
    except FileNotFoundError as e:
        return f"Error: {e}"
    except PeerError as e:
        return f"Error: {format_error(e)}"
    return f"Shared {len(names)} file(s): {', '.join(names)}"


async def handle_list(cmd: ListCommand, node: Optional[PeerNode] = None) -> str:
    """
    Handle 'list' command.

    Returns:
        Formatted list of files
    """
    logger.info(f"Executing list command: owner={cmd.owner!r}")
    return await _query(node, "", cmd.owner, empty_message="No files are being shared right now.")


async def handle_search(cmd: SearchCommand, node: Optional[PeerNode] = None) -> str:
    """
    Handle 'search' command.

    Returns:
        Formatted list of matching files
    """
    logger.info(f"Executing search command: text={cmd.text!r} owner={cmd.owner!r}")
    return await _query(node, cmd.text, cmd.owner, empty_message=f"No files found matching: {cmd.text}")


async def _query(node: Optional[PeerNode], filename: str, owner: str, empty_message: str) -> str:
    if node is None:
        node = get_node()
    try:
        files = await node.search(filename, owner)
    except PeerError as e:
        return f"Error: {format_error(e)}"

    if not files:
        return empty_message

    output = [f"Found {len(files)} file(s):\n"]
    for ad in files:
        shared = datetime.fromtimestamp(ad.shared_time).strftime("%Y-%m-%d %H:%M:%S")
        output.append(
            f"  - {ad.filename}\n"
            f"    Owner: {ad.owner} ({ad.address})\n"
            f"    Shared: {shared}"
        )
    return '\n'.join(output)


async def handle_download(cmd: DownloadCommand, node: Optional[PeerNode] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with filename and optional owner
        node: Optional PeerNode for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing download command: filename={cmd.filename} owner={cmd.owner}")
    if node is None:
        node = get_node()

    progress = DownloadProgress()
    try:
        result = await node.download(cmd.filename, owner=cmd.owner, on_progress=progress)
    except ValueError as e:
        return f"Error: {e}"
    except PeerError as e:
        return f"Error: {format_error(e)}"
    finally:
        progress.finish()

    return (
        f"Downloaded: {result.filename} ({format_file_size(result.size)}, "
        f"avg {format_rate(result.average_rate)})\nSaved to: {result.path}"
    )


async def handle_peers(cmd: PeersCommand, node: Optional[PeerNode] = None) -> str:
    if node is None:
        node = get_node()
    try:
        peers = await node.list_peers()
    except PeerError as e:
        return f"Error: {format_error(e)}"

    if not peers:
        return "No live peers."
    lines = [f"{len(peers)} live peer(s):"]
    for peer in peers:
        address = peer['address']
        lines.append(f"  - {peer['username']} ({address['ip']}:{address['port']})")
    return '\n'.join(lines)


async def handle_logout(cmd: LogoutCommand, node: Optional[PeerNode] = None) -> str:
    if node is None:
        node = get_node()
    if not node.logged_in:
        return "Not logged in."
    username = node.username
    await node.logout()
    return f"Logged out {username}."
