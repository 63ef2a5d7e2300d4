"""Local address helpers."""

import socket

from common.logging_config import get_logger

logger = get_logger(__name__)


def get_local_ip() -> str:
    """
    Best-effort IPv4 address of the interface used for outbound traffic.

    Falls back to 127.0.0.1 when no route is available.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # no packet is sent; connect() only selects a route
        sock.connect(("10.255.255.255", 1))
        return sock.getsockname()[0]
    except OSError as e:
        logger.debug(f"Could not detect local IP, using loopback: {e}")
        return "127.0.0.1"
    finally:
        sock.close()


def find_free_port(host: str = "") -> int:
    """Ask the OS for an unused TCP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return sock.getsockname()[1]
