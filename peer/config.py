"""Configuration settings for a peer node."""

import os
from common.constants import (
    DEFAULT_DOWNLOADS_DIR,
    DEFAULT_PEER_PORT,
    DEFAULT_SHARED_DIR,
    HEARTBEAT_INTERVAL_SECONDS,
    TRACKER_PORT,
)


TRACKER_URL = os.environ.get("PEERLINK_TRACKER_URL", f"http://localhost:{TRACKER_PORT}")

SHARED_DIR = os.environ.get("PEERLINK_SHARED_DIR", DEFAULT_SHARED_DIR)

DOWNLOADS_DIR = os.environ.get("PEERLINK_DOWNLOADS_DIR", DEFAULT_DOWNLOADS_DIR)

LISTEN_HOST = os.environ.get("PEERLINK_LISTEN_HOST", "0.0.0.0")

LISTEN_PORT = int(os.environ.get("PEERLINK_LISTEN_PORT", str(DEFAULT_PEER_PORT)))

# address announced to the tracker; auto-detected when unset
ADVERTISE_IP = os.environ.get("PEERLINK_ADVERTISE_IP")

HEARTBEAT_INTERVAL = float(os.environ.get("PEERLINK_HEARTBEAT_INTERVAL", str(HEARTBEAT_INTERVAL_SECONDS)))

CONNECT_TIMEOUT = float(os.environ.get("PEERLINK_CONNECT_TIMEOUT", "10"))

READ_TIMEOUT = float(os.environ.get("PEERLINK_READ_TIMEOUT", "30"))
