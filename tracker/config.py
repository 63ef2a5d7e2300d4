"""Configuration settings for the tracker server."""

import os
from common.constants import TRACKER_PORT, STALENESS_SECONDS, SWEEP_INTERVAL_SECONDS


DATABASE_PATH = os.environ.get("PEERLINK_DATABASE_PATH", "./data/tracker.db")

TRACKER_HOST = os.environ.get("PEERLINK_TRACKER_HOST", "0.0.0.0")

TRACKER_PORT = int(os.environ.get("PEERLINK_TRACKER_PORT", str(TRACKER_PORT)))

STALENESS_SECONDS = float(os.environ.get("PEERLINK_STALENESS_SECONDS", str(STALENESS_SECONDS)))

SWEEP_INTERVAL_SECONDS = float(os.environ.get("PEERLINK_SWEEP_INTERVAL", str(SWEEP_INTERVAL_SECONDS)))
