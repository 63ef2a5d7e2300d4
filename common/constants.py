"""Project-wide constants (default ports, intervals, transfer protocol markers)."""

TRACKER_PORT: int = 5001
DEFAULT_PEER_PORT: int = 0  # 0 = pick a free port at startup

HEARTBEAT_INTERVAL_SECONDS: int = 30
SWEEP_INTERVAL_SECONDS: int = 30
STALENESS_SECONDS: int = 60

FILE_NOT_FOUND_MARKER: bytes = b"FILE_NOT_FOUND"
FRAME_DELIMITER: bytes = b"\n"
MAX_REQUEST_BYTES: int = 4096
TRANSFER_PIECE_SIZE: int = 64 * 1024

DEFAULT_SHARED_DIR: str = "./shared_files"
DEFAULT_DOWNLOADS_DIR: str = "./downloads"
