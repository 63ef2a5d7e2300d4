"""Utility functions for CLI output."""

import sys
from typing import Optional, TextIO

from cli.constants import GREEN, RESET
from peer.transfer_session import TransferSession


class DownloadProgress:
    """Progress callback that redraws a single status line on stdout."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self._shown = False

    def __call__(self, session: TransferSession) -> None:
        if session.total_size is None:
            return
        received = format_file_size(session.received)
        total = format_file_size(session.total_size)
        rate = format_rate(session.last_rate) if session.last_rate is not None else "--"
        self.stream.write(
            f"\rDownloading {session.filename}: {received} / {total} "
            f"({GREEN}{session.progress * 100:.1f}%{RESET}) {rate}"
        )
        self.stream.flush()
        self._shown = True

    def finish(self) -> None:
        """Terminate the progress line if one was drawn."""
        if self._shown:
            self.stream.write('\n')
            self.stream.flush()
            self._shown = False


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def format_rate(bytes_per_second: float) -> str:
    """Format a transfer rate, e.g. "512.00 KiB/s"."""
    return f"{format_file_size(int(bytes_per_second))}/s"
