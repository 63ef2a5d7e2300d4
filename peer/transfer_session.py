"""Progress and throughput accounting for one in-flight fetch."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

SAMPLE_WINDOW_SECONDS = 1.0


@dataclass
class TransferSession:
    """
    Transient state of a single fetch. Lives only as long as its connection.

    Throughput is sampled over rolling windows: once at least one second
    has passed since the previous sample, the rate is bytes received in the
    window divided by the window length, and the window restarts.
    """
    filename: str
    started_at: float
    total_size: Optional[int] = None
    received: int = 0
    last_sample_time: float = 0.0
    bytes_since_last_sample: int = 0
    last_rate: Optional[float] = None

    def __post_init__(self):
        if not self.last_sample_time:
            self.last_sample_time = self.started_at

    def begin(self, total_size: int, now: float) -> None:
        """Record the announced size; sampling windows start here."""
        self.total_size = total_size
        self.last_sample_time = now
        self.bytes_since_last_sample = 0

    def record(self, nbytes: int, now: float) -> Optional[float]:
        """
        Account for a received chunk.

        Returns:
            The new rate in bytes/second when a sampling window closed, else None
        """
        self.received += nbytes
        self.bytes_since_last_sample += nbytes

        elapsed = now - self.last_sample_time
        if elapsed < SAMPLE_WINDOW_SECONDS:
            return None

        rate = self.bytes_since_last_sample / elapsed
        self.last_rate = rate
        self.last_sample_time = now
        self.bytes_since_last_sample = 0
        return rate

    @property
    def progress(self) -> float:
        """Fraction complete in [0, 1]; a zero-byte file is complete at once."""
        if self.total_size is None:
            return 0.0
        if self.total_size == 0:
            return 1.0
        return min(self.received / self.total_size, 1.0)

    @property
    def is_complete(self) -> bool:
        return self.total_size is not None and self.received == self.total_size

    def average_rate(self, now: float) -> float:
        elapsed = now - self.started_at
        if elapsed <= 0:
            return 0.0
        return self.received / elapsed


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a successful fetch."""
    filename: str
    path: Path
    size: int
    elapsed_seconds: float
    average_rate: float
