"""Fetches a named file directly from another peer's transfer listener."""

import asyncio
import time
from pathlib import Path
from typing import Callable, Optional

from common.constants import FRAME_DELIMITER, TRANSFER_PIECE_SIZE
from common.logging_config import get_logger
from common.protocol import TransferHeader, decode_header, encode_request
from peer.exceptions import (
    ProtocolError,
    RemoteFileNotFoundError,
    TransportError,
    TruncatedTransferError,
)
from peer.shared_storage import SharedStorage
from peer.transfer_session import TransferResult, TransferSession

logger = get_logger(__name__)

ProgressCallback = Callable[[TransferSession], None]


class TransferClient:
    """
    Runs one fetch per call. Instances hold no per-transfer state, so
    several fetches may run concurrently on the same client.
    """

    def __init__(
        self,
        storage: SharedStorage,
        connect_timeout: float = 10,
        read_timeout: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            storage: Provides the downloads directory
            connect_timeout: Seconds to wait for the TCP connection
            read_timeout: Seconds to wait for any single read
            clock: Monotonic time source used for throughput sampling
        """
        self.storage = storage
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.clock = clock

    async def fetch(
        self,
        host: str,
        port: int,
        filename: str,
        output_name: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransferResult:
        """
        Fetch filename from host:port into the downloads directory.

        Args:
            host: Remote peer IP or hostname
            port: Remote transfer listener port
            filename: Exact name advertised by the remote peer
            output_name: Local file name (defaults to filename)
            on_progress: Called with the session after every received chunk

        Returns:
            TransferResult for the completed file

        Raises:
            RemoteFileNotFoundError: Remote answered FILE_NOT_FOUND
            TransportError: Connection refused, reset or timed out
            ProtocolError: Unparseable size header or oversized payload
            TruncatedTransferError: Connection closed before all bytes arrived
        """
        request = encode_request(filename)
        output_path = self.storage.download_path(output_name or filename)
        session = TransferSession(filename=filename, started_at=self.clock())

        logger.info(f"Connecting to {host}:{port} for {filename}")
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self.connect_timeout
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise TransportError(f"Cannot connect to peer {host}:{port}: {e}") from e

        wrote_output = False
        try:
            writer.write(request)
            await writer.drain()

            header = decode_header_line(await self._read_header(reader))
            if not header.found:
                logger.warning(f"Peer {host}:{port} does not have {filename}")
                raise RemoteFileNotFoundError(f"File '{filename}' not found on peer {host}:{port}")

            session.begin(header.size, self.clock())
            logger.info(f"Starting download of {filename} ({header.size} bytes) to {output_path}")

            wrote_output = True
            with open(output_path, 'wb') as f:
                if on_progress:
                    on_progress(session)
                while True:
                    chunk = await asyncio.wait_for(
                        reader.read(TRANSFER_PIECE_SIZE), timeout=self.read_timeout
                    )
                    if not chunk:
                        break
                    if session.received + len(chunk) > header.size:
                        raise ProtocolError(
                            f"Peer sent more than the announced {header.size} bytes for {filename}"
                        )
                    f.write(chunk)
                    rate = session.record(len(chunk), self.clock())
                    if rate is not None:
                        logger.debug(f"{filename}: {session.progress:.1%} at {rate:.0f} B/s")
                    if on_progress:
                        on_progress(session)

            if session.received < header.size:
                raise TruncatedTransferError(
                    f"Connection closed after {session.received} of {header.size} bytes for {filename}",
                    received=session.received,
                    expected=header.size,
                )

        except asyncio.TimeoutError as e:
            self._discard(output_path, wrote_output)
            raise TransportError(f"Timed out reading from peer {host}:{port}") from e
        except (ConnectionError, OSError) as e:
            self._discard(output_path, wrote_output)
            raise TransportError(f"Connection to peer {host}:{port} failed: {e}") from e
        except (ProtocolError, TruncatedTransferError):
            self._discard(output_path, wrote_output)
            raise
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

        now = self.clock()
        result = TransferResult(
            filename=filename,
            path=output_path,
            size=session.received,
            elapsed_seconds=now - session.started_at,
            average_rate=session.average_rate(now),
        )
        logger.info(f"Download complete: {filename} ({result.size} bytes in {result.elapsed_seconds:.2f}s)")
        return result

    async def _read_header(self, reader: asyncio.StreamReader) -> bytes:
        try:
            return await asyncio.wait_for(
                reader.readuntil(FRAME_DELIMITER), timeout=self.read_timeout
            )
        except asyncio.IncompleteReadError as e:
            # an unterminated FILE_NOT_FOUND followed by close is still a valid answer
            if not e.partial:
                raise TruncatedTransferError("Connection closed before the size header arrived")
            return e.partial
        except asyncio.LimitOverrunError as e:
            raise ProtocolError("Size header too long") from e

    @staticmethod
    def _discard(path: Path, wrote_output: bool) -> None:
        if not wrote_output:
            return
        try:
            path.unlink(missing_ok=True)
            logger.debug(f"Removed partial download {path}")
        except OSError as e:
            logger.warning(f"Could not remove partial download {path}: {e}")


def decode_header_line(line: bytes) -> TransferHeader:
    """
    Raises:
        ProtocolError: If the header is neither a size nor the not-found marker
    """
    try:
        return decode_header(line)
    except ValueError as e:
        raise ProtocolError(str(e)) from e
