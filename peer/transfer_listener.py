"""Peer-local server answering single-file fetch requests."""

import asyncio
from typing import Optional

from common.constants import MAX_REQUEST_BYTES, FRAME_DELIMITER
from common.logging_config import get_logger
from common.protocol import decode_request, encode_not_found, encode_size_header
from common.types import PeerAddress
from peer.shared_storage import SharedStorage

logger = get_logger(__name__)


class TransferListener:
    """
    Serves files from the shared directory to other peers.

    Each accepted connection is handled by its own coroutine:
    AWAIT_REQUEST -> (NOT_FOUND | SENDING) -> CLOSED. File reads run in a
    worker thread so a slow disk never stalls other connections.
    """

    def __init__(
        self,
        storage: SharedStorage,
        host: str = "0.0.0.0",
        port: int = 0,
        read_timeout: float = 30,
    ):
        self.storage = storage
        self.host = host
        self.port = port
        self.read_timeout = read_timeout
        self.active_connections = 0
        self.files_served = 0
        self._server: Optional[asyncio.AbstractServer] = None

    async def start(self) -> None:
        """Bind and begin accepting connections."""
        if self._server is not None:
            logger.warning("Transfer listener already running")
            return

        self._server = await asyncio.start_server(
            self._handle_connection,
            host=self.host,
            port=self.port,
            limit=MAX_REQUEST_BYTES,
        )
        self.port = self._server.sockets[0].getsockname()[1]
        logger.info(f"Transfer listener started on {self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop accepting connections and close the listening socket."""
        if self._server is None:
            return

        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Transfer listener stopped")

    @property
    def is_serving(self) -> bool:
        return self._server is not None and self._server.is_serving()

    def address(self, advertise_ip: str) -> PeerAddress:
        return PeerAddress(ip=advertise_ip, port=self.port)

    async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        remote = writer.get_extra_info('peername')
        self.active_connections += 1
        logger.debug(f"Incoming connection from {remote}")

        try:
            filename = await self._read_request(reader)
            if filename is None:
                logger.warning(f"Malformed request from {remote}")
                return

            logger.info(f"Peer {remote} requested file: {filename}")
            path = self.storage.resolve_shared_file(filename)
            if path is None:
                writer.write(encode_not_found())
                await writer.drain()
                logger.warning(f"File not found for {remote}: {filename}")
                return

            size = path.stat().st_size
            writer.write(encode_size_header(size))
            await writer.drain()

            sent = await self._send_file(path, writer)
            self.files_served += 1
            logger.info(f"Finished sending {filename} to {remote} ({sent} bytes)")

        except (ConnectionError, asyncio.TimeoutError, OSError) as e:
            logger.warning(f"Transfer to {remote} aborted: {e}")
        finally:
            self.active_connections -= 1
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def _read_request(self, reader: asyncio.StreamReader) -> Optional[str]:
        """
        Read one newline-terminated request frame. A frame that ends at EOF
        without the delimiter is accepted whole.
        """
        try:
            frame = await asyncio.wait_for(
                reader.readuntil(FRAME_DELIMITER), timeout=self.read_timeout
            )
        except asyncio.IncompleteReadError as e:
            frame = e.partial
        except asyncio.LimitOverrunError:
            return None

        try:
            return decode_request(frame)
        except ValueError:
            return None

    async def _send_file(self, path, writer: asyncio.StreamWriter) -> int:
        sent = 0
        pieces = self.storage.read_streaming(path)
        try:
            while True:
                piece = await asyncio.to_thread(next, pieces, None)
                if piece is None:
                    break
                writer.write(piece)
                await writer.drain()
                sent += len(piece)
        finally:
            pieces.close()
        return sent
