"""Wire framing for the direct peer-to-peer transfer protocol.

Request:  ``<filename>\\n``
Response: ``FILE_NOT_FOUND\\n`` or ``<decimal size>\\n`` followed by the raw
file bytes. The responder closes the connection after the last byte.
"""

from dataclasses import dataclass
from typing import Optional

from common.constants import FILE_NOT_FOUND_MARKER, FRAME_DELIMITER


@dataclass(frozen=True)
class TransferHeader:
    """Parsed first line of a transfer response."""
    found: bool
    size: Optional[int] = None


def encode_request(filename: str) -> bytes:
    """
    Encode a fetch request for a single file.

    Raises:
        ValueError: If the filename is empty or contains the frame delimiter
    """
    if not filename:
        raise ValueError("Filename must not be empty")
    if "\n" in filename or "\r" in filename:
        raise ValueError("Filename must not contain line breaks")
    return filename.encode("utf-8") + FRAME_DELIMITER


def decode_request(frame: bytes) -> str:
    """
    Decode a fetch request frame into the requested filename.

    The trailing delimiter is optional so that an unframed legacy request
    (whole payload = filename) is still understood.

    Raises:
        ValueError: If the frame is empty or not valid UTF-8
    """
    filename = frame.rstrip(b"\r\n").decode("utf-8")
    if not filename:
        raise ValueError("Empty request")
    return filename


def encode_size_header(size: int) -> bytes:
    return str(size).encode("ascii") + FRAME_DELIMITER


def encode_not_found() -> bytes:
    return FILE_NOT_FOUND_MARKER + FRAME_DELIMITER


def decode_header(line: bytes) -> TransferHeader:
    """
    Parse the first response line from a transfer listener.

    Raises:
        ValueError: If the line is neither the not-found marker nor a
            non-negative decimal integer
    """
    text = line.rstrip(b"\r\n")
    if text == FILE_NOT_FOUND_MARKER:
        return TransferHeader(found=False)
    if not text or not text.isdigit():
        raise ValueError(f"Invalid size header: {text[:32]!r}")
    return TransferHeader(found=True, size=int(text))
