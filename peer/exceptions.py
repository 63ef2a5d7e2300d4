"""Exception classes for peer-to-peer transfers and tracker calls."""


class PeerError(Exception):
    """
    Base exception class for all peer-side errors.
    """
    pass


class TransferError(PeerError):
    """
    Base class for failures of a single transfer. A transfer error never
    affects other transfers or the listener.
    """
    pass


class RemoteFileNotFoundError(TransferError):
    """
    Raised when the remote peer answers FILE_NOT_FOUND.
    """
    pass


class TransportError(TransferError):
    """
    Raised when the connection is refused, reset or times out.
    """
    pass


class ProtocolError(TransferError):
    """
    Raised when the remote peer sends an unparseable size header or more
    bytes than it announced.
    """
    pass


class TruncatedTransferError(TransferError):
    """
    Raised when the connection closes before the announced byte count arrived.
    """

    def __init__(self, message: str, received: int = 0, expected: int = 0):
        super().__init__(message)
        self.received = received
        self.expected = expected


class TrackerRequestError(PeerError):
    """
    Raised when the tracker answers with a structured failure.
    """

    def __init__(self, message: str, code: str = "UNKNOWN", status_code: int = 0):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class TrackerUnavailableError(PeerError):
    """
    Raised when the tracker cannot be reached after retries.
    """
    pass


class NoSourceError(TransferError):
    """
    Raised when no live peer advertises the requested filename.
    """
    pass
