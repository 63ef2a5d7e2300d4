"""Pydantic schemas for API requests and responses."""

from tracker.schemas.peers import (
    RegisterRequest,
    LoginRequest,
    HeartbeatRequest,
    DisconnectRequest,
    MessageResponse,
    LoginResponse,
    DisconnectResponse,
    PeerAddressModel,
    PeerInfo,
    ListPeersResponse,
)
from tracker.schemas.files import (
    ShareFilesRequest,
    ShareFilesResponse,
    FileAdvertisementResponse,
    ListFilesResponse,
)
from tracker.schemas.common import ErrorResponse

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "HeartbeatRequest",
    "DisconnectRequest",
    "MessageResponse",
    "LoginResponse",
    "DisconnectResponse",
    "PeerAddressModel",
    "PeerInfo",
    "ListPeersResponse",
    "ShareFilesRequest",
    "ShareFilesResponse",
    "FileAdvertisementResponse",
    "ListFilesResponse",
    "ErrorResponse",
]
