"""Pydantic schemas for peer presence endpoints."""

from typing import List
from pydantic import BaseModel, Field


class AddressFields(BaseModel):
    """Listener address carried by presence requests."""
    ip: str = Field(..., min_length=1)
    port: int = Field(..., ge=1, le=65535)


class RegisterRequest(AddressFields):
    """Request model for peer registration."""
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=72)


class LoginRequest(AddressFields):
    """Request model for peer login."""
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=72)


class HeartbeatRequest(AddressFields):
    """Request model for heartbeats."""
    username: str = Field(..., min_length=1)


class DisconnectRequest(BaseModel):
    """Request model for explicit disconnect."""
    username: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    message: str


class LoginResponse(BaseModel):
    message: str
    username: str


class DisconnectResponse(BaseModel):
    message: str
    removed: bool


class PeerAddressModel(BaseModel):
    ip: str
    port: int


class PeerInfo(BaseModel):
    username: str
    address: PeerAddressModel
    last_heartbeat: float


class ListPeersResponse(BaseModel):
    peers: List[PeerInfo]
