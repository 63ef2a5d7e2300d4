"""Peer presence routes: register, login, heartbeat, disconnect."""

from fastapi import APIRouter, Depends, status

from common.types import PeerAddress
from tracker.routes.dependencies import get_tracker_service
from tracker.schemas.common import ErrorResponse
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
from tracker.services.tracker_service import TrackerService

router = APIRouter(tags=["Peers"])


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def register(
    request: RegisterRequest,
    service: TrackerService = Depends(get_tracker_service)
):
    """
    Register a new peer identity.

    Raises:
        - 409: Username already exists
        - 400: Missing or invalid fields
    """
    await service.register(
        request.username,
        request.password,
        PeerAddress(ip=request.ip, port=request.port)
    )
    return MessageResponse(message="Registration successful!")


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def login(
    request: LoginRequest,
    service: TrackerService = Depends(get_tracker_service)
):
    """
    Authenticate a peer and refresh its address.

    Raises:
        - 404: Unknown username
        - 401: Wrong password
    """
    username = await service.login(
        request.username,
        request.password,
        PeerAddress(ip=request.ip, port=request.port)
    )
    return LoginResponse(message="Login successful!", username=username)


@router.post("/heartbeat", response_model=MessageResponse, responses={404: {"model": ErrorResponse}})
async def heartbeat(
    request: HeartbeatRequest,
    service: TrackerService = Depends(get_tracker_service)
):
    """
    Mark a logged-in peer as alive.

    Raises:
        - 404: Peer has no active record (log in first)
    """
    await service.heartbeat(request.username, PeerAddress(ip=request.ip, port=request.port))
    return MessageResponse(message="Heartbeat received")


@router.post("/disconnect", response_model=DisconnectResponse)
async def disconnect(
    request: DisconnectRequest,
    service: TrackerService = Depends(get_tracker_service)
):
    """
    Remove a peer and its advertisements. Succeeds for an absent peer.
    """
    removed = await service.disconnect(request.username)
    return DisconnectResponse(message="Disconnected successfully", removed=removed)


@router.get("/peers", response_model=ListPeersResponse)
async def list_peers(service: TrackerService = Depends(get_tracker_service)):
    """List peers whose heartbeat is within the staleness window."""
    peers = await service.list_live_peers()
    return ListPeersResponse(peers=[
        PeerInfo(
            username=peer.username,
            address=PeerAddressModel(ip=peer.address.ip, port=peer.address.port),
            last_heartbeat=peer.last_heartbeat,
        )
        for peer in peers
    ])
