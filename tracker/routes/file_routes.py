"""Publish and discovery routes."""

from fastapi import APIRouter, Depends, Query

from common.types import PeerAddress
from tracker.routes.dependencies import get_tracker_service
from tracker.schemas.common import ErrorResponse
from tracker.schemas.files import (
    ShareFilesRequest,
    ShareFilesResponse,
    FileAdvertisementResponse,
    ListFilesResponse,
)
from tracker.services.tracker_service import TrackerService

router = APIRouter(tags=["Files"])


@router.post(
    "/share_files",
    response_model=ShareFilesResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def share_files(
    request: ShareFilesRequest,
    service: TrackerService = Depends(get_tracker_service)
):
    """
    Replace the caller's advertised file set.

    An empty list clears every advertisement for the peer.

    Raises:
        - 400: Invalid filename
        - 404: Peer not logged in
    """
    count = await service.publish(
        request.username,
        request.filenames,
        PeerAddress(ip=request.ip, port=request.port)
    )
    return ShareFilesResponse(message="Files shared successfully!", count=count)


async def _query_files(service: TrackerService, filename: str, username: str) -> ListFilesResponse:
    results = await service.query(filename=filename, username=username)
    return ListFilesResponse(files=[FileAdvertisementResponse(**ad.to_dict()) for ad in results])


@router.get("/files", response_model=ListFilesResponse)
async def list_files(
    filename: str = Query(""),
    username: str = Query(""),
    service: TrackerService = Depends(get_tracker_service)
):
    """List files advertised by live peers, optionally filtered by substrings."""
    return await _query_files(service, filename, username)


@router.get("/search_files", response_model=ListFilesResponse)
async def search_files(
    filename: str = Query(""),
    username: str = Query(""),
    service: TrackerService = Depends(get_tracker_service)
):
    """Alias of /files kept for clients that search by name."""
    return await _query_files(service, filename, username)
