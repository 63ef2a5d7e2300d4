"""Pydantic schemas for publish and query endpoints."""

from typing import List
from pydantic import BaseModel, Field

from tracker.schemas.peers import AddressFields, PeerAddressModel


class ShareFilesRequest(AddressFields):
    """Request model for publishing a peer's full file set."""
    username: str = Field(..., min_length=1)
    filenames: List[str]


class ShareFilesResponse(BaseModel):
    message: str
    count: int


class FileAdvertisementResponse(BaseModel):
    filename: str
    owner: str
    address: PeerAddressModel
    shared_time: float


class ListFilesResponse(BaseModel):
    files: List[FileAdvertisementResponse]
