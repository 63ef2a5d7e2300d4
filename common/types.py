"""Shared data type definitions (PeerAddress, FileAdvertisement)."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class PeerAddress:
    """
    Network location of a peer's transfer listener.
    """
    ip: str
    port: int

    def __str__(self) -> str:
        return f"{self.ip}:{self.port}"

    def to_dict(self) -> Dict[str, Any]:
        return {"ip": self.ip, "port": self.port}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PeerAddress":
        return cls(ip=data["ip"], port=int(data["port"]))


@dataclass(frozen=True)
class FileAdvertisement:
    """
    "This peer currently offers this filename at this address."
    """
    filename: str
    owner: str
    address: PeerAddress
    shared_time: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "owner": self.owner,
            "address": self.address.to_dict(),
            "shared_time": self.shared_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileAdvertisement":
        return cls(
            filename=data["filename"],
            owner=data["owner"],
            address=PeerAddress.from_dict(data["address"]),
            shared_time=float(data.get("shared_time", 0.0)),
        )
