"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class RegisterCommand:
    """Register a new account."""

    username: str
    password: str
    command: Literal["register"] = "register"


@dataclass(frozen=True)
class LoginCommand:
    """Login with username and password."""

    username: str
    password: str
    command: Literal["login"] = "login"


@dataclass(frozen=True)
class ShareCommand:
    """Copy files into the shared folder and republish."""

    paths: tuple[str, ...]
    command: Literal["share"] = "share"


@dataclass(frozen=True)
class ListCommand:
    """List live advertisements, optionally for owners matching a substring."""

    owner: str = ""
    command: Literal["list"] = "list"


@dataclass(frozen=True)
class SearchCommand:
    """Search live advertisements by filename substring."""

    text: str
    owner: str = ""
    command: Literal["search"] = "search"


@dataclass(frozen=True)
class DownloadCommand:
    """Download file by exact filename."""

    filename: str
    owner: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class PeersCommand:
    """List live peers."""

    command: Literal["peers"] = "peers"


@dataclass(frozen=True)
class LogoutCommand:
    """Disconnect from the tracker."""

    command: Literal["logout"] = "logout"


CommandRequest = (
    RegisterCommand
    | LoginCommand
    | ShareCommand
    | ListCommand
    | SearchCommand
    | DownloadCommand
    | PeersCommand
    | LogoutCommand
)
