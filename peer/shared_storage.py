"""Local shared-files and downloads directories."""

import shutil
from pathlib import Path
from typing import Iterator, List, Optional, Union

from common.constants import TRANSFER_PIECE_SIZE
from common.logging_config import get_logger

logger = get_logger(__name__)


class SharedStorage:
    """
    Plain filesystem locations for files this peer offers and files it
    fetched. Both directories are created if absent.
    """

    def __init__(self, shared_dir: Union[str, Path], downloads_dir: Union[str, Path]):
        self.shared_dir = Path(shared_dir)
        self.downloads_dir = Path(downloads_dir)
        self.ensure_directories()

    def ensure_directories(self) -> None:
        self.shared_dir.mkdir(parents=True, exist_ok=True)
        self.downloads_dir.mkdir(parents=True, exist_ok=True)

    def resolve_shared_file(self, filename: str) -> Optional[Path]:
        """
        Map a requested filename to a regular file directly inside the
        shared directory.

        Returns:
            Path of the file, or None when it does not exist, is not a
            regular file, or lies outside the shared directory
        """
        return self._resolve_inside(self.shared_dir, filename, must_exist=True)

    def list_shared_files(self) -> List[str]:
        """Names of regular files at the top level of the shared directory."""
        if not self.shared_dir.exists():
            return []
        return sorted(item.name for item in self.shared_dir.iterdir() if item.is_file())

    def add_file(self, source: Union[str, Path]) -> str:
        """
        Copy a local file into the shared directory.

        Returns:
            Name under which the file is shared

        Raises:
            FileNotFoundError: If source is not an existing regular file
        """
        source_path = Path(source).expanduser()
        if not source_path.is_file():
            raise FileNotFoundError(f"Not a file: {source}")

        destination = self.shared_dir / source_path.name
        if source_path.resolve() != destination.resolve():
            shutil.copyfile(source_path, destination)
            logger.info(f"Copied {source_path} to shared directory")
        return source_path.name

    def read_streaming(self, path: Path, piece_size: int = TRANSFER_PIECE_SIZE) -> Iterator[bytes]:
        """
        Stream file data in pieces.

        Raises:
            OSError: If the file cannot be read
        """
        with open(path, 'rb') as f:
            while True:
                piece = f.read(piece_size)
                if not piece:
                    break
                yield piece

    def download_path(self, filename: str) -> Path:
        """
        Destination for a fetched file inside the downloads directory.

        Raises:
            ValueError: If filename would escape the downloads directory
        """
        path = self._resolve_inside(self.downloads_dir, filename, must_exist=False)
        if path is None:
            raise ValueError(f"Invalid download filename: {filename!r}")
        return path

    def _resolve_inside(self, root: Path, filename: str, must_exist: bool) -> Optional[Path]:
        if not filename or filename in (".", "..") or "/" in filename or "\\" in filename or "\x00" in filename:
            return None

        candidate = root / filename
        try:
            resolved = candidate.resolve()
            resolved.relative_to(root.resolve())
        except (OSError, RuntimeError, ValueError):
            return None

        if must_exist and not resolved.is_file():
            return None
        return resolved
