"""Configuration management for PeerLink CLI."""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from common.constants import DEFAULT_DOWNLOADS_DIR, DEFAULT_SHARED_DIR, TRACKER_PORT
from common.logging_config import get_logger

logger = get_logger(__name__)


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "tracker_host": os.environ.get("PEERLINK_TRACKER_HOST", "localhost"),
        "tracker_port": int(os.environ.get("PEERLINK_TRACKER_PORT", str(TRACKER_PORT))),
        "shared_dir": os.environ.get("PEERLINK_SHARED_DIR", DEFAULT_SHARED_DIR),
        "downloads_dir": os.environ.get("PEERLINK_DOWNLOADS_DIR", DEFAULT_DOWNLOADS_DIR),
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.peerlink/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.peerlink' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Config file {self.config_path} unreadable, using defaults: {e}")
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError:
                    pass
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except IOError:
                pass
            return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.warning(f"Could not save config to {self.config_path}: {e}")

    def get_last_username(self) -> Optional[str]:
        """
        Get the username of the last successful login.

        Returns:
            Username or None if nobody has logged in yet
        """
        return self.data.get('last_username')

    def set_last_username(self, username: str) -> None:
        """
        Remember username and save to file. Passwords are never stored.

        Args:
            username: Logged-in username
        """
        self.data['last_username'] = username
        self.save()

    def get_base_url(self) -> str:
        """
        Get tracker base URL.

        Returns:
            Base URL string (e.g., "http://localhost:5001")
        """
        host = self.data.get('tracker_host', 'localhost')
        port = self.data.get('tracker_port', TRACKER_PORT)
        return f"http://{host}:{port}"

    def get_timeout(self) -> int:
        return self.data.get('timeout', 30)

    def get_shared_dir(self) -> Path:
        return Path(self.data.get('shared_dir', DEFAULT_SHARED_DIR)).expanduser()

    def get_downloads_dir(self) -> Path:
        return Path(self.data.get('downloads_dir', DEFAULT_DOWNLOADS_DIR)).expanduser()

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }
