"""Peer directory: accounts and active presence records."""

import sqlite3
from dataclasses import dataclass
from typing import List, Optional, Set

from common.logging_config import get_logger
from common.types import PeerAddress
from tracker.auth import hash_password, verify_password
from tracker.database import get_db_connection
from tracker.exceptions import (
    InvalidCredentialsError,
    PeerAlreadyExistsError,
    PeerNotFoundError,
)

logger = get_logger(__name__)


@dataclass
class Account:
    username: str
    password_hash: str
    created_at: float


@dataclass
class Peer:
    username: str
    address: PeerAddress
    last_seen: float
    last_heartbeat: float


def _row_to_peer(row: sqlite3.Row) -> Peer:
    return Peer(
        username=row["username"],
        address=PeerAddress(ip=row["ip"], port=row["port"]),
        last_seen=row["last_seen"],
        last_heartbeat=row["last_heartbeat"],
    )


class PeerRepository:
    """
    Accounts hold the hashed credential and outlive the presence record.
    A row in ``peers`` exists only while the identity is logged in and has not
    been evicted or explicitly disconnected.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def register(self, username: str, password: str, address: PeerAddress, now: float) -> Peer:
        logger.debug(f"Registering peer: {username} @ {address}")
        password_hash = hash_password(password)

        with get_db_connection(self.db_path) as conn:
            try:
                with conn:
                    conn.execute(
                        "INSERT INTO accounts (username, password_hash, created_at) VALUES (?, ?, ?)",
                        (username, password_hash, now)
                    )
                    conn.execute(
                        """
                        INSERT OR REPLACE INTO peers (username, ip, port, last_seen, last_heartbeat)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (username, address.ip, address.port, now, now)
                    )
            except sqlite3.IntegrityError:
                logger.warning(f"Registration failed: username '{username}' already exists")
                raise PeerAlreadyExistsError(f"Username '{username}' already exists")

        logger.info(f"Peer registered: {username} @ {address}")
        return Peer(username=username, address=address, last_seen=now, last_heartbeat=now)

    def get_account(self, username: str) -> Optional[Account]:
        with get_db_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT username, password_hash, created_at FROM accounts WHERE username = ?",
                (username,)
            ).fetchone()

        if row is None:
            return None
        return Account(
            username=row["username"],
            password_hash=row["password_hash"],
            created_at=row["created_at"],
        )

    def authenticate(self, username: str, password: str) -> Account:
        """
        Check a password against the stored credential.

        Raises:
            PeerNotFoundError: No account for username
            InvalidCredentialsError: Password does not match
        """
        account = self.get_account(username)
        if account is None:
            logger.warning(f"Authentication failed: username '{username}' not found")
            raise PeerNotFoundError(f"Peer '{username}' not found")

        if not verify_password(password, account.password_hash):
            logger.warning(f"Authentication failed: invalid password for username '{username}'")
            raise InvalidCredentialsError("Invalid username or password")

        return account

    def touch_login(self, username: str, address: PeerAddress, now: float) -> Peer:
        """
        Update address and last_seen, re-creating the presence record if it
        was evicted or disconnected. A re-created record starts with
        last_heartbeat = now.
        """
        with get_db_connection(self.db_path) as conn:
            with conn:
                account = conn.execute(
                    "SELECT 1 FROM accounts WHERE username = ?", (username,)
                ).fetchone()
                if account is None:
                    raise PeerNotFoundError(f"Peer '{username}' not found")

                cursor = conn.execute(
                    "UPDATE peers SET ip = ?, port = ?, last_seen = ? WHERE username = ?",
                    (address.ip, address.port, now, username)
                )
                if cursor.rowcount == 0:
                    conn.execute(
                        """
                        INSERT INTO peers (username, ip, port, last_seen, last_heartbeat)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (username, address.ip, address.port, now, now)
                    )
                    logger.debug(f"Presence record re-created for {username}")

            row = conn.execute(
                "SELECT username, ip, port, last_seen, last_heartbeat FROM peers WHERE username = ?",
                (username,)
            ).fetchone()

        return _row_to_peer(row)

    def touch_heartbeat(self, username: str, address: PeerAddress, now: float) -> Peer:
        """
        Raises:
            PeerNotFoundError: No presence record (the peer must log in first)
        """
        with get_db_connection(self.db_path) as conn:
            with conn:
                cursor = conn.execute(
                    "UPDATE peers SET ip = ?, port = ?, last_heartbeat = ? WHERE username = ?",
                    (address.ip, address.port, now, username)
                )
            if cursor.rowcount == 0:
                raise PeerNotFoundError(f"Peer '{username}' not found")

            row = conn.execute(
                "SELECT username, ip, port, last_seen, last_heartbeat FROM peers WHERE username = ?",
                (username,)
            ).fetchone()

        return _row_to_peer(row)

    def remove(self, username: str) -> None:
        """
        Raises:
            PeerNotFoundError: No presence record for username
        """
        with get_db_connection(self.db_path) as conn:
            with conn:
                cursor = conn.execute("DELETE FROM peers WHERE username = ?", (username,))
        if cursor.rowcount == 0:
            raise PeerNotFoundError(f"Peer '{username}' not found")
        logger.debug(f"Presence record removed: {username}")

    def get(self, username: str) -> Optional[Peer]:
        with get_db_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT username, ip, port, last_seen, last_heartbeat FROM peers WHERE username = ?",
                (username,)
            ).fetchone()
        return _row_to_peer(row) if row else None

    def list_peers(self) -> List[Peer]:
        with get_db_connection(self.db_path) as conn:
            rows = conn.execute(
                "SELECT username, ip, port, last_seen, last_heartbeat FROM peers ORDER BY username"
            ).fetchall()
        return [_row_to_peer(row) for row in rows]

    def is_live(self, username: str, now: float, staleness: float) -> bool:
        """False for an absent peer; the window edge counts as live."""
        peer = self.get(username)
        if peer is None:
            return False
        return now - peer.last_heartbeat <= staleness

    def live_usernames(self, now: float, staleness: float) -> Set[str]:
        with get_db_connection(self.db_path) as conn:
            rows = conn.execute(
                "SELECT username FROM peers WHERE last_heartbeat >= ?",
                (now - staleness,)
            ).fetchall()
        return {row["username"] for row in rows}

    def stale_usernames(self, now: float, staleness: float) -> List[str]:
        with get_db_connection(self.db_path) as conn:
            rows = conn.execute(
                "SELECT username FROM peers WHERE last_heartbeat < ? ORDER BY username",
                (now - staleness,)
            ).fetchall()
        return [row["username"] for row in rows]
