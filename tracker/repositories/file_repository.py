"""File index: per-peer advertisement sets."""

import sqlite3
from typing import Iterable, List, Optional, Set

from common.logging_config import get_logger
from common.types import FileAdvertisement, PeerAddress
from tracker.database import get_db_connection

logger = get_logger(__name__)


def _row_to_advertisement(row: sqlite3.Row) -> FileAdvertisement:
    return FileAdvertisement(
        filename=row["filename"],
        owner=row["username"],
        address=PeerAddress(ip=row["ip"], port=row["port"]),
        shared_time=row["shared_time"],
    )


class FileRepository:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def replace_advertisements(
        self,
        username: str,
        filenames: Iterable[str],
        address: PeerAddress,
        now: float,
    ) -> List[FileAdvertisement]:
        """
        Swap the peer's whole advertisement set for a new one.

        Delete and insert run in one transaction, so a concurrent reader sees
        either the previous set or the new one.
        """
        unique_names = list(dict.fromkeys(filenames))

        with get_db_connection(self.db_path) as conn:
            try:
                with conn:
                    conn.execute(
                        "DELETE FROM file_advertisements WHERE username = ?", (username,)
                    )
                    conn.executemany(
                        """
                        INSERT INTO file_advertisements (filename, username, ip, port, shared_time)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        [(name, username, address.ip, address.port, now) for name in unique_names]
                    )
            except sqlite3.Error as e:
                logger.error(f"Failed to replace advertisements for {username}: {e}", exc_info=True)
                raise

        logger.info(f"Advertisements replaced for {username}: {len(unique_names)} file(s) @ {address}")
        return [
            FileAdvertisement(filename=name, owner=username, address=address, shared_time=now)
            for name in unique_names
        ]

    def remove_all(self, username: str) -> int:
        with get_db_connection(self.db_path) as conn:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM file_advertisements WHERE username = ?", (username,)
                )
        removed = cursor.rowcount
        logger.debug(f"Removed {removed} advertisement(s) for {username}")
        return removed

    def list_for(self, username: str) -> List[FileAdvertisement]:
        with get_db_connection(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT filename, username, ip, port, shared_time
                FROM file_advertisements WHERE username = ?
                ORDER BY filename
                """,
                (username,)
            ).fetchall()
        return [_row_to_advertisement(row) for row in rows]

    def search(
        self,
        filename_substring: str,
        username_substring: str,
        live_usernames: Set[str],
    ) -> List[FileAdvertisement]:
        """
        Case-sensitive substring search over filename and owner, restricted
        to owners in live_usernames. Empty substrings match everything.
        Results are ordered by filename, then owner.
        """
        if not live_usernames:
            return []

        clauses = []
        params = []
        if filename_substring:
            clauses.append("instr(filename, ?) > 0")
            params.append(filename_substring)
        if username_substring:
            clauses.append("instr(username, ?) > 0")
            params.append(username_substring)

        query = "SELECT filename, username, ip, port, shared_time FROM file_advertisements"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY filename, username"

        with get_db_connection(self.db_path) as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            _row_to_advertisement(row)
            for row in rows
            if row["username"] in live_usernames
        ]
