"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from tracker import config


def resolve_database_path(db_path: Optional[str] = None) -> str:
    return db_path if db_path is not None else config.DATABASE_PATH


def init_database(db_path: Optional[str] = None) -> None:
    """
    Initialize database and create tables if they don't exist.

    Args:
        db_path: SQLite file path (defaults to PEERLINK_DATABASE_PATH)
    """
    path = Path(resolve_database_path(db_path))
    path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection(str(path)) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS accounts (
                username TEXT PRIMARY KEY,
                password_hash TEXT NOT NULL,
                created_at REAL NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS peers (
                username TEXT PRIMARY KEY,
                ip TEXT NOT NULL,
                port INTEGER NOT NULL,
                last_seen REAL NOT NULL,
                last_heartbeat REAL NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS file_advertisements (
                advertisement_id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT NOT NULL,
                username TEXT NOT NULL,
                ip TEXT NOT NULL,
                port INTEGER NOT NULL,
                shared_time REAL NOT NULL,
                UNIQUE(username, filename)
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_peers_last_heartbeat ON peers(last_heartbeat)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_ads_username ON file_advertisements(username)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_ads_filename ON file_advertisements(filename)
        """)

        conn.commit()


@contextmanager
def get_db_connection(db_path: Optional[str] = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(resolve_database_path(db_path), timeout=10)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()
