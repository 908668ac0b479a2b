"""SQLite database connection and schema management."""

import os
import sqlite3
from pathlib import Path

import structlog

logger = structlog.get_logger()

_DB_FILE_PERMISSIONS = 0o600

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS players (
    id TEXT PRIMARY KEY,
    username TEXT NOT NULL,
    data TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_players_username
    ON players (username COLLATE NOCASE);

CREATE TABLE IF NOT EXISTS matches (
    id TEXT PRIMARY KEY,
    game_code TEXT NOT NULL,
    host_participant_id TEXT NOT NULL,
    joined_participant_id TEXT,
    category TEXT NOT NULL,
    subcategory INTEGER NOT NULL DEFAULT 0,
    num_questions INTEGER NOT NULL,
    timer_duration_seconds INTEGER NOT NULL,
    game_mode TEXT NOT NULL,
    status TEXT NOT NULL,
    approval TEXT NOT NULL,
    ready INTEGER NOT NULL DEFAULT 0,
    host_score INTEGER,
    joined_score INTEGER,
    host_stats TEXT,
    joined_stats TEXT,
    removed_participant_id TEXT,
    removal_reason TEXT,
    created_at TEXT NOT NULL,
    expires_at TEXT NOT NULL,
    started_at TEXT,
    updated_at TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_matches_game_code ON matches (game_code);
CREATE INDEX IF NOT EXISTS idx_matches_host ON matches (host_participant_id);
CREATE INDEX IF NOT EXISTS idx_matches_joined ON matches (joined_participant_id);
CREATE INDEX IF NOT EXISTS idx_matches_status_expires ON matches (status, expires_at);
CREATE INDEX IF NOT EXISTS idx_matches_updated ON matches (updated_at);

CREATE TABLE IF NOT EXISTS vocab_items (
    vocab_id INTEGER PRIMARY KEY,
    indo TEXT NOT NULL,
    english TEXT NOT NULL,
    word_class TEXT NOT NULL DEFAULT '',
    category TEXT NOT NULL,
    subcategory INTEGER NOT NULL,
    sentence_indo TEXT,
    sentence_english TEXT
);

CREATE INDEX IF NOT EXISTS idx_vocab_category ON vocab_items (category, subcategory);
"""


class Database:
    """SQLite database wrapper with schema management."""

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Return the active connection or raise if disconnected."""
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    @property
    def path(self) -> str:
        return self._path

    def connect(self) -> None:
        """Open the database, apply pragmas, create schema, and harden file permissions."""
        in_memory = self._path == ":memory:"
        if not in_memory:
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        if not in_memory:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.executescript(_SCHEMA_SQL)

        if not in_memory:
            self._harden_permissions()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _harden_permissions(self) -> None:
        """Set restrictive file permissions on POSIX systems (best effort).

        Hardens the main DB file and the WAL/SHM sibling files created by WAL mode,
        since they also contain database content (password hashes).
        """
        if os.name != "posix":  # pragma: no cover
            return
        for suffix in ("", "-wal", "-shm"):
            p = Path(self._path + suffix)
            if p.exists():
                try:
                    p.chmod(_DB_FILE_PERMISSIONS)
                except OSError:
                    logger.warning("could not set file permissions", permissions=oct(_DB_FILE_PERMISSIONS), path=str(p))
