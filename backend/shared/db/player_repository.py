"""SQLite-backed player accounts."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING

from shared.auth.models import Player
from shared.dal.player_repository import PlayerRepository

if TYPE_CHECKING:
    from shared.db.connection import Database


def _player_from_row(row: tuple[str] | None) -> Player | None:
    return None if row is None else Player.model_validate(json.loads(row[0]))


class SqlitePlayerRepository(PlayerRepository):
    """Players are stored as a JSON document next to the indexed id and username.

    Username uniqueness is left to the NOCASE unique index, so registration
    is one INSERT and a lost race surfaces as ValueError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_player(self, player: Player) -> None:
        """Insert a player. Raises ValueError on duplicate id or username."""
        conn = self._db.connection
        async with self._lock:
            try:
                conn.execute(
                    "INSERT INTO players (id, username, data) VALUES (?, ?, ?)",
                    (player.user_id, player.username, player.model_dump_json()),
                )
                conn.commit()
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                detail = str(exc).lower()
                if "players.username" in detail or "idx_players_username" in detail:
                    raise ValueError(f"Username '{player.username}' already taken") from exc
                if "players.id" in detail:
                    raise ValueError(f"Player id '{player.user_id}' already exists") from exc
                raise ValueError(str(exc)) from exc  # pragma: no cover

    async def get_by_id(self, user_id: str) -> Player | None:
        row = self._db.connection.execute("SELECT data FROM players WHERE id = ?", (user_id,)).fetchone()
        return _player_from_row(row)

    async def get_by_username(self, username: str) -> Player | None:
        """Case-insensitive lookup."""
        row = self._db.connection.execute(
            "SELECT data FROM players WHERE username = ? COLLATE NOCASE",
            (username,),
        ).fetchone()
        return _player_from_row(row)

    async def update_display_name(self, user_id: str, display_name: str) -> Player | None:
        """Rewrite the stored display name. Returns None for an unknown player."""
        async with self._lock:
            cursor = self._db.connection.execute(
                "UPDATE players SET data = json_set(data, '$.display_name', ?) WHERE id = ?",
                (display_name, user_id),
            )
            self._db.connection.commit()
        if cursor.rowcount == 0:
            return None
        return await self.get_by_id(user_id)
