"""Run the expiry and inactivity sweeps once against the lobby database.

Usage: python bin/sweep-matches.py

Meant for cron on deployments that run the lobby without its background
sweeper. Thresholds come from the LOBBY_* environment variables.
"""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from lobby.matches import LobbyService
from lobby.server.settings import LobbyServerSettings
from shared.auth import AuthService, AuthSettings, get_hasher
from shared.db import Database, SqliteMatchRepository, SqlitePlayerRepository
from shared.logging import setup_logging


async def main() -> None:
    settings = LobbyServerSettings()
    setup_logging(service="sweep")

    db = Database(settings.database_path)
    db.connect()
    try:
        names = AuthService(SqlitePlayerRepository(db), password_hasher=get_hasher(AuthSettings().password_hasher))
        lobby = LobbyService(SqliteMatchRepository(db), names, ttl_seconds=settings.lobby_ttl_seconds)
        expired = await lobby.expire_waiting()
        inactive = await lobby.delete_inactive(timedelta(hours=settings.inactive_threshold_hours))
        print(f"Deleted {expired} expired lobbies and {inactive} inactive matches")
    finally:
        db.close()


if __name__ == "__main__":
    asyncio.run(main())
