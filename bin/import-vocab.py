"""Import a YAML vocabulary file into the lobby database.

Usage: python bin/import-vocab.py <vocab.yaml>

Items are inserted or replaced by vocab_id, so re-running with an edited
file updates the existing rows.
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from lobby.server.settings import LobbyServerSettings
from shared.db import Database, SqliteVocabRepository, load_vocab_file


async def main() -> None:
    if len(sys.argv) != 2:
        print(f"Usage: {sys.argv[0]} <vocab.yaml>")
        sys.exit(1)

    path = Path(sys.argv[1])
    try:
        items = load_vocab_file(path)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    settings = LobbyServerSettings()
    db = Database(settings.database_path)
    db.connect()
    try:
        written = await SqliteVocabRepository(db).add_items(items)
        print(f"Imported {written} items from {path} into {settings.database_path}")
    finally:
        db.close()


if __name__ == "__main__":
    asyncio.run(main())
