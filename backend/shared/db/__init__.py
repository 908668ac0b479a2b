"""SQLite database layer: connection management and repository implementations."""

from shared.db.connection import Database
from shared.db.match_repository import SqliteMatchRepository
from shared.db.player_repository import SqlitePlayerRepository
from shared.db.vocab_repository import SqliteVocabRepository, load_vocab_file, seed_vocabulary

__all__ = [
    "Database",
    "SqliteMatchRepository",
    "SqlitePlayerRepository",
    "SqliteVocabRepository",
    "load_vocab_file",
    "seed_vocabulary",
]
