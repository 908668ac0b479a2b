"""SQLite-backed vocabulary content store and YAML loader."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import yaml

from shared.dal.models import CategorySummary, GameMode, VocabItem
from shared.dal.vocab_repository import VocabRepository

if TYPE_CHECKING:
    from shared.db.connection import Database

logger = structlog.get_logger()

_ITEM_COLUMNS = (
    "vocab_id",
    "indo",
    "english",
    "word_class",
    "category",
    "subcategory",
    "sentence_indo",
    "sentence_english",
)
_INSERT_SQL = (
    f"INSERT OR REPLACE INTO vocab_items ({', '.join(_ITEM_COLUMNS)}) "  # noqa: S608
    f"VALUES ({', '.join('?' for _ in _ITEM_COLUMNS)})"
)


def load_vocab_file(path: Path) -> list[VocabItem]:
    """Parse a YAML vocabulary file with a top-level ``items`` list.

    Raises ValueError when the file is not shaped like a vocabulary file.
    """
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise ValueError(f"Expected a mapping with an 'items' list in {path}")

    items = [VocabItem.model_validate(raw) for raw in data["items"]]
    logger.info("loaded vocabulary file", path=str(path), count=len(items))
    return items


def _insert_items(conn: sqlite3.Connection, items: list[VocabItem]) -> None:
    """Insert or replace items by vocab_id in a single transaction."""
    try:
        conn.executemany(_INSERT_SQL, [tuple(getattr(item, c) for c in _ITEM_COLUMNS) for item in items])
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise


def seed_vocabulary(db: Database, path: Path) -> int:
    """Import ``path`` into the content table if the table is empty. Returns the count imported."""
    row = db.connection.execute("SELECT COUNT(*) FROM vocab_items").fetchone()
    if row[0] > 0:
        return 0
    items = load_vocab_file(path)
    _insert_items(db.connection, items)
    logger.info("seeded vocabulary", path=str(path), count=len(items))
    return len(items)


class SqliteVocabRepository(VocabRepository):
    """SQLite implementation of VocabRepository."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def get_items(self, category: str, subcategory: int, mode: GameMode) -> list[VocabItem]:
        sql = f"SELECT {', '.join(_ITEM_COLUMNS)} FROM vocab_items WHERE category = ?"  # noqa: S608
        params: list[object] = [category]
        if subcategory != 0:
            sql += " AND subcategory = ?"
            params.append(subcategory)
        if mode == GameMode.SENTENCE:
            sql += " AND sentence_indo IS NOT NULL AND sentence_english IS NOT NULL"
        sql += " ORDER BY vocab_id"
        rows = self._db.connection.execute(sql, params).fetchall()
        return [VocabItem.model_validate(dict(zip(_ITEM_COLUMNS, row, strict=True))) for row in rows]

    async def list_categories(self) -> list[CategorySummary]:
        rows = self._db.connection.execute(
            "SELECT category, COUNT(*), COUNT(DISTINCT subcategory), "
            "MAX(sentence_indo IS NOT NULL AND sentence_english IS NOT NULL) "
            "FROM vocab_items GROUP BY category ORDER BY category",
        ).fetchall()
        return [
            CategorySummary(name=name, count=count, subcategory_count=subs, has_sentences=bool(sentences))
            for name, count, subs, sentences in rows
        ]

    async def add_items(self, items: list[VocabItem]) -> int:
        """Insert or replace items by vocab_id. Returns the number written."""
        async with self._lock:
            _insert_items(self._db.connection, items)
        return len(items)
