"""SQLite-backed match repository with guarded conditional writes."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel

from shared.dal.conditions import IS_SET, After, AnyOf, Before, NotAfter
from shared.dal.match_repository import DuplicateGameCodeError, MatchRepository
from shared.dal.models import MatchRecord

if TYPE_CHECKING:
    from collections.abc import Mapping

    from shared.db.connection import Database

logger = structlog.get_logger()

_COLUMNS = tuple(MatchRecord.model_fields)
_STATS_COLUMNS = frozenset({"host_stats", "joined_stats"})
_IMMUTABLE_COLUMNS = frozenset({"id", "created_at"})
_SELECT_SQL = f"SELECT {', '.join(_COLUMNS)} FROM matches"  # noqa: S608

# Fixed-width UTC text so that lexical order in SQL equals chronological order.
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime(_TIMESTAMP_FORMAT)


def _to_db(value: object) -> object:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


def _check_column(column: str) -> None:
    if column not in _COLUMNS:
        raise ValueError(f"Unknown match column: {column!r}")


def compile_guard(guard: Mapping[str, object]) -> tuple[str, list[object]]:
    """Translate a guard mapping into a SQL predicate and its parameters."""
    clauses: list[str] = []
    params: list[object] = []
    for column, expected in guard.items():
        _check_column(column)
        if expected is None:
            clauses.append(f"{column} IS NULL")
        elif expected is IS_SET:
            clauses.append(f"{column} IS NOT NULL")
        elif isinstance(expected, AnyOf):
            clauses.append(f"{column} IN ({', '.join('?' for _ in expected.values)})")
            params.extend(_to_db(v) for v in expected.values)
        elif isinstance(expected, After):
            clauses.append(f"{column} > ?")
            params.append(format_timestamp(expected.moment))
        elif isinstance(expected, NotAfter):
            clauses.append(f"{column} <= ?")
            params.append(format_timestamp(expected.moment))
        elif isinstance(expected, Before):
            clauses.append(f"{column} < ?")
            params.append(format_timestamp(expected.moment))
        else:
            clauses.append(f"{column} = ?")
            params.append(_to_db(expected))
    return " AND ".join(clauses) if clauses else "1 = 1", params


class SqliteMatchRepository(MatchRepository):
    """SQLite implementation of MatchRepository.

    One column per record field; stat blocks are stored as JSON text.
    Each mutation is a single statement whose WHERE clause carries the guard,
    so concurrent writers cannot interleave between check and write.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create(self, record: MatchRecord) -> None:
        values = [_to_db(getattr(record, column)) for column in _COLUMNS]
        async with self._lock:
            try:
                self._db.connection.execute(
                    f"INSERT INTO matches ({', '.join(_COLUMNS)}) VALUES ({', '.join('?' for _ in _COLUMNS)})",  # noqa: S608
                    values,
                )
                self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                error_msg = str(exc).lower()
                if "matches.game_code" in error_msg or "idx_matches_game_code" in error_msg:
                    raise DuplicateGameCodeError(record.game_code) from exc
                raise ValueError(f"Match with id '{record.id}' already exists") from exc

    async def get(self, match_id: str) -> MatchRecord | None:
        return self._fetch_one(f"{_SELECT_SQL} WHERE id = ?", (match_id,))

    async def get_by_code(self, game_code: str) -> MatchRecord | None:
        return self._fetch_one(f"{_SELECT_SQL} WHERE game_code = ?", (game_code.upper(),))

    async def update_if(
        self,
        match_id: str,
        changes: Mapping[str, object],
        *,
        guard: Mapping[str, object],
    ) -> MatchRecord | None:
        if not changes:
            raise ValueError("update_if requires at least one change")
        assignments = dict(changes)
        assignments.setdefault("updated_at", datetime.now(UTC))
        for column in assignments:
            _check_column(column)
            if column in _IMMUTABLE_COLUMNS:
                raise ValueError(f"Match column {column!r} cannot be changed")

        set_sql = ", ".join(f"{column} = ?" for column in assignments)
        where_sql, where_params = compile_guard(guard)
        params = [_to_db(v) for v in assignments.values()] + [match_id, *where_params]

        async with self._lock:
            cursor = self._db.connection.execute(
                f"UPDATE matches SET {set_sql} WHERE id = ? AND {where_sql}",  # noqa: S608
                params,
            )
            self._db.connection.commit()
            if cursor.rowcount == 0:
                logger.debug("guarded update matched no rows", match_id=match_id, guard=sorted(guard))
                return None
            return self._fetch_one(f"{_SELECT_SQL} WHERE id = ?", (match_id,))

    async def delete_if(self, match_id: str, *, guard: Mapping[str, object]) -> bool:
        where_sql, where_params = compile_guard(guard)
        async with self._lock:
            cursor = self._db.connection.execute(
                f"DELETE FROM matches WHERE id = ? AND {where_sql}",  # noqa: S608
                [match_id, *where_params],
            )
            self._db.connection.commit()
        return cursor.rowcount > 0

    async def find_ids(self, guard: Mapping[str, object], limit: int = 500) -> list[str]:
        where_sql, where_params = compile_guard(guard)
        rows = self._db.connection.execute(
            f"SELECT id FROM matches WHERE {where_sql} ORDER BY updated_at LIMIT ?",  # noqa: S608
            [*where_params, limit],
        ).fetchall()
        return [row[0] for row in rows]

    async def find_for_participant(self, user_id: str) -> list[MatchRecord]:
        rows = self._db.connection.execute(
            f"{_SELECT_SQL} WHERE host_participant_id = ? OR joined_participant_id = ? ORDER BY created_at DESC",
            (user_id, user_id),
        ).fetchall()
        return [_row_to_record(row) for row in rows]

    def _fetch_one(self, sql: str, params: tuple[object, ...]) -> MatchRecord | None:
        row = self._db.connection.execute(sql, params).fetchone()
        if row is None:
            return None
        return _row_to_record(row)


def _row_to_record(row: tuple[object, ...]) -> MatchRecord:
    data = dict(zip(_COLUMNS, row, strict=True))
    for column in _STATS_COLUMNS:
        if data[column] is not None:
            data[column] = json.loads(data[column])
    data["ready"] = bool(data["ready"])
    return MatchRecord.model_validate(data)
