"""Shared fixtures for lobby tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from lobby.matches import LobbyService, ResultResolver, ScoreAggregator
from shared.auth import AuthService
from shared.auth.password import SimpleHasher
from shared.auth.session_store import AuthSessionStore
from shared.db import SqliteMatchRepository, SqlitePlayerRepository

if TYPE_CHECKING:
    from shared.db import Database

START = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class SequentialCodes:
    """Game code generator yielding ABC001, ABC002, ..."""

    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"ABC{self.count:03d}"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def match_repo(memory_db: Database) -> SqliteMatchRepository:
    return SqliteMatchRepository(memory_db)


@pytest.fixture
def auth_service(memory_db: Database) -> AuthService:
    return AuthService(SqlitePlayerRepository(memory_db), AuthSessionStore(), password_hasher=SimpleHasher())


@pytest.fixture
def lobby(match_repo: SqliteMatchRepository, auth_service: AuthService, clock: FakeClock) -> LobbyService:
    return LobbyService(match_repo, auth_service, ttl_seconds=300, clock=clock, code_generator=SequentialCodes())


@pytest.fixture
def aggregator(match_repo: SqliteMatchRepository) -> ScoreAggregator:
    return ScoreAggregator(match_repo)


@pytest.fixture
def resolver(match_repo: SqliteMatchRepository, auth_service: AuthService) -> ResultResolver:
    return ResultResolver(match_repo, auth_service)
