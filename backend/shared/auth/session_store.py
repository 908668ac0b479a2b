"""In-memory player sessions keyed by the session cookie value."""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from shared.auth.models import AuthSession

if TYPE_CHECKING:
    from collections.abc import Callable

CLEANUP_INTERVAL_SECONDS = 300
DEFAULT_SESSION_TTL_SECONDS = 86400

logger = structlog.get_logger()


class AuthSessionStore:
    """Sessions live only in this process; a lobby restart logs everyone out.

    Expired sessions are dropped lazily on lookup and by a periodic sweep
    started with start_cleanup().
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
        cleanup_interval: float = CLEANUP_INTERVAL_SECONDS,
    ) -> None:
        self._sessions: dict[str, AuthSession] = {}
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._cleanup_task: asyncio.Task[None] | None = None

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def __len__(self) -> int:
        return len(self._sessions)

    def create_session(self, user_id: str, username: str) -> AuthSession:
        now = self._clock()
        session = AuthSession(
            session_id=str(uuid4()),
            user_id=user_id,
            username=username,
            created_at=now,
            expires_at=now + self._ttl_seconds,
        )
        self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> AuthSession | None:
        """Return the session if it exists and has not expired."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if self._clock() > session.expires_at:
            del self._sessions[session_id]
            return None
        return session

    def delete_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def cleanup_expired(self) -> int:
        now = self._clock()
        expired = [sid for sid, s in self._sessions.items() if now > s.expires_at]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("cleaned up expired sessions", count=len(expired))
        return len(expired)

    def start_cleanup(self) -> None:
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cleanup(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            self.cleanup_expired()
