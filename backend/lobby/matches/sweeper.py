"""Periodic maintenance task running both lobby sweeps."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from lobby.matches.service import LobbyService

logger = structlog.get_logger()


class MatchSweeper:
    """Run the expire and inactivity sweeps on a fixed interval.

    Call start() on app startup and stop() on shutdown. A failed pass is
    logged and the loop carries on with the next one.
    """

    def __init__(
        self,
        lobby: LobbyService,
        *,
        interval_seconds: float,
        inactive_threshold: timedelta,
    ) -> None:
        self._lobby = lobby
        self._interval = interval_seconds
        self._inactive_threshold = inactive_threshold
        self._task: asyncio.Task[None] | None = None

    async def run_once(self) -> tuple[int, int]:
        """Run both sweeps. Returns (expired, inactive) deletion counts."""
        expired = await self._lobby.expire_waiting()
        inactive = await self._lobby.delete_inactive(self._inactive_threshold)
        return expired, inactive

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.run_once()
            except Exception:
                logger.exception("match sweep pass failed")
