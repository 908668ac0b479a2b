"""Client poller: periodic re-read of the match record with edge-triggered events."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

import httpx
import structlog

from arena.events import LobbyClosed, MatchEvent, RemovedFromLobby, diff_snapshots
from shared.dal.models import Role
from shared.errors import Forbidden, MatchError, NotFound

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from arena.client import LobbyClient
    from shared.dal.models import MatchRecord

logger = structlog.get_logger()


class MatchPoller:
    """Poll one match on behalf of one participant.

    Staleness is bounded by the interval plus request latency. Stopping the
    poller has no effect on the lobby. A failed read is logged and retried on
    the next tick; a missing record ends the loop with LobbyClosed.
    """

    def __init__(
        self,
        client: LobbyClient,
        match_id: str,
        participant_id: str,
        *,
        interval: float = 1.0,
        initial: MatchRecord | None = None,
    ) -> None:
        self._client = client
        self._match_id = match_id
        self._participant_id = participant_id
        self._interval = interval
        self._snapshot = initial
        self._closed = False
        self._task: asyncio.Task[None] | None = None

    @property
    def snapshot(self) -> MatchRecord | None:
        """The most recent record observed."""
        return self._snapshot

    @property
    def closed(self) -> bool:
        return self._closed

    async def poll_once(self) -> list[MatchEvent]:
        """Read the record once and return the events since the previous read."""
        if self._closed:
            return []
        try:
            current = await self._client.get_match(self._match_id)
        except NotFound:
            self._closed = True
            events = diff_snapshots(self._snapshot, None, self._participant_id)
            return events or [LobbyClosed()]
        except Forbidden:
            # Lost read access: the removal record now names someone else.
            self._closed = True
            was_joined = self._snapshot is not None and self._snapshot.role_of(self._participant_id) == Role.JOINED
            return [RemovedFromLobby(reason=None)] if was_joined else [LobbyClosed()]

        events = diff_snapshots(self._snapshot, current, self._participant_id)
        self._snapshot = current
        if any(isinstance(e, RemovedFromLobby) for e in events):
            self._closed = True
        return events

    async def run(self, on_event: Callable[[MatchEvent], Awaitable[None]]) -> None:
        """Poll until the lobby closes, the caller is removed, or the task is cancelled."""
        while not self._closed:
            try:
                events = await self.poll_once()
            except (httpx.HTTPError, MatchError):
                logger.warning("match poll failed, retrying", match_id=self._match_id, exc_info=True)
                events = []
            for event in events:
                await on_event(event)
            if self._closed:
                break
            await asyncio.sleep(self._interval)

    def start(self, on_event: Callable[[MatchEvent], Awaitable[None]]) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self.run(on_event))

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
