"""Abstract interface for match record persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from shared.dal.models import MatchRecord


class DuplicateGameCodeError(Exception):
    """Raised when a new record's game code collides with a live record."""


class MatchRepository(ABC):
    """Abstract interface for match records.

    Every mutation is a guarded conditional write: ``guard`` maps column names to
    expected values (see ``shared.dal.conditions``) and the write only applies if
    the stored row still matches. A write that matches nothing returns None/False;
    callers treat that as the state having moved on.
    """

    @abstractmethod
    async def create(self, record: MatchRecord) -> None:
        """Insert a new record. Raises DuplicateGameCodeError on a game code collision."""

    @abstractmethod
    async def get(self, match_id: str) -> MatchRecord | None: ...

    @abstractmethod
    async def get_by_code(self, game_code: str) -> MatchRecord | None: ...

    @abstractmethod
    async def update_if(
        self,
        match_id: str,
        changes: Mapping[str, object],
        *,
        guard: Mapping[str, object],
    ) -> MatchRecord | None:
        """Apply ``changes`` atomically if the row matches ``guard``. Return the updated record."""

    @abstractmethod
    async def delete_if(self, match_id: str, *, guard: Mapping[str, object]) -> bool:
        """Delete the row if it matches ``guard``. Return True if a row was removed."""

    @abstractmethod
    async def find_ids(self, guard: Mapping[str, object], limit: int = 500) -> list[str]:
        """Return ids of records matching ``guard`` (used by sweeps)."""

    @abstractmethod
    async def find_for_participant(self, user_id: str) -> list[MatchRecord]:
        """Return live records where the user is host or joined participant, newest first."""
