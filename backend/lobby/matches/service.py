"""Lobby state machine over the shared match record.

Every mutation reads the record once to classify caller errors (missing record,
wrong role, expired lobby) and then issues a single guarded write carrying the
observed values in its predicate. A write that matches nothing raises Conflict:
the other participant or a sweep changed the record in between, and the caller
re-reads on its next poll.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from lobby.matches.codes import generate_game_code
from shared.dal.conditions import After, AnyOf, Before, NotAfter
from shared.dal.match_repository import DuplicateGameCodeError
from shared.dal.models import Approval, MatchConfig, MatchPreview, MatchRecord, MatchStatus, RemovalReason, Role
from shared.errors import Conflict, Expired, Forbidden, NotFound
from shared.validators import normalize_game_code

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from lobby.matches.types import DisplayNames
    from shared.dal.match_repository import MatchRepository

logger = structlog.get_logger()

DEFAULT_LOBBY_TTL_SECONDS = 300
MAX_CODE_ATTEMPTS = 10
SWEEP_BATCH_SIZE = 500

_PRE_GAME = AnyOf(MatchStatus.WAITING, MatchStatus.OPPONENT_JOINED)
_PLAYED = AnyOf(MatchStatus.IN_PROGRESS, MatchStatus.FINISHED)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LobbyService:
    def __init__(
        self,
        repo: MatchRepository,
        names: DisplayNames,
        *,
        ttl_seconds: int = DEFAULT_LOBBY_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
        code_generator: Callable[[], str] = generate_game_code,
        sweep_batch_size: int = SWEEP_BATCH_SIZE,
    ) -> None:
        self._repo = repo
        self._names = names
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._code_generator = code_generator
        self._sweep_batch_size = sweep_batch_size

    async def create(self, host_id: str, config: MatchConfig) -> MatchRecord:
        """Open a new waiting lobby owned by ``host_id``."""
        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            now = self._clock()
            record = MatchRecord(
                id=str(uuid4()),
                game_code=self._code_generator(),
                host_participant_id=host_id,
                **config.model_dump(),
                created_at=now,
                expires_at=now + self._ttl,
                updated_at=now,
            )
            try:
                await self._repo.create(record)
            except DuplicateGameCodeError:
                logger.info("game code collision, regenerating", attempt=attempt)
                continue
            logger.info("match created", match_id=record.id, user_id=host_id, game_code=record.game_code)
            return record
        raise Conflict("Could not allocate a unique game code, try again")

    async def get(self, match_id: str, user_id: str) -> MatchRecord:
        """Read a record for polling.

        Participants may read it, and so may the last removed participant, so
        that their poller can tell why they were dropped.
        """
        record = await self._load(match_id)
        if record.role_of(user_id) is None and record.removed_participant_id != user_id:
            raise Forbidden("Not a participant of this match")
        return record

    async def preview(self, game_code: str) -> MatchPreview:
        record = await self._load_by_code(game_code)
        self._ensure_joinable(record)
        return MatchPreview(
            match_id=record.id,
            game_code=record.game_code,
            host_display_name=await self._names.display_name_of(record.host_participant_id, "Host"),
            status=record.status,
            config=record.config,
            expires_at=record.expires_at,
        )

    async def find_active(self, user_id: str) -> MatchRecord | None:
        """Return the caller's live lobby, preferring one they host."""
        now = self._clock()
        records = await self._repo.find_for_participant(user_id)
        for record in records:
            if (
                record.host_participant_id == user_id
                and record.status in {MatchStatus.WAITING, MatchStatus.OPPONENT_JOINED}
                and not record.is_expired(now)
            ):
                return record
        for record in records:
            if record.joined_participant_id == user_id and record.status in {
                MatchStatus.OPPONENT_JOINED,
                MatchStatus.IN_PROGRESS,
            }:
                return record
        return None

    async def join(self, user_id: str, game_code: str) -> MatchRecord:
        record = await self._load_by_code(game_code)
        if record.host_participant_id == user_id:
            raise Forbidden("The host cannot join their own match")
        self._ensure_joinable(record)

        now = self._clock()
        updated = await self._repo.update_if(
            record.id,
            {
                "joined_participant_id": user_id,
                "status": MatchStatus.OPPONENT_JOINED,
                "approval": Approval.PENDING,
                "ready": False,
                "updated_at": now,
            },
            guard={
                "status": MatchStatus.WAITING,
                "joined_participant_id": None,
                "expires_at": After(now),
            },
        )
        if updated is None:
            current = await self._repo.get(record.id)
            if current is not None and current.is_expired(self._clock()):
                raise Expired("This lobby has expired")
            raise Conflict("Someone else joined first")
        logger.info("opponent joined", match_id=record.id, user_id=user_id)
        return updated

    async def configure(self, match_id: str, host_id: str, config: MatchConfig) -> MatchRecord:
        """Replace the configuration. The opponent has to ready up again."""
        record = await self._load_for(match_id, host_id, Role.HOST)
        if record.status not in {MatchStatus.WAITING, MatchStatus.OPPONENT_JOINED}:
            raise Conflict("Configuration is locked once the match starts")
        updated = await self._write(
            record,
            {**config.model_dump(), "ready": False},
            guard={"status": _PRE_GAME, "host_participant_id": host_id},
        )
        logger.info("match configured", match_id=match_id, user_id=host_id)
        return updated

    async def accept(self, match_id: str, host_id: str) -> MatchRecord:
        record = await self._load_for(match_id, host_id, Role.HOST)
        if record.status != MatchStatus.OPPONENT_JOINED or record.approval != Approval.PENDING:
            raise Conflict("There is no pending opponent to accept")
        updated = await self._write(
            record,
            {"approval": Approval.ACCEPTED},
            guard={
                "status": MatchStatus.OPPONENT_JOINED,
                "approval": Approval.PENDING,
                "joined_participant_id": record.joined_participant_id,
            },
        )
        logger.info("opponent accepted", match_id=match_id, user_id=host_id)
        return updated

    async def reject(self, match_id: str, host_id: str) -> MatchRecord:
        return await self._remove_opponent(match_id, host_id, RemovalReason.REJECTED)

    async def kick(self, match_id: str, host_id: str) -> MatchRecord:
        return await self._remove_opponent(match_id, host_id, RemovalReason.KICKED)

    async def ready(self, match_id: str, user_id: str) -> MatchRecord:
        record = await self._load_for(match_id, user_id, Role.JOINED)
        if record.status != MatchStatus.OPPONENT_JOINED or record.approval != Approval.ACCEPTED:
            raise Conflict("The host has not accepted you yet")
        updated = await self._write(
            record,
            {"ready": True},
            guard={
                "status": MatchStatus.OPPONENT_JOINED,
                "approval": Approval.ACCEPTED,
                "joined_participant_id": user_id,
            },
        )
        logger.info("opponent ready", match_id=match_id, user_id=user_id)
        return updated

    async def leave(self, match_id: str, user_id: str) -> MatchRecord | None:
        """Leave a match. The host leaving deletes it; returns None in that case."""
        record = await self._load(match_id)
        role = record.role_of(user_id)
        if role is None:
            raise Forbidden("Not a participant of this match")

        if role == Role.HOST:
            if not await self._repo.delete_if(match_id, guard={"host_participant_id": user_id}):
                raise NotFound("Match not found")
            logger.info("host left, match deleted", match_id=match_id, user_id=user_id)
            return None

        if record.status != MatchStatus.OPPONENT_JOINED:
            raise Conflict("You cannot leave a match that has already started")
        updated = await self._write(
            record,
            self._reopen_changes(user_id, RemovalReason.LEFT),
            guard={"status": MatchStatus.OPPONENT_JOINED, "joined_participant_id": user_id},
        )
        logger.info("opponent left", match_id=match_id, user_id=user_id)
        return updated

    async def start(self, match_id: str, host_id: str) -> MatchRecord:
        record = await self._load_for(match_id, host_id, Role.HOST)
        if not (
            record.status == MatchStatus.OPPONENT_JOINED and record.approval == Approval.ACCEPTED and record.ready
        ):
            raise Conflict("The opponent must be accepted and ready before starting")
        updated = await self._write(
            record,
            {"status": MatchStatus.IN_PROGRESS, "started_at": self._clock()},
            guard={
                "status": MatchStatus.OPPONENT_JOINED,
                "approval": Approval.ACCEPTED,
                "ready": True,
                "joined_participant_id": record.joined_participant_id,
            },
        )
        logger.info("match started", match_id=match_id, user_id=host_id)
        return updated

    async def reset(self, match_id: str, host_id: str) -> MatchRecord:
        """Return a played match to the lobby, keeping code, config and opponent."""
        record = await self._load_for(match_id, host_id, Role.HOST)
        if record.status not in {MatchStatus.IN_PROGRESS, MatchStatus.FINISHED}:
            raise Conflict("Only a started or finished match can be reset")

        changes: dict[str, object] = {
            "host_score": None,
            "joined_score": None,
            "host_stats": None,
            "joined_stats": None,
            "started_at": None,
            "ready": False,
        }
        if record.joined_participant_id is not None:
            changes["status"] = MatchStatus.OPPONENT_JOINED
        else:
            changes.update(
                status=MatchStatus.WAITING,
                approval=Approval.PENDING,
                expires_at=self._clock() + self._ttl,
            )
        updated = await self._write(
            record,
            changes,
            guard={"status": _PLAYED, "joined_participant_id": record.joined_participant_id},
        )
        logger.info("match reset", match_id=match_id, user_id=host_id, status=updated.status)
        return updated

    async def expire_waiting(self) -> int:
        """Delete waiting lobbies whose join window has passed. Returns the count deleted."""
        now = self._clock()
        guard = {"status": MatchStatus.WAITING, "expires_at": NotAfter(now)}
        return await self._sweep(guard, sweep="expire")

    async def delete_inactive(self, threshold: timedelta) -> int:
        """Delete records of any status not written for ``threshold``. Returns the count deleted."""
        guard = {"updated_at": Before(self._clock() - threshold)}
        return await self._sweep(guard, sweep="inactive")

    async def _sweep(self, guard: Mapping[str, object], *, sweep: str) -> int:
        """Delete every record matching ``guard``, one batch of candidate ids at a time.

        Ids that failed to delete are not retried in the same pass; the pass ends
        once a batch holds nothing new.
        """
        deleted = 0
        attempted: set[str] = set()
        while True:
            batch = await self._repo.find_ids(guard, limit=self._sweep_batch_size)
            fresh = [match_id for match_id in batch if match_id not in attempted]
            if not fresh:
                if len(batch) >= self._sweep_batch_size:
                    logger.warning("sweep stopped on a batch of undeletable matches", sweep=sweep, count=len(batch))
                break
            for match_id in fresh:
                attempted.add(match_id)
                try:
                    if await self._repo.delete_if(match_id, guard=guard):
                        deleted += 1
                except Exception:
                    logger.exception("sweep failed to delete match", match_id=match_id, sweep=sweep)
        if deleted:
            logger.info("sweep deleted matches", sweep=sweep, count=deleted)
        return deleted

    async def _remove_opponent(self, match_id: str, host_id: str, reason: RemovalReason) -> MatchRecord:
        record = await self._load_for(match_id, host_id, Role.HOST)
        if record.status != MatchStatus.OPPONENT_JOINED or record.joined_participant_id is None:
            raise Conflict("There is no opponent in the lobby to remove")
        updated = await self._write(
            record,
            self._reopen_changes(record.joined_participant_id, reason),
            guard={
                "status": MatchStatus.OPPONENT_JOINED,
                "joined_participant_id": record.joined_participant_id,
            },
        )
        logger.info(
            "opponent removed",
            match_id=match_id,
            user_id=host_id,
            removed=record.joined_participant_id,
            reason=reason,
        )
        return updated

    def _reopen_changes(self, removed_id: str, reason: RemovalReason) -> dict[str, object]:
        """Field set for returning a lobby to waiting with the joined slot cleared."""
        return {
            "joined_participant_id": None,
            "approval": Approval.PENDING,
            "ready": False,
            "status": MatchStatus.WAITING,
            "removed_participant_id": removed_id,
            "removal_reason": reason,
            "expires_at": self._clock() + self._ttl,
        }

    async def _write(
        self,
        record: MatchRecord,
        changes: dict[str, object],
        *,
        guard: Mapping[str, object],
    ) -> MatchRecord:
        changes.setdefault("updated_at", self._clock())
        updated = await self._repo.update_if(record.id, changes, guard=guard)
        if updated is None:
            raise Conflict("The match changed, refresh and try again")
        return updated

    async def _load(self, match_id: str) -> MatchRecord:
        record = await self._repo.get(match_id)
        if record is None:
            raise NotFound("Match not found")
        return record

    async def _load_by_code(self, game_code: str) -> MatchRecord:
        try:
            code = normalize_game_code(game_code)
        except ValueError as e:
            raise NotFound("No match with that code") from e
        record = await self._repo.get_by_code(code)
        if record is None:
            raise NotFound("No match with that code")
        return record

    async def _load_for(self, match_id: str, user_id: str, role: Role) -> MatchRecord:
        record = await self._load(match_id)
        actual = record.role_of(user_id)
        if actual != role:
            if role == Role.HOST:
                raise Forbidden("Only the host can do that")
            raise Forbidden("Only the joined participant can do that")
        return record

    def _ensure_joinable(self, record: MatchRecord) -> None:
        if record.status != MatchStatus.WAITING or record.joined_participant_id is not None:
            raise Conflict("This lobby is full or already started")
        if record.is_expired(self._clock()):
            raise Expired("This lobby has expired")
