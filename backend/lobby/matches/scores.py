"""Score aggregation and result resolution for started matches."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from shared.dal.conditions import AnyOf
from shared.dal.models import MatchResult, MatchStatus, ParticipantStats, Role, ScoreBoard, Winner
from shared.errors import Conflict, Forbidden, NotFound

if TYPE_CHECKING:
    from lobby.matches.types import DisplayNames
    from shared.dal.match_repository import MatchRepository
    from shared.dal.models import MatchRecord

logger = structlog.get_logger()

HOST_FALLBACK_NAME = "Host"
JOINED_FALLBACK_NAME = "Unknown"
_SCORABLE = (MatchStatus.IN_PROGRESS, MatchStatus.FINISHED)


def decide_winner(host_score: int, joined_score: int) -> Winner:
    if host_score > joined_score:
        return Winner.HOST
    if joined_score > host_score:
        return Winner.JOINED
    return Winner.TIE


async def _load_participant_view(repo: MatchRepository, match_id: str, user_id: str) -> MatchRecord:
    record = await repo.get(match_id)
    if record is None:
        raise NotFound("Match not found")
    if record.role_of(user_id) is None:
        raise Forbidden("Not a participant of this match")
    return record


class ScoreAggregator:
    """Collects one final score per role. A resubmission overwrites the previous one."""

    def __init__(self, repo: MatchRepository) -> None:
        self._repo = repo

    async def submit(
        self,
        match_id: str,
        user_id: str,
        role: Role,
        score: int,
        stats: ParticipantStats,
    ) -> ScoreBoard:
        record = await self._repo.get(match_id)
        if record is None:
            raise NotFound("Match not found")
        if record.role_of(user_id) != role:
            raise Forbidden(f"You are not the {role} of this match")
        if record.status not in _SCORABLE:
            raise Conflict("Scores can only be submitted once the match has started")

        updated = await self._repo.update_if(
            match_id,
            {f"{role}_score": score, f"{role}_stats": stats},
            guard={"status": AnyOf(*_SCORABLE), f"{role}_participant_id": user_id},
        )
        if updated is None:
            raise Conflict("The match changed, refresh and try again")
        logger.info("score submitted", match_id=match_id, user_id=user_id, role=role, score=score)
        return ScoreBoard(
            host_score=updated.host_score,
            joined_score=updated.joined_score,
            both_submitted=updated.both_submitted,
        )

    async def read(self, match_id: str, user_id: str) -> ScoreBoard:
        record = await _load_participant_view(self._repo, match_id, user_id)
        return ScoreBoard(
            host_score=record.host_score,
            joined_score=record.joined_score,
            both_submitted=record.both_submitted,
        )


class ResultResolver:
    """Turns two submitted scores into a final result and closes the match.

    Both clients call resolve() once they see both scores; the finishing
    write accepts an already finished match so the second call is a no-op.
    """

    def __init__(self, repo: MatchRepository, names: DisplayNames) -> None:
        self._repo = repo
        self._names = names

    async def resolve(self, match_id: str, user_id: str) -> MatchResult:
        record = await _load_participant_view(self._repo, match_id, user_id)
        if record.host_score is None or record.joined_score is None:
            raise Conflict("Waiting for both scores")

        finished = await self._repo.update_if(
            match_id,
            {"status": MatchStatus.FINISHED},
            guard={
                "status": AnyOf(*_SCORABLE),
                "host_score": record.host_score,
                "joined_score": record.joined_score,
            },
        )
        if finished is None:
            raise Conflict("The match changed, refresh and try again")

        winner = decide_winner(record.host_score, record.joined_score)
        if record.status != MatchStatus.FINISHED:
            logger.info("match finished", match_id=match_id, winner=winner)
        return MatchResult(
            match_id=match_id,
            host_name=await self._names.display_name_of(record.host_participant_id, HOST_FALLBACK_NAME),
            joined_name=await self._names.display_name_of(record.joined_participant_id, JOINED_FALLBACK_NAME),
            host_score=record.host_score,
            joined_score=record.joined_score,
            winner=winner,
            host_stats=record.host_stats,
            joined_stats=record.joined_stats,
        )
