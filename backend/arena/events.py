"""Edge-triggered events derived from consecutive match snapshots.

``diff_snapshots`` is pure: the poller feeds it the previous and current
record and gets back the transitions that happened in between, from the
point of view of one participant. The first snapshot is a baseline and
produces no events.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.dal.models import Approval, MatchRecord, MatchStatus, RemovalReason, Role


@dataclass(frozen=True)
class OpponentJoined:
    participant_id: str


@dataclass(frozen=True)
class OpponentLeft:
    participant_id: str
    reason: RemovalReason | None


@dataclass(frozen=True)
class ApprovalGranted:
    pass


@dataclass(frozen=True)
class OpponentReady:
    pass


@dataclass(frozen=True)
class RemovedFromLobby:
    reason: RemovalReason | None


@dataclass(frozen=True)
class MatchStarted:
    record: MatchRecord


@dataclass(frozen=True)
class OpponentScorePosted:
    score: int


@dataclass(frozen=True)
class MatchFinished:
    record: MatchRecord


@dataclass(frozen=True)
class LobbyClosed:
    pass


MatchEvent = (
    OpponentJoined
    | OpponentLeft
    | ApprovalGranted
    | OpponentReady
    | RemovedFromLobby
    | MatchStarted
    | OpponentScorePosted
    | MatchFinished
    | LobbyClosed
)


def _removal_reason(record: MatchRecord, participant_id: str) -> RemovalReason | None:
    if record.removed_participant_id == participant_id:
        return record.removal_reason
    return None


def _host_events(previous: MatchRecord, current: MatchRecord) -> list[MatchEvent]:
    events: list[MatchEvent] = []
    before, after = previous.joined_participant_id, current.joined_participant_id
    if before is not None and before != after:
        events.append(OpponentLeft(participant_id=before, reason=_removal_reason(current, before)))
    if after is not None and before != after:
        events.append(OpponentJoined(participant_id=after))
    if after is not None and current.ready and not (previous.ready and before == after):
        events.append(OpponentReady())
    return events


def _joined_events(previous: MatchRecord, current: MatchRecord, me: str) -> list[MatchEvent]:
    if current.joined_participant_id != me:
        return [RemovedFromLobby(reason=_removal_reason(current, me))]
    if current.approval == Approval.ACCEPTED and previous.approval != Approval.ACCEPTED:
        return [ApprovalGranted()]
    return []


def diff_snapshots(previous: MatchRecord | None, current: MatchRecord | None, me: str) -> list[MatchEvent]:
    """Return the events ``me`` should observe going from ``previous`` to ``current``.

    ``current`` is None when the record no longer exists.
    """
    if previous is None:
        return []
    if current is None:
        return [LobbyClosed()]

    role = previous.role_of(me)
    if role is None:
        return []

    events: list[MatchEvent] = []
    if role == Role.HOST:
        events.extend(_host_events(previous, current))
    else:
        events.extend(_joined_events(previous, current, me))
        if current.joined_participant_id != me:
            return events

    if current.status == MatchStatus.IN_PROGRESS and previous.status != MatchStatus.IN_PROGRESS:
        events.append(MatchStarted(record=current))

    opponent_score = current.joined_score if role == Role.HOST else current.host_score
    previous_opponent_score = previous.joined_score if role == Role.HOST else previous.host_score
    if opponent_score is not None and previous_opponent_score is None:
        events.append(OpponentScorePosted(score=opponent_score))

    if current.status == MatchStatus.FINISHED and previous.status != MatchStatus.FINISHED:
        events.append(MatchFinished(record=current))
    return events
