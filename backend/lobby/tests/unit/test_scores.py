"""Tests for score aggregation and result resolution."""

from __future__ import annotations

import pytest

from lobby.matches.scores import decide_winner
from shared.dal.models import MatchConfig, MatchStatus, ParticipantStats, Role, ScoreBoard, Winner
from shared.errors import Conflict, Forbidden, NotFound

HOST = "host-1"
GUEST = "guest-1"

CONFIG = MatchConfig(category="animals", num_questions=2)
STATS = ParticipantStats(
    total_questions=2,
    correct_answers=1,
    wrong_answers=1,
    accuracy_percent=50.0,
    total_time_ms=7000,
    avg_time_per_question_ms=3500,
    fastest_answer_ms=3000,
    slowest_answer_ms=4000,
)


async def _started(lobby, host: str = HOST, guest: str = GUEST):
    record = await lobby.create(host, CONFIG)
    await lobby.join(guest, record.game_code)
    await lobby.accept(record.id, host)
    await lobby.ready(record.id, guest)
    return await lobby.start(record.id, host)


class TestDecideWinner:
    @pytest.mark.parametrize(
        ("host", "joined", "expected"),
        [(300, 200, Winner.HOST), (100, 250, Winner.JOINED), (180, 180, Winner.TIE), (0, 0, Winner.TIE)],
    )
    def test_decide_winner(self, host, joined, expected):
        assert decide_winner(host, joined) == expected


class TestSubmit:
    async def test_first_submission(self, lobby, aggregator):
        record = await _started(lobby)
        board = await aggregator.submit(record.id, HOST, Role.HOST, 170, STATS)
        assert board.host_score == 170
        assert board.joined_score is None
        assert board.both_submitted is False

    async def test_both_submissions(self, lobby, aggregator):
        record = await _started(lobby)
        await aggregator.submit(record.id, HOST, Role.HOST, 170, STATS)
        board = await aggregator.submit(record.id, GUEST, Role.JOINED, 90, STATS)
        assert board.both_submitted is True

    async def test_resubmission_overwrites(self, lobby, aggregator, match_repo):
        record = await _started(lobby)
        await aggregator.submit(record.id, HOST, Role.HOST, 170, STATS)
        await aggregator.submit(record.id, HOST, Role.HOST, 185, STATS)

        stored = await match_repo.get(record.id)
        assert stored.host_score == 185
        assert stored.host_stats == STATS

    async def test_cannot_submit_for_other_role(self, lobby, aggregator):
        record = await _started(lobby)
        with pytest.raises(Forbidden):
            await aggregator.submit(record.id, GUEST, Role.HOST, 999, STATS)

    async def test_outsider_cannot_submit(self, lobby, aggregator):
        record = await _started(lobby)
        with pytest.raises(Forbidden):
            await aggregator.submit(record.id, "stranger", Role.JOINED, 10, STATS)

    async def test_submit_before_start_conflicts(self, lobby, aggregator):
        record = await lobby.create(HOST, CONFIG)
        await lobby.join(GUEST, record.game_code)
        with pytest.raises(Conflict):
            await aggregator.submit(record.id, HOST, Role.HOST, 10, STATS)

    async def test_submit_to_missing_match(self, aggregator):
        with pytest.raises(NotFound):
            await aggregator.submit("missing", HOST, Role.HOST, 10, STATS)


class TestRead:
    async def test_participants_read_board(self, lobby, aggregator):
        record = await _started(lobby)
        await aggregator.submit(record.id, GUEST, Role.JOINED, 90, STATS)
        board = await aggregator.read(record.id, HOST)
        assert board.joined_score == 90
        assert board.host_score is None

    async def test_outsider_forbidden(self, lobby, aggregator):
        record = await _started(lobby)
        with pytest.raises(Forbidden):
            await aggregator.read(record.id, "stranger")


class TestResolve:
    async def test_resolve_requires_both_scores(self, lobby, aggregator, resolver):
        record = await _started(lobby)
        await aggregator.submit(record.id, HOST, Role.HOST, 170, STATS)
        with pytest.raises(Conflict):
            await resolver.resolve(record.id, HOST)

    async def test_resolve_finishes_match(self, lobby, aggregator, resolver, match_repo, auth_service):
        host = await auth_service.register("alice", "password123")
        guest = await auth_service.register("bob", "password123", "Bobby")
        record = await _started(lobby, host.user_id, guest.user_id)
        await aggregator.submit(record.id, host.user_id, Role.HOST, 170, STATS)
        await aggregator.submit(record.id, guest.user_id, Role.JOINED, 220, STATS)

        result = await resolver.resolve(record.id, host.user_id)
        assert result.winner == Winner.JOINED
        assert result.host_name == "alice"
        assert result.joined_name == "Bobby"
        assert result.host_score == 170
        assert result.joined_score == 220
        assert result.joined_stats == STATS
        assert (await match_repo.get(record.id)).status == MatchStatus.FINISHED

    async def test_second_resolve_is_idempotent(self, lobby, aggregator, resolver):
        record = await _started(lobby)
        await aggregator.submit(record.id, HOST, Role.HOST, 100, STATS)
        await aggregator.submit(record.id, GUEST, Role.JOINED, 100, STATS)

        first = await resolver.resolve(record.id, HOST)
        second = await resolver.resolve(record.id, GUEST)
        assert first == second
        assert first.winner == Winner.TIE

    async def test_unknown_participants_get_fallback_names(self, lobby, aggregator, resolver):
        record = await _started(lobby)
        await aggregator.submit(record.id, HOST, Role.HOST, 100, STATS)
        await aggregator.submit(record.id, GUEST, Role.JOINED, 50, STATS)

        result = await resolver.resolve(record.id, GUEST)
        assert result.host_name == "Host"
        assert result.joined_name == "Unknown"

    async def test_resubmission_after_finish_overwrites(self, lobby, aggregator, resolver, match_repo):
        record = await _started(lobby)
        await aggregator.submit(record.id, HOST, Role.HOST, 420, STATS)
        await aggregator.submit(record.id, GUEST, Role.JOINED, 380, STATS)
        await resolver.resolve(record.id, HOST)

        board = await aggregator.submit(record.id, HOST, Role.HOST, 420, STATS)
        assert board == ScoreBoard(host_score=420, joined_score=380, both_submitted=True)

        stored = await match_repo.get(record.id)
        assert stored.status == MatchStatus.FINISHED
        assert stored.host_score == 420

        result = await resolver.resolve(record.id, GUEST)
        assert result.winner == Winner.HOST

    async def test_outsider_cannot_resolve(self, lobby, resolver):
        record = await _started(lobby)
        with pytest.raises(Forbidden):
            await resolver.resolve(record.id, "stranger")
