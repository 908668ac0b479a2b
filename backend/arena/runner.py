"""Match runner: plays one participant's side of an in-progress match.

Each client fetches and shuffles its own question list, so the two sides
are not guaranteed to see the same questions. Scores are computed locally
and reported to the lobby together with the stat block.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
import structlog

from arena.scoring import QuestionOutcome, compute_stats, is_correct, score_answer
from arena.timer import QuestionTimer
from shared.dal.models import GameMode, MatchStatus

if TYPE_CHECKING:
    from arena.client import LobbyClient
    from shared.dal.models import MatchRecord, MatchResult, ParticipantStats, Role, ScoreBoard, VocabItem

logger = structlog.get_logger()


@dataclass(frozen=True)
class Question:
    """What the answer source is shown for one round."""

    number: int
    total: int
    item: VocabItem
    mode: GameMode
    timer_duration_seconds: int

    @property
    def prompt(self) -> str:
        if self.mode == GameMode.SENTENCE:
            return self.item.sentence_indo or self.item.indo
        return self.item.indo


AnswerSource = Callable[[Question], Awaitable[str]]


@dataclass(frozen=True)
class RunSummary:
    role: Role
    outcomes: list[QuestionOutcome]
    score: int
    stats: ParticipantStats
    result: MatchResult


class MatchRunner:
    def __init__(
        self,
        client: LobbyClient,
        record: MatchRecord,
        participant_id: str,
        answer_source: AnswerSource,
        *,
        timer_factory: Callable[[float], QuestionTimer] = QuestionTimer,
        poll_interval: float = 1.0,
        opponent_timeout_seconds: float | None = None,
        rng: random.Random | None = None,
        on_outcome: Callable[[Question, QuestionOutcome], Awaitable[None]] | None = None,
    ) -> None:
        if record.status != MatchStatus.IN_PROGRESS:
            raise ValueError(f"Match {record.id} is not in progress")
        role = record.role_of(participant_id)
        if role is None:
            raise ValueError(f"{participant_id} is not a participant of match {record.id}")
        self._client = client
        self._record = record
        self._role: Role = role
        self._answer_source = answer_source
        self._timer_factory = timer_factory
        self._poll_interval = poll_interval
        self._opponent_timeout = opponent_timeout_seconds
        self._rng = rng or random.Random()  # noqa: S311
        self._on_outcome = on_outcome
        self._log = logger.bind(match_id=record.id, role=role)

    @property
    def role(self) -> Role:
        return self._role

    async def load_questions(self) -> list[VocabItem]:
        """Fetch this side's question list: shuffled locally, truncated to the configured count."""
        config = self._record.config
        items = await self._client.questions(config.category, config.subcategory, config.game_mode)
        self._rng.shuffle(items)
        selected = items[: config.num_questions]
        if len(selected) < config.num_questions:
            self._log.warning("fewer questions available than configured", available=len(selected))
        return selected

    async def play(self, items: list[VocabItem]) -> list[QuestionOutcome]:
        config = self._record.config
        duration = config.timer_duration_seconds
        outcomes: list[QuestionOutcome] = []
        for number, item in enumerate(items, start=1):
            question = Question(
                number=number,
                total=len(items),
                item=item,
                mode=config.game_mode,
                timer_duration_seconds=duration,
            )
            timed = await self._timer_factory(duration).run(self._answer_source(question))
            correct = not timed.timed_out and is_correct(item, timed.text, config.game_mode)
            outcome = QuestionOutcome(
                item=item,
                answer=timed.text,
                correct=correct,
                time_ms=round(timed.elapsed_seconds * 1000),
                points=score_answer(
                    correct=correct,
                    time_taken_seconds=timed.elapsed_seconds,
                    timer_duration_seconds=duration,
                ),
                timed_out=timed.timed_out,
            )
            outcomes.append(outcome)
            if self._on_outcome is not None:
                await self._on_outcome(question, outcome)
        return outcomes

    async def wait_for_opponent(self) -> ScoreBoard:
        """Poll the score endpoint until both sides have submitted."""
        loop = asyncio.get_running_loop()
        deadline = None if self._opponent_timeout is None else loop.time() + self._opponent_timeout
        while True:
            try:
                board = await self._client.scores(self._record.id)
            except httpx.HTTPError:
                self._log.warning("score poll failed, retrying", exc_info=True)
            else:
                if board.both_submitted:
                    return board
            if deadline is not None and loop.time() >= deadline:
                raise TimeoutError(f"Opponent did not submit a score for match {self._record.id}")
            await asyncio.sleep(self._poll_interval)

    async def run(self) -> RunSummary:
        """Play, submit, wait for the opponent and resolve the result."""
        items = await self.load_questions()
        outcomes = await self.play(items)
        score = sum(o.points for o in outcomes)
        stats = compute_stats(outcomes)
        await self._client.submit_score(self._record.id, self._role, score, stats)
        self._log.info("score submitted", score=score, correct=stats.correct_answers)

        await self.wait_for_opponent()
        result = await self._client.resolve_result(self._record.id)
        self._log.info("match resolved", winner=result.winner)
        return RunSummary(role=self._role, outcomes=outcomes, score=score, stats=stats, result=result)
