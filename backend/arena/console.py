"""Interactive terminal client: host or join a match and play it from stdin."""

from __future__ import annotations

import argparse
import asyncio
from typing import TYPE_CHECKING

import structlog
from anyio import to_thread

from arena.client import LobbyClient
from arena.events import (
    ApprovalGranted,
    LobbyClosed,
    MatchFinished,
    MatchStarted,
    OpponentJoined,
    OpponentLeft,
    OpponentReady,
    OpponentScorePosted,
    RemovedFromLobby,
)
from arena.poller import MatchPoller
from arena.runner import MatchRunner
from arena.scoring import expected_answer
from arena.settings import ArenaSettings
from shared.dal.models import GameMode, MatchConfig, Winner
from shared.errors import Conflict, Expired, MatchError
from shared.logging import setup_logging

if TYPE_CHECKING:
    from arena.events import MatchEvent
    from arena.runner import Question, RunSummary
    from arena.scoring import QuestionOutcome
    from shared.dal.models import MatchRecord

logger = structlog.get_logger()


async def _ask(prompt: str) -> str:
    # Abandoned on timeout: the thread keeps waiting for the line but its answer is ignored.
    return await to_thread.run_sync(input, prompt, abandon_on_cancel=True)


async def _answer_from_stdin(question: Question) -> str:
    label = "Translate the sentence" if question.mode == GameMode.SENTENCE else "Translate"
    print(f"\n[{question.number}/{question.total}] {label} ({question.timer_duration_seconds}s): {question.prompt}")
    return await _ask("> ")


async def _print_outcome(question: Question, outcome: QuestionOutcome) -> None:
    answer = expected_answer(outcome.item, question.mode)
    if outcome.timed_out:
        print(f"  Time's up. Answer: {answer}")
    elif outcome.correct:
        print(f"  Correct! +{outcome.points}")
    else:
        print(f"  Wrong. Answer: {answer}")


def _print_summary(summary: RunSummary) -> None:
    result = summary.result
    print("\n=== Result ===")
    print(f"{result.host_name}: {result.host_score}")
    print(f"{result.joined_name}: {result.joined_score}")
    if result.winner == Winner.TIE:
        print("It's a tie!")
    else:
        winner = result.host_name if result.winner == Winner.HOST else result.joined_name
        print(f"Winner: {winner}")
    print(f"Your accuracy: {summary.stats.accuracy_percent}%  avg {summary.stats.avg_time_per_question_ms} ms")


class ConsoleSession:
    """Drives one participant through lobby, game and result."""

    def __init__(self, client: LobbyClient, settings: ArenaSettings, user_id: str, *, auto_accept: bool) -> None:
        self._client = client
        self._settings = settings
        self._user_id = user_id
        self._auto_accept = auto_accept

    async def host(self, config: MatchConfig) -> RunSummary | None:
        record = await self._client.create_match(config)
        print(f"Lobby created. Share this code: {record.game_code}")
        return await self._lobby_loop(record)

    async def join(self, game_code: str) -> RunSummary | None:
        preview = await self._client.preview(game_code)
        print(
            f"Joining {preview.host_display_name}'s lobby: {preview.config.category} "
            f"({preview.config.num_questions} questions, {preview.config.timer_duration_seconds}s each)",
        )
        record = await self._client.join(game_code)
        print("Waiting for the host to accept you...")
        return await self._lobby_loop(record)

    async def _lobby_loop(self, record: MatchRecord) -> RunSummary | None:
        events: asyncio.Queue[MatchEvent] = asyncio.Queue()
        poller = MatchPoller(
            self._client,
            record.id,
            self._user_id,
            interval=self._settings.poll_interval_seconds,
            initial=record,
        )
        poller.start(events.put)
        try:
            while True:
                event = await events.get()
                summary = await self._handle(record, event)
                if summary is not None or isinstance(event, LobbyClosed | RemovedFromLobby):
                    return summary
        finally:
            await poller.stop()

    async def _handle(self, record: MatchRecord, event: MatchEvent) -> RunSummary | None:
        """React to one lobby event. A lost race is left for the next poll to sort out."""
        try:
            return await self._react(record, event)
        except (Conflict, Expired) as e:
            logger.info("lobby action skipped", match_id=record.id, event=type(event).__name__, reason=e.message)
            return None

    async def _react(self, record: MatchRecord, event: MatchEvent) -> RunSummary | None:
        match event:
            case OpponentJoined():
                await self._decide_on_opponent(record)
            case OpponentLeft(reason=reason):
                print(f"Opponent left the lobby ({reason or 'unknown'}). Waiting for another player...")
            case ApprovalGranted():
                print("The host accepted you.")
                await self._client.ready(record.id)
                print("Ready! Waiting for the host to start.")
            case OpponentReady():
                print("Opponent is ready, starting the match.")
                await self._client.start(record.id)
            case MatchStarted(record=started):
                return await self._play(started)
            case RemovedFromLobby(reason=reason):
                print(f"You were removed from the lobby ({reason or 'unknown'}).")
            case LobbyClosed():
                print("The lobby was closed.")
            case OpponentScorePosted() | MatchFinished():
                pass
        return None

    async def _decide_on_opponent(self, record: MatchRecord) -> None:
        if self._auto_accept:
            await self._client.accept(record.id)
            print("Opponent joined and was accepted.")
            return
        answer = await _ask("An opponent joined. Accept? [y/n] ")
        if answer.strip().lower().startswith("y"):
            await self._client.accept(record.id)
        else:
            await self._client.reject(record.id)

    async def _play(self, record: MatchRecord) -> RunSummary:
        print("\nThe match has started!")
        runner = MatchRunner(
            self._client,
            record,
            self._user_id,
            _answer_from_stdin,
            poll_interval=self._settings.poll_interval_seconds,
            on_outcome=_print_outcome,
        )
        summary = await runner.run()
        _print_summary(summary)
        return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play a PvP vocabulary match from the terminal.")
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--register", action="store_true", help="create the account first")
    parser.add_argument("--url", help="lobby base URL (default: ARENA_LOBBY_URL)")
    sub = parser.add_subparsers(dest="command", required=True)

    host = sub.add_parser("host", help="open a lobby and wait for an opponent")
    host.add_argument("--category", required=True)
    host.add_argument("--subcategory", type=int, default=0)
    host.add_argument("--questions", type=int, default=5)
    host.add_argument("--timer", type=int, default=10)
    host.add_argument("--mode", choices=[m.value for m in GameMode], default=GameMode.VOCAB.value)
    host.add_argument("--auto-accept", action="store_true")

    join = sub.add_parser("join", help="join a lobby by its game code")
    join.add_argument("code")
    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = ArenaSettings()
    setup_logging(log_dir=settings.log_dir, service="arena")

    async with LobbyClient(args.url or settings.lobby_url, timeout=settings.request_timeout_seconds) as client:
        try:
            if args.register:
                await client.register(args.username, args.password)
            profile = await client.login(args.username, args.password)
            session = ConsoleSession(
                client,
                settings,
                profile["user_id"],
                auto_accept=getattr(args, "auto_accept", False),
            )
            if args.command == "host":
                config = MatchConfig(
                    category=args.category,
                    subcategory=args.subcategory,
                    num_questions=args.questions,
                    timer_duration_seconds=args.timer,
                    game_mode=GameMode(args.mode),
                )
                summary = await session.host(config)
            else:
                summary = await session.join(args.code)
        except MatchError as e:
            print(f"Error: {e.message}")
            return 1
    return 0 if summary is not None else 1
