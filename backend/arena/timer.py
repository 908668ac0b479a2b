"""Per-question countdown for the match runner."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable


@dataclass(frozen=True)
class TimedAnswer:
    text: str
    elapsed_seconds: float
    timed_out: bool


class QuestionTimer:
    """Race an answer against a fixed duration.

    On timeout the pending answer is cancelled and the result is an empty
    answer that took the full duration. Elapsed time is measured with the
    monotonic clock and never reported above the duration.
    """

    def __init__(self, duration_seconds: float) -> None:
        if duration_seconds <= 0:
            raise ValueError("duration_seconds must be positive")
        self._duration = duration_seconds

    @property
    def duration_seconds(self) -> float:
        return self._duration

    async def run(self, answer: Awaitable[str]) -> TimedAnswer:
        started = time.monotonic()
        try:
            text = await asyncio.wait_for(answer, timeout=self._duration)
        except TimeoutError:
            return TimedAnswer(text="", elapsed_seconds=self._duration, timed_out=True)
        elapsed = min(time.monotonic() - started, self._duration)
        return TimedAnswer(text=text, elapsed_seconds=elapsed, timed_out=False)
