"""Answer checking, per-question points and end-of-match statistics."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from shared.dal.models import GameMode, ParticipantStats, VocabItem

BASE_POINTS = 100
MAX_TIME_PENALTY = 30

_SENTENCE_PUNCTUATION = re.compile(r"[.,!?;:'\"]")


def score_answer(*, correct: bool, time_taken_seconds: float, timer_duration_seconds: float) -> int:
    """Points for one answer: 100 minus up to 30 for time used, 0 when wrong."""
    if not correct:
        return 0
    penalty = (time_taken_seconds / timer_duration_seconds) * MAX_TIME_PENALTY
    return max(0, math.floor(BASE_POINTS - penalty))


def sentence_words(text: str) -> list[str]:
    return [_SENTENCE_PUNCTUATION.sub("", word.lower()) for word in text.split()]


def expected_answer(item: VocabItem, mode: GameMode) -> str:
    if mode == GameMode.SENTENCE:
        return item.sentence_english or ""
    return item.english


def is_correct(item: VocabItem, answer: str, mode: GameMode) -> bool:
    """Vocab answers compare trimmed and case-insensitive; sentences compare word by word."""
    if not answer.strip():
        return False
    if mode == GameMode.SENTENCE:
        return sentence_words(answer) == sentence_words(item.sentence_english or "")
    return answer.strip().lower() == item.english.strip().lower()


@dataclass(frozen=True)
class QuestionOutcome:
    item: VocabItem
    answer: str
    correct: bool
    time_ms: int
    points: int
    timed_out: bool = False


def compute_stats(outcomes: list[QuestionOutcome]) -> ParticipantStats:
    total = len(outcomes)
    if total == 0:
        return ParticipantStats()
    correct = sum(1 for o in outcomes if o.correct)
    times = [o.time_ms for o in outcomes]
    total_time = sum(times)
    return ParticipantStats(
        total_questions=total,
        correct_answers=correct,
        wrong_answers=total - correct,
        accuracy_percent=round(correct / total * 100, 2),
        total_time_ms=total_time,
        avg_time_per_question_ms=round(total_time / total),
        fastest_answer_ms=min(times),
        slowest_answer_ms=max(times),
    )
