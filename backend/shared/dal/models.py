"""Persistence models for the data access layer."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

GAME_CODE_LENGTH = 6
MAX_QUESTIONS = 50
MAX_TIMER_SECONDS = 120


class MatchStatus(StrEnum):
    WAITING = "waiting"
    OPPONENT_JOINED = "opponent_joined"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Approval(StrEnum):
    """Host decision on the joined participant.

    Only meaningful while a joined participant is present and the match has not started.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RemovalReason(StrEnum):
    REJECTED = "rejected"
    KICKED = "kicked"
    LEFT = "left"


class GameMode(StrEnum):
    VOCAB = "vocab"
    SENTENCE = "sentence"


class Role(StrEnum):
    HOST = "host"
    JOINED = "joined"


class Winner(StrEnum):
    HOST = "host"
    JOINED = "joined"
    TIE = "tie"


class MatchConfig(BaseModel, frozen=True):
    """Host-editable match configuration. Immutable once the match starts."""

    category: str = Field(min_length=1, max_length=100)
    subcategory: int = Field(default=0, ge=0)  # 0 mixes all subcategories
    num_questions: int = Field(default=5, ge=1, le=MAX_QUESTIONS)
    timer_duration_seconds: int = Field(default=10, ge=1, le=MAX_TIMER_SECONDS)
    game_mode: GameMode = GameMode.VOCAB


class ParticipantStats(BaseModel, frozen=True):
    """Per-participant result block reported alongside the final score."""

    total_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    wrong_answers: int = Field(default=0, ge=0)
    accuracy_percent: float = Field(default=0.0, ge=0, le=100)
    total_time_ms: int = Field(default=0, ge=0)
    avg_time_per_question_ms: int = Field(default=0, ge=0)
    fastest_answer_ms: int = Field(default=0, ge=0)
    slowest_answer_ms: int = Field(default=0, ge=0)


class MatchRecord(BaseModel, frozen=True):
    """The shared persistent record driving one PvP session (the lobby)."""

    id: str
    game_code: str = Field(min_length=GAME_CODE_LENGTH, max_length=GAME_CODE_LENGTH)
    host_participant_id: str
    joined_participant_id: str | None = None
    category: str
    subcategory: int = 0
    num_questions: int
    timer_duration_seconds: int
    game_mode: GameMode = GameMode.VOCAB
    status: MatchStatus = MatchStatus.WAITING
    approval: Approval = Approval.PENDING
    ready: bool = False
    host_score: int | None = None
    joined_score: int | None = None
    host_stats: ParticipantStats | None = None
    joined_stats: ParticipantStats | None = None
    removed_participant_id: str | None = None
    removal_reason: RemovalReason | None = None
    created_at: datetime
    expires_at: datetime
    started_at: datetime | None = None
    updated_at: datetime

    @property
    def config(self) -> MatchConfig:
        return MatchConfig(
            category=self.category,
            subcategory=self.subcategory,
            num_questions=self.num_questions,
            timer_duration_seconds=self.timer_duration_seconds,
            game_mode=self.game_mode,
        )

    @property
    def both_submitted(self) -> bool:
        return self.host_score is not None and self.joined_score is not None

    def role_of(self, user_id: str) -> Role | None:
        """Return the role the user holds in this match, or None for outsiders."""
        if user_id == self.host_participant_id:
            return Role.HOST
        if self.joined_participant_id is not None and user_id == self.joined_participant_id:
            return Role.JOINED
        return None

    def is_expired(self, now: datetime) -> bool:
        """A waiting lobby is expired once now reaches expires_at. Other statuses never expire."""
        return self.status == MatchStatus.WAITING and now >= self.expires_at


class VocabItem(BaseModel, frozen=True):
    """One question item from the vocabulary content store."""

    vocab_id: int
    indo: str
    english: str
    word_class: str = ""
    category: str
    subcategory: int
    sentence_indo: str | None = None
    sentence_english: str | None = None


class CategorySummary(BaseModel, frozen=True):
    name: str
    count: int
    subcategory_count: int
    has_sentences: bool


class MatchPreview(BaseModel, frozen=True):
    """Public-safe summary shown to someone holding a game code."""

    match_id: str
    game_code: str
    host_display_name: str
    status: MatchStatus
    config: MatchConfig
    expires_at: datetime


class ScoreBoard(BaseModel, frozen=True):
    host_score: int | None
    joined_score: int | None
    both_submitted: bool


class MatchResult(BaseModel, frozen=True):
    match_id: str
    host_name: str
    joined_name: str
    host_score: int
    joined_score: int
    winner: Winner
    host_stats: ParticipantStats | None = None
    joined_stats: ParticipantStats | None = None
