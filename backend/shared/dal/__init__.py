"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.match_repository import DuplicateGameCodeError, MatchRepository
from shared.dal.models import (
    Approval,
    GameMode,
    MatchConfig,
    MatchPreview,
    MatchRecord,
    MatchResult,
    MatchStatus,
    ParticipantStats,
    RemovalReason,
    Role,
    ScoreBoard,
    VocabItem,
    Winner,
)
from shared.dal.player_repository import PlayerRepository
from shared.dal.vocab_repository import VocabRepository

__all__ = [
    "Approval",
    "DuplicateGameCodeError",
    "GameMode",
    "MatchConfig",
    "MatchPreview",
    "MatchRecord",
    "MatchRepository",
    "MatchResult",
    "MatchStatus",
    "ParticipantStats",
    "PlayerRepository",
    "RemovalReason",
    "Role",
    "ScoreBoard",
    "VocabItem",
    "VocabRepository",
    "Winner",
]
