"""PvP match lobby: state machine, score aggregation, result resolution and sweeps."""

from lobby.matches.scores import ResultResolver, ScoreAggregator
from lobby.matches.service import LobbyService
from lobby.matches.sweeper import MatchSweeper

__all__ = [
    "LobbyService",
    "MatchSweeper",
    "ResultResolver",
    "ScoreAggregator",
]
