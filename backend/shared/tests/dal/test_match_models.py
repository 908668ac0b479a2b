"""Tests for the match record model and its helpers."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from shared.dal.models import MatchConfig, MatchRecord, MatchStatus, Role

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


def _record(**overrides) -> MatchRecord:
    fields = {
        "id": "m1",
        "game_code": "ABC123",
        "host_participant_id": "host",
        "category": "animals",
        "num_questions": 5,
        "timer_duration_seconds": 10,
        "created_at": NOW,
        "expires_at": NOW + timedelta(minutes=5),
        "updated_at": NOW,
    }
    fields.update(overrides)
    return MatchRecord(**fields)


class TestMatchRecord:
    def test_role_of(self):
        record = _record(joined_participant_id="guest")
        assert record.role_of("host") == Role.HOST
        assert record.role_of("guest") == Role.JOINED
        assert record.role_of("stranger") is None

    def test_role_of_with_empty_slot(self):
        assert _record().role_of("guest") is None

    def test_expiry_boundary(self):
        record = _record()
        assert record.is_expired(NOW + timedelta(minutes=5)) is True
        assert record.is_expired(NOW + timedelta(minutes=5) - timedelta(microseconds=1)) is False

    def test_only_waiting_lobbies_expire(self):
        record = _record(status=MatchStatus.IN_PROGRESS)
        assert record.is_expired(NOW + timedelta(days=1)) is False

    def test_both_submitted(self):
        assert _record(host_score=0, joined_score=10).both_submitted is True
        assert _record(host_score=0).both_submitted is False

    def test_config_view(self):
        assert _record().config == MatchConfig(category="animals", num_questions=5, timer_duration_seconds=10)

    def test_game_code_length(self):
        with pytest.raises(ValidationError, match="game_code"):
            _record(game_code="ABC")


class TestMatchConfig:
    @pytest.mark.parametrize(
        "overrides",
        [{"num_questions": 0}, {"num_questions": 51}, {"timer_duration_seconds": 0}, {"category": ""}],
    )
    def test_bounds(self, overrides):
        with pytest.raises(ValidationError):
            MatchConfig(**{"category": "animals", **overrides})

    def test_defaults(self):
        config = MatchConfig(category="animals")
        assert config.subcategory == 0
        assert config.num_questions == 5
        assert config.game_mode == "vocab"
