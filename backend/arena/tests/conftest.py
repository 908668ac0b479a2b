"""Shared fixtures for arena tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from shared.dal.models import MatchRecord, MatchStatus, VocabItem

HOST = "host-1"
GUEST = "guest-1"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def make_record():
    """Build a MatchRecord with sensible defaults; keyword overrides win."""

    def _make(**overrides) -> MatchRecord:
        fields = {
            "id": "match-1",
            "game_code": "ABC123",
            "host_participant_id": HOST,
            "category": "animals",
            "num_questions": 2,
            "timer_duration_seconds": 10,
            "created_at": NOW,
            "expires_at": NOW + timedelta(minutes=5),
            "updated_at": NOW,
        }
        fields.update(overrides)
        return MatchRecord(**fields)

    return _make


@pytest.fixture
def in_progress(make_record) -> MatchRecord:
    return make_record(
        joined_participant_id=GUEST,
        status=MatchStatus.IN_PROGRESS,
        approval="accepted",
        ready=True,
        started_at=NOW,
    )


@pytest.fixture
def vocab_items() -> list[VocabItem]:
    return [
        VocabItem(vocab_id=1, indo="kucing", english="cat", category="animals", subcategory=1),
        VocabItem(vocab_id=2, indo="anjing", english="dog", category="animals", subcategory=1),
        VocabItem(vocab_id=3, indo="sapi", english="cow", category="animals", subcategory=2),
    ]
