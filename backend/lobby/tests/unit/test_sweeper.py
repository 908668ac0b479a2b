"""Tests for the periodic match sweeper."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from lobby.matches import MatchSweeper
from shared.dal.models import MatchConfig

CONFIG = MatchConfig(category="animals")


class TestMatchSweeper:
    async def test_run_once_reports_both_counts(self, lobby, clock):
        await lobby.create("host-1", CONFIG)
        sweeper = MatchSweeper(lobby, interval_seconds=60, inactive_threshold=timedelta(hours=12))

        assert await sweeper.run_once() == (0, 0)
        clock.advance(hours=13)
        assert await sweeper.run_once() == (1, 0)

    async def test_start_and_stop(self, lobby):
        sweeper = MatchSweeper(lobby, interval_seconds=60, inactive_threshold=timedelta(hours=12))
        sweeper.start()
        sweeper.start()
        await asyncio.sleep(0)
        await sweeper.stop()
        await sweeper.stop()

    async def test_loop_survives_failed_pass(self, lobby, monkeypatch):
        calls = 0

        async def failing_expire():
            nonlocal calls
            calls += 1
            raise RuntimeError("database locked")

        monkeypatch.setattr(lobby, "expire_waiting", failing_expire)
        sweeper = MatchSweeper(lobby, interval_seconds=0.01, inactive_threshold=timedelta(hours=12))
        sweeper.start()
        await asyncio.sleep(0.1)
        await sweeper.stop()
        assert calls >= 2
