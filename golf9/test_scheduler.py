"""
Tests for the deadline watcher.

Run with: pytest golf9/test_scheduler.py -v
"""

import asyncio

import pytest

from golf9.game import GameOptions, GamePhase
from golf9.match import Match
from golf9.scheduler import ExpiryWatcher

NOW = 9_000.0


def make_match() -> Match:
    options = GameOptions(num_rounds=5, peek_duration=10.0, turn_duration=20.0)
    return Match(2, options, seed=17, game_id="watch", now=NOW)


class TestTick:

    def test_nothing_before_deadline(self):
        watcher = ExpiryWatcher(make_match())
        assert watcher.tick(now=NOW + 9.99) is None

    def test_fires_at_deadline(self):
        fired = []
        match = make_match()
        watcher = ExpiryWatcher(match, on_expired=fired.append)

        outcome = watcher.tick(now=NOW + 10)
        assert outcome.action == "auto_peek"
        assert fired == [outcome]
        assert match.acting_index == 1
        assert match.deadline == NOW + 20

    def test_fires_once_per_deadline(self):
        fired = []
        watcher = ExpiryWatcher(make_match(), on_expired=fired.append)
        watcher.tick(now=NOW + 10)
        watcher.tick(now=NOW + 10)
        watcher.tick(now=NOW + 15)
        assert len(fired) == 1

    def test_debounces_unchanged_deadline(self):
        match = make_match()
        watcher = ExpiryWatcher(match)
        watcher._fired_for = match.deadline
        assert watcher.tick(now=NOW + 100) is None
        assert match.acting_index == 0

    def test_each_new_deadline_fires(self):
        match = make_match()
        watcher = ExpiryWatcher(match)
        assert watcher.tick(now=NOW + 10).action == "auto_peek"
        assert watcher.tick(now=NOW + 20).action == "auto_peek"
        assert match.phase == GamePhase.TURN
        assert watcher.tick(now=NOW + 40).action == "draw_and_discard"

    def test_uses_clock_when_no_time_given(self):
        watcher = ExpiryWatcher(make_match(), clock=lambda: NOW + 11)
        assert watcher.tick().action == "auto_peek"

    def test_idle_after_game_over(self):
        match = make_match()
        match.game_over = True
        assert ExpiryWatcher(match).tick(now=NOW + 1_000) is None


class TestBackgroundTask:

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        fired = []
        match = make_match()
        watcher = ExpiryWatcher(match, interval=0.01, on_expired=fired.append, clock=lambda: NOW + 10)

        await watcher.start()
        await asyncio.sleep(0.05)
        await watcher.stop()

        assert len(fired) == 1
        assert fired[0].action == "auto_peek"
        assert watcher._task is None

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_task(self):
        watcher = ExpiryWatcher(make_match(), interval=0.01, clock=lambda: NOW)
        await watcher.start()
        task = watcher._task
        await watcher.start()
        assert watcher._task is task
        await watcher.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        watcher = ExpiryWatcher(make_match())
        await watcher.stop()
        assert watcher._task is None
