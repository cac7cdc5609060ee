"""
Tests for multi-device replay.

Every device runs its own Match. The acting device relays the raw intents
it applied; the others decode and apply them. These tests verify that:
1. Replicas with the same seed start identical
2. Replicas stay identical after every relayed intent, across rounds
3. Deadline expiries relayed as intents resolve the same way everywhere
4. Intents from the wrong seat change nothing on any replica
"""

from typing import Optional

import pytest

from golf9.ai import GolfAI
from golf9.game import GameOptions, GamePhase, check_invariants
from golf9.intents import (
    ActionIntent, DrawDeckIntent, ExpireIntent, FlipPeekIntent, NextRoundIntent,
    ReplaceIntent, TakeDiscardIntent, apply_intent, from_relay_message, to_relay_message,
)
from golf9.match import Match

NOW = 20_000.0


class Table:
    """A leader device plus replicas connected through a relay."""

    def __init__(self, num_players: int = 2, rounds: int = 5, seed: int = 77, replicas: int = 2):
        options = GameOptions(num_rounds=rounds)
        self.devices = [
            Match(num_players, options, seed=seed, game_id="replay", now=NOW)
            for _ in range(replicas + 1)
        ]
        self.messages: list[str] = []

    @property
    def leader(self) -> Match:
        return self.devices[0]

    def send(self, intent: ActionIntent) -> bool:
        """Apply locally, then deliver the relayed message to every replica."""
        applied = apply_intent(self.leader, intent)
        message = to_relay_message(intent)
        self.messages.append(message)
        for device in self.devices[1:]:
            received = from_relay_message(message)
            assert apply_intent(device, received) == applied
        return applied

    def assert_in_sync(self):
        for device in self.devices[1:]:
            assert device.state == self.leader.state
            assert device.held == self.leader.held
            assert device.results == self.leader.results
            assert device.game_over == self.leader.game_over


def next_intent(match: Match, now: float) -> ActionIntent:
    """Choose the acting seat's next move the way a CPU would."""
    if match.phase == GamePhase.ROUND_END:
        return NextRoundIntent(now=now)

    seat = match.acting_index
    state = match.state
    if match.phase == GamePhase.PEEK:
        r, c = state.players[seat].face_down_cells()[0]
        return FlipPeekIntent(seat=seat, row=r, col=c, now=now)

    if match.held is None:
        if GolfAI.should_take_discard(state, seat):
            return TakeDiscardIntent(seat=seat, now=now)
        return DrawDeckIntent(seat=seat, now=now)

    r, c = GolfAI.choose_target(state, seat, match.held)
    return ReplaceIntent(seat=seat, row=r, col=c, now=now)


def play(table: Table, max_steps: int = 5_000, expire_every: Optional[int] = None) -> int:
    """Drive the leader to game over, checking replicas after every step."""
    step = 0
    while not table.leader.game_over:
        assert step < max_steps, "match did not finish"
        now = NOW + step

        if (
            expire_every
            and step % expire_every == 0
            and table.leader.held is None
            and table.leader.deadline is not None
        ):
            intent = ExpireIntent(seat=table.leader.acting_index, now=table.leader.deadline)
        else:
            intent = next_intent(table.leader, now)

        assert table.send(intent)
        check_invariants(table.leader.state, table.leader.held)
        table.assert_in_sync()
        step += 1
    return step


class TestReplicaSync:
    """Replicas applying the same intents stay identical."""

    def test_replicas_start_identical(self):
        table = Table()
        table.assert_in_sync()

    @pytest.mark.parametrize("num_players", [2, 3, 4])
    def test_full_match_stays_in_sync(self, num_players):
        table = Table(num_players=num_players)
        play(table)
        assert len(table.leader.results) == 5
        assert table.devices[1].summary() == table.leader.summary()

    def test_expiries_stay_in_sync(self):
        table = Table(seed=5)
        play(table, expire_every=7)
        assert table.leader.game_over

    def test_different_seeds_diverge(self):
        first = Match(2, GameOptions(num_rounds=5), seed=1, game_id="replay", now=NOW)
        second = Match(2, GameOptions(num_rounds=5), seed=2, game_id="replay", now=NOW)
        assert first.state != second.state


class TestRelayedIntents:
    """Intents survive the relay's JSON envelope."""

    def test_messages_are_recorded(self):
        table = Table()
        table.send(FlipPeekIntent(seat=0, row=0, col=0, now=NOW))
        assert len(table.messages) == 1
        assert from_relay_message(table.messages[0]) == FlipPeekIntent(seat=0, row=0, col=0, now=NOW)

    def test_wrong_seat_changes_nothing(self):
        table = Table()
        before = [device.state for device in table.devices]
        assert not table.send(FlipPeekIntent(seat=1, row=0, col=0, now=NOW))
        assert [device.state for device in table.devices] == before
        table.assert_in_sync()
