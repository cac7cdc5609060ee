"""
Round and game progression for Golf 9.

A Match is the single writer of a game: it owns the current GameState
snapshot and the current player's held card, feeds player, CPU and
deadline actions through the engine, runs the final sweep and deals the
following rounds.

Final sweep:
    Once any player has all nine cards face-up, every other player gets
    exactly one more turn. When the turn comes back around to that player
    (or every grid is face-up) the round is scored.
"""

import random
import uuid
from dataclasses import dataclass, field
from typing import Optional

from golf9 import game as engine
from golf9.ai import GolfAI
from golf9.cards import Card
from golf9.constants import ALLOWED_ROUNDS, DEFAULT_PLAYERS
from golf9.game import ExpiryOutcome, GameOptions, GamePhase, GameState, Player
from golf9.logging_config import get_logger


@dataclass
class RoundResult:
    """
    Summary of a finished round.

    Attributes:
        round_num: Round number (1-indexed).
        scores: Player id -> points scored this round.
        totals: Player id -> cumulative points after this round.
        finisher_id: Player who revealed all nine cards first, if anyone.
    """

    round_num: int
    scores: dict[str, int] = field(default_factory=dict)
    totals: dict[str, int] = field(default_factory=dict)
    finisher_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "round_num": self.round_num,
            "scores": dict(self.scores),
            "totals": dict(self.totals),
            "finisher_id": self.finisher_id,
        }


class Match:
    """
    A full game of Golf 9 across several rounds.

    Attributes:
        state: Current engine snapshot.
        held: Card drawn by the current player, not yet placed or discarded.
        results: Finished rounds, oldest first.
        game_over: True once the last round has been scored.
    """

    def __init__(
        self,
        num_players: int = DEFAULT_PLAYERS,
        options: Optional[GameOptions] = None,
        *,
        names: Optional[list[str]] = None,
        seed: Optional[int] = None,
        game_id: Optional[str] = None,
        now: Optional[float] = None,
    ) -> None:
        """
        Create a match and deal the first round.

        Args:
            num_players: Number of players (2-4).
            options: Game configuration (rounds, jokers, durations).
            names: Display names in seating order.
            seed: Match seed; every round's shuffle derives from it.
            game_id: Identifier shared by replicas of the same match.
            now: Current time (epoch seconds).

        Raises:
            ValueError: For an unsupported round count, player count, or a
                names list of the wrong length.
        """
        self.options = options or GameOptions()
        if self.options.num_rounds not in ALLOWED_ROUNDS:
            raise ValueError(
                f"Rounds per game must be one of {ALLOWED_ROUNDS}, got {self.options.num_rounds}"
            )
        if names is not None and len(names) != num_players:
            raise ValueError(f"Expected {num_players} names, got {len(names)}")

        self.num_players = num_players
        self.seed = seed if seed is not None else random.randint(0, 2**31 - 1)
        self.game_id = game_id or str(uuid.uuid4())
        self.round_num = 1
        self.held: Optional[Card] = None
        self.results: list[RoundResult] = []
        self.game_over = False
        self.finisher_index: Optional[int] = None
        self._last_turn_index: Optional[int] = None
        self.log = get_logger(__name__).with_context(game_id=self.game_id)

        players = None
        if names is not None:
            players = [Player(id=f"P{i + 1}", name=name) for i, name in enumerate(names)]

        self.state: GameState = engine.deal(
            num_players,
            self.options,
            players=players,
            round_num=1,
            seed=self._round_seed(1),
            game_id=self.game_id,
            now=now,
        )
        self.log.info(f"Match started: {num_players} players, {self.options.num_rounds} rounds")

    def _round_seed(self, round_num: int) -> int:
        return random.Random(f"{self.seed}:{round_num}").randint(0, 2**31 - 1)

    # -------------------------------------------------------------------------
    # State Queries
    # -------------------------------------------------------------------------

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    @property
    def acting_index(self) -> Optional[int]:
        """Player expected to act next (peeker or current player)."""
        if self.state.phase == GamePhase.PEEK:
            return self.state.peek_turn_index
        if self.state.phase == GamePhase.TURN:
            return self.state.current_player_index
        return None

    @property
    def sweep_active(self) -> bool:
        """Whether someone has gone out and the final sweep is running."""
        return self.finisher_index is not None

    def standings(self) -> list[Player]:
        """Players ordered by cumulative score, best first."""
        return sorted(self.state.players, key=lambda p: p.total_score)

    def winner(self) -> Optional[Player]:
        """The player with the lowest total, or None on a tie."""
        if not self.state.players:
            return None
        min_score = min(p.total_score for p in self.state.players)
        winners = [p for p in self.state.players if p.total_score == min_score]
        if len(winners) == 1:
            return winners[0]
        return None

    def summary(self) -> dict:
        """Round-by-round scores and final standings."""
        winner = self.winner()
        return {
            "game_id": self.game_id,
            "round_num": self.round_num,
            "total_rounds": self.options.num_rounds,
            "game_over": self.game_over,
            "rounds": [result.to_dict() for result in self.results],
            "standings": [
                {"id": p.id, "name": p.name, "total_score": p.total_score, "rounds_won": p.rounds_won}
                for p in self.standings()
            ],
            "winner_id": winner.id if winner else None,
        }

    # -------------------------------------------------------------------------
    # Peek Phase
    # -------------------------------------------------------------------------

    def flip_for_peek(self, r: int, c: int, now: Optional[float] = None) -> bool:
        """
        Flip a card for the current peeker.

        Returns:
            True if a card was flipped, False if the flip was a no-op.
        """
        next_state = engine.flip_for_peek(self.state, r, c, now=now)
        if next_state == self.state:
            return False
        self._update(next_state)
        return True

    def advance_peek(self, now: Optional[float] = None) -> bool:
        """Pass the peek to the next player. Returns False outside the peek phase."""
        if self.state.phase != GamePhase.PEEK:
            return False
        self._update(engine.advance_peek(self.state, now=now))
        return True

    # -------------------------------------------------------------------------
    # Turn Actions
    # -------------------------------------------------------------------------

    def draw_from_deck(self, now: Optional[float] = None) -> Optional[Card]:
        """
        Draw from the deck into the current player's hand.

        Returns:
            The drawn card, or None if a card is already held or no draw
            is possible.
        """
        if self.held is not None or self.state.phase != GamePhase.TURN:
            return None
        next_state, card = engine.draw_from_deck(self.state, now=now)
        if card is None:
            return None
        self.held = card
        self._update(next_state)
        return card

    def take_discard(self, now: Optional[float] = None) -> Optional[Card]:
        """
        Take the top discard (redirected to the deck on a forced draw).

        Returns:
            The card taken, or None if a card is already held or nothing
            could be taken.
        """
        if self.held is not None or self.state.phase != GamePhase.TURN:
            return None
        next_state, card = engine.take_discard(self.state, now=now)
        if card is None:
            return None
        self.held = card
        self._update(next_state)
        return card

    def replace(self, r: int, c: int, now: Optional[float] = None) -> bool:
        """
        Place the held card at (r, c) in the current player's grid.

        Returns:
            True if the card was placed, False if nothing is held or the
            placement was rejected.
        """
        if self.held is None:
            return False
        player_index = self.state.current_player_index
        next_state = engine.replace_grid_card(self.state, player_index, r, c, self.held, now=now)
        if next_state == self.state:
            return False
        self.held = None
        self._update(next_state)
        return True

    def discard_held(self, now: Optional[float] = None) -> bool:
        """Discard the held card and end the turn. Returns False if nothing is held."""
        if self.held is None:
            return False
        next_state = engine.discard_drawn(self.state, self.held, now=now)
        if next_state == self.state:
            return False
        self.held = None
        self._update(next_state)
        return True

    def play_ai_turn(self, now: Optional[float] = None) -> bool:
        """
        Let the CPU act for whoever is expected to act.

        In the peek phase the CPU peeks two cards; in the turn phase it plays
        one full turn (draw or take, then place).

        Returns:
            True if the state changed.
        """
        if self.held is not None:
            return False

        if self.state.phase == GamePhase.PEEK:
            rng = random.Random(f"{self.state.seed}:peek:{self.state.peek_turn_index}")
            next_state = GolfAI.peek(self.state, now=now, rng=rng)
        elif self.state.phase == GamePhase.TURN:
            next_state = GolfAI.play_turn(self.state, self.state.current_player_index, now=now)
        else:
            return False

        if next_state == self.state:
            return False
        self._update(next_state)
        return True

    # -------------------------------------------------------------------------
    # Deadlines
    # -------------------------------------------------------------------------

    def resolve_expiry(self, now: Optional[float] = None) -> ExpiryOutcome:
        """Run the deadline fallback if the peek or turn deadline has passed."""
        outcome = engine.resolve_expiry(self.state, self.held, now=now)
        if outcome.fired:
            self.log.debug(f"Deadline expired: {outcome.action}")
            self.held = outcome.held
            self._update(outcome.state)
        return outcome

    @property
    def deadline(self) -> Optional[float]:
        """The deadline currently running, if any."""
        if self.state.phase == GamePhase.PEEK:
            return self.state.peek_ends_at
        if self.state.phase == GamePhase.TURN:
            return self.state.turn_ends_at
        return None

    # -------------------------------------------------------------------------
    # Round Flow
    # -------------------------------------------------------------------------

    def next_round(self, now: Optional[float] = None) -> bool:
        """
        Deal the next round, carrying players and totals over.

        Returns:
            True if a round was dealt, False if the current round is not
            finished or the match is over.
        """
        if self.state.phase != GamePhase.ROUND_END or self.game_over:
            return False

        self.round_num += 1
        self.held = None
        self.finisher_index = None
        self._last_turn_index = None
        self.state = engine.deal(
            self.num_players,
            self.options,
            players=self.state.players,
            round_num=self.round_num,
            seed=self._round_seed(self.round_num),
            game_id=self.game_id,
            now=now,
        )
        self.log.with_context(round_num=self.round_num).info(f"Round {self.round_num} dealt")
        return True

    def _update(self, next_state: GameState) -> None:
        """Install a new snapshot and run final-sweep bookkeeping."""
        self.state = next_state
        if next_state.phase != GamePhase.TURN:
            return

        current = next_state.current_player_index

        if self.finisher_index is None:
            for i, player in enumerate(next_state.players):
                if player.all_face_up():
                    self.finisher_index = i
                    self.log.info(f"{player.name} revealed all cards, final sweep begins")
                    break
            if self.finisher_index is not None and engine.is_round_over(next_state):
                self._finish_round()
                return
            self._last_turn_index = current
            return

        if engine.is_round_over(next_state):
            self._finish_round()
            return

        if current != self._last_turn_index and current == self.finisher_index:
            self._finish_round()
            return

        self._last_turn_index = current

    def _finish_round(self) -> None:
        finisher = self.state.players[self.finisher_index] if self.finisher_index is not None else None
        self.held = None
        self.state = engine.end_round(self.state)

        result = RoundResult(
            round_num=self.round_num,
            scores={p.id: p.score for p in self.state.players},
            totals={p.id: p.total_score for p in self.state.players},
            finisher_id=finisher.id if finisher else None,
        )
        self.results.append(result)

        log = self.log.with_context(round_num=self.round_num)
        log.info(
            f"Round {self.round_num} complete: "
            + ", ".join(f"{p.name}={p.score}" for p in self.state.players)
        )

        if self.round_num >= self.options.num_rounds:
            self.game_over = True
            winner = self.winner()
            log.info(f"Game over, winner: {winner.name if winner else 'tie'}")
