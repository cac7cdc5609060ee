"""
Rules engine for 9-Card Golf.

This module implements the state machine for the 3x3 Golf card game:
dealing, the secret peek phase, drawing and taking from the discard pile,
replacing grid cards, column clearing, deadlines and round scoring.

9-Card Golf Rules Summary:
    - Two decks shuffled together, 2-4 players, 9 cards each in a 3x3 grid
    - Peek phase: each player secretly flips two of their own cards
    - On your turn: draw from the deck or take the discard, then place the
      card into your grid (the replaced card is discarded) or discard it
    - Three face-up cards of the same rank in a column are zeroed (score 0)
      and earn an immediate bonus turn that must draw from the deck
    - Lowest total score after all rounds wins

Grid Layout (row, col):
    (0,0) (0,1) (0,2)
    (1,0) (1,1) (1,2)
    (2,0) (2,1) (2,2)

Every public operation takes a GameState and returns a new one; the input
is never mutated. Deadlines are absolute epoch timestamps (seconds); pass
``now`` to control the clock. All randomness is derived from the state's
seed, so two replicas applying the same operations stay identical.
"""

import copy
import logging
import random
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from golf9.cards import Card, Grid, card_value, create_deck, deck_size, shuffle
from golf9.constants import (
    ALLOWED_ROUNDS,
    DEFAULT_ROUNDS,
    DEFAULT_USE_JOKERS,
    GRID_COLS,
    GRID_ROWS,
    MAX_PLAYERS,
    MIN_PLAYERS,
    PEEK_DURATION,
    PEEK_FLIPS,
    TURN_DURATION,
)

logger = logging.getLogger(__name__)


class GamePhase(Enum):
    """
    Phases of a Golf round.

    Flow: PEEK -> TURN -> ROUND_END
    A new deal starts the next round.
    """

    PEEK = "peek"            # Players secretly flip two cards each
    TURN = "turn"            # Normal gameplay, taking turns
    ROUND_END = "round_end"  # Round complete, scores recorded


@dataclass
class GameOptions:
    """Configuration for a game, passed into deal and the round loop."""

    use_jokers: bool = DEFAULT_USE_JOKERS
    """If True, add two jokers per deck."""

    num_rounds: int = DEFAULT_ROUNDS
    """Rounds (holes) per game: 5 or 9."""

    turn_duration: float = TURN_DURATION
    """Seconds a player has to act before the turn is auto-resolved."""

    peek_duration: float = PEEK_DURATION
    """Seconds a player has to peek before random cards are flipped."""

    @classmethod
    def from_client_data(cls, data: dict) -> "GameOptions":
        """Build GameOptions from shell settings, coercing invalid values."""
        rounds = data.get("rounds", DEFAULT_ROUNDS)
        if rounds not in ALLOWED_ROUNDS:
            rounds = ALLOWED_ROUNDS[-1]

        return cls(
            use_jokers=bool(data.get("use_jokers", DEFAULT_USE_JOKERS)),
            num_rounds=rounds,
            turn_duration=max(1.0, float(data.get("turn_duration", TURN_DURATION))),
            peek_duration=max(1.0, float(data.get("peek_duration", PEEK_DURATION))),
        )


def empty_grid() -> Grid:
    """Create a 3x3 grid with no cards."""
    return [[None for _ in range(GRID_COLS)] for _ in range(GRID_ROWS)]


@dataclass
class Player:
    """
    A player in a Golf game.

    Attributes:
        id: Unique identifier for the player.
        name: Display name.
        grid: The player's 3x3 cards.
        total_score: Cumulative points across all rounds.
        peek_flips: Cards flipped during the peek phase (0-2).
        score: Points scored in the most recently finished round.
        rounds_won: Number of rounds where this player had the lowest score.
    """

    id: str
    name: str
    grid: Grid = field(default_factory=empty_grid)
    total_score: int = 0
    peek_flips: int = 0
    score: int = 0
    rounds_won: int = 0

    def cells(self) -> Iterator[tuple[int, int, Optional[Card]]]:
        """Iterate (row, col, card) over the grid in reading order."""
        for r in range(GRID_ROWS):
            for c in range(GRID_COLS):
                yield r, c, self.grid[r][c]

    def all_face_up(self) -> bool:
        """Check if all of the player's cards are revealed."""
        return all(card is not None and card.face_up for _, _, card in self.cells())

    def face_down_cells(self) -> list[tuple[int, int]]:
        """Coordinates of cards that are still hidden."""
        return [(r, c) for r, c, card in self.cells() if card is not None and not card.face_up]


@dataclass
class GameState:
    """
    Complete state of one Golf round - the single source of truth.

    Attributes:
        players: Players in seating order.
        current_player_index: Index of the player whose turn it is.
        draw_pile: Face-down stack; the end of the list is the next draw.
        discard_pile: Face-up stack; the end of the list is the visible top.
        phase: Current round phase.
        peek_turn_index: Player currently peeking (PEEK phase only).
        peek_ends_at: Deadline for the current peek.
        turn_ends_at: Deadline for the current turn.
        must_draw_only_for_player_index: Player restricted to drawing from
            the deck on their bonus turn after clearing a column.
        game_id: Identifier shared by all rounds of a game.
        round_num: Round number (1-indexed).
        options: Game configuration.
        seed: Seed for every random choice made by the engine.
        rng_counter: Number of random sources consumed so far.
        deck_size: Cards in play (104, or 108 with jokers).
    """

    players: list[Player] = field(default_factory=list)
    current_player_index: int = 0
    draw_pile: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    phase: GamePhase = GamePhase.PEEK
    peek_turn_index: Optional[int] = None
    peek_ends_at: Optional[float] = None
    turn_ends_at: Optional[float] = None
    must_draw_only_for_player_index: Optional[int] = None
    game_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    round_num: int = 1
    options: GameOptions = field(default_factory=GameOptions)
    seed: int = 0
    rng_counter: int = 0
    deck_size: int = 0

    @property
    def top_discard(self) -> Optional[Card]:
        """The visible card on top of the discard pile (if any)."""
        if self.discard_pile:
            return self.discard_pile[-1]
        return None

    def current_player(self) -> Optional[Player]:
        """Get the player whose turn it currently is."""
        if self.players:
            return self.players[self.current_player_index]
        return None

    def copy(self) -> "GameState":
        """Return a fully independent snapshot of this state."""
        return copy.deepcopy(self)


@dataclass
class ExpiryOutcome:
    """
    Result of checking the current deadline.

    Attributes:
        state: State after the fallback ran (or the input if nothing expired).
        held: The caller's held card after the fallback (None once discarded).
        fired: Whether a deadline had passed and a fallback was applied.
        action: Which fallback ran ("auto_peek", "discard_held",
            "draw_and_discard", "skip_turn"), empty if none.
    """

    state: GameState
    held: Optional[Card] = None
    fired: bool = False
    action: str = ""


# -------------------------------------------------------------------------
# Internal helpers (operate on a private copy)
# -------------------------------------------------------------------------

def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


def _in_bounds(r: int, c: int) -> bool:
    return 0 <= r < GRID_ROWS and 0 <= c < GRID_COLS


def _next_rng(state: GameState) -> random.Random:
    """Derive the next random source from the state's seed."""
    rng = random.Random(f"{state.seed}:{state.rng_counter}")
    state.rng_counter += 1
    return rng


def _all_peeked(state: GameState) -> bool:
    return all(p.peek_flips >= PEEK_FLIPS for p in state.players)


def _start_turns(state: GameState, now: float) -> None:
    state.phase = GamePhase.TURN
    state.peek_turn_index = None
    state.peek_ends_at = None
    state.current_player_index = _next_rng(state).randrange(len(state.players))
    state.turn_ends_at = now + state.options.turn_duration
    state.must_draw_only_for_player_index = None
    logger.debug(
        f"Peek complete, player {state.current_player_index} starts round {state.round_num}"
    )


def _advance_peek(state: GameState, now: float) -> None:
    if _all_peeked(state):
        _start_turns(state, now)
        return

    idx = state.peek_turn_index or 0
    for _ in range(len(state.players)):
        idx = (idx + 1) % len(state.players)
        if state.players[idx].peek_flips < PEEK_FLIPS:
            state.peek_turn_index = idx
            state.peek_ends_at = now + state.options.peek_duration
            return

    _start_turns(state, now)


def _advance_turn(state: GameState, now: float) -> None:
    state.current_player_index = (state.current_player_index + 1) % len(state.players)
    state.turn_ends_at = now + state.options.turn_duration
    state.must_draw_only_for_player_index = None


def _reshuffle(state: GameState) -> None:
    """
    Recycle the discard pile into the draw pile.

    The top discard stays where it is; every other discard is shuffled,
    turned face-down and becomes the new draw pile.
    """
    if len(state.discard_pile) <= 1:
        return

    top = state.discard_pile.pop()
    pool = state.discard_pile
    shuffle(pool, _next_rng(state))
    for card in pool:
        card.face_up = False
        card.zeroed = False

    state.draw_pile = pool + state.draw_pile
    state.discard_pile = [top]
    logger.debug(f"Reshuffled {len(pool)} discards into the draw pile")


def _clear_three_of_a_kind_columns(grid: Grid) -> list[int]:
    """
    Zero every column holding three face-up cards of the same rank.

    Columns already fully zeroed are skipped. Evaluated left to right;
    all matches clear in the same call.

    Returns:
        Indices of the columns cleared by this call.
    """
    cleared = []
    for c in range(GRID_COLS):
        column = [grid[r][c] for r in range(GRID_ROWS)]
        if not all(card is not None and card.face_up for card in column):
            continue
        if all(card.zeroed for card in column):
            continue
        if len({card.rank for card in column}) == 1:
            for card in column:
                card.zeroed = True
                card.face_up = True
            cleared.append(c)
    return cleared


# -------------------------------------------------------------------------
# Invariants
# -------------------------------------------------------------------------

def check_invariants(state: GameState, held: Optional[Card] = None) -> None:
    """
    Assert the structural invariants of a state.

    Args:
        state: State to check.
        held: Card drawn by the current player but not yet placed or discarded.

    Raises:
        AssertionError: If any card is lost or duplicated, the forced-draw
            flag points at someone other than the current player, or pile
            visibility is wrong.
    """
    cards: list[Card] = []
    for player in state.players:
        assert player.peek_flips <= PEEK_FLIPS, f"{player.id} peeked {player.peek_flips} cards"
        for r, c, card in player.cells():
            assert card is not None, f"{player.id} has an empty cell at ({r},{c})"
            cards.append(card)
    cards.extend(state.draw_pile)
    cards.extend(state.discard_pile)
    if held is not None:
        cards.append(held)

    assert len(cards) == state.deck_size, (
        f"Card count mismatch: {len(cards)} in play, expected {state.deck_size}"
    )
    ids = [card.id for card in cards]
    assert len(set(ids)) == len(ids), "Duplicate card in play"

    flag = state.must_draw_only_for_player_index
    assert flag is None or flag == state.current_player_index, (
        f"Forced draw flag for player {flag} but current player is {state.current_player_index}"
    )
    assert state.top_discard is None or state.top_discard.face_up, "Top discard is face-down"
    assert all(not card.face_up for card in state.draw_pile), "Face-up card in draw pile"


# -------------------------------------------------------------------------
# Dealing & Peek Phase
# -------------------------------------------------------------------------

def deal(
    player_count: int,
    options: Optional[GameOptions] = None,
    *,
    players: Optional[list[Player]] = None,
    round_num: int = 1,
    seed: Optional[int] = None,
    game_id: Optional[str] = None,
    now: Optional[float] = None,
) -> GameState:
    """
    Start a new round.

    Shuffles the double deck, deals nine face-down cards to each player,
    flips one card to seed the discard pile and opens the peek phase with
    player 0 peeking first.

    Args:
        player_count: Number of players (2-4).
        options: Game configuration.
        players: Players from the previous round; ids, names, totals and
            rounds won carry over, grids are dealt fresh.
        round_num: Round number (1-indexed).
        seed: Seed for the shuffle and later random choices.
        game_id: Identifier to keep across rounds.
        now: Current time (epoch seconds).

    Returns:
        A new GameState in the PEEK phase.

    Raises:
        ValueError: If the player count is out of range or does not match
            the carried-over players.
    """
    if not MIN_PLAYERS <= player_count <= MAX_PLAYERS:
        raise ValueError(f"Golf needs {MIN_PLAYERS}-{MAX_PLAYERS} players, got {player_count}")
    if players is not None and len(players) != player_count:
        raise ValueError(f"Expected {player_count} players, got {len(players)}")

    options = options or GameOptions()
    now = _now(now)

    state = GameState(
        options=options,
        round_num=round_num,
        seed=seed if seed is not None else random.randint(0, 2**31 - 1),
        deck_size=deck_size(options.use_jokers),
    )
    if game_id is not None:
        state.game_id = game_id

    deck = create_deck(options.use_jokers, _next_rng(state))

    for i in range(player_count):
        if players is not None:
            prev = players[i]
            player = Player(
                id=prev.id,
                name=prev.name,
                total_score=prev.total_score,
                score=prev.score,
                rounds_won=prev.rounds_won,
            )
        else:
            player = Player(id=f"P{i + 1}", name=f"Player {i + 1}")

        for r in range(GRID_ROWS):
            for c in range(GRID_COLS):
                card = deck.pop()
                card.face_up = False
                player.grid[r][c] = card
        state.players.append(player)

    starter = deck.pop()
    starter.face_up = True
    state.discard_pile = [starter]
    state.draw_pile = deck

    state.phase = GamePhase.PEEK
    state.current_player_index = 0
    state.peek_turn_index = 0
    state.peek_ends_at = now + options.peek_duration

    check_invariants(state)
    logger.debug(
        f"Dealt round {round_num} to {player_count} players (seed={state.seed}, starter={starter})"
    )
    return state


def flip_for_peek(state: GameState, r: int, c: int, now: Optional[float] = None) -> GameState:
    """
    Flip one of the current peeker's face-down cards.

    Flipping out of phase, a face-up cell, or a third card is a no-op.
    When the peeker reaches two flips the peek passes on (or turns begin
    if everyone has peeked).

    Args:
        state: Current state.
        r: Row (0-2).
        c: Column (0-2).
        now: Current time (epoch seconds).

    Returns:
        New state.
    """
    next_state = state.copy()
    if next_state.phase != GamePhase.PEEK or next_state.peek_turn_index is None:
        return next_state
    if not _in_bounds(r, c):
        return next_state

    player = next_state.players[next_state.peek_turn_index]
    if player.peek_flips >= PEEK_FLIPS:
        return next_state

    card = player.grid[r][c]
    if card is None or card.face_up:
        return next_state

    card.face_up = True
    player.peek_flips += 1

    if player.peek_flips >= PEEK_FLIPS:
        _advance_peek(next_state, _now(now))

    check_invariants(next_state)
    return next_state


def advance_peek(state: GameState, now: Optional[float] = None) -> GameState:
    """
    Pass the peek to the next player who has not finished peeking.

    Resets that player's deadline. If nobody is left, turns begin.
    """
    next_state = state.copy()
    if next_state.phase != GamePhase.PEEK or next_state.peek_turn_index is None:
        return next_state
    _advance_peek(next_state, _now(now))
    return next_state


def auto_complete_current_peek(state: GameState, now: Optional[float] = None) -> GameState:
    """
    Deadline fallback for a player who did not peek in time.

    Flips random face-down cards of the current peeker until they have two
    flips, then passes the peek on.
    """
    next_state = state.copy()
    if next_state.phase != GamePhase.PEEK or next_state.peek_turn_index is None:
        return next_state

    player = next_state.players[next_state.peek_turn_index]
    coords = player.face_down_cells()
    rng = _next_rng(next_state)
    while player.peek_flips < PEEK_FLIPS and coords:
        r, c = coords.pop(rng.randrange(len(coords)))
        player.grid[r][c].face_up = True
        player.peek_flips += 1

    logger.debug(f"Auto-completed peek for {player.id}")
    _advance_peek(next_state, _now(now))
    check_invariants(next_state)
    return next_state


def start_turns(state: GameState, now: Optional[float] = None) -> GameState:
    """
    Leave the peek phase and begin play.

    Clears peek sub-state, picks a random starting player, sets a fresh turn
    deadline and clears any forced draw.
    """
    next_state = state.copy()
    _start_turns(next_state, _now(now))
    return next_state


# -------------------------------------------------------------------------
# Turn Actions
# -------------------------------------------------------------------------

def draw_from_deck(state: GameState, now: Optional[float] = None) -> tuple[GameState, Optional[Card]]:
    """
    Draw the top card of the draw pile.

    Reshuffles the discard pile first if the draw pile is empty. The drawn
    card is returned face-up as the caller's held card; it is no longer part
    of the state until placed or discarded. Consumes the current player's
    forced-draw restriction.

    Args:
        state: Current state.
        now: Current time (epoch seconds).

    Returns:
        Tuple of (new state, drawn card). The card is None outside the TURN
        phase or if no card is left anywhere.
    """
    next_state = state.copy()
    if next_state.phase != GamePhase.TURN:
        return next_state, None

    if not next_state.draw_pile:
        _reshuffle(next_state)
    if not next_state.draw_pile:
        logger.warning("No cards left to draw")
        return next_state, None

    card = next_state.draw_pile.pop()
    card.face_up = True

    if next_state.must_draw_only_for_player_index == next_state.current_player_index:
        next_state.must_draw_only_for_player_index = None

    next_state.turn_ends_at = _now(now) + next_state.options.turn_duration
    check_invariants(next_state, held=card)
    return next_state, card


def take_discard(state: GameState, now: Optional[float] = None) -> tuple[GameState, Optional[Card]]:
    """
    Take the visible top card of the discard pile.

    A player restricted to deck draws is silently redirected to
    draw_from_deck. Taking from an empty discard pile returns None and
    leaves the state unchanged; the turn deadline is not reset in that case.

    Args:
        state: Current state.
        now: Current time (epoch seconds).

    Returns:
        Tuple of (new state, taken card or None).
    """
    if state.phase != GamePhase.TURN:
        return state.copy(), None

    if state.must_draw_only_for_player_index == state.current_player_index:
        logger.debug(f"Player {state.current_player_index} must draw from the deck")
        return draw_from_deck(state, now=now)

    next_state = state.copy()
    if not next_state.discard_pile:
        return next_state, None

    card = next_state.discard_pile.pop()
    card.face_up = True
    next_state.turn_ends_at = _now(now) + next_state.options.turn_duration
    check_invariants(next_state, held=card)
    return next_state, card


def replace_grid_card(
    state: GameState,
    player_index: int,
    r: int,
    c: int,
    new_card: Card,
    now: Optional[float] = None,
) -> GameState:
    """
    Place the held card into a grid cell.

    The displaced card goes face-up onto the discard pile. Columns are then
    checked left to right for a new three of a kind; if any column cleared,
    the same player takes a bonus turn restricted to the deck, otherwise the
    turn passes to the next player.

    Placing for someone other than the current player, out of bounds or
    outside the TURN phase is a no-op.

    Args:
        state: Current state.
        player_index: Acting player.
        r: Row (0-2).
        c: Column (0-2).
        new_card: The card being placed (the caller's held card).
        now: Current time (epoch seconds).

    Returns:
        New state.
    """
    next_state = state.copy()
    if next_state.phase != GamePhase.TURN:
        return next_state
    if player_index != next_state.current_player_index or not _in_bounds(r, c):
        return next_state

    now = _now(now)
    player = next_state.players[player_index]

    placed = new_card.copy()
    placed.face_up = True
    placed.zeroed = False

    replaced = player.grid[r][c]
    player.grid[r][c] = placed

    if replaced is not None:
        replaced.face_up = True
        replaced.zeroed = False
        next_state.discard_pile.append(replaced)

    cleared = _clear_three_of_a_kind_columns(player.grid)
    if cleared:
        next_state.must_draw_only_for_player_index = player_index
        next_state.turn_ends_at = now + next_state.options.turn_duration
        logger.debug(f"{player.id} cleared column(s) {cleared}, bonus turn from the deck")
    else:
        _advance_turn(next_state, now)

    check_invariants(next_state)
    return next_state


def discard_drawn(state: GameState, card: Card, now: Optional[float] = None) -> GameState:
    """
    Discard the held card without touching the grid and end the turn.

    Args:
        state: Current state.
        card: The caller's held card.
        now: Current time (epoch seconds).

    Returns:
        New state.
    """
    next_state = state.copy()
    if next_state.phase != GamePhase.TURN:
        return next_state

    discarded = card.copy()
    discarded.face_up = True
    discarded.zeroed = False
    next_state.discard_pile.append(discarded)
    _advance_turn(next_state, _now(now))

    check_invariants(next_state)
    return next_state


# -------------------------------------------------------------------------
# Scoring & Round End
# -------------------------------------------------------------------------

def compute_score(grid: Grid) -> int:
    """
    Sum the point values of a grid (zeroed cards count 0).

    Args:
        grid: A player's 3x3 grid.

    Returns:
        Score for the grid (lower is better).
    """
    return sum(card_value(card) for row in grid for card in row if card is not None)


def is_round_over(state: GameState) -> bool:
    """True when every cell of every grid is face-up."""
    return all(player.all_face_up() for player in state.players)


def end_round(state: GameState) -> GameState:
    """
    Reveal all cards, score the round and update totals.

    Each player's round score is added to their total; the lowest scorer(s)
    win the round. Only valid from the TURN phase.

    Args:
        state: Current state.

    Returns:
        New state in the ROUND_END phase.
    """
    next_state = state.copy()
    if next_state.phase != GamePhase.TURN:
        return next_state

    for player in next_state.players:
        for _, _, card in player.cells():
            card.face_up = True
        player.score = compute_score(player.grid)
        player.total_score += player.score

    min_score = min(p.score for p in next_state.players)
    for player in next_state.players:
        if player.score == min_score:
            player.rounds_won += 1

    next_state.phase = GamePhase.ROUND_END
    next_state.turn_ends_at = None
    next_state.must_draw_only_for_player_index = None

    logger.debug(
        f"Round {next_state.round_num} scored: "
        + ", ".join(f"{p.id}={p.score}" for p in next_state.players)
    )
    return next_state


# -------------------------------------------------------------------------
# Deadlines
# -------------------------------------------------------------------------

def resolve_expiry(
    state: GameState,
    held: Optional[Card] = None,
    now: Optional[float] = None,
) -> ExpiryOutcome:
    """
    Check the active deadline and run its fallback if it has passed.

    Peek deadline: random cards are flipped for the current peeker.
    Turn deadline: the held card is discarded, or if nothing is held a card
    is drawn from the deck and discarded. Either way the resulting state
    carries a fresh deadline, so calling again does not fire twice.

    Args:
        state: Current state.
        held: The current player's held card, if any.
        now: Current time (epoch seconds).

    Returns:
        ExpiryOutcome describing what happened.
    """
    now = _now(now)

    if state.phase == GamePhase.PEEK and state.peek_ends_at is not None:
        if now >= state.peek_ends_at:
            return ExpiryOutcome(auto_complete_current_peek(state, now=now), held, True, "auto_peek")

    if state.phase == GamePhase.TURN and state.turn_ends_at is not None:
        if now >= state.turn_ends_at:
            if held is not None:
                return ExpiryOutcome(discard_drawn(state, held, now=now), None, True, "discard_held")

            next_state, drawn = draw_from_deck(state, now=now)
            if drawn is None:
                _advance_turn(next_state, now)
                return ExpiryOutcome(next_state, None, True, "skip_turn")
            return ExpiryOutcome(discard_drawn(next_state, drawn, now=now), None, True, "draw_and_discard")

    return ExpiryOutcome(state, held, False)
