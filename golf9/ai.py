"""AI opponent for CPU players in Golf 9.

The policy only reads the state and calls the public engine operations
(take_discard / draw_from_deck, then replace_grid_card). It keeps no state
of its own.
"""

import logging
import os
import random
from typing import Optional

from golf9.cards import Card, card_value
from golf9.constants import GRID_COLS, GRID_ROWS
from golf9.game import (
    GamePhase,
    GameState,
    Player,
    draw_from_deck,
    flip_for_peek,
    replace_grid_card,
    take_discard,
)


# Debug logging configuration
# Set AI_DEBUG=1 environment variable to enable detailed AI decision logging
AI_DEBUG = os.environ.get("AI_DEBUG", "0") == "1"

ai_logger = logging.getLogger("golf9.ai")
if AI_DEBUG:
    ai_logger.setLevel(logging.DEBUG)


def ai_log(message: str):
    """Log AI decision info when AI_DEBUG is enabled."""
    if AI_DEBUG:
        ai_logger.debug(message)


Coord = tuple[int, int]

# Peek pairs in different rows and columns give the most column information
PEEK_PATTERNS: list[list[Coord]] = [
    [(0, 0), (1, 1)], [(0, 2), (1, 1)], [(1, 0), (2, 2)],
    [(0, 1), (2, 0)], [(0, 0), (2, 2)], [(0, 2), (2, 0)],
]


# =============================================================================
# Grid helpers
# =============================================================================

def column_cards(player: Player, col: int) -> list[Optional[Card]]:
    """Cards of one column, top to bottom."""
    return [player.grid[r][col] for r in range(GRID_ROWS)]


def column_zeroed(player: Player, col: int) -> bool:
    """Whether every card in the column is already zeroed."""
    return all(card is not None and card.zeroed for card in column_cards(player, col))


def worst_revealed_cell(player: Player) -> Optional[Coord]:
    """Highest-scoring face-up card that is not zeroed (first one on ties)."""
    worst: Optional[Coord] = None
    worst_value = None
    for r, c, card in player.cells():
        if card is None or not card.face_up or card.zeroed:
            continue
        value = card_value(card)
        if worst_value is None or value > worst_value:
            worst, worst_value = (r, c), value
    return worst


def completing_cell(player: Player, card: Card) -> Optional[Coord]:
    """
    Find a cell where placing ``card`` completes a three of a kind.

    The other two cells of the column must be face-up with the card's rank,
    and the column must not already be fully zeroed.
    """
    for c in range(GRID_COLS):
        if column_zeroed(player, c):
            continue
        column = column_cards(player, c)
        for r in range(GRID_ROWS):
            current = column[r]
            if current is not None and current.face_up and current.rank == card.rank:
                continue
            others = [column[i] for i in range(GRID_ROWS) if i != r]
            if all(o is not None and o.face_up and o.rank == card.rank for o in others):
                return r, c
    return None


def extends_match(player: Player, card: Card) -> bool:
    """Whether ``card`` would join a face-up card of the same rank in an open column."""
    for c in range(GRID_COLS):
        if column_zeroed(player, c):
            continue
        column = column_cards(player, c)
        same = [o for o in column if o is not None and o.face_up and o.rank == card.rank]
        if same and len(same) < GRID_ROWS:
            return True
    return False


def matching_face_down_cell(player: Player, card: Card) -> Optional[Coord]:
    """A face-down cell in a column that already shows the card's rank."""
    for c in range(GRID_COLS):
        if column_zeroed(player, c):
            continue
        column = column_cards(player, c)
        if not any(o is not None and o.face_up and o.rank == card.rank for o in column):
            continue
        for r in range(GRID_ROWS):
            if column[r] is not None and not column[r].face_up:
                return r, c
    return None


# =============================================================================
# Policy
# =============================================================================

class GolfAI:
    """AI decision-making for Golf 9."""

    @staticmethod
    def choose_peek_cells(rng: Optional[random.Random] = None) -> list[Coord]:
        """Choose which two cards to peek at."""
        return list((rng or random).choice(PEEK_PATTERNS))

    @staticmethod
    def should_take_discard(state: GameState, player_index: int) -> bool:
        """Decide whether to take the visible discard instead of drawing blind."""
        top = state.top_discard
        if top is None:
            return False

        if state.must_draw_only_for_player_index == player_index:
            ai_log(f"  P{player_index}: forced to draw from deck")
            return False

        player = state.players[player_index]

        if completing_cell(player, top) is not None:
            ai_log(f"  >> TAKE: {top} completes a column")
            return True

        if extends_match(player, top):
            ai_log(f"  >> TAKE: {top} extends a column match")
            return True

        worst = worst_revealed_cell(player)
        if worst is not None:
            worst_card = player.grid[worst[0]][worst[1]]
            if card_value(top) < card_value(worst_card):
                ai_log(f"  >> TAKE: {top} beats revealed {worst_card} at {worst}")
                return True

        return False

    @staticmethod
    def choose_target(state: GameState, player_index: int, card: Card) -> Coord:
        """
        Pick the cell to place a held card into.

        Preference order:
            1. A cell that completes a three of a kind
            2. The worst revealed cell, if the card scores lower
            3. A face-down cell (one in a column showing the same rank first)
            4. The first face-up cell that is not zeroed
        """
        player = state.players[player_index]

        target = completing_cell(player, card)
        if target is not None:
            ai_log(f"  P{player_index}: {card} completes column at {target}")
            return target

        worst = worst_revealed_cell(player)
        if worst is not None:
            worst_card = player.grid[worst[0]][worst[1]]
            if card_value(card) < card_value(worst_card):
                ai_log(f"  P{player_index}: {card} replaces worst {worst_card} at {worst}")
                return worst

        target = matching_face_down_cell(player, card)
        if target is not None:
            return target

        face_down = player.face_down_cells()
        if face_down:
            return face_down[0]

        for r, c, existing in player.cells():
            if existing is not None and not existing.zeroed:
                return r, c
        return 0, 0

    @staticmethod
    def peek(state: GameState, now: Optional[float] = None,
             rng: Optional[random.Random] = None) -> GameState:
        """Flip two cards for the current peeker."""
        if state.phase != GamePhase.PEEK or state.peek_turn_index is None:
            return state

        peeker = state.peek_turn_index
        candidates = GolfAI.choose_peek_cells(rng) + state.players[peeker].face_down_cells()
        for r, c in candidates:
            if state.phase != GamePhase.PEEK or state.peek_turn_index != peeker:
                break
            state = flip_for_peek(state, r, c, now=now)
        return state

    @staticmethod
    def play_turn(state: GameState, player_index: int,
                  now: Optional[float] = None) -> GameState:
        """
        Play one complete turn for a CPU player.

        Returns:
            The state after the card was placed. If the placement cleared a
            column, the same player is still current and must play again.
        """
        if state.phase != GamePhase.TURN or state.current_player_index != player_index:
            return state

        if GolfAI.should_take_discard(state, player_index):
            next_state, card = take_discard(state, now=now)
        else:
            next_state, card = draw_from_deck(state, now=now)

        if card is None:
            ai_log(f"  P{player_index}: nothing to draw")
            return next_state

        r, c = GolfAI.choose_target(next_state, player_index, card)
        ai_log(f"  P{player_index}: places {card} at ({r},{c})")
        return replace_grid_card(next_state, player_index, r, c, card, now=now)
