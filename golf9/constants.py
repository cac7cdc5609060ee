"""
Card value and game constants for 9-Card Golf.

This module is the single source of truth for all card point values and
rule constants. Values are read from config.py, which honours environment
variables and a .env file.

Scoring (lower is better):
    - Ace: 1 point
    - 2-4, 6-10: Face value
    - 5: -5 points (the only negative standard card)
    - Jack, Queen: 10 points
    - King: 0 points
    - Joker: -2 points (joker variant only)
    - Any card in a zeroed column: 0 points
"""

from golf9.config import config


# =============================================================================
# Card Values - Single Source of Truth
# =============================================================================

DEFAULT_CARD_VALUES: dict[str, int] = config.card_values.to_dict()


# =============================================================================
# Game Constants
# =============================================================================

GRID_ROWS = 3
GRID_COLS = 3

NUM_DECKS = 2
JOKERS_PER_DECK = 2

MIN_PLAYERS = 2
MAX_PLAYERS = 4
ALLOWED_ROUNDS = (5, 9)

PEEK_FLIPS = 2

DEFAULT_PLAYERS = config.game_defaults.players
DEFAULT_ROUNDS = config.game_defaults.rounds
DEFAULT_USE_JOKERS = config.game_defaults.use_jokers
TURN_DURATION = config.TURN_DURATION
PEEK_DURATION = config.PEEK_DURATION


# =============================================================================
# Helper Functions
# =============================================================================

def get_card_value_for_rank(rank_str: str) -> int:
    """
    Get point value for a card rank string.

    Use this for string-based rank lookups (e.g., from relayed JSON).

    Args:
        rank_str: Card rank as string ('A', '2', ..., 'K', '★')

    Returns:
        Point value for the card
    """
    return DEFAULT_CARD_VALUES.get(rank_str, 0)
