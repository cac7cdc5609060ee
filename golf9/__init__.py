"""Golf 9: rules engine, CPU opponent and round loop for 9-Card Golf."""

from golf9.ai import GolfAI
from golf9.cards import Card, Rank, Suit, card_value, create_deck, shuffle
from golf9.game import (
    ExpiryOutcome,
    GameOptions,
    GamePhase,
    GameState,
    Player,
    advance_peek,
    auto_complete_current_peek,
    check_invariants,
    compute_score,
    deal,
    discard_drawn,
    draw_from_deck,
    end_round,
    flip_for_peek,
    is_round_over,
    replace_grid_card,
    resolve_expiry,
    start_turns,
    take_discard,
)
from golf9.intents import IntentError, apply_intent, decode_intent, encode_intent
from golf9.match import Match, RoundResult
from golf9.scheduler import ExpiryWatcher

__version__ = "0.1.0"

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "card_value",
    "create_deck",
    "shuffle",
    "ExpiryOutcome",
    "GameOptions",
    "GamePhase",
    "GameState",
    "Player",
    "advance_peek",
    "auto_complete_current_peek",
    "check_invariants",
    "compute_score",
    "deal",
    "discard_drawn",
    "draw_from_deck",
    "end_round",
    "flip_for_peek",
    "is_round_over",
    "replace_grid_card",
    "resolve_expiry",
    "start_turns",
    "take_discard",
    "GolfAI",
    "Match",
    "RoundResult",
    "ExpiryWatcher",
    "IntentError",
    "apply_intent",
    "decode_intent",
    "encode_intent",
]
