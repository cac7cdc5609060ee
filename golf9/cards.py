"""
Card and deck model for 9-Card Golf.

Golf 9 is played with two standard 52-card decks shuffled together (104
cards), optionally with two jokers per deck. Each card carries a unique id
so conservation of the double deck can be checked at any point.

Card values (see constants.py):
    A=1, 2-4 and 6-10 face value, 5=-5, J/Q=10, K=0, Joker=-2.
    A card in a zeroed column (three of a kind) is worth 0.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TypeVar

from golf9.constants import DEFAULT_CARD_VALUES, NUM_DECKS, JOKERS_PER_DECK

T = TypeVar("T")


class Suit(Enum):
    """Card suits for a standard deck."""

    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"


SUIT_SYMBOLS: dict[Suit, str] = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}


class Rank(Enum):
    """Card ranks with their display values."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    JOKER = "★"


# Map Rank enum to point values (derived from constants.py as single source of truth)
RANK_VALUES: dict[Rank, int] = {rank: DEFAULT_CARD_VALUES[rank.value] for rank in Rank}

STANDARD_RANKS: list[Rank] = [rank for rank in Rank if rank != Rank.JOKER]


@dataclass
class Card:
    """
    A playing card.

    Attributes:
        id: Unique identifier within the double deck.
        suit: The card's suit.
        rank: The card's rank (A, 2-10, J, Q, K, or Joker).
        face_up: Whether the card is visible to all players.
        zeroed: Set when the card's column was cleared by three of a kind.
        deck_id: Which of the two decks this card came from.
    """

    id: str
    suit: Suit
    rank: Rank
    face_up: bool = False
    zeroed: bool = False
    deck_id: int = 0

    def copy(self) -> "Card":
        """Return an independent copy of this card."""
        return Card(
            id=self.id,
            suit=self.suit,
            rank=self.rank,
            face_up=self.face_up,
            zeroed=self.zeroed,
            deck_id=self.deck_id,
        )

    def value(self) -> int:
        """Get point value (zeroed cards score 0)."""
        return card_value(self)

    def to_dict(self) -> dict:
        """Convert card to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "suit": self.suit.value,
            "rank": self.rank.value,
            "face_up": self.face_up,
            "zeroed": self.zeroed,
            "deck_id": self.deck_id,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Card":
        """Create a card from its dictionary form."""
        return cls(
            id=d["id"],
            suit=Suit(d["suit"]),
            rank=Rank(d["rank"]),
            face_up=d.get("face_up", False),
            zeroed=d.get("zeroed", False),
            deck_id=d.get("deck_id", 0),
        )

    def __str__(self) -> str:
        if self.rank == Rank.JOKER:
            return self.rank.value
        return f"{self.rank.value}{SUIT_SYMBOLS[self.suit]}"


Grid = list[list[Optional[Card]]]


def card_value(card: Card) -> int:
    """
    Get the point value of a card.

    A zeroed card always scores 0 regardless of its rank.

    Args:
        card: Card to evaluate.

    Returns:
        Point value for the card.
    """
    if card.zeroed:
        return 0
    return RANK_VALUES[card.rank]


def shuffle(seq: list[T], rng: Optional[random.Random] = None) -> list[T]:
    """
    Shuffle a list in place with an unbiased Fisher-Yates permutation.

    Args:
        seq: List to permute.
        rng: Random source; the module-level generator when omitted.

    Returns:
        The same list, for chaining.
    """
    rand = rng or random
    for i in range(len(seq) - 1, 0, -1):
        j = rand.randint(0, i)
        seq[i], seq[j] = seq[j], seq[i]
    return seq


def create_deck(
    use_jokers: bool = False,
    rng: Optional[random.Random] = None,
) -> list[Card]:
    """
    Build and shuffle the double deck.

    Args:
        use_jokers: Add two jokers per deck (joker variant).
        rng: Random source for the shuffle.

    Returns:
        104 (or 108) face-down cards; the end of the list is the top.
    """
    cards: list[Card] = []
    for deck_idx in range(NUM_DECKS):
        for suit in Suit:
            for rank in STANDARD_RANKS:
                cards.append(Card(
                    id=f"{deck_idx}-{rank.value}-{suit.value}",
                    suit=suit,
                    rank=rank,
                    deck_id=deck_idx,
                ))

        if use_jokers:
            for n in range(JOKERS_PER_DECK):
                suit = Suit.HEARTS if n % 2 == 0 else Suit.SPADES
                cards.append(Card(
                    id=f"{deck_idx}-{Rank.JOKER.value}-{n}",
                    suit=suit,
                    rank=Rank.JOKER,
                    deck_id=deck_idx,
                ))

    return shuffle(cards, rng)


def deck_size(use_jokers: bool = False) -> int:
    """Number of cards in play for the given variant."""
    size = NUM_DECKS * len(Suit) * len(STANDARD_RANKS)
    if use_jokers:
        size += NUM_DECKS * JOKERS_PER_DECK
    return size


def clone_grid(grid: Grid) -> Grid:
    """Deep-copy a grid, preserving empty cells."""
    return [[card.copy() if card else None for card in row] for row in grid]
