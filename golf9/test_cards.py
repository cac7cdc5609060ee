"""
Test suite for the Golf 9 card model.

Covers:
- Card values (5 is the only negative standard card)
- Zeroed cards scoring 0
- Double-deck construction with unique ids
- Shuffle permutations

Run with: pytest golf9/test_cards.py -v
"""

import random
from collections import Counter

import pytest

from golf9.cards import (
    Card, Rank, Suit, RANK_VALUES, STANDARD_RANKS,
    card_value, clone_grid, create_deck, deck_size, shuffle,
)
from golf9.constants import get_card_value_for_rank


# =============================================================================
# Card Value Tests
# =============================================================================

class TestCardValues:
    """Verify card values match 9-Card Golf scoring."""

    def test_ace_worth_1(self):
        assert RANK_VALUES[Rank.ACE] == 1

    def test_five_worth_negative_5(self):
        assert RANK_VALUES[Rank.FIVE] == -5

    def test_other_number_cards_face_value(self):
        for rank, value in [
            (Rank.TWO, 2), (Rank.THREE, 3), (Rank.FOUR, 4), (Rank.SIX, 6),
            (Rank.SEVEN, 7), (Rank.EIGHT, 8), (Rank.NINE, 9), (Rank.TEN, 10),
        ]:
            assert RANK_VALUES[rank] == value

    def test_face_cards(self):
        assert RANK_VALUES[Rank.JACK] == 10
        assert RANK_VALUES[Rank.QUEEN] == 10
        assert RANK_VALUES[Rank.KING] == 0

    def test_joker_worth_negative_2(self):
        assert RANK_VALUES[Rank.JOKER] == -2

    def test_zeroed_card_scores_zero(self):
        card = Card("0-Q-hearts", Suit.HEARTS, Rank.QUEEN, face_up=True, zeroed=True)
        assert card_value(card) == 0
        assert card.value() == 0

    def test_zeroed_five_scores_zero(self):
        """A cleared column of fives loses its bonus too."""
        card = Card("0-5-clubs", Suit.CLUBS, Rank.FIVE, face_up=True, zeroed=True)
        assert card_value(card) == 0

    def test_rank_string_lookup(self):
        assert get_card_value_for_rank("5") == -5
        assert get_card_value_for_rank("K") == 0
        assert get_card_value_for_rank("★") == -2


# =============================================================================
# Deck Tests
# =============================================================================

class TestDeck:
    """Verify the double deck is built correctly."""

    def test_standard_double_deck_has_104_cards(self):
        deck = create_deck(rng=random.Random(1))
        assert len(deck) == 104
        assert deck_size(False) == 104

    def test_every_rank_appears_eight_times(self):
        deck = create_deck(rng=random.Random(1))
        counts = Counter(card.rank for card in deck)
        for rank in STANDARD_RANKS:
            assert counts[rank] == 8
        assert Rank.JOKER not in counts

    def test_card_ids_are_unique(self):
        deck = create_deck(use_jokers=True, rng=random.Random(1))
        assert len({card.id for card in deck}) == len(deck)

    def test_joker_variant_adds_four_jokers(self):
        deck = create_deck(use_jokers=True, rng=random.Random(1))
        assert len(deck) == 108
        assert deck_size(True) == 108
        assert sum(1 for card in deck if card.rank == Rank.JOKER) == 4

    def test_cards_start_face_down(self):
        deck = create_deck(rng=random.Random(1))
        assert not any(card.face_up or card.zeroed for card in deck)

    def test_same_seed_same_order(self):
        first = [card.id for card in create_deck(rng=random.Random(42))]
        second = [card.id for card in create_deck(rng=random.Random(42))]
        assert first == second


# =============================================================================
# Shuffle Tests
# =============================================================================

class TestShuffle:
    """Verify the Fisher-Yates shuffle."""

    def test_shuffle_is_a_permutation(self):
        items = list(range(52))
        result = shuffle(items[:], random.Random(3))
        assert sorted(result) == items

    def test_shuffle_returns_same_list(self):
        items = [1, 2, 3]
        assert shuffle(items, random.Random(0)) is items

    def test_shuffle_handles_short_lists(self):
        assert shuffle([], random.Random(0)) == []
        assert shuffle([7], random.Random(0)) == [7]

    def test_shuffle_changes_order(self):
        items = list(range(104))
        orders = {tuple(shuffle(items[:], random.Random(seed))) for seed in range(5)}
        assert len(orders) > 1


# =============================================================================
# Card Copy Tests
# =============================================================================

class TestCardCopy:

    def test_copy_is_independent(self):
        card = Card("1-K-spades", Suit.SPADES, Rank.KING, deck_id=1)
        clone = card.copy()
        clone.face_up = True
        assert card.face_up is False
        assert clone == Card("1-K-spades", Suit.SPADES, Rank.KING, face_up=True, deck_id=1)

    def test_clone_grid_preserves_empty_cells(self):
        card = Card("0-A-hearts", Suit.HEARTS, Rank.ACE)
        grid = [[card, None, None], [None, None, None], [None, None, None]]
        cloned = clone_grid(grid)
        assert cloned == grid
        assert cloned[0][0] is not card

    def test_from_dict_reads_to_dict(self):
        card = Card("0-10-diamonds", Suit.DIAMONDS, Rank.TEN, face_up=True)
        assert Card.from_dict(card.to_dict()) == card

    @pytest.mark.parametrize("card,text", [
        (Card("0-10-spades", Suit.SPADES, Rank.TEN), "10♠"),
        (Card("0-5-hearts", Suit.HEARTS, Rank.FIVE), "5♥"),
        (Card("0-★-0", Suit.HEARTS, Rank.JOKER), "★"),
    ])
    def test_str(self, card, text):
        assert str(card) == text
