"""
Card and hand ordering.
"""

from typing import Iterable, List, Tuple

from .constants import RANK_ORDER, SUIT_ORDER
from .models import Card, Suit


def rank_order(rank: int) -> int:
    """Position of a rank in play order (3 lowest, 2 highest)."""
    try:
        return RANK_ORDER.index(rank)
    except ValueError:
        raise ValueError(f"Invalid rank: {rank}")


def suit_order(suit: Suit) -> int:
    """Position of a suit in [cloud, star, moon, sun]."""
    return SUIT_ORDER.index(Suit(suit))


def card_key(card: Card) -> Tuple[int, int]:
    return rank_order(card.rank), suit_order(card.suit)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def compare_cards(card_a: Card, card_b: Card) -> int:
    """
    Compare two cards.

    Returns:
        -1 if card_a is lower, 0 if identical, 1 if card_a is higher
    """
    rank_diff = rank_order(card_a.rank) - rank_order(card_b.rank)
    if rank_diff:
        return _sign(rank_diff)
    return _sign(suit_order(card_a.suit) - suit_order(card_b.suit))


def highest_card(cards: Iterable[Card]) -> Card:
    cards = list(cards)
    if not cards:
        raise ValueError("Cannot get highest card from empty list")
    return max(cards, key=card_key)


def lowest_card(cards: Iterable[Card]) -> Card:
    cards = list(cards)
    if not cards:
        raise ValueError("Cannot get lowest card from empty list")
    return min(cards, key=card_key)


def sort_cards(cards: Iterable[Card], reverse: bool = False) -> List[Card]:
    """Sort cards in play order, ascending unless reverse is set."""
    return sorted(cards, key=card_key, reverse=reverse)


def compare_hands(hand_a, hand_b) -> int:
    """
    Compare two evaluated hands.

    Hands of different categories compare by category; hands of the same
    category compare by their tiebreak tuples.

    Returns:
        < 0 if hand_a is weaker, 0 if equal, > 0 if hand_a is stronger
    """
    if hand_a.category != hand_b.category:
        return hand_a.category - hand_b.category
    if hand_a.tiebreak == hand_b.tiebreak:
        return 0
    return 1 if hand_a.tiebreak > hand_b.tiebreak else -1


def beats(hand, pile_hand) -> bool:
    """Check if hand is a legal answer to pile_hand: same size and stronger."""
    return hand.size == pile_hand.size and compare_hands(hand, pile_hand) > 0
