"""
Hand evaluation.

A play is classified into one of eight categories. Each category is its own
frozen dataclass carrying only the fields it needs, plus a ``tiebreak`` tuple
that orders hands of the same category.
"""

from collections import Counter
from dataclasses import dataclass
from typing import ClassVar, Iterable, Optional, Tuple, Union

from .comparator import card_key, highest_card, rank_order, sort_cards
from .constants import (
    SINGLE, PAIR, TRIPLE, STRAIGHT, FLUSH, FULL_HOUSE, FOUR_OF_A_KIND, STRAIGHT_FLUSH,
    HAND_NAMES, LEGAL_HAND_SIZES, MAX_RANK_BY_SEATS,
    STRAIGHT_ONE_AND_TWO, STRAIGHT_TWO_ONLY, STRAIGHT_ONE_AT_END, STRAIGHT_NORMAL,
    STRAIGHT_TYPE_STRENGTH,
)
from .models import Card


class _HandBase:
    @property
    def size(self) -> int:
        return len(self.cards)


@dataclass(frozen=True)
class Single(_HandBase):
    category: ClassVar[int] = SINGLE
    card: Card

    @property
    def cards(self) -> Tuple[Card, ...]:
        return (self.card,)

    @property
    def tiebreak(self) -> tuple:
        return card_key(self.card)


@dataclass(frozen=True)
class Pair(_HandBase):
    category: ClassVar[int] = PAIR
    rank: int
    high_card: Card
    cards: Tuple[Card, ...]

    @property
    def tiebreak(self) -> tuple:
        return (rank_order(self.rank),) + card_key(self.high_card)


@dataclass(frozen=True)
class Triple(_HandBase):
    category: ClassVar[int] = TRIPLE
    rank: int
    high_card: Card
    cards: Tuple[Card, ...]

    @property
    def tiebreak(self) -> tuple:
        return (rank_order(self.rank),) + card_key(self.high_card)


@dataclass(frozen=True)
class Straight(_HandBase):
    category: ClassVar[int] = STRAIGHT
    cards: Tuple[Card, ...]
    straight_type: str
    high_card: Card

    @property
    def tiebreak(self) -> tuple:
        return (STRAIGHT_TYPE_STRENGTH[self.straight_type],) + card_key(self.high_card)


@dataclass(frozen=True)
class Flush(_HandBase):
    category: ClassVar[int] = FLUSH
    cards: Tuple[Card, ...]
    high_card: Card

    @property
    def tiebreak(self) -> tuple:
        return card_key(self.high_card)


@dataclass(frozen=True)
class FullHouse(_HandBase):
    category: ClassVar[int] = FULL_HOUSE
    rank: int  # rank of the triple
    cards: Tuple[Card, ...]

    @property
    def tiebreak(self) -> tuple:
        return (rank_order(self.rank),)


@dataclass(frozen=True)
class FourOfAKind(_HandBase):
    category: ClassVar[int] = FOUR_OF_A_KIND
    rank: int
    cards: Tuple[Card, ...]

    @property
    def tiebreak(self) -> tuple:
        return (rank_order(self.rank),)


@dataclass(frozen=True)
class StraightFlush(Straight):
    category: ClassVar[int] = STRAIGHT_FLUSH


Hand = Union[Single, Pair, Triple, Straight, Flush, FullHouse, FourOfAKind, StraightFlush]


def hand_name(hand: Hand) -> str:
    return HAND_NAMES[hand.category]


def detect_straight(cards: Tuple[Card, ...], max_rank: Optional[int] = None) -> Optional[Tuple[str, Card]]:
    """
    Recognise the run formed by five cards.

    Args:
        cards: Exactly five cards
        max_rank: Highest rank of the deck in use; when omitted, a wrap-around
            run ending at 1 is accepted for any supported deck size

    Returns:
        Tuple of (straight_type, high_card) or None if the ranks form no run
    """
    by_rank = {card.rank: card for card in cards}
    if len(by_rank) != 5:
        return None
    ranks = set(by_rank)

    if ranks == {1, 2, 3, 4, 5}:
        return STRAIGHT_ONE_AND_TWO, by_rank[2]
    if ranks == {2, 3, 4, 5, 6}:
        return STRAIGHT_TWO_ONLY, by_rank[2]

    tops = [max_rank] if max_rank else list(MAX_RANK_BY_SEATS.values())
    for top in tops:
        if ranks == set(range(top - 3, top + 1)) | {1}:
            return STRAIGHT_ONE_AT_END, by_rank[1]

    low, high = min(ranks), max(ranks)
    if low >= 3 and high - low == 4 and (max_rank is None or high <= max_rank):
        return STRAIGHT_NORMAL, by_rank[high]
    return None


def evaluate_hand(cards: Iterable[Card], max_rank: Optional[int] = None) -> Optional[Hand]:
    """
    Classify a set of cards.

    Args:
        cards: Cards being played
        max_rank: Highest rank of the deck in use (see detect_straight)

    Returns:
        The hand variant, or None when the cards are not a legal hand
    """
    cards = tuple(sort_cards(cards))
    if len(cards) not in LEGAL_HAND_SIZES or len(set(cards)) != len(cards):
        return None

    if len(cards) == 1:
        return Single(cards[0])

    first_rank = cards[0].rank
    same_rank = all(card.rank == first_rank for card in cards)

    if len(cards) == 2:
        return Pair(first_rank, cards[-1], cards) if same_rank else None

    if len(cards) == 3:
        return Triple(first_rank, cards[-1], cards) if same_rank else None

    # Five cards: straight flush -> four of a kind -> full house -> flush -> straight
    is_flush = all(card.suit == cards[0].suit for card in cards)
    straight = detect_straight(cards, max_rank)

    if is_flush and straight:
        straight_type, high = straight
        return StraightFlush(cards, straight_type, high)

    counts = Counter(card.rank for card in cards)
    by_count = {count: rank for rank, count in counts.items()}

    if 4 in by_count:
        return FourOfAKind(by_count[4], cards)

    if 3 in by_count and 2 in by_count:
        return FullHouse(by_count[3], cards)

    if is_flush:
        return Flush(cards, highest_card(cards))

    if straight:
        straight_type, high = straight
        return Straight(cards, straight_type, high)

    return None
