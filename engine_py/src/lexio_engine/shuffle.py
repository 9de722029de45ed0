"""
Card shuffling and dealing utilities.
"""

import logging
import random
from typing import List, Optional

from .comparator import sort_cards
from .constants import MAX_RANK_BY_SEATS, STARTING_CARD, SUIT_ORDER
from .errors import INVALID_SEAT_COUNT, InvariantViolation, raise_error
from .models import Card, GameState, Player

logger = logging.getLogger(__name__)


def max_rank_for(seat_count: int) -> int:
    """Highest rank in the deck for a given number of seats."""
    if seat_count not in MAX_RANK_BY_SEATS:
        raise_error(INVALID_SEAT_COUNT, f"Lexio is played by 3 to 5 players, not {seat_count}")
    return MAX_RANK_BY_SEATS[seat_count]


def create_deck(seat_count: int) -> List[Card]:
    """Create the deck for a given number of seats, in a fixed order."""
    max_rank = max_rank_for(seat_count)
    return [Card(suit, rank) for suit in SUIT_ORDER for rank in range(1, max_rank + 1)]


def shuffle_deck(deck: List[Card], seed: Optional[int] = None) -> List[Card]:
    """
    Shuffle a deck deterministically if seed is provided.

    Args:
        deck: Cards to shuffle
        seed: Optional seed for deterministic shuffling

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()

    if seed is not None:
        rng = random.Random(seed)
        rng.shuffle(deck_copy)
    else:
        random.shuffle(deck_copy)

    return deck_copy


def deal_cards(deck: List[Card], seat_count: int) -> List[List[Card]]:
    """
    Deal cards evenly to every seat.

    Each seat receives len(deck) // seat_count cards, sorted ascending; any
    remainder stays undealt.

    Returns:
        One sorted hand per seat, in seat order
    """
    cards_per_seat = len(deck) // seat_count
    leftover = len(deck) - cards_per_seat * seat_count
    if leftover:
        logger.warning(f"{leftover} cards left undealt for {seat_count} seats")

    return [
        sort_cards(deck[seat * cards_per_seat:(seat + 1) * cards_per_seat])
        for seat in range(seat_count)
    ]


def find_starting_player(players: List[Player]) -> int:
    """
    Find the seat that leads the round (holds cloud 3).

    Raises:
        InvariantViolation: if no hand holds cloud 3
    """
    for player in players:
        if STARTING_CARD in player.hand:
            return player.seat
    raise InvariantViolation("No player holds cloud 3")


def setup_round(state: GameState, seed: Optional[int] = None) -> GameState:
    """
    Shuffle and deal a fresh deck to the seated players and pick the leader.

    The caller is responsible for seat compaction and player-count checks.
    """
    seat_count = len(state.players)
    deck = shuffle_deck(create_deck(seat_count), seed)

    for player, hand in zip(state.players, deal_cards(deck, seat_count)):
        player.hand = hand

    state.max_rank = max_rank_for(seat_count)
    state.current_turn = find_starting_player(state.players)
    state.pile = None
    state.consecutive_passes = 0
    state.winner = None
    state.last_settlement = {}
    return state


def validate_deck_integrity(state: GameState) -> bool:
    """
    Validate that no card is held twice and that every held card belongs to
    the deck in use.
    """
    if state.max_rank is None:
        return False

    expected_cards = set(create_deck(len(state.players)))
    held = [card for player in state.players for card in player.hand]

    return len(held) == len(set(held)) and set(held) <= expected_cards
