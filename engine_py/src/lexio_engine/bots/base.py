"""
Base bot interface and utilities.
"""

import random
from abc import ABC, abstractmethod
from collections import defaultdict
from itertools import combinations
from typing import Dict, List, Optional

from ..comparator import beats, sort_cards
from ..constants import PHASE_PLAYING
from ..hands import Hand, evaluate_hand
from ..models import Card, GameState, Player, Suit


class BotAction:
    """Represents a bot action."""

    def __init__(self, action_type: str, **kwargs):
        self.type = action_type
        self.data = kwargs

    @classmethod
    def play(cls, cards: List[Card]) -> 'BotAction':
        """Create a play action."""
        return cls('play', cards=list(cards))

    @classmethod
    def pass_turn(cls) -> 'BotAction':
        """Create a pass action."""
        return cls('pass')

    @property
    def card_ids(self) -> List[str]:
        return [card.id for card in self.data.get('cards', [])]

    def __repr__(self) -> str:
        return f"BotAction({self.type}, {self.card_ids})"


def group_by_rank(hand: List[Card]) -> Dict[int, List[Card]]:
    """Cards grouped by rank, each group sorted by suit."""
    groups = defaultdict(list)
    for card in sort_cards(hand):
        groups[card.rank].append(card)
    return dict(groups)


def group_by_suit(hand: List[Card]) -> Dict[Suit, List[Card]]:
    """Cards grouped by suit, each group sorted in play order."""
    groups = defaultdict(list)
    for card in sort_cards(hand):
        groups[card.suit].append(card)
    return dict(groups)


def hand_strength(hand: Hand) -> tuple:
    return hand.category, hand.tiebreak


def enumerate_responses(
    hand: List[Card],
    pile_hand: Hand,
    max_rank: Optional[int] = None,
    full_five_card_search: bool = False
) -> List[Hand]:
    """
    Every play from hand that beats pile_hand, weakest first.

    Pairs and triples are taken as the lowest-suited cards of each rank.
    Five-card answers are searched among same-suit groups only, unless
    full_five_card_search is set.
    """
    size = pile_hand.size
    candidates: List[List[Card]] = []

    if size == 1:
        candidates = [[card] for card in hand]
    elif size in (2, 3):
        candidates = [cards[:size] for cards in group_by_rank(hand).values() if len(cards) >= size]
    elif size == 5:
        if full_five_card_search:
            candidates = [list(combo) for combo in combinations(sort_cards(hand), 5)]
        else:
            for cards in group_by_suit(hand).values():
                if len(cards) >= 5:
                    candidates.extend(list(combo) for combo in combinations(cards, 5))

    plays = []
    for cards in candidates:
        evaluated = evaluate_hand(cards, max_rank)
        if evaluated is not None and beats(evaluated, pile_hand):
            plays.append(evaluated)
    return sorted(plays, key=hand_strength)


class BaseBot(ABC):
    """Abstract base class for AI seats."""

    def __init__(self, player_id: str, rng: Optional[random.Random] = None):
        self.player_id = player_id
        self.rng = rng or random.Random()

    @abstractmethod
    def choose_action(self, state: GameState) -> Optional[BotAction]:
        """
        Choose an action based on the current game state.

        Only the bot's own hand and the public part of the state may be used.

        Returns:
            BotAction to take, or None if it is not this bot's turn
        """
        pass

    def get_player(self, state: GameState) -> Optional[Player]:
        return state.get_player(self.player_id)

    def get_player_hand(self, state: GameState) -> List[Card]:
        """Get this bot's current hand."""
        player = self.get_player(state)
        return list(player.hand) if player else []

    def is_my_turn(self, state: GameState) -> bool:
        """Check if it's this bot's turn."""
        player = self.get_player(state)
        return (
            state.phase == PHASE_PLAYING and
            player is not None and
            player.is_active and
            state.current_turn == player.seat
        )

    def get_opponent_counts(self, state: GameState) -> List[int]:
        """Card counts of the other active seats."""
        return [
            p.card_count for p in state.players
            if p.is_active and p.id != self.player_id
        ]

    def get_valid_plays(self, state: GameState) -> List[Hand]:
        """All plays that beat the current pile, weakest first."""
        if state.pile is None:
            return []
        return enumerate_responses(
            self.get_player_hand(state),
            state.pile.hand,
            state.max_rank,
            state.rule_config.ai_full_five_card_search,
        )
