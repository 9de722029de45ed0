"""
Strategic bot that adapts its play to the stage of the round.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .base import BaseBot, BotAction, group_by_rank, group_by_suit, hand_strength
from ..comparator import lowest_card
from ..constants import (
    STRATEGY_AGGRESSIVE_FINISH, STRATEGY_BALANCED, STRATEGY_CATCH_UP,
    STRATEGY_COMBO_SETUP, STRATEGY_CONSERVATIVE, STRATEGY_DESPERATE_CATCH_UP,
    STRATEGY_MAINTAIN_LEAD, STRATEGY_POWER_PLAY,
)
from ..hands import Hand, evaluate_hand
from ..models import Card, GameState

logger = logging.getLogger(__name__)

ENDGAME = 'endgame'
MIDGAME = 'midgame'
EARLYGAME = 'earlygame'

FAMILY_FLUSH = 'flush'
FAMILY_TRIPLE = 'triple'
FAMILY_PAIR = 'pair'
FAMILY_SINGLE = 'single'

# Combination family each strategy leads with
OPENING_FAMILY = {
    STRATEGY_AGGRESSIVE_FINISH: FAMILY_FLUSH,
    STRATEGY_DESPERATE_CATCH_UP: FAMILY_FLUSH,
    STRATEGY_POWER_PLAY: FAMILY_FLUSH,
    STRATEGY_CATCH_UP: FAMILY_TRIPLE,
    STRATEGY_COMBO_SETUP: FAMILY_PAIR,
    STRATEGY_MAINTAIN_LEAD: FAMILY_PAIR,
    STRATEGY_BALANCED: FAMILY_PAIR,
    STRATEGY_CONSERVATIVE: FAMILY_SINGLE,
}

# Chance of holding back although a beating play exists
PASS_PROBABILITY = {
    STRATEGY_AGGRESSIVE_FINISH: 0.0,
    STRATEGY_DESPERATE_CATCH_UP: 0.0,
    STRATEGY_CATCH_UP: 0.05,
    STRATEGY_POWER_PLAY: 0.1,
    STRATEGY_MAINTAIN_LEAD: 0.15,
    STRATEGY_BALANCED: 0.2,
    STRATEGY_COMBO_SETUP: 0.25,
    STRATEGY_CONSERVATIVE: 0.3,
}

# Chance of playing the second-weakest answer instead of the weakest
VARIETY_PROBABILITY = 0.2


@dataclass
class GameSummary:
    own_count: int
    min_opponent: int
    max_opponent: int
    phase: str
    is_winning: bool
    is_behind: bool


def summarize(own_count: int, opponent_counts: List[int]) -> GameSummary:
    min_opponent = min(opponent_counts) if opponent_counts else 0
    max_opponent = max(opponent_counts) if opponent_counts else 0

    if own_count <= 3:
        phase = ENDGAME
    elif own_count <= 7:
        phase = MIDGAME
    else:
        phase = EARLYGAME

    return GameSummary(
        own_count=own_count,
        min_opponent=min_opponent,
        max_opponent=max_opponent,
        phase=phase,
        is_winning=own_count <= min_opponent,
        is_behind=own_count > max_opponent,
    )


def select_strategy(summary: GameSummary, hand: List[Card]) -> str:
    """Pick a named strategy from the round phase, standing and hand shape."""
    if summary.phase == ENDGAME:
        return STRATEGY_AGGRESSIVE_FINISH if summary.is_winning else STRATEGY_DESPERATE_CATCH_UP

    if summary.phase == MIDGAME:
        if summary.is_winning:
            return STRATEGY_MAINTAIN_LEAD
        if summary.is_behind:
            return STRATEGY_CATCH_UP
        return STRATEGY_BALANCED

    if any(len(cards) >= 5 for cards in group_by_suit(hand).values()):
        return STRATEGY_POWER_PLAY
    if sum(1 for cards in group_by_rank(hand).values() if len(cards) >= 2) >= 2:
        return STRATEGY_COMBO_SETUP
    return STRATEGY_CONSERVATIVE


def find_opening(hand: List[Card], family: str, max_rank: Optional[int] = None) -> Optional[Hand]:
    """Weakest combination of the given family in hand, if any."""
    if family == FAMILY_FLUSH:
        flushes = [
            evaluate_hand(cards[:5], max_rank)
            for cards in group_by_suit(hand).values() if len(cards) >= 5
        ]
        flushes = [h for h in flushes if h is not None]
        return min(flushes, key=hand_strength) if flushes else None

    if family in (FAMILY_TRIPLE, FAMILY_PAIR):
        size = 3 if family == FAMILY_TRIPLE else 2
        groups = [cards for cards in group_by_rank(hand).values() if len(cards) >= size]
        options = [evaluate_hand(cards[:size], max_rank) for cards in groups]
        return min(options, key=hand_strength) if options else None

    if hand:
        return evaluate_hand([lowest_card(hand)], max_rank)
    return None


class StrategicBot(BaseBot):
    """
    Bot that reads its own card count against the other seats and picks a
    strategy from it.

    Strategy:
    - Lead with the strategy's preferred family, else the lowest single
    - Answer with the weakest beating play, sometimes the next one up
    - Hold back now and then while the round is young
    - Go out whenever the whole hand is a single legal play
    """

    def choose_action(self, state: GameState) -> Optional[BotAction]:
        """Choose the action for the current state."""
        if not self.is_my_turn(state):
            return None

        hand = self.get_player_hand(state)
        summary = summarize(len(hand), self.get_opponent_counts(state))
        strategy = select_strategy(summary, hand)
        logger.debug(f"Bot {self.player_id}: {summary.phase}, strategy {strategy}")

        if state.pile is None:
            return self._choose_opening(state, hand, strategy)
        return self._choose_response(state, hand, strategy)

    def _choose_opening(self, state: GameState, hand: List[Card], strategy: str) -> BotAction:
        whole = evaluate_hand(hand, state.max_rank)
        if whole is not None:
            return BotAction.play(whole.cards)

        opening = find_opening(hand, OPENING_FAMILY[strategy], state.max_rank)
        if opening is None:
            opening = find_opening(hand, FAMILY_SINGLE, state.max_rank)
        return BotAction.play(opening.cards)

    def _choose_response(self, state: GameState, hand: List[Card], strategy: str) -> BotAction:
        valid_plays = self.get_valid_plays(state)

        if not valid_plays:
            return BotAction.pass_turn()

        weakest = valid_plays[0]
        if weakest.size == len(hand):
            return BotAction.play(weakest.cards)

        if self.rng.random() < self._pass_probability(strategy, weakest):
            return BotAction.pass_turn()

        choice = weakest
        if (len(valid_plays) > 1 and
                strategy not in (STRATEGY_AGGRESSIVE_FINISH, STRATEGY_DESPERATE_CATCH_UP) and
                self.rng.random() < VARIETY_PROBABILITY):
            choice = valid_plays[1]
        return BotAction.play(choice.cards)

    def _pass_probability(self, strategy: str, play: Hand) -> float:
        probability = PASS_PROBABILITY[strategy]
        # Spending a 2 early is costly
        if any(card.rank == 2 for card in play.cards):
            probability *= 2
        return min(probability, 1.0)
