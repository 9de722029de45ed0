"""
Validation for plays and passes.
"""

from typing import List, Optional

from .comparator import compare_hands
from .constants import PHASE_PLAYING
from .errors import (
    CANNOT_PASS_ON_EMPTY_PILE, GAME_NOT_IN_PROGRESS, INVALID_COMBINATION,
    MUST_BEAT_PILE, MUST_MATCH_PILE_SIZE, NOT_YOUR_TURN, OWNERSHIP_MISMATCH,
    PLAYER_NOT_FOUND,
)
from .hands import Hand, evaluate_hand, hand_name
from .models import Card, GameState, Player


class ValidationResult:
    """Result of play/pass validation."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        hand: Optional[Hand] = None,
        cards: Optional[List[Card]] = None
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message
        self.hand = hand
        self.cards = cards

    @classmethod
    def success(cls, hand: Optional[Hand] = None, cards: Optional[List[Card]] = None) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True, hand=hand, cards=cards)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)


def validate_ownership(player: Player, cards: List[Card]) -> bool:
    """Check if player owns all the specified cards."""
    return all(card in player.hand for card in cards)


def parse_cards(card_ids: List[str]) -> Optional[List[Card]]:
    """Parse wire ids into cards, or None if any id is malformed."""
    try:
        return [Card.from_id(card_id) for card_id in card_ids]
    except ValueError:
        return None


def _validate_turn(state: GameState, player_id: str) -> Optional[ValidationResult]:
    if state.phase != PHASE_PLAYING:
        return ValidationResult.error(
            GAME_NOT_IN_PROGRESS,
            f"Game is not in progress (current: {state.phase})"
        )

    player = state.get_player(player_id)
    if not player:
        return ValidationResult.error(PLAYER_NOT_FOUND, "Player not found")

    if state.current_turn != player.seat or not player.is_active:
        return ValidationResult.error(
            NOT_YOUR_TURN,
            f"It's not your turn (current turn: seat {state.current_turn})"
        )
    return None


def validate_play(
    state: GameState,
    player_id: str,
    card_ids: List[str]
) -> ValidationResult:
    """
    Validate a card play attempt.

    Args:
        state: Current room state
        player_id: ID of player attempting the play
        card_ids: Wire ids of the cards being played

    Returns:
        ValidationResult carrying the evaluated hand on success
    """
    failure = _validate_turn(state, player_id)
    if failure:
        return failure
    player = state.get_player(player_id)

    if not card_ids:
        return ValidationResult.error(INVALID_COMBINATION, "Select at least one card")

    cards = parse_cards(card_ids)
    if cards is None:
        return ValidationResult.error(INVALID_COMBINATION, f"Unknown cards in {card_ids}")

    if len(set(cards)) != len(cards):
        return ValidationResult.error(INVALID_COMBINATION, "The same card was selected twice")

    if not validate_ownership(player, cards):
        return ValidationResult.error(
            OWNERSHIP_MISMATCH,
            "Player does not own all specified cards"
        )

    hand = evaluate_hand(cards, state.max_rank)
    if hand is None:
        return ValidationResult.error(
            INVALID_COMBINATION,
            f"{len(cards)} cards do not form a valid combination"
        )

    # Leading: any legal hand of any size
    if state.pile is None:
        return ValidationResult.success(hand, cards)

    pile_size = len(state.pile.cards)
    if len(cards) != pile_size:
        return ValidationResult.error(
            MUST_MATCH_PILE_SIZE,
            f"Must play {pile_size} cards (played {len(cards)})"
        )

    if compare_hands(hand, state.pile.hand) <= 0:
        return ValidationResult.error(
            MUST_BEAT_PILE,
            f"{hand_name(hand)} does not beat the {hand_name(state.pile.hand)} on the pile"
        )

    return ValidationResult.success(hand, cards)


def validate_pass(state: GameState, player_id: str) -> ValidationResult:
    """
    Validate a pass attempt.

    Args:
        state: Current room state
        player_id: ID of player attempting to pass

    Returns:
        ValidationResult with validation outcome
    """
    failure = _validate_turn(state, player_id)
    if failure:
        return failure

    # Cannot pass when leading
    if state.pile is None:
        return ValidationResult.error(
            CANNOT_PASS_ON_EMPTY_PILE,
            "Cannot pass while leading; play any combination"
        )

    return ValidationResult.success()
