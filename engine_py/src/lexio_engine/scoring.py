# engine_py/src/lexio_engine/scoring.py

import logging
from typing import Dict, List

from .constants import PHASE_FINISHED
from .models import Card, GameState

logger = logging.getLogger(__name__)


def penalty_for(hand: List[Card]) -> int:
    """
    Cards left in a losing hand, doubled once for every 2 still held.

    Example: 4 cards including two 2s cost 4 * 2**2 = 16 points.
    """
    twos = sum(1 for card in hand if card.rank == 2)
    return len(hand) * 2 ** twos


def compute_settlement(state: GameState, winner_seat: int) -> Dict[int, int]:
    """
    Score deltas for a round won by winner_seat.

    Only active seats take part. Deltas always sum to zero.
    """
    deltas: Dict[int, int] = {}
    total = 0
    for player in state.players:
        if player.seat == winner_seat or not player.is_active:
            continue
        penalty = penalty_for(player.hand)
        deltas[player.seat] = -penalty
        total += penalty
    deltas[winner_seat] = total
    return deltas


def settle_round(state: GameState, winner_seat: int) -> Dict[int, int]:
    """
    End the round: apply score deltas, record the winner and advance the
    round counter. Mutates state.
    """
    deltas = compute_settlement(state, winner_seat)
    for seat, delta in deltas.items():
        state.scores[seat] = state.scores.get(seat, state.rule_config.starting_score) + delta

    winner = state.players[winner_seat]
    state.winner = winner_seat
    state.last_settlement = deltas
    state.phase = PHASE_FINISHED
    state.current_turn = None
    state.pile = None
    state.consecutive_passes = 0

    state.log.append(f"{winner.name} wins round {state.round}!")
    for seat, delta in sorted(deltas.items()):
        if seat != winner_seat:
            state.log.append(f"{state.players[seat].name} pays {-delta} points")
    logger.info(f"Round {state.round} in room {state.id} won by {winner.name}: {deltas}")

    state.round += 1
    return deltas
