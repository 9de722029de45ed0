"""
Shared helpers for building rooms in a known position.
"""

from typing import List

import pytest

from lexio_engine.engine import create_room, join_room, start_round
from lexio_engine.models import Card, GameState


def seated_room(player_count: int = 4, seat_limit: int = None) -> GameState:
    """A waiting room with players p0..pN-1; p0 is host."""
    state = create_room("test-room", seat_limit=seat_limit or max(player_count, 3))
    for i in range(player_count):
        result = join_room(state, f"p{i}", f"Player {i}")
        assert result.success
        state = result.state
    return state


def started_room(player_count: int = 4, seed: int = 42) -> GameState:
    result = start_round(seated_room(player_count), "p0", seed)
    assert result.success
    return result.state


def rigged_room(hands: List[List[str]], turn: int = 0) -> GameState:
    """A round in progress with the given hands, seat `turn` to lead."""
    state = started_room(len(hands))
    for player, card_ids in zip(state.players, hands):
        player.hand = [Card.from_id(card_id) for card_id in card_ids]
    state.current_turn = turn
    state.pile = None
    state.consecutive_passes = 0
    return state


@pytest.fixture
def room():
    return started_room()
