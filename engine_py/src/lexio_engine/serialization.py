"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, List, Optional

from .hands import Hand, hand_name
from .models import Card, GameState, Player


def serialize_card(card: Card) -> Dict[str, Any]:
    return {"id": card.id, "suit": card.suit.value, "rank": card.rank}


def serialize_cards(cards: List[Card]) -> List[Dict[str, Any]]:
    return [serialize_card(card) for card in cards]


def serialize_hand(hand: Hand) -> Dict[str, Any]:
    """Public description of an evaluated hand."""
    data = {
        "category": hand.category,
        "name": hand_name(hand),
        "size": hand.size,
    }
    straight_type = getattr(hand, "straight_type", None)
    if straight_type:
        data["straight_type"] = straight_type
    return data


def sanitize_state(state: GameState, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize room state for transmission to clients.

    Args:
        state: Room state to sanitize
        viewer_id: ID of the player viewing the state (to show their cards)

    Returns:
        Sanitized state dictionary safe for JSON transmission; only the
        viewer's own hand is included, every other seat shows a count
    """
    sanitized = {
        "id": state.id,
        "version": state.version,
        "phase": state.phase,
        "round": state.round,
        "seat_limit": state.seat_limit,
        "current_turn": state.current_turn,
        "consecutive_passes": state.consecutive_passes,
        "pile": None,
        "scores": {str(seat): score for seat, score in state.scores.items()},
        "winner": state.winner,
        "last_settlement": {str(seat): delta for seat, delta in state.last_settlement.items()},
        "log": state.log.copy(),
        "players": [],
    }

    if state.pile is not None:
        sanitized["pile"] = {
            "cards": serialize_cards(state.pile.cards),
            "owner": state.pile.owner,
            "hand": serialize_hand(state.pile.hand),
        }

    for player in state.players:
        sanitized["players"].append(_sanitize_player(player, player.id == viewer_id))

    return sanitized


def _sanitize_player(player: Player, is_viewer: bool) -> Dict[str, Any]:
    sanitized_player = {
        "id": player.id,
        "name": player.name,
        "seat": player.seat,
        "is_host": player.is_host,
        "is_ai": player.is_ai,
        "is_active": player.is_active,
        "card_count": player.card_count,
    }

    # Show full hand only to the viewer
    if is_viewer:
        sanitized_player["hand"] = serialize_cards(player.hand)

    return sanitized_player


def serialize_player_for_list(player: Player) -> Dict[str, Any]:
    """Serialize player for lobby player list."""
    return {
        "id": player.id,
        "name": player.name,
        "seat": player.seat,
        "is_ai": player.is_ai,
        "is_active": player.is_active,
    }


def get_public_room_info(state: GameState) -> Dict[str, Any]:
    """Get public information about a room for listings."""
    return {
        "id": state.id,
        "phase": state.phase,
        "player_count": len(state.players),
        "seat_limit": state.seat_limit,
        "players": [serialize_player_for_list(player) for player in state.players],
    }
