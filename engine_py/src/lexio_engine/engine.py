"""
Lexio game engine.

Every operation takes the current GameState, applies one transition to a deep
copy and returns it in an EngineResult. A rejected input leaves the caller's
state untouched, so a room store can swap in the new state atomically.
"""

import copy
import logging
import random
from dataclasses import dataclass
from typing import List, Optional

from .bots.strategic import StrategicBot
from .comparator import lowest_card
from .constants import (
    AI_NAMES, MAX_SEATS, MIN_SEATS, PHASE_FINISHED, PHASE_PLAYING, PHASE_WAITING,
)
from .errors import (
    ACTION_NOT_ALLOWED, GAME_IN_PROGRESS, GAME_NOT_IN_PROGRESS, INSUFFICIENT_PLAYERS,
    INVALID_SEAT_COUNT, NOT_HOST, PLAYER_NOT_FOUND, ROOM_FULL,
    GameError, InvariantViolation, raise_error,
)
from .hands import hand_name
from .models import GameState, Pile, Player
from .rules import RuleConfig, default_rules
from .scoring import settle_round
from .shuffle import setup_round
from .validate import validate_pass, validate_play

logger = logging.getLogger(__name__)


@dataclass
class EngineResult:
    success: bool
    state: GameState
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    applied: bool = True

    @classmethod
    def ok(cls, state: GameState, applied: bool = True) -> 'EngineResult':
        return cls(success=True, state=state, applied=applied)

    @classmethod
    def fail(cls, state: GameState, error: GameError) -> 'EngineResult':
        return cls(
            success=False,
            state=state,
            error_code=error.code,
            error_message=error.message,
            applied=False,
        )


def _transition(state: GameState, action, *args, **kwargs) -> EngineResult:
    """Run action on a copy of state; GameErrors become failed results."""
    new_state = copy.deepcopy(state)
    try:
        action(new_state, *args, **kwargs)
    except InvariantViolation:
        logger.exception(f"Invariant violated in room {state.id}")
        raise
    except GameError as e:
        logger.info(f"Rejected {action.__name__} in room {state.id}: {e}")
        return EngineResult.fail(state, e)
    new_state.increment_version()
    return EngineResult.ok(new_state)


# ---------------------------------------------------------------- room setup

def create_room(room_id: str, seat_limit: int = 4, rule_config: Optional[RuleConfig] = None) -> GameState:
    """Create an empty room waiting for seat_limit human players."""
    if not MIN_SEATS <= seat_limit <= MAX_SEATS:
        raise_error(INVALID_SEAT_COUNT, f"Rooms hold 3 to 5 players, not {seat_limit}")
    config = rule_config or default_rules.model_copy()
    return GameState(id=room_id, seat_limit=seat_limit, rule_config=config)


def _join(state: GameState, player_id: str, name: str):
    if state.phase != PHASE_WAITING:
        raise_error(GAME_IN_PROGRESS, "Game is already in progress")
    humans = [p for p in state.players if not p.is_ai]
    if len(humans) >= state.seat_limit or len(state.players) >= state.rule_config.max_players:
        raise_error(ROOM_FULL, "Room is full")
    if state.get_player(player_id):
        raise_error(ACTION_NOT_ALLOWED, "Player already in room")

    state.players.append(Player(
        id=player_id,
        name=name,
        seat=len(state.players),
        is_host=not any(p.is_host for p in state.players),
    ))
    logger.info(f"{name} joined room {state.id}")


def join_room(state: GameState, player_id: str, name: str) -> EngineResult:
    """Seat a human player. The first player to join becomes host."""
    return _transition(state, _join, player_id, name)


def _require_host(state: GameState, requester_id: Optional[str]):
    if requester_id is None:
        return
    requester = state.get_player(requester_id)
    if requester is None:
        raise_error(PLAYER_NOT_FOUND, "Player not found")
    if not requester.is_host:
        raise_error(NOT_HOST, "Only the host can do that")


def _add_bot(state: GameState, requester_id: Optional[str], bot_id: str, name: Optional[str]):
    _require_host(state, requester_id)
    if state.phase != PHASE_WAITING:
        raise_error(GAME_IN_PROGRESS, "AI players cannot be added during a game")
    if len(state.players) >= state.rule_config.max_players:
        raise_error(ROOM_FULL, f"At most {state.rule_config.max_players} players can take part")

    state.players.append(Player(
        id=bot_id,
        name=name or random.choice(AI_NAMES),
        seat=len(state.players),
        is_ai=True,
    ))


def add_bot(state: GameState, requester_id: Optional[str], bot_id: str, name: Optional[str] = None) -> EngineResult:
    """Seat an AI player (host only, before the game starts)."""
    return _transition(state, _add_bot, requester_id, bot_id, name)


def _remove_bot(state: GameState, requester_id: Optional[str], bot_id: str):
    _require_host(state, requester_id)
    if state.phase != PHASE_WAITING:
        raise_error(GAME_IN_PROGRESS, "AI players cannot be removed during a game")
    bot = state.get_player(bot_id)
    if bot is None or not bot.is_ai:
        raise_error(PLAYER_NOT_FOUND, "No such AI player")
    _remove_player(state, bot)


def remove_bot(state: GameState, requester_id: Optional[str], bot_id: str) -> EngineResult:
    return _transition(state, _remove_bot, requester_id, bot_id)


def _remove_player(state: GameState, player: Player):
    """Drop a player from the list and renumber seats (only between rounds)."""
    old_scores = {p.id: state.scores[p.seat] for p in state.players if p.seat in state.scores}
    state.players = [p for p in state.players if p.id != player.id]
    for seat, p in enumerate(state.players):
        p.seat = seat
    state.scores = {p.seat: old_scores[p.id] for p in state.players if p.id in old_scores}


# ---------------------------------------------------------------- turn order

def next_active_seat(state: GameState, from_seat: int) -> int:
    """
    The next active seat after from_seat, wrapping around.

    Raises:
        InvariantViolation: if no seat is active
    """
    n = len(state.players)
    for i in range(1, n + 1):
        candidate = state.players[(from_seat + i) % n]
        if candidate.is_active:
            return candidate.seat
    raise InvariantViolation(f"No active seats left in room {state.id}")


def _advance_turn(state: GameState):
    state.current_turn = next_active_seat(state, state.current_turn)


def _clear_pile_if_passed_out(state: GameState) -> bool:
    """
    Hand the lead back to the pile's owner once every other active seat has
    passed. Returns True if the pile was cleared.
    """
    if state.pile is None or state.consecutive_passes < state.active_count() - 1:
        return False

    owner = state.players[state.pile.owner]
    state.pile = None
    state.consecutive_passes = 0
    if owner.is_active:
        state.current_turn = owner.seat
    else:
        state.current_turn = next_active_seat(state, owner.seat)
    leader = state.players[state.current_turn]
    state.log.append(f"{leader.name} becomes leader.")
    logger.debug(f"Room {state.id}: pile cleared, {leader.name} leads")
    return True


def _has_passed_on_pile(state: GameState, seat: int) -> bool:
    """Whether seat already passed on the current pile (it sits between the
    pile owner and the seat to act)."""
    if state.pile is None or state.current_turn is None:
        return False
    n = len(state.players)
    owner = state.pile.owner
    return 0 < (seat - owner) % n < (state.current_turn - owner) % n


# ---------------------------------------------------------------- round flow

def _start(state: GameState, requester_id: Optional[str], seed: Optional[int]):
    _require_host(state, requester_id)
    if state.phase == PHASE_PLAYING:
        raise_error(GAME_IN_PROGRESS, "A round is already being played")

    active = state.active_count()
    config = state.rule_config
    if not config.validate_player_count(active):
        if active < config.min_players:
            raise_error(INSUFFICIENT_PLAYERS, f"Need at least {config.min_players} players, have {active}")
        raise_error(INVALID_SEAT_COUNT, f"At most {config.max_players} players can take part, not {active}")

    for departed in [p for p in state.players if not p.is_active]:
        _remove_player(state, departed)

    # Baseline only once; later rounds carry their scores forward
    for player in state.players:
        state.scores.setdefault(player.seat, state.rule_config.starting_score)

    setup_round(state, seed)
    state.phase = PHASE_PLAYING
    leader = state.players[state.current_turn]
    state.log = [f"{leader.name} holds cloud 3 and leads round {state.round}."]
    logger.info(f"Room {state.id}: round {state.round} started with {active} players, {leader.name} leads")


def start_round(state: GameState, requester_id: Optional[str] = None, seed: Optional[int] = None) -> EngineResult:
    """
    Deal a new round.

    Args:
        state: Current room state (waiting or finished)
        requester_id: If given, must be the host
        seed: Optional seed for a deterministic shuffle
    """
    return _transition(state, _start, requester_id, seed)


def _play(state: GameState, player_id: str, card_ids: List[str]):
    result = validate_play(state, player_id, card_ids)
    if not result.valid:
        raise_error(result.error_code, result.error_message)

    player = state.get_player(player_id)
    for card in result.cards:
        player.hand.remove(card)

    state.pile = Pile(cards=list(result.hand.cards), owner=player.seat, hand=result.hand)
    state.consecutive_passes = 0
    state.log.append(f"{player.name}: {hand_name(result.hand)} ({len(result.cards)} cards)")
    logger.debug(f"Room {state.id}: {player.name} played {[c.id for c in result.cards]}")

    if not player.hand:
        settle_round(state, player.seat)
    else:
        _advance_turn(state)


def submit_play(state: GameState, player_id: str, card_ids: List[str]) -> EngineResult:
    """Play cards for the seat whose turn it is."""
    return _transition(state, _play, player_id, card_ids)


def _pass(state: GameState, player_id: str):
    result = validate_pass(state, player_id)
    if not result.valid:
        raise_error(result.error_code, result.error_message)

    player = state.get_player(player_id)
    state.consecutive_passes += 1
    state.log.append(f"{player.name}: pass")

    if not _clear_pile_if_passed_out(state):
        _advance_turn(state)


def submit_pass(state: GameState, player_id: str) -> EngineResult:
    """Pass for the seat whose turn it is."""
    return _transition(state, _pass, player_id)


def _leave(state: GameState, player_id: str):
    player = state.get_player(player_id)
    if player is None or not player.is_active:
        raise_error(PLAYER_NOT_FOUND, "Player not found")

    was_host = player.is_host
    player.is_host = False
    # Seats after the leaver, in turn order, for the host hand-over
    followers = [state.players[(player.seat + i) % len(state.players)] for i in range(1, len(state.players))]
    state.log.append(f"{player.name} left the game.")
    logger.info(f"{player.name} left room {state.id}")

    if state.phase == PHASE_PLAYING:
        player.is_active = False
        remaining = state.active_count()
        if remaining <= 1:
            # Nobody left to play against; the round is abandoned unscored
            state.phase = PHASE_FINISHED
            state.current_turn = None
            state.pile = None
            state.consecutive_passes = 0
            state.log.append("Round abandoned.")
        else:
            if _has_passed_on_pile(state, player.seat):
                state.consecutive_passes -= 1
            if state.current_turn == player.seat and not _clear_pile_if_passed_out(state):
                _advance_turn(state)
    elif state.phase == PHASE_FINISHED:
        player.is_active = False
    else:
        _remove_player(state, player)

    if was_host:
        successor = next(
            (p for p in followers if p.is_active and not p.is_ai and p in state.players),
            None
        )
        if successor:
            successor.is_host = True
            state.log.append(f"{successor.name} is now the host.")


def leave_room(state: GameState, player_id: str) -> EngineResult:
    """
    Remove a player. Mid-round the seat is only marked inactive so pile
    ownership indices stay valid until the next deal.
    """
    return _transition(state, _leave, player_id)


# ---------------------------------------------------------------- AI turns

def _ai_turn(state: GameState, seat_index: int, rng: Optional[random.Random]):
    player = state.players[seat_index]
    bot = StrategicBot(player.id, rng)
    action = bot.choose_action(state)

    if action is not None and action.type == 'play':
        result = validate_play(state, player.id, action.card_ids)
        if result.valid:
            _play(state, player.id, action.card_ids)
            return
        logger.warning(f"Bot {player.name} chose an illegal play {action.card_ids}: {result.error_message}")

    if state.pile is not None:
        _pass(state, player.id)
    else:
        _play(state, player.id, [lowest_card(player.hand).id])


def is_ai_turn(state: GameState, seat_index: int) -> bool:
    if state.phase != PHASE_PLAYING or state.current_turn != seat_index:
        return False
    if not 0 <= seat_index < len(state.players):
        return False
    player = state.players[seat_index]
    return player.is_ai and player.is_active


def trigger_ai_turn(state: GameState, seat_index: int, rng: Optional[random.Random] = None) -> EngineResult:
    """
    Let the AI seat at seat_index act.

    A stale trigger (not that seat's turn, game over, seat left) is discarded:
    the result is successful with applied=False and the state unchanged.
    """
    if not is_ai_turn(state, seat_index):
        logger.debug(f"Discarding stale AI trigger for seat {seat_index} in room {state.id}")
        return EngineResult.ok(state, applied=False)
    return _transition(state, _ai_turn, seat_index, rng)


def run_ai_chain(state: GameState, max_steps: Optional[int] = None, rng: Optional[random.Random] = None) -> EngineResult:
    """
    Apply AI turns back to back while the seat to act is an AI seat.

    At most max_steps moves (by default the number of active seats) are made
    between two pile clears, so a table of AI seats that keeps beating each
    other hands control back to the caller after one lap.
    """
    limit = state.active_count() if max_steps is None else max_steps
    result = EngineResult.ok(state, applied=False)
    steps = 0
    while steps < limit:
        current = result.state
        if current.current_turn is None or not is_ai_turn(current, current.current_turn):
            break
        step = trigger_ai_turn(current, current.current_turn, rng)
        result = EngineResult.ok(step.state, applied=True)
        steps = 0 if step.state.pile is None else steps + 1
    return result
