"""
FastAPI WebSocket server for Lexio rooms.

Every transition on a room runs under that room's lock, so the state a client
sees always comes from a single, fully applied engine call.
"""

import asyncio
import logging
import random
import uuid
from collections import defaultdict
from typing import Callable, Dict, Optional, Tuple

import orjson
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..constants import AI_NAMES, PHASE_WAITING
from ..engine import (
    EngineResult, add_bot, create_room, is_ai_turn, join_room, leave_room,
    remove_bot, start_round, submit_pass, submit_play, trigger_ai_turn,
)
from ..errors import GameError, InvariantViolation
from ..models import GameState
from ..serialization import get_public_room_info, sanitize_state
from ..store import RoomStore, new_room_id
from .events import (
    AddAIEvent, CreateEvent, ErrorCode, JoinEvent, LeaveEvent, PassEvent,
    PlayEvent, RemoveAIEvent, RequestStateEvent, StartEvent,
    create_error_event, create_join_success_event, create_state_full_event,
    error_code_for, parse_inbound_event,
)

logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(title="Lexio Game Engine", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

store = RoomStore()
bot_tasks: Dict[str, asyncio.Task] = {}


def _dump(event: BaseModel) -> str:
    return orjson.dumps(event.model_dump(mode="json")).decode()


class ConnectionManager:
    """Manages WebSocket connections and broadcasting."""

    def __init__(self):
        self.room_connections: Dict[str, Dict[str, WebSocket]] = defaultdict(dict)
        self.connection_seats: Dict[WebSocket, Tuple[str, str]] = {}

    def connect(self, websocket: WebSocket, room_id: str, player_id: str):
        """Bind a connection to a seated player."""
        self.room_connections[room_id][player_id] = websocket
        self.connection_seats[websocket] = (room_id, player_id)
        logger.info(f"Player {player_id} connected to room {room_id}")

    def disconnect(self, websocket: WebSocket) -> Optional[Tuple[str, str]]:
        """Unbind a connection. Returns (room_id, player_id) if it was seated."""
        seat = self.connection_seats.pop(websocket, None)
        if seat is None:
            return None

        room_id, player_id = seat
        connections = self.room_connections.get(room_id)
        if connections is not None:
            connections.pop(player_id, None)
            if not connections:
                del self.room_connections[room_id]
        logger.info(f"Player {player_id} disconnected from room {room_id}")
        return seat

    def forget_room(self, room_id: str):
        for websocket in list(self.room_connections.get(room_id, {}).values()):
            self.connection_seats.pop(websocket, None)
        self.room_connections.pop(room_id, None)

    def lookup(self, websocket: WebSocket) -> Optional[Tuple[str, str]]:
        return self.connection_seats.get(websocket)

    def has_connections(self, room_id: str) -> bool:
        return bool(self.room_connections.get(room_id))

    def connection_count(self) -> int:
        return sum(len(conns) for conns in self.room_connections.values())

    async def send(self, websocket: Optional[WebSocket], event: BaseModel):
        if websocket is None:
            return
        await websocket.send_text(_dump(event))

    async def broadcast_state(self, room_id: str, state: GameState):
        """Send every connected player the state as they are allowed to see it."""
        for player_id, websocket in list(self.room_connections.get(room_id, {}).items()):
            event = create_state_full_event(sanitize_state(state, player_id))
            try:
                await websocket.send_text(_dump(event))
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.error(f"Error broadcasting to {player_id}: {e}")
                self.disconnect(websocket)

    async def broadcast_event(self, room_id: str, event: BaseModel):
        for player_id, websocket in list(self.room_connections.get(room_id, {}).items()):
            try:
                await websocket.send_text(_dump(event))
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.error(f"Error sending to {player_id}: {e}")


manager = ConnectionManager()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "rooms": len(store),
        "connections": manager.connection_count(),
    }


@app.get("/rooms")
async def list_rooms():
    """Public listing of the rooms currently held in memory."""
    return [get_public_room_info(store.get(room_id)) for room_id in store.room_ids()]


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Main WebSocket endpoint."""
    await websocket.accept()
    logger.info("WebSocket connection accepted")

    try:
        while True:
            raw_data = await websocket.receive_text()

            try:
                data = orjson.loads(raw_data)
                if not isinstance(data, dict):
                    raise ValueError("Event must be a JSON object")
                event = parse_inbound_event(data)
                await handle_event(websocket, event)
            except ValueError as e:
                await manager.send(websocket, create_error_event(ErrorCode.INVALID_EVENT, str(e)))
            except GameError as e:
                await manager.send(websocket, create_error_event(error_code_for(e.code), e.message))
            except WebSocketDisconnect:
                raise
            except Exception:
                logger.exception("Error handling event")
                await manager.send(websocket, create_error_event(ErrorCode.INTERNAL, "Internal server error"))

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    finally:
        seat = manager.disconnect(websocket)
        if seat is not None:
            room_id, player_id = seat
            await _apply(None, room_id, lambda state: leave_room(state, player_id))
            _schedule_or_close(room_id)


async def handle_event(websocket: WebSocket, event):
    """Dispatch an inbound event to its handler."""
    handler = HANDLERS.get(type(event))
    if handler is None:
        raise ValueError(f"Unhandled event type: {event.type}")
    await handler(websocket, event)


# ---------------------------------------------------------------- helpers

async def _apply(
    websocket: Optional[WebSocket],
    room_id: str,
    transition: Callable[[GameState], EngineResult],
) -> Optional[EngineResult]:
    """
    Run one engine transition under the room lock.

    A successful result is stored and broadcast to the whole room; a rejected
    one is reported to the submitting connection only.
    """
    async with store.guard(room_id):
        state = store.get(room_id)
        if state is None:
            await manager.send(websocket, create_error_event(ErrorCode.ROOM_NOT_FOUND, f"Room {room_id} not found"))
            return None

        try:
            result = transition(state)
        except InvariantViolation as e:
            await _abort_room(room_id, e)
            return None

        if not result.success:
            await manager.send(websocket, create_error_event(error_code_for(result.error_code), result.error_message))
            return result

        if result.applied:
            store.save(result.state)
            await manager.broadcast_state(room_id, result.state)
        return result


async def _abort_room(room_id: str, error: InvariantViolation):
    """Tear down a room whose state can no longer be trusted."""
    logger.error(f"Closing room {room_id}: {error}")
    await manager.broadcast_event(room_id, create_error_event(ErrorCode.INTERNAL, "The room was closed after an internal error"))
    _close_room(room_id)


def _close_room(room_id: str):
    task = bot_tasks.pop(room_id, None)
    if task is not None and task is not asyncio.current_task():
        task.cancel()
    manager.forget_room(room_id)
    store.delete(room_id)


def _schedule_or_close(room_id: str):
    if room_id not in store:
        return
    if manager.has_connections(room_id):
        schedule_bots(room_id)
    else:
        _close_room(room_id)


async def _require_seat(websocket: WebSocket) -> Optional[Tuple[str, str]]:
    seat = manager.lookup(websocket)
    if seat is None:
        await manager.send(websocket, create_error_event(ErrorCode.NOT_IN_ROOM, "Not in a room"))
    return seat


def _new_ai_id() -> str:
    return f"ai-{uuid.uuid4().hex[:8]}"


def _pick_ai_name(state: GameState) -> str:
    taken = {player.name for player in state.players}
    free = [name for name in AI_NAMES if name not in taken]
    return random.choice(free or AI_NAMES)


def _fill_and_start(state: GameState, requester_id: str, seed: Optional[int]) -> EngineResult:
    """Top the table up with AI seats when allowed, then deal."""
    result = EngineResult.ok(state, applied=False)
    config = state.rule_config
    if config.auto_fill_bots and state.phase == PHASE_WAITING:
        while result.state.active_count() < config.min_players:
            step = add_bot(result.state, requester_id, _new_ai_id(), _pick_ai_name(result.state))
            if not step.success:
                return EngineResult.fail(state, GameError(step.error_code, step.error_message))
            result = step
    started = start_round(result.state, requester_id, seed)
    if not started.success:
        return EngineResult.fail(state, GameError(started.error_code, started.error_message))
    return started


async def _seat_player(websocket: WebSocket, room_id: str, name: str) -> bool:
    player_id = str(uuid.uuid4())
    async with store.guard(room_id):
        state = store.get(room_id)
        if state is None:
            await manager.send(websocket, create_error_event(ErrorCode.ROOM_NOT_FOUND, f"Room {room_id} not found"))
            return False

        result = join_room(state, player_id, name)
        if not result.success:
            await manager.send(websocket, create_error_event(error_code_for(result.error_code), result.error_message))
            return False

        store.save(result.state)
        manager.connect(websocket, room_id, player_id)
        await manager.send(websocket, create_join_success_event(player_id, room_id))
        await manager.broadcast_state(room_id, result.state)
        return True


# ---------------------------------------------------------------- handlers

async def handle_create(websocket: WebSocket, event: CreateEvent):
    """Create a room and seat its creator as host."""
    if manager.lookup(websocket) is not None:
        await manager.send(websocket, create_error_event(ErrorCode.ACTION_NOT_ALLOWED, "Already in a room"))
        return

    room_id = new_room_id()
    while room_id in store:
        room_id = new_room_id()
    store.save(create_room(room_id, event.seat_limit))
    logger.info(f"Room {room_id} created for {event.seat_limit} players")

    if not await _seat_player(websocket, room_id, event.name):
        store.delete(room_id)


async def handle_join(websocket: WebSocket, event: JoinEvent):
    """Join an existing room."""
    if manager.lookup(websocket) is not None:
        await manager.send(websocket, create_error_event(ErrorCode.ACTION_NOT_ALLOWED, "Already in a room"))
        return
    await _seat_player(websocket, event.room_id.upper(), event.name)


async def handle_add_ai(websocket: WebSocket, event: AddAIEvent):
    seat = await _require_seat(websocket)
    if seat is None:
        return
    room_id, player_id = seat
    bot_id = _new_ai_id()
    await _apply(websocket, room_id, lambda state: add_bot(state, player_id, bot_id, _pick_ai_name(state)))


async def handle_remove_ai(websocket: WebSocket, event: RemoveAIEvent):
    seat = await _require_seat(websocket)
    if seat is None:
        return
    room_id, player_id = seat
    await _apply(websocket, room_id, lambda state: remove_bot(state, player_id, event.ai_player_id))


async def handle_start(websocket: WebSocket, event: StartEvent):
    """Start the first round, or deal the next one after a settlement."""
    seat = await _require_seat(websocket)
    if seat is None:
        return
    room_id, player_id = seat
    result = await _apply(websocket, room_id, lambda state: _fill_and_start(state, player_id, event.seed))
    if result is not None and result.success:
        schedule_bots(room_id)


async def handle_play(websocket: WebSocket, event: PlayEvent):
    seat = await _require_seat(websocket)
    if seat is None:
        return
    room_id, player_id = seat
    logger.debug(f"Play event from {player_id}: {event.cards}")
    result = await _apply(websocket, room_id, lambda state: submit_play(state, player_id, event.cards))
    if result is not None and result.success:
        schedule_bots(room_id)


async def handle_pass(websocket: WebSocket, event: PassEvent):
    seat = await _require_seat(websocket)
    if seat is None:
        return
    room_id, player_id = seat
    result = await _apply(websocket, room_id, lambda state: submit_pass(state, player_id))
    if result is not None and result.success:
        schedule_bots(room_id)


async def handle_leave(websocket: WebSocket, event: LeaveEvent):
    """Leave the room but keep the connection open."""
    seat = await _require_seat(websocket)
    if seat is None:
        return
    room_id, player_id = seat
    manager.disconnect(websocket)
    await _apply(websocket, room_id, lambda state: leave_room(state, player_id))
    _schedule_or_close(room_id)


async def handle_request_state(websocket: WebSocket, event: RequestStateEvent):
    """Resend the full state to the requesting connection."""
    seat = await _require_seat(websocket)
    if seat is None:
        return
    room_id, player_id = seat
    async with store.guard(room_id):
        state = store.get(room_id)
        if state is None:
            await manager.send(websocket, create_error_event(ErrorCode.ROOM_NOT_FOUND, f"Room {room_id} not found"))
            return
        await manager.send(websocket, create_state_full_event(sanitize_state(state, player_id)))


HANDLERS = {
    CreateEvent: handle_create,
    JoinEvent: handle_join,
    AddAIEvent: handle_add_ai,
    RemoveAIEvent: handle_remove_ai,
    StartEvent: handle_start,
    PlayEvent: handle_play,
    PassEvent: handle_pass,
    LeaveEvent: handle_leave,
    RequestStateEvent: handle_request_state,
}


# ---------------------------------------------------------------- AI seats

def schedule_bots(room_id: str):
    """Make sure a driver task is running for the room's AI seats."""
    task = bot_tasks.get(room_id)
    if task is not None and not task.done():
        return
    bot_tasks[room_id] = asyncio.create_task(drive_bots(room_id))


async def drive_bots(room_id: str):
    """
    Let AI seats act one at a time, each after the room's bot delay.

    The chain stops when a human is to act, when the round ends, or after one
    lap of the table without the pile being cleared.
    """
    steps = 0
    while True:
        state = store.get(room_id)
        if state is None or state.current_turn is None or not is_ai_turn(state, state.current_turn):
            return
        if steps >= state.active_count():
            logger.warning(f"Room {room_id}: AI chain stopped after {steps} moves")
            return

        seat_index = state.current_turn
        await asyncio.sleep(state.rule_config.bot_delay)

        async with store.guard(room_id):
            state = store.get(room_id)
            if state is None:
                return
            try:
                result = trigger_ai_turn(state, seat_index)
            except InvariantViolation as e:
                await _abort_room(room_id, e)
                return

            if not result.applied:
                # Someone else moved during the delay; look again
                continue

            store.save(result.state)
            await manager.broadcast_state(room_id, result.state)
            steps = 0 if result.state.pile is None else steps + 1
