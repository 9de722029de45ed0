"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError


class EventType(str, Enum):
    """Inbound event types."""
    CREATE = "create"
    JOIN = "join"
    ADD_AI = "add_ai"
    REMOVE_AI = "remove_ai"
    START = "start"
    PLAY = "play"
    PASS = "pass"
    LEAVE = "leave"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    JOIN_SUCCESS = "join_success"
    STATE_FULL = "state_full"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Error codes for client events."""
    INVALID_EVENT = "INVALID_EVENT"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    NOT_IN_ROOM = "NOT_IN_ROOM"
    ROOM_FULL = "ROOM_FULL"
    NOT_HOST = "NOT_HOST"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    INVALID_COMBINATION = "INVALID_COMBINATION"
    MUST_MATCH_PILE_SIZE = "MUST_MATCH_PILE_SIZE"
    MUST_BEAT_PILE = "MUST_BEAT_PILE"
    CANNOT_PASS_ON_EMPTY_PILE = "CANNOT_PASS_ON_EMPTY_PILE"
    OWNERSHIP_MISMATCH = "OWNERSHIP_MISMATCH"
    GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
    GAME_IN_PROGRESS = "GAME_IN_PROGRESS"
    INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"
    INVALID_SEAT_COUNT = "INVALID_SEAT_COUNT"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
    INTERNAL = "INTERNAL"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class CreateEvent(BaseEvent):
    """Create room event; the creator becomes host."""
    type: EventType = EventType.CREATE
    name: str = Field(..., min_length=1, max_length=30)
    seat_limit: int = Field(default=4, ge=3, le=5)


class JoinEvent(BaseEvent):
    """Join room event."""
    type: EventType = EventType.JOIN
    room_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=30)


class AddAIEvent(BaseEvent):
    """Add an AI seat (host only)."""
    type: EventType = EventType.ADD_AI


class RemoveAIEvent(BaseEvent):
    """Remove an AI seat (host only)."""
    type: EventType = EventType.REMOVE_AI
    ai_player_id: str = Field(..., min_length=1)


class StartEvent(BaseEvent):
    """Start (or restart) the game."""
    type: EventType = EventType.START
    seed: Optional[int] = None


class PlayEvent(BaseEvent):
    """Play cards event."""
    type: EventType = EventType.PLAY
    cards: List[str] = Field(..., min_length=1, max_length=5)


class PassEvent(BaseEvent):
    """Pass turn event."""
    type: EventType = EventType.PASS


class LeaveEvent(BaseEvent):
    """Leave room event."""
    type: EventType = EventType.LEAVE


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    CreateEvent,
    JoinEvent,
    AddAIEvent,
    RemoveAIEvent,
    StartEvent,
    PlayEvent,
    PassEvent,
    LeaveEvent,
    RequestStateEvent,
]


# Outbound event models
class JoinSuccessEvent(BaseModel):
    """Join success confirmation event."""
    type: OutboundEventType = OutboundEventType.JOIN_SUCCESS
    player_id: str
    room_id: str
    timestamp: float


class StateFullEvent(BaseModel):
    """Full state event."""
    type: OutboundEventType = OutboundEventType.STATE_FULL
    state: Dict[str, Any]
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str
    timestamp: float


EVENT_MAP = {
    EventType.CREATE: CreateEvent,
    EventType.JOIN: JoinEvent,
    EventType.ADD_AI: AddAIEvent,
    EventType.REMOVE_AI: RemoveAIEvent,
    EventType.START: StartEvent,
    EventType.PLAY: PlayEvent,
    EventType.PASS: PassEvent,
    EventType.LEAVE: LeaveEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
}


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    event_type = data.get("type")

    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    try:
        return EVENT_MAP[event_type](**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e}")


def error_code_for(code: str) -> ErrorCode:
    """Map an engine error code onto the wire enum."""
    try:
        return ErrorCode(code)
    except ValueError:
        return ErrorCode.INTERNAL


def create_error_event(code: ErrorCode, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(
        code=code,
        message=message,
        timestamp=time.time()
    )


def create_join_success_event(player_id: str, room_id: str) -> JoinSuccessEvent:
    """Create a join success event."""
    return JoinSuccessEvent(
        player_id=player_id,
        room_id=room_id,
        timestamp=time.time()
    )


def create_state_full_event(state: Dict[str, Any]) -> StateFullEvent:
    """Create a full state event."""
    return StateFullEvent(
        state=state,
        timestamp=time.time()
    )
