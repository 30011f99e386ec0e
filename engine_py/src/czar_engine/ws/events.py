"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_ROOM = "create_room"
    JOIN = "join"
    UPDATE_SETTINGS = "update_settings"
    START = "start"
    SUBMIT = "submit"
    SWAP = "swap"
    TRADE_PROMPT = "trade_prompt"
    TOGGLE_TIMER = "toggle_timer"
    SELECT_WINNER = "select_winner"
    NEXT_ROUND = "next_round"
    END_GAME = "end_game"
    LEAVE = "leave"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    JOIN_SUCCESS = "join_success"
    STATE_FULL = "state_full"
    HAND = "hand"
    SUBMISSIONS = "submissions"
    ROUND_WINNER = "round_winner"
    ACTION_RESULT = "action_result"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Transport-level error codes. Game rule failures use the engine's codes."""
    INVALID_EVENT = "INVALID_EVENT"
    NOT_IN_ROOM = "NOT_IN_ROOM"
    INTERNAL = "INTERNAL"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class CreateRoomEvent(BaseEvent):
    """Create a room and join it."""
    type: EventType = EventType.CREATE_ROOM
    name: str = Field(..., min_length=1, max_length=30)


class JoinEvent(BaseEvent):
    """Join (or rejoin) a room."""
    type: EventType = EventType.JOIN
    room_code: str = Field(..., min_length=1, max_length=10)
    name: str = Field(..., min_length=1, max_length=30)


class UpdateSettingsEvent(BaseEvent):
    """Lobby settings change."""
    type: EventType = EventType.UPDATE_SETTINGS
    packs: Optional[List[str]] = None
    timer_enabled: Optional[bool] = None
    timer_duration: Optional[int] = None


class StartEvent(BaseEvent):
    """Start game event."""
    type: EventType = EventType.START
    packs: List[str] = Field(default_factory=list)


class SubmitEvent(BaseEvent):
    """Submit answer cards."""
    type: EventType = EventType.SUBMIT
    cards: List[str] = Field(..., min_length=1, max_length=5)


class SwapEvent(BaseEvent):
    """Swap answer cards for new ones."""
    type: EventType = EventType.SWAP
    cards: List[str] = Field(..., min_length=1, max_length=10)


class TradePromptEvent(BaseEvent):
    type: EventType = EventType.TRADE_PROMPT


class ToggleTimerEvent(BaseEvent):
    type: EventType = EventType.TOGGLE_TIMER


class SelectWinnerEvent(BaseEvent):
    """Czar picks the winning submission."""
    type: EventType = EventType.SELECT_WINNER
    winner_id: str = Field(..., min_length=1)


class NextRoundEvent(BaseEvent):
    type: EventType = EventType.NEXT_ROUND


class EndGameEvent(BaseEvent):
    type: EventType = EventType.END_GAME


class LeaveEvent(BaseEvent):
    type: EventType = EventType.LEAVE


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    CreateRoomEvent,
    JoinEvent,
    UpdateSettingsEvent,
    StartEvent,
    SubmitEvent,
    SwapEvent,
    TradePromptEvent,
    ToggleTimerEvent,
    SelectWinnerEvent,
    NextRoundEvent,
    EndGameEvent,
    LeaveEvent,
    RequestStateEvent,
]


# Outbound event models
class JoinSuccessEvent(BaseModel):
    """Join success confirmation event."""
    type: OutboundEventType = OutboundEventType.JOIN_SUCCESS
    room_code: str
    player_id: str
    reconnected: bool = False
    timestamp: float


class StateFullEvent(BaseModel):
    """Full state event."""
    type: OutboundEventType = OutboundEventType.STATE_FULL
    state: Dict[str, Any]
    timestamp: float


class HandEvent(BaseModel):
    """A player's own hand, sent only to that player."""
    type: OutboundEventType = OutboundEventType.HAND
    cards: List[Dict[str, Any]]
    timestamp: float


class SubmissionsEvent(BaseModel):
    """Submissions with player ids, sent to the Czar while judging."""
    type: OutboundEventType = OutboundEventType.SUBMISSIONS
    submissions: List[Dict[str, Any]]
    timestamp: float


class RoundWinnerEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.ROUND_WINNER
    winner_id: str
    game_over: bool
    winner: Optional[Dict[str, Any]] = None
    timestamp: float


class ActionResultEvent(BaseModel):
    """Reply to the sender of an action."""
    type: OutboundEventType = OutboundEventType.ACTION_RESULT
    action: EventType
    result: Dict[str, Any]
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str
    timestamp: float


# Union type for all outbound events
OutboundEvent = Union[
    JoinSuccessEvent,
    StateFullEvent,
    HandEvent,
    SubmissionsEvent,
    RoundWinnerEvent,
    ActionResultEvent,
    ErrorEvent,
]


EVENT_MAP = {
    EventType.CREATE_ROOM: CreateRoomEvent,
    EventType.JOIN: JoinEvent,
    EventType.UPDATE_SETTINGS: UpdateSettingsEvent,
    EventType.START: StartEvent,
    EventType.SUBMIT: SubmitEvent,
    EventType.SWAP: SwapEvent,
    EventType.TRADE_PROMPT: TradePromptEvent,
    EventType.TOGGLE_TIMER: ToggleTimerEvent,
    EventType.SELECT_WINNER: SelectWinnerEvent,
    EventType.NEXT_ROUND: NextRoundEvent,
    EventType.END_GAME: EndGameEvent,
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
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")

    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_class = EVENT_MAP[event_type]

    try:
        return event_class(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e.errors()[0]['msg']}")


def create_error_event(code: ErrorCode, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(code=code, message=message, timestamp=time.time())


def create_join_success_event(room_code: str, player_id: str, reconnected: bool = False) -> JoinSuccessEvent:
    """Create a join success event."""
    return JoinSuccessEvent(
        room_code=room_code,
        player_id=player_id,
        reconnected=reconnected,
        timestamp=time.time()
    )


def create_state_full_event(state: Dict[str, Any]) -> StateFullEvent:
    """Create a full state event."""
    return StateFullEvent(state=state, timestamp=time.time())


def create_hand_event(cards: List[Dict[str, Any]]) -> HandEvent:
    return HandEvent(cards=cards, timestamp=time.time())


def create_submissions_event(submissions: List[Dict[str, Any]]) -> SubmissionsEvent:
    return SubmissionsEvent(submissions=submissions, timestamp=time.time())


def create_round_winner_event(winner_id: str, game_over: bool, winner: Optional[Dict[str, Any]]) -> RoundWinnerEvent:
    return RoundWinnerEvent(winner_id=winner_id, game_over=game_over, winner=winner, timestamp=time.time())


def create_action_result_event(action: EventType, result: Dict[str, Any]) -> ActionResultEvent:
    """Create the reply to an action."""
    return ActionResultEvent(action=action, result=result, timestamp=time.time())
