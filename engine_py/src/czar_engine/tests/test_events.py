"""
WebSocket event parsing tests.
"""

import pytest
from czar_engine.ws.events import (
    ErrorCode, EventType, JoinEvent, OutboundEventType, SubmitEvent, create_action_result_event,
    create_error_event, create_round_winner_event, parse_inbound_event
)


def test_parse_join_event():
    event = parse_inbound_event({"type": "join", "room_code": "abcd", "name": "Alice"})

    assert isinstance(event, JoinEvent)
    assert event.type == EventType.JOIN
    assert event.room_code == "abcd"


def test_parse_submit_event():
    event = parse_inbound_event({"type": "submit", "cards": ["a1", "a2"]})

    assert isinstance(event, SubmitEvent)
    assert event.cards == ["a1", "a2"]


def test_parse_events_without_payload():
    for event_type in ("trade_prompt", "toggle_timer", "next_round", "end_game", "leave", "request_state"):
        assert parse_inbound_event({"type": event_type}).type == EventType(event_type)


@pytest.mark.parametrize("data, message", [
    ([], "JSON object"),
    ({}, "Missing event type"),
    ({"type": "dance"}, "Invalid event type"),
    ({"type": "submit", "cards": []}, "Invalid event data"),
    ({"type": "join", "room_code": "ABCD"}, "Invalid event data"),
])
def test_parse_rejects_bad_events(data, message):
    with pytest.raises(ValueError) as exc_info:
        parse_inbound_event(data)
    assert message in str(exc_info.value)


def test_outbound_events_serialize():
    error = create_error_event(ErrorCode.NOT_IN_ROOM, "Not in a room")
    assert error.model_dump(mode="json")["type"] == "error"
    assert error.model_dump(mode="json")["code"] == "NOT_IN_ROOM"

    reply = create_action_result_event(EventType.SUBMIT, {"success": False, "code": "NOT_CZAR"})
    assert reply.type == OutboundEventType.ACTION_RESULT
    assert reply.model_dump(mode="json")["action"] == "submit"

    winner = create_round_winner_event("bob", False, {"id": "bob", "name": "Bob", "score": 1})
    assert winner.model_dump()["winner"]["score"] == 1
