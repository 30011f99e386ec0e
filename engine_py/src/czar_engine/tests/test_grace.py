"""
Disconnect grace period tests.
"""

import pytest
from conftest import identity_shuffle, make_pack
from czar_engine.engine import RoundEngine
from czar_engine.errors import PLAYER_NOT_FOUND, ROOM_NOT_FOUND
from czar_engine.grace import DisconnectGraceCoordinator
from czar_engine.packs import StaticPackSource
from czar_engine.rooms import RoomRegistry


@pytest.fixture
def registry(scheduler):
    def factory(room_code):
        return RoundEngine(
            room_code,
            pack_source=StaticPackSource([make_pack()]),
            scheduler=scheduler,
            shuffle=identity_shuffle,
        )
    return RoomRegistry(engine_factory=factory, code_factory=lambda: "ROOM")


@pytest.fixture
def expired():
    return []


@pytest.fixture
def coordinator(registry, scheduler, expired):
    return DisconnectGraceCoordinator(
        registry,
        scheduler,
        grace_seconds=30,
        on_expired=lambda room_code, result: expired.append((room_code, result)),
    )


@pytest.fixture
def started_room(registry, coordinator):
    room_code, engine = registry.create_room("Alice", "alice")
    assert coordinator.join(room_code, "bob", "Bob").success
    assert coordinator.join(room_code, "carol", "Carol").success
    assert engine.start_game(["test"]).success
    return engine


def test_join_unknown_room(coordinator):
    result = coordinator.join("NOPE", "alice", "Alice")
    assert not result.success
    assert result.code == ROOM_NOT_FOUND


def test_reconnect_within_grace_cancels_cleanup(started_room, coordinator, scheduler, expired):
    coordinator.player_disconnected("ROOM", "bob")
    assert coordinator.is_pending("ROOM", "Bob")

    scheduler.advance(10)
    result = coordinator.join("room", "bob-2", "Bob")
    assert result.extra["reconnected"]
    assert not coordinator.is_pending("ROOM", "Bob")

    scheduler.advance(60)
    assert expired == []
    assert started_room.players[1].connected


def test_grace_expiry_reassigns_czar(started_room, coordinator, scheduler, expired):
    coordinator.player_disconnected("ROOM", "alice")

    scheduler.advance(29)
    assert started_room.current_czar_id == "alice"

    scheduler.advance(1)
    assert started_room.current_czar_id == "bob"
    assert len(expired) == 1
    room_code, result = expired[0]
    assert room_code == "ROOM"
    assert result.extra["czar_reassigned"] == "bob"
    assert "ROOM" in coordinator.registry


def test_room_removed_when_everyone_expired(started_room, coordinator, scheduler):
    for player_id in ("alice", "bob", "carol"):
        coordinator.player_disconnected("ROOM", player_id)

    scheduler.advance(30)
    assert "ROOM" not in coordinator.registry
    assert coordinator.pending == {}


def test_only_latest_disconnect_counts(started_room, coordinator, scheduler, expired):
    coordinator.player_disconnected("ROOM", "bob")
    coordinator.join("ROOM", "bob-2", "Bob")
    scheduler.advance(20)
    coordinator.player_disconnected("ROOM", "bob-2")

    scheduler.advance(11)
    assert expired == []

    scheduler.advance(20)
    assert len(expired) == 1


def test_stale_connection_is_ignored(started_room, coordinator):
    result = coordinator.player_disconnected("ROOM", "ghost")

    assert not result.success
    assert result.code == PLAYER_NOT_FOUND
    assert coordinator.pending == {}


def test_leave_removes_empty_room(started_room, coordinator):
    coordinator.player_disconnected("ROOM", "carol")
    coordinator.player_left("ROOM", "carol")
    assert not coordinator.is_pending("ROOM", "Carol")

    coordinator.player_left("ROOM", "alice")
    assert "ROOM" in coordinator.registry

    result = coordinator.player_left("ROOM", "bob")
    assert result.extra["remaining_players"] == 0
    assert "ROOM" not in coordinator.registry


def test_close_cancels_everything(started_room, coordinator, scheduler):
    coordinator.player_disconnected("ROOM", "bob")
    coordinator.player_disconnected("ROOM", "carol")

    coordinator.close()
    assert coordinator.pending == {}
    assert scheduler.pending() == []


def test_failed_join_keeps_cleanup_pending(started_room, coordinator, scheduler, expired):
    """Only a real reconnection by name stops the grace period."""
    coordinator.player_disconnected("ROOM", "alice")

    result = coordinator.join("ROOM", "bob", "Alice")
    assert not result.success
    assert coordinator.is_pending("ROOM", "Alice")

    scheduler.advance(30)
    assert started_room.current_czar_id == "bob"
    assert len(expired) == 1
