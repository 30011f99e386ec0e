"""
Room registry tests.
"""

import random

import pytest
from conftest import identity_shuffle, make_pack
from czar_engine.constants import ROOM_CODE_CHARS, ROOM_CODE_LENGTH
from czar_engine.engine import RoundEngine
from czar_engine.errors import INVALID_NAME, GameError
from czar_engine.packs import StaticPackSource
from czar_engine.rooms import RoomRegistry, generate_room_code


@pytest.fixture
def registry(scheduler):
    def factory(room_code):
        return RoundEngine(
            room_code,
            pack_source=StaticPackSource([make_pack()]),
            scheduler=scheduler,
            shuffle=identity_shuffle,
        )
    return RoomRegistry(engine_factory=factory)


def test_generate_room_code():
    code = generate_room_code(rng=random.Random(7))

    assert len(code) == ROOM_CODE_LENGTH
    assert all(ch in ROOM_CODE_CHARS for ch in code)
    assert code == generate_room_code(rng=random.Random(7))


def test_create_room_adds_creator(registry):
    room_code, engine = registry.create_room("Alice", "alice")

    assert len(room_code) == ROOM_CODE_LENGTH
    assert engine.room_code == room_code
    assert [p.name for p in engine.players] == ["Alice"]
    assert registry.get_room(room_code) is engine
    assert room_code in registry
    assert len(registry) == 1
    assert list(registry) == [room_code]


def test_room_lookup_ignores_case(registry):
    registry.code_factory = lambda: "ABCD"
    registry.create_room("Alice", "alice")

    assert registry.get_room("abcd") is registry.get_room("ABCD")
    assert registry.get_room("WXYZ") is None
    assert registry.get_room("") is None
    assert registry.get_room(None) is None


def test_code_collision_retries(registry):
    codes = iter(["ABCD", "ABCD", "EFGH"])
    registry.code_factory = lambda: next(codes)

    first, _ = registry.create_room("Alice", "alice")
    second, _ = registry.create_room("Bob", "bob")

    assert first == "ABCD"
    assert second == "EFGH"


def test_create_room_with_blank_name(registry):
    with pytest.raises(GameError) as exc_info:
        registry.create_room("  ", "alice")

    assert exc_info.value.code == INVALID_NAME
    assert len(registry) == 0


def test_remove_room_is_idempotent(registry, scheduler):
    room_code, engine = registry.create_room("Alice", "alice")
    engine.add_player("bob", "Bob")
    engine.add_player("carol", "Carol")
    engine.start_game(["test"])
    engine.toggle_timer("alice")

    registry.remove_room(room_code.lower())
    registry.remove_room(room_code)
    registry.remove_room(None)

    assert room_code not in registry
    assert len(registry) == 0
    assert scheduler.pending() == []
