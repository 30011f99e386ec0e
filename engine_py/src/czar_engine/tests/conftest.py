"""
Shared fixtures for the czar engine tests.
"""

import pytest
from czar_engine.engine import RoundEngine
from czar_engine.models import Pack
from czar_engine.packs import StaticPackSource
from czar_engine.rules import create_rules

PLAYER_IDS = ["alice", "bob", "carol", "dave", "erin"]


def identity_shuffle(deck):
    return list(deck)


def make_pack(prompt_picks=(1, 1, 1, 1, 1, 1), answers=60, pack_id="test"):
    """Prompt ids p0..pN, answer ids a0..aN. With identity shuffling the last card is drawn first."""
    return Pack(
        id=pack_id,
        name="Test Pack",
        prompt_cards=[
            {"id": f"p{i}", "text": f"Prompt {i} ____", "pick": pick}
            for i, pick in enumerate(prompt_picks)
        ],
        answer_cards=[{"id": f"a{i}", "text": f"Answer {i}"} for i in range(answers)],
    )


class FakeHandle:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock: callbacks only run inside advance()."""

    def __init__(self):
        self.now = 0.0
        self.handles = []

    def call_later(self, delay, callback):
        handle = FakeHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def pending(self):
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [h for h in self.pending() if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.handles.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def make_engine(scheduler):
    """Factory for engines with ids/names from PLAYER_IDS, started on the test pack by default."""
    def _make(players=3, start=True, pack=None, **overrides):
        engine = RoundEngine(
            "TEST",
            rules=create_rules(**overrides),
            pack_source=StaticPackSource([pack or make_pack()]),
            scheduler=scheduler,
            shuffle=identity_shuffle,
        )
        for player_id in PLAYER_IDS[:players]:
            assert engine.add_player(player_id, player_id.capitalize()).success
        if start:
            assert engine.start_game(["test"]).success
        return engine
    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()


def first_cards(engine, player_id, count=None):
    """Ids of the first cards in a player's hand, enough for the current prompt by default."""
    if count is None:
        count = engine.state.current_prompt_card.pick
    return [card["id"] for card in engine.get_player_hand(player_id)[:count]]


def submit_all(engine):
    """Every connected non-Czar player submits."""
    for player in list(engine.players):
        if player.connected and player.id != engine.current_czar_id:
            result = engine.submit_card(player.id, first_cards(engine, player.id))
            assert result.success, result


def answer_ids(engine):
    """Every answer card id the room tracks, wherever it sits."""
    state = engine.state
    ids = [card.id for card in state.answer_deck]
    ids += [card.id for card in state.discard_pile]
    for player in state.players:
        ids += [card.id for card in player.hand]
    return ids
