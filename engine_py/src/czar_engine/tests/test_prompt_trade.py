"""
Prompt card trade tests.
"""

from conftest import make_pack, submit_all
from czar_engine.errors import ALREADY_TRADED, NO_PROMPT_CARDS, NOT_CZAR, NOT_PLAYING_PHASE


def test_czar_trades_prompt_card(engine):
    result = engine.trade_prompt_card("alice")

    assert result.success
    assert result.extra["prompt_card"]["id"] == "p4"
    assert engine.state.current_prompt_card.id == "p4"
    assert engine.state.prompt_card_traded
    assert [c.id for c in engine.state.prompt_discard] == ["p5"]
    assert engine.get_game_state()["prompt_card_traded"]


def test_only_one_trade_per_round(engine):
    engine.trade_prompt_card("alice")

    result = engine.trade_prompt_card("alice")
    assert not result.success
    assert result.code == ALREADY_TRADED
    assert engine.state.current_prompt_card.id == "p4"


def test_only_czar_can_trade(engine):
    assert engine.trade_prompt_card("bob").code == NOT_CZAR
    assert not engine.state.prompt_card_traded


def test_trade_needs_a_replacement(make_engine):
    engine = make_engine(pack=make_pack(prompt_picks=(1,)))

    result = engine.trade_prompt_card("alice")
    assert result.code == NO_PROMPT_CARDS
    assert engine.state.current_prompt_card.id == "p0"


def test_trade_only_while_playing(engine):
    submit_all(engine)

    assert engine.trade_prompt_card("alice").code == NOT_PLAYING_PHASE


def test_trade_keeps_existing_submissions(engine):
    engine.submit_card("bob", ["a49"])
    engine.trade_prompt_card("alice")

    assert engine.players[1].key in engine.state.submissions
    engine.submit_card("carol", ["a39"])
    assert engine.phase == "judging"


def test_trade_flag_resets_next_round(engine):
    engine.trade_prompt_card("alice")
    submit_all(engine)
    engine.select_winner("alice", "bob")
    engine.next_round()

    assert not engine.state.prompt_card_traded
    assert engine.state.current_prompt_card.id == "p3"
    assert engine.trade_prompt_card("bob").success


def test_prompt_cards_are_conserved(engine):
    """Prompt cards only move between deck, discard and the table."""
    def prompt_total():
        state = engine.state
        return len(state.prompt_deck) + len(state.prompt_discard) + (1 if state.current_prompt_card else 0)

    assert prompt_total() == 6
    for round_number in range(3):
        if round_number % 2 == 0:
            assert engine.trade_prompt_card(engine.current_czar_id).success
            assert prompt_total() == 6
        submit_all(engine)
        assert prompt_total() == 6
        winner = next(p.id for p in engine.players if p.id != engine.current_czar_id)
        engine.select_winner(engine.current_czar_id, winner)
        assert prompt_total() == 6
        engine.next_round()
        assert prompt_total() == 6

    ids = [c.id for c in engine.state.prompt_deck + engine.state.prompt_discard]
    ids.append(engine.state.current_prompt_card.id)
    assert sorted(ids) == ["p0", "p1", "p2", "p3", "p4", "p5"]
