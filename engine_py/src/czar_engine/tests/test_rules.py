"""
Rule configuration and leaderboard tests.
"""

import pytest
from pydantic import ValidationError
from czar_engine.constants import HAND_SIZE, MAX_PLAYERS, MIN_PLAYERS, WINNING_SCORE
from czar_engine.models import Player
from czar_engine.ranking import build_leaderboard, reached_winning_score, top_entry
from czar_engine.rules import create_rules, default_rules


def test_default_rules():
    assert default_rules.min_players == MIN_PLAYERS
    assert default_rules.max_players == MAX_PLAYERS
    assert default_rules.hand_size == HAND_SIZE
    assert default_rules.winning_score == WINNING_SCORE
    assert not default_rules.keep_departed_submissions


def test_create_rules_overrides():
    rules = create_rules(winning_score=3, timer_duration=30)

    assert rules.winning_score == 3
    assert rules.timer_duration == 30
    assert rules.hand_size == default_rules.hand_size


def test_invalid_rules_are_rejected():
    with pytest.raises(ValidationError):
        create_rules(min_players=5, max_players=4)
    with pytest.raises(ValidationError):
        create_rules(timer_duration=2)


def test_leaderboard_orders_by_score_keeping_join_order():
    players = [
        Player(id="a", name="Alice", color="red", score=1),
        Player(id="b", name="Bob", color="blue", score=3),
        Player(id="c", name="Carol", color="green", score=1),
    ]

    leaderboard = build_leaderboard(players)
    assert [entry["id"] for entry in leaderboard] == ["b", "a", "c"]
    assert leaderboard[0] == {"id": "b", "name": "Bob", "score": 3, "color": "blue"}
    assert top_entry(leaderboard)["name"] == "Bob"
    assert top_entry([]) is None
    assert reached_winning_score(players[1], 3)
    assert not reached_winning_score(players[0], 3)
