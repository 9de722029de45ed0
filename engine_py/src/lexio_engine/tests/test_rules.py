"""
Tests for room rule configuration.
"""

import pytest
from pydantic import ValidationError

from lexio_engine.engine import add_bot, create_room, start_round
from lexio_engine.rules import RuleConfig, create_rules, default_rules


def test_defaults():
    assert default_rules.min_players == 3
    assert default_rules.max_players == 5
    assert default_rules.starting_score == 100
    assert default_rules.bot_delay == 1.5
    assert not default_rules.ai_full_five_card_search


def test_create_rules_overrides():
    rules = create_rules(starting_score=50, bot_delay=0)
    assert rules.starting_score == 50
    assert rules.bot_delay == 0
    assert rules.max_players == default_rules.max_players


@pytest.mark.parametrize("overrides", [
    {"min_players": 2},
    {"max_players": 6},
    {"min_players": 5, "max_players": 4},
    {"bot_delay": -1},
])
def test_invalid_rules(overrides):
    with pytest.raises(ValidationError):
        RuleConfig(**overrides)


def test_player_count_check():
    assert default_rules.validate_player_count(3)
    assert not default_rules.validate_player_count(6)


def test_rooms_use_their_own_rules():
    state = create_room("rules", rule_config=create_rules(starting_score=40))
    for i in range(3):
        state = add_bot(state, None, f"ai-{i}").state
    state = start_round(state, seed=2).state

    assert state.scores == {0: 40, 1: 40, 2: 40}
    assert default_rules.starting_score == 100
