"""
Reducer and query tests.
"""

import pytest

from microciv.engine.actions import (
    Action,
    build,
    change_terrain,
    end_turn,
    generate_trade_options,
    research,
    trade,
    train_unit,
)
from microciv.engine.queries import (
    get_available_actions,
    get_building_cards,
    get_game_summary,
    validate_action,
)
from microciv.engine.reducer import apply_action
from conftest import give, research_all


def test_apply_action_returns_new_log_entries(game):
    success, entries = apply_action(game, build("farm"))
    assert success
    assert [e.message for e in entries] == ["Built a new farm"]


def test_failed_action_returns_the_reason(game):
    success, entries = apply_action(game, build("wall"))
    assert not success
    assert entries[-1].message == "Cannot afford wall - need more stone"


def test_end_turn_action(game):
    success, entries = apply_action(game, end_turn())
    assert success
    assert game.state.turn == 2
    assert "Population increased!" in [e.message for e in entries]


def test_every_action_type_dispatches(game):
    give(game, food=100, wood=100, stone=100, science=100)
    assert apply_action(game, research("woodworking"))[0]
    research_all(game, "mining", "construction")
    assert apply_action(game, build("barracks"))[0]
    assert apply_action(game, train_unit("archer"))[0]
    assert apply_action(game, change_terrain("hills"))[0]
    assert apply_action(game, generate_trade_options())[0]
    assert apply_action(game, trade(0))[0]


def test_unknown_action_type_raises(game):
    with pytest.raises(ValueError, match="Unknown action type"):
        apply_action(game, Action(type="teleport", payload={}))


@pytest.mark.parametrize("payload", [{}, {"building_type": 3}, {"building_type": None}])
def test_malformed_payload_raises(game, payload):
    with pytest.raises(ValueError):
        apply_action(game, Action(type="build", payload=payload))


def test_bool_is_not_a_trade_index(game):
    game.generate_trade_options()
    with pytest.raises(ValueError):
        apply_action(game, Action(type="trade", payload={"index": True}))


def test_actions_are_rejected_after_victory(game):
    game.state.game_won = True
    success, entries = apply_action(game, build("house"))
    assert not success
    assert game.state.buildings["house"] == 2
    assert "already won" in entries[-1].message
    assert not validate_action(game, end_turn()).valid


def test_validate_action_does_not_mutate(game):
    before = game.state.to_dict()
    assert validate_action(game, build("farm")).valid
    result = validate_action(game, build("wall"))
    assert not result.valid
    assert "wall" in result.error
    assert not validate_action(game, research("irrigation")).valid
    assert not validate_action(game, train_unit("warrior")).valid
    assert not validate_action(game, change_terrain("swamp")).valid
    assert not validate_action(game, trade(0)).valid
    assert not validate_action(game, Action(type="build", payload={})).valid
    assert validate_action(game, end_turn()).to_dict() == {"valid": True, "error": None}
    assert game.state.to_dict() == before


def test_building_cards(game):
    cards = {c["id"]: c for c in get_building_cards(game)}
    assert cards["house"]["count"] == 2
    assert cards["farm"]["can_afford"]
    assert cards["farm"]["meets_requirements"]
    assert not cards["wall"]["can_afford"]
    assert cards["wall"]["missing_requirements"] == ["Metallurgy technology", "1 Barracks"]


def test_available_actions(game):
    actions = get_available_actions(game)
    assert set(actions["buildings"]) == {"house", "farm"}
    assert actions["technologies"] == []
    assert actions["units"] == []
    assert actions["can_end_turn"]


def test_game_summary_is_complete(game):
    summary = get_game_summary(game)
    for key in ("state", "phase", "buildings", "technologies", "military", "season", "terrain", "trade"):
        assert key in summary
    assert summary["state"]["turn"] == 1
    assert summary["season"]["id"] == "spring"
    assert summary["terrain"]["id"] == "plains"
