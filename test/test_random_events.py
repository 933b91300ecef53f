"""
Random event tests: conditions, weighting, selection and each effect.
"""

import pytest

from microciv.engine.definitions import definitions_from_snapshot
from microciv.engine.game import Game
from microciv.engine.random_events import EVENT_CONDITIONS, EVENT_EFFECTS
from conftest import give, scripted


def test_every_catalog_event_has_handlers(definitions):
    for event in definitions.random_events:
        assert event.id in EVENT_CONDITIONS
        assert event.id in EVENT_EFFECTS


def test_unregistered_event_is_rejected(definitions):
    snapshot = definitions.to_dict()
    snapshot["random_events"]["events"].append(
        {"id": "meteor", "name": "Meteor", "description": "", "weight": 1}
    )
    with pytest.raises(ValueError, match="meteor"):
        Game.new_game(definitions=definitions_from_snapshot(snapshot), setup_id="classic")


def test_candidates_on_fresh_game(game):
    ids = [e.id for e in game.events_system.get_candidates()]
    assert ids == ["bountiful_harvest", "wood_rot", "wandering_nomads", "trade_caravan"]


def test_season_hints_scale_weights(game):
    harvest = next(e for e in game.definitions.random_events if e.id == "bountiful_harvest")
    epidemic = next(e for e in game.definitions.random_events if e.id == "epidemic")
    assert game.events_system.effective_weight(harvest) == 20.0
    assert game.events_system.effective_weight(epidemic) == 4.0


def test_cumulative_selection(game):
    candidates = game.events_system.get_candidates()
    game.rng = scripted([0.0, 0.999999])
    assert game.events_system.select_event(candidates).id == "bountiful_harvest"
    assert game.events_system.select_event(candidates).id == "trade_caravan"
    assert game.events_system.select_event([]) is None


def test_no_event_when_roll_misses(game):
    game.rng = scripted([0.5])
    assert game.events_system.check_for_random_event() is None


def test_roll_fires_exactly_one_event(game):
    game.rng = scripted([0.1, 0.0])
    event = game.events_system.check_for_random_event()
    assert event.id == "bountiful_harvest"
    assert game.state.resources["food"] == 13.0
    assert game.state.events.entries()[-1].message == "Bountiful Harvest: Gained 3 food!"


def test_wood_rot(game):
    EVENT_EFFECTS["wood_rot"](game)
    assert game.state.resources["wood"] == 8.0


def test_wandering_nomads_fill_housing(game):
    EVENT_EFFECTS["wandering_nomads"](game)
    assert game.state.population.current == 4


def test_natural_disaster_destroys_one_building(game):
    game.state.buildings["farm"] = 2
    game.state.buildings["monument"] = 1
    assert EVENT_CONDITIONS["natural_disaster"](game)
    EVENT_EFFECTS["natural_disaster"](game)
    assert game.state.total_buildings() == 4
    assert game.state.buildings["monument"] == 1
    assert game.state.events.entries()[-1].message.startswith("Natural Disaster: A ")


def test_resource_discovery_scales_with_turn(game):
    game.state.turn = 9
    total = game.state.ledger.total_resources()
    assert EVENT_CONDITIONS["resource_discovery"](game)
    EVENT_EFFECTS["resource_discovery"](game)
    assert game.state.ledger.total_resources() == total + 8


def test_epidemic(game):
    game.state.population.current = 6
    game.state.population.capacity = 8
    game.state.turn = 11
    assert EVENT_CONDITIONS["epidemic"](game)
    EVENT_EFFECTS["epidemic"](game)
    assert game.state.population.current == 5


def test_scientific_breakthrough(game):
    assert not EVENT_CONDITIONS["scientific_breakthrough"](game)
    game.state.ledger.production["science"] = 1.5
    assert EVENT_CONDITIONS["scientific_breakthrough"](game)
    EVENT_EFFECTS["scientific_breakthrough"](game)
    assert game.state.resources["science"] == 5.0


def test_trade_caravan_brings_offers(game):
    give(game, food=0, wood=0, stone=0)
    assert not EVENT_CONDITIONS["trade_caravan"](game)
    give(game, stone=4)
    assert EVENT_CONDITIONS["trade_caravan"](game)
    EVENT_EFFECTS["trade_caravan"](game)
    assert len(game.state.trade_options) == 3
    assert game.state.trade_pending
