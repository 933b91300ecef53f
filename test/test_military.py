"""
Military tests: unit training, defense value, threat and raid resolution.
"""

import random

import pytest

from microciv.engine.game import Game
from conftest import give, research_all, scripted


@pytest.fixture
def fortified(game):
    """A game with a barracks standing and plenty of resources."""
    give(game, food=50, wood=50, stone=50)
    research_all(game, "woodworking", "mining", "construction")
    assert game.build("barracks")
    return game


def test_training_needs_a_barracks(game):
    give(game, food=20, wood=20)
    assert not game.military_system.train_unit("warrior")
    assert game.state.military.units["warrior"] == 0
    assert "need to build a barracks first" in game.state.events.entries()[-1].message


def test_unknown_unit_is_logged(fortified):
    assert not fortified.military_system.train_unit("dragon")
    assert fortified.state.events.entries()[-1].message == "Unknown unit type: dragon"


def test_training_debits_cost_and_raises_defense(fortified):
    food, wood = fortified.state.resources["food"], fortified.state.resources["wood"]
    assert fortified.military_system.train_unit("warrior")
    assert fortified.state.resources["food"] == pytest.approx(food - 5)
    assert fortified.state.resources["wood"] == pytest.approx(wood - 3)
    assert fortified.military_system.units["warrior"] == 1
    assert fortified.military_system.defense_value == 5 + 5


def test_training_fails_when_unaffordable(fortified):
    give(fortified, food=2)
    assert not fortified.military_system.train_unit("archer")
    assert fortified.state.military.units["archer"] == 0
    assert "need more food" in fortified.state.events.entries()[-1].message


def test_defense_value_is_deterministic_and_uses_terrain(fortified):
    fortified.military_system.train_unit("warrior")
    fortified.military_system.train_unit("archer")
    assert fortified.military_system.update_defense_value() == 5 + 5 + 2
    assert fortified.military_system.update_defense_value() == 12
    assert fortified.terrain_system.change_terrain("mountains")
    assert fortified.military_system.defense_value == 18  # floor(12 * 1.5)


def test_threat_accrues_with_prosperity(game):
    # population 2, buildings 2, resources 20 -> prosperity 0.6
    assert game.military_system.prosperity_factor() == pytest.approx(0.6)
    assert game.military_system.process_turn() is None
    assert game.state.military.threat_level == pytest.approx(0.5 + 0.2 * 0.6)


def test_raid_probability_is_capped(game):
    game.state.military.threat_level = 1000
    assert game.military_system.raid_probability() == pytest.approx(0.7)


def test_process_turn_raids_when_the_roll_succeeds(definitions):
    game = Game.new_game(definitions=definitions, setup_id="classic", rng=scripted([0.0, 0.5, 0.99]))
    record = game.military_system.process_turn()
    assert record is not None
    assert game.state.military.raid_history == [record]


@pytest.mark.parametrize("seed", range(100))
def test_zero_threat_never_beats_a_hundred_defense(definitions, seed):
    game = Game.new_game(definitions=definitions, setup_id="classic", rng=random.Random(seed))
    game.state.military.threat_level = 0.0
    game.state.military.defense_value = 100
    record = game.military_system.conduct_raid()
    assert record.success
    assert record.strength <= 12


def test_repelled_raid_can_drop_loot(definitions):
    # strength roll 0.5 -> floor(10.5) = 10; loot roll 0.1 < 0.3
    game = Game.new_game(definitions=definitions, setup_id="classic", rng=scripted([0.5, 0.1]))
    game.state.military.defense_value = 100
    total_before = game.state.ledger.total_resources()
    record = game.military_system.conduct_raid()
    assert record.success
    assert record.strength == 10
    assert game.state.ledger.total_resources() == pytest.approx(total_before + 5)
    assert "Gained 5" in game.state.events.entries()[-1].message


def test_overwhelming_raid_takes_resources_and_a_building(definitions):
    # strength 10 against defense 0 -> severity 1; building roll 0.5 < 1
    game = Game.new_game(definitions=definitions, setup_id="classic", rng=scripted([0.5, 0.5]))
    record = game.military_system.conduct_raid()
    state = game.state
    assert not record.success
    assert record.losses == {"food": 5, "wood": 5, "building": "house"}
    assert state.resources["food"] == 5.0
    assert state.resources["wood"] == 5.0
    assert state.buildings["house"] == 1
    assert state.population.capacity == 2
    assert state.population.current == 2
    message = state.events.entries()[-1].message
    assert message.startswith("RAID ALERT: Raid successful!")
    assert "Losses: 5 food, 5 wood, 1 house." in message


@pytest.fixture
def unhoused(definitions):
    """Severity-1 raid (strength 10 against defense 0) with nothing left to demolish."""
    game = Game.new_game(definitions=definitions, setup_id="classic", rng=scripted([0.5]))
    game.state.buildings["house"] = 0
    return game


def test_overwhelming_raid_kills_part_of_the_population(unhoused):
    state = unhoused.state
    state.population.current = 4
    state.population.capacity = 8
    record = unhoused.military_system.conduct_raid()
    assert record.losses == {"food": 5, "wood": 5, "population": 1}
    assert state.population.current == 3
    assert "Losses: 5 food, 5 wood, 1 population." in state.events.entries()[-1].message


def test_raid_never_kills_the_last_citizen(unhoused):
    state = unhoused.state
    state.population.current = 1
    record = unhoused.military_system.conduct_raid()
    assert "population" not in record.losses
    assert state.population.current == 1


def test_raids_never_destroy_the_monument(definitions):
    game = Game.new_game(definitions=definitions, setup_id="classic", rng=scripted([0.5, 0.0]))
    state = game.state
    state.buildings["house"] = 0
    state.buildings["monument"] = 1
    record = game.military_system.conduct_raid()
    assert "building" not in record.losses
    assert state.buildings["monument"] == 1


def test_threat_drops_after_every_raid(definitions):
    game = Game.new_game(definitions=definitions, setup_id="classic", rng=scripted([0.5, 0.99]))
    game.state.military.threat_level = 15.0
    game.state.military.defense_value = 100
    game.military_system.conduct_raid()
    assert game.state.military.threat_level == pytest.approx(5.0)
