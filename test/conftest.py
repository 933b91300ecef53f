"""
Shared fixtures for the engine and API tests.
"""

import random

import pytest

from microciv.engine.definitions import load_static_definitions
from microciv.engine.game import Game


class ScriptedRandom(random.Random):
    """
    random() replays `values` in order and then keeps returning `default`.
    getrandbits stays seeded, so choice() and randint() are reproducible
    without consuming the script.
    """
    default = 0.99

    def __init__(self, seed=None):
        self.values = []
        super().__init__(seed)

    def random(self):
        if self.values:
            return self.values.pop(0)
        return self.default

    def getrandbits(self, k):
        return super().getrandbits(k)


def scripted(values=(), default=0.99, seed=0) -> ScriptedRandom:
    rng = ScriptedRandom(seed)
    rng.values = list(values)
    rng.default = default
    return rng


@pytest.fixture(scope="session")
def definitions():
    return load_static_definitions(setup_id="classic")


@pytest.fixture
def quiet_rng():
    """No raids (0.99 is above every raid probability) and no random events."""
    return scripted()


@pytest.fixture
def game(definitions, quiet_rng):
    return Game.new_game(definitions=definitions, setup_id="classic", rng=quiet_rng)


def give(game, **amounts):
    """Top up stocks for a test scenario."""
    for resource, amount in amounts.items():
        game.state.ledger.resources[resource] = float(amount)


def research_all(game, *tech_ids):
    """Mark technologies researched with their effects, bypassing science costs."""
    for tech_id in tech_ids:
        game.technology_system._complete(game.definitions.technologies[tech_id])
