"""
Random events system.
Each turn has a fixed chance to roll. Catalog entries come from random_events.json;
their applicability conditions and effects are dispatch tables keyed by event id.
Exactly one applicable event fires per successful roll.
"""

import math
from typing import TYPE_CHECKING, Callable

from microciv.engine import MATERIAL_RESOURCES
from microciv.engine.definitions import RandomEventDefinition
from microciv.engine.events import RANDOM_EVENT

if TYPE_CHECKING:
    from microciv.engine.game import Game


# ===== Conditions =====

def _always(game: "Game") -> bool:
    return True


def _has_wood_to_rot(game: "Game") -> bool:
    return game.state.ledger.get("wood") >= 5


def _has_room_for_nomads(game: "Game") -> bool:
    population = game.state.population
    return population.current < population.capacity - 1


def _has_enough_buildings(game: "Game") -> bool:
    return game.state.total_buildings() >= 4


def _past_turn_five(game: "Game") -> bool:
    return game.state.turn > 5


def _crowded_and_late(game: "Game") -> bool:
    return game.state.population.current > 4 and game.state.turn > 10


def _produces_science(game: "Game") -> bool:
    return game.state.production.get("science", 0.0) > 0


def _has_goods_to_trade(game: "Game") -> bool:
    ledger = game.state.ledger
    return ledger.get("food") > 5 or ledger.get("wood") > 5 or ledger.get("stone") > 3


EVENT_CONDITIONS: dict[str, Callable[["Game"], bool]] = {
    "bountiful_harvest": _always,
    "wood_rot": _has_wood_to_rot,
    "wandering_nomads": _has_room_for_nomads,
    "natural_disaster": _has_enough_buildings,
    "resource_discovery": _past_turn_five,
    "epidemic": _crowded_and_late,
    "scientific_breakthrough": _produces_science,
    "trade_caravan": _has_goods_to_trade,
}


# ===== Effects =====

def _bountiful_harvest(game: "Game") -> None:
    state = game.state
    bonus = max(3, math.floor(state.production.get("food", 0.0) * 0.5))
    state.ledger.credit("food", bonus)
    state.log(f"Bountiful Harvest: Gained {bonus} food!", RANDOM_EVENT)


def _wood_rot(game: "Game") -> None:
    state = game.state
    lost = math.ceil(state.ledger.get("wood") * 0.2)
    state.ledger.debit({"wood": lost})
    state.log(f"Wood Rot: Lost {lost} wood to rot!", RANDOM_EVENT)


def _wandering_nomads(game: "Game") -> None:
    population = game.state.population
    joined = min(2, population.capacity - population.current)
    population.current += joined
    game.state.log(f"Wandering Nomads: {joined} people joined your civilization!", RANDOM_EVENT)


def _natural_disaster(game: "Game") -> None:
    candidates = game.military_system.demolition_candidates()
    if not candidates:
        return
    building_type = game.rng.choice(candidates)
    game.demolish_building(building_type)
    game.state.log(f"Natural Disaster: A {building_type} was destroyed!", RANDOM_EVENT)


def _resource_discovery(game: "Game") -> None:
    state = game.state
    resource = game.rng.choice(MATERIAL_RESOURCES)
    amount = math.floor(5 + state.turn / 3)
    state.ledger.credit(resource, amount)
    state.log(f"Resource Discovery: Found {amount} {resource}!", RANDOM_EVENT)


def _epidemic(game: "Game") -> None:
    population = game.state.population
    deaths = max(1, math.floor(population.current * 0.2))
    population.current = max(0, population.current - deaths)
    game.state.log(f"Epidemic: Lost {deaths} people to disease!", RANDOM_EVENT)


def _scientific_breakthrough(game: "Game") -> None:
    state = game.state
    bonus = math.ceil(state.production.get("science", 0.0) * 3)
    state.ledger.credit("science", bonus)
    state.log(f"Scientific Breakthrough: Gained {bonus} science points!", RANDOM_EVENT)


def _trade_caravan(game: "Game") -> None:
    game.generate_trade_options()
    game.state.log("Trade Caravan: Merchants offer to trade resources!", RANDOM_EVENT)


EVENT_EFFECTS: dict[str, Callable[["Game"], None]] = {
    "bountiful_harvest": _bountiful_harvest,
    "wood_rot": _wood_rot,
    "wandering_nomads": _wandering_nomads,
    "natural_disaster": _natural_disaster,
    "resource_discovery": _resource_discovery,
    "epidemic": _epidemic,
    "scientific_breakthrough": _scientific_breakthrough,
    "trade_caravan": _trade_caravan,
}


class EventsSystem:
    def __init__(self, game: "Game"):
        self.game = game
        for event in game.definitions.random_events:
            if event.id not in EVENT_CONDITIONS or event.id not in EVENT_EFFECTS:
                raise ValueError(f"No handlers registered for random event '{event.id}'")

    @property
    def catalog(self) -> list[RandomEventDefinition]:
        return self.game.definitions.random_events

    @property
    def event_chance(self) -> float:
        return self.game.definitions.event_chance

    def get_candidates(self) -> list[RandomEventDefinition]:
        """Catalog events whose condition holds right now, in catalog order."""
        return [e for e in self.catalog if EVENT_CONDITIONS[e.id](self.game)]

    def effective_weight(self, event: RandomEventDefinition) -> float:
        """Catalog weight scaled by the current season's hint for this event (default 1)."""
        return event.weight * self.game.state.season.event_weights.get(event.id, 1.0)

    def select_event(self, candidates: list[RandomEventDefinition]) -> RandomEventDefinition | None:
        """Cumulative weighted sampling over the candidates."""
        if not candidates:
            return None
        total = sum(self.effective_weight(e) for e in candidates)
        if total <= 0:
            return None
        remaining = self.game.rng.random() * total
        for event in candidates:
            remaining -= self.effective_weight(event)
            if remaining <= 0:
                return event
        # Float rounding can leave a sliver past the last weight
        return candidates[-1]

    def check_for_random_event(self) -> RandomEventDefinition | None:
        """Roll for this turn's event and apply it. Returns the event that fired, if any."""
        if self.game.rng.random() >= self.event_chance:
            return None
        event = self.select_event(self.get_candidates())
        if event is None:
            return None
        EVENT_EFFECTS[event.id](self.game)
        return event
