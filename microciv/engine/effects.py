"""
Building and technology effects.
Effects are tagged records from the setup data ({"type": "capacity", "amount": 2})
dispatched to plain functions that mutate an explicit GameState.
Production and defense are never patched here; callers recompute them afterwards.
"""

from typing import Any, Callable

from microciv.engine.definitions import BuildingDefinition, TechnologyDefinition
from microciv.engine.events import victory
from microciv.engine.state import GameState


# ===== Building Effects =====

def _building_capacity(state: GameState, building: BuildingDefinition, params: dict[str, Any]) -> None:
    state.population.capacity += int(params.get("amount", 0))


def _building_victory(state: GameState, building: BuildingDefinition, params: dict[str, Any]) -> None:
    if not state.game_won:
        state.game_won = True
        state.add_event(victory(state.turn))


def _no_effect(state: GameState, definition: Any, params: dict[str, Any]) -> None:
    return None


BUILDING_EFFECTS: dict[str, Callable[[GameState, BuildingDefinition, dict[str, Any]], None]] = {
    "capacity": _building_capacity,
    # Production and defense come from the recompute that follows every build
    "production": _no_effect,
    "defense": _no_effect,
    "victory": _building_victory,
    "none": _no_effect,
}


def _lookup(table: dict[str, Callable], effect: dict[str, Any], owner: str) -> Callable:
    effect_type = effect.get("type", "none")
    handler = table.get(effect_type)
    if handler is None:
        raise ValueError(f"Unknown effect type '{effect_type}' on {owner}")
    return handler


def apply_building_effect(state: GameState, building: BuildingDefinition) -> None:
    """Apply the one-shot effect of constructing one building."""
    handler = _lookup(BUILDING_EFFECTS, building.effect, building.id)
    handler(state, building, building.effect)
    # Capacity granted per building by technologies (e.g. irrigated farms)
    state.population.capacity += state.capacity_bonuses.get(building.id, 0)


def reverse_building_effect(state: GameState, building: BuildingDefinition) -> None:
    """
    Undo the contribution of one lost building.
    Only capacity needs reversing; victory is permanent and production/defense are recomputed.
    """
    lost_capacity = state.capacity_bonuses.get(building.id, 0)
    if building.effect.get("type") == "capacity":
        lost_capacity += int(building.effect.get("amount", 0))
    state.population.capacity = max(0, state.population.capacity - lost_capacity)


# ===== Technology Effects =====

def _tech_production_multiplier(state: GameState, tech: TechnologyDefinition, params: dict[str, Any]) -> None:
    building_id = params["building"]
    current = state.production_multipliers.get(building_id, 1.0)
    state.production_multipliers[building_id] = current * float(params["factor"])


def _tech_building_capacity(state: GameState, tech: TechnologyDefinition, params: dict[str, Any]) -> None:
    building_id = params["building"]
    amount = int(params["amount"])
    state.capacity_bonuses[building_id] = state.capacity_bonuses.get(building_id, 0) + amount
    # Buildings already standing get the bonus too
    state.population.capacity += amount * state.buildings.get(building_id, 0)


def _tech_building_cost_multiplier(state: GameState, tech: TechnologyDefinition, params: dict[str, Any]) -> None:
    factor = float(params["factor"])
    for costs in state.building_costs.values():
        for resource in costs:
            costs[resource] *= factor


TECHNOLOGY_EFFECTS: dict[str, Callable[[GameState, TechnologyDefinition, dict[str, Any]], None]] = {
    "production_multiplier": _tech_production_multiplier,
    "building_capacity": _tech_building_capacity,
    "building_cost_multiplier": _tech_building_cost_multiplier,
    "none": _no_effect,
}


def apply_technology_effect(state: GameState, tech: TechnologyDefinition) -> None:
    """Apply a technology's permanent effect. Callers guarantee this runs once per technology."""
    handler = _lookup(TECHNOLOGY_EFFECTS, tech.effect, tech.id)
    handler(state, tech, tech.effect)
