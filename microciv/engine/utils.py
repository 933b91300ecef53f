"""
Utility functions for the game engine.
"""

from copy import deepcopy

from microciv.engine import RESOURCE_TYPES
from microciv.engine.definitions import Definitions
from microciv.engine.state import GameState, MilitaryState, Population, ResourceLedger, SeasonState


def initialize_game_state(
    definitions: Definitions,
    setup_id: str,
    terrain: str | None = None,
) -> GameState:
    """
    Create the initial game state for a setup.

    Args:
        definitions: Catalogs for the setup
        setup_id: Recorded on the state so the game can be matched to its setup
        terrain: Starting terrain id; the setup's default terrain when omitted

    Production and defense are left at zero; Game recomputes them on construction.
    """
    terrain_id = terrain or definitions.default_terrain
    if terrain_id not in definitions.terrains:
        raise ValueError(f"Unknown terrain: {terrain_id}")

    starting = definitions.starting
    resources = {r: 0.0 for r in RESOURCE_TYPES}
    resources.update({k: float(v) for k, v in (starting.get("resources") or {}).items()})
    base_production = {r: 0.0 for r in RESOURCE_TYPES}
    base_production.update({k: float(v) for k, v in (starting.get("base_production") or {}).items()})

    # Every catalog building is tracked, owned or not
    buildings = {building_id: 0 for building_id in definitions.buildings}
    for building_id, count in (starting.get("buildings") or {}).items():
        if building_id not in definitions.buildings:
            raise ValueError(f"Starting buildings reference unknown building: {building_id}")
        buildings[building_id] = int(count)

    first_season = definitions.seasons[definitions.season_order[0]]

    return GameState(
        setup_id=setup_id,
        ledger=ResourceLedger(
            resources=resources,
            base_production=base_production,
            production={r: 0.0 for r in RESOURCE_TYPES},
            population=Population.from_dict(starting.get("population") or {}),
        ),
        buildings=buildings,
        building_costs={bid: deepcopy(b.cost) for bid, b in definitions.buildings.items()},
        production_multipliers={bid: 1.0 for bid, b in definitions.buildings.items() if b.is_producer},
        terrain=terrain_id,
        military=MilitaryState(
            units={unit_id: 0 for unit_id in definitions.units},
            raid_chance=definitions.military.raid_chance,
        ),
        season=SeasonState(
            current=first_season.id,
            turns_in_season=0,
            event_weights=dict(first_season.event_weights),
        ),
    )


def print_game_state(state: GameState) -> None:
    """Print a readable summary of the game state."""
    population = state.population
    print(f"\n=== Turn {state.turn} | {state.season.current.title()} | {state.terrain.title()} ===")
    if state.game_won:
        print("*** VICTORY ***")

    print("Resources:")
    for resource in RESOURCE_TYPES:
        print(f"  {resource}: {state.resources.get(resource, 0.0):.1f} "
              f"(+{state.production.get(resource, 0.0):.1f}/turn)")
    print(f"Population: {population.current}/{population.capacity}")

    owned = {b: c for b, c in state.buildings.items() if c > 0}
    print("Buildings: " + (", ".join(f"{b} x{c}" for b, c in owned.items()) or "none"))
    if state.technology.researched:
        print("Researched: " + ", ".join(state.technology.researched))

    units = {u: c for u, c in state.military.units.items() if c > 0}
    print(f"Defense: {state.military.defense_value} | Threat: {state.military.threat_level:.1f}"
          + (f" | Units: {units}" if units else ""))

    if len(state.events):
        print("Log:")
        for entry in state.events:
            print(f"  [turn {entry.turn}] {entry.message}")
