"""
Game orchestrator.
Owns the GameState data and every subsystem, runs the build and trade
transactions and advances the game one turn at a time.

Turn lifecycle: AWAITING_INPUT -> RESOLVING (inside end_turn) -> AWAITING_INPUT,
terminal WON once a win-condition building stands.
"""

import math
import random

from microciv.engine import MATERIAL_RESOURCES, RESOURCE_TYPES
from microciv.engine.definitions import BuildingDefinition, Definitions, load_static_definitions
from microciv.engine.effects import apply_building_effect, reverse_building_effect
from microciv.engine.events import (
    GENERAL,
    SEASON,
    TRADE,
    building_built,
    cannot_afford,
    housing_shortage,
    people_starved,
    population_grew,
    requirements_not_met,
    unknown_identifier,
    victory,
)
from microciv.engine.military import WIN_CONDITION_EFFECT, MilitarySystem
from microciv.engine.random_events import EventsSystem
from microciv.engine.seasons import SeasonsSystem
from microciv.engine.state import GameState, TradeOffer
from microciv.engine.technology import TechnologySystem
from microciv.engine.terrain import TerrainSystem
from microciv.engine.utils import initialize_game_state

AWAITING_INPUT = "awaiting_input"
RESOLVING = "resolving"
WON = "won"

TRADE_OFFER_COUNT = 3
TRADE_MIN_AMOUNT = 3
TRADE_MAX_AMOUNT = 8
TRADE_MIN_RATE = 0.8
TRADE_MAX_RATE = 1.5


class Game:
    """A running game: state data, its definitions, the subsystems and the RNG they share."""

    def __init__(self, state: GameState, definitions: Definitions, rng: random.Random | None = None):
        self.state = state
        self.definitions = definitions
        self.rng = rng if rng is not None else random.Random()

        self.terrain_system = TerrainSystem(self)
        self.seasons_system = SeasonsSystem(self)
        self.technology_system = TechnologySystem(self)
        self.military_system = MilitarySystem(self)
        self.events_system = EventsSystem(self)

        self.phase = WON if state.game_won else AWAITING_INPUT
        self.refresh()

    @classmethod
    def new_game(
        cls,
        definitions: Definitions | None = None,
        setup_id: str | None = None,
        terrain: str | None = None,
        seed: int | None = None,
        rng: random.Random | None = None,
    ) -> "Game":
        """Start a fresh game. Loads the setup's definitions unless they are passed in."""
        if definitions is None:
            definitions = load_static_definitions(setup_id=setup_id)
        if setup_id is None:
            from microciv.config import DEFAULT_SETUP_ID
            setup_id = DEFAULT_SETUP_ID
        if rng is None:
            rng = random.Random(seed)
        state = initialize_game_state(definitions, setup_id, terrain)
        return cls(state, definitions, rng)

    def refresh(self) -> None:
        """Rebuild every derived value (terrain bonuses, production, defense) from the state."""
        if self.state.terrain not in self.definitions.terrains:
            raise ValueError(f"Unknown terrain: {self.state.terrain}")
        if self.state.season.current not in self.definitions.seasons:
            raise ValueError(f"Unknown season: {self.state.season.current}")
        self.terrain_system.sync_bonuses()
        self.update_production()
        self.military_system.update_defense_value()

    # ===== Buildings =====

    def get_building(self, building_type: str) -> BuildingDefinition | None:
        return self.definitions.buildings.get(building_type)

    def get_building_cost(self, building_type: str) -> dict[str, float]:
        """Current cost of a building (technologies may have discounted it)."""
        cost = self.state.building_costs.get(building_type)
        if cost is None:
            building = self.get_building(building_type)
            return dict(building.cost) if building else {}
        return cost

    def can_afford(self, building_type: str) -> bool:
        if self.get_building(building_type) is None:
            return False
        return self.state.ledger.has(self.get_building_cost(building_type))

    def missing_requirements(self, building_type: str) -> list[str]:
        """Human-readable list of unmet requirements (empty when buildable)."""
        building = self.get_building(building_type)
        if building is None:
            return [f"a known building type (got {building_type})"]
        missing = []
        for tech_id in building.requires_tech:
            if not self.technology_system.is_researched(tech_id):
                tech = self.definitions.technologies.get(tech_id)
                missing.append(f"{tech.name if tech else tech_id} technology")
        for required_id, count in building.requires_buildings.items():
            if self.state.buildings.get(required_id, 0) < count:
                required = self.get_building(required_id)
                name = required.display_name if required else required_id
                missing.append(f"{count} {name}")
        return missing

    def meets_requirements(self, building_type: str) -> bool:
        return self.get_building(building_type) is not None and not self.missing_requirements(building_type)

    def build(self, building_type: str) -> bool:
        """
        Construct one building. Nothing but the log changes on failure.

        On success the cost is debited, the count raised, the one-shot effect
        applied and production and defense recomputed.
        """
        state = self.state
        building = self.get_building(building_type)
        if building is None:
            state.add_event(unknown_identifier(state.turn, "building type", building_type))
            return False

        cost = self.get_building_cost(building_type)
        shortfall = state.ledger.first_shortfall(cost)
        if shortfall is not None:
            state.add_event(cannot_afford(state.turn, building_type, shortfall))
            return False

        missing = self.missing_requirements(building_type)
        if missing:
            state.add_event(requirements_not_met(state.turn, building_type, missing))
            return False

        state.ledger.debit(cost)
        state.buildings[building_type] = state.buildings.get(building_type, 0) + 1
        apply_building_effect(state, building)
        state.add_event(building_built(state.turn, building_type))

        self.update_production()
        self.military_system.update_defense_value()
        if state.game_won:
            self.phase = WON
        return True

    def demolish_building(self, building_type: str) -> bool:
        """Remove one building, reversing its contribution. Used by raids and disasters."""
        state = self.state
        building = self.get_building(building_type)
        if building is None or state.buildings.get(building_type, 0) <= 0:
            return False
        state.buildings[building_type] -= 1
        reverse_building_effect(state, building)
        self.update_production()
        self.military_system.update_defense_value()
        self.enforce_housing()
        return True

    # ===== Production & Population =====

    def update_production(self) -> dict[str, float]:
        """
        Rebuild production rates from scratch:
        base + building output * count * multiplier, then terrain, then season.
        """
        state = self.state
        totals = {r: state.ledger.base_production.get(r, 0.0) for r in RESOURCE_TYPES}

        for building_id, count in state.buildings.items():
            building = self.get_building(building_id)
            if building is None or count <= 0 or not building.is_producer:
                continue
            multiplier = state.production_multipliers.get(building_id, 1.0)
            resource = building.produces_resource
            totals[resource] = totals.get(resource, 0.0) + building.produces_amount * count * multiplier

        for resource in totals:
            totals[resource] *= self.terrain_system.production_modifier(resource)
            totals[resource] *= self.seasons_system.production_modifier(resource)

        state.ledger.production = {r: max(0.0, amount) for r, amount in totals.items()}
        return state.ledger.production

    def enforce_housing(self) -> int:
        """Evict people above housing capacity. Returns how many left."""
        population = self.state.population
        if population.current <= population.capacity:
            return 0
        evicted = population.current - population.capacity
        population.current = population.capacity
        self.state.add_event(housing_shortage(self.state.turn, evicted))
        return evicted

    def _consume_food(self) -> None:
        state = self.state
        population = state.population
        per_person = population.food_consumption_per_person
        needed = population.food_needed
        food = state.ledger.get("food")

        if food >= needed:
            state.ledger.debit({"food": needed})
            if state.ledger.get("food") >= per_person and population.current < population.capacity:
                population.current += 1
                state.add_event(population_grew(state.turn))
        else:
            shortage = needed - food
            starving = math.ceil(shortage / per_person) if per_person > 0 else 0
            lost = min(starving, population.current - 1)
            if lost > 0:
                population.current -= lost
                state.add_event(people_starved(state.turn, lost))
            state.ledger.resources["food"] = 0.0

    # ===== Trade =====

    def generate_trade_options(self) -> list[TradeOffer]:
        """Replace the merchants' offers with fresh ones and flag a pending trade."""
        offers = []
        for _ in range(TRADE_OFFER_COUNT):
            give = self.rng.choice(MATERIAL_RESOURCES)
            receive = self.rng.choice([r for r in MATERIAL_RESOURCES if r != give])
            give_amount = self.rng.randint(TRADE_MIN_AMOUNT, TRADE_MAX_AMOUNT)
            rate = self.rng.uniform(TRADE_MIN_RATE, TRADE_MAX_RATE)
            receive_amount = max(1, math.floor(give_amount * rate * self.state.trade_multiplier))
            offers.append(TradeOffer(give, float(give_amount), receive, float(receive_amount)))
        self.state.trade_options = offers
        self.state.trade_pending = True
        return offers

    def trade(self, index: int) -> bool:
        """Accept the merchant offer at `index`."""
        state = self.state
        if not 0 <= index < len(state.trade_options):
            state.log(f"No trade offer #{index}", TRADE)
            return False

        offer = state.trade_options[index]
        if state.ledger.get(offer.give_resource) < offer.give_amount:
            state.add_event(cannot_afford(state.turn, "trade", offer.give_resource))
            return False

        state.ledger.debit({offer.give_resource: offer.give_amount})
        state.ledger.credit(offer.receive_resource, offer.receive_amount)
        del state.trade_options[index]
        if not state.trade_options:
            state.trade_pending = False
        state.log(
            f"Traded {offer.give_amount:g} {offer.give_resource} "
            f"for {offer.receive_amount:g} {offer.receive_resource}",
            TRADE,
        )
        return True

    # ===== Turn =====

    def has_won_condition(self) -> bool:
        return any(
            count > 0
            and building_id in self.definitions.buildings
            and self.definitions.buildings[building_id].effect.get("type") == WIN_CONDITION_EFFECT
            for building_id, count in self.state.buildings.items()
        )

    def end_turn(self) -> bool:
        """Resolve one turn. Returns False once the game is won."""
        state = self.state
        if state.game_won:
            state.log("The game is already won", GENERAL)
            return False

        self.phase = RESOLVING

        self.seasons_system.process_turn()
        self.update_production()
        self.technology_system.process_turn()
        self.military_system.process_turn()
        self.events_system.check_for_random_event()

        state.ledger.apply_production()
        state.ledger.clamp()

        self._consume_food()
        self.enforce_housing()
        state.ledger.clamp()

        state.turn += 1

        if self.has_won_condition() and not state.game_won:
            state.game_won = True
            state.add_event(victory(state.turn))

        warning = self.seasons_system.get_season_change_warning()
        if warning["upcoming"]:
            state.log(warning["message"], SEASON)

        self.phase = WON if state.game_won else AWAITING_INPUT
        return True
