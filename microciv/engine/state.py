"""
Game state representation.
State is mutated in place by the subsystems that own each part; derived values
(production, defense) are always recomputed from scratch.
Includes JSON serialization for API responses.
"""

import json
import math
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

from microciv.engine import RESOURCE_TYPES
from microciv.engine.events import EventLog, LogEntry


def _float_map(value: Any) -> dict[str, float]:
    """Parse a resource mapping; drops entries that are not numbers."""
    if not isinstance(value, dict):
        return {}
    out: dict[str, float] = {}
    for k, v in value.items():
        try:
            out[str(k)] = float(v)
        except (TypeError, ValueError):
            pass
    return out


def _int_map(value: Any) -> dict[str, int]:
    if not isinstance(value, dict):
        return {}
    out: dict[str, int] = {}
    for k, v in value.items():
        try:
            out[str(k)] = max(0, int(v))
        except (TypeError, ValueError):
            pass
    return out


def _ensure_str_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(x) for x in value]
    return []


@dataclass
class Population:
    """People, housing and how much each person eats per turn."""
    current: int = 2
    capacity: int = 4
    food_consumption_per_person: float = 1.0

    @property
    def food_needed(self) -> float:
        return self.current * self.food_consumption_per_person

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current,
            "capacity": self.capacity,
            "food_consumption_per_person": self.food_consumption_per_person,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Population":
        if not isinstance(data, dict):
            data = {}
        def _int(v: Any, d: int) -> int:
            try:
                return max(0, int(v)) if v is not None else d
            except (TypeError, ValueError):
                return d
        try:
            consumption = float(data.get("food_consumption_per_person", 1.0))
        except (TypeError, ValueError):
            consumption = 1.0
        return cls(
            current=_int(data.get("current"), 2),
            capacity=_int(data.get("capacity"), 4),
            food_consumption_per_person=consumption,
        )


@dataclass
class ResourceLedger:
    """Resource stocks, per-turn production and population."""
    resources: dict[str, float] = field(default_factory=lambda: {r: 0.0 for r in RESOURCE_TYPES})
    # Season- and terrain-independent rates; production is rebuilt from these
    base_production: dict[str, float] = field(default_factory=lambda: {r: 0.0 for r in RESOURCE_TYPES})
    production: dict[str, float] = field(default_factory=lambda: {r: 0.0 for r in RESOURCE_TYPES})
    population: Population = field(default_factory=Population)

    def clamp(self) -> None:
        """Restore the non-negative invariant on stocks and stored production."""
        for resource, amount in self.resources.items():
            if amount < 0:
                self.resources[resource] = 0.0
        for resource, amount in self.production.items():
            if amount < 0:
                self.production[resource] = 0.0
        if self.population.current < 0:
            self.population.current = 0
        if self.population.capacity < 0:
            self.population.capacity = 0

    def get(self, resource: str) -> float:
        return self.resources.get(resource, 0.0)

    def has(self, cost: dict[str, float]) -> bool:
        return all(self.get(resource) >= amount for resource, amount in cost.items())

    def first_shortfall(self, cost: dict[str, float]) -> str | None:
        """First resource in `cost` that the stock cannot cover, or None."""
        for resource, amount in cost.items():
            if self.get(resource) < amount:
                return resource
        return None

    def debit(self, cost: dict[str, float]) -> None:
        for resource, amount in cost.items():
            self.resources[resource] = max(0.0, self.get(resource) - amount)

    def credit(self, resource: str, amount: float) -> None:
        self.resources[resource] = max(0.0, self.get(resource) + amount)

    def total_resources(self) -> float:
        return sum(self.resources.values())

    def apply_production(self) -> None:
        """Add one turn of production to the stocks."""
        for resource, rate in self.production.items():
            self.credit(resource, rate)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resources": dict(self.resources),
            "base_production": dict(self.base_production),
            "production": dict(self.production),
            "population": self.population.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResourceLedger":
        if not isinstance(data, dict):
            data = {}
        ledger = cls(
            resources={r: 0.0 for r in RESOURCE_TYPES} | _float_map(data.get("resources")),
            base_production={r: 0.0 for r in RESOURCE_TYPES} | _float_map(data.get("base_production")),
            production={r: 0.0 for r in RESOURCE_TYPES} | _float_map(data.get("production")),
            population=Population.from_dict(data.get("population") or {}),
        )
        ledger.clamp()
        return ledger


@dataclass
class TechnologyState:
    """Researched technologies. A technology is either researched or not."""
    researched: list[str] = field(default_factory=list)

    def is_researched(self, tech_id: str) -> bool:
        return tech_id in self.researched

    def to_dict(self) -> dict[str, Any]:
        return {"researched": list(self.researched)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TechnologyState":
        if not isinstance(data, dict):
            data = {}
        return cls(researched=_ensure_str_list(data.get("researched")))


@dataclass
class RaidRecord:
    """Outcome of a single raid (for the raid history panel)."""
    turn: int
    strength: int
    defense: int
    success: bool  # True when the defense held
    losses: dict[str, Any] = field(default_factory=dict)  # resource -> amount, "population" -> n, "building" -> type

    def to_dict(self) -> dict[str, Any]:
        return {
            "turn": self.turn,
            "strength": self.strength,
            "defense": self.defense,
            "success": self.success,
            "losses": dict(self.losses),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RaidRecord":
        if not isinstance(data, dict):
            data = {}
        def _int(v: Any, d: int) -> int:
            try:
                return int(v) if v is not None else d
            except (TypeError, ValueError):
                return d
        losses = data.get("losses")
        return cls(
            turn=_int(data.get("turn"), 1),
            strength=_int(data.get("strength"), 0),
            defense=_int(data.get("defense"), 0),
            success=bool(data.get("success", False)),
            losses=dict(losses) if isinstance(losses, dict) else {},
        )


@dataclass
class MilitaryState:
    """Unit counts, defense aggregate and raid pressure."""
    units: dict[str, int] = field(default_factory=dict)  # unit_id -> count
    defense_value: int = 0
    terrain_defense_multiplier: float = 1.0
    # Grows every turn, drops after each raid
    threat_level: float = 0.0
    raid_chance: float = 0.1
    raid_history: list[RaidRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "units": dict(self.units),
            "defense_value": self.defense_value,
            "terrain_defense_multiplier": self.terrain_defense_multiplier,
            "threat_level": self.threat_level,
            "raid_chance": self.raid_chance,
            "raid_history": [r.to_dict() for r in self.raid_history],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MilitaryState":
        if not isinstance(data, dict):
            data = {}
        def _float(v: Any, d: float) -> float:
            try:
                return float(v) if v is not None else d
            except (TypeError, ValueError):
                return d
        history = data.get("raid_history") or []
        if not isinstance(history, list):
            history = []
        return cls(
            units=_int_map(data.get("units")),
            defense_value=int(_float(data.get("defense_value"), 0)),
            terrain_defense_multiplier=_float(data.get("terrain_defense_multiplier"), 1.0),
            threat_level=max(0.0, _float(data.get("threat_level"), 0.0)),
            raid_chance=_float(data.get("raid_chance"), 0.1),
            raid_history=[RaidRecord.from_dict(r) for r in history if isinstance(r, dict)],
        )


@dataclass
class SeasonState:
    """Position in the season cycle."""
    current: str = "spring"
    turns_in_season: int = 0
    # Random event id -> weight scale installed by the current season
    event_weights: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current,
            "turns_in_season": self.turns_in_season,
            "event_weights": dict(self.event_weights),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SeasonState":
        if not isinstance(data, dict):
            data = {}
        try:
            turns = max(0, int(data.get("turns_in_season", 0)))
        except (TypeError, ValueError):
            turns = 0
        return cls(
            current=str(data.get("current") or "spring"),
            turns_in_season=turns,
            event_weights=_float_map(data.get("event_weights")),
        )


@dataclass
class TradeOffer:
    """A merchant offer: give `give_amount` of one resource for `receive_amount` of another."""
    give_resource: str
    give_amount: float
    receive_resource: str
    receive_amount: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "give_resource": self.give_resource,
            "give_amount": self.give_amount,
            "receive_resource": self.receive_resource,
            "receive_amount": self.receive_amount,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TradeOffer":
        if not isinstance(data, dict):
            data = {}
        def _float(v: Any) -> float:
            try:
                return max(0.0, float(v))
            except (TypeError, ValueError):
                return 0.0
        return cls(
            give_resource=str(data.get("give_resource") or "food"),
            give_amount=_float(data.get("give_amount")),
            receive_resource=str(data.get("receive_resource") or "wood"),
            receive_amount=_float(data.get("receive_amount")),
        )


@dataclass
class GameState:
    """Complete game state."""
    setup_id: str
    ledger: ResourceLedger
    # building_id -> owned count
    buildings: dict[str, int]
    # building_id -> {resource -> amount}; technologies can discount these
    building_costs: dict[str, dict[str, float]]
    # building_id -> production multiplier raised by technologies
    production_multipliers: dict[str, float]
    terrain: str
    turn: int = 1
    # Monotonic: once True it stays True until the state is replaced
    game_won: bool = False
    # building_id -> extra capacity each building of that type provides (granted by technologies)
    capacity_bonuses: dict[str, int] = field(default_factory=dict)
    technology: TechnologyState = field(default_factory=TechnologyState)
    military: MilitaryState = field(default_factory=MilitaryState)
    season: SeasonState = field(default_factory=SeasonState)
    trade_options: list[TradeOffer] = field(default_factory=list)
    # True after a Trade Caravan arrives, until its offers are used or replaced
    trade_pending: bool = False
    trade_multiplier: float = 1.0
    events: EventLog = field(default_factory=EventLog)

    @property
    def resources(self) -> dict[str, float]:
        return self.ledger.resources

    @property
    def production(self) -> dict[str, float]:
        return self.ledger.production

    @property
    def population(self) -> Population:
        return self.ledger.population

    def total_buildings(self) -> int:
        return sum(self.buildings.values())

    def add_event(self, entry: LogEntry) -> LogEntry:
        return self.events.append(entry)

    def log(self, message: str, category: str = "general") -> LogEntry:
        return self.events.append(LogEntry(self.turn, message, category))

    def copy(self) -> "GameState":
        """Return a deep copy of this game state."""
        return deepcopy(self)

    # ===== Serialization Methods =====

    def to_dict(self) -> dict[str, Any]:
        """Convert GameState to a dictionary for JSON serialization."""
        return {
            "setup_id": self.setup_id,
            "turn": self.turn,
            "game_won": self.game_won,
            **self.ledger.to_dict(),
            "buildings": dict(self.buildings),
            "building_costs": {b: dict(c) for b, c in self.building_costs.items()},
            "production_multipliers": dict(self.production_multipliers),
            "capacity_bonuses": dict(self.capacity_bonuses),
            "terrain": self.terrain,
            "technology": self.technology.to_dict(),
            "military": self.military.to_dict(),
            "season": self.season.to_dict(),
            "trade_options": [o.to_dict() for o in self.trade_options],
            "trade_pending": self.trade_pending,
            "trade_multiplier": self.trade_multiplier,
            "events": self.events.to_list(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameState":
        """Create GameState from a dictionary (handles missing/None fields)."""
        if not isinstance(data, dict):
            data = {}
        costs = data.get("building_costs") or {}
        if not isinstance(costs, dict):
            costs = {}
        offers = data.get("trade_options") or []
        if not isinstance(offers, list):
            offers = []
        try:
            turn = max(1, int(data.get("turn", 1)))
        except (TypeError, ValueError):
            turn = 1
        try:
            trade_multiplier = float(data.get("trade_multiplier", 1.0))
        except (TypeError, ValueError):
            trade_multiplier = 1.0
        if not math.isfinite(trade_multiplier):
            trade_multiplier = 1.0
        return cls(
            setup_id=str(data.get("setup_id") or "classic"),
            ledger=ResourceLedger.from_dict(data),
            buildings=_int_map(data.get("buildings")),
            building_costs={str(b): _float_map(c) for b, c in costs.items()},
            production_multipliers=_float_map(data.get("production_multipliers")),
            terrain=str(data.get("terrain") or "plains"),
            turn=turn,
            game_won=bool(data.get("game_won", False)),
            capacity_bonuses=_int_map(data.get("capacity_bonuses")),
            technology=TechnologyState.from_dict(data.get("technology") or {}),
            military=MilitaryState.from_dict(data.get("military") or {}),
            season=SeasonState.from_dict(data.get("season") or {}),
            trade_options=[TradeOffer.from_dict(o) for o in offers if isinstance(o, dict)],
            trade_pending=bool(data.get("trade_pending", False)),
            trade_multiplier=trade_multiplier,
            events=EventLog.from_list(data.get("events")),
        )

    def to_json(self, indent: int = 2) -> str:
        """Serialize GameState to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "GameState":
        """Deserialize GameState from a JSON string."""
        return cls.from_dict(json.loads(json_str))
