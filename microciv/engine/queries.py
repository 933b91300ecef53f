"""
Query functions for UI integration.
These functions help the UI understand what actions are available
without mutating game state.
"""

from dataclasses import dataclass
from typing import Any

from microciv.engine.actions import Action
from microciv.engine.events import BUILD, MILITARY, RESEARCH, TERRAIN, TRADE
from microciv.engine.game import Game

ACTION_TYPES = (
    "build",
    "research",
    "train_unit",
    "change_terrain",
    "trade",
    "generate_trade_options",
    "end_turn",
)

# Payload field each action type needs, and its type
ACTION_PAYLOAD_FIELDS = {
    "build": ("building_type", str),
    "research": ("tech_id", str),
    "train_unit": ("unit_type", str),
    "change_terrain": ("terrain_id", str),
    "trade": ("index", int),
}

# Log category a rejected action is recorded under
ACTION_CATEGORIES = {
    "build": BUILD,
    "research": RESEARCH,
    "train_unit": MILITARY,
    "change_terrain": TERRAIN,
    "trade": TRADE,
    "generate_trade_options": TRADE,
}


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error}


# ===== Action Validation =====

def validate_action(game: Game, action: Action) -> ValidationResult:
    """
    Validate an action without applying it.
    Returns ValidationResult with valid=True or valid=False with error message.
    """
    if action.type not in ACTION_TYPES:
        return ValidationResult(False, f"Unknown action type: {action.type}")

    # Check if game is over
    if game.state.game_won:
        return ValidationResult(False, "The game is already won")

    required_field = ACTION_PAYLOAD_FIELDS.get(action.type)
    value: Any = None
    if required_field is not None:
        key, kind = required_field
        value = action.payload.get(key) if isinstance(action.payload, dict) else None
        if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
            return ValidationResult(False, f"Action '{action.type}' requires {kind.__name__} field '{key}'")

    if action.type == "build":
        return _validate_build(game, value)
    if action.type == "research":
        return _validate_research(game, value)
    if action.type == "train_unit":
        return _validate_train_unit(game, value)
    if action.type == "change_terrain":
        if value not in game.definitions.terrains:
            return ValidationResult(False, f"Unknown terrain: {value}")
        return ValidationResult(True)
    if action.type == "trade":
        return _validate_trade(game, value)
    return ValidationResult(True)


def _validate_build(game: Game, building_type: str) -> ValidationResult:
    if game.get_building(building_type) is None:
        return ValidationResult(False, f"Unknown building type: {building_type}")
    shortfall = game.state.ledger.first_shortfall(game.get_building_cost(building_type))
    if shortfall is not None:
        return ValidationResult(False, f"Cannot afford {building_type} - need more {shortfall}")
    missing = game.missing_requirements(building_type)
    if missing:
        return ValidationResult(False, f"Cannot build {building_type} - requires {', '.join(missing)}")
    return ValidationResult(True)


def _validate_research(game: Game, tech_id: str) -> ValidationResult:
    technology = game.technology_system
    tech = technology.technologies.get(tech_id)
    if tech is None:
        return ValidationResult(False, f"Unknown technology: {tech_id}")
    if technology.is_researched(tech_id):
        return ValidationResult(False, f"{tech.name} already researched")
    if not technology.prerequisites_met(tech_id):
        return ValidationResult(False, f"Missing prerequisites for {tech.name}")
    if game.state.ledger.get("science") < tech.cost:
        return ValidationResult(False, f"Not enough science points to research {tech.name}")
    return ValidationResult(True)


def _validate_train_unit(game: Game, unit_type: str) -> ValidationResult:
    unit_def = game.definitions.units.get(unit_type)
    if unit_def is None:
        return ValidationResult(False, f"Unknown unit type: {unit_type}")
    if game.state.buildings.get("barracks", 0) <= 0:
        return ValidationResult(False, f"Cannot train {unit_type} - need to build a barracks first")
    shortfall = game.state.ledger.first_shortfall(unit_def.cost)
    if shortfall is not None:
        return ValidationResult(False, f"Cannot afford {unit_type} - need more {shortfall}")
    return ValidationResult(True)


def _validate_trade(game: Game, index: int) -> ValidationResult:
    options = game.state.trade_options
    if not 0 <= index < len(options):
        return ValidationResult(False, f"No trade offer #{index}")
    offer = options[index]
    if game.state.ledger.get(offer.give_resource) < offer.give_amount:
        return ValidationResult(False, f"Cannot afford trade - need more {offer.give_resource}")
    return ValidationResult(True)


# ===== Snapshots =====

def get_building_cards(game: Game) -> list[dict[str, Any]]:
    """One card per building type: cost, count and whether it can be built right now."""
    cards = []
    for building_id, building in game.definitions.buildings.items():
        cards.append({
            "id": building_id,
            "display_name": building.display_name,
            "description": building.description,
            "count": game.state.buildings.get(building_id, 0),
            "cost": dict(game.get_building_cost(building_id)),
            "can_afford": game.can_afford(building_id),
            "meets_requirements": game.meets_requirements(building_id),
            "missing_requirements": game.missing_requirements(building_id),
        })
    return cards


def get_trade_snapshot(game: Game) -> dict[str, Any]:
    state = game.state
    return {
        "pending": state.trade_pending,
        "multiplier": state.trade_multiplier,
        "offers": [
            {
                **offer.to_dict(),
                "index": i,
                "affordable": state.ledger.get(offer.give_resource) >= offer.give_amount,
            }
            for i, offer in enumerate(state.trade_options)
        ],
    }


def get_available_actions(game: Game) -> dict[str, Any]:
    """
    Everything the player could do right now.
    Returns buildable buildings, researchable technologies, trainable units,
    affordable trade offers and whether the turn can be ended.
    """
    if game.state.game_won:
        return {
            "game_won": True,
            "buildings": [],
            "technologies": [],
            "units": [],
            "trades": [],
            "can_end_turn": False,
        }
    return {
        "game_won": False,
        "buildings": [
            b for b in game.definitions.buildings
            if game.can_afford(b) and game.meets_requirements(b)
        ],
        "technologies": [
            t["id"] for t in game.technology_system.get_available_technologies()
            if game.state.ledger.get("science") >= t["cost"]
        ],
        "units": [
            u for u in game.definitions.units
            if _validate_train_unit(game, u).valid
        ],
        "trades": [
            i for i in range(len(game.state.trade_options))
            if _validate_trade(game, i).valid
        ],
        "can_end_turn": True,
    }


def get_game_summary(game: Game) -> dict[str, Any]:
    """Full snapshot the UI renders after every action."""
    return {
        "state": game.state.to_dict(),
        "phase": game.phase,
        "buildings": get_building_cards(game),
        "technologies": game.technology_system.get_technology_tree(),
        "available_technologies": game.technology_system.get_available_technologies(),
        "military": game.military_system.get_military_info(),
        "season": {
            **game.seasons_system.get_current_season_info(),
            "warning": game.seasons_system.get_season_change_warning(),
        },
        "terrain": game.terrain_system.get_terrain_info(),
        "terrain_types": game.terrain_system.get_all_terrain_types(),
        "trade": get_trade_snapshot(game),
    }
