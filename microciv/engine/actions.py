"""
Action definitions for the game.
Actions are plain instructions from the player; the reducer applies them to a Game.
"""

from dataclasses import dataclass, field


@dataclass
class Action:
    """Base action class. All actions have a type and a payload."""
    type: str  # e.g., "build", "research", "train_unit", "trade", "end_turn"
    payload: dict = field(default_factory=dict)  # Action-specific data


def build(building_type: str) -> Action:
    """
    Construct one building.
    Example: build("farm")
    """
    return Action(type="build", payload={"building_type": building_type})


def research(tech_id: str) -> Action:
    """Research a technology; completes immediately if affordable."""
    return Action(type="research", payload={"tech_id": tech_id})


def train_unit(unit_type: str) -> Action:
    """Train one military unit. Needs a barracks."""
    return Action(type="train_unit", payload={"unit_type": unit_type})


def change_terrain(terrain_id: str) -> Action:
    return Action(type="change_terrain", payload={"terrain_id": terrain_id})


def trade(index: int) -> Action:
    """Accept the merchant offer at `index` in the current trade options."""
    return Action(type="trade", payload={"index": index})


def generate_trade_options() -> Action:
    return Action(type="generate_trade_options", payload={})


def end_turn() -> Action:
    """
    End the turn: seasons, raids, random events, production and
    population are resolved in one step.
    """
    return Action(type="end_turn", payload={})
