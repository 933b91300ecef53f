"""
Terrain system.
Exactly one terrain profile is active. It scales production per resource and
carries optional defense and trade bonuses.
"""

from typing import TYPE_CHECKING, Any

from microciv.engine.definitions import TerrainDefinition
from microciv.engine.events import TERRAIN, unknown_identifier

if TYPE_CHECKING:
    from microciv.engine.game import Game


class TerrainSystem:
    def __init__(self, game: "Game"):
        self.game = game

    @property
    def current_terrain(self) -> str:
        return self.game.state.terrain

    def get_current_terrain(self) -> TerrainDefinition:
        return self.game.definitions.terrains[self.game.state.terrain]

    def production_modifier(self, resource: str) -> float:
        return self.get_current_terrain().modifiers.get(resource, 1.0)

    def sync_bonuses(self) -> None:
        """Copy the active terrain's defense and trade bonuses into the state."""
        terrain = self.get_current_terrain()
        self.game.state.military.terrain_defense_multiplier = terrain.defense_bonus
        self.game.state.trade_multiplier = terrain.trade_bonus

    def change_terrain(self, terrain_id: str) -> bool:
        """Switch the active terrain (expansion or migration). Recomputes production and defense."""
        state = self.game.state
        terrain = self.game.definitions.terrains.get(terrain_id)
        if terrain is None:
            state.add_event(unknown_identifier(state.turn, "terrain", terrain_id))
            return False

        state.terrain = terrain_id
        self.sync_bonuses()
        self.game.update_production()
        self.game.military_system.update_defense_value()
        state.log(f"Your people settled in the {terrain.name}. {terrain.description}", TERRAIN)
        return True

    def get_terrain_info(self) -> dict[str, Any]:
        terrain = self.get_current_terrain()
        return {
            "id": terrain.id,
            "name": terrain.name,
            "description": terrain.description,
            "modifiers": dict(terrain.modifiers),
            "defense_bonus": terrain.defense_bonus,
            "trade_bonus": terrain.trade_bonus,
        }

    def get_all_terrain_types(self) -> list[dict[str, str]]:
        return [
            {"id": tid, "name": t.name, "description": t.description}
            for tid, t in self.game.definitions.terrains.items()
        ]
