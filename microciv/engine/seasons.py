"""
Seasons system.
Cycles spring -> summer -> autumn -> winter, advancing every season_length turns.
Each season scales production and re-weights random events.
"""

from typing import TYPE_CHECKING, Any

from microciv.engine.definitions import SeasonDefinition
from microciv.engine.events import season_changed, season_warning

if TYPE_CHECKING:
    from microciv.engine.game import Game


class SeasonsSystem:
    def __init__(self, game: "Game"):
        self.game = game

    @property
    def season_length(self) -> int:
        return self.game.definitions.season_length

    @property
    def current_season(self) -> str:
        return self.game.state.season.current

    @property
    def turns_in_season(self) -> int:
        return self.game.state.season.turns_in_season

    def get_current_season(self) -> SeasonDefinition:
        return self.game.definitions.seasons[self.game.state.season.current]

    def next_season_id(self) -> str:
        order = self.game.definitions.season_order
        current = self.game.state.season.current
        index = order.index(current) if current in order else -1
        return order[(index + 1) % len(order)]

    def production_modifier(self, resource: str) -> float:
        return self.get_current_season().modifiers.get(resource, 1.0)

    def process_turn(self) -> bool:
        """Count the turn against the current season. Returns True if the season changed."""
        season_state = self.game.state.season
        season_state.turns_in_season += 1
        if season_state.turns_in_season >= self.season_length:
            self.advance_season()
            season_state.turns_in_season = 0
            return True
        return False

    def advance_season(self) -> None:
        state = self.game.state
        state.season.current = self.next_season_id()
        season = self.get_current_season()
        state.add_event(season_changed(state.turn, season.name, season.description))
        self.apply_season_modifiers()

    def apply_season_modifiers(self) -> None:
        """Install the season's event weights and rebuild production with its multipliers."""
        self.game.state.season.event_weights = dict(self.get_current_season().event_weights)
        self.game.update_production()

    def get_current_season_info(self) -> dict[str, Any]:
        season = self.get_current_season()
        return {
            "id": season.id,
            "name": season.name,
            "description": season.description,
            "modifiers": dict(season.modifiers),
            "turns_remaining": self.season_length - self.turns_in_season,
        }

    def get_season_change_warning(self) -> dict[str, Any]:
        """Warn when the next end of turn flips the season."""
        if self.turns_in_season == self.season_length - 1:
            upcoming = self.game.definitions.seasons[self.next_season_id()]
            entry = season_warning(self.game.state.turn, upcoming.name, upcoming.description)
            return {"upcoming": True, "season": upcoming.id, "message": entry.message}
        return {"upcoming": False}
