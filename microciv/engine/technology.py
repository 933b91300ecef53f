"""
Technology system.
Research completes immediately: the full science cost is paid up front and the
effect is applied in the same call. A technology's effect fires exactly once.
"""

from typing import TYPE_CHECKING, Any

from microciv.engine.definitions import TechnologyDefinition
from microciv.engine.effects import apply_technology_effect
from microciv.engine.events import RESEARCH, research_complete, unknown_identifier

if TYPE_CHECKING:
    from microciv.engine.game import Game


class TechnologySystem:
    def __init__(self, game: "Game"):
        self.game = game

    @property
    def technologies(self) -> dict[str, TechnologyDefinition]:
        return self.game.definitions.technologies

    @property
    def researched(self) -> list[str]:
        return self.game.state.technology.researched

    def is_researched(self, tech_id: str) -> bool:
        return self.game.state.technology.is_researched(tech_id)

    def prerequisites_met(self, tech_id: str) -> bool:
        tech = self.technologies.get(tech_id)
        if tech is None:
            return False
        return all(self.is_researched(p) for p in tech.prereqs)

    def get_available_technologies(self) -> list[dict[str, Any]]:
        """Technologies not yet researched whose prerequisites are all researched."""
        return [
            {"id": tid, "name": tech.name, "cost": tech.cost, "description": tech.description}
            for tid, tech in self.technologies.items()
            if not self.is_researched(tid) and self.prerequisites_met(tid)
        ]

    def get_technology_tree(self) -> list[dict[str, Any]]:
        """Every technology with its research status, for the tech tree view."""
        tree = []
        for tid, tech in self.technologies.items():
            if self.is_researched(tid):
                status = "researched"
            elif self.prerequisites_met(tid):
                status = "available"
            else:
                status = "locked"
            tree.append({
                "id": tid,
                "name": tech.name,
                "cost": tech.cost,
                "description": tech.description,
                "prereqs": list(tech.prereqs),
                "status": status,
            })
        return tree

    def start_research(self, tech_id: str) -> bool:
        """Research a technology, paying its science cost. Fails without mutation on any unmet condition."""
        state = self.game.state
        tech = self.technologies.get(tech_id)
        if tech is None:
            state.add_event(unknown_identifier(state.turn, "technology", tech_id))
            return False

        if self.is_researched(tech_id):
            state.log(f"{tech.name} already researched", RESEARCH)
            return False

        if not self.prerequisites_met(tech_id):
            missing = [
                self.technologies[p].name if p in self.technologies else p
                for p in tech.prereqs
                if not self.is_researched(p)
            ]
            state.log(f"Missing prerequisites for {tech.name}: {', '.join(missing)}", RESEARCH)
            return False

        if state.ledger.get("science") < tech.cost:
            state.log(f"Not enough science points to research {tech.name}", RESEARCH)
            return False

        state.ledger.debit({"science": tech.cost})
        self._complete(tech)
        return True

    def _complete(self, tech: TechnologyDefinition) -> None:
        state = self.game.state
        if self.is_researched(tech.id):
            return
        state.technology.researched.append(tech.id)
        apply_technology_effect(state, tech)
        if tech.message:
            state.log(tech.message, RESEARCH)
        state.add_event(research_complete(state.turn, tech.name))
        self.game.update_production()

    def process_turn(self) -> None:
        """Nothing accrues between turns; research completes when started."""
        return None
