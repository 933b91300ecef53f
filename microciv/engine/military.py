"""
Military system.
Units and defensive buildings aggregate into a single defense value.
Threat grows every turn with prosperity; each turn one roll decides whether raiders attack.

Raid resolution:
- raid strength = floor((10 + threat * 0.8 + turn * 0.5) * uniform[0.8, 1.2])
- defense >= strength: raid repelled, 30% chance of loot from the raiders
- otherwise severity = min(1, (strength - defense) / strength) drives proportional
  resource and population losses and a chance to lose one building
Every draw is final; nothing is retried or rolled back.
"""

import math
from typing import TYPE_CHECKING, Any

from microciv.engine import MATERIAL_RESOURCES
from microciv.engine.definitions import UnitDefinition
from microciv.engine.events import MILITARY, RAID, cannot_afford, unknown_identifier
from microciv.engine.state import RaidRecord

if TYPE_CHECKING:
    from microciv.engine.game import Game

WIN_CONDITION_EFFECT = "victory"


class MilitarySystem:
    def __init__(self, game: "Game"):
        self.game = game

    @property
    def units(self) -> dict[str, int]:
        return self.game.state.military.units

    @property
    def unit_definitions(self) -> dict[str, UnitDefinition]:
        return self.game.definitions.units

    @property
    def defense_value(self) -> int:
        return self.game.state.military.defense_value

    @property
    def threat_level(self) -> float:
        return self.game.state.military.threat_level

    def train_unit(self, unit_type: str) -> bool:
        """Train one unit. Requires a barracks and the unit's full cost."""
        state = self.game.state
        unit_def = self.unit_definitions.get(unit_type)
        if unit_def is None:
            state.add_event(unknown_identifier(state.turn, "unit type", unit_type))
            return False

        if state.buildings.get("barracks", 0) <= 0:
            state.log(f"Cannot train {unit_type} - need to build a barracks first", MILITARY)
            return False

        shortfall = state.ledger.first_shortfall(unit_def.cost)
        if shortfall is not None:
            state.add_event(cannot_afford(state.turn, unit_type, shortfall))
            return False

        state.ledger.debit(unit_def.cost)
        self.units[unit_type] = self.units.get(unit_type, 0) + 1
        state.log(f"Trained a new {unit_type}", MILITARY)
        self.update_defense_value()
        return True

    def update_defense_value(self) -> int:
        """Recompute defense from buildings, units and the terrain multiplier."""
        state = self.game.state
        defense = 0
        for building_id, count in state.buildings.items():
            building = self.game.definitions.buildings.get(building_id)
            if building and count > 0:
                defense += building.defense * count

        for unit_id, count in self.units.items():
            unit_def = self.unit_definitions.get(unit_id)
            if unit_def:
                defense += count * unit_def.defense

        defense = math.floor(defense * state.military.terrain_defense_multiplier)
        state.military.defense_value = defense
        return defense

    def prosperity_factor(self) -> float:
        state = self.game.state
        return (
            state.population.current
            + state.total_buildings()
            + state.ledger.total_resources() / 10
        ) / 10

    def raid_probability(self) -> float:
        settings = self.game.definitions.military
        military = self.game.state.military
        return min(settings.max_raid_probability, military.raid_chance + military.threat_level / 100)

    def process_turn(self) -> RaidRecord | None:
        """Accrue threat and roll for a raid. Returns the raid record if one happened."""
        settings = self.game.definitions.military
        military = self.game.state.military
        military.threat_level += settings.threat_per_turn + self.prosperity_factor() * settings.prosperity_threat_factor

        if self.game.rng.random() < self.raid_probability():
            return self.conduct_raid()
        return None

    def conduct_raid(self) -> RaidRecord:
        """Resolve a raid against the current defense value."""
        game = self.game
        state = game.state
        rng = game.rng
        settings = game.definitions.military
        military = state.military

        base_strength = 10 + military.threat_level * 0.8 + state.turn * 0.5
        raid_strength = math.floor(base_strength * (0.8 + rng.random() * 0.4))
        defense_strength = military.defense_value
        defense_success = defense_strength >= raid_strength

        losses: dict[str, Any] = {}

        if defense_success:
            message = (
                f"Raid repelled! Your defense ({defense_strength}) "
                f"withstood the attack ({raid_strength})."
            )
            if rng.random() < settings.loot_chance:
                loot = math.floor(3 + raid_strength / 5)
                resource = rng.choice(MATERIAL_RESOURCES)
                state.ledger.credit(resource, loot)
                message += f" Gained {loot} {resource} from the defeated raiders."
        else:
            # raid_strength > defense_strength >= 0 here, so the division is safe
            severity = min(1.0, (raid_strength - defense_strength) / raid_strength)

            for resource in MATERIAL_RESOURCES:
                stock = state.ledger.get(resource)
                if stock > 0:
                    loss = math.floor(stock * severity * 0.5)
                    if loss > 0:
                        state.ledger.debit({resource: loss})
                        losses[resource] = loss

            if state.population.current > 1:
                pop_loss = math.floor(state.population.current * severity * 0.3)
                if pop_loss > 0:
                    state.population.current -= pop_loss
                    losses["population"] = pop_loss

            candidates = self.demolition_candidates()
            if candidates and rng.random() < severity:
                building_type = rng.choice(candidates)
                game.demolish_building(building_type)
                losses["building"] = building_type

            message = (
                f"Raid successful! Your defense ({defense_strength}) "
                f"was overwhelmed by the attack ({raid_strength})."
            )
            if losses:
                parts = []
                for key, amount in losses.items():
                    if key == "building":
                        parts.append(f"1 {amount}")
                    else:
                        parts.append(f"{amount} {key}")
                message += " Losses: " + ", ".join(parts) + "."

        record = RaidRecord(
            turn=state.turn,
            strength=raid_strength,
            defense=defense_strength,
            success=defense_success,
            losses=losses,
        )
        military.raid_history.append(record)
        state.log(f"RAID ALERT: {message}", RAID)

        military.threat_level = max(0.0, military.threat_level - settings.threat_decay_after_raid)
        return record

    def demolition_candidates(self) -> list[str]:
        """Owned building types raiders and disasters can destroy (never the win-condition building)."""
        buildings = self.game.definitions.buildings
        return [
            building_id
            for building_id, count in self.game.state.buildings.items()
            if count > 0
            and building_id in buildings
            and buildings[building_id].effect.get("type") != WIN_CONDITION_EFFECT
        ]

    def get_military_info(self) -> dict[str, Any]:
        military = self.game.state.military
        return {
            "units": dict(self.units),
            "unit_types": [
                {
                    "id": u.id,
                    "display_name": u.display_name,
                    "attack": u.attack,
                    "defense": u.defense,
                    "cost": dict(u.cost),
                    "count": self.units.get(u.id, 0),
                }
                for u in self.unit_definitions.values()
            ],
            "defense_value": military.defense_value,
            "threat_level": round(military.threat_level, 2),
            "raid_probability": round(self.raid_probability(), 3),
            "can_train": self.game.state.buildings.get("barracks", 0) > 0,
            "raid_history": [r.to_dict() for r in military.raid_history],
        }
