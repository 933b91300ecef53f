"""
Static definitions for buildings, technologies, terrains, seasons, units and random events.
All setup data lives under data/setups/<setup_id>/: buildings.json, technologies.json,
terrains.json, seasons.json, units.json, random_events.json, military.json, resources.json
and optional manifest.json (display_name, default_terrain).
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

DATA_DIR = Path(__file__).parent.parent / "data"
SETUPS_DIR = DATA_DIR / "setups"


def _default_setup_id() -> str:
    """Single place for default: microciv.config.DEFAULT_SETUP_ID."""
    from microciv.config import DEFAULT_SETUP_ID
    return DEFAULT_SETUP_ID


def _setup_dir(setup_id: str) -> Path:
    return SETUPS_DIR / setup_id


def _read_manifest(setup_dir: Path) -> dict:
    """Manifest summary for a setup directory; an unreadable or missing manifest falls back to the directory name."""
    summary = {"id": setup_dir.name, "display_name": setup_dir.name, "default_terrain": None}
    manifest_path = setup_dir / "manifest.json"
    if not manifest_path.exists():
        return summary
    try:
        manifest = json.loads(manifest_path.read_text())
    except (json.JSONDecodeError, OSError):
        return summary
    summary.update({k: manifest[k] for k in summary if k in manifest})
    return summary


def list_setups() -> list[dict]:
    """Return [{ id, display_name, default_terrain }, ...] for every setup directory holding buildings.json."""
    if not SETUPS_DIR.is_dir():
        return []
    return [
        _read_manifest(d)
        for d in sorted(SETUPS_DIR.iterdir())
        if d.is_dir() and (d / "buildings.json").exists()
    ]


def load_setup(setup_id: str) -> dict:
    """Load setup manifest by id. Returns { id, display_name, default_terrain }."""
    setup_dir = _setup_dir(setup_id)
    if not setup_dir.is_dir():
        raise FileNotFoundError(f"Setup not found: {setup_id}")
    if not (setup_dir / "buildings.json").exists():
        raise FileNotFoundError(f"buildings.json not found in setup: {setup_id}")
    return _read_manifest(setup_dir)


@dataclass
class BuildingDefinition:
    """Defines immutable properties of a building type."""
    id: str
    display_name: str
    description: str
    cost: dict[str, float]  # e.g., {"wood": 5, "stone": 3}
    # Tagged effect applied once per construction: {"type": "capacity", "amount": 2}
    effect: dict[str, Any]
    produces_resource: Optional[str] = None
    produces_amount: float = 0.0
    defense: int = 0
    requires_tech: list[str] = field(default_factory=list)
    requires_buildings: dict[str, int] = field(default_factory=dict)

    @property
    def is_producer(self) -> bool:
        return self.produces_resource is not None and self.produces_amount > 0


@dataclass
class TechnologyDefinition:
    """Defines a node in the technology tree."""
    id: str
    name: str
    cost: float  # science points
    description: str
    prereqs: list[str]
    effect: dict[str, Any]  # {"type": "production_multiplier", "building": "farm", "factor": 1.5}
    message: str = ""


@dataclass
class TerrainDefinition:
    """Defines a terrain profile."""
    id: str
    name: str
    description: str
    modifiers: dict[str, float]  # resource -> production multiplier
    defense_bonus: float = 1.0
    trade_bonus: float = 1.0


@dataclass
class SeasonDefinition:
    """Defines a season in the yearly cycle."""
    id: str
    name: str
    description: str
    modifiers: dict[str, float]  # resource -> production multiplier
    event_weights: dict[str, float] = field(default_factory=dict)  # random event id -> weight scale


@dataclass
class UnitDefinition:
    """Defines immutable properties of a military unit type."""
    id: str
    display_name: str
    attack: int
    defense: int
    cost: dict[str, float]


@dataclass
class RandomEventDefinition:
    """Catalog entry for a random event. Conditions and effects are looked up by id."""
    id: str
    name: str
    description: str
    weight: float


@dataclass
class MilitarySettings:
    """Tuning for threat accrual and raids."""
    raid_chance: float = 0.1
    max_raid_probability: float = 0.7
    threat_per_turn: float = 0.5
    prosperity_threat_factor: float = 0.2
    threat_decay_after_raid: float = 10.0
    loot_chance: float = 0.3


@dataclass
class Definitions:
    """Every catalog for one setup."""
    buildings: dict[str, BuildingDefinition]
    technologies: dict[str, TechnologyDefinition]
    terrains: dict[str, TerrainDefinition]
    seasons: dict[str, SeasonDefinition]
    season_order: list[str]
    season_length: int
    units: dict[str, UnitDefinition]
    random_events: list[RandomEventDefinition]
    event_chance: float
    military: MilitarySettings
    # Starting stocks, base production, population and buildings (resources.json)
    starting: dict[str, Any]
    default_terrain: str

    def to_dict(self) -> dict[str, Any]:
        """Snapshot suitable for definitions_from_snapshot and for the UI."""
        return {
            "buildings": {k: asdict(v) for k, v in self.buildings.items()},
            "technologies": {k: asdict(v) for k, v in self.technologies.items()},
            "terrains": {k: asdict(v) for k, v in self.terrains.items()},
            "seasons": {
                "season_length": self.season_length,
                "order": list(self.season_order),
                "seasons": {k: asdict(v) for k, v in self.seasons.items()},
            },
            "units": {k: asdict(v) for k, v in self.units.items()},
            "random_events": {
                "event_chance": self.event_chance,
                "events": [asdict(e) for e in self.random_events],
            },
            "military": asdict(self.military),
            "resources": self.starting,
            "default_terrain": self.default_terrain,
        }


def _building_from_dict(data: dict) -> BuildingDefinition:
    # Loaded JSON nests production and requirements; snapshots store them flat
    produces = data.get("produces") or {}
    requires = data.get("requires") or {}
    return BuildingDefinition(
        id=data["id"],
        display_name=data["display_name"],
        description=data.get("description", ""),
        cost={k: float(v) for k, v in data["cost"].items()},
        effect=dict(data.get("effect") or {"type": "none"}),
        produces_resource=data.get("produces_resource", produces.get("resource")),
        produces_amount=float(data.get("produces_amount", produces.get("amount", 0.0))),
        defense=int(data.get("defense", 0)),
        requires_tech=list(data.get("requires_tech", requires.get("tech", []))),
        requires_buildings=dict(data.get("requires_buildings", requires.get("buildings", {}))),
    )


def _technology_from_dict(data: dict) -> TechnologyDefinition:
    return TechnologyDefinition(
        id=data["id"],
        name=data["name"],
        cost=float(data["cost"]),
        description=data.get("description", ""),
        prereqs=list(data.get("prereqs", [])),
        effect=dict(data.get("effect") or {"type": "none"}),
        message=data.get("message", ""),
    )


def _terrain_from_dict(data: dict) -> TerrainDefinition:
    return TerrainDefinition(
        id=data["id"],
        name=data["name"],
        description=data.get("description", ""),
        modifiers={k: float(v) for k, v in data["modifiers"].items()},
        defense_bonus=float(data.get("defense_bonus", 1.0)),
        trade_bonus=float(data.get("trade_bonus", 1.0)),
    )


def _season_from_dict(data: dict) -> SeasonDefinition:
    return SeasonDefinition(
        id=data["id"],
        name=data["name"],
        description=data.get("description", ""),
        modifiers={k: float(v) for k, v in data["modifiers"].items()},
        event_weights={k: float(v) for k, v in (data.get("event_weights") or {}).items()},
    )


def _unit_from_dict(data: dict) -> UnitDefinition:
    return UnitDefinition(
        id=data["id"],
        display_name=data["display_name"],
        attack=int(data["attack"]),
        defense=int(data["defense"]),
        cost={k: float(v) for k, v in data["cost"].items()},
    )


def _random_event_from_dict(data: dict) -> RandomEventDefinition:
    return RandomEventDefinition(
        id=data["id"],
        name=data["name"],
        description=data.get("description", ""),
        weight=float(data["weight"]),
    )


def _build_definitions(
    buildings_data: dict,
    technologies_data: dict,
    terrains_data: dict,
    seasons_data: dict,
    units_data: dict,
    events_data: dict,
    military_data: dict,
    resources_data: dict,
    default_terrain: str | None,
) -> Definitions:
    seasons = {sid: _season_from_dict(s) for sid, s in (seasons_data.get("seasons") or {}).items()}
    season_order = list(seasons_data.get("order") or seasons.keys())
    for season_id in season_order:
        if season_id not in seasons:
            raise ValueError(f"Season order references unknown season: {season_id}")

    terrains = {tid: _terrain_from_dict(t) for tid, t in terrains_data.items()}
    if not terrains:
        raise ValueError("At least one terrain must be defined")
    if default_terrain not in terrains:
        default_terrain = next(iter(terrains))

    military = MilitarySettings(**{
        k: float(v) for k, v in (military_data or {}).items()
        if k in MilitarySettings.__dataclass_fields__
    })

    return Definitions(
        buildings={bid: _building_from_dict(b) for bid, b in buildings_data.items()},
        technologies={tid: _technology_from_dict(t) for tid, t in technologies_data.items()},
        terrains=terrains,
        seasons=seasons,
        season_order=season_order,
        season_length=int(seasons_data.get("season_length", 3)),
        units={uid: _unit_from_dict(u) for uid, u in units_data.items()},
        random_events=[_random_event_from_dict(e) for e in (events_data.get("events") or [])],
        event_chance=float(events_data.get("event_chance", 0.3)),
        military=military,
        starting=dict(resources_data or {}),
        default_terrain=default_terrain,
    )


def load_static_definitions(
    data_dir: Path | str | None = None,
    setup_id: str | None = None,
) -> Definitions:
    """
    Load static definitions for one setup.

    Args:
        data_dir: Path to a directory containing the setup JSON files.
        setup_id: If set, use data/setups/<setup_id>/ (ignored if data_dir is set).
            Neither given = default setup from microciv.config.

    Returns: Definitions bundle
    """
    if data_dir is not None:
        data_dir = Path(data_dir)
    else:
        data_dir = _setup_dir(setup_id if setup_id is not None else _default_setup_id())
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Setup directory not found: {data_dir}")

    def _read(name: str, required: bool = True) -> dict:
        path = data_dir / name
        if not path.exists():
            if required:
                raise FileNotFoundError(f"{name} not found in {data_dir}")
            return {}
        with open(path, "r") as f:
            return json.load(f)

    manifest = _read("manifest.json", required=False)
    return _build_definitions(
        buildings_data=_read("buildings.json"),
        technologies_data=_read("technologies.json"),
        terrains_data=_read("terrains.json"),
        seasons_data=_read("seasons.json"),
        units_data=_read("units.json"),
        events_data=_read("random_events.json", required=False),
        military_data=_read("military.json", required=False),
        resources_data=_read("resources.json"),
        default_terrain=manifest.get("default_terrain"),
    )


def definitions_from_snapshot(snapshot: dict) -> Definitions:
    """
    Rebuild Definitions from a snapshot produced by Definitions.to_dict().
    Snapshots store building production and requirements flat rather than nested.
    """
    return _build_definitions(
        buildings_data=snapshot.get("buildings") or {},
        technologies_data=snapshot.get("technologies") or {},
        terrains_data=snapshot.get("terrains") or {},
        seasons_data=snapshot.get("seasons") or {},
        units_data=snapshot.get("units") or {},
        events_data=snapshot.get("random_events") or {},
        military_data=snapshot.get("military") or {},
        resources_data=snapshot.get("resources") or {},
        default_terrain=snapshot.get("default_terrain"),
    )
