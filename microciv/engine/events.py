"""
Game log entries for UI hooks.
Entries describe what happened during action processing. The simulation never reads them back.
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Iterable

from microciv.engine import EVENT_LOG_LIMIT


@dataclass
class LogEntry:
    """A single line in the event log."""
    turn: int
    message: str
    category: str = "general"

    def to_dict(self) -> dict[str, Any]:
        return {"turn": self.turn, "message": self.message, "category": self.category}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEntry":
        if not isinstance(data, dict):
            data = {}
        try:
            turn = int(data.get("turn", 1))
        except (TypeError, ValueError):
            turn = 1
        return cls(
            turn=turn,
            message=str(data.get("message") or ""),
            category=str(data.get("category") or GENERAL),
        )


# ===== Category Constants =====

GENERAL = "general"
BUILD = "build"
RESEARCH = "research"
MILITARY = "military"
RAID = "raid"
SEASON = "season"
TERRAIN = "terrain"
TRADE = "trade"
RANDOM_EVENT = "random_event"
POPULATION = "population"
VICTORY = "victory"


class EventLog:
    """Append-only log capped at a fixed length; oldest entries are evicted first."""

    def __init__(self, entries: Iterable[LogEntry] = (), limit: int = EVENT_LOG_LIMIT):
        self.limit = limit
        self._entries: deque[LogEntry] = deque(entries, maxlen=limit)
        # Total entries ever appended; lets callers slice out what one action produced
        self.total_appended = len(self._entries)

    def append(self, entry: LogEntry) -> LogEntry:
        self._entries.append(entry)
        self.total_appended += 1
        return entry

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def since(self, marker: int) -> list[LogEntry]:
        """Entries appended after total_appended was `marker` (only those still retained)."""
        new_count = self.total_appended - marker
        if new_count <= 0:
            return []
        return list(self._entries)[-new_count:]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    @classmethod
    def from_list(cls, data: Any, limit: int = EVENT_LOG_LIMIT) -> "EventLog":
        if not isinstance(data, list):
            data = []
        return cls((LogEntry.from_dict(e) for e in data if isinstance(e, dict)), limit=limit)


# ===== Entry Factory Functions =====

def building_built(turn: int, building_type: str) -> LogEntry:
    return LogEntry(turn, f"Built a new {building_type}", BUILD)


def cannot_afford(turn: int, subject: str, resource: str | None = None) -> LogEntry:
    if resource:
        return LogEntry(turn, f"Cannot afford {subject} - need more {resource}", GENERAL)
    return LogEntry(turn, f"Cannot afford {subject}", GENERAL)


def requirements_not_met(turn: int, building_type: str, missing: list[str]) -> LogEntry:
    return LogEntry(turn, f"Cannot build {building_type} - requires {', '.join(missing)}", GENERAL)


def unknown_identifier(turn: int, kind: str, identifier: str) -> LogEntry:
    return LogEntry(turn, f"Unknown {kind}: {identifier}", GENERAL)


def research_complete(turn: int, tech_name: str) -> LogEntry:
    return LogEntry(turn, f"Research complete: {tech_name}", RESEARCH)


def season_changed(turn: int, season_name: str, description: str) -> LogEntry:
    return LogEntry(turn, f"Season changed to {season_name}. {description}", SEASON)


def season_warning(turn: int, season_name: str, description: str) -> LogEntry:
    return LogEntry(
        turn,
        f"{season_name} is coming next turn. Prepare for {description.lower()}",
        SEASON,
    )


def population_grew(turn: int) -> LogEntry:
    return LogEntry(turn, "Population increased!", POPULATION)


def people_starved(turn: int, count: int) -> LogEntry:
    return LogEntry(turn, f"{count} people starved due to food shortage!", POPULATION)


def housing_shortage(turn: int, count: int) -> LogEntry:
    return LogEntry(turn, f"{count} people left due to housing shortage!", POPULATION)


def victory(turn: int) -> LogEntry:
    return LogEntry(turn, "Victory! You've built the Monument!", VICTORY)
