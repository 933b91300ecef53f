"""
Main game reducer.
Applies actions to a Game, enforcing rules.
Returns (success, entries) where entries are the log lines the action produced.

Game-rule failures never raise: they return False with the reason in the log.
Malformed actions (unknown type, missing or mistyped payload) raise ValueError.
"""

from typing import Any, Callable

from microciv.engine.actions import Action
from microciv.engine.events import LogEntry
from microciv.engine.game import Game


def _require(action: Action, key: str, kind: type) -> Any:
    if not isinstance(action.payload, dict) or key not in action.payload:
        raise ValueError(f"Action '{action.type}' requires payload field '{key}'")
    value = action.payload[key]
    # bool is an int subclass; a trade index of True is a malformed payload
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"Action '{action.type}' payload field '{key}' must be {kind.__name__}")
    return value


def _handle_build(game: Game, action: Action) -> bool:
    return game.build(_require(action, "building_type", str))


def _handle_research(game: Game, action: Action) -> bool:
    return game.technology_system.start_research(_require(action, "tech_id", str))


def _handle_train_unit(game: Game, action: Action) -> bool:
    return game.military_system.train_unit(_require(action, "unit_type", str))


def _handle_change_terrain(game: Game, action: Action) -> bool:
    return game.terrain_system.change_terrain(_require(action, "terrain_id", str))


def _handle_trade(game: Game, action: Action) -> bool:
    return game.trade(_require(action, "index", int))


def _handle_generate_trade_options(game: Game, action: Action) -> bool:
    game.generate_trade_options()
    return True


def _handle_end_turn(game: Game, action: Action) -> bool:
    return game.end_turn()


ACTION_HANDLERS: dict[str, Callable[[Game, Action], bool]] = {
    "build": _handle_build,
    "research": _handle_research,
    "train_unit": _handle_train_unit,
    "change_terrain": _handle_change_terrain,
    "trade": _handle_trade,
    "generate_trade_options": _handle_generate_trade_options,
    "end_turn": _handle_end_turn,
}


def apply_action(game: Game, action: Action) -> tuple[bool, list[LogEntry]]:
    """
    Apply a single action to the game.

    Args:
        game: Game to mutate
        action: Action to apply

    Returns:
        Tuple of (success, entries) where entries describe what happened
    """
    handler = ACTION_HANDLERS.get(action.type)
    if handler is None:
        raise ValueError(f"Unknown action type: {action.type}")

    log = game.state.events
    marker = log.total_appended

    # Check if game is already won
    if game.state.game_won:
        game.state.log(f"Cannot {action.type.replace('_', ' ')} - the game is already won")
        return False, log.since(marker)

    success = handler(game, action)
    return success, log.since(marker)
