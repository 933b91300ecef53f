"""
Main entry point for the MicroCiv simulation engine.
Demonstrates core functionality with a short scripted game.
"""

from microciv.engine.actions import build, end_turn, research, train_unit
from microciv.engine.game import Game
from microciv.engine.reducer import apply_action
from microciv.engine.utils import print_game_state


def play(game: Game, action) -> None:
    success, entries = apply_action(game, action)
    status = "ok" if success else "failed"
    print(f"> {action.type} {action.payload or ''} [{status}]")
    for entry in entries:
        print(f"    {entry.message}")


def main():
    print("MicroCiv - Turn-Based Civilization Engine")
    print("=" * 60)

    # Fixed seed so the demo plays out the same way every run
    game = Game.new_game(seed=7)

    print("\n[INITIAL STATE]")
    print_game_state(game.state)

    # ===== SCENARIO 1: Grow the economy =====
    print("\n[SCENARIO 1: Farms and growth]")
    play(game, build("farm"))
    play(game, build("wall"))  # no stone and no metallurgy yet
    for _ in range(3):
        play(game, end_turn())
    print_game_state(game.state)

    # ===== SCENARIO 2: Stone and science =====
    print("\n[SCENARIO 2: Quarry, library and research]")
    for _ in range(40):
        if game.state.ledger.get("stone") >= 3:
            break
        play(game, end_turn())
    play(game, build("quarry"))
    for _ in range(5):
        play(game, end_turn())
    play(game, build("library"))
    for _ in range(8):
        play(game, end_turn())
    play(game, research("agriculture"))
    play(game, research("fertilizers"))  # needs irrigation first
    print_game_state(game.state)

    # ===== SCENARIO 3: Defense =====
    print("\n[SCENARIO 3: Military]")
    play(game, train_unit("warrior"))  # no barracks
    print(f"Defense value: {game.military_system.defense_value}")
    print(f"Raid probability next turn: {game.military_system.raid_probability():.0%}")
    for record in game.state.military.raid_history:
        outcome = "repelled" if record.success else "overwhelmed"
        print(f"  Turn {record.turn}: strength {record.strength} vs defense {record.defense} ({outcome})")

    print("\n[FINAL STATE]")
    print_game_state(game.state)


if __name__ == "__main__":
    main()
