"""
State, ledger and event log tests.
"""

from microciv.engine.events import EventLog, LogEntry, building_built
from microciv.engine.state import GameState, Population, ResourceLedger


def test_debit_clamps_at_zero():
    ledger = ResourceLedger()
    ledger.resources["wood"] = 3.0
    ledger.debit({"wood": 5})
    assert ledger.get("wood") == 0.0


def test_clamp_restores_non_negative_stocks_and_population():
    ledger = ResourceLedger(population=Population(current=-1, capacity=-2))
    ledger.resources["food"] = -4.0
    ledger.production["stone"] = -1.0
    ledger.clamp()
    assert ledger.get("food") == 0.0
    assert ledger.production["stone"] == 0.0
    assert ledger.population.current == 0
    assert ledger.population.capacity == 0


def test_first_shortfall_reports_the_missing_resource():
    ledger = ResourceLedger()
    ledger.resources.update({"wood": 10.0, "stone": 0.0})
    assert ledger.first_shortfall({"wood": 5}) is None
    assert ledger.first_shortfall({"wood": 5, "stone": 15}) == "stone"
    assert not ledger.has({"stone": 1})


def test_population_food_needed():
    assert Population(current=3, capacity=4, food_consumption_per_person=1.5).food_needed == 4.5


def test_event_log_keeps_last_ten_entries():
    log = EventLog()
    for i in range(15):
        log.append(LogEntry(turn=1, message=f"entry {i}"))
    assert len(log) == 10
    assert log.entries()[0].message == "entry 5"
    assert log.entries()[-1].message == "entry 14"


def test_event_log_since_returns_only_new_entries():
    log = EventLog()
    log.append(building_built(1, "farm"))
    marker = log.total_appended
    log.append(building_built(1, "house"))
    log.append(building_built(1, "quarry"))
    assert [e.message for e in log.since(marker)] == ["Built a new house", "Built a new quarry"]
    assert log.since(log.total_appended) == []


def test_from_dict_tolerates_missing_and_bad_fields():
    state = GameState.from_dict({
        "turn": "not a number",
        "resources": {"food": "x", "wood": 7},
        "population": None,
        "buildings": {"house": "2", "farm": -3},
        "military": {"threat_level": -5},
    })
    assert state.turn == 1
    assert state.resources["food"] == 0.0
    assert state.resources["wood"] == 7.0
    assert state.population.current == 2
    assert state.buildings == {"house": 2, "farm": 0}
    assert state.military.threat_level == 0.0
    assert state.terrain == "plains"


def test_json_round_trip_preserves_game(game):
    game.build("farm")
    restored = GameState.from_json(game.state.to_json())
    assert restored.to_dict() == game.state.to_dict()


def test_copy_is_independent(game):
    snapshot = game.state.copy()
    game.build("farm")
    assert snapshot.buildings["farm"] == 0
    assert game.state.buildings["farm"] == 1
