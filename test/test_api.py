"""
HTTP API tests through FastAPI's TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from microciv.api.main import app, games


@pytest.fixture
def client():
    games.clear()
    with TestClient(app) as c:
        yield c
    games.clear()


@pytest.fixture
def game_id(client):
    response = client.post("/games", json={"seed": 1})
    assert response.status_code == 200
    return response.json()["game_id"]


def test_root(client):
    assert client.get("/").json()["message"] == "MicroCiv API"


def test_setups_and_definitions(client):
    setups = client.get("/setups").json()["setups"]
    assert {"id": "classic", "display_name": "Classic Valley", "default_terrain": "plains"} in setups
    definitions = client.get("/definitions", params={"setup_id": "classic"}).json()
    assert set(definitions["buildings"]) >= {"house", "farm", "monument"}
    assert client.get("/definitions", params={"setup_id": "nope"}).status_code == 404


def test_create_game(client):
    response = client.post("/games", json={"terrain": "river", "seed": 3})
    body = response.json()
    assert response.status_code == 200
    assert body["state"]["terrain"] == "river"
    assert body["state"]["resources"]["food"] == 10.0
    assert body["phase"] == "awaiting_input"


def test_create_game_with_bad_input(client):
    assert client.post("/games", json={"setup_id": "nope"}).status_code == 404
    assert client.post("/games", json={"terrain": "swamp"}).status_code == 400


def test_unknown_game_is_404(client):
    assert client.get("/games/missing").status_code == 404
    assert client.post("/games/missing/end-turn").status_code == 404


def test_build_and_read_back(client, game_id):
    response = client.post(f"/games/{game_id}/build", json={"building_type": "farm"})
    assert response.status_code == 200
    body = response.json()
    assert body["events"] == [{"turn": 1, "message": "Built a new farm", "category": "build"}]
    assert body["state"]["buildings"]["farm"] == 1

    state = client.get(f"/games/{game_id}").json()["state"]
    assert state["resources"]["wood"] == 5.0


def test_rule_failure_is_400_with_reason(client, game_id):
    response = client.post(f"/games/{game_id}/build", json={"building_type": "wall"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot afford wall - need more stone"

    response = client.post(f"/games/{game_id}/research", json={"tech_id": "irrigation"})
    assert response.status_code == 400
    assert "Missing prerequisites" in response.json()["detail"]


def test_rule_failure_reaches_the_event_log(client, game_id):
    client.post(f"/games/{game_id}/build", json={"building_type": "wall"})
    client.post(f"/games/{game_id}/train", json={"unit_type": "warrior"})

    events = client.get(f"/games/{game_id}").json()["state"]["events"]
    assert events[-2] == {"turn": 1, "message": "Cannot afford wall - need more stone", "category": "build"}
    assert events[-1]["category"] == "military"
    assert "need to build a barracks first" in events[-1]["message"]


def test_end_turn(client, game_id):
    response = client.post(f"/games/{game_id}/end-turn")
    assert response.status_code == 200
    assert response.json()["state"]["turn"] == 2


def test_trade_flow(client, game_id):
    response = client.post(f"/games/{game_id}/trade-options")
    assert response.status_code == 200
    assert len(response.json()["trade"]["offers"]) == 3
    assert client.post(f"/games/{game_id}/trade", json={"index": 9}).status_code == 400


def test_terrain_and_train(client, game_id):
    assert client.post(f"/games/{game_id}/terrain", json={"terrain_id": "hills"}).json()["terrain"]["id"] == "hills"
    response = client.post(f"/games/{game_id}/train", json={"unit_type": "warrior"})
    assert response.status_code == 400
    assert "barracks" in response.json()["detail"]


def test_available_actions(client, game_id):
    body = client.get(f"/games/{game_id}/available-actions").json()
    assert set(body["buildings"]) == {"house", "farm"}


def test_restart_replaces_game(client, game_id):
    client.post(f"/games/{game_id}/build", json={"building_type": "farm"})
    client.post(f"/games/{game_id}/end-turn")
    response = client.post(f"/games/{game_id}/restart", json={})
    assert response.status_code == 200
    state = response.json()["state"]
    assert state["turn"] == 1
    assert state["buildings"]["farm"] == 0


def test_delete_game(client, game_id):
    assert client.delete(f"/games/{game_id}").status_code == 200
    assert client.get(f"/games/{game_id}").status_code == 404
