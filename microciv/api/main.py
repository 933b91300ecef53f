"""
FastAPI backend for MicroCiv.
Provides REST API endpoints for game state management and actions.
Games live in memory for the lifetime of the process.
"""

import uuid
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from microciv import __version__
from microciv.config import CORS_ORIGINS, DEFAULT_SETUP_ID
from microciv.engine.actions import (
    Action,
    build,
    change_terrain,
    end_turn,
    generate_trade_options,
    research,
    trade,
    train_unit,
)
from microciv.engine.definitions import list_setups, load_setup, load_static_definitions
from microciv.engine.events import GENERAL
from microciv.engine.game import Game
from microciv.engine.queries import (
    ACTION_CATEGORIES,
    get_available_actions,
    get_game_summary,
    validate_action,
)
from microciv.engine.reducer import apply_action

app = FastAPI(
    title="MicroCiv API",
    description="Backend API for MicroCiv - a turn-based civilization-building game",
    version=__version__,
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path so 500s can be traced to the failing endpoint."""
    method = getattr(request, "method", "?")
    url = getattr(request, "url", None)
    path = url.path if url else "?"
    try:
        response = await call_next(request)
        if response.status_code >= 500:
            print(f"[500] {method} {path}", flush=True)
        return response
    except Exception:
        print(f"[500] {method} {path} (exception)", flush=True)
        raise


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    """Return 500 with CORS headers so the frontend can read the error."""
    import traceback
    traceback.print_exception(type(exc), exc, exc.__traceback__)
    origin = request.headers.get("origin")
    allow_origin = origin if origin in CORS_ORIGINS else (CORS_ORIGINS[0] if CORS_ORIGINS else "*")
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
        headers={
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Credentials": "true",
        },
    )


# In-memory game registry; key = game_id
games: dict[str, Game] = {}


# ===== Pydantic Models =====

class NewGameRequest(BaseModel):
    """setup_id from GET /setups; omitted = microciv.config.DEFAULT_SETUP_ID."""
    setup_id: str | None = None
    terrain: str | None = None
    seed: int | None = None


class RestartRequest(BaseModel):
    terrain: str | None = None
    seed: int | None = None


class BuildRequest(BaseModel):
    building_type: str


class ResearchRequest(BaseModel):
    tech_id: str


class TrainRequest(BaseModel):
    unit_type: str


class TerrainRequest(BaseModel):
    terrain_id: str


class TradeRequest(BaseModel):
    index: int


# ===== Helpers =====

def get_game(game_id: str) -> Game:
    game = games.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail=f"Game {game_id} not found")
    return game


def _new_game(setup_id: str, terrain: str | None, seed: int | None) -> Game:
    try:
        load_setup(setup_id)
        definitions = load_static_definitions(setup_id=setup_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    try:
        return Game.new_game(definitions=definitions, setup_id=setup_id, terrain=terrain, seed=seed)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _run_action(game_id: str, action: Action) -> dict[str, Any]:
    """Validate, then apply. Rule failures are logged and surface as 400 with the reason."""
    game = get_game(game_id)
    validation = validate_action(game, action)
    if not validation.valid:
        game.state.log(validation.error, ACTION_CATEGORIES.get(action.type, GENERAL))
        raise HTTPException(status_code=400, detail=validation.error)
    try:
        success, events = apply_action(game, action)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not success:
        detail = events[-1].message if events else f"Action '{action.type}' failed"
        raise HTTPException(status_code=400, detail=detail)
    return {
        "game_id": game_id,
        "success": success,
        "events": [e.to_dict() for e in events],
        **get_game_summary(game),
    }


# ===== Endpoints =====

@app.get("/")
def root():
    return {"message": "MicroCiv API", "version": __version__}


@app.get("/setups")
def get_setups():
    """List available game setups (id, display_name, default_terrain). Use setup_id in POST /games."""
    return {"setups": list_setups()}


@app.get("/definitions")
def get_definitions(setup_id: str | None = None):
    """Static catalogs for a setup (buildings, technologies, terrains, seasons, units, events)."""
    try:
        definitions = load_static_definitions(setup_id=setup_id or DEFAULT_SETUP_ID)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return definitions.to_dict()


@app.post("/games")
def create_game(request: NewGameRequest | None = None):
    """Create a new game in memory."""
    request = request or NewGameRequest()
    setup_id = request.setup_id or DEFAULT_SETUP_ID
    game = _new_game(setup_id, request.terrain, request.seed)
    game_id = uuid.uuid4().hex
    games[game_id] = game
    return {"game_id": game_id, **get_game_summary(game)}


@app.get("/games/{game_id}")
def get_game_state(game_id: str):
    """Current state plus building cards, technologies, military, season, terrain and trade offers."""
    game = get_game(game_id)
    return {"game_id": game_id, **get_game_summary(game)}


@app.delete("/games/{game_id}")
def delete_game(game_id: str):
    get_game(game_id)
    del games[game_id]
    return {"deleted": game_id}


@app.post("/games/{game_id}/restart")
def restart_game(game_id: str, request: RestartRequest | None = None):
    """Replace the game wholesale with a fresh one on the same setup."""
    request = request or RestartRequest()
    old = get_game(game_id)
    terrain = request.terrain or old.definitions.default_terrain
    games[game_id] = _new_game(old.state.setup_id, terrain, request.seed)
    return {"game_id": game_id, **get_game_summary(games[game_id])}


@app.get("/games/{game_id}/available-actions")
def get_game_available_actions(game_id: str):
    """Buildings, technologies, units and trades the player can take right now."""
    return get_available_actions(get_game(game_id))


@app.post("/games/{game_id}/build")
def do_build(game_id: str, request: BuildRequest):
    return _run_action(game_id, build(request.building_type))


@app.post("/games/{game_id}/research")
def do_research(game_id: str, request: ResearchRequest):
    return _run_action(game_id, research(request.tech_id))


@app.post("/games/{game_id}/train")
def do_train(game_id: str, request: TrainRequest):
    return _run_action(game_id, train_unit(request.unit_type))


@app.post("/games/{game_id}/terrain")
def do_change_terrain(game_id: str, request: TerrainRequest):
    return _run_action(game_id, change_terrain(request.terrain_id))


@app.post("/games/{game_id}/trade")
def do_trade(game_id: str, request: TradeRequest):
    return _run_action(game_id, trade(request.index))


@app.post("/games/{game_id}/trade-options")
def do_generate_trade_options(game_id: str):
    """Ask the merchants for a fresh set of offers."""
    return _run_action(game_id, generate_trade_options())


@app.post("/games/{game_id}/end-turn")
def do_end_turn(game_id: str):
    """End the turn: seasons, raids, events, production and population resolve at once."""
    return _run_action(game_id, end_turn())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
