"""FastAPI REST interface for the engine."""

import threading

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import List, Optional

from smart2048.config import CONFIG, configure_logging
from smart2048.core.search import SearchEngine
from smart2048.main import Engine

configure_logging()

app = FastAPI(title=CONFIG.ui.engine_name, version="1.0.0")

# Shared game session (preserves the eval cache across requests).
game = Engine(depth=CONFIG.search.depth)
_game_lock = threading.Lock()


class PositionRequest(BaseModel):
    rows: List[List[int]]  # rows[y][x], 0 = empty


class MoveRequest(BaseModel):
    direction: str  # "up", "left", "w", "2", ...


class SearchRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=0, le=CONFIG.ui.api_max_depth)


def _board_state():
    board = game.board
    return {
        "rows": board.to_rows(),
        "size": board.size,
        "score": game.score,
        "over": game.over,
        "won": game.won,
        "player_turn": board.player_turn,
        "tiles": [tile.to_dict() for tile in board.tiles()],
    }


@app.get("/board")
def get_board():
    with _game_lock:
        return _board_state()


@app.post("/position")
def set_position(req: PositionRequest):
    with _game_lock:
        try:
            game.set_custom_grid(req.rows)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid grid: {e}")
        return _board_state()


@app.post("/move")
def make_move(req: MoveRequest):
    with _game_lock:
        try:
            result = game.make_move(req.direction)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid direction: {req.direction}")
        return {"moved": result.moved, "score_delta": result.score_delta, "board": _board_state()}


@app.post("/spawn")
def spawn_tile():
    with _game_lock:
        tile = game.spawn()
        return {"tile": tile.to_dict() if tile else None, "board": _board_state()}


@app.post("/search")
def search_move(req: SearchRequest = SearchRequest()):
    with _game_lock:
        depth = req.depth if req.depth is not None else game.search.max_depth
        search_board = game.board.clone()

    # Own node counters per request; evaluator and cache are shared.
    shared = game.search
    engine = SearchEngine(shared.evaluator, depth, shared.use_pruning, shared.cache,
                          use_cache=shared.cache is not None)
    result = engine.best_move(search_board)
    return {
        "direction": result.direction.name.lower() if result.direction is not None else None,
        "value": result.value,
        "depth": result.depth,
        "nodes": result.nodes,
        "cutoffs": result.cutoffs,
    }


@app.post("/reset")
def reset_board():
    with _game_lock:
        game.setup()
        if game.search.cache is not None:
            game.search.cache.clear()
        return _board_state()
