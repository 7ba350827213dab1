"""
Integration test suite for the Smart2048 engine.

Tests components working together end-to-end:
- Game session (manual moves, spawning, hints, game over)
- Auto-play (search → move → spawn loop until the game ends)
- FastAPI REST API integration
- Terminal CLI loop
- TOML configuration loading
"""

import random
from unittest.mock import patch

import pytest

from smart2048.config import CONFIG, Config
from smart2048.core.board import Board, MoveResult
from smart2048.core.search import SearchEngine
from smart2048.core.tile import Direction
from smart2048.main import Engine

STUCK = [
    [2, 4, 2, 4],
    [4, 2, 4, 2],
    [2, 4, 2, 4],
    [4, 2, 4, 2],
]


def rows_with(first_row):
    return [list(first_row)] + [[0] * 4 for _ in range(3)]


# ════════════════════════════════════════════════════════════════════════════
#  GAME SESSION
# ════════════════════════════════════════════════════════════════════════════


class TestEngineWrapper:
    def test_setup_spawns_start_tiles(self):
        game = Engine(depth=2, rng=random.Random(1))
        assert len(list(game.board.tiles())) == CONFIG.game.start_tiles
        assert game.score == 0
        assert game.over is False

    def test_setup_without_tiles(self):
        game = Engine(depth=2, rng=random.Random(1))
        game.setup(start_tiles=0)
        assert list(game.board.tiles()) == []

    def test_make_move_without_spawn(self):
        game = Engine(depth=2, auto_spawn=False)
        game.set_custom_grid(rows_with([2, 2, 4, 0]))
        result = game.make_move("left")
        assert result == MoveResult(True, 4)
        assert game.score == 4
        assert game.board.to_rows()[0] == [4, 4, 0, 0]
        assert len(list(game.board.tiles())) == 2

    def test_make_move_spawns_tile(self):
        game = Engine(depth=2, rng=random.Random(4), auto_spawn=True)
        game.set_custom_grid(rows_with([2, 2, 4, 0]))
        game.make_move(Direction.LEFT)
        assert len(list(game.board.tiles())) == 3
        assert game.board.player_turn is True

    def test_blocked_move_does_not_spawn(self):
        game = Engine(depth=2, rng=random.Random(4), auto_spawn=True)
        game.set_custom_grid(rows_with([2, 4, 0, 0]))
        assert game.make_move("a") == MoveResult(False, 0)
        assert len(list(game.board.tiles())) == 2
        assert game.moves == 0

    def test_invalid_direction(self):
        game = Engine(depth=2)
        with pytest.raises(ValueError):
            game.make_move("sideways")

    def test_custom_grid_game_over(self):
        game = Engine(depth=2)
        game.set_custom_grid(STUCK)
        assert game.over is True
        assert game.make_move("left") == MoveResult(False, 0)
        assert game.get_best_move().direction is None
        assert game.step() is None

    def test_invalid_custom_grid(self):
        game = Engine(depth=2)
        with pytest.raises(ValueError):
            game.set_custom_grid(rows_with([3, 0, 0, 0]))

    def test_won_flag(self):
        game = Engine(depth=2, auto_spawn=False)
        game.set_custom_grid(rows_with([1024, 1024, 0, 0]))
        assert game.won is False
        game.make_move("left")
        assert game.won is True
        assert game.over is False

    def test_hint_is_legal(self):
        game = Engine(depth=2, rng=random.Random(8))
        hint = game.get_best_move()
        assert hint.direction is not None
        assert game.board.clone().move(hint.direction).moved

    def test_hint_does_not_touch_live_board(self):
        game = Engine(depth=3, rng=random.Random(8))
        before = game.board.signature()
        game.get_best_move()
        assert game.board.signature() == before
        assert game.score == 0

    def test_step_plays_hint(self):
        game = Engine(depth=2, rng=random.Random(8), auto_spawn=False)
        game.set_custom_grid(rows_with([2, 2, 4, 8]))
        expected = game.board.clone()
        expected.move(game.get_best_move().direction)
        result = game.step()
        assert result.moved
        assert game.board.signature() == expected.signature()


# ════════════════════════════════════════════════════════════════════════════
#  AUTO-PLAY
# ════════════════════════════════════════════════════════════════════════════


class TestAutoPlay:
    def test_run_respects_move_limit(self):
        game = Engine(depth=2, rng=random.Random(21))
        deltas = []
        played = game.run(max_moves=15, callback=lambda g, r: deltas.append(r.score_delta))
        assert played == 15
        assert game.moves == 15
        assert game.score == sum(deltas)

    def test_full_game_terminates(self):
        game = Engine(depth=1, rng=random.Random(5))
        played = game.run(max_moves=20000)
        assert game.over is True
        assert played > 50
        assert not game.board.has_moves_available()
        assert game.board.max_value() >= 128

    def test_auto_play_keeps_invariants(self):
        game = Engine(depth=2, rng=random.Random(99))

        def check(g, result):
            assert result.moved
            for tile in g.board.tiles():
                assert g.board.cell_at(tile.position) is tile
                assert tile.value >= 2 and tile.value & (tile.value - 1) == 0

        game.run(max_moves=40, callback=check)

    def test_async_search_on_live_board(self):
        game = Engine(depth=2, rng=random.Random(12))
        engine = SearchEngine(depth=2)
        results = []
        engine.start_search(game.board, callback=results.append)
        game.make_move(Direction.DOWN)  # live board changes; search works on its own copy
        assert engine.wait(timeout=30)
        assert results and results[0].direction in Direction


# ════════════════════════════════════════════════════════════════════════════
#  REST API INTEGRATION
# ════════════════════════════════════════════════════════════════════════════


class TestAPIIntegration:
    """Tests FastAPI REST API endpoints."""

    @pytest.fixture(autouse=True)
    def setup_client(self):
        from fastapi.testclient import TestClient
        from interface.api import app

        self.client = TestClient(app)
        self.client.post("/reset")

    def test_get_board_initial(self):
        response = self.client.get("/board")
        assert response.status_code == 200
        data = response.json()
        assert len(data["rows"]) == 4 and all(len(r) == 4 for r in data["rows"])
        assert len(data["tiles"]) == CONFIG.game.start_tiles
        assert data["score"] == 0
        assert data["over"] is False

    def test_set_position_valid(self):
        rows = rows_with([2, 2, 4, 0])
        response = self.client.post("/position", json={"rows": rows})
        assert response.status_code == 200
        assert response.json()["rows"] == rows

    def test_set_position_invalid_value(self):
        response = self.client.post("/position", json={"rows": rows_with([6, 0, 0, 0])})
        assert response.status_code == 400

    def test_set_position_not_square(self):
        response = self.client.post("/position", json={"rows": [[2, 0], [0, 0], [0, 0]]})
        assert response.status_code == 400

    def test_post_move_valid(self):
        self.client.post("/position", json={"rows": rows_with([2, 2, 4, 0])})
        response = self.client.post("/move", json={"direction": "left"})
        assert response.status_code == 200
        data = response.json()
        assert data["moved"] is True
        assert data["score_delta"] == 4
        board = data["board"]
        assert board["rows"][0][:2] == [4, 4]
        assert board["score"] == 4
        merged = [t for t in board["tiles"] if t["merged_from"]]
        assert len(merged) == 1
        assert [m["value"] for m in merged[0]["merged_from"]] == [2, 2]

    def test_post_move_blocked(self):
        self.client.post("/position", json={"rows": rows_with([2, 4, 0, 0])})
        response = self.client.post("/move", json={"direction": "up"})
        assert response.status_code == 200
        assert response.json()["moved"] is False

    def test_post_move_invalid(self):
        response = self.client.post("/move", json={"direction": "diagonal"})
        assert response.status_code == 400

    def test_spawn(self):
        self.client.post("/position", json={"rows": rows_with([2, 0, 0, 0])})
        response = self.client.post("/spawn")
        assert response.status_code == 200
        data = response.json()
        assert data["tile"]["value"] in (2, 4)
        assert len(data["board"]["tiles"]) == 2

    def test_spawn_full_board(self):
        self.client.post("/position", json={"rows": STUCK})
        response = self.client.post("/spawn")
        assert response.status_code == 200
        assert response.json()["tile"] is None

    def test_search_returns_move(self):
        self.client.post("/position", json={"rows": rows_with([2, 2, 4, 0])})
        response = self.client.post("/search", json={"depth": 2})
        assert response.status_code == 200
        data = response.json()
        assert data["direction"] in ("up", "right", "down", "left")
        board = Board.from_rows(rows_with([2, 2, 4, 0]))
        assert board.move(Direction.parse(data["direction"])).moved

    def test_search_stuck_board(self):
        self.client.post("/position", json={"rows": STUCK})
        response = self.client.post("/search", json={"depth": 2})
        assert response.status_code == 200
        assert response.json()["direction"] is None

    def test_search_explicit_depth_zero(self):
        self.client.post("/position", json={"rows": rows_with([2, 2, 4, 0])})
        response = self.client.post("/search", json={"depth": 0})
        assert response.status_code == 200
        assert response.json()["depth"] == 0

    @pytest.mark.parametrize("depth", [-1, CONFIG.ui.api_max_depth + 1])
    def test_search_depth_out_of_range(self, depth):
        response = self.client.post("/search", json={"depth": depth})
        assert response.status_code == 422

    def test_concurrent_searches_report_own_stats(self):
        from concurrent.futures import ThreadPoolExecutor
        from interface.api import SearchRequest, search_move

        rows = [[2, 4, 0, 0], [4, 8, 0, 0], [2, 0, 0, 0], [0, 0, 0, 0]]
        self.client.post("/position", json={"rows": rows})
        expected = SearchEngine(depth=2).best_move(Board.from_rows(rows))

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: search_move(SearchRequest(depth=2)), range(8)))

        for data in results:
            assert data["nodes"] == expected.nodes
            assert data["cutoffs"] == expected.cutoffs
            assert data["direction"] == expected.direction.name.lower()

    def test_board_reports_game_over(self):
        self.client.post("/position", json={"rows": STUCK})
        assert self.client.get("/board").json()["over"] is True

    def test_reset(self):
        self.client.post("/position", json={"rows": STUCK})
        response = self.client.post("/reset")
        assert response.status_code == 200
        assert response.json()["over"] is False
        assert response.json()["score"] == 0


# ════════════════════════════════════════════════════════════════════════════
#  CLI INTEGRATION
# ════════════════════════════════════════════════════════════════════════════


class TestCLI:
    def test_session(self, capsys, monkeypatch):
        from interface import cli

        monkeypatch.setattr(CONFIG.search, "depth", 2)
        commands = iter(["h", "left", "bogus", "auto 3", "auto x", "new", "q"])
        with patch("builtins.input", lambda prompt="": next(commands)):
            cli.main()

        out = capsys.readouterr().out
        assert "Hint:" in out
        assert "Unknown command" in out
        assert "AI played" in out
        assert "Not a number" in out
        assert "Final score" in out


# ════════════════════════════════════════════════════════════════════════════
#  CONFIGURATION
# ════════════════════════════════════════════════════════════════════════════


class TestConfig:
    def test_defaults(self):
        cfg = Config()
        assert cfg.search.depth == 5
        assert cfg.search.use_pruning is True
        assert cfg.board.size == 4
        assert cfg.board.max_merge_value == 2048
        e = cfg.eval
        assert (e.monotonicity_weight, e.empty_weight, e.merge_weight, e.sum_weight) == (47, 270, 700, 11)
        assert (e.max_tile_weight, e.max_tile_adjacency_bonus, e.stalemate_penalty) == (2000, 1000, 200000)

    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = Config.load_from_toml(str(tmp_path / "nope.toml"))
        assert cfg == Config()

    def test_load_from_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            'log_level = "DEBUG"\n'
            "[search]\ndepth = 3\nuse_pruning = false\nbogus = 1\n"
            "[eval]\nempty_weight = 300.0\n"
            "[game]\nstart_tiles = 0\n"
        )
        cfg = Config.load_from_toml(str(path))
        assert cfg.search.depth == 3
        assert cfg.search.use_pruning is False
        assert not hasattr(cfg.search, "bogus")
        assert cfg.eval.empty_weight == 300.0
        assert cfg.eval.merge_weight == 700
        assert cfg.game.start_tiles == 0
        assert cfg.log_level == "DEBUG"
