import logging
import random
from typing import Callable, Optional, Sequence

from smart2048.config import CONFIG
from smart2048.core.board import Board, MoveResult
from smart2048.core.evaluator import HeuristicEvaluator
from smart2048.core.search import SearchEngine, SearchResult
from smart2048.core.tile import Direction

logger = logging.getLogger(__name__)


class Engine:
    """A live game: board, score and an AI that can hint or play."""

    def __init__(self, depth=None, size=None, rng=None, auto_spawn=None):
        self.size = size or CONFIG.board.size
        self.rng = rng or random.Random()
        self.auto_spawn = CONFIG.game.auto_spawn if auto_spawn is None else auto_spawn
        self.search = SearchEngine(HeuristicEvaluator(), depth=depth)
        self.setup()

    def setup(self, start_tiles: Optional[int] = None):
        """Start over on a fresh board."""
        self.board = Board(self.size, CONFIG.board.max_merge_value)
        self.score = 0
        self.over = False
        self.moves = 0
        count = CONFIG.game.start_tiles if start_tiles is None else start_tiles
        for _ in range(count):
            self.spawn()
        self._refresh()

    def set_custom_grid(self, rows: Sequence[Sequence[int]]):
        """Replace the board with ``rows[y][x]`` values (0 = empty)."""
        self.board = Board.from_rows(rows, CONFIG.board.max_merge_value)
        self.size = self.board.size
        self.score = 0
        self.moves = 0
        self._refresh()

    def spawn(self):
        tile = self.board.spawn_random_tile(self.rng, CONFIG.board.four_probability)
        self._refresh()
        return tile

    @property
    def won(self) -> bool:
        return self.board.max_value() >= self.board.max_merge_value

    def _refresh(self):
        self.over = not self.board.has_moves_available()

    def make_move(self, direction) -> MoveResult:
        if self.over:
            return MoveResult(False, 0)
        result = self.board.move(Direction.parse(direction))
        if result.moved:
            self.score += result.score_delta
            self.moves += 1
            if self.auto_spawn:
                self.spawn()
        self._refresh()
        return result

    def get_best_move(self, depth: Optional[int] = None) -> SearchResult:
        return self.search.best_move(self.board, depth)

    def step(self, depth: Optional[int] = None) -> Optional[MoveResult]:
        """Let the AI play one turn. Returns None when it has no move."""
        best = self.get_best_move(depth)
        if best.direction is None:
            self.over = True
            return None
        return self.make_move(best.direction)

    def run(self, max_moves: Optional[int] = None,
            callback: Optional[Callable[["Engine", MoveResult], None]] = None,
            depth: Optional[int] = None) -> int:
        """Auto-play until the game is over or ``max_moves`` is reached."""
        limit = CONFIG.game.max_auto_moves if max_moves is None else max_moves
        played = 0
        while not self.over and played < limit:
            result = self.step(depth)
            if result is None:
                break
            played += 1
            if callback: callback(self, result)
        logger.info("Auto-play stopped after %d moves, score %d, max tile %d",
                    played, self.score, self.board.max_value())
        return played

    def print_board(self):
        print(f"Score: {self.score}")
        print(self.board)
        if self.over:
            print("GAME OVER!")
