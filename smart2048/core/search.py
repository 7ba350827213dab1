import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Tuple

from smart2048.config import CONFIG
from smart2048.core.evaluator import HeuristicEvaluator
from smart2048.core.tile import Direction, Position, Tile, VECTORS
from smart2048.core.transposition import EvalCache
from smart2048.core.utils import print_info

logger = logging.getLogger(__name__)

INF = float("inf")

# Environment placements tried at every candidate cell, in order.
SPAWN_VALUES = (2, 4)


class SearchableBoard(Protocol):
    """What the search needs from a board. ``Board`` implements it directly."""

    size: int
    max_merge_value: int

    def clone(self) -> "SearchableBoard": ...

    def move(self, direction) -> Tuple[bool, int]: ...

    def available_positions(self) -> List[Position]: ...

    def cell_at(self, position) -> Optional[Tile]: ...

    def insert_tile(self, tile: Tile) -> None: ...

    def has_moves_available(self) -> bool: ...

    def signature(self) -> Tuple[int, ...]: ...


@dataclass
class SearchResult:
    direction: Optional[Direction]
    value: float
    depth: int = 0
    nodes: int = 0
    cutoffs: int = 0
    elapsed: float = 0.0

    @property
    def has_move(self) -> bool:
        return self.direction is not None


class SearchEngine:
    """
    Depth-limited minimax with alpha-beta pruning.

    The player's plies maximize the heuristic. The environment's plies are
    treated as an adversary that places a 2 or a 4 wherever it hurts most,
    so the search is fully deterministic.
    """

    def __init__(self, evaluator: Optional[HeuristicEvaluator] = None, depth: Optional[int] = None,
                 use_pruning: Optional[bool] = None, cache: Optional[EvalCache] = None,
                 use_cache: Optional[bool] = None):
        self.evaluator = evaluator or HeuristicEvaluator()
        self.max_depth = depth if depth is not None else CONFIG.search.depth
        self.use_pruning = CONFIG.search.use_pruning if use_pruning is None else use_pruning
        if use_cache is None:
            use_cache = cache is not None or CONFIG.search.eval_cache
        if not use_cache:
            cache = None
        elif cache is None:
            cache = EvalCache(CONFIG.search.cache_max_entries)
        self.cache = cache

        self.nodes = 0
        self.cutoffs = 0
        self._thread: Optional[threading.Thread] = None

    def best_move(self, board: SearchableBoard, depth: Optional[int] = None) -> SearchResult:
        """Pick the direction with the highest minimax value.

        Ties keep the earliest direction in UP, RIGHT, DOWN, LEFT order. A
        board with no legal direction yields ``direction=None`` and its own
        static value.
        """
        depth = self.max_depth if depth is None else depth
        self.nodes = 0
        self.cutoffs = 0
        start_time = time.time()

        best_direction = None
        best_value = -INF
        for direction in Direction:
            child = board.clone()
            if not child.move(direction)[0]:
                continue
            value = self.search(child, depth - 1, -INF, INF, False)
            logger.debug("root %s -> %.1f", direction.name, value)
            if best_direction is None or value > best_value:
                best_direction = direction
                best_value = value

        if best_direction is None:
            best_value = self.static_value(board)

        elapsed = time.time() - start_time
        result = SearchResult(best_direction, best_value, depth, self.nodes, self.cutoffs, elapsed)
        logger.debug("search depth=%d move=%s value=%.1f nodes=%d cutoffs=%d time=%.3fs",
                     depth, best_direction.name if best_direction is not None else None,
                     best_value, self.nodes, self.cutoffs, elapsed)
        if CONFIG.search.verbose:
            print_info(depth, best_value, self.nodes, self.cutoffs, elapsed, best_direction)
        return result

    def search(self, board: SearchableBoard, depth: int, alpha: float, beta: float, maximizing: bool) -> float:
        self.nodes += 1
        if depth <= 0 or not board.has_moves_available():
            return self.static_value(board)
        if maximizing:
            return self._maximize(board, depth, alpha, beta)
        return self._minimize(board, depth, alpha, beta)

    def _maximize(self, board: SearchableBoard, depth: int, alpha: float, beta: float) -> float:
        value = -INF
        for direction in Direction:
            child = board.clone()
            if not child.move(direction)[0]:
                continue
            value = max(value, self.search(child, depth - 1, alpha, beta, False))
            if self.use_pruning:
                if value > beta:
                    self.cutoffs += 1
                    break
                alpha = max(alpha, value)
        if value == -INF:
            # Only an empty board can get here: nothing slides.
            return self.static_value(board)
        return value

    def _minimize(self, board: SearchableBoard, depth: int, alpha: float, beta: float) -> float:
        value = INF
        tried = False
        for position in board.available_positions():
            if not self.has_adjacent_tile(board, position):
                continue
            tried = True
            for spawn in SPAWN_VALUES:
                child = board.clone()
                child.insert_tile(Tile(position, spawn))
                value = min(value, self.search(child, depth - 1, alpha, beta, True))
                if self.use_pruning:
                    if value < alpha:
                        self.cutoffs += 1
                        return value
                    beta = min(beta, value)
        if not tried:
            return self.static_value(board)
        return value

    @staticmethod
    def has_adjacent_tile(board: SearchableBoard, position) -> bool:
        for vector in VECTORS.values():
            if board.cell_at((position[0] + vector.x, position[1] + vector.y)) is not None:
                return True
        return False

    def static_value(self, board: SearchableBoard) -> float:
        if self.cache is None:
            return self.evaluator.evaluate(board)
        value = self.cache.get(board)
        if value is None:
            value = self.evaluator.evaluate(board)
            self.cache.store(board, value)
        return value

    # ------------------------------------------------------------------
    # Background search
    # ------------------------------------------------------------------
    def start_search(self, board: SearchableBoard, depth: Optional[int] = None,
                     callback: Optional[Callable[[SearchResult], None]] = None):
        if self._thread and self._thread.is_alive(): return
        search_board = board.clone()

        def worker():
            result = self.best_move(search_board, depth)
            if callback: callback(result)

        self._thread = threading.Thread(target=worker, daemon=True)
        self._thread.start()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the background search. Returns True once it has finished."""
        if self._thread:
            self._thread.join(timeout=timeout)
            return not self._thread.is_alive()
        return True
