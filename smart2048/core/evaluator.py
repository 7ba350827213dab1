"""
Heuristic Evaluator Module
==========================

Static scoring of 2048 boards for the search's cutoff nodes.

The score mixes line terms (monotonicity, merge potential, tile sum), which
are computed once per column and once per row, with board-wide terms (empty
cells, capped tiles and their adjacency). Capped tiles (>= the board's merge
cap) are kept out of the monotonicity and merge terms and summed with a lower
exponent, so the search learns to park them side by side instead of chasing
a bigger tile.

Author: Medo
License: MIT
"""

import math
from dataclasses import dataclass
from typing import List, Optional

from smart2048.config import CONFIG, EvalConfig
from .tile import VECTORS


@dataclass
class HeuristicTerms:
    monotonicity: float = 0.0
    empty: int = 0
    merges: int = 0
    sum: float = 0.0
    max_tiles: int = 0
    adjacency: float = 0.0


class HeuristicEvaluator:
    """
    Weighted board quality. Higher is better for the player.

    Stateless apart from its weights, so one instance can be shared between
    searches and threads.
    """

    def __init__(self, cfg: Optional[EvalConfig] = None) -> None:
        self.cfg = cfg or CONFIG.eval

    def evaluate(self, board) -> float:
        return self.score(self.breakdown(board))

    def score(self, terms: HeuristicTerms) -> float:
        """Combine the raw terms with the configured weights."""
        cfg = self.cfg
        score = (
            -cfg.monotonicity_weight * terms.monotonicity
            + cfg.empty_weight * terms.empty
            + cfg.merge_weight * terms.merges
            - cfg.sum_weight * terms.sum
            + cfg.max_tile_weight * terms.max_tiles
            + terms.adjacency
        )
        # Full board and nothing to merge: the game is about to end.
        if terms.empty == 0 and terms.merges == 0:
            score -= cfg.stalemate_penalty
        return score

    def breakdown(self, board) -> HeuristicTerms:
        """
        Compute every raw term for ``board``.

        Columns are scanned first (x outer, y inner), then rows (y outer,
        x inner), both in ascending order.
        """
        terms = HeuristicTerms()
        size = board.size
        cap = board.max_merge_value
        grid = [[0] * size for _ in range(size)]  # grid[x][y]

        for x in range(size):
            for y in range(size):
                tile = board.cell_at((x, y))
                if tile is None:
                    terms.empty += 1
                    continue
                grid[x][y] = tile.value
                if tile.value >= cap:
                    terms.max_tiles += 1
                    for vector in VECTORS.values():
                        other = board.cell_at((x + vector.x, y + vector.y))
                        if other is not None and other.value >= cap:
                            terms.adjacency += self.cfg.max_tile_adjacency_bonus

        for x in range(size):
            self._score_line(grid[x], cap, terms)
        for y in range(size):
            self._score_line([grid[x][y] for x in range(size)], cap, terms)
        return terms

    def _score_line(self, values: List[int], cap: int, terms: HeuristicTerms) -> None:
        cfg = self.cfg
        mono_power = cfg.monotonicity_power
        increasing = 0.0
        decreasing = 0.0
        prev_rank = None
        prev_value = 0
        run = 0

        for value in values:
            if not value:
                continue
            rank = math.log2(value)

            terms.sum += rank ** (cfg.sum_power if value < cap else cfg.capped_sum_power)

            # Merge potential: consecutive equal tiles, gaps ignored.
            if value == prev_value and value < cap:
                run += 1
            elif run > 0:
                terms.merges += 1 + run
                run = 0

            if prev_rank is not None and prev_value < cap and value < cap:
                if rank > prev_rank:
                    increasing += rank ** mono_power - prev_rank ** mono_power
                else:
                    decreasing += prev_rank ** mono_power - rank ** mono_power

            prev_rank = rank
            prev_value = value

        if run > 0:
            terms.merges += 1 + run
        terms.monotonicity += min(increasing, decreasing)


_default_evaluator: Optional[HeuristicEvaluator] = None


def evaluate(board) -> float:
    """Score ``board`` with the globally configured weights."""
    global _default_evaluator
    if _default_evaluator is None:
        _default_evaluator = HeuristicEvaluator()
    return _default_evaluator.evaluate(board)
