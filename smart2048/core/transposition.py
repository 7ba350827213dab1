"""A thread-safe cache of static board evaluations.

The heuristic only depends on the tile values and the merge cap, so
``Board.signature()`` (size, cap, then the cell values) is a collision-free
key and no Zobrist hashing is needed.

Usage (example):

    from smart2048.core.transposition import EvalCache

    cache = EvalCache()
    value = cache.get(board)
    if value is None:
        value = evaluator.evaluate(board)
        cache.store(board, value)

"""
from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class EvalCache:
    """Signature -> heuristic value.

    When ``max_entries`` is reached the table is dropped wholesale; search
    trees revisit mostly recent boards, so a cold restart is cheap.
    """

    def __init__(self, max_entries: int = 200_000):
        self.max_entries = max_entries
        self._table: Dict[Tuple[int, ...], float] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self):
        return len(self._table)

    def get(self, board) -> Optional[float]:
        key = board.signature()
        with self._lock:
            value = self._table.get(key)
            if value is None:
                self.misses += 1
            else:
                self.hits += 1
        return value

    def store(self, board, value: float):
        key = board.signature()
        with self._lock:
            if len(self._table) >= self.max_entries:
                logger.debug("Eval cache full (%d entries), clearing", len(self._table))
                self._table.clear()
            self._table[key] = value

    def clear(self):
        with self._lock:
            self._table.clear()
            self.hits = 0
            self.misses = 0
