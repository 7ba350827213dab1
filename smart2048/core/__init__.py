"""Core engine components: board, evaluator, search, and evaluation cache."""

from .tile import Direction, Position, Tile, VECTORS
from .board import Board, MoveResult
from .evaluator import HeuristicEvaluator, HeuristicTerms, evaluate
from .search import SearchEngine, SearchResult, SearchableBoard
from .transposition import EvalCache
