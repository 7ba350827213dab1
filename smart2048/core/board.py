"""Grid state and the move transition for the 2048 board."""

import random
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

from smart2048.config import MAX_MERGE_VALUE
from .tile import Direction, Position, Tile, VECTORS


class MoveResult(NamedTuple):
    moved: bool
    score_delta: int


class Board:
    def __init__(self, size: int = 4, max_merge_value: int = MAX_MERGE_VALUE):
        """Create an empty ``size`` x ``size`` board.

        Cells live in a flat list indexed by ``x * size + y`` so a clone is a
        single list copy plus one copy per occupied cell.
        """
        self.size = size
        self.max_merge_value = max_merge_value
        self.cells: List[Optional[Tile]] = [None] * (size * size)
        self.player_turn = True

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]], max_merge_value: int = MAX_MERGE_VALUE) -> "Board":
        """Build a board from ``rows[y][x]`` values, 0 meaning empty."""
        size = len(rows)
        if size == 0 or any(len(row) != size for row in rows):
            raise ValueError("Grid must be a non-empty square")
        board = cls(size, max_merge_value)
        for y, row in enumerate(rows):
            for x, value in enumerate(row):
                if not value:
                    continue
                if not isinstance(value, int) or value < 2 or value & (value - 1):
                    raise ValueError(f"Tile value at ({x}, {y}) is not a power of two >= 2: {value!r}")
                board.insert_tile(Tile((x, y), value))
        return board

    def to_rows(self) -> List[List[int]]:
        return [[self._value_at(x, y) for x in range(self.size)] for y in range(self.size)]

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------
    def _index(self, position) -> int:
        return position[0] * self.size + position[1]

    def _value_at(self, x: int, y: int) -> int:
        tile = self.cells[x * self.size + y]
        return tile.value if tile else 0

    def within_bounds(self, position) -> bool:
        return 0 <= position[0] < self.size and 0 <= position[1] < self.size

    def cell_at(self, position) -> Optional[Tile]:
        """Return the tile at ``position``, or None if empty or out of bounds."""
        if not self.within_bounds(position):
            return None
        return self.cells[self._index(position)]

    def cell_available(self, position) -> bool:
        return self.cell_at(position) is None

    def cell_occupied(self, position) -> bool:
        return self.cell_at(position) is not None

    def insert_tile(self, tile: Tile):
        index = self._index((tile.x, tile.y))
        assert self.within_bounds((tile.x, tile.y)), f"{tile!r} is off the board"
        assert self.cells[index] is None, f"cell ({tile.x}, {tile.y}) is already occupied"
        assert tile.value >= 2 and not tile.value & (tile.value - 1), f"{tile!r} is not a power of two"
        self.cells[index] = tile

    def remove_tile(self, position):
        if self.within_bounds(position):
            self.cells[self._index(position)] = None

    def tiles(self) -> Iterator[Tile]:
        return (tile for tile in self.cells if tile is not None)

    def available_positions(self) -> List[Position]:
        """Empty cells, scanned with x outer and y inner."""
        size = self.size
        return [Position(i // size, i % size) for i, tile in enumerate(self.cells) if tile is None]

    def cells_available(self) -> bool:
        return None in self.cells

    def random_empty_position(self, rng=random) -> Optional[Position]:
        positions = self.available_positions()
        return rng.choice(positions) if positions else None

    def spawn_random_tile(self, rng=random, four_probability: float = 0.1) -> Optional[Tile]:
        """Environment move: drop a 2 (or, rarely, a 4) on a random empty cell."""
        if not self.cells_available():
            return None
        value = 2 if rng.random() >= four_probability else 4
        tile = Tile(self.random_empty_position(rng), value)
        self.insert_tile(tile)
        self.player_turn = True
        return tile

    def max_value(self) -> int:
        return max((tile.value for tile in self.tiles()), default=0)

    def signature(self) -> Tuple[int, ...]:
        """Hashable key: size, merge cap, then every cell value (0 = empty)."""
        values = tuple(tile.value if tile else 0 for tile in self.cells)
        return (self.size, self.max_merge_value) + values

    def clone(self) -> "Board":
        copy = Board.__new__(Board)
        copy.size = self.size
        copy.max_merge_value = self.max_merge_value
        copy.cells = [tile.clone() if tile else None for tile in self.cells]
        copy.player_turn = self.player_turn
        return copy

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------
    def can_merge(self, first: Tile, second: Tile) -> bool:
        if first.value >= self.max_merge_value or second.value >= self.max_merge_value:
            return False
        return first.value == second.value

    def prepare_tiles(self):
        for tile in self.tiles():
            tile.merged_from = None
            tile.save_position()

    def build_traversals(self, vector) -> Tuple[List[int], List[int]]:
        xs = list(range(self.size))
        ys = list(range(self.size))
        # Tiles nearest the destination edge go first.
        if vector[0] == 1:
            xs.reverse()
        if vector[1] == 1:
            ys.reverse()
        return xs, ys

    def find_farthest_position(self, position, vector) -> Tuple[Position, Position]:
        """Slide from ``position`` along ``vector``.

        Returns the farthest empty cell reached and the first cell past it,
        which is either out of bounds or occupied.
        """
        previous = Position(position[0], position[1])
        following = Position(previous.x + vector[0], previous.y + vector[1])
        while self.within_bounds(following) and self.cell_available(following):
            previous = following
            following = Position(previous.x + vector[0], previous.y + vector[1])
        return previous, following

    def move_tile(self, tile: Tile, position):
        self.cells[self._index((tile.x, tile.y))] = None
        self.cells[self._index(position)] = tile
        tile.update_position(position)

    def move(self, direction) -> MoveResult:
        """Slide every tile towards ``direction``, merging equal pairs.

        Never spawns a tile; that is the caller's job.
        """
        vector = VECTORS[Direction(direction)]
        xs, ys = self.build_traversals(vector)
        moved = False
        score = 0

        self.prepare_tiles()

        for x in xs:
            for y in ys:
                tile = self.cells[x * self.size + y]
                if tile is None:
                    continue

                farthest, following = self.find_farthest_position((x, y), vector)
                other = self.cell_at(following)

                if other is not None and other.merged_from is None and self.can_merge(tile, other):
                    merged = Tile(following, tile.value * 2)
                    merged.merged_from = (tile, other)
                    self.cells[self._index(following)] = merged
                    self.cells[x * self.size + y] = None
                    tile.update_position(following)
                    score += merged.value
                else:
                    self.move_tile(tile, farthest)

                if (tile.x, tile.y) != (x, y):
                    moved = True

        if moved:
            self.player_turn = False
        return MoveResult(moved, score)

    def tile_matches_available(self) -> bool:
        for tile in self.tiles():
            for vector in VECTORS.values():
                other = self.cell_at((tile.x + vector.x, tile.y + vector.y))
                if other is not None and self.can_merge(tile, other):
                    return True
        return False

    def has_moves_available(self) -> bool:
        return self.cells_available() or self.tile_matches_available()

    def __str__(self):
        width = max(4, len(str(self.max_value())))
        border = "+" + "+".join("-" * (width + 2) for _ in range(self.size)) + "+"
        lines = [border]
        for row in self.to_rows():
            cells = [(str(v) if v else ".").rjust(width) for v in row]
            lines.append("| " + " | ".join(cells) + " |")
            lines.append(border)
        return "\n".join(lines)
