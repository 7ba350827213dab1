"""Positions, tiles and move directions."""

from enum import IntEnum
from typing import Dict, NamedTuple, Optional, Tuple


class Position(NamedTuple):
    x: int
    y: int


class Direction(IntEnum):
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    @classmethod
    def parse(cls, token) -> "Direction":
        """Decode a direction from a name, a WASD key or an integer."""
        if isinstance(token, Direction):
            return token
        if isinstance(token, int):
            return cls(token)
        key = str(token).strip().lower()
        if key.isdigit():
            return cls(int(key))
        if key in DIRECTION_ALIASES:
            return DIRECTION_ALIASES[key]
        raise ValueError(f"Unknown direction: {token!r}")


# Unit vectors, y grows downwards.
VECTORS: Dict[Direction, Position] = {
    Direction.UP: Position(0, -1),
    Direction.RIGHT: Position(1, 0),
    Direction.DOWN: Position(0, 1),
    Direction.LEFT: Position(-1, 0),
}

DIRECTION_ALIASES: Dict[str, Direction] = {
    "up": Direction.UP, "w": Direction.UP,
    "right": Direction.RIGHT, "d": Direction.RIGHT,
    "down": Direction.DOWN, "s": Direction.DOWN,
    "left": Direction.LEFT, "a": Direction.LEFT,
}


class Tile:
    """A numbered piece on the board.

    ``merged_from`` holds the two tiles consumed to create this one during
    the current move. ``previous_position`` is where the tile stood before
    the move; renderers use both to animate, the engine never reads them
    back except to clear them.
    """

    __slots__ = ("x", "y", "value", "previous_position", "merged_from")

    def __init__(self, position, value: int = 2):
        self.x = position[0]
        self.y = position[1]
        self.value = value
        self.previous_position: Optional[Position] = None
        self.merged_from: Optional[Tuple["Tile", "Tile"]] = None

    @property
    def position(self) -> Position:
        return Position(self.x, self.y)

    def save_position(self):
        self.previous_position = Position(self.x, self.y)

    def update_position(self, position):
        self.x = position[0]
        self.y = position[1]

    def clone(self) -> "Tile":
        copy = Tile((self.x, self.y), self.value)
        copy.previous_position = self.previous_position
        if self.merged_from is not None:
            copy.merged_from = (self.merged_from[0].clone(), self.merged_from[1].clone())
        return copy

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "value": self.value,
            "previous_position": list(self.previous_position) if self.previous_position else None,
            "merged_from": [t.to_dict() for t in self.merged_from] if self.merged_from else None,
        }

    def __repr__(self):
        return f"Tile(({self.x}, {self.y}), {self.value})"
