from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Dict, List, Tuple

import numpy as np

from .geometry import Pos
from .grid import Color, Grid
from .kicks import wrap_rotation_state


class TetrominoType(IntEnum):
    I = 0
    J = 1
    L = 2
    O = 3
    S = 4
    T = 5
    Z = 6


# Spawn boxes are square so quarter turns keep the same footprint.
BASE_SHAPES: Dict[TetrominoType, List[List[int]]] = {
    TetrominoType.I: [
        [0, 0, 0, 0, 0],
        [0, 0, 0, 0, 0],
        [0, 1, 1, 1, 1],
        [0, 0, 0, 0, 0],
        [0, 0, 0, 0, 0],
    ],
    TetrominoType.J: [[1, 0, 0], [1, 1, 1], [0, 0, 0]],
    TetrominoType.L: [[0, 0, 1], [1, 1, 1], [0, 0, 0]],
    TetrominoType.O: [[0, 1, 1], [0, 1, 1], [0, 0, 0]],
    TetrominoType.S: [[0, 1, 1], [1, 1, 0], [0, 0, 0]],
    TetrominoType.T: [[0, 1, 0], [1, 1, 1], [0, 0, 0]],
    TetrominoType.Z: [[1, 1, 0], [0, 1, 1], [0, 0, 0]],
}

PIECE_COLORS: Dict[TetrominoType, Color] = {
    TetrominoType.I: Color.CYAN,
    TetrominoType.J: Color.BLUE,
    TetrominoType.L: Color.ORANGE,
    TetrominoType.O: Color.YELLOW,
    TetrominoType.S: Color.GREEN,
    TetrominoType.T: Color.PURPLE,
    TetrominoType.Z: Color.RED,
}


@dataclass(frozen=True)
class Tetromino:
    pos: Pos
    grid: Grid
    kind: TetrominoType
    rotation_state: int = 0  # 0..3

    def translate(self, offset: Pos) -> "Tetromino":
        return replace(self, pos=self.pos.add(offset))

    def translate_to(self, pos: Pos) -> "Tetromino":
        return replace(self, pos=pos)

    def add_rotation_state(self, direction: int) -> int:
        return wrap_rotation_state(self.rotation_state, direction)

    def rotate(self, direction: int) -> "Tetromino":
        """Turn the shape a quarter in place; kicks are resolved by the caller."""
        return replace(
            self,
            grid=self.grid.rotate(direction),
            rotation_state=self.add_rotation_state(direction),
        )

    def without_color(self) -> "Tetromino":
        return replace(self, grid=self.grid.with_color(None, 1))

    def trimmed(self) -> "Tetromino":
        ys, xs = np.nonzero(self.grid.filled)
        if ys.size == 0:
            return self
        window = (slice(ys.min(), ys.max() + 1), slice(xs.min(), xs.max() + 1))
        return replace(self, grid=Grid(self.grid.filled[window], self.grid.color[window]))

    def cells(self) -> List[Tuple[int, int]]:
        """Filled cells as (x, y) in field coordinates."""
        ys, xs = np.nonzero(self.grid.filled)
        return [(self.pos.x + int(x), self.pos.y + int(y)) for y, x in zip(ys, xs)]


def get_tetromino(pos: Pos, kind: TetrominoType) -> Tetromino:
    return Tetromino(pos, Grid.from_fill(BASE_SHAPES[kind], PIECE_COLORS[kind]), kind, 0)
