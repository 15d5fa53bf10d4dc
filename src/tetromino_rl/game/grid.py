from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .geometry import ORIGIN, Pos

if TYPE_CHECKING:
    from .pieces import Tetromino


class Color(IntEnum):
    """Palette index stored per cell. 0 means the cell carries no color."""

    NONE = 0
    CYAN = 1
    BLUE = 2
    ORANGE = 3
    YELLOW = 4
    GREEN = 5
    PURPLE = 6
    RED = 7
    GRAY = 8


RGBA = {
    Color.CYAN: "rgba(153, 230, 255, 1)",
    Color.BLUE: "rgba(102, 153, 204, 1)",
    Color.ORANGE: "rgba(255, 102, 51, 1)",
    Color.YELLOW: "rgba(255, 204, 0, 1)",
    Color.GREEN: "rgba(102, 204, 102, 1)",
    Color.PURPLE: "rgba(204, 102, 204, 1)",
    Color.RED: "rgba(255, 77, 77, 1)",
    Color.GRAY: "rgba(204, 204, 204, 1)",
}


@dataclass(frozen=True)
class Cell:
    filled: int
    color: Optional[Color] = None


def _frozen(values, name: str) -> np.ndarray:
    try:
        arr = np.array(values, dtype=np.int8)
    except ValueError as exc:
        raise ValueError(f"{name} rows must all have the same length") from exc
    if arr.ndim != 2:
        raise ValueError(f"{name} must be two dimensional, got shape {arr.shape}")
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class Grid:
    """Rectangular cell matrix held as two parallel read-only arrays.

    `filled` holds 0/1 per cell and `color` the matching palette index.
    Rows are indexed by y (top to bottom), columns by x.
    """

    filled: np.ndarray
    color: np.ndarray

    def __post_init__(self) -> None:
        filled = _frozen(self.filled, "filled")
        color = _frozen(self.color, "color")
        if filled.shape != color.shape:
            raise ValueError(f"fill shape {filled.shape} does not match color shape {color.shape}")
        object.__setattr__(self, "filled", filled)
        object.__setattr__(self, "color", color)

    @classmethod
    def from_fill(cls, rows: Sequence[Sequence[int]], color: Optional[Color] = None) -> "Grid":
        filled = _frozen(rows, "filled")
        colors = np.where(filled != 0, int(color or Color.NONE), 0)
        return cls(filled, colors)

    @classmethod
    def from_cells(cls, rows: Iterable[Iterable[Cell]]) -> "Grid":
        cells = [list(row) for row in rows]
        filled = [[cell.filled for cell in row] for row in cells]
        colors = [[int(cell.color or Color.NONE) for cell in row] for row in cells]
        return cls(filled, colors)

    @property
    def height(self) -> int:
        return int(self.filled.shape[0])

    @property
    def width(self) -> int:
        return int(self.filled.shape[1])

    def exists(self, pos: Pos) -> bool:
        return 0 <= pos.y < self.height and 0 <= pos.x < self.width

    def get_fill(self, pos: Pos) -> int:
        return int(self.filled[pos.y, pos.x]) if self.exists(pos) else 0

    def get_cell_color(self, pos: Pos) -> Optional[Color]:
        if not self.exists(pos):
            return None
        value = int(self.color[pos.y, pos.x])
        return Color(value) if value else None

    def get_cell(self, pos: Pos) -> Optional[Cell]:
        if not self.exists(pos):
            return None
        return Cell(self.get_fill(pos), self.get_cell_color(pos))

    def with_color(self, color: Optional[Color], filled: int = 1) -> "Grid":
        """Recolor every cell whose fill equals `filled`."""
        colors = np.where(self.filled == filled, int(color or Color.NONE), self.color)
        return Grid(self.filled, colors)

    def rotate(self, direction: int) -> "Grid":
        # axes=(1, 0) turns positive k into clockwise quarter turns
        return Grid(
            np.rot90(self.filled, direction, axes=(1, 0)),
            np.rot90(self.color, direction, axes=(1, 0)),
        )

    def rows(self) -> List[List[Cell]]:
        return [
            [self.get_cell(Pos(x, y)) for x in range(self.width)]  # type: ignore[misc]
            for y in range(self.height)
        ]

    def fill_rows(self) -> List[List[int]]:
        return self.filled.tolist()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return np.array_equal(self.filled, other.filled) and np.array_equal(self.color, other.color)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Grid({self.fill_rows()!r})"


def make_grid(rows: int, columns: int, filled: int = 0, color: Optional[Color] = None) -> Grid:
    fill = np.full((rows, columns), filled, dtype=np.int8)
    colors = np.full((rows, columns), int(color or Color.NONE), dtype=np.int8)
    return Grid(fill, colors)


@dataclass(frozen=True, eq=False)
class PlayField:
    """The well pieces fall into. Its size is fixed by the grid it is built with."""

    pos: Pos
    grid: Grid

    @property
    def height(self) -> int:
        return self.grid.height

    @property
    def width(self) -> int:
        return self.grid.width

    def _local_cells(self, piece: "Tetromino") -> Tuple[np.ndarray, np.ndarray]:
        offset = piece.pos.minus(self.pos)
        ys, xs = np.nonzero(piece.grid.filled)
        return xs + offset.x, ys + offset.y

    def is_colliding(self, piece: "Tetromino") -> bool:
        """True if a filled piece cell overlaps the stack or leaves the well.

        Cells above the top row (y < 0) are allowed so pieces can spawn
        partially hidden.
        """
        xs, ys = self._local_cells(piece)
        if np.any((xs < 0) | (xs >= self.width) | (ys >= self.height)):
            return True
        visible = ys >= 0
        return bool(np.any(self.grid.filled[ys[visible], xs[visible]]))

    def merge(self, piece: "Tetromino") -> "PlayField":
        """Return a new field with the piece's cells OR-ed in.

        Existing field colors win over the piece's. Piece cells outside the
        field are dropped.
        """
        offset = piece.pos.minus(self.pos)
        y0, y1 = max(offset.y, 0), min(offset.y + piece.grid.height, self.height)
        x0, x1 = max(offset.x, 0), min(offset.x + piece.grid.width, self.width)
        filled = self.grid.filled.copy()
        color = self.grid.color.copy()
        if y0 < y1 and x0 < x1:
            window = (slice(y0, y1), slice(x0, x1))
            source = (slice(y0 - offset.y, y1 - offset.y), slice(x0 - offset.x, x1 - offset.x))
            filled[window] = filled[window] | piece.grid.filled[source]
            color[window] = np.where(color[window] != 0, color[window], piece.grid.color[source])
        return PlayField(self.pos, Grid(filled, color))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlayField):
            return NotImplemented
        return self.pos == other.pos and self.grid == other.grid

    __hash__ = None  # type: ignore[assignment]


def empty_field(width: int, height: int, pos: Pos = ORIGIN) -> PlayField:
    return PlayField(pos, make_grid(height, width))


def clear_filled_rows(field: PlayField) -> Tuple[PlayField, int]:
    """Drop full rows and pad the top with empty ones. Returns (field, removed)."""
    grid = field.grid
    full_rows = np.where(np.all(grid.filled != 0, axis=1))[0]
    if full_rows.size == 0:
        return field, 0
    num = int(full_rows.size)
    pad = np.zeros((num, grid.width), dtype=np.int8)
    filled = np.vstack((pad, np.delete(grid.filled, full_rows, axis=0)))
    color = np.vstack((pad, np.delete(grid.color, full_rows, axis=0)))
    return PlayField(field.pos, Grid(filled, color)), num
