from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Pos:
    """Integer 2D vector. y grows downward, matching field rows."""

    x: int
    y: int

    def add(self, other: "Pos") -> "Pos":
        return Pos(self.x + other.x, self.y + other.y)

    def minus(self, other: "Pos") -> "Pos":
        return Pos(self.x - other.x, self.y - other.y)

    def scale(self, factor: int) -> "Pos":
        return Pos(self.x * factor, self.y * factor)

    def scale_x(self, factor: int) -> "Pos":
        return Pos(self.x * factor, self.y)

    def scale_y(self, factor: int) -> "Pos":
        return Pos(self.x, self.y * factor)

    def __add__(self, other: "Pos") -> "Pos":
        return self.add(other)

    def __sub__(self, other: "Pos") -> "Pos":
        return self.minus(other)


ORIGIN = Pos(0, 0)
DOWN = Pos(0, 1)
UP = Pos(0, -1)
