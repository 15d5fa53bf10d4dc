"""Seeded bag randomizer.

Pieces come out as shuffled permutations of all seven types, so no type is
withheld for long. The whole stream is derived from one integer seed through a
linear congruential hash, with no other entropy source.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterator, Sequence, Tuple, TypeVar

T = TypeVar("T")

# LCG using GCC's constants
LCG_M = 0x80000000  # 2**31
LCG_A = 1103515245
LCG_C = 12345

BAG_ITEMS: Tuple[str, ...] = ("I", "J", "L", "O", "S", "T", "Z")


def hash_seed(seed: int) -> int:
    return (LCG_A * seed + LCG_C) % LCG_M


def scale(hashed: int) -> float:
    """Map a hash value onto [0, 1]."""
    return hashed / (LCG_M - 1)


def int_range(seed: int, low: int, high: int) -> int:
    """Integer in [low, high) drawn from the hash of `seed`."""
    if high <= low:
        return low
    value = math.floor(scale(hash_seed(seed)) * (high - low) + low)
    # scale() reaches exactly 1.0 for the largest hash
    return min(value, high - 1)


def random_insert(seed: int, items: Sequence[T], element: T) -> Tuple[T, ...]:
    index = int_range(seed, 0, len(items))
    return tuple(items[:index]) + (element,) + tuple(items[index:])


def shuffle(seed: int, items: Sequence[T]) -> Tuple[T, ...]:
    acc: Tuple[T, ...] = ()
    for element in items:
        acc = random_insert(hash_seed(seed + len(acc)), acc, element)
    return acc


@dataclass(frozen=True)
class BagSequence:
    """One node of the infinite piece stream.

    Nodes are plain values. `next()` returns a new node and leaves the
    receiver alone, so a stream can be replayed from any saved node.
    """

    seed: int
    pointer: int
    permutation: Tuple[str, ...]

    @property
    def value(self) -> str:
        return self.permutation[self.pointer]

    def next(self) -> "BagSequence":
        if self.pointer + 1 >= len(self.permutation):
            reseeded = hash_seed(self.seed)
            return BagSequence(reseeded, 0, shuffle(reseeded, BAG_ITEMS))
        return replace(self, pointer=self.pointer + 1)

    def take(self, count: int) -> Tuple[Tuple[str, ...], "BagSequence"]:
        """Draw `count` values; returns them with the node after the last one."""
        node = self
        drawn = []
        for _ in range(count):
            drawn.append(node.value)
            node = node.next()
        return tuple(drawn), node

    def __iter__(self) -> Iterator[str]:
        node = self
        while True:
            yield node.value
            node = node.next()


def new_bag(seed: int) -> BagSequence:
    return BagSequence(seed, 0, shuffle(seed, BAG_ITEMS))
