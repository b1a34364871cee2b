"""Integer bitboard mirroring a square grid's occupancy.

Bit ``row * size + col`` is set iff the cell at ``(row, col)`` is occupied.
Python ints are unbounded, so boards wider than 8x8 (more than 64 cells)
need no special handling.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, List, Sequence, Tuple

import numpy as np


def cell_bit(row: int, col: int, size: int) -> int:
    return 1 << (row * size + col)


@lru_cache(maxsize=None)
def row_masks(size: int) -> Tuple[int, ...]:
    full_row = (1 << size) - 1
    return tuple(full_row << (row * size) for row in range(size))


@lru_cache(maxsize=None)
def col_masks(size: int) -> Tuple[int, ...]:
    masks = []
    for col in range(size):
        mask = 0
        for row in range(size):
            mask |= cell_bit(row, col, size)
        masks.append(mask)
    return tuple(masks)


def shape_mask(shape: Sequence[Sequence[bool]], x: int, y: int, size: int) -> int:
    """Footprint of ``shape`` with its top-left corner at column x, row y.

    The caller is responsible for bounds; cells outside the board would
    alias onto neighbouring rows.
    """
    mask = 0
    for dy, shape_row in enumerate(shape):
        for dx, filled in enumerate(shape_row):
            if filled:
                mask |= cell_bit(y + dy, x + dx, size)
    return mask


class BitMask:
    def __init__(self, size: int, value: int = 0) -> None:
        self.size = int(size)
        self.value = int(value)

    @classmethod
    def from_occupancy(cls, occupied: np.ndarray) -> "BitMask":
        size = int(occupied.shape[0])
        value = 0
        for index in np.flatnonzero(occupied.reshape(-1)):
            value |= 1 << int(index)
        return cls(size, value)

    def is_set(self, row: int, col: int) -> bool:
        return bool(self.value & cell_bit(row, col, self.size))

    def intersects(self, mask: int) -> bool:
        return (self.value & mask) != 0

    def add(self, mask: int) -> None:
        self.value |= mask

    def full_rows(self) -> List[int]:
        return [i for i, m in enumerate(row_masks(self.size)) if (self.value & m) == m]

    def full_cols(self) -> List[int]:
        return [i for i, m in enumerate(col_masks(self.size)) if (self.value & m) == m]

    def positions(self) -> Iterable[Tuple[int, int]]:
        value = self.value
        while value:
            low = value & -value
            index = low.bit_length() - 1
            yield divmod(index, self.size)
            value ^= low

    def copy(self) -> "BitMask":
        return BitMask(self.size, self.value)

    def __or__(self, mask: int) -> int:
        return self.value | mask

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitMask):
            return NotImplemented
        return self.size == other.size and self.value == other.value

    def __repr__(self) -> str:
        return f"BitMask(size={self.size}, value={self.value:#x})"
