from __future__ import annotations

import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np


Shape = Tuple[Tuple[bool, ...], ...]


class Tier(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def _shape(*rows: str) -> Shape:
    return tuple(tuple(ch == "#" for ch in row) for row in rows)


# Catalog index is the position in this tuple; bags and snapshots refer to
# pieces by that index.
CATALOG: Tuple[Shape, ...] = (
    # L-shapes
    _shape("#..", "###"),
    _shape("##", "#.", "#."),
    _shape("###", "..#"),
    _shape(".#", ".#", "##"),
    _shape("..#", "###"),
    _shape("#.", "#.", "##"),
    _shape("###", "#.."),
    _shape("##", ".#", ".#"),
    # T-shapes
    _shape("###", ".#."),
    _shape("#.", "##", "#."),
    _shape(".#.", "###"),
    _shape(".#", "##", ".#"),
    # S/Z shapes
    _shape(".##", "##."),
    _shape("#.", "##", ".#"),
    _shape("##.", ".##"),
    _shape(".#", "##", "#."),
    # 16: 3x3, 17: 2x2
    _shape("###", "###", "###"),
    _shape("##", "##"),
    # 18-19: four in a line
    _shape("#", "#", "#", "#"),
    _shape("####"),
    # 20-21: three in a line
    _shape("#", "#", "#"),
    _shape("###"),
    # 22-23: domino
    _shape("#", "#"),
    _shape("##"),
    # 24: single
    _shape("#"),
    # 25-26: five in a line
    _shape("#", "#", "#", "#", "#"),
    _shape("#####"),
)

TIERS: Dict[Tier, Tuple[int, ...]] = {
    Tier.EASY: (20, 21, 22, 23, 24),
    Tier.MEDIUM: tuple(range(16)),
    Tier.HARD: (16, 17, 18, 19, 25, 26),
}

PALETTE: Tuple[int, ...] = (
    0xFFFF6B6B,  # red
    0xFF4ECDC4,  # teal
    0xFFFFE66D,  # yellow
    0xFF95E1D3,  # mint
    0xFFF38181,  # pink
    0xFFAA96DA,  # purple
    0xFFFCBF49,  # orange
    0xFF06FFA5,  # green
)

WILD_COLOR = 0xFFFFD700
WILD_KIND = -1
MAX_COLOR = 0xFFFFFFFF


def check_color(value: Any) -> int:
    """Coerce an ARGB32 color, rejecting values outside 32 bits."""
    color = int(value)
    if not 0 <= color <= MAX_COLOR:
        raise ValueError(f"color {color:#x} is not an ARGB32 value")
    return color


def new_instance_id() -> str:
    return uuid.uuid4().hex


def _normalize_shape(shape: Sequence[Sequence[Any]]) -> Shape:
    rows = tuple(tuple(bool(v) for v in row) for row in shape)
    if not rows or not rows[0] or any(len(r) != len(rows[0]) for r in rows):
        raise ValueError("piece shape must be a non-empty rectangular matrix")
    if not any(any(r) for r in rows):
        raise ValueError("piece shape must cover at least one cell")
    return rows


@dataclass(frozen=True)
class Piece:
    """A placeable polyomino in a hand.

    ``id`` identifies this particular hand slot instance, so two pieces with
    the same shape and color are still removed independently.
    """

    id: str
    shape: Shape
    color: int
    kind: int = WILD_KIND
    array: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "shape", _normalize_shape(self.shape))
        object.__setattr__(self, "array", np.array(self.shape, dtype=np.bool_))

    @property
    def height(self) -> int:
        return len(self.shape)

    @property
    def width(self) -> int:
        return len(self.shape[0])

    @property
    def cell_count(self) -> int:
        return int(np.count_nonzero(self.array))

    @property
    def is_wild(self) -> bool:
        return self.kind == WILD_KIND

    def cells(self) -> List[Tuple[int, int]]:
        """(row, col) offsets of covered cells relative to the top-left corner."""
        rows, cols = np.nonzero(self.array)
        return [(int(r), int(c)) for r, c in zip(rows, cols)]

    @classmethod
    def from_catalog(cls, index: int, rng: Optional[random.Random] = None) -> "Piece":
        if not 0 <= index < len(CATALOG):
            raise ValueError(f"unknown catalog index {index}")
        rng = rng or random.SystemRandom()
        return cls(
            id=new_instance_id(),
            shape=CATALOG[index],
            color=rng.choice(PALETTE),
            kind=index,
        )

    @classmethod
    def wild(cls) -> "Piece":
        return cls(id=f"wild_{new_instance_id()}", shape=((True,),), color=WILD_COLOR)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "shape": [list(row) for row in self.shape],
            "color": self.color,
            "kind": self.kind,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Piece":
        if not isinstance(data, dict):
            raise ValueError("piece entry is not an object")
        kind = int(data.get("kind", WILD_KIND))
        if kind != WILD_KIND and not 0 <= kind < len(CATALOG):
            raise ValueError(f"unknown catalog index {kind}")
        return cls(
            id=str(data["id"]),
            shape=data["shape"],
            color=check_color(data["color"]),
            kind=kind,
        )


def tier_of(index: int) -> Tier:
    for tier, ids in TIERS.items():
        if index in ids:
            return tier
    raise ValueError(f"catalog index {index} belongs to no tier")
