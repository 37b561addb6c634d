"""
Tilesmith - Neighbor Contexts

Compass-ordered 8-neighbor terrain contexts and the (center, context)
signatures that key learned tile choices.
"""

from enum import Enum
from numbers import Integral
from typing import NamedTuple, Sequence

from ..constants import CONTEXT_SIZE, OFF_GRID


# =============================================================================
# Compass Constants
# =============================================================================

COMPASS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")

# Offsets as (delta_row, delta_col); row increases downward
COMPASS_DELTAS = {
    "N": (-1, 0),
    "NE": (-1, 1),
    "E": (0, 1),
    "SE": (1, 1),
    "S": (1, 0),
    "SW": (1, -1),
    "W": (0, -1),
    "NW": (-1, -1),
}

NEIGHBOR_OFFSETS = tuple(COMPASS_DELTAS[d] for d in COMPASS)


class EdgePolicy(Enum):
    """How off-grid neighbors resolve when a context is built."""

    BACKGROUND = "background"  # Off-grid reads as the background terrain
    CLAMP = "clamp"  # Off-grid reads as the nearest in-grid cell
    SENTINEL = "sentinel"  # Off-grid reads as OFF_GRID


# =============================================================================
# Context and Signature
# =============================================================================

class NeighborContext(tuple):
    """
    The 8 terrain ids around a cell in N, NE, E, SE, S, SW, W, NW order.

    Equality and hashing are structural (tuple semantics). Anything other
    than exactly 8 integers is rejected at construction. numpy integers are
    accepted and stored as plain ints.
    """

    __slots__ = ()

    def __new__(cls, terrains: Sequence[int]):
        values = tuple(terrains)
        if len(values) != CONTEXT_SIZE:
            raise ValueError(
                f"NeighborContext needs {CONTEXT_SIZE} entries, got {len(values)}"
            )
        for value in values:
            if isinstance(value, bool) or not isinstance(value, Integral):
                raise ValueError(f"NeighborContext entries must be ints, got {value!r}")
        return super().__new__(cls, (int(v) for v in values))

    def __repr__(self) -> str:
        return f"NeighborContext({list(self)})"

    def is_uniform(self, terrain_id: int) -> bool:
        """True if every neighbor is the given terrain."""
        return all(t == terrain_id for t in self)

    def get(self, direction: str) -> int:
        return self[COMPASS.index(direction)]

    @staticmethod
    def uniform(terrain_id: int) -> "NeighborContext":
        return NeighborContext([terrain_id] * CONTEXT_SIZE)


class PatternSignature(NamedTuple):
    """Composite key: center terrain id plus its neighbor context."""

    center: int
    context: NeighborContext


def make_signature(center: int, context: Sequence[int]) -> PatternSignature:
    if not isinstance(context, NeighborContext):
        context = NeighborContext(context)
    return PatternSignature(int(center), context)


# =============================================================================
# Context Computation
# =============================================================================

def neighbor_context(
    grid,
    row: int,
    col: int,
    edge_policy: EdgePolicy = EdgePolicy.BACKGROUND,
    background: int = 0,
) -> NeighborContext:
    """
    Build the neighbor context of a cell in a 2D terrain grid.

    Args:
        grid: 2D terrain ids indexable as grid[row][col] (lists or numpy)
        row: Cell row
        col: Cell column
        edge_policy: How off-grid neighbors resolve
        background: Terrain read for off-grid cells under BACKGROUND

    Returns:
        NeighborContext in compass order
    """
    height = len(grid)
    width = len(grid[0]) if height else 0

    values = []
    for dr, dc in NEIGHBOR_OFFSETS:
        nr, nc = row + dr, col + dc
        if 0 <= nr < height and 0 <= nc < width:
            values.append(int(grid[nr][nc]))
        elif edge_policy is EdgePolicy.CLAMP:
            nr = min(max(nr, 0), height - 1)
            nc = min(max(nc, 0), width - 1)
            values.append(int(grid[nr][nc]))
        elif edge_policy is EdgePolicy.SENTINEL:
            values.append(OFF_GRID)
        else:
            values.append(background)

    return NeighborContext(values)


def neighbor_cells(row: int, col: int, height: int, width: int) -> list[tuple[int, int]]:
    """In-grid 8-neighbors of a cell, in compass order."""
    cells = []
    for dr, dc in NEIGHBOR_OFFSETS:
        nr, nc = row + dr, col + dc
        if 0 <= nr < height and 0 <= nc < width:
            cells.append((nr, nc))
    return cells
