"""
Unit tests for neighbor contexts and pattern signatures.
"""

import numpy as np
import pytest

from tilesmith.constants import OFF_GRID
from tilesmith.core.neighbors import (
    COMPASS,
    EdgePolicy,
    NeighborContext,
    PatternSignature,
    make_signature,
    neighbor_cells,
    neighbor_context,
)

GRID = [
    [1, 2, 3],
    [4, 5, 6],
    [7, 8, 9],
]


# =============================================================================
# NeighborContext
# =============================================================================

class TestNeighborContext:
    """Tests for NeighborContext construction and queries."""

    def test_accepts_eight_ints(self):
        context = NeighborContext([1, 2, 3, 4, 5, 6, 7, 8])
        assert list(context) == [1, 2, 3, 4, 5, 6, 7, 8]

    @pytest.mark.parametrize("size", [0, 7, 9])
    def test_wrong_length_raises(self, size):
        with pytest.raises(ValueError, match="needs 8 entries"):
            NeighborContext([1] * size)

    def test_non_int_entry_raises(self):
        with pytest.raises(ValueError, match="must be ints"):
            NeighborContext([1, 1, 1, 1, "1", 1, 1, 1])

    def test_numpy_ints_become_plain_ints(self):
        context = NeighborContext(np.arange(8, dtype=np.int64))
        assert context == tuple(range(8))
        assert all(type(t) is int for t in context)
        assert hash(context) == hash(NeighborContext(range(8)))

    def test_numpy_bool_entry_raises(self):
        with pytest.raises(ValueError, match="must be ints"):
            NeighborContext(np.ones(8, dtype=bool))

    def test_bool_entry_raises(self):
        with pytest.raises(ValueError, match="must be ints"):
            NeighborContext([1, 1, 1, True, 1, 1, 1, 1])

    def test_structural_equality_and_hash(self):
        a = NeighborContext([1, 2, 1, 2, 1, 2, 1, 2])
        b = NeighborContext((1, 2, 1, 2, 1, 2, 1, 2))
        assert a == b
        assert hash(a) == hash(b)
        assert {a: "x"}[b] == "x"

    def test_is_uniform(self):
        assert NeighborContext.uniform(3).is_uniform(3)
        assert not NeighborContext([3, 3, 3, 3, 3, 3, 3, 4]).is_uniform(3)

    def test_get_by_direction(self):
        context = NeighborContext(range(8))
        for i, direction in enumerate(COMPASS):
            assert context.get(direction) == i


class TestSignature:
    """Tests for make_signature."""

    def test_wraps_plain_sequence(self):
        signature = make_signature(2, [1] * 8)
        assert isinstance(signature, PatternSignature)
        assert isinstance(signature.context, NeighborContext)
        assert signature == (2, NeighborContext.uniform(1))

    def test_rejects_bad_context(self):
        with pytest.raises(ValueError):
            make_signature(2, [1, 1])


# =============================================================================
# Context Computation
# =============================================================================

class TestNeighborContextComputation:
    """Tests for neighbor_context over grids."""

    def test_interior_cell_compass_order(self):
        context = neighbor_context(GRID, 1, 1)
        # N, NE, E, SE, S, SW, W, NW
        assert list(context) == [2, 3, 6, 9, 8, 7, 4, 1]

    def test_background_policy(self):
        context = neighbor_context(GRID, 0, 0, EdgePolicy.BACKGROUND, background=0)
        assert list(context) == [0, 0, 2, 5, 4, 0, 0, 0]

    def test_clamp_policy(self):
        context = neighbor_context(GRID, 0, 0, EdgePolicy.CLAMP)
        assert list(context) == [1, 2, 2, 5, 4, 4, 1, 1]

    def test_sentinel_policy(self):
        context = neighbor_context(GRID, 2, 2, EdgePolicy.SENTINEL)
        assert list(context) == [6, OFF_GRID, OFF_GRID, OFF_GRID, OFF_GRID, OFF_GRID, 8, 5]

    def test_numpy_grid_gives_plain_ints(self):
        context = neighbor_context(np.array(GRID, dtype=np.int32), 1, 1)
        assert list(context) == [2, 3, 6, 9, 8, 7, 4, 1]
        assert all(type(t) is int for t in context)


class TestNeighborCells:
    """Tests for neighbor_cells."""

    def test_interior(self):
        assert len(neighbor_cells(1, 1, 3, 3)) == 8

    def test_corner(self):
        assert neighbor_cells(0, 0, 3, 3) == [(0, 1), (1, 1), (1, 0)]

    def test_single_cell_grid(self):
        assert neighbor_cells(0, 0, 1, 1) == []
