"""
Tilesmith - Generation Grids

TerrainLayout is the intermediate terrain-kind grid produced by a layout
strategy; TileGrid is the finished grid of tile indices.
"""

from __future__ import annotations

import numpy as np

from ..constants import DEFAULT_TILE
from ..formats.layout_data import LayoutData


class TerrainLayout:
    """Mutable 2D grid of terrain ids, indexed [row, col]."""

    def __init__(self, width: int, height: int, fill: int = 0):
        self.cells = np.full((height, width), fill, dtype=np.int32)

    @staticmethod
    def from_array(cells) -> "TerrainLayout":
        cells = np.asarray(cells, dtype=np.int32)
        if cells.ndim != 2:
            raise ValueError(f"Terrain layout must be 2D, got shape {cells.shape}")
        layout = TerrainLayout(0, 0)
        layout.cells = cells.copy()
        return layout

    @property
    def width(self) -> int:
        return int(self.cells.shape[1])

    @property
    def height(self) -> int:
        return int(self.cells.shape[0])

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def get(self, row: int, col: int) -> int:
        return int(self.cells[row, col])

    def set(self, row: int, col: int, terrain_id: int) -> bool:
        """Set a cell. Returns True if the terrain changed."""
        if int(self.cells[row, col]) == terrain_id:
            return False
        self.cells[row, col] = terrain_id
        return True

    def count(self, terrain_id: int) -> int:
        return int(np.count_nonzero(self.cells == terrain_id))

    def copy(self) -> "TerrainLayout":
        return TerrainLayout.from_array(self.cells)

    def diff(self, other: "TerrainLayout") -> set[tuple[int, int]]:
        """Cells whose terrain differs from another layout of the same shape."""
        rows, cols = np.nonzero(self.cells != other.cells)
        return {(int(r), int(c)) for r, c in zip(rows, cols)}


class TileGrid:
    """Finished 2D grid of tile indices on one atlas."""

    def __init__(self, atlas_id: int, width: int, height: int, fill: int = DEFAULT_TILE):
        self.atlas_id = atlas_id
        self.tiles: list[list[int]] = [[fill] * width for _ in range(height)]

    @property
    def width(self) -> int:
        return len(self.tiles[0]) if self.tiles else 0

    @property
    def height(self) -> int:
        return len(self.tiles)

    def get(self, row: int, col: int) -> int:
        return self.tiles[row][col]

    def set(self, row: int, col: int, tile_index: int):
        self.tiles[row][col] = tile_index

    def to_bytes(self) -> bytes:
        """Row-major little-endian uint16 tile indices."""
        return np.asarray(self.tiles, dtype="<u2").tobytes()

    def to_layout_data(self, source_id: str = "generated") -> LayoutData:
        return LayoutData(
            atlas_id=self.atlas_id,
            tiles=[row[:] for row in self.tiles],
            source_id=source_id,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TileGrid):
            return NotImplemented
        return self.atlas_id == other.atlas_id and self.tiles == other.tiles

    __hash__ = None
