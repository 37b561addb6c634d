"""
Tilesmith - Tile Atlas Index

Per-atlas mapping from tile index to terrain kind. Every atlas has exactly
ATLAS_SIZE entries; the index is read-only once built.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..constants import ATLAS_SIZE
from ..formats import compact_json as json


@dataclass(frozen=True)
class TileAnimation:
    """Animation descriptor for a tile: frame indices cycled every `period` ticks."""

    frames: tuple[int, ...]
    period: int


@dataclass(frozen=True)
class TileEntry:
    """A single atlas tile and the terrain kind it depicts."""

    index: int
    atlas_id: int
    terrain_id: int
    animation: TileAnimation | None = None


class TileAtlasIndex:
    """Tile index -> terrain kind mapping for one atlas."""

    def __init__(
        self,
        atlas_id: int,
        terrain: list[int] | tuple[int, ...],
        animations: Mapping[int, TileAnimation] | None = None,
    ):
        if len(terrain) != ATLAS_SIZE:
            raise ValueError(
                f"Atlas {atlas_id} maps {len(terrain)} tiles (expected {ATLAS_SIZE})"
            )
        self.atlas_id = atlas_id
        self._terrain: tuple[int, ...] = tuple(int(t) for t in terrain)
        self._animations: dict[int, TileAnimation] = dict(animations or {})

        for index in self._animations:
            if not 0 <= index < ATLAS_SIZE:
                raise ValueError(f"Animation for out-of-range tile {index}")

    def terrain_of(self, tile_index: int) -> int:
        """Terrain id depicted by a tile. Raises IndexError outside the atlas."""
        if not 0 <= tile_index < ATLAS_SIZE:
            raise IndexError(f"Tile index {tile_index} outside atlas {self.atlas_id}")
        return self._terrain[tile_index]

    def entry(self, tile_index: int) -> TileEntry:
        return TileEntry(
            index=tile_index,
            atlas_id=self.atlas_id,
            terrain_id=self.terrain_of(tile_index),
            animation=self._animations.get(tile_index),
        )

    def tiles_of(self, terrain_id: int) -> list[int]:
        """All tile indices that depict a terrain."""
        return [i for i, t in enumerate(self._terrain) if t == terrain_id]

    @staticmethod
    def from_mapping(
        atlas_id: int,
        mapping: Mapping[int, int],
        default_terrain: int = 0,
    ) -> "TileAtlasIndex":
        """Build an index from a sparse {tile_index: terrain_id} mapping."""
        terrain = [default_terrain] * ATLAS_SIZE
        for tile_index, terrain_id in mapping.items():
            terrain[tile_index] = terrain_id
        return TileAtlasIndex(atlas_id, terrain)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "TileAtlasIndex":
        """
        Build an index from plain data.

        Format:
            {"atlas_id": 3, "terrain": [1024 ints],
             "animations": {"12": {"frames": [12, 13], "period": 8}}}
        """
        animations = {
            int(index): TileAnimation(
                frames=tuple(int(f) for f in anim["frames"]),
                period=int(anim.get("period", 1)),
            )
            for index, anim in data.get("animations", {}).items()
        }
        return TileAtlasIndex(int(data["atlas_id"]), data["terrain"], animations)

    @staticmethod
    def load(path: str | Path) -> "TileAtlasIndex":
        """Load an index from a JSON file in `from_dict` format."""
        with open(path) as f:
            return TileAtlasIndex.from_dict(json.load(f))


def load_atlas_directory(directory: str | Path) -> dict[int, TileAtlasIndex]:
    """Load every atlas index JSON file in a directory, keyed by atlas id."""
    atlases = {}
    for path in sorted(Path(directory).glob("*.json")):
        index = TileAtlasIndex.load(path)
        if index.atlas_id in atlases:
            raise ValueError(f"Atlas {index.atlas_id} defined twice (second in {path})")
        atlases[index.atlas_id] = index
    return atlases
