"""Shared pytest fixtures for pattern extraction and generation tests."""

import json

import pytest

from tilesmith.core.atlas_index import TileAtlasIndex
from tilesmith.core.terrain import TerrainCatalog, TerrainKind

PLAINS, FOREST, MOUNTAIN, PEAK, RIVER, SEA, SAND, FORT = range(1, 9)

FOOT = {"player": {"infantry": 1, "cavalry": 1}}
BLOCKED = {"player": {"infantry": 99, "cavalry": 99}}

# Tile index -> terrain id for atlas 0; unlisted tiles depict plains
ATLAS_0_TILES = {
    1: PLAINS, 2: PLAINS, 3: PLAINS, 4: PLAINS,
    40: FOREST, 41: FOREST, 42: FOREST,
    50: MOUNTAIN, 51: MOUNTAIN,
    60: PEAK,
    70: RIVER, 71: RIVER,
    80: SEA,
    90: SAND,
    100: FORT,
}


def make_layout_dict(rows, atlas_id=0, source_id=None):
    """Layout file contents for a list of tile rows."""
    data = {
        "atlas_id": atlas_id,
        "width": len(rows[0]) if rows else 0,
        "height": len(rows),
        "tiles": [tile for row in rows for tile in row],
    }
    if source_id is not None:
        data["source_id"] = source_id
    return data


def filled(width, height, tile):
    return [[tile] * width for _ in range(height)]


@pytest.fixture
def catalog():
    """Eight-terrain catalog with plains as the default terrain."""
    return TerrainCatalog(
        [
            TerrainKind(PLAINS, "plains", FOOT),
            TerrainKind(FOREST, "forest", {"player": {"infantry": 2, "cavalry": 3}}, avoid=20, defense=1),
            TerrainKind(MOUNTAIN, "mountain", {"player": {"infantry": 4}}, avoid=30, defense=2),
            TerrainKind(PEAK, "peak", BLOCKED, avoid=40),
            TerrainKind(RIVER, "river", {"player": {"infantry": 5}}),
            TerrainKind(SEA, "sea", BLOCKED),
            TerrainKind(SAND, "sand", {"player": {"infantry": 2, "cavalry": 3}}),
            TerrainKind(FORT, "fort", {"player": {"infantry": 2, "cavalry": 2}}, heal_amount=20, heal_period=1),
        ],
        default_terrain_id=PLAINS,
    )


@pytest.fixture
def atlas():
    """Atlas 0 index built from ATLAS_0_TILES."""
    return TileAtlasIndex.from_mapping(0, ATLAS_0_TILES, default_terrain=PLAINS)


@pytest.fixture
def atlases(atlas):
    return {0: atlas}


@pytest.fixture
def forest_center_rows():
    """5x5 plains layout with a single forest tile (40) in the center."""
    rows = filled(5, 5, 1)
    rows[2][2] = 40
    return rows


@pytest.fixture
def write_layout(tmp_path):
    """Write tile rows as a layout file under tmp_path/corpus and return its path."""
    corpus_dir = tmp_path / "corpus"
    corpus_dir.mkdir()

    def _write(name, rows, atlas_id=0, source_id=None):
        path = corpus_dir / f"{name}.json"
        with open(path, "w") as f:
            json.dump(make_layout_dict(rows, atlas_id, source_id), f)
        return path

    return _write


@pytest.fixture
def corpus_paths(write_layout):
    """Three small layouts on atlas 0 mixing plains, forest, mountain and river."""
    meadow = filled(6, 6, 1)
    for row in range(2, 4):
        for col in range(2, 5):
            meadow[row][col] = 40 + (row + col) % 3
    meadow[0][1] = 2
    meadow[5][4] = 3

    ridge = filled(7, 5, 2)
    for col in range(1, 6):
        ridge[2][col] = 50 + col % 2
    ridge[2][3] = 60
    ridge[4][0] = 4

    stream = filled(5, 6, 1)
    for row in range(6):
        stream[row][2] = 70 + row % 2
    stream[1][4] = 41

    return [
        write_layout("meadow", meadow),
        write_layout("ridge", ridge),
        write_layout("stream", stream),
    ]
