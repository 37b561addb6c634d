"""
Tilesmith - Layout Post-Processing

Edits applied to a TerrainLayout after its first tile realization:
border insertion, stronghold stamping and the narrow connectivity repair.
Each returns the set of (row, col) cells it changed so only those cells
(and their neighbors) need re-realizing.
"""

import random
from collections import Counter

from ..core.neighbors import NEIGHBOR_OFFSETS, neighbor_cells
from ..core.terrain import TerrainCatalog
from .grids import TerrainLayout


def insert_border(layout: TerrainLayout, terrain_id: int) -> set[tuple[int, int]]:
    """Set the outer ring of cells to a terrain."""
    changed = set()
    for row in range(layout.height):
        for col in range(layout.width):
            on_edge = row in (0, layout.height - 1) or col in (0, layout.width - 1)
            if on_edge and layout.set(row, col, terrain_id):
                changed.add((row, col))
    return changed


def stamp_strongholds(
    layout: TerrainLayout,
    count: int,
    fort_id: int,
    clear_id: int,
    rng: random.Random,
) -> set[tuple[int, int]]:
    """
    Stamp fort cells with a cleared ring of open ground around each.

    Forts land on interior cells only (off the outer ring) and never
    overwrite an earlier fort.
    """
    changed: set[tuple[int, int]] = set()
    if count <= 0 or layout.height < 5 or layout.width < 5:
        return changed

    candidates = [
        (row, col)
        for row in range(2, layout.height - 2)
        for col in range(2, layout.width - 2)
        if layout.get(row, col) != fort_id
    ]
    rng.shuffle(candidates)

    placed: list[tuple[int, int]] = []
    for row, col in candidates:
        if len(placed) >= count:
            break
        # Keep stamps from overlapping
        if any(abs(row - r) <= 2 and abs(col - c) <= 2 for r, c in placed):
            continue
        for dr, dc in NEIGHBOR_OFFSETS:
            if layout.set(row + dr, col + dc, clear_id):
                changed.add((row + dr, col + dc))
        if layout.set(row, col, fort_id):
            changed.add((row, col))
        placed.append((row, col))

    return changed


def repair_connectivity(layout: TerrainLayout, catalog: TerrainCatalog) -> set[tuple[int, int]]:
    """
    Replace isolated impassable cells with passable terrain.

    An impassable cell whose in-grid 8 neighbors are all passable becomes the
    most common of those neighbor terrains (ties go to the lowest id).
    Decisions are made against the layout as it was before the pass.
    """
    before = layout.copy()
    changed = set()

    for row in range(layout.height):
        for col in range(layout.width):
            if catalog.is_passable(before.get(row, col)):
                continue
            neighbors = [
                before.get(r, c)
                for r, c in neighbor_cells(row, col, layout.height, layout.width)
            ]
            if not neighbors or not all(catalog.is_passable(t) for t in neighbors):
                continue
            counts = Counter(neighbors)
            replacement = min(counts, key=lambda t: (-counts[t], t))
            if layout.set(row, col, replacement):
                changed.add((row, col))

    return changed
