"""
Tilesmith - Terrain Layout Strategies

Interchangeable, seed-deterministic ways to produce a TerrainLayout:

- NoiseStrategy: thresholded fractal value noise, bands chosen per theme
- CellularStrategy: random fill relaxed by a cellular automaton into blobs
- FeatureScatterStrategy: weighted random draws of ranges, forests,
  rivers and strongholds stamped onto the theme's base terrain
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from ..core.neighbors import NEIGHBOR_OFFSETS
from .grids import TerrainLayout
from .noise import threshold_bands, value_noise
from .themes import ResolvedTheme

if TYPE_CHECKING:
    from .synthesizer import GenerationParams


class GenerationMode(Enum):
    NOISE = "noise"
    CELLULAR = "cellular"
    FEATURES = "features"


class LayoutStrategy(ABC):
    """Produces the terrain-kind grid for one synthesis run."""

    @abstractmethod
    def generate(self, params: GenerationParams, theme: ResolvedTheme) -> TerrainLayout:
        """Build a layout of params.width x params.height terrain ids."""


# =============================================================================
# Noise
# =============================================================================

class NoiseStrategy(LayoutStrategy):
    """Value-noise field cut into the theme's terrain bands."""

    def generate(self, params: GenerationParams, theme: ResolvedTheme) -> TerrainLayout:
        rng = np.random.default_rng(params.seed)
        field = value_noise(
            params.width,
            params.height,
            rng,
            scale=params.noise_scale,
            octaves=params.noise_octaves,
        )
        return TerrainLayout.from_array(threshold_bands(field, list(theme.bands)))


# =============================================================================
# Cellular Automaton
# =============================================================================

def moore_counts(mask: np.ndarray) -> np.ndarray:
    """Number of set cells in each cell's 8-neighborhood (off-grid counts as unset)."""
    padded = np.pad(mask.astype(np.int32), 1, mode="constant")
    height, width = mask.shape
    counts = np.zeros((height, width), dtype=np.int32)
    for dr, dc in NEIGHBOR_OFFSETS:
        counts += padded[1 + dr:1 + dr + height, 1 + dc:1 + dc + width]
    return counts


class CellularStrategy(LayoutStrategy):
    """
    Blob masses of the theme's blob terrain on its base terrain.

    Algorithm:
        1. Seed each cell as blob with probability `density`
        2. Repeat `iterations` times:
           - a blob cell survives with >= survive blob neighbors
           - a base cell becomes blob with >= birth blob neighbors
    """

    def __init__(self, birth: int = 5, survive: int = 4):
        self.birth = birth
        self.survive = survive

    def generate(self, params: GenerationParams, theme: ResolvedTheme) -> TerrainLayout:
        rng = np.random.default_rng(params.seed)
        density = params.cellular_density
        if density is None:
            density = theme.blob_density

        mask = rng.random((params.height, params.width)) < density
        for _ in range(params.cellular_iterations):
            counts = moore_counts(mask)
            mask = np.where(mask, counts >= self.survive, counts >= self.birth)

        cells = np.where(mask, theme.blob, theme.base).astype(np.int32)
        return TerrainLayout.from_array(cells)


# =============================================================================
# Feature Scatter
# =============================================================================

class FeatureScatterStrategy(LayoutStrategy):
    """
    Rule-based scattering of linear and blob features.

    Each of params.feature_count draws picks a feature kind by the theme's
    weights and stamps it at a random location.
    """

    def generate(self, params: GenerationParams, theme: ResolvedTheme) -> TerrainLayout:
        rng = random.Random(params.seed)
        layout = TerrainLayout(params.width, params.height, fill=theme.base)

        placers = {
            "range": self._place_range,
            "forest": self._place_forest,
            "river": self._place_river,
            "stronghold": self._place_stronghold,
        }
        kinds = [
            k for k in sorted(theme.feature_weights)
            if k in placers and theme.feature_weights[k] > 0
        ]
        if not kinds:
            return layout
        weights = [theme.feature_weights[k] for k in kinds]

        for _ in range(params.feature_count):
            kind = rng.choices(kinds, weights=weights)[0]
            placers[kind](layout, rng, theme)

        return layout

    def _place_range(self, layout: TerrainLayout, rng: random.Random, theme: ResolvedTheme):
        """Mountain ridge: a drifting walk with a peak core along its middle third."""
        mountain = theme.feature_terrain.get("range", theme.base)
        peak = theme.feature_terrain.get("range_core", mountain)

        length = rng.randint(4, max(4, (layout.width + layout.height) // 2))
        row = rng.randrange(layout.height)
        col = rng.randrange(layout.width)
        dr, dc = rng.choice(NEIGHBOR_OFFSETS)

        for step in range(length):
            if not layout.in_bounds(row, col):
                break
            core = length // 3 <= step < 2 * length // 3
            layout.set(row, col, peak if core else mountain)
            if rng.random() < 0.3:
                # Thicken the ridge sideways
                side_r, side_c = row + dc, col - dr
                if layout.in_bounds(side_r, side_c):
                    layout.set(side_r, side_c, mountain)
            if rng.random() < 0.25:
                dr, dc = rng.choice(NEIGHBOR_OFFSETS)
            row, col = row + dr, col + dc

    def _place_forest(self, layout: TerrainLayout, rng: random.Random, theme: ResolvedTheme):
        """Forest blob grown from a seed cell by random frontier expansion."""
        forest = theme.feature_terrain.get("forest", theme.base)
        target = rng.randint(4, max(4, layout.width * layout.height // 12))

        start = (rng.randrange(layout.height), rng.randrange(layout.width))
        grown = {start}
        frontier = [start]
        while frontier and len(grown) < target:
            row, col = frontier.pop(rng.randrange(len(frontier)))
            for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1)):
                cell = (row + dr, col + dc)
                if cell not in grown and layout.in_bounds(*cell) and rng.random() < 0.7:
                    grown.add(cell)
                    frontier.append(cell)

        for row, col in sorted(grown):
            layout.set(row, col, forest)

    def _place_river(self, layout: TerrainLayout, rng: random.Random, theme: ResolvedTheme):
        """River crossing the map from one edge toward the opposite edge."""
        river = theme.feature_terrain.get("river", theme.base)

        if rng.random() < 0.5:
            # North to south
            row, col = 0, rng.randrange(layout.width)
            step = (1, 0)
        else:
            # West to east
            row, col = rng.randrange(layout.height), 0
            step = (0, 1)

        while layout.in_bounds(row, col):
            layout.set(row, col, river)
            roll = rng.random()
            if roll < 0.2:
                # Meander sideways, keeping the river 4-connected
                side = 1 if rng.random() < 0.5 else -1
                row, col = row + step[1] * side, col + step[0] * side
                if not layout.in_bounds(row, col):
                    break
                layout.set(row, col, river)
            row, col = row + step[0], col + step[1]

    def _place_stronghold(self, layout: TerrainLayout, rng: random.Random, theme: ResolvedTheme):
        """Single fort cell on open ground with a cleared ring around it."""
        fort = theme.feature_terrain.get("stronghold", theme.base)
        if layout.height < 3 or layout.width < 3:
            return
        row = rng.randrange(1, layout.height - 1)
        col = rng.randrange(1, layout.width - 1)
        for dr, dc in NEIGHBOR_OFFSETS:
            layout.set(row + dr, col + dc, theme.base)
        layout.set(row, col, fort)


STRATEGIES: dict[GenerationMode, LayoutStrategy] = {
    GenerationMode.NOISE: NoiseStrategy(),
    GenerationMode.CELLULAR: CellularStrategy(),
    GenerationMode.FEATURES: FeatureScatterStrategy(),
}


def get_strategy(mode: GenerationMode) -> LayoutStrategy:
    return STRATEGIES[mode]
