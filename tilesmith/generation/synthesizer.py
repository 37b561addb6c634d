"""
Tilesmith - Layout Synthesizer

Procedural layout generation in two stages: a strategy builds a terrain
layout, then every cell is realized into a tile through SmartSelector.
Post-processing edits re-realize only the cells they touch.
"""

import logging
import random
from dataclasses import dataclass
from typing import Iterable

from ..constants import DEFAULT_MAX_PASSES
from ..core.neighbors import EdgePolicy, neighbor_cells, neighbor_context
from ..core.pattern_database import PatternDatabase
from ..core.pattern_registry import PatternRegistry
from ..core.smart_selector import SmartSelector, stable_hash
from ..core.terrain import TerrainCatalog
from .grids import TerrainLayout, TileGrid
from .post_process import insert_border, repair_connectivity, stamp_strongholds
from .strategies import GenerationMode, get_strategy
from .themes import DEFAULT_THEME, ResolvedTheme, get_theme, resolve_theme

log = logging.getLogger(__name__)


@dataclass
class GenerationParams:
    """Everything one synthesis run depends on."""

    width: int = 20
    height: int = 15
    atlas_id: int = 0
    seed: int | None = None
    mode: GenerationMode = GenerationMode.NOISE
    theme: str = DEFAULT_THEME
    edge_policy: EdgePolicy = EdgePolicy.BACKGROUND
    border_terrain: str | None = None
    strongholds: int = 0
    repair_connectivity: bool = True
    max_passes: int = DEFAULT_MAX_PASSES

    # Strategy tuning
    noise_scale: float = 6.0
    noise_octaves: int = 3
    cellular_density: float | None = None  # None = theme default
    cellular_iterations: int = 4
    feature_count: int = 6

    def validate(self):
        """Raise ValueError for parameters no run can satisfy."""
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Layout size must be positive, got {self.width}x{self.height}")
        if self.max_passes < 1:
            raise ValueError(f"max_passes must be at least 1, got {self.max_passes}")
        if self.seed is not None and self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")
        if self.noise_scale <= 0:
            raise ValueError(f"noise_scale must be positive, got {self.noise_scale}")
        if self.cellular_density is not None and not 0.0 <= self.cellular_density <= 1.0:
            raise ValueError(f"cellular_density must be in [0, 1], got {self.cellular_density}")
        if self.strongholds < 0 or self.feature_count < 0 or self.cellular_iterations < 0:
            raise ValueError("Counts must be non-negative")


def _sub_rng(seed: int | None, salt: str) -> random.Random:
    """Independent generator per stage, derived from the run seed."""
    if seed is None:
        return random.Random()
    return random.Random(stable_hash(seed, salt))


class LayoutSynthesizer:
    """
    Generates finished tile grids from generation parameters.

    Algorithm:
        1. Terrain stage: the strategy for params.mode builds a TerrainLayout
        2. Realization pass: every cell's context -> SmartSelector -> tile
        3. Stamping stage: border insertion and strongholds, then re-realize
           the changed cells and their neighbors
        4. Connectivity stage: isolated impassable cells become passable,
           then re-realize again

    Realization passes are capped at params.max_passes; a stage that would
    need a pass past the cap is skipped so the tile grid always matches the
    final terrain layout.
    """

    def __init__(
        self,
        registry: PatternRegistry,
        catalog: TerrainCatalog,
        selector: SmartSelector | None = None,
    ):
        self.registry = registry
        self.catalog = catalog
        self.selector = selector if selector is not None else SmartSelector()

    def synthesize(self, params: GenerationParams) -> TileGrid:
        _, grid = self.generate(params)
        return grid

    def generate(self, params: GenerationParams) -> tuple[TerrainLayout, TileGrid]:
        """Synthesize and also return the final terrain layout."""
        params.validate()
        theme = resolve_theme(get_theme(params.theme), self.catalog)
        db = self.registry.get(params.atlas_id)

        layout = get_strategy(params.mode).generate(params, theme)
        grid = TileGrid(params.atlas_id, layout.width, layout.height)

        self.realize(layout, grid, params, db)
        passes = 1

        stages = [("stamping", self._stamp)]
        if params.repair_connectivity:
            stages.append(("connectivity", self._repair))

        for name, stage in stages:
            if passes >= params.max_passes:
                log.warning(
                    "Skipping %s stage: all %d realization passes used", name, params.max_passes
                )
                continue
            changed = stage(layout, params, theme)
            if not changed:
                continue
            self.retile(layout, grid, changed, params, db)
            passes += 1
            log.debug("%s stage changed %d cells (pass %d)", name, len(changed), passes)

        return layout, grid

    def realize(
        self,
        layout: TerrainLayout,
        grid: TileGrid,
        params: GenerationParams,
        db: PatternDatabase | None = None,
        cells: Iterable[tuple[int, int]] | None = None,
    ) -> int:
        """
        Select tiles for cells of a layout (all cells by default).

        Returns:
            Number of cells realized
        """
        if db is None:
            db = self.registry.get(params.atlas_id)
        if cells is None:
            cells = [(r, c) for r in range(layout.height) for c in range(layout.width)]

        background = self.catalog.default_terrain_id
        realized = 0
        for row, col in sorted(cells):
            context = neighbor_context(layout.cells, row, col, params.edge_policy, background)
            tile = self.selector.select_tile(
                layout.get(row, col), context, db, params.seed, (row, col)
            )
            grid.set(row, col, tile)
            realized += 1
        return realized

    def retile(
        self,
        layout: TerrainLayout,
        grid: TileGrid,
        cells: Iterable[tuple[int, int]],
        params: GenerationParams,
        db: PatternDatabase | None = None,
    ) -> int:
        """
        Re-realize edited cells and every neighbor whose context they changed.

        Used after post-processing and after external edits to a layout.
        """
        affected = set()
        for row, col in cells:
            if not layout.in_bounds(row, col):
                continue
            affected.add((row, col))
            affected.update(neighbor_cells(row, col, layout.height, layout.width))
        return self.realize(layout, grid, params, db, affected)

    def _stamp(self, layout: TerrainLayout, params: GenerationParams, theme: ResolvedTheme):
        changed = set()
        if params.border_terrain is not None:
            border = self.catalog.id_for_name(params.border_terrain)
            if border is None:
                log.warning("Border terrain '%s' is not in the catalog; no border inserted",
                            params.border_terrain)
            else:
                changed |= insert_border(layout, border)

        if params.strongholds > 0:
            fort = theme.feature_terrain.get("stronghold", theme.base)
            changed |= stamp_strongholds(
                layout,
                params.strongholds,
                fort,
                theme.base,
                _sub_rng(params.seed, "strongholds"),
            )
        return changed

    def _repair(self, layout: TerrainLayout, params: GenerationParams, theme: ResolvedTheme):
        return repair_connectivity(layout, self.catalog)


def synthesize(
    params: GenerationParams,
    registry: PatternRegistry,
    catalog: TerrainCatalog,
) -> TileGrid:
    """Generate a finished tile grid."""
    return LayoutSynthesizer(registry, catalog).synthesize(params)
