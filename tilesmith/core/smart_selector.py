"""
Tilesmith - Smart Tile Selection

Picks the tile to place for a terrain kind given its neighbor context,
degrading gracefully from exact learned patterns to the terrain's whole
tile pool to a hard default.
"""

import hashlib
import random
from enum import Enum
from typing import Sequence

from ..constants import DEFAULT_TILE, UNIFORM_MIN_SHARE, UNIFORM_WINDOW
from .neighbors import NeighborContext
from .pattern_database import PatternDatabase


class SelectionTier(Enum):
    """Which rule produced a selection."""

    EXACT = "exact"
    UNIFORM = "uniform"
    TERRAIN = "terrain"
    DEFAULT = "default"


def stable_hash(*parts) -> int:
    """Process-independent integer hash of the parts (unlike hash())."""
    key = "|".join(str(p) for p in parts)
    return int(hashlib.md5(key.encode("utf-8")).hexdigest()[:16], 16)


class SmartSelector:
    """
    Stateless-per-call tile selection over a passed-in PatternDatabase.

    Tiers, first success wins:
        1. Exact (center, context) pattern: pick among its valid tiles
        2. Terrain fallback: pick among every tile seen for the terrain
        3. DEFAULT_TILE

    Without a seed, picks are uniform random via `rng`. With a seed, a pick
    is a pure function of (terrain, context, seed, position).

    Uniform neighborhoods (all 8 neighbors equal the center) with a known
    position skip exact matching: the candidates are the terrain's most
    common tiles (at most `uniform_window`, each with at least
    `uniform_min_share` of the top tile's count) and the index comes from
    a hash of (seed, terrain, position). Large same-terrain regions then
    vary cell to cell, reproducibly, without pulling in rare tiles.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        uniform_window: int = UNIFORM_WINDOW,
        uniform_min_share: float = UNIFORM_MIN_SHARE,
    ):
        self.rng = rng if rng is not None else random.Random()
        self.uniform_window = uniform_window
        self.uniform_min_share = uniform_min_share
        self.tier_counts: dict[SelectionTier, int] = {tier: 0 for tier in SelectionTier}

    def select_tile(
        self,
        terrain_id: int,
        context: Sequence[int],
        database: PatternDatabase,
        seed: int | None = None,
        position: tuple[int, int] | None = None,
    ) -> int:
        """
        Tile index to place for a terrain in a neighbor context.

        Args:
            terrain_id: Center terrain kind
            context: 8 neighbor terrain ids in compass order
            database: Pattern database for the target atlas
            seed: Makes the pick reproducible when given
            position: (row, col) of the cell, if placing into a grid

        Returns:
            A tile index; DEFAULT_TILE when nothing is known about the terrain
        """
        tile, _ = self.explain(terrain_id, context, database, seed, position)
        return tile

    def explain(
        self,
        terrain_id: int,
        context: Sequence[int],
        database: PatternDatabase,
        seed: int | None = None,
        position: tuple[int, int] | None = None,
    ) -> tuple[int, SelectionTier]:
        """Like select_tile, but also reports which tier served the request."""
        if not isinstance(context, NeighborContext):
            context = NeighborContext(context)

        if position is not None and context.is_uniform(terrain_id):
            window = self.uniform_candidates(terrain_id, database)
            if window:
                row, col = position
                index = stable_hash(seed or 0, terrain_id, row, col) % len(window)
                return self._count(window[index], SelectionTier.UNIFORM)

        pattern = database.lookup(terrain_id, context)
        if pattern is not None and pattern.valid_tiles:
            tile = self._pick(sorted(pattern.valid_tiles), terrain_id, context, seed, position)
            return self._count(tile, SelectionTier.EXACT)

        pool = database.tiles_for_terrain(terrain_id)
        if pool:
            tile = self._pick(sorted(pool), terrain_id, context, seed, position)
            return self._count(tile, SelectionTier.TERRAIN)

        return self._count(DEFAULT_TILE, SelectionTier.DEFAULT)

    def uniform_candidates(self, terrain_id: int, database: PatternDatabase) -> list[int]:
        """Ranked window of common tiles used inside same-terrain regions."""
        ranked = database.ranked_tiles_for_terrain(terrain_id)
        if not ranked:
            return []
        top_count = database.tile_count(terrain_id, ranked[0])
        floor = top_count * self.uniform_min_share
        window = [t for t in ranked[:self.uniform_window] if database.tile_count(terrain_id, t) >= floor]
        return window

    def _pick(
        self,
        candidates: list[int],
        terrain_id: int,
        context: NeighborContext,
        seed: int | None,
        position: tuple[int, int] | None,
    ) -> int:
        if len(candidates) == 1:
            return candidates[0]
        if seed is None:
            return self.rng.choice(candidates)
        row, col = position if position is not None else (-1, -1)
        index = stable_hash(seed, terrain_id, *context, row, col) % len(candidates)
        return candidates[index]

    def _count(self, tile: int, tier: SelectionTier) -> tuple[int, SelectionTier]:
        self.tier_counts[tier] += 1
        return tile, tier


def select_tile(
    terrain_id: int,
    context: Sequence[int],
    database: PatternDatabase,
    seed: int | None = None,
    position: tuple[int, int] | None = None,
) -> int:
    """Single tile suggestion for a (terrain, context) pair."""
    return SmartSelector().select_tile(terrain_id, context, database, seed, position)
