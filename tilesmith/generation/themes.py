"""
Tilesmith - Generation Themes

Named tables that tell the layout strategies which terrain kinds to use:
noise bands, the cellular blob terrain, and feature scatter weights.
Themes name terrains; names resolve to ids through the TerrainCatalog.
"""

import logging
from dataclasses import dataclass, field

from ..core.terrain import TerrainCatalog

log = logging.getLogger(__name__)

FEATURE_KINDS = ("range", "forest", "river", "stronghold")


@dataclass(frozen=True)
class Theme:
    """Terrain vocabulary for one kind of map."""

    name: str
    base: str
    # (upper_bound, terrain name) in ascending bound order, for noise fields
    bands: tuple[tuple[float, str], ...]
    blob: str
    blob_density: float = 0.45
    # feature kind -> draw weight
    feature_weights: dict[str, float] = field(default_factory=dict, hash=False)
    # feature role -> terrain name
    feature_terrain: dict[str, str] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class ResolvedTheme:
    """A Theme with every terrain name turned into a catalog id."""

    name: str
    base: int
    bands: tuple[tuple[float, int], ...]
    blob: int
    blob_density: float
    feature_weights: dict[str, float] = field(hash=False)
    feature_terrain: dict[str, int] = field(hash=False)


_FEATURE_TERRAIN = {
    "range": "mountain",
    "range_core": "peak",
    "forest": "forest",
    "river": "river",
    "stronghold": "fort",
}

THEMES: dict[str, Theme] = {
    "grassland": Theme(
        name="grassland",
        base="plains",
        bands=((0.22, "forest"), (0.74, "plains"), (0.9, "mountain"), (1.0, "peak")),
        blob="forest",
        blob_density=0.42,
        feature_weights={"range": 2.0, "forest": 4.0, "river": 1.0, "stronghold": 1.0},
        feature_terrain=_FEATURE_TERRAIN,
    ),
    "highland": Theme(
        name="highland",
        base="plains",
        bands=((0.2, "forest"), (0.5, "plains"), (0.82, "mountain"), (1.0, "peak")),
        blob="mountain",
        blob_density=0.47,
        feature_weights={"range": 5.0, "forest": 2.0, "river": 1.0, "stronghold": 1.0},
        feature_terrain=_FEATURE_TERRAIN,
    ),
    "coast": Theme(
        name="coast",
        base="plains",
        bands=((0.3, "sea"), (0.38, "sand"), (0.8, "plains"), (1.0, "forest")),
        blob="sea",
        blob_density=0.45,
        feature_weights={"range": 1.0, "forest": 2.0, "river": 3.0, "stronghold": 1.0},
        feature_terrain=_FEATURE_TERRAIN,
    ),
}

DEFAULT_THEME = "grassland"


def get_theme(name: str) -> Theme:
    """Theme by name, falling back to the default theme."""
    theme = THEMES.get(name)
    if theme is None:
        log.warning("Unknown theme '%s'; using '%s'", name, DEFAULT_THEME)
        theme = THEMES[DEFAULT_THEME]
    return theme


def resolve_theme(theme: Theme, catalog: TerrainCatalog) -> ResolvedTheme:
    """
    Resolve theme terrain names to catalog ids.

    Names missing from the catalog fall back to the catalog default terrain.
    """
    fallback = catalog.default_terrain_id

    def resolve(name: str) -> int:
        terrain_id = catalog.id_for_name(name)
        if terrain_id is None:
            log.warning(
                "Theme '%s' terrain '%s' is not in the catalog; using terrain %d",
                theme.name, name, fallback,
            )
            return fallback
        return terrain_id

    base = resolve(theme.base)
    return ResolvedTheme(
        name=theme.name,
        base=base,
        bands=tuple((upper, resolve(name)) for upper, name in theme.bands),
        blob=resolve(theme.blob),
        blob_density=theme.blob_density,
        feature_weights=dict(theme.feature_weights),
        feature_terrain={
            role: resolve(name) for role, name in theme.feature_terrain.items()
        },
    )
