"""
Tilesmith - Pattern Extractor

Scans a corpus of hand-authored layouts and records, for every interior
cell, which tile was used under its (center terrain, neighbor context)
signature. Produces one PatternDatabase per atlas.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Union

from ..constants import MIN_LAYOUT_SIZE
from ..formats.layout_data import LayoutData, LayoutFormatError
from .atlas_index import TileAtlasIndex
from .neighbors import neighbor_context
from .pattern_database import PatternDatabase
from .terrain import TerrainCatalog

log = logging.getLogger(__name__)

CorpusEntry = Union[str, Path, LayoutData]


@dataclass
class ExtractionStats:
    """Summary of one extraction run."""

    layouts_scanned: int = 0
    layouts_skipped: int = 0
    observations: int = 0
    unknown_terrain_cells: int = 0
    skip_reasons: dict[str, str] = field(default_factory=dict)  # source -> reason

    def skip(self, source: str, reason: str) -> None:
        self.layouts_skipped += 1
        self.skip_reasons[source] = reason


class PatternExtractor:
    """
    Builds pattern databases from a layout corpus.

    Algorithm:
        1. Load each layout (paths are read, LayoutData is re-validated)
        2. Skip layouts below min_size in either dimension and layouts on
           atlases with no TileAtlasIndex
        3. Translate every tile to its terrain kind through the atlas index
        4. For each interior cell, record (center terrain, 8-neighbor context)
           -> tile into that atlas's database

    Source layouts are never modified.
    """

    def __init__(
        self,
        terrain_catalog: TerrainCatalog,
        atlas_index_by_atlas_id: Mapping[int, TileAtlasIndex],
        min_size: int = MIN_LAYOUT_SIZE,
        corpus_root: str | Path | None = None,
    ):
        self.terrain_catalog = terrain_catalog
        self.atlases = atlas_index_by_atlas_id
        self.min_size = max(min_size, MIN_LAYOUT_SIZE)
        self.corpus_root = corpus_root  # Files without a source id are named relative to it
        self.stats = ExtractionStats()
        self._warned_terrain: set[int] = set()

    def extract(self, corpus: Iterable[CorpusEntry]) -> dict[int, PatternDatabase]:
        """
        Extract patterns from every layout in a corpus.

        Args:
            corpus: Layout file paths and/or already-loaded LayoutData

        Returns:
            Dictionary mapping atlas id -> PatternDatabase. Atlases with no
            usable layouts are absent.
        """
        self.stats = ExtractionStats()
        self._warned_terrain = set()
        databases: dict[int, PatternDatabase] = {}

        for entry in corpus:
            layout = self._load(entry)
            if layout is None:
                continue
            db = databases.get(layout.atlas_id)
            if db is None:
                db = PatternDatabase(layout.atlas_id)
            if self._scan(layout, db):
                databases[layout.atlas_id] = db

        log.info(
            "Extracted %d observations from %d layouts (%d skipped) into %d atlas databases",
            self.stats.observations,
            self.stats.layouts_scanned,
            self.stats.layouts_skipped,
            len(databases),
        )
        return databases

    def extract_layout(self, layout: CorpusEntry) -> dict[int, PatternDatabase]:
        """
        Extract one layout into fresh partial databases.

        Partial results from independent workers combine with
        PatternDatabase.merge into the same result as a sequential run.
        """
        loaded = self._load(layout)
        if loaded is None:
            return {}
        db = PatternDatabase(loaded.atlas_id)
        if not self._scan(loaded, db):
            return {}
        return {loaded.atlas_id: db}

    def _load(self, entry: CorpusEntry) -> LayoutData | None:
        """Load a corpus entry, logging and skipping unreadable ones."""
        layout = LayoutData()
        try:
            if isinstance(entry, LayoutData):
                source = entry.source_id or "<memory>"
                layout = LayoutData.from_dict(entry.to_dict(), source)
            else:
                layout.load(entry, self.corpus_root)
        except LayoutFormatError as e:
            log.warning("Skipping malformed layout %s", e)
            self.stats.skip(e.source, e.reason)
            return None
        except OSError as e:
            log.warning("Skipping unreadable layout %s: %s", entry, e)
            self.stats.skip(str(entry), str(e))
            return None
        return layout

    def _scan(self, layout: LayoutData, db: PatternDatabase) -> bool:
        """Record every interior cell of a layout. Returns False if skipped."""
        source = layout.source_id

        atlas = self.atlases.get(layout.atlas_id)
        if atlas is None:
            log.warning("Skipping %s: unknown atlas id %d", source, layout.atlas_id)
            self.stats.skip(source, f"unknown atlas id {layout.atlas_id}")
            return False

        if layout.width < self.min_size or layout.height < self.min_size:
            log.debug(
                "Skipping %s: %dx%d is smaller than %dx%d",
                source, layout.width, layout.height, self.min_size, self.min_size,
            )
            self.stats.skip(source, f"smaller than {self.min_size}x{self.min_size}")
            return False

        terrain = [[atlas.terrain_of(tile) for tile in row] for row in layout.tiles]

        recorded = 0
        for row in range(1, layout.height - 1):
            for col in range(1, layout.width - 1):
                center = terrain[row][col]
                if center not in self.terrain_catalog:
                    self.stats.unknown_terrain_cells += 1
                    if center not in self._warned_terrain:
                        self._warned_terrain.add(center)
                        log.warning(
                            "Terrain id %d (atlas %d) is not in the catalog; its cells are not recorded",
                            center, layout.atlas_id,
                        )
                    continue

                context = neighbor_context(terrain, row, col)
                db.add_observation(center, context, layout.tiles[row][col], source)
                recorded += 1

        self.stats.layouts_scanned += 1
        self.stats.observations += recorded
        log.debug("Scanned %s: %d observations", source, recorded)
        return True


def extract(
    corpus: Iterable[CorpusEntry],
    terrain_catalog: TerrainCatalog,
    atlas_index_by_atlas_id: Mapping[int, TileAtlasIndex],
) -> dict[int, PatternDatabase]:
    """Extract one PatternDatabase per atlas from a layout corpus."""
    return PatternExtractor(terrain_catalog, atlas_index_by_atlas_id).extract(corpus)
