"""
Tilesmith - Pattern Registry

Owns the per-atlas pattern databases for a process. Constructed once and
passed to whatever needs selection, so extraction and selection stay
independently testable.
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from ..constants import PATTERN_FILE_TEMPLATE
from .atlas_index import TileAtlasIndex
from .pattern_database import PatternDatabase, PatternDatabaseError
from .pattern_extractor import CorpusEntry, PatternExtractor
from .terrain import TerrainCatalog

log = logging.getLogger(__name__)

DEFAULT_PATTERN_DIR = Path(__file__).parent.parent.parent / "data" / "patterns"


def pattern_path(directory: str | Path, atlas_id: int) -> Path:
    return Path(directory) / PATTERN_FILE_TEMPLATE.format(atlas_id=atlas_id)


class PatternRegistry:
    """Atlas id -> PatternDatabase, with an empty database for unknown atlases."""

    def __init__(self, databases: Mapping[int, PatternDatabase] | None = None):
        self._databases: dict[int, PatternDatabase] = dict(databases or {})
        self.rejected: set[int] = set()  # Atlases whose stored data was corrupt

    def __contains__(self, atlas_id: int) -> bool:
        return atlas_id in self._databases

    def __len__(self) -> int:
        return len(self._databases)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._databases))

    def get(self, atlas_id: int) -> PatternDatabase:
        """
        Database for an atlas.

        Unknown atlases get an empty database (registered so repeated calls
        return the same object), which makes selection fall through to the
        hard default tile.
        """
        db = self._databases.get(atlas_id)
        if db is None:
            db = PatternDatabase(atlas_id)
            self._databases[atlas_id] = db
        return db

    def put(self, db: PatternDatabase) -> None:
        self._databases[db.atlas_id] = db

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load_atlas(self, path: str | Path, atlas_id: int) -> PatternDatabase:
        """
        Load one atlas database from disk.

        Corrupt data (or data stored for a different atlas) is rejected and
        replaced by an empty database for that atlas only.
        """
        try:
            db = PatternDatabase.load(path)
            if db.atlas_id != atlas_id:
                raise PatternDatabaseError(
                    f"File holds atlas {db.atlas_id}, expected {atlas_id}"
                )
        except (PatternDatabaseError, OSError, UnicodeDecodeError) as e:
            log.warning("Rejecting pattern database %s: %s", path, e)
            self.rejected.add(atlas_id)
            db = PatternDatabase(atlas_id)
        self._databases[atlas_id] = db
        return db

    def load_directory(self, directory: str | Path = DEFAULT_PATTERN_DIR) -> list[int]:
        """
        Load every atlas_<id>.json in a directory.

        Returns:
            Atlas ids loaded (including rejected ones, which are now empty)
        """
        directory = Path(directory)
        loaded = []
        if not directory.exists():
            log.info("Pattern directory %s does not exist; no databases loaded", directory)
            return loaded

        for path in sorted(directory.glob(PATTERN_FILE_TEMPLATE.format(atlas_id="*"))):
            suffix = path.stem.split("_", 1)[-1]
            try:
                atlas_id = int(suffix)
            except ValueError:
                log.warning("Ignoring pattern file with non-numeric atlas id: %s", path)
                continue
            self.load_atlas(path, atlas_id)
            loaded.append(atlas_id)

        log.info("Loaded %d pattern databases from %s", len(loaded), directory)
        return loaded

    def save_directory(self, directory: str | Path = DEFAULT_PATTERN_DIR) -> list[Path]:
        """Write every database as atlas_<id>.json."""
        written = []
        for atlas_id in self:
            written.append(self._databases[atlas_id].save(pattern_path(directory, atlas_id)))
        return written

    def ensure(
        self,
        directory: str | Path,
        corpus: Iterable[CorpusEntry],
        terrain_catalog: TerrainCatalog,
        atlas_index_by_atlas_id: Mapping[int, TileAtlasIndex],
        corpus_root: str | Path | None = None,
    ) -> list[int]:
        """
        Load cached databases, extracting the corpus on a cache miss.

        Any atlas in `atlas_index_by_atlas_id` without a cache file (or whose
        cache file was rejected) triggers one extraction run; the missing
        databases are saved back into the directory. corpus_root names files
        that carry no source id (see PatternExtractor).

        Returns:
            Atlas ids that were freshly extracted
        """
        directory = Path(directory)
        missing = []
        for atlas_id in sorted(atlas_index_by_atlas_id):
            path = pattern_path(directory, atlas_id)
            if path.exists():
                self.load_atlas(path, atlas_id)
                if atlas_id not in self.rejected:
                    continue
            missing.append(atlas_id)

        if not missing:
            return []

        log.info("Pattern cache miss for atlases %s; extracting corpus", missing)
        extractor = PatternExtractor(
            terrain_catalog, atlas_index_by_atlas_id, corpus_root=corpus_root
        )
        extracted = extractor.extract(corpus)
        for atlas_id in missing:
            db = extracted.get(atlas_id, PatternDatabase(atlas_id))
            self.put(db)
            self.rejected.discard(atlas_id)
            db.save(pattern_path(directory, atlas_id))
        return missing
