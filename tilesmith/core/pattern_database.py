"""
Tilesmith - Pattern Database

Learned index from (center terrain, neighbor context) to the tile indices
hand-authored layouts used there, with a corroboration-weighted quality
model and lossless JSON persistence.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Sequence

from ..formats import compact_json as json
from ..constants import (
    ATLAS_SIZE,
    CONTEXT_SIZE,
    HIGH_TIER_MIN_FREQUENCY,
    HIGH_TIER_MIN_SOURCES,
    HIGH_TIER_SCORE,
    MEDIUM_TIER_SCORE,
    PATTERN_FORMAT_VERSION,
    QUALITY_FREQUENCY_CAP,
    QUALITY_FREQUENCY_WEIGHT,
    QUALITY_SOURCE_CAP,
    QUALITY_SOURCE_WEIGHT,
)
from .neighbors import NeighborContext, PatternSignature, make_signature


class PatternDatabaseError(Exception):
    """Raised when serialized pattern data is missing fields or inconsistent."""


class QualityTier(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _check_tile_index(tile_index: int) -> None:
    if not 0 <= tile_index < ATLAS_SIZE:
        raise ValueError(f"Tile index {tile_index} outside atlas range 0..{ATLAS_SIZE - 1}")


# =============================================================================
# Tile Pattern
# =============================================================================

class TilePattern:
    """
    Every tile observed under one exact signature.

    Created from its first observation, so `valid_tiles` is never empty.
    Append-only: observations only ever add tiles, frequency and sources.
    """

    def __init__(self, center: int, context: NeighborContext, tile_index: int, source_id: str):
        _check_tile_index(tile_index)
        self.center = center
        self.context = context
        self.valid_tiles: set[int] = {tile_index}
        self.frequency: int = 1
        self.sources: set[str] = {source_id}

    @property
    def signature(self) -> PatternSignature:
        return PatternSignature(self.center, self.context)

    def observe(self, tile_index: int, source_id: str) -> None:
        _check_tile_index(tile_index)
        self.valid_tiles.add(tile_index)
        self.frequency += 1
        self.sources.add(source_id)

    def copy(self) -> "TilePattern":
        return TilePattern.restore(
            self.center, self.context, self.valid_tiles, self.frequency, self.sources
        )

    @staticmethod
    def restore(
        center: int,
        context: NeighborContext,
        tiles,
        frequency: int,
        sources,
    ) -> "TilePattern":
        """Rebuild a pattern from stored counts (tiles and sources must be non-empty)."""
        tiles = sorted(tiles)
        sources = sorted(sources)
        pattern = TilePattern(center, context, tiles[0], sources[0])
        pattern.valid_tiles = set(tiles)
        pattern.frequency = frequency
        pattern.sources = set(sources)
        return pattern

    def absorb(self, other: "TilePattern") -> None:
        """Union another pattern with the same signature into this one."""
        self.valid_tiles |= other.valid_tiles
        self.frequency += other.frequency
        self.sources |= other.sources

    def __repr__(self) -> str:
        return (
            f"TilePattern(center={self.center}, context={list(self.context)}, "
            f"tiles={sorted(self.valid_tiles)}, frequency={self.frequency}, "
            f"sources={len(self.sources)})"
        )


# =============================================================================
# Quality Model
# =============================================================================

def quality_score(pattern: TilePattern) -> float:
    """
    Corroboration-weighted confidence in [0, 1].

    Frequency and distinct-source count each saturate at a cap, and the
    source term carries most of the weight, so one layout repeating a
    pattern tops out at 0.55.
    """
    frequency_part = min(pattern.frequency, QUALITY_FREQUENCY_CAP) / QUALITY_FREQUENCY_CAP
    source_part = min(len(pattern.sources), QUALITY_SOURCE_CAP) / QUALITY_SOURCE_CAP
    return QUALITY_FREQUENCY_WEIGHT * frequency_part + QUALITY_SOURCE_WEIGHT * source_part


def classify(pattern: TilePattern) -> QualityTier:
    score = quality_score(pattern)
    if (
        score >= HIGH_TIER_SCORE
        and pattern.frequency >= HIGH_TIER_MIN_FREQUENCY
        and len(pattern.sources) >= HIGH_TIER_MIN_SOURCES
    ):
        return QualityTier.HIGH
    if score >= MEDIUM_TIER_SCORE:
        return QualityTier.MEDIUM
    return QualityTier.LOW


# =============================================================================
# Database
# =============================================================================

class PatternDatabase:
    """
    Signature -> TilePattern index for one atlas.

    Alongside the exact patterns it keeps a per-terrain pool of every tile
    ever observed for that terrain (with observation counts), used as the
    fallback when no exact signature matches.
    """

    def __init__(self, atlas_id: int):
        self.atlas_id = atlas_id
        self._patterns: dict[PatternSignature, TilePattern] = {}
        # terrain_id -> {tile_index: observation count}
        self._terrain_tiles: dict[int, dict[int, int]] = {}

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[TilePattern]:
        for signature in sorted(self._patterns):
            yield self._patterns[signature]

    def __contains__(self, signature: PatternSignature) -> bool:
        return signature in self._patterns

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatternDatabase):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def is_empty(self) -> bool:
        return not self._patterns and not self._terrain_tiles

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def add_observation(
        self,
        center: int,
        context: Sequence[int],
        tile_index: int,
        source_id: str,
    ) -> TilePattern:
        """
        Record one tile seen at a cell with the given center terrain and context.

        Tile membership is a set; frequency and provenance record every call.

        Raises:
            ValueError: If the context is not 8 entries or the tile is out of range
        """
        signature = make_signature(center, context)
        pattern = self._patterns.get(signature)
        if pattern is None:
            pattern = TilePattern(signature.center, signature.context, tile_index, source_id)
            self._patterns[signature] = pattern
        else:
            pattern.observe(tile_index, source_id)

        pool = self._terrain_tiles.setdefault(signature.center, {})
        pool[tile_index] = pool.get(tile_index, 0) + 1
        return pattern

    def merge(self, other: "PatternDatabase") -> None:
        """
        Union a partial database into this one.

        Frequencies are summed, tile sets and provenance unioned.
        """
        if other.atlas_id != self.atlas_id:
            raise ValueError(
                f"Cannot merge atlas {other.atlas_id} patterns into atlas {self.atlas_id}"
            )

        for signature, pattern in other._patterns.items():
            mine = self._patterns.get(signature)
            if mine is None:
                self._patterns[signature] = pattern.copy()
            else:
                mine.absorb(pattern)

        for terrain_id, counts in other._terrain_tiles.items():
            pool = self._terrain_tiles.setdefault(terrain_id, {})
            for tile_index, count in counts.items():
                pool[tile_index] = pool.get(tile_index, 0) + count

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def lookup(self, center: int, context: Sequence[int]) -> TilePattern | None:
        """Exact signature match only."""
        return self._patterns.get(make_signature(center, context))

    def tiles_for_terrain(self, terrain_id: int) -> set[int]:
        """Every tile observed for a terrain, across all contexts."""
        return set(self._terrain_tiles.get(terrain_id, {}))

    def ranked_tiles_for_terrain(self, terrain_id: int) -> list[int]:
        """Fallback pool ordered by observation count (desc), then tile index."""
        counts = self._terrain_tiles.get(terrain_id, {})
        return sorted(counts, key=lambda tile: (-counts[tile], tile))

    def tile_count(self, terrain_id: int, tile_index: int) -> int:
        return self._terrain_tiles.get(terrain_id, {}).get(tile_index, 0)

    @property
    def terrain_ids(self) -> list[int]:
        return sorted(self._terrain_tiles)

    def quality_score(self, pattern: TilePattern) -> float:
        return quality_score(pattern)

    def classify(self, pattern: TilePattern) -> QualityTier:
        return classify(pattern)

    def tier_counts(self) -> dict[QualityTier, int]:
        counts = {tier: 0 for tier in QualityTier}
        for pattern in self._patterns.values():
            counts[classify(pattern)] += 1
        return counts

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form with deterministic ordering."""
        patterns = [
            {
                "center": pattern.center,
                "context": list(pattern.context),
                "tiles": sorted(pattern.valid_tiles),
                "frequency": pattern.frequency,
                "sources": sorted(pattern.sources),
            }
            for pattern in self
        ]

        terrain_tiles = []
        for terrain_id in sorted(self._terrain_tiles):
            counts = self._terrain_tiles[terrain_id]
            tiles = sorted(counts)
            terrain_tiles.append({
                "terrain": terrain_id,
                "tiles": tiles,
                "counts": [counts[t] for t in tiles],
            })

        return {
            "format_version": PATTERN_FORMAT_VERSION,
            "atlas_id": self.atlas_id,
            "patterns": patterns,
            "terrain_tiles": terrain_tiles,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "PatternDatabase":
        """
        Rebuild a database from `to_dict` output.

        Raises:
            PatternDatabaseError: On missing fields, unsupported versions,
                impossible tile indices or counts, or malformed contexts
        """
        try:
            version = data["format_version"]
            atlas_id = data["atlas_id"]
            raw_patterns = data["patterns"]
            raw_terrain_tiles = data["terrain_tiles"]
        except (KeyError, TypeError) as e:
            raise PatternDatabaseError(f"Missing field in pattern data: {e}") from e

        if version != PATTERN_FORMAT_VERSION:
            raise PatternDatabaseError(f"Unsupported pattern format version {version!r}")
        if not isinstance(atlas_id, int):
            raise PatternDatabaseError(f"Invalid atlas id {atlas_id!r}")
        for name, value in (("patterns", raw_patterns), ("terrain_tiles", raw_terrain_tiles)):
            if not isinstance(value, list):
                raise PatternDatabaseError(f"'{name}' must be a list, got {type(value).__name__}")

        db = PatternDatabase(atlas_id)

        for i, entry in enumerate(raw_terrain_tiles):
            if not isinstance(entry, dict):
                raise PatternDatabaseError(f"Terrain pool {i} must be an object")
            try:
                terrain_id = int(entry["terrain"])
                tiles = [int(t) for t in entry["tiles"]]
                counts = [int(c) for c in entry["counts"]]
            except (KeyError, TypeError, ValueError) as e:
                raise PatternDatabaseError(f"Malformed terrain pool {i}: {e}") from e
            if len(tiles) != len(counts):
                raise PatternDatabaseError(f"Terrain pool {i} has mismatched tiles and counts")
            for tile_index, count in zip(tiles, counts):
                if not 0 <= tile_index < ATLAS_SIZE:
                    raise PatternDatabaseError(f"Terrain pool {i} has impossible tile {tile_index}")
                if count < 1:
                    raise PatternDatabaseError(f"Terrain pool {i} has impossible count {count}")
            db._terrain_tiles[terrain_id] = dict(zip(tiles, counts))

        for i, entry in enumerate(raw_patterns):
            if not isinstance(entry, dict):
                raise PatternDatabaseError(f"Pattern {i} must be an object")
            try:
                center = int(entry["center"])
                context = [int(t) for t in entry["context"]]
                tiles = [int(t) for t in entry["tiles"]]
                frequency = int(entry["frequency"])
                sources = [str(s) for s in entry["sources"]]
            except (KeyError, TypeError, ValueError) as e:
                raise PatternDatabaseError(f"Malformed pattern {i}: {e}") from e

            if len(context) != CONTEXT_SIZE:
                raise PatternDatabaseError(
                    f"Pattern {i} context has {len(context)} entries (expected {CONTEXT_SIZE})"
                )
            if not tiles:
                raise PatternDatabaseError(f"Pattern {i} has no valid tiles")
            if not sources:
                raise PatternDatabaseError(f"Pattern {i} has no sources")
            if frequency < max(len(tiles), len(sources)):
                raise PatternDatabaseError(
                    f"Pattern {i} frequency {frequency} is below its tile or source count"
                )
            pool = db._terrain_tiles.get(center, {})
            for tile_index in tiles:
                if not 0 <= tile_index < ATLAS_SIZE:
                    raise PatternDatabaseError(f"Pattern {i} has impossible tile {tile_index}")
                if tile_index not in pool:
                    raise PatternDatabaseError(
                        f"Pattern {i} tile {tile_index} missing from terrain {center} pool"
                    )

            signature = make_signature(center, context)
            if signature in db._patterns:
                raise PatternDatabaseError(f"Duplicate pattern signature at entry {i}")

            db._patterns[signature] = TilePattern.restore(
                center, signature.context, tiles, frequency, sources
            )

        return db

    def dumps(self) -> str:
        return json.dumps(self.to_dict())

    @staticmethod
    def loads(text: str) -> "PatternDatabase":
        try:
            data = json.loads(text)
        except ValueError as e:
            raise PatternDatabaseError(f"Pattern data is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise PatternDatabaseError("Pattern data must be a JSON object")
        return PatternDatabase.from_dict(data)

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        return path

    @staticmethod
    def load(path: str | Path) -> "PatternDatabase":
        """
        Load a database from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
            PatternDatabaseError: If the contents are corrupt
        """
        with open(path) as f:
            return PatternDatabase.loads(f.read())
