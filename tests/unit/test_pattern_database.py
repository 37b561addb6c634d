"""
Unit tests for PatternDatabase: observations, quality model, merging
and serialization.
"""

import json

import pytest

from tilesmith.constants import PATTERN_FORMAT_VERSION
from tilesmith.core.neighbors import NeighborContext, make_signature
from tilesmith.core.pattern_database import (
    PatternDatabase,
    PatternDatabaseError,
    QualityTier,
    TilePattern,
    classify,
    quality_score,
)

UNIFORM_PLAINS = [1] * 8
MIXED = [1, 1, 2, 2, 1, 1, 1, 1]


def make_pattern(frequency, sources):
    """Pattern with the given frequency spread across `sources` source ids."""
    pattern = TilePattern(2, NeighborContext(UNIFORM_PLAINS), 40, "s0")
    for i in range(1, frequency):
        pattern.observe(40, f"s{i % sources}")
    return pattern


def sample_db():
    db = PatternDatabase(0)
    db.add_observation(2, UNIFORM_PLAINS, 40, "a")
    db.add_observation(2, UNIFORM_PLAINS, 41, "b")
    db.add_observation(2, UNIFORM_PLAINS, 40, "b")
    db.add_observation(1, MIXED, 3, "a")
    return db


# =============================================================================
# Observations and Queries
# =============================================================================

class TestObservations:
    """Tests for add_observation and lookups."""

    def test_first_observation_creates_pattern(self):
        db = PatternDatabase(0)
        pattern = db.add_observation(2, UNIFORM_PLAINS, 40, "meadow")
        assert pattern.valid_tiles == {40}
        assert pattern.frequency == 1
        assert pattern.sources == {"meadow"}
        assert len(db) == 1

    def test_repeat_observation_accumulates(self):
        db = sample_db()
        pattern = db.lookup(2, UNIFORM_PLAINS)
        assert pattern.valid_tiles == {40, 41}
        assert pattern.frequency == 3
        assert pattern.sources == {"a", "b"}

    def test_lookup_is_exact(self):
        db = sample_db()
        assert db.lookup(2, MIXED) is None
        assert db.lookup(3, UNIFORM_PLAINS) is None

    def test_contains_signature(self):
        db = sample_db()
        assert make_signature(2, UNIFORM_PLAINS) in db
        assert make_signature(2, MIXED) not in db

    def test_terrain_pool(self):
        db = sample_db()
        assert db.tiles_for_terrain(2) == {40, 41}
        assert db.tiles_for_terrain(9) == set()
        assert db.tile_count(2, 40) == 2
        assert db.tile_count(2, 41) == 1
        assert db.terrain_ids == [1, 2]

    def test_ranked_tiles(self):
        db = PatternDatabase(0)
        for tile, count in ((7, 1), (5, 3), (6, 3), (9, 2)):
            for _ in range(count):
                db.add_observation(1, UNIFORM_PLAINS, tile, "x")
        assert db.ranked_tiles_for_terrain(1) == [5, 6, 9, 7]

    @pytest.mark.parametrize("tile", [-1, 1024])
    def test_out_of_range_tile_raises(self, tile):
        db = PatternDatabase(0)
        with pytest.raises(ValueError, match="outside atlas range"):
            db.add_observation(1, UNIFORM_PLAINS, tile, "x")
        assert db.is_empty()

    def test_bad_context_raises(self):
        db = PatternDatabase(0)
        with pytest.raises(ValueError):
            db.add_observation(1, [1, 1, 1], 0, "x")

    def test_iteration_is_sorted(self):
        db = sample_db()
        assert [p.center for p in db] == [1, 2]


# =============================================================================
# Quality Model
# =============================================================================

class TestQuality:
    """Tests for quality_score and classify."""

    def test_single_observation_is_low(self):
        pattern = make_pattern(1, 1)
        assert quality_score(pattern) == pytest.approx(0.4 / 8 + 0.6 / 4)
        assert classify(pattern) is QualityTier.LOW

    def test_one_source_caps_below_high(self):
        pattern = make_pattern(50, 1)
        assert quality_score(pattern) == pytest.approx(0.55)
        assert classify(pattern) is QualityTier.MEDIUM

    def test_corroborated_pattern_is_high(self):
        pattern = make_pattern(8, 3)
        assert quality_score(pattern) == pytest.approx(0.4 + 0.45)
        assert classify(pattern) is QualityTier.HIGH

    def test_score_saturates(self):
        assert quality_score(make_pattern(40, 10)) == pytest.approx(1.0)

    def test_score_is_monotonic_in_sources(self):
        scores = [quality_score(make_pattern(8, n)) for n in range(1, 6)]
        assert scores == sorted(scores)

    def test_tier_counts(self):
        db = sample_db()
        counts = db.tier_counts()
        assert sum(counts.values()) == len(db)
        assert counts[QualityTier.HIGH] == 0
        assert db.classify(db.lookup(2, UNIFORM_PLAINS)) is QualityTier.MEDIUM


# =============================================================================
# Merge
# =============================================================================

class TestMerge:
    """Tests for merging partial databases."""

    def test_merge_sums_and_unions(self):
        first = PatternDatabase(0)
        first.add_observation(2, UNIFORM_PLAINS, 40, "a")
        second = PatternDatabase(0)
        second.add_observation(2, UNIFORM_PLAINS, 41, "b")
        second.add_observation(1, MIXED, 3, "b")

        first.merge(second)
        assert first == sample_db_without_repeat()
        assert first.lookup(2, UNIFORM_PLAINS).frequency == 2

    def test_merge_does_not_share_patterns(self):
        first = PatternDatabase(0)
        second = PatternDatabase(0)
        second.add_observation(2, UNIFORM_PLAINS, 40, "b")
        first.merge(second)
        first.add_observation(2, UNIFORM_PLAINS, 41, "c")
        assert second.lookup(2, UNIFORM_PLAINS).valid_tiles == {40}

    def test_merge_other_atlas_raises(self):
        with pytest.raises(ValueError, match="Cannot merge"):
            PatternDatabase(0).merge(PatternDatabase(1))


def sample_db_without_repeat():
    db = PatternDatabase(0)
    db.add_observation(2, UNIFORM_PLAINS, 40, "a")
    db.add_observation(2, UNIFORM_PLAINS, 41, "b")
    db.add_observation(1, MIXED, 3, "b")
    return db


# =============================================================================
# Serialization
# =============================================================================

class TestSerialization:
    """Tests for to_dict/from_dict, dumps/loads and save/load."""

    def test_dict_round_trip_is_lossless(self):
        db = sample_db()
        restored = PatternDatabase.from_dict(db.to_dict())
        assert restored == db
        pattern = restored.lookup(2, UNIFORM_PLAINS)
        assert pattern.frequency == 3
        assert pattern.sources == {"a", "b"}
        assert restored.tile_count(2, 40) == 2

    def test_to_dict_is_deterministic(self):
        assert sample_db().dumps() == sample_db().dumps()

    def test_save_and_load(self, tmp_path):
        db = sample_db()
        path = db.save(tmp_path / "nested" / "atlas_0.json")
        assert path.exists()
        assert PatternDatabase.load(path) == db

    def test_load_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PatternDatabase.load(tmp_path / "missing.json")

    def test_loads_invalid_json(self):
        with pytest.raises(PatternDatabaseError, match="not valid JSON"):
            PatternDatabase.loads("{not json")

    def test_loads_non_object(self):
        with pytest.raises(PatternDatabaseError, match="JSON object"):
            PatternDatabase.loads("[1, 2]")

    def test_missing_field(self):
        data = sample_db().to_dict()
        del data["patterns"]
        with pytest.raises(PatternDatabaseError, match="Missing field"):
            PatternDatabase.from_dict(data)

    def test_unsupported_version(self):
        data = sample_db().to_dict()
        data["format_version"] = PATTERN_FORMAT_VERSION + 1
        with pytest.raises(PatternDatabaseError, match="Unsupported"):
            PatternDatabase.from_dict(data)

    @pytest.mark.parametrize(
        "field, value, message",
        [
            ("context", [1, 1, 1], "context has 3 entries"),
            ("tiles", [], "no valid tiles"),
            ("sources", [], "no sources"),
            ("frequency", 1, "below its tile or source count"),
            ("tiles", [40, 2000], "impossible tile"),
            ("tiles", [40, 42], "missing from terrain"),
        ],
    )
    def test_corrupt_pattern(self, field, value, message):
        data = sample_db().to_dict()
        pattern = next(p for p in data["patterns"] if p["center"] == 2)
        pattern[field] = value
        with pytest.raises(PatternDatabaseError, match=message):
            PatternDatabase.from_dict(data)

    @pytest.mark.parametrize(
        "field, value, message",
        [
            ("patterns", None, "'patterns' must be a list"),
            ("patterns", {"center": 2}, "'patterns' must be a list"),
            ("terrain_tiles", 0, "'terrain_tiles' must be a list"),
        ],
    )
    def test_non_list_sections(self, field, value, message):
        data = sample_db().to_dict()
        data[field] = value
        with pytest.raises(PatternDatabaseError, match=message):
            PatternDatabase.from_dict(data)

    def test_non_object_entries(self):
        data = sample_db().to_dict()
        data["patterns"].append(7)
        with pytest.raises(PatternDatabaseError, match="must be an object"):
            PatternDatabase.from_dict(data)

        data = sample_db().to_dict()
        data["terrain_tiles"][0] = [2, 40]
        with pytest.raises(PatternDatabaseError, match="Terrain pool 0 must be an object"):
            PatternDatabase.from_dict(data)

    def test_corrupt_terrain_pool(self):
        data = sample_db().to_dict()
        data["terrain_tiles"][0]["counts"] = [0]
        with pytest.raises(PatternDatabaseError, match="impossible count"):
            PatternDatabase.from_dict(data)

    def test_duplicate_signature(self):
        data = sample_db().to_dict()
        data["patterns"].append(dict(data["patterns"][0]))
        with pytest.raises(PatternDatabaseError, match="Duplicate"):
            PatternDatabase.from_dict(data)

    def test_file_keeps_arrays_on_one_line(self, tmp_path):
        path = sample_db().save(tmp_path / "atlas_0.json")
        text = path.read_text()
        assert '"context": [1, 1, 1, 1, 1, 1, 1, 1]' in text
        assert json.loads(text)["atlas_id"] == 0
