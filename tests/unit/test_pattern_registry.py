"""
Unit tests for PatternRegistry persistence and cache handling.
"""

import json
import logging

import pytest

from tilesmith.core.pattern_database import PatternDatabase
from tilesmith.core.pattern_extractor import extract
from tilesmith.core.pattern_registry import PatternRegistry, pattern_path


def small_db(atlas_id=0):
    db = PatternDatabase(atlas_id)
    db.add_observation(2, [1] * 8, 40, "a")
    db.add_observation(1, [1] * 8, 3, "a")
    return db


class TestRegistry:
    """Tests for in-memory registry behavior."""

    def test_unknown_atlas_gets_empty_database(self):
        registry = PatternRegistry()
        db = registry.get(7)
        assert db.is_empty()
        assert db.atlas_id == 7
        assert registry.get(7) is db

    def test_put_and_iterate(self):
        registry = PatternRegistry()
        registry.put(small_db(3))
        registry.put(small_db(1))
        assert list(registry) == [1, 3]
        assert 3 in registry
        assert len(registry) == 2

    def test_pattern_path(self, tmp_path):
        assert pattern_path(tmp_path, 4) == tmp_path / "atlas_4.json"


class TestPersistence:
    """Tests for directory save/load and corruption handling."""

    def test_save_and_load_directory(self, tmp_path):
        registry = PatternRegistry({0: small_db(0), 2: small_db(2)})
        written = registry.save_directory(tmp_path)
        assert sorted(p.name for p in written) == ["atlas_0.json", "atlas_2.json"]

        reloaded = PatternRegistry()
        assert reloaded.load_directory(tmp_path) == [0, 2]
        assert reloaded.get(2) == small_db(2)
        assert not reloaded.rejected

    def test_missing_directory(self, tmp_path):
        registry = PatternRegistry()
        assert registry.load_directory(tmp_path / "absent") == []

    def test_corrupt_file_gives_empty_database(self, tmp_path, caplog):
        small_db(0).save(pattern_path(tmp_path, 0))
        pattern_path(tmp_path, 1).write_text('{"format_version": 1, "atlas_id": 1}')

        registry = PatternRegistry()
        with caplog.at_level(logging.WARNING):
            registry.load_directory(tmp_path)

        assert registry.rejected == {1}
        assert registry.get(1).is_empty()
        assert registry.get(0) == small_db(0)
        assert "Rejecting pattern database" in caplog.text

    @pytest.mark.parametrize("field, value", [("patterns", None), ("terrain_tiles", 0)])
    def test_wrongly_typed_sections_rejected(self, tmp_path, field, value):
        data = small_db(0).to_dict()
        data[field] = value
        pattern_path(tmp_path, 0).write_text(json.dumps(data))

        registry = PatternRegistry()
        db = registry.load_atlas(pattern_path(tmp_path, 0), 0)
        assert db.is_empty()
        assert registry.rejected == {0}

    def test_binary_garbage_rejected(self, tmp_path):
        pattern_path(tmp_path, 0).write_bytes(b"\xff\xfe\x00garbage")
        registry = PatternRegistry()
        db = registry.load_atlas(pattern_path(tmp_path, 0), 0)
        assert db.is_empty()
        assert registry.rejected == {0}

    def test_mismatched_atlas_rejected(self, tmp_path):
        small_db(5).save(pattern_path(tmp_path, 0))
        registry = PatternRegistry()
        assert registry.load_atlas(pattern_path(tmp_path, 0), 0).is_empty()
        assert 0 in registry.rejected

    def test_non_numeric_file_ignored(self, tmp_path):
        small_db(0).save(tmp_path / "atlas_main.json")
        assert PatternRegistry().load_directory(tmp_path) == []


class TestEnsure:
    """Tests for loading the cache and extracting on a miss."""

    def test_cache_miss_extracts_and_saves(self, tmp_path, catalog, atlases, corpus_paths):
        directory = tmp_path / "patterns"
        registry = PatternRegistry()
        assert registry.ensure(directory, corpus_paths, catalog, atlases) == [0]
        assert pattern_path(directory, 0).exists()
        assert registry.get(0) == extract(corpus_paths, catalog, atlases)[0]

    def test_cache_hit_skips_extraction(self, tmp_path, catalog, atlases, corpus_paths):
        directory = tmp_path / "patterns"
        PatternRegistry().ensure(directory, corpus_paths, catalog, atlases)

        registry = PatternRegistry()
        assert registry.ensure(directory, [], catalog, atlases) == []
        assert not registry.get(0).is_empty()

    def test_corrupt_cache_is_rebuilt(self, tmp_path, catalog, atlases, corpus_paths):
        directory = tmp_path / "patterns"
        directory.mkdir()
        pattern_path(directory, 0).write_text("corrupt")

        registry = PatternRegistry()
        assert registry.ensure(directory, corpus_paths, catalog, atlases) == [0]
        assert not registry.rejected
        assert PatternDatabase.load(pattern_path(directory, 0)) == registry.get(0)

    def test_atlas_without_layouts_gets_empty_file(self, tmp_path, catalog, atlas):
        directory = tmp_path / "patterns"
        registry = PatternRegistry()
        assert registry.ensure(directory, [], catalog, {3: atlas}) == [3]
        assert PatternDatabase.load(pattern_path(directory, 3)).is_empty()
