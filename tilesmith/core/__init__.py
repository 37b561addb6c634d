"""
Core pattern learning and selection.

This package contains the terrain catalog and atlas index leaves, the
pattern extractor, the pattern database with its quality model, the
per-atlas registry, and smart tile selection.
"""

from .atlas_index import TileAnimation, TileAtlasIndex, TileEntry, load_atlas_directory
from .neighbors import EdgePolicy, NeighborContext, PatternSignature, neighbor_context
from .pattern_database import (
    PatternDatabase,
    PatternDatabaseError,
    QualityTier,
    TilePattern,
    classify,
    quality_score,
)
from .pattern_extractor import ExtractionStats, PatternExtractor, extract
from .pattern_registry import PatternRegistry
from .smart_selector import SelectionTier, SmartSelector, select_tile
from .terrain import TerrainCatalog, TerrainKind

__all__ = [
    "TileAnimation",
    "TileAtlasIndex",
    "TileEntry",
    "load_atlas_directory",
    "EdgePolicy",
    "NeighborContext",
    "PatternSignature",
    "neighbor_context",
    "PatternDatabase",
    "PatternDatabaseError",
    "QualityTier",
    "TilePattern",
    "classify",
    "quality_score",
    "ExtractionStats",
    "PatternExtractor",
    "extract",
    "PatternRegistry",
    "SelectionTier",
    "SmartSelector",
    "select_tile",
    "TerrainCatalog",
    "TerrainKind",
]
