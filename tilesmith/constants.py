"""
Tilesmith - Constants

Shared constants for atlas dimensions, selection fallbacks and the
pattern quality model used across extraction, selection and generation.
"""

# Atlas dimensions
ATLAS_SIZE = 1024  # Tiles per atlas, indices 0..1023

# Hard default tile - used when nothing is known about a terrain
DEFAULT_TILE = 0

# Neighbor context
CONTEXT_SIZE = 8
OFF_GRID = -1  # Terrain id read for off-grid cells under EdgePolicy.SENTINEL

# Extraction
MIN_LAYOUT_SIZE = 3  # Layouts need at least one interior cell

# Movement costs at or above this value block a unit class
IMPASSABLE_COST = 99

# Quality model
QUALITY_FREQUENCY_CAP = 8
QUALITY_SOURCE_CAP = 4
QUALITY_FREQUENCY_WEIGHT = 0.4
QUALITY_SOURCE_WEIGHT = 0.6

HIGH_TIER_SCORE = 0.7
HIGH_TIER_MIN_FREQUENCY = 3
HIGH_TIER_MIN_SOURCES = 2
MEDIUM_TIER_SCORE = 0.3

# Uniform-neighborhood variation
UNIFORM_WINDOW = 4  # Most common tiles eligible for micro-variation
UNIFORM_MIN_SHARE = 0.1  # Tiles below this share of the top tile's count are dropped

# Generation
DEFAULT_MAX_PASSES = 3

# Persistence
PATTERN_FORMAT_VERSION = 1
PATTERN_FILE_TEMPLATE = "atlas_{atlas_id}.json"
