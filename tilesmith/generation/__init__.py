"""
Tilesmith - Layout Generation

Procedural terrain layouts realized into tile grids through learned
tile selection.
"""

from .grids import TerrainLayout, TileGrid
from .strategies import GenerationMode
from .synthesizer import GenerationParams, LayoutSynthesizer, synthesize

__all__ = [
    "TerrainLayout",
    "TileGrid",
    "GenerationMode",
    "GenerationParams",
    "LayoutSynthesizer",
    "synthesize",
]
