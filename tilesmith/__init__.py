"""
Tilesmith - learned tile selection for tactical grid layouts.

Mines hand-authored layouts for how tiles are combined, then reuses that
knowledge to pick coherent tiles when layouts are generated or edited.
"""

__version__ = "0.1.0"
