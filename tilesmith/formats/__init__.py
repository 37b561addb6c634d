"""
Tilesmith - File Formats

Layout corpus files and the compact JSON writer shared by all persisted data.
"""

from .layout_data import LayoutData, LayoutFormatError, find_layout_files

__all__ = ["LayoutData", "LayoutFormatError", "find_layout_files"]
