"""
Tilesmith - Layout Data Model

Manages a single corpus layout: atlas id, dimensions and a row-major grid
of tile indices. Handles loading from and saving to JSON files.
"""

from pathlib import Path
from typing import Any, List, Optional

from . import compact_json as json
from ..constants import ATLAS_SIZE


class LayoutFormatError(Exception):
    """Raised when a layout file is unreadable as a tile grid."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.source}: {self.reason}"


class LayoutData:
    """A hand-authored tile grid on one atlas."""

    def __init__(
        self,
        atlas_id: int = 0,
        tiles: Optional[List[List[int]]] = None,
        source_id: str = "",
    ):
        self.atlas_id: int = atlas_id
        self.tiles: List[List[int]] = tiles if tiles is not None else []
        self.source_id: str = source_id
        self.filepath: Optional[str] = None

    @property
    def height(self) -> int:
        return len(self.tiles)

    @property
    def width(self) -> int:
        return len(self.tiles[0]) if self.tiles else 0

    def get_tile(self, row: int, col: int) -> Optional[int]:
        if 0 <= row < self.height and 0 <= col < self.width:
            return self.tiles[row][col]
        return None

    def flat_tiles(self) -> List[int]:
        """Row-major tile list."""
        return [tile for row in self.tiles for tile in row]

    @staticmethod
    def from_dict(data: Any, source: str = "<memory>") -> "LayoutData":
        """
        Parse and validate layout data.

        Format:
            {"source_id": "...", "atlas_id": 2, "width": 5, "height": 5,
             "tiles": [row-major tile indices]}

        Raises:
            LayoutFormatError: If fields are missing, mistyped or inconsistent
        """
        if not isinstance(data, dict):
            raise LayoutFormatError(source, "layout must be a JSON object")

        for key in ("atlas_id", "width", "height", "tiles"):
            if key not in data:
                raise LayoutFormatError(source, f"missing field '{key}'")

        atlas_id = data["atlas_id"]
        width = data["width"]
        height = data["height"]
        flat = data["tiles"]

        for name, value in (("atlas_id", atlas_id), ("width", width), ("height", height)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise LayoutFormatError(source, f"'{name}' must be an integer")
        if width < 0 or height < 0:
            raise LayoutFormatError(source, f"negative dimensions {width}x{height}")
        if not isinstance(flat, list):
            raise LayoutFormatError(source, "'tiles' must be a list")
        if len(flat) != width * height:
            raise LayoutFormatError(
                source,
                f"{len(flat)} tiles for a {width}x{height} layout (expected {width * height})",
            )

        for i, tile in enumerate(flat):
            if isinstance(tile, bool) or not isinstance(tile, int):
                raise LayoutFormatError(source, f"tile {i} is not an integer: {tile!r}")
            if not 0 <= tile < ATLAS_SIZE:
                raise LayoutFormatError(source, f"tile {i} out of range: {tile}")

        rows = [flat[r * width:(r + 1) * width] for r in range(height)]
        source_id = str(data.get("source_id") or source)
        return LayoutData(atlas_id=atlas_id, tiles=rows, source_id=source_id)

    def to_dict(self) -> dict:
        return {
            "source_id": self.source_id,
            "atlas_id": self.atlas_id,
            "width": self.width,
            "height": self.height,
            "tiles": self.flat_tiles(),
        }

    def load(self, path: str | Path, root: Optional[str | Path] = None):
        """
        Load layout data from a JSON file.

        When the file has no source id, it defaults to the path relative to
        root without its suffix (e.g. "coast/bay"), or to the file stem when
        no root is given or the file lies outside it.

        Raises:
            OSError: If the file cannot be read
            LayoutFormatError: If the contents are not a valid layout
        """
        path = Path(path)
        with open(path, 'r') as f:
            try:
                data = json.load(f)
            except ValueError as e:
                raise LayoutFormatError(str(path), f"invalid JSON: {e}") from e

        if isinstance(data, dict) and not data.get("source_id"):
            data = {**data, "source_id": default_source_id(path, root)}

        parsed = LayoutData.from_dict(data, source=str(path))
        self.atlas_id = parsed.atlas_id
        self.tiles = parsed.tiles
        self.source_id = parsed.source_id
        self.filepath = str(path)

    def save(self, path: Optional[str | Path] = None):
        """Save layout data to a JSON file."""
        if path is None:
            path = self.filepath
        if path is None:
            raise ValueError("No save path specified")

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, wrap={"tiles": self.width})

        self.filepath = str(path)


def default_source_id(path: str | Path, root: Optional[str | Path] = None) -> str:
    """Source id for a layout file that does not name one."""
    path = Path(path)
    if root is not None and path.is_relative_to(root):
        return path.relative_to(root).with_suffix("").as_posix()
    return path.stem


def find_layout_files(directory: str | Path) -> List[Path]:
    """All layout JSON files under a corpus directory, sorted for stable order."""
    return sorted(Path(directory).rglob("*.json"))
