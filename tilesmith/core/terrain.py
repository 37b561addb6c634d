"""
Tilesmith - Terrain Catalog

Read-only terrain kind definitions: movement costs, combat bonuses,
healing and passability. The catalog is handed to the core already
assembled; `from_dict` only converts plain data into typed records.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from ..constants import IMPASSABLE_COST
from ..formats import compact_json as json


@dataclass(frozen=True)
class TerrainKind:
    """A gameplay-semantic ground category, independent of its visual tile."""

    id: int
    name: str
    # movement_costs[faction][unit_class] -> cost
    movement_costs: Mapping[str, Mapping[str, int]] = field(default_factory=dict, hash=False)
    avoid: int = 0
    defense: int = 0
    resistance: int = 0
    heal_amount: int = 0
    heal_period: int = 0

    def movement_cost(self, faction: str, unit_class: str) -> int:
        """Cost for a unit class of a faction; unlisted entries are impassable."""
        return self.movement_costs.get(faction, {}).get(unit_class, IMPASSABLE_COST)

    def is_passable(self, faction: str, unit_class: str) -> bool:
        return self.movement_cost(faction, unit_class) < IMPASSABLE_COST

    @property
    def passable(self) -> bool:
        """True if any listed unit class can enter (or no costs are listed)."""
        costs = [
            cost
            for by_class in self.movement_costs.values()
            for cost in by_class.values()
        ]
        if not costs:
            return True
        return min(costs) < IMPASSABLE_COST

    @property
    def heals(self) -> bool:
        return self.heal_amount > 0 and self.heal_period > 0

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "TerrainKind":
        costs = {
            faction: MappingProxyType({cls: int(c) for cls, c in by_class.items()})
            for faction, by_class in data.get("movement_costs", {}).items()
        }
        return TerrainKind(
            id=int(data["id"]),
            name=str(data["name"]),
            movement_costs=MappingProxyType(costs),
            avoid=int(data.get("avoid", 0)),
            defense=int(data.get("defense", 0)),
            resistance=int(data.get("resistance", 0)),
            heal_amount=int(data.get("heal_amount", 0)),
            heal_period=int(data.get("heal_period", 0)),
        )


class TerrainCatalog:
    """Maps terrain ids to TerrainKind records."""

    def __init__(self, terrains: list[TerrainKind], default_terrain_id: int | None = None):
        self._by_id: dict[int, TerrainKind] = {}
        self._by_name: dict[str, int] = {}
        for terrain in terrains:
            if terrain.id in self._by_id:
                raise ValueError(f"Duplicate terrain id {terrain.id}")
            self._by_id[terrain.id] = terrain
            self._by_name[terrain.name] = terrain.id

        if default_terrain_id is not None and default_terrain_id not in self._by_id:
            raise ValueError(f"Default terrain {default_terrain_id} is not in the catalog")
        self._default_id = default_terrain_id

    def __contains__(self, terrain_id: int) -> bool:
        return terrain_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self):
        return iter(sorted(self._by_id.values(), key=lambda t: t.id))

    def get(self, terrain_id: int) -> TerrainKind | None:
        return self._by_id.get(terrain_id)

    def id_for_name(self, name: str) -> int | None:
        return self._by_name.get(name)

    def is_passable(self, terrain_id: int) -> bool:
        """Generic passability; unknown ids count as passable ground."""
        terrain = self._by_id.get(terrain_id)
        return terrain.passable if terrain is not None else True

    @property
    def ids(self) -> list[int]:
        return sorted(self._by_id)

    @property
    def default_terrain_id(self) -> int:
        """
        Background terrain used for off-grid cells and unresolved names.

        Explicit default if given, else the lowest passable id, else the
        lowest id. An empty catalog reports 0.
        """
        if self._default_id is not None:
            return self._default_id
        for terrain in self:
            if terrain.passable:
                return terrain.id
        ids = self.ids
        return ids[0] if ids else 0

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "TerrainCatalog":
        """
        Build a catalog from plain data.

        Format:
            {"default": 1, "terrains": [{"id": 1, "name": "plains", ...}, ...]}
        """
        terrains = [TerrainKind.from_dict(t) for t in data.get("terrains", [])]
        return TerrainCatalog(terrains, data.get("default"))

    @staticmethod
    def load(path: str | Path) -> "TerrainCatalog":
        """Load a catalog from a JSON file in `from_dict` format."""
        with open(path) as f:
            return TerrainCatalog.from_dict(json.load(f))
