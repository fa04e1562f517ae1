"""Tile catalogs and adjacency rules for the constraint generator.

A tileset is an ordered list of tile types plus per-direction adjacency
rules. Declaration order matters: weighted selection walks candidates in
this order, which keeps runs reproducible regardless of set ordering.

Rules are taken exactly as declared. Nothing is mirrored automatically, so a
tileset that wants "A may sit east of B" and "B may sit west of A" has to
say both. A tile with no rule for a direction does not constrain its
neighbor in that direction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Cardinal directions on the grid. Offsets are (dx, dy), y grows south."""

    NORTH = (0, -1)
    EAST = (1, 0)
    SOUTH = (0, 1)
    WEST = (-1, 0)

    @property
    def offset(self) -> Tuple[int, int]:
        return self.value

    @property
    def opposite(self) -> Direction:
        return _OPPOSITE[self]


_OPPOSITE = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}

DIRECTIONS: Tuple[Direction, ...] = (
    Direction.NORTH,
    Direction.EAST,
    Direction.SOUTH,
    Direction.WEST,
)


@dataclass(frozen=True)
class TileType:
    """A tile identity the solver can assign.

    Attributes:
        id: Unique identifier within the tileset.
        name: Display name, used in entity names.
        weight: Relative selection weight (must be positive).
        rotations: Allowed rotations in degrees.
        mesh_type: Mesh tag for the 3D placeholder.
    """

    id: str
    name: str
    weight: float = 1.0
    rotations: Tuple[int, ...] = (0,)
    mesh_type: str = "cube"


@dataclass(frozen=True)
class ConstraintRule:
    """Tiles allowed next to ``tile_id`` on its ``direction`` side."""

    tile_id: str
    direction: Direction
    allowed_neighbors: FrozenSet[str]


@dataclass
class Tileset:
    """Named catalog of tile types plus their adjacency rules."""

    name: str
    tiles: List[TileType]
    rules: List[ConstraintRule] = field(default_factory=list)

    @property
    def tile_ids(self) -> List[str]:
        return [tile.id for tile in self.tiles]

    def get_tile(self, tile_id: str) -> Optional[TileType]:
        for tile in self.tiles:
            if tile.id == tile_id:
                return tile
        return None

    def build_constraint_table(self) -> Dict[Tuple[str, Direction], FrozenSet[str]]:
        """Map (tile id, direction) to the allowed neighbor ids.

        A later rule for the same key replaces an earlier one.
        """
        table: Dict[Tuple[str, Direction], FrozenSet[str]] = {}
        for rule in self.rules:
            table[(rule.tile_id, rule.direction)] = frozenset(rule.allowed_neighbors)
        return table


def rules_for_all_directions(tile_id: str, allowed: Iterable[str]) -> List[ConstraintRule]:
    """Same allowed-neighbor set on every side of a tile."""
    allowed_set = frozenset(allowed)
    return [ConstraintRule(tile_id, direction, allowed_set) for direction in DIRECTIONS]


def _dungeon_tileset() -> Tileset:
    tiles = [
        TileType("wall", "Wall", 1.0, (0,), "cube"),
        TileType("floor", "Floor", 2.0, (0,), "cube"),
        TileType("door", "Door", 0.1, (0, 90), "cube"),
        TileType("corner", "Corner", 0.5, (0, 90, 180, 270), "cube"),
    ]
    rules = (
        rules_for_all_directions("wall", ["wall", "door", "corner"])
        + rules_for_all_directions("floor", ["floor", "door", "corner"])
        # Doors connect walls and floors
        + rules_for_all_directions("door", ["wall", "floor", "door"])
        + rules_for_all_directions("corner", ["wall", "floor", "corner"])
    )
    return Tileset("dungeon", tiles, rules)


def _office_tileset() -> Tileset:
    tiles = [
        TileType("carpet", "Carpet", 2.0, (0,), "cube"),
        TileType("wall", "Office Wall", 1.0, (0,), "cube"),
        TileType("desk", "Desk", 0.3, (0, 90, 180, 270), "cube"),
    ]
    return Tileset("office", tiles, rules_for_all_directions("carpet", ["carpet", "desk"]))


def _scifi_tileset() -> Tileset:
    tiles = [
        TileType("metal_floor", "Metal Floor", 2.0, (0,), "cube"),
        TileType("hull_wall", "Hull Wall", 1.0, (0,), "cube"),
        TileType("console", "Control Console", 0.2, (0, 90, 180, 270), "cube"),
    ]
    return Tileset(
        "scifi", tiles, rules_for_all_directions("metal_floor", ["metal_floor", "console"])
    )


DEFAULT_TILESET = "dungeon"


class TilesetLibrary:
    """Registry of named tilesets.

    Built-in sets are constructed fresh on every lookup, so callers may
    mutate what they get back.
    """

    _builders = {
        "dungeon": _dungeon_tileset,
        "office": _office_tileset,
        "scifi": _scifi_tileset,
    }

    @classmethod
    def names(cls) -> List[str]:
        return list(cls._builders)

    @classmethod
    def has_tileset(cls, name: str) -> bool:
        return name in cls._builders

    @classmethod
    def get_tileset(cls, name: str) -> Tileset:
        """Look up a tileset; unknown names fall back to the dungeon set."""
        builder = cls._builders.get(name)
        if builder is None:
            logger.warning("Unknown tileset %r, falling back to %r", name, DEFAULT_TILESET)
            builder = cls._builders[DEFAULT_TILESET]
        return builder()
