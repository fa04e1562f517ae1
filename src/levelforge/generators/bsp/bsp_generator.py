#!/usr/bin/env python3
"""
BSP (Binary Space Partitioning) Generator for tile-based level layouts

This module implements the partition generator: a rectangular grid is split
recursively into a binary tree of sub-regions, leaf regions become rooms,
sibling subtrees are joined by L-shaped corridors, and the resulting tile
grid is turned into positioned scene entities.

The algorithm follows the classic roguelike BSP approach:
- Split along the longer side most of the time (80/20 by aspect ratio)
- Every leaf room respects min_room_size <= side <= max_room_size
- Corridors join the first-found room of each pair of sibling subtrees,
  which keeps the whole layout connected
- Corridors are carved last and overwrite whatever they cross

The generator never fails on bad sizes. Parameters that cannot produce a
room (min larger than max, min too large for the grid) give sparse or empty
levels; validate upstream (levelforge.validation) if that matters.

Author: levelforge
License: MIT
"""

import logging
import random
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import asdict, dataclass, field, fields
from enum import Enum, auto

import numpy as np

from levelforge.scene.level_types import BoundingBox, Entity, Level, Transform3D, IDENTITY_ROTATION
from levelforge.generators.seeding import make_rng, random_uuid, resolve_seed

logger = logging.getLogger(__name__)


# Layout probabilities
LONG_SIDE_SPLIT_CHANCE = 0.8  # Chance to cut across the longer dimension
CORNER_CHOICE_CHANCE = 0.5    # Chance the L-corridor runs horizontally first

BSP_LEVEL_LAYERS = ["Walls", "Floors", "Doors", "Collision"]


class TileType(Enum):
    """Types of tiles in the partition grid"""
    EMPTY = 0
    WALL = 1
    FLOOR = 2
    DOOR = 3
    CORRIDOR = 4


class SplitDirection(Enum):
    """Direction for BSP node splitting"""
    HORIZONTAL = auto()  # Cut across the height (children stacked in Y)
    VERTICAL = auto()    # Cut across the width (children side by side in X)
    NONE = auto()        # Leaf node, no split


@dataclass
class BSPGenerationParams:
    """Request parameters for the partition generator.

    ``depth`` only sets the vertical extent of the level bounds; the layout
    itself is 2D.
    """
    width: int = 48
    height: int = 36
    depth: int = 1
    min_room_size: int = 4
    max_room_size: int = 12
    corridor_width: int = 2
    theme: str = "dungeon"
    seed: Optional[int] = None
    place_doors: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BSPGenerationParams':
        """Build params from a dict, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class Rectangle:
    """2D Rectangle representation for rooms, BSP nodes and corridor segments"""
    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        """Right edge X coordinate (exclusive)"""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Bottom edge Y coordinate (exclusive)"""
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def intersects(self, other: 'Rectangle') -> bool:
        """Check if this rectangle shares at least one cell with another"""
        return not (self.x2 <= other.x or self.x >= other.x2 or
                    self.y2 <= other.y or self.y >= other.y2)


@dataclass
class Room:
    """A leaf room. The bounds include the wall ring."""
    bounds: Rectangle
    id: int = 0

    def interior_point(self, rng: random.Random) -> Tuple[int, int]:
        """Random cell strictly inside the wall ring.

        Rooms thinner than 3 cells have no interior on that axis; their
        middle cell is used instead.
        """
        return (
            _interior_coordinate(rng, self.bounds.x, self.bounds.width),
            _interior_coordinate(rng, self.bounds.y, self.bounds.height),
        )


def _interior_coordinate(rng: random.Random, start: int, length: int) -> int:
    if length >= 3:
        return rng.randint(start + 1, start + length - 2)
    return start + length // 2


@dataclass
class Corridor:
    """Represents a corridor connecting two rooms"""
    start_room: Room
    end_room: Room
    path: List[Rectangle]  # The two carved segments
    width: int = 1
    start_point: Tuple[int, int] = (0, 0)
    end_point: Tuple[int, int] = (0, 0)


@dataclass(frozen=True)
class TileTemplate:
    """How one tile kind is turned into an entity"""
    kind: str
    elevation: float
    scale: Tuple[float, float, float]
    layer: str
    tags: Tuple[str, ...]
    mesh: str = "meshes/cube.mesh"
    metadata: Dict[str, Any] = field(default_factory=dict)


# Floors and corridors are thin slabs at ground level, walls are two units
# tall and centered one unit up, doors are thin panels of wall height.
TILE_TEMPLATES: Dict[TileType, TileTemplate] = {
    TileType.FLOOR: TileTemplate(
        kind="floor", elevation=0.0, scale=(1.0, 0.1, 1.0),
        layer="Floors", tags=("floor",),
    ),
    TileType.WALL: TileTemplate(
        kind="wall", elevation=1.0, scale=(1.0, 2.0, 1.0),
        layer="Walls", tags=("wall", "collision"),
    ),
    TileType.CORRIDOR: TileTemplate(
        kind="corridor", elevation=0.0, scale=(1.0, 0.1, 1.0),
        layer="Floors", tags=("corridor",),
    ),
    TileType.DOOR: TileTemplate(
        kind="door", elevation=1.0, scale=(1.0, 2.0, 0.2),
        layer="Doors", tags=("door", "interactive"),
        mesh="meshes/door.mesh",
        metadata={"interactive": True, "opens": "both"},
    ),
}


class BSPNode:
    """Node in the BSP tree.

    A node is either internal (exactly two children, no room) or terminal
    (no children, at most one room). Children are owned by their parent.
    """

    def __init__(self, bounds: Rectangle, depth: int = 0):
        self.bounds = bounds
        self.depth = depth
        self.split_direction = SplitDirection.NONE
        self.left_child: Optional[BSPNode] = None
        self.right_child: Optional[BSPNode] = None
        self.room: Optional[Room] = None

    @property
    def is_leaf(self) -> bool:
        return self.left_child is None and self.right_child is None

    def choose_split_direction(self, rng: random.Random) -> SplitDirection:
        """Pick the cut, favoring the longer side by LONG_SIDE_SPLIT_CHANCE"""
        if self.bounds.width > self.bounds.height:
            long_side, short_side = SplitDirection.VERTICAL, SplitDirection.HORIZONTAL
            return long_side if rng.random() < LONG_SIDE_SPLIT_CHANCE else short_side
        if self.bounds.height > self.bounds.width:
            long_side, short_side = SplitDirection.HORIZONTAL, SplitDirection.VERTICAL
            return long_side if rng.random() < LONG_SIDE_SPLIT_CHANCE else short_side
        return SplitDirection.HORIZONTAL if rng.random() < 0.5 else SplitDirection.VERTICAL

    def split(self, rng: random.Random, min_room_size: int) -> bool:
        """
        Split this node into two children.

        Args:
            rng: The run's random generator
            min_room_size: Both children must be at least this long on the cut axis

        Returns:
            True if split was successful, False if the chosen axis is too short
        """
        direction = self.choose_split_direction(rng)
        extent = self.bounds.height if direction == SplitDirection.HORIZONTAL else self.bounds.width

        # Children must shrink, even for degenerate minimum sizes
        min_part = max(min_room_size, 1)
        if extent < min_part * 2:
            return False

        position = rng.randint(min_part, extent - min_part)
        b = self.bounds
        if direction == SplitDirection.HORIZONTAL:
            left_bounds = Rectangle(b.x, b.y, b.width, position)
            right_bounds = Rectangle(b.x, b.y + position, b.width, b.height - position)
        else:
            left_bounds = Rectangle(b.x, b.y, position, b.height)
            right_bounds = Rectangle(b.x + position, b.y, b.width - position, b.height)

        self.split_direction = direction
        self.left_child = BSPNode(left_bounds, self.depth + 1)
        self.right_child = BSPNode(right_bounds, self.depth + 1)
        return True

    def find_room(self) -> Optional[Room]:
        """First room found depth-first, left before right"""
        if self.room is not None:
            return self.room
        if self.is_leaf:
            return None
        return self.left_child.find_room() or self.right_child.find_room()


class BSPGenerator:
    """
    Partition level generator.

    One instance serves one run at a time; the tree, rooms, corridors and
    tile grid of the last run stay available for inspection afterwards.
    """

    def __init__(self):
        self.params: Optional[BSPGenerationParams] = None
        self.seed: Optional[int] = None
        self.rng: Optional[random.Random] = None
        self.root_node: Optional[BSPNode] = None
        self.rooms: List[Room] = []
        self.corridors: List[Corridor] = []
        self.grid: np.ndarray = np.zeros((0, 0), dtype=np.int8)
        self.room_id_counter = 0

    @property
    def width(self) -> int:
        return self.grid.shape[1]

    @property
    def height(self) -> int:
        return self.grid.shape[0]

    def generate(self, params: BSPGenerationParams) -> Level:
        """
        Generate a complete level.

        Args:
            params: Grid size, room size bounds, corridor width, theme and seed

        Returns:
            Level whose bounds equal the requested grid extents
        """
        self.seed = resolve_seed(params.seed)
        self.params = params
        self.rng = make_rng(self.seed)
        logger.info("Starting BSP generation %dx%dx%d, seed %d",
                    params.width, params.height, params.depth, self.seed)

        # Clear previous generation
        self.rooms = []
        self.corridors = []
        self.room_id_counter = 0
        self.grid = np.full(
            (max(params.height, 0), max(params.width, 0)),
            TileType.EMPTY.value, dtype=np.int8,
        )

        self.root_node = BSPNode(Rectangle(0, 0, max(params.width, 0), max(params.height, 0)))
        self._build_bsp_tree(self.root_node)
        self._place_rooms(self.root_node)
        self._connect_node_rooms(self.root_node)
        if params.place_doors:
            self._place_doors()

        objects = self._grid_to_objects(params.theme)
        recorded = params.to_dict()
        recorded['seed'] = self.seed

        level = Level(
            id=random_uuid(self.rng),
            name=f"BSP Level {self.seed}",
            objects=objects,
            layers=list(BSP_LEVEL_LAYERS),
            generation_seed=self.seed,
            generation_params=recorded,
            bounds=BoundingBox(
                min=[0.0, 0.0, 0.0],
                max=[float(params.width), float(params.depth), float(params.height)],
            ),
        )
        logger.info("BSP generation complete: %d rooms, %d corridors, %d objects",
                    len(self.rooms), len(self.corridors), len(objects))
        return level

    # -- tree --

    def _build_bsp_tree(self, node: BSPNode) -> None:
        """Split top-down until regions fit max_room_size or cannot split."""
        max_size = self.params.max_room_size
        if node.bounds.width <= max_size and node.bounds.height <= max_size:
            self._promote_leaf(node)
            return

        if node.split(self.rng, self.params.min_room_size):
            self._build_bsp_tree(node.left_child)
            self._build_bsp_tree(node.right_child)
        else:
            self._promote_leaf(node)

    def _promote_leaf(self, node: BSPNode) -> None:
        """Turn a terminal region into a room if its size is within bounds.

        Regions that are too small (or, after a failed split, still too
        large) are dropped without a room.
        """
        b = node.bounds
        low, high = self.params.min_room_size, self.params.max_room_size
        if not (low <= b.width <= high and low <= b.height <= high):
            logger.debug("Dropping %dx%d region at (%d, %d), depth %d",
                         b.width, b.height, b.x, b.y, node.depth)
            return

        room = Room(bounds=Rectangle(b.x, b.y, b.width, b.height), id=self.room_id_counter)
        self.room_id_counter += 1
        node.room = room
        self.rooms.append(room)

    # -- rasterization --

    def _place_rooms(self, node: BSPNode) -> None:
        """Depth-first: wall ring (unless already floor), then floor interior."""
        if node.room is not None:
            b = node.room.bounds
            region = self.grid[b.y:b.y2, b.x:b.x2]
            border = np.ones(region.shape, dtype=bool)
            border[1:-1, 1:-1] = False
            region[border & (region != TileType.FLOOR.value)] = TileType.WALL.value
            region[1:-1, 1:-1] = TileType.FLOOR.value
            logger.debug("Placed room %d at (%d, %d) size %dx%d",
                         node.room.id, b.x, b.y, b.width, b.height)

        if not node.is_leaf:
            self._place_rooms(node.left_child)
            self._place_rooms(node.right_child)

    def _connect_node_rooms(self, node: BSPNode) -> None:
        """Bottom-up: join the first-found room of each pair of siblings."""
        if node.is_leaf:
            return

        self._connect_node_rooms(node.left_child)
        self._connect_node_rooms(node.right_child)

        left_room = node.left_child.find_room()
        right_room = node.right_child.find_room()
        if left_room is not None and right_room is not None:
            self.corridors.append(self._connect_rooms(left_room, right_room))

    def _connect_rooms(self, room1: Room, room2: Room) -> Corridor:
        start = room1.interior_point(self.rng)
        end = room2.interior_point(self.rng)
        path = self._create_l_corridor(start, end, self.params.corridor_width)
        return Corridor(
            start_room=room1,
            end_room=room2,
            path=path,
            width=self.params.corridor_width,
            start_point=start,
            end_point=end,
        )

    def _create_l_corridor(self, start: Tuple[int, int], end: Tuple[int, int],
                           width: int) -> List[Rectangle]:
        """
        Carve an L-shaped corridor between two points.

        The elbow is either (x2, y1) (horizontal leg first) or (x1, y2)
        (vertical leg first). Horizontal legs grow ``width`` rows in +y,
        vertical legs grow ``width`` columns in +x. Existing tiles are
        overwritten.

        Returns:
            The two carved segments
        """
        x1, y1 = start
        x2, y2 = end
        span_x = abs(x2 - x1) + 1
        span_y = abs(y2 - y1) + 1

        if self.rng.random() < CORNER_CHOICE_CHANCE:
            # Elbow at (x2, y1)
            horizontal = Rectangle(min(x1, x2), y1, span_x, width)
            vertical = Rectangle(x2, min(y1, y2), width, span_y)
            path = [horizontal, vertical]
        else:
            # Elbow at (x1, y2)
            vertical = Rectangle(x1, min(y1, y2), width, span_y)
            horizontal = Rectangle(min(x1, x2), y2, span_x, width)
            path = [vertical, horizontal]

        for segment in path:
            self._fill(segment, TileType.CORRIDOR)
        return path

    def _fill(self, rect: Rectangle, tile: TileType) -> None:
        """Fill a rectangle, clipped to the grid"""
        x1, y1 = max(rect.x, 0), max(rect.y, 0)
        x2, y2 = min(rect.x2, self.width), min(rect.y2, self.height)
        if x1 < x2 and y1 < y2:
            self.grid[y1:y2, x1:x2] = tile.value

    def _place_doors(self) -> None:
        """Turn corridor cells that cut a straight run of room wall into doors."""
        corridor, wall = TileType.CORRIDOR.value, TileType.WALL.value
        for room in self.rooms:
            b = room.bounds
            if b.width < 3 or b.height < 3:
                continue
            # (cell, the two wall cells beside it along the border)
            candidates = []
            for x in range(b.x + 1, b.x2 - 1):
                for y in (b.y, b.y2 - 1):
                    candidates.append(((x, y), (x - 1, y), (x + 1, y)))
            for y in range(b.y + 1, b.y2 - 1):
                for x in (b.x, b.x2 - 1):
                    candidates.append(((x, y), (x, y - 1), (x, y + 1)))

            for (cx, cy), (ax, ay), (bx, by) in candidates:
                if (self.grid[cy, cx] == corridor and self.grid[ay, ax] == wall
                        and self.grid[by, bx] == wall):
                    self.grid[cy, cx] = TileType.DOOR.value

    def tile_counts(self) -> Dict[TileType, int]:
        """Number of cells of each tile type in the last generated grid"""
        values, counts = np.unique(self.grid, return_counts=True)
        result = {tile: 0 for tile in TileType}
        for value, count in zip(values, counts):
            result[TileType(int(value))] = int(count)
        return result

    def _grid_to_objects(self, theme: str) -> List[Entity]:
        objects = []
        for y in range(self.height):
            for x in range(self.width):
                tile = TileType(int(self.grid[y, x]))
                if tile == TileType.EMPTY:
                    continue
                objects.append(self._create_tile_object(tile, x, y, theme))
        return objects

    def _create_tile_object(self, tile: TileType, x: int, y: int, theme: str) -> Entity:
        template = TILE_TEMPLATES[tile]
        return Entity(
            id=random_uuid(self.rng),
            name=f"{template.kind}_{x}_{y}",
            transform=Transform3D(
                position=[float(x), template.elevation, float(y)],
                rotation=list(IDENTITY_ROTATION),
                scale=list(template.scale),
            ),
            material=f"materials/{theme}/{template.kind}.mat",
            mesh=template.mesh,
            layer=template.layer,
            tags=list(template.tags) + [theme],
            metadata=dict(template.metadata),
        )
