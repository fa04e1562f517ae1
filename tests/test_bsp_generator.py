"""Tests for the partition (BSP) level generator."""

from __future__ import annotations

import random
from collections import deque
from typing import List, Set, Tuple

import numpy as np
import pytest

from levelforge.generators.bsp.bsp_generator import (
    BSP_LEVEL_LAYERS,
    BSPGenerationParams,
    BSPGenerator,
    BSPNode,
    Rectangle,
    Room,
    SplitDirection,
    TileType,
)

WALKABLE = (TileType.FLOOR.value, TileType.CORRIDOR.value, TileType.DOOR.value)


def _walkable_components(grid: np.ndarray) -> List[Set[Tuple[int, int]]]:
    """4-connected components of floor, corridor and door cells."""
    height, width = grid.shape
    seen: Set[Tuple[int, int]] = set()
    components = []
    for y in range(height):
        for x in range(width):
            if (x, y) in seen or grid[y, x] not in WALKABLE:
                continue
            component = {(x, y)}
            seen.add((x, y))
            queue = deque([(x, y)])
            while queue:
                cx, cy = queue.popleft()
                for nx, ny in ((cx + 1, cy), (cx - 1, cy), (cx, cy + 1), (cx, cy - 1)):
                    if (0 <= nx < width and 0 <= ny < height and (nx, ny) not in seen
                            and grid[ny, nx] in WALKABLE):
                        seen.add((nx, ny))
                        component.add((nx, ny))
                        queue.append((nx, ny))
            components.append(component)
    return components


class TestBSPNode:
    def test_wide_node_usually_splits_vertically(self) -> None:
        rng = random.Random(1)
        node = BSPNode(Rectangle(0, 0, 40, 10))
        picks = [node.choose_split_direction(rng) for _ in range(2000)]
        share = picks.count(SplitDirection.VERTICAL) / len(picks)
        assert 0.75 < share < 0.85

    def test_tall_node_usually_splits_horizontally(self) -> None:
        rng = random.Random(2)
        node = BSPNode(Rectangle(0, 0, 10, 40))
        picks = [node.choose_split_direction(rng) for _ in range(2000)]
        share = picks.count(SplitDirection.HORIZONTAL) / len(picks)
        assert 0.75 < share < 0.85

    def test_split_refused_when_too_short(self) -> None:
        node = BSPNode(Rectangle(0, 0, 7, 7))
        assert not node.split(random.Random(0), min_room_size=4)
        assert node.is_leaf
        assert node.split_direction == SplitDirection.NONE

    def test_split_children_tile_parent(self) -> None:
        node = BSPNode(Rectangle(2, 3, 20, 20))
        assert node.split(random.Random(3), min_room_size=4)

        left, right = node.left_child.bounds, node.right_child.bounds
        assert left.area + right.area == node.bounds.area
        assert not left.intersects(right)
        if node.split_direction == SplitDirection.VERTICAL:
            assert left.width >= 4 and right.width >= 4
        else:
            assert left.height >= 4 and right.height >= 4

    def test_children_are_one_level_deeper(self) -> None:
        node = BSPNode(Rectangle(0, 0, 20, 20), depth=2)
        assert node.split(random.Random(5), min_room_size=4)
        assert node.left_child.depth == 3
        assert node.right_child.depth == 3

    def test_find_room_prefers_left_subtree(self) -> None:
        node = BSPNode(Rectangle(0, 0, 20, 10))
        node.split(random.Random(0), min_room_size=4)
        node.left_child.room = Room(node.left_child.bounds, id=0)
        node.right_child.room = Room(node.right_child.bounds, id=1)
        assert node.find_room().id == 0

        node.left_child.room = None
        assert node.find_room().id == 1


class TestRoom:
    def test_interior_point_avoids_wall_ring(self) -> None:
        room = Room(Rectangle(10, 5, 6, 4))
        rng = random.Random(0)
        for _ in range(100):
            x, y = room.interior_point(rng)
            assert 11 <= x <= 14
            assert 6 <= y <= 7

    def test_thin_room_uses_middle_cell(self) -> None:
        room = Room(Rectangle(0, 0, 2, 1))
        assert room.interior_point(random.Random(0)) == (1, 0)


class TestBSPGenerator:
    def test_scenario_a(self, scenario_a_params: BSPGenerationParams) -> None:
        generator = BSPGenerator()
        level = generator.generate(scenario_a_params)

        assert level.bounds.min == [0.0, 0.0, 0.0]
        assert level.bounds.max == [40.0, 1.0, 30.0]
        assert level.generation_seed == 42
        assert level.name == "BSP Level 42"
        assert level.layers == BSP_LEVEL_LAYERS
        assert level.objects_with_tag("wall")
        assert level.objects_with_tag("floor")
        assert level.objects_with_tag("corridor")
        assert not level.objects_with_tag("door")

        counts = generator.tile_counts()
        non_empty = sum(count for tile, count in counts.items() if tile != TileType.EMPTY)
        assert non_empty == len(level.objects)

    def test_same_seed_same_level(self, scenario_a_params: BSPGenerationParams) -> None:
        first = BSPGenerator().generate(scenario_a_params)
        second = BSPGenerator().generate(scenario_a_params)
        assert first.to_dict() == second.to_dict()

    def test_generator_instance_is_reusable(self, scenario_a_params: BSPGenerationParams) -> None:
        generator = BSPGenerator()
        first = generator.generate(scenario_a_params)
        generator.generate(BSPGenerationParams(width=20, height=20, seed=1))
        again = generator.generate(scenario_a_params)
        assert first.to_dict() == again.to_dict()

    def test_recorded_params_regenerate_the_level(self) -> None:
        level = BSPGenerator().generate(BSPGenerationParams(width=30, height=30))
        assert level.generation_params["seed"] == level.generation_seed

        replay = BSPGenerator().generate(BSPGenerationParams.from_dict(level.generation_params))
        assert replay.to_dict() == level.to_dict()

    @pytest.mark.parametrize("seed", range(20))
    def test_room_sizes_within_bounds(self, seed: int) -> None:
        params = BSPGenerationParams(width=48, height=36, min_room_size=4, max_room_size=12, seed=seed)
        generator = BSPGenerator()
        generator.generate(params)

        assert generator.rooms
        for room in generator.rooms:
            assert 4 <= room.bounds.width <= 12
            assert 4 <= room.bounds.height <= 12
            assert room.bounds.x >= 0 and room.bounds.x2 <= 48
            assert room.bounds.y >= 0 and room.bounds.y2 <= 36

    @pytest.mark.parametrize("seed", range(20))
    def test_rooms_do_not_overlap(self, seed: int) -> None:
        generator = BSPGenerator()
        generator.generate(BSPGenerationParams(seed=seed))

        rooms = generator.rooms
        for i, a in enumerate(rooms):
            for b in rooms[i + 1:]:
                assert not a.bounds.intersects(b.bounds)

    @pytest.mark.parametrize("seed", range(30))
    @pytest.mark.parametrize("corridor_width", [1, 2])
    def test_all_walkable_cells_connected(self, seed: int, corridor_width: int) -> None:
        generator = BSPGenerator()
        generator.generate(BSPGenerationParams(corridor_width=corridor_width, seed=seed))

        assert len(_walkable_components(generator.grid)) == 1

    @pytest.mark.parametrize("seed", range(10))
    def test_corridor_endpoints_are_walkable(self, seed: int) -> None:
        generator = BSPGenerator()
        generator.generate(BSPGenerationParams(seed=seed))
        for corridor in generator.corridors:
            for x, y in (corridor.start_point, corridor.end_point):
                assert generator.grid[y, x] in WALKABLE

    def test_min_larger_than_max_gives_empty_level(self) -> None:
        generator = BSPGenerator()
        level = generator.generate(BSPGenerationParams(min_room_size=10, max_room_size=5, seed=3))
        assert generator.rooms == []
        assert level.objects == []
        assert level.bounds.max == [48.0, 1.0, 36.0]

    def test_min_larger_than_grid_gives_empty_level(self) -> None:
        level = BSPGenerator().generate(
            BSPGenerationParams(width=10, height=10, min_room_size=20, max_room_size=30, seed=3)
        )
        assert level.objects == []

    def test_zero_sized_grid(self) -> None:
        level = BSPGenerator().generate(BSPGenerationParams(width=0, height=0, seed=1))
        assert level.objects == []

    def test_entities_follow_tile_templates(self, scenario_a_params: BSPGenerationParams) -> None:
        level = BSPGenerator().generate(scenario_a_params)

        wall = level.objects_with_tag("wall")[0]
        _, x, y = wall.name.split("_")
        assert wall.transform.position == [float(x), 1.0, float(y)]
        assert wall.transform.scale == [1.0, 2.0, 1.0]
        assert wall.layer == "Walls"
        assert wall.material == "materials/dungeon/wall.mat"
        assert wall.tags == ["wall", "collision", "dungeon"]

        floor = level.objects_with_tag("floor")[0]
        assert floor.transform.position[1] == 0.0
        assert floor.transform.scale == [1.0, 0.1, 1.0]
        assert floor.layer == "Floors"

        ids = [obj.id for obj in level.objects]
        assert len(set(ids)) == len(ids)

    def test_entities_in_row_major_order(self, scenario_a_params: BSPGenerationParams) -> None:
        level = BSPGenerator().generate(scenario_a_params)
        cells = [(obj.transform.position[2], obj.transform.position[0]) for obj in level.objects]
        assert cells == sorted(cells)


class TestDoors:
    def test_doors_only_replace_corridor_cells(self) -> None:
        without = BSPGenerator()
        without.generate(BSPGenerationParams(seed=11))
        with_doors = BSPGenerator()
        with_doors.generate(BSPGenerationParams(seed=11, place_doors=True))

        changed = without.grid != with_doors.grid
        assert np.all(with_doors.grid[changed] == TileType.DOOR.value)
        assert np.all(without.grid[changed] == TileType.CORRIDOR.value)

    def test_doors_appear_for_some_seed(self) -> None:
        door_total = 0
        for seed in range(10):
            generator = BSPGenerator()
            level = generator.generate(
                BSPGenerationParams(corridor_width=1, seed=seed, place_doors=True)
            )
            doors = level.objects_with_tag("door")
            door_total += len(doors)
            for door in doors:
                assert door.layer == "Doors"
                assert door.mesh == "meshes/door.mesh"
                assert door.metadata == {"interactive": True, "opens": "both"}
        assert door_total > 0
