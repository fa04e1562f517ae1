"""Wave Function Collapse level generator.

Assigns tile identities from a named tileset to every cell of a grid while
honoring the tileset's per-direction adjacency rules:

1. Every cell starts with the full catalog (maximal entropy).
2. The uncollapsed cell with the fewest admissible tiles is picked, ties
   broken uniformly at random.
3. That cell collapses to one tile by cumulative-weight sampling.
4. The choice is propagated breadth-first to 4-connected neighbors.
5. A contradiction (an emptied domain) undoes the most recent collapse and
   the solver tries again, until the backtrack budget runs out.

Backtracking is single-level: each undo pops one frame from an explicit
stack of (cell, prior domain) records, restoring exactly the state before
that collapse. It does not search the alternatives of older choices, so a
stubborn frontier can burn through the budget quickly.

A run either yields a fully collapsed level or raises one of
BacktrackBudgetExhausted, NoAdmissibleTile or IterationBudgetExceeded.
"""

from __future__ import annotations

import bisect
import itertools
import logging
import random
from collections import deque
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from levelforge.errors import (
    BacktrackBudgetExhausted,
    GenerationContradiction,
    IterationBudgetExceeded,
    NoAdmissibleTile,
)
from levelforge.generators.seeding import make_rng, random_uuid, resolve_seed
from levelforge.scene.level_types import (
    IDENTITY_ROTATION,
    BoundingBox,
    Entity,
    Level,
    Transform3D,
)

from .tilesets import DIRECTIONS, Direction, Tileset, TilesetLibrary, TileType

logger = logging.getLogger(__name__)

Coord = Tuple[int, int]

WFC_LEVEL_LAYERS = ["Generated"]


@dataclass
class WFCGenerationParams:
    """Request parameters for the constraint generator.

    ``depth`` is accepted for symmetry with the partition request; the solver
    works on a single layer.
    """

    width: int = 24
    height: int = 24
    depth: int = 1
    tileset: str = "dungeon"
    seed: Optional[int] = None
    max_iterations: int = 10000
    backtrack_limit: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> WFCGenerationParams:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


class Cell:
    """One grid cell: its admissible tile ids and, once collapsed, the tile."""

    __slots__ = ("possible_tiles", "collapsed", "tile_id")

    def __init__(self, possible_tiles: Set[str]) -> None:
        self.possible_tiles: Set[str] = set(possible_tiles)
        self.collapsed = False
        self.tile_id: Optional[str] = None

    @property
    def entropy(self) -> int:
        """Number of admissible tiles; zero once collapsed."""
        return 0 if self.collapsed else len(self.possible_tiles)

    def collapse(self, tile_id: str) -> None:
        self.collapsed = True
        self.tile_id = tile_id
        self.possible_tiles = {tile_id}

    def restore(self, domain: FrozenSet[str]) -> None:
        self.collapsed = False
        self.tile_id = None
        self.possible_tiles = set(domain)


@dataclass
class UndoFrame:
    """Everything one collapse changed, so popping it restores the grid exactly.

    Attributes:
        coord: The collapsed cell.
        prior_domain: Its domain right before the collapse.
        narrowed: (cell, domain before narrowing) for every neighbor that
            propagation shrank, in the order it happened.
    """

    coord: Coord
    prior_domain: FrozenSet[str]
    narrowed: List[Tuple[Coord, FrozenSet[str]]] = field(default_factory=list)


def weighted_choice(rng: random.Random, tiles: Sequence[TileType]) -> TileType:
    """Pick a tile by cumulative weight.

    Draws ``r = rng.random() * total`` and returns the first tile whose
    cumulative weight is >= r, so a draw landing exactly on a boundary goes
    to the earlier tile. Float rounding past the last boundary clamps to the
    last tile.
    """
    cumulative = list(itertools.accumulate(tile.weight for tile in tiles))
    r = rng.random() * cumulative[-1]
    index = bisect.bisect_left(cumulative, r)
    return tiles[min(index, len(tiles) - 1)]


class WFCGenerator:
    """Constraint-propagation level generator.

    Args:
        tileset: Use this tileset instead of looking ``params.tileset`` up in
            the TilesetLibrary.

    The grid, undo stack and counters of the last run remain readable after
    ``generate`` returns or raises.
    """

    def __init__(self, tileset: Optional[Tileset] = None) -> None:
        self._tileset_override = tileset
        self.tileset: Optional[Tileset] = None
        self.constraints: Dict[Tuple[str, Direction], FrozenSet[str]] = {}
        self.rng = make_rng(0)
        self.grid: List[List[Cell]] = []
        self.width = 0
        self.height = 0
        self.undo_stack: List[UndoFrame] = []
        self.iterations = 0
        self.backtracks = 0

    def generate(self, params: WFCGenerationParams) -> Level:
        """Solve a grid and convert it to a level.

        Raises:
            BacktrackBudgetExhausted: A contradiction with no budget left.
            NoAdmissibleTile: A cell with no candidate tile and no budget left.
            IterationBudgetExceeded: More than ``max_iterations`` collapses.
        """
        seed = resolve_seed(params.seed)
        self.rng = make_rng(seed)
        self.width = max(params.width, 0)
        self.height = max(params.height, 0)

        if self._tileset_override is not None:
            self.tileset = self._tileset_override
        else:
            self.tileset = TilesetLibrary.get_tileset(params.tileset)
        self.constraints = self.tileset.build_constraint_table()
        logger.info(
            "Starting WFC generation %dx%d with tileset %r, seed %d",
            self.width, self.height, self.tileset.name, seed,
        )

        self._initialize_grid()
        self._run(params.max_iterations, params.backtrack_limit)

        recorded = params.to_dict()
        recorded["seed"] = seed
        level = self._create_level(seed, self.tileset.name, recorded)
        logger.info(
            "WFC generation complete: %d objects, %d collapses, %d backtracks",
            len(level.objects), self.iterations, self.backtracks,
        )
        return level

    def tile_grid(self) -> List[List[Optional[str]]]:
        """Resolved tile ids as rows (``[y][x]``); None where not collapsed."""
        return [[cell.tile_id for cell in row] for row in self.grid]

    # ------------------------------------------------------------------
    # Solver
    # ------------------------------------------------------------------

    def _initialize_grid(self) -> None:
        all_tile_ids = set(self.tileset.tile_ids)
        self.grid = [
            [Cell(all_tile_ids) for _ in range(self.width)] for _ in range(self.height)
        ]
        self.undo_stack = []
        self.iterations = 0
        self.backtracks = 0

    def _run(self, max_iterations: int, backtrack_limit: int) -> None:
        while True:
            coord = self._find_lowest_entropy_cell()
            if coord is None:
                return

            if self.iterations >= max_iterations:
                raise IterationBudgetExceeded(
                    f"WFC failed: max iterations exceeded ({max_iterations})"
                )

            failure = self._collapse_and_propagate(coord)
            if failure is None:
                continue

            if self.backtracks >= backtrack_limit:
                raise failure
            self._backtrack()
            self.backtracks += 1

    def _collapse_and_propagate(self, coord: Coord) -> Optional[GenerationContradiction]:
        """Collapse one cell; return the failure to report if it went wrong."""
        x, y = coord
        cell = self.grid[y][x]
        if not cell.possible_tiles:
            return NoAdmissibleTile(f"WFC failed: no valid tiles at ({x}, {y})")

        frame = UndoFrame(coord, frozenset(cell.possible_tiles))
        self.undo_stack.append(frame)

        tile = self._choose_tile_for_cell(x, y)
        if tile is None:
            return NoAdmissibleTile(f"WFC failed: no valid tiles at ({x}, {y})")

        cell.collapse(tile.id)
        self.iterations += 1

        if not self._propagate_constraints(x, y, frame):
            return BacktrackBudgetExhausted(
                f"WFC failed: too many backtracks ({self.backtracks}) "
                f"after contradiction near ({x}, {y})"
            )
        return None

    def _find_lowest_entropy_cell(self) -> Optional[Coord]:
        """Uncollapsed cell with the fewest admissible tiles (> 0).

        Ties are broken uniformly at random over row-major candidates. When
        every remaining uncollapsed cell has an empty domain, the first of
        them is returned so the caller can report it.
        """
        min_entropy = None
        candidates: List[Coord] = []
        first_empty: Optional[Coord] = None

        for y, row in enumerate(self.grid):
            for x, cell in enumerate(row):
                if cell.collapsed:
                    continue
                entropy = cell.entropy
                if entropy == 0:
                    if first_empty is None:
                        first_empty = (x, y)
                elif min_entropy is None or entropy < min_entropy:
                    min_entropy = entropy
                    candidates = [(x, y)]
                elif entropy == min_entropy:
                    candidates.append((x, y))

        if candidates:
            return candidates[self.rng.randrange(len(candidates))]
        return first_empty

    def _choose_tile_for_cell(self, x: int, y: int) -> Optional[TileType]:
        domain = self.grid[y][x].possible_tiles
        # Catalog order, not set order, keeps sampling reproducible
        candidates = [tile for tile in self.tileset.tiles if tile.id in domain]
        if not candidates:
            return None
        return weighted_choice(self.rng, candidates)

    def _allowed_neighbors(
        self, domain: Set[str], direction: Direction
    ) -> Optional[FrozenSet[str]]:
        """Union of the rule sets of every tile in ``domain``.

        None means unconstrained: at least one tile has no rule that way.
        """
        allowed: Set[str] = set()
        for tile_id in domain:
            rule = self.constraints.get((tile_id, direction))
            if rule is None:
                return None
            allowed |= rule
        return frozenset(allowed)

    def _revise(self, domain: Set[str], source_domain: Set[str], direction: Direction) -> Set[str]:
        """Tiles of ``domain`` that may sit on the ``direction`` side of a source.

        Rules are not mirrored, so both sides are checked: some source tile
        must admit the candidate, and the candidate's own rule facing back
        must admit some source tile.
        """
        allowed = self._allowed_neighbors(source_domain, direction)
        back = direction.opposite
        kept: Set[str] = set()
        for tile_id in domain:
            if allowed is not None and tile_id not in allowed:
                continue
            rule = self.constraints.get((tile_id, back))
            if rule is not None and not (rule & source_domain):
                continue
            kept.add(tile_id)
        return kept

    def _propagate_constraints(self, start_x: int, start_y: int, frame: UndoFrame) -> bool:
        """Breadth-first narrowing from a freshly collapsed cell.

        Returns:
            False on contradiction (some neighbor lost every tile).
        """
        queue = deque([(start_x, start_y)])

        while queue:
            x, y = queue.popleft()
            source = self.grid[y][x]

            for direction in DIRECTIONS:
                dx, dy = direction.offset
                nx, ny = x + dx, y + dy
                if not (0 <= nx < self.width and 0 <= ny < self.height):
                    continue

                neighbor = self.grid[ny][nx]
                if neighbor.collapsed:
                    continue

                narrowed = self._revise(neighbor.possible_tiles, source.possible_tiles, direction)
                if len(narrowed) == len(neighbor.possible_tiles):
                    continue

                frame.narrowed.append(((nx, ny), frozenset(neighbor.possible_tiles)))
                neighbor.possible_tiles = narrowed
                if not narrowed:
                    return False
                queue.append((nx, ny))

        return True

    def _backtrack(self) -> None:
        """Pop the most recent frame and restore what it recorded."""
        if not self.undo_stack:
            return
        frame = self.undo_stack.pop()
        for (x, y), domain in reversed(frame.narrowed):
            self.grid[y][x].possible_tiles = set(domain)
        x, y = frame.coord
        self.grid[y][x].restore(frame.prior_domain)
        logger.debug("Backtracked collapse at (%d, %d)", x, y)

    # ------------------------------------------------------------------
    # Level conversion
    # ------------------------------------------------------------------

    def _create_level(self, seed: int, tileset_name: str, recorded: Dict[str, Any]) -> Level:
        objects = []
        for y, row in enumerate(self.grid):
            for x, cell in enumerate(row):
                if not cell.collapsed:
                    continue
                tile = self.tileset.get_tile(cell.tile_id)
                objects.append(self._create_tile_object(tile, x, y, tileset_name))

        return Level(
            id=random_uuid(self.rng),
            name=f"WFC Level {seed} ({tileset_name})",
            objects=objects,
            layers=list(WFC_LEVEL_LAYERS),
            generation_seed=seed,
            generation_params=recorded,
            bounds=BoundingBox(
                min=[0.0, 0.0, 0.0],
                max=[float(self.width), 1.0, float(self.height)],
            ),
        )

    def _create_tile_object(self, tile: TileType, x: int, y: int, tileset_name: str) -> Entity:
        return Entity(
            id=random_uuid(self.rng),
            name=f"{tileset_name}_{tile.name}_{x}_{y}",
            transform=Transform3D(
                position=[float(x), 0.0, float(y)],
                rotation=list(IDENTITY_ROTATION),
                scale=[1.0, 1.0, 1.0],
            ),
            material=f"{tileset_name}_{tile.id}",
            mesh=tile.mesh_type,
            layer="Generated",
            tags=["wfc", tileset_name, tile.id],
            metadata={"tile_type": tile.id, "algorithm": "WFC"},
        )
