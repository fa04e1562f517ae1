"""
Validation checks for generation requests, tilesets and levels.

The generators themselves trust their inputs (the partition generator
degrades to sparse output, the constraint generator fails at run time), so
these checks are the place where inconsistent requests get caught before a
run. Each check returns a ValidationResult; nothing here raises.

Rule codes:
    PARAM-001  grid width/height not positive                    FAIL
    PARAM-002  min room size below 1                             FAIL
    PARAM-003  min room size larger than max room size           FAIL
    PARAM-004  min room size at least half the grid              WARN
    PARAM-005  corridor width below 1                            FAIL
    PARAM-006  max iterations below 1                            FAIL
    PARAM-007  negative backtrack limit                          FAIL
    PARAM-008  unknown tileset name                              WARN
    TILESET-001  tile with no admissible neighbor in a direction WARN
    TILESET-002  rule refers to a tile that does not exist       FAIL
    TILESET-003  tile weight not positive                        FAIL
    LEVEL-001  entities reaching outside the level bounds        INFO
    LEVEL-002  duplicate entity ids                              FAIL
"""

import logging
from collections import Counter

from levelforge.generators.bsp.bsp_generator import BSPGenerationParams
from levelforge.generators.wfc.tilesets import DIRECTIONS, Tileset, TilesetLibrary
from levelforge.generators.wfc.wfc_generator import WFCGenerationParams
from levelforge.scene.level_types import Level

from .core import Severity, ValidationResult, ValidationStage

logger = logging.getLogger(__name__)


def _check_grid_size(result: ValidationResult, width: int, height: int) -> None:
    for name, value in (("width", width), ("height", height)):
        if value < 1:
            result.add(Severity.FAIL, "PARAM-001",
                       f"Grid {name} must be positive, got {value}",
                       remediation=f"Set {name} to 1 or more", location=name)


def validate_bsp_params(params: BSPGenerationParams) -> ValidationResult:
    """Check a partition request for inconsistent sizes."""
    result = ValidationResult(stage=ValidationStage.PARAMETERS)
    _check_grid_size(result, params.width, params.height)

    if params.min_room_size < 1:
        result.add(Severity.FAIL, "PARAM-002",
                   f"min_room_size must be at least 1, got {params.min_room_size}",
                   location="min_room_size")

    if params.min_room_size > params.max_room_size:
        result.add(Severity.FAIL, "PARAM-003",
                   f"min_room_size ({params.min_room_size}) is larger than "
                   f"max_room_size ({params.max_room_size})",
                   remediation="Raise max_room_size or lower min_room_size",
                   location="min_room_size")

    if params.width >= 1 and params.height >= 1:
        half_grid = min(params.width, params.height) / 2
        if params.min_room_size >= half_grid:
            result.add(Severity.WARN, "PARAM-004",
                       f"min_room_size ({params.min_room_size}) is at least half the grid "
                       f"({params.width}x{params.height}); the layout will be sparse or empty",
                       remediation="Use a larger grid or smaller rooms",
                       location="min_room_size")

    if params.corridor_width < 1:
        result.add(Severity.FAIL, "PARAM-005",
                   f"corridor_width must be at least 1, got {params.corridor_width}",
                   location="corridor_width")
    return result


def validate_wfc_params(params: WFCGenerationParams) -> ValidationResult:
    """Check a constraint request for inconsistent sizes and budgets."""
    result = ValidationResult(stage=ValidationStage.PARAMETERS)
    _check_grid_size(result, params.width, params.height)

    if params.max_iterations < 1:
        result.add(Severity.FAIL, "PARAM-006",
                   f"max_iterations must be at least 1, got {params.max_iterations}",
                   location="max_iterations")

    if params.backtrack_limit < 0:
        result.add(Severity.FAIL, "PARAM-007",
                   f"backtrack_limit cannot be negative, got {params.backtrack_limit}",
                   location="backtrack_limit")

    if not TilesetLibrary.has_tileset(params.tileset):
        result.add(Severity.WARN, "PARAM-008",
                   f"Unknown tileset {params.tileset!r}, the dungeon tileset will be used",
                   remediation=f"Use one of {', '.join(TilesetLibrary.names())}",
                   location="tileset")
    return result


def validate_tileset(tileset: Tileset) -> ValidationResult:
    """
    Check that a tileset can drive the solver.

    A tileset is well formed when every tile, in every direction, admits at
    least one neighbor. Tiles without a rule in a direction admit anything.
    """
    result = ValidationResult(stage=ValidationStage.TILESET)
    tile_ids = set(tileset.tile_ids)
    table = tileset.build_constraint_table()

    for tile in tileset.tiles:
        if tile.weight <= 0:
            result.add(Severity.FAIL, "TILESET-003",
                       f"Tile {tile.id!r} has non-positive weight {tile.weight}",
                       location=tile.id)

    for rule in tileset.rules:
        unknown = sorted(set(rule.allowed_neighbors) - tile_ids)
        if rule.tile_id not in tile_ids:
            unknown.insert(0, rule.tile_id)
        if unknown:
            result.add(Severity.FAIL, "TILESET-002",
                       f"Rule for {rule.tile_id!r} {rule.direction.name} refers to "
                       f"unknown tile(s): {', '.join(unknown)}",
                       location=rule.tile_id)

    for tile in tileset.tiles:
        for direction in DIRECTIONS:
            allowed = table.get((tile.id, direction))
            if allowed is not None and not (allowed & tile_ids):
                result.add(Severity.WARN, "TILESET-001",
                           f"Tile {tile.id!r} admits no neighbor to the {direction.name}",
                           remediation="Add at least one allowed neighbor",
                           location=tile.id)
    return result


def validate_level(level: Level) -> ValidationResult:
    """Check a produced or loaded level.

    Bounds containment is a soft invariant: generated entities are centered
    on tile coordinates and may stick out of the grid extents by half a
    tile, so it is reported as INFO only.
    """
    result = ValidationResult(stage=ValidationStage.LEVEL)

    outside = [obj.id for obj in level.objects if not level.bounds.contains(obj.bounds)]
    if outside:
        result.add(Severity.INFO, "LEVEL-001",
                   f"{len(outside)} of {len(level.objects)} entities reach outside the level bounds",
                   location=outside[0])

    duplicates = [object_id for object_id, count in
                  Counter(obj.id for obj in level.objects).items() if count > 1]
    for object_id in duplicates:
        result.add(Severity.FAIL, "LEVEL-002",
                   f"Entity id {object_id!r} is used more than once",
                   location=object_id)
    return result


def log_result(result: ValidationResult) -> None:
    """Log warnings and errors of a result at matching levels."""
    for issue in result.warnings:
        logger.warning(str(issue))
    for issue in result.errors:
        logger.error(str(issue))
