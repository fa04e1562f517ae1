"""
Wave Function Collapse generator module.

Tile-based constraint propagation with bounded single-level backtracking.
"""

from .tilesets import (
    DEFAULT_TILESET,
    DIRECTIONS,
    ConstraintRule,
    Direction,
    Tileset,
    TilesetLibrary,
    TileType,
    rules_for_all_directions,
)
from .wfc_generator import (
    WFC_LEVEL_LAYERS,
    Cell,
    UndoFrame,
    WFCGenerationParams,
    WFCGenerator,
    weighted_choice,
)

__all__ = [
    'DEFAULT_TILESET',
    'DIRECTIONS',
    'ConstraintRule',
    'Direction',
    'Tileset',
    'TilesetLibrary',
    'TileType',
    'rules_for_all_directions',
    'WFC_LEVEL_LAYERS',
    'Cell',
    'UndoFrame',
    'WFCGenerationParams',
    'WFCGenerator',
    'weighted_choice',
]
