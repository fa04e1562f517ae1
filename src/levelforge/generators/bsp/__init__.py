"""
BSP (Binary Space Partitioning) Generator Module

Recursive rectangle splitting into rooms joined by L-shaped corridors.
"""

from .bsp_generator import (
    BSPGenerator,
    BSPGenerationParams,
    BSPNode,
    Room,
    Corridor,
    Rectangle,
    SplitDirection,
    TileType,
    TileTemplate,
    TILE_TEMPLATES,
    BSP_LEVEL_LAYERS,
    # Constants
    LONG_SIDE_SPLIT_CHANCE,
    CORNER_CHOICE_CHANCE,
)

__all__ = [
    'BSPGenerator',
    'BSPGenerationParams',
    'BSPNode',
    'Room',
    'Corridor',
    'Rectangle',
    'SplitDirection',
    'TileType',
    'TileTemplate',
    'TILE_TEMPLATES',
    'BSP_LEVEL_LAYERS',
    'LONG_SIDE_SPLIT_CHANCE',
    'CORNER_CHOICE_CHANCE',
]
