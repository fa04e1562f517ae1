"""
Level generators.

- BSPGenerator: recursive partitioning into rooms and corridors
- WFCGenerator: tile constraint propagation with backtracking

Both return a levelforge.scene.Level and own their random generator per run.
"""

from .bsp import BSPGenerator, BSPGenerationParams
from .wfc import WFCGenerator, WFCGenerationParams, TilesetLibrary

__all__ = [
    'BSPGenerator',
    'BSPGenerationParams',
    'WFCGenerator',
    'WFCGenerationParams',
    'TilesetLibrary',
]
