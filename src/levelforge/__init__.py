"""
levelforge - procedural level layouts for a level-design editor.

Two generators (recursive partitioning and wave function collapse) emit the
same Level contract, which the LevelSession indexes for editor queries.
"""

from .errors import (
    LevelForgeError,
    ParameterError,
    GenerationError,
    GenerationContradiction,
    BacktrackBudgetExhausted,
    NoAdmissibleTile,
    IterationBudgetExceeded,
    LevelIOError,
    SessionError,
)
from .scene import Transform3D, BoundingBox, Entity, Level
from .spatial import SpatialIndex
from .generators import (
    BSPGenerator,
    BSPGenerationParams,
    WFCGenerator,
    WFCGenerationParams,
    TilesetLibrary,
)
from .pipeline import LevelSession, GenerationResult

__all__ = [
    'LevelForgeError',
    'ParameterError',
    'GenerationError',
    'GenerationContradiction',
    'BacktrackBudgetExhausted',
    'NoAdmissibleTile',
    'IterationBudgetExceeded',
    'LevelIOError',
    'SessionError',
    'Transform3D',
    'BoundingBox',
    'Entity',
    'Level',
    'SpatialIndex',
    'BSPGenerator',
    'BSPGenerationParams',
    'WFCGenerator',
    'WFCGenerationParams',
    'TilesetLibrary',
    'LevelSession',
    'GenerationResult',
]

__version__ = '1.0.0'
