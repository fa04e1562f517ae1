"""
Level session: generation, atomic installation, editing and persistence.
"""

from .level_session import (
    LevelSession,
    GenerationResult,
    GenerationAlgorithm,
    SeedRecord,
    RECENT_SEED_LIMIT,
)

__all__ = [
    'LevelSession',
    'GenerationResult',
    'GenerationAlgorithm',
    'SeedRecord',
    'RECENT_SEED_LIMIT',
]
