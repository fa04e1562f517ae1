"""
Shared level contract produced by every generator.
"""

from .level_types import (
    Transform3D,
    BoundingBox,
    Entity,
    Level,
    IDENTITY_ROTATION,
)
from .level_io import save_level, load_level

__all__ = [
    'Transform3D',
    'BoundingBox',
    'Entity',
    'Level',
    'IDENTITY_ROTATION',
    'save_level',
    'load_level',
]
