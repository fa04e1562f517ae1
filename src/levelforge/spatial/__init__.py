"""
Spatial index over level entities.
"""

from levelforge.scene.level_types import BoundingBox

from .spatial_index import SpatialIndex

__all__ = [
    'BoundingBox',
    'SpatialIndex',
]
