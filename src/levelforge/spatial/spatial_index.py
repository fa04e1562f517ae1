"""
Spatial bookkeeping for placed level entities.

Maps entity ids to axis-aligned bounding boxes and answers range queries
for the editor (box selection, "what is under the cursor"). The index is a
flat dictionary scanned linearly per query, which is fine at editor scale
(hundreds to low thousands of entities).

The index is not synchronized. Whoever shares it (LevelSession) must
serialize mutation.
"""

from typing import Dict, List, Optional

from levelforge.scene.level_types import BoundingBox, Transform3D


class SpatialIndex:
    """Flat id -> BoundingBox map with closed-interval range queries."""

    def __init__(self):
        self._objects: Dict[str, BoundingBox] = {}

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: str) -> bool:
        return object_id in self._objects

    def insert(self, object_id: str, transform: Transform3D) -> None:
        """Store (or overwrite) the AABB of an entity."""
        self._objects[object_id] = BoundingBox.from_transform(transform)

    def update(self, object_id: str, transform: Transform3D) -> None:
        """Same as insert; an unknown id is simply added."""
        self.insert(object_id, transform)

    def remove(self, object_id: str) -> None:
        self._objects.pop(object_id, None)

    def clear(self) -> None:
        self._objects.clear()

    def get_bounds(self, object_id: str) -> Optional[BoundingBox]:
        return self._objects.get(object_id)

    def query_bounds(self, bounds: BoundingBox) -> List[str]:
        """
        Return the ids of every stored box overlapping ``bounds``.

        Args:
            bounds: Query box; faces touching a stored box count as overlap

        Returns:
            Matching ids in insertion order
        """
        return [
            object_id for object_id, object_bounds in self._objects.items()
            if bounds.intersects(object_bounds)
        ]
