#!/usr/bin/env python3
"""
Level Types shared by every generator

Both the partition (BSP) and the constraint (WFC) generators emit exactly
these structures, so spatial indexing, editing and export never need to know
which algorithm produced a level.

World axes follow the editor convention: X and Z span the ground plane
(grid column and row), Y is up. One grid tile is one world unit.

Author: levelforge
License: MIT
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence
from dataclasses import dataclass, field


IDENTITY_ROTATION = (0.0, 0.0, 0.0, 1.0)  # quaternion [x, y, z, w]


def _vec(values: Sequence[float], size: int) -> List[float]:
    if len(values) != size:
        raise ValueError(f"Expected {size} components, got {len(values)}")
    return [float(v) for v in values]


@dataclass
class Transform3D:
    """Position, rotation quaternion and scale of an entity"""
    position: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    rotation: List[float] = field(default_factory=lambda: list(IDENTITY_ROTATION))
    scale: List[float] = field(default_factory=lambda: [1.0, 1.0, 1.0])

    def to_dict(self) -> Dict[str, List[float]]:
        return {
            'position': list(self.position),
            'rotation': list(self.rotation),
            'scale': list(self.scale),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transform3D':
        return cls(
            position=_vec(data['position'], 3),
            rotation=_vec(data['rotation'], 4),
            scale=_vec(data['scale'], 3),
        )


@dataclass
class BoundingBox:
    """Axis-aligned bounding box in world units"""
    min: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    max: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])

    @classmethod
    def from_transform(cls, transform: Transform3D) -> 'BoundingBox':
        """Box centered on the transform position, half the scale each way.
        Rotation is ignored."""
        pos = transform.position
        half = [s * 0.5 for s in transform.scale]
        return cls(
            min=[pos[0] - half[0], pos[1] - half[1], pos[2] - half[2]],
            max=[pos[0] + half[0], pos[1] + half[1], pos[2] + half[2]],
        )

    @classmethod
    def union(cls, boxes: Iterable['BoundingBox']) -> Optional['BoundingBox']:
        """Smallest box containing every given box, None if there are none"""
        result = None
        for box in boxes:
            if result is None:
                result = cls(min=list(box.min), max=list(box.max))
                continue
            for axis in range(3):
                result.min[axis] = min(result.min[axis], box.min[axis])
                result.max[axis] = max(result.max[axis], box.max[axis])
        return result

    def intersects(self, other: 'BoundingBox') -> bool:
        """Closed-interval overlap on all three axes (touching faces count)"""
        return all(
            self.max[axis] >= other.min[axis] and self.min[axis] <= other.max[axis]
            for axis in range(3)
        )

    def contains(self, other: 'BoundingBox', tolerance: float = 1e-6) -> bool:
        """Check if other lies entirely inside this box"""
        return all(
            self.min[axis] - tolerance <= other.min[axis]
            and other.max[axis] <= self.max[axis] + tolerance
            for axis in range(3)
        )

    def to_dict(self) -> Dict[str, List[float]]:
        return {'min': list(self.min), 'max': list(self.max)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BoundingBox':
        return cls(min=_vec(data['min'], 3), max=_vec(data['max'], 3))


@dataclass
class Entity:
    """
    A positioned scene object.

    Material and mesh are opaque, theme-qualified references; nothing in
    this package resolves them against an asset catalog.
    """
    id: str
    name: str
    transform: Transform3D = field(default_factory=Transform3D)
    material: Optional[str] = None
    mesh: Optional[str] = None
    layer: str = "Default"
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def bounds(self) -> BoundingBox:
        return BoundingBox.from_transform(self.transform)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'transform': self.transform.to_dict(),
            'material': self.material,
            'mesh': self.mesh,
            'layer': self.layer,
            'tags': list(self.tags),
            'metadata': dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Entity':
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            transform=Transform3D.from_dict(data['transform']),
            material=data.get('material'),
            mesh=data.get('mesh'),
            layer=data.get('layer', "Default"),
            tags=list(data.get('tags', [])),
            metadata=dict(data.get('metadata', {})),
        )


@dataclass
class Level:
    """
    A generated (or loaded) level.

    ``bounds`` should contain every entity's bounding box. This is not
    enforced when entities are edited; validation.checks reports it.
    """
    id: str
    name: str
    objects: List[Entity] = field(default_factory=list)
    layers: List[str] = field(default_factory=list)
    generation_seed: Optional[int] = None
    generation_params: Optional[Dict[str, Any]] = None
    bounds: BoundingBox = field(default_factory=BoundingBox)

    def find_object(self, object_id: str) -> Optional[Entity]:
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        return None

    def objects_with_tag(self, tag: str) -> List[Entity]:
        return [obj for obj in self.objects if tag in obj.tags]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'objects': [obj.to_dict() for obj in self.objects],
            'layers': list(self.layers),
            'generation_seed': self.generation_seed,
            'generation_params': self.generation_params,
            'bounds': self.bounds.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Level':
        seed = data.get('generation_seed')
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            objects=[Entity.from_dict(obj) for obj in data.get('objects', [])],
            layers=list(data.get('layers', [])),
            generation_seed=int(seed) if seed is not None else None,
            generation_params=data.get('generation_params'),
            bounds=BoundingBox.from_dict(data['bounds']),
        )
