"""
Level session: the calling layer around the generators.

Owns the current level and the spatial index built from it. Generation runs
outside the session lock (each run owns its generator and random stream);
only the final swap of level + index happens under the lock, so readers
never observe a half-populated index and a failed run leaves the previous
level untouched.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from levelforge.errors import GenerationError, LevelIOError, ParameterError, SessionError
from levelforge.generators.bsp.bsp_generator import BSPGenerationParams, BSPGenerator
from levelforge.generators.wfc.tilesets import Tileset, TilesetLibrary
from levelforge.generators.wfc.wfc_generator import WFCGenerationParams, WFCGenerator
from levelforge.scene import level_io
from levelforge.scene.level_types import BoundingBox, Level, Transform3D
from levelforge.spatial.spatial_index import SpatialIndex
from levelforge.validation.checks import (
    log_result,
    validate_bsp_params,
    validate_level,
    validate_tileset,
    validate_wfc_params,
)
from levelforge.validation.core import ValidationResult

logger = logging.getLogger(__name__)


RECENT_SEED_LIMIT = 10


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class GenerationAlgorithm(Enum):
    BSP = "bsp"
    WFC = "wfc"


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------

@dataclass
class SeedRecord:
    seed: int
    algorithm: GenerationAlgorithm
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GenerationResult:
    success: bool
    algorithm: GenerationAlgorithm
    level: Optional[Level] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    failure_kind: Optional[str] = None
    metrics: Dict[str, Any] = field(default_factory=dict)
    validation: Optional[ValidationResult] = None

    def add_error(self, message: str, kind: Optional[str] = None):
        self.errors.append(message)
        if kind and self.failure_kind is None:
            self.failure_kind = kind

    def add_warning(self, message: str):
        self.warnings.append(message)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class LevelSession:
    """Current level + spatial index, guarded by one coarse lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current_level: Optional[Level] = None
        self._spatial_index = SpatialIndex()
        self._recent_seeds: Deque[SeedRecord] = deque(maxlen=RECENT_SEED_LIMIT)

    # -- state access --

    @property
    def current_level(self) -> Optional[Level]:
        with self._lock:
            return self._current_level

    @property
    def recent_seeds(self) -> List[SeedRecord]:
        """Successful runs, most recent first."""
        with self._lock:
            return list(self._recent_seeds)

    @property
    def indexed_count(self) -> int:
        with self._lock:
            return len(self._spatial_index)

    # -- generation --

    def generate_bsp(self, params: BSPGenerationParams) -> GenerationResult:
        return self._generate(
            GenerationAlgorithm.BSP,
            params.to_dict(),
            validate_bsp_params(params),
            lambda: BSPGenerator().generate(params),
        )

    def generate_wfc(self, params: WFCGenerationParams,
                     tileset: Optional[Tileset] = None) -> GenerationResult:
        """Run the constraint generator; ``tileset`` overrides the named one."""
        checks = validate_wfc_params(params)
        if tileset is not None or TilesetLibrary.has_tileset(params.tileset):
            checks.merge(validate_tileset(tileset or TilesetLibrary.get_tileset(params.tileset)))
        return self._generate(
            GenerationAlgorithm.WFC,
            params.to_dict(),
            checks,
            lambda: WFCGenerator(tileset).generate(params),
        )

    def _generate(self, algorithm: GenerationAlgorithm, requested: Dict[str, Any],
                  checks: ValidationResult, run: Callable[[], Level]) -> GenerationResult:
        result = GenerationResult(success=False, algorithm=algorithm, validation=checks)
        start_time = time.time()
        logger.info("Generating %s level with params: %s", algorithm.value, requested)

        log_result(checks)
        for issue in checks.warnings:
            result.add_warning(issue.message)
        if checks.failed:
            error = ParameterError("; ".join(issue.message for issue in checks.errors))
            result.add_error(str(error), kind="parameter_error")
            return result

        try:
            level = run()
        except GenerationError as e:
            logger.error("Failed to generate %s level: %s", algorithm.value, e)
            result.add_error(str(e), kind=e.kind)
            return result

        level_checks = validate_level(level)
        if level_checks.failed:
            for issue in level_checks.errors:
                result.add_error(issue.message, kind="invalid_level")
            return result

        self._install(level)
        with self._lock:
            self._recent_seeds.appendleft(
                SeedRecord(level.generation_seed, algorithm, dict(level.generation_params or {}))
            )

        result.success = True
        result.level = level
        result.metrics['seed'] = level.generation_seed
        result.metrics['entity_count'] = len(level.objects)
        result.metrics['total_time'] = time.time() - start_time
        logger.info("Successfully generated level with %d objects in %.2fs",
                    len(level.objects), result.metrics['total_time'])
        return result

    def _install(self, level: Level) -> None:
        """Index every entity, then swap level and index in together."""
        index = SpatialIndex()
        for obj in level.objects:
            index.insert(obj.id, obj.transform)
        with self._lock:
            self._current_level = level
            self._spatial_index = index

    # -- editing --

    def query_objects_in_bounds(self, bounds: BoundingBox) -> List[str]:
        with self._lock:
            return self._spatial_index.query_bounds(bounds)

    def update_object_transform(self, object_id: str, transform: Transform3D) -> None:
        """
        Move/rotate/scale one entity and refresh its index entry.

        Raises:
            SessionError: If no level is loaded or the id is unknown
        """
        with self._lock:
            obj = self._require_object(object_id)
            obj.transform = transform
            self._spatial_index.update(object_id, transform)
        logger.info("Updated transform for object: %s", object_id)

    def remove_object(self, object_id: str) -> None:
        """
        Delete one entity from the level and the index.

        Raises:
            SessionError: If no level is loaded or the id is unknown
        """
        with self._lock:
            obj = self._require_object(object_id)
            self._current_level.objects.remove(obj)
            self._spatial_index.remove(object_id)
        logger.info("Removed object: %s", object_id)

    def clear(self) -> None:
        with self._lock:
            self._current_level = None
            self._spatial_index.clear()

    def _require_object(self, object_id: str):
        if self._current_level is None:
            raise SessionError("No level currently loaded")
        obj = self._current_level.find_object(object_id)
        if obj is None:
            raise SessionError(f"Object not found: {object_id}")
        return obj

    # -- persistence --

    def save_level(self, file_path: Union[str, Path]) -> Path:
        """Write the current level as JSON.

        Raises:
            SessionError: If no level is loaded
            LevelIOError: If the file cannot be written
        """
        level = self.current_level
        if level is None:
            raise SessionError("No level currently loaded")
        return level_io.save_level(level, file_path)

    def load_level(self, file_path: Union[str, Path]) -> Level:
        """Read a level from JSON and make it current.

        Raises:
            LevelIOError: If the file cannot be read or is not a valid level
        """
        level = level_io.load_level(file_path)
        checks = validate_level(level)
        log_result(checks)
        if checks.failed:
            raise LevelIOError("; ".join(issue.message for issue in checks.errors))
        self._install(level)
        return level
