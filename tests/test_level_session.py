"""Tests for the level session (generation, indexing, editing, persistence)."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from levelforge.errors import LevelIOError, SessionError
from levelforge.generators.bsp.bsp_generator import BSPGenerationParams
from levelforge.generators.wfc.tilesets import Tileset, TileType, rules_for_all_directions
from levelforge.generators.wfc.wfc_generator import WFCGenerationParams
from levelforge.pipeline.level_session import (
    RECENT_SEED_LIMIT,
    GenerationAlgorithm,
    LevelSession,
)
from levelforge.scene.level_io import save_level
from levelforge.scene.level_types import BoundingBox, Transform3D

EVERYWHERE = BoundingBox(min=[-1000.0, -1000.0, -1000.0], max=[1000.0, 1000.0, 1000.0])


def _dead_end_tileset() -> Tileset:
    return Tileset("dead_end", [TileType("a", "A")], rules_for_all_directions("a", []))


class TestGeneration:
    def test_bsp_success_installs_level_and_index(
        self, session: LevelSession, scenario_a_params: BSPGenerationParams
    ) -> None:
        result = session.generate_bsp(scenario_a_params)

        assert result.success
        assert result.algorithm == GenerationAlgorithm.BSP
        assert result.failure_kind is None
        assert session.current_level is result.level
        assert session.indexed_count == len(result.level.objects)
        assert result.metrics["seed"] == 42
        assert result.metrics["entity_count"] == len(result.level.objects)
        assert result.metrics["total_time"] >= 0

    def test_wfc_success(self, session: LevelSession) -> None:
        result = session.generate_wfc(WFCGenerationParams(width=6, height=6, tileset="office", seed=3))
        assert result.success
        assert result.algorithm == GenerationAlgorithm.WFC
        assert len(result.level.objects) == 36
        assert session.indexed_count == 36

    def test_parameter_error_is_reported_and_nothing_installed(self, session: LevelSession) -> None:
        result = session.generate_bsp(BSPGenerationParams(min_room_size=10, max_room_size=5))

        assert not result.success
        assert result.failure_kind == "parameter_error"
        assert "max_room_size" in result.errors[0]
        assert result.level is None
        assert session.current_level is None
        assert session.indexed_count == 0

    def test_generation_failure_keeps_previous_level(self, session: LevelSession) -> None:
        first = session.generate_bsp(BSPGenerationParams(seed=1))
        assert first.success

        result = session.generate_wfc(
            WFCGenerationParams(width=3, height=3, seed=1, backtrack_limit=2),
            tileset=_dead_end_tileset(),
        )

        assert not result.success
        assert result.failure_kind == "backtrack_exhausted"
        assert result.errors[0].startswith("WFC failed: too many backtracks")
        assert any("admits no neighbor" in warning for warning in result.warnings)
        assert session.current_level is first.level
        assert session.indexed_count == len(first.level.objects)
        assert len(session.recent_seeds) == 1

    def test_unknown_tileset_is_a_warning(self, session: LevelSession) -> None:
        result = session.generate_wfc(WFCGenerationParams(width=2, height=2, tileset="castle", seed=4))
        assert result.success
        assert any("castle" in warning for warning in result.warnings)

    def test_recent_seeds_most_recent_first_and_bounded(self, session: LevelSession) -> None:
        for seed in range(RECENT_SEED_LIMIT + 3):
            assert session.generate_bsp(BSPGenerationParams(width=16, height=16, seed=seed)).success

        seeds = session.recent_seeds
        assert len(seeds) == RECENT_SEED_LIMIT
        assert seeds[0].seed == RECENT_SEED_LIMIT + 2
        assert seeds[-1].seed == 3
        assert seeds[0].algorithm == GenerationAlgorithm.BSP
        assert seeds[0].params["width"] == 16

    def test_concurrent_runs_leave_consistent_state(self, session: LevelSession) -> None:
        params = [BSPGenerationParams(width=24, height=24, seed=seed) for seed in range(8)]
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(session.generate_bsp, params))

        assert all(result.success for result in results)
        level = session.current_level
        assert level in [result.level for result in results]
        assert sorted(session.query_objects_in_bounds(EVERYWHERE)) == sorted(obj.id for obj in level.objects)


class TestEditing:
    @pytest.fixture
    def loaded(self, session: LevelSession) -> LevelSession:
        assert session.generate_wfc(WFCGenerationParams(width=4, height=4, tileset="office", seed=9)).success
        return session

    def test_query_whole_level(self, loaded: LevelSession) -> None:
        ids = loaded.query_objects_in_bounds(EVERYWHERE)
        assert ids == [obj.id for obj in loaded.current_level.objects]

    def test_query_single_cell(self, loaded: LevelSession) -> None:
        # Tiles are unit cubes centered on integer cells; a small box hits one
        query = BoundingBox(min=[1.9, 0.0, 2.9], max=[2.1, 0.1, 3.1])
        ids = loaded.query_objects_in_bounds(query)
        assert len(ids) == 1
        assert loaded.current_level.find_object(ids[0]).transform.position == [2.0, 0.0, 3.0]

    def test_update_transform_moves_index_entry(self, loaded: LevelSession) -> None:
        target = loaded.current_level.objects[0]
        loaded.update_object_transform(target.id, Transform3D(position=[100.0, 0.0, 100.0]))

        assert target.transform.position == [100.0, 0.0, 100.0]
        far = BoundingBox(min=[99.0, -1.0, 99.0], max=[101.0, 1.0, 101.0])
        assert loaded.query_objects_in_bounds(far) == [target.id]

    def test_update_unknown_object(self, loaded: LevelSession) -> None:
        with pytest.raises(SessionError, match="Object not found"):
            loaded.update_object_transform("missing", Transform3D())

    def test_update_without_level(self, session: LevelSession) -> None:
        with pytest.raises(SessionError, match="No level currently loaded"):
            session.update_object_transform("anything", Transform3D())

    def test_remove_object(self, loaded: LevelSession) -> None:
        target = loaded.current_level.objects[0]
        loaded.remove_object(target.id)

        assert loaded.current_level.find_object(target.id) is None
        assert target.id not in loaded.query_objects_in_bounds(EVERYWHERE)
        assert loaded.indexed_count == 15

    def test_clear(self, loaded: LevelSession) -> None:
        loaded.clear()
        assert loaded.current_level is None
        assert loaded.query_objects_in_bounds(EVERYWHERE) == []


class TestPersistence:
    def test_save_without_level(self, session: LevelSession, tmp_path: Path) -> None:
        with pytest.raises(SessionError):
            session.save_level(tmp_path / "level.json")

    def test_save_and_load_into_new_session(self, session: LevelSession, tmp_path: Path) -> None:
        result = session.generate_bsp(BSPGenerationParams(width=20, height=20, seed=5))
        path = session.save_level(tmp_path / "level.json")

        other = LevelSession()
        loaded = other.load_level(path)
        assert loaded.to_dict() == result.level.to_dict()
        assert other.indexed_count == len(loaded.objects)

    def test_load_rejects_duplicate_ids(self, session: LevelSession, tmp_path: Path) -> None:
        result = session.generate_wfc(WFCGenerationParams(width=2, height=1, tileset="office", seed=1))
        level = result.level
        level.objects[1].id = level.objects[0].id
        path = save_level(level, tmp_path / "dup.json")

        other = LevelSession()
        with pytest.raises(LevelIOError, match="used more than once"):
            other.load_level(path)
        assert other.current_level is None

    def test_load_non_utf8_file(self, session: LevelSession, tmp_path: Path) -> None:
        path = tmp_path / "binary.json"
        path.write_bytes(b'{"id": "\xff\xfe"}')
        with pytest.raises(LevelIOError):
            session.load_level(path)
        assert session.current_level is None
