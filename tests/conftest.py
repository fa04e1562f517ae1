from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from levelforge.generators.bsp.bsp_generator import BSPGenerationParams
from levelforge.generators.wfc.wfc_generator import WFCGenerationParams
from levelforge.pipeline.level_session import LevelSession
from levelforge.presets import CONFIG_DIR_ENV


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Keep presets written by tests out of the real user config directory."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv(CONFIG_DIR_ENV, str(config_dir))
    yield config_dir


@pytest.fixture
def scenario_a_params() -> BSPGenerationParams:
    return BSPGenerationParams(
        width=40,
        height=30,
        depth=1,
        min_room_size=4,
        max_room_size=12,
        corridor_width=1,
        theme="dungeon",
        seed=42,
    )


@pytest.fixture
def scenario_b_params() -> WFCGenerationParams:
    return WFCGenerationParams(
        width=8,
        height=8,
        tileset="dungeon",
        seed=7,
        max_iterations=10000,
        backtrack_limit=100,
    )


@pytest.fixture
def session() -> LevelSession:
    return LevelSession()
