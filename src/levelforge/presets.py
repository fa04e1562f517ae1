"""
Preset persistence for generation parameters.

Handles save/load of named parameter sets to ~/.config/levelforge/presets/
(or $LEVELFORGE_CONFIG_DIR/presets/ when that variable is set).
"""

from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from levelforge.generators.bsp.bsp_generator import BSPGenerationParams
from levelforge.generators.wfc.wfc_generator import WFCGenerationParams

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "LEVELFORGE_CONFIG_DIR"

GenerationParams = Union[BSPGenerationParams, WFCGenerationParams]

_PARAM_TYPES = {
    "bsp": BSPGenerationParams,
    "wfc": WFCGenerationParams,
}


@dataclass
class Preset:
    """A named, reusable generation request."""
    name: str
    algorithm: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_params(self) -> GenerationParams:
        """Build the request dataclass this preset describes."""
        return _PARAM_TYPES[self.algorithm].from_dict(self.params)


def get_presets_dir() -> Path:
    """
    Get the directory for storing presets.

    Returns:
        Path to the presets directory, created if it doesn't exist.
    """
    base = os.environ.get(CONFIG_DIR_ENV)
    config_dir = Path(base) if base else Path.home() / ".config" / "levelforge"
    presets_dir = config_dir / "presets"
    presets_dir.mkdir(parents=True, exist_ok=True)
    return presets_dir


def _algorithm_for(params: GenerationParams) -> str:
    for algorithm, param_type in _PARAM_TYPES.items():
        if isinstance(params, param_type):
            return algorithm
    raise TypeError(f"Unsupported parameter type: {type(params).__name__}")


def _preset_to_dict(preset: Preset) -> Dict[str, Any]:
    return {
        "name": preset.name,
        "algorithm": preset.algorithm,
        "params": preset.params,
    }


def _dict_to_preset(data: Dict[str, Any]) -> Optional[Preset]:
    algorithm = data.get("algorithm")
    if algorithm not in _PARAM_TYPES:
        return None
    return Preset(
        name=data.get("name", "Unnamed"),
        algorithm=algorithm,
        params=dict(data.get("params", {})),
    )


def _sanitize_filename(name: str) -> str:
    """
    Sanitize a preset name for use as a filename.

    Args:
        name: The preset name

    Returns:
        A safe filename (lowercase, spaces replaced with underscores, special chars removed)
    """
    safe = name.lower().replace(" ", "_")
    safe = "".join(c for c in safe if c.isalnum() or c in "_-")
    return safe or "preset"


def save_preset(name: str, params: GenerationParams) -> Path:
    """
    Save a parameter set under a name.

    Args:
        name: Display name of the preset
        params: BSP or WFC request parameters

    Returns:
        Path to the saved file

    Raises:
        OSError: If the file cannot be written
    """
    preset = Preset(name=name, algorithm=_algorithm_for(params), params=params.to_dict())
    file_path = get_presets_dir() / (_sanitize_filename(name) + ".json")

    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(_preset_to_dict(preset), f, indent=2, ensure_ascii=False)

    logger.info("Saved %s preset %r to %s", preset.algorithm, name, file_path)
    return file_path


def load_preset_from_path(file_path: Path) -> Optional[Preset]:
    """
    Load a preset from a specific file path.

    Returns:
        Preset if valid, None otherwise
    """
    if not file_path.exists():
        return None

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return _dict_to_preset(data)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError, AttributeError, TypeError):
        logger.warning("Ignoring unreadable preset file %s", file_path)
        return None


def load_preset(name: str) -> Optional[Preset]:
    """
    Load a preset by name.

    Returns:
        Preset if found and valid, None otherwise
    """
    return load_preset_from_path(get_presets_dir() / (_sanitize_filename(name) + ".json"))


def list_presets() -> List[str]:
    """
    List all saved preset names.

    Returns:
        Sorted list of preset names
    """
    names = []
    for file_path in get_presets_dir().glob("*.json"):
        preset = load_preset_from_path(file_path)
        if preset:
            names.append(preset.name)
    return sorted(names)


def delete_preset(name: str) -> bool:
    """
    Delete a saved preset by name.

    Returns:
        True if deleted, False if not found
    """
    file_path = get_presets_dir() / (_sanitize_filename(name) + ".json")
    if file_path.exists():
        file_path.unlink()
        return True
    return False
