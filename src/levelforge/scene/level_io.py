"""
Level persistence as JSON.

The document is the plain Level contract (see level_types.Level.to_dict),
pretty-printed so hand edits and diffs stay readable.
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Union

from levelforge.errors import LevelIOError

from .level_types import Level

logger = logging.getLogger(__name__)


def save_level(level: Level, file_path: Union[str, Path]) -> Path:
    """
    Write a level to disk.

    Args:
        level: Level to serialize
        file_path: Destination; parent directories are created

    Returns:
        The path written

    Raises:
        LevelIOError: If the file cannot be written
    """
    path = Path(file_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(level.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise LevelIOError(f"Failed to write file: {e}") from e

    logger.info("Saved level %s (%d objects) to %s", level.id, len(level.objects), path)
    return path


def load_level(file_path: Union[str, Path]) -> Level:
    """
    Read a level written by save_level.

    Raises:
        LevelIOError: If the file is missing, unreadable or not a level
    """
    path = Path(file_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise LevelIOError(f"Failed to read file: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise LevelIOError(f"Failed to parse level data: {e}") from e

    try:
        level = Level.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise LevelIOError(f"Failed to parse level data: {e}") from e

    logger.info("Loaded level %s (%d objects) from %s", level.id, len(level.objects), path)
    return level
