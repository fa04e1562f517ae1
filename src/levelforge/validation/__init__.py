"""
Validation gates for generation requests, tilesets and levels.
"""

from .core import (
    Severity,
    ValidationStage,
    ValidationIssue,
    ValidationResult,
)
from .checks import (
    validate_bsp_params,
    validate_wfc_params,
    validate_tileset,
    validate_level,
    log_result,
)

__all__ = [
    'Severity',
    'ValidationStage',
    'ValidationIssue',
    'ValidationResult',
    'validate_bsp_params',
    'validate_wfc_params',
    'validate_tileset',
    'validate_level',
    'log_result',
]
