"""Value type, constants and configuration shared by the field modules."""

from __future__ import annotations

from .config import BoundaryMode, GridConfig
from .constants import (
    DEFAULT_BOUNDS,
    DEFAULT_CONSTANTS,
    DEFAULT_DIFFUSION,
    DEFAULT_DT,
    DEFAULT_RESOLUTION,
    PRESENT_AGE,
    FieldConstants,
)
from .value import ScalarValue

__all__ = [
    "BoundaryMode",
    "GridConfig",
    "FieldConstants",
    "ScalarValue",
    "DEFAULT_BOUNDS",
    "DEFAULT_CONSTANTS",
    "DEFAULT_DIFFUSION",
    "DEFAULT_DT",
    "DEFAULT_RESOLUTION",
    "PRESENT_AGE",
]
