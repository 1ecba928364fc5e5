"""Field APIs.

This package contains:
- **Grid** storage, addressing and perturbations (`Grid`)
- **Evolution** of the reaction-diffusion equation (`EvolutionEngine`, `EvolutionSequence`)
- **Derived fields** sampled from the scalar gradient (`DerivedFieldSampler`)
- **Presets** for common initial conditions
"""

from __future__ import annotations

from .engine import EvolutionEngine, StepStats
from .grid import Grid
from .presets import (
    cosmic_grid,
    electromagnetic_grid,
    grid_with_information,
    high_resolution_grid,
    multi_center_grid,
    present_day_grid,
    primordial_grid,
    vacuum_grid,
)
from .sampler import DerivedFields, DerivedFieldSampler
from .sequence import EvolutionSequence, Snapshot

__all__ = [
    "Grid",
    "EvolutionEngine",
    "StepStats",
    "EvolutionSequence",
    "Snapshot",
    "DerivedFieldSampler",
    "DerivedFields",
    "cosmic_grid",
    "electromagnetic_grid",
    "grid_with_information",
    "high_resolution_grid",
    "multi_center_grid",
    "present_day_grid",
    "primordial_grid",
    "vacuum_grid",
]
