from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import torch

from .constants import (
    DEFAULT_BOUNDS,
    DEFAULT_CONSTANTS,
    DEFAULT_DIFFUSION,
    DEFAULT_DT,
    DEFAULT_RESOLUTION,
    FieldConstants,
)

__all__ = ["BoundaryMode", "GridConfig"]


class BoundaryMode(str, Enum):
    """How neighbour lookups resolve indices outside [0, N)."""

    PERIODIC = "periodic"      # wraps modulo N
    REFLECTIVE = "reflective"  # mirrors at the edge: -1 -> 0, N -> N-1

    @classmethod
    def parse(cls, value: "BoundaryMode | str") -> "BoundaryMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown boundary mode: {value!r} (expected one of: {choices})") from None


@dataclass(frozen=True)
class GridConfig:
    """Construction parameters of a grid. Immutable; rebuild the grid to change them."""

    # Grid and time
    resolution: int = DEFAULT_RESOLUTION
    diffusion: float = DEFAULT_DIFFUSION
    dt: float = DEFAULT_DT

    # [CHOICE] physical extent (same for all three axes)
    # [FORMULA] dx = (hi - lo) / resolution; cell centres at lo + (i + 0.5) * dx
    bounds: tuple[float, float] = DEFAULT_BOUNDS

    boundary: BoundaryMode = BoundaryMode.REFLECTIVE

    # Default fan-out width of the per-step sweep (1 = single slab, no pool).
    workers: int = 1

    # Device
    device: str = "cpu"
    dtype: torch.dtype = field(default_factory=lambda: torch.float64)

    constants: FieldConstants = field(default_factory=lambda: DEFAULT_CONSTANTS)

    def __post_init__(self) -> None:
        if isinstance(self.resolution, bool) or not isinstance(self.resolution, int):
            raise ValueError(f"resolution must be an int, got {self.resolution!r}")
        if self.resolution <= 0:
            raise ValueError(f"resolution must be > 0, got {self.resolution}")
        if not math.isfinite(float(self.dt)) or float(self.dt) <= 0.0:
            raise ValueError(f"dt must be finite and > 0, got {self.dt!r}")
        if not math.isfinite(float(self.diffusion)) or float(self.diffusion) < 0.0:
            raise ValueError(f"diffusion must be finite and >= 0, got {self.diffusion!r}")
        lo, hi = (float(b) for b in self.bounds)
        if not (math.isfinite(lo) and math.isfinite(hi)) or hi <= lo:
            raise ValueError(f"bounds must be finite with hi > lo, got {self.bounds!r}")
        dx = (hi - lo) / self.resolution
        if dx * dx == 0.0 or not math.isfinite(dx * dx):
            raise ValueError(f"bounds {self.bounds!r} give a cell spacing the stencil cannot use (dx={dx!r})")
        if int(self.workers) < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers!r}")
        if not self.dtype.is_floating_point:
            raise ValueError(f"dtype must be a floating point dtype, got {self.dtype}")

        object.__setattr__(self, "dt", float(self.dt))
        object.__setattr__(self, "diffusion", float(self.diffusion))
        object.__setattr__(self, "bounds", (lo, hi))
        object.__setattr__(self, "workers", int(self.workers))
        object.__setattr__(self, "boundary", BoundaryMode.parse(self.boundary))

    @property
    def domain_size(self) -> float:
        return self.bounds[1] - self.bounds[0]

    @property
    def dx(self) -> float:
        return self.domain_size / self.resolution

    @property
    def stability_limit(self) -> float:
        """Largest dt allowed by the explicit-diffusion bound dx^2 / (2 D)."""
        if self.diffusion == 0.0:
            return math.inf
        return self.dx * self.dx / (2.0 * self.diffusion)

    @property
    def is_stable(self) -> bool:
        return self.dt <= self.stability_limit

    def replace(self, **changes: Any) -> "GridConfig":
        return dataclasses.replace(self, **changes)
