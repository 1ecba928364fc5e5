"""Cubic information grid.

A `Grid` owns an (N, N, N) tensor of magnitudes plus the immutable `GridConfig`
it was built from. Storage is row-major: cell (i, j, k) sits at flat index
``(i * N + j) * N + k`` of the contiguous tensor.

Mutation happens in exactly two ways:
- whole-state replacement by the evolution engine after a sweep;
- point perturbations (`add_information`, `add_gaussian`, `set`).

Both keep every magnitude inside [0, i_max]. A grid has a single writer at a
time; perturbations must not be issued while a step is in flight.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

import torch

from ..core.config import BoundaryMode, GridConfig
from ..core.constants import DEFAULT_DIFFUSION, DEFAULT_DT, DEFAULT_RESOLUTION, FieldConstants
from ..core.value import ScalarValue, clamp_field, clamp_magnitude
from .stencil import resolve_index

if TYPE_CHECKING:
    from .engine import EvolutionEngine, StepStats
    from .sampler import DerivedFields
    from .sequence import EvolutionSequence

Position = tuple[float, float, float]
Cell = tuple[int, int, int]


class Grid:
    def __init__(
        self,
        config: GridConfig,
        values: Optional[torch.Tensor] = None,
        *,
        vacuum_magnitude: Optional[float] = None,
        time: float = 0.0,
    ):
        self.config = config
        n = config.resolution
        c = config.constants
        if vacuum_magnitude is None:
            vacuum_magnitude = c.vacuum_magnitude(0.0)
        self.vacuum_magnitude = clamp_magnitude(vacuum_magnitude, c)

        if values is None:
            values = torch.full((n, n, n), self.vacuum_magnitude, dtype=config.dtype, device=config.device)
        else:
            if tuple(values.shape) != (n, n, n):
                raise ValueError(f"values must have shape {(n, n, n)}, got {tuple(values.shape)}")
            values = clamp_field(values.to(device=config.device, dtype=config.dtype), c).contiguous()
        self._values = values

        self.time = float(time)
        self.steps = 0

    @classmethod
    def from_vacuum(
        cls,
        resolution: int = DEFAULT_RESOLUTION,
        diffusion: float = DEFAULT_DIFFUSION,
        dt: float = DEFAULT_DT,
        vacuum_magnitude: Optional[float] = None,
        *,
        age: float = 0.0,
        **config_kwargs,
    ) -> "Grid":
        """Uniform grid at `vacuum_magnitude` (default: the vacuum law at `age`).

        Extra keyword arguments (`bounds`, `boundary`, `workers`, `constants`,
        `device`, `dtype`) go to `GridConfig`. Invalid parameters raise ValueError.
        """
        config = GridConfig(resolution=resolution, diffusion=diffusion, dt=dt, **config_kwargs)
        return cls.from_config(config, vacuum_magnitude, age=age)

    @classmethod
    def from_config(cls, config: GridConfig, vacuum_magnitude: Optional[float] = None, *, age: float = 0.0) -> "Grid":
        if vacuum_magnitude is None:
            vacuum_magnitude = config.constants.vacuum_magnitude(age)
        return cls(config, vacuum_magnitude=vacuum_magnitude)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    @property
    def values(self) -> torch.Tensor:
        """Current magnitudes, shape (N, N, N). Treat as read-only."""
        return self._values

    @property
    def resolution(self) -> int:
        return self.config.resolution

    @property
    def dx(self) -> float:
        return self.config.dx

    @property
    def dt(self) -> float:
        return self.config.dt

    @property
    def diffusion(self) -> float:
        return self.config.diffusion

    @property
    def boundary(self) -> BoundaryMode:
        return self.config.boundary

    @property
    def constants(self) -> FieldConstants:
        return self.config.constants

    def cell_count(self) -> int:
        return self.resolution**3

    def __repr__(self) -> str:
        return (
            f"Grid(resolution={self.resolution}, boundary={self.boundary.value}, "
            f"dt={self.dt}, diffusion={self.diffusion}, steps={self.steps})"
        )

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def _check_cell(self, i: int, j: int, k: int) -> None:
        n = self.resolution
        if not (0 <= i < n and 0 <= j < n and 0 <= k < n):
            raise IndexError(f"cell {(i, j, k)} outside grid of resolution {n}")

    def flat_index(self, i: int, j: int, k: int) -> int:
        self._check_cell(i, j, k)
        n = self.resolution
        return (i * n + j) * n + k

    def unravel(self, index: int) -> Cell:
        n = self.resolution
        if not (0 <= index < n**3):
            raise IndexError(f"flat index {index} outside [0, {n**3})")
        i, rem = divmod(int(index), n * n)
        j, k = divmod(rem, n)
        return i, j, k

    def get(self, i: int, j: int, k: int) -> ScalarValue:
        self._check_cell(i, j, k)
        return ScalarValue(float(self._values[i, j, k]), self.constants)

    def set(self, i: int, j: int, k: int, magnitude: float) -> None:
        self._check_cell(i, j, k)
        self._values[i, j, k] = clamp_magnitude(magnitude, self.constants)

    def neighbor(self, i: int, j: int, k: int, axis: int, direction: int) -> ScalarValue:
        """Axis-aligned neighbour of a cell; out-of-range indices follow the boundary mode."""
        self._check_cell(i, j, k)
        if axis not in (0, 1, 2):
            raise ValueError(f"axis must be 0, 1 or 2, got {axis!r}")
        if direction not in (-1, 1):
            raise ValueError(f"direction must be -1 or +1, got {direction!r}")
        cell = [i, j, k]
        cell[axis] = resolve_index(cell[axis] + direction, self.resolution, self.boundary)
        return self.get(*cell)

    def world_to_grid(self, position: Position) -> Cell:
        """Nearest (enclosing) cell of a point; points outside the domain snap to the edge."""
        lo = self.config.bounds[0]
        dx = self.dx
        n = self.resolution
        cell = []
        for x in position:
            if math.isnan(x):
                raise ValueError(f"position {tuple(position)} has a NaN coordinate")
            u = (float(x) - lo) / dx
            u = min(max(u, 0.0), n - 1.0)
            cell.append(min(int(math.floor(u)), n - 1))
        return cell[0], cell[1], cell[2]

    def grid_to_world(self, i: int, j: int, k: int) -> Position:
        lo = self.config.bounds[0]
        dx = self.dx
        return lo + (i + 0.5) * dx, lo + (j + 0.5) * dx, lo + (k + 0.5) * dx

    # ------------------------------------------------------------------
    # Perturbations
    # ------------------------------------------------------------------

    def add_information(self, position: Position, amount: float) -> Cell:
        """Add `amount` to the cell nearest `position` (clamped). Returns the cell."""
        i, j, k = self.world_to_grid(position)
        current = float(self._values[i, j, k])
        self._values[i, j, k] = clamp_magnitude(current + float(amount), self.constants)
        return i, j, k

    def add_gaussian(self, position: Position, amplitude: float, *, sigma: float = 1.5, radius: int = 3) -> Cell:
        """Add a Gaussian bump (sigma in cell units) centred on the cell nearest `position`.

        Only cells inside the grid receive the bump; it never wraps.
        """
        if sigma <= 0.0:
            raise ValueError(f"sigma must be > 0, got {sigma!r}")
        if radius < 0:
            raise ValueError(f"radius must be >= 0, got {radius!r}")
        ci, cj, ck = self.world_to_grid(position)
        n = self.resolution
        lo = [max(c - radius, 0) for c in (ci, cj, ck)]
        hi = [min(c + radius, n - 1) + 1 for c in (ci, cj, ck)]

        kw = dict(dtype=self._values.dtype, device=self._values.device)
        di = torch.arange(lo[0], hi[0], **kw) - ci
        dj = torch.arange(lo[1], hi[1], **kw) - cj
        dk = torch.arange(lo[2], hi[2], **kw) - ck
        dist_sq = di[:, None, None] ** 2 + dj[None, :, None] ** 2 + dk[None, None, :] ** 2
        bump = float(amplitude) * torch.exp(-dist_sq / (2.0 * sigma * sigma))

        block = self._values[lo[0] : hi[0], lo[1] : hi[1], lo[2] : hi[2]]
        block.copy_(clamp_field(block + bump, self.constants))
        return ci, cj, ck

    # ------------------------------------------------------------------
    # Field queries
    # ------------------------------------------------------------------

    def information_at(self, position: Position) -> ScalarValue:
        return self.get(*self.world_to_grid(position))

    def total_information(self) -> float:
        return float(self._values.sum())

    def information_above_vacuum(self) -> float:
        """Total information minus the uniform vacuum baseline this grid started from."""
        return self.total_information() - self.vacuum_magnitude * self.cell_count()

    def above_threshold_count(self) -> int:
        return int((self._values >= self.constants.i_crit).sum())

    def is_integrated(self) -> bool:
        return self.above_threshold_count() > 0

    def max_integration_level(self) -> float:
        c = self.constants
        peak = float(self._values.max())
        return ScalarValue(peak, c).integration_level()

    def integrated_points(self) -> list[tuple[float, float, float, float]]:
        """(x, y, z, integration level) for every cell at or above threshold."""
        cells = torch.nonzero(self._values >= self.constants.i_crit, as_tuple=False).tolist()
        points = []
        for i, j, k in cells:
            x, y, z = self.grid_to_world(i, j, k)
            points.append((x, y, z, self.get(i, j, k).integration_level()))
        return points

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def copy(self) -> "Grid":
        other = Grid(self.config, self._values.clone(), vacuum_magnitude=self.vacuum_magnitude, time=self.time)
        other.steps = self.steps
        return other

    def _commit(self, values: torch.Tensor) -> None:
        """Swap in the next state produced by a sweep and advance the clock."""
        self._values = values
        self.time += self.dt
        self.steps += 1

    # ------------------------------------------------------------------
    # Conveniences
    # ------------------------------------------------------------------

    def evolve(self, engine: Optional["EvolutionEngine"] = None) -> "StepStats":
        from .engine import EvolutionEngine

        return (engine or EvolutionEngine()).step(self)

    def evolution(self, max_steps: Optional[int] = None, **kwargs) -> "EvolutionSequence":
        from .sequence import EvolutionSequence

        return EvolutionSequence(self, max_steps=max_steps, **kwargs)

    def derived_fields_at(self, position: Position) -> "DerivedFields":
        from .sampler import DerivedFieldSampler

        return DerivedFieldSampler(self).derived_fields_at(position)
