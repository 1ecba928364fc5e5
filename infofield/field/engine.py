"""Explicit (forward Euler) evolution of the information field.

Governing equation, per cell c with magnitude I:

    dI/dt = D * laplacian(I) - eps(I)^2 * I + I * (1 - I / i_max)
    I_next = clamp(I + dt * dI/dt, 0, i_max)

Design:
- Synchronous sweep. The next state is computed from a read-only copy of the
  previous one (halo-padded once per step) into a fresh output buffer, which is
  then swapped into the grid. No cell ever reads a partially updated neighbour.
- Data-parallel fan-out. The output buffer is split into contiguous slabs along
  axis 0; each worker owns one slab and writes only to it. Every cell's value is
  computed by the same element-wise expression regardless of slab layout, so
  results are bit-identical for any number of workers.
- Stability is the caller's responsibility: dt <= dx^2 / (2 D). Violations are
  reported once per grid and otherwise absorbed by the clamp.
"""

from __future__ import annotations

import weakref
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import torch

from ..console import console
from ..core.value import ScalarValue, clamp_field, decay_field, self_interaction_field
from .grid import Grid
from .stencil import laplacian_slab, pad_halo

__all__ = ["EvolutionEngine", "StepStats", "partition_rows"]


@dataclass(frozen=True)
class StepStats:
    """Statistics from a single evolution step."""

    information_created: float
    above_threshold_count: int
    total_information: float
    max_integration_level: float


def partition_rows(n: int, parts: int) -> list[tuple[int, int]]:
    """Split [0, n) into at most `parts` contiguous, non-empty, ordered ranges."""
    parts = max(1, min(int(parts), int(n)))
    bounds = [(n * w) // parts for w in range(parts + 1)]
    return [(bounds[w], bounds[w + 1]) for w in range(parts) if bounds[w + 1] > bounds[w]]


class EvolutionEngine:
    """Advances grids by one time step.

    `workers` overrides the grid's configured fan-out width. The engine holds no
    per-grid state apart from the set of grids it has already warned about.

    Multi-slab sweeps run on a thread pool created on first use and kept for the
    engine's lifetime (it grows if a wider grid comes along). Call `close()`, or
    use the engine as a context manager, to release the threads early.
    """

    def __init__(self, workers: Optional[int] = None):
        if workers is not None and int(workers) < 1:
            raise ValueError(f"workers must be >= 1, got {workers!r}")
        self.workers = None if workers is None else int(workers)
        self._warned: "weakref.WeakSet[Grid]" = weakref.WeakSet()
        self._pool: Optional[ThreadPoolExecutor] = None
        self._pool_width = 0

    def _executor(self, width: int) -> ThreadPoolExecutor:
        if self._pool is None or width > self._pool_width:
            self.close()
            self._pool = ThreadPoolExecutor(max_workers=width, thread_name_prefix="infofield-sweep")
            self._pool_width = width
        return self._pool

    def close(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
            self._pool_width = 0

    def __enter__(self) -> "EvolutionEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _width(self, grid: Grid) -> int:
        return self.workers if self.workers is not None else grid.config.workers

    def _check_stability(self, grid: Grid) -> None:
        cfg = grid.config
        if cfg.is_stable or grid in self._warned:
            return
        self._warned.add(grid)
        console.warn(
            "Time step exceeds the explicit diffusion limit",
            detail=f"dt={cfg.dt:g} > dx^2/(2D)={cfg.stability_limit:g}; values will saturate at the clamp",
        )

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    @staticmethod
    def _rate_slab(grid: Grid, padded: torch.Tensor, prev: torch.Tensor, lo: int, hi: int) -> torch.Tensor:
        c = prev[lo:hi]
        lap = laplacian_slab(padded, grid.dx, lo, hi)
        return grid.diffusion * lap + decay_field(c, grid.constants) + self_interaction_field(c, grid.constants)

    @classmethod
    def _sweep_slab(
        cls,
        grid: Grid,
        padded: torch.Tensor,
        prev: torch.Tensor,
        out: torch.Tensor,
        lo: int,
        hi: int,
    ) -> None:
        rate = cls._rate_slab(grid, padded, prev, lo, hi)
        nxt = prev[lo:hi] + grid.dt * rate
        # Same clamp as every other write path (NaN -> 0).
        out[lo:hi] = clamp_field(nxt, grid.constants)

    def rate(self, grid: Grid) -> torch.Tensor:
        """dI/dt for every cell of the current state (no mutation)."""
        prev = grid.values
        padded = pad_halo(prev, grid.boundary)
        return self._rate_slab(grid, padded, prev, 0, grid.resolution)

    def step(self, grid: Grid) -> StepStats:
        """Advance `grid` by one dt and return the step's statistics."""
        self._check_stability(grid)

        prev = grid.values
        padded = pad_halo(prev, grid.boundary)
        out = torch.empty_like(prev)

        slabs = partition_rows(grid.resolution, self._width(grid))
        if len(slabs) == 1:
            self._sweep_slab(grid, padded, prev, out, 0, grid.resolution)
        else:
            pool = self._executor(len(slabs))
            futures = [pool.submit(self._sweep_slab, grid, padded, prev, out, lo, hi) for lo, hi in slabs]
            for fut in futures:
                fut.result()

        created = float(torch.clamp(out - prev, min=0.0).sum())
        c = grid.constants
        grid._commit(out)

        return StepStats(
            information_created=created,
            above_threshold_count=int((out >= c.i_crit).sum()),
            total_information=float(out.sum()),
            max_integration_level=ScalarValue(float(out.max()), c).integration_level(),
        )
