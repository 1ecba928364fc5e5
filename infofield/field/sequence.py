"""Pull-based evolution driver.

`EvolutionSequence` is an explicit state machine over one mutable grid:

    {grid, step_count, cumulative information created, max_steps}

Each `advance()` runs one engine step and returns one `Snapshot`, or `None`
once `max_steps` snapshots have been produced. A sequence is a single forward
traversal; to replay a run, build a new sequence on `grid.copy()` taken before
driving the original.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

import torch

from .engine import EvolutionEngine
from .grid import Grid

__all__ = ["EvolutionSequence", "Snapshot"]


@dataclass(frozen=True)
class Snapshot:
    """Summary of one completed step."""

    step: int                       # 0-based index of the step within its sequence
    time: float                     # grid clock after the step
    information_created: float      # cumulative since the sequence began
    step_information_created: float
    above_threshold_count: int
    total_information: float
    max_integration_level: float
    grid: Optional[torch.Tensor] = field(default=None, compare=False, repr=False)

    @property
    def is_integrated(self) -> bool:
        return self.above_threshold_count > 0

    def __str__(self) -> str:
        return (
            f"Step {self.step}: {self.total_information:.1f} bits "
            f"({self.information_created:.1f} created), "
            f"{self.above_threshold_count} integrated (max {self.max_integration_level:.3f})"
        )


class EvolutionSequence:
    def __init__(
        self,
        grid: Grid,
        *,
        max_steps: Optional[int] = None,
        engine: Optional[EvolutionEngine] = None,
        capture_grid: bool = False,
    ):
        if max_steps is not None and int(max_steps) < 0:
            raise ValueError(f"max_steps must be >= 0, got {max_steps!r}")
        self._grid = grid
        self.max_steps = None if max_steps is None else int(max_steps)
        self.engine = engine or EvolutionEngine()
        self.capture_grid = bool(capture_grid)

        self._step_count = 0
        self._information_created = 0.0

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def steps_taken(self) -> int:
        return self._step_count

    @property
    def information_created(self) -> float:
        return self._information_created

    @property
    def exhausted(self) -> bool:
        return self.max_steps is not None and self._step_count >= self.max_steps

    def advance(self) -> Optional[Snapshot]:
        if self.exhausted:
            return None

        stats = self.engine.step(self._grid)
        self._information_created += stats.information_created
        snap = Snapshot(
            step=self._step_count,
            time=self._grid.time,
            information_created=self._information_created,
            step_information_created=stats.information_created,
            above_threshold_count=stats.above_threshold_count,
            total_information=stats.total_information,
            max_integration_level=stats.max_integration_level,
            grid=self._grid.values.clone() if self.capture_grid else None,
        )
        self._step_count += 1
        return snap

    def __iter__(self) -> Iterator[Snapshot]:
        return self

    def __next__(self) -> Snapshot:
        snap = self.advance()
        if snap is None:
            raise StopIteration
        return snap
