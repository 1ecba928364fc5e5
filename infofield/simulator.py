"""Headless simulation runner used by `run.py`."""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .console import console
from .core.config import GridConfig
from .field.engine import EvolutionEngine
from .field.grid import Grid, Position
from .field.sampler import DerivedFieldSampler
from .field.sequence import Snapshot


@dataclass(frozen=True)
class Injection:
    position: Position
    amount: float


@dataclass
class SimulationConfig:
    """Configuration for a single run."""

    grid: GridConfig = field(default_factory=GridConfig)

    # Initial condition: explicit magnitude wins over the vacuum law at `age`.
    vacuum_magnitude: Optional[float] = None
    age: float = 0.0
    injections: List[Injection] = field(default_factory=list)

    num_steps: int = 100
    report_every: int = 10

    # Point at which derived fields are reported after the run.
    probe: Position = (0.0, 0.0, 0.0)


def run_simulation(config: SimulationConfig, *, quiet: bool = False) -> Dict[str, Any]:
    """Build the grid, apply injections, evolve, and summarise."""
    if config.num_steps < 0:
        raise ValueError(f"num_steps must be >= 0, got {config.num_steps}")
    if config.report_every < 1:
        raise ValueError(f"report_every must be >= 1, got {config.report_every}")

    grid = Grid.from_config(config.grid, config.vacuum_magnitude, age=config.age)
    for inj in config.injections:
        grid.add_information(inj.position, inj.amount)

    gc = config.grid
    if not quiet:
        console.header(
            "Information field",
            Grid=f"{gc.resolution}^3 over {gc.bounds}",
            Boundary=gc.boundary.value,
            Step=f"dt={gc.dt:g}  D={gc.diffusion:g}  dx={gc.dx:g}",
            Vacuum=f"{grid.vacuum_magnitude:.4f}",
            Injections=str(len(config.injections)),
            Workers=str(gc.workers),
        )

    engine = EvolutionEngine()
    sequence = grid.evolution(max_steps=config.num_steps, engine=engine)
    reported: List[Snapshot] = []
    last: Optional[Snapshot] = None
    progress = nullcontext() if quiet else console.spinner(f"Evolving {config.num_steps} steps...")
    with engine, progress:
        for snap in sequence:
            last = snap
            if snap.step % config.report_every == 0:
                reported.append(snap)
    if last is not None and (not reported or reported[-1] is not last):
        reported.append(last)

    fields = DerivedFieldSampler(grid).derived_fields_at(config.probe)

    if not quiet:
        console.table(
            "Evolution",
            ["step", "time", "total", "created", "integrated", "max level"],
            (
                (
                    s.step,
                    f"{s.time:.4f}",
                    f"{s.total_information:.2f}",
                    f"{s.information_created:.4f}",
                    s.above_threshold_count,
                    f"{s.max_integration_level:.4f}",
                )
                for s in reported
            ),
        )
        e, b = fields
        console.success(
            f"Completed {sequence.steps_taken} steps",
            detail=(
                f"|E|={fields.electric_magnitude:.6g}  |B|={fields.magnetic_magnitude:.6g} at {config.probe}\n"
                f"E={tuple(round(v, 6) for v in e)}  B={tuple(round(v, 6) for v in b)}"
            ),
        )

    return {
        "steps": sequence.steps_taken,
        "time": grid.time,
        "information_created": sequence.information_created,
        "above_threshold_count": grid.above_threshold_count(),
        "total_information": grid.total_information(),
        "snapshots": reported,
        "electric": fields.electric,
        "magnetic": fields.magnetic,
        "grid": grid,
    }
