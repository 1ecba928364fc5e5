#!/usr/bin/env python3
"""Information Field Simulation Entrypoint

Evolves the information density field from a uniform vacuum, optionally with
point injections, and reports per-step statistics plus the derived fields at
a probe point.

Usage:
    python run.py                                   # 64^3 vacuum, 100 steps
    python run.py --grid 32 --steps 200             # Custom size / length
    python run.py --inject 0,0,0:2.0 --inject 1,0,0:2.0
    python run.py --boundary periodic --workers 4   # Parallel sweep
    python run.py --age 13.8 --probe 0.5,0,0        # Present-day vacuum
"""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

import torch

from infofield.console import console
from infofield.core.config import BoundaryMode, GridConfig
from infofield.core.constants import DEFAULT_BOUNDS, DEFAULT_DIFFUSION, DEFAULT_DT, DEFAULT_RESOLUTION
from infofield.simulator import Injection, SimulationConfig, run_simulation


def _parse_point(text: str) -> tuple[float, float, float]:
    parts = [p for p in text.split(",") if p.strip()]
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"expected x,y,z, got {text!r}")
    try:
        x, y, z = (float(p) for p in parts)
    except ValueError as err:
        raise argparse.ArgumentTypeError(str(err)) from None
    return x, y, z


def _parse_injection(text: str) -> Injection:
    point, sep, amount = text.rpartition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected x,y,z:amount, got {text!r}")
    try:
        value = float(amount)
    except ValueError as err:
        raise argparse.ArgumentTypeError(str(err)) from None
    return Injection(position=_parse_point(point), amount=value)


def _parse_bounds(text: str) -> tuple[float, float]:
    parts = text.split(",")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected lo,hi, got {text!r}")
    try:
        lo, hi = float(parts[0]), float(parts[1])
    except ValueError as err:
        raise argparse.ArgumentTypeError(str(err)) from None
    return lo, hi


def resolve_device(requested: Optional[str]) -> str:
    """Pick mps, then cuda, then cpu; a requested but unavailable backend falls back to cpu."""
    available = {
        "mps": torch.backends.mps.is_available(),
        "cuda": torch.cuda.is_available(),
        "cpu": True,
    }
    if requested is None:
        for device in ("mps", "cuda", "cpu"):
            if available[device]:
                return device
    device = requested.lower()
    if device not in available:
        raise ValueError(f"unknown device {requested!r} (expected mps, cuda or cpu)")
    if not available[device]:
        console.warn(f"{device.upper()} not available, falling back to cpu")
        return "cpu"
    return device


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Information Field Simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("--steps", type=int, default=100, help="Number of evolution steps")
    parser.add_argument("--grid", type=int, default=DEFAULT_RESOLUTION, help="Grid resolution (cubic)")
    parser.add_argument("--dt", type=float, default=DEFAULT_DT, help="Time step")
    parser.add_argument("--diffusion", type=float, default=DEFAULT_DIFFUSION, help="Diffusion coefficient D")
    parser.add_argument("--bounds", type=_parse_bounds, default=DEFAULT_BOUNDS, help="Physical extent lo,hi (default: -4,4)")
    parser.add_argument(
        "--boundary",
        choices=[m.value for m in BoundaryMode],
        default=BoundaryMode.REFLECTIVE.value,
        help="Boundary condition",
    )
    parser.add_argument("--workers", type=int, default=1, help="Parallel sweep width")
    parser.add_argument("--device", choices=["mps", "cuda", "cpu"], default=None, help="Device (default: best available)")

    # Initial condition
    parser.add_argument("--age", type=float, default=0.0, help="Vacuum age (vacuum law I_crit * exp(rate * age))")
    parser.add_argument("--vacuum", type=float, default=None, help="Explicit vacuum magnitude (overrides --age)")
    parser.add_argument(
        "--inject",
        type=_parse_injection,
        action="append",
        default=[],
        metavar="X,Y,Z:AMOUNT",
        help="Add information at a point (repeatable)",
    )

    # Reporting
    parser.add_argument("--probe", type=_parse_point, default=(0.0, 0.0, 0.0), metavar="X,Y,Z", help="Derived-field probe point")
    parser.add_argument("--every", type=int, default=10, help="Report every N steps")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    device = resolve_device(args.device)
    # MPS has no float64 support.
    dtype = torch.float32 if device == "mps" else torch.float64

    try:
        grid_config = GridConfig(
            resolution=args.grid,
            diffusion=args.diffusion,
            dt=args.dt,
            bounds=args.bounds,
            boundary=args.boundary,
            workers=args.workers,
            device=device,
            dtype=dtype,
        )
        config = SimulationConfig(
            grid=grid_config,
            vacuum_magnitude=args.vacuum,
            age=args.age,
            injections=list(args.inject),
            num_steps=args.steps,
            report_every=args.every,
            probe=args.probe,
        )
        result = run_simulation(config)
    except ValueError as err:
        console.error("Invalid configuration", detail=str(err))
        return 2

    console.info(
        "Final state",
        detail=(
            f"total={result['total_information']:.4f}  created={result['information_created']:.4f}  "
            f"integrated={result['above_threshold_count']}"
        ),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
