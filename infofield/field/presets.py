"""Canned grid factories."""

from __future__ import annotations

from typing import Iterable, Optional

from ..core.config import BoundaryMode
from ..core.constants import (
    DEFAULT_BOUNDS,
    DEFAULT_CONSTANTS,
    DEFAULT_DIFFUSION,
    DEFAULT_DT,
    DEFAULT_RESOLUTION,
    PRESENT_AGE,
    FieldConstants,
)
from .grid import Grid, Position

__all__ = [
    "vacuum_grid",
    "grid_with_information",
    "high_resolution_grid",
    "electromagnetic_grid",
    "multi_center_grid",
    "cosmic_grid",
    "primordial_grid",
    "present_day_grid",
]


def cosmic_grid(
    age: float,
    *,
    resolution: int = DEFAULT_RESOLUTION,
    bounds: tuple[float, float] = DEFAULT_BOUNDS,
    diffusion: float = DEFAULT_DIFFUSION,
    dt: float = DEFAULT_DT,
    boundary: BoundaryMode | str = BoundaryMode.REFLECTIVE,
    constants: FieldConstants = DEFAULT_CONSTANTS,
    workers: int = 1,
) -> Grid:
    """Uniform grid at the vacuum magnitude reached after `age`."""
    return Grid.from_vacuum(
        resolution,
        diffusion,
        dt,
        age=age,
        bounds=bounds,
        boundary=boundary,
        constants=constants,
        workers=workers,
    )


def primordial_grid(**kwargs) -> Grid:
    """Age 0: the vacuum sits exactly at the integration threshold (default constants)."""
    return cosmic_grid(0.0, **kwargs)


def present_day_grid(**kwargs) -> Grid:
    return cosmic_grid(PRESENT_AGE, **kwargs)


def vacuum_grid(**kwargs) -> Grid:
    return cosmic_grid(0.0, **kwargs)


def grid_with_information(position: Position, amplitude: float, **kwargs) -> Grid:
    grid = vacuum_grid(**kwargs)
    grid.add_information(position, amplitude)
    return grid


def high_resolution_grid(age: float = 0.0, **kwargs) -> Grid:
    kwargs.setdefault("resolution", 96)
    kwargs.setdefault("bounds", (-6.0, 6.0))
    kwargs.setdefault("dt", 0.001)
    return cosmic_grid(age, **kwargs)


def electromagnetic_grid(**kwargs) -> Grid:
    """Finer spacing over a smaller domain for gradient sampling."""
    kwargs.setdefault("resolution", 48)
    kwargs.setdefault("bounds", (-3.0, 3.0))
    kwargs.setdefault("dt", 0.005)
    return cosmic_grid(0.0, **kwargs)


def multi_center_grid(
    positions: Iterable[Position],
    amount: float = 2.0,
    *,
    sigma: Optional[float] = 1.5,
    base: Optional[Grid] = None,
    **kwargs,
) -> Grid:
    """Electromagnetic grid (or `base`) with a bump of height `amount` at each position.

    Bumps are Gaussian with `sigma` in cell units; `sigma=None` adds `amount` to
    the nearest cell only. Extra keyword arguments configure the electromagnetic
    grid and cannot be combined with `base`.
    """
    if base is not None and kwargs:
        raise ValueError(f"grid settings {sorted(kwargs)} cannot be applied to an existing base grid")
    grid = base if base is not None else electromagnetic_grid(**kwargs)
    for position in positions:
        if sigma is None:
            grid.add_information(position, amount)
        else:
            grid.add_gaussian(position, amount, sigma=sigma)
    return grid
