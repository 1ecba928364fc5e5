"""Gradient-derived vector fields.

    grad(I)  central differences over boundary-resolved neighbours
    J        = D * grad(I)                                   (information flux)
    E        = -electric_coupling * grad(I)
    B        = magnetic_coupling * (J_z - J_y, J_x - J_z, J_y - J_x)

B is the antisymmetric combination of the flux's axis-pair differences, i.e.
``(1, 1, 1) x J``. The couplings are opaque entries of `FieldConstants`.

Point queries snap off-grid positions to the enclosing cell, the same policy
`Grid.add_information` uses. Nothing here mutates the grid.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

import torch

from .grid import Grid, Position
from .stencil import gradient

__all__ = ["DerivedFields", "DerivedFieldSampler", "Vector3"]

Vector3 = tuple[float, float, float]


def _norm(v: Vector3) -> float:
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


@dataclass(frozen=True)
class DerivedFields:
    electric: Vector3
    magnetic: Vector3

    def __iter__(self) -> Iterator[Vector3]:
        # Allows `E, B = sampler.derived_fields_at(p)`.
        yield self.electric
        yield self.magnetic

    @property
    def electric_magnitude(self) -> float:
        return _norm(self.electric)

    @property
    def magnetic_magnitude(self) -> float:
        return _norm(self.magnetic)


def _cross_diagonal(j: Vector3, beta: float) -> Vector3:
    jx, jy, jz = j
    return beta * (jz - jy), beta * (jx - jz), beta * (jy - jx)


class DerivedFieldSampler:
    def __init__(self, grid: Grid):
        self.grid = grid

    def gradient_at(self, position: Position) -> Vector3:
        g = self.grid
        i, j, k = g.world_to_grid(position)
        two_dx = 2.0 * g.dx
        out = []
        for axis in range(3):
            plus = g.neighbor(i, j, k, axis, +1).magnitude
            minus = g.neighbor(i, j, k, axis, -1).magnitude
            out.append((plus - minus) / two_dx)
        return out[0], out[1], out[2]

    def flux_at(self, position: Position) -> Vector3:
        d = self.grid.diffusion
        gx, gy, gz = self.gradient_at(position)
        return d * gx, d * gy, d * gz

    def electric_at(self, position: Position) -> Vector3:
        alpha = self.grid.constants.electric_coupling
        gx, gy, gz = self.gradient_at(position)
        return -alpha * gx, -alpha * gy, -alpha * gz

    def magnetic_at(self, position: Position) -> Vector3:
        return _cross_diagonal(self.flux_at(position), self.grid.constants.magnetic_coupling)

    def derived_fields_at(self, position: Position) -> DerivedFields:
        return DerivedFields(electric=self.electric_at(position), magnetic=self.magnetic_at(position))

    # ------------------------------------------------------------------
    # Whole-field versions, shape (N, N, N, 3)
    # ------------------------------------------------------------------

    def gradient_field(self) -> torch.Tensor:
        g = self.grid
        return gradient(g.values, g.dx, g.boundary)

    def electric_field(self) -> torch.Tensor:
        return -self.grid.constants.electric_coupling * self.gradient_field()

    def magnetic_field(self) -> torch.Tensor:
        g = self.grid
        flux = g.diffusion * self.gradient_field()
        jx, jy, jz = flux.unbind(dim=-1)
        beta = g.constants.magnetic_coupling
        return torch.stack([beta * (jz - jy), beta * (jx - jz), beta * (jy - jx)], dim=-1)
