"""Bounded scalar magnitude and its local (non-diffusive) terms.

`ScalarValue` is the per-cell value type. The `*_field` functions apply the
same arithmetic element-wise to torch tensors; both paths evaluate the terms in
the same order so a cell computed either way gives the same float64 result.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import torch

from .constants import DEFAULT_CONSTANTS, FieldConstants

__all__ = [
    "ScalarValue",
    "clamp_magnitude",
    "clamp_field",
    "uncertainty_field",
    "self_interaction_field",
    "decay_field",
    "reaction_rate_field",
]


def clamp_magnitude(raw: float, constants: FieldConstants = DEFAULT_CONSTANTS) -> float:
    """Clamp a raw float into [0, i_max]. NaN maps to 0."""
    v = float(raw)
    if math.isnan(v):
        return 0.0
    return min(max(v, 0.0), float(constants.i_max))


@dataclass(frozen=True)
class ScalarValue:
    """One information magnitude, always inside [0, i_max]."""

    magnitude: float
    constants: FieldConstants = field(default=DEFAULT_CONSTANTS, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "magnitude", clamp_magnitude(self.magnitude, self.constants))

    def __float__(self) -> float:
        return self.magnitude

    def uncertainty(self) -> float:
        return max(self.constants.u0 / (1.0 + self.magnitude), self.constants.eps_min)

    def self_interaction(self) -> float:
        i = self.magnitude
        return i * (1.0 - i / self.constants.i_max)

    def decay(self) -> float:
        eps = self.uncertainty()
        return -(eps * eps) * self.magnitude

    def reaction_rate(self) -> float:
        """Intrinsic rate of change, excluding diffusion."""
        return self.decay() + self.self_interaction()

    def is_above_threshold(self) -> bool:
        return self.magnitude >= self.constants.i_crit

    def normalized_level(self) -> float:
        return self.magnitude / self.constants.i_max

    def integration_level(self) -> float:
        """Position between threshold (0.0) and ceiling (1.0); 0.0 below threshold."""
        if not self.is_above_threshold():
            return 0.0
        c = self.constants
        if c.i_max == c.i_crit:
            return 1.0
        return (self.magnitude - c.i_crit) / (c.i_max - c.i_crit)

    def with_delta(self, amount: float) -> "ScalarValue":
        return ScalarValue(self.magnitude + float(amount), self.constants)


def clamp_field(values: torch.Tensor, constants: FieldConstants = DEFAULT_CONSTANTS) -> torch.Tensor:
    i_max = float(constants.i_max)
    values = torch.nan_to_num(values, nan=0.0, posinf=i_max, neginf=0.0)
    return torch.clamp(values, min=0.0, max=i_max)


def uncertainty_field(values: torch.Tensor, constants: FieldConstants = DEFAULT_CONSTANTS) -> torch.Tensor:
    # full_like keeps this a true division (scalar / tensor lowers to reciprocal * scalar).
    u0 = torch.full_like(values, float(constants.u0))
    return torch.clamp(u0 / (1.0 + values), min=float(constants.eps_min))


def self_interaction_field(values: torch.Tensor, constants: FieldConstants = DEFAULT_CONSTANTS) -> torch.Tensor:
    return values * (1.0 - values / float(constants.i_max))


def decay_field(values: torch.Tensor, constants: FieldConstants = DEFAULT_CONSTANTS) -> torch.Tensor:
    eps = uncertainty_field(values, constants)
    return -(eps * eps) * values


def reaction_rate_field(values: torch.Tensor, constants: FieldConstants = DEFAULT_CONSTANTS) -> torch.Tensor:
    return decay_field(values, constants) + self_interaction_field(values, constants)
