"""Field constants (immutable, explicitly passed).

Every quantity the evolution depends on lives in a frozen `FieldConstants`
instance that is handed to each grid at construction. Nothing reads ambient
global state, so differently configured fields can coexist in one process.

------------------------------------------------------------------------------
COMMENT CONVENTION (model choices)
------------------------------------------------------------------------------
  # [CHOICE] <name>
  # [FORMULA] <math / equation / mapping>
  # [NOTES] <brief caveats, assumptions, invariants>
------------------------------------------------------------------------------
"""

from __future__ import annotations

import math
from dataclasses import dataclass

__all__ = [
    "FieldConstants",
    "DEFAULT_CONSTANTS",
    "DEFAULT_RESOLUTION",
    "DEFAULT_BOUNDS",
    "DEFAULT_DIFFUSION",
    "DEFAULT_DT",
    "PRESENT_AGE",
]


# Grid defaults used by the presets and the CLI.
DEFAULT_RESOLUTION: int = 64
DEFAULT_BOUNDS: tuple[float, float] = (-4.0, 4.0)
DEFAULT_DIFFUSION: float = 1.0
DEFAULT_DT: float = 0.001

# [CHOICE] present-day age (same time unit as vacuum_growth_rate)
# [NOTES] vacuum_magnitude(PRESENT_AGE) ~= 11.6 with the default constants.
PRESENT_AGE: float = 13.8


@dataclass(frozen=True)
class FieldConstants:
    """Read-only inputs of the field model."""

    # [CHOICE] magnitude ceiling
    # [FORMULA] 0 <= I <= i_max on every write
    i_max: float = 16.0

    # [CHOICE] integration threshold
    # [FORMULA] I >= i_crit  <=>  integrated
    i_crit: float = math.sqrt(0.5)

    # [CHOICE] uncertainty function
    # [FORMULA] eps(I) = max(u0 / (1 + I), eps_min)
    # [NOTES] with the defaults the floor is never active on [0, 16] (eps(16) ~= 0.029).
    u0: float = 0.5
    eps_min: float = 0.01

    # [CHOICE] vacuum growth law
    # [FORMULA] I_vac(t) = min(vacuum_amplitude * exp(vacuum_growth_rate * t), i_max)
    vacuum_amplitude: float = math.sqrt(0.5)
    vacuum_growth_rate: float = 0.2032

    # [CHOICE] derived-field couplings
    # [FORMULA] E = -electric_coupling * grad(I);  B = magnetic_coupling * (n x J), n = (1, 1, 1)
    # [NOTES] opaque configuration values; nothing in the core derives them.
    electric_coupling: float = 0.1
    magnetic_coupling: float = 0.05

    def __post_init__(self) -> None:
        for name in (
            "i_max",
            "i_crit",
            "u0",
            "eps_min",
            "vacuum_amplitude",
            "vacuum_growth_rate",
            "electric_coupling",
            "magnetic_coupling",
        ):
            v = float(getattr(self, name))
            if not math.isfinite(v):
                raise ValueError(f"Non-finite constant {name}={v!r}")
        if self.i_max <= 0.0:
            raise ValueError(f"i_max must be > 0, got {self.i_max!r}")
        if not (0.0 < self.i_crit <= self.i_max):
            raise ValueError(f"i_crit must be in (0, i_max], got {self.i_crit!r}")
        if self.u0 < 0.0:
            raise ValueError(f"u0 must be >= 0, got {self.u0!r}")
        if self.eps_min < 0.0:
            raise ValueError(f"eps_min must be >= 0, got {self.eps_min!r}")
        if self.vacuum_amplitude < 0.0:
            raise ValueError(f"vacuum_amplitude must be >= 0, got {self.vacuum_amplitude!r}")

    def vacuum_magnitude(self, age: float = 0.0) -> float:
        """Uniform vacuum magnitude after `age` units of simulated time."""
        if self.vacuum_amplitude == 0.0:
            return 0.0
        exponent = float(self.vacuum_growth_rate) * float(age)
        # Saturated: compare in log space so large ages cannot overflow exp().
        if exponent >= math.log(self.i_max / self.vacuum_amplitude):
            return float(self.i_max)
        return min(self.vacuum_amplitude * math.exp(exponent), float(self.i_max))

    def reaction_rate(self, magnitude: float) -> float:
        """decay(I) + self_interaction(I) for a raw magnitude (no clamping)."""
        i = float(magnitude)
        eps = max(self.u0 / (1.0 + i), self.eps_min)
        return -(eps * eps) * i + i * (1.0 - i / self.i_max)

    def steady_vacuum_magnitude(self, *, tol: float = 1e-13, max_iter: int = 200) -> float:
        """Non-zero fixed point of the local dynamics, by bisection.

        Solves ``1 - I / i_max - eps(I)^2 = 0`` on ``(0, i_max]``, i.e. the
        reaction rate divided by ``I``. A uniform grid at this magnitude has a zero
        Laplacian and a (numerically) zero reaction term, so it does not evolve.
        """

        def g(i: float) -> float:
            eps = max(self.u0 / (1.0 + i), self.eps_min)
            return 1.0 - i / self.i_max - eps * eps

        lo, hi = 0.0, float(self.i_max)
        g_lo, g_hi = g(lo), g(hi)
        if g_hi >= 0.0:
            # Reaction never turns negative below the ceiling: the clamp is the fixed point.
            return hi
        if g_lo <= 0.0:
            return 0.0
        for _ in range(int(max_iter)):
            mid = 0.5 * (lo + hi)
            g_mid = g(mid)
            if g_mid > 0.0:
                lo = mid
            else:
                hi = mid
            if hi - lo <= tol:
                break
        return 0.5 * (lo + hi)


DEFAULT_CONSTANTS = FieldConstants()
