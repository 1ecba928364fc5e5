"""Information field.

A bounded scalar field on a cubic grid evolved by the reaction-diffusion equation

    dI/dt = D * laplacian(I) - eps(I)^2 * I + I * (1 - I / I_max)

with gradient-derived vector fields. The numerical core lives under
`infofield.field`; constants, the value type and configuration under
`infofield.core`.

Keep this module light: names resolve lazily so `import infofield` does not
import torch until a field type is actually used.
"""

from __future__ import annotations

__all__ = [
    "FieldConstants",
    "GridConfig",
    "BoundaryMode",
    "ScalarValue",
    "Grid",
    "EvolutionEngine",
    "EvolutionSequence",
    "Snapshot",
    "DerivedFieldSampler",
]

_CORE = {"FieldConstants", "GridConfig", "BoundaryMode", "ScalarValue"}
_FIELD = {"Grid", "EvolutionEngine", "EvolutionSequence", "Snapshot", "DerivedFieldSampler"}


def __getattr__(name: str):  # pragma: no cover
    if name in _CORE:
        from . import core as _core

        return getattr(_core, name)
    if name in _FIELD:
        from . import field as _field

        return getattr(_field, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
