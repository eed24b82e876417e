"""
Surfaces module - (expiry, tenor) parameter surfaces.

Provides:
- Surface capability consumed by SABR parameter models
- Constant and grid-interpolated nodal surfaces
- 1D interpolators used along each grid axis
"""

from .interpolation import (
    Interpolator,
    LinearInterpolator,
    NaturalCubicInterpolator,
    create_interpolator,
)
from .surface import Surface, ConstantSurface, InterpolatedNodalSurface, ZERO_SHIFT

__all__ = [
    "Surface",
    "ConstantSurface",
    "InterpolatedNodalSurface",
    "ZERO_SHIFT",
    "Interpolator",
    "LinearInterpolator",
    "NaturalCubicInterpolator",
    "create_interpolator",
]
