"""
Volatility module - SABR formulas and parameter models.

Provides:
- Volatility function capability and adjoint ordering
- Hagan SABR implied volatility (Black and normal) with analytic adjoints
- SABR interest-rate parameters over (expiry, tenor) surfaces
"""

from .function import (
    VolatilityFunctionProvider,
    ValueDerivatives,
    MODEL_ADJOINT_LABELS,
    FULL_ADJOINT_LABELS,
)
from .sabr import (
    SabrFormulaData,
    SabrHaganVolatilityFunction,
    SabrHaganNormalVolatilityFunction,
    hagan_black_vol,
    hagan_normal_vol,
)
from .sabr_parameters import SabrInterestRateParameters

__all__ = [
    "VolatilityFunctionProvider",
    "ValueDerivatives",
    "MODEL_ADJOINT_LABELS",
    "FULL_ADJOINT_LABELS",
    "SabrFormulaData",
    "SabrHaganVolatilityFunction",
    "SabrHaganNormalVolatilityFunction",
    "SabrInterestRateParameters",
    "hagan_black_vol",
    "hagan_normal_vol",
]
