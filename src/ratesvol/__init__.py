"""
RatesVol: SABR volatility for interest-rate options with analytic adjoints

A modular library for:
- Sampling SABR parameter surfaces by (expiry, tenor)
- Shifted SABR for negative rates
- Hagan implied volatility with exact derivatives for calibration and risk

Scope: evaluation only; surfaces are supplied already calibrated.
"""

__version__ = "0.1.0"

# Configuration
from .settings import SabrFormulaSettings, DEFAULT_SETTINGS

# Options
from .options import PutCall, EuropeanVanillaOption

# Surfaces
from .surfaces import (
    Surface,
    ConstantSurface,
    InterpolatedNodalSurface,
    ZERO_SHIFT,
    LinearInterpolator,
    NaturalCubicInterpolator,
    create_interpolator,
)

# Volatility (SABR)
from .vol import (
    VolatilityFunctionProvider,
    ValueDerivatives,
    MODEL_ADJOINT_LABELS,
    FULL_ADJOINT_LABELS,
    SabrFormulaData,
    SabrHaganVolatilityFunction,
    SabrHaganNormalVolatilityFunction,
    SabrInterestRateParameters,
    hagan_black_vol,
    hagan_normal_vol,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "SabrFormulaSettings",
    "DEFAULT_SETTINGS",
    # Options
    "PutCall",
    "EuropeanVanillaOption",
    # Surfaces
    "Surface",
    "ConstantSurface",
    "InterpolatedNodalSurface",
    "ZERO_SHIFT",
    "LinearInterpolator",
    "NaturalCubicInterpolator",
    "create_interpolator",
    # Volatility (SABR)
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
