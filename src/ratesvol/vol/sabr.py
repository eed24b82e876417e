"""
SABR closed-form implied volatility with analytic adjoints.

Implements:
- SabrFormulaData: SABR parameters sampled at one (expiry, tenor)
- Hagan et al. lognormal (Black) implied volatility approximation
- Normal (Bachelier) volatility derived from the Black approximation
- Exact first-order derivatives of both, by reverse-mode differentiation
  of the same algebraic expressions used for the values

References:
- Hagan, P.S. et al. (2002). "Managing Smile Risk." Wilmott Magazine.
- Giles, M. and Glasserman, P. (2006). "Smoking Adjoints." Risk.
"""

from dataclasses import dataclass, replace
from typing import Tuple
import logging
import math
import numpy as np

from ..options.vanilla import EuropeanVanillaOption, PutCall
from ..settings import SabrFormulaSettings, DEFAULT_SETTINGS
from .function import VolatilityFunctionProvider, ValueDerivatives, FULL_ADJOINT_LABELS

logger = logging.getLogger(__name__)

_STRIKE_INDEX = FULL_ADJOINT_LABELS.index("strike")
_FORWARD_INDEX = FULL_ADJOINT_LABELS.index("forward")


@dataclass(frozen=True)
class SabrFormulaData:
    """
    SABR parameters at a single (expiry, tenor) point.

    Attributes:
        alpha: Initial volatility level
        beta: CEV exponent (0 = normal, 1 = lognormal)
        rho: Correlation between forward and volatility
        nu: Volatility of volatility
    """
    alpha: float
    beta: float
    rho: float
    nu: float

    PARAMETER_NAMES = ("alpha", "beta", "rho", "nu")

    @classmethod
    def of(cls, alpha: float, beta: float, rho: float, nu: float) -> "SabrFormulaData":
        return cls(float(alpha), float(beta), float(rho), float(nu))

    @property
    def number_of_parameters(self) -> int:
        return len(self.PARAMETER_NAMES)

    def to_array(self) -> np.ndarray:
        """Parameters as [alpha, beta, rho, nu]."""
        return np.array([self.alpha, self.beta, self.rho, self.nu])

    def with_parameter(self, index: int, value: float) -> "SabrFormulaData":
        """Copy with the parameter at ``index`` replaced."""
        if not 0 <= index < len(self.PARAMETER_NAMES):
            raise ValueError(f"Parameter index must be in [0, 4), got {index}")
        return replace(self, **{self.PARAMETER_NAMES[index]: float(value)})

    def check_domain(self) -> None:
        """Raise ValueError if the parameters are outside the SABR domain."""
        values = self.to_array()
        if not np.all(np.isfinite(values)):
            raise ValueError(f"SABR parameters must be finite, got {self}")
        if self.alpha <= 0:
            raise ValueError(f"alpha must be positive, got {self.alpha}")
        if not 0 <= self.beta <= 1:
            raise ValueError(f"beta must be in [0, 1], got {self.beta}")
        if not -1 < self.rho < 1:
            raise ValueError(f"rho must be in (-1, 1), got {self.rho}")
        if self.nu < 0:
            raise ValueError(f"nu must be non-negative, got {self.nu}")


def _effective_strike(
    option: EuropeanVanillaOption,
    forward: float,
    data: SabrFormulaData,
    settings: SabrFormulaSettings
) -> Tuple[float, bool]:
    """
    Validate formula inputs and return the strike the formula evaluates at.

    Returns:
        (strike, floored) where floored is True if the strike was raised
        to the cutoff
    """
    if option is None:
        raise ValueError("option must not be None")
    if data is None:
        raise ValueError("SABR data must not be None")
    if forward is None or not math.isfinite(forward) or forward <= 0:
        raise ValueError(f"Forward must be positive and finite, got {forward}")
    data.check_domain()

    strike = option.strike
    if strike < 0:
        raise ValueError(f"Strike must be non-negative, got {strike}; use a shift for negative rates")

    cutoff = settings.strike_cutoff(forward)
    if strike < cutoff:
        logger.warning(
            "Strike %.6g below cutoff %.6g for forward %.6g, using cutoff", strike, cutoff, forward
        )
        return cutoff, True
    return strike, False


def _z_over_x(z: float, rho: float, small_z: float) -> Tuple[float, float, float]:
    """
    Ratio z / x(z) with its derivatives with respect to z and rho.

    x(z) = ln((sqrt(1 - 2 rho z + z^2) + z - rho) / (1 - rho))
    """
    if abs(z) < small_z:
        ratio = 1.0 - 0.5 * rho * z + (2.0 - 3.0 * rho**2) * z**2 / 12.0
        d_z = -0.5 * rho + (2.0 - 3.0 * rho**2) * z / 6.0
        d_rho = -0.5 * z - 0.5 * rho * z**2
        return ratio, d_z, d_rho

    s = math.sqrt(1.0 - 2.0 * rho * z + z**2)
    # log1p form: argument - 1 = ((s - 1) + z) / (1 - rho), s - 1 = (z^2 - 2 rho z) / (s + 1)
    x = math.log1p(((z**2 - 2.0 * rho * z) / (s + 1.0) + z) / (1.0 - rho))
    dx_dz = 1.0 / s
    dx_drho = 1.0 / (1.0 - rho) - (z / s + 1.0) / (s + z - rho)

    ratio = z / x
    d_z = (x - z * dx_dz) / x**2
    d_rho = -z * dx_drho / x**2
    return ratio, d_z, d_rho


def _hagan_black_adjoint(
    F: float,
    K: float,
    T: float,
    data: SabrFormulaData,
    small_z: float
) -> Tuple[float, np.ndarray]:
    """
    Hagan Black volatility and its derivatives.

    sigma_B = alpha / ((FK)^((1-beta)/2) D(L)) * z / x(z) * (1 + C T)

    with L = ln(F/K), z = nu / alpha (FK)^((1-beta)/2) L and
    D(L) = 1 + (1-beta)^2 L^2 / 24 + (1-beta)^4 L^4 / 1920.

    Returns:
        (volatility, derivatives in FULL_ADJOINT_LABELS order)
    """
    alpha, beta, rho, nu = data.alpha, data.beta, data.rho, data.nu
    b1 = 1.0 - beta

    # Forward sweep
    ln_fk = math.log(F / K)
    ln_p = math.log(F * K)
    sfk = math.exp(0.5 * b1 * ln_p)
    d = 1.0 + b1**2 * ln_fk**2 / 24.0 + b1**4 * ln_fk**4 / 1920.0
    z = nu / alpha * sfk * ln_fk
    zxz, dzxz_dz, dzxz_drho = _z_over_x(z, rho, small_z)
    c = (
        b1**2 * alpha**2 / (24.0 * sfk**2)
        + rho * beta * nu * alpha / (4.0 * sfk)
        + (2.0 - 3.0 * rho**2) * nu**2 / 24.0
    )
    e = 1.0 + c * T
    q = 1.0 / (sfk * d)
    vol = alpha * zxz * e * q

    # Backward sweep
    e_bar = alpha * zxz * q
    c_bar = e_bar * T
    t_bar = e_bar * c
    zxz_bar = alpha * e * q
    z_bar = zxz_bar * dzxz_dz
    d_bar = -vol / d
    sfk_bar = (
        -vol / sfk
        - c_bar * (b1**2 * alpha**2 / (12.0 * sfk**3) + rho * beta * nu * alpha / (4.0 * sfk**2))
        + z_bar * nu * ln_fk / alpha
    )
    ln_fk_bar = z_bar * nu * sfk / alpha + d_bar * (b1**2 * ln_fk / 12.0 + b1**4 * ln_fk**3 / 480.0)

    alpha_bar = (
        zxz * e * q
        + c_bar * (b1**2 * alpha / (12.0 * sfk**2) + rho * beta * nu / (4.0 * sfk))
        - z_bar * z / alpha
    )
    beta_bar = (
        c_bar * (-b1 * alpha**2 / (12.0 * sfk**2) + rho * nu * alpha / (4.0 * sfk))
        - d_bar * (b1 * ln_fk**2 / 12.0 + b1**3 * ln_fk**4 / 480.0)
        - sfk_bar * 0.5 * ln_p * sfk
    )
    rho_bar = zxz_bar * dzxz_drho + c_bar * (beta * nu * alpha / (4.0 * sfk) - rho * nu**2 / 4.0)
    nu_bar = (
        c_bar * (rho * beta * alpha / (4.0 * sfk) + (2.0 - 3.0 * rho**2) * nu / 12.0)
        + z_bar * sfk * ln_fk / alpha
    )
    f_bar = ln_fk_bar / F + sfk_bar * 0.5 * b1 * sfk / F
    k_bar = -ln_fk_bar / K + sfk_bar * 0.5 * b1 * sfk / K

    derivatives = np.array([alpha_bar, beta_bar, rho_bar, nu_bar, f_bar, k_bar, t_bar])
    return vol, derivatives


@dataclass(frozen=True)
class SabrHaganVolatilityFunction(VolatilityFunctionProvider):
    """
    Hagan et al. (2002) SABR lognormal implied volatility.

    Covers at-the-money through the series expansion of z / x(z), so the
    value and all derivatives are continuous across F = K.

    Attributes:
        settings: Numerical thresholds (small z, strike cutoff)
    """
    settings: SabrFormulaSettings = DEFAULT_SETTINGS

    def volatility_adjoint(
        self,
        option: EuropeanVanillaOption,
        forward: float,
        data: SabrFormulaData
    ) -> ValueDerivatives:
        strike, floored = _effective_strike(option, forward, data, self.settings)
        vol, derivatives = _hagan_black_adjoint(
            forward, strike, option.time_to_expiry, data, self.settings.small_z
        )
        if floored:
            derivatives[_STRIKE_INDEX] = 0.0
        return ValueDerivatives(vol, derivatives)


@dataclass(frozen=True)
class SabrHaganNormalVolatilityFunction(VolatilityFunctionProvider):
    """
    SABR normal (Bachelier) implied volatility.

    Converts the Hagan Black vol with
    sigma_N = sigma_B * sqrt(F K) / (1 + L^2 / 24 + L^4 / 1920), L = ln(F/K),
    which reduces to sigma_B * F at the money and stays positive for any
    strike.
    """
    settings: SabrFormulaSettings = DEFAULT_SETTINGS

    def volatility_adjoint(
        self,
        option: EuropeanVanillaOption,
        forward: float,
        data: SabrFormulaData
    ) -> ValueDerivatives:
        strike, floored = _effective_strike(option, forward, data, self.settings)
        vol_b, d_black = _hagan_black_adjoint(
            forward, strike, option.time_to_expiry, data, self.settings.small_z
        )

        ln_fk = math.log(forward / strike)
        fk_sqrt = math.sqrt(forward * strike)
        h = 1.0 + ln_fk**2 / 24.0 + ln_fk**4 / 1920.0
        dh_dl_over_h = (ln_fk / 12.0 + ln_fk**3 / 480.0) / h
        g = fk_sqrt / h
        dg_df = g / forward * (0.5 - dh_dl_over_h)
        dg_dk = g / strike * (0.5 + dh_dl_over_h)

        derivatives = g * d_black
        derivatives[_FORWARD_INDEX] += vol_b * dg_df
        derivatives[_STRIKE_INDEX] += vol_b * dg_dk
        if floored:
            derivatives[_STRIKE_INDEX] = 0.0
        return ValueDerivatives(vol_b * g, derivatives)


def hagan_black_vol(
    F: float,
    K: float,
    T: float,
    alpha: float,
    beta: float,
    rho: float,
    nu: float,
    shift: float = 0.0
) -> float:
    """
    Hagan et al. approximation for SABR Black implied volatility.

    Args:
        F: Forward rate
        K: Strike
        T: Time to expiry (years)
        alpha: SABR alpha (instantaneous vol)
        beta: CEV exponent
        rho: Correlation
        nu: Vol of vol
        shift: Shift for negative rates

    Returns:
        Black (shifted lognormal) implied volatility
    """
    option = EuropeanVanillaOption.of(K + shift, T, PutCall.CALL)
    data = SabrFormulaData.of(alpha, beta, rho, nu)
    return SabrHaganVolatilityFunction().volatility(option, F + shift, data)


def hagan_normal_vol(
    F: float,
    K: float,
    T: float,
    alpha: float,
    beta: float,
    rho: float,
    nu: float,
    shift: float = 0.0
) -> float:
    """
    SABR normal (Bachelier) implied volatility.

    Same arguments as hagan_black_vol.
    """
    option = EuropeanVanillaOption.of(K + shift, T, PutCall.CALL)
    data = SabrFormulaData.of(alpha, beta, rho, nu)
    return SabrHaganNormalVolatilityFunction().volatility(option, F + shift, data)


__all__ = [
    "SabrFormulaData",
    "SabrHaganVolatilityFunction",
    "SabrHaganNormalVolatilityFunction",
    "hagan_black_vol",
    "hagan_normal_vol",
]
