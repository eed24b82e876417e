"""
SABR interest-rate parameters.

Composes one surface per SABR parameter (alpha, beta, rho, nu), a shift
surface and a volatility function into a model that evaluates the implied
volatility of a swaption or cap/floor at (expiry, tenor, strike, forward).

Evaluation:
1. Sample alpha, beta, rho, nu and shift at (expiry, tenor)
2. Shift strike and forward by the same amount (negative rates)
3. Delegate to the volatility function and return its outputs as is

Derivatives with respect to forward and strike are those of the shifted
inputs; the shift is additive, so they equal the derivatives with respect
to the unshifted inputs. The shift surface itself is not differentiated.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence, Tuple
import logging
import numpy as np
import pandas as pd

from ..options.vanilla import EuropeanVanillaOption, PutCall
from ..surfaces.surface import Surface, ZERO_SHIFT
from .function import VolatilityFunctionProvider, ValueDerivatives, FULL_ADJOINT_LABELS
from .sabr import SabrFormulaData

logger = logging.getLogger(__name__)

SamplePoint = Tuple[float, float]


def _check_not_none(value, name: str):
    if value is None:
        raise ValueError(f"{name} must not be None")
    return value


@dataclass(frozen=True)
class SabrInterestRateParameters:
    """
    SABR parameter surfaces with a volatility function.

    Immutable: safe to share between models and threads. Two instances are
    equal when all five surfaces and the function are equal.

    Attributes:
        alpha_surface: Alpha by (expiry, tenor)
        beta_surface: Beta by (expiry, tenor)
        rho_surface: Rho by (expiry, tenor)
        nu_surface: Nu by (expiry, tenor)
        sabr_function: Volatility function evaluated on sampled parameters
        shift_surface: Additive shift of strike and forward by (expiry, tenor)
    """
    alpha_surface: Surface
    beta_surface: Surface
    rho_surface: Surface
    nu_surface: Surface
    sabr_function: VolatilityFunctionProvider
    shift_surface: Surface = ZERO_SHIFT

    def __post_init__(self):
        _check_not_none(self.alpha_surface, "alpha_surface")
        _check_not_none(self.beta_surface, "beta_surface")
        _check_not_none(self.rho_surface, "rho_surface")
        _check_not_none(self.nu_surface, "nu_surface")
        _check_not_none(self.sabr_function, "sabr_function")
        _check_not_none(self.shift_surface, "shift_surface")
        if self.shift_surface != ZERO_SHIFT:
            logger.debug("SABR parameters built with shift surface %r", self.shift_surface.name)

    @classmethod
    def of(
        cls,
        alpha_surface: Surface,
        beta_surface: Surface,
        rho_surface: Surface,
        nu_surface: Surface,
        sabr_function: VolatilityFunctionProvider,
        shift_surface: Surface = ZERO_SHIFT
    ) -> "SabrInterestRateParameters":
        """
        Create SABR parameters.

        Omitting ``shift_surface`` means no shift; passing None is an error.
        """
        return cls(alpha_surface, beta_surface, rho_surface, nu_surface, sabr_function, shift_surface)

    def with_shift_surface(self, shift_surface: Surface) -> "SabrInterestRateParameters":
        """Copy with a different shift surface."""
        return replace(self, shift_surface=shift_surface)

    # -------------------------------------------------------------------------
    # Surface sampling

    @staticmethod
    def _unpack_sample(sample: SamplePoint) -> SamplePoint:
        _check_not_none(sample, "sample point")
        if len(sample) != 2:
            raise ValueError(f"Sample point must be (expiry, tenor), got {sample!r}")
        return float(sample[0]), float(sample[1])

    def alpha(self, sample: SamplePoint) -> float:
        """Alpha at an (expiry, tenor) point."""
        return self.alpha_surface.value_at(*self._unpack_sample(sample))

    def beta(self, sample: SamplePoint) -> float:
        """Beta at an (expiry, tenor) point."""
        return self.beta_surface.value_at(*self._unpack_sample(sample))

    def rho(self, sample: SamplePoint) -> float:
        """Rho at an (expiry, tenor) point."""
        return self.rho_surface.value_at(*self._unpack_sample(sample))

    def nu(self, sample: SamplePoint) -> float:
        """Nu at an (expiry, tenor) point."""
        return self.nu_surface.value_at(*self._unpack_sample(sample))

    def shift(self, sample: SamplePoint) -> float:
        """Shift at an (expiry, tenor) point."""
        return self.shift_surface.value_at(*self._unpack_sample(sample))

    def parameter_at(self, expiry: float, tenor: float) -> SabrFormulaData:
        """SABR parameters sampled at (expiry, tenor)."""
        return SabrFormulaData.of(
            self.alpha_surface.value_at(expiry, tenor),
            self.beta_surface.value_at(expiry, tenor),
            self.rho_surface.value_at(expiry, tenor),
            self.nu_surface.value_at(expiry, tenor),
        )

    def _formula_inputs(
        self,
        expiry: float,
        tenor: float,
        strike: float,
        forward: float
    ) -> Tuple[EuropeanVanillaOption, float, SabrFormulaData]:
        data = self.parameter_at(expiry, tenor)
        shift = self.shift_surface.value_at(expiry, tenor)
        # Put/call does not change the implied volatility
        option = EuropeanVanillaOption.of(strike + shift, expiry, PutCall.CALL)
        return option, forward + shift, data

    # -------------------------------------------------------------------------
    # Volatility and adjoints

    def volatility(
        self,
        expiry,
        tenor: Optional[float] = None,
        strike: Optional[float] = None,
        forward: Optional[float] = None
    ) -> float:
        """
        Implied volatility.

        Called either as ``volatility(expiry, tenor, strike, forward)`` (keywords
        allowed) or as ``volatility(data)`` with
        ``data = [expiry, tenor, strike, forward]``.

        Returns:
            Volatility from the SABR function at the shifted strike and forward
        """
        rest = (tenor, strike, forward)
        if all(value is None for value in rest):
            data = np.asarray(_check_not_none(expiry, "data"), dtype=np.float64)
            if data.ndim != 1 or data.size != 4:
                raise ValueError(
                    f"data must be [expiry, tenor, strike, forward], got shape {data.shape}"
                )
            expiry, tenor, strike, forward = (float(value) for value in data)
        elif any(value is None for value in rest):
            raise ValueError("tenor, strike and forward must all be given with expiry")
        option, shifted_forward, point = self._formula_inputs(expiry, tenor, strike, forward)
        return self.sabr_function.volatility(option, shifted_forward, point)

    def model_adjoint(self, expiry: float, tenor: float, strike: float, forward: float) -> np.ndarray:
        """Volatility derivatives with respect to [alpha, beta, rho, nu]."""
        option, shifted_forward, point = self._formula_inputs(expiry, tenor, strike, forward)
        return self.sabr_function.model_adjoint(option, shifted_forward, point)

    def full_adjoint(self, expiry: float, tenor: float, strike: float, forward: float) -> np.ndarray:
        """Volatility derivatives with respect to [alpha, beta, rho, nu, forward, strike, expiry]."""
        option, shifted_forward, point = self._formula_inputs(expiry, tenor, strike, forward)
        return self.sabr_function.full_adjoint(option, shifted_forward, point)

    def volatility_adjoint(
        self,
        expiry: float,
        tenor: float,
        strike: float,
        forward: float
    ) -> ValueDerivatives:
        """Volatility and full adjoint in one evaluation."""
        option, shifted_forward, point = self._formula_inputs(expiry, tenor, strike, forward)
        return self.sabr_function.volatility_adjoint(option, shifted_forward, point)

    # -------------------------------------------------------------------------
    # Diagnostics

    def smile(
        self,
        expiry: float,
        tenor: float,
        strikes: Iterable[float],
        forward: float
    ) -> pd.Series:
        """
        Implied volatility smile across strikes.

        Returns:
            Series of volatilities indexed by (unshifted) strike
        """
        strikes = [float(k) for k in strikes]
        vols = [self.volatility(expiry, tenor, k, forward) for k in strikes]
        return pd.Series(vols, index=pd.Index(strikes, name="strike"), name="volatility")

    def adjoint_frame(
        self,
        expiry: float,
        tenor: float,
        strikes: Sequence[float],
        forward: float
    ) -> pd.DataFrame:
        """
        Volatility and full adjoint for each strike.

        Returns:
            DataFrame indexed by strike with columns
            ["volatility", "alpha", "beta", "rho", "nu", "forward", "strike", "expiry"]
        """
        strikes = [float(k) for k in strikes]
        rows = []
        for k in strikes:
            vol, derivatives = self.volatility_adjoint(expiry, tenor, k, forward)
            rows.append([vol, *derivatives])
        return pd.DataFrame(
            rows,
            index=pd.Index(strikes, name="strike"),
            columns=["volatility", *FULL_ADJOINT_LABELS],
        )


__all__ = ["SabrInterestRateParameters", "SamplePoint"]
