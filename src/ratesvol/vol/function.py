"""
Volatility function capability.

A volatility function turns an option, a forward and a bundle of model
parameters into an implied volatility, together with the exact partial
derivatives of that volatility. Parameter models are written against this
interface only, so formulas are interchangeable.

Adjoint order is a contract shared with every caller:
- model adjoint: [alpha, beta, rho, nu]
- full adjoint:  [alpha, beta, rho, nu, forward, strike, expiry]
"""

from abc import ABC, abstractmethod
from typing import NamedTuple
import numpy as np

from ..options.vanilla import EuropeanVanillaOption


MODEL_ADJOINT_LABELS = ("alpha", "beta", "rho", "nu")
FULL_ADJOINT_LABELS = MODEL_ADJOINT_LABELS + ("forward", "strike", "expiry")


class ValueDerivatives(NamedTuple):
    """A value and its ordered first-order derivatives."""
    value: float
    derivatives: np.ndarray


class VolatilityFunctionProvider(ABC):
    """
    Abstract closed-form implied volatility function.

    Subclasses implement ``volatility_adjoint``; the other operations are
    derived from it so value and gradient always come from the same
    algebraic path.
    """

    def volatility(self, option: EuropeanVanillaOption, forward: float, data) -> float:
        """
        Implied volatility.

        Args:
            option: Option (strike already shifted by the caller)
            forward: Forward (already shifted by the caller)
            data: Model parameters at the option's (expiry, tenor)

        Returns:
            Implied volatility
        """
        return self.volatility_adjoint(option, forward, data).value

    @abstractmethod
    def volatility_adjoint(
        self,
        option: EuropeanVanillaOption,
        forward: float,
        data
    ) -> ValueDerivatives:
        """
        Implied volatility with its full adjoint.

        Returns:
            ValueDerivatives with 7 derivatives in FULL_ADJOINT_LABELS order
        """
        pass

    def model_adjoint(self, option: EuropeanVanillaOption, forward: float, data) -> np.ndarray:
        """Derivatives with respect to the model parameters (length 4)."""
        return self.full_adjoint(option, forward, data)[:len(MODEL_ADJOINT_LABELS)].copy()

    def full_adjoint(self, option: EuropeanVanillaOption, forward: float, data) -> np.ndarray:
        """Derivatives with respect to parameters, forward, strike, expiry (length 7)."""
        return self.volatility_adjoint(option, forward, data).derivatives


__all__ = [
    "VolatilityFunctionProvider",
    "ValueDerivatives",
    "MODEL_ADJOINT_LABELS",
    "FULL_ADJOINT_LABELS",
]
