"""
Numerical settings for the closed-form SABR formulas.

The Hagan expansion has two places where a raw evaluation is numerically
unsafe:
- z / x(z) for very small |z| (0/0 at the money)
- strikes at or near zero (log of the strike)

Both thresholds live here so a formula instance fully describes itself.
"""

from dataclasses import dataclass
import math


DEFAULT_SMALL_Z = 1e-6
DEFAULT_CUTOFF_MONEYNESS = 1e-12


@dataclass(frozen=True)
class SabrFormulaSettings:
    """
    Thresholds used by the SABR volatility formulas.

    Attributes:
        small_z: Below this |z| the ratio z / x(z) uses its series expansion
        cutoff_moneyness: Strikes below forward * cutoff_moneyness are floored
    """
    small_z: float = DEFAULT_SMALL_Z
    cutoff_moneyness: float = DEFAULT_CUTOFF_MONEYNESS

    def __post_init__(self):
        """Validate settings."""
        if not math.isfinite(self.small_z) or self.small_z <= 0:
            raise ValueError(f"small_z must be positive, got {self.small_z}")
        if not math.isfinite(self.cutoff_moneyness) or self.cutoff_moneyness <= 0:
            raise ValueError(
                f"cutoff_moneyness must be positive, got {self.cutoff_moneyness}"
            )

    def strike_cutoff(self, forward: float) -> float:
        """Smallest strike the formulas evaluate at for this forward."""
        return forward * self.cutoff_moneyness


DEFAULT_SETTINGS = SabrFormulaSettings()


__all__ = [
    "SabrFormulaSettings",
    "DEFAULT_SETTINGS",
    "DEFAULT_SMALL_Z",
    "DEFAULT_CUTOFF_MONEYNESS",
]
