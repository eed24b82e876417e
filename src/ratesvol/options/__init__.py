"""
Options module - vanilla option descriptors consumed by volatility formulas.
"""

from .vanilla import PutCall, EuropeanVanillaOption

__all__ = ["PutCall", "EuropeanVanillaOption"]
