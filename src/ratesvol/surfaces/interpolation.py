"""
One-dimensional interpolation used by nodal parameter surfaces.

Provides:
- LinearInterpolator: Piecewise linear between nodes
- NaturalCubicInterpolator: Natural cubic spline (second derivative = 0 at ends)

Interpolators are stateless: ``fit`` returns a pure function of x, so a fitted
surface can be shared freely. Both extrapolate flat beyond the first and last
node and reproduce node values exactly.
"""

from abc import ABC, abstractmethod
from typing import Callable, Sequence
import numpy as np
from scipy.interpolate import CubicSpline


class Interpolator(ABC):
    """Abstract base class for 1D interpolation on sorted nodes."""

    name: str = ""

    def fit(self, xs: Sequence[float], ys: Sequence[float]) -> Callable[[float], float]:
        """
        Fit the interpolator to node points.

        Args:
            xs: Node abscissae (any order, no duplicates)
            ys: Node values

        Returns:
            Function evaluating the interpolant at a single point
        """
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        if xs.shape != ys.shape or xs.ndim != 1:
            raise ValueError("Node abscissae and values must be 1D and of same length")
        if len(xs) == 0:
            raise ValueError("Need at least 1 node for interpolation")

        idx = np.argsort(xs)
        xs = xs[idx]
        ys = ys[idx]
        if np.any(np.diff(xs) == 0):
            raise ValueError("Node abscissae must be distinct")

        if len(xs) == 1:
            value = float(ys[0])
            return lambda x: value
        return self._fit_sorted(xs, ys)

    @abstractmethod
    def _fit_sorted(self, xs: np.ndarray, ys: np.ndarray) -> Callable[[float], float]:
        """Fit on at least two strictly increasing nodes."""
        pass

    def __eq__(self, other):
        return type(self) is type(other)

    def __hash__(self):
        return hash(type(self).__name__)

    def __repr__(self):
        return f"{type(self).__name__}()"


class LinearInterpolator(Interpolator):
    """Linear interpolation with flat extrapolation."""

    name = "linear"

    def _fit_sorted(self, xs: np.ndarray, ys: np.ndarray) -> Callable[[float], float]:
        def evaluate(x: float) -> float:
            if x <= xs[0]:
                return float(ys[0])
            if x >= xs[-1]:
                return float(ys[-1])

            idx = np.searchsorted(xs, x, side='right') - 1
            idx = max(0, min(idx, len(xs) - 2))

            x0, x1 = xs[idx], xs[idx + 1]
            y0, y1 = ys[idx], ys[idx + 1]

            w = (x - x0) / (x1 - x0)
            return float(y0 + w * (y1 - y0))

        return evaluate


class NaturalCubicInterpolator(Interpolator):
    """
    Natural cubic spline interpolation.

    Smooth first and second derivatives inside the node range; flat outside
    so that extrapolated parameters cannot run away.
    """

    name = "natural_cubic"

    def _fit_sorted(self, xs: np.ndarray, ys: np.ndarray) -> Callable[[float], float]:
        spline = CubicSpline(xs, ys, bc_type="natural")
        first, last = float(ys[0]), float(ys[-1])

        def evaluate(x: float) -> float:
            if x <= xs[0]:
                return first
            if x >= xs[-1]:
                return last
            return float(spline(x))

        return evaluate


def create_interpolator(method: str) -> Interpolator:
    """
    Factory function to create an interpolator by name.

    Args:
        method: One of "linear", "natural_cubic"

    Returns:
        Interpolator instance
    """
    method = method.lower().replace("-", "_").replace(" ", "_")

    if method in ("linear", "lin"):
        return LinearInterpolator()
    elif method in ("natural_cubic", "cubic_spline", "cubic", "spline"):
        return NaturalCubicInterpolator()
    else:
        raise ValueError(f"Unknown interpolation method: {method}")


__all__ = [
    "Interpolator",
    "LinearInterpolator",
    "NaturalCubicInterpolator",
    "create_interpolator",
]
