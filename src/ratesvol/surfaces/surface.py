"""
Parameter surfaces over (expiry, tenor).

A surface maps an (expiry, tenor) pair, both in years, to a scalar. SABR
parameter models hold five of them (alpha, beta, rho, nu and shift) and
only ever call ``value_at``.

Surfaces here are immutable values: equality and hashing compare the
nodes, never object identity, so two models built from separately
constructed but identical surfaces compare equal.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Sequence, Tuple
import math

import numpy as np
import pandas as pd

from .interpolation import Interpolator, create_interpolator


class Surface(ABC):
    """Abstract (expiry, tenor) -> value surface."""

    name: str

    @abstractmethod
    def value_at(self, expiry: float, tenor: float) -> float:
        """
        Value of the surface at a point.

        Args:
            expiry: Option expiry in years
            tenor: Underlying tenor in years

        Returns:
            Surface value
        """
        pass

    def __call__(self, expiry: float, tenor: float) -> float:
        """Convenience method to call value_at."""
        return self.value_at(expiry, tenor)


@dataclass(frozen=True)
class ConstantSurface(Surface):
    """Surface with the same value everywhere."""

    name: str
    value: float

    def __post_init__(self):
        if not math.isfinite(self.value):
            raise ValueError(f"Surface value must be finite, got {self.value}")
        object.__setattr__(self, "value", float(self.value))

    @classmethod
    def of(cls, name: str, value: float) -> "ConstantSurface":
        return cls(name, value)

    def value_at(self, expiry: float, tenor: float) -> float:
        return self.value


@dataclass(frozen=True)
class InterpolatedNodalSurface(Surface):
    """
    Surface interpolated on a rectangular (expiry x tenor) grid of nodes.

    Nodes are supplied as three parallel sequences; every expiry must appear
    with every tenor. Evaluation interpolates along tenor for each expiry
    row, then along expiry. Flat extrapolation on both axes.

    Attributes:
        name: Surface name
        x_values: Node expiries
        y_values: Node tenors
        z_values: Node values
        interpolator: Interpolation method name used on both axes
    """

    name: str
    x_values: Tuple[float, ...]
    y_values: Tuple[float, ...]
    z_values: Tuple[float, ...]
    interpolator: str = "linear"
    _expiries: np.ndarray = field(init=False, repr=False, compare=False)
    _rows: Tuple[Callable[[float], float], ...] = field(init=False, repr=False, compare=False)
    _interp: Interpolator = field(init=False, repr=False, compare=False)
    _expiry_fit: Callable[[float], Callable[[float], float]] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        x = tuple(float(v) for v in self.x_values)
        y = tuple(float(v) for v in self.y_values)
        z = tuple(float(v) for v in self.z_values)
        if not (len(x) == len(y) == len(z)):
            raise ValueError("x_values, y_values and z_values must have same length")
        if len(x) == 0:
            raise ValueError("Need at least 1 node for a surface")
        if not all(math.isfinite(v) for v in x + y + z):
            raise ValueError("Surface nodes must be finite")

        interp = create_interpolator(self.interpolator)

        nodes = {}
        for xi, yi, zi in zip(x, y, z):
            if (xi, yi) in nodes:
                raise ValueError(f"Duplicate surface node at ({xi}, {yi})")
            nodes[(xi, yi)] = zi

        expiries = sorted(set(x))
        tenors = sorted(set(y))
        if len(expiries) * len(tenors) != len(nodes):
            raise ValueError(
                f"Surface nodes must form a complete grid, got {len(nodes)} nodes "
                f"for {len(expiries)} expiries x {len(tenors)} tenors"
            )

        rows = tuple(
            interp.fit(tenors, [nodes[(xi, yj)] for yj in tenors])
            for xi in expiries
        )

        object.__setattr__(self, "x_values", x)
        object.__setattr__(self, "y_values", y)
        object.__setattr__(self, "z_values", z)
        object.__setattr__(self, "interpolator", interp.name)
        object.__setattr__(self, "_expiries", np.array(expiries))
        object.__setattr__(self, "_rows", rows)
        object.__setattr__(self, "_interp", interp)
        # Expiry-axis fits are reused across calls at the same tenor
        object.__setattr__(self, "_expiry_fit", lru_cache(maxsize=128)(self._fit_expiry_axis))

    @classmethod
    def of(
        cls,
        name: str,
        x_values: Sequence[float],
        y_values: Sequence[float],
        z_values: Sequence[float],
        interpolator: str = "linear"
    ) -> "InterpolatedNodalSurface":
        """Create a surface from parallel node sequences."""
        return cls(name, tuple(x_values), tuple(y_values), tuple(z_values), interpolator)

    @classmethod
    def from_frame(
        cls,
        name: str,
        frame: pd.DataFrame,
        interpolator: str = "linear"
    ) -> "InterpolatedNodalSurface":
        """
        Create a surface from a grid DataFrame.

        Args:
            name: Surface name
            frame: Values indexed by expiry (rows) and tenor (columns)
            interpolator: Interpolation method name

        Returns:
            InterpolatedNodalSurface
        """
        x = [float(e) for e in frame.index for _ in frame.columns]
        y = [float(t) for _ in frame.index for t in frame.columns]
        z = frame.to_numpy(dtype=np.float64).ravel()
        return cls.of(name, x, y, z, interpolator)

    @property
    def parameter_count(self) -> int:
        """Number of nodes."""
        return len(self.z_values)

    def _fit_expiry_axis(self, tenor: float) -> Callable[[float], float]:
        return self._interp.fit(self._expiries, [row(tenor) for row in self._rows])

    def value_at(self, expiry: float, tenor: float) -> float:
        if len(self._rows) == 1:
            return self._rows[0](tenor)
        return self._expiry_fit(float(tenor))(expiry)

    def to_frame(self) -> pd.DataFrame:
        """Node values as a grid DataFrame (expiry rows, tenor columns)."""
        series = pd.Series(
            self.z_values,
            index=pd.MultiIndex.from_arrays([self.x_values, self.y_values], names=["expiry", "tenor"]),
            name=self.name,
        )
        return series.unstack("tenor").sort_index().sort_index(axis=1)


ZERO_SHIFT = ConstantSurface("zero shift", 0.0)


__all__ = ["Surface", "ConstantSurface", "InterpolatedNodalSurface", "ZERO_SHIFT"]
