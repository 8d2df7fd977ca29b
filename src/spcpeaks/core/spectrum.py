"""
Immutable value types shared by every analysis stage.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np


def _frozen_array(values) -> np.ndarray:
    arr = np.array(values, dtype=float, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Spectrum:
    """
    Ordered (x, y) samples. ``x`` is a wavenumber axis, ``y`` an intensity.

    Arrays are copied and locked on construction; every transform returns a
    new Spectrum.
    """

    x: np.ndarray
    y: np.ndarray

    def __post_init__(self):
        x = _frozen_array(self.x)
        y = _frozen_array(self.y)
        if x.ndim != 1 or y.ndim != 1:
            raise ValueError("Spectrum x and y must be one-dimensional.")
        if x.shape != y.shape:
            raise ValueError(
                f"Spectrum x and y lengths differ ({x.size} != {y.size})."
            )
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[float, float]]) -> "Spectrum":
        pts = [(float(px), float(py)) for px, py in pairs]
        if not pts:
            return cls(np.empty(0), np.empty(0))
        xs, ys = zip(*pts)
        return cls(np.asarray(xs), np.asarray(ys))

    def __len__(self) -> int:
        return int(self.x.size)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Spectrum):
            return NotImplemented
        return np.array_equal(self.x, other.x) and np.array_equal(self.y, other.y)

    @property
    def is_sorted(self) -> bool:
        return bool(np.all(np.diff(self.x) >= 0))

    def sorted(self) -> "Spectrum":
        """Stable ascending sort by x."""
        if self.is_sorted:
            return self
        order = np.argsort(self.x, kind="stable")
        return Spectrum(self.x[order], self.y[order])

    def with_y(self, y) -> "Spectrum":
        return Spectrum(self.x, y)

    def extent(self) -> Tuple[float, float]:
        if not len(self):
            return (0.0, 0.0)
        return float(np.min(self.x)), float(np.max(self.x))


@dataclass(frozen=True)
class Peak:
    """A detected absorption peak."""

    x: float
    y: float
    prominence: float
    width: float
    index: int
    mf_response: Optional[float] = None
