import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from spcpeaks.config import BaselineConfig, DEFAULT_BASELINE_MIN_POINTS, positive_or_default
from spcpeaks.core.bands import DEFAULT_BANDS
from spcpeaks.core.regression import Coeffs, quadratic_moments, solve3
from spcpeaks.core.spectrum import Spectrum

logger = logging.getLogger(__name__)

BASELINE_DET_TOL: float = 1e-14

Range = Tuple[float, float]


@dataclass(frozen=True, eq=False)
class BaselineResult:
    corrected: Spectrum
    baseline: np.ndarray
    coeffs: Coeffs
    used_points: int


def polyfit2(x: np.ndarray, y: np.ndarray) -> Coeffs:
    """
    Least-squares quadratic ``y = a + b*x + c*x**2``.

    The moments are taken on a centred, scaled copy of ``x`` and the
    coefficients mapped back, since raw wavenumbers (x**4 ~ 1e14) make the
    explicit inverse lose most of its digits. A singular system returns
    (0, 0, 0), i.e. a flat zero baseline.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.size == 0:
        return (0.0, 0.0, 0.0)

    center = float(np.mean(x))
    scale = float(np.max(np.abs(x - center)))
    if not scale > 0:
        scale = 1.0
    u = (x - center) / scale

    A, b = quadratic_moments(u, y)
    sol = solve3(A, b, BASELINE_DET_TOL)
    if sol is None:
        logger.warning("Singular baseline system (%d points); using a zero baseline.", x.size)
        return (0.0, 0.0, 0.0)

    a_u, b_u, c_u = sol
    m, s = center, scale
    a = a_u - b_u * m / s + c_u * m * m / (s * s)
    b1 = b_u / s - 2.0 * c_u * m / (s * s)
    c = c_u / (s * s)
    return (a, b1, c)


def eval_poly2(coeffs: Coeffs, x) -> np.ndarray:
    a, b, c = coeffs
    x = np.asarray(x, dtype=float)
    return a + b * x + c * x * x


def exclusion_mask(x: np.ndarray, ranges: Sequence[Range]) -> np.ndarray:
    """True for samples that fall outside every (inclusive) range."""
    x = np.asarray(x, dtype=float)
    keep = np.ones(x.shape, dtype=bool)
    for low, high in ranges:
        keep &= ~((x >= low) & (x <= high))
    return keep


def baseline_correction_core(
    spectrum: Spectrum,
    exclude_ranges: Sequence[Range] = (),
    min_points: int = DEFAULT_BASELINE_MIN_POINTS,
) -> BaselineResult:
    """
    Fit a quadratic background to the samples outside ``exclude_ranges`` and
    subtract it from every sample.
    """
    x, y = spectrum.x, spectrum.y
    keep = exclusion_mask(x, exclude_ranges)
    n_keep = int(np.count_nonzero(keep))

    if n_keep >= min_points:
        coeffs = polyfit2(x[keep], y[keep])
        used = n_keep
    else:
        # Excluding the bands would starve the regression
        logger.warning(
            "Only %d of %d samples outside the excluded ranges (< %d); fitting all samples.",
            n_keep, x.size, min_points,
        )
        coeffs = polyfit2(x, y)
        used = int(x.size)

    background = eval_poly2(coeffs, x)
    background.setflags(write=False)
    return BaselineResult(
        corrected=spectrum.with_y(y - background),
        baseline=background,
        coeffs=coeffs,
        used_points=used,
    )


class BaselineCorrector:
    """
    Handles baseline correction configuration and validation.
    Defaults to excluding the ranges of the default band catalog.
    """

    def __init__(self, config: Optional[BaselineConfig] = None):
        self.config = config or BaselineConfig()

    def _prepare_exclusions(self) -> Tuple[Range, ...]:
        if self.config.exclude_ranges is None:
            return tuple(band.range for band in DEFAULT_BANDS)

        ranges = []
        for item in self.config.exclude_ranges:
            try:
                low, high = (float(v) for v in item)
            except (TypeError, ValueError):
                raise ValueError(
                    f"Invalid exclusion range {item!r}: expected a (low, high) pair of numbers."
                ) from None
            if not (math.isfinite(low) and math.isfinite(high)):
                raise ValueError(f"Exclusion range {item!r} must be finite.")
            if low > high:
                raise ValueError(
                    f"Exclusion range {item!r} is not in the expected order (low <= high)."
                )
            ranges.append((low, high))
        return tuple(ranges)

    def _prepare_min_points(self) -> int:
        # Non-positive or non-finite values fall back to the default
        return int(math.ceil(
            positive_or_default(self.config.min_points, DEFAULT_BASELINE_MIN_POINTS)
        ))

    def run(self, spectrum: Spectrum) -> BaselineResult:
        return baseline_correction_core(
            spectrum=spectrum,
            exclude_ranges=self._prepare_exclusions(),
            min_points=self._prepare_min_points(),
        )
