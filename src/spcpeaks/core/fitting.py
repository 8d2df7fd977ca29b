"""
One-shot Gaussian / Lorentzian peak shape estimates.

Both models are anchored on the same guess (window maximum and half-maximum
crossings); the one with the lower sum of squared residuals is kept. There is
no iterative refinement.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from spcpeaks.config import FitConfig, positive_or_default
from spcpeaks.core.filters import FWHM_PER_SIGMA, fwhm_to_sigma
from spcpeaks.core.spectrum import Peak, Spectrum

logger = logging.getLogger(__name__)

MIN_SHAPE_WIDTH: float = 1e-6


class PeakShape(str, Enum):
    GAUSS = "Gauss"
    LORENTZ = "Lorentz"


@dataclass(frozen=True)
class PeakGuess:
    pos: float
    height: float
    fwhm: float


@dataclass(frozen=True)
class FitResult:
    kind: PeakShape
    pos: float
    height: float
    fwhm: float
    area: float
    sse: float = float("nan")
    peak_x: Optional[float] = None


def gaussian(x, pos: float, height: float, fwhm: float) -> np.ndarray:
    sigma = max(MIN_SHAPE_WIDTH, fwhm_to_sigma(fwhm))
    return height * np.exp(-0.5 * ((np.asarray(x, dtype=float) - pos) / sigma) ** 2)


def lorentzian(x, pos: float, height: float, fwhm: float) -> np.ndarray:
    gamma = max(MIN_SHAPE_WIDTH, 0.5 * fwhm)
    return height / (1.0 + ((np.asarray(x, dtype=float) - pos) / gamma) ** 2)


def initial_peak_guess(xs: np.ndarray, ys: np.ndarray) -> PeakGuess:
    """
    Position and height from the window maximum; FWHM from the outermost
    samples still at or above half height, walking outward from the maximum.
    ``xs`` must be sorted.
    """
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    i_max = int(np.argmax(ys))
    height = float(ys[i_max])
    half = 0.5 * height

    left = i_max
    while left > 0 and ys[left - 1] >= half:
        left -= 1
    right = i_max
    while right < ys.size - 1 and ys[right + 1] >= half:
        right += 1

    fwhm = max(MIN_SHAPE_WIDTH, float(xs[right] - xs[left]))
    return PeakGuess(pos=float(xs[i_max]), height=height, fwhm=fwhm)


def gaussian_params(guess: PeakGuess) -> Tuple[float, float]:
    """(fwhm, area) of the Gaussian anchored on ``guess``."""
    sigma = max(MIN_SHAPE_WIDTH, fwhm_to_sigma(guess.fwhm))
    area = guess.height * sigma * math.sqrt(2.0 * math.pi)
    return (FWHM_PER_SIGMA * sigma, area)


def lorentz_params(guess: PeakGuess) -> Tuple[float, float]:
    """(fwhm, area) of the Lorentzian anchored on ``guess``."""
    gamma = max(MIN_SHAPE_WIDTH, 0.5 * guess.fwhm)
    return (2.0 * gamma, math.pi * guess.height * gamma)


def _sse(ys: np.ndarray, model: np.ndarray) -> float:
    return float(np.sum((ys - model) ** 2))


def fit_peak(spectrum: Spectrum, peak: Peak, config: Optional[FitConfig] = None) -> Optional[FitResult]:
    """
    Estimate the shape of ``peak`` from the samples within ``half_window``
    of its position. Returns None when the window holds too few samples.
    """
    config = config or FitConfig()
    half_window = positive_or_default(config.half_window, FitConfig.half_window)
    min_points = max(1, math.ceil(positive_or_default(config.min_points, FitConfig.min_points)))

    spectrum = spectrum.sorted()
    inside = (spectrum.x >= peak.x - half_window) & (spectrum.x <= peak.x + half_window)
    xs, ys = spectrum.x[inside], spectrum.y[inside]
    if xs.size < min_points:
        logger.debug(
            "No fit for peak at %.2f: %d samples in +/-%.3g window (< %d).",
            peak.x, xs.size, half_window, min_points,
        )
        return None

    guess = initial_peak_guess(xs, ys)

    g_fwhm, g_area = gaussian_params(guess)
    l_fwhm, l_area = lorentz_params(guess)
    sse_g = _sse(ys, gaussian(xs, guess.pos, guess.height, g_fwhm))
    sse_l = _sse(ys, lorentzian(xs, guess.pos, guess.height, l_fwhm))

    if sse_g <= sse_l:
        kind, fwhm, area, sse = PeakShape.GAUSS, g_fwhm, g_area, sse_g
    else:
        kind, fwhm, area, sse = PeakShape.LORENTZ, l_fwhm, l_area, sse_l

    return FitResult(
        kind=kind,
        pos=guess.pos,
        height=guess.height,
        fwhm=fwhm,
        area=area,
        sse=sse,
        peak_x=peak.x,
    )


def fit_peaks(
    spectrum: Spectrum,
    peaks: Sequence[Peak],
    config: Optional[FitConfig] = None,
) -> List[Optional[FitResult]]:
    """Fit every peak independently; entries are None where no fit was possible."""
    results = [fit_peak(spectrum, p, config) for p in peaks]
    missing = sum(r is None for r in results)
    if missing:
        logger.warning("%d of %d peaks could not be fitted.", missing, len(results))
    return results
