import logging

import numpy as np

from spcpeaks.config import DEFAULT_RESIDUAL_WINDOW
from spcpeaks.core.regression import quadratic_moments, solve3
from spcpeaks.core.spectrum import Spectrum

logger = logging.getLogger(__name__)

SG_MIN_WINDOW: int = 3
SG_MAX_WINDOW: int = 51
SG_DET_TOL: float = 1e-12


def smooth_by_x(x: np.ndarray, y: np.ndarray, window: float) -> np.ndarray:
    """
    Moving average over an x-distance window.

    Each output point is the mean of every sample with
    ``|x[j] - x[i]| <= window / 2``. ``x`` must be sorted ascending; the
    neighbourhood is then a contiguous slice, found by bisection on each side.
    Robust to non-uniform spacing since the window is in x-units.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    half = 0.5 * float(window)

    lo = np.searchsorted(x, x - half, side="left")
    hi = np.searchsorted(x, x + half, side="right")

    out = y.copy()
    for i in range(y.size):
        # Empty when the window is not a usable number
        if hi[i] > lo[i]:
            out[i] = np.mean(y[lo[i]:hi[i]])
    return out


def savitzky_golay(y: np.ndarray, window: int = 7) -> np.ndarray:
    """
    Quadratic Savitzky-Golay smoothing over a point-count window.

    Windows are truncated at the edges. Invalid windows (even, < 3, > 51, or
    not a whole number) leave the input untouched.
    """
    y = np.asarray(y, dtype=float)
    if isinstance(window, (float, np.floating)) and float(window).is_integer():
        window = int(window)
    if isinstance(window, bool) or not isinstance(window, (int, np.integer)):
        return y.copy()
    if window < SG_MIN_WINDOW or window % 2 == 0 or window > SG_MAX_WINDOW:
        return y.copy()
    window = int(window)

    n = y.size
    half = (window - 1) // 2
    out = np.empty_like(y)
    for i in range(n):
        i0 = max(0, i - half)
        i1 = min(n - 1, i + half)
        t = np.arange(i0, i1 + 1, dtype=float) - i
        seg = y[i0:i1 + 1]
        A, b = quadratic_moments(t, seg)
        coeffs = solve3(A, b, SG_DET_TOL)
        # Value at the centre (t = 0) is the constant term
        out[i] = coeffs[0] if coeffs is not None else b[0] / A[0, 0]
    return out


def sg_window_for_level(level: int) -> int:
    """Map a smoothing level (0, 1, 2, ...) to an odd Savitzky-Golay window."""
    return 2 * (int(level) // 2) + 3


def residual_signal(spectrum: Spectrum, window: float = DEFAULT_RESIDUAL_WINDOW) -> Spectrum:
    """Subtract a broad moving average so only the sharp features remain."""
    spectrum = spectrum.sorted()
    trend = smooth_by_x(spectrum.x, spectrum.y, window)
    logger.debug("Residual signal with %.3g-wide trend window", window)
    return spectrum.with_y(spectrum.y - trend)
