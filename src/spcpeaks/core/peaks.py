"""
Peak detection on (possibly non-uniform) spectra.

Two interchangeable strategies share the same valley walk and prominence
definition and return the same ``Peak`` records:

- ``detect_peaks_robust``: x-window smoothing sized from the sample spacing,
  then prominence/width thresholds and index-distance suppression.
- ``detect_peaks_derivative``: light pre-smoothing, then candidates must also
  show negative curvature and a strong Gaussian matched-filter response.
  Meant for small, narrow bands the robust thresholds would discard.
"""

import logging
import math
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from spcpeaks.config import (
    DEFAULT_CURVATURE_THRESHOLD,
    DEFAULT_MF_THRESHOLD,
    DEFAULT_MIN_DISTANCE_PTS,
    DEFAULT_MIN_POINTS_PER_PEAK,
    DEFAULT_MIN_PROMINENCE_DERIV,
    DEFAULT_MIN_PROMINENCE_ROBUST,
    DEFAULT_MIN_SEPARATION,
    DEFAULT_MIN_WIDTH_DERIV,
    DEFAULT_MIN_WIDTH_ROBUST,
    DEFAULT_POINTS_PER_PEAK_FRACTION,
    DEFAULT_PRE_SMOOTH_WIDTH,
    DEFAULT_PROMINENCE_FACTOR_DERIV,
    DEFAULT_PROMINENCE_FACTOR_ROBUST,
    DEFAULT_SEPARATION_FWHM_FRACTION,
    DEFAULT_TARGET_FWHM,
    MIN_DETECTION_SAMPLES,
    DetectionMode,
    PeakConfig,
    finite_or_default,
    positive_or_default,
    resolve_x_range,
)
from spcpeaks.core.filters import derivative1, derivative2, matched_filter_response
from spcpeaks.core.smoothing import smooth_by_x
from spcpeaks.core.spectrum import Peak, Spectrum

logger = logging.getLogger(__name__)

MIN_SPACING: float = 1e-9
NORM_SPAN_FLOOR: float = 1e-12


def normalize01(y: np.ndarray) -> np.ndarray:
    y = np.asarray(y, dtype=float)
    if y.size == 0:
        return y.copy()
    lo = float(np.min(y))
    span = max(NORM_SPAN_FLOOR, float(np.max(y)) - lo)
    return (y - lo) / span


def median_spacing(x: np.ndarray, mask: Optional[np.ndarray] = None) -> float:
    """Median absolute gap between consecutive samples that are both in ``mask``."""
    x = np.asarray(x, dtype=float)
    if x.size < 2:
        return 0.0
    gaps = np.abs(np.diff(x))
    if mask is not None:
        gaps = gaps[mask[1:] & mask[:-1]]
    return float(np.median(gaps)) if gaps.size else 0.0


def _range_mask(x: np.ndarray, x_range) -> np.ndarray:
    bounds = resolve_x_range(x_range)
    if bounds is None:
        return np.ones(x.shape, dtype=bool)
    return (x >= bounds[0]) & (x <= bounds[1])


def _sign_change_maxima(dy: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Indices i (1 <= i <= n-2, inside mask) where dy goes from > 0 to <= 0."""
    n = dy.size
    if n < 3:
        return np.empty(0, dtype=int)
    idx = np.arange(1, n - 1)
    hit = mask[1:-1] & (dy[:-2] > 0) & (dy[1:-1] <= 0)
    return idx[hit]


def _walk_valleys(yn: np.ndarray, i: int) -> Tuple[int, int]:
    """Walk outward from a maximum while the signal keeps falling (or stays flat)."""
    n = yn.size
    left, right = i - 1, i + 1
    while left > 0 and yn[left - 1] <= yn[left]:
        left -= 1
    while right < n - 1 and yn[right + 1] <= yn[right]:
        right += 1
    return left, right


def _make_candidate(
    x: np.ndarray,
    ys: np.ndarray,
    yn: np.ndarray,
    i: int,
    mf_response: Optional[float] = None,
) -> Peak:
    left, right = _walk_valleys(yn, i)
    base = max(yn[left], yn[right])
    return Peak(
        x=float(x[i]),
        y=float(ys[i]),
        prominence=float(yn[i] - base),
        width=float(abs(x[right] - x[left])),
        index=int(i),
        mf_response=mf_response,
    )


def _mean_prominence(candidates: Sequence[Peak]) -> float:
    if not candidates:
        return 0.0
    return float(np.mean([c.prominence for c in candidates]))


def _suppress(peaks: Sequence[Peak], too_close: Callable[[Peak, Peak], bool]) -> List[Peak]:
    """Greedy non-maximum suppression by descending prominence; result in x order."""
    kept: List[Peak] = []
    for peak in sorted(peaks, key=lambda p: p.prominence, reverse=True):
        if not any(too_close(k, peak) for k in kept):
            kept.append(peak)
    return sorted(kept, key=lambda p: p.x)


def _prepare(spectrum: Spectrum, config: PeakConfig):
    """Sort, then mask the active x-range. None if there is too little data."""
    spectrum = spectrum.sorted()
    if len(spectrum) < MIN_DETECTION_SAMPLES:
        return None
    mask = _range_mask(spectrum.x, config.x_range)
    if np.count_nonzero(mask) < MIN_DETECTION_SAMPLES:
        return None
    return spectrum, mask


def detect_peaks_robust(spectrum: Spectrum, config: Optional[PeakConfig] = None) -> List[Peak]:
    config = config or PeakConfig(mode=DetectionMode.ROBUST)
    prepared = _prepare(spectrum, config)
    if prepared is None:
        return []
    spectrum, mask = prepared
    x, y = spectrum.x, spectrum.y
    n = len(spectrum)

    # 1. Smoothing window from the typical spacing inside the range
    dx_med = max(MIN_SPACING, median_spacing(x, mask))
    auto_ppp = max(DEFAULT_MIN_POINTS_PER_PEAK, math.floor(n * DEFAULT_POINTS_PER_PEAK_FRACTION))
    ppp = positive_or_default(config.points_per_peak, auto_ppp, minimum=3)
    window = ppp * dx_med

    # 2. Smooth, normalise, first derivative
    ys = smooth_by_x(x, y, window)
    yn = normalize01(ys)
    dy = derivative1(x, yn)

    # 3. Candidates at derivative sign changes
    candidates = [_make_candidate(x, ys, yn, i) for i in _sign_change_maxima(dy, mask)]

    # 4. Thresholds
    min_prom = positive_or_default(
        config.min_prominence,
        max(DEFAULT_MIN_PROMINENCE_ROBUST,
            DEFAULT_PROMINENCE_FACTOR_ROBUST * _mean_prominence(candidates)),
    )
    min_dist = positive_or_default(
        config.min_distance, max(DEFAULT_MIN_DISTANCE_PTS, math.floor(ppp))
    )
    min_width = positive_or_default(config.min_width, DEFAULT_MIN_WIDTH_ROBUST)

    logger.debug(
        "Robust detection: n=%d spacing=%.4g pts/peak=%s window=%.4g "
        "candidates=%d min_prom=%.4g min_dist=%s min_width=%.4g",
        n, dx_med, ppp, window, len(candidates), min_prom, min_dist, min_width,
    )

    # 5. Filter and suppress neighbours closer than min_dist samples
    passing = [c for c in candidates if c.prominence >= min_prom and c.width >= min_width]
    return _suppress(passing, lambda k, p: abs(k.index - p.index) < min_dist)


def detect_peaks_derivative(spectrum: Spectrum, config: Optional[PeakConfig] = None) -> List[Peak]:
    config = config or PeakConfig(mode=DetectionMode.DERIVATIVE)
    prepared = _prepare(spectrum, config)
    if prepared is None:
        return []
    spectrum, mask = prepared
    x, y = spectrum.x, spectrum.y

    pre_smooth = positive_or_default(config.pre_smooth_width, DEFAULT_PRE_SMOOTH_WIDTH)
    fwhm = positive_or_default(config.target_fwhm, DEFAULT_TARGET_FWHM)
    # Curvature at a maximum is negative, so only finiteness is required
    curv_thresh = finite_or_default(config.curvature_threshold, DEFAULT_CURVATURE_THRESHOLD)
    mf_thresh = positive_or_default(config.mf_threshold, DEFAULT_MF_THRESHOLD)
    min_width = positive_or_default(config.min_width, DEFAULT_MIN_WIDTH_DERIV)

    # 1. Pre-smooth, normalise, derivatives and matched filter
    ys = smooth_by_x(x, y, pre_smooth)
    yn = normalize01(ys)
    dy = derivative1(x, yn)
    d2 = derivative2(x, yn)
    mf = matched_filter_response(x, yn, fwhm)

    # 2. Sign change backed by curvature and filter evidence
    candidates = []
    for i in _sign_change_maxima(dy, mask):
        if d2[i] < curv_thresh and mf[i] >= mf_thresh:
            cand = _make_candidate(x, ys, yn, i, mf_response=float(mf[i]))
            if cand.width >= min_width:
                candidates.append(cand)

    # 3. Prominence threshold and x-distance suppression
    min_prom = positive_or_default(
        config.min_prominence,
        max(DEFAULT_MIN_PROMINENCE_DERIV,
            DEFAULT_PROMINENCE_FACTOR_DERIV * _mean_prominence(candidates)),
    )
    min_sep = positive_or_default(
        config.min_separation,
        max(DEFAULT_MIN_SEPARATION, DEFAULT_SEPARATION_FWHM_FRACTION * fwhm),
    )

    logger.debug(
        "Derivative detection: n=%d pre_smooth=%.4g fwhm=%.4g curv<%.4g mf>=%.4g "
        "candidates=%d min_prom=%.4g min_sep=%.4g",
        len(spectrum), pre_smooth, fwhm, curv_thresh, mf_thresh,
        len(candidates), min_prom, min_sep,
    )

    passing = [c for c in candidates if c.prominence >= min_prom]
    return _suppress(passing, lambda k, p: abs(k.x - p.x) < min_sep)


_DETECTORS = {
    DetectionMode.ROBUST: detect_peaks_robust,
    DetectionMode.DERIVATIVE: detect_peaks_derivative,
}


def detect_peaks(spectrum: Spectrum, config: Optional[PeakConfig] = None) -> List[Peak]:
    """Run the detector selected by ``config.mode`` (robust by default)."""
    config = config or PeakConfig()
    return _DETECTORS[DetectionMode(config.mode)](spectrum, config)
