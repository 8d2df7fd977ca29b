from typing import Optional

import numpy as np

from spcpeaks.config import PreprocessConfig
from spcpeaks.core.smoothing import savitzky_golay, sg_window_for_level
from spcpeaks.core.spectrum import Spectrum

# Savitzky-Golay is skipped on spectra this short
MIN_SMOOTH_SAMPLES: int = 6


def normalize_y(spectrum: Spectrum) -> Spectrum:
    """Min-max scale intensities to [0, 1]. A flat spectrum maps to 0."""
    if not len(spectrum):
        return spectrum
    y = spectrum.y
    lo = float(np.min(y))
    span = float(np.max(y)) - lo
    if span == 0:
        span = 1.0
    return spectrum.with_y((y - lo) / span)


def invert_x(spectrum: Spectrum) -> Spectrum:
    """Mirror the x axis onto itself (``max + min - x``) and re-sort."""
    if not len(spectrum):
        return spectrum
    lo, hi = spectrum.extent()
    return Spectrum(hi + lo - spectrum.x, spectrum.y).sorted()


def preprocess(spectrum: Spectrum, config: Optional[PreprocessConfig] = None) -> Spectrum:
    config = config or PreprocessConfig()

    out = spectrum
    if config.normalize:
        out = normalize_y(out)
    out = invert_x(out) if config.invert_x else out.sorted()

    if config.smooth_level and config.smooth_level > 0 and len(out) >= MIN_SMOOTH_SAMPLES:
        window = sg_window_for_level(config.smooth_level)
        out = out.with_y(savitzky_golay(out.y, window))
    return out
