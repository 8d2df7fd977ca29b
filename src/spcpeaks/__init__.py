"""
spcpeaks: FTIR peak analysis package

Core features:
- Distance-window and Savitzky-Golay smoothing
- Quadratic baseline correction with band exclusion
- Robust and derivative/matched-filter peak detection
- Band matching and GO/graphene verdict
- Gaussian/Lorentz peak shape estimates

Typical usage:

    from spcpeaks import FTIRPipeline, PeakConfig
    from spcpeaks.io import load_spectrum_csv

    result = FTIRPipeline(PeakConfig(mode="deriv")).run(load_spectrum_csv("sample.csv"))
"""

from .config import BaselineConfig, DetectionMode, FitConfig, PeakConfig, PreprocessConfig
from .core.bands import DEFAULT_BANDS, Band, BandClass, BandMatch, Verdict
from .core.baseline import BaselineCorrector, BaselineResult
from .core.fitting import FitResult, PeakShape
from .core.pipeline import AnalysisResult, FTIRPipeline
from .core.spectrum import Peak, Spectrum

__version__ = "0.1.0"

__all__ = [
    "BaselineConfig",
    "DetectionMode",
    "FitConfig",
    "PeakConfig",
    "PreprocessConfig",
    "DEFAULT_BANDS",
    "Band",
    "BandClass",
    "BandMatch",
    "Verdict",
    "BaselineCorrector",
    "BaselineResult",
    "FitResult",
    "PeakShape",
    "AnalysisResult",
    "FTIRPipeline",
    "Peak",
    "Spectrum",
]
