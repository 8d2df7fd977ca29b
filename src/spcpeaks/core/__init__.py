"""
Core modules for FTIR peak analysis.
"""

from .baseline import BaselineCorrector
from .fitting import fit_peak, fit_peaks
from .peaks import detect_peaks
from .pipeline import FTIRPipeline

__all__ = ["BaselineCorrector", "FTIRPipeline", "detect_peaks", "fit_peak", "fit_peaks"]
