import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import pandas as pd

from spcpeaks.config import (
    DEFAULT_RESIDUAL_WINDOW,
    MIN_DETECTION_SAMPLES,
    BaselineConfig,
    DetectionMode,
    FitConfig,
    PeakConfig,
    PreprocessConfig,
)
from spcpeaks.core.bands import (
    DEFAULT_BANDS,
    Band,
    BandMatch,
    Verdict,
    decide_presence,
    match_bands,
    top_peaks,
)
from spcpeaks.core.baseline import BaselineCorrector, BaselineResult
from spcpeaks.core.fitting import FitResult, fit_peaks
from spcpeaks.core.peaks import detect_peaks
from spcpeaks.core.preprocess import preprocess
from spcpeaks.core.smoothing import residual_signal
from spcpeaks.core.spectrum import Peak, Spectrum
from spcpeaks.io.loader import X_COLUMN, spectrum_from_frame

logger = logging.getLogger(__name__)

SampleLike = Union[Spectrum, pd.DataFrame]


@dataclass(frozen=True, eq=False)
class AnalysisResult:
    spectrum: Spectrum
    peaks: List[Peak]
    matches: List[BandMatch]
    verdict: Verdict
    top_peaks: List[Peak]
    fits: List[Optional[FitResult]] = field(default_factory=list)
    baseline: Optional[BaselineResult] = None


class FTIRPipeline:
    """
    Orchestrates the analysis workflow:
    Preprocess -> (Optional) Baseline Correction -> Peak Detection ->
    Band Matching / Verdict -> (Optional) Peak Shape Fits.

    Holds configuration only. The spectrum is passed into every call and
    each stage returns a new value.
    """

    def __init__(
        self,
        detection: Optional[PeakConfig] = None,
        baseline: Optional[BaselineCorrector] = None,
        fit_config: Optional[FitConfig] = None,
        preprocess_config: Optional[PreprocessConfig] = None,
        bands: Sequence[Band] = DEFAULT_BANDS,
    ):
        self.bands = tuple(bands)
        self.detection = detection or PeakConfig()
        # The default corrector excludes the same bands the peaks are matched against
        self.baseline = baseline or BaselineCorrector(
            BaselineConfig(exclude_ranges=[band.range for band in self.bands])
        )
        self.fit_config = fit_config or FitConfig()
        self.preprocess_config = preprocess_config or PreprocessConfig()

    @staticmethod
    def _as_spectrum(sample: SampleLike) -> Spectrum:
        if isinstance(sample, Spectrum):
            return sample
        if isinstance(sample, pd.DataFrame):
            if X_COLUMN not in sample.columns:
                raise ValueError(f"Input DataFrame must contain '{X_COLUMN}' column.")
            return spectrum_from_frame(sample)
        raise TypeError(f"Expected a Spectrum or a DataFrame, got {type(sample).__name__}.")

    def _prefer_in_band(self) -> bool:
        if self.detection.prefer_in_band is not None:
            return bool(self.detection.prefer_in_band)
        return self.detection.mode == DetectionMode.DERIVATIVE

    # Single stages

    def detect(self, spectrum: Spectrum) -> List[Peak]:
        return detect_peaks(spectrum, self.detection)

    def correct_baseline(self, spectrum: Spectrum) -> BaselineResult:
        return self.baseline.run(spectrum)

    def fit(self, spectrum: Spectrum, peaks: Sequence[Peak]) -> List[Optional[FitResult]]:
        return fit_peaks(spectrum, peaks, self.fit_config)

    def residual(self, spectrum: Spectrum, window: float = DEFAULT_RESIDUAL_WINDOW) -> Spectrum:
        return residual_signal(spectrum, window)

    def classify(self, peaks: Sequence[Peak]):
        matches = match_bands(peaks, self.bands)
        return matches, decide_presence(matches)

    # Full run

    def run(
        self,
        sample: SampleLike,
        correct_baseline: bool = False,
        fit: bool = True,
    ) -> AnalysisResult:
        spectrum = preprocess(self._as_spectrum(sample), self.preprocess_config)

        # 1. Baseline correction replaces the active spectrum
        base_result = None
        if correct_baseline and len(spectrum) >= MIN_DETECTION_SAMPLES:
            base_result = self.correct_baseline(spectrum)
            spectrum = base_result.corrected

        # 2. Peaks, bands, verdict
        peaks = self.detect(spectrum)
        matches, verdict = self.classify(peaks)
        shortlist = top_peaks(peaks, self.bands, prefer_in_band=self._prefer_in_band())

        # 3. Shape fits on the same spectrum the peaks came from
        fits = self.fit(spectrum, peaks) if fit else []

        logger.info(
            "Analysed %d samples (%s mode): %d peaks, verdict=%r",
            len(spectrum), self.detection.mode.value, len(peaks), verdict.name,
        )

        return AnalysisResult(
            spectrum=spectrum,
            peaks=peaks,
            matches=matches,
            verdict=verdict,
            top_peaks=shortlist,
            fits=fits,
            baseline=base_result,
        )
