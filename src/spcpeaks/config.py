import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple


# Robust (prominence/width) detector
DEFAULT_MIN_PROMINENCE_ROBUST: float = 0.008
DEFAULT_PROMINENCE_FACTOR_ROBUST: float = 0.6
DEFAULT_MIN_WIDTH_ROBUST: float = 8.0
DEFAULT_MIN_POINTS_PER_PEAK: int = 7
DEFAULT_POINTS_PER_PEAK_FRACTION: float = 0.002
DEFAULT_MIN_DISTANCE_PTS: int = 5

# Derivative + matched-filter detector
DEFAULT_MIN_PROMINENCE_DERIV: float = 0.006
DEFAULT_PROMINENCE_FACTOR_DERIV: float = 0.5
DEFAULT_MIN_WIDTH_DERIV: float = 6.0
DEFAULT_TARGET_FWHM: float = 18.0
DEFAULT_PRE_SMOOTH_WIDTH: float = 12.0
DEFAULT_CURVATURE_THRESHOLD: float = -0.002
DEFAULT_MF_THRESHOLD: float = 0.25
DEFAULT_MIN_SEPARATION: float = 6.0
DEFAULT_SEPARATION_FWHM_FRACTION: float = 0.6

# Both detectors need at least this many samples
MIN_DETECTION_SAMPLES: int = 5

DEFAULT_BASELINE_MIN_POINTS: int = 20
DEFAULT_FIT_HALF_WINDOW: float = 20.0
DEFAULT_FIT_MIN_POINTS: int = 7
DEFAULT_RESIDUAL_WINDOW: float = 100.0


class DetectionMode(str, Enum):
    ROBUST = "robust"
    DERIVATIVE = "deriv"


def _is_number(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def finite_or_default(value, default):
    """Return ``float(value)`` when it is a finite number, else ``default``."""
    return float(value) if _is_number(value) else default


def positive_or_default(value, default, minimum: float = 0.0):
    """
    Return ``float(value)`` when it is finite and strictly above ``minimum``.
    Anything else (None, NaN, inf, zero, negatives) falls back to ``default``.
    """
    if _is_number(value) and float(value) > minimum:
        return float(value)
    return default


def resolve_x_range(x_range) -> Optional[Tuple[float, float]]:
    """Accept an (x_min, x_max) pair only if both ends are finite and ordered."""
    if x_range is None:
        return None
    try:
        low, high = x_range
    except (TypeError, ValueError):
        return None
    if not (_is_number(low) and _is_number(high)):
        return None
    low, high = float(low), float(high)
    if not high > low:
        return None
    return (low, high)


@dataclass
class PeakConfig:
    """
    Per-call peak detection settings.

    Every numeric override defaults to None, meaning "use the automatic
    choice or the documented default for the selected mode".
    """

    mode: DetectionMode = DetectionMode.ROBUST
    x_range: Optional[Tuple[float, float]] = None

    # Shared
    min_prominence: Optional[float] = None
    min_width: Optional[float] = None

    # Robust detector
    min_distance: Optional[int] = None
    points_per_peak: Optional[float] = None

    # Derivative + matched-filter detector
    target_fwhm: Optional[float] = None
    pre_smooth_width: Optional[float] = None
    curvature_threshold: Optional[float] = None
    mf_threshold: Optional[float] = None
    min_separation: Optional[float] = None

    # Display policy for the "top peaks" list; None follows the mode
    prefer_in_band: Optional[bool] = None

    def __post_init__(self):
        self.mode = DetectionMode(self.mode)


@dataclass
class BaselineConfig:
    """Configuration for quadratic baseline correction."""

    # None -> ranges of the default band catalog; () -> fit every sample
    exclude_ranges: Optional[Sequence[Tuple[float, float]]] = None

    # Below this many surviving samples the exclusion is ignored
    min_points: int = DEFAULT_BASELINE_MIN_POINTS


@dataclass
class FitConfig:
    """Configuration for the per-peak Gaussian/Lorentz estimator."""

    half_window: float = DEFAULT_FIT_HALF_WINDOW
    min_points: int = DEFAULT_FIT_MIN_POINTS


@dataclass
class PreprocessConfig:
    """Optional transforms applied before analysis."""

    normalize: bool = False
    invert_x: bool = False

    # 0 disables Savitzky-Golay smoothing
    smooth_level: int = 0
