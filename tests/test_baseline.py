import math

import pytest
import numpy as np

from spcpeaks.core.baseline import (
    polyfit2,
    eval_poly2,
    exclusion_mask,
    baseline_correction_core,
    BaselineCorrector,
)
from spcpeaks.core.bands import DEFAULT_BANDS
from spcpeaks.core.spectrum import Spectrum
from spcpeaks.config import BaselineConfig

# =====================================================================
# Fixtures
# =====================================================================

QUAD = (0.3, 2e-4, -3e-8)


@pytest.fixture
def wn():
    """Typical FTIR grid (ascending)."""
    return np.linspace(400, 4000, 1800)


@pytest.fixture
def quadratic_spectrum(wn):
    """Pure quadratic background, no features."""
    return Spectrum(wn, eval_poly2(QUAD, wn))


@pytest.fixture
def carbonyl_spectrum(wn):
    """Quadratic background plus a sharp band centred in the C=O range."""
    peak = np.exp(-0.5 * ((wn - 1725.0) / 5.0) ** 2)
    return Spectrum(wn, eval_poly2(QUAD, wn) + peak)

# =====================================================================
# Unit Tests: Helper Functions
# =====================================================================

def test_polyfit2_recovers_coefficients(wn):
    a, b, c = polyfit2(wn, eval_poly2(QUAD, wn))
    assert a == pytest.approx(QUAD[0], rel=1e-6)
    assert b == pytest.approx(QUAD[1], rel=1e-6)
    assert c == pytest.approx(QUAD[2], rel=1e-6)


def test_polyfit2_singular_returns_zero():
    x = np.full(25, 1500.0)
    assert polyfit2(x, np.arange(25.0)) == (0.0, 0.0, 0.0)


def test_polyfit2_empty_returns_zero():
    assert polyfit2(np.empty(0), np.empty(0)) == (0.0, 0.0, 0.0)


@pytest.mark.parametrize("x_val, expected", [
    (1000.0, True),   # between bands
    (1725.0, False),  # C=O
    (1700.0, False),  # inclusive lower bound
    (1750.0, False),  # inclusive upper bound
    (2000.0, True),
])
def test_exclusion_mask(x_val, expected):
    ranges = [(1700.0, 1750.0), (1050.0, 1150.0)]
    assert exclusion_mask(np.array([x_val]), ranges)[0] == expected


def test_exclusion_mask_no_ranges_keeps_everything(wn):
    assert exclusion_mask(wn, ()).all()

# =====================================================================
# Core correction
# =====================================================================

def test_quadratic_background_is_removed(quadratic_spectrum):
    result = baseline_correction_core(quadratic_spectrum, exclude_ranges=())

    assert np.allclose(result.baseline, quadratic_spectrum.y, atol=1e-9)
    assert np.allclose(result.corrected.y, 0.0, atol=1e-9)
    assert result.used_points == len(quadratic_spectrum)
    assert np.array_equal(result.corrected.x, quadratic_spectrum.x)


def test_band_exclusion_protects_the_band(carbonyl_spectrum):
    """Excluding the band keeps the peak out of the background estimate."""
    excluded = baseline_correction_core(
        carbonyl_spectrum, exclude_ranges=[b.range for b in DEFAULT_BANDS]
    )
    naive = baseline_correction_core(carbonyl_spectrum, exclude_ranges=())

    x = carbonyl_spectrum.x
    outside = exclusion_mask(x, [(1650.0, 1800.0)])
    at_peak = np.argmin(np.abs(x - 1725.0))

    assert np.allclose(excluded.corrected.y[outside], 0.0, atol=1e-4)
    assert excluded.corrected.y[at_peak] == pytest.approx(1.0, abs=1e-2)
    # Without exclusion the peak area leaks into the fitted background
    assert np.max(np.abs(naive.corrected.y[outside])) > np.max(np.abs(excluded.corrected.y[outside]))


def test_starved_exclusion_falls_back_to_all_points():
    x = np.linspace(1700, 1750, 30)
    spec = Spectrum(x, 0.01 * x)

    result = baseline_correction_core(spec, exclude_ranges=[(1690.0, 1760.0)], min_points=20)
    assert result.used_points == 30
    assert np.allclose(result.corrected.y, 0.0, atol=1e-9)


def test_singular_system_is_identity_correction():
    spec = Spectrum(np.full(25, 1234.0), np.linspace(0, 1, 25))
    result = baseline_correction_core(spec, exclude_ranges=())

    assert result.coeffs == (0.0, 0.0, 0.0)
    assert np.array_equal(result.corrected.y, spec.y)
    assert np.allclose(result.baseline, 0.0)

# =====================================================================
# Integration Tests: BaselineCorrector
# =====================================================================

def test_corrector_defaults_exclude_catalog_bands(carbonyl_spectrum):
    """No config -> the default band catalog ranges are excluded."""
    bc = BaselineCorrector(config=None)
    result = bc.run(carbonyl_spectrum)

    n_outside = int(exclusion_mask(carbonyl_spectrum.x, [b.range for b in DEFAULT_BANDS]).sum())
    assert result.used_points == n_outside
    at_peak = np.argmin(np.abs(carbonyl_spectrum.x - 1725.0))
    assert result.corrected.y[at_peak] == pytest.approx(1.0, abs=1e-2)


def test_corrector_validation(quadratic_spectrum):
    """Malformed configuration is rejected at the boundary."""
    bc = BaselineCorrector(BaselineConfig(exclude_ranges=[(1750.0, 1700.0)]))
    with pytest.raises(ValueError, match="expected order"):
        bc.run(quadratic_spectrum)

    bc.config.exclude_ranges = [("a", "b")]
    with pytest.raises(ValueError, match="Invalid exclusion range"):
        bc.run(quadratic_spectrum)

    bc.config.exclude_ranges = [(math.inf, 1.0)]
    with pytest.raises(ValueError, match="must be finite"):
        bc.run(quadratic_spectrum)


@pytest.mark.parametrize("min_points", [0, -5, float("nan"), None])
def test_invalid_min_points_falls_back_to_default(min_points):
    """Unusable min_points behaves like the default of 20 samples."""
    x = np.linspace(1700, 1750, 30)
    spec = Spectrum(x, 0.01 * x)
    cfg = BaselineConfig(exclude_ranges=[(1690.0, 1760.0)], min_points=min_points)

    result = BaselineCorrector(cfg).run(spec)
    assert result.used_points == 30
    assert np.allclose(result.corrected.y, 0.0, atol=1e-9)


def test_input_immutability(carbonyl_spectrum):
    """The input spectrum is never modified in place."""
    y_before = carbonyl_spectrum.y.copy()
    result = BaselineCorrector().run(carbonyl_spectrum)

    assert np.array_equal(carbonyl_spectrum.y, y_before)
    assert result.corrected is not carbonyl_spectrum
    with pytest.raises(ValueError):
        result.baseline[0] = 1.0
