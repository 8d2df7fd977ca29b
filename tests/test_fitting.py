import math

import pytest
import numpy as np

from spcpeaks.config import FitConfig
from spcpeaks.core.fitting import (
    PeakGuess,
    PeakShape,
    fit_peak,
    fit_peaks,
    gaussian,
    gaussian_params,
    initial_peak_guess,
    lorentz_params,
    lorentzian,
)
from spcpeaks.core.spectrum import Peak, Spectrum

# =====================================================================
# Fixtures
# =====================================================================

def peak_at(x):
    return Peak(x=x, y=1.0, prominence=1.0, width=20.0, index=0)


@pytest.fixture
def x_fine():
    return np.arange(900.0, 1100.5, 0.5)


@pytest.fixture
def gauss_spectrum(x_fine):
    return Spectrum(x_fine, gaussian(x_fine, 1000.0, 1.0, 20.0))


@pytest.fixture
def lorentz_spectrum(x_fine):
    return Spectrum(x_fine, lorentzian(x_fine, 1000.0, 1.0, 20.0))

# =====================================================================
# Models and closed-form parameters
# =====================================================================

def test_models_are_half_height_at_half_fwhm():
    assert gaussian(1010.0, 1000.0, 2.0, 20.0) == pytest.approx(1.0)
    assert lorentzian(1010.0, 1000.0, 2.0, 20.0) == pytest.approx(1.0)


def test_closed_form_areas():
    guess = PeakGuess(pos=0.0, height=2.0, fwhm=10.0)

    g_fwhm, g_area = gaussian_params(guess)
    sigma = 10.0 / (2.0 * math.sqrt(2.0 * math.log(2.0)))
    assert g_fwhm == pytest.approx(10.0)
    assert g_area == pytest.approx(2.0 * sigma * math.sqrt(2.0 * math.pi))

    l_fwhm, l_area = lorentz_params(guess)
    assert l_fwhm == pytest.approx(10.0)
    assert l_area == pytest.approx(math.pi * 2.0 * 5.0)


def test_zero_width_is_floored():
    g_fwhm, g_area = gaussian_params(PeakGuess(pos=0.0, height=1.0, fwhm=0.0))
    assert g_fwhm > 0 and g_area > 0
    assert np.all(np.isfinite(lorentzian(np.array([0.0, 1.0]), 0.0, 1.0, 0.0)))

# =====================================================================
# Initial guess
# =====================================================================

def test_initial_guess_first_maximum():
    guess = initial_peak_guess(np.array([0.0, 1.0, 2.0, 3.0]), np.array([0.0, 1.0, 1.0, 0.0]))
    assert guess.pos == 1.0
    assert guess.height == 1.0
    assert guess.fwhm == pytest.approx(1.0)


def test_initial_guess_walks_outward_from_maximum():
    """A second bump above half height beyond a dip must not widen the estimate."""
    xs = np.arange(7.0)
    ys = np.array([0.9, 0.2, 0.6, 1.0, 0.6, 0.2, 0.0])
    guess = initial_peak_guess(xs, ys)
    assert guess.pos == 3.0
    assert guess.fwhm == pytest.approx(2.0)


def test_initial_guess_single_sample_peak():
    guess = initial_peak_guess(np.array([0.0, 1.0, 2.0]), np.array([0.0, 1.0, 0.0]))
    assert guess.fwhm == pytest.approx(1e-6)

# =====================================================================
# Per-peak fits
# =====================================================================

def test_fit_gaussian_peak(gauss_spectrum):
    result = fit_peak(gauss_spectrum, peak_at(1000.0))

    assert result.kind is PeakShape.GAUSS
    assert result.pos == pytest.approx(1000.0)
    assert result.height == pytest.approx(1.0)
    assert result.fwhm == pytest.approx(20.0, abs=1.0)
    assert result.peak_x == 1000.0
    assert result.sse >= 0.0
    sigma = result.fwhm / (2.0 * math.sqrt(2.0 * math.log(2.0)))
    assert result.area == pytest.approx(result.height * sigma * math.sqrt(2.0 * math.pi))


def test_fit_lorentzian_peak(lorentz_spectrum):
    result = fit_peak(lorentz_spectrum, peak_at(1000.0))

    assert result.kind is PeakShape.LORENTZ
    assert result.fwhm == pytest.approx(20.0)
    assert result.area == pytest.approx(math.pi * 10.0)
    assert result.sse == pytest.approx(0.0, abs=1e-20)


def test_fit_needs_enough_samples():
    x = np.arange(900.0, 1101.0, 10.0)
    spec = Spectrum(x, gaussian(x, 1000.0, 1.0, 20.0))

    # +/-20 around 1000 holds only 5 samples
    assert fit_peak(spec, peak_at(1000.0)) is None
    assert fit_peak(spec, peak_at(1000.0), FitConfig(min_points=5)) is not None
    assert fit_peak(spec, peak_at(1000.0), FitConfig(half_window=40.0)) is not None


def test_fit_ignores_sample_order(gauss_spectrum):
    order = np.random.default_rng(2).permutation(len(gauss_spectrum))
    shuffled = Spectrum(gauss_spectrum.x[order], gauss_spectrum.y[order])
    assert fit_peak(shuffled, peak_at(1000.0)) == fit_peak(gauss_spectrum, peak_at(1000.0))


def test_fit_peaks_aligned_with_input(gauss_spectrum):
    results = fit_peaks(gauss_spectrum, [peak_at(1000.0), peak_at(5000.0), peak_at(990.0)])

    assert len(results) == 3
    assert results[0].peak_x == 1000.0
    assert results[1] is None
    assert results[2].peak_x == 990.0


def test_fit_peaks_empty(gauss_spectrum):
    assert fit_peaks(gauss_spectrum, []) == []


@pytest.mark.parametrize("min_points", [0.5, 0, -3, float("nan")])
def test_fit_empty_window_is_none(min_points):
    """A window with no samples never reaches the guess, whatever min_points says."""
    x = np.arange(100.0)
    spec = Spectrum(x, np.zeros_like(x))
    assert fit_peak(spec, peak_at(500.0), FitConfig(min_points=min_points)) is None


def test_fractional_min_points_rounds_up():
    x = np.arange(900.0, 1101.0, 10.0)
    spec = Spectrum(x, gaussian(x, 1000.0, 1.0, 20.0))

    # 5 samples in the window: 4.5 -> 5 fits, 5.5 -> 6 does not
    assert fit_peak(spec, peak_at(1000.0), FitConfig(min_points=4.5)) is not None
    assert fit_peak(spec, peak_at(1000.0), FitConfig(min_points=5.5)) is None
