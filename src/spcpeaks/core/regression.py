"""
Closed-form quadratic least squares shared by the Savitzky-Golay smoother and
the baseline corrector.
"""

from typing import Optional, Tuple

import numpy as np

Coeffs = Tuple[float, float, float]


def quadratic_moments(t: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the normal equations of ``y ~ a + b*t + c*t**2``.

    Returns the 3x3 moment matrix [[S0, S1, S2], [S1, S2, S3], [S2, S3, S4]]
    and the right-hand side [Ty0, Ty1, Ty2].
    """
    t = np.asarray(t, dtype=float)
    y = np.asarray(y, dtype=float)
    t2 = t * t
    s0 = float(t.size)
    s1 = float(np.sum(t))
    s2 = float(np.sum(t2))
    s3 = float(np.sum(t2 * t))
    s4 = float(np.sum(t2 * t2))
    A = np.array([[s0, s1, s2], [s1, s2, s3], [s2, s3, s4]])
    b = np.array([np.sum(y), np.sum(y * t), np.sum(y * t2)], dtype=float)
    return A, b


def solve3(A: np.ndarray, b: np.ndarray, tol: float) -> Optional[Coeffs]:
    """
    Solve a 3x3 system through its explicit adjugate inverse.

    Returns None when ``|det(A)| < tol`` so callers can pick their own fallback.
    """
    (a00, a01, a02), (a10, a11, a12), (a20, a21, a22) = np.asarray(A, dtype=float)
    det = (
        a00 * (a11 * a22 - a12 * a21)
        - a01 * (a10 * a22 - a12 * a20)
        + a02 * (a10 * a21 - a11 * a20)
    )
    if not abs(det) >= tol:
        return None
    inv = np.array([
        [a11 * a22 - a12 * a21, a02 * a21 - a01 * a22, a01 * a12 - a02 * a11],
        [a12 * a20 - a10 * a22, a00 * a22 - a02 * a20, a02 * a10 - a00 * a12],
        [a10 * a21 - a11 * a20, a01 * a20 - a00 * a21, a00 * a11 - a01 * a10],
    ]) / det
    a, b1, c = inv @ np.asarray(b, dtype=float)
    return float(a), float(b1), float(c)
