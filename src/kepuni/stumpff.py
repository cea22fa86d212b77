"""
Stumpff functions c2(psi) and c3(psi).

    psi > 0:   c2 = (1 - cos(sqrt(psi))) / psi
               c3 = (sqrt(psi) - sin(sqrt(psi))) / psi**1.5
    psi < 0:   c2 = (1 - cosh(sqrt(-psi))) / psi
               c3 = (sinh(sqrt(-psi)) - sqrt(-psi)) / (-psi)**1.5
    psi ~ 0:   c2 = 1/2, c3 = 1/6

Each branch is evaluated only on the entries that belong to it and
scattered back into fresh output arrays. c2 is computed as 2 sin^2(sqrt(psi)/2) / psi
(and its sinh counterpart), and c3 from its Taylor series for small |psi|,
so neither loses digits to cancellation just outside the near-zero band.
"""

import numpy as np
from typing import Optional, Tuple
from .config import config

# Below this |psi| c3 is summed from its Taylor series
_C3_SERIES_LIMIT = 0.1

# 1/(2k+3)! for k = 0..7
_C3_COEFFS = (
    1.0 / 6.0,
    1.0 / 120.0,
    1.0 / 5040.0,
    1.0 / 362880.0,
    1.0 / 39916800.0,
    1.0 / 6227020800.0,
    1.0 / 1307674368000.0,
    1.0 / 355687428096000.0,
)


def _c3_series(psi: np.ndarray) -> np.ndarray:
    """c3 = sum_k (-psi)**k / (2k+3)!, by Horner's rule."""
    acc = np.zeros_like(psi)
    for coeff in reversed(_C3_COEFFS):
        acc = coeff - psi * acc
    return acc


def c2c3(psi, threshold: Optional[float] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Evaluate the Stumpff functions c2 and c3 elementwise.

    Parameters
    ----------
    psi : array_like
        Stumpff argument x**2 * alpha
    threshold : float, optional
        Half-width of the band around zero where the series limits are
        returned. Defaults to config.STUMPFF_THRESHOLD.

    Returns
    -------
    c2, c3 : np.ndarray
        Arrays with the same shape as psi

    Notes
    -----
    The trigonometric branch is finite for every finite psi. The hyperbolic
    branch overflows to inf once sqrt(-psi) exceeds ~710; callers are
    expected to check the finiteness of anything built from it.
    """
    if threshold is None:
        threshold = config.STUMPFF_THRESHOLD
    psi = np.asarray(psi, dtype=float)
    shape = psi.shape
    psi = np.atleast_1d(psi)

    c2 = np.full(psi.shape, 0.5)
    c3 = np.full(psi.shape, 1.0 / 6.0)

    ell = psi > threshold
    if np.any(ell):
        p = psi[ell]
        sp = np.sqrt(p)
        c2[ell] = 2.0 * np.sin(0.5 * sp)**2 / p
        c3[ell] = (sp - np.sin(sp)) / (sp * p)

    hyp = psi < -threshold
    if np.any(hyp):
        p = psi[hyp]
        sp = np.sqrt(-p)
        with np.errstate(over='ignore', invalid='ignore'):
            c2[hyp] = -2.0 * np.sinh(0.5 * sp)**2 / p
            c3[hyp] = (np.sinh(sp) - sp) / (sp * -p)

    # sqrt(psi) - sin(sqrt(psi)) cancels for small |psi|
    small = (np.abs(psi) > threshold) & (np.abs(psi) < _C3_SERIES_LIMIT)
    if np.any(small):
        c3[small] = _c3_series(psi[small])

    return c2.reshape(shape), c3.reshape(shape)
