"""
Starting values of the universal anomaly for the Newton iteration.

Each regime gets its own closed-form seed, computed on the columns gathered
by its mask and scattered into a fresh output array:

- elliptic:   x0 = sqrt(mu) * t * alpha
- hyperbolic: x0 = sign(t) * sqrt(-a) * ln(-2 mu alpha t /
                   (r0.v0 + sign(t) sqrt(-mu a) (1 - |r0| alpha)))
- parabolic:  Barker's equation, cot(2s) = 3 sqrt(mu/p^3) t,
              tan^3(w) = tan(s), x0 = 2 sqrt(p) cot(2w)

Columns with t == 0 are seeded at exactly zero, and sign(0) is taken as +1.
"""

import logging
import numpy as np
from .batch import column_cross, column_dot, column_norm
from .regimes import RegimeMask

logger = logging.getLogger(__name__)


def _sign(t: np.ndarray) -> np.ndarray:
    """Sign of t with sign(0) = +1."""
    return np.where(t < 0.0, -1.0, 1.0)


def elliptic_seed(t: np.ndarray, alpha: np.ndarray, mu: float) -> np.ndarray:
    """Seed for elliptical and circular columns."""
    return np.sqrt(mu) * t * alpha


def hyperbolic_seed(r0: np.ndarray, v0: np.ndarray, t: np.ndarray,
                    alpha: np.ndarray, mu: float) -> np.ndarray:
    """
    Seed for hyperbolic columns.

    The log argument is negative for some inbound geometries; those entries
    come back as NaN and are replaced by the caller.
    """
    a = 1.0 / alpha
    sgn = _sign(t)
    dot = column_dot(r0, v0)
    r0_mag = column_norm(r0)
    with np.errstate(divide='ignore', invalid='ignore'):
        denom = dot + sgn * np.sqrt(-mu * a) * (1.0 - r0_mag * alpha)
        return sgn * np.sqrt(-a) * np.log(-2.0 * mu * alpha * t / denom)


def parabolic_seed(r0: np.ndarray, v0: np.ndarray, t: np.ndarray,
                   mu: float) -> np.ndarray:
    """
    Seed for near-parabolic columns from Barker's equation.

    Uses the semi-latus rectum p = |r0 x v0|^2 / mu. Rectilinear columns
    (p = 0) come back non-finite and are replaced by the caller.
    """
    h = column_cross(r0, v0)
    p = column_norm(h)**2 / mu
    with np.errstate(divide='ignore', invalid='ignore'):
        # arctan2(1, y) is arccot(y) on (0, pi), continuous through y = 0
        s = 0.5 * np.arctan2(1.0, 3.0 * np.sqrt(mu / p**3) * t)
        w = np.arctan(np.cbrt(np.tan(s)))
        return np.sqrt(p) * 2.0 / np.tan(2.0 * w)


def fallback_seed(r0_mag: np.ndarray, t: np.ndarray, mu: float) -> np.ndarray:
    """First-order seed x0 = sqrt(mu) * t / |r0|, valid in every regime."""
    return np.sqrt(mu) * t / r0_mag


def initial_guess(r0: np.ndarray, v0: np.ndarray, t: np.ndarray, mu: float,
                  alpha: np.ndarray, regimes: RegimeMask) -> np.ndarray:
    """
    Seed the universal anomaly of every column of a batch.

    Parameters
    ----------
    r0, v0 : np.ndarray
        3 x n initial position [km] and velocity [km/s]
    t : np.ndarray
        Elapsed time of each column [s]
    mu : float
        Gravitational parameter [km^3/s^2]
    alpha : np.ndarray
        Energy indicator of each column [1/km]
    regimes : RegimeMask
        Regime partition of the batch

    Returns
    -------
    np.ndarray
        Seed x0 of each column [sqrt(km)]
    """
    x0 = np.zeros(t.size)

    ell = regimes.elliptic
    if np.any(ell):
        x0[ell] = elliptic_seed(t[ell], alpha[ell], mu)

    par = regimes.parabolic
    if np.any(par):
        x0[par] = parabolic_seed(r0[:, par], v0[:, par], t[par], mu)

    hyp = regimes.hyperbolic
    if np.any(hyp):
        x0[hyp] = hyperbolic_seed(r0[:, hyp], v0[:, hyp], t[hyp], alpha[hyp], mu)

    x0[t == 0.0] = 0.0

    bad = ~np.isfinite(x0)
    if np.any(bad):
        logger.debug("Falling back to first-order seed for columns %s",
                     np.flatnonzero(bad).tolist())
        x0[bad] = fallback_seed(column_norm(r0[:, bad]), t[bad], mu)

    return x0
