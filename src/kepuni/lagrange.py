"""
Lagrange coefficients and state reconstruction.

The propagated state is a linear combination of the initial vectors:

    r = f r0 + g v0
    v = fdot r0 + gdot v0
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple
from .batch import scale_columns
from .config import config
from .solver import UniversalAnomalySolution


@dataclass(frozen=True, eq=False)
class LagrangeCoefficients:
    """Per-column f, g [s], fdot [1/s] and gdot."""
    f: np.ndarray
    g: np.ndarray
    fdot: np.ndarray
    gdot: np.ndarray


def lagrange_coefficients(solution: UniversalAnomalySolution,
                          r0_mag: np.ndarray, t: np.ndarray, mu: float,
                          legacy_fdot: Optional[bool] = None
                          ) -> LagrangeCoefficients:
    """
    Compute f, g, fdot, gdot from a converged universal anomaly.

    Parameters
    ----------
    solution : UniversalAnomalySolution
        Output of solve_universal_anomaly
    r0_mag : np.ndarray
        Initial radius of each column [km]
    t : np.ndarray
        Elapsed time of each column [s]
    mu : float
        Gravitational parameter [km^3/s^2]
    legacy_fdot : bool, optional
        Evaluate fdot with the legacy ``sqrt(mu)/r*r0`` precedence instead of
        ``sqrt(mu)/(r*r0)``. Defaults to config.LEGACY_FDOT.

    Notes
    -----
    The legacy form scales fdot by r0**2 relative to the canonical one and
    does not conserve energy; it exists to reproduce old outputs.
    """
    if legacy_fdot is None:
        legacy_fdot = config.LEGACY_FDOT
    sqrt_mu = np.sqrt(mu)
    xn = solution.x
    psi, c2, c3, r = solution.psi, solution.c2, solution.c3, solution.r
    xn2 = xn * xn

    f = 1.0 - xn2 * c2 / r0_mag
    g = t - xn2 * xn * c3 / sqrt_mu
    gdot = 1.0 - c2 * xn2 / r
    if legacy_fdot:
        fdot = xn * (psi * c3 - 1.0) * sqrt_mu / r * r0_mag
    else:
        fdot = xn * (psi * c3 - 1.0) * sqrt_mu / (r * r0_mag)

    return LagrangeCoefficients(f, g, fdot, gdot)


def reconstruct_state(r0: np.ndarray, v0: np.ndarray,
                      coeffs: LagrangeCoefficients
                      ) -> Tuple[np.ndarray, np.ndarray]:
    """
    Form the propagated 3 x n position and velocity batches.

    Outputs are newly allocated; r0 and v0 are not modified.
    """
    r_final = scale_columns(coeffs.f, r0) + scale_columns(coeffs.g, v0)
    v_final = scale_columns(coeffs.fdot, r0) + scale_columns(coeffs.gdot, v0)
    return r_final, v_final
