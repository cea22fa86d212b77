"""
Newton-Raphson solution of Kepler's equation in universal variables.

For every column the iteration refines x until

    sqrt(mu) t = x^3 c3 + (r0.v0/sqrt(mu)) x^2 c2 + |r0| x (1 - psi c3)

holds to within the tolerance on successive updates. The whole batch is
iterated together; a column is frozen once its own update falls below the
tolerance, or stops shrinking at the level of floating-point noise, so its
result does not depend on the other columns.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional
from .config import config
from .exceptions import (
    InvalidInputError, NonConvergenceError, NumericalDegenerateError
)
from .stumpff import c2c3
from .utils import validation_error

logger = logging.getLogger(__name__)

# A step that stops shrinking within this many ulps of x is accepted
_STALL_ULPS = 64


@dataclass(frozen=True, eq=False)
class UniversalAnomalySolution:
    """
    Converged universal anomaly and the quantities of its last Newton pass.

    Attributes
    ----------
    x : np.ndarray
        Universal anomaly after the final update [sqrt(km)]
    psi : np.ndarray
        Stumpff argument of the last pass
    c2, c3 : np.ndarray
        Stumpff functions of the last pass
    r : np.ndarray
        Radius estimate of the last pass [km]
    iterations : np.ndarray
        Newton passes performed on each column
    residuals : np.ndarray
        Last |x_next - x| of each column
    converged : np.ndarray
        Boolean mask of columns that met the tolerance
    """
    x: np.ndarray
    psi: np.ndarray
    c2: np.ndarray
    c3: np.ndarray
    r: np.ndarray
    iterations: np.ndarray
    residuals: np.ndarray
    converged: np.ndarray


def solve_universal_anomaly(
    x0: np.ndarray,
    alpha: np.ndarray,
    r0_mag: np.ndarray,
    r0_dot_v0: np.ndarray,
    t: np.ndarray,
    mu: float,
    tolerance: Optional[float] = None,
    max_iterations: Optional[int] = None,
) -> UniversalAnomalySolution:
    """
    Refine universal anomaly seeds for a batch of orbits.

    Parameters
    ----------
    x0 : np.ndarray
        Seed of each column [sqrt(km)]
    alpha : np.ndarray
        Energy indicator of each column [1/km]
    r0_mag : np.ndarray
        Initial radius of each column [km]
    r0_dot_v0 : np.ndarray
        r0 . v0 of each column [km^2/s]
    t : np.ndarray
        Elapsed time of each column [s]
    mu : float
        Gravitational parameter [km^3/s^2]
    tolerance : float, optional
        Convergence tolerance. Defaults to config.TOLERANCE.
    max_iterations : int, optional
        Iteration cap. Defaults to config.MAX_ITERATIONS.

    Returns
    -------
    UniversalAnomalySolution

    Raises
    ------
    NumericalDegenerateError
        If an update is NaN or infinite
    NonConvergenceError
        If columns remain above tolerance after max_iterations passes
        (a RuntimeWarning instead when config.STRICT_VALIDATION is False)
    """
    if tolerance is None:
        tolerance = config.TOLERANCE
    if max_iterations is None:
        max_iterations = config.MAX_ITERATIONS
    if max_iterations < 1:
        raise InvalidInputError(f"max_iterations must be at least 1, got {max_iterations}")

    sqrt_mu = np.sqrt(mu)
    dr0v0_smu = r0_dot_v0 / sqrt_mu
    smu_t = t * sqrt_mu

    n = x0.size
    x = np.array(x0, dtype=float)
    psi = np.zeros(n)
    c2 = np.full(n, 0.5)
    c3 = np.full(n, 1.0 / 6.0)
    r = np.array(r0_mag, dtype=float)
    iterations = np.zeros(n, dtype=int)
    residuals = np.full(n, np.inf)

    active = np.arange(n)
    passes = 0
    while active.size and passes < max_iterations:
        passes += 1
        xa = x[active]
        x2 = xa * xa
        x3 = x2 * xa
        psi_a = x2 * alpha[active]
        c2_a, c3_a = c2c3(psi_a)

        with np.errstate(over='ignore', invalid='ignore', divide='ignore'):
            x_omp_c3 = xa * (1.0 - psi_a * c3_a)
            x2_c2 = x2 * c2_a
            r_a = (x2_c2 + dr0v0_smu[active] * x_omp_c3
                   + r0_mag[active] * (1.0 - psi_a * c2_a))
            xn = xa + (smu_t[active] - x3 * c3_a - dr0v0_smu[active] * x2_c2
                       - r0_mag[active] * x_omp_c3) / r_a

        bad = ~np.isfinite(xn)
        if np.any(bad):
            cols = active[bad]
            raise NumericalDegenerateError(
                f"Universal anomaly became non-finite on pass {passes} "
                f"for columns {cols.tolist()}",
                columns=cols,
            )

        error = np.abs(xn - xa)
        # Rounding noise can leave the step bouncing a few ulps above tolerance
        stalled = ((error >= residuals[active])
                   & (error <= _STALL_ULPS * np.spacing(np.abs(xn))))
        x[active] = xn
        psi[active] = psi_a
        c2[active] = c2_a
        c3[active] = c3_a
        r[active] = r_a
        iterations[active] = passes
        residuals[active] = error

        active = active[(error > tolerance) & ~stalled]

    converged = np.ones(n, dtype=bool)
    converged[active] = False
    if active.size:
        validation_error(NonConvergenceError(
            f"Universal anomaly did not converge to {tolerance} within "
            f"{max_iterations} iterations for columns {active.tolist()}",
            columns=active,
            iterations=passes,
            residuals=residuals[active],
        ))
    logger.debug("Universal anomaly solved for %d columns in %d passes", n, passes)

    return UniversalAnomalySolution(x, psi, c2, c3, r, iterations,
                                    residuals, converged)
