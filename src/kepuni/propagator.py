'''Batch two-body propagation with the universal variable formulation.

Orbit classification, seeding, Newton iteration and Lagrange reconstruction
are chained here behind a single ``propagate`` call.
'''

import logging
import numpy as np
import pandas as pd
from typing import Optional, Tuple, Union
from .batch import as_batch, column_dot, column_norm, to_rows
from .bodies import BodyParams, EARTH
from .config import config
from .exceptions import InvalidInputError
from .initial_guess import initial_guess
from .lagrange import lagrange_coefficients, reconstruct_state
from .regimes import RegimeMask, classify, energy_indicator, specific_energy
from .solver import solve_universal_anomaly

logger = logging.getLogger(__name__)


class PropagationResult:
    """
    Propagated positions and velocities of a batch.

    Unpacks as ``r_final, v_final = result``. All arrays are read-only.

    Attributes
    ----------
    r_final : np.ndarray
        3 x n propagated positions [km]
    v_final : np.ndarray
        3 x n propagated velocities [km/s]
    t : np.ndarray
        Elapsed time of each column [s]
    mu : float
        Gravitational parameter [km^3/s^2]
    regimes : RegimeMask
        Regime of each column, classified from the initial state
    iterations : np.ndarray
        Newton passes spent on each column
    residuals : np.ndarray
        Final |x_next - x| of each column
    converged : np.ndarray
        Boolean mask of columns that met the tolerance
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, r_final, v_final, t, mu, regimes, iterations,
                 residuals, converged):
        self._r_final = r_final
        self._v_final = v_final
        self._t = t
        self._mu = float(mu)
        self._regimes = regimes
        self._iterations = iterations
        self._residuals = residuals
        self._converged = converged
        for arr in (r_final, v_final, t, iterations, residuals, converged):
            arr.flags.writeable = False

    # ========== PROPERTY ACCESS ==========
    @property
    def r_final(self) -> np.ndarray:
        return self._r_final

    @property
    def v_final(self) -> np.ndarray:
        return self._v_final

    @property
    def t(self) -> np.ndarray:
        return self._t

    @property
    def mu(self) -> float:
        return self._mu

    @property
    def regimes(self) -> RegimeMask:
        return self._regimes

    @property
    def iterations(self) -> np.ndarray:
        return self._iterations

    @property
    def residuals(self) -> np.ndarray:
        return self._residuals

    @property
    def converged(self) -> np.ndarray:
        return self._converged

    @property
    def n(self) -> int:
        """Number of orbits in the batch."""
        return self._t.size

    # ========== UTILITY METHODS ==========
    def state(self, i: int) -> np.ndarray:
        """Propagated state [x, y, z, vx, vy, vz] of column i."""
        return np.concatenate((self._r_final[:, i], self._v_final[:, i]))

    def states(self) -> np.ndarray:
        """Propagated states as an n x 6 array."""
        return np.hstack((to_rows(self._r_final), to_rows(self._v_final)))

    def specific_energy(self) -> np.ndarray:
        """Specific orbital energy of each propagated column [km^2/s^2]."""
        return specific_energy(self._r_final, self._v_final, self._mu)

    def to_dataframe(self) -> pd.DataFrame:
        """
        Export the batch to a pandas DataFrame, one row per orbit.

        Returns
        -------
        pd.DataFrame
            Columns: orbit, t, regime, x, y, z, vx, vy, vz, iterations,
            converged
        """
        states = self.states()
        data = {
            'orbit': np.arange(self.n),
            't': self._t,
            'regime': self._regimes.labels(),
            'x': states[:, 0],
            'y': states[:, 1],
            'z': states[:, 2],
            'vx': states[:, 3],
            'vy': states[:, 4],
            'vz': states[:, 5],
            'iterations': self._iterations,
            'converged': self._converged,
        }
        return pd.DataFrame(data)

    # ========== SPECIAL METHODS ==========
    def __iter__(self):
        return iter((self._r_final, self._v_final))

    def __repr__(self):
        return (f"PropagationResult(n={self.n}, mu={self._mu:.6e}, "
                f"max_iterations={int(self._iterations.max())})")


def validate_batch(r0, v0, t, mu) -> Tuple[np.ndarray, np.ndarray, np.ndarray, float]:
    """
    Check and normalise a propagation batch.

    Parameters
    ----------
    r0, v0 : array_like
        Shape (3,) or (3, n) position [km] and velocity [km/s]
    t : array_like
        Scalar (broadcast to every column) or length-n elapsed times [s]
    mu : float or None
        Gravitational parameter; config.DEFAULT_MU if None

    Returns
    -------
    r0, v0, t, mu
        Float copies with r0, v0 as 3 x n and t as length n

    Raises
    ------
    InvalidInputError
        On any shape, finiteness or physical-validity problem
    """
    r0 = as_batch(r0, "r0").copy()
    v0 = as_batch(v0, "v0").copy()
    n = r0.shape[1]

    if n == 0:
        raise InvalidInputError("Batch must contain at least one orbit")
    if v0.shape != r0.shape:
        raise InvalidInputError(
            f"r0 and v0 must have the same shape, got {r0.shape} and {v0.shape}"
        )

    t = np.asarray(t, dtype=float)
    if t.ndim == 0:
        t = np.full(n, float(t))
    elif t.ndim == 1 and t.size == n:
        t = t.copy()
    else:
        raise InvalidInputError(
            f"t must be a scalar or have length {n}, got shape {t.shape}"
        )

    if mu is None:
        mu = config.DEFAULT_MU
    try:
        mu = float(mu)
    except (TypeError, ValueError) as err:
        raise InvalidInputError(f"mu must be a real number, got {mu!r}") from err
    if not np.isfinite(mu) or mu <= 0:
        raise InvalidInputError(f"Gravitational parameter must be positive, got {mu}")

    for name, arr in (("r0", r0), ("v0", v0)):
        bad = ~np.all(np.isfinite(arr), axis=0)
        if np.any(bad):
            raise InvalidInputError(
                f"{name} contains NaN or Inf in columns {np.flatnonzero(bad).tolist()}"
            )
    bad = ~np.isfinite(t)
    if np.any(bad):
        raise InvalidInputError(
            f"t contains NaN or Inf in columns {np.flatnonzero(bad).tolist()}"
        )

    zero = column_norm(r0) == 0.0
    if np.any(zero):
        raise InvalidInputError(
            f"r0 has zero magnitude in columns {np.flatnonzero(zero).tolist()}"
        )

    return r0, v0, t, mu


def propagate(r0, v0, t, mu: Optional[float] = None, *,
              tolerance: Optional[float] = None,
              max_iterations: Optional[int] = None,
              regime_threshold: Optional[float] = None) -> PropagationResult:
    """
    Propagate a batch of two-body orbits by elapsed times t.

    Works uniformly for elliptical, parabolic and hyperbolic orbits. Each
    column is an independent problem.

    Parameters
    ----------
    r0 : array_like
        Initial positions, shape (3,) or (3, n) [km]
    v0 : array_like
        Initial velocities, same shape as r0 [km/s]
    t : float or array_like
        Elapsed time per column, negative to propagate backward [s]
    mu : float, optional
        Gravitational parameter [km^3/s^2]. Defaults to config.DEFAULT_MU.
    tolerance : float, optional
        Newton convergence tolerance. Defaults to config.TOLERANCE.
    max_iterations : int, optional
        Newton iteration cap. Defaults to config.MAX_ITERATIONS.
    regime_threshold : float, optional
        Parabolic band half-width. Defaults to config.REGIME_THRESHOLD.

    Returns
    -------
    PropagationResult
        Propagated batch; unpacks as ``r_final, v_final``

    Raises
    ------
    InvalidInputError
        If the batch is malformed (checked before iterating)
    NumericalDegenerateError
        If the iteration produced a non-finite value
    NonConvergenceError
        If the iteration cap was reached

    Examples
    --------
    >>> import numpy as np
    >>> from kepuni import propagate
    >>> r, v = propagate([7000.0, 0.0, 0.0], [0.0, 7.546, 0.0], 600.0)
    >>> r.shape
    (3, 1)
    """
    r0, v0, t, mu = validate_batch(r0, v0, t, mu)

    r0_mag = column_norm(r0)
    alpha = energy_indicator(r0, v0, mu)
    regimes = classify(alpha, regime_threshold)
    logger.debug("Propagating %r", regimes)

    x0 = initial_guess(r0, v0, t, mu, alpha, regimes)
    solution = solve_universal_anomaly(
        x0, alpha, r0_mag, column_dot(r0, v0), t, mu,
        tolerance=tolerance, max_iterations=max_iterations,
    )
    coeffs = lagrange_coefficients(solution, r0_mag, t, mu)
    r_final, v_final = reconstruct_state(r0, v0, coeffs)

    return PropagationResult(r_final, v_final, t, mu, regimes,
                             solution.iterations, solution.residuals,
                             solution.converged)


class UniversalPropagator:
    """
    Reusable two-body propagator bound to a central body.

    Parameters
    ----------
    body : BodyParams or float, optional
        Central body, or a bare gravitational parameter [km^3/s^2] for a
        body with no known radius.
        Default is EARTH.
    tolerance : float, optional
        Newton tolerance for every call; config.TOLERANCE if None
    max_iterations : int, optional
        Newton iteration cap for every call; config.MAX_ITERATIONS if None

    Examples
    --------
    >>> from kepuni import UniversalPropagator, MARS
    >>> prop = UniversalPropagator(MARS)
    >>> r, v = prop.propagate([4000.0, 0, 0], [0, 3.3, 0], 3600.0)
    """
    def __init__(self, body: Union[BodyParams, float] = EARTH,
                 tolerance: Optional[float] = None,
                 max_iterations: Optional[int] = None):
        if not isinstance(body, BodyParams):
            body = BodyParams(mu=float(body))
        self._body = body
        self._tolerance = tolerance
        self._max_iterations = max_iterations

    @property
    def body(self) -> BodyParams:
        return self._body

    @property
    def mu(self) -> float:
        """Gravitational parameter of the central body [km^3/s^2]."""
        return self._body.mu

    @property
    def tolerance(self) -> Optional[float]:
        return self._tolerance

    @property
    def max_iterations(self) -> Optional[int]:
        return self._max_iterations

    def propagate(self, r0, v0, t) -> PropagationResult:
        """Propagate a batch about this body; see :func:`propagate`."""
        return propagate(r0, v0, t, self.mu,
                         tolerance=self._tolerance,
                         max_iterations=self._max_iterations)

    def __repr__(self):
        name = self._body.name or "unnamed"
        return f"UniversalPropagator(body='{name}', mu={self.mu:.6e} km³/s²)"
