'''Numerical two-body reference propagation.

Integrates the point-mass equations of motion with Heyoka's Taylor method,
independently of the universal-variable solution, so analytic results can
be cross-checked against a trusted numerical trajectory.
'''

import numpy as np
import heyoka as hy
from typing import Optional, Tuple
from .batch import as_batch, column_norm
from .config import config
from .exceptions import InvalidInputError, NumericalDegenerateError


def build_two_body_eom():
    """
    Build symbolic Heyoka equations of motion for the point-mass problem.

    Returns
    -------
    list of (var, rhs) tuples
        State order [x, y, z, vx, vy, vz] (km, km/s)

    Notes
    -----
    The gravitational parameter enters as ``hy.par[0]`` so one compiled
    integrator serves any central body.
    """
    x, y, z, vx, vy, vz = hy.make_vars("x", "y", "z", "vx", "vy", "vz")
    mu = hy.par[0]
    r = hy.sqrt(x**2 + y**2 + z**2)
    return [
        (x, vx),
        (y, vy),
        (z, vz),
        (vx, -mu * x / r**3),
        (vy, -mu * y / r**3),
        (vz, -mu * z / r**3),
    ]


class ReferenceIntegrator:
    """
    Heyoka Taylor integrator for the two-body problem with the same batch
    contract as :func:`kepuni.propagate`.

    Parameters
    ----------
    mu : float, optional
        Gravitational parameter [km^3/s^2]. Defaults to config.DEFAULT_MU.
    tol : float, optional
        Integrator tolerance; Heyoka's default (machine epsilon) if None.
    compile : bool, optional
        If True (default), compile immediately. Otherwise compilation is
        deferred until the first propagation.
    """
    def __init__(self, mu: Optional[float] = None, tol: Optional[float] = None,
                 compile: bool = True):
        if mu is None:
            mu = config.DEFAULT_MU
        mu = float(mu)
        if not np.isfinite(mu) or mu <= 0:
            raise InvalidInputError(f"Gravitational parameter must be positive, got {mu}")
        self._mu = mu
        self._tol = tol
        self._integrator = None
        if compile:
            self.compile()

    @property
    def mu(self) -> float:
        return self._mu

    @property
    def is_compiled(self) -> bool:
        return self._integrator is not None

    def compile(self):
        """
        Compile the integrator if not already compiled.

        This performs automatic differentiation and LLVM compilation, which
        takes a few seconds.

        Returns
        -------
        self
            Returns self for method chaining
        """
        if self._integrator is not None:
            return self
        kwargs = {}
        if self._tol is not None:
            kwargs['tol'] = self._tol
        self._integrator = hy.taylor_adaptive(
            sys=build_two_body_eom(),
            state=[0.0] * 6,  # Dummy state
            pars=[self._mu],
            **kwargs
        )
        return self

    def propagate(self, r0, v0, t) -> Tuple[np.ndarray, np.ndarray]:
        """
        Integrate each column of a batch by its elapsed time.

        Parameters
        ----------
        r0, v0 : array_like
            Shape (3,) or (3, n) position [km] and velocity [km/s]
        t : float or array_like
            Scalar or length-n elapsed times [s]

        Returns
        -------
        r_final, v_final : np.ndarray
            3 x n integrated position and velocity

        Raises
        ------
        InvalidInputError
            If the batch is malformed
        NumericalDegenerateError
            If the integration produced non-finite states
        """
        r0 = as_batch(r0, "r0")
        v0 = as_batch(v0, "v0")
        if r0.shape != v0.shape:
            raise InvalidInputError(
                f"r0 and v0 must have the same shape, got {r0.shape} and {v0.shape}"
            )
        n = r0.shape[1]
        t = np.broadcast_to(np.asarray(t, dtype=float), (n,))
        if np.any(column_norm(r0) == 0.0):
            raise InvalidInputError("r0 has zero-magnitude columns")

        self.compile()
        ta = self._integrator
        r_final = np.empty_like(r0)
        v_final = np.empty_like(v0)
        for i in range(n):
            ta.time = 0.0
            ta.state[:] = np.concatenate((r0[:, i], v0[:, i]))
            # Propagate until ending time (backward if negative)
            ta.propagate_until(float(t[i]))
            if not np.all(np.isfinite(ta.state)):
                raise NumericalDegenerateError(
                    f"Integration failed: state became invalid for column {i}.\n"
                    f"Initial state: {r0[:, i]}, {v0[:, i]}\n"
                    f"Final time: {ta.time}\n"
                    f"Likely cause: trajectory passes through the central body",
                    columns=[i],
                )
            r_final[:, i] = ta.state[:3]
            v_final[:, i] = ta.state[3:]
        return r_final, v_final

    def __repr__(self):
        status = "compiled" if self.is_compiled else "not compiled"
        return f"ReferenceIntegrator(mu={self._mu:.6e} km³/s², {status})"
