"""
Global Configuration for Kepuni Package
=======================================

This module provides package-wide configuration settings that users can modify
to control solver tolerances, regime thresholds, validation behavior, and
default plotting options.

Examples
--------
View current configuration:

>>> import kepuni
>>> print(kepuni.config)

Modify settings:

>>> kepuni.config.TOLERANCE = 1e-12  # Tighter Newton convergence
>>> kepuni.config.MAX_ITERATIONS = 500

Reset to defaults:

>>> kepuni.config.reset()

Temporarily modify settings:

>>> with kepuni.temp_config(MAX_ITERATIONS=5):
...     # Low iteration cap for this block only
...     result = kepuni.propagate(r0, v0, t)

Notes
-----
These settings affect package-wide behavior. Keyword arguments passed to
``propagate`` take precedence over the values stored here for that call.
"""

from dataclasses import dataclass
from contextlib import contextmanager


@dataclass
class KepuniConfig:
    """
    Global configuration for Kepuni package.

    Attributes
    ----------
    TOLERANCE : float
        Newton-Raphson convergence tolerance on the universal anomaly update
        ``|x_next - x|``.
        Default: 1e-9
    REGIME_THRESHOLD : float
        Half-width of the band around alpha = 0 classified as parabolic.
        Default: 1e-6
    STUMPFF_THRESHOLD : float
        Half-width of the band around psi = 0 where the Stumpff functions
        take their limiting values c2 = 1/2, c3 = 1/6.
        Default: 1e-6
    MAX_ITERATIONS : int
        Maximum number of Newton passes before NonConvergenceError.
        Default: 100
    DEFAULT_MU : float
        Gravitational parameter used when none is given [km^3/s^2].
        Default: 398600.4418 (Earth)
    LEGACY_FDOT : bool
        If True, fdot is evaluated as ``x*(psi*c3 - 1)*sqrt(mu)/r*r0``,
        reproducing legacy outputs.
        If False, the canonical ``sqrt(mu)/(r*r0)`` scaling is used.
        Default: False
    STRICT_VALIDATION : bool
        If True, non-convergence raises NonConvergenceError.
        If False, it issues a RuntimeWarning and the last iterate is kept.
        Invalid inputs always raise.
        Default: True
    DEFAULT_PLOT_POINTS : int
        Default number of points for trajectory plotting.
        Default: 1000
    DEFAULT_BODY_COLOR : str
        Default color for the central body in plots.
        Default: 'lightblue'
    DEFAULT_TRAJ_COLOR : str
        Default color for trajectory lines in plots.
        Default: 'red'
    DEFAULT_TRAJ_COLOR_ADD : str
        Default color for trajectories added to an existing figure.
        Default: 'blue'
    DEFAULT_BODY_OPACITY : float
        Default opacity for central body spheres (0.0 to 1.0).
        Default: 0.6
    """

    # Solver
    TOLERANCE: float = 1e-9
    MAX_ITERATIONS: int = 100

    # Dead-zone thresholds
    REGIME_THRESHOLD: float = 1e-6
    STUMPFF_THRESHOLD: float = 1e-6

    # Physical defaults
    DEFAULT_MU: float = 398600.4418

    # Behavior
    LEGACY_FDOT: bool = False
    STRICT_VALIDATION: bool = True

    # Plotting defaults
    DEFAULT_PLOT_POINTS: int = 1000
    DEFAULT_BODY_COLOR: str = 'lightblue'
    DEFAULT_TRAJ_COLOR: str = 'red'
    DEFAULT_TRAJ_COLOR_ADD: str = 'blue'
    DEFAULT_BODY_OPACITY: float = 0.6

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import kepuni
        >>> kepuni.config.TOLERANCE = 1e-6  # Modify
        >>> kepuni.config.reset()  # Back to defaults
        >>> kepuni.config.TOLERANCE
        1e-09
        """
        defaults = KepuniConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["KepuniConfig:"]
        lines.append("  Solver:")
        lines.append(f"    TOLERANCE = {self.TOLERANCE}")
        lines.append(f"    MAX_ITERATIONS = {self.MAX_ITERATIONS}")
        lines.append("  Thresholds:")
        lines.append(f"    REGIME_THRESHOLD = {self.REGIME_THRESHOLD}")
        lines.append(f"    STUMPFF_THRESHOLD = {self.STUMPFF_THRESHOLD}")
        lines.append("  Physical:")
        lines.append(f"    DEFAULT_MU = {self.DEFAULT_MU}")
        lines.append("  Behavior:")
        lines.append(f"    LEGACY_FDOT = {self.LEGACY_FDOT}")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        lines.append("  Plotting:")
        lines.append(f"    DEFAULT_PLOT_POINTS = {self.DEFAULT_PLOT_POINTS}")
        lines.append(f"    DEFAULT_BODY_COLOR = '{self.DEFAULT_BODY_COLOR}'")
        lines.append(f"    DEFAULT_TRAJ_COLOR = '{self.DEFAULT_TRAJ_COLOR}'")
        lines.append(f"    DEFAULT_TRAJ_COLOR_ADD = '{self.DEFAULT_TRAJ_COLOR_ADD}'")
        lines.append(f"    DEFAULT_BODY_OPACITY = {self.DEFAULT_BODY_OPACITY}")
        return "\n".join(lines)


# Global configuration instance
config = KepuniConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import kepuni
    >>> with kepuni.temp_config(TOLERANCE=1e-12, STRICT_VALIDATION=False):
    ...     result = kepuni.propagate(r0, v0, t)
    >>> # Original config restored here
    >>> kepuni.config.TOLERANCE
    1e-09

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    old_values = {}
    for key, value in kwargs.items():
        if key not in config.__dataclass_fields__:
            raise AttributeError(
                f"KepuniConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
