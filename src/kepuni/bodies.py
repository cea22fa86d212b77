"""
Central Body Definitions
========================

Immutable gravitational parameters for the bodies a two-body propagation
can be centred on.

Values taken from Vallado, Fundamentals of Astrodynamics, Fifth Edition,
2022, Appendix D. Units referenced to km (i.e. mu = km^3/s^2).

Examples
--------
>>> from kepuni import EARTH, UniversalPropagator
>>> prop = UniversalPropagator(EARTH)
>>> prop.mu
398600.4418
"""
from dataclasses import dataclass
from typing import Optional
import math


@dataclass(frozen=True)
class BodyParams:
    """
    Immutable parameters for a central body.

    Attributes
    ----------
    mu : float
        Gravitational parameter [km^3/s^2]
    radius : float, optional
        Equatorial radius [km], used for plotting. None when unknown.
    name : str, optional
        Body identifier
    """
    mu: float
    radius: Optional[float] = None
    name: Optional[str] = None

    def __post_init__(self):
        # Validate parameters
        if not math.isfinite(self.mu) or self.mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {self.mu}")
        if self.radius is not None and (not math.isfinite(self.radius) or self.radius <= 0):
            raise ValueError(f"Radius must be positive, got {self.radius}")

    def period(self, a: float) -> float:
        """Orbital period [s] of an ellipse with semi-major axis a [km]."""
        if a <= 0:
            raise ValueError(f"Period is only defined for a > 0, got {a}")
        return 2.0 * math.pi * math.sqrt(a**3 / self.mu)

    def circular_speed(self, r: float) -> float:
        """Speed [km/s] of a circular orbit of radius r [km]."""
        return math.sqrt(self.mu / r)

    def escape_speed(self, r: float) -> float:
        """Parabolic (escape) speed [km/s] at radius r [km]."""
        return math.sqrt(2.0 * self.mu / r)


# Pre-defined common bodies for convenience

MERCURY = BodyParams(mu=2.2032e4, radius=2439.0, name='Mercury')

VENUS = BodyParams(mu=3.257e5, radius=6052.0, name='Venus')

EARTH = BodyParams(mu=398600.4418, radius=6378.1363, name='Earth')

MOON = BodyParams(mu=4.902799e3, radius=1738.0, name='Moon')

MARS = BodyParams(mu=4.305e4, radius=3397.2, name='Mars')

JUPITER = BodyParams(mu=1.268e8, radius=71492.0, name='Jupiter')

SATURN = BodyParams(mu=3.794e7, radius=60268.0, name='Saturn')

URANUS = BodyParams(mu=5.794e6, radius=25559.0, name='Uranus')

NEPTUNE = BodyParams(mu=6.809e6, radius=24764.0, name='Neptune')

SUN = BodyParams(mu=1.32712428e11, radius=6.96e5, name='Sun')
