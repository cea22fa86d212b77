"""
Kepuni: Universal-Variable Two-Body Propagation

A Python package for propagating batches of elliptical, parabolic and
hyperbolic two-body orbits with the universal variable formulation of
Kepler's equation.
"""

# Configuration
from .config import config, temp_config, KepuniConfig

# Errors
from .exceptions import (
    KepuniError,
    InvalidInputError,
    NumericalError,
    NumericalDegenerateError,
    NonConvergenceError,
)

# Core propagation
from .propagator import propagate, validate_batch, PropagationResult, UniversalPropagator
from .regimes import Regime, RegimeMask, classify, energy_indicator, specific_energy
from .stumpff import c2c3
from .initial_guess import initial_guess
from .solver import solve_universal_anomaly, UniversalAnomalySolution
from .lagrange import lagrange_coefficients, reconstruct_state, LagrangeCoefficients

# Trajectories and numerical reference
from .trajectory import Trajectory, Trajectory as Traj
from .reference import ReferenceIntegrator

# Central bodies
from .bodies import (
    BodyParams,
    MERCURY, VENUS, EARTH, MOON, MARS,
    JUPITER, SATURN, URANUS, NEPTUNE, SUN,
)

# Package metadata
__version__ = "0.1.0"

# Define what gets imported with "from kepuni import *"
__all__ = [
    # Configuration
    "config",
    "temp_config",
    "KepuniConfig",
    # Errors
    "KepuniError",
    "InvalidInputError",
    "NumericalError",
    "NumericalDegenerateError",
    "NonConvergenceError",
    # Propagation
    "propagate",
    "validate_batch",
    "PropagationResult",
    "UniversalPropagator",
    "Regime",
    "RegimeMask",
    "classify",
    "energy_indicator",
    "specific_energy",
    "c2c3",
    "initial_guess",
    "solve_universal_anomaly",
    "UniversalAnomalySolution",
    "lagrange_coefficients",
    "reconstruct_state",
    "LagrangeCoefficients",
    # Trajectories
    "Trajectory",
    "Traj",
    "ReferenceIntegrator",
    # Bodies
    "BodyParams",
    "MERCURY",
    "VENUS",
    "EARTH",
    "MOON",
    "MARS",
    "JUPITER",
    "SATURN",
    "URANUS",
    "NEPTUNE",
    "SUN",
]
