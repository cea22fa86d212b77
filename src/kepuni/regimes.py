'''Orbit regime classification for propagation batches.

Each column of a batch is labelled elliptical, parabolic or hyperbolic from
the sign of its energy indicator alpha = 2/|r| - |v|^2/mu (the reciprocal
of the semi-major axis). A small band around alpha = 0 is claimed by the
parabolic regime so the elliptic and hyperbolic closed forms are never
evaluated where they cancel catastrophically.
'''

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple
from .batch import column_norm
from .config import config


# define an enumerated list of orbit regimes
class Regime(Enum):
    ELLIPTIC = 'elliptic'       # alpha > threshold (includes circular)
    PARABOLIC = 'parabolic'     # |alpha| <= threshold
    HYPERBOLIC = 'hyperbolic'   # alpha < -threshold


@dataclass(frozen=True, eq=False)
class RegimeMask:
    """
    Partition of a batch into the three orbit regimes.

    Every column is True in exactly one of the three boolean arrays.

    Attributes
    ----------
    elliptic : np.ndarray
        Boolean mask of elliptical/circular columns
    parabolic : np.ndarray
        Boolean mask of near-parabolic columns
    hyperbolic : np.ndarray
        Boolean mask of hyperbolic columns
    """
    elliptic: np.ndarray
    parabolic: np.ndarray
    hyperbolic: np.ndarray

    def __post_init__(self):
        total = (self.elliptic.astype(int) + self.parabolic.astype(int)
                 + self.hyperbolic.astype(int))
        if not np.all(total == 1):
            raise ValueError("Regime masks must partition the batch")
        for mask in (self.elliptic, self.parabolic, self.hyperbolic):
            mask.flags.writeable = False

    @property
    def n(self) -> int:
        """Number of columns in the batch."""
        return self.elliptic.size

    def mask(self, regime: "Regime | str") -> np.ndarray:
        """Boolean mask for a single regime."""
        regime = Regime(regime)
        return {
            Regime.ELLIPTIC: self.elliptic,
            Regime.PARABOLIC: self.parabolic,
            Regime.HYPERBOLIC: self.hyperbolic,
        }[regime]

    def of(self, i: int) -> Regime:
        """Regime of column i."""
        if self.elliptic[i]:
            return Regime.ELLIPTIC
        if self.hyperbolic[i]:
            return Regime.HYPERBOLIC
        return Regime.PARABOLIC

    def labels(self) -> np.ndarray:
        """Regime name of every column, as a string array."""
        labels = np.full(self.n, Regime.PARABOLIC.value, dtype=object)
        labels[self.elliptic] = Regime.ELLIPTIC.value
        labels[self.hyperbolic] = Regime.HYPERBOLIC.value
        return labels

    def counts(self) -> Dict[Regime, int]:
        """Number of columns in each regime."""
        return {regime: int(np.count_nonzero(mask)) for regime, mask in self}

    def __iter__(self) -> Iterator[Tuple[Regime, np.ndarray]]:
        yield Regime.ELLIPTIC, self.elliptic
        yield Regime.PARABOLIC, self.parabolic
        yield Regime.HYPERBOLIC, self.hyperbolic

    def __repr__(self):
        counts = self.counts()
        return (f"RegimeMask(n={self.n}, "
                f"elliptic={counts[Regime.ELLIPTIC]}, "
                f"parabolic={counts[Regime.PARABOLIC]}, "
                f"hyperbolic={counts[Regime.HYPERBOLIC]})")


def energy_indicator(r: np.ndarray, v: np.ndarray, mu: float) -> np.ndarray:
    """
    Reciprocal semi-major axis alpha = 2/|r| - |v|^2/mu of each column.

    Parameters
    ----------
    r, v : np.ndarray
        3 x n position [km] and velocity [km/s] batches
    mu : float
        Gravitational parameter [km^3/s^2]
    """
    return 2.0 / column_norm(r) - column_norm(v)**2 / mu


def specific_energy(r: np.ndarray, v: np.ndarray, mu: float) -> np.ndarray:
    """Specific orbital energy v^2/2 - mu/r of each column [km^2/s^2]."""
    return column_norm(v)**2 / 2.0 - mu / column_norm(r)


def classify(alpha, threshold: Optional[float] = None) -> RegimeMask:
    """
    Partition a batch by orbit regime.

    Parameters
    ----------
    alpha : array_like
        Energy indicator of each column [1/km]
    threshold : float, optional
        Half-width of the parabolic band. Defaults to config.REGIME_THRESHOLD.

    Returns
    -------
    RegimeMask
        Disjoint masks covering every column
    """
    if threshold is None:
        threshold = config.REGIME_THRESHOLD
    alpha = np.atleast_1d(np.asarray(alpha, dtype=float))
    elliptic = alpha > threshold
    hyperbolic = alpha < -threshold
    parabolic = ~(elliptic | hyperbolic)
    return RegimeMask(elliptic, parabolic, hyperbolic)
