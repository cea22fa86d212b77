"""
Exception hierarchy for the Kepuni package.

Input problems derive from ``ValueError`` and numerical failures from
``RuntimeError`` so callers can catch either the package-specific class or
the built-in one.
"""

import numpy as np


class KepuniError(Exception):
    """Base class for all Kepuni errors."""


class InvalidInputError(KepuniError, ValueError):
    """
    Raised before any iteration when a propagation batch is malformed.

    Covers dimension mismatches between r0, v0 and t, empty batches,
    NaN/Inf values, non-positive gravitational parameters and zero-magnitude
    position columns. The whole batch is rejected.
    """


class NumericalError(KepuniError, RuntimeError):
    """
    Base class for failures inside the universal anomaly iteration.

    Parameters
    ----------
    message : str
        Human-readable description
    columns : array_like of int, optional
        Indices of the batch columns that failed
    """

    def __init__(self, message, columns=None):
        super().__init__(message)
        if columns is None:
            columns = []
        self.columns = np.asarray(columns, dtype=int)


class NumericalDegenerateError(NumericalError):
    """The Newton update produced a non-finite universal anomaly."""


class NonConvergenceError(NumericalError):
    """
    The Newton loop hit its iteration cap before every column converged.

    Attributes
    ----------
    columns : np.ndarray
        Indices of the columns still above tolerance
    iterations : int
        Number of Newton passes performed
    residuals : np.ndarray
        Last ``|x_next - x|`` of the unconverged columns
    """

    def __init__(self, message, columns=None, iterations=0, residuals=None):
        super().__init__(message, columns)
        self.iterations = int(iterations)
        if residuals is None:
            residuals = []
        self.residuals = np.asarray(residuals, dtype=float)
