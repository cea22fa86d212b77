"""
Column-wise array operations on propagation batches.

A batch of n orbits is stored as 3 x n arrays: one column per orbit, rows
x, y, z. Every helper here preserves column correspondence, so column i of
any output depends only on column i of the inputs.
"""

import numpy as np
from .exceptions import InvalidInputError


def as_batch(vectors, name: str = "array") -> np.ndarray:
    """
    Convert input to a float 3 x n batch.

    A single 3-vector becomes a 3 x 1 batch.

    Raises
    ------
    InvalidInputError
        If the input cannot be read as 3 x n
    """
    arr = np.asarray(vectors, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(3, 1) if arr.shape == (3,) else arr
    if arr.ndim != 2 or arr.shape[0] != 3:
        raise InvalidInputError(f"{name} must have shape (3,) or (3, n), got {arr.shape}")
    return arr


def column_norm(m: np.ndarray) -> np.ndarray:
    """Euclidean magnitude of each column."""
    return np.sqrt(np.sum(m**2, axis=0))


def column_dot(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Dot product of corresponding columns."""
    return np.sum(a * b, axis=0)


def column_cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Cross product of corresponding 3-D columns."""
    return np.cross(a, b, axis=0)


def scale_columns(s: np.ndarray, m: np.ndarray) -> np.ndarray:
    """Multiply column i of m by scalar s[i]."""
    return m * np.asarray(s, dtype=float)[np.newaxis, :]


def to_rows(m: np.ndarray) -> np.ndarray:
    """Transpose a 3 x n batch into n x 3 rows."""
    return np.ascontiguousarray(m.T)
