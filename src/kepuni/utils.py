"""
Utility functions for the Kepuni package.
"""

import warnings
from .config import config


def validation_error(error: Exception, category=RuntimeWarning):
    """
    Raise error or warn based on config.STRICT_VALIDATION.

    This function provides consistent handling of recoverable failures across
    the package. When STRICT_VALIDATION is True (default), raises the given
    exception. When False, issues a warning with the same message instead.

    Parameters
    ----------
    error : Exception
        Fully constructed exception to raise
    category : type of Warning, optional
        Warning class issued when STRICT_VALIDATION is False.
        Default: RuntimeWarning

    Raises
    ------
    Exception
        The given error, if config.STRICT_VALIDATION is True

    Warns
    -----
    Warning (of type category)
        If config.STRICT_VALIDATION is False

    Examples
    --------
    >>> from kepuni.utils import validation_error
    >>> from kepuni import config, NonConvergenceError
    >>> config.STRICT_VALIDATION = True
    >>> validation_error(NonConvergenceError("stalled"))  # Raises
    >>> config.STRICT_VALIDATION = False
    >>> validation_error(NonConvergenceError("stalled"))  # Issues warning
    """
    if config.STRICT_VALIDATION:
        raise error
    else:
        warnings.warn(str(error), category, stacklevel=3)
