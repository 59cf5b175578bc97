"""Exception hierarchy for fitstats.

Every error raised by the package derives from :class:`FitStatsError`
so callers can catch any library-specific failure in one clause.  Each
concrete error also inherits from the closest builtin exception
(``TypeError``, ``ZeroDivisionError``, ``ValueError``) so code written
against the builtins keeps working.

Errors are terminal for the computation that raised them: no
statistic silently falls back to ``nan`` or ``inf``.
"""

from __future__ import annotations


class FitStatsError(Exception):
    """Base exception for all fitstats errors."""


class UnsupportedModelTypeError(FitStatsError, TypeError):
    """The supplied object is not supported by the requested statistic.

    Attributes:
        statistic: Name of the statistic that rejected the input
            (e.g. ``"rmse"``).
        model_type: Class name of the offending object.
    """

    def __init__(
        self,
        message: str,
        statistic: str | None = None,
        model_type: str | None = None,
    ):
        super().__init__(message)
        self.statistic = statistic
        self.model_type = model_type


class DivisionByZeroError(FitStatsError, ZeroDivisionError):
    """The denominator of a ratio statistic is exactly zero.

    Attributes:
        quantity: Description of the zero denominator
            (e.g. ``"mean of dependent variable"``).
    """

    def __init__(self, message: str, quantity: str | None = None):
        super().__init__(message)
        self.quantity = quantity


class ExtractionError(FitStatsError, ValueError):
    """Required data could not be located on the fitted model."""


class CategoryCardinalityError(FitStatsError, ValueError):
    """A binary-outcome statistic received a response without two categories.

    Attributes:
        n_categories: Number of distinct response values observed.
    """

    def __init__(self, message: str, n_categories: int | None = None):
        super().__init__(message)
        self.n_categories = n_categories
