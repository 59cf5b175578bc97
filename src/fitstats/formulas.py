"""Pure statistic formulas.

Every function here operates on NumPy arrays and scalars only — no
model objects, no dispatch.  The public functions in ``statistics.py``
extract the inputs from a fitted model (see ``adapters.py``) and call
into this module.

Missing values (``nan``) are ignored wherever the definition says
"ignoring missing entries".

References:
    Tjur, T. (2009). Coefficients of determination in logistic
    regression models — a new proposal: the coefficient of
    discrimination. *The American Statistician*, 63(4), 366–372.

    Nagelkerke, N. J. D. (1991). A note on a general definition of the
    coefficient of determination. *Biometrika*, 78(3), 691–692.

    Kwok, O. et al. (2008). Analyzing longitudinal data with
    multilevel models: an example with individuals living with lower
    extremity intra-articular fractures. *Rehabilitation Psychology*,
    53(3), 370–386.

    Xu, R. (2003). Measuring explained variation in linear mixed
    effects models. *Statistics in Medicine*, 22(22), 3527–3541.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np
from sklearn.linear_model import LinearRegression

from .exceptions import CategoryCardinalityError, DivisionByZeroError

if TYPE_CHECKING:
    from .adapters import VarianceComponents

_ZERO_MEAN_MSG = (
    "Mean of dependent variable is zero. Cannot compute model's "
    "coefficient of variation."
)


def _drop_missing(x: np.ndarray) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    return x[~np.isnan(x)]


def _nonzero_mean(x: np.ndarray) -> float:
    mean = float(np.mean(x))
    if mean == 0:
        raise DivisionByZeroError(_ZERO_MEAN_MSG, quantity="mean of dependent variable")
    return mean


# ------------------------------------------------------------------ #
# Coefficient of variation
# ------------------------------------------------------------------ #


def coefficient_of_variation(x: np.ndarray) -> float:
    """Sample coefficient of variation ``sd(x) / mean(x)``.

    Uses the sample standard deviation (``ddof=1``) and ignores
    missing entries.

    Raises:
        DivisionByZeroError: If the mean is exactly zero.
        ValueError: If fewer than two non-missing values remain.
    """
    values = _drop_missing(x)
    if values.size < 2:
        raise ValueError(
            "Coefficient of variation requires at least two non-missing values."
        )
    mean = _nonzero_mean(values)
    return float(np.std(values, ddof=1)) / mean


def model_coefficient_of_variation(rmse_value: float, response: np.ndarray) -> float:
    """Model CV: ``RMSE / mean(response)``, ignoring missing responses.

    Raises:
        DivisionByZeroError: If the response mean is exactly zero.
    """
    values = _drop_missing(response)
    if values.size == 0:
        raise ValueError("Response has no non-missing values.")
    return rmse_value / _nonzero_mean(values)


# ------------------------------------------------------------------ #
# Residual-based error measures
# ------------------------------------------------------------------ #


def mean_squared_error(residuals: np.ndarray) -> float:
    """``mean(residuals²)``, ignoring missing residuals."""
    r = _drop_missing(residuals)
    return float(np.mean(r**2))


def root_mean_squared_error(residuals: np.ndarray) -> float:
    """``sqrt(mean(residuals²))``, ignoring missing residuals."""
    return math.sqrt(mean_squared_error(residuals))


def normalized_rmse(residuals: np.ndarray, response: np.ndarray) -> float:
    """RMSE divided by the range ``max(response) − min(response)``.

    Invariant under an additive shift of the response; changes when
    the response is rescaled.

    Raises:
        DivisionByZeroError: If the response is constant.
    """
    y = _drop_missing(response)
    spread = float(np.max(y) - np.min(y))
    if spread == 0:
        raise DivisionByZeroError(
            "Range of dependent variable is zero. Cannot compute normalized RMSE.",
            quantity="range of dependent variable",
        )
    return root_mean_squared_error(residuals) / spread


def residual_standard_error(residuals: np.ndarray, df_resid: float) -> float:
    """``sqrt(sum(residuals²) / df_resid)``.

    Raises:
        DivisionByZeroError: If *df_resid* is zero.
    """
    if df_resid == 0:
        raise DivisionByZeroError(
            "Residual degrees of freedom are zero. Cannot compute residual "
            "standard error.",
            quantity="residual degrees of freedom",
        )
    r = _drop_missing(residuals)
    return math.sqrt(float(np.sum(r**2)) / df_resid)


# ------------------------------------------------------------------ #
# Tjur's coefficient of discrimination
# ------------------------------------------------------------------ #


def tjur_d(response: np.ndarray, predicted: np.ndarray) -> float:
    """Tjur's D: ``|mean(p̂ | category 2) − mean(p̂ | category 1)|``.

    *response* and *predicted* must already be aligned to the same
    observations (see :class:`fitstats.adapters.ModelData`).

    Raises:
        CategoryCardinalityError: If *response* does not contain
            exactly two distinct non-missing values.
        ValueError: If the vectors differ in length.
    """
    y = np.asarray(response, dtype=float)
    p = np.asarray(predicted, dtype=float)
    if y.shape != p.shape:
        raise ValueError(
            f"Response ({y.size}) and predictions ({p.size}) differ in length."
        )

    categories = np.unique(y[~np.isnan(y)])
    if categories.size != 2:
        raise CategoryCardinalityError(
            "Coefficient of discrimination requires a binary response with "
            f"exactly two distinct values, got {categories.size}.",
            n_categories=int(categories.size),
        )

    m1 = float(np.nanmean(p[y == categories[0]]))
    m2 = float(np.nanmean(p[y == categories[1]]))
    return abs(m2 - m1)


# ------------------------------------------------------------------ #
# Likelihood-based pseudo R²
# ------------------------------------------------------------------ #


def cox_snell_r2(ll_null: float, ll_full: float, n: int) -> float:
    """Cox & Snell: ``1 − exp(2 (ℓ₀ − ℓ) / n)``."""
    return 1.0 - math.exp(2.0 * (ll_null - ll_full) / n)


def nagelkerke_r2(ll_null: float, ll_full: float, n: int) -> float:
    """Nagelkerke: Cox & Snell rescaled by ``1 − exp(2 ℓ₀ / n)``.

    The denominator is the maximum Cox & Snell value attainable for
    the given null log-likelihood.
    """
    max_r2 = 1.0 - math.exp(2.0 * ll_null / n)
    if max_r2 == 0:
        raise DivisionByZeroError(
            "Null log-likelihood is zero. Cannot compute Nagelkerke's R-squared.",
            quantity="maximum Cox & Snell R-squared",
        )
    return cox_snell_r2(ll_null, ll_full, n) / max_r2


# ------------------------------------------------------------------ #
# Linear mixed models
# ------------------------------------------------------------------ #


def fitted_r2(response: np.ndarray, fitted: np.ndarray) -> float:
    """R² of the OLS line ``response ~ fitted``.

    Approximate R² for mixed models without a null model: regress the
    observed response on the model's fitted values and report that
    regression's coefficient of determination.
    """
    f = np.asarray(fitted, dtype=float).reshape(-1, 1)
    y = np.asarray(response, dtype=float)
    line = LinearRegression().fit(f, y)
    return float(line.score(f, y))


def omega_squared(residuals: np.ndarray, response: np.ndarray) -> float:
    """Ω² = ``1 − var(residuals) / var(response)`` (sample variances)."""
    var_y = float(np.var(_drop_missing(response), ddof=1))
    if var_y == 0:
        raise DivisionByZeroError(
            "Variance of dependent variable is zero. Cannot compute omega-squared.",
            quantity="variance of dependent variable",
        )
    return 1.0 - float(np.var(_drop_missing(residuals), ddof=1)) / var_y


def _proportional_reduction(null_value: float, full_value: float, label: str) -> float:
    if null_value == 0:
        raise DivisionByZeroError(
            f"{label} of the null model is zero. Cannot compute explained variance.",
            quantity=f"{label} of the null model",
        )
    return (null_value - full_value) / null_value


def variance_reduction_r2(
    full: VarianceComponents,
    null: VarianceComponents,
) -> dict[str, float]:
    """Explained variance at each level of a linear mixed model.

    Compares the variance components of a full model with those of
    its unconditional (null) counterpart:

    * ``R2(tau-00) = (τ₀₀,null − τ₀₀,full) / τ₀₀,null``
    * ``R2(tau-11) = (τ₁₁,null − τ₁₁,full) / τ₁₁,null`` — ``nan``
      unless both models have a random slope.
    * ``R2 = ((τ₀₀ + σ²)null − (τ₀₀ + σ²)full) / (τ₀₀ + σ²)null``
    * ``O2 = 1 − σ²full / σ²null``

    Returns:
        Ordered ``{label: value}`` dict with the four labels above.

    Raises:
        DivisionByZeroError: If a null-model denominator is zero.
    """
    r2_tau00 = _proportional_reduction(null.tau00, full.tau00, "Random-intercept variance")
    if full.has_random_slope and null.has_random_slope:
        r2_tau11 = _proportional_reduction(null.tau11, full.tau11, "Random-slope variance")
    else:
        r2_tau11 = float("nan")
    r2_total = _proportional_reduction(
        null.tau00 + null.sigma2, full.tau00 + full.sigma2, "Total variance"
    )
    if null.sigma2 == 0:
        raise DivisionByZeroError(
            "Residual variance of the null model is zero. Cannot compute omega-squared.",
            quantity="residual variance of the null model",
        )
    o2 = 1.0 - full.sigma2 / null.sigma2
    return {
        "R2(tau-00)": r2_tau00,
        "R2(tau-11)": r2_tau11,
        "R2": r2_total,
        "O2": o2,
    }
