"""Model-aware fit statistics.

Public entry points:

* :func:`cv` — coefficient of variation of a vector or a linear
  (mixed) model.
* :func:`rmse`, :func:`mse`, :func:`rse` — residual error measures.
* :func:`cod` — Tjur's coefficient of discrimination for binary GLMs
  and GLMMs.
* :func:`pseudo_r2` — Cox & Snell and Nagelkerke pseudo R² for GLMs.
* :func:`r2` — R² dispatcher over every model regime.

Each function accepts one or more inputs.  With a single input it
returns a single value; with several it returns one value per input
in argument order (a float array for scalar statistics, a list for
:class:`~fitstats._results.FitStatistics`).  Inputs are processed
sequentially and the first error aborts the whole call.

Every input is classified once (``regimes.classify``), its values are
pulled through the regime's adapter (``adapters.adapt``), and the
regime-specific formula from ``formulas.py`` is applied.  The
handlers below are keyed by :class:`~fitstats.regimes.Regime`; a
regime missing from a statistic's handler table is rejected with
:class:`~fitstats.exceptions.UnsupportedModelTypeError`.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Callable
from typing import Any

import numpy as np

from . import formulas
from ._compat import _as_float_vector
from ._config import get_unsupported_policy
from ._results import FitStatistics, apply_to_each
from .adapters import adapt, variance_components
from .exceptions import UnsupportedModelTypeError
from .regimes import Regime, classify

logger = logging.getLogger(__name__)

_MODEL_REGIMES = frozenset(r for r in Regime if r.is_model)

# Frames between warnings.warn and the user: warning site, per-model
# function, apply_to_each, batch helper, public function.
_CALLER_STACKLEVEL = 6


def _unsupported(statistic: str, model: Any, regime: Regime) -> UnsupportedModelTypeError:
    return UnsupportedModelTypeError(
        f"{statistic}() is not supported for model type "
        f"{type(model).__name__} ({regime.value}).",
        statistic=statistic,
        model_type=type(model).__name__,
    )


def _require_regime(statistic: str, model: Any, allowed: frozenset[Regime]) -> Regime:
    regime = classify(model)
    if regime not in allowed:
        raise _unsupported(statistic, model, regime)
    return regime


def _scalar_batch(func: Callable[..., float], first: Any, more: tuple[Any, ...], **kwargs: Any) -> float | np.ndarray:
    values = apply_to_each(func, first, more, **kwargs)
    if not more:
        return values[0]
    return np.asarray(values, dtype=float)


def _stats_batch(
    func: Callable[..., FitStatistics | None],
    first: Any,
    more: tuple[Any, ...],
    **kwargs: Any,
) -> FitStatistics | None | list[FitStatistics | None]:
    results = apply_to_each(func, first, more, **kwargs)
    if not more:
        return results[0]
    return results


# ------------------------------------------------------------------ #
# Coefficient of variation
# ------------------------------------------------------------------ #

_CV_REGIMES = frozenset(
    {Regime.RAW_VECTOR, Regime.LINEAR_MODEL, Regime.LINEAR_MIXED_MODEL}
)


def _cv_one(x: Any) -> float:
    regime = _require_regime("cv", x, _CV_REGIMES)
    if regime is Regime.RAW_VECTOR:
        return formulas.coefficient_of_variation(_as_float_vector(x, name="x"))
    data = adapt(x, regime).data()
    return formulas.model_coefficient_of_variation(
        formulas.root_mean_squared_error(data.residuals), data.response
    )


def cv(x: Any, *more: Any) -> float | np.ndarray:
    """Coefficient of variation.

    For a numeric vector: ``sd(x) / mean(x)`` (sample standard
    deviation, missing values ignored).  For a fitted linear or linear
    mixed model: ``RMSE / mean(response)``.

    The CV is unitless, so values can be compared across variables or
    models measured on different scales.

    Args:
        x: A numeric vector (array, list, pandas / Polars Series) or a
            fitted ``OLS`` / ``WLS`` / ``GLS`` / ``MixedLM`` result.
        *more: Further vectors or models.

    Returns:
        A float, or a float array with one value per input.

    Raises:
        DivisionByZeroError: If a mean is exactly zero.
        UnsupportedModelTypeError: For GLMs, GLMMs, panel models, or
            non-numeric input.
    """
    return _scalar_batch(_cv_one, x, more)


# ------------------------------------------------------------------ #
# Residual error measures
# ------------------------------------------------------------------ #


def _rmse_one(fit: Any, normalized: bool = False) -> float:
    regime = _require_regime("rmse", fit, _MODEL_REGIMES)
    data = adapt(fit, regime).data()
    if normalized:
        return formulas.normalized_rmse(data.residuals, data.response)
    return formulas.root_mean_squared_error(data.residuals)


def _mse_one(fit: Any) -> float:
    regime = _require_regime("mse", fit, _MODEL_REGIMES)
    return formulas.mean_squared_error(adapt(fit, regime).data().residuals)


def _rse_one(fit: Any) -> float:
    regime = _require_regime("rse", fit, _MODEL_REGIMES)
    adapter = adapt(fit, regime)
    return formulas.residual_standard_error(adapter.data().residuals, adapter.df_resid())


def rmse(fit: Any, *more: Any, normalized: bool = False) -> float | np.ndarray:
    """Root mean squared error ``sqrt(mean(residuals²))``.

    Args:
        fit: A fitted model of any supported regime.
        *more: Further fitted models.
        normalized: Divide by the range of the observed response,
            ``max(y) − min(y)``, giving a scale-free error.

    Returns:
        A float, or a float array with one value per model.

    Raises:
        UnsupportedModelTypeError: If an input is not a fitted model.
        DivisionByZeroError: If ``normalized`` and the response is
            constant.
    """
    return _scalar_batch(_rmse_one, fit, more, normalized=normalized)


def mse(fit: Any, *more: Any) -> float | np.ndarray:
    """Mean squared error ``mean(residuals²)``."""
    return _scalar_batch(_mse_one, fit, more)


def rse(fit: Any, *more: Any) -> float | np.ndarray:
    """Residual standard error ``sqrt(sum(residuals²) / df_resid)``.

    The residual degrees of freedom are those reported by the model.

    Raises:
        ExtractionError: If the model reports no residual degrees of
            freedom (e.g. Bayesian mixed GLMs).
    """
    return _scalar_batch(_rse_one, fit, more)


# ------------------------------------------------------------------ #
# Coefficient of discrimination
# ------------------------------------------------------------------ #

_COD_REGIMES = frozenset(
    {Regime.GENERALIZED_LINEAR_MODEL, Regime.GENERALIZED_LINEAR_MIXED_MODEL}
)


def _cod_one(fit: Any) -> FitStatistics:
    regime = _require_regime("cod", fit, _COD_REGIMES)
    # Predictions and response come from the same aligned bundle.
    data = adapt(fit, regime).data()
    d = formulas.tjur_d(data.response, data.fitted)
    return FitStatistics.pack("cod", {"D": d}, regime=regime)


def cod(fit: Any, *more: Any) -> FitStatistics | list[FitStatistics]:
    """Tjur's coefficient of discrimination D.

    The absolute difference between the mean predicted probability
    of the two observed outcome categories.  Predictions are on the
    response scale and, for mixed models, include the random effects.

    Args:
        fit: A fitted binary ``GLM`` / ``Logit`` / ``Probit`` or
            Bayesian mixed GLM result.
        *more: Further fitted models.

    Returns:
        ``FitStatistics`` with label ``"D"`` (kind ``"cod"``), or a
        list of them.

    Raises:
        UnsupportedModelTypeError: If an input is not a (mixed) GLM.
        CategoryCardinalityError: If a response is not binary.
    """
    return _stats_batch(_cod_one, fit, more)  # type: ignore[return-value]


# ------------------------------------------------------------------ #
# Pseudo R²
# ------------------------------------------------------------------ #


def _pseudo_r2_stats(fit: Any, regime: Regime) -> FitStatistics:
    adapter = adapt(fit, regime)
    ll_full = adapter.loglike()
    ll_null = adapter.loglike_null()  # type: ignore[attr-defined]
    n = adapter.nobs()
    return FitStatistics.pack(
        "pseudo_r2",
        {
            "CoxSnell": formulas.cox_snell_r2(ll_null, ll_full, n),
            "Nagelkerke": formulas.nagelkerke_r2(ll_null, ll_full, n),
        },
        regime=regime,
    )


def _handle_unsupported(statistic: str, model: Any, regime: Regime) -> None:
    """Apply the configured policy for an input with no R² formula."""
    if get_unsupported_policy() == "warn":
        warnings.warn(
            f"`{statistic}` only works on linear (mixed) models, generalized "
            "linear (mixed) models and panel models; got "
            f"{type(model).__name__}.",
            UserWarning,
            stacklevel=_CALLER_STACKLEVEL,
        )
        return None
    raise _unsupported(statistic, model, regime)


def _pseudo_r2_one(fit: Any) -> FitStatistics | None:
    regime = classify(fit)
    if regime is not Regime.GENERALIZED_LINEAR_MODEL:
        return _handle_unsupported("pseudo_r2", fit, regime)
    return _pseudo_r2_stats(fit, regime)


def pseudo_r2(fit: Any, *more: Any) -> FitStatistics | None | list[FitStatistics | None]:
    """Cox & Snell and Nagelkerke pseudo R² of a GLM.

    * Cox & Snell: ``1 − exp(2 (ℓ₀ − ℓ) / n)``
    * Nagelkerke: ``CoxSnell / (1 − exp(2 ℓ₀ / n))``

    ``ℓ₀`` is the log-likelihood of the model refit with an
    intercept only (``llnull`` in statsmodels).

    Returns:
        ``FitStatistics`` with labels ``"CoxSnell"`` and
        ``"Nagelkerke"`` (kind ``"pseudo_r2"``), or a list of them.
    """
    return _stats_batch(_pseudo_r2_one, fit, more)


# ------------------------------------------------------------------ #
# R² dispatcher
# ------------------------------------------------------------------ #


def _r2_reported(fit: Any, regime: Regime, null_model: Any = None) -> FitStatistics:
    rsq, adj = adapt(fit, regime).reported_r2()  # type: ignore[attr-defined]
    return FitStatistics.pack("r2", {"R2": rsq, "adj.R2": adj}, regime=regime)


def _r2_glm(fit: Any, regime: Regime, null_model: Any = None) -> FitStatistics:
    return _pseudo_r2_stats(fit, regime)


def _r2_glmm(fit: Any, regime: Regime, null_model: Any = None) -> FitStatistics:
    return _cod_one(fit)


def _r2_mixed(fit: Any, regime: Regime, null_model: Any = None) -> FitStatistics:
    if null_model is None:
        data = adapt(fit, regime).data()
        values = {
            "R2": formulas.fitted_r2(data.response, data.fitted),
            "O2": formulas.omega_squared(data.residuals, data.response),
        }
        return FitStatistics.pack("mixed_r2", values, regime=regime)

    null_regime = classify(null_model)
    if null_regime is not Regime.LINEAR_MIXED_MODEL:
        raise UnsupportedModelTypeError(
            "null_model must be a linear mixed model like the full model, "
            f"got {type(null_model).__name__} ({null_regime.value}).",
            statistic="r2",
            model_type=type(null_model).__name__,
        )
    logger.debug("Computing variance-reduction R2 against a null model")
    full_vc = variance_components(fit)
    null_vc = variance_components(null_model)
    if full_vc.has_random_slope != null_vc.has_random_slope:
        warnings.warn(
            "Full and null models differ in random-slope structure; "
            "R2(tau-11) is reported as missing.",
            UserWarning,
            stacklevel=_CALLER_STACKLEVEL,
        )
    values = formulas.variance_reduction_r2(full_vc, null_vc)
    return FitStatistics.pack("mixed_r2", values, regime=regime)


_R2_HANDLERS: dict[Regime, Callable[..., FitStatistics] | None] = {
    Regime.LINEAR_MODEL: _r2_reported,
    Regime.PANEL_MODEL: _r2_reported,
    Regime.GENERALIZED_LINEAR_MODEL: _r2_glm,
    Regime.GENERALIZED_LINEAR_MIXED_MODEL: _r2_glmm,
    Regime.LINEAR_MIXED_MODEL: _r2_mixed,
    Regime.RAW_VECTOR: None,
}
"""One entry per regime; ``None`` marks a regime without an R² formula."""


def _r2_one(fit: Any, null_model: Any = None) -> FitStatistics | None:
    regime = classify(fit)
    handler = _R2_HANDLERS[regime]
    if handler is None:
        return _handle_unsupported("r2", fit, regime)
    if null_model is not None and regime is not Regime.LINEAR_MIXED_MODEL:
        raise UnsupportedModelTypeError(
            "null_model is only used for linear mixed models, got "
            f"{type(fit).__name__} ({regime.value}).",
            statistic="r2",
            model_type=type(fit).__name__,
        )
    return handler(fit, regime, null_model)


def r2(
    fit: Any,
    *more: Any,
    null_model: Any = None,
) -> FitStatistics | None | list[FitStatistics | None]:
    """R² or the appropriate analogue for each model regime.

    ==================================  ===============================
    Regime                              Result
    ==================================  ===============================
    linear model, panel model           model's own ``"R2"`` and
                                        ``"adj.R2"``
    generalized linear model            :func:`pseudo_r2`
    generalized linear mixed model      :func:`cod`
    linear mixed model                  ``"R2"`` of ``y ~ fitted`` and
                                        ``"O2"`` = 1 − var(e)/var(y)
    linear mixed model + null model     ``"R2(tau-00)"``,
                                        ``"R2(tau-11)"``, ``"R2"``,
                                        ``"O2"`` from variance
                                        components
    ==================================  ===============================

    Args:
        fit: A fitted model.
        *more: Further fitted models.
        null_model: Unconditional (intercept-only) linear mixed model
            fitted to the same data as *fit*.  Only valid with a
            single linear mixed model.

    Returns:
        ``FitStatistics``, or a list with one entry per model.  Under
        the ``"warn"`` policy an unsupported input yields ``None``.

    Raises:
        UnsupportedModelTypeError: For inputs without an R² formula
            (under the default ``"raise"`` policy), or a misplaced
            *null_model*.
        ValueError: If *null_model* is combined with several models.
    """
    if null_model is not None and more:
        raise ValueError("null_model can only be combined with a single model.")
    return _stats_batch(_r2_one, fit, more, null_model=null_model)
