"""Value extraction from fitted models.

Each supported :class:`~fitstats.regimes.Regime` (other than the raw
vector) has one adapter class that implements the
:class:`FittedModel` capability protocol on top of the results object
produced by the fitting library.  The statistics in
``statistics.py`` program against the protocol, never against
statsmodels or linearmodels attributes directly.

=====================================  =================================
Regime                                 Adapter
=====================================  =================================
``LINEAR_MODEL``                       :class:`LinearModelAdapter`
``LINEAR_MIXED_MODEL``                 :class:`LinearMixedModelAdapter`
``GENERALIZED_LINEAR_MODEL``           :class:`GLMAdapter`
``GENERALIZED_LINEAR_MIXED_MODEL``     :class:`GLMMAdapter`
``PANEL_MODEL``                        :class:`PanelModelAdapter`
=====================================  =================================

Alignment
~~~~~~~~~
Response, fitted values and residuals are only ever handed to a
formula together, as one :class:`ModelData` bundle filtered to a
single index set.  Observations whose residual is missing are removed
from all three vectors at once, so per-category means (Tjur's D) can
never be computed over vectors of different lengths.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, runtime_checkable

import numpy as np
import pandas as pd
from typing_extensions import Self

from .exceptions import ExtractionError, UnsupportedModelTypeError
from .regimes import Regime, classify, unwrap

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------ #
# Extracted value containers
# ------------------------------------------------------------------ #


def _readonly(values: Any) -> np.ndarray:
    arr = np.array(values, dtype=float).ravel()
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class ModelData:
    """Aligned response / fitted / residual vectors of one model.

    Construct through :meth:`from_arrays`, which applies the
    missing-residual filter to every vector.  The arrays are
    read-only.

    Attributes:
        response: Observed response values, shape ``(n,)``.
        fitted: Fitted values on the response scale, shape ``(n,)``.
        residuals: Residuals, shape ``(n,)``.
        n_dropped: Number of observations removed because their
            residual was missing.
    """

    response: np.ndarray
    fitted: np.ndarray
    residuals: np.ndarray
    n_dropped: int = 0

    @classmethod
    def from_arrays(cls, response: Any, fitted: Any, residuals: Any) -> Self:
        """Build an aligned bundle from three (possibly padded) vectors.

        *fitted* and *residuals* must have the same length.  Entries
        whose residual is ``nan`` are dropped from both.  *response*
        may either already exclude those observations (the usual case
        for fitting libraries that drop incomplete rows) or be padded
        to the same length as the residuals, in which case the same
        mask is applied to it.

        Raises:
            ExtractionError: If the vectors cannot be aligned.
        """
        y = np.asarray(response, dtype=float).ravel()
        f = np.asarray(fitted, dtype=float).ravel()
        r = np.asarray(residuals, dtype=float).ravel()

        if f.shape != r.shape:
            raise ExtractionError(
                f"Fitted values ({f.size}) and residuals ({r.size}) "
                "differ in length."
            )

        keep = ~np.isnan(r)
        n_dropped = int(np.count_nonzero(~keep))
        if n_dropped:
            f, r = f[keep], r[keep]
            if y.size == keep.size:
                y = y[keep]
            logger.debug("Dropped %d observations with missing residuals", n_dropped)

        if y.size != r.size:
            raise ExtractionError(
                f"Response ({y.size}) and residuals ({r.size}) differ in "
                "length after removing missing residuals."
            )
        if y.size == 0:
            raise ExtractionError("Model has no complete observations.")

        return cls(
            response=_readonly(y),
            fitted=_readonly(f),
            residuals=_readonly(r),
            n_dropped=n_dropped,
        )

    @property
    def n_obs(self) -> int:
        """Number of aligned observations."""
        return int(self.residuals.size)


@dataclass(frozen=True)
class VarianceComponents:
    """Random-effect variance decomposition of a mixed model.

    Attributes:
        tau00: Random-intercept variance τ₀₀.
        tau11: Random-slope variance τ₁₁, ``nan`` when the model has
            no random slope.
        sigma2: Residual variance σ².
    """

    tau00: float
    tau11: float
    sigma2: float

    @property
    def has_random_slope(self) -> bool:
        return not np.isnan(self.tau11)


# ------------------------------------------------------------------ #
# Capability protocols
# ------------------------------------------------------------------ #
#
# Method-only protocols, so ``issubclass`` checks work in
# ``register_adapter``.


@runtime_checkable
class FittedModel(Protocol):
    """Interface every model adapter implements."""

    def response_name(self) -> str:
        """Name of the response variable."""
        ...

    def response(self) -> np.ndarray:
        """Observed response values, shape ``(n,)``."""
        ...

    def fitted(self) -> np.ndarray:
        """Fitted values on the response scale, shape ``(n,)``."""
        ...

    def residuals(self) -> np.ndarray:
        """Residuals of the library's default type, shape ``(n,)``."""
        ...

    def df_resid(self) -> float:
        """Residual degrees of freedom reported by the model."""
        ...

    def loglike(self) -> float:
        """Log-likelihood of the fitted model."""
        ...

    def nobs(self) -> int:
        """Number of observations used in the fit."""
        ...

    def data(self) -> ModelData:
        """Aligned response / fitted / residual bundle."""
        ...


@runtime_checkable
class MixedModel(FittedModel, Protocol):
    """Adapters for models with random effects."""

    def variance_components(self) -> VarianceComponents:
        """τ₀₀, τ₁₁ and σ² of the fitted model."""
        ...


# ------------------------------------------------------------------ #
# statsmodels helpers
# ------------------------------------------------------------------ #


def _endog_name(results: Any) -> str:
    name = getattr(results.model, "endog_names", None)
    if isinstance(name, (list, tuple)):
        if len(name) != 1:
            raise ExtractionError(
                f"Model has {len(name)} response columns {list(name)}; "
                "a single response variable is required."
            )
        name = name[0]
    return str(name) if name is not None else "y"


def _endog_response(results: Any) -> np.ndarray:
    """Look up the response by name in the model's stored endog data.

    statsmodels keeps the (missing-row-filtered) endog it was given on
    ``model.data.orig_endog``.  For formula fits that is a DataFrame
    whose column is the response name; for array fits it is the
    Series or array itself.
    """
    model = results.model
    name = _endog_name(results)
    orig = getattr(getattr(model, "data", None), "orig_endog", None)

    if isinstance(orig, pd.DataFrame):
        if name not in orig.columns:
            raise ExtractionError(
                f"Response variable {name!r} not found in the model data "
                f"(columns: {list(orig.columns)})."
            )
        values = orig[name]
    elif orig is not None:
        values = orig
    else:
        values = getattr(model, "endog", None)

    if values is None:
        raise ExtractionError(f"Response variable {name!r} not found on the model.")
    y = np.asarray(values, dtype=float).ravel()
    if y.size == 0:
        raise ExtractionError(f"Response variable {name!r} is empty.")
    return y


def _required_attr(results: Any, attr: str, what: str) -> Any:
    value = getattr(results, attr, None)
    if value is None:
        raise ExtractionError(
            f"{type(results).__name__} does not report {what} ('{attr}')."
        )
    return value


class _AdapterMixin:
    """Shared ``data()`` / ``nobs()`` implementations."""

    regime: ClassVar[Regime]
    results: Any

    def data(self) -> ModelData:
        return ModelData.from_arrays(
            self.response(),  # type: ignore[attr-defined]
            self.fitted(),  # type: ignore[attr-defined]
            self.residuals(),  # type: ignore[attr-defined]
        )

    def nobs(self) -> int:
        return int(_required_attr(self.results, "nobs", "the number of observations"))


# ------------------------------------------------------------------ #
# Concrete adapters
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class LinearModelAdapter(_AdapterMixin):
    """OLS / WLS / GLS results (``RegressionResults``)."""

    results: Any
    regime: ClassVar[Regime] = Regime.LINEAR_MODEL

    def response_name(self) -> str:
        return _endog_name(self.results)

    def response(self) -> np.ndarray:
        return _endog_response(self.results)

    def fitted(self) -> np.ndarray:
        return np.asarray(self.results.fittedvalues, dtype=float)

    def residuals(self) -> np.ndarray:
        return np.asarray(self.results.resid, dtype=float)

    def df_resid(self) -> float:
        return float(_required_attr(self.results, "df_resid", "residual degrees of freedom"))

    def loglike(self) -> float:
        return float(self.results.llf)

    def reported_r2(self) -> tuple[float, float]:
        """``(R², adjusted R²)`` as reported by the fitted model."""
        return float(self.results.rsquared), float(self.results.rsquared_adj)


@dataclass(frozen=True)
class LinearMixedModelAdapter(_AdapterMixin):
    """statsmodels ``MixedLM`` results.

    Fitted values include the predicted random effects (conditional
    fitted values), and residuals are ``y - fitted``.
    """

    results: Any
    regime: ClassVar[Regime] = Regime.LINEAR_MIXED_MODEL

    def response_name(self) -> str:
        return _endog_name(self.results)

    def response(self) -> np.ndarray:
        return _endog_response(self.results)

    def fitted(self) -> np.ndarray:
        return np.asarray(self.results.fittedvalues, dtype=float)

    def residuals(self) -> np.ndarray:
        return np.asarray(self.results.resid, dtype=float)

    def df_resid(self) -> float:
        return float(_required_attr(self.results, "df_resid", "residual degrees of freedom"))

    def loglike(self) -> float:
        return float(self.results.llf)

    def variance_components(self) -> VarianceComponents:
        """Read τ₀₀, τ₁₁ and σ² from ``cov_re`` and ``scale``.

        The random intercept is the constant column of the model's
        random-effects design (``exog_re``), wherever it sits; τ₁₁ is
        the variance of the first remaining column, when present.

        Raises:
            ExtractionError: If the model has no random intercept.
        """
        cov_re = np.atleast_2d(
            np.asarray(_required_attr(self.results, "cov_re", "random-effects covariance"), dtype=float)
        )
        if cov_re.size == 0:
            raise ExtractionError("Model has no random-intercept variance component.")

        model = _required_attr(self.results, "model", "the fitted model")
        exog_re = np.asarray(
            _required_attr(model, "exog_re", "a random-effects design"), dtype=float
        ).reshape(-1, cov_re.shape[0])
        constant = [j for j in range(exog_re.shape[1]) if np.all(exog_re[:, j] == 1.0)]
        if not constant:
            names = getattr(model, "exog_re_names", None)
            raise ExtractionError(
                "Model has no random-intercept variance component "
                f"(random effects: {names})."
            )
        intercept = constant[0]
        slopes = [j for j in range(cov_re.shape[0]) if j != intercept]
        tau11 = float(cov_re[slopes[0], slopes[0]]) if slopes else float("nan")
        return VarianceComponents(
            tau00=float(cov_re[intercept, intercept]),
            tau11=tau11,
            sigma2=float(_required_attr(self.results, "scale", "residual variance")),
        )


@dataclass(frozen=True)
class GLMAdapter(_AdapterMixin):
    """``GLM`` results of any family, and ``Logit`` / ``Probit`` results.

    Fitted values are response-scale predictions (probabilities for
    binary models); residuals are deviance residuals.
    """

    results: Any
    regime: ClassVar[Regime] = Regime.GENERALIZED_LINEAR_MODEL

    def response_name(self) -> str:
        return _endog_name(self.results)

    def response(self) -> np.ndarray:
        return _endog_response(self.results)

    def fitted(self) -> np.ndarray:
        return np.asarray(self.results.predict(), dtype=float).ravel()

    def residuals(self) -> np.ndarray:
        # GLMResults names them resid_deviance, discrete models resid_dev.
        for attr in ("resid_deviance", "resid_dev"):
            if hasattr(self.results, attr):
                return np.asarray(getattr(self.results, attr), dtype=float)
        raise ExtractionError(
            f"{type(self.results).__name__} does not report deviance residuals."
        )

    def df_resid(self) -> float:
        return float(_required_attr(self.results, "df_resid", "residual degrees of freedom"))

    def loglike(self) -> float:
        return float(self.results.llf)

    def loglike_null(self) -> float:
        """Log-likelihood of the intercept-only refit (``llnull``)."""
        return float(_required_attr(self.results, "llnull", "the null log-likelihood"))


@dataclass(frozen=True)
class GLMMAdapter(_AdapterMixin):
    """Bayesian mixed GLM results (``BinomialBayesMixedGLM`` et al.).

    Predictions include the posterior-mean random effects:
    ``μ̂ = g⁻¹(X β̂ + Z û)``.  The variational / MAP fit reports
    neither a log-likelihood nor residual degrees of freedom.
    """

    results: Any
    regime: ClassVar[Regime] = Regime.GENERALIZED_LINEAR_MIXED_MODEL

    def response_name(self) -> str:
        return _endog_name(self.results)

    def response(self) -> np.ndarray:
        return _endog_response(self.results)

    def linear_predictor(self) -> np.ndarray:
        model = self.results.model
        lin = np.asarray(model.exog, dtype=float) @ np.asarray(self.results.fe_mean)
        if getattr(model, "exog_vc", None) is not None:
            lin = lin + np.asarray(model.exog_vc.dot(self.results.vc_mean)).ravel()
        return lin

    def fitted(self) -> np.ndarray:
        link = self.results.model.family.link
        return np.asarray(link.inverse(self.linear_predictor()), dtype=float)

    def residuals(self) -> np.ndarray:
        family = self.results.model.family
        y = np.asarray(self.results.model.endog, dtype=float)
        return np.asarray(family.resid_dev(y, self.fitted()), dtype=float)

    def df_resid(self) -> float:
        raise ExtractionError(
            "Bayesian mixed GLM fits do not report residual degrees of freedom."
        )

    def loglike(self) -> float:
        raise ExtractionError("Bayesian mixed GLM fits do not report a log-likelihood.")

    def nobs(self) -> int:
        return int(np.asarray(self.results.model.endog).shape[0])


@dataclass(frozen=True)
class PanelModelAdapter(_AdapterMixin):
    """linearmodels panel results (``PanelOLS``, ``RandomEffects``, ...)."""

    results: Any
    regime: ClassVar[Regime] = Regime.PANEL_MODEL

    def response_name(self) -> str:
        return str(self.results.model.dependent.vars[0])

    def response(self) -> np.ndarray:
        name = self.response_name()
        frame = self.results.model.dependent.dataframe
        try:
            values = frame[name].loc[self.results.resids.index]
        except KeyError:
            raise ExtractionError(
                f"Response variable {name!r} not found in the panel data."
            ) from None
        return np.asarray(values, dtype=float)

    def fitted(self) -> np.ndarray:
        return np.asarray(self.results.fitted_values, dtype=float).ravel()

    def residuals(self) -> np.ndarray:
        return np.asarray(self.results.resids, dtype=float)

    def df_resid(self) -> float:
        return float(_required_attr(self.results, "df_resid", "residual degrees of freedom"))

    def loglike(self) -> float:
        return float(_required_attr(self.results, "loglik", "a log-likelihood"))

    def reported_r2(self) -> tuple[float, float]:
        """``(R², adjusted R²)``.

        linearmodels reports no adjusted value, so it is derived with
        the usual degrees-of-freedom correction
        ``1 − (1 − R²)(n − 1) / df_resid``.
        """
        rsq = float(self.results.rsquared)
        n = self.nobs()
        adj = 1.0 - (1.0 - rsq) * (n - 1) / self.df_resid()
        return rsq, float(adj)


# ------------------------------------------------------------------ #
# Adapter registry
# ------------------------------------------------------------------ #

_ADAPTERS: dict[Regime, type] = {}
"""Registry mapping model regimes to adapter classes."""


def register_adapter(regime: Regime, cls: type) -> None:
    """Register an adapter class for *regime*.

    Args:
        regime: Any regime except ``RAW_VECTOR``.
        cls: A class implementing the ``FittedModel`` protocol whose
            constructor takes the (unwrapped) results object.

    Raises:
        ValueError: If *regime* is ``RAW_VECTOR``.
        TypeError: If *cls* does not implement ``FittedModel``.
    """
    if regime is Regime.RAW_VECTOR:
        raise ValueError("Raw vectors have no model adapter.")
    if not (isinstance(cls, type) and issubclass(cls, FittedModel)):
        msg = f"{cls!r} does not implement the FittedModel protocol."
        raise TypeError(msg)
    _ADAPTERS[regime] = cls


def adapt(model: Any, regime: Regime | None = None) -> FittedModel:
    """Wrap *model* in the adapter for its regime.

    Args:
        model: A fitted model (statsmodels wrappers are unwrapped).
        regime: Pre-computed regime; classified when omitted.

    Raises:
        UnsupportedModelTypeError: If *model* is not a recognised
            fitted model.
    """
    if regime is None:
        regime = classify(model)
    if regime not in _ADAPTERS:
        raise UnsupportedModelTypeError(
            f"Object of type {type(model).__name__} is not a supported "
            "fitted model.",
            model_type=type(model).__name__,
        )
    adapter: FittedModel = _ADAPTERS[regime](unwrap(model))
    return adapter


def extract(model: Any, regime: Regime | None = None) -> ModelData:
    """Return the aligned :class:`ModelData` bundle of *model*."""
    return adapt(model, regime).data()


def variance_components(model: Any) -> VarianceComponents:
    """Return τ₀₀, τ₁₁ and σ² of a linear mixed model.

    Raises:
        UnsupportedModelTypeError: If *model* has no variance
            decomposition.
        ExtractionError: If the components cannot be read.
    """
    adapter = adapt(model)
    if not isinstance(adapter, MixedModel):
        raise UnsupportedModelTypeError(
            "Variance components are only available for linear mixed "
            f"models, got {type(model).__name__}.",
            statistic="variance_components",
            model_type=type(model).__name__,
        )
    return adapter.variance_components()


register_adapter(Regime.LINEAR_MODEL, LinearModelAdapter)
register_adapter(Regime.LINEAR_MIXED_MODEL, LinearMixedModelAdapter)
register_adapter(Regime.GENERALIZED_LINEAR_MODEL, GLMAdapter)
register_adapter(Regime.GENERALIZED_LINEAR_MIXED_MODEL, GLMMAdapter)
register_adapter(Regime.PANEL_MODEL, PanelModelAdapter)
