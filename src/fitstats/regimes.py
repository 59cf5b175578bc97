"""Model regime classification.

Every input handed to a statistic is first tagged with exactly one
:class:`Regime`.  The regime set is closed: statistics dispatch on it
with one handler per regime, so a regime a statistic does not define
is an explicit gap rather than an open-ended type check.

Priority order
~~~~~~~~~~~~~~
The checks run from most to least specialised:

1. Generalized linear mixed model — statsmodels' Bayesian mixed GLMs
   (``BinomialBayesMixedGLM``, ``PoissonBayesMixedGLM``).  Checked
   first because a mixed GLM is a specialisation of a GLM.
2. Generalized linear model — ``GLM`` results of any family, plus the
   binary discrete models (``Logit``, ``Probit``).  A GLM with a
   Gaussian family is still a GLM; only ``RegressionResults`` count
   as plain linear models.
3. Linear mixed model — ``MixedLM`` results.
4. Panel model — ``linearmodels`` panel results (when installed).
5. Linear model — ``OLS`` / ``WLS`` / ``GLS`` results.
6. Anything else is treated as a raw numeric vector.  Classification
   never fails; the statistics reject regimes they do not define.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

from statsmodels.base.wrapper import ResultsWrapper
from statsmodels.discrete.discrete_model import BinaryResults
from statsmodels.genmod.bayes_mixed_glm import BayesMixedGLMResults
from statsmodels.genmod.generalized_linear_model import GLMResults
from statsmodels.regression.linear_model import RegressionResults
from statsmodels.regression.mixed_linear_model import MixedLMResults

from ._compat import _is_panel_results

logger = logging.getLogger(__name__)


class Regime(enum.Enum):
    """Statistical regime of a fitted model (or raw vector)."""

    RAW_VECTOR = "raw_vector"
    LINEAR_MODEL = "linear_model"
    LINEAR_MIXED_MODEL = "linear_mixed_model"
    GENERALIZED_LINEAR_MODEL = "generalized_linear_model"
    GENERALIZED_LINEAR_MIXED_MODEL = "generalized_linear_mixed_model"
    PANEL_MODEL = "panel_model"

    @property
    def is_mixed(self) -> bool:
        """``True`` for regimes with random-effect structure."""
        return self in (
            Regime.LINEAR_MIXED_MODEL,
            Regime.GENERALIZED_LINEAR_MIXED_MODEL,
        )

    @property
    def is_model(self) -> bool:
        """``True`` for every regime except :attr:`RAW_VECTOR`."""
        return self is not Regime.RAW_VECTOR


def unwrap(model: Any) -> Any:
    """Return the bare results object behind a statsmodels wrapper.

    ``sm.OLS(...).fit()`` and friends return a ``ResultsWrapper`` that
    re-attaches pandas indexes to every array attribute.  The wrapper
    is not an instance of the underlying results class, so
    classification and extraction operate on ``wrapper._results``.
    Non-wrapped objects are returned unchanged.
    """
    if isinstance(model, ResultsWrapper):
        return model._results
    return model


def classify(model: Any) -> Regime:
    """Determine the :class:`Regime` of *model*.

    Args:
        model: A fitted statsmodels / linearmodels results object, or
            any other value (treated as a raw vector).

    Returns:
        Exactly one :class:`Regime`.  Never raises.
    """
    results = unwrap(model)

    if isinstance(results, BayesMixedGLMResults):
        regime = Regime.GENERALIZED_LINEAR_MIXED_MODEL
    elif isinstance(results, (GLMResults, BinaryResults)):
        regime = Regime.GENERALIZED_LINEAR_MODEL
    elif isinstance(results, MixedLMResults):
        regime = Regime.LINEAR_MIXED_MODEL
    elif _is_panel_results(results):
        regime = Regime.PANEL_MODEL
    elif isinstance(results, RegressionResults):
        regime = Regime.LINEAR_MODEL
    else:
        regime = Regime.RAW_VECTOR

    logger.debug("Classified %s as %s", type(model).__name__, regime.value)
    return regime
