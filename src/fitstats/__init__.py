"""fitstats — Model-fit and dispersion statistics for fitted regression models.

Computes the coefficient of variation, RMSE / MSE / residual standard
error, Tjur's coefficient of discrimination and R² / pseudo-R² /
Ω² variants from already-fitted statsmodels models (OLS, GLM, Logit,
MixedLM, Bayesian mixed GLMs), linearmodels panel models, or raw
numeric vectors.  Each input is classified into a model regime, its
response / fitted values / residuals are extracted as one aligned
bundle, and the regime-specific formula is applied.

Public API:
    .. autosummary::
        cv
        rmse
        mse
        rse
        cod
        pseudo_r2
        r2
        classify
        Regime
        adapt
        extract
        variance_components
        register_adapter
        FittedModel
        MixedModel
        ModelData
        VarianceComponents
        FitStatistics
        print_fit_statistics
        get_unsupported_policy
        set_unsupported_policy
        FitStatsError
        UnsupportedModelTypeError
        DivisionByZeroError
        ExtractionError
        CategoryCardinalityError
"""

from ._config import get_unsupported_policy, set_unsupported_policy
from ._results import FitStatistics
from .adapters import (
    FittedModel,
    MixedModel,
    ModelData,
    VarianceComponents,
    adapt,
    extract,
    register_adapter,
    variance_components,
)
from .display import print_fit_statistics
from .exceptions import (
    CategoryCardinalityError,
    DivisionByZeroError,
    ExtractionError,
    FitStatsError,
    UnsupportedModelTypeError,
)
from .regimes import Regime, classify
from .statistics import cod, cv, mse, pseudo_r2, r2, rmse, rse

__version__ = "0.1.0"

__all__ = [
    "CategoryCardinalityError",
    "DivisionByZeroError",
    "ExtractionError",
    "FitStatistics",
    "FitStatsError",
    "FittedModel",
    "MixedModel",
    "ModelData",
    "Regime",
    "UnsupportedModelTypeError",
    "VarianceComponents",
    "adapt",
    "classify",
    "cod",
    "cv",
    "extract",
    "get_unsupported_policy",
    "mse",
    "print_fit_statistics",
    "pseudo_r2",
    "r2",
    "register_adapter",
    "rmse",
    "rse",
    "set_unsupported_policy",
    "variance_components",
]
