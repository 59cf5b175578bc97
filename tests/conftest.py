"""Shared fitted-model fixtures.

All data are simulated from a seeded generator so every model fits
the same way on every run.
"""

import warnings

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm
import statsmodels.formula.api as smf

SEED = 42


@pytest.fixture()
def rng():
    return np.random.default_rng(SEED)


# ------------------------------------------------------------------ #
# Data
# ------------------------------------------------------------------ #


@pytest.fixture()
def linear_df(rng):
    n = 100
    x = rng.standard_normal(n)
    y = 10.0 + 1.5 * x + rng.standard_normal(n)
    return pd.DataFrame({"x": x, "y": y})


@pytest.fixture()
def binary_df(rng):
    n = 200
    x = rng.standard_normal(n)
    p = 1 / (1 + np.exp(-(0.3 + 1.2 * x)))
    return pd.DataFrame({"x": x, "y": rng.binomial(1, p).astype(float)})


@pytest.fixture()
def count_df(rng):
    n = 150
    x = rng.standard_normal(n)
    return pd.DataFrame({"x": x, "y": rng.poisson(np.exp(0.5 + 0.4 * x))})


@pytest.fixture()
def grouped_df(rng):
    n_groups, per_group = 20, 10
    g = np.repeat(np.arange(n_groups), per_group)
    x = rng.standard_normal(n_groups * per_group)
    u0 = rng.normal(0, 1.5, n_groups)[g]
    u1 = rng.normal(0, 0.5, n_groups)[g]
    y = 5.0 + 2.0 * x + u0 + u1 * x + rng.standard_normal(n_groups * per_group)
    return pd.DataFrame({"x": x, "y": y, "g": g})


# ------------------------------------------------------------------ #
# Fitted models
# ------------------------------------------------------------------ #


@pytest.fixture()
def ols_fit(linear_df):
    return smf.ols("y ~ x", data=linear_df).fit()


@pytest.fixture()
def glm_fit(binary_df):
    return smf.glm("y ~ x", data=binary_df, family=sm.families.Binomial()).fit()


@pytest.fixture()
def logit_fit(binary_df):
    return smf.logit("y ~ x", data=binary_df).fit(disp=0)


@pytest.fixture()
def poisson_fit(count_df):
    return smf.glm("y ~ x", data=count_df, family=sm.families.Poisson()).fit()


def _fit_mixed(formula, df, **kwargs):
    with warnings.catch_warnings():
        # Boundary / convergence chatter from the REML optimiser.
        warnings.simplefilter("ignore")
        return smf.mixedlm(formula, df, groups=df["g"], **kwargs).fit(reml=True)


@pytest.fixture()
def mixed_fit(grouped_df):
    return _fit_mixed("y ~ x", grouped_df)


@pytest.fixture()
def mixed_null_fit(grouped_df):
    return _fit_mixed("y ~ 1", grouped_df)


@pytest.fixture()
def mixed_slope_fit(grouped_df):
    return _fit_mixed("y ~ x", grouped_df, re_formula="~x")


@pytest.fixture()
def mixed_slope_null_fit(grouped_df):
    return _fit_mixed("y ~ 1", grouped_df, re_formula="~x")
