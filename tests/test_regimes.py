"""Tests for model regime classification."""

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm

from fitstats import Regime, classify
from fitstats.regimes import unwrap


class TestClassify:
    def test_ols(self, ols_fit):
        assert classify(ols_fit) is Regime.LINEAR_MODEL

    def test_wls(self, linear_df):
        X = sm.add_constant(linear_df[["x"]])
        fit = sm.WLS(linear_df["y"], X, weights=np.ones(len(linear_df))).fit()
        assert classify(fit) is Regime.LINEAR_MODEL

    def test_binomial_glm(self, glm_fit):
        assert classify(glm_fit) is Regime.GENERALIZED_LINEAR_MODEL

    def test_gaussian_glm_is_still_glm(self, linear_df):
        X = sm.add_constant(linear_df[["x"]])
        fit = sm.GLM(linear_df["y"], X, family=sm.families.Gaussian()).fit()
        assert classify(fit) is Regime.GENERALIZED_LINEAR_MODEL

    def test_logit(self, logit_fit):
        assert classify(logit_fit) is Regime.GENERALIZED_LINEAR_MODEL

    def test_mixed(self, mixed_fit):
        assert classify(mixed_fit) is Regime.LINEAR_MIXED_MODEL

    def test_numpy_vector(self):
        assert classify(np.arange(5.0)) is Regime.RAW_VECTOR

    def test_list_and_series(self):
        assert classify([1, 2, 3]) is Regime.RAW_VECTOR
        assert classify(pd.Series([1.0, 2.0])) is Regime.RAW_VECTOR

    def test_unrecognised_object_falls_through(self):
        # Classification never fails; statistics reject the regime.
        assert classify(object()) is Regime.RAW_VECTOR

    def test_unfitted_model_is_not_a_fit(self, linear_df):
        model = sm.OLS(linear_df["y"], sm.add_constant(linear_df[["x"]]))
        assert classify(model) is Regime.RAW_VECTOR


class TestUnwrap:
    def test_unwraps_results_wrapper(self, ols_fit):
        inner = unwrap(ols_fit)
        assert inner is ols_fit._results
        assert classify(inner) is Regime.LINEAR_MODEL

    def test_passthrough(self):
        arr = np.ones(3)
        assert unwrap(arr) is arr


class TestRegimeProperties:
    @pytest.mark.parametrize(
        "regime",
        [Regime.LINEAR_MIXED_MODEL, Regime.GENERALIZED_LINEAR_MIXED_MODEL],
    )
    def test_mixed_regimes(self, regime):
        assert regime.is_mixed

    def test_non_mixed(self):
        assert not Regime.LINEAR_MODEL.is_mixed
        assert not Regime.PANEL_MODEL.is_mixed

    def test_is_model(self):
        assert not Regime.RAW_VECTOR.is_model
        assert all(r.is_model for r in Regime if r is not Regime.RAW_VECTOR)

    def test_closed_set(self):
        assert len(Regime) == 6
