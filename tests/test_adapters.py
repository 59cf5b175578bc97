"""Tests for value extraction and the aligned ModelData bundle."""

import warnings
from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm

from fitstats import (
    ExtractionError,
    FittedModel,
    MixedModel,
    ModelData,
    Regime,
    UnsupportedModelTypeError,
    adapt,
    extract,
    register_adapter,
    variance_components,
)
from fitstats.adapters import (
    GLMAdapter,
    LinearMixedModelAdapter,
    LinearModelAdapter,
    _ADAPTERS,
)

# ------------------------------------------------------------------ #
# ModelData alignment
# ------------------------------------------------------------------ #


class TestModelDataFromArrays:
    def test_complete_data_passthrough(self):
        data = ModelData.from_arrays([1, 2, 3], [1.5, 2.0, 2.5], [-0.5, 0.0, 0.5])
        assert data.n_obs == 3
        assert data.n_dropped == 0
        np.testing.assert_array_equal(data.response, [1.0, 2.0, 3.0])

    def test_drops_missing_residuals_from_fitted(self):
        # Response already excludes the dropped observation.
        data = ModelData.from_arrays(
            [0, 1, 1],
            [0.2, np.nan, 0.7, 0.9],
            [-0.2, np.nan, 0.3, 0.1],
        )
        assert data.n_dropped == 1
        np.testing.assert_array_equal(data.fitted, [0.2, 0.7, 0.9])
        np.testing.assert_array_equal(data.response, [0.0, 1.0, 1.0])

    def test_padded_response_filtered_with_same_mask(self):
        data = ModelData.from_arrays(
            [0, 99, 1, 1],
            [0.2, np.nan, 0.7, 0.9],
            [-0.2, np.nan, 0.3, 0.1],
        )
        np.testing.assert_array_equal(data.response, [0.0, 1.0, 1.0])
        assert data.response.shape == data.fitted.shape == data.residuals.shape

    def test_fitted_residual_length_mismatch(self):
        with pytest.raises(ExtractionError, match="differ in length"):
            ModelData.from_arrays([1, 2], [1, 2, 3], [0, 0])

    def test_response_length_mismatch(self):
        with pytest.raises(ExtractionError, match="Response"):
            ModelData.from_arrays([1, 2, 3, 4, 5], [1, 2, 3], [0, 0, 0])

    def test_all_missing(self):
        with pytest.raises(ExtractionError, match="no complete observations"):
            ModelData.from_arrays([], [np.nan], [np.nan])

    def test_arrays_are_read_only(self):
        data = ModelData.from_arrays([1, 2], [1, 2], [0, 0])
        with pytest.raises(ValueError):
            data.residuals[0] = 5.0

    def test_frozen(self):
        data = ModelData.from_arrays([1, 2], [1, 2], [0, 0])
        with pytest.raises(AttributeError):
            data.n_dropped = 3


# ------------------------------------------------------------------ #
# Adapters on real fits
# ------------------------------------------------------------------ #


class TestLinearModelAdapter:
    def test_protocol(self, ols_fit):
        adapter = adapt(ols_fit)
        assert isinstance(adapter, LinearModelAdapter)
        assert isinstance(adapter, FittedModel)
        assert not isinstance(adapter, MixedModel)

    def test_response_by_name(self, ols_fit, linear_df):
        adapter = adapt(ols_fit)
        assert adapter.response_name() == "y"
        np.testing.assert_allclose(adapter.response(), linear_df["y"].to_numpy())

    def test_values_match_statsmodels(self, ols_fit):
        adapter = adapt(ols_fit)
        np.testing.assert_allclose(adapter.fitted(), ols_fit.fittedvalues)
        np.testing.assert_allclose(adapter.residuals(), ols_fit.resid)
        assert adapter.df_resid() == ols_fit.df_resid
        assert adapter.loglike() == pytest.approx(ols_fit.llf)
        assert adapter.nobs() == 100

    def test_reported_r2(self, ols_fit):
        rsq, adj = adapt(ols_fit).reported_r2()
        assert rsq == pytest.approx(ols_fit.rsquared)
        assert adj == pytest.approx(ols_fit.rsquared_adj)

    def test_array_api_fit(self, linear_df):
        X = sm.add_constant(linear_df["x"].to_numpy())
        fit = sm.OLS(linear_df["y"].to_numpy(), X).fit()
        np.testing.assert_allclose(extract(fit).response, linear_df["y"])

    def test_missing_rows_dropped_consistently(self, linear_df):
        import statsmodels.formula.api as smf

        df = linear_df.copy()
        df.loc[[3, 10, 50], "y"] = np.nan
        fit = smf.ols("y ~ x", data=df).fit()
        data = extract(fit)
        assert data.n_obs == 97
        np.testing.assert_allclose(data.response - data.fitted, data.residuals)

    def test_response_name_not_in_data(self):
        frame = pd.DataFrame({"other": [1.0, 2.0]})
        fake = SimpleNamespace(
            model=SimpleNamespace(
                endog_names="y",
                data=SimpleNamespace(orig_endog=frame),
            )
        )
        with pytest.raises(ExtractionError, match="'y' not found"):
            LinearModelAdapter(fake).response()

    def test_several_response_columns(self):
        fake = SimpleNamespace(model=SimpleNamespace(endog_names=["successes", "failures"]))
        with pytest.raises(ExtractionError, match=r"2 response columns \['successes', 'failures'\]"):
            LinearModelAdapter(fake).response()

    def test_missing_df_resid(self):
        fake = SimpleNamespace(df_resid=None)
        with pytest.raises(ExtractionError, match="degrees of freedom"):
            LinearModelAdapter(fake).df_resid()


class TestGLMAdapter:
    def test_fitted_on_response_scale(self, glm_fit):
        fitted = adapt(glm_fit).fitted()
        assert np.all((fitted > 0) & (fitted < 1))
        np.testing.assert_allclose(fitted, glm_fit.predict())

    def test_deviance_residuals(self, glm_fit):
        np.testing.assert_allclose(adapt(glm_fit).residuals(), glm_fit.resid_deviance)

    def test_logit_predictions_are_probabilities(self, logit_fit, glm_fit):
        adapter = adapt(logit_fit)
        assert isinstance(adapter, GLMAdapter)
        np.testing.assert_allclose(adapter.fitted(), adapt(glm_fit).fitted(), atol=1e-5)
        np.testing.assert_allclose(adapter.residuals(), logit_fit.resid_dev)

    def test_null_loglike(self, glm_fit):
        assert adapt(glm_fit).loglike_null() == pytest.approx(glm_fit.llnull)


class TestLinearMixedModelAdapter:
    def test_protocol(self, mixed_fit):
        adapter = adapt(mixed_fit)
        assert isinstance(adapter, LinearMixedModelAdapter)
        assert isinstance(adapter, MixedModel)

    def test_residuals_are_response_minus_fitted(self, mixed_fit):
        data = extract(mixed_fit)
        np.testing.assert_allclose(data.response - data.fitted, data.residuals, atol=1e-8)

    def test_variance_components_intercept_only(self, mixed_fit):
        vc = variance_components(mixed_fit)
        assert vc.tau00 == pytest.approx(float(np.asarray(mixed_fit.cov_re)[0, 0]))
        assert vc.sigma2 == pytest.approx(mixed_fit.scale)
        assert np.isnan(vc.tau11)
        assert not vc.has_random_slope

    def test_variance_components_with_slope(self, mixed_slope_fit):
        vc = variance_components(mixed_slope_fit)
        cov = np.asarray(mixed_slope_fit.cov_re)
        assert vc.has_random_slope
        assert vc.tau11 == pytest.approx(cov[1, 1])

    def test_variance_components_rejects_non_mixed(self, ols_fit):
        with pytest.raises(UnsupportedModelTypeError, match="linear mixed"):
            variance_components(ols_fit)

    def test_missing_random_effects(self):
        fake = SimpleNamespace(cov_re=np.empty((0, 0)), scale=1.0)
        with pytest.raises(ExtractionError, match="random-intercept"):
            LinearMixedModelAdapter(fake).variance_components()

    def test_slope_without_intercept_rejected(self, grouped_df):
        import statsmodels.formula.api as smf

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            fit = smf.mixedlm(
                "y ~ x", grouped_df, groups=grouped_df["g"], re_formula="0 + x"
            ).fit(reml=True)
        with pytest.raises(ExtractionError, match="random-intercept"):
            variance_components(fit)

    def test_intercept_located_by_constant_column(self):
        x = np.array([0.5, -1.0, 2.0])
        fake = SimpleNamespace(
            cov_re=np.diag([0.3, 2.0]),
            scale=1.5,
            model=SimpleNamespace(exog_re=np.column_stack([x, np.ones(3)])),
        )
        vc = LinearMixedModelAdapter(fake).variance_components()
        assert vc.tau00 == 2.0
        assert vc.tau11 == 0.3
        assert vc.sigma2 == 1.5


# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #


class TestRegistry:
    def test_every_model_regime_registered(self):
        assert set(_ADAPTERS) == {r for r in Regime if r.is_model}

    def test_adapt_rejects_raw_vector(self):
        with pytest.raises(UnsupportedModelTypeError, match="not a supported fitted model"):
            adapt(np.ones(4))

    def test_register_rejects_raw_vector(self):
        with pytest.raises(ValueError, match="Raw vectors"):
            register_adapter(Regime.RAW_VECTOR, LinearModelAdapter)

    def test_register_rejects_non_protocol(self):
        class NotAnAdapter:
            def response(self):
                return np.ones(1)

        with pytest.raises(TypeError, match="FittedModel"):
            register_adapter(Regime.LINEAR_MODEL, NotAnAdapter)

    def test_register_replaces_adapter(self, ols_fit):
        class ScaledAdapter(LinearModelAdapter):
            def residuals(self):
                return 2 * super().residuals()

        original = _ADAPTERS[Regime.LINEAR_MODEL]
        try:
            register_adapter(Regime.LINEAR_MODEL, ScaledAdapter)
            np.testing.assert_allclose(extract(ols_fit).residuals, 2 * ols_fit.resid)
        finally:
            register_adapter(Regime.LINEAR_MODEL, original)
