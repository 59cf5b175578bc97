"""
Model fit statistics across regression regimes
Simulated school-achievement data (students nested in schools)

Demonstrates:
- ``cv`` on a raw vector and on fitted linear / linear mixed models
- ``rmse`` (plain and range-normalised), ``mse`` and ``rse``
- ``cod`` — Tjur's D for a binary logistic model
- ``r2`` dispatching on the model regime: OLS, binomial GLM, MixedLM
  (approximate and null-model variance reduction)
- Batch evaluation and the ``"warn"`` policy for unsupported inputs
- ``print_fit_statistics`` tabular output

Dataset
-------
40 schools with 25 students each.  ``score`` depends on hours of
study (``hours``) with a school-level random intercept and slope;
``passed`` is a thresholded version of the score used for the
binary models:

    Level 2: Schools (n = 40)
    Level 1: Students within schools (25 each)
"""

import warnings

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf

import fitstats
from fitstats import cod, cv, mse, print_fit_statistics, r2, rmse, rse

# ============================================================================
# Simulate data
# ============================================================================

rng = np.random.default_rng(2024)
n_schools, per_school = 40, 25
school = np.repeat(np.arange(n_schools), per_school)
hours = rng.gamma(shape=4.0, scale=1.5, size=school.size)
u0 = rng.normal(0, 6.0, n_schools)[school]
u1 = rng.normal(0, 0.8, n_schools)[school]
score = 50.0 + 3.0 * hours + u0 + u1 * hours + rng.normal(0, 8.0, school.size)

df = pd.DataFrame(
    {
        "score": score,
        "hours": hours,
        "school": school,
        "passed": (score > np.median(score)).astype(float),
    }
)

print("Dataset: simulated school achievement")
print(f"  Students:  {len(df)}")
print(f"  Schools:   {n_schools}")
print(f"  Outcome:   score (range {score.min():.1f}–{score.max():.1f})")
print()

# ============================================================================
# Fit models
# ============================================================================

ols = smf.ols("score ~ hours", data=df).fit()
logit = smf.glm("passed ~ hours", data=df, family=sm.families.Binomial()).fit()

with warnings.catch_warnings():
    warnings.simplefilter("ignore")
    lmm = smf.mixedlm("score ~ hours", df, groups=df["school"]).fit(reml=True)
    lmm_null = smf.mixedlm("score ~ 1", df, groups=df["school"]).fit(reml=True)

# ============================================================================
# Dispersion and error measures
# ============================================================================

print("=" * 60)
print("Coefficient of variation and residual error")
print("=" * 60)
print(f"  cv(score):            {cv(df['score']):.4f}")
print(f"  cv(OLS), cv(LMM):     {np.round(cv(ols, lmm), 4)}")
print(f"  rmse(OLS):            {rmse(ols):.4f}")
print(f"  rmse(OLS, normalized):{rmse(ols, normalized=True):>8.4f}")
print(f"  mse(OLS):             {mse(ols):.4f}")
print(f"  rse(OLS):             {rse(ols):.4f}  (sqrt(scale) = {np.sqrt(ols.scale):.4f})")
print()

# ============================================================================
# R² family
# ============================================================================

results = r2(ols, logit, lmm)
print_fit_statistics(results, names=["OLS", "Binomial GLM", "MixedLM"], title="r2() by model regime")

print_fit_statistics(
    r2(lmm, null_model=lmm_null),
    names=["MixedLM vs. null"],
    title="Variance-reduction R2 for the mixed model",
)

print_fit_statistics(cod(logit), names=["Binomial GLM"], title="Tjur's D")

# ============================================================================
# Unsupported inputs in a batch
# ============================================================================

fitstats.set_unsupported_policy("warn")
with warnings.catch_warnings(record=True) as caught:
    warnings.simplefilter("always")
    mixed_batch = r2(ols, df["score"], logit)
fitstats.set_unsupported_policy("auto")

print(f"Batch with a raw vector under 'warn': {len(caught)} warning(s)")
print_fit_statistics(mixed_batch, names=["OLS", "raw vector", "Binomial GLM"])
