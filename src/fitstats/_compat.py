"""Input compatibility layer for optional third-party types.

Two optional libraries widen what the public API accepts:

* **Polars** — a ``polars.Series`` (or single-column DataFrame) is
  accepted wherever a raw numeric vector is expected and converted to
  NumPy at the boundary.
* **linearmodels** — when installed, its panel-model results are
  recognised as the panel regime by :func:`fitstats.regimes.classify`.

Neither library is a required dependency.  If one is not installed the
corresponding inputs simply fall through to the generic handling.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from .exceptions import UnsupportedModelTypeError

# Runtime detection — avoids hard dependencies on Polars / linearmodels.
try:
    import polars as pl

    _HAS_POLARS = True
except ImportError:
    _HAS_POLARS = False

try:
    from linearmodels.panel.results import PanelResults

    _HAS_LINEARMODELS = True
except ImportError:
    _HAS_LINEARMODELS = False


def _is_panel_results(obj: Any) -> bool:
    """Return ``True`` if *obj* is a fitted linearmodels panel result."""
    return _HAS_LINEARMODELS and isinstance(obj, PanelResults)


def _single_column(frame: pd.DataFrame, name: str) -> pd.Series:
    if frame.shape[1] != 1:
        raise UnsupportedModelTypeError(
            f"'{name}' must be a single numeric vector, got a DataFrame "
            f"with {frame.shape[1]} columns.",
            model_type="DataFrame",
        )
    return frame.iloc[:, 0]


def _as_float_vector(obj: Any, *, name: str = "x") -> np.ndarray:
    """Convert *obj* to a 1-D ``float64`` NumPy array.

    Accepted types:
        * ``numpy.ndarray`` and Python sequences of numbers.
        * ``pandas.Series`` or single-column ``pandas.DataFrame``;
          ``pd.NA`` becomes ``nan``.
        * ``polars.Series`` or single-column ``polars.DataFrame``
          (when Polars is installed).

    Missing values are kept as ``nan``; callers decide whether to drop
    them.

    Args:
        obj: The vector-like input.
        name: Label used in error messages.

    Returns:
        A 1-D float array.

    Raises:
        UnsupportedModelTypeError: If *obj* cannot be interpreted as a
            one-dimensional numeric vector.
    """
    if _HAS_POLARS:
        if isinstance(obj, pl.DataFrame):
            if obj.width != 1:
                raise UnsupportedModelTypeError(
                    f"'{name}' must be a single numeric vector, got a DataFrame "
                    f"with {obj.width} columns.",
                    model_type="DataFrame",
                )
            obj = obj.to_series()
        if isinstance(obj, pl.Series):
            obj = obj.to_numpy()

    if isinstance(obj, pd.DataFrame):
        obj = _single_column(obj, name)

    try:
        if isinstance(obj, pd.Series):
            arr = obj.to_numpy(dtype=float, na_value=np.nan)
        else:
            arr = np.asarray(obj, dtype=float)
    except (TypeError, ValueError):
        raise UnsupportedModelTypeError(
            f"'{name}' must be a numeric vector or a supported fitted "
            f"model, got {type(obj).__name__}.",
            model_type=type(obj).__name__,
        ) from None

    if arr.ndim > 1:
        arr = np.squeeze(arr)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise UnsupportedModelTypeError(
            f"'{name}' must be one-dimensional, got shape {arr.shape}.",
            model_type=type(obj).__name__,
        )
    return arr
