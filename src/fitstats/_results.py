"""Typed result objects for model-fit statistics.

:class:`FitStatistics` is a frozen dataclass that provides:

* **Mapping access** — ``result["R2"]``, ``result.get("adj.R2")``,
  ``"O2" in result``, iteration over labels in computation order.
* **Kind marker** — ``result.kind`` names the formula family that
  produced the values (``"r2"``, ``"mixed_r2"``, ``"pseudo_r2"``,
  ``"cod"``) so formatting code can render each appropriately.
* **Serialisation** — ``.to_dict()`` returns plain Python types,
  ``.to_series()`` a labelled ``pandas.Series``.

Results are immutable snapshots of one computation.

This module also holds :func:`apply_to_each`, the batch driver that
evaluates one statistic over several models in argument order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from .regimes import Regime

T = TypeVar("T")

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy scalars/arrays to Python-native types."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.bool_)):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


# ------------------------------------------------------------------ #
# FitStatistics
# ------------------------------------------------------------------ #


@dataclass(frozen=True, eq=False)
class FitStatistics(Mapping[str, float]):
    """Labelled model-fit statistics from one computation.

    Behaves as a read-only mapping from statistic label to value.
    Labels keep the order in which the formula produced them.

    Canonical labels:

    ===============  ==============================================
    Kind             Labels
    ===============  ==============================================
    ``"r2"``         ``"R2"``, ``"adj.R2"``
    ``"mixed_r2"``   ``"R2"``, ``"O2"`` — or, with a null model,
                     ``"R2(tau-00)"``, ``"R2(tau-11)"``, ``"R2"``,
                     ``"O2"``
    ``"pseudo_r2"``  ``"CoxSnell"``, ``"Nagelkerke"``
    ``"cod"``        ``"D"``
    ===============  ==============================================
    """

    kind: str
    """Formula family that produced the values."""

    statistics: tuple[tuple[str, float], ...]
    """``(label, value)`` pairs in computation order."""

    regime: Regime | None = None
    """Regime of the model the statistics were computed from."""

    @classmethod
    def pack(
        cls,
        kind: str,
        values: Mapping[str, float],
        regime: Regime | None = None,
    ) -> FitStatistics:
        """Build a result from a ``{label: value}`` mapping."""
        return cls(
            kind=kind,
            statistics=tuple((str(k), float(v)) for k, v in values.items()),
            regime=regime,
        )

    # ---- Mapping interface -----------------------------------------

    def __getitem__(self, label: str) -> float:
        for key, value in self.statistics:
            if key == label:
                return value
        raise KeyError(label)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self.statistics)

    def __len__(self) -> int:
        return len(self.statistics)

    # ---- Equality ---------------------------------------------------
    #
    # Labels compare as a set, values as floats with NaN equal to NaN.
    # A plain mapping compares by items only; another FitStatistics
    # must also share the kind. The regime is not compared.

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FitStatistics):
            if self.kind != other.kind:
                return False
        elif not isinstance(other, Mapping):
            return NotImplemented
        if set(self) != set(other):
            return False
        for label, value in self.statistics:
            try:
                theirs = float(other[label])
            except (TypeError, ValueError):
                return False
            if not (value == theirs or (np.isnan(value) and np.isnan(theirs))):
                return False
        return True

    def __hash__(self) -> int:
        values = sorted(
            (label, None if np.isnan(value) else value)
            for label, value in self.statistics
        )
        return hash((self.kind, tuple(values)))

    # ---- Serialisation ---------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary of Python-native values."""
        return {
            "kind": self.kind,
            "regime": self.regime.value if self.regime is not None else None,
            "statistics": _numpy_to_python(dict(self.statistics)),
        }

    def to_series(self) -> pd.Series:
        """Return the statistics as a ``pandas.Series`` named by kind."""
        return pd.Series(dict(self.statistics), name=self.kind, dtype=float)

    def __str__(self) -> str:
        parts = [
            f"{label}: {'NA' if np.isnan(value) else f'{value:.4f}'}"
            for label, value in self.statistics
        ]
        return "; ".join(parts)


# ------------------------------------------------------------------ #
# Batch evaluation
# ------------------------------------------------------------------ #


def apply_to_each(
    func: Callable[..., T],
    first: Any,
    more: tuple[Any, ...],
    **kwargs: Any,
) -> list[T]:
    """Evaluate ``func(model, **kwargs)`` for each model in argument order.

    Models are processed sequentially.  The first exception aborts the
    whole batch — no partial result list is returned.
    """
    results = []
    for model in (first, *more):
        results.append(func(model, **kwargs))
    return results
